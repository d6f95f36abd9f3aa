"""
NEIS School Meal Parser

A Python package for retrieving and parsing Korean school meal menus from
the NEIS Open API.
"""

from .parser import (
    neis_meal_retrieve,
    neis_meal_xml_retrieve,
    parse_meal_xml,
    parse_meal_rows,
    parse_dishes,
    parse_nutrition,
)
from .webpage import neis_meal_url, fallback_proxy_url, meal_date_key
from .model import RawRow, NutritionInfo, MealRecord, FavoriteSet, FavoritesStore, MemoryFavoritesStore
from .exceptions import MealServiceError, MealTransportError, NoMealDataError


__version__ = "0.1.0"

__all__ = [
    "neis_meal_retrieve",
    "neis_meal_xml_retrieve",
    "parse_meal_xml",
    "parse_meal_rows",
    "parse_dishes",
    "parse_nutrition",
    "neis_meal_url",
    "fallback_proxy_url",
    "meal_date_key",
    "RawRow",
    "NutritionInfo",
    "MealRecord",
    "FavoriteSet",
    "FavoritesStore",
    "MemoryFavoritesStore",
    "MealServiceError",
    "MealTransportError",
    "NoMealDataError",
]
