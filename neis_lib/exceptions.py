"""
Errors raised while retrieving meal data.

Both kinds share MealServiceError so a caller can report them with one
message while still telling them apart.
"""
from datetime import date
from typing import Optional, Union


class MealServiceError(Exception):
    """Base class for meal retrieval failures."""

    category = "error"

    def __init__(self, message: str, meal_date: Optional[Union[date, str]] = None):
        super().__init__(message)
        self.message = message
        self.meal_date = meal_date

    def __str__(self) -> str:
        return self.message


class MealTransportError(MealServiceError):
    """The request could not be completed (network or HTTP error)."""

    category = "transport"


class NoMealDataError(MealServiceError):
    """The response was well formed but held no usable meal rows."""

    category = "no_data"

    def __init__(self, meal_date: Optional[Union[date, str]] = None, message: Optional[str] = None):
        if message is None:
            message = f"No meal data for {meal_date}" if meal_date else "No meal data"
        super().__init__(message, meal_date)
