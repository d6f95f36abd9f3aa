"""
Meal lookups for the bot, wired to the NEIS settings.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, List, Optional

from asgiref.sync import sync_to_async
from django.conf import settings

from neis_lib.exceptions import MealServiceError
from neis_lib.model import MealRecord
from neis_lib.parser import neis_meal_retrieve

logger = logging.getLogger(__name__)


def fetch_meals(meal_date: date) -> List[MealRecord]:
    """Fetch the configured school's meals for `meal_date` (blocking)."""
    return neis_meal_retrieve(
        meal_date,
        office_code=settings.NEIS_OFFICE_CODE,
        school_code=settings.NEIS_SCHOOL_CODE,
        api_key=settings.NEIS_API_KEY or None,
        timeout=settings.NEIS_REQUEST_TIMEOUT,
        fallback_proxy=settings.NEIS_FALLBACK_PROXY or None,
    )


@dataclass
class SearchResult:
    token: int
    meal_date: date
    meals: List[MealRecord] = field(default_factory=list)
    error: Optional[MealServiceError] = None


class MenuSearch:
    """
    Runs meal searches for one chat.

    Every search gets a generation token. When searches overlap only the
    newest token is current, so a slow earlier response can be thrown away
    instead of overwriting a newer one.
    """

    def __init__(self, fetch: Optional[Callable[[date], List[MealRecord]]] = None):
        self._fetch = fetch or fetch_meals
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def begin(self) -> int:
        self._generation += 1
        return self._generation

    def is_current(self, token: int) -> bool:
        return token == self._generation

    async def search(self, meal_date: date) -> SearchResult:
        token = self.begin()
        try:
            meals = await sync_to_async(self._fetch, thread_sensitive=False)(meal_date)
        except MealServiceError as e:
            logger.info(f"Search {token} for {meal_date} failed ({e.category}): {e}")
            return SearchResult(token, meal_date, error=e)

        if not self.is_current(token):
            logger.info(f"Discarding stale search {token} for {meal_date}")
        return SearchResult(token, meal_date, meals)
