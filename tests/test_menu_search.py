import asyncio
import threading
from datetime import date

import pytest

from menu.services import MenuSearch
from neis_lib.exceptions import MealTransportError, NoMealDataError
from neis_lib.model import MealRecord

MONDAY = date(2024, 3, 4)
TUESDAY = date(2024, 3, 5)


@pytest.mark.asyncio
async def test_search_returns_meals_with_current_token():
    meal = MealRecord("중식", ["비빔밥"])
    search = MenuSearch(fetch=lambda d: [meal])

    result = await search.search(TUESDAY)

    assert result.meals == [meal]
    assert result.meal_date == TUESDAY
    assert result.error is None
    assert search.is_current(result.token)


@pytest.mark.asyncio
async def test_tokens_increase_per_search():
    search = MenuSearch(fetch=lambda d: [])

    first = await search.search(MONDAY)
    second = await search.search(TUESDAY)

    assert second.token == first.token + 1
    assert not search.is_current(first.token)
    assert search.is_current(second.token)


@pytest.mark.asyncio
async def test_slow_earlier_search_is_stale():
    release_monday = threading.Event()
    monday_meal = MealRecord("중식", ["월요일 메뉴"])
    tuesday_meal = MealRecord("중식", ["화요일 메뉴"])

    def fetch(meal_date):
        if meal_date == MONDAY:
            release_monday.wait(timeout=5)
            return [monday_meal]
        return [tuesday_meal]

    search = MenuSearch(fetch=fetch)

    slow = asyncio.create_task(search.search(MONDAY))
    await asyncio.sleep(0)
    fast = await search.search(TUESDAY)
    release_monday.set()
    stale = await slow

    assert fast.meals == [tuesday_meal]
    assert search.is_current(fast.token)
    assert stale.meals == [monday_meal]
    assert not search.is_current(stale.token)


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [MealTransportError("refused"), NoMealDataError(TUESDAY)])
async def test_service_errors_are_reported_not_raised(error):
    def fetch(meal_date):
        raise error

    search = MenuSearch(fetch=fetch)
    result = await search.search(TUESDAY)

    assert result.error is error
    assert result.meals == []


@pytest.mark.asyncio
async def test_unexpected_errors_propagate():
    def fetch(meal_date):
        raise RuntimeError("bug")

    with pytest.raises(RuntimeError):
        await MenuSearch(fetch=fetch).search(TUESDAY)
