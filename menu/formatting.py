"""
Plain-text rendering of parsed meals for chat messages.
"""
from datetime import date
from typing import Iterable, List, Optional

from neis_lib.model import MealRecord, NutritionInfo

WEEKDAYS = ['월', '화', '수', '목', '금', '토', '일']

NO_INFO = '정보 없음'
NO_MEAL_MESSAGE = '해당 날짜에 급식정보가 없습니다.'
FETCH_FAILED_MESSAGE = (
    '급식정보를 불러오는데 실패했습니다. '
    '해당 날짜에 급식이 없거나 주말/공휴일일 수 있습니다.'
)


def format_display_date(day: date) -> str:
    """2024-03-05 -> '2024년 3월 5일 (화)'"""
    return f"{day.year}년 {day.month}월 {day.day}일 ({WEEKDAYS[day.weekday()]})"


def format_nutrition(nutrition: NutritionInfo) -> List[str]:
    if not nutrition.has_data():
        return [
            "📊 영양정보",
            f"🍞 탄수화물: {NO_INFO}",
            f"🥩 단백질: {NO_INFO}",
            f"🥑 지방: {NO_INFO}",
            "📝 정확한 영양정보는 학교 급식실에 문의하세요.",
        ]

    lines = [
        "📊 영양정보",
        f"🍞 탄수화물: {nutrition.carbs or NO_INFO}",
        f"🥩 단백질: {nutrition.protein or NO_INFO}",
        f"🥑 지방: {nutrition.fat or NO_INFO}",
    ]
    if nutrition.vitamins:
        lines.append(f"🍊 비타민: {nutrition.vitamins}")
    if nutrition.minerals:
        lines.append(f"⚡ 미네랄: {nutrition.minerals}")
    return lines


def format_meal(meal: MealRecord, favorites: Optional[Iterable[str]] = None) -> str:
    favorites = set(favorites or [])
    lines = [f"🍽 {meal.type}"]
    for dish in meal.dishes:
        marker = '❤️' if dish in favorites else '•'
        lines.append(f"{marker} {dish}")

    if meal.calorie_text:
        lines.append(f"🔥 칼로리: {meal.calorie_text}")

    if meal.nutrition is not None:
        lines.append('')
        lines.extend(format_nutrition(meal.nutrition))

    return '\n'.join(lines)


def format_meal_records(meals: List[MealRecord], favorites: Optional[Iterable[str]], day: date) -> str:
    """Render a day's meals, marking favorited dishes."""
    header = f"📅 {format_display_date(day)} 급식정보"
    if not meals:
        return f"{header}\n\n{NO_MEAL_MESSAGE}"

    favorites = list(favorites or [])
    blocks = [format_meal(meal, favorites) for meal in meals]
    return header + '\n\n' + '\n\n'.join(blocks)


def format_favorites(favorites: Iterable[str]) -> str:
    names = list(favorites)
    if not names:
        return "즐겨찾기한 메뉴가 없습니다.\n메뉴 아래의 🤍 버튼으로 추가할 수 있어요."
    lines = ["❤️ 내가 좋아하는 메뉴"]
    lines.extend(f"{i}. {name}" for i, name in enumerate(names, 1))
    return '\n'.join(lines)
