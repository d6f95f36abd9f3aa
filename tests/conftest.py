"""
Shared fixtures for the meal parser and bot tests.
"""
import pytest

from neis_lib.model import MealRecord, NutritionInfo

# A NEIS NTR_INFO value as the API publishes it
NEIS_NUTRITION_TEXT = (
    "탄수화물(g) : 94.6<br/>단백질(g) : 33.2<br/>지방(g) : 21.5<br/>"
    "비타민A(R.E) : 185.1<br/>티아민(mg) : 0.3<br/>리보플라빈(mg) : 0.5<br/>"
    "비타민C(mg) : 15.4<br/>칼슘(mg) : 229.3<br/>철분(mg) : 4.1"
)


@pytest.fixture
def lunch():
    return MealRecord(
        type="중식",
        dishes=["김치찌개", "현미밥", "계란말이"],
        calorie_text="650.3 Kcal",
        nutrition=NutritionInfo(carbs="94.6g", protein="33.2g", fat="21.5g"),
    )


@pytest.fixture
def dinner():
    return MealRecord(
        type="석식",
        dishes=["현미밥", "불고기"],
        calorie_text="",
        nutrition=None,
    )
