from neis_lib.model import MealRecord, NutritionInfo, RawRow
from neis_lib.parser import parse_meal_rows, parse_meal_xml

SUCCESS_XML = """<mealServiceDietInfo>
<head>
<list_total_count>2</list_total_count>
<RESULT><CODE>INFO-000</CODE><MESSAGE>정상 처리되었습니다.</MESSAGE></RESULT>
</head>
<row>
<MMEAL_SC_NM>중식</MMEAL_SC_NM>
<DDISH_NM>1.김치찌개(알러지유발)&lt;br/&gt;2.현미밥</DDISH_NM>
<CAL_INFO>650.3 Kcal</CAL_INFO>
<NTR_INFO>탄수화물(g) : 94.6&lt;br/&gt;단백질(g) : 33.2&lt;br/&gt;칼슘(mg) : 229.3</NTR_INFO>
</row>
<row>
<MMEAL_SC_NM>석식</MMEAL_SC_NM>
<DDISH_NM><![CDATA[불고기 (5.6.)<br/>쌀밥]]></DDISH_NM>
</row>
</mealServiceDietInfo>"""

NO_DATA_XML = """<RESULT>
<CODE>INFO-200</CODE>
<MESSAGE>해당하는 데이터가 없습니다.</MESSAGE>
</RESULT>"""


# =============================================================================
# ROW PARSING
# =============================================================================

def test_rows_become_meal_records_in_order():
    rows = [
        RawRow("조식", "토스트<br/>우유", "400 Kcal", "탄수화물:50"),
        RawRow("중식", "비빔밥", "700 Kcal", None),
    ]

    meals = parse_meal_rows(rows)

    assert meals == [
        MealRecord("조식", ["토스트", "우유"], "400 Kcal", NutritionInfo(carbs="50.0g")),
        MealRecord("중식", ["비빔밥"], "700 Kcal", None),
    ]


def test_row_without_dishes_is_dropped():
    rows = [
        RawRow("조식", ""),
        RawRow("중식", None),
        RawRow("석식", "잡곡밥"),
    ]
    assert [meal.type for meal in parse_meal_rows(rows)] == ["석식"]


def test_row_without_meal_type_is_dropped():
    rows = [RawRow(None, "잡곡밥"), RawRow("", "잡곡밥"), RawRow("  ", "잡곡밥")]
    assert parse_meal_rows(rows) == []


def test_row_whose_dishes_parse_to_nothing_is_dropped():
    assert parse_meal_rows([RawRow("중식", "<br/>(1.2.)<br/> ")]) == []


def test_unrecognized_nutrition_still_gives_record():
    meal = parse_meal_rows([RawRow("중식", "국수", "", "열량 500kcal")])[0]
    assert meal.nutrition == NutritionInfo()


def test_calorie_text_is_passed_through():
    meal = parse_meal_rows([RawRow("중식", "국수", " 812.4 Kcal ")])[0]
    assert meal.calorie_text == " 812.4 Kcal "


def test_no_rows():
    assert parse_meal_rows([]) == []


# =============================================================================
# XML DOCUMENTS
# =============================================================================

def test_success_document():
    meals = parse_meal_xml(SUCCESS_XML)

    assert len(meals) == 2
    lunch, dinner = meals
    assert lunch.type == "중식"
    assert lunch.dishes == ["김치찌개", "현미밥"]
    assert lunch.calorie_text == "650.3 Kcal"
    assert lunch.nutrition.carbs == "94.6g"
    assert lunch.nutrition.protein == "33.2g"
    assert lunch.nutrition.minerals == "칼슘 229.3mg"

    assert dinner.dishes == ["불고기", "쌀밥"]
    assert dinner.calorie_text == ""
    assert dinner.nutrition is None


def test_document_as_utf8_bytes():
    meals = parse_meal_xml(SUCCESS_XML.encode("utf-8"))
    assert [meal.type for meal in meals] == ["중식", "석식"]


def test_non_success_status_means_no_meals():
    assert parse_meal_xml(NO_DATA_XML) == []


def test_document_without_rows():
    xml = "<mealServiceDietInfo><head><RESULT><CODE>INFO-000</CODE></RESULT></head></mealServiceDietInfo>"
    assert parse_meal_xml(xml) == []


def test_garbage_input_means_no_meals():
    assert parse_meal_xml("<html><body>Service Unavailable</body></html>") == []
    assert parse_meal_xml("") == []
