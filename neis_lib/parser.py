import logging
import re
from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Callable, Iterable, List, Optional, Sequence, Union

import requests
from bs4 import BeautifulSoup

from .exceptions import MealTransportError, NoMealDataError
from .model import MealRecord, NutritionInfo, RawRow
from .webpage import DEFAULT_FALLBACK_PROXY, fallback_proxy_url, neis_meal_url

logger = logging.getLogger(__name__)

DEFAULT_OFFICE_CODE = "J10"
DEFAULT_SCHOOL_CODE = "7530520"
SUCCESS_CODE = "INFO-000"

# Reusable HTTP session shared by every fetch
_HTTP_SESSION = None


def _get_http_session() -> requests.Session:
    global _HTTP_SESSION
    if _HTTP_SESSION is None:
        session = requests.Session()
        session.headers.update({
            'User-Agent': 'Mozilla/5.0 (compatible; school-meal-bot/0.1)',
            'Accept': 'application/xml,text/xml;q=0.9,*/*;q=0.8',
            'Accept-Language': 'ko-KR,ko;q=0.9',
        })
        _HTTP_SESSION = session
    return _HTTP_SESSION


# =============================================================================
# DISH LIST PARSER
# =============================================================================

_LINE_BREAK_RE = re.compile(r'<br\s*/?>', re.IGNORECASE)
_NUMBERING_RE = re.compile(r'\d+\.')
_PARENTHETICAL_RE = re.compile(r'\([^)]*\)')


def parse_dishes(dish_text: Optional[str]) -> List[str]:
    """
    Split a raw DDISH_NM string into clean dish names.

    "1.김치찌개(알러지유발)<br/>2.현미밥" -> ["김치찌개", "현미밥"]

    Allergy numbering ("5.9.13.") and parenthetical notes are removed from
    every line; digits that are not followed by a period are kept.
    """
    if not dish_text:
        return []

    dishes = []
    for line in _LINE_BREAK_RE.sub('\n', dish_text).split('\n'):
        line = _NUMBERING_RE.sub('', line)
        line = _PARENTHETICAL_RE.sub('', line)
        line = line.strip()
        if line:
            dishes.append(line)
    return dishes


# =============================================================================
# NUTRITION PARSER
# =============================================================================

_NUMBER = r'([0-9.]+)'

# A matcher returns the captured number text, or None when it does not apply
Matcher = Callable[[str], Optional[str]]


def _regex_matcher(pattern: str) -> Matcher:
    compiled = re.compile(pattern)

    def match(text: str) -> Optional[str]:
        found = compiled.search(text)
        return found.group(1) if found else None

    return match


def _macro_matchers(label: str) -> List[Matcher]:
    """Alternatives for a macronutrient, most specific format first."""
    label = re.escape(label)
    return [
        # "탄수화물:12.3", "탄수화물 12.3"
        _regex_matcher(rf'{label}[:\s]*{_NUMBER}'),
        # "탄수화물(g) : 12.3"
        _regex_matcher(rf'{label}\(g\)[:\s]*{_NUMBER}'),
        # "탄수화물 : 12.3"
        _regex_matcher(rf'{label}\s*:\s*{_NUMBER}'),
        # "탄수화물 12.3g"
        _regex_matcher(rf'{label}\s+{_NUMBER}g?'),
    ]


def _micro_matchers(label: str) -> List[Matcher]:
    label = re.escape(label)
    return [
        _regex_matcher(rf'{label}[:\s]*{_NUMBER}'),
        # NEIS writes the unit in parentheses: "비타민A(R.E) : 185.1"
        _regex_matcher(rf'{label}\([^)]*\)[:\s]*{_NUMBER}'),
    ]


def _to_number(text: str) -> Optional[float]:
    try:
        return float(text)
    except ValueError:
        return None


def _first_value(text: str, matchers: Sequence[Matcher], convert: Callable[[str], Optional[str]]) -> Optional[str]:
    """
    Run the matchers in order and return the first capture that `convert`
    accepts. A capture `convert` turns into None falls through to the next
    matcher.
    """
    for matcher in matchers:
        captured = matcher(text)
        if captured is None:
            continue
        value = convert(captured)
        if value is not None:
            return value
    return None


def _verbatim_amount(number_text: str) -> Optional[str]:
    return number_text if _to_number(number_text) is not None else None


# (field, label) for carbohydrate, protein and fat
MACRONUTRIENTS = [
    ('carbs', '탄수화물'),
    ('protein', '단백질'),
    ('fat', '지방'),
]

# (label, display unit), in display order
VITAMINS = [
    ('비타민A', 'μg'),
    ('비타민C', 'mg'),
]

MINERALS = [
    ('칼슘', 'mg'),
    ('철분', 'mg'),
    ('나트륨', 'mg'),
]

_MACRO_MATCHERS = {label: _macro_matchers(label) for _, label in MACRONUTRIENTS}
_MICRO_MATCHERS = {label: _micro_matchers(label) for label, _ in VITAMINS + MINERALS}


def _format_grams(number_text: str) -> Optional[str]:
    """
    One decimal digit plus "g", or None when the amount can't be shown.

    The float value is rounded, not the written digits: "2.25" is exact and
    gives "2.3g", while "0.15" is stored as 0.1499... and gives "0.1g".
    """
    try:
        rounded = Decimal(float(number_text)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    except (ValueError, InvalidOperation):
        return None
    return f"{rounded}g"


def _join_micronutrients(text: str, nutrients) -> Optional[str]:
    parts = []
    for label, unit in nutrients:
        amount = _first_value(text, _MICRO_MATCHERS[label], _verbatim_amount)
        if amount is not None:
            parts.append(f"{label} {amount}{unit}")
    return ', '.join(parts) if parts else None


def parse_nutrition(nutrition_text: Optional[str]) -> Optional[NutritionInfo]:
    """
    Extract a NutritionInfo from free-form NTR_INFO text.

    Returns None for missing or empty text. Fields whose label is not found,
    or whose number does not parse, are left as None.
    """
    if not nutrition_text:
        return None

    macros = {}
    for field_name, label in MACRONUTRIENTS:
        macros[field_name] = _first_value(nutrition_text, _MACRO_MATCHERS[label], _format_grams)

    return NutritionInfo(
        vitamins=_join_micronutrients(nutrition_text, VITAMINS),
        minerals=_join_micronutrients(nutrition_text, MINERALS),
        **macros,
    )


# =============================================================================
# MEAL RECORD PARSER
# =============================================================================

def parse_meal_rows(rows: Iterable[RawRow]) -> List[MealRecord]:
    """
    Build one MealRecord per usable row, keeping row order.

    Rows without a meal type or dish list, or whose dish list parses to
    nothing, are dropped. An empty result is not an error.
    """
    meals = []
    for row in rows:
        meal_type = (row.meal_type_name or '').strip()
        if not meal_type or not row.dish_name:
            continue

        dishes = parse_dishes(row.dish_name)
        if not dishes:
            continue

        meals.append(MealRecord(
            type=meal_type,
            dishes=dishes,
            calorie_text=row.calorie_info or '',
            nutrition=parse_nutrition(row.nutrition_info),
        ))
    return meals


def _child_text(row, name: str) -> Optional[str]:
    element = row.find(name)
    if element is None:
        return None
    return element.get_text()


def parse_meal_xml(xml_text: Union[str, bytes]) -> List[MealRecord]:
    """
    Parse a mealServiceDietInfo XML document into meal records.

    A RESULT code other than INFO-000, or a document without rows, gives an
    empty list.
    """
    if not xml_text:
        return []

    if isinstance(xml_text, bytes):
        soup = BeautifulSoup(xml_text, 'xml', from_encoding='utf-8')
    else:
        soup = BeautifulSoup(xml_text, 'xml')

    result = soup.find('RESULT')
    if result is not None:
        code = _child_text(result, 'CODE')
        if (code or '').strip() != SUCCESS_CODE:
            logger.info(f"Meal service returned status {code!r}")
            return []

    rows = [
        RawRow(
            meal_type_name=_child_text(row, 'MMEAL_SC_NM'),
            dish_name=_child_text(row, 'DDISH_NM'),
            calorie_info=_child_text(row, 'CAL_INFO'),
            nutrition_info=_child_text(row, 'NTR_INFO'),
        )
        for row in soup.find_all('row')
    ]
    return parse_meal_rows(rows)


# =============================================================================
# FETCHING
# =============================================================================

def _get_xml(session: requests.Session, url: str, timeout: float) -> bytes:
    response = session.get(url, timeout=timeout)
    response.raise_for_status()
    return response.content


def neis_meal_xml_retrieve(
    dt: Union[date, str],
    office_code: str = DEFAULT_OFFICE_CODE,
    school_code: str = DEFAULT_SCHOOL_CODE,
    api_key: Optional[str] = None,
    timeout: float = 15,
    fallback_proxy: Optional[str] = DEFAULT_FALLBACK_PROXY,
) -> bytes:
    """
    Retrieve the raw meal XML for a date.

    The NEIS endpoint is requested directly first. If that fails the same URL
    is requested once more through `fallback_proxy`.

    Raises:
        MealTransportError: when both attempts fail.
    """
    url = neis_meal_url(dt, office_code, school_code, api_key)
    session = _get_http_session()

    try:
        return _get_xml(session, url, timeout)
    except requests.RequestException as e:
        if not fallback_proxy:
            logger.error(f"Failed to fetch meal data for {dt}: {e}")
            raise MealTransportError(f"Failed to fetch URL: {e}", dt) from e
        logger.warning(f"Direct meal request failed ({e}), retrying through proxy")

    try:
        return _get_xml(session, fallback_proxy_url(url, fallback_proxy), timeout)
    except requests.RequestException as e:
        logger.error(f"Failed to fetch meal data for {dt} through proxy: {e}")
        raise MealTransportError(f"Failed to fetch URL: {e}", dt) from e


def neis_meal_retrieve(dt: Union[date, str], **fetch_options) -> List[MealRecord]:
    """
    Retrieve and parse the meals served on a date.

    Parameters:
        dt (date | str): The meal date.
        **fetch_options: Passed to neis_meal_xml_retrieve (school codes,
            api_key, timeout, fallback_proxy).

    Returns:
        List[MealRecord]: Meals in the order NEIS lists them.

    Raises:
        MealTransportError: the request failed.
        NoMealDataError: the response held no usable meals.
    """
    xml_text = neis_meal_xml_retrieve(dt, **fetch_options)
    meals = parse_meal_xml(xml_text)
    if not meals:
        raise NoMealDataError(dt)
    return meals
