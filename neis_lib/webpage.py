from datetime import date, datetime
from typing import Optional, Union
from urllib.parse import quote, urlencode

NEIS_MEAL_API = "https://open.neis.go.kr/hub/mealServiceDietInfo"
DEFAULT_FALLBACK_PROXY = "https://api.allorigins.win/raw?url="


def meal_date_key(dt: Union[date, str]) -> str:
    """
    Normalize a date to the YYYYMMDD key NEIS expects.

    Parameters:
        dt (date | str): A date object, "YYYY-MM-DD" or "YYYYMMDD".

    Returns:
        str: The date key, e.g. "20240305".
    """
    if isinstance(dt, date):
        return dt.strftime("%Y%m%d")

    text = str(dt).strip()
    for fmt in ("%Y-%m-%d", "%Y%m%d"):
        try:
            return datetime.strptime(text, fmt).strftime("%Y%m%d")
        except ValueError:
            continue
    raise ValueError(f"Date must be YYYY-MM-DD or YYYYMMDD, got {dt!r}")


def neis_meal_url(
    dt: Union[date, str],
    office_code: str,
    school_code: str,
    api_key: Optional[str] = None,
) -> str:
    """
    Generate a NEIS meal service URL for a given school and date.

    Parameters:
        dt (date | str): The meal date.
        office_code (str): ATPT_OFCDC_SC_CODE, the education office code.
        school_code (str): SD_SCHUL_CODE, the school code.
        api_key (str): Optional NEIS Open API key.

    Returns:
        str: The full URL.
    """
    params = {
        "ATPT_OFCDC_SC_CODE": office_code,
        "SD_SCHUL_CODE": school_code,
        "MLSV_YMD": meal_date_key(dt),
        "Type": "xml",
    }
    if api_key:
        params["KEY"] = api_key

    return f"{NEIS_MEAL_API}?{urlencode(params)}"


def fallback_proxy_url(url: str, proxy: str = DEFAULT_FALLBACK_PROXY) -> str:
    """Wrap `url` for a raw pass-through proxy, used when the direct request fails."""
    return f"{proxy}{quote(url, safe='')}"
