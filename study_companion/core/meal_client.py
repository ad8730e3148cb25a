import logging
import re
from typing import Any, Dict, List, Optional

import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from study_companion.config import Config
from study_companion.core.exceptions import StudyCompanionError

logger = logging.getLogger(__name__)

ALLERGY_MARKER = re.compile(r"\([0-9.]+\)")
NO_DATA_CODE = "INFO-200"


class MealServiceError(StudyCompanionError):
    """The NEIS meal service answered with something other than menus."""


def clean_menu(dish_names: str) -> str:
    """Turn the NEIS dish list into plain lines without allergy markers."""
    menu = dish_names.replace("<br/>", "\n")
    return ALLERGY_MARKER.sub("", menu).strip()


class MealClient:
    """School meal lookup against the NEIS open API."""

    def __init__(self, session: Optional[requests.Session] = None):
        self.session = session or requests.Session()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=4),
        retry=retry_if_exception_type(requests.RequestException),
        reraise=True,
    )
    def _fetch(self, params: Dict[str, Any]) -> Dict[str, Any]:
        response = self.session.get(Config.NEIS_API_URL, params=params, timeout=Config.HTTP_TIMEOUT)
        response.raise_for_status()
        return response.json()

    def get_meals(self, date: str) -> List[Dict[str, str]]:
        """
        Fetch the meals served on `date` (YYYY-MM-DD).

        Returns:
            List[Dict[str, str]]: one entry per meal with `time` (조식/중식/석식) and `menu`;
            empty when the school served nothing that day
        """
        params = {
            "ATPT_OFCDC_SC_CODE": Config.NEIS_OFFICE_CODE,
            "SD_SCHUL_CODE": Config.NEIS_SCHOOL_CODE,
            "Type": "json",
            "MLSV_YMD": date.replace("-", ""),
        }
        if Config.NEIS_API_KEY:
            params["KEY"] = Config.NEIS_API_KEY

        data = self._fetch(params)

        if "mealServiceDietInfo" in data:
            rows = data["mealServiceDietInfo"][1]["row"]
            return [{"time": row["MMEAL_SC_NM"], "menu": clean_menu(row["DDISH_NM"])} for row in rows]
        if data.get("RESULT", {}).get("CODE") == NO_DATA_CODE:
            return []

        logger.error(f"Unexpected meal service payload for {date}: {data}")
        raise MealServiceError("급식 정보를 가져오는 데 실패했습니다.")
