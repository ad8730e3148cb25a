from fastapi import APIRouter, Depends, HTTPException, Query
from datetime import date as date_type
from typing import Optional
import logging
from study_companion.api.deps import get_meal_client
from study_companion.core.meal_client import MealClient, MealServiceError
from study_companion.models.schemas import Meal, MealResponse

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/meals", response_model=MealResponse)
def get_meals(date: Optional[date_type] = Query(None), client: MealClient = Depends(get_meal_client)):
    """
    Look up the school meals for a day (defaults to today).

    Raises:
        HTTPException: 502 when the meal service fails or answers unexpectedly
    """
    day = (date or date_type.today()).isoformat()
    try:
        meals = client.get_meals(day)
        return MealResponse(date=day, meals=[Meal(**meal) for meal in meals])
    except MealServiceError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except Exception as e:
        logger.error(f"Meal lookup failed for {day}: {e}")
        raise HTTPException(status_code=502, detail="네트워크 오류 또는 API 접근 오류가 발생했습니다.")
