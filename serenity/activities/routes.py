from typing import List
from uuid import UUID
import logging

from fastapi import APIRouter, Depends, HTTPException, Security
from sqlalchemy.orm import Session

from serenity.auth.service import get_current_user_id
from serenity.core.database import get_db
from serenity.activities.db import get_activities
from serenity.activities.schemas import ActivityBase

router = APIRouter(prefix="/activities", tags=["Activities"])
logger = logging.getLogger(__name__)


@router.get(
    "",
    response_model=List[ActivityBase],
    summary="List wellness activities",
    responses={
        200: {"description": "Activities retrieved successfully."},
        401: {"description": "Unauthorized."},
        500: {"description": "Failed to retrieve activities."},
    },
)
def list_activities_route(
    db: Session = Depends(get_db),
    user_id: UUID = Security(get_current_user_id),
) -> List[ActivityBase]:
    try:
        return get_activities(db)
    except Exception as e:
        logger.error(f"Error fetching activities for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch activities")
