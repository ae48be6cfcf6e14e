# bodyid/system_services/rating_routes.py
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from bodyid.database.connection import get_db
from bodyid.system_models.rating_model.rating_schemas import RatingCreate, RatingResponse, RatingSubmitted
from bodyid.system_services.rating_services import list_ratings, submit_rating
from bodyid.users.auth_dependencies import get_current_patient, get_current_user
from bodyid.users.user_models.user_model import User

router = APIRouter()


@router.post("", response_model=RatingSubmitted, status_code=status.HTTP_201_CREATED)
async def submit_rating_endpoint(
    rating: RatingCreate,
    current_user: User = Depends(get_current_patient),
    db: AsyncSession = Depends(get_db),
):
    saved, doctor = await submit_rating(db, current_user, rating)
    return RatingSubmitted(
        message="Thank you for your feedback",
        rating=RatingResponse.model_validate(saved),
        doctor_average_rating=doctor.average_rating,
        doctor_total_ratings=doctor.total_ratings,
    )


@router.get("/{doctor_id}", response_model=List[RatingResponse])
async def list_ratings_endpoint(
    doctor_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Anonymised ratings for a doctor, newest first."""
    return await list_ratings(db, doctor_id)
