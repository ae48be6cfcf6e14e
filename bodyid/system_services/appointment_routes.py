# bodyid/system_services/appointment_routes.py
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from bodyid.database.connection import get_db
from bodyid.system_models.appointment_model.appointment_schemas import (
    AppointmentCreate,
    AppointmentResponse,
    AppointmentStatusUpdate,
)
from bodyid.system_services.appointment_services import (
    create_appointment,
    get_appointment,
    list_appointments,
    set_status,
)
from bodyid.users.auth_dependencies import get_current_patient, get_current_user
from bodyid.users.user_models.user_model import User

router = APIRouter()


@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
async def create_appointment_endpoint(
    appointment: AppointmentCreate,
    current_user: User = Depends(get_current_patient),
    db: AsyncSession = Depends(get_db),
):
    """Book a consultation with a doctor. Starts pending and unpaid."""
    return await create_appointment(db, current_user, appointment)


@router.get("", response_model=List[AppointmentResponse])
async def list_appointments_endpoint(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Appointments where the caller is the patient or the doctor, newest first."""
    return await list_appointments(db, current_user)


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment_endpoint(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await get_appointment(db, appointment_id, current_user)


@router.put("/{appointment_id}", response_model=AppointmentResponse)
async def update_appointment_status_endpoint(
    appointment_id: int,
    update: AppointmentStatusUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Doctors confirm, reject or complete; patients cancel."""
    return await set_status(db, appointment_id, update.status, current_user)
