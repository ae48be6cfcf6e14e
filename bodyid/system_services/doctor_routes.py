# bodyid/system_services/doctor_routes.py
"""
Doctor workspace and the public doctors directory
"""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from bodyid.database.connection import get_db
from bodyid.system_models.appointment_model.appointment_schemas import AppointmentResponse, VisitNotes
from bodyid.system_models.record_model.record_schemas import PatientRecordsResponse, RecordBrief
from bodyid.system_services.appointment_services import (
    add_visit_notes,
    confirm_appointment,
    list_appointments,
    reject_appointment,
)
from bodyid.system_services.record_services import records_by_body_id
from bodyid.users.auth_dependencies import get_current_doctor, get_current_user
from bodyid.users.user_models.schemas import DoctorResponse
from bodyid.users.user_models.user_model import User

# Mounted at /api/doctor
router = APIRouter()

# Mounted at /api/doctors
directory_router = APIRouter()


@directory_router.get("", response_model=List[DoctorResponse])
async def list_doctors_endpoint(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(User).where(User.role == "doctor").order_by(User.name, User.id))
    return result.scalars().all()


@router.get("/appointments", response_model=List[AppointmentResponse])
async def doctor_appointments_endpoint(
    current_user: User = Depends(get_current_doctor),
    db: AsyncSession = Depends(get_db),
):
    return await list_appointments(db, current_user)


@router.post("/appointments/{appointment_id}/confirm", response_model=AppointmentResponse)
async def confirm_appointment_endpoint(
    appointment_id: int,
    current_user: User = Depends(get_current_doctor),
    db: AsyncSession = Depends(get_db),
):
    return await confirm_appointment(db, appointment_id, current_user)


@router.post("/appointments/{appointment_id}/reject", response_model=AppointmentResponse)
async def reject_appointment_endpoint(
    appointment_id: int,
    current_user: User = Depends(get_current_doctor),
    db: AsyncSession = Depends(get_db),
):
    return await reject_appointment(db, appointment_id, current_user)


@router.post("/appointments/{appointment_id}/notes", response_model=AppointmentResponse)
async def add_notes_endpoint(
    appointment_id: int,
    notes: VisitNotes,
    current_user: User = Depends(get_current_doctor),
    db: AsyncSession = Depends(get_db),
):
    """Record visit notes and an optional prescription URL; completes the appointment."""
    return await add_visit_notes(db, appointment_id, current_user, notes)


@router.get("/patients/{body_id}/records", response_model=PatientRecordsResponse)
async def patient_records_endpoint(
    body_id: str,
    current_user: User = Depends(get_current_doctor),
    db: AsyncSession = Depends(get_db),
):
    patient, records = await records_by_body_id(db, current_user, body_id)
    return PatientRecordsResponse(
        patient=patient.name,
        body_id=patient.body_id,
        records=[RecordBrief.model_validate(r) for r in records],
    )
