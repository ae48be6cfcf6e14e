# bodyid/users/user_models/schemas.py


from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

# Allowed values as constants
ROLES = Literal["patient", "doctor", "admin"]
SELF_REGISTER_ROLES = Literal["patient", "doctor"]


# ✅ Request schema for registration
class UserRegister(BaseModel):
    role: SELF_REGISTER_ROLES
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    phone: Optional[str] = None
    password: str = Field(..., min_length=6, max_length=100)
    national_id: Optional[str] = None
    license_id: Optional[str] = None
    specialty: Optional[str] = None
    consultation_fee: Optional[float] = Field(None, gt=0)

    @field_validator("email", mode="before")
    def normalize_email(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("name", "phone", "national_id", "license_id", "specialty", mode="before")
    def strip_strings(cls, v):
        if isinstance(v, str):
            return v.strip() or None
        return v

    @model_validator(mode="after")
    def keep_identifiers_role_specific(self):
        # Patients never carry a license id, doctors never carry a national id
        if self.role == "patient":
            self.license_id = None
        elif self.role == "doctor":
            self.national_id = None
        return self


# ✅ User login request
class UserLogin(BaseModel):
    identifier: str = Field(..., min_length=1, description="National id (patients) or license id (doctors)")
    password: str = Field(..., min_length=1)

    @field_validator("identifier", mode="before")
    def strip_identifier(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v


# ✅ Public account view (never includes the password hash)
class UserPublic(BaseModel):
    id: int
    role: ROLES
    name: str
    email: str
    phone: Optional[str] = None
    national_id: Optional[str] = None
    license_id: Optional[str] = None
    body_id: Optional[str] = None
    specialty: Optional[str] = None
    consultation_fee: Optional[float] = None
    model_config = ConfigDict(from_attributes=True)


# ✅ Counterpart identity embedded in appointments
class UserBrief(BaseModel):
    id: int
    name: str
    email: str
    model_config = ConfigDict(from_attributes=True)


# ✅ Doctors directory entry
class DoctorResponse(BaseModel):
    id: int
    name: str
    email: str
    license_id: Optional[str] = None
    specialty: Optional[str] = None
    consultation_fee: Optional[float] = None
    average_rating: float
    total_ratings: int
    model_config = ConfigDict(from_attributes=True)


# ✅ Response schema for register and login
class AuthResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserPublic
