"""
Input schemas for the HealthNet commands.

Each facade command validates its raw keyword arguments against one of these
pydantic models before touching the store. Failures are reported to the caller as
a `ValidationError` envelope.
"""

from datetime import date as Date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field, ValidationError as PydanticValidationError, model_validator

from healthnet.errors import ValidationError

RoleName = Literal["client", "doctor", "admin", "general_admin"]
FacilityType = Literal["hospital", "clinic", "health_center"]


class RegisterPayload(BaseModel):
    username: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=1)
    role: RoleName
    facility_id: Optional[str] = None


class FacilityPayload(BaseModel):
    """Schema for creating a facility. Occupied beds default to 0."""
    name: str = Field(..., min_length=1)
    type: FacilityType
    address: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    region: str = Field(..., min_length=1)
    beds: int = Field(..., ge=0)
    occupied_beds: int = Field(0, ge=0)

    @model_validator(mode="after")
    def check_occupancy(self):
        if self.occupied_beds > self.beds:
            raise ValueError("occupied_beds cannot exceed beds")
        return self


class FacilityUpdate(BaseModel):
    """Schema for a partial facility update."""
    name: Optional[str] = Field(None, min_length=1)
    type: Optional[FacilityType] = None
    address: Optional[str] = Field(None, min_length=1)
    phone: Optional[str] = Field(None, min_length=1)
    region: Optional[str] = Field(None, min_length=1)
    beds: Optional[int] = Field(None, ge=0)
    occupied_beds: Optional[int] = Field(None, ge=0)


class AppointmentPayload(BaseModel):
    client_id: Optional[str] = None
    facility_id: str = Field(..., min_length=1)
    doctor_id: str = Field(..., min_length=1)
    date_time: datetime
    reason: str = Field(..., min_length=1)


class MedicalRecordPayload(BaseModel):
    client_id: str = Field(..., min_length=1)
    doctor_id: Optional[str] = None
    facility_id: Optional[str] = None
    appointment_id: Optional[str] = None
    date: Optional[Date] = None
    diagnosis: str = Field(..., min_length=1)
    notes: str = ""
    prescription: str = ""


class SupplyRequestPayload(BaseModel):
    facility_id: Optional[str] = None
    item_name: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0)


class FeedbackPayload(BaseModel):
    facility_id: str = Field(..., min_length=1)
    rating: int = Field(..., ge=1, le=5)
    comment: str = ""


def parse(schema, data: dict):
    """Validates `data` against `schema`, raising the domain `ValidationError` on failure."""
    try:
        return schema.model_validate(data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or "payload"
        raise ValidationError(f"Invalid {field}: {first.get('msg', 'invalid value')}") from e


def format_timestamp(value: datetime) -> str:
    """Formats a datetime as ISO 8601, using 'Z' for UTC."""
    text = value.replace(microsecond=0).isoformat()
    return text.replace('+00:00', 'Z')
