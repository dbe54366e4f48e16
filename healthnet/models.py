"""
This module defines the primary data models for the HealthNet platform.

These classes structure the records managed by the `EntityStore` and handed out
by the `HealthNetService`. The store keeps each entity as the dictionary produced
by its `__dict__`, so the classes are mainly a single place where defaults
(identifiers, timestamps, initial statuses) are applied.
"""
# healthnet/models.py

from datetime import datetime, timezone
import uuid

# User roles.
ROLE_CLIENT = 'client'
ROLE_DOCTOR = 'doctor'
ROLE_FACILITY_ADMIN = 'admin'
ROLE_AUTHORITY_ADMIN = 'general_admin'
ROLES = (ROLE_CLIENT, ROLE_DOCTOR, ROLE_FACILITY_ADMIN, ROLE_AUTHORITY_ADMIN)
AFFILIATED_ROLES = (ROLE_DOCTOR, ROLE_FACILITY_ADMIN)

# Facility categories.
FACILITY_TYPES = ('hospital', 'clinic', 'health_center')

# Appointment lifecycle.
APPOINTMENT_PENDING = 'pending'
APPOINTMENT_APPROVED = 'approved'
APPOINTMENT_CANCELLED = 'cancelled'
APPOINTMENT_FINISHED = 'finished'
APPOINTMENT_STATUSES = (APPOINTMENT_PENDING, APPOINTMENT_APPROVED, APPOINTMENT_CANCELLED, APPOINTMENT_FINISHED)

# Supply request lifecycle.
SUPPLY_PENDING = 'pending'
SUPPLY_APPROVED = 'approved'
SUPPLY_REJECTED = 'rejected'
SUPPLY_STATUSES = (SUPPLY_PENDING, SUPPLY_APPROVED, SUPPLY_REJECTED)


def utc_timestamp() -> str:
    """Returns the current UTC time as an ISO string with a trailing 'Z'."""
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace('+00:00', 'Z')


def new_id(prefix: str) -> str:
    """Generates a prefixed identifier such as 'appt-3f2a9c1b0d4e'."""
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


class User:
    """Represents an account holder: a client, a doctor, a facility admin or the authority admin.

    Attributes:
        id (str): A unique identifier for the user.
        username (str): The login name, also used as the display name.
        email (str): The user's email address.
        role (str): One of `ROLES`.
        facility_id (str | None): The affiliated facility (doctors and facility admins only).
        password_hash (str): The salted SHA-256 hash of the password.
        salt (str): The hex salt used for the hash.
    """
    def __init__(self, username, email, role, password_hash, salt, facility_id=None, user_id=None):
        self.id = user_id or new_id('user')
        self.username = username
        self.email = email
        self.role = role
        self.facility_id = facility_id
        self.password_hash = password_hash
        self.salt = salt


class Facility:
    """Represents a hospital, clinic or health center.

    The list of affiliated doctors is not part of the stored record; it is a view
    maintained by the integrity layer and attached when the facility is read.
    """
    def __init__(self, name, type, address, phone, region, beds, occupied_beds=0, facility_id=None):
        self.id = facility_id or new_id('facility')
        self.name = name
        self.type = type
        self.address = address
        self.phone = phone
        self.region = region
        self.beds = beds
        self.occupied_beds = occupied_beds


class Appointment:
    """Represents a booked visit. Display names are snapshots taken at booking time."""
    def __init__(self, client_id, doctor_id, facility_id, date_time, reason,
                 client_name=None, doctor_name=None, facility_name=None,
                 status=APPOINTMENT_PENDING, appointment_id=None):
        self.id = appointment_id or new_id('appt')
        self.client_id = client_id
        self.client_name = client_name
        self.doctor_id = doctor_id
        self.doctor_name = doctor_name
        self.facility_id = facility_id
        self.facility_name = facility_name
        self.date_time = date_time
        self.reason = reason
        self.status = status


class MedicalRecord:
    """Represents a doctor's entry in a client's medical history.

    Attributes:
        appointment_id (str | None): The finished appointment this record came from, if any.
        date (str): The ISO date of the consultation.
        diagnosis (str): The diagnosis.
        notes (str): Free-text clinical notes.
        prescription (str): The prescription text.
    """
    def __init__(self, client_id, doctor_id, facility_id, date, diagnosis, notes, prescription,
                 appointment_id=None, client_name=None, doctor_name=None, facility_name=None,
                 record_id=None):
        self.id = record_id or new_id('rec')
        self.client_id = client_id
        self.client_name = client_name
        self.doctor_id = doctor_id
        self.doctor_name = doctor_name
        self.facility_id = facility_id
        self.facility_name = facility_name
        self.appointment_id = appointment_id
        self.date = date
        self.diagnosis = diagnosis
        self.notes = notes
        self.prescription = prescription


class SupplyRequest:
    """Represents a facility's request for supplies, reviewed by the authority admin."""
    def __init__(self, facility_id, item_name, quantity, facility_name=None, status=SUPPLY_PENDING,
                 requested_at=None, approved_at=None, request_id=None):
        self.id = request_id or new_id('req')
        self.facility_id = facility_id
        self.facility_name = facility_name
        self.item_name = item_name
        self.quantity = quantity
        self.status = status
        self.requested_at = requested_at or utc_timestamp()
        self.approved_at = approved_at


class Feedback:
    """Represents a client's rating of a facility. Feedback is append-only."""
    def __init__(self, client_name, facility_id, rating, comment, facility_name=None, date=None,
                 feedback_id=None):
        self.id = feedback_id or new_id('fb')
        self.client_name = client_name
        self.facility_id = facility_id
        self.facility_name = facility_name
        self.rating = rating
        self.comment = comment
        self.date = date or utc_timestamp()


def public_user(user: dict) -> dict:
    """Returns a copy of a stored user record without its credential fields."""
    return {key: value for key, value in user.items() if key not in ('password_hash', 'salt')}


def display_name(user: dict) -> str:
    return user.get('username') or ''
