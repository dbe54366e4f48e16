"""
This module provides the command/query facade of the HealthNet platform.

It defines the `HealthNetService` class, which is responsible for:
- Owning the entity store and wiring the session, integrity, transition and scoping
  components around it.
- Resolving the caller from the stored session before every authenticated operation.
- Wrapping every outcome in a uniform envelope (`{"ok": ..., "message": ..., ...}`),
  turning domain errors into failure envelopes instead of raising them.
- Returning a `PendingResult` for every call so the caller can await the simulated
  network latency, while the store change itself has already happened.
"""
# healthnet/service.py

from datetime import date as Date
import functools
import logging

from healthnet import stats
from healthnet import config
from healthnet.encryption import get_encryptor
from healthnet.envelope import PendingResult, failure, success
from healthnet.errors import Forbidden, NotFound, ServiceError, Unauthenticated, ValidationError
from healthnet.integrity import IntegrityMaintainer
from healthnet.models import (
    APPOINTMENT_FINISHED, ROLE_AUTHORITY_ADMIN, ROLE_CLIENT, ROLE_DOCTOR, ROLE_FACILITY_ADMIN,
    Appointment, Feedback, MedicalRecord, SupplyRequest, display_name, public_user,
)
from healthnet.schemas import (
    AppointmentPayload, FeedbackPayload, MedicalRecordPayload, SupplyRequestPayload, format_timestamp, parse,
)
from healthnet.scoping import ScopingFilter, require_facility, require_role, require_self
from healthnet.session import SessionManager
from healthnet.storage import USER_KEY, LocalStorage
from healthnet.store import EntityStore
from healthnet.transitions import TransitionEngine

logger = logging.getLogger(__name__)


def operation(authenticated: bool = True):
    """Turns a method into a facade operation.

    Authenticated operations receive the caller's live user record as their first
    argument after `self`. Whatever the method returns or raises is enveloped and
    handed back as a `PendingResult`; `ServiceError`s never leave the facade.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(self, *args, **kwargs):
            try:
                if authenticated:
                    caller = self._session.current_user()
                    envelope = func(self, caller, *args, **kwargs)
                else:
                    envelope = func(self, *args, **kwargs)
            except ServiceError as e:
                logger.info("%s failed: %s (%s)", func.__name__, e.kind, e.message)
                if authenticated and isinstance(e, Unauthenticated):
                    self._session_lost()
                envelope = failure(e)
            return PendingResult(func.__name__, envelope, self.settings.LATENCY_SECONDS)
        return wrapper
    return decorator


def _copies(records) -> list:
    return [dict(record) for record in records]


class HealthNetService:
    """Manages all business logic and data for the HealthNet platform."""

    def __init__(self, settings=None, store=None, on_session_lost=None):
        """Initializes the service and its components.

        Args:
            settings: A `Settings` instance; defaults to the environment-backed settings.
            store: An `EntityStore` to use instead of a freshly seeded one.
            on_session_lost: Called with no arguments whenever an operation finds the stored
                session invalid (the caller's redirect-to-login hook).
        """
        self.settings = settings or config.settings
        self.store = store if store is not None else EntityStore(seed=self.settings.SEED_DATA)
        encryptor = get_encryptor(self.settings.KEY_FILE)
        self.storage = LocalStorage(self.settings.STORAGE_FILE, encryptor)
        self.integrity = IntegrityMaintainer(self.store)
        self.transitions = TransitionEngine(self.store)
        self.scoping = ScopingFilter(self.store)
        self._session = SessionManager(self.store, self.storage, encryptor, self.integrity, self.settings)
        self._on_session_lost = on_session_lost

    @property
    def current_user(self):
        """The stored snapshot of the signed-in user, or None."""
        return self.storage.get_item(USER_KEY) if self._session.has_session() else None

    def reset(self, seed: bool = True):
        """Returns the store to its initial dataset. The local session is left untouched."""
        self.store.reset(seed=seed)
        self.integrity.rebuild_index()

    def _session_lost(self):
        if self._session.has_session():
            self._session.clear()
        if self._on_session_lost is not None:
            self._on_session_lost()

    # Auth

    @operation(authenticated=False)
    def register(self, username, email, password, role, facility_id=None):
        session = self._session.register(username, email, password, role, facility_id)
        return success("Registration successful.", **session)

    @operation(authenticated=False)
    def login(self, username, password):
        session = self._session.login(username, password)
        return success("Login successful.", **session)

    @operation(authenticated=False)
    def logout(self):
        self._session.logout()
        return success("Logged out.")

    @operation()
    def get_profile(self, caller):
        return success(user=self._session.get_profile())

    @operation(authenticated=False)
    def request_password_reset(self, email):
        code = self._session.request_password_reset(email)
        return success("A reset code has been issued.", reset_code=code)

    @operation(authenticated=False)
    def confirm_password_reset(self, email, reset_code, new_password):
        self._session.confirm_password_reset(email, reset_code, new_password)
        return success("Password has been reset.")

    # Facilities

    @operation()
    def create_facility(self, caller, facility: dict):
        require_role(caller, ROLE_AUTHORITY_ADMIN)
        record = self.integrity.create_facility(facility)
        return success("Facility created.", facility_id=record['id'])

    @operation()
    def update_facility(self, caller, facility_id, updates: dict):
        require_role(caller, ROLE_AUTHORITY_ADMIN, ROLE_FACILITY_ADMIN)
        if caller['role'] == ROLE_FACILITY_ADMIN and require_facility(caller) != facility_id:
            raise Forbidden("You can only update your own facility.")
        self.integrity.update_facility(facility_id, updates)
        return success("Facility updated.")

    @operation()
    def list_facilities(self, caller):
        facilities = [self.integrity.facility_view(f) for f in self.store.all('facilities')]
        return success(facilities=facilities)

    @operation()
    def get_my_facility(self, caller):
        facility_id = require_facility(caller)
        facility = self.store.get('facilities', facility_id)
        if facility is None:
            raise NotFound(f"Facility {facility_id} not found.")
        return success(facility=self.integrity.facility_view(facility))

    @operation()
    def assign_doctor(self, caller, facility_id, doctor_id):
        require_role(caller, ROLE_AUTHORITY_ADMIN)
        doctor = self.integrity.assign_doctor(facility_id, doctor_id)
        return success(f"Doctor {display_name(doctor)} assigned.")

    # Appointments

    @operation()
    def create_appointment(self, caller, facility_id, doctor_id, date_time, reason, client_id=None):
        require_role(caller, ROLE_CLIENT)
        payload = parse(AppointmentPayload, dict(
            client_id=client_id, facility_id=facility_id, doctor_id=doctor_id,
            date_time=date_time, reason=reason,
        ))
        client_id = require_self(caller, payload.client_id)
        if self.store.get('facilities', payload.facility_id) is None:
            raise NotFound(f"Facility {payload.facility_id} not found.")
        doctor = self.store.get('users', payload.doctor_id)
        if doctor is None or doctor['role'] != ROLE_DOCTOR:
            raise NotFound(f"Doctor {payload.doctor_id} not found.")
        if doctor.get('facility_id') != payload.facility_id:
            raise ValidationError("The selected doctor does not work at this facility.")

        names = self.integrity.resolve_names(client_id, payload.doctor_id, payload.facility_id)
        appointment = Appointment(
            client_id, payload.doctor_id, payload.facility_id,
            format_timestamp(payload.date_time), payload.reason, **names,
        )
        record = self.store.add('appointments', appointment)
        logger.info("Appointment %s booked by %s", record['id'], caller['username'])
        return success("Appointment booked.", appointment_id=record['id'])

    @operation()
    def update_appointment_status(self, caller, appointment_id, status):
        require_role(caller, ROLE_DOCTOR)
        appointment = self.store.get('appointments', appointment_id)
        if appointment is None:
            raise NotFound(f"Appointment {appointment_id} not found.")
        if appointment['doctor_id'] != caller['id']:
            raise Forbidden("You can only update your own appointments.")
        self.transitions.transition_appointment(appointment_id, status)
        return success(f"Appointment marked as {status}.")

    @operation()
    def my_appointments(self, caller, role=None):
        return success(appointments=_copies(self.scoping.appointments(caller, role)))

    @operation()
    def facility_appointments(self, caller, facility_id=''):
        scope, appointments = self.scoping.facility_appointments(caller, facility_id)
        return success(facility_id=scope, appointments=_copies(appointments))

    @operation()
    def list_doctors(self, caller, facility_id=None):
        if facility_id:
            if self.store.get('facilities', facility_id) is None:
                raise NotFound(f"Facility {facility_id} not found.")
            doctors = self.integrity.doctors_of(facility_id)
        else:
            doctors = [public_user(u) for u in self.store.find('users', role=ROLE_DOCTOR)]
        return success(doctors=doctors)

    # Medical records

    @operation()
    def add_medical_record(self, caller, client_id, diagnosis, notes='', prescription='',
                           appointment_id=None, date=None, doctor_id=None, facility_id=None):
        require_role(caller, ROLE_DOCTOR)
        payload = parse(MedicalRecordPayload, dict(
            client_id=client_id, doctor_id=doctor_id, facility_id=facility_id,
            appointment_id=appointment_id, date=date, diagnosis=diagnosis,
            notes=notes, prescription=prescription,
        ))
        doctor_id = require_self(caller, payload.doctor_id)
        client = self.store.get('users', payload.client_id)
        if client is None or client['role'] != ROLE_CLIENT:
            raise NotFound(f"Client {payload.client_id} not found.")

        if payload.appointment_id:
            appointment = self.store.get('appointments', payload.appointment_id)
            if appointment is None:
                raise NotFound(f"Appointment {payload.appointment_id} not found.")
            if appointment['status'] != APPOINTMENT_FINISHED:
                raise ValidationError("Records can only be attached to finished appointments.")
            if appointment['client_id'] != payload.client_id or appointment['doctor_id'] != doctor_id:
                raise ValidationError("The appointment belongs to a different client or doctor.")
            facility_id = appointment['facility_id']
        else:
            facility_id = require_facility(caller)
        # A record always lives at the appointment's facility, or else at the doctor's own.
        if payload.facility_id and payload.facility_id != facility_id:
            raise ValidationError(f"This record must be filed under facility {facility_id}.")

        names = self.integrity.resolve_names(payload.client_id, doctor_id, facility_id)
        record = MedicalRecord(
            payload.client_id, doctor_id, facility_id,
            (payload.date or Date.today()).isoformat(),
            payload.diagnosis, payload.notes, payload.prescription,
            appointment_id=payload.appointment_id, **names,
        )
        stored = self.store.add('medical_records', record)
        logger.info("Medical record %s added by %s", stored['id'], caller['username'])
        return success("Medical record added.", record_id=stored['id'])

    @operation()
    def get_client_records(self, caller, client_id=None):
        return success(records=_copies(self.scoping.medical_records(caller, client_id)))

    @operation()
    def list_clients(self, caller, doctor_id=None):
        clients = [public_user(c) for c in self.scoping.clients(caller, doctor_id)]
        return success(clients=clients)

    # Supply requests and inventory

    @operation()
    def get_supply_requests(self, caller, facility_id=None):
        return success(data=_copies(self.scoping.supply_requests(caller, facility_id)))

    @operation()
    def update_supply_request_status(self, caller, request_id, status):
        require_role(caller, ROLE_AUTHORITY_ADMIN)
        self.transitions.transition_supply_request(request_id, status)
        return success(f"Supply request {status}.")

    @operation()
    def get_inventory(self, caller, facility_id=None):
        requests = self.scoping.supply_requests(caller, facility_id)
        return success(data=stats.inventory(requests))

    @operation()
    def create_supply_request(self, caller, item_name, quantity, facility_id=None):
        """Submits a pending supply request for the caller's facility.

        The facility comes last because it defaults to the admin's own; pass it by
        keyword, e.g. `create_supply_request("Gloves", 50, facility_id="facility-1")`.
        Any facility other than the admin's own is refused.
        """
        require_role(caller, ROLE_FACILITY_ADMIN)
        payload = parse(SupplyRequestPayload, dict(
            facility_id=facility_id, item_name=item_name, quantity=quantity,
        ))
        facility_id = self.scoping.facility_scope(caller, payload.facility_id)
        facility = self.store.get('facilities', facility_id)
        request = SupplyRequest(
            facility_id, payload.item_name, payload.quantity, facility_name=facility['name'],
        )
        record = self.store.add('supply_requests', request)
        return success("Supply request submitted.", request_id=record['id'])

    # Feedback

    @operation()
    def submit_feedback(self, caller, facility_id, rating, comment=''):
        require_role(caller, ROLE_CLIENT)
        payload = parse(FeedbackPayload, dict(facility_id=facility_id, rating=rating, comment=comment))
        facility = self.store.get('facilities', payload.facility_id)
        if facility is None:
            raise NotFound(f"Facility {payload.facility_id} not found.")
        entry = Feedback(
            display_name(caller), payload.facility_id, payload.rating, payload.comment,
            facility_name=facility['name'],
        )
        record = self.store.add('feedback', entry)
        return success("Thank you for your feedback.", feedback_id=record['id'])

    @operation()
    def get_facility_feedback(self, caller, facility_id=None):
        return success(data=_copies(self.scoping.feedback(caller, facility_id)))

    @operation()
    def get_national_feedback(self, caller):
        require_role(caller, ROLE_AUTHORITY_ADMIN)
        return success(data=_copies(self.store.all('feedback')))

    # Dashboards

    @operation()
    def get_national_overview(self, caller):
        require_role(caller, ROLE_AUTHORITY_ADMIN)
        overview = stats.national_overview(
            [self.integrity.facility_view(f) for f in self.store.all('facilities')],
            self.store.all('appointments'),
            self.store.all('supply_requests'),
            self.store.all('feedback'),
        )
        return success(data=overview)

    @operation()
    def get_facility_overview(self, caller):
        require_role(caller, ROLE_FACILITY_ADMIN)
        facility_id = self.scoping.facility_scope(caller)
        _, appointments = self.scoping.facility_appointments(caller, facility_id)
        overview = stats.facility_overview(
            self.integrity.facility_view(self.store.get('facilities', facility_id)),
            appointments,
            self.scoping.supply_requests(caller, facility_id),
            self.scoping.feedback(caller, facility_id),
        )
        return success(data=overview)
