"""
This module keeps relationships between entities consistent.

It owns the facility -> doctors membership index. The index is a materialized view
of `{u : u.role == doctor and u.facility_id == f.id}`: it is rebuilt from the users
collection when the maintainer starts and updated in the same critical section as
the doctor's `facility_id` whenever an affiliation changes, so readers never see the
two disagree. It also validates facility writes and resolves the display names that
appointments and medical records copy at creation time.
"""
# healthnet/integrity.py

import logging
import threading

from healthnet.errors import NotFound
from healthnet.models import Facility, ROLE_DOCTOR, display_name, public_user
from healthnet.schemas import FacilityPayload, FacilityUpdate, parse

logger = logging.getLogger(__name__)


class IntegrityMaintainer:
    """Maintains the membership index and denormalized fields across the store."""

    def __init__(self, store):
        self._store = store
        self._lock = threading.RLock()
        self._members = {}
        self.rebuild_index()

    def rebuild_index(self):
        """Recomputes the whole facility -> doctor ids index from the users collection."""
        with self._lock:
            members = {facility['id']: [] for facility in self._store.all('facilities')}
            for user in self._store.find('users', role=ROLE_DOCTOR):
                facility_id = user.get('facility_id')
                if facility_id in members:
                    members[facility_id].append(user['id'])
            self._members = members

    def doctor_ids(self, facility_id: str) -> list:
        with self._lock:
            return list(self._members.get(facility_id, []))

    def doctors_of(self, facility_id: str) -> list:
        """Returns the public records of the doctors affiliated with a facility."""
        return [public_user(self._store.get('users', doctor_id)) for doctor_id in self.doctor_ids(facility_id)]

    def facility_view(self, facility: dict) -> dict:
        """Returns a copy of a facility record with its `doctors` view attached."""
        view = dict(facility)
        view['doctors'] = self.doctors_of(facility['id'])
        return view

    def add_member(self, user: dict):
        """Registers a newly created doctor in the index of its facility, if any."""
        if user.get('role') != ROLE_DOCTOR or not user.get('facility_id'):
            return
        with self._lock:
            members = self._members.setdefault(user['facility_id'], [])
            if user['id'] not in members:
                members.append(user['id'])

    def assign_doctor(self, facility_id: str, doctor_id: str) -> dict:
        """Moves a doctor to a facility, leaving it a member of exactly that one.

        Raises:
            NotFound: if the facility does not exist, or the user does not exist or is not a doctor.

        Returns:
            dict: The updated (live) doctor record.
        """
        with self._lock:
            facility = self._store.get('facilities', facility_id)
            if facility is None:
                raise NotFound(f"Facility {facility_id} not found.")
            doctor = self._store.get('users', doctor_id)
            if doctor is None or doctor.get('role') != ROLE_DOCTOR:
                raise NotFound(f"Doctor {doctor_id} not found.")

            previous = doctor.get('facility_id')
            for members in self._members.values():
                if doctor_id in members:
                    members.remove(doctor_id)
            doctor['facility_id'] = facility_id
            self._members.setdefault(facility_id, []).append(doctor_id)
        logger.info("Doctor %s assigned to facility %s (was %s)", doctor_id, facility_id, previous)
        return doctor

    def create_facility(self, fields: dict) -> dict:
        """Validates and stores a new facility. Occupied beds default to 0."""
        payload = parse(FacilityPayload, fields)
        facility = Facility(**payload.model_dump())
        record = self._store.add('facilities', facility)
        with self._lock:
            self._members.setdefault(record['id'], [])
        logger.info("Facility %s created (%s)", record['id'], record['name'])
        return record

    def update_facility(self, facility_id: str, fields: dict) -> dict:
        """Applies a partial update to a facility after validating the merged result."""
        facility = self._store.get('facilities', facility_id)
        if facility is None:
            raise NotFound(f"Facility {facility_id} not found.")
        updates = parse(FacilityUpdate, fields).model_dump(exclude_none=True)
        merged = {key: facility[key] for key in FacilityPayload.model_fields}
        merged.update(updates)
        parse(FacilityPayload, merged)
        facility.update(updates)
        return facility

    def resolve_names(self, client_id: str, doctor_id: str, facility_id: str) -> dict:
        """Looks up the current display names to copy into a new appointment or record."""
        client = self._store.get('users', client_id)
        if client is None:
            raise NotFound(f"Client {client_id} not found.")
        doctor = self._store.get('users', doctor_id)
        if doctor is None:
            raise NotFound(f"Doctor {doctor_id} not found.")
        facility = self._store.get('facilities', facility_id)
        if facility is None:
            raise NotFound(f"Facility {facility_id} not found.")
        return {
            'client_name': display_name(client),
            'doctor_name': display_name(doctor),
            'facility_name': facility['name'],
        }

    def check_consistency(self) -> bool:
        """Returns True when the index matches the users collection exactly."""
        with self._lock:
            for facility in self._store.all('facilities'):
                expected = {u['id'] for u in self._store.find('users', role=ROLE_DOCTOR, facility_id=facility['id'])}
                if set(self._members.get(facility['id'], [])) != expected:
                    return False
                if len(self._members.get(facility['id'], [])) != len(expected):
                    return False
        return True
