"""
This module narrows collections to what a caller may see.

Every read in the facade goes through one of the `ScopingFilter` methods with the
caller's live user record. Clients see their own data, doctors see what they are
part of, facility admins see their facility, and the authority admin sees
everything. Requests for another identity's private scope raise `Forbidden`; a
facility admin without an affiliation raises `Unscoped`.
"""
# healthnet/scoping.py

from healthnet.errors import Forbidden, NotFound, Unscoped
from healthnet.models import ROLE_CLIENT, ROLE_DOCTOR, ROLE_FACILITY_ADMIN, ROLE_AUTHORITY_ADMIN


def require_role(caller: dict, *roles):
    """Raises `Forbidden` unless the caller has one of `roles`."""
    if caller['role'] not in roles:
        raise Forbidden(f"This operation is not available to the '{caller['role']}' role.")


def require_facility(caller: dict) -> str:
    """Returns the caller's facility affiliation or raises `Unscoped`."""
    facility_id = caller.get('facility_id')
    if not facility_id:
        raise Unscoped("Your account is not affiliated with a facility.")
    return facility_id


def require_self(caller: dict, target_id) -> str:
    """Returns the caller's id, refusing any explicit target that is someone else."""
    if target_id and target_id != caller['id']:
        raise Forbidden("You can only act on your own data.")
    return caller['id']


class ScopingFilter:
    """Reduces store collections to the subset visible to a caller."""

    def __init__(self, store):
        self._store = store

    def facility_scope(self, caller: dict, facility_id=None):
        """Resolves which facility a facility-scoped query is about.

        Returns:
            str | None: A facility id, or None meaning "all facilities" (authority admin
            with an empty filter only).
        """
        if caller['role'] == ROLE_AUTHORITY_ADMIN:
            if not facility_id:
                return None
        elif caller['role'] == ROLE_FACILITY_ADMIN:
            own = require_facility(caller)
            if facility_id and facility_id != own:
                raise Forbidden("You can only view your own facility.")
            facility_id = own
        else:
            raise Forbidden(f"Facility-wide queries are not available to the '{caller['role']}' role.")
        if self._store.get('facilities', facility_id) is None:
            raise NotFound(f"Facility {facility_id} not found.")
        return facility_id

    def appointments(self, caller: dict, role=None) -> list:
        """Returns the appointments in the caller's own scope."""
        if role and role != caller['role']:
            raise Forbidden("You can only list appointments for your own role.")
        appointments = self._store.all('appointments')
        if caller['role'] == ROLE_CLIENT:
            return [a for a in appointments if a['client_id'] == caller['id']]
        if caller['role'] == ROLE_DOCTOR:
            return [a for a in appointments if a['doctor_id'] == caller['id']]
        if caller['role'] == ROLE_FACILITY_ADMIN:
            facility_id = require_facility(caller)
            return [a for a in appointments if a['facility_id'] == facility_id]
        return appointments

    def facility_appointments(self, caller: dict, facility_id=None) -> tuple:
        """Returns (resolved facility id or '', appointments) for a facility-wide listing."""
        scope = self.facility_scope(caller, facility_id)
        appointments = self._store.all('appointments')
        if scope is None:
            return '', appointments
        return scope, [a for a in appointments if a['facility_id'] == scope]

    def medical_records(self, caller: dict, client_id=None) -> list:
        """Returns a client's records as far as the caller may see them."""
        records = self._store.all('medical_records')
        if caller['role'] == ROLE_CLIENT:
            client_id = require_self(caller, client_id)
            return [r for r in records if r['client_id'] == client_id]
        if client_id:
            records = [r for r in records if r['client_id'] == client_id]
        if caller['role'] == ROLE_DOCTOR:
            return [r for r in records if r['doctor_id'] == caller['id']]
        if caller['role'] == ROLE_FACILITY_ADMIN:
            facility_id = require_facility(caller)
            return [r for r in records if r['facility_id'] == facility_id]
        return records

    def clients(self, caller: dict, doctor_id=None) -> list:
        """Returns the client accounts the caller works with."""
        clients = self._store.find('users', role=ROLE_CLIENT)
        if caller['role'] == ROLE_DOCTOR:
            doctor_id = require_self(caller, doctor_id)
            seen = {a['client_id'] for a in self._store.find('appointments', doctor_id=doctor_id)}
        elif caller['role'] == ROLE_FACILITY_ADMIN:
            facility_id = require_facility(caller)
            appointments = self._store.find('appointments', facility_id=facility_id)
            if doctor_id:
                appointments = [a for a in appointments if a['doctor_id'] == doctor_id]
            seen = {a['client_id'] for a in appointments}
        elif caller['role'] == ROLE_AUTHORITY_ADMIN:
            if not doctor_id:
                return clients
            seen = {a['client_id'] for a in self._store.find('appointments', doctor_id=doctor_id)}
        else:
            raise Forbidden("Clients cannot list other clients.")
        return [c for c in clients if c['id'] in seen]

    def supply_requests(self, caller: dict, facility_id=None) -> list:
        scope = self.facility_scope(caller, facility_id)
        requests = self._store.all('supply_requests')
        if scope is None:
            return requests
        return [r for r in requests if r['facility_id'] == scope]

    def feedback(self, caller: dict, facility_id=None) -> list:
        scope = self.facility_scope(caller, facility_id)
        entries = self._store.all('feedback')
        if scope is None:
            return entries
        return [f for f in entries if f['facility_id'] == scope]
