"""
System-level tests for the HealthNet service.

These tests play out end-to-end workflows across several roles and sessions, then
verify the state of the whole store: the membership view, the appointment and
supply request lifecycles, the records that reference appointments, and the
session that lives in local storage across service restarts.
"""
import asyncio

from healthnet.models import APPOINTMENT_FINISHED, ROLE_DOCTOR
from healthnet.seed import SEED_PASSWORD
from healthnet.service import HealthNetService
from healthnet.storage import TOKEN_KEY, USER_KEY

STRONG_PASSWORD = "V4lid!Pass"


def _create_central(service, login_as):
    login_as("ministryadmin")
    envelope = service.create_facility({
        "name": "Central", "type": "hospital", "address": "1 Main St",
        "phone": "000-000", "region": "Blida", "beds": 10,
    }).result()
    assert envelope["ok"], envelope
    return envelope["facility_id"]


def _hire_doctor(service, login_as, username, facility_id):
    """Registers an unaffiliated doctor and has the authority admin assign it."""
    doctor = service.register(username, f"{username}@x.com", STRONG_PASSWORD, "doctor").result()["user"]
    login_as("ministryadmin")
    assert service.assign_doctor(facility_id, doctor["id"]).result()["ok"]
    return doctor


def _assert_membership_consistent(service):
    for facility in service.list_facilities().result()["facilities"]:
        expected = {
            u["id"] for u in service.store.find("users", role=ROLE_DOCTOR, facility_id=facility["id"])
        }
        listed = [d["id"] for d in facility["doctors"]]
        assert set(listed) == expected
        assert len(listed) == len(expected)
    assert service.integrity.check_consistency()


def test_scenario_new_client_has_no_appointments(service, register_client):
    """
    A freshly registered client signs in again and sees an empty appointment list.
    """
    register_client("alice", "alice@x.com")
    assert service.logout().result()["ok"]
    assert service.login("alice", STRONG_PASSWORD).result()["ok"]
    envelope = service.my_appointments().result()
    assert envelope["ok"]
    assert envelope["appointments"] == []


def test_scenario_booking_at_a_new_facility(service, login_as, register_client):
    """
    The authority admin opens a facility and staffs it, a client books there, and the
    facility-wide listing shows exactly that one pending appointment.
    """
    central_id = _create_central(service, login_as)
    bob = _hire_doctor(service, login_as, "drbob", central_id)

    alice = register_client("alice", "alice@x.com")
    booked = service.create_appointment(central_id, bob["id"], "2024-09-01T10:00:00Z", "checkup").result()
    assert booked["ok"], booked

    login_as("ministryadmin")
    listing = service.facility_appointments(central_id).result()
    assert listing["facility_id"] == central_id
    assert len(listing["appointments"]) == 1
    appointment = listing["appointments"][0]
    assert appointment["status"] == "pending"
    assert appointment["client_id"] == alice["id"]
    assert appointment["doctor_name"] == "drbob"
    assert appointment["facility_name"] == "Central"


def test_scenario_appointment_lifecycle(service, login_as, register_client):
    """
    Approve then finish succeeds; any later move back to pending is refused, and the
    finished appointment can then carry a medical record.
    """
    central_id = _create_central(service, login_as)
    bob = _hire_doctor(service, login_as, "drbob", central_id)
    alice = register_client("alice", "alice@x.com")
    appointment_id = service.create_appointment(
        central_id, bob["id"], "2024-09-01T10:00:00Z", "checkup",
    ).result()["appointment_id"]

    service.login("drbob", STRONG_PASSWORD).result()
    early = service.add_medical_record(alice["id"], "Healthy", appointment_id=appointment_id).result()
    assert early["error"]["kind"] == "ValidationError"
    skipped = service.update_appointment_status(appointment_id, "finished").result()
    assert skipped["error"]["kind"] == "InvalidTransition"

    assert service.update_appointment_status(appointment_id, "approved").result()["ok"]
    assert service.update_appointment_status(appointment_id, "finished").result()["ok"]
    back = service.update_appointment_status(appointment_id, "pending").result()
    assert back["ok"] is False
    assert back["error"]["kind"] == "InvalidTransition"
    assert back["error"]["status_code"] == 409

    record = service.add_medical_record(alice["id"], "Healthy", appointment_id=appointment_id).result()
    assert record["ok"], record
    assert service.store.get("appointments", appointment_id)["status"] == APPOINTMENT_FINISHED


def test_scenario_supply_request_lifecycle(service, login_as):
    """
    A facility admin requests gloves, the authority admin approves them, and a later
    rejection of the same request is refused.
    """
    login_as("hospitaladmin1")
    request_id = service.create_supply_request("Gloves", 50, facility_id="facility-1").result()["request_id"]
    request = next(r for r in service.get_supply_requests().result()["data"] if r["id"] == request_id)
    assert request["status"] == "pending"
    assert request["approved_at"] is None

    login_as("ministryadmin")
    assert service.update_supply_request_status(request_id, "approved").result()["ok"]
    request = next(r for r in service.get_supply_requests().result()["data"] if r["id"] == request_id)
    assert request["status"] == "approved"
    assert request["approved_at"]

    rejected = service.update_supply_request_status(request_id, "rejected").result()
    assert rejected["error"]["kind"] == "InvalidTransition"
    assert service.update_supply_request_status("req-404", "approved").result()["error"]["kind"] == "NotFound"

    login_as("hospitaladmin1")
    inventory = {item["item_name"]: item["quantity"] for item in service.get_inventory().result()["data"]}
    assert inventory["Gloves"] == 50


def test_membership_view_after_every_assignment(service, login_as):
    """
    Moves doctors around repeatedly (including repeating the same assignment) and checks
    the facility doctor lists against the users collection after each step.
    """
    login_as("ministryadmin")
    moves = [
        ("facility-3", "user-doc-1"),
        ("facility-3", "user-doc-1"),
        ("facility-2", "user-doc-2"),
        ("facility-1", "user-doc-3"),
        ("facility-1", "user-doc-1"),
    ]
    for facility_id, doctor_id in moves:
        assert service.assign_doctor(facility_id, doctor_id).result()["ok"]
        _assert_membership_consistent(service)

    holders = [
        f["id"] for f in service.list_facilities().result()["facilities"]
        if "user-doc-1" in [d["id"] for d in f["doctors"]]
    ]
    assert holders == ["facility-1"]
    assert service.store.get("users", "user-doc-1")["facility_id"] == "facility-1"


def test_repeated_assignment_is_idempotent(service, login_as):
    login_as("ministryadmin")
    for _ in range(2):
        assert service.assign_doctor("facility-2", "user-doc-1").result()["ok"]
    memberships = [
        f["id"] for f in service.list_facilities().result()["facilities"]
        if any(d["id"] == "user-doc-1" for d in f["doctors"])
    ]
    assert memberships == ["facility-2"]
    assert service.store.get("users", "user-doc-1")["facility_id"] == "facility-2"


def test_records_only_reference_finished_appointments(service, login_as):
    """
    After a doctor works through its appointments, every stored record that points at an
    appointment points at a finished one.
    """
    login_as("drsmith")
    assert service.add_medical_record("user-client-1", "Follow-up", appointment_id="appt-1").result()["ok"]
    assert not service.add_medical_record("user-client-2", "BP", appointment_id="appt-2").result()["ok"]
    assert service.update_appointment_status("appt-2", "cancelled").result()["ok"]
    assert not service.add_medical_record("user-client-2", "BP", appointment_id="appt-2").result()["ok"]

    for record in service.store.all("medical_records"):
        if record["appointment_id"] is not None:
            assert service.store.get("appointments", record["appointment_id"])["status"] == APPOINTMENT_FINISHED


def test_booked_names_are_snapshots(service, login_as):
    """
    The names copied into an appointment are the ones current at booking time; a later
    facility rename does not reach existing appointments.
    """
    login_as("janedoe")
    appointment_id = service.create_appointment(
        "facility-2", "user-doc-3", "2024-09-02T08:00:00Z", "Allergy test",
    ).result()["appointment_id"]
    mine = {a["id"]: a for a in service.my_appointments().result()["appointments"]}
    assert mine[appointment_id]["client_name"] == "janedoe"
    assert mine[appointment_id]["doctor_name"] == "dralice"
    assert mine[appointment_id]["facility_name"] == "Oran City Clinic"

    login_as("ministryadmin")
    assert service.update_facility("facility-2", {"name": "Oran Regional Clinic"}).result()["ok"]
    login_as("janedoe")
    mine = {a["id"]: a for a in service.my_appointments().result()["appointments"]}
    assert mine[appointment_id]["facility_name"] == "Oran City Clinic"


def test_mutations_apply_in_invocation_order(settings):
    """
    Handles resolve after the simulated latency, but the store reflects every call as
    soon as it is made, regardless of the order the handles are awaited in.
    """
    settings.LATENCY_SECONDS = 0.01
    service = HealthNetService(settings=settings)

    async def scenario():
        await service.login("ministryadmin", SEED_PASSWORD)
        assign = service.assign_doctor("facility-3", "user-doc-2")
        listing = service.list_facilities()
        facilities, assigned = await asyncio.gather(listing, assign)
        return facilities, assigned

    facilities, assigned = asyncio.run(scenario())
    assert assigned["ok"]
    by_id = {f["id"]: f for f in facilities["facilities"]}
    assert [d["id"] for d in by_id["facility-3"]["doctors"]] == ["user-doc-2"]


def test_awaiting_and_result_give_the_same_envelope(settings):
    settings.LATENCY_SECONDS = 0.01
    service = HealthNetService(settings=settings)
    handle = service.login("drsmith", SEED_PASSWORD)
    assert handle.ok
    assert asyncio.run(_await(handle)) is handle.result()


async def _await(handle):
    return await handle


def test_session_survives_a_restart(settings):
    """
    The token and user snapshot persist in local storage, so a new service built on the
    same files resumes the seeded user's session.
    """
    first = HealthNetService(settings=settings)
    assert first.login("drsmith", SEED_PASSWORD).result()["ok"]

    second = HealthNetService(settings=settings)
    assert second.current_user["username"] == "drsmith"
    profile = second.get_profile().result()
    assert profile["ok"]
    assert profile["user"]["id"] == "user-doc-1"

    assert second.logout().result()["ok"]
    assert HealthNetService(settings=settings).current_user is None


def test_restart_drops_registered_users_and_their_session(settings):
    """
    Entity collections reset to the seed on restart, so a session for an account created
    in the previous run no longer resolves and is cleared.
    """
    lost = []
    first = HealthNetService(settings=settings)
    assert first.register("alice", "alice@x.com", STRONG_PASSWORD, "client").result()["ok"]

    second = HealthNetService(settings=settings, on_session_lost=lambda: lost.append(True))
    envelope = second.get_profile().result()
    assert envelope["error"]["kind"] == "Unauthenticated"
    assert lost == [True]
    assert second.storage.get_item(TOKEN_KEY) is None
    assert second.storage.get_item(USER_KEY) is None


def test_expired_session_triggers_redirect_hook(settings):
    lost = []
    service = HealthNetService(settings=settings, on_session_lost=lambda: lost.append(True))
    assert service.login("petra", SEED_PASSWORD).result()["ok"]
    assert service.my_appointments().result()["ok"]
    assert lost == []

    settings.TOKEN_TTL_SECONDS = -1
    envelope = service.my_appointments().result()
    assert envelope["ok"] is False
    assert envelope["error"]["status_code"] == 401
    assert lost == [True]
    assert service.current_user is None


def test_cleared_storage_is_a_logout(settings):
    lost = []
    service = HealthNetService(settings=settings, on_session_lost=lambda: lost.append(True))
    assert service.login("johndoe", SEED_PASSWORD).result()["ok"]
    service.storage.remove_item(TOKEN_KEY)
    service.storage.remove_item(USER_KEY)
    assert service.get_profile().result()["error"]["kind"] == "Unauthenticated"
    assert lost == [True]


def test_logout_always_succeeds_locally(service, login_as):
    """
    Logging out with a tampered token fails the confirmation step, which is only
    logged; the local session is still cleared.
    """
    login_as("drjones")
    service.storage.set_item(TOKEN_KEY, "not-a-token")
    assert service.logout().result()["ok"]
    assert service.current_user is None
    assert service.logout().result()["ok"]


def test_revoked_token_cannot_be_replayed(service, login_as):
    login_as("hospitaladmin2")
    token = service.storage.get_item(TOKEN_KEY)
    assert service.logout().result()["ok"]
    service.storage.set_item(TOKEN_KEY, token)
    assert service.get_my_facility().result()["error"]["kind"] == "Unauthenticated"


def test_reset_returns_to_seed(service, login_as):
    central_id = _create_central(service, login_as)
    assert service.store.get("facilities", central_id) is not None
    service.reset()
    assert service.store.get("facilities", central_id) is None
    assert service.store.count("facilities") == 3
    assert service.list_facilities().result()["ok"]
    _assert_membership_consistent(service)
