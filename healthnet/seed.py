"""
The demo dataset every fresh `EntityStore` starts from.

Three facilities, one authority admin, two facility admins, three doctors, three
clients, and a handful of appointments, records, supply requests and feedback
entries that reference them. All seeded accounts share `SEED_PASSWORD`.
"""
# healthnet/seed.py

from healthnet.models import (
    User, Facility, Appointment, MedicalRecord, SupplyRequest, Feedback,
    ROLE_CLIENT, ROLE_DOCTOR, ROLE_FACILITY_ADMIN, ROLE_AUTHORITY_ADMIN,
    APPOINTMENT_PENDING, APPOINTMENT_APPROVED, APPOINTMENT_CANCELLED, APPOINTMENT_FINISHED,
    SUPPLY_PENDING, SUPPLY_APPROVED, SUPPLY_REJECTED,
)
from healthnet.passwords import hash_password

SEED_PASSWORD = 'Health!2024'

_USERS = [
    ('user-ga-1', 'ministryadmin', 'ga@example.com', ROLE_AUTHORITY_ADMIN, None),
    ('user-admin-1', 'hospitaladmin1', 'admin1@example.com', ROLE_FACILITY_ADMIN, 'facility-1'),
    ('user-admin-2', 'hospitaladmin2', 'admin2@example.com', ROLE_FACILITY_ADMIN, 'facility-2'),
    ('user-doc-1', 'drsmith', 'dr.smith@example.com', ROLE_DOCTOR, 'facility-1'),
    ('user-doc-2', 'drjones', 'dr.jones@example.com', ROLE_DOCTOR, 'facility-1'),
    ('user-doc-3', 'dralice', 'dr.alice@example.com', ROLE_DOCTOR, 'facility-2'),
    ('user-client-1', 'johndoe', 'john.doe@example.com', ROLE_CLIENT, None),
    ('user-client-2', 'janedoe', 'jane.doe@example.com', ROLE_CLIENT, None),
    ('user-client-3', 'petra', 'petra@example.com', ROLE_CLIENT, None),
]

_FACILITIES = [
    dict(facility_id='facility-1', name='Algiers General Hospital', type='hospital',
         address='123 Hospital St, Algiers', phone='021-111222', region='Algiers',
         beds=300, occupied_beds=180),
    dict(facility_id='facility-2', name='Oran City Clinic', type='clinic',
         address='456 Clinic Ave, Oran', phone='041-333444', region='Oran',
         beds=50, occupied_beds=30),
    dict(facility_id='facility-3', name='Constantine Health Center', type='health_center',
         address='789 Health Rd, Constantine', phone='031-555666', region='Constantine',
         beds=10, occupied_beds=5),
]

_APPOINTMENTS = [
    ('appt-1', 'user-client-1', 'user-doc-1', 'facility-1', '2024-07-20T10:00:00Z',
     'Routine check-up', APPOINTMENT_FINISHED),
    ('appt-2', 'user-client-2', 'user-doc-1', 'facility-1', '2024-07-21T14:30:00Z',
     'Follow-up on blood pressure', APPOINTMENT_PENDING),
    ('appt-3', 'user-client-1', 'user-doc-3', 'facility-2', '2024-07-15T09:00:00Z',
     'Annual physical exam', APPOINTMENT_FINISHED),
    ('appt-4', 'user-client-3', 'user-doc-2', 'facility-1', '2024-07-22T11:00:00Z',
     'Vaccination', APPOINTMENT_APPROVED),
    ('appt-5', 'user-client-3', 'user-doc-3', 'facility-2', '2024-07-10T16:00:00Z',
     'Consultation for rash', APPOINTMENT_CANCELLED),
]

_RECORDS = [
    ('rec-1', 'user-client-1', 'user-doc-1', 'facility-1', 'appt-1', '2024-07-20', 'Common cold',
     'Patient presented with mild fever and cough. Advised rest and hydration.',
     'Paracetamol 500mg, twice daily for 3 days.'),
    ('rec-2', 'user-client-1', 'user-doc-3', 'facility-2', 'appt-3', '2024-07-15',
     'Annual check-up, healthy',
     'No significant findings. Advised continued healthy lifestyle.', 'None.'),
    ('rec-3', 'user-client-2', 'user-doc-1', 'facility-1', None, '2024-06-01',
     'Hypertension, controlled',
     'Regular blood pressure monitoring. Patient adherence good.', 'Lisinopril 10mg, once daily.'),
]

_SUPPLY_REQUESTS = [
    ('req-1', 'facility-1', 'Surgical Masks', 5000, SUPPLY_PENDING, '2024-07-01T10:30:00Z', None),
    ('req-2', 'facility-1', 'Hand Sanitizer (1L)', 100, SUPPLY_APPROVED, '2024-06-25T14:00:00Z',
     '2024-06-26T09:00:00Z'),
    ('req-3', 'facility-2', 'Gloves (Box of 100)', 50, SUPPLY_PENDING, '2024-07-05T09:15:00Z', None),
    ('req-4', 'facility-3', 'Painkillers (Tabs)', 2000, SUPPLY_REJECTED, '2024-06-20T11:00:00Z', None),
]

_FEEDBACK = [
    ('fb-1', 'user-client-1', 'facility-1', 5,
     'Excellent service, Dr. Smith was very helpful and knowledgeable!', '2024-07-20T11:00:00Z'),
    ('fb-2', 'user-client-2', 'facility-1', 4,
     'Waiting time was a bit long, but the staff were friendly.', '2024-07-18T15:00:00Z'),
    ('fb-3', 'user-client-3', 'facility-2', 5,
     'Very clean clinic and efficient service. Highly recommended.', '2024-07-16T10:00:00Z'),
    ('fb-4', 'user-client-1', 'facility-2', 3,
     'Doctor was good but parking was difficult to find.', '2024-07-15T10:30:00Z'),
    ('fb-5', 'user-client-2', 'facility-3', 4,
     'Small health center but provided good basic care.', '2024-07-12T13:00:00Z'),
]


def build_seed_data() -> dict:
    """Builds a fresh copy of the demo dataset, keyed by collection and then by id."""
    users = {}
    for user_id, username, email, role, facility_id in _USERS:
        password_hash, salt = hash_password(SEED_PASSWORD)
        user = User(username, email, role, password_hash, salt, facility_id=facility_id, user_id=user_id)
        users[user.id] = user.__dict__

    facilities = {}
    for fields in _FACILITIES:
        facility = Facility(**fields)
        facilities[facility.id] = facility.__dict__

    def user_name(user_id):
        return users[user_id]['username']

    def facility_name(facility_id):
        return facilities[facility_id]['name']

    appointments = {}
    for appt_id, client_id, doctor_id, facility_id, date_time, reason, status in _APPOINTMENTS:
        appointment = Appointment(
            client_id, doctor_id, facility_id, date_time, reason,
            client_name=user_name(client_id),
            doctor_name=user_name(doctor_id),
            facility_name=facility_name(facility_id),
            status=status,
            appointment_id=appt_id,
        )
        appointments[appointment.id] = appointment.__dict__

    records = {}
    for rec_id, client_id, doctor_id, facility_id, appt_id, date, diagnosis, notes, prescription in _RECORDS:
        record = MedicalRecord(
            client_id, doctor_id, facility_id, date, diagnosis, notes, prescription,
            appointment_id=appt_id,
            client_name=user_name(client_id),
            doctor_name=user_name(doctor_id),
            facility_name=facility_name(facility_id),
            record_id=rec_id,
        )
        records[record.id] = record.__dict__

    supply_requests = {}
    for req_id, facility_id, item_name, quantity, status, requested_at, approved_at in _SUPPLY_REQUESTS:
        request = SupplyRequest(
            facility_id, item_name, quantity,
            facility_name=facility_name(facility_id),
            status=status,
            requested_at=requested_at,
            approved_at=approved_at,
            request_id=req_id,
        )
        supply_requests[request.id] = request.__dict__

    feedback = {}
    for fb_id, client_id, facility_id, rating, comment, date in _FEEDBACK:
        entry = Feedback(
            user_name(client_id), facility_id, rating, comment,
            facility_name=facility_name(facility_id),
            date=date,
            feedback_id=fb_id,
        )
        feedback[entry.id] = entry.__dict__

    return {
        "users": users,
        "facilities": facilities,
        "appointments": appointments,
        "medical_records": records,
        "supply_requests": supply_requests,
        "feedback": feedback,
    }
