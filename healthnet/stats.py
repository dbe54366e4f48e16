"""
Dashboard aggregates for the authority admin and facility admins.

These helpers work on already-scoped lists of plain records and return plain
dictionaries ready to be placed in a response envelope.
"""
# healthnet/stats.py

from collections import Counter

from healthnet.models import APPOINTMENT_STATUSES, FACILITY_TYPES, SUPPLY_APPROVED, SUPPLY_PENDING, SUPPLY_STATUSES


def occupancy_rate(occupied: int, beds: int):
    """Occupancy as a percentage rounded to one decimal, or None when there are no beds."""
    if beds <= 0:
        return None
    return round(occupied / beds * 100, 1)


def average_rating(feedback: list):
    if not feedback:
        return None
    return round(sum(entry['rating'] for entry in feedback) / len(feedback), 1)


def status_counts(records: list, statuses) -> dict:
    counts = Counter(record['status'] for record in records)
    return {status: counts.get(status, 0) for status in statuses}


def occupancy_by_region(facilities: list) -> list:
    """Averages the occupancy percentage of the facilities in each region."""
    regions = {}
    for facility in facilities:
        rate = occupancy_rate(facility['occupied_beds'], facility['beds']) or 0.0
        regions.setdefault(facility['region'], []).append(rate)
    return [
        {"name": region, "value": round(sum(rates) / len(rates), 1)}
        for region, rates in regions.items()
    ]


def inventory(supply_requests: list) -> list:
    """Sums approved supply quantities per item name."""
    totals = {}
    for request in supply_requests:
        if request['status'] == SUPPLY_APPROVED:
            totals[request['item_name']] = totals.get(request['item_name'], 0) + request['quantity']
    return [{"item_name": name, "quantity": quantity} for name, quantity in totals.items()]


def national_overview(facilities: list, appointments: list, supply_requests: list, feedback: list) -> dict:
    """KPIs for the national dashboard. `facilities` must carry their `doctors` view."""
    type_counts = Counter(facility['type'] for facility in facilities)
    total_beds = sum(facility['beds'] for facility in facilities)
    occupied_beds = sum(facility['occupied_beds'] for facility in facilities)
    return {
        "total_facilities": len(facilities),
        "facilities_by_type": {kind: type_counts.get(kind, 0) for kind in FACILITY_TYPES},
        "total_doctors": sum(len(facility['doctors']) for facility in facilities),
        "total_beds": total_beds,
        "occupied_beds": occupied_beds,
        "average_occupancy": occupancy_rate(occupied_beds, total_beds),
        "occupancy_by_region": occupancy_by_region(facilities),
        "supply_requests_by_status": status_counts(supply_requests, SUPPLY_STATUSES),
        "appointments_by_status": status_counts(appointments, APPOINTMENT_STATUSES),
        "average_rating": average_rating(feedback),
    }


def facility_overview(facility: dict, appointments: list, supply_requests: list, feedback: list) -> dict:
    """KPIs for a single facility's dashboard."""
    return {
        "facility": facility,
        "total_appointments": len(appointments),
        "appointments_by_status": status_counts(appointments, APPOINTMENT_STATUSES),
        "total_doctors": len(facility['doctors']),
        "occupancy_rate": occupancy_rate(facility['occupied_beds'], facility['beds']),
        "pending_supply_requests": sum(1 for r in supply_requests if r['status'] == SUPPLY_PENDING),
        "average_rating": average_rating(feedback),
    }
