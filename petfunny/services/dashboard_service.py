from collections import Counter
from typing import Any, Dict, List

from petfunny.models.booking import BookingStatus


def booking_value_cents(booking: Dict[str, Any], services_by_id: Dict[str, Dict[str, Any]]) -> int:
    if booking.get("value_cents") is not None:
        return int(booking["value_cents"])
    service = services_by_id.get(str(booking.get("service_id")))
    return int(service.get("value_cents") or 0) if service else 0


def summarize(
    bookings: List[Dict[str, Any]],
    customers: List[Dict[str, Any]],
    pets: List[Dict[str, Any]],
    services: List[Dict[str, Any]],
    mimos: List[Dict[str, Any]],
) -> Dict[str, Any]:
    """Dashboard totals. Cancelled bookings are listed in the count by status only."""
    services_by_id = {str(s.get("id")): s for s in services}
    mimo_titles = {str(m.get("id")): m.get("title", "") for m in mimos}

    by_status = Counter()
    revenue = 0
    prizes = Counter()
    for booking in bookings:
        status = BookingStatus.parse(booking.get("status")) or BookingStatus.AGENDADO
        by_status[status.value] += 1
        if not status.is_active:
            continue
        revenue += booking_value_cents(booking, services_by_id)
        prize = str(booking.get("prize") or "").strip()
        if prize:
            prizes[mimo_titles.get(prize, prize)] += 1

    return {
        "bookings": len(bookings),
        "customers": len(customers),
        "pets": len(pets),
        "revenue_cents": revenue,
        "by_status": dict(by_status),
        "mimos": dict(prizes),
    }
