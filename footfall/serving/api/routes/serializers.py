"""
Response encoding for domain results.
"""

from typing import Any, Dict

from footfall.domain.models import (
    DashboardStats,
    EntryEvent,
    Hotel,
    MergedPlaceEstimate,
    PlaceVisitorAnalytics,
    SeriesPoint,
)


def place_payload(estimate: MergedPlaceEstimate) -> Dict[str, Any]:
    return {
        "name": estimate.place,
        "city": estimate.city,
        "state": estimate.state,
        "district": estimate.district,
        "crowd_count": estimate.crowd_count,
        "crowd_level": estimate.crowd_level.value if estimate.crowd_level else None,
        "telecom_footfall": round(estimate.telecom_footfall, 2),
        "ticket_footfall": estimate.ticket_footfall,
        "domestic": round(estimate.domestic_devices, 2),
        "international": round(estimate.international_devices, 2),
        "confidence_score": round(estimate.confidence_score, 2) if estimate.confidence_score is not None else None,
        "international_breakdown": estimate.international_breakdown,
        "network_distribution": estimate.network_distribution,
    }


def series_payload(point: SeriesPoint) -> Dict[str, Any]:
    return {
        "time": point.time.isoformat(),
        "label": point.time.strftime("%H:%M"),
        "visitors": point.visitors,
    }


def analytics_payload(row: PlaceVisitorAnalytics) -> Dict[str, Any]:
    return {
        "state": row.state,
        "city": row.city,
        "place": row.place,
        "total_visitors": row.total_visitors,
        "domestic_visitors": row.domestic_visitors,
        "international_visitors": row.international_visitors,
        "avg_confidence": row.avg_confidence,
    }


def dashboard_payload(stats: DashboardStats) -> Dict[str, Any]:
    window = stats.window
    return {
        "success": True,
        "time_window": {
            "start": window.start.isoformat() if window.start else None,
            "end": window.end.isoformat() if window.end else None,
        },
        "stats": {
            "total_footfall": stats.total_footfall,
            "domestic_visitors": stats.domestic_visitors,
            "international_visitors": stats.international_visitors,
            "hotel_occupancy": stats.hotel_occupancy,
        },
    }


def entry_payload(event: EntryEvent) -> Dict[str, Any]:
    geo = event.geo_location
    return {
        "id": event.id,
        "ticket_id": event.ticket_id,
        "location_id": event.location_id,
        "event_type": event.event_type.value,
        "source": event.source.value,
        "visitor_type": event.visitor_type.value,
        "verification_level": event.verification_level.value,
        "geo_opted_in": event.geo_opted_in,
        "geo_location": (
            {"latitude": geo.latitude, "longitude": geo.longitude, "accuracy": geo.accuracy}
            if geo else None
        ),
        "timestamp": event.timestamp.isoformat(),
    }


def hotel_payload(hotel: Hotel) -> Dict[str, Any]:
    return {
        "serial_no": hotel.serial_no,
        "name": hotel.name,
        "address": hotel.address,
        "city": hotel.city,
        "rating": hotel.rating,
        "reviews": hotel.reviews,
        "total_rooms": hotel.total_rooms,
        "vacancy": hotel.vacancy,
        "occupancy_percent": hotel.occupancy_percent,
        "category": hotel.category,
        "nearby_places": list(hotel.nearby_places),
    }
