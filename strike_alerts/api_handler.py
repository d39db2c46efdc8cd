"""Web API Handler - HTTP access to locations, strikes and notifications.

This module maps HTTP requests onto Orchestrator operations.
Part of the imperative shell - handles HTTP I/O.

Routes:
    GET    /health
    POST   /users/<user_id>/location
    GET    /users/<user_id>/location
    DELETE /users/<user_id>/location
    PATCH  /locations/<location_id>
    GET    /users/<user_id>/notifications
    GET    /users/<user_id>/strikes?radius_miles=&hours_back=
    GET    /zip/<postal_code>
    POST   /strikes
    POST   /delivery-pass
"""

import json
import logging
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any

from flask import Request, Response

from strike_alerts.core.errors import NotFound, ServiceUnavailable, ValidationError
from strike_alerts.core.location import Location, LocationUpdate
from strike_alerts.core.notification import Notification
from strike_alerts.core.proximity import StrikeWithDistance
from strike_alerts.core.strike import LightningStrike, parse_report
from strike_alerts.orchestrator import Orchestrator


logger = logging.getLogger(__name__)


def _json_response(data: Any, status: int = 200) -> Response:
    """Create a JSON response."""
    return Response(
        json.dumps(data, default=str),
        status=status,
        mimetype="application/json",
    )


def _error(message: str, status: int) -> Response:
    return _json_response({"status": "error", "message": message}, status)


def _location_to_dict(location: Location) -> dict[str, Any]:
    """Convert Location to a JSON-serializable dict."""
    data = asdict(location)
    data["created_at"] = location.created_at.isoformat()
    data["updated_at"] = location.updated_at.isoformat()
    return data


def _strike_to_dict(strike: LightningStrike) -> dict[str, Any]:
    """Convert LightningStrike to a JSON-serializable dict."""
    return {
        "id": strike.id,
        "latitude": strike.latitude,
        "longitude": strike.longitude,
        "timestamp": strike.timestamp.isoformat(),
        "intensity": strike.intensity,
        "created_at": strike.created_at.isoformat(),
    }


def _nearby_to_dict(item: StrikeWithDistance) -> dict[str, Any]:
    return {**_strike_to_dict(item.strike), "distance_miles": round(item.distance_miles, 2)}


def _notification_to_dict(notification: Notification) -> dict[str, Any]:
    """Convert Notification to a JSON-serializable dict."""
    return {
        "id": notification.id,
        "user_id": notification.user_id,
        "strike_id": notification.strike_id,
        "distance_miles": round(notification.distance_miles, 2),
        "status": notification.status.value,
        "sent_at": notification.sent_at.isoformat() if notification.sent_at else None,
        "created_at": notification.created_at.isoformat(),
    }


def _body(request: Request) -> dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _optional_float(value: Any, name: str) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{name} must be a number") from e


def _parse_update(data: dict[str, Any]) -> LocationUpdate:
    is_active = data.get("is_active")
    if is_active is not None and not isinstance(is_active, bool):
        raise ValidationError("is_active must be a boolean")

    return LocationUpdate(
        postal_code=data.get("postal_code"),
        latitude=_optional_float(data.get("latitude"), "latitude"),
        longitude=_optional_float(data.get("longitude"), "longitude"),
        city=data.get("city"),
        region=data.get("region"),
        is_active=is_active,
    )


def _handle_user_location(request: Request, orchestrator: Orchestrator, user_id: str) -> Response:
    if request.method == "GET":
        location = orchestrator.get_location(user_id)
        if location is None:
            return _error(f"No active location for user {user_id}", 404)
        return _json_response(_location_to_dict(location))

    if request.method == "POST":
        data = _body(request)
        if "postal_code" not in data:
            raise ValidationError("postal_code is required")
        location = orchestrator.register_location(
            user_id=user_id,
            postal_code=data["postal_code"],
            latitude=_optional_float(data.get("latitude"), "latitude"),
            longitude=_optional_float(data.get("longitude"), "longitude"),
            city=data.get("city"),
            region=data.get("region"),
        )
        return _json_response(_location_to_dict(location), 201)

    if request.method == "DELETE":
        location = orchestrator.deactivate_location(user_id)
        if location is None:
            return _error(f"No active location for user {user_id}", 404)
        return _json_response(_location_to_dict(location))

    return _error("Method not allowed", 405)


def _route(request: Request, orchestrator: Orchestrator) -> Response:
    parts = [p for p in request.path.split("/") if p]
    method = request.method

    if parts == ["health"]:
        return _json_response({
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })

    if len(parts) == 3 and parts[0] == "users":
        user_id, resource = parts[1], parts[2]

        if resource == "location":
            return _handle_user_location(request, orchestrator, user_id)

        if resource == "notifications" and method == "GET":
            notifications = orchestrator.notifications_for_user(user_id)
            return _json_response([_notification_to_dict(n) for n in notifications])

        if resource == "strikes" and method == "GET":
            nearby = orchestrator.nearby_strikes(
                user_id,
                radius_miles=_optional_float(request.args.get("radius_miles"), "radius_miles"),
                hours_back=_optional_float(request.args.get("hours_back"), "hours_back"),
            )
            return _json_response([_nearby_to_dict(s) for s in nearby])

    if len(parts) == 2 and parts[0] == "locations" and method == "PATCH":
        location = orchestrator.update_location(parts[1], _parse_update(_body(request)))
        return _json_response(_location_to_dict(location))

    if len(parts) == 2 and parts[0] == "zip" and method == "GET":
        result = orchestrator.lookup_postal_code(parts[1])
        return _json_response(asdict(result))

    if parts == ["strikes"] and method == "POST":
        result = orchestrator.ingest_strike(parse_report(_body(request)))
        return _json_response({
            "strike": _strike_to_dict(result.strike),
            "notifications": [_notification_to_dict(n) for n in result.notifications],
        }, 201)

    if parts == ["delivery-pass"] and method == "POST":
        result = orchestrator.run_delivery_pass()
        return _json_response({**result.as_dict(), "summary": result.summary})

    return _error(f"No route for {method} {request.path}", 404)


def handle_request(request: Request, orchestrator: Orchestrator) -> Response:
    """Handle an API request.

    Validation errors become 400, missing records 404 and unreachable
    external services 503.
    """
    try:
        return _route(request, orchestrator)
    except ValidationError as e:
        return _error(str(e), 400)
    except NotFound as e:
        return _error(str(e), 404)
    except ServiceUnavailable as e:
        return _error(str(e), 503)
    except Exception:
        logger.exception("Unhandled error for %s %s", request.method, request.path)
        return _error("Internal server error", 500)
