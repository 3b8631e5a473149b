import json
import logging
from datetime import date
from typing import Any, Dict

from django.db import DatabaseError
from django.http import HttpResponse, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from campaign_backend.auth import admin_required
from coupons.csv_codes import export_participants

from .services import AlreadyRegisteredError, RegistrationError, list_participants, register

logger = logging.getLogger(__name__)


def _json_error(message: str, status: int = 400) -> JsonResponse:
    return JsonResponse({"success": False, "error": message}, status=status)


def _parse_body(request) -> Dict[str, Any]:
    if not request.body:
        return {}
    try:
        payload = json.loads(request.body.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise RegistrationError(f"Request body is not valid JSON: {exc}")
    if not isinstance(payload, dict):
        raise RegistrationError("Request body must be a JSON object.")
    return payload


def _strict_bool(value: Any) -> bool:
    """Return True only if value is the boolean True; everything else is False."""
    return value is True


def _text(payload: Dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise RegistrationError(f"{key} must be a string.")
    return value


@csrf_exempt
@require_http_methods(["POST"])
def register_participant(request):
    try:
        payload = _parse_body(request)
        participant = register(
            _text(payload, "email"),
            _text(payload, "first_name"),
            _text(payload, "last_name"),
            newsletter=_strict_bool(payload.get("newsletter")),
        )
    except RegistrationError as exc:
        return _json_error(str(exc), status=400)
    except AlreadyRegisteredError as exc:
        return _json_error(str(exc), status=409)
    except DatabaseError as exc:
        logger.exception("Failed to register participant")
        return _json_error(f"Database error: {exc}", status=503)

    return JsonResponse(
        {
            "success": True,
            "participant_id": participant.id,
            "email": participant.email,
            "message": "Registration successful! You can now spin the wheel.",
        },
        status=201,
    )


@require_http_methods(["GET"])
@admin_required
def users_endpoint(request):
    users = [participant.to_payload() for participant in list_participants()]
    return JsonResponse(
        {"success": True, "users": users},
        json_dumps_params={"ensure_ascii": False},
    )


@require_http_methods(["GET"])
@admin_required
def export_users_csv(request):
    response = HttpResponse(
        export_participants(list_participants()),
        content_type="text/csv; charset=utf-8",
    )
    filename = f"users-export-{date.today().isoformat()}.csv"
    response["Content-Disposition"] = f'attachment; filename="{filename}"'
    return response
