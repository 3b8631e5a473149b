from __future__ import annotations

import json
import logging
from typing import Any, Dict

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from coupons.models import PrizeType
from coupons.services import available_prize_types
from participants.services import normalize_email

from .locks import SpinLockError, participant_spin_lock
from .services import (
    AllocationResult,
    CouponReconciliationError,
    InventoryExhaustedError,
    NotRegisteredError,
    PersistenceError,
    allocate,
)

logger = logging.getLogger(__name__)


class SpinRequestError(Exception):
    """Raised when the spin request payload is invalid."""


def _json_error(message: str, status: int = 400) -> JsonResponse:
    return JsonResponse({"success": False, "error": message}, status=status)


def _parse_body(request) -> Dict[str, Any]:
    if not request.body:
        return {}
    try:
        payload = json.loads(request.body.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise SpinRequestError(f"Request body is not valid JSON: {exc}")
    if not isinstance(payload, dict):
        raise SpinRequestError("Request body must be a JSON object.")
    return payload


def _spin_guard(func):
    def _wrapped(request, *args, **kwargs):
        try:
            return func(request, *args, **kwargs)
        except (SpinRequestError, NotRegisteredError) as exc:
            return _json_error(str(exc), status=400)
        except InventoryExhaustedError as exc:
            return _json_error(str(exc), status=409)
        except (SpinLockError, PersistenceError) as exc:
            return _json_error(str(exc), status=503)
        except CouponReconciliationError as exc:
            return _json_error(str(exc), status=500)

    return _wrapped


@csrf_exempt
@require_http_methods(["POST"])
@_spin_guard
def spin(request) -> JsonResponse:
    payload = _parse_body(request)
    email = payload.get("email")
    if not isinstance(email, str) or not email.strip():
        raise SpinRequestError("Email address is required.")

    canonical = normalize_email(email)
    with participant_spin_lock(canonical):
        result: AllocationResult = allocate(canonical)

    if result.already_redeemed:
        message = "You have already spun the wheel."
    else:
        message = f"Congratulations! You won {result.coupon.display_name}!"
    return JsonResponse(
        {"success": True, "message": message, **result.to_payload()},
        json_dumps_params={"ensure_ascii": False},
    )


@require_http_methods(["GET"])
def list_prizes(request) -> JsonResponse:
    prizes = [{"type": kind.value, "display_name": kind.label} for kind in PrizeType]
    return JsonResponse(
        {"success": True, "prizes": prizes, "available": available_prize_types()},
        json_dumps_params={"ensure_ascii": False},
    )
