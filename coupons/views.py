import json
import logging
from datetime import date
from typing import Any, Dict, Optional

from django.db import DatabaseError
from django.http import HttpResponse, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from campaign_backend.auth import admin_required

from .csv_codes import export_coupons, parse_codes
from .services import (
    CouponImportError,
    CouponInUseError,
    CouponNotFoundError,
    DuplicateCouponError,
    delete_coupon,
    import_code,
    import_codes,
    list_coupons,
)

logger = logging.getLogger(__name__)


class BadRequest(Exception):
    """Raised when the request payload cannot be understood."""


def _json_error(message: str, status: int = 400) -> JsonResponse:
    return JsonResponse({"success": False, "error": message}, status=status)


def _parse_body(request) -> Dict[str, Any]:
    if not request.body:
        return {}
    try:
        payload = json.loads(request.body.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise BadRequest(f"Request body is not valid JSON: {exc}")
    if not isinstance(payload, dict):
        raise BadRequest("Request body must be a JSON object.")
    return payload


def _parse_used_filter(raw: Optional[str]) -> Optional[bool]:
    if raw == "true":
        return True
    if raw == "false":
        return False
    return None


def _coupon_guard(func):
    def _wrapped(request, *args, **kwargs):
        try:
            return func(request, *args, **kwargs)
        except BadRequest as exc:
            return _json_error(str(exc), status=400)
        except DuplicateCouponError as exc:
            return _json_error(str(exc), status=409)
        except CouponImportError as exc:
            return _json_error(str(exc), status=400)
        except CouponNotFoundError as exc:
            return _json_error(str(exc), status=404)
        except CouponInUseError as exc:
            return _json_error(str(exc), status=409)
        except DatabaseError as exc:
            logger.exception("Database error in coupon admin API")
            return _json_error(f"Database error: {exc}", status=503)

    return _wrapped


@csrf_exempt
@require_http_methods(["GET", "POST"])
@admin_required
@_coupon_guard
def coupons_endpoint(request):
    if request.method == "GET":
        coupons = list_coupons(
            used=_parse_used_filter(request.GET.get("used")),
            prize_type=request.GET.get("type") or None,
        )
        return JsonResponse(
            {"success": True, "coupons": [coupon.to_payload() for coupon in coupons]},
            json_dumps_params={"ensure_ascii": False},
        )

    payload = _parse_body(request)
    codes = payload.get("codes")
    if codes is None and isinstance(payload.get("csv"), str):
        codes = parse_codes(payload["csv"])
    if not isinstance(codes, list) or not all(isinstance(code, str) for code in codes):
        raise BadRequest("codes must be a list of strings.")

    result = import_codes(payload.get("type"), codes)
    return JsonResponse({"success": True, **result.to_payload()})


@csrf_exempt
@require_http_methods(["POST"])
@admin_required
@_coupon_guard
def single_coupon(request):
    payload = _parse_body(request)
    code = payload.get("code")
    if code is not None and not isinstance(code, str):
        raise BadRequest("code must be a string.")

    result = import_code(payload.get("type"), code)
    coupon = result.coupons[0]
    return JsonResponse(
        {"success": True, "coupon": coupon.to_payload()},
        status=201,
        json_dumps_params={"ensure_ascii": False},
    )


@csrf_exempt
@require_http_methods(["DELETE"])
@admin_required
@_coupon_guard
def coupon_detail(request, coupon_id: int):
    delete_coupon(coupon_id)
    return JsonResponse({"success": True})


@require_http_methods(["GET"])
@admin_required
@_coupon_guard
def export_coupons_csv(request):
    coupons = list_coupons(
        used=_parse_used_filter(request.GET.get("used")),
        prize_type=request.GET.get("type") or None,
    )
    response = HttpResponse(export_coupons(coupons), content_type="text/csv; charset=utf-8")
    filename = f"promocodes-export-{date.today().isoformat()}.csv"
    response["Content-Disposition"] = f'attachment; filename="{filename}"'
    return response
