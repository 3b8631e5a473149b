from __future__ import annotations

import base64
import binascii
import functools
import hmac
from typing import Optional, Tuple

from django.conf import settings
from django.http import JsonResponse


def extract_basic_credentials(header: Optional[str]) -> Optional[Tuple[str, str]]:
    """Return (username, password) from a Basic Authorization header, or None."""

    if not header or not header.startswith("Basic "):
        return None
    try:
        decoded = base64.b64decode(header[6:].strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None

    username, sep, password = decoded.partition(":")
    if not sep or not username or not password:
        return None
    return username, password


def valid_admin_credentials(username: str, password: str) -> bool:
    expected_user = getattr(settings, "ADMIN_USERNAME", None)
    expected_password = getattr(settings, "ADMIN_PASSWORD", None)
    if not (expected_user and expected_password):
        return False
    user_ok = hmac.compare_digest(username.encode("utf-8"), expected_user.encode("utf-8"))
    password_ok = hmac.compare_digest(password.encode("utf-8"), expected_password.encode("utf-8"))
    return user_ok and password_ok


def admin_required(view):
    """Reject requests that do not carry the campaign admin's Basic credentials."""

    @functools.wraps(view)
    def _wrapped(request, *args, **kwargs):
        credentials = extract_basic_credentials(request.headers.get("Authorization"))
        if credentials is None or not valid_admin_credentials(*credentials):
            response = JsonResponse({"success": False, "error": "Unauthorized"}, status=401)
            response["WWW-Authenticate"] = 'Basic realm="campaign-admin"'
            return response
        return view(request, *args, **kwargs)

    return _wrapped
