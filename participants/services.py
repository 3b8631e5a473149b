from __future__ import annotations

import logging

from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from django.db import IntegrityError, transaction
from django.db.models import QuerySet

from .models import Participant

logger = logging.getLogger(__name__)


class RegistrationError(Exception):
    """Raised when registration input is incomplete or malformed."""


class AlreadyRegisteredError(Exception):
    """Raised when the email address has already been registered."""


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def register(
    email: str,
    first_name: str,
    last_name: str,
    *,
    newsletter: bool = False,
) -> Participant:
    canonical = normalize_email(email)
    first = (first_name or "").strip()
    last = (last_name or "").strip()

    if not (canonical and first and last):
        raise RegistrationError("All required fields must be filled in.")
    try:
        validate_email(canonical)
    except ValidationError:
        raise RegistrationError("Enter a valid email address.") from None

    try:
        with transaction.atomic():
            participant = Participant.objects.create(
                email=canonical,
                first_name=first,
                last_name=last,
                newsletter=newsletter,
            )
    except IntegrityError:
        raise AlreadyRegisteredError("This email address has already taken part.") from None

    logger.info("Registered participant %s (id=%s)", canonical, participant.id)
    return participant


def list_participants() -> QuerySet[Participant]:
    return Participant.objects.select_related("redeemed_coupon").order_by(
        "-registered_at", "-id"
    )
