from __future__ import annotations

import functools
import logging
import random
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils import timezone

from coupons.models import Coupon, PrizeType
from coupons.services import available_prize_types
from participants.models import Participant
from participants.services import normalize_email

logger = logging.getLogger(__name__)


class AllocationError(Exception):
    """Base class for failures while drawing a prize."""


class NotRegisteredError(AllocationError):
    """Raised when the email has not been registered yet."""


class InventoryExhaustedError(AllocationError):
    """Raised when no prize type has an unused coupon left."""


class PersistenceError(AllocationError):
    """Raised when the draw could not be stored; nothing was persisted."""


class AllocationConflictError(PersistenceError):
    """Raised when the selected coupon was claimed by a concurrent draw."""


class CouponReconciliationError(AllocationError):
    """Raised when a claimed coupon could not be released after a failed link."""


@dataclass(slots=True)
class AllocationResult:
    coupon: Coupon
    already_redeemed: bool = False

    @property
    def prize_index(self) -> int:
        return PrizeType.values.index(self.coupon.prize_type)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "prize_type": self.coupon.prize_type,
            "display_name": self.coupon.display_name,
            "code": self.coupon.code,
            "prize_index": self.prize_index,
            "already_spun": self.already_redeemed,
        }


@functools.cache
def default_rng() -> random.Random:
    return random.Random(getattr(settings, "SPIN_RANDOM_SEED", None))


def _select_coupon(prize_type: str) -> Optional[Coupon]:
    return (
        Coupon.objects.select_for_update()
        .filter(prize_type=prize_type, used=False)
        .order_by("id")
        .first()
    )


def _claim_coupon(coupon: Coupon, now: datetime) -> bool:
    claimed = Coupon.objects.filter(pk=coupon.pk, used=False).update(used=True, used_at=now)
    return claimed == 1


def _link_participant(participant: Participant, coupon: Coupon) -> None:
    with transaction.atomic():
        linked = Participant.objects.filter(
            pk=participant.pk,
            redeemed_coupon__isnull=True,
        ).update(redeemed_coupon=coupon)
    if linked != 1:
        raise PersistenceError(f"Participant {participant.pk} already holds a coupon.")


def _release_coupon(coupon: Coupon) -> None:
    Coupon.objects.filter(pk=coupon.pk).update(used=False, used_at=None)


def _release_claim(coupon: Coupon, cause: Exception) -> None:
    """Undo a claim whose participant link failed, then report the failure."""

    try:
        _release_coupon(coupon)
    except DatabaseError as exc:
        logger.critical(
            "Coupon %s (id=%s) is marked used but not linked to a participant; "
            "manual reconciliation required. Link error: %s. Release error: %s",
            coupon.code,
            coupon.pk,
            cause,
            exc,
        )
        raise CouponReconciliationError(
            f"Coupon {coupon.code} could not be released after a failed draw."
        ) from exc

    logger.warning("Released coupon %s after failed participant link: %s", coupon.code, cause)
    raise PersistenceError(f"Failed to link coupon to participant: {cause}") from cause


def allocate(email: str, *, rng: Optional[random.Random] = None) -> AllocationResult:
    """Draw one coupon for the participant registered under ``email``.

    A participant who already holds a coupon gets that coupon back. Otherwise a
    prize type is chosen uniformly among the types that still have stock, and
    the oldest unused coupon of that type is claimed and linked in one
    transaction.
    """

    canonical = normalize_email(email)
    rng = rng or default_rng()

    try:
        with transaction.atomic():
            participant = (
                Participant.objects.select_for_update().filter(email=canonical).first()
            )
            if participant is None:
                raise NotRegisteredError("You must register before you can spin the wheel.")

            if participant.redeemed_coupon_id is not None:
                coupon = Coupon.objects.get(pk=participant.redeemed_coupon_id)
                logger.info("Replaying draw for %s: %s", canonical, coupon.code)
                return AllocationResult(coupon=coupon, already_redeemed=True)

            stocked = [entry["type"] for entry in available_prize_types()]
            if not stocked:
                raise InventoryExhaustedError("No prizes are left.")

            prize_type = rng.choice(stocked)
            coupon = _select_coupon(prize_type)
            now = timezone.now()
            if coupon is None or not _claim_coupon(coupon, now):
                raise AllocationConflictError(
                    f"The last {prize_type} coupon was claimed concurrently. Please try again."
                )

            try:
                _link_participant(participant, coupon)
            except (DatabaseError, PersistenceError) as exc:
                _release_claim(coupon, exc)

            coupon.used = True
            coupon.used_at = now
    except DatabaseError as exc:
        logger.exception("Failed to store draw for %s", canonical)
        raise PersistenceError(f"Failed to store the draw: {exc}") from exc

    logger.info("Allocated %s (%s) to %s", coupon.code, coupon.prize_type, canonical)
    return AllocationResult(coupon=coupon)
