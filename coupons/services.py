from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from django.db import DatabaseError, IntegrityError, connection, transaction
from django.db.models import QuerySet

from .models import Coupon, PrizeType

logger = logging.getLogger(__name__)


class CouponImportError(Exception):
    """Raised when an import request cannot be processed at all."""


class InvalidPrizeTypeError(CouponImportError):
    """Raised when a prize type is not part of the wheel."""


class DuplicateCouponError(CouponImportError):
    """Raised when a single imported code already exists."""


class CouponNotFoundError(Exception):
    """Raised when a coupon id does not exist."""


class CouponInUseError(Exception):
    """Raised when deleting a coupon that has already been handed out."""


@dataclass(slots=True)
class ImportResult:
    imported: int = 0
    duplicates: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    coupons: List[Coupon] = field(default_factory=list)

    @property
    def skipped(self) -> int:
        return len(self.duplicates)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "imported": self.imported,
            "skipped": self.skipped,
            "duplicates": list(self.duplicates),
            "errors": list(self.errors),
        }


def validate_prize_type(value: Optional[str]) -> PrizeType:
    try:
        return PrizeType(value)
    except ValueError:
        raise InvalidPrizeTypeError(f"Invalid coupon type: {value!r}") from None


def _insert_coupon(code: str, prize_type: PrizeType) -> Coupon:
    return Coupon.objects.create(
        code=code,
        prize_type=prize_type.value,
        display_name=prize_type.label,
        used=False,
    )


def import_codes(prize_type: str, codes: Sequence[str]) -> ImportResult:
    """Insert each candidate code as an unused coupon of ``prize_type``.

    Every code is an independent attempt inside its own savepoint, so a duplicate
    or a failing row never aborts the rest of the batch.
    """

    kind = validate_prize_type(prize_type)
    if not codes:
        raise CouponImportError("No codes provided")

    result = ImportResult()
    for candidate in codes:
        code = (candidate or "").strip()
        if not code:
            continue

        try:
            with transaction.atomic():
                coupon = _insert_coupon(code, kind)
        except IntegrityError as exc:
            if Coupon.objects.filter(code=code).exists():
                result.duplicates.append(code)
            else:
                result.errors.append(f"Failed to insert {code}: {exc}")
            continue
        except DatabaseError as exc:
            logger.exception("Failed to insert coupon %s", code)
            result.errors.append(f"Failed to insert {code}: {exc}")
            continue

        result.imported += 1
        result.coupons.append(coupon)

    if result.duplicates:
        logger.warning(
            "Skipped %d duplicate %s codes: %s",
            result.skipped,
            kind.value,
            ", ".join(result.duplicates),
        )
    logger.info(
        "Imported %d %s codes (%d skipped, %d errors)",
        result.imported,
        kind.value,
        result.skipped,
        len(result.errors),
    )
    return result


def import_code(prize_type: str, code: str) -> ImportResult:
    """Import a single code, reporting a duplicate as its own condition."""

    cleaned = (code or "").strip()
    if not cleaned:
        raise CouponImportError("Please enter a promocode")

    result = import_codes(prize_type, [cleaned])
    if result.duplicates:
        raise DuplicateCouponError(f"This promocode already exists: {cleaned}")
    if result.errors:
        raise CouponImportError(result.errors[0])
    return result


def delete_coupon(coupon_id: int) -> None:
    """Delete an unused coupon; a used one is part of the redemption history.

    The used-state check and the delete are one statement, so a concurrent spin
    either claims the coupon first or finds it gone.
    """

    table = connection.ops.quote_name(Coupon._meta.db_table)
    pk = connection.ops.quote_name(Coupon._meta.pk.column)
    used = connection.ops.quote_name(Coupon._meta.get_field("used").column)
    with connection.cursor() as cursor:
        cursor.execute(
            f"DELETE FROM {table} WHERE {pk} = %s AND {used} = %s",
            [coupon_id, False],
        )
        deleted = cursor.rowcount

    if deleted:
        logger.info("Deleted unused coupon %s", coupon_id)
        return

    if Coupon.objects.filter(pk=coupon_id).exists():
        raise CouponInUseError("Cannot delete a used coupon")
    raise CouponNotFoundError("Coupon not found")


def list_coupons(
    used: Optional[bool] = None,
    prize_type: Optional[str] = None,
) -> QuerySet[Coupon]:
    queryset = Coupon.objects.all()
    if used is not None:
        queryset = queryset.filter(used=used)
    if prize_type:
        queryset = queryset.filter(prize_type=validate_prize_type(prize_type).value)
    return queryset.order_by("-created_at", "-id")


def available_prize_types() -> List[Dict[str, str]]:
    """Prize types that still have at least one unused coupon, in wheel order."""

    in_stock = set(
        Coupon.objects.filter(used=False)
        .order_by()
        .values_list("prize_type", flat=True)
        .distinct()
    )
    return [
        {"type": kind.value, "display_name": kind.label}
        for kind in PrizeType.canonical_order()
        if kind.value in in_stock
    ]
