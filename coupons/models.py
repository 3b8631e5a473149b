from __future__ import annotations

from typing import Any, Dict, List

from django.db import models
from django.db.models import Q


class PrizeType(models.TextChoices):
    """Prize kinds on the wheel, in canonical display order."""

    HEMA_REGENPONCHO = "HEMA_regenponcho", "HEMA regenponcho"
    CREDIT_50 = "50_CREDIT", "€50 shoptegoed"
    CREDIT_250 = "250_CREDIT", "€250 shoptegoed"
    OFF_15 = "15_OFF", "15% korting"
    CREDIT_100 = "100_CREDIT", "€100 shoptegoed"

    @classmethod
    def canonical_order(cls) -> List["PrizeType"]:
        return list(cls)


class Coupon(models.Model):
    """A single redeemable code belonging to one prize type."""

    code = models.CharField(
        max_length=255,
        unique=True,
        help_text="Case-sensitive code handed to the winning participant.",
    )
    prize_type = models.CharField(max_length=32, choices=PrizeType.choices)
    display_name = models.CharField(
        max_length=255,
        help_text="Prize label captured at import time.",
    )
    used = models.BooleanField(default=False)
    used_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["prize_type", "used"], name="coupons_type_used_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(used=False, used_at__isnull=True)
                    | Q(used=True, used_at__isnull=False)
                ),
                name="coupons_used_at_matches_used",
            ),
        ]

    def __str__(self) -> str:
        state = "used" if self.used else "available"
        return f"{self.code} ({self.prize_type}, {state})"

    def to_payload(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "code": self.code,
            "type": self.prize_type,
            "display_name": self.display_name,
            "used": self.used,
            "used_at": self.used_at.isoformat() if self.used_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
