from __future__ import annotations

from typing import Any, Dict

from django.db import models


class Participant(models.Model):
    """A registered campaign visitor, linked to at most one redeemed coupon."""

    email = models.EmailField(
        max_length=254,
        unique=True,
        help_text="Lower-cased canonical email address.",
    )
    first_name = models.CharField(max_length=150)
    last_name = models.CharField(max_length=150)
    newsletter = models.BooleanField(default=False)
    registered_at = models.DateTimeField(auto_now_add=True)
    redeemed_coupon = models.OneToOneField(
        "coupons.Coupon",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="participant",
    )

    class Meta:
        ordering = ["-registered_at", "-id"]

    def __str__(self) -> str:
        return f"{self.first_name} {self.last_name} <{self.email}>"

    @property
    def has_spun(self) -> bool:
        return self.redeemed_coupon_id is not None

    def to_payload(self) -> Dict[str, Any]:
        coupon = self.redeemed_coupon
        return {
            "id": self.id,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "registered_at": self.registered_at.isoformat() if self.registered_at else None,
            "coupon_type": coupon.prize_type if coupon else None,
            "coupon_code": coupon.code if coupon else None,
            "coupon_name": coupon.display_name if coupon else None,
            "won_at": coupon.used_at.isoformat() if coupon and coupon.used_at else None,
        }
