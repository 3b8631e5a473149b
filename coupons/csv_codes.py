"""CSV helpers for promocode uploads and operator exports."""

from __future__ import annotations

import csv
import io
import re
from datetime import datetime
from typing import Iterable, List, Optional

from .models import Coupon

HEADER_MARKER = "promocode"

COUPON_EXPORT_HEADERS = ["Code", "Type", "Name", "Status", "Used At", "Created At"]
PARTICIPANT_EXPORT_HEADERS = [
    "Name",
    "Email",
    "Coupon Type",
    "Coupon Code",
    "Won At",
    "Registered At",
]

_QUOTES = re.compile(r"^[\"']|[\"']$")


def parse_codes(text: str) -> List[str]:
    """Extract candidate codes from uploaded CSV text.

    The first column of each row is used. If the first non-blank row mentions
    "promocode" it is treated as a header and skipped.
    """

    codes: List[str] = []
    seen_row = False
    for row in csv.reader(io.StringIO(text), skipinitialspace=True):
        if not any(cell.strip() for cell in row):
            continue
        is_header = not seen_row and HEADER_MARKER in ",".join(row).lower()
        seen_row = True
        if is_header:
            continue

        code = _QUOTES.sub("", row[0].strip()).strip()
        if code:
            codes.append(code)
    return codes


def _timestamp(value: Optional[datetime]) -> str:
    return value.isoformat() if value else "-"


def _write(headers: List[str], rows: Iterable[List[str]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(headers)
    writer.writerows(rows)
    return buffer.getvalue()


def export_coupons(coupons: Iterable[Coupon]) -> str:
    return _write(
        COUPON_EXPORT_HEADERS,
        (
            [
                coupon.code,
                coupon.prize_type,
                coupon.display_name,
                "Used" if coupon.used else "Available",
                _timestamp(coupon.used_at),
                _timestamp(coupon.created_at),
            ]
            for coupon in coupons
        ),
    )


def export_participants(participants: Iterable) -> str:
    rows = []
    for participant in participants:
        coupon = participant.redeemed_coupon
        rows.append(
            [
                f"{participant.first_name} {participant.last_name}",
                participant.email,
                coupon.display_name if coupon else "-",
                coupon.code if coupon else "-",
                _timestamp(coupon.used_at if coupon else None),
                _timestamp(participant.registered_at),
            ]
        )
    return _write(PARTICIPANT_EXPORT_HEADERS, rows)
