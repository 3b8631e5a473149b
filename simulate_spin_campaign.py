#!/usr/bin/env python3
"""
Simulate a spin-the-wheel campaign against a running backend service.

Usage:
    python simulate_spin_campaign.py --base-url http://localhost:8000 \
        --admin-user admin --admin-password secret

The script exercises three flows:
1) An operator imports a small batch of promocodes (with a duplicate) and
   deletes one unused code again.
2) A group of visitors registers and every visitor double-submits the spin
   concurrently; each must end up with exactly one code and no code may be
   handed out twice.
3) Once stock is gone, a late visitor is told that no prizes are left.

It communicates purely over HTTP, mimicking the front-end and admin clients.
Run it against a development server only: scenario 3 deletes all unused stock.
"""

import argparse
import sys
import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

try:
    import requests
except ModuleNotFoundError as exc:  # pragma: no cover - runtime dependency notice
    raise SystemExit(
        "The simulate_spin_campaign script requires the 'requests' package. "
        "Install it via `pip install requests` and rerun."
    ) from exc


TIMEOUT = 10  # seconds per request
PRIZE_TYPES = ["HEMA_regenponcho", "50_CREDIT", "250_CREDIT", "15_OFF", "100_CREDIT"]


@dataclass
class Visitor:
    email: str
    first_name: str
    last_name: str


class CampaignClient:
    def __init__(self, base_url: str, admin_user: str, admin_password: str):
        self.base_url = base_url.rstrip("/")
        self.admin_auth = (admin_user, admin_password)

    def _request(
        self,
        method: str,
        path: str,
        expected_status: Iterable[int],
        json_payload: Optional[Dict] = None,
        admin: bool = False,
    ) -> Dict:
        url = f"{self.base_url}{path}"
        response = requests.request(
            method=method,
            url=url,
            json=json_payload,
            auth=self.admin_auth if admin else None,
            timeout=TIMEOUT,
        )
        if response.status_code not in expected_status:
            raise RuntimeError(
                f"{method} {path} returned {response.status_code}: {response.text}"
            )
        try:
            return response.json()
        except ValueError as exc:
            raise RuntimeError(f"Response from {path} was not valid JSON.") from exc

    # Operator -----------------------------------------------------------

    def import_codes(self, prize_type: str, codes: List[str]) -> Dict:
        data = self._request(
            "POST",
            "/api/admin/coupons/",
            {200},
            {"type": prize_type, "codes": codes},
            admin=True,
        )
        print(
            f"[info] imported {data['imported']} {prize_type} codes "
            f"(skipped={data['skipped']}, errors={len(data['errors'])})"
        )
        return data

    def list_coupons(self, **filters: str) -> List[Dict]:
        query = "&".join(f"{key}={value}" for key, value in filters.items())
        path = "/api/admin/coupons/" + (f"?{query}" if query else "")
        return self._request("GET", path, {200}, admin=True)["coupons"]

    def delete_coupon(self, coupon_id: int, expected_status: Iterable[int] = (200,)) -> Dict:
        return self._request(
            "DELETE", f"/api/admin/coupons/{coupon_id}/", set(expected_status), admin=True
        )

    def list_users(self) -> List[Dict]:
        return self._request("GET", "/api/admin/users/", {200}, admin=True)["users"]

    # Visitors -----------------------------------------------------------

    def register(self, visitor: Visitor) -> Dict:
        data = self._request(
            "POST",
            "/api/register/",
            {201},
            {
                "email": visitor.email,
                "first_name": visitor.first_name,
                "last_name": visitor.last_name,
            },
        )
        print(f"[info] registered {visitor.email} (id={data['participant_id']})")
        return data

    def spin(self, email: str, expected_status: Iterable[int] = (200, 503)) -> Dict:
        return self._request("POST", "/api/spin/", set(expected_status), {"email": email})


def scenario_operator_import(client: CampaignClient, run_id: str) -> int:
    print("\n=== Scenario 1: operator imports and prunes stock ===")
    total = 0
    for prize_type in PRIZE_TYPES:
        codes = [f"SIM-{run_id}-{prize_type}-{i}" for i in range(2)]
        result = client.import_codes(prize_type, codes + codes[:1])
        if result["imported"] != 2 or result["duplicates"] != codes[:1]:
            raise RuntimeError(f"Unexpected import result for {prize_type}: {result}")
        total += result["imported"]

    extra = client.import_codes("15_OFF", [f"SIM-{run_id}-EXTRA"])
    if extra["imported"] != 1:
        raise RuntimeError("Extra code was not imported.")
    coupon = next(
        c for c in client.list_coupons(used="false", type="15_OFF")
        if c["code"] == f"SIM-{run_id}-EXTRA"
    )
    client.delete_coupon(coupon["id"])
    client.delete_coupon(coupon["id"], expected_status=(404,))
    print(f"[info] deleted unused coupon {coupon['code']}")
    return total


def scenario_concurrent_spins(client: CampaignClient, run_id: str, visitors: int) -> None:
    print("\n=== Scenario 2: concurrent double-submitted spins ===")
    people = [
        Visitor(f"sim-{run_id}-{i}@example.com", "Sim", f"Visitor {i}")
        for i in range(visitors)
    ]
    for visitor in people:
        client.register(visitor)

    emails = [visitor.email for visitor in people for _ in range(2)]
    with ThreadPoolExecutor(max_workers=8) as pool:
        responses = list(pool.map(client.spin, emails))

    codes_by_email: Dict[str, set] = {}
    for email, response in zip(emails, responses):
        if response.get("success"):
            codes_by_email.setdefault(email, set()).add(response["code"])

    for email, codes in codes_by_email.items():
        if len(codes) != 1:
            raise RuntimeError(f"{email} received more than one code: {codes}")

    # Retry visitors whose both submits were turned away as busy.
    for visitor in people:
        if visitor.email not in codes_by_email:
            response = client.spin(visitor.email, expected_status=(200,))
            codes_by_email[visitor.email] = {response["code"]}

    handed_out = [next(iter(codes)) for codes in codes_by_email.values()]
    if len(handed_out) != len(set(handed_out)):
        raise RuntimeError("The same code was handed out to two visitors.")

    for visitor in people:
        replay = client.spin(visitor.email, expected_status=(200,))
        if not replay["already_spun"] or {replay["code"]} != codes_by_email[visitor.email]:
            raise RuntimeError(f"Replay for {visitor.email} did not return the original prize.")
    print(f"[info] {len(handed_out)} visitors each received exactly one distinct code")

    used = {c["code"] for c in client.list_coupons(used="true")}
    missing = set(handed_out) - used
    if missing:
        raise RuntimeError(f"Handed-out codes not marked used: {missing}")


def scenario_exhaustion(client: CampaignClient, run_id: str) -> None:
    print("\n=== Scenario 3: stock runs out ===")
    for coupon in client.list_coupons(used="false"):
        client.delete_coupon(coupon["id"])

    late = Visitor(f"sim-{run_id}-late@example.com", "Late", "Visitor")
    client.register(late)
    response = client.spin(late.email, expected_status=(409,))
    print(f"[info] late visitor told: {response['error']}")


def main():
    parser = argparse.ArgumentParser(
        description="Simulate spin-the-wheel campaign flows via HTTP requests."
    )
    parser.add_argument(
        "--base-url",
        default="http://localhost:8000",
        help="Root URL of the running Django service (default: http://localhost:8000)",
    )
    parser.add_argument("--admin-user", required=True, help="Campaign admin username")
    parser.add_argument("--admin-password", required=True, help="Campaign admin password")
    parser.add_argument(
        "--visitors",
        type=int,
        default=6,
        help="Number of visitors spinning concurrently (default: 6, at most 10)",
    )
    args = parser.parse_args()

    client = CampaignClient(args.base_url, args.admin_user, args.admin_password)
    run_id = uuid.uuid4().hex[:8]
    try:
        stocked = scenario_operator_import(client, run_id)
        scenario_concurrent_spins(client, run_id, min(args.visitors, stocked))
        scenario_exhaustion(client, run_id)
    except Exception as exc:
        print(f"[error] {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    print("\n[info] All scenarios completed successfully.")


if __name__ == "__main__":
    main()
