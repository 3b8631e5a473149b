import json
from unittest import mock

from django.test import Client, TestCase

from coupons.models import Coupon, PrizeType
from coupons.services import import_codes
from participants.services import register
from spin.locks import SpinLockError


class SpinAPITests(TestCase):
    def setUp(self) -> None:
        self.client = Client()
        register("anna@example.com", "Anna", "de Vries")

    def spin(self, email):
        return self.client.post(
            "/api/spin/", data=json.dumps({"email": email}), content_type="application/json"
        )

    def test_spin_returns_prize(self) -> None:
        import_codes(PrizeType.CREDIT_250, ["SHOP250-A"])

        response = self.spin("Anna@example.com")

        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertTrue(payload["success"])
        self.assertFalse(payload["already_spun"])
        self.assertEqual(payload["code"], "SHOP250-A")
        self.assertEqual(payload["prize_type"], "250_CREDIT")
        self.assertEqual(payload["display_name"], "€250 shoptegoed")
        self.assertEqual(payload["prize_index"], 2)
        self.assertIn("€250 shoptegoed", payload["message"])

    def test_second_spin_returns_original_prize(self) -> None:
        import_codes(PrizeType.OFF_15, ["KORTING15-A", "KORTING15-B"])

        first = self.spin("anna@example.com").json()
        second = self.spin("anna@example.com")

        self.assertEqual(second.status_code, 200)
        self.assertTrue(second.json()["already_spun"])
        self.assertEqual(second.json()["code"], first["code"])
        self.assertEqual(Coupon.objects.filter(used=True).count(), 1)

    def test_unregistered_email(self) -> None:
        import_codes(PrizeType.OFF_15, ["KORTING15-A"])

        response = self.spin("nobody@example.com")

        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.json()["success"])

    def test_no_prizes_left(self) -> None:
        response = self.spin("anna@example.com")

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["error"], "No prizes are left.")

    def test_missing_email(self) -> None:
        response = self.client.post("/api/spin/", data="{}", content_type="application/json")
        self.assertEqual(response.status_code, 400)

    def test_busy_lock_is_reported_as_unavailable(self) -> None:
        import_codes(PrizeType.OFF_15, ["KORTING15-A"])

        with mock.patch(
            "spin.views.participant_spin_lock",
            side_effect=SpinLockError("A spin for this participant is already in progress."),
        ):
            response = self.spin("anna@example.com")

        self.assertEqual(response.status_code, 503)
        self.assertFalse(Coupon.objects.get(code="KORTING15-A").used)


class PrizeListAPITests(TestCase):
    def test_lists_wheel_and_available_prizes(self) -> None:
        import_codes(PrizeType.CREDIT_100, ["SHOP100-A"])

        response = Client().get("/api/prizes/")

        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(
            [prize["type"] for prize in payload["prizes"]],
            ["HEMA_regenponcho", "50_CREDIT", "250_CREDIT", "15_OFF", "100_CREDIT"],
        )
        self.assertEqual(
            payload["available"],
            [{"type": "100_CREDIT", "display_name": "€100 shoptegoed"}],
        )
