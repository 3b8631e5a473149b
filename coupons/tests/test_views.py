import base64
import json

from django.test import Client, TestCase, override_settings

from coupons.models import Coupon, PrizeType
from coupons.services import import_codes


def basic_auth(username: str, password: str) -> str:
    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


@override_settings(ADMIN_USERNAME="admin", ADMIN_PASSWORD="s3cret")
class CouponAdminAPITests(TestCase):
    def setUp(self) -> None:
        self.client = Client(HTTP_AUTHORIZATION=basic_auth("admin", "s3cret"))

    def post_json(self, path: str, payload):
        return self.client.post(path, data=json.dumps(payload), content_type="application/json")

    def test_requires_credentials(self) -> None:
        response = Client().get("/api/admin/coupons/")
        self.assertEqual(response.status_code, 401)

        wrong = Client(HTTP_AUTHORIZATION=basic_auth("admin", "nope"))
        self.assertEqual(wrong.get("/api/admin/coupons/").status_code, 401)

    @override_settings(ADMIN_PASSWORD=None)
    def test_unconfigured_credentials_reject_everyone(self) -> None:
        response = self.client.get("/api/admin/coupons/")
        self.assertEqual(response.status_code, 401)

    def test_import_reports_duplicates(self) -> None:
        response = self.post_json(
            "/api/admin/coupons/", {"type": "50_CREDIT", "codes": ["A1", "A1", "B2"]}
        )

        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertTrue(payload["success"])
        self.assertEqual(payload["imported"], 2)
        self.assertEqual(payload["skipped"], 1)
        self.assertEqual(payload["duplicates"], ["A1"])
        self.assertEqual(payload["errors"], [])

    def test_import_from_csv_text(self) -> None:
        response = self.post_json(
            "/api/admin/coupons/",
            {"type": "15_OFF", "csv": "promocode\nKORTING15-A\nKORTING15-B\n"},
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["imported"], 2)

    def test_import_validates_payload(self) -> None:
        response = self.post_json("/api/admin/coupons/", {"type": "FREE_CAR", "codes": ["X"]})
        self.assertEqual(response.status_code, 400)

        response = self.post_json("/api/admin/coupons/", {"type": "15_OFF", "codes": []})
        self.assertEqual(response.status_code, 400)

        response = self.post_json("/api/admin/coupons/", {"type": "15_OFF", "codes": "X"})
        self.assertEqual(response.status_code, 400)

        response = self.client.post(
            "/api/admin/coupons/", data="{not json", content_type="application/json"
        )
        self.assertEqual(response.status_code, 400)

    def test_single_import_and_duplicate(self) -> None:
        response = self.post_json(
            "/api/admin/coupons/single/", {"type": "100_CREDIT", "code": "SHOP100-A"}
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["coupon"]["code"], "SHOP100-A")

        response = self.post_json(
            "/api/admin/coupons/single/", {"type": "100_CREDIT", "code": "SHOP100-A"}
        )
        self.assertEqual(response.status_code, 409)
        self.assertIn("already exists", response.json()["error"])

    def test_list_with_filters(self) -> None:
        import_codes(PrizeType.CREDIT_50, ["SHOP50-A", "SHOP50-B"])
        import_codes(PrizeType.OFF_15, ["KORTING15-A"])
        coupon = Coupon.objects.get(code="SHOP50-A")
        Coupon.objects.filter(pk=coupon.pk).update(used=True, used_at=coupon.created_at)

        response = self.client.get("/api/admin/coupons/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()["coupons"]), 3)

        response = self.client.get("/api/admin/coupons/", {"used": "false", "type": "50_CREDIT"})
        coupons = response.json()["coupons"]
        self.assertEqual([c["code"] for c in coupons], ["SHOP50-B"])
        self.assertEqual(coupons[0]["display_name"], "€50 shoptegoed")
        self.assertFalse(coupons[0]["used"])

        response = self.client.get("/api/admin/coupons/", {"used": "true"})
        self.assertEqual([c["code"] for c in response.json()["coupons"]], ["SHOP50-A"])

    def test_delete_unused_and_used(self) -> None:
        import_codes(PrizeType.CREDIT_50, ["SHOP50-A", "SHOP50-B"])
        unused = Coupon.objects.get(code="SHOP50-A")
        used = Coupon.objects.get(code="SHOP50-B")
        Coupon.objects.filter(pk=used.pk).update(used=True, used_at=used.created_at)

        response = self.client.delete(f"/api/admin/coupons/{unused.pk}/")
        self.assertEqual(response.status_code, 200)
        self.assertFalse(Coupon.objects.filter(pk=unused.pk).exists())

        response = self.client.delete(f"/api/admin/coupons/{used.pk}/")
        self.assertEqual(response.status_code, 409)
        self.assertTrue(Coupon.objects.filter(pk=used.pk).exists())

        response = self.client.delete(f"/api/admin/coupons/{unused.pk}/")
        self.assertEqual(response.status_code, 404)

    def test_export_csv(self) -> None:
        import_codes(PrizeType.HEMA_REGENPONCHO, ["PONCHO-A"])

        response = self.client.get("/api/admin/coupons/export/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response["Content-Type"], "text/csv; charset=utf-8")
        self.assertIn("attachment;", response["Content-Disposition"])
        self.assertIn('"PONCHO-A","HEMA_regenponcho"', response.content.decode("utf-8"))
