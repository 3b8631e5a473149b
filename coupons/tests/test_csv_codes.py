import csv
import io
import tempfile
from pathlib import Path

from django.core.management import CommandError, call_command
from django.test import SimpleTestCase, TestCase

from coupons.csv_codes import export_coupons, export_participants, parse_codes
from coupons.models import Coupon, PrizeType
from coupons.services import import_codes
from participants.services import list_participants, register


class ParseCodesTests(SimpleTestCase):
    def test_header_row_is_skipped(self):
        text = "Promocode,Note\nCODE-1,first\nCODE-2,second\n"

        self.assertEqual(parse_codes(text), ["CODE-1", "CODE-2"])

    def test_header_only_recognized_on_first_line(self):
        text = "CODE-1\npromocode-lookalike\n"

        self.assertEqual(parse_codes(text), ["CODE-1", "promocode-lookalike"])

    def test_quotes_blank_lines_and_crlf(self):
        text = '"CODE-1",x\r\n\r\n  \'CODE-2\'  \r\n   \r\n'

        self.assertEqual(parse_codes(text), ["CODE-1", "CODE-2"])

    def test_empty_first_column_is_ignored(self):
        self.assertEqual(parse_codes(",orphan\nCODE-1"), ["CODE-1"])

    def test_quoted_code_keeps_its_comma(self):
        text = 'promocode,note\n"GIFT,2024",seasonal\nPLAIN-1\n'

        self.assertEqual(parse_codes(text), ["GIFT,2024", "PLAIN-1"])

    def test_header_after_leading_blank_lines_is_skipped(self):
        text = "\n   \nPromocode\nCODE-1\n"

        self.assertEqual(parse_codes(text), ["CODE-1"])


class ExportTests(TestCase):
    def test_coupon_export(self):
        import_codes(PrizeType.OFF_15, ["KORTING15-A"])

        rows = list(csv.reader(io.StringIO(export_coupons(Coupon.objects.all()))))

        self.assertEqual(rows[0], ["Code", "Type", "Name", "Status", "Used At", "Created At"])
        self.assertEqual(rows[1][:5], ["KORTING15-A", "15_OFF", "15% korting", "Available", "-"])

    def test_participant_export_without_coupon(self):
        register("anna@example.com", "Anna", "de Vries")

        rows = list(csv.reader(io.StringIO(export_participants(list_participants()))))

        self.assertEqual(
            rows[0],
            ["Name", "Email", "Coupon Type", "Coupon Code", "Won At", "Registered At"],
        )
        self.assertEqual(rows[1][:5], ["Anna de Vries", "anna@example.com", "-", "-", "-"])


class ImportCouponsCommandTests(TestCase):
    def setUp(self):
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.csv_path = Path(self.tmp_dir.name) / "codes.csv"

    def tearDown(self):
        self.tmp_dir.cleanup()

    def test_imports_codes_from_csv(self):
        self.csv_path.write_text("promocode\nPONCHO-1\nPONCHO-2\nPONCHO-1\n", encoding="utf-8")
        out = io.StringIO()

        call_command("import_coupons", "HEMA_regenponcho", str(self.csv_path), stdout=out)

        self.assertEqual(Coupon.objects.filter(prize_type="HEMA_regenponcho").count(), 2)
        self.assertIn("Imported 2 codes", out.getvalue())
        self.assertIn("PONCHO-1 already exists", out.getvalue())

    def test_dry_run_does_not_write(self):
        self.csv_path.write_text("PONCHO-1\n", encoding="utf-8")
        out = io.StringIO()

        call_command(
            "import_coupons", "HEMA_regenponcho", str(self.csv_path), "--dry-run", stdout=out
        )

        self.assertEqual(Coupon.objects.count(), 0)
        self.assertIn("parsed 1 codes", out.getvalue())

    def test_missing_file(self):
        with self.assertRaises(CommandError):
            call_command("import_coupons", "15_OFF", str(self.csv_path))
