from pathlib import Path

from django.core.management.base import BaseCommand, CommandError

from coupons.csv_codes import parse_codes
from coupons.models import PrizeType
from coupons.services import CouponImportError, import_codes


class Command(BaseCommand):
    help = "Import promocodes for one prize type from a CSV file."

    def add_arguments(self, parser):
        parser.add_argument(
            "prize_type",
            choices=PrizeType.values,
            help="Prize type the codes belong to.",
        )
        parser.add_argument("csv_path", help="Path to CSV file (codes in the first column)")
        parser.add_argument(
            "--encoding",
            default="utf-8-sig",
            help="CSV encoding (default: utf-8-sig)",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Parse CSV only, do not touch the database.",
        )

    def handle(self, *args, **options):
        csv_path = Path(options["csv_path"]).expanduser()
        if not csv_path.exists():
            raise CommandError(f"CSV file not found: {csv_path}")

        try:
            text = csv_path.read_text(encoding=options["encoding"])
        except UnicodeDecodeError as exc:
            raise CommandError(f"Failed to decode CSV. Try another --encoding. Details: {exc}")

        codes = parse_codes(text)
        if not codes:
            raise CommandError("No valid promocodes found in the CSV file.")

        if options["dry_run"]:
            self.stdout.write(f"Dry-run: parsed {len(codes)} codes.")
            return

        try:
            result = import_codes(options["prize_type"], codes)
        except CouponImportError as exc:
            raise CommandError(str(exc))

        for duplicate in result.duplicates:
            self.stdout.write(f"  {duplicate} already exists, skipping")
        for error in result.errors:
            self.stderr.write(f"  {error}")

        self.stdout.write(
            self.style.SUCCESS(
                f"Imported {result.imported} codes from {csv_path} "
                f"({result.skipped} skipped, {len(result.errors)} errors)."
            )
        )
