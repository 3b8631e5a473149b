from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Coupon",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "code",
                    models.CharField(
                        help_text="Case-sensitive code handed to the winning participant.",
                        max_length=255,
                        unique=True,
                    ),
                ),
                (
                    "prize_type",
                    models.CharField(
                        choices=[
                            ("HEMA_regenponcho", "HEMA regenponcho"),
                            ("50_CREDIT", "€50 shoptegoed"),
                            ("250_CREDIT", "€250 shoptegoed"),
                            ("15_OFF", "15% korting"),
                            ("100_CREDIT", "€100 shoptegoed"),
                        ],
                        max_length=32,
                    ),
                ),
                (
                    "display_name",
                    models.CharField(
                        help_text="Prize label captured at import time.",
                        max_length=255,
                    ),
                ),
                ("used", models.BooleanField(default=False)),
                ("used_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(
                        fields=["prize_type", "used"], name="coupons_type_used_idx"
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("used", False), ("used_at__isnull", True)),
                            models.Q(("used", True), ("used_at__isnull", False)),
                            _connector="OR",
                        ),
                        name="coupons_used_at_matches_used",
                    ),
                ],
            },
        ),
    ]
