from django.db import migrations

BINARY_COLLATION = "utf8mb4_bin"


def use_binary_collation(apps, schema_editor):
    """Make ``code`` uniqueness and lookups case-sensitive on MySQL/MariaDB.

    Their default utf8mb4 collations ignore case, so ``ABC`` and ``abc`` would
    collide. SQLite and PostgreSQL already compare codes byte for byte.
    """

    if schema_editor.connection.vendor != "mysql":
        return
    Coupon = apps.get_model("coupons", "Coupon")
    quote = schema_editor.quote_name
    schema_editor.execute(
        f"ALTER TABLE {quote(Coupon._meta.db_table)} "
        f"MODIFY {quote('code')} varchar(255) "
        f"CHARACTER SET utf8mb4 COLLATE {BINARY_COLLATION} NOT NULL"
    )


class Migration(migrations.Migration):
    dependencies = [
        ("coupons", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(use_binary_collation, migrations.RunPython.noop),
    ]
