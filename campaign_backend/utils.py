from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import parse_qs, urlparse


def database_from_url(url: Optional[str], base_dir: Path) -> Dict[str, Any]:
    """Build a Django ``DATABASES['default']`` entry from ``DATABASE_URL``.

    Supports mysql:// and mariadb:// URLs. Without a URL a local SQLite file is used.
    """

    if not url:
        # IMMEDIATE takes the write lock at BEGIN, so concurrent spins queue on
        # the busy timeout instead of failing on a read-to-write upgrade.
        return {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": base_dir / "db.sqlite3",
            "OPTIONS": {
                "transaction_mode": "IMMEDIATE",
                "timeout": 20,
            },
            "TEST": {
                "NAME": base_dir / "test_db.sqlite3",
            },
        }

    parsed = urlparse(url)
    if parsed.scheme not in {"mysql", "mariadb"}:
        raise ValueError("DATABASE_URL must use mysql:// or mariadb://")

    qs = parse_qs(parsed.query)
    charset = (qs.get("charset", ["utf8mb4"]) or ["utf8mb4"])[0]
    return {
        "ENGINE": "django.db.backends.mysql",
        "NAME": (parsed.path or "/").lstrip("/"),
        "USER": parsed.username or "",
        "PASSWORD": parsed.password or "",
        "HOST": parsed.hostname or "localhost",
        "PORT": str(parsed.port or 3306),
        "OPTIONS": {
            "charset": charset,
            "isolation_level": "read committed",
        },
    }


def env_int(value: Optional[str], default: Optional[int] = None) -> Optional[int]:
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"Expected an integer setting, got {value!r}") from exc
