# grovi/config/settings.py
from __future__ import annotations

import os
import re
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./grovi.db"


def _to_int(value: str, key_name: str) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise RuntimeError(f"Invalid integer for {key_name}: {value!r}") from e


def _parse_email_list(raw: str | None) -> list[str]:
    """
    Parses comma/space/newline separated emails.
    Accepts:
      "a@shop.com"
      "a@shop.com,b@shop.com"
      "a@shop.com b@shop.com"
      "[a@shop.com, b@shop.com]"  (brackets ignored)
    Emails are lowercased (user identity key).
    """
    if not raw:
        return []

    cleaned = raw.strip().strip("[](){}").strip()
    if not cleaned:
        return []

    out: list[str] = []
    for p in re.split(r"[,\s]+", cleaned):
        p2 = p.strip().strip("'\"").lower()
        if p2:
            out.append(p2)
    return out


@dataclass(frozen=True, slots=True)
class Settings:
    database_url: str = DEFAULT_DATABASE_URL

    # --- security / admin ---
    root_admin_emails: tuple[str, ...] = ()

    # --- economy ---
    config_refresh_seconds: int = 60  # 0 disables the refresh job
    write_retries: int = 3
    sqlite_busy_timeout_ms: int = 30000

    # --- http ---
    host: str = "0.0.0.0"
    port: int = 5000

    # --- environment ---
    environment: str = "production"  # production | development

    @property
    def is_dev(self) -> bool:
        return self.environment.lower() in {"dev", "development", "local"}

    @classmethod
    def load(cls) -> "Settings":
        """
        Loads from process env (and .env if present).
        Fails fast on malformed numbers.
        """
        load_dotenv()
        env = os.environ

        database_url = (env.get("DATABASE_URL") or DEFAULT_DATABASE_URL).strip()
        root_admin_emails = tuple(_parse_email_list(env.get("ROOT_ADMIN_EMAILS")))

        refresh_raw = (env.get("CONFIG_REFRESH_SECONDS") or "").strip()
        config_refresh_seconds = (
            _to_int(refresh_raw, "CONFIG_REFRESH_SECONDS") if refresh_raw else 60
        )

        retries_raw = (env.get("WRITE_RETRIES") or "").strip()
        write_retries = _to_int(retries_raw, "WRITE_RETRIES") if retries_raw else 3
        if write_retries < 1:
            raise RuntimeError(f"WRITE_RETRIES must be >= 1, got {write_retries}")

        busy_raw = (env.get("SQLITE_BUSY_TIMEOUT_MS") or "").strip()
        sqlite_busy_timeout_ms = (
            _to_int(busy_raw, "SQLITE_BUSY_TIMEOUT_MS") if busy_raw else 30000
        )

        host = (env.get("HOST") or "0.0.0.0").strip() or "0.0.0.0"
        port_raw = (env.get("PORT") or "").strip()
        port = _to_int(port_raw, "PORT") if port_raw else 5000

        environment = (env.get("ENVIRONMENT") or "production").strip() or "production"

        return cls(
            database_url=database_url,
            root_admin_emails=root_admin_emails,
            config_refresh_seconds=config_refresh_seconds,
            write_retries=write_retries,
            sqlite_busy_timeout_ms=sqlite_busy_timeout_ms,
            host=host,
            port=port,
            environment=environment,
        )
