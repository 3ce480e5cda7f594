"""Summary: Application configuration for ActionPilot.

Importance: Centralizes environment, .env, and config defaults for consistent behavior.
Alternatives: Use a dedicated settings library like Pydantic Settings.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from dataclasses import dataclass


@dataclass(frozen=True)
class AppConfig:
    """Summary: Holds configuration values for the AI provider and action backends.

    Importance: Ensures all services derive settings from a single source of truth.
    Alternatives: Store settings in a shared config file and parse at startup.
    """

    ai_provider: str
    openai_api_key: str | None
    openai_model: str
    ollama_url: str
    ollama_model: str
    calendar_provider: str
    ics_path: str
    email_provider: str
    outbox_dir: str
    smtp_host: str | None
    smtp_port: int
    smtp_user: str | None
    smtp_password: str | None
    sender_address: str
    api_key: str

    @staticmethod
    def from_env() -> "AppConfig":
        """Summary: Build configuration from defaults, .env, and environment.

        Importance: Keeps all variables defined in config defaults while allowing overrides.
        Alternatives: Parse only environment variables without a defaults file.
        """

        defaults = load_defaults(Path("config") / "defaults.json")
        load_dotenv(Path(".env"))
        return AppConfig(
            ai_provider=os.getenv("ACTIONPILOT_AI_PROVIDER", defaults["ai_provider"]),
            openai_api_key=os.getenv("OPENAI_API_KEY") or defaults["openai_api_key"] or None,
            openai_model=os.getenv("OPENAI_MODEL", defaults["openai_model"]),
            ollama_url=os.getenv("OLLAMA_URL", defaults["ollama_url"]),
            ollama_model=os.getenv("OLLAMA_MODEL", defaults["ollama_model"]),
            calendar_provider=os.getenv(
                "ACTIONPILOT_CALENDAR_PROVIDER", defaults["calendar_provider"]
            ),
            ics_path=os.getenv("ACTIONPILOT_ICS_PATH", defaults["ics_path"]),
            email_provider=os.getenv("ACTIONPILOT_EMAIL_PROVIDER", defaults["email_provider"]),
            outbox_dir=os.getenv("ACTIONPILOT_OUTBOX_DIR", defaults["outbox_dir"]),
            smtp_host=os.getenv("ACTIONPILOT_SMTP_HOST") or defaults["smtp_host"] or None,
            smtp_port=int(os.getenv("ACTIONPILOT_SMTP_PORT", defaults["smtp_port"])),
            smtp_user=os.getenv("ACTIONPILOT_SMTP_USER") or defaults["smtp_user"] or None,
            smtp_password=os.getenv("ACTIONPILOT_SMTP_PASSWORD") or defaults["smtp_password"] or None,
            sender_address=os.getenv("ACTIONPILOT_SENDER_ADDRESS", defaults["sender_address"]),
            api_key=os.getenv("ACTIONPILOT_API_KEY", defaults["api_key"]),
        )


def load_defaults(path: Path) -> dict[str, str]:
    """Summary: Load configuration defaults from JSON.

    Importance: Ensures all variables exist in a single config file.
    Alternatives: Inline defaults in the AppConfig initializer.
    """

    if not path.exists():
        raise FileNotFoundError(f"Defaults file not found: {path}")
    return json.loads(path.read_text(encoding="utf-8"))


def load_dotenv(path: Path) -> None:
    """Summary: Load key-value pairs from a .env file into the environment.

    Importance: Keeps secrets out of code while supporting local workflows.
    Alternatives: Use python-dotenv or OS-specific secret stores.
    """

    if not path.exists():
        return
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        os.environ.setdefault(key.strip(), value.strip())
