"""Application settings.

Settings are read once from the environment and passed explicitly to the
database factory, the HTTP app and the CLI context.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Runtime configuration for hera.

    Attributes:
        database_url: SQLAlchemy URL. None means the default SQLite file under
            ~/.hera/hera.db
        default_organization_id: Organization used when a caller omits one
            (CLI only; the HTTP API always requires the header)
        whatsapp_api_key: Credential for the WhatsApp integration
        resend_api_key: Credential for the email integration
        log_level: Root log level name
        log_format: "console" or "json"
        echo_sql: Log emitted SQL statements
        host: Bind address for `hera serve`
        port: Bind port for `hera serve`
    """

    database_url: Optional[str] = None
    default_organization_id: Optional[str] = None
    whatsapp_api_key: Optional[str] = None
    resend_api_key: Optional[str] = None
    log_level: str = "INFO"
    log_format: str = "console"
    echo_sql: bool = False
    host: str = "127.0.0.1"
    port: int = 8000

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from HERA_* environment variables.

        Args:
            environ: Mapping to read instead of os.environ

        Raises:
            ValueError: If HERA_LOG_FORMAT or HERA_PORT is invalid
        """
        env = os.environ if environ is None else environ

        log_format = env.get("HERA_LOG_FORMAT", "console").lower()
        if log_format not in ("console", "json"):
            raise ValueError(f"HERA_LOG_FORMAT must be 'console' or 'json', got '{log_format}'")

        port_value = env.get("HERA_PORT", "8000")
        try:
            port = int(port_value)
        except ValueError:
            raise ValueError(f"HERA_PORT must be an integer, got '{port_value}'")

        return cls(
            database_url=env.get("HERA_DATABASE_URL") or None,
            default_organization_id=env.get("HERA_DEFAULT_ORGANIZATION_ID") or None,
            whatsapp_api_key=env.get("HERA_WHATSAPP_API_KEY") or None,
            resend_api_key=env.get("HERA_RESEND_API_KEY") or None,
            log_level=env.get("HERA_LOG_LEVEL", "INFO").upper(),
            log_format=log_format,
            echo_sql=env.get("HERA_ECHO_SQL", "").lower() in _TRUE_VALUES,
            host=env.get("HERA_HOST", "127.0.0.1"),
            port=port,
        )
