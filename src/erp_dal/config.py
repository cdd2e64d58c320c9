import logging
import ssl
from dataclasses import dataclass
from typing import Optional, Union

from common.config.env import (
    get_env_bool,
    get_env_choice,
    get_env_float,
    get_env_int,
    get_env_str,
)
from erp_dal.translation import LOCALTIME_LEGACY, LOCALTIME_MODES

logger = logging.getLogger(__name__)

SSL_DISABLE = "disable"
SSL_REQUIRE = "require"
SSL_VERIFY_FULL = "verify-full"
SSL_MODES = frozenset({SSL_DISABLE, SSL_REQUIRE, SSL_VERIFY_FULL})


@dataclass(frozen=True)
class DatabaseConfig:
    """Connection-pool settings for the PostgreSQL backend."""

    dsn: str
    min_size: int = 1
    max_size: int = 20
    acquire_timeout_seconds: float = 10.0
    idle_timeout_seconds: float = 30.0
    command_timeout_seconds: Optional[float] = None
    ssl_mode: str = SSL_REQUIRE
    statement_cache_size: int = 100
    application_name: str = "erp_dal"
    localtime_mode: str = LOCALTIME_LEGACY
    text_params: bool = True

    def __post_init__(self) -> None:
        if not self.dsn:
            raise ValueError("Database DSN must not be empty. Set DATABASE_URL.")
        if self.min_size < 0 or self.max_size < 1 or self.min_size > self.max_size:
            raise ValueError(
                f"Invalid pool bounds: min_size={self.min_size}, max_size={self.max_size}."
            )
        if self.acquire_timeout_seconds <= 0:
            raise ValueError("acquire_timeout_seconds must be positive.")
        if self.ssl_mode not in SSL_MODES:
            raise ValueError(f"Unknown ssl_mode '{self.ssl_mode}'.")
        if self.localtime_mode not in LOCALTIME_MODES:
            raise ValueError(f"Unknown localtime_mode '{self.localtime_mode}'.")

    @classmethod
    def from_env(cls) -> "DatabaseConfig":
        """Load pool configuration from environment variables."""
        dsn = get_env_str("DATABASE_URL")
        if not dsn:
            raise ValueError("DATABASE_URL is not set; cannot configure the database pool.")

        return cls(
            dsn=dsn,
            min_size=get_env_int("ERP_DB_POOL_MIN_SIZE", 1),
            max_size=get_env_int("ERP_DB_POOL_MAX_SIZE", 20),
            acquire_timeout_seconds=get_env_float("ERP_DB_ACQUIRE_TIMEOUT_SECS", 10.0),
            idle_timeout_seconds=get_env_float("ERP_DB_IDLE_TIMEOUT_SECS", 30.0),
            command_timeout_seconds=get_env_float("ERP_DB_COMMAND_TIMEOUT_SECS"),
            ssl_mode=get_env_choice("ERP_DB_SSL_MODE", SSL_REQUIRE, SSL_MODES),
            statement_cache_size=get_env_int("ERP_DB_STATEMENT_CACHE_SIZE", 100),
            application_name=get_env_str("ERP_DB_APPLICATION_NAME", "erp_dal"),
            localtime_mode=get_env_choice(
                "ERP_DB_LOCALTIME_MODE", LOCALTIME_LEGACY, LOCALTIME_MODES
            ),
            text_params=get_env_bool("ERP_DB_TEXT_PARAMS", True),
        )

    def build_ssl(self) -> Union[bool, ssl.SSLContext]:
        """Return the ``ssl`` argument for ``asyncpg.create_pool``."""
        if self.ssl_mode == SSL_DISABLE:
            return False
        if self.ssl_mode == SSL_VERIFY_FULL:
            return ssl.create_default_context()
        logger.warning(
            "TLS certificate verification is disabled for the database connection "
            "(ERP_DB_SSL_MODE=require). Use verify-full where the server certificate is trusted."
        )
        context = ssl.create_default_context()
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
        return context
