"""
Configuration module for the Adyen Notifications service.

Loads settings from environment variables with sensible defaults.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


@dataclass
class DatabaseConfig:
    """Database connection configuration."""
    url: str


@dataclass
class AdyenConfig:
    """Merchant account configuration."""
    default_account: str
    store_account_map: Dict[str, str] = field(default_factory=dict)
    map_errors: List[str] = field(default_factory=list)


@dataclass
class APIConfig:
    """API server configuration."""
    host: str
    port: int


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str
    file: Optional[str]


@dataclass
class ServiceConfig:
    """Service-level configuration."""
    name: str
    shutdown_timeout: int


def parse_account_map(raw: str) -> Tuple[Dict[str, str], List[str]]:
    """
    Parse a store account map from its environment form.

    The expected format is comma-separated ``code=Account`` pairs, e.g.
    ``us=MerchantUS,eu=MerchantEU``.

    Args:
        raw: Raw environment value

    Returns:
        Tuple of (mapping, list of malformed entries)
    """
    mapping: Dict[str, str] = {}
    malformed: List[str] = []

    for entry in raw.split(','):
        entry = entry.strip()
        if not entry:
            continue

        code, sep, account = entry.partition('=')
        code, account = code.strip(), account.strip()
        if not sep or not code or not account:
            malformed.append(entry)
            continue

        mapping[code] = account

    return mapping, malformed


class Config:
    """
    Main configuration class that aggregates all config sections.

    Usage:
        from config import config

        print(config.database.url)
        print(config.adyen.default_account)
    """

    def __init__(self):
        self._load_config()

    def _load_config(self):
        """Load all configuration from environment variables."""

        # Database configuration
        self.database = DatabaseConfig(
            url=os.getenv('DATABASE_URL', 'sqlite:///./adyen_notifications.db')
        )

        # Merchant account configuration
        store_account_map, map_errors = parse_account_map(
            os.getenv('ADYEN_STORE_ACCOUNT_MAP', '')
        )
        self.adyen = AdyenConfig(
            default_account=os.getenv('ADYEN_MERCHANT_ACCOUNT', ''),
            store_account_map=store_account_map,
            map_errors=map_errors
        )

        # API configuration
        self.api = APIConfig(
            host=os.getenv('API_HOST', '0.0.0.0'),
            port=int(os.getenv('API_PORT', '8000'))
        )

        # Logging configuration
        self.logging = LoggingConfig(
            level=os.getenv('LOG_LEVEL', 'INFO'),
            file=os.getenv('LOG_FILE')
        )

        # Service configuration
        self.service = ServiceConfig(
            name=os.getenv('SERVICE_NAME', 'AdyenNotifications'),
            shutdown_timeout=int(os.getenv('SHUTDOWN_TIMEOUT', '30'))
        )

    def validate(self) -> List[str]:
        """
        Validate required configuration values.

        Returns:
            List of validation error messages (empty if all valid)
        """
        errors = []

        if not self.database.url:
            errors.append("DATABASE_URL is required")

        if not self.adyen.default_account:
            errors.append("ADYEN_MERCHANT_ACCOUNT is required")

        for entry in self.adyen.map_errors:
            errors.append(
                f"ADYEN_STORE_ACCOUNT_MAP entry '{entry}' must look like code=Account"
            )

        return errors

    def is_valid(self) -> bool:
        """Check if configuration is valid."""
        return len(self.validate()) == 0


# Global configuration instance
config = Config()
