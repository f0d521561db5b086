"""
Configuration management for the USAA network status API.

Loads settings from environment variables with sensible defaults.
All configuration is centralized here to avoid magic strings scattered
throughout the codebase.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class DatabaseConfig:
    """Database configuration for the SQL-backed key-value store."""
    url: str = os.getenv('DATABASE_URL', 'sqlite:///usaa.db')

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith('sqlite')


@dataclass(frozen=True)
class StoreConfig:
    """Key-value store selection and write fan-out."""
    backend: str = os.getenv('STORE_BACKEND', 'sql').lower()

    # Threads used to issue independent store calls in parallel
    write_workers: int = int(os.getenv('STORE_WRITE_WORKERS', '4'))

    @property
    def is_memory(self) -> bool:
        return self.backend == 'memory'


@dataclass(frozen=True)
class ApiConfig:
    """HTTP boundary settings."""
    max_content_length: int = int(os.getenv('MAX_CONTENT_LENGTH', '16384'))
    port: int = int(os.getenv('PORT', '5000'))


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration."""
    database: DatabaseConfig
    store: StoreConfig
    api: ApiConfig

    # Flask settings
    secret_key: str
    debug: bool

    # Explicit log level (None = DEBUG when debugging, else INFO)
    log_level: Optional[str]


def load_config() -> AppConfig:
    """Load and validate all configuration."""
    return AppConfig(
        database=DatabaseConfig(),
        store=StoreConfig(),
        api=ApiConfig(),
        secret_key=os.getenv('SECRET_KEY', 'dev-key-change-in-prod'),
        debug=os.getenv('FLASK_DEBUG', '0') == '1',
        log_level=os.getenv('LOG_LEVEL', '').upper() or None,
    )


# Singleton instance
config = load_config()
