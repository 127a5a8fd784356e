"""Configuration management for sqldeck."""

import os
from pathlib import Path
from pydantic_settings import BaseSettings
from pydantic import Field
from typing import Optional


def _find_env_file() -> Optional[str]:
    """Find .env file in multiple locations.

    Search order:
    1. Current working directory
    2. ~/.sqldeck/.env
    3. Package directory (where this file is located)
    """
    if os.path.exists(".env"):
        return ".env"

    user_env = Path.home() / ".sqldeck" / ".env"
    if user_env.exists():
        return str(user_env)

    package_dir = Path(__file__).parent.parent
    package_env = package_dir / ".env"
    if package_env.exists():
        return str(package_env)

    return None


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # MySQL-family connection
    mysql_host: str = Field(default="localhost", description="MySQL server host")
    mysql_port: int = Field(default=3306, description="MySQL server port")
    mysql_user: Optional[str] = Field(default=None, description="MySQL user")
    mysql_password: Optional[str] = Field(default=None, description="MySQL password")
    mysql_database: Optional[str] = Field(
        default=None,
        description="Database selected after connecting (optional)"
    )

    # SQLite-family connection
    sqlite_path: str = Field(
        default=":memory:",
        description="Path to a local SQLite database file"
    )
    libsql_url: Optional[str] = Field(
        default=None,
        description="libSQL server URL (libsql://, https:// or http://)"
    )
    libsql_auth_token: Optional[str] = Field(
        default=None,
        description="Bearer token for the libSQL server"
    )

    # Driver behaviour
    big_int: bool = Field(
        default=False,
        description="Keep wide integers exact instead of converting them to plain numbers"
    )
    strict_foreign_keys: bool = Field(
        default=True,
        description="Reject composite foreign keys whose rows disagree on the referenced table"
    )
    introspection_workers: int = Field(
        default=4,
        description="Number of catalog queries issued concurrently on thread-safe transports"
    )
    query_timeout: float = Field(
        default=30.0,
        description="HTTP timeout in seconds for remote drivers"
    )

    # Query history configuration
    history_enabled: bool = Field(
        default=True,
        description="Record executed statements in the history database"
    )
    history_db_path: Optional[str] = Field(
        default=None,
        description="Path to query history database file (default: ~/.sqldeck/history.db)"
    )
    history_retention_days: int = Field(
        default=30,
        description="Number of days to retain query history entries"
    )
    history_max_sql_size: int = Field(
        default=10000,
        description="Maximum size of statement text stored in history"
    )

    class Config:
        env_file = _find_env_file()
        env_file_encoding = "utf-8"


# Global settings instance
settings = Settings()
