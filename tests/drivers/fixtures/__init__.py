"""Test fixtures package."""

from .scripted_driver import (
    RecordingExtension,
    ScriptedMySQLDriver,
    ScriptedTransportMixin,
    create_mysql_catalog_driver,
)

__all__ = [
    "RecordingExtension",
    "ScriptedMySQLDriver",
    "ScriptedTransportMixin",
    "create_mysql_catalog_driver",
]
