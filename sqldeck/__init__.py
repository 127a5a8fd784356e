"""sqldeck - canonical schema introspection, result shaping and DDL for SQL backends."""

__version__ = "0.1.0"
