"""
USAA Backend Package.

United States Aviation Administrator network status API, built with
Flask and SQLAlchemy. Tracks which controllers and pilots are online and
under which callsign.

Modules:
    api/         REST endpoints for controllers, pilots and service status
    tracking/    EntityIndex: records plus callsign index, kept consistent
    store/       Key-value backends (SQL table, in-memory)
    models/      SQLAlchemy ORM model for the key-value table
    errors.py    Tracking error hierarchy
    config.py    Centralized configuration from environment variables
"""

__version__ = '1.0.0'
