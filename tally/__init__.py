"""Time tracking for projects with pauses, tags and reports, stored in SQLite."""

__version__ = "0.1.0"