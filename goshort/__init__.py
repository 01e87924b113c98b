"""URL shortener core: validation, service, SQLite storage, previews, safety checks and tool layer."""

__version__ = "0.5.0"