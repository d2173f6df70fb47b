"""EDI order file -> PostgreSQL import tool."""

__version__ = "2.0.0"

APP_NAME = "EDIImport"
