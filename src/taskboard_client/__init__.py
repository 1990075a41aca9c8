"""Role-scoped session, authorization and entity sync client for the taskboard API."""

__version__ = "0.1.0"
