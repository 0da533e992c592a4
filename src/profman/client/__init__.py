"""Python client for the ProfMan API."""

from profman.client.api_client import ApiError, ProfmanClient

__all__ = ["ApiError", "ProfmanClient"]
