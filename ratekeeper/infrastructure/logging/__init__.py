"""Logging adapters implementing LoggerProtocol."""

from ratekeeper.infrastructure.logging.console_adapter import ConsoleAdapter

__all__ = ["ConsoleAdapter"]
