"""Custom exceptions for the rulebook converter."""
from __future__ import annotations


class RulebookError(Exception):
    """Base exception for rulebook conversion."""


class LexError(RulebookError):
    """Malformed input the lexer cannot advance past."""

    def __init__(self, line: int, message: str):
        super().__init__(f"line {line}: {message}")
        self.line = line
        self.message = message


class ConfigError(RulebookError):
    """Invalid configuration file content."""
