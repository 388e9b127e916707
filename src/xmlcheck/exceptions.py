"""Custom exception hierarchy for xmlcheck."""

from __future__ import annotations

from pathlib import Path


class XmlcheckError(Exception):
    """Base error for the xmlcheck package."""


class ConfigError(XmlcheckError):
    """Raised when a configuration file fails validation."""

    def __init__(self, path: Path, message: str):
        self.path = Path(path)
        self.message = message
        super().__init__(f"{self.path.name}: {self.message}")


class PatternError(XmlcheckError):
    """Raised when file patterns cannot be expanded."""


class SchemaError(XmlcheckError):
    """Raised when a schema file cannot be loaded."""

    def __init__(self, path: Path, message: str):
        self.path = Path(path)
        self.message = message
        super().__init__(f"{self.path.name}: {self.message}")
