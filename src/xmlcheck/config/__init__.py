"""Public configuration API."""

from .loader import ConfigFiles, apply_overrides, load_config
from .models import DEFAULT_EXCLUDE, DEFAULT_PATTERNS, ValidatorConfig

__all__ = [
    "ConfigFiles",
    "DEFAULT_EXCLUDE",
    "DEFAULT_PATTERNS",
    "ValidatorConfig",
    "apply_overrides",
    "load_config",
]
