"""Functions for reading and validating configuration files."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError

from ..exceptions import ConfigError
from .models import ValidatorConfig


class ConfigFiles:
    """Canonical configuration filenames."""

    XMLCHECK = "xmlcheck.toml"
    PYPROJECT = "pyproject.toml"


def load_config(path: Optional[Path] = None, *, search_dir: Path = Path(".")) -> ValidatorConfig:
    """Load configuration from *path*, or discover it in *search_dir*.

    ``xmlcheck.toml`` holds the settings at top level; ``pyproject.toml`` holds
    them under ``[tool.xmlcheck]``. Without a file the defaults apply with
    *search_dir* as the root.
    """

    if path is not None:
        path = Path(path)
        data = _read_table(path, required=True)
        return _build(path, data)

    search_dir = Path(search_dir)
    candidate = search_dir / ConfigFiles.XMLCHECK
    if candidate.is_file():
        return _build(candidate, _read_table(candidate, required=True))

    candidate = search_dir / ConfigFiles.PYPROJECT
    if candidate.is_file():
        data = _read_table(candidate, required=False)
        if data is not None:
            return _build(candidate, data)

    return ValidatorConfig(root=search_dir)


def apply_overrides(config: ValidatorConfig, **overrides: Any) -> ValidatorConfig:
    """Return *config* updated with every override that is not ``None``."""

    data = config.model_dump()
    data.update({key: value for key, value in overrides.items() if value is not None})
    try:
        return ValidatorConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(Path("<command line>"), _format_validation_errors(exc)) from exc


def _read_table(path: Path, *, required: bool) -> Optional[Dict[str, Any]]:
    try:
        with path.open("rb") as fh:
            data = tomllib.load(fh)
    except FileNotFoundError as exc:
        raise ConfigError(path, "file not found") from exc
    except (tomllib.TOMLDecodeError, OSError) as exc:
        raise ConfigError(path, f"failed to read TOML: {exc}") from exc

    if path.name != ConfigFiles.PYPROJECT:
        return data
    table = data.get("tool", {}).get("xmlcheck")
    if table is None:
        if required:
            raise ConfigError(path, "missing [tool.xmlcheck] table")
        return None
    return table


def _build(path: Path, data: Dict[str, Any]) -> ValidatorConfig:
    try:
        config = ValidatorConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(path, _format_validation_errors(exc)) from exc

    base = path.parent
    updates: Dict[str, Any] = {}
    if not config.root.is_absolute():
        updates["root"] = base / config.root
    if config.schema_file is not None and not config.schema_file.is_absolute():
        updates["schema_file"] = base / config.schema_file
    return config.model_copy(update=updates)


def _format_validation_errors(error: ValidationError) -> str:
    messages = []
    for err in error.errors(include_context=False):
        loc = _format_location(err.get("loc", ()))
        msg = err.get("msg", "invalid value")
        if loc:
            messages.append(f"{loc}: {msg}")
        else:
            messages.append(msg)
    return "; ".join(messages)


def _format_location(loc: tuple[Any, ...]) -> str:
    if not loc:
        return ""

    parts: list[str] = []
    for entry in loc:
        if isinstance(entry, int):
            if not parts:
                parts.append(f"[{entry}]")
            else:
                parts[-1] = parts[-1] + f"[{entry}]"
        else:
            parts.append(str(entry))
    return ".".join(parts)
