"""Process-wide capability mode and its persisted default.

The capability mode decides what happens when the forwarder finds no explicit
rule for an operation:

``structural``
    the wrapper behaves as a generic array-like value.  Unknown operations
    convert it through ``numpy.asarray`` and run the generic implementation,
    which always works but may be slow (sparse storage is densified).

``explicit``
    unknown operations raise :class:`~inbounds_arrays.errors.NoMatchingRuleError`
    so that missing coverage is found during development.

The initial value is read once at import from ``INBOUNDS_ARRAYS_MODE``,
``INBOUNDS_ARRAYS_STRICT`` or the preferences file.  The import-time value also
decides whether :class:`~inbounds_arrays.core.InboundsArray` is registered as a
virtual subclass of :class:`~inbounds_arrays.core.ArrayContract`; that relation
cannot be revoked in a running interpreter, so a restart is needed for a mode
change to take full effect.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

from .errors import PreferencesError

LOGGER = logging.getLogger(__name__)

MODE_ENV = "INBOUNDS_ARRAYS_MODE"
STRICT_ENV = "INBOUNDS_ARRAYS_STRICT"
PREFERENCES_ENV = "INBOUNDS_ARRAYS_PREFERENCES"
PREFERENCE_KEY = "capability_mode"


class CapabilityMode(str, Enum):
    STRUCTURAL = "structural"
    EXPLICIT = "explicit"

    @classmethod
    def parse(cls, value: Any) -> "CapabilityMode":
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            return cls.EXPLICIT if value else cls.STRUCTURAL
        lowered = str(value).strip().lower()
        for member in cls:
            if member.value == lowered:
                return member
        strict = _parse_bool_env(lowered)
        if strict is not None:
            return cls.EXPLICIT if strict else cls.STRUCTURAL
        raise ValueError(f"unknown capability mode {value!r}; expected 'structural' or 'explicit'")


def _parse_bool_env(value: str) -> bool | None:
    lowered = value.strip().lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    return None


def preferences_path() -> Path:
    override = os.getenv(PREFERENCES_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "inbounds_arrays" / "preferences.json"


def load_preferences(path: Path | None = None) -> dict[str, Any]:
    """Return the persisted preferences, or an empty mapping when absent."""

    target = path if path is not None else preferences_path()
    if not target.exists():
        return {}
    try:
        with target.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
    except json.JSONDecodeError as exc:
        raise PreferencesError(f"malformed preferences file {target}: {exc}") from exc
    if not isinstance(payload, dict):
        raise PreferencesError(f"preferences file {target} must contain a JSON object")
    return payload


def save_preferences(values: Mapping[str, Any], path: Path | None = None) -> Path:
    """Merge ``values`` into the preferences file and return its path."""

    target = path if path is not None else preferences_path()
    current = load_preferences(target)
    current.update(values)
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("w", encoding="utf-8") as handle:
        json.dump(current, handle, indent=2, sort_keys=True)
        handle.write("\n")
    return target


def resolve_default_mode(environ: Mapping[str, str] | None = None, path: Path | None = None) -> CapabilityMode:
    """Resolve the start-up mode: env mode, env strict flag, preferences, default."""

    env = os.environ if environ is None else environ
    explicit_value = env.get(MODE_ENV)
    if explicit_value:
        return CapabilityMode.parse(explicit_value)
    strict = _parse_bool_env(env.get(STRICT_ENV, "auto"))
    if strict is not None:
        return CapabilityMode.EXPLICIT if strict else CapabilityMode.STRUCTURAL
    stored = load_preferences(path).get(PREFERENCE_KEY)
    if stored is not None:
        try:
            return CapabilityMode.parse(stored)
        except ValueError as exc:
            raise PreferencesError(str(exc)) from exc
    return CapabilityMode.STRUCTURAL


def _startup_mode() -> CapabilityMode:
    try:
        return resolve_default_mode()
    except (PreferencesError, ValueError) as exc:
        LOGGER.warning("Ignoring capability mode configuration: %s", exc)
        return CapabilityMode.STRUCTURAL


_WRITE_LOCK = threading.Lock()
_STARTUP_MODE = _startup_mode()
_MODE = _STARTUP_MODE


def get_capability_mode() -> CapabilityMode:
    return _MODE


def structural_interface_enabled() -> bool:
    """Whether the wrapper was registered with the structural contract at import."""

    return _STARTUP_MODE is CapabilityMode.STRUCTURAL


def set_capability_mode(mode: CapabilityMode | str, *, persist: bool = True) -> CapabilityMode:
    """Set the process-wide mode and optionally persist it as the start-up default.

    Forwarder decisions made after this call observe the new mode.  The
    structural subtype relation of the wrapper is fixed at import, so code
    relying on ``isinstance(w, ArrayContract)`` only follows after a restart.
    Returns the previous mode.
    """

    global _MODE
    resolved = CapabilityMode.parse(mode)
    with _WRITE_LOCK:
        previous = _MODE
        _MODE = resolved
        if persist:
            target = save_preferences({PREFERENCE_KEY: resolved.value})
            LOGGER.info("Persisted capability mode %s to %s", resolved.value, target)
    if resolved is not _STARTUP_MODE:
        LOGGER.warning(
            "Capability mode set to %s but the interpreter started in %s mode; "
            "restart for the structural interface registration to match",
            resolved.value,
            _STARTUP_MODE.value,
        )
    return previous
