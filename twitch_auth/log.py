"""Logging setup for twitch-auth.

Everything logs under the ``twitch_auth`` logger; the auth modules use
its ``twitch_auth.auth`` child. Redirect parameters go through
``redact_sensitive_data`` before they reach a log record, so access
tokens never end up in output.
"""

from __future__ import annotations

import logging
import sys

from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from .config import LogSettings


PACKAGE_LOGGER = "twitch_auth"
DEFAULT_FORMAT = "%(name)s - %(levelname)s - %(message)s"
REDACTED = "[REDACTED]"

# Substrings of parameter names whose values must not be logged
_SENSITIVE_KEYS = ("token", "secret", "password", "authorization", "credential", "code")


def get_logger() -> logging.Logger:
    """Get the package logger.

    A stderr handler is attached the first time, and the level starts at
    ``WARNING`` so that importing the package stays quiet.

    Returns
    -------
    logging.Logger
        The ``twitch_auth`` logger.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
        logger.addHandler(handler)
        logger.setLevel(logging.WARNING)
    return logger


def set_level(level: int | str) -> None:
    """Set the package log level.

    Parameters
    ----------
    level : int or str
        A ``logging`` constant or a level name in any case (``"debug"``).

    Raises
    ------
    ValueError
        If ``level`` is not a known level name.
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            msg = f"Unknown log level: {level}"
            raise ValueError(msg)
        level = resolved
    get_logger().setLevel(level)


def configure_from_settings(settings: LogSettings) -> logging.Logger:
    """Apply the ``log`` configuration section to the package logger."""
    logger = get_logger()
    set_level(settings.level)
    formatter = logging.Formatter(settings.format)
    for handler in logger.handlers:
        handler.setFormatter(formatter)
    return logger


def enable_debug() -> None:
    """Log every step of sign-in, sign-out and the HTTP calls they make."""
    set_level(logging.DEBUG)


def _is_sensitive(key: Any) -> bool:
    name = str(key).lower()
    return any(part in name for part in _SENSITIVE_KEYS)


def redact_sensitive_data(data: Any, max_depth: int = 5) -> Any:
    """Return a copy of ``data`` that is safe to log.

    Values under keys that look like tokens, secrets or authorization
    codes are replaced with ``"[REDACTED]"``. Dicts, lists and tuples are
    walked recursively; a container nested deeper than ``max_depth`` is
    replaced as a whole.

    Parameters
    ----------
    data : Any
        Redirect parameters, a response body, or any scalar.
    max_depth : int, optional
        How many container levels to walk (default: 5).

    Returns
    -------
    Any
        The redacted copy. Scalars are returned unchanged.
    """
    if isinstance(data, dict):
        if max_depth <= 0:
            return REDACTED
        return {
            k: REDACTED if _is_sensitive(k) else redact_sensitive_data(v, max_depth - 1)
            for k, v in data.items()
        }
    if isinstance(data, (list, tuple)):
        if max_depth <= 0:
            return REDACTED
        return [redact_sensitive_data(item, max_depth - 1) for item in data]
    return data
