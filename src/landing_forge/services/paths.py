"""Identifier and path validation for landing storage."""

import logging
import os
import re
from pathlib import Path

from landing_forge.config import MAX_OWNER_ID

SESSION_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{1,64}$")

_logger = logging.getLogger(__name__)


def is_valid_id(value: object, pattern: re.Pattern[str] = SESSION_ID_PATTERN) -> bool:
    """Return True when value is a string fully matching the allow-list pattern."""
    if not isinstance(value, str) or not value:
        return False
    return pattern.fullmatch(value) is not None


def is_valid_owner_id(value: object) -> bool:
    """Return True for a positive integer below the safe upper bound."""
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return 0 < value < MAX_OWNER_ID


def sanitize_join(base_path: str | Path, user_segment: object) -> Path | None:
    """Join a caller-controlled segment onto base_path without escaping it."""
    if not isinstance(user_segment, str) or not user_segment:
        return None
    if "\0" in user_segment or ".." in user_segment:
        _logger.warning("Unsafe path segment rejected: %r", user_segment)
        return None

    base = Path(os.path.abspath(base_path))
    resolved = Path(os.path.abspath(base / user_segment))
    base_text = str(base)
    resolved_text = str(resolved)
    prefix = base_text if base_text.endswith(os.sep) else base_text + os.sep
    if resolved_text != base_text and not resolved_text.startswith(prefix):
        _logger.warning(
            "Path traversal attempt detected: base=%s segment=%r resolved=%s",
            base_text,
            user_segment,
            resolved_text,
        )
        return None
    return resolved
