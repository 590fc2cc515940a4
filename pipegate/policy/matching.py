# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""File glob and command pattern matching for policy rules."""

import re
from functools import lru_cache

from loguru import logger


def normalize_path(path: str) -> str:
    """Normalize a target path before glob matching.

    Converts backslashes to forward slashes and drops a leading ``./``.
    """
    normalized = path.replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized


def glob_to_regex(pattern: str) -> str:
    """Translate a file glob into an (unanchored) regular expression.

    ``**/`` matches zero or more leading path segments, any other ``**``
    matches anything including ``/``, ``*`` matches within one segment and
    ``?`` matches exactly one character.

    Args:
        pattern: Glob pattern such as ``**/secrets/**``.

    Returns:
        Regular expression source. Callers anchor it with ``fullmatch``.
    """
    parts: list[str] = []
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if pattern.startswith("**/", i):
            parts.append("(?:.*/)?")
            i += 3
            continue
        if pattern.startswith("**", i):
            parts.append(".*")
            i += 2
            continue
        if char == "*":
            parts.append("[^/]*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
        i += 1
    return "".join(parts)


@lru_cache(maxsize=512)
def compile_glob(pattern: str) -> re.Pattern[str]:
    return re.compile(glob_to_regex(normalize_path(pattern)))


def match_glob(path: str, pattern: str) -> bool:
    """Check whether a path matches a glob, anchored to the whole path.

    Example:
        >>> match_glob("project/.env", "**/.env")
        True
        >>> match_glob("src/app.js", "**/secrets/**")
        False
    """
    return compile_glob(pattern).fullmatch(normalize_path(path)) is not None


@lru_cache(maxsize=512)
def compile_command_pattern(pattern: str) -> re.Pattern[str] | None:
    """Compile a command regex, returning None for malformed patterns.

    A malformed pattern never matches; it is reported once here rather than
    on every evaluation.
    """
    try:
        return re.compile(pattern)
    except re.error as e:
        logger.warning(
            "Invalid command pattern ignored: {error}",
            error=str(e),
            pattern=pattern,
        )
        return None


def match_command(command: str, pattern: str) -> bool:
    """Search a command string for a regex pattern.

    Returns:
        True if the pattern is found anywhere in the command. Malformed
        patterns return False.
    """
    compiled = compile_command_pattern(pattern)
    return compiled is not None and compiled.search(command) is not None
