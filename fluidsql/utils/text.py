"""Name conversion helpers."""

import re
from functools import lru_cache

# Handles sequences like "HTTPRequest" -> "HTTP_Request" or "SSLError" -> "SSL_Error"
_SNAKE_CASE_RE_ACRONYM_SEQUENCE = re.compile(r"([A-Z\d]+)([A-Z][a-z])")
# Handles transitions like "camelCase" -> "camel_Case" or "PascalCase" -> "Pascal_Case" (partially)
_SNAKE_CASE_RE_LOWER_UPPER_TRANSITION = re.compile(r"([a-z\d])([A-Z])")
# Replaces hyphens, spaces, and dots with a single underscore
_SNAKE_CASE_RE_REPLACE_SEP = re.compile(r"[-\s.]+")
# Cleans up multiple consecutive underscores
_SNAKE_CASE_RE_CLEAN_MULTIPLE_UNDERSCORE = re.compile(r"__+")
_SNAKE_CASE_RE_LEADING_DIGIT_UNDERSCORE = re.compile(r"^([0-9])_+")

__all__ = (
    "camelize",
    "pascalize",
    "snake_case",
)


@lru_cache(maxsize=512)
def camelize(string: str) -> str:
    """Convert a string to camel case.

    Args:
        string (str): The string to convert.

    Returns:
        str: The converted string.
    """
    return "".join(word if index == 0 else word.capitalize() for index, word in enumerate(string.split("_")))


@lru_cache(maxsize=512)
def pascalize(string: str) -> str:
    """Convert a snake_case string to TitleCase, dropping the underscores.

    Args:
        string (str): The string to convert.

    Returns:
        str: The converted string.
    """
    return "".join(word.capitalize() for word in string.split("_"))


@lru_cache(maxsize=512)
def snake_case(string: str) -> str:
    """Convert a string to snake_case.

    Handles CamelCase, PascalCase, strings with spaces, hyphens, or dots
    as separators, and ensures single underscores. It also correctly
    handles acronyms (e.g., "HTTPRequest" becomes "http_request").
    Handles Unicode letters and numbers.

    Args:
        string: The string to convert.

    Returns:
        The snake_case version of the string.
    """
    if not string:
        return ""
    s = string.strip()
    s = _SNAKE_CASE_RE_REPLACE_SEP.sub("_", s)
    s = _SNAKE_CASE_RE_ACRONYM_SEQUENCE.sub(r"\1_\2", s)
    s = _SNAKE_CASE_RE_LOWER_UPPER_TRANSITION.sub(r"\1_\2", s)
    s = re.sub(r"[^\w_]", "", s, flags=re.UNICODE)
    s = _SNAKE_CASE_RE_CLEAN_MULTIPLE_UNDERSCORE.sub("_", s)
    s = s.lower()
    s = s.strip("_")
    return _SNAKE_CASE_RE_LEADING_DIGIT_UNDERSCORE.sub(r"\1", s)
