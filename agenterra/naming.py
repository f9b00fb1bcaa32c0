"""Derive identifiers from OpenAPI operation IDs and paths.

All functions here are total: any input string produces a (possibly
empty) result, never an exception.

Examples:
  findPetsByStatus   -> find_pets_by_status   (snake)
  findPetsByStatus   -> FindPetsByStatus      (upper camel)
  find-pets-by-status -> findPetsByStatus     (lower camel)
  HTTPResponse       -> httpresponse          (acronyms stay joined)
  get HTTP Response  -> get_http_response
  GET /pet/{petId}   -> get_pet_petId         (default operation ID)
"""

from __future__ import annotations

import re

_SEPARATORS = {"-", "_", " "}


def to_snake_case(value: str) -> str:
    """Convert camelCase, PascalCase, kebab-case or spaced words to snake_case.

    An underscore is inserted before an uppercase letter only when the
    previous character was lowercase, so runs of capitals stay together.
    Characters other than ASCII letters, digits and separators are dropped.
    """
    chars: list[str] = []
    prev_is_lower = False

    for ch in value:
        if not ch.isascii():
            continue
        if ch.isupper():
            if chars and prev_is_lower:
                chars.append("_")
            chars.append(ch.lower())
            prev_is_lower = False
        elif ch.isalnum():
            chars.append(ch)
            prev_is_lower = ch.islower()
        elif ch in _SEPARATORS:
            if chars and chars[-1] != "_":
                chars.append("_")
            prev_is_lower = False

    return re.sub(r"_+", "_", "".join(chars)).strip("_")


def to_upper_camel_case(value: str) -> str:
    """Convert to UpperCamelCase (PascalCase) via snake_case."""
    return "".join(
        word[0].upper() + word[1:]
        for word in to_snake_case(value).split("_")
        if word
    )


def to_lower_camel_case(value: str) -> str:
    """Convert to lowerCamelCase."""
    upper = to_upper_camel_case(value)
    if not upper:
        return upper
    return upper[0].lower() + upper[1:]


def default_operation_id(method: str, path: str) -> str:
    """Build an operation ID for operations without ``operationId``."""
    sanitized = path.lstrip("/").replace("{", "").replace("}", "").replace("/", "_")
    return f"{method.lower()}_{sanitized}"


def sanitize_filename(name: str) -> str:
    """Replace anything that is not an ASCII letter, digit or ``_`` with ``_``."""
    return "".join(c if (c.isascii() and c.isalnum()) or c == "_" else "_" for c in name)


def sanitize_endpoint_name(endpoint: str) -> str:
    """Turn a raw API path into an identifier-safe endpoint name."""
    s = endpoint.replace("{", "").replace("}", "")
    s = s.replace("/", "_").replace("-", "_")
    result = "".join(c if c.isalnum() or c == "_" else "_" for c in s)

    if result and not result[0].isalpha() and not result.startswith("_"):
        result = f"m_{result}"
    if not result:
        result = "root"
    return result
