"""Input sanitizer: validates search terms, postal codes and request ids.

Two phases for terms:
  1. Deny-list: known-hostile constructs, matched against the raw input.
  2. Allow-list: the real boundary. Anything outside the small alphabet fails.

A term that passes is safe to interpolate into a URL query or to pass as a
single argument to a subprocess. Nothing downstream re-checks it.
"""

import logging
import re

from src.core.errors import InvalidInput

logger = logging.getLogger(__name__)

MIN_TERM_LENGTH = 2
MAX_TERM_LENGTH = 55
POSTAL_CODE_LENGTH = 5

# (pattern, rationale). Most of these can never survive the allow-list anyway;
# they exist so hostile input is logged as such instead of as a typo.
DENY_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F-\x9F\u2028\u2029]"),
     "C0/C1 control and line separator characters"),
    (re.compile(r"[<>\"'`;\\${}\[\]|]"),
     "shell and markup metacharacters"),
    (re.compile(r"(?:javascript|data|vbscript):", re.IGNORECASE),
     "script protocol handlers"),
    (re.compile(r"on\w+\s*=", re.IGNORECASE),
     "inline event handler attributes"),
    (re.compile(r"\$\{.*\}"),
     "template interpolation"),
    (re.compile(r"`.*`"),
     "backtick command substitution"),
    (re.compile(r"\\x[0-9a-f]{2}", re.IGNORECASE),
     "hex escape sequences"),
    (re.compile(r"\\u[0-9a-f]{4}", re.IGNORECASE),
     "unicode escape sequences"),
    (re.compile(r"%(?:2[12]|3[0-9a-f]|5[bc]|7[bcd])", re.IGNORECASE),
     "percent-encoded metacharacters"),
    (re.compile(r"<\s*(?:script|iframe|object|embed)", re.IGNORECASE),
     "active content tag openers"),
)

ALLOWED_TERM = re.compile(r"[A-Za-z0-9 \-_.(),&+]+")
REQUEST_ID = re.compile(r"[A-Za-z0-9]+")

_WHITESPACE = re.compile(r"[ \t\r\n]+")
_NON_DIGIT = re.compile(r"[^0-9]")


def sanitize_term(raw: object) -> str:
    """Validate a free-text search term and return it whitespace-normalized.

    Raises:
        InvalidInput: on wrong type, bad length, a deny-listed construct, or
            any character outside the allow-list.
    """
    if not isinstance(raw, str):
        msg = "search term must be a string"
        raise InvalidInput(msg)

    for pattern, rationale in DENY_PATTERNS:
        if pattern.search(raw):
            logger.warning("SECURITY: blocked search term (%s)", rationale)
            msg = "search term contains invalid characters"
            raise InvalidInput(msg)

    term = _WHITESPACE.sub(" ", raw).strip()
    if not MIN_TERM_LENGTH <= len(term) <= MAX_TERM_LENGTH:
        msg = f"search term must be {MIN_TERM_LENGTH}-{MAX_TERM_LENGTH} characters"
        raise InvalidInput(msg)

    if not ALLOWED_TERM.fullmatch(term):
        msg = "search term contains disallowed characters"
        raise InvalidInput(msg)

    return term


def sanitize_postal_code(raw: object) -> str:
    """Strip non-digits, keep the first five, and require exactly five."""
    if not isinstance(raw, str):
        msg = "postal code must be a string"
        raise InvalidInput(msg)
    code = _NON_DIGIT.sub("", raw)[:POSTAL_CODE_LENGTH]
    if len(code) != POSTAL_CODE_LENGTH:
        msg = f"postal code must be exactly {POSTAL_CODE_LENGTH} digits"
        raise InvalidInput(msg)
    return code


def validate_request_id(raw: object) -> str:
    """Require an opaque alphanumeric token."""
    if not isinstance(raw, str) or not REQUEST_ID.fullmatch(raw):
        msg = "request id must be alphanumeric"
        raise InvalidInput(msg)
    return raw
