"""
Email address rules used before any network lookup.

Pure functions, no I/O. The verifier calls these to decide whether a DNS
lookup is worth making at all.

Design Decisions:
- Basic local-part@domain.tld check only; full RFC 5322 parsing is not
  worth it when the MX lookup is the real deliverability signal
- Identity is the lowercased address
"""

import re

# local-part@domain with at least one dot in the domain, no whitespace
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$", re.IGNORECASE)


def normalize_email(email: str | None) -> str:
    """Lowercase an address for identity comparison. None becomes ''."""
    return str(email or "").lower()


def is_valid_email_format(email: str | None) -> bool:
    """
    Check that an address looks like local-part@domain.tld.

    Example:
        >>> is_valid_email_format("user@example.com")
        True
        >>> is_valid_email_format("not-an-email")
        False
    """
    if not email:
        return False
    return EMAIL_PATTERN.match(email) is not None


def extract_domain(email: str) -> str:
    """
    Return the domain part of an address that passed the format check.

    Raises:
        ValueError: If the address has no '@'.
    """
    if "@" not in email:
        raise ValueError(f"Not an email address: {email!r}")
    return email.rsplit("@", 1)[1]
