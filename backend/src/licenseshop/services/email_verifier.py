"""
Email address verification.

Assigns a risk tier to an address from a format check and a DNS MX lookup.
Verification never raises: every failure is classified into the result.
"""

import asyncio
import logging
from collections.abc import Iterable

from licenseshop.domain.models import RiskLevel, VerificationReason, VerificationResult
from licenseshop.domain.validation import extract_domain, is_valid_email_format, normalize_email
from licenseshop.infrastructure.dns_resolver import DnsMXResolver, MXResolver

logger = logging.getLogger(__name__)


class EmailVerifier:
    """
    Format + MX verification for email addresses.

    Decision sequence per address:
    1. Bad format -> high risk, no DNS lookup
    2. MX records found -> valid, low risk
    3. No MX records -> invalid, medium risk
    4. Lookup failed -> invalid, medium risk, error message kept
    """

    def __init__(self, resolver: MXResolver | None = None) -> None:
        """
        Initialize verifier.

        Args:
            resolver: MX resolver. DnsMXResolver with defaults if None.
        """
        self.resolver = resolver or DnsMXResolver()

    async def verify(self, email: str | None) -> VerificationResult:
        """Verify a single address."""
        result = VerificationResult(email=normalize_email(email))

        if not is_valid_email_format(email):
            result.risk = RiskLevel.HIGH
            result.reason = VerificationReason.INVALID_FORMAT
            return result

        domain = extract_domain(result.email)

        try:
            records = await self.resolver.resolve_mx(domain)
        except Exception as e:
            logger.warning(f"MX lookup failed for {domain}: {e}")
            result.risk = RiskLevel.MEDIUM
            result.reason = VerificationReason.DNS_LOOKUP_FAILED
            result.error = str(e) or e.__class__.__name__
            return result

        result.mx_records = [r.exchange for r in sorted(records, key=lambda r: r.priority)]
        if result.mx_records:
            result.is_valid = True
            result.risk = RiskLevel.LOW
        else:
            result.risk = RiskLevel.MEDIUM
            result.reason = VerificationReason.NO_MX_RECORDS

        return result

    async def verify_batch(self, emails: Iterable[str | None]) -> list[VerificationResult]:
        """Verify many addresses concurrently. Results keep input order."""
        return list(await asyncio.gather(*(self.verify(email) for email in emails)))
