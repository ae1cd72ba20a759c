"""
Mail-exchanger lookups over DNS.

The verifier depends only on the MXResolver protocol. DnsMXResolver is the
production implementation using dnspython's asyncio resolver.
"""

import logging
from typing import Protocol

import dns.asyncresolver
import dns.resolver

from licenseshop.domain.models import MXRecord

logger = logging.getLogger(__name__)


class MXResolver(Protocol):
    """Resolve a domain to its MX records. Raises on lookup failure."""

    async def resolve_mx(self, domain: str) -> list[MXRecord]:
        ...


class DnsMXResolver:
    """
    dnspython-backed MX resolver.

    A domain that exists but publishes no MX records resolves to an empty
    list. NXDOMAIN, timeouts and server failures are raised to the caller.
    """

    def __init__(self, lifetime: float = 5.0, nameservers: list[str] | None = None) -> None:
        """
        Initialize resolver.

        Args:
            lifetime: Total seconds allowed for one lookup
            nameservers: Explicit nameserver IPs. System resolv.conf if empty.
        """
        self.lifetime = lifetime
        self.nameservers = list(nameservers or [])

    async def resolve_mx(self, domain: str) -> list[MXRecord]:
        """Query MX records for a domain."""
        # A resolver per call keeps concurrent lookups independent
        resolver = dns.asyncresolver.Resolver(configure=not self.nameservers)
        if self.nameservers:
            resolver.nameservers = self.nameservers
        resolver.lifetime = self.lifetime

        try:
            answer = await resolver.resolve(domain, "MX")
        except dns.resolver.NoAnswer:
            logger.debug(f"No MX answer for {domain}")
            return []

        return [
            MXRecord(
                priority=int(rdata.preference),
                exchange=rdata.exchange.to_text(omit_final_dot=True),
            )
            for rdata in answer
        ]
