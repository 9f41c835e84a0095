"""
Errors raised by sitekit.

All errors derive from ``pulumi.RunError`` so the Pulumi CLI reports them as
plain messages rather than stack traces. None of them are retried here; the
caller decides whether to run the update again.
"""

import pulumi


class SiteKitError(pulumi.RunError):
    """Base class for sitekit errors."""


class InvalidDomainError(SiteKitError, ValueError):
    """The domain has fewer than two labels or an empty label."""


class ZoneNotFound(SiteKitError):
    """No Route 53 hosted zone exists for the root domain."""

    def __init__(self, root_domain: str):
        super().__init__(f"No hosted zone found for {root_domain!r}")
        self.root_domain = root_domain


class CertificateValidationFailed(SiteKitError):
    """The issuer rejected the DNS validation."""


class CertificateValidationTimeout(SiteKitError):
    """The issuer did not confirm the DNS validation in time."""

    def __init__(self, domain: str, timeout: float):
        super().__init__(
            f"Certificate for {domain!r} was not validated within {timeout:g}s"
        )
        self.domain = domain
        self.timeout = timeout


class NoIssuedCertificateFound(SiteKitError):
    """No ISSUED certificate matches the wildcard domain."""

    def __init__(self, domain: str, region: str):
        super().__init__(f"No issued certificate for {domain!r} in {region}")
        self.domain = domain
        self.region = region
