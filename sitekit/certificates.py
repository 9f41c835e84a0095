"""
DNS-validated wildcard certificates.

``CertificateProvisioner`` requests a ``*.<parent domain>`` certificate in the
issuance region, publishes a CAA record and the issuer's DNS challenge in the
root domain's hosted zone, and waits for the issuer to confirm validation.

Every step goes through a ``CertificateBackend``: an awaitable interface so
the ordering between steps is explicit in ``provision`` rather than hidden in
lazily resolved values. ``PulumiCertificateBackend`` is the production
backend; tests use an in-memory fake.

Only one certificate is needed per parent domain. Resource names are derived
from the parent domain, so provisioning the same parent domain from several
stacks yields the same logical resources.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Protocol

import pulumi

from sitekit._helpers import caa_record_values, parse_domain
from sitekit.errors import CertificateValidationTimeout, NoIssuedCertificateFound
from sitekit.settings import CertificateSettings

CAA_RECORD_TTL = 3600
VALIDATION_RECORD_TTL = 600


@dataclass(frozen=True)
class RegionContext:
    """
    Handle pinned to one region (an ``aws.Provider`` for the Pulumi backend).

    Read-only after construction, so one context can be shared by every
    certificate provisioned in that region.
    """

    region: str
    handle: Any = None


@dataclass(frozen=True)
class CertificateRequest:
    """Wildcard certificate request for a parent domain, validated over DNS."""

    parent_domain: str
    domain_name: str
    subject_alternative_names: tuple[str, ...]
    validation_method: str = "DNS"

    @property
    def resource_name(self) -> str:
        return f"{self.parent_domain}-certificate"

    @classmethod
    def wildcard(cls, parent_domain: str) -> "CertificateRequest":
        return cls(
            parent_domain=parent_domain,
            domain_name=f"*.{parent_domain}",
            subject_alternative_names=(parent_domain,),
        )


@dataclass(frozen=True)
class PendingCertificate:
    """A requested certificate that is not usable until validated."""

    request: CertificateRequest
    arn: pulumi.Input[str]
    handle: Any = None


@dataclass(frozen=True)
class ValidationChallenge:
    """DNS record the issuer expects to find before issuing."""

    name: pulumi.Input[str]
    type: pulumi.Input[str]
    value: pulumi.Input[str]


@dataclass(frozen=True)
class DnsRecord:
    resource_name: str
    name: pulumi.Input[str]
    zone_id: pulumi.Input[str]
    type: pulumi.Input[str]
    ttl: int
    values: list[pulumi.Input[str]] = field(default_factory=list)


class CertificateBackend(Protocol):
    """
    Resource operations the provisioner relies on.

    Values may be plain strings or ``pulumi.Output`` depending on the
    backend; the provisioner only passes them along.
    """

    def region_context(self, region: str) -> RegionContext:
        ...

    async def request_certificate(
        self, context: RegionContext, request: CertificateRequest
    ) -> PendingCertificate:
        ...

    async def read_challenge(
        self, certificate: PendingCertificate
    ) -> ValidationChallenge:
        ...

    async def lookup_zone_id(self, root_domain: str) -> pulumi.Input[str]:
        """Raises ``ZoneNotFound`` when no hosted zone matches."""
        ...

    async def create_record(self, record: DnsRecord) -> pulumi.Input[str]:
        """Create the record and return its fully-qualified name."""
        ...

    async def confirm_validation(
        self,
        context: RegionContext,
        certificate: PendingCertificate,
        validation_record_fqdns: list[pulumi.Input[str]],
        timeout: float,
    ) -> pulumi.Input[str]:
        """
        Return the validated certificate ARN.

        Backends that observe the issuer directly raise
        ``CertificateValidationFailed`` when it rejects the challenge. The
        Pulumi backend only registers the validation resource; a rejection
        there fails the update in the engine instead.
        """
        ...

    async def find_issued_certificate(
        self, context: RegionContext, domain: str
    ) -> Optional[str]:
        """Return the ARN of the most recent ISSUED certificate, or None."""
        ...


class CertificateProvisioner:
    """
    Orchestrates wildcard certificate issuance over a ``CertificateBackend``.

    Region contexts are created once per region and reused for every call.
    """

    def __init__(
        self,
        backend: CertificateBackend,
        settings: CertificateSettings = CertificateSettings(),
    ):
        self.backend = backend
        self.settings = settings
        self._contexts: dict[str, RegionContext] = {}

    def context_for(self, region: Optional[str] = None) -> RegionContext:
        """Return the shared context for region (default: settings.region)."""
        region = region or self.settings.region
        if region not in self._contexts:
            self._contexts[region] = self.backend.region_context(region)
        return self._contexts[region]

    async def provision(
        self,
        domain: str,
        region: Optional[str] = None,
        extra_caa_entries: Iterable[str] = (),
        context: Optional[RegionContext] = None,
    ) -> pulumi.Input[str]:
        """
        Provision a validated ``*.<parent domain>`` certificate for domain.

        Args:
            domain: Website domain, e.g. "www.example.com". The certificate
                covers its parent domain ("example.com") and the wildcard.
            region: Issuance region; defaults to settings.region.
            extra_caa_entries: CAA values appended after the fixed allow-list
                and settings.extra_caa_entries.
            context: Region context to reuse instead of the cached one.

        Returns:
            The certificate ARN, usable once validation is confirmed.

        Raises:
            InvalidDomainError: domain has fewer than two labels.
            ZoneNotFound: no hosted zone for the root domain; no records are
                created.
            CertificateValidationFailed: the issuer rejected the challenge.
            CertificateValidationTimeout: no confirmation within
                settings.validation_timeout seconds.
        """
        parts = parse_domain(domain)
        parent = parts.parent_domain_name
        context = context or self.context_for(region)

        request = CertificateRequest.wildcard(parent)
        pulumi.log.debug(f"requesting {request.domain_name} in {context.region}")
        certificate = await self.backend.request_certificate(context, request)

        # Zone and challenge are independent; both must exist before any record.
        zone_id, challenge = await asyncio.gather(
            self.backend.lookup_zone_id(parts.root_domain_name),
            self.backend.read_challenge(certificate),
        )

        caa_record = DnsRecord(
            resource_name=f"{parent}-caa-record",
            name=parent,
            zone_id=zone_id,
            type="CAA",
            ttl=CAA_RECORD_TTL,
            values=caa_record_values(
                [*self.settings.extra_caa_entries, *extra_caa_entries]
            ),
        )
        validation_record = DnsRecord(
            resource_name=f"{parent}-validation-record",
            name=challenge.name,
            zone_id=zone_id,
            type=challenge.type,
            ttl=VALIDATION_RECORD_TTL,
            values=[challenge.value],
        )
        pulumi.log.debug(f"publishing CAA and validation records for {parent}")
        _, validation_fqdn = await asyncio.gather(
            self.backend.create_record(caa_record),
            self.backend.create_record(validation_record),
        )

        timeout = self.settings.validation_timeout
        try:
            certificate_arn = await asyncio.wait_for(
                self.backend.confirm_validation(
                    context, certificate, [validation_fqdn], timeout
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError as err:
            raise CertificateValidationTimeout(request.domain_name, timeout) from err

        pulumi.log.debug(f"certificate for {request.domain_name} validated")
        return certificate_arn

    async def lookup_existing(
        self,
        domain: str,
        region: Optional[str] = None,
        context: Optional[RegionContext] = None,
    ) -> str:
        """
        Return the most recent ISSUED ``*.<parent domain>`` certificate ARN.

        Nothing is provisioned; use when the certificate was already created
        once for the account and region.

        Raises:
            InvalidDomainError: domain has fewer than two labels.
            NoIssuedCertificateFound: no issued certificate matches.
        """
        parent = parse_domain(domain).parent_domain_name
        context = context or self.context_for(region)
        wildcard = f"*.{parent}"

        arn = await self.backend.find_issued_certificate(context, wildcard)
        if not arn:
            raise NoIssuedCertificateFound(wildcard, context.region)

        pulumi.log.info(f"reusing issued certificate for {wildcard}")
        return arn
