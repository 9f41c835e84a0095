"""
Pulumi implementation of ``CertificateBackend``.

Resources are registered immediately and their attributes are handed back
as ``Output`` values, so the Pulumi engine resolves the actual dependency
graph (and waits for validation) during the update. Lookups are plain
invokes rather than ``*_output`` ones: a failed invoke Output is re-raised
when the program exits, while a plain invoke fails in place, so a missing
hosted zone or certificate surfaces as a sitekit error before any record is
registered.
"""

from typing import Optional

import pulumi
import pulumi_aws as aws

from sitekit.certificates import (
    CertificateRequest,
    DnsRecord,
    PendingCertificate,
    RegionContext,
    ValidationChallenge,
)
from sitekit.errors import ZoneNotFound

# Substring of the AWS provider's error when a data source matches nothing.
_NOT_FOUND = "no matching"


def _is_not_found(err: Exception) -> bool:
    return _NOT_FOUND in str(err).lower()


def validation_timeouts(timeout: float) -> pulumi.CustomTimeouts:
    """Return the engine timeouts bounding CertificateValidation creation."""
    return pulumi.CustomTimeouts(create=f"{int(timeout)}s")


class PulumiCertificateBackend:
    """
    Registers ACM and Route 53 resources through pulumi_aws.

    Issuer rejection is reported by the Pulumi engine when the
    CertificateValidation resource fails to create, so this backend never
    raises ``CertificateValidationFailed`` itself.

    Args:
        parent: Component the registered resources are parented to.
        name_prefix: Prefix for the region provider names, so every owner
            registers its own providers (e.g. the component name).
    """

    def __init__(
        self,
        parent: Optional[pulumi.Resource] = None,
        name_prefix: str = "",
    ):
        self.parent = parent
        self.name_prefix = name_prefix

    def _opts(self, context: Optional[RegionContext] = None, **kwargs):
        provider = context.handle if context else None
        return pulumi.ResourceOptions(parent=self.parent, provider=provider, **kwargs)

    def region_context(self, region: str) -> RegionContext:
        # ACM for CloudFront is region-pinned; the DNS side uses the default provider.
        name = f"{region}-provider"
        provider = aws.Provider(
            resource_name=f"{self.name_prefix}-{name}" if self.name_prefix else name,
            region=region,
            profile=aws.config.profile,
            opts=pulumi.ResourceOptions(parent=self.parent),
        )
        return RegionContext(region=region, handle=provider)

    async def request_certificate(
        self, context: RegionContext, request: CertificateRequest
    ) -> PendingCertificate:
        certificate = aws.acm.Certificate(
            resource_name=request.resource_name,
            domain_name=request.domain_name,
            subject_alternative_names=list(request.subject_alternative_names),
            validation_method=request.validation_method,
            opts=self._opts(context),
        )
        return PendingCertificate(request=request, arn=certificate.arn, handle=certificate)

    async def read_challenge(
        self, certificate: PendingCertificate
    ) -> ValidationChallenge:
        # The wildcard and its parent domain share a single challenge record.
        option = certificate.handle.domain_validation_options[0]
        return ValidationChallenge(
            name=option.resource_record_name,
            type=option.resource_record_type,
            value=option.resource_record_value,
        )

    async def lookup_zone_id(self, root_domain: str) -> str:
        try:
            zone = aws.route53.get_zone(name=root_domain, private_zone=False)
        except Exception as err:
            if _is_not_found(err):
                raise ZoneNotFound(root_domain) from err
            raise
        if not zone.zone_id:
            raise ZoneNotFound(root_domain)
        return zone.zone_id

    async def create_record(self, record: DnsRecord) -> pulumi.Output[str]:
        created = aws.route53.Record(
            resource_name=record.resource_name,
            name=record.name,
            zone_id=record.zone_id,
            type=record.type,
            ttl=record.ttl,
            records=record.values,
            opts=self._opts(),
        )
        return created.fqdn

    async def confirm_validation(
        self,
        context: RegionContext,
        certificate: PendingCertificate,
        validation_record_fqdns: list[pulumi.Input[str]],
        timeout: float,
    ) -> pulumi.Output[str]:
        # The engine does the waiting; the timeout bounds its create step.
        validation = aws.acm.CertificateValidation(
            resource_name=f"{certificate.request.parent_domain}-certificate-validation",
            certificate_arn=certificate.arn,
            validation_record_fqdns=validation_record_fqdns,
            opts=self._opts(context, custom_timeouts=validation_timeouts(timeout)),
        )
        return validation.certificate_arn

    async def find_issued_certificate(
        self, context: RegionContext, domain: str
    ) -> Optional[str]:
        try:
            certificate = aws.acm.get_certificate(
                domain=domain,
                most_recent=True,
                statuses=["ISSUED"],
                opts=pulumi.InvokeOptions(provider=context.handle),
            )
        except Exception as err:
            if _is_not_found(err):
                return None
            raise
        return certificate.arn
