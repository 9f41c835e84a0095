"""
AWS static website: S3 bucket + CloudFront distribution + Route 53 aliases.

This component creates a private S3 bucket as the origin for a CloudFront
distribution serving ``domain_name`` over HTTPS. CloudFront reaches S3 via
Origin Access Control (OAC) and the bucket policy grants read access to that
distribution only. TLS uses the wildcard certificate of the parent domain:
pass ``certificate_arn`` (e.g. ``WildcardCertificate.certificate_arn``) or
let the component look up the most recent issued one.

Behavior is driven by ``WebsiteSettings``: security headers and assets caching
are Lambda@Edge functions attached on viewer-response when their ARNs are set,
``assets_paths`` become long-lived cache behaviors, and PWA mode serves
``/index.html`` for unknown paths. Unless DNS is disabled, A and AAAA alias
records in the root domain's hosted zone point the domain at the
distribution.
"""

from typing import Optional

import pulumi
import pulumi_aws as aws

from sitekit._helpers import oac_bucket_policy, parse_domain
from sitekit.certificates import CertificateProvisioner, RegionContext
from sitekit.pulumi_backend import PulumiCertificateBackend
from sitekit.settings import CertificateSettings, WebsiteSettings

ID: str = "sitekit:aws:StaticWebsite"

ORIGIN_ID = "s3-origin"

# Immutable assets are cached for a year at every layer.
ASSETS_TTL = 31536000

# Always applied; tests and callers assert on secure defaults.
S3_BLOCK_PUBLIC_ACCESS: dict[str, bool] = {
    "block_public_acls": True,
    "block_public_policy": True,
    "ignore_public_acls": True,
    "restrict_public_buckets": True,
}


def assets_cache_behaviors(
    settings: WebsiteSettings,
) -> list[aws.cloudfront.DistributionOrderedCacheBehaviorArgs]:
    """Return one long-TTL cache behavior per configured assets path."""
    associations = []
    if settings.assets_caching_lambda_arn:
        associations.append(
            aws.cloudfront.DistributionOrderedCacheBehaviorLambdaFunctionAssociationArgs(
                event_type="viewer-response",
                lambda_arn=settings.assets_caching_lambda_arn,
            )
        )

    return [
        aws.cloudfront.DistributionOrderedCacheBehaviorArgs(
            path_pattern=path_pattern,
            target_origin_id=ORIGIN_ID,
            viewer_protocol_policy="redirect-to-https",
            allowed_methods=["GET", "HEAD", "OPTIONS"],
            cached_methods=["GET", "HEAD", "OPTIONS"],
            compress=True,
            min_ttl=ASSETS_TTL,
            default_ttl=ASSETS_TTL,
            max_ttl=ASSETS_TTL,
            forwarded_values=aws.cloudfront.DistributionOrderedCacheBehaviorForwardedValuesArgs(
                query_string=False,
                headers=["Origin"],
                cookies=aws.cloudfront.DistributionOrderedCacheBehaviorForwardedValuesCookiesArgs(
                    forward="none",
                ),
            ),
            lambda_function_associations=associations,
        )
        for path_pattern in settings.assets_paths
    ]


def custom_error_responses(
    settings: WebsiteSettings,
) -> list[aws.cloudfront.DistributionCustomErrorResponseArgs]:
    """
    Return error responses for PWA mode (empty otherwise).

    A private bucket answers 403 for missing keys, so both 403 and 404 are
    rewritten to ``/index.html`` with status 200.
    """
    if not settings.is_pwa:
        return []
    return [
        aws.cloudfront.DistributionCustomErrorResponseArgs(
            error_code=error_code,
            response_code=200,
            response_page_path="/index.html",
        )
        for error_code in (403, 404)
    ]


class StaticWebsite(pulumi.ComponentResource):
    """
    Private S3 bucket + CloudFront (OAC, HTTPS, custom domain) + DNS aliases.

    Resources: Bucket, BucketPublicAccessBlock, OriginAccessControl,
    Distribution, BucketPolicy, unless disabled A/AAAA Records, and a region
    Provider when the certificate is looked up without a shared context.
    A missing hosted zone raises ZoneNotFound.
    """

    def __init__(
        self,
        name: str,
        domain_name: str,
        settings: WebsiteSettings = WebsiteSettings(),
        certificate_arn: Optional[pulumi.Input[str]] = None,
        certificate_settings: CertificateSettings = CertificateSettings(),
        context: Optional[RegionContext] = None,
        opts: Optional[pulumi.ResourceOptions] = None,
    ):
        """
        Create the bucket, distribution and DNS records for domain_name.

        Args:
            name: Pulumi resource name for the component and its children.
            domain_name: Website domain; also the bucket name and the
                distribution alias.
            settings: Website settings, usually the stack-wide defaults merged
                with per-site overrides.
            certificate_arn: Certificate for the distribution. When omitted,
                the most recent issued ``*.<parent domain>`` certificate is
                looked up (NoIssuedCertificateFound if there is none).
            certificate_settings: Issuance region used for that lookup.
            context: Shared issuance-region context for that lookup. When
                omitted the component creates its own provider.

        Outputs (set on self, registered for the component):
            bucket_uri: ``s3://`` URI of the content bucket.
            url: HTTPS URL of the website.
            cloudfront_domain_name: Distribution FQDN.
            cloudfront_id: Distribution ID (e.g. for invalidations).
        """
        super().__init__(ID, name, None, opts)

        parts = parse_domain(domain_name)

        # Child resources get parent=self so Pulumi builds a proper hierarchy:
        # lifecycle order (e.g. destroy CloudFront before bucket) and UI grouping.
        child_opts = pulumi.ResourceOptions(parent=self)
        backend = PulumiCertificateBackend(parent=self, name_prefix=name)

        if certificate_arn is None:
            provisioner = CertificateProvisioner(backend, certificate_settings)
            certificate_arn = pulumi.Output.from_input(
                provisioner.lookup_existing(domain_name, context=context)
            )

        self.bucket = aws.s3.Bucket(
            resource_name=f"{name}-bucket",
            bucket=domain_name,
            force_destroy=True,
            opts=child_opts,
        )

        aws.s3.BucketPublicAccessBlock(
            resource_name=f"{name}-block-public",
            bucket=self.bucket.id,
            opts=child_opts,
            **S3_BLOCK_PUBLIC_ACCESS,
        )

        # retain_on_delete=True avoids AWS 409 OriginAccessControlInUse on destroy:
        # AWS may still reference the OAC briefly after the distribution is gone.
        oac = aws.cloudfront.OriginAccessControl(
            resource_name=f"{name}-oac",
            origin_access_control_origin_type="s3",
            signing_behavior="always",
            signing_protocol="sigv4",
            opts=pulumi.ResourceOptions(parent=self, retain_on_delete=True),
        )

        origins = [
            aws.cloudfront.DistributionOriginArgs(
                domain_name=self.bucket.bucket_regional_domain_name,
                origin_id=ORIGIN_ID,
                origin_access_control_id=oac.id,
            )
        ]

        default_associations = []
        if settings.security_headers_lambda_arn:
            default_associations.append(
                aws.cloudfront.DistributionDefaultCacheBehaviorLambdaFunctionAssociationArgs(
                    event_type="viewer-response",
                    lambda_arn=settings.security_headers_lambda_arn,
                )
            )
        else:
            pulumi.log.info(
                f"{domain_name}: no security headers Lambda@Edge configured",
                resource=self,
            )

        # ForwardedValues is required by the API when not using a cache policy.
        forwarded_values = aws.cloudfront.DistributionDefaultCacheBehaviorForwardedValuesArgs(
            query_string=False,
            cookies=aws.cloudfront.DistributionDefaultCacheBehaviorForwardedValuesCookiesArgs(
                forward="none",
            ),
        )
        default_cache_behavior = aws.cloudfront.DistributionDefaultCacheBehaviorArgs(
            target_origin_id=ORIGIN_ID,
            viewer_protocol_policy="redirect-to-https",
            allowed_methods=["GET", "HEAD"],
            cached_methods=["GET", "HEAD"],
            compress=True,
            min_ttl=0,
            default_ttl=86400,
            max_ttl=ASSETS_TTL,
            forwarded_values=forwarded_values,
            lambda_function_associations=default_associations,
        )

        restrictions = aws.cloudfront.DistributionRestrictionsArgs(
            geo_restriction=aws.cloudfront.DistributionRestrictionsGeoRestrictionArgs(
                restriction_type="none",
            ),
        )

        viewer_certificate = aws.cloudfront.DistributionViewerCertificateArgs(
            acm_certificate_arn=certificate_arn,
            ssl_support_method="sni-only",
            minimum_protocol_version="TLSv1.2_2021",
        )

        # Explicit depends_on so destroy order is correct: distribution is deleted
        # before the OAC (AWS returns 409 OriginAccessControlInUse otherwise).
        self.distribution = aws.cloudfront.Distribution(
            resource_name=f"{name}-cdn",
            enabled=True,
            is_ipv6_enabled=True,
            aliases=[domain_name],
            origins=origins,
            default_root_object="index.html",
            default_cache_behavior=default_cache_behavior,
            ordered_cache_behaviors=assets_cache_behaviors(settings),
            custom_error_responses=custom_error_responses(settings),
            price_class="PriceClass_100",
            restrictions=restrictions,
            viewer_certificate=viewer_certificate,
            opts=pulumi.ResourceOptions(parent=self, depends_on=[oac]),
        )

        aws.s3.BucketPolicy(
            resource_name=f"{name}-bucket-policy",
            bucket=self.bucket.id,
            policy=pulumi.Output.all(self.bucket.arn, self.distribution.arn).apply(
                lambda arns: oac_bucket_policy(*arns)
            ),
            opts=child_opts,
        )

        if settings.enable_dns:
            zone_id = pulumi.Output.from_input(
                backend.lookup_zone_id(parts.root_domain_name)
            )
            alias = aws.route53.RecordAliasArgs(
                name=self.distribution.domain_name,
                zone_id=self.distribution.hosted_zone_id,
                evaluate_target_health=True,
            )
            for record_type, suffix in (("A", "dns-record"), ("AAAA", "dns-record-ipv6")):
                aws.route53.Record(
                    resource_name=f"{name}-{suffix}",
                    name=domain_name,
                    zone_id=zone_id,
                    type=record_type,
                    aliases=[alias],
                    opts=child_opts,
                )

        self.bucket_uri: pulumi.Output[str] = self.bucket.bucket.apply(
            lambda bucket: f"s3://{bucket}"
        )
        self.url: pulumi.Output[str] = pulumi.Output.from_input(
            f"https://{domain_name}/"
        )
        self.cloudfront_domain_name: pulumi.Output[str] = self.distribution.domain_name
        self.cloudfront_id: pulumi.Output[str] = self.distribution.id
        self.register_outputs(
            {
                "bucket_uri": self.bucket_uri,
                "url": self.url,
                "cloudfront_domain_name": self.cloudfront_domain_name,
                "cloudfront_id": self.cloudfront_id,
            }
        )
