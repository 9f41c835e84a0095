"""
Settings passed explicitly into sitekit components.

Both structs are immutable and carry documented defaults. Stack-wide values
are loaded once (see ``config.StackConfig``) and merged with per-component
overrides through ``merged``.
"""

from dataclasses import dataclass, fields, replace
from typing import Any

# ACM certificates used by CloudFront must live in us-east-1.
CERTIFICATE_REGION = "us-east-1"

# Matches the AWS provider's default create timeout for CertificateValidation.
VALIDATION_TIMEOUT_SECONDS = 75 * 60


class _Mergeable:
    def merged(self, **overrides: Any):
        """
        Return a copy with overrides applied. ``None`` keeps the current value.

        Raises:
            TypeError: for an unknown setting name.
        """
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise TypeError(f"Unknown settings: {', '.join(sorted(unknown))}")
        changes = {key: value for key, value in overrides.items() if value is not None}
        for key in ("assets_paths", "extra_caa_entries"):
            if key in changes:
                changes[key] = tuple(changes[key])
        return replace(self, **changes)


@dataclass(frozen=True)
class CertificateSettings(_Mergeable):
    """
    Certificate provisioning settings.

    Attributes:
        region: Region the certificate is issued in.
        validation_timeout: Seconds to wait for the issuer to confirm DNS
            validation.
        extra_caa_entries: CAA values appended after the fixed authority
            allow-list on every parent domain.
    """

    region: str = CERTIFICATE_REGION
    validation_timeout: float = VALIDATION_TIMEOUT_SECONDS
    extra_caa_entries: tuple[str, ...] = ()


@dataclass(frozen=True)
class WebsiteSettings(_Mergeable):
    """
    Static website settings.

    Attributes:
        assets_paths: CloudFront path patterns served as immutable assets
            (long TTL, optional caching Lambda@Edge).
        assets_caching_lambda_arn: Versioned Lambda@Edge ARN attached to the
            assets behaviors on viewer-response. Empty means none.
        security_headers_lambda_arn: Versioned Lambda@Edge ARN attached to the
            default behavior on viewer-response. Empty means none.
        is_pwa: Serve ``/index.html`` for missing paths (client-side routing).
        enable_dns: Create Route 53 alias records for the domain.
    """

    assets_paths: tuple[str, ...] = ()
    assets_caching_lambda_arn: str = ""
    security_headers_lambda_arn: str = ""
    is_pwa: bool = False
    enable_dns: bool = True
