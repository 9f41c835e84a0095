"""
Static website and certificate components for AWS.

Use from the Pulumi entrypoint (e.g. __main__.py) with explicit settings and
output chaining:

- **WildcardCertificate**: DNS-validated ``*.<parent domain>`` certificate
  with a CAA record; exposes certificate_arn.
- **StaticWebsite**: S3 + CloudFront + Route 53 aliases; accepts a
  certificate_arn (str or Output[str]) or looks up an issued one.
- **sitekit.dns**: TXT and Google Workspace MX records at the root domain.
- **CertificateProvisioner**: the orchestration behind both, usable with any
  CertificateBackend.

Both components create their own issuance-region provider, named after the
component, unless a shared ``RegionContext`` is passed as ``context``.
"""

from sitekit._helpers import DomainParts, parse_domain
from sitekit.aws import StaticWebsite
from sitekit.certificate import WildcardCertificate
from sitekit.certificates import CertificateBackend, CertificateProvisioner
from sitekit.errors import (
    CertificateValidationFailed,
    CertificateValidationTimeout,
    InvalidDomainError,
    NoIssuedCertificateFound,
    SiteKitError,
    ZoneNotFound,
)
from sitekit.pulumi_backend import PulumiCertificateBackend
from sitekit.settings import CertificateSettings, WebsiteSettings

__all__ = [
    "CertificateBackend",
    "CertificateProvisioner",
    "CertificateSettings",
    "CertificateValidationFailed",
    "CertificateValidationTimeout",
    "DomainParts",
    "InvalidDomainError",
    "NoIssuedCertificateFound",
    "PulumiCertificateBackend",
    "SiteKitError",
    "StaticWebsite",
    "WebsiteSettings",
    "WildcardCertificate",
    "ZoneNotFound",
    "parse_domain",
]
