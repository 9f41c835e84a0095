"""
Pure helpers for domain names, DNS record values and policies. Testable
without Pulumi runtime.

Used by the certificate provisioner (parse_domain, caa_record_values) and the
website component (oac_bucket_policy). No Pulumi types; all functions accept
and return plain Python types so they can be unit-tested without a Pulumi
stack.
"""

import json
from dataclasses import dataclass
from typing import Iterable

from sitekit.errors import InvalidDomainError

# Certificate authorities allowed to issue for every managed parent domain.
CAA_AUTHORITIES: tuple[str, ...] = (
    "letsencrypt.org",
    "pki.goog",
    "amazon.com",
    "amazontrust.com",
    "awstrust.com",
)


def ensure_trailing_dot(
    domain: str,
) -> str:
    """
    Return domain with a single trailing dot for DNS FQDN.

    Route 53 (and many DNS APIs) report zone and record names with a trailing
    dot when they are fully qualified. Idempotent if already present.
    """
    return domain if domain.endswith(".") else f"{domain}."


def strip_trailing_dot(
    domain: str,
) -> str:
    """Return domain without its trailing dot, for APIs that expect bare names."""
    return domain[:-1] if domain.endswith(".") else domain


@dataclass(frozen=True)
class DomainParts:
    """
    A domain split into its subdomain, parent domain and root domain.

    Attributes:
        subdomain: Labels left of the root domain joined by dots ("" for an
            apex domain).
        parent_domain: Every label except the first, dot-terminated.
        root_domain: The last two labels, dot-terminated.
    """

    subdomain: str
    parent_domain: str
    root_domain: str

    @property
    def parent_domain_name(self) -> str:
        return strip_trailing_dot(self.parent_domain)

    @property
    def root_domain_name(self) -> str:
        return strip_trailing_dot(self.root_domain)


def parse_domain(
    domain: str,
) -> DomainParts:
    """
    Split a domain name into subdomain, parent domain and root domain.

    e.g. "www.example.com" -> "www", "example.com.", "example.com."
         "a.b.example.com" -> "a.b", "b.example.com.", "example.com."

    A single trailing dot (fully-qualified form) is accepted and ignored.

    Raises:
        InvalidDomainError: when the domain has fewer than two labels or an
            empty label.
    """
    labels = strip_trailing_dot(domain).split(".")
    if len(labels) < 2:
        raise InvalidDomainError(f"No TLD found on {domain!r}")
    if not all(labels):
        raise InvalidDomainError(f"Empty label in {domain!r}")

    if len(labels) == 2:
        apex = ensure_trailing_dot(".".join(labels))
        return DomainParts(subdomain="", parent_domain=apex, root_domain=apex)

    return DomainParts(
        subdomain=".".join(labels[:-2]),
        parent_domain=ensure_trailing_dot(".".join(labels[1:])),
        root_domain=ensure_trailing_dot(".".join(labels[-2:])),
    )


def caa_record_values(
    extra_entries: Iterable[str] = (),
) -> list[str]:
    """
    Return CAA record values: the fixed authority allow-list, then extras.

    Every authority in CAA_AUTHORITIES gets an ``issue`` and an ``issuewild``
    directive. Extra entries are appended unchanged, in the given order.
    """
    baseline = [
        f'0 {tag} "{authority}"'
        for authority in CAA_AUTHORITIES
        for tag in ("issue", "issuewild")
    ]
    return baseline + list(extra_entries)


def caa_iodef_entry(
    email: str,
) -> str:
    """Return a CAA ``iodef`` directive reporting policy violations to email."""
    return f'0 iodef "mailto:{email}"'


def oac_bucket_policy(
    bucket_arn: str,
    distribution_arn: str,
) -> str:
    """
    Return a bucket policy JSON allowing only the distribution to read objects.

    CloudFront signs origin requests via Origin Access Control; the condition
    pins the grant to a single distribution.
    """
    return json.dumps(
        {
            "Version": "2012-10-17",
            "Statement": [
                {
                    "Sid": "AllowCloudFrontServicePrincipalReadOnly",
                    "Effect": "Allow",
                    "Principal": {"Service": "cloudfront.amazonaws.com"},
                    "Action": "s3:GetObject",
                    "Resource": f"{bucket_arn}/*",
                    "Condition": {
                        "StringEquals": {"AWS:SourceArn": distribution_arn}
                    },
                }
            ],
        }
    )
