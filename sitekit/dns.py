"""
Route 53 records at the apex of an existing hosted zone.

Small helpers for the records a domain usually needs besides the website:
TXT verification strings (site ownership, SPF, ...) and the Google Workspace
MX set. The zone is looked up from the root domain of ``domain_name``, never
created; a missing zone raises ``ZoneNotFound``.
"""

from typing import Optional

import pulumi
import pulumi_aws as aws

from sitekit._helpers import parse_domain
from sitekit.pulumi_backend import PulumiCertificateBackend

APEX_RECORD_TTL = 3600

GOOGLE_MX_RECORDS: list[str] = [
    "1 ASPMX.L.GOOGLE.COM.",
    "5 ALT1.ASPMX.L.GOOGLE.COM.",
    "5 ALT2.ASPMX.L.GOOGLE.COM.",
    "10 ALT3.ASPMX.L.GOOGLE.COM.",
    "10 ALT4.ASPMX.L.GOOGLE.COM.",
]


def _apex_record(
    resource_name: str,
    domain_name: str,
    record_type: str,
    records: list[str],
    opts: Optional[pulumi.ResourceOptions],
) -> aws.route53.Record:
    parts = parse_domain(domain_name)
    backend = PulumiCertificateBackend()
    return aws.route53.Record(
        resource_name=resource_name,
        name=parts.root_domain_name,
        zone_id=pulumi.Output.from_input(backend.lookup_zone_id(parts.root_domain_name)),
        type=record_type,
        ttl=APEX_RECORD_TTL,
        records=records,
        opts=opts,
    )


def create_txt_record(
    name: str,
    domain_name: str,
    value: str,
    opts: Optional[pulumi.ResourceOptions] = None,
) -> aws.route53.Record:
    """
    Create a TXT record at the apex of domain_name's hosted zone.

    Args:
        name: Label for the resource name (e.g. "google-verification").
        domain_name: Any domain in the zone; the record goes on its root.
        value: TXT value, unquoted.
    """
    return _apex_record(
        f"{domain_name}-txt-record-{name}", domain_name, "TXT", [value], opts
    )


def create_google_mx_records(
    domain_name: str,
    opts: Optional[pulumi.ResourceOptions] = None,
) -> aws.route53.Record:
    """Point mail for domain_name's root domain at Google Workspace."""
    return _apex_record(
        f"{domain_name}-google-mx-records", domain_name, "MX", GOOGLE_MX_RECORDS, opts
    )
