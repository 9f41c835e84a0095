"""
sitekit - static website with a DNS-validated wildcard certificate.

Wires the components using Pulumi config and output chaining:

- **Certificate**: when ``provision_certificate`` is set, a WildcardCertificate
  is created for the parent domain (one per parent domain across all stacks)
  and its ARN is passed to the website. Otherwise the website looks up the
  most recent issued certificate.
- **Website**: S3 + CloudFront + Route 53 aliases for ``domain_name``.
- **Zone records**: optional TXT records and Google Workspace MX records at
  the root domain.

Stack exports: certificate_arn, website_url, website_bucket_uri,
cloudfront_domain_name, cloudfront_id.
"""

import pulumi

from config import StackConfig
from sitekit import PulumiCertificateBackend, StaticWebsite, WildcardCertificate
from sitekit.dns import create_google_mx_records, create_txt_record


def _component_name(domain_name: str, suffix: str) -> str:
    return f"{domain_name.replace('.', '-')}-{suffix}"


def main():
    """
    Build the certificate (or reuse an issued one), the website and records.

    Reads config, shares one issuance-region provider between the
    components, and exports the website outputs.
    """
    config = StackConfig.from_pulumi_config(pulumi.Config())
    context = PulumiCertificateBackend(
        name_prefix=_component_name(config.domain_name, "shared")
    ).region_context(config.certificate.region)

    certificate_arn = None
    if config.provision_certificate:
        certificate = WildcardCertificate(
            name=_component_name(config.domain_name, "certificate"),
            domain_name=config.domain_name,
            settings=config.certificate,
            context=context,
        )
        certificate_arn = certificate.certificate_arn
        pulumi.export("certificate_arn", certificate_arn)

    website = StaticWebsite(
        name=_component_name(config.domain_name, "website"),
        domain_name=config.domain_name,
        settings=config.website,
        certificate_arn=certificate_arn,
        certificate_settings=config.certificate,
        context=context,
    )

    for name, value in config.txt_records:
        create_txt_record(name, config.domain_name, value)
    if config.google_mx_records:
        create_google_mx_records(config.domain_name)

    for output_name, value in [
        ("website_url", website.url),
        ("website_bucket_uri", website.bucket_uri),
        ("cloudfront_domain_name", website.cloudfront_domain_name),
        ("cloudfront_id", website.cloudfront_id),
    ]:
        pulumi.export(output_name, value)


if __name__ == "__main__":
    main()
