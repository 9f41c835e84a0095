"""
Wildcard certificate component: ACM certificate + CAA + DNS validation.

Wraps ``CertificateProvisioner.provision`` in a ComponentResource so a stack
can create the certificate for a parent domain once and share its ARN with
every website under that domain. The ``certificate_arn`` output resolves only
after the issuer has validated the DNS challenge.
"""

from typing import Iterable, Optional

import pulumi

from sitekit.certificates import CertificateProvisioner, RegionContext
from sitekit.pulumi_backend import PulumiCertificateBackend
from sitekit.settings import CertificateSettings

ID: str = "sitekit:aws:WildcardCertificate"


class WildcardCertificate(pulumi.ComponentResource):
    """
    DNS-validated ``*.<parent domain>`` certificate in the issuance region.

    Resources: Provider (issuance region, unless a context is shared),
    Certificate, CAA Record, validation Record, CertificateValidation.
    """

    def __init__(
        self,
        name: str,
        domain_name: str,
        settings: CertificateSettings = CertificateSettings(),
        extra_caa_entries: Iterable[str] = (),
        context: Optional[RegionContext] = None,
        opts: Optional[pulumi.ResourceOptions] = None,
    ):
        """
        Provision the certificate for the parent domain of domain_name.

        Args:
            name: Pulumi resource name of the component; also prefixes the
                region provider it creates.
            domain_name: Website domain (e.g. "www.example.com"); the
                certificate covers "example.com" and "*.example.com".
            settings: Issuance region, validation timeout and stack-wide CAA
                extras.
            extra_caa_entries: CAA values added for this certificate only.
            context: Shared issuance-region context (e.g. one provider for
                the whole stack). When omitted the component creates its own.

        Outputs (set on self, registered for the component):
            certificate_arn: ARN of the validated certificate.
        """
        super().__init__(ID, name, None, opts)

        provisioner = CertificateProvisioner(
            PulumiCertificateBackend(parent=self, name_prefix=name), settings
        )
        self.certificate_arn: pulumi.Output[str] = pulumi.Output.from_input(
            provisioner.provision(
                domain_name, extra_caa_entries=extra_caa_entries, context=context
            )
        )
        self.register_outputs({"certificate_arn": self.certificate_arn})
