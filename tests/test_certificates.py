"""Tests for the certificate provisioner against an in-memory backend"""

import asyncio

import pytest

from sitekit._helpers import caa_record_values
from sitekit.certificates import (
    CAA_RECORD_TTL,
    VALIDATION_RECORD_TTL,
    CertificateProvisioner,
    PendingCertificate,
    RegionContext,
    ValidationChallenge,
)
from sitekit.errors import (
    CertificateValidationFailed,
    CertificateValidationTimeout,
    InvalidDomainError,
    NoIssuedCertificateFound,
    ZoneNotFound,
)
from sitekit.settings import CertificateSettings


class FakeBackend:
    """Records every call in order; zones and issued certificates are dicts."""

    def __init__(self, zones=None, issued=None, confirm_delay=0.0, reject=False):
        self.zones = {"example.com": "Z123"} if zones is None else zones
        self.issued = issued or {}
        self.confirm_delay = confirm_delay
        self.reject = reject
        self.calls = []
        self.records = []
        self.contexts = []

    def region_context(self, region):
        self.contexts.append(region)
        return RegionContext(region=region, handle=f"provider-{region}")

    async def request_certificate(self, context, request):
        self.calls.append(("request_certificate", request.domain_name))
        arn = f"arn:aws:acm:{context.region}:123456789012:certificate/{request.parent_domain}"
        return PendingCertificate(request=request, arn=arn)

    async def read_challenge(self, certificate):
        self.calls.append(("read_challenge", certificate.request.domain_name))
        parent = certificate.request.parent_domain
        return ValidationChallenge(
            name=f"_a1b2.{parent}.", type="CNAME", value="_c3d4.acm-validations.aws."
        )

    async def lookup_zone_id(self, root_domain):
        self.calls.append(("lookup_zone_id", root_domain))
        if root_domain not in self.zones:
            raise ZoneNotFound(root_domain)
        return self.zones[root_domain]

    async def create_record(self, record):
        self.calls.append(("create_record", record.type))
        self.records.append(record)
        return record.name.rstrip(".")

    async def confirm_validation(self, context, certificate, validation_record_fqdns, timeout):
        self.calls.append(("confirm_validation", tuple(validation_record_fqdns)))
        if self.confirm_delay:
            await asyncio.sleep(self.confirm_delay)
        if self.reject:
            raise CertificateValidationFailed(certificate.request.domain_name)
        return certificate.arn

    async def find_issued_certificate(self, context, domain):
        self.calls.append(("find_issued_certificate", domain))
        return self.issued.get((context.region, domain))

    def record(self, record_type):
        (record,) = [r for r in self.records if r.type == record_type]
        return record

    def index(self, call):
        return self.calls.index(call)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def provisioner(backend):
    return CertificateProvisioner(backend)


def provision(provisioner, domain, **kwargs):
    return asyncio.run(provisioner.provision(domain, **kwargs))


class TestProvision:
    def test_returns_validated_arn(self, provisioner):
        arn = provision(provisioner, "www.example.com")
        assert arn == "arn:aws:acm:us-east-1:123456789012:certificate/example.com"

    def test_requests_wildcard_for_parent_domain(self, provisioner, backend):
        provision(provisioner, "www.example.com")
        assert ("request_certificate", "*.example.com") in backend.calls

    def test_nested_subdomain_uses_parent_and_root(self, backend):
        provisioner = CertificateProvisioner(backend)
        provision(provisioner, "api.shop.example.com")
        assert ("request_certificate", "*.shop.example.com") in backend.calls
        assert ("lookup_zone_id", "example.com") in backend.calls
        assert backend.record("CAA").name == "shop.example.com"

    def test_caa_record(self, provisioner, backend):
        provision(provisioner, "www.example.com")
        caa = backend.record("CAA")
        assert caa.name == "example.com"
        assert caa.zone_id == "Z123"
        assert caa.ttl == CAA_RECORD_TTL == 3600
        assert caa.values == caa_record_values()

    def test_caa_extras_keep_baseline_first(self, backend):
        settings = CertificateSettings(extra_caa_entries=('0 issue "sectigo.com"',))
        provisioner = CertificateProvisioner(backend, settings)
        provision(
            provisioner,
            "www.example.com",
            extra_caa_entries=['0 iodef "mailto:ops@example.com"'],
        )
        values = backend.record("CAA").values
        assert values[:10] == caa_record_values()
        assert values[10:] == [
            '0 issue "sectigo.com"',
            '0 iodef "mailto:ops@example.com"',
        ]

    def test_validation_record_from_challenge(self, provisioner, backend):
        provision(provisioner, "www.example.com")
        record = backend.record("CNAME")
        assert record.name == "_a1b2.example.com."
        assert record.zone_id == "Z123"
        assert record.ttl == VALIDATION_RECORD_TTL == 600
        assert record.values == ["_c3d4.acm-validations.aws."]

    def test_validation_record_waits_for_challenge(self, provisioner, backend):
        provision(provisioner, "www.example.com")
        challenge = backend.index(("read_challenge", "*.example.com"))
        zone = backend.index(("lookup_zone_id", "example.com"))
        record = backend.index(("create_record", "CNAME"))
        assert backend.index(("request_certificate", "*.example.com")) < challenge
        assert challenge < record
        assert zone < record

    def test_confirmation_keyed_by_validation_fqdn(self, provisioner, backend):
        provision(provisioner, "www.example.com")
        confirm = backend.index(("confirm_validation", ("_a1b2.example.com",)))
        assert confirm == len(backend.calls) - 1

    def test_caa_zone_is_looked_up_root_domain(self, backend):
        backend.zones = {"example.com": "Z123", "example.org": "Z999"}
        provision(CertificateProvisioner(backend), "www.example.org")
        assert ("lookup_zone_id", "example.org") in backend.calls
        assert backend.record("CAA").zone_id == "Z999"

    def test_missing_zone_creates_no_records(self, backend):
        backend.zones = {}
        with pytest.raises(ZoneNotFound) as excinfo:
            provision(CertificateProvisioner(backend), "www.example.com")
        assert excinfo.value.root_domain == "example.com"
        assert backend.records == []

    def test_invalid_domain_touches_nothing(self, provisioner, backend):
        with pytest.raises(InvalidDomainError):
            provision(provisioner, "localhost")
        assert backend.calls == []
        assert backend.contexts == []

    def test_validation_failure_propagates(self, backend):
        backend.reject = True
        with pytest.raises(CertificateValidationFailed):
            provision(CertificateProvisioner(backend), "www.example.com")

    def test_validation_timeout(self, backend):
        backend.confirm_delay = 1
        settings = CertificateSettings(validation_timeout=0.01)
        with pytest.raises(CertificateValidationTimeout) as excinfo:
            provision(CertificateProvisioner(backend, settings), "www.example.com")
        assert excinfo.value.domain == "*.example.com"


class TestRegionContexts:
    def test_context_shared_across_calls(self, provisioner, backend):
        provision(provisioner, "www.example.com")
        provision(provisioner, "blog.example.com")
        assert backend.contexts == ["us-east-1"]

    def test_region_override(self, provisioner, backend):
        arn = provision(provisioner, "www.example.com", region="eu-west-1")
        assert backend.contexts == ["eu-west-1"]
        assert arn.startswith("arn:aws:acm:eu-west-1:")

    def test_explicit_context_is_used(self, provisioner, backend):
        context = RegionContext(region="us-west-2")
        arn = provision(provisioner, "www.example.com", context=context)
        assert backend.contexts == []
        assert arn.startswith("arn:aws:acm:us-west-2:")

    def test_settings_region_is_default(self, backend):
        provisioner = CertificateProvisioner(
            backend, CertificateSettings(region="ap-south-1")
        )
        assert provisioner.context_for().region == "ap-south-1"


class TestLookupExisting:
    def test_returns_issued_arn(self, backend, provisioner):
        backend.issued = {("us-east-1", "*.example.com"): "arn:aws:acm:issued"}
        arn = asyncio.run(provisioner.lookup_existing("www.example.com"))
        assert arn == "arn:aws:acm:issued"

    def test_provisions_nothing(self, backend, provisioner):
        backend.issued = {("us-east-1", "*.example.com"): "arn:aws:acm:issued"}
        asyncio.run(provisioner.lookup_existing("example.com"))
        assert backend.calls == [("find_issued_certificate", "*.example.com")]

    def test_none_issued_fails(self, provisioner):
        with pytest.raises(NoIssuedCertificateFound) as excinfo:
            asyncio.run(provisioner.lookup_existing("www.example.com"))
        assert excinfo.value.domain == "*.example.com"
        assert excinfo.value.region == "us-east-1"
