"""
Stack configuration loaded from pulumi.Config().

Provides a typed, immutable view of stack settings, read once when the
program starts. Only ``domain_name`` is required; every other key falls back
to the defaults documented on ``CertificateSettings`` and ``WebsiteSettings``.
Used by __main__.main() to decide whether to provision or reuse the wildcard
certificate and to configure the website.
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional

import pulumi

from sitekit._helpers import caa_iodef_entry
from sitekit.settings import CertificateSettings, WebsiteSettings


def _require_str(config: pulumi.Config, key: str) -> str:
    return config.require(key)


def _get_bool(config: pulumi.Config, key: str) -> Optional[bool]:
    return config.get_bool(key)


def _get_int(config: pulumi.Config, key: str) -> Optional[int]:
    return config.get_int(key)


def _get_str(config: pulumi.Config, key: str) -> Optional[str]:
    return config.get(key)


def _get_str_list(config: pulumi.Config, key: str) -> Optional[tuple[str, ...]]:
    raw = config.get_object(key)
    if raw is None:
        return None
    if not isinstance(raw, list) or not all(isinstance(item, str) for item in raw):
        raise ValueError(f"Config {key!r} must be a JSON array of strings")
    return tuple(raw)


def _get_str_map(config: pulumi.Config, key: str) -> tuple[tuple[str, str], ...]:
    raw = config.get_object(key)
    if raw is None:
        return ()
    if not isinstance(raw, dict) or not all(
        isinstance(value, str) for value in raw.values()
    ):
        raise ValueError(f"Config {key!r} must be a JSON object of strings")
    return tuple(raw.items())


# (settings field, config key, parser); parser receives (config, key) and
# returns the value, or None when the key is unset.
_CERTIFICATE_SPEC: list[tuple[str, str, Callable[[pulumi.Config, str], Any]]] = [
    ("region", "certificate_region", _get_str),
    ("validation_timeout", "certificate_validation_timeout", _get_int),
    ("extra_caa_entries", "extra_caa_entries", _get_str_list),
]

# (key, parser); config keys match WebsiteSettings fields.
_WEBSITE_SPEC: list[tuple[str, Callable[[pulumi.Config, str], Any]]] = [
    ("assets_paths", _get_str_list),
    ("assets_caching_lambda_arn", _get_str),
    ("security_headers_lambda_arn", _get_str),
    ("is_pwa", _get_bool),
    ("enable_dns", _get_bool),
]


@dataclass(frozen=True)
class StackConfig:
    """
    Stack configuration from Pulumi config.

    Attributes:
        domain_name: Website domain, e.g. "www.example.com" (required).
        provision_certificate: Create and validate the wildcard certificate in
            this stack. When False the most recent issued one is reused.
        certificate: Issuance region, validation timeout and CAA extras
            (``caa_iodef_email`` adds an iodef entry after them).
        website: Stack-wide website defaults.
        txt_records: (name, value) TXT records for the root domain, from a
            JSON object.
        google_mx_records: Route mail for the root domain to Google Workspace.
    """

    domain_name: str
    provision_certificate: bool = False
    certificate: CertificateSettings = CertificateSettings()
    website: WebsiteSettings = WebsiteSettings()
    txt_records: tuple[tuple[str, str], ...] = ()
    google_mx_records: bool = False

    @classmethod
    def from_pulumi_config(cls, config: pulumi.Config) -> "StackConfig":
        """
        Build StackConfig from pulumi.Config(). Unset optional keys keep defaults.
        """
        certificate = CertificateSettings().merged(
            **{field: parser(config, key) for field, key, parser in _CERTIFICATE_SPEC}
        )
        iodef_email = config.get("caa_iodef_email")
        if iodef_email:
            certificate = certificate.merged(
                extra_caa_entries=[
                    *certificate.extra_caa_entries,
                    caa_iodef_entry(iodef_email),
                ]
            )

        website = WebsiteSettings().merged(
            **{key: parser(config, key) for key, parser in _WEBSITE_SPEC}
        )

        return cls(
            domain_name=_require_str(config, "domain_name"),
            provision_certificate=bool(_get_bool(config, "provision_certificate")),
            certificate=certificate,
            website=website,
            txt_records=_get_str_map(config, "txt_records"),
            google_mx_records=bool(_get_bool(config, "google_mx_records")),
        )
