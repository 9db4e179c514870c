"""
Issuance settings.

Defaults match the DID3 credential vocabulary. Every value can be
overridden with a ``KYC_VC_*`` environment variable.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping

from kyc_vc.models import DEFAULT_EXPIRY_DAYS

ENV_PREFIX = "KYC_VC_"


@dataclass(frozen=True)
class Settings:
    """Constants written into every issued credential."""

    contexts: tuple[str, ...] = (
        "https://www.w3.org/2018/credentials/v1",
        "https://did3.org/contexts/credentials/v1",
    )
    credential_types: tuple[str, ...] = ("VerifiableCredential", "KYCCredential")
    credential_namespace: str = "did:did3:credential:"
    subject_namespace: str = "did:did3:user:"
    status_base_url: str = "https://did3.org/credentials/status/"
    status_type: str = "DID3RevocationRegistry"
    registry_contract: str = field(default="0x" + "0" * 40)
    verification_method_fragment: str = "key-1"
    proof_purpose: str = "assertionMethod"
    default_expiry_days: int = DEFAULT_EXPIRY_DAYS

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from ``KYC_VC_*`` environment variables.

        Recognized: ``KYC_VC_CONTEXTS`` (comma separated),
        ``KYC_VC_CREDENTIAL_NAMESPACE``, ``KYC_VC_SUBJECT_NAMESPACE``,
        ``KYC_VC_STATUS_BASE_URL``, ``KYC_VC_STATUS_TYPE``,
        ``KYC_VC_REGISTRY_CONTRACT``, ``KYC_VC_DEFAULT_EXPIRY_DAYS``.

        Raises:
            ValueError: If ``KYC_VC_DEFAULT_EXPIRY_DAYS`` is not a positive integer.
        """
        env = os.environ if environ is None else environ
        overrides: dict[str, object] = {}

        contexts = env.get(ENV_PREFIX + "CONTEXTS")
        if contexts:
            overrides["contexts"] = tuple(c.strip() for c in contexts.split(",") if c.strip())

        for name in (
            "credential_namespace",
            "subject_namespace",
            "status_base_url",
            "status_type",
            "registry_contract",
        ):
            value = env.get(ENV_PREFIX + name.upper())
            if value:
                overrides[name] = value

        expiry = env.get(ENV_PREFIX + "DEFAULT_EXPIRY_DAYS")
        if expiry:
            days = int(expiry)
            if days <= 0:
                raise ValueError(f"{ENV_PREFIX}DEFAULT_EXPIRY_DAYS must be positive, got {days}")
            overrides["default_expiry_days"] = days

        return cls(**overrides)  # type: ignore[arg-type]
