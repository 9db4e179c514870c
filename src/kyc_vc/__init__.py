"""
KYC VC - verifiable credentials attesting to KYC outcomes.

Supports:
- Issuance of W3C-style KYC credentials signed by a financial institution
- Ed25519 (Ed25519Signature2020) and secp256k1 (EcdsaSecp256k1Signature2019) proofs
- Verification of expiration, revocation marker, issuer and signature
- Batch issuance with per-request failure isolation
"""

import logging

from kyc_vc.batch import BatchFailure, BatchIssuer, BatchResult
from kyc_vc.canonical import canonicalize, hash_pii
from kyc_vc.config import Settings
from kyc_vc.errors import (
    AccreditationMismatch,
    ComplianceCheckFailed,
    CredentialError,
    ErrorCode,
    InvalidRequest,
    KeyMaterialError,
    LevelMismatch,
    MalformedCredential,
    UnknownCustomer,
    UnknownIssuer,
    UnsupportedAlgorithm,
)
from kyc_vc.issuer import CredentialIssuer
from kyc_vc.models import (
    Credential,
    IssuanceRequest,
    IssuerRecord,
    KYCRecord,
    SignatureAlgorithm,
)
from kyc_vc.signing import generate_key_pair, sign, verify
from kyc_vc.stores import InMemoryCustomerStore, InMemoryIssuerStore, load_registry
from kyc_vc.verifier import (
    CredentialVerifier,
    VerificationResult,
    revoke_credential,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "AccreditationMismatch",
    "BatchFailure",
    "BatchIssuer",
    "BatchResult",
    "ComplianceCheckFailed",
    "Credential",
    "CredentialError",
    "CredentialIssuer",
    "CredentialVerifier",
    "ErrorCode",
    "InMemoryCustomerStore",
    "InMemoryIssuerStore",
    "InvalidRequest",
    "IssuanceRequest",
    "IssuerRecord",
    "KYCRecord",
    "KeyMaterialError",
    "LevelMismatch",
    "MalformedCredential",
    "Settings",
    "SignatureAlgorithm",
    "UnknownCustomer",
    "UnknownIssuer",
    "UnsupportedAlgorithm",
    "VerificationResult",
    "canonicalize",
    "generate_key_pair",
    "hash_pii",
    "load_registry",
    "revoke_credential",
    "sign",
    "verify",
]
