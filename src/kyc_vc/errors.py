"""
Error taxonomy for credential issuance and verification.

Issuance failures are raised as ``CredentialError`` subclasses. Verification
never raises for bad input; it reports the same ``ErrorCode`` values inside a
``VerificationResult`` instead.
"""

from __future__ import annotations

from enum import Enum
from typing import Sequence


class ErrorCode(str, Enum):
    """Machine-readable error codes."""

    UNKNOWN_ISSUER = "UnknownIssuer"
    UNKNOWN_CUSTOMER = "UnknownCustomer"
    COMPLIANCE_CHECK_FAILED = "ComplianceCheckFailed"
    LEVEL_MISMATCH = "LevelMismatch"
    ACCREDITATION_MISMATCH = "AccreditationMismatch"
    UNSUPPORTED_ALGORITHM = "UnsupportedAlgorithm"
    EXPIRED = "Expired"
    REVOKED = "Revoked"
    INVALID_SIGNATURE = "InvalidSignature"
    MALFORMED_CREDENTIAL = "MalformedCredential"
    INVALID_REQUEST = "InvalidRequest"


class CredentialError(Exception):
    """Base class for all credential errors."""

    code: ErrorCode

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class UnknownIssuer(CredentialError):
    code = ErrorCode.UNKNOWN_ISSUER

    def __init__(self, issuer_did: str) -> None:
        super().__init__(f"Issuer not found: {issuer_did}")
        self.issuer_did = issuer_did


class UnknownCustomer(CredentialError):
    code = ErrorCode.UNKNOWN_CUSTOMER

    def __init__(self, customer_kyc_id: str) -> None:
        super().__init__(f"Customer not found: {customer_kyc_id}")
        self.customer_kyc_id = customer_kyc_id


class ComplianceCheckFailed(CredentialError):
    """Raised when one or more screening checks have not passed."""

    code = ErrorCode.COMPLIANCE_CHECK_FAILED

    def __init__(self, failed_checks: Sequence[str]) -> None:
        super().__init__(
            "Customer has not passed required KYC checks: " + ", ".join(failed_checks)
        )
        self.failed_checks = list(failed_checks)


class LevelMismatch(CredentialError):
    code = ErrorCode.LEVEL_MISMATCH

    def __init__(self, requested: str, actual: str) -> None:
        super().__init__(
            f"KYC level mismatch: requested {requested}, customer has {actual}"
        )
        self.requested = requested
        self.actual = actual


class AccreditationMismatch(CredentialError):
    code = ErrorCode.ACCREDITATION_MISMATCH

    def __init__(self, requested: bool, actual: bool) -> None:
        super().__init__(
            f"Accredited investor status mismatch: requested {requested}, "
            f"customer has {actual}"
        )
        self.requested = requested
        self.actual = actual


class UnsupportedAlgorithm(CredentialError):
    code = ErrorCode.UNSUPPORTED_ALGORITHM

    def __init__(self, algorithm: object, detail: str | None = None) -> None:
        message = f"Unsupported signature algorithm: {algorithm}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.algorithm = algorithm


class InvalidRequest(CredentialError):
    """Raised when an issuance request is structurally invalid."""

    code = ErrorCode.INVALID_REQUEST


class MalformedCredential(CredentialError):
    """Raised when a credential cannot be parsed from its wire form."""

    code = ErrorCode.MALFORMED_CREDENTIAL


class KeyMaterialError(ValueError):
    """Raised when key material cannot be decoded or does not match its algorithm."""
