"""
KYC Verifiable Credentials verifier.

Checks, in order:
- expiration
- revocation marker (``decommissionedAt``)
- issuer registration
- proof signature against the issuer's registered key and algorithm

Every check runs and reports its own error. The signature check is skipped
only when the issuer is unknown, since there is no key to check against.
Untrusted input never raises; it yields an invalid result.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from kyc_vc.canonical import canonicalize
from kyc_vc.errors import ErrorCode, MalformedCredential
from kyc_vc.models import Credential, IssuerRecord, truncate_to_millis, utc_now
from kyc_vc.signing import verify as verify_signature
from kyc_vc.stores import IssuerStore

logger = logging.getLogger(__name__)


@dataclass
class VerificationIssue:
    """One failed check."""

    code: ErrorCode
    message: str


@dataclass
class ProofVerificationResult:
    """Result of cryptographic proof verification."""

    valid: bool
    proof_type: str
    verification_method: str
    error: str | None = None


@dataclass
class VerificationResult:
    """Complete verification result."""

    valid: bool
    credential_id: str | None
    issuer: str | None
    proof: ProofVerificationResult | None = None
    errors: list[VerificationIssue] = field(default_factory=list)

    @property
    def error_codes(self) -> list[ErrorCode]:
        return [issue.code for issue in self.errors]

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "credentialId": self.credential_id,
            "issuer": self.issuer,
            "proof": {
                "valid": self.proof.valid,
                "type": self.proof.proof_type,
                "verificationMethod": self.proof.verification_method,
                "error": self.proof.error,
            } if self.proof else None,
            "errors": [{"code": e.code.value, "message": e.message} for e in self.errors],
        }


class CredentialVerifier:
    """Verifies KYC credentials against an issuer registry.

    Args:
        issuer_store: Lookup for issuer registry entries (supplies public keys).
        clock: Returns the current UTC time.
    """

    def __init__(
        self,
        issuer_store: IssuerStore,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.issuer_store = issuer_store
        self.clock = clock

    def verify(self, credential: Credential | dict[str, Any]) -> VerificationResult:
        """Verify a credential.

        Args:
            credential: A ``Credential`` or its JSON wire form.

        Returns:
            VerificationResult; ``valid`` is True only if every check passed.
        """
        if isinstance(credential, Credential):
            parsed = credential
            payload = credential.unsigned_payload()
        else:
            try:
                parsed = Credential.from_dict(credential)
            except MalformedCredential as e:
                logger.info("Rejected malformed credential: %s", e.message)
                return VerificationResult(
                    valid=False,
                    credential_id=self._extract_id(credential),
                    issuer=self._extract_issuer(credential),
                    errors=[
                        VerificationIssue(
                            ErrorCode.MALFORMED_CREDENTIAL,
                            f"Malformed credential: {e.message}",
                        )
                    ],
                )
            payload = {k: v for k, v in credential.items() if k != "proof"}

        errors: list[VerificationIssue] = []

        if self.clock() > parsed.expiration_date:
            errors.append(VerificationIssue(ErrorCode.EXPIRED, "Credential has expired"))

        if parsed.decommissioned_at is not None:
            errors.append(
                VerificationIssue(ErrorCode.REVOKED, "Credential has been decommissioned")
            )

        issuer = self.issuer_store.resolve(parsed.issuer.id)
        proof_result: ProofVerificationResult | None = None
        if issuer is None:
            errors.append(
                VerificationIssue(ErrorCode.UNKNOWN_ISSUER, f"Unknown issuer: {parsed.issuer.id}")
            )
        else:
            proof_result = self._verify_proof(parsed, payload, issuer)
            if not proof_result.valid:
                errors.append(
                    VerificationIssue(
                        ErrorCode.INVALID_SIGNATURE,
                        f"Proof verification failed: {proof_result.error}",
                    )
                )

        valid = not errors and proof_result is not None and proof_result.valid
        logger.info(
            "Verified credential %s: valid=%s errors=%s",
            parsed.id,
            valid,
            [e.code.value for e in errors],
        )
        return VerificationResult(
            valid=valid,
            credential_id=parsed.id,
            issuer=parsed.issuer.id,
            proof=proof_result,
            errors=errors,
        )

    def revoke(self, credential: Credential) -> Credential:
        """Revoked copy of ``credential`` stamped with this verifier's clock."""
        return revoke_credential(credential, clock=self.clock)

    def _extract_id(self, credential: Any) -> str | None:
        if isinstance(credential, dict) and isinstance(credential.get("id"), str):
            return credential["id"]
        return None

    def _extract_issuer(self, credential: Any) -> str | None:
        """Extract issuer ID from credential."""
        if not isinstance(credential, dict):
            return None
        issuer = credential.get("issuer")
        if isinstance(issuer, str):
            return issuer
        if isinstance(issuer, dict) and isinstance(issuer.get("id"), str):
            return issuer["id"]
        return None

    def _verify_proof(
        self,
        credential: Credential,
        payload: dict[str, Any],
        issuer: IssuerRecord,
    ) -> ProofVerificationResult:
        """Verify the proof against the issuer's declared algorithm and key.

        Args:
            credential: The parsed credential.
            payload: The credential without its proof, as received.
            issuer: The registered issuer.

        Returns:
            ProofVerificationResult with verification details.
        """
        proof = credential.proof
        algorithm = issuer.signature_algorithm

        def failed(error: str) -> ProofVerificationResult:
            return ProofVerificationResult(
                valid=False,
                proof_type=proof.type,
                verification_method=proof.verification_method,
                error=error,
            )

        if proof.type != algorithm.proof_type:
            return failed(
                f"Proof type {proof.type} does not match issuer algorithm {algorithm.value}"
            )

        if proof.verification_method.split("#")[0] != issuer.did:
            return failed(
                f"Verification method {proof.verification_method} does not belong to {issuer.did}"
            )

        try:
            message = canonicalize(payload)
        except (TypeError, ValueError) as e:
            return failed(f"Cannot canonicalize credential: {e}")

        if not verify_signature(message, proof.proof_value, issuer.public_key, algorithm):
            return failed("Invalid signature")

        return ProofVerificationResult(
            valid=True,
            proof_type=proof.type,
            verification_method=proof.verification_method,
        )


def revoke_credential(
    credential: Credential,
    clock: Callable[[], datetime] = utc_now,
) -> Credential:
    """Return a copy of ``credential`` with ``decommissionedAt`` set to now.

    The input is left untouched. Revoking an already revoked credential
    stamps a fresh timestamp.
    """
    revoked = dataclasses.replace(credential, decommissioned_at=truncate_to_millis(clock()))
    logger.info("Revoked credential %s", credential.id)
    return revoked
