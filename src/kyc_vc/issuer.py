"""
Credential issuance.

Builds a KYC credential from a customer's KYC record and an issuer's
registry entry, then signs it with the issuer's key. Nothing is returned
unless every check passes and the signature has been attached.
"""

from __future__ import annotations

import itertools
import logging
import secrets
from datetime import datetime, timedelta
from typing import Callable

from kyc_vc.canonical import canonicalize, hash_pii, sha256_hex
from kyc_vc.config import Settings
from kyc_vc.errors import (
    AccreditationMismatch,
    ComplianceCheckFailed,
    CredentialError,
    InvalidRequest,
    LevelMismatch,
    UnknownCustomer,
    UnknownIssuer,
    UnsupportedAlgorithm,
)
from kyc_vc.models import (
    AmountVerification,
    Credential,
    CredentialStatusRef,
    CredentialSubject,
    HashedPII,
    IssuanceRequest,
    IssuerRecord,
    IssuerSnapshot,
    KYCClaims,
    KYCRecord,
    Proof,
    ScreeningStatus,
    UnsignedCredential,
    truncate_to_millis,
    utc_now,
)
from kyc_vc.signing import sign
from kyc_vc.stores import CustomerStore, IssuerStore

logger = logging.getLogger(__name__)

# Folded into every credential id so two issuances in the same millisecond differ.
_issuance_counter = itertools.count()


class CredentialIssuer:
    """Issues signed KYC credentials.

    Args:
        issuer_store: Lookup for issuer registry entries.
        customer_store: Lookup for customer KYC records.
        settings: Vocabulary and defaults. Defaults to ``Settings()``.
        clock: Returns the current UTC time.
    """

    def __init__(
        self,
        issuer_store: IssuerStore,
        customer_store: CustomerStore,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.issuer_store = issuer_store
        self.customer_store = customer_store
        self.settings = settings or Settings()
        self.clock = clock

    def issue(self, request: IssuanceRequest) -> Credential:
        """Issue a credential for ``request``.

        Raises:
            UnknownIssuer: The issuer DID is not registered.
            UnknownCustomer: The customer KYC id is not known.
            ComplianceCheckFailed: AML, sanctions or PEP screening has not passed.
            LevelMismatch: The requested KYC level differs from the record.
            AccreditationMismatch: The requested accreditation differs from the record.
            UnsupportedAlgorithm: The issuer's key cannot sign with the requested algorithm.
            InvalidRequest: The expiry period runs past the latest representable date.
        """
        try:
            credential = self._issue(request)
        except CredentialError as e:
            logger.warning(
                "Issuance rejected for customer %s by %s: %s",
                request.customer_kyc_id,
                request.issuer_did,
                e,
            )
            raise

        logger.info(
            "Issued credential %s to %s (issuer %s, %s)",
            credential.id,
            credential.credential_subject.id,
            credential.issuer.id,
            credential.proof.type,
        )
        return credential

    def _issue(self, request: IssuanceRequest) -> Credential:
        issuer = self.issuer_store.resolve(request.issuer_did)
        if issuer is None:
            raise UnknownIssuer(request.issuer_did)

        kyc = self.customer_store.resolve(request.customer_kyc_id)
        if kyc is None:
            raise UnknownCustomer(request.customer_kyc_id)

        self._check_compliance(kyc)

        if request.kyc_level is not kyc.kyc_level:
            raise LevelMismatch(request.kyc_level.value, kyc.kyc_level.value)
        if request.accredited_investor != kyc.accredited_investor:
            raise AccreditationMismatch(request.accredited_investor, kyc.accredited_investor)

        subject_did = kyc.user_did or f"{self.settings.subject_namespace}{request.customer_kyc_id}"

        issued_at = truncate_to_millis(self.clock())
        credential_id = self.derive_credential_id(issuer.did, subject_did, issued_at)

        expiry_days = (
            self.settings.default_expiry_days if request.expiry_days is None else request.expiry_days
        )
        try:
            expires_at = issued_at + timedelta(days=expiry_days)
        except OverflowError:
            raise InvalidRequest(
                f"expiryDays {expiry_days} puts the expiration date out of range"
            ) from None

        unsigned = UnsignedCredential(
            context=self.settings.contexts,
            id=credential_id,
            type=self.settings.credential_types,
            issuer=IssuerSnapshot.of(issuer),
            issuance_date=issued_at,
            expiration_date=expires_at,
            credential_subject=CredentialSubject(
                id=subject_did,
                hashed_pii=HashedPII(
                    name=hash_pii(kyc.name),
                    date_of_birth=hash_pii(kyc.date_of_birth),
                    citizenship=hash_pii(kyc.citizenship),
                    address=hash_pii(kyc.address),
                ),
                claims=KYCClaims.of(kyc),
                amount_verified_for=AmountVerification(
                    value=kyc.verified_amount,
                    currency=kyc.currency,
                ),
                tier=kyc.tier,
                jurisdictions=request.jurisdiction,
            ),
            decommissioned_at=None,
            credential_status=self.status_reference(credential_id),
        )

        return unsigned.with_proof(self._sign(unsigned, issuer, request, issued_at))

    def _check_compliance(self, kyc: KYCRecord) -> None:
        screenings = (
            ("amlScreening", kyc.aml_screening),
            ("sanctionsCheck", kyc.sanctions_check),
            ("pepScreening", kyc.pep_screening),
        )
        failed = [name for name, status in screenings if status is not ScreeningStatus.PASSED]
        if failed:
            raise ComplianceCheckFailed(failed)

    def _sign(
        self,
        unsigned: UnsignedCredential,
        issuer: IssuerRecord,
        request: IssuanceRequest,
        issued_at: datetime,
    ) -> Proof:
        algorithm = request.signature_algorithm or issuer.signature_algorithm
        if algorithm is not issuer.signature_algorithm:
            raise UnsupportedAlgorithm(
                algorithm.value,
                f"issuer {issuer.did} holds {issuer.signature_algorithm.value} key material",
            )

        proof_value = sign(canonicalize(unsigned.unsigned_payload()), issuer.private_key, algorithm)

        return Proof(
            type=algorithm.proof_type,
            created=issued_at,
            verification_method=f"{issuer.did}#{self.settings.verification_method_fragment}",
            proof_purpose=self.settings.proof_purpose,
            proof_value=proof_value,
        )

    def derive_credential_id(self, issuer_did: str, subject_did: str, issued_at: datetime) -> str:
        """Credential id: namespace plus 16 hex chars of a SHA-256 digest.

        The digest covers issuer, subject, issuance time in milliseconds, a
        process-wide counter and a random nonce.
        """
        millis = round(issued_at.timestamp() * 1000)
        material = (
            f"{issuer_did}:{subject_did}:{millis}:"
            f"{next(_issuance_counter)}:{secrets.token_hex(16)}"
        )
        return self.settings.credential_namespace + sha256_hex(material)[:16]

    def status_reference(self, credential_id: str) -> CredentialStatusRef:
        """Revocation registry pointer derived from the credential id."""
        suffix = credential_id.rsplit(":", 1)[-1]
        return CredentialStatusRef(
            id=f"{self.settings.status_base_url}{suffix}",
            type=self.settings.status_type,
            registry_contract=self.settings.registry_contract,
            token_id=str(int(sha256_hex(credential_id)[:8], 16) % 100000),
        )
