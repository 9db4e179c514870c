"""
Data model for KYC verifiable credentials.

Records owned by external systems (issuers, KYC customers) are read-only
dataclasses. A ``Credential`` is a tree of frozen dataclasses holding tuples,
so it behaves as a value: the only way to "change" one is to build a new copy.

Wire form follows the W3C Verifiable Credentials Data Model v1.1 with
camelCase keys and ISO-8601 UTC timestamps at millisecond precision.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from kyc_vc.errors import InvalidRequest, MalformedCredential, UnsupportedAlgorithm


class SignatureAlgorithm(str, Enum):
    """Signature schemes an issuer can sign with."""

    ED25519 = "Ed25519"
    SECP256K1 = "secp256k1"

    @property
    def proof_type(self) -> str:
        """Proof ``type`` written into the credential for this algorithm."""
        return PROOF_TYPES[self]

    @classmethod
    def parse(cls, value: SignatureAlgorithm | str) -> SignatureAlgorithm:
        """Coerce a wire tag into an algorithm.

        Raises:
            UnsupportedAlgorithm: If the tag is not recognized.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise UnsupportedAlgorithm(value) from None

    @classmethod
    def from_proof_type(cls, proof_type: str) -> SignatureAlgorithm | None:
        for algorithm, name in PROOF_TYPES.items():
            if name == proof_type:
                return algorithm
        return None


PROOF_TYPES: dict[SignatureAlgorithm, str] = {
    SignatureAlgorithm.ED25519: "Ed25519Signature2020",
    SignatureAlgorithm.SECP256K1: "EcdsaSecp256k1Signature2019",
}


class KYCLevel(str, Enum):
    BASIC = "basic"
    ENHANCED = "enhanced"
    INSTITUTIONAL = "institutional"


class ScreeningStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    PENDING = "pending"


class SourceOfFundsStatus(str, Enum):
    VERIFIED = "verified"
    UNVERIFIED = "unverified"
    PENDING = "pending"


class EntityType(str, Enum):
    INDIVIDUAL = "individual"
    CORPORATE = "corporate"
    INSTITUTIONAL = "institutional"


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def truncate_to_millis(value: datetime) -> datetime:
    """Drop sub-millisecond precision so the value survives a wire round trip."""
    return value.replace(microsecond=(value.microsecond // 1000) * 1000)


def format_timestamp(value: datetime) -> str:
    """Format as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into an aware UTC datetime.

    Raises:
        ValueError: If the value is not a string, not ISO-8601, or has no offset.
    """
    if not isinstance(value, str):
        raise ValueError(f"Timestamp must be a string, got {type(value).__name__}")
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        raise ValueError(f"Timestamp has no UTC offset: {value}")
    return parsed.astimezone(timezone.utc)


# ---------------------------------------------------------------------------
# Field helpers for untrusted dictionaries
# ---------------------------------------------------------------------------


def _get(data: dict[str, Any], key: str) -> Any:
    if not isinstance(data, dict):
        raise TypeError(f"Expected an object, got {type(data).__name__}")
    if key not in data:
        raise KeyError(key)
    return data[key]


def _str(data: dict[str, Any], key: str) -> str:
    value = _get(data, key)
    if not isinstance(value, str):
        raise TypeError(f"{key} must be a string")
    return value


def _int(data: dict[str, Any], key: str) -> int:
    value = _get(data, key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{key} must be an integer")
    return value


def _bool(data: dict[str, Any], key: str) -> bool:
    value = _get(data, key)
    if not isinstance(value, bool):
        raise TypeError(f"{key} must be a boolean")
    return value


def _number(data: dict[str, Any], key: str) -> int | float:
    value = _get(data, key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{key} must be a number")
    return value


def _str_tuple(data: dict[str, Any], key: str) -> tuple[str, ...]:
    value = _get(data, key)
    if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
        raise TypeError(f"{key} must be a list of strings")
    return tuple(value)


def _check_tier(tier: int) -> None:
    if isinstance(tier, bool) or not isinstance(tier, int) or not 1 <= tier <= 5:
        raise ValueError(f"tier must be an integer between 1 and 5, got {tier!r}")


# ---------------------------------------------------------------------------
# External records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class IssuerRecord:
    """A financial institution allowed to issue credentials."""

    did: str
    name: str
    jurisdiction: tuple[str, ...]
    regulators: tuple[str, ...]
    tier: int
    signature_algorithm: SignatureAlgorithm
    private_key: str = field(repr=False)
    public_key: str

    def __post_init__(self) -> None:
        _check_tier(self.tier)
        object.__setattr__(
            self, "signature_algorithm", SignatureAlgorithm.parse(self.signature_algorithm)
        )
        object.__setattr__(self, "jurisdiction", tuple(self.jurisdiction))
        object.__setattr__(self, "regulators", tuple(self.regulators))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IssuerRecord:
        return cls(
            did=_str(data, "did"),
            name=_str(data, "name"),
            jurisdiction=_str_tuple(data, "jurisdiction"),
            regulators=_str_tuple(data, "regulators"),
            tier=_int(data, "tier"),
            signature_algorithm=SignatureAlgorithm.parse(_str(data, "signatureAlgorithm")),
            private_key=_str(data, "privateKey"),
            public_key=_str(data, "publicKey"),
        )

    def public_view(self) -> dict[str, Any]:
        """Issuer details safe to publish (no private key)."""
        return {
            "did": self.did,
            "name": self.name,
            "jurisdiction": list(self.jurisdiction),
            "regulators": list(self.regulators),
            "tier": self.tier,
            "signatureAlgorithm": self.signature_algorithm.value,
            "publicKey": self.public_key,
        }


@dataclass(frozen=True)
class KYCRecord:
    """Outcome of a customer's KYC process, as held by the KYC data source."""

    kyc_id: str
    name: str
    date_of_birth: str
    citizenship: str
    address: str
    kyc_level: KYCLevel
    aml_screening: ScreeningStatus
    sanctions_check: ScreeningStatus
    pep_screening: ScreeningStatus
    source_of_funds: SourceOfFundsStatus
    accredited_investor: bool
    entity_type: EntityType
    verified_amount: int | float
    currency: str
    tier: int
    jurisdictions: tuple[str, ...]
    user_did: str | None = None

    def __post_init__(self) -> None:
        _check_tier(self.tier)
        if not math.isfinite(self.verified_amount):
            raise ValueError(f"verifiedAmount must be a finite number, got {self.verified_amount!r}")
        object.__setattr__(self, "kyc_level", KYCLevel(self.kyc_level))
        object.__setattr__(self, "aml_screening", ScreeningStatus(self.aml_screening))
        object.__setattr__(self, "sanctions_check", ScreeningStatus(self.sanctions_check))
        object.__setattr__(self, "pep_screening", ScreeningStatus(self.pep_screening))
        object.__setattr__(self, "source_of_funds", SourceOfFundsStatus(self.source_of_funds))
        object.__setattr__(self, "entity_type", EntityType(self.entity_type))
        object.__setattr__(self, "jurisdictions", tuple(self.jurisdictions))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> KYCRecord:
        user_did = data.get("userDid")
        if user_did is not None and not isinstance(user_did, str):
            raise TypeError("userDid must be a string")
        return cls(
            kyc_id=_str(data, "kycId"),
            name=_str(data, "name"),
            date_of_birth=_str(data, "dateOfBirth"),
            citizenship=_str(data, "citizenship"),
            address=_str(data, "address"),
            kyc_level=KYCLevel(_str(data, "kycLevel")),
            aml_screening=ScreeningStatus(_str(data, "amlScreening")),
            sanctions_check=ScreeningStatus(_str(data, "sanctionsCheck")),
            pep_screening=ScreeningStatus(_str(data, "pepScreening")),
            source_of_funds=SourceOfFundsStatus(_str(data, "sourceOfFunds")),
            accredited_investor=_bool(data, "accreditedInvestor"),
            entity_type=EntityType(_str(data, "entityType")),
            verified_amount=_number(data, "verifiedAmount"),
            currency=_str(data, "currency"),
            tier=_int(data, "tier"),
            jurisdictions=_str_tuple(data, "jurisdictions"),
            user_did=user_did,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "kycId": self.kyc_id,
            "name": self.name,
            "dateOfBirth": self.date_of_birth,
            "citizenship": self.citizenship,
            "address": self.address,
            "kycLevel": self.kyc_level.value,
            "amlScreening": self.aml_screening.value,
            "sanctionsCheck": self.sanctions_check.value,
            "pepScreening": self.pep_screening.value,
            "sourceOfFunds": self.source_of_funds.value,
            "accreditedInvestor": self.accredited_investor,
            "entityType": self.entity_type.value,
            "verifiedAmount": self.verified_amount,
            "currency": self.currency,
            "tier": self.tier,
            "jurisdictions": list(self.jurisdictions),
        }
        if self.user_did is not None:
            data["userDid"] = self.user_did
        return data


DEFAULT_EXPIRY_DAYS = 365


@dataclass(frozen=True)
class IssuanceRequest:
    """Parameters for issuing one credential.

    Raises:
        InvalidRequest: If a field is missing or out of range.
        UnsupportedAlgorithm: If ``signature_algorithm`` is not recognized.
    """

    customer_kyc_id: str
    issuer_did: str
    kyc_level: KYCLevel
    accredited_investor: bool
    jurisdiction: tuple[str, ...]
    expiry_days: int | None = None
    signature_algorithm: SignatureAlgorithm | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.customer_kyc_id, str) or not self.customer_kyc_id:
            raise InvalidRequest("Missing required field: customerKycId")
        if not isinstance(self.issuer_did, str) or not self.issuer_did:
            raise InvalidRequest("Missing required field: issuerDid")
        try:
            object.__setattr__(self, "kyc_level", KYCLevel(self.kyc_level))
        except ValueError:
            raise InvalidRequest(f"Invalid kycLevel: {self.kyc_level!r}") from None
        if not isinstance(self.accredited_investor, bool):
            raise InvalidRequest("accreditedInvestor must be a boolean")
        if isinstance(self.jurisdiction, str) or not isinstance(self.jurisdiction, Iterable):
            raise InvalidRequest("jurisdiction must be a list of strings")
        jurisdiction = tuple(self.jurisdiction)
        if not jurisdiction or not all(isinstance(j, str) and j for j in jurisdiction):
            raise InvalidRequest("jurisdiction must be a non-empty list of strings")
        object.__setattr__(self, "jurisdiction", jurisdiction)
        if self.expiry_days is not None and (
            isinstance(self.expiry_days, bool)
            or not isinstance(self.expiry_days, int)
            or self.expiry_days <= 0
        ):
            raise InvalidRequest(f"expiryDays must be a positive integer, got {self.expiry_days!r}")
        if self.signature_algorithm is not None:
            object.__setattr__(
                self, "signature_algorithm", SignatureAlgorithm.parse(self.signature_algorithm)
            )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IssuanceRequest:
        """Build a request from its JSON form (camelCase keys)."""
        if not isinstance(data, dict):
            raise InvalidRequest("Issuance request must be a JSON object")
        for key in ("customerKycId", "issuerDid", "kycLevel", "accreditedInvestor", "jurisdiction"):
            if key not in data:
                raise InvalidRequest(f"Missing required field: {key}")
        return cls(
            customer_kyc_id=data["customerKycId"],
            issuer_did=data["issuerDid"],
            kyc_level=data["kycLevel"],
            accredited_investor=data["accreditedInvestor"],
            jurisdiction=data["jurisdiction"],
            expiry_days=data.get("expiryDays"),
            signature_algorithm=data.get("signatureAlgorithm"),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "customerKycId": self.customer_kyc_id,
            "issuerDid": self.issuer_did,
            "kycLevel": self.kyc_level.value,
            "accreditedInvestor": self.accredited_investor,
            "jurisdiction": list(self.jurisdiction),
        }
        if self.expiry_days is not None:
            data["expiryDays"] = self.expiry_days
        if self.signature_algorithm is not None:
            data["signatureAlgorithm"] = self.signature_algorithm.value
        return data


# ---------------------------------------------------------------------------
# Credential
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class IssuerSnapshot:
    """Issuer details copied into the credential at issuance time."""

    id: str
    name: str
    jurisdiction: tuple[str, ...]
    regulators: tuple[str, ...]
    tier: int

    @classmethod
    def of(cls, issuer: IssuerRecord) -> IssuerSnapshot:
        return cls(
            id=issuer.did,
            name=issuer.name,
            jurisdiction=issuer.jurisdiction,
            regulators=issuer.regulators,
            tier=issuer.tier,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IssuerSnapshot:
        return cls(
            id=_str(data, "id"),
            name=_str(data, "name"),
            jurisdiction=_str_tuple(data, "jurisdiction"),
            regulators=_str_tuple(data, "regulators"),
            tier=_int(data, "tier"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "jurisdiction": list(self.jurisdiction),
            "regulators": list(self.regulators),
            "tier": self.tier,
        }


@dataclass(frozen=True)
class HashedPII:
    name: str
    date_of_birth: str
    citizenship: str
    address: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HashedPII:
        return cls(
            name=_str(data, "name"),
            date_of_birth=_str(data, "dateOfBirth"),
            citizenship=_str(data, "citizenship"),
            address=_str(data, "address"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "dateOfBirth": self.date_of_birth,
            "citizenship": self.citizenship,
            "address": self.address,
        }


@dataclass(frozen=True)
class KYCClaims:
    kyc_level: KYCLevel
    aml_screening: ScreeningStatus
    sanctions_check: ScreeningStatus
    pep_screening: ScreeningStatus
    source_of_funds: SourceOfFundsStatus
    accredited_investor: bool
    entity_type: EntityType

    @classmethod
    def of(cls, record: KYCRecord) -> KYCClaims:
        return cls(
            kyc_level=record.kyc_level,
            aml_screening=record.aml_screening,
            sanctions_check=record.sanctions_check,
            pep_screening=record.pep_screening,
            source_of_funds=record.source_of_funds,
            accredited_investor=record.accredited_investor,
            entity_type=record.entity_type,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> KYCClaims:
        return cls(
            kyc_level=KYCLevel(_str(data, "kycLevel")),
            aml_screening=ScreeningStatus(_str(data, "amlScreening")),
            sanctions_check=ScreeningStatus(_str(data, "sanctionsCheck")),
            pep_screening=ScreeningStatus(_str(data, "pepScreening")),
            source_of_funds=SourceOfFundsStatus(_str(data, "sourceOfFunds")),
            accredited_investor=_bool(data, "accreditedInvestor"),
            entity_type=EntityType(_str(data, "entityType")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "kycLevel": self.kyc_level.value,
            "amlScreening": self.aml_screening.value,
            "sanctionsCheck": self.sanctions_check.value,
            "pepScreening": self.pep_screening.value,
            "sourceOfFunds": self.source_of_funds.value,
            "accreditedInvestor": self.accredited_investor,
            "entityType": self.entity_type.value,
        }


@dataclass(frozen=True)
class AmountVerification:
    value: int | float
    currency: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AmountVerification:
        return cls(value=_number(data, "value"), currency=_str(data, "currency"))

    def to_dict(self) -> dict[str, Any]:
        return {"value": self.value, "currency": self.currency}


@dataclass(frozen=True)
class CredentialSubject:
    id: str
    hashed_pii: HashedPII
    claims: KYCClaims
    amount_verified_for: AmountVerification
    tier: int
    jurisdictions: tuple[str, ...]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CredentialSubject:
        return cls(
            id=_str(data, "id"),
            hashed_pii=HashedPII.from_dict(_get(data, "hashedPII")),
            claims=KYCClaims.from_dict(_get(data, "claims")),
            amount_verified_for=AmountVerification.from_dict(_get(data, "amountVerifiedFor")),
            tier=_int(data, "tier"),
            jurisdictions=_str_tuple(data, "jurisdictions"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "hashedPII": self.hashed_pii.to_dict(),
            "claims": self.claims.to_dict(),
            "amountVerifiedFor": self.amount_verified_for.to_dict(),
            "tier": self.tier,
            "jurisdictions": list(self.jurisdictions),
        }


@dataclass(frozen=True)
class CredentialStatusRef:
    """Placeholder pointer into a revocation registry."""

    id: str
    type: str
    registry_contract: str
    token_id: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CredentialStatusRef:
        return cls(
            id=_str(data, "id"),
            type=_str(data, "type"),
            registry_contract=_str(data, "registryContract"),
            token_id=_str(data, "tokenId"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "registryContract": self.registry_contract,
            "tokenId": self.token_id,
        }


@dataclass(frozen=True)
class Proof:
    type: str
    created: datetime
    verification_method: str
    proof_purpose: str
    proof_value: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Proof:
        return cls(
            type=_str(data, "type"),
            created=parse_timestamp(_str(data, "created")),
            verification_method=_str(data, "verificationMethod"),
            proof_purpose=_str(data, "proofPurpose"),
            proof_value=_str(data, "proofValue"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "created": format_timestamp(self.created),
            "verificationMethod": self.verification_method,
            "proofPurpose": self.proof_purpose,
            "proofValue": self.proof_value,
        }


@dataclass(frozen=True)
class UnsignedCredential:
    """Every credential field except the proof: the message that gets signed."""

    context: tuple[str, ...]
    id: str
    type: tuple[str, ...]
    issuer: IssuerSnapshot
    issuance_date: datetime
    expiration_date: datetime
    credential_subject: CredentialSubject
    decommissioned_at: datetime | None
    credential_status: CredentialStatusRef

    @property
    def is_revoked(self) -> bool:
        return self.decommissioned_at is not None

    def unsigned_payload(self) -> dict[str, Any]:
        """Wire form without the proof block."""
        return {
            "@context": list(self.context),
            "id": self.id,
            "type": list(self.type),
            "issuer": self.issuer.to_dict(),
            "issuanceDate": format_timestamp(self.issuance_date),
            "expirationDate": format_timestamp(self.expiration_date),
            "credentialSubject": self.credential_subject.to_dict(),
            "decommissionedAt": (
                None if self.decommissioned_at is None else format_timestamp(self.decommissioned_at)
            ),
            "credentialStatus": self.credential_status.to_dict(),
        }

    def with_proof(self, proof: Proof) -> Credential:
        """Attach ``proof``, producing a finished credential."""
        return Credential(
            **{f.name: getattr(self, f.name) for f in fields(UnsignedCredential)},
            proof=proof,
        )


@dataclass(frozen=True)
class Credential(UnsignedCredential):
    """A signed KYC verifiable credential."""

    proof: Proof

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Credential:
        """Parse a credential from its wire form.

        Raises:
            MalformedCredential: If any required field is missing or has the wrong shape.
        """
        try:
            decommissioned = _get(data, "decommissionedAt")
            return cls(
                context=_str_tuple(data, "@context"),
                id=_str(data, "id"),
                type=_str_tuple(data, "type"),
                issuer=IssuerSnapshot.from_dict(_get(data, "issuer")),
                issuance_date=parse_timestamp(_str(data, "issuanceDate")),
                expiration_date=parse_timestamp(_str(data, "expirationDate")),
                credential_subject=CredentialSubject.from_dict(_get(data, "credentialSubject")),
                decommissioned_at=(
                    None if decommissioned is None else parse_timestamp(decommissioned)
                ),
                credential_status=CredentialStatusRef.from_dict(_get(data, "credentialStatus")),
                proof=Proof.from_dict(_get(data, "proof")),
            )
        except KeyError as e:
            raise MalformedCredential(f"Missing field: {e.args[0]}") from e
        except (TypeError, ValueError) as e:
            raise MalformedCredential(str(e)) from e

    def to_dict(self) -> dict[str, Any]:
        data = self.unsigned_payload()
        data["proof"] = self.proof.to_dict()
        return data
