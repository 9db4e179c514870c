"""Shared fixtures for kyc_vc tests."""

from datetime import datetime, timedelta, timezone

import pytest

from kyc_vc import (
    CredentialIssuer,
    CredentialVerifier,
    InMemoryCustomerStore,
    InMemoryIssuerStore,
    IssuanceRequest,
    IssuerRecord,
    KYCRecord,
    SignatureAlgorithm,
    generate_key_pair,
)


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def make_issuer(did: str, algorithm: SignatureAlgorithm, name: str = "Test Bank") -> IssuerRecord:
    pair = generate_key_pair(algorithm)
    return IssuerRecord(
        did=did,
        name=name,
        jurisdiction=("US",),
        regulators=("OCC", "SEC"),
        tier=5,
        signature_algorithm=algorithm,
        private_key=pair.private_key,
        public_key=pair.public_key,
    )


def make_customer(kyc_id: str = "KYC-001", **overrides) -> KYCRecord:
    data = {
        "kyc_id": kyc_id,
        "name": "Alice Johnson",
        "date_of_birth": "1985-03-15",
        "citizenship": "US",
        "address": "123 Wall Street, New York, NY 10005",
        "kyc_level": "enhanced",
        "aml_screening": "passed",
        "sanctions_check": "passed",
        "pep_screening": "passed",
        "source_of_funds": "verified",
        "accredited_investor": True,
        "entity_type": "individual",
        "verified_amount": 5000000,
        "currency": "USD",
        "tier": 2,
        "jurisdictions": ("US",),
        "user_did": "did:did3:user:0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb",
    }
    data.update(overrides)
    return KYCRecord(**data)


@pytest.fixture
def clock():
    return FrozenClock(datetime(2025, 1, 15, 10, 0, 0, 123456, tzinfo=timezone.utc))


@pytest.fixture
def ed25519_issuer():
    return make_issuer("bank-A", SignatureAlgorithm.ED25519, name="Bank A")


@pytest.fixture
def secp256k1_issuer():
    return make_issuer("bank-B", SignatureAlgorithm.SECP256K1, name="Bank B")


@pytest.fixture
def issuer_store(ed25519_issuer, secp256k1_issuer):
    return InMemoryIssuerStore([ed25519_issuer, secp256k1_issuer])


@pytest.fixture
def customer_store():
    return InMemoryCustomerStore(
        [
            make_customer("KYC-001"),
            make_customer(
                "KYC-002",
                name="Bob Smith",
                kyc_level="basic",
                accredited_investor=False,
                verified_amount=100000,
                tier=3,
                user_did=None,
            ),
            make_customer("KYC-SANCTIONED", sanctions_check="failed"),
        ]
    )


@pytest.fixture
def credential_issuer(issuer_store, customer_store, clock):
    return CredentialIssuer(issuer_store, customer_store, clock=clock)


@pytest.fixture
def verifier(issuer_store, clock):
    return CredentialVerifier(issuer_store, clock=clock)


@pytest.fixture
def request_001():
    """The enhanced, accredited request for KYC-001 against bank-A."""
    return IssuanceRequest(
        customer_kyc_id="KYC-001",
        issuer_did="bank-A",
        kyc_level="enhanced",
        accredited_investor=True,
        jurisdiction=["US"],
        expiry_days=365,
    )
