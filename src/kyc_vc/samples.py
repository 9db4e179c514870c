"""
Demo issuers and customers.

Test keys only. Production issuers keep private keys in an HSM and are
loaded through a registry file or a custom store.
"""

from __future__ import annotations

from kyc_vc.models import IssuerRecord, KYCRecord, SignatureAlgorithm
from kyc_vc.signing import derive_public_key
from kyc_vc.stores import InMemoryCustomerStore, InMemoryIssuerStore


def _issuer(
    did: str,
    name: str,
    jurisdiction: list[str],
    regulators: list[str],
    tier: int,
    algorithm: SignatureAlgorithm,
    private_key: str,
) -> IssuerRecord:
    return IssuerRecord(
        did=did,
        name=name,
        jurisdiction=tuple(jurisdiction),
        regulators=tuple(regulators),
        tier=tier,
        signature_algorithm=algorithm,
        private_key=private_key,
        public_key=derive_public_key(private_key, algorithm),
    )


JPMORGAN_ISSUER = _issuer(
    "did:did3:bank:jpmorgan",
    "JPMorgan Chase Bank, N.A.",
    ["US"],
    ["OCC", "FINRA", "SEC", "Federal Reserve"],
    5,
    SignatureAlgorithm.ED25519,
    "54186ec52d7261b0f6b484e4692a7de73f5a6332ce1e6b9964e053824a783994",
)

GOLDMAN_SACHS_ISSUER = _issuer(
    "did:did3:bank:goldmansachs",
    "Goldman Sachs Bank USA",
    ["US"],
    ["OCC", "SEC", "FINRA"],
    5,
    SignatureAlgorithm.SECP256K1,
    "8009afda5d258a17b4eff2c107540d2eeb546e2edc74a1f8ebab9470f5cfc36d",
)

HSBC_ISSUER = _issuer(
    "did:did3:bank:hsbc",
    "HSBC Bank plc",
    ["UK", "EU", "APAC"],
    ["FCA", "PRA", "ECB"],
    5,
    SignatureAlgorithm.ED25519,
    "c752847833e258e915fdd8dd0d65983e32ee0549857bdebbccb6c619dc9d8e57",
)

DBS_ISSUER = _issuer(
    "did:did3:bank:dbs",
    "DBS Bank Ltd",
    ["SG", "APAC"],
    ["MAS"],
    4,
    SignatureAlgorithm.SECP256K1,
    "0f5a99c0c04f490f7d1bc851cb3623461bfb05ccc7f3492db3ae652bc94071ce",
)

SAMPLE_ISSUERS = (JPMORGAN_ISSUER, GOLDMAN_SACHS_ISSUER, HSBC_ISSUER, DBS_ISSUER)

SAMPLE_CUSTOMERS = tuple(
    KYCRecord.from_dict(data)
    for data in (
        {
            "kycId": "KYC-001",
            "name": "Alice Johnson",
            "dateOfBirth": "1985-03-15",
            "citizenship": "US",
            "address": "123 Wall Street, New York, NY 10005",
            "kycLevel": "enhanced",
            "amlScreening": "passed",
            "sanctionsCheck": "passed",
            "pepScreening": "passed",
            "sourceOfFunds": "verified",
            "accreditedInvestor": True,
            "entityType": "individual",
            "verifiedAmount": 5000000,
            "currency": "USD",
            "tier": 2,
            "jurisdictions": ["US"],
            "userDid": "did:did3:user:0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb",
        },
        {
            "kycId": "KYC-002",
            "name": "Bob Smith",
            "dateOfBirth": "1990-07-22",
            "citizenship": "US",
            "address": "456 Market Street, San Francisco, CA 94102",
            "kycLevel": "basic",
            "amlScreening": "passed",
            "sanctionsCheck": "passed",
            "pepScreening": "passed",
            "sourceOfFunds": "verified",
            "accreditedInvestor": False,
            "entityType": "individual",
            "verifiedAmount": 100000,
            "currency": "USD",
            "tier": 3,
            "jurisdictions": ["US"],
            "userDid": "did:did3:user:0x8f3e4d5c6b7a8901234567890abcdef12345678",
        },
        {
            "kycId": "KYC-003",
            "name": "Acme Corporation",
            "dateOfBirth": "2010-01-01",
            "citizenship": "US",
            "address": "789 Corporate Blvd, Chicago, IL 60601",
            "kycLevel": "institutional",
            "amlScreening": "passed",
            "sanctionsCheck": "passed",
            "pepScreening": "passed",
            "sourceOfFunds": "verified",
            "accreditedInvestor": True,
            "entityType": "corporate",
            "verifiedAmount": 50000000,
            "currency": "USD",
            "tier": 1,
            "jurisdictions": ["US", "EU"],
            "userDid": "did:did3:user:0xabcdef1234567890abcdef1234567890abcdef12",
        },
        {
            "kycId": "KYC-004",
            "name": "Chen Wei",
            "dateOfBirth": "1988-11-30",
            "citizenship": "SG",
            "address": "10 Marina Boulevard, Singapore 018983",
            "kycLevel": "enhanced",
            "amlScreening": "passed",
            "sanctionsCheck": "passed",
            "pepScreening": "passed",
            "sourceOfFunds": "verified",
            "accreditedInvestor": True,
            "entityType": "individual",
            "verifiedAmount": 3000000,
            "currency": "USD",
            "tier": 2,
            "jurisdictions": ["SG", "APAC"],
            "userDid": "did:did3:user:0x1234567890abcdef1234567890abcdef12345678",
        },
        {
            "kycId": "KYC-005",
            "name": "Maria Garcia",
            "dateOfBirth": "1992-05-18",
            "citizenship": "ES",
            "address": "Calle Gran Via 28, Madrid 28013, Spain",
            "kycLevel": "basic",
            "amlScreening": "passed",
            "sanctionsCheck": "passed",
            "pepScreening": "passed",
            "sourceOfFunds": "verified",
            "accreditedInvestor": False,
            "entityType": "individual",
            "verifiedAmount": 250000,
            "currency": "EUR",
            "tier": 3,
            "jurisdictions": ["EU"],
            "userDid": "did:did3:user:0x9876543210fedcba9876543210fedcba98765432",
        },
    )
)


def sample_issuer_store() -> InMemoryIssuerStore:
    """Fresh store holding the demo issuers."""
    return InMemoryIssuerStore(SAMPLE_ISSUERS)


def sample_customer_store() -> InMemoryCustomerStore:
    """Fresh store holding the demo customers."""
    return InMemoryCustomerStore(SAMPLE_CUSTOMERS)
