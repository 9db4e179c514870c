"""Tests for batch issuance."""

import dataclasses

import pytest

from kyc_vc.batch import BatchIssuer, BatchResult
from kyc_vc.errors import ErrorCode
from kyc_vc.issuer import CredentialIssuer


class FlakyCustomerStore:
    """Customer store that fails hard for one id."""

    def __init__(self, inner, broken_id):
        self.inner = inner
        self.broken_id = broken_id

    def resolve(self, kyc_id):
        if kyc_id == self.broken_id:
            raise RuntimeError("connection reset")
        return self.inner.resolve(kyc_id)


@pytest.fixture
def requests(request_001):
    return [
        request_001,
        dataclasses.replace(request_001, customer_kyc_id="KYC-404"),
        dataclasses.replace(
            request_001, customer_kyc_id="KYC-002", kyc_level="basic", accredited_investor=False
        ),
        dataclasses.replace(request_001, customer_kyc_id="KYC-SANCTIONED"),
        dataclasses.replace(request_001, issuer_did="bank-B"),
    ]


class TestBatchIssuer:
    def test_one_valid_one_unknown_customer(self, credential_issuer, request_001):
        result = BatchIssuer(credential_issuer).issue_all(
            [request_001, dataclasses.replace(request_001, customer_kyc_id="KYC-404")]
        )

        assert isinstance(result, BatchResult)
        assert len(result.successful) == 1
        assert len(result.failed) == 1
        assert result.failed[0].code is ErrorCode.UNKNOWN_CUSTOMER
        assert "UnknownCustomer" in result.failed[0].error_description
        assert result.failed[0].request.customer_kyc_id == "KYC-404"

    @pytest.mark.parametrize("max_workers", [1, 2, 8])
    def test_input_order_preserved(self, credential_issuer, requests, max_workers):
        result = BatchIssuer(credential_issuer, max_workers=max_workers).issue_all(requests)

        assert [c.credential_subject.id for c in result.successful] == [
            "did:did3:user:0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb",
            "did:did3:user:KYC-002",
            "did:did3:user:0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb",
        ]
        assert [c.issuer.id for c in result.successful] == ["bank-A", "bank-A", "bank-B"]
        assert [f.request.customer_kyc_id for f in result.failed] == ["KYC-404", "KYC-SANCTIONED"]
        assert [f.code for f in result.failed] == [
            ErrorCode.UNKNOWN_CUSTOMER,
            ErrorCode.COMPLIANCE_CHECK_FAILED,
        ]

    def test_every_success_verifies(self, credential_issuer, verifier, requests):
        result = BatchIssuer(credential_issuer).issue_all(requests)
        assert all(verifier.verify(c).valid for c in result.successful)
        assert len({c.id for c in result.successful}) == len(result.successful)

    def test_unexpected_error_isolated(self, issuer_store, customer_store, clock, requests, caplog):
        issuer = CredentialIssuer(
            issuer_store, FlakyCustomerStore(customer_store, "KYC-002"), clock=clock
        )

        result = BatchIssuer(issuer).issue_all(requests)

        assert len(result.successful) == 2
        assert [f.request.customer_kyc_id for f in result.failed] == [
            "KYC-404",
            "KYC-002",
            "KYC-SANCTIONED",
        ]
        broken = result.failed[1]
        assert broken.code is None
        assert broken.error_description == "RuntimeError: connection reset"
        assert "KYC-002" in caplog.text

    def test_empty(self, credential_issuer):
        result = BatchIssuer(credential_issuer).issue_all([])
        assert result.successful == []
        assert result.failed == []

    def test_all_failed(self, credential_issuer, request_001):
        bad = dataclasses.replace(request_001, issuer_did="bank-Z")
        result = BatchIssuer(credential_issuer).issue_all([bad, bad])
        assert result.successful == []
        assert [f.code for f in result.failed] == [ErrorCode.UNKNOWN_ISSUER] * 2

    @pytest.mark.parametrize("max_workers", [0, -1])
    def test_invalid_max_workers(self, credential_issuer, max_workers):
        with pytest.raises(ValueError):
            BatchIssuer(credential_issuer, max_workers=max_workers)

    def test_to_dict(self, credential_issuer, request_001):
        result = BatchIssuer(credential_issuer).issue_all(
            [request_001, dataclasses.replace(request_001, customer_kyc_id="KYC-404")]
        )
        data = result.to_dict()

        assert data["successful"][0]["id"] == result.successful[0].id
        assert data["failed"] == [
            {
                "request": {
                    "customerKycId": "KYC-404",
                    "issuerDid": "bank-A",
                    "kycLevel": "enhanced",
                    "accreditedInvestor": True,
                    "jurisdiction": ["US"],
                    "expiryDays": 365,
                },
                "error": "UnknownCustomer: Customer not found: KYC-404",
                "code": "UnknownCustomer",
            }
        ]

    def test_raw_items_parsed_per_position(self, credential_issuer, request_001):
        missing_level = request_001.to_dict()
        del missing_level["kycLevel"]
        items = [
            request_001.to_dict(),
            missing_level,
            "KYC-002",
            dict(request_001.to_dict(), signatureAlgorithm="RSA"),
            request_001,
        ]

        result = BatchIssuer(credential_issuer, max_workers=2).issue_all(items)

        assert len(result.successful) == 2
        assert [f.request for f in result.failed] == items[1:4]
        assert [f.code for f in result.failed] == [
            ErrorCode.INVALID_REQUEST,
            ErrorCode.INVALID_REQUEST,
            ErrorCode.UNSUPPORTED_ALGORITHM,
        ]
        assert [f.customer_kyc_id for f in result.failed] == ["KYC-001", None, "KYC-001"]
        assert result.to_dict()["failed"][1]["request"] == "KYC-002"
