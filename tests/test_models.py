"""Tests for requests, records, timestamps and settings."""

from datetime import datetime, timezone

import pytest

from kyc_vc.config import Settings
from kyc_vc.errors import InvalidRequest, UnsupportedAlgorithm
from kyc_vc.models import (
    IssuanceRequest,
    IssuerRecord,
    KYCLevel,
    KYCRecord,
    SignatureAlgorithm,
    format_timestamp,
    parse_timestamp,
    truncate_to_millis,
)

from conftest import make_customer


def request_dict(**overrides):
    data = {
        "customerKycId": "KYC-001",
        "issuerDid": "did:did3:bank:jpmorgan",
        "kycLevel": "enhanced",
        "accreditedInvestor": True,
        "jurisdiction": ["US"],
    }
    data.update(overrides)
    return data


class TestSignatureAlgorithm:
    def test_proof_types(self):
        assert SignatureAlgorithm.ED25519.proof_type == "Ed25519Signature2020"
        assert SignatureAlgorithm.SECP256K1.proof_type == "EcdsaSecp256k1Signature2019"

    def test_from_proof_type(self):
        assert SignatureAlgorithm.from_proof_type("Ed25519Signature2020") is SignatureAlgorithm.ED25519
        assert SignatureAlgorithm.from_proof_type("RsaSignature2018") is None

    def test_parse_unknown(self):
        with pytest.raises(UnsupportedAlgorithm) as exc_info:
            SignatureAlgorithm.parse("ed25519")
        assert exc_info.value.algorithm == "ed25519"


class TestIssuanceRequest:
    """Tests for request validation."""

    def test_from_dict(self):
        request = IssuanceRequest.from_dict(request_dict(expiryDays=30, signatureAlgorithm="Ed25519"))
        assert request.kyc_level is KYCLevel.ENHANCED
        assert request.jurisdiction == ("US",)
        assert request.expiry_days == 30
        assert request.signature_algorithm is SignatureAlgorithm.ED25519

    def test_optional_fields_default_to_none(self):
        request = IssuanceRequest.from_dict(request_dict())
        assert request.expiry_days is None
        assert request.signature_algorithm is None
        assert "expiryDays" not in request.to_dict()
        assert "signatureAlgorithm" not in request.to_dict()

    def test_to_dict_matches_input(self):
        data = request_dict(expiryDays=90, signatureAlgorithm="secp256k1")
        assert IssuanceRequest.from_dict(data).to_dict() == data

    @pytest.mark.parametrize(
        "missing",
        ["customerKycId", "issuerDid", "kycLevel", "accreditedInvestor", "jurisdiction"],
    )
    def test_missing_field(self, missing):
        data = request_dict()
        del data[missing]
        with pytest.raises(InvalidRequest, match=missing):
            IssuanceRequest.from_dict(data)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"customerKycId": ""},
            {"kycLevel": "premium"},
            {"accreditedInvestor": "yes"},
            {"jurisdiction": []},
            {"jurisdiction": "US"},
            {"jurisdiction": ["US", ""]},
            {"expiryDays": 0},
            {"expiryDays": -5},
            {"expiryDays": True},
            {"expiryDays": "365"},
        ],
    )
    def test_invalid_values(self, overrides):
        with pytest.raises(InvalidRequest):
            IssuanceRequest.from_dict(request_dict(**overrides))

    def test_unknown_algorithm(self):
        with pytest.raises(UnsupportedAlgorithm):
            IssuanceRequest.from_dict(request_dict(signatureAlgorithm="RSA"))

    def test_not_an_object(self):
        with pytest.raises(InvalidRequest):
            IssuanceRequest.from_dict(["KYC-001"])


class TestRecords:
    def test_kyc_record_round_trip(self):
        record = make_customer()
        assert KYCRecord.from_dict(record.to_dict()) == record

    def test_kyc_record_without_user_did(self):
        record = make_customer(user_did=None)
        assert "userDid" not in record.to_dict()
        assert KYCRecord.from_dict(record.to_dict()).user_did is None

    @pytest.mark.parametrize("tier", [0, 6, True])
    def test_tier_range(self, tier):
        with pytest.raises(ValueError):
            make_customer(tier=tier)

    @pytest.mark.parametrize("amount", [float("nan"), float("inf"), float("-inf")])
    def test_verified_amount_must_be_finite(self, amount):
        with pytest.raises(ValueError, match="verifiedAmount"):
            make_customer(verified_amount=amount)

    def test_verified_amount_nan_from_json(self):
        data = make_customer().to_dict()
        data["verifiedAmount"] = float("nan")
        with pytest.raises(ValueError):
            KYCRecord.from_dict(data)

    def test_issuer_public_view_omits_private_key(self, ed25519_issuer):
        view = ed25519_issuer.public_view()
        assert "privateKey" not in view
        assert view["publicKey"] == ed25519_issuer.public_key
        assert view["signatureAlgorithm"] == "Ed25519"

    def test_issuer_repr_hides_private_key(self, ed25519_issuer):
        assert ed25519_issuer.private_key not in repr(ed25519_issuer)

    def test_issuer_from_dict(self, secp256k1_issuer):
        data = dict(secp256k1_issuer.public_view(), privateKey=secp256k1_issuer.private_key)
        assert IssuerRecord.from_dict(data) == secp256k1_issuer


class TestTimestamps:
    def test_format_millis(self):
        value = datetime(2025, 1, 15, 10, 0, 0, 123456, tzinfo=timezone.utc)
        assert format_timestamp(value) == "2025-01-15T10:00:00.123Z"

    def test_format_zero_millis(self):
        value = datetime(2025, 1, 15, tzinfo=timezone.utc)
        assert format_timestamp(value) == "2025-01-15T00:00:00.000Z"

    def test_parse_z_suffix(self):
        assert parse_timestamp("2025-01-15T10:00:00.123Z") == datetime(
            2025, 1, 15, 10, 0, 0, 123000, tzinfo=timezone.utc
        )

    def test_parse_offset_normalized_to_utc(self):
        parsed = parse_timestamp("2025-01-15T12:00:00+02:00")
        assert parsed == datetime(2025, 1, 15, 10, 0, tzinfo=timezone.utc)
        assert parsed.tzinfo == timezone.utc

    def test_parse_rejects_naive(self):
        with pytest.raises(ValueError):
            parse_timestamp("2025-01-15T10:00:00")

    def test_parse_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_timestamp("yesterday")
        with pytest.raises(ValueError):
            parse_timestamp(1736935200)

    def test_truncated_value_round_trips(self):
        value = truncate_to_millis(datetime(2025, 1, 15, 10, 0, 0, 999999, tzinfo=timezone.utc))
        assert value.microsecond == 999000
        assert parse_timestamp(format_timestamp(value)) == value


class TestSettings:
    def test_defaults(self):
        settings = Settings()
        assert settings.contexts[0] == "https://www.w3.org/2018/credentials/v1"
        assert settings.credential_types == ("VerifiableCredential", "KYCCredential")
        assert settings.registry_contract == "0x" + "0" * 40
        assert settings.default_expiry_days == 365

    def test_from_env_empty(self):
        assert Settings.from_env({}) == Settings()

    def test_from_env_overrides(self):
        settings = Settings.from_env(
            {
                "KYC_VC_CONTEXTS": "https://a.example/v1, https://b.example/v1",
                "KYC_VC_STATUS_TYPE": "TestRegistry",
                "KYC_VC_DEFAULT_EXPIRY_DAYS": "30",
                "UNRELATED": "x",
            }
        )
        assert settings.contexts == ("https://a.example/v1", "https://b.example/v1")
        assert settings.status_type == "TestRegistry"
        assert settings.default_expiry_days == 30
        assert settings.credential_namespace == Settings().credential_namespace

    def test_from_env_reads_os_environ(self, monkeypatch):
        monkeypatch.setenv("KYC_VC_SUBJECT_NAMESPACE", "did:example:user:")
        assert Settings.from_env().subject_namespace == "did:example:user:"

    @pytest.mark.parametrize("value", ["0", "-1", "ten"])
    def test_from_env_bad_expiry(self, value):
        with pytest.raises(ValueError):
            Settings.from_env({"KYC_VC_DEFAULT_EXPIRY_DAYS": value})
