"""
Permit Schema Test Suite

Tests for PermitRequest validation, PermitSignature normalization and
PermitResult helpers.

Usage:
    pytest tests/test_permit/test_schemas.py -v
"""

import json

import pytest
from pydantic import ValidationError

from test_mocks import MOCK_OWNER_ADDRESS, MOCK_SPENDER_ADDRESS, MOCK_NOW

from erc20_permit import PermitRequest, PermitResult, PermitSignature


R_HEX = "0x" + "ab" * 32
S_HEX = "0x" + "0c" * 32


def make_result(**overrides):
    fields = {
        "owner": MOCK_OWNER_ADDRESS,
        "spender": MOCK_SPENDER_ADDRESS,
        "value": "10000000000000000000",
        "deadline": MOCK_NOW + 3600,
        "v": 27,
        "r": R_HEX,
        "s": S_HEX,
        "nonce": 0,
        "chain_id": 31337,
    }
    fields.update(overrides)
    return PermitResult(**fields)


class TestPermitRequest:
    """PermitRequest validation"""

    def test_defaults(self):
        request = PermitRequest(value="1", spender=MOCK_SPENDER_ADDRESS)

        assert request.destination is None
        assert request.chain_id is None
        assert request.deadline is None
        assert request.version == "1"
        assert "version" not in request.model_fields_set

    def test_integer_value_kept_as_decimal_string(self):
        request = PermitRequest(value=10 ** 19, spender=MOCK_SPENDER_ADDRESS)
        assert request.value == "10000000000000000000"

    def test_max_uint256_accepted(self):
        max_value = str(2 ** 256 - 1)
        assert PermitRequest(value=max_value, spender=MOCK_SPENDER_ADDRESS).value == max_value

    @pytest.mark.parametrize("value", ["-1", "1.5", "0x10", "", "ten", True, 1.0, str(2 ** 256)])
    def test_invalid_value(self, value):
        with pytest.raises(ValidationError):
            PermitRequest(value=value, spender=MOCK_SPENDER_ADDRESS)

    @pytest.mark.parametrize("spender", ["0x1234", "not-an-address", "70997970C51812dc3A010C7d01b50e0d17dc79C8z"])
    def test_invalid_spender(self, spender):
        with pytest.raises(ValidationError):
            PermitRequest(value="1", spender=spender)

    def test_spender_kept_verbatim(self):
        spender = MOCK_SPENDER_ADDRESS.lower()
        assert PermitRequest(value="1", spender=spender).spender == spender

    def test_chain_id_must_be_positive(self):
        with pytest.raises(ValidationError):
            PermitRequest(value="1", spender=MOCK_SPENDER_ADDRESS, chain_id=0)

    @pytest.mark.parametrize("field", ["chain_id", "deadline"])
    def test_uint256_bound(self, field):
        assert getattr(PermitRequest(value="1", spender=MOCK_SPENDER_ADDRESS, **{field: 2 ** 256 - 1}), field) == 2 ** 256 - 1
        with pytest.raises(ValidationError):
            PermitRequest(value="1", spender=MOCK_SPENDER_ADDRESS, **{field: 2 ** 256})

    @pytest.mark.parametrize("value", ["\u0661\u0660", "\uff11\uff10", "\u00b2"])
    def test_non_ascii_digits_rejected(self, value):
        with pytest.raises(ValidationError):
            PermitRequest(value=value, spender=MOCK_SPENDER_ADDRESS)


class TestPermitSignature:
    """PermitSignature validation and packing"""

    def test_normalizes_hex(self):
        sig = PermitSignature(v=28, r="AB" * 32, s="0X" + "0C" * 32)

        assert sig.r == R_HEX
        assert sig.s == S_HEX

    def test_packed_hex(self):
        sig = PermitSignature(v=28, r=R_HEX, s=S_HEX)
        packed = sig.to_packed_hex()

        assert len(packed) == 132
        assert packed == R_HEX + S_HEX[2:] + "1c"

    @pytest.mark.parametrize("v", [0, 1, 26, 29])
    def test_invalid_v(self, v):
        with pytest.raises(ValidationError):
            PermitSignature(v=v, r=R_HEX, s=S_HEX)

    @pytest.mark.parametrize("r", ["0x1234", "0x" + "zz" * 32, "0x" + "ab" * 33])
    def test_invalid_scalar(self, r):
        with pytest.raises(ValidationError):
            PermitSignature(v=27, r=r, s=S_HEX)


class TestPermitResult:
    """PermitResult helpers"""

    def test_permit_args(self):
        result = make_result()
        assert result.permit_args() == (
            MOCK_OWNER_ADDRESS,
            MOCK_SPENDER_ADDRESS,
            10 * 10 ** 18,
            MOCK_NOW + 3600,
            27,
            R_HEX,
            S_HEX,
        )

    def test_signature_property(self):
        assert make_result(v=28).signature == PermitSignature(v=28, r=R_HEX, s=S_HEX)

    def test_canonical_json(self):
        result = make_result(destination="invoice-42")
        data = json.loads(result.to_canonical_json())

        assert list(data) == sorted(data)
        assert data["value"] == "10000000000000000000"
        assert data["destination"] == "invoice-42"
        assert " " not in result.to_canonical_json()

    def test_round_trips_through_json(self):
        result = make_result()
        assert PermitResult.model_validate_json(result.to_canonical_json()) == result
