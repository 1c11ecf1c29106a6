"""
Signer Test Suite

Tests for signing identities and signer output normalization:
- Address discovery (attribute or get_address())
- Capability selection and error wrapping
- PrivateKeySigner key loading
- Web3RpcSigner eth_signTypedData_v4 requests

Usage:
    pytest tests/test_permit/test_signers.py -v
"""

import json
from unittest.mock import AsyncMock, Mock

import pytest
from eth_account import Account
from eth_account.messages import encode_typed_data

from test_mocks import (
    MOCK_OWNER_ACCOUNT,
    MOCK_OWNER_ADDRESS,
    MOCK_OWNER_PRIVATE_KEY,
    MOCK_SPENDER_ADDRESS,
    MOCK_TOKEN_ADDRESS,
    MOCK_TOKEN_NAME,
    MOCK_CHAIN_ID_HARDHAT,
    MOCK_NOW,
    GetAddressSigner,
    MessageOnlySigner,
    StaticSigner,
)

from erc20_permit import (
    EIP712Domain,
    PermitMessage,
    PrivateKeySigner,
    Web3RpcSigner,
    build_permit_typed_data,
)
from erc20_permit.exceptions import (
    ConfigurationError,
    MalformedSignatureError,
    PermitSigningError,
    UnsupportedSignerError,
)
from erc20_permit.signers import (
    _primary_type,
    get_signer_address,
    resolve_sign_function,
    signature_to_bytes,
)


@pytest.fixture
def typed_data():
    return build_permit_typed_data(
        EIP712Domain(
            name=MOCK_TOKEN_NAME,
            version="1",
            chainId=MOCK_CHAIN_ID_HARDHAT,
            verifyingContract=MOCK_TOKEN_ADDRESS,
        ),
        PermitMessage(
            owner=MOCK_OWNER_ADDRESS,
            spender=MOCK_SPENDER_ADDRESS,
            value=10 ** 19,
            nonce=0,
            deadline=MOCK_NOW + 3600,
        ),
    )


class TestSignerAddress:
    """get_signer_address"""

    def test_address_attribute(self):
        assert get_signer_address(MOCK_OWNER_ACCOUNT) == MOCK_OWNER_ADDRESS

    def test_get_address_method(self):
        assert get_signer_address(GetAddressSigner()) == MOCK_OWNER_ADDRESS

    @pytest.mark.parametrize("signer", [object(), StaticSigner(address="")])
    def test_missing_address(self, signer):
        with pytest.raises(UnsupportedSignerError):
            get_signer_address(signer)


class TestSignatureToBytes:
    """signature_to_bytes"""

    RAW = bytes(range(65))

    def test_bytes(self):
        assert signature_to_bytes(self.RAW) == self.RAW
        assert signature_to_bytes(bytearray(self.RAW)) == self.RAW

    @pytest.mark.parametrize("prefix", ["0x", "0X", ""])
    def test_hex_string(self, prefix):
        assert signature_to_bytes(prefix + self.RAW.hex()) == self.RAW

    def test_signed_message(self, typed_data):
        signed = MOCK_OWNER_ACCOUNT.sign_typed_data(
            typed_data.domain.to_dict(),
            typed_data.message_types(),
            typed_data.message.to_dict(),
        )
        assert signature_to_bytes(signed) == bytes(signed.signature)

    @pytest.mark.parametrize("output", ["0x" + "zz" * 65, b"\x00" * 64, "0x" + "00" * 66, None, 12345])
    def test_malformed(self, output):
        with pytest.raises(MalformedSignatureError):
            signature_to_bytes(output)


class TestResolveSignFunction:
    """Capability selection"""

    @pytest.mark.asyncio
    async def test_sign_typed_data_preferred(self, typed_data):
        signer = Mock(spec=["address", "sign_typed_data", "sign_message"])
        signer.sign_typed_data.return_value = b"\x01" * 65

        sign = resolve_sign_function(signer)

        assert await sign(typed_data) == b"\x01" * 65
        signer.sign_typed_data.assert_called_once_with(
            typed_data.domain.to_dict(),
            {"Permit": typed_data.types["Permit"]},
            typed_data.message.to_dict(),
        )
        signer.sign_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_sign_message_fallback(self, typed_data):
        sign = resolve_sign_function(MessageOnlySigner())
        raw = await sign(typed_data)

        expected = MOCK_OWNER_ACCOUNT.sign_typed_data(full_message=typed_data.to_dict())
        assert raw == bytes(expected.signature)

    @pytest.mark.asyncio
    async def test_async_signer_awaited(self, typed_data):
        sign = resolve_sign_function(GetAddressSigner())
        assert len(await sign(typed_data)) == 65

    def test_no_capability(self):
        class AddressOnly:
            address = MOCK_OWNER_ADDRESS

        with pytest.raises(UnsupportedSignerError, match="neither"):
            resolve_sign_function(AddressOnly())

    @pytest.mark.asyncio
    async def test_signer_error_wrapped(self, typed_data):
        sign = resolve_sign_function(StaticSigner(error=ValueError("boom")))

        with pytest.raises(PermitSigningError, match="boom") as exc_info:
            await sign(typed_data)

        assert type(exc_info.value) is PermitSigningError

    @pytest.mark.asyncio
    async def test_permit_errors_not_rewrapped(self, typed_data):
        sign = resolve_sign_function(StaticSigner(error=MalformedSignatureError("bad")))
        with pytest.raises(MalformedSignatureError):
            await sign(typed_data)


class TestPrivateKeySigner:
    """PrivateKeySigner"""

    def test_explicit_key(self):
        signer = PrivateKeySigner(MOCK_OWNER_PRIVATE_KEY)
        assert signer.address == MOCK_OWNER_ADDRESS
        assert MOCK_OWNER_PRIVATE_KEY not in repr(signer)

    def test_key_from_environment(self, monkeypatch):
        monkeypatch.setenv("PERMIT_PRIVATE_KEY", MOCK_OWNER_PRIVATE_KEY)
        assert PrivateKeySigner().address == MOCK_OWNER_ADDRESS

    def test_missing_key(self, monkeypatch):
        monkeypatch.delenv("PERMIT_PRIVATE_KEY", raising=False)
        with pytest.raises(ConfigurationError, match="PERMIT_PRIVATE_KEY"):
            PrivateKeySigner()

    def test_invalid_key(self):
        with pytest.raises(ConfigurationError, match="Invalid private key"):
            PrivateKeySigner("0x1234")

    @pytest.mark.asyncio
    async def test_signature_recovers(self, typed_data):
        signer = PrivateKeySigner(MOCK_OWNER_PRIVATE_KEY)
        signed = await signer.sign_typed_data(
            typed_data.domain.to_dict(),
            typed_data.message_types(),
            typed_data.message.to_dict(),
        )

        recovered = Account.recover_message(
            _signable(typed_data), signature=signed.signature
        )
        assert recovered == MOCK_OWNER_ADDRESS


def _signable(typed_data):
    return encode_typed_data(full_message=typed_data.to_dict())


class TestWeb3RpcSigner:
    """Web3RpcSigner over a mocked provider."""

    def _w3(self, response):
        w3 = Mock()
        w3.provider.make_request = AsyncMock(return_value=response)
        return w3

    @pytest.mark.asyncio
    async def test_request_payload(self, typed_data):
        w3 = self._w3({"jsonrpc": "2.0", "id": 1, "result": "0x" + "11" * 65})
        signer = Web3RpcSigner(w3, MOCK_OWNER_ADDRESS.lower())

        result = await signer.sign_typed_data(
            typed_data.domain.to_dict(),
            typed_data.message_types(),
            typed_data.message.to_dict(),
        )

        assert result == "0x" + "11" * 65
        assert signer.address == MOCK_OWNER_ADDRESS

        method, params = w3.provider.make_request.call_args.args
        assert method == "eth_signTypedData_v4"
        assert params[0] == MOCK_OWNER_ADDRESS
        payload = json.loads(params[1])
        assert payload["primaryType"] == "Permit"
        assert [t["name"] for t in payload["types"]["EIP712Domain"]] == [
            "name", "version", "chainId", "verifyingContract",
        ]
        assert payload["message"]["value"] == "10000000000000000000"
        assert payload["message"]["owner"] == MOCK_OWNER_ADDRESS

    @pytest.mark.asyncio
    async def test_rpc_error(self, typed_data):
        w3 = self._w3({"error": {"code": 4001, "message": "User rejected the request."}})
        signer = Web3RpcSigner(w3, MOCK_OWNER_ADDRESS)

        with pytest.raises(PermitSigningError, match="User rejected"):
            await signer.sign_typed_data(
                typed_data.domain.to_dict(),
                typed_data.message_types(),
                typed_data.message.to_dict(),
            )

    @pytest.mark.asyncio
    async def test_empty_result(self, typed_data):
        signer = Web3RpcSigner(self._w3({"result": None}), MOCK_OWNER_ADDRESS)

        with pytest.raises(MalformedSignatureError):
            await signer.sign_typed_data(
                typed_data.domain.to_dict(),
                typed_data.message_types(),
                typed_data.message.to_dict(),
            )


class TestPrimaryType:
    """_primary_type"""

    def test_single_struct(self):
        assert _primary_type({"Permit": []}) == "Permit"

    def test_nested_struct(self):
        types = {
            "Mail": [{"name": "from", "type": "Person"}, {"name": "cc", "type": "Person[]"}],
            "Person": [{"name": "wallet", "type": "address"}],
        }
        assert _primary_type(types) == "Mail"

    def test_ambiguous(self):
        with pytest.raises(PermitSigningError):
            _primary_type({"A": [], "B": []})
