"""
EIP-712 Signing Identities

A signing identity is any object that exposes its address and can sign
EIP-712 typed data. Two signing capabilities are recognized, checked in
this order:

sign_typed_data(domain, types, message)
    The ``eth_account`` ``LocalAccount`` call shape. ``types`` holds the
    custom struct types only (no ``EIP712Domain``).

sign_message(signable)
    Signs an EIP-712 ``SignableMessage`` built with
    ``eth_account.messages.encode_typed_data``; ``LocalAccount`` also
    offers this.

Both may be plain or ``async`` methods, and may return an ``eth_account``
``SignedMessage``, raw bytes or a hex string. An ``eth_account``
``LocalAccount`` can be passed directly as a signer.

Shipped identities
------------------
PrivateKeySigner
    Local key, optionally loaded from ``PERMIT_PRIVATE_KEY``.
Web3RpcSigner
    Delegates to a node or wallet through ``eth_signTypedData_v4``.
"""

import inspect
import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from eth_account import Account
from eth_account.datastructures import SignedMessage
from eth_account.messages import encode_typed_data
from web3 import AsyncWeb3

from .exceptions import (
    ConfigurationError,
    MalformedSignatureError,
    PermitError,
    PermitSigningError,
    UnsupportedSignerError,
)
from .settings import PermitSettings
from .standards import EIP712_DOMAIN_TYPE, PermitTypedData

logger = logging.getLogger(__name__)

SignFunction = Callable[[PermitTypedData], Awaitable[bytes]]


def get_signer_address(signer: Any) -> str:
    """
    Read the signer's address without any network access.

    Supports an ``address`` attribute (``LocalAccount``) or a
    ``get_address()`` method.

    Raises:
        UnsupportedSignerError: If the signer exposes neither.
    """
    address = getattr(signer, "address", None)
    if isinstance(address, str) and address:
        return address

    get_address = getattr(signer, "get_address", None)
    if callable(get_address):
        address = get_address()
        if isinstance(address, str) and address:
            return address

    raise UnsupportedSignerError(
        f"Signer '{type(signer).__name__}' exposes no address "
        "(expected an 'address' attribute or 'get_address()')"
    )


def signature_to_bytes(signed: Any) -> bytes:
    """
    Normalize signer output to the raw 65-byte ``r || s || v`` signature.

    Raises:
        MalformedSignatureError: If the output is not a 65-byte signature.
    """
    raw = getattr(signed, "signature", signed)

    if isinstance(raw, str):
        hex_str = raw[2:] if raw.startswith(("0x", "0X")) else raw
        try:
            raw = bytes.fromhex(hex_str)
        except ValueError as e:
            raise MalformedSignatureError(f"Signature is not valid hex: {raw!r}") from e
    elif isinstance(raw, (bytes, bytearray)):
        raw = bytes(raw)
    else:
        raise MalformedSignatureError(
            f"Unsupported signature output type '{type(raw).__name__}'"
        )

    if len(raw) != 65:
        raise MalformedSignatureError(f"Expected a 65-byte signature, got {len(raw)} bytes")
    return raw


def resolve_sign_function(signer: Any) -> SignFunction:
    """
    Pick the signing capability of ``signer``.

    Returns:
        Coroutine function taking ``PermitTypedData`` and returning the raw
        65-byte signature.

    Raises:
        UnsupportedSignerError: If the signer offers neither capability.
    """
    sign_typed_data = getattr(signer, "sign_typed_data", None)
    if callable(sign_typed_data):
        def call(typed_data: PermitTypedData) -> Any:
            return sign_typed_data(
                typed_data.domain.to_dict(),
                typed_data.message_types(),
                typed_data.message.to_dict(),
            )
    else:
        sign_message = getattr(signer, "sign_message", None)
        if not callable(sign_message):
            raise UnsupportedSignerError(
                f"Signer '{type(signer).__name__}' supports neither "
                "'sign_typed_data' nor 'sign_message'"
            )

        def call(typed_data: PermitTypedData) -> Any:
            return sign_message(encode_typed_data(full_message=typed_data.to_dict()))

    async def sign(typed_data: PermitTypedData) -> bytes:
        try:
            signed = call(typed_data)
            if inspect.isawaitable(signed):
                signed = await signed
        except PermitError:
            raise
        except Exception as e:
            raise PermitSigningError(f"Signer failed to sign permit: {e}") from e
        return signature_to_bytes(signed)

    return sign


def _primary_type(types: Dict[str, List[Dict[str, str]]]) -> str:
    """The struct type no other struct refers to."""
    referenced = {f["type"].rstrip("[]") for fields in types.values() for f in fields}
    candidates = [name for name in types if name not in referenced]
    if len(candidates) != 1:
        raise PermitSigningError(f"Cannot determine EIP-712 primary type from {list(types)}")
    return candidates[0]


class PrivateKeySigner:
    """
    Signing identity backed by a local secp256k1 private key.

    Attributes:
        address: Checksum address derived from the key.

    Example:
        signer = PrivateKeySigner("0x...")   # or PrivateKeySigner() with PERMIT_PRIVATE_KEY set
        result = await get_permit_params(signer, token, value="1000", spender=spender)
    """

    def __init__(self, private_key: Optional[str] = None):
        """
        Args:
            private_key: Hex-encoded key (with or without ``0x``). Falls back
                to ``PERMIT_PRIVATE_KEY`` (environment or ``.env`` file) when omitted.

        Raises:
            ConfigurationError: If no key is available or the key is invalid.
        """
        resolved = private_key or PermitSettings.from_env().private_key
        if not resolved:
            raise ConfigurationError(
                "Private key not provided. Either pass 'private_key' or set the "
                "'PERMIT_PRIVATE_KEY' environment variable."
            )
        try:
            self._account = Account.from_key(resolved)
        except (ValueError, TypeError) as e:
            raise ConfigurationError("Invalid private key") from e
        self.address = self._account.address

    def __repr__(self) -> str:
        return f"PrivateKeySigner(address={self.address!r})"

    async def sign_typed_data(
        self,
        domain: Dict[str, Any],
        types: Dict[str, Any],
        message: Dict[str, Any],
    ) -> SignedMessage:
        return self._account.sign_typed_data(domain, types, message)


class Web3RpcSigner:
    """
    Signing identity that delegates to a JSON-RPC ``eth_signTypedData_v4``.

    Suitable for node-managed accounts (Hardhat, Anvil, geth with unlocked
    accounts) or wallet bridges. The key never leaves the remote side.

    Example:
        w3 = AsyncWeb3(AsyncHTTPProvider("http://127.0.0.1:8545"))
        signer = Web3RpcSigner(w3, (await w3.eth.accounts)[0])
    """

    def __init__(self, w3: AsyncWeb3, address: str):
        self._w3 = w3
        self.address = AsyncWeb3.to_checksum_address(address)

    async def sign_typed_data(
        self,
        domain: Dict[str, Any],
        types: Dict[str, Any],
        message: Dict[str, Any],
    ) -> str:
        payload = {
            "types": {"EIP712Domain": EIP712_DOMAIN_TYPE, **types},
            "primaryType": _primary_type(types),
            "domain": domain,
            # uint256 values travel as decimal strings to avoid JSON number limits.
            "message": {k: str(v) if isinstance(v, int) else v for k, v in message.items()},
        }
        logger.debug(f"eth_signTypedData_v4 request for {self.address}")
        response = await self._w3.provider.make_request(
            "eth_signTypedData_v4", [self.address, json.dumps(payload)]
        )
        if response.get("error"):
            raise PermitSigningError(f"eth_signTypedData_v4 failed: {response['error']}")
        result = response.get("result")
        if not result:
            raise MalformedSignatureError("eth_signTypedData_v4 returned no signature")
        return result
