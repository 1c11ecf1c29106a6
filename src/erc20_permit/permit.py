"""
EIP-2612 Permit Parameters

Builds and signs an EIP-2612 ``Permit`` for an ERC-20 token and returns
everything needed to call ``permit(owner, spender, value, deadline, v, r, s)``.
Hashing and ECDSA are delegated to ``eth_account``; this module only
gathers the inputs, assembles the typed data and checks the result.

Exported helpers
----------------
PermitParamsBuilder
    Configurable builder (deadline window, default domain version,
    signature recovery check, domain separator check).

get_permit_params
    One-call convenience around ``PermitParamsBuilder().build``.

build_permit_typed_data
    Wrap a domain and message in a ``PermitTypedData`` envelope without
    signing, for callers that sign elsewhere.

split_signature / recover_permit_signer
    Decompose a 65-byte signature into (v, r, s) and recover its signer.

Every build re-reads the owner's nonce and the token name; nothing is
cached. A result is only valid while the on-chain nonce is unchanged, so
callers should submit it promptly and rebuild on a nonce race.
"""

import logging
import time
from typing import Any, Awaitable, Callable, Optional, TypeVar

from eth_account import Account
from eth_account.messages import encode_typed_data

from .exceptions import (
    ChainIdUnavailableError,
    DomainSeparatorMismatchError,
    InvalidDeadlineError,
    MalformedSignatureError,
    PermitError,
    SignatureMismatchError,
    TokenQueryError,
)
from .schemas import PermitRequest, PermitResult, PermitSignature
from .settings import DEFAULT_DEADLINE_SECONDS, DEFAULT_DOMAIN_VERSION, PermitSettings
from .signers import get_signer_address, resolve_sign_function
from .standards import EIP712Domain, PermitMessage, PermitTypedData
from .tokens import PermitToken, as_permit_token

logger = logging.getLogger(__name__)

T = TypeVar("T")


def build_permit_typed_data(domain: EIP712Domain, message: PermitMessage) -> PermitTypedData:
    """
    Wrap a domain and ``Permit`` message in a ``PermitTypedData`` envelope.

    ``to_dict()`` of the result is accepted by ``eth_account``'s
    ``encode_typed_data(full_message=...)`` and by ``eth_signTypedData_v4``.
    """
    return PermitTypedData(domain=domain, message=message)


def split_signature(signature: bytes) -> PermitSignature:
    """
    Decompose a 65-byte ``r || s || v`` signature.

    ``r`` and ``s`` become 0x-prefixed, zero-padded 32-byte hex strings and
    ``v`` is normalized to 27/28 (signers returning 0/1 are accepted).

    Raises:
        ValueError: If ``signature`` is not 65 bytes or ``v`` is out of range.
    """
    if len(signature) != 65:
        raise ValueError(f"Expected a 65-byte signature, got {len(signature)} bytes")

    v = signature[64]
    if v < 27:
        v += 27
    return PermitSignature(
        v=v,
        r="0x" + signature[:32].hex(),
        s="0x" + signature[32:64].hex(),
    )


def recover_permit_signer(typed_data: PermitTypedData, signature: PermitSignature) -> str:
    """
    Recover the address that produced ``signature`` over ``typed_data``.

    Returns:
        Checksum address of the signer.
    """
    signable = encode_typed_data(full_message=typed_data.to_dict())
    return Account.recover_message(
        signable, vrs=(signature.v, int(signature.r, 16), int(signature.s, 16))
    )


async def _query_token(token: PermitToken, query: str, call: Callable[[], Awaitable[T]]) -> T:
    try:
        return await call()
    except PermitError:
        raise
    except Exception as e:
        raise TokenQueryError(
            f"Token query '{query}' failed for {token.address}: {e}",
            query=query,
            token=token.address,
        ) from e


class PermitParamsBuilder:
    """
    Builds signed EIP-2612 permit parameters.

    The builder holds configuration only; each ``build`` call is
    independent and safe to run concurrently with others.

    Attributes:
        deadline_seconds: Lifetime of permits built without an explicit
            deadline.
        verify_signature: Recover the signer after signing and reject
            mismatches.
        check_domain_separator: Compare the local domain separator with the
            token's ``DOMAIN_SEPARATOR()`` before signing, when the token
            exposes one.
        default_version: Domain version used when a request leaves
            ``version`` at the EIP-2612 default.

    Example:
        builder = PermitParamsBuilder(check_domain_separator=True)
        result = await builder.build(
            signer,
            token,
            PermitRequest(value="10000000000000000000", spender=spender, chain_id=31337),
        )
        await contract.functions.permit(*result.permit_args()).transact()
    """

    def __init__(
        self,
        *,
        deadline_seconds: int = DEFAULT_DEADLINE_SECONDS,
        verify_signature: bool = True,
        check_domain_separator: bool = False,
        default_version: str = DEFAULT_DOMAIN_VERSION,
        clock: Callable[[], float] = time.time,
    ):
        if deadline_seconds <= 0:
            raise ValueError("deadline_seconds must be positive")
        self.deadline_seconds = deadline_seconds
        self.verify_signature = verify_signature
        self.check_domain_separator = check_domain_separator
        self.default_version = default_version
        self._clock = clock

    @classmethod
    def from_settings(
        cls, settings: Optional[PermitSettings] = None, **overrides: Any
    ) -> "PermitParamsBuilder":
        """Create a builder from ``PermitSettings`` (environment when omitted)."""
        settings = settings or PermitSettings.from_env()
        options = {
            "deadline_seconds": settings.deadline_seconds,
            "verify_signature": settings.verify_signature,
            "default_version": settings.domain_version,
        }
        options.update(overrides)
        return cls(**options)

    def _resolve_deadline(self, requested: Optional[int]) -> int:
        now = int(self._clock())
        if requested is None:
            return now + self.deadline_seconds
        if requested <= now:
            raise InvalidDeadlineError(requested, now)
        return requested

    async def _resolve_chain_id(self, token: PermitToken, requested: Optional[int]) -> int:
        if requested is not None:
            return requested
        try:
            chain_id = await token.chain_id()
        except Exception as e:
            raise ChainIdUnavailableError(
                f"chain_id not supplied and the token's network query failed: {e}"
            ) from e
        if chain_id is None:
            raise ChainIdUnavailableError(
                "chain_id not supplied and not derivable from the token's network connection"
            )
        return chain_id

    async def _check_domain(self, token: PermitToken, domain: EIP712Domain) -> None:
        actual = await _query_token(token, "DOMAIN_SEPARATOR", token.domain_separator)
        if actual is None:
            logger.debug(f"{token.address} exposes no domain separator, skipping check")
            return
        expected = domain.separator()
        if bytes(actual) != expected:
            raise DomainSeparatorMismatchError("0x" + expected.hex(), "0x" + bytes(actual).hex())

    async def build(self, signer: Any, token: Any, request: PermitRequest) -> PermitResult:
        """
        Sign a permit for ``request`` and return the ``permit`` call parameters.

        Args:
            signer: Signing identity (see ``erc20_permit.signers``), e.g. an
                ``eth_account`` ``LocalAccount`` or ``PrivateKeySigner``.
            token: ``PermitToken`` or web3.py contract of the token.
            request: Permit parameters.

        Returns:
            ``PermitResult`` whose ``owner`` is the signer address and whose
            ``spender``/``value`` equal the request fields unchanged.

        Raises:
            UnsupportedSignerError: Signer lacks an address or signing capability.
            TokenQueryError: ``nonces`` or ``name`` query failed.
            InvalidDeadlineError: Requested deadline is not in the future.
            ChainIdUnavailableError: No chain id supplied or derivable.
            DomainSeparatorMismatchError: Domain check enabled and failed.
            PermitSigningError: Signer failed or returned a malformed signature.
            SignatureMismatchError: Recovered signer differs from ``owner``.
        """
        token = as_permit_token(token)
        owner = get_signer_address(signer)
        sign = resolve_sign_function(signer)

        nonce = await _query_token(token, "nonces", lambda: token.nonces(owner))
        deadline = self._resolve_deadline(request.deadline)
        chain_id = await self._resolve_chain_id(token, request.chain_id)
        name = await _query_token(token, "name", token.name)
        logger.debug(
            f"Permit inputs: token={token.address} name={name!r} owner={owner} "
            f"nonce={nonce} chain_id={chain_id} deadline={deadline}"
        )

        version = request.version
        if "version" not in request.model_fields_set:
            version = self.default_version

        domain = EIP712Domain(
            name=name,
            version=version,
            chainId=chain_id,
            verifyingContract=token.address,
        )
        message = PermitMessage(
            owner=owner,
            spender=request.spender,
            value=int(request.value),
            nonce=nonce,
            deadline=deadline,
        )
        typed_data = build_permit_typed_data(domain, message)

        if self.check_domain_separator:
            await self._check_domain(token, domain)

        raw_signature = await sign(typed_data)
        try:
            signature = split_signature(raw_signature)
        except ValueError as e:
            raise MalformedSignatureError(f"Signer returned an unusable signature: {e}") from e

        if self.verify_signature:
            try:
                recovered = recover_permit_signer(typed_data, signature)
            except Exception as e:
                raise MalformedSignatureError(f"Signature cannot be recovered: {e}") from e
            if recovered.lower() != owner.lower():
                raise SignatureMismatchError(owner, recovered)

        logger.debug(f"Permit signed for owner={owner} spender={request.spender} nonce={nonce}")

        return PermitResult(
            owner=owner,
            spender=request.spender,
            value=request.value,
            deadline=deadline,
            v=signature.v,
            r=signature.r,
            s=signature.s,
            nonce=nonce,
            chain_id=chain_id,
            destination=request.destination,
        )


async def get_permit_params(
    signer: Any,
    token: Any,
    request: Optional[PermitRequest] = None,
    **fields: Any,
) -> PermitResult:
    """
    Sign an EIP-2612 permit with default builder settings.

    Either pass a ``PermitRequest`` or its fields as keyword arguments.

    Example::

        result = await get_permit_params(
            account,
            token_contract,
            value="10000000000000000000",
            spender="0x70997970C51812dc3A010C7d01b50e0d17dc79C8",
            chain_id=31337,
        )
        owner, spender, value, deadline, v, r, s = result.permit_args()

    Raises:
        TypeError: If both ``request`` and keyword fields are given.
    """
    if request is not None and fields:
        raise TypeError("Pass either a PermitRequest or its fields, not both")
    if request is None:
        request = PermitRequest(**fields)
    return await PermitParamsBuilder().build(signer, token, request)
