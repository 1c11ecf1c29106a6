"""
Permit Token References

Read-only view of an EIP-2612 token as needed by the permit builder:
current nonce of an owner, display name, deployed address and, optionally,
the chain id of its network and its on-chain domain separator.

    - PermitToken: Abstract capability the builder depends on. Subclass it
      to plug in any other token source (an indexer, a fixture, ...).
    - Web3PermitToken: Implementation over a web3.py contract. Works with
      both ``AsyncWeb3`` and ``Web3`` contracts.
"""

import inspect
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from web3 import AsyncWeb3, AsyncHTTPProvider
from web3.exceptions import ABIFunctionNotFound, BadFunctionCallOutput, ContractLogicError

from .abi import get_permit_token_abi
from .exceptions import ConfigurationError
from .settings import PermitSettings

logger = logging.getLogger(__name__)


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class PermitToken(ABC):
    """
    Token capability consumed by ``PermitParamsBuilder``.

    Implementations must not cache nonces; every call reflects the current
    on-chain state.
    """

    @property
    @abstractmethod
    def address(self) -> str:
        """Deployed token address, used as EIP-712 ``verifyingContract``."""

    @abstractmethod
    async def nonces(self, owner: str) -> int:
        """Current EIP-2612 nonce of ``owner``."""

    @abstractmethod
    async def name(self) -> str:
        """Token display name, used as EIP-712 domain ``name``."""

    async def chain_id(self) -> Optional[int]:
        """Chain id of the token's network, or None when not derivable."""
        return None

    async def domain_separator(self) -> Optional[bytes]:
        """On-chain EIP-712 domain separator, or None when not exposed."""
        return None


class Web3PermitToken(PermitToken):
    """
    ``PermitToken`` backed by a web3.py contract.

    Example:
        w3 = AsyncWeb3(AsyncHTTPProvider("http://127.0.0.1:8545"))
        token = Web3PermitToken.from_address(w3, "0x5FbDB2315678afecb367f032d93F642f64180aa3")
        nonce = await token.nonces(owner)
    """

    def __init__(self, contract: Any):
        """
        Args:
            contract: A web3.py ``AsyncContract`` or ``Contract`` whose ABI
                includes at least ``nonces`` and ``name``.
        """
        self._contract = contract

    @classmethod
    def from_address(cls, w3: AsyncWeb3, address: str) -> "Web3PermitToken":
        """Bind the permit token ABI to ``address`` on ``w3``."""
        contract = w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(address),
            abi=get_permit_token_abi(),
        )
        return cls(contract)

    @classmethod
    def from_rpc_url(
        cls,
        address: str,
        rpc_url: Optional[str] = None,
        request_timeout: Optional[int] = None,
    ) -> "Web3PermitToken":
        """
        Connect to ``rpc_url`` and bind the token.

        Omitted arguments come from ``PermitSettings.from_env()``
        (``PERMIT_RPC_URL``, ``PERMIT_REQUEST_TIMEOUT``, including a ``.env`` file).

        Raises:
            ConfigurationError: If no RPC URL is passed or configured.
        """
        if not rpc_url or request_timeout is None:
            settings = PermitSettings.from_env()
            rpc_url = rpc_url or settings.rpc_url
            if request_timeout is None:
                request_timeout = settings.request_timeout
        if not rpc_url:
            raise ConfigurationError(
                "RPC URL not provided. Either pass 'rpc_url' or set the "
                "'PERMIT_RPC_URL' environment variable."
            )
        w3 = AsyncWeb3(AsyncHTTPProvider(rpc_url, request_kwargs={"timeout": request_timeout}))
        return cls.from_address(w3, address)

    @property
    def contract(self) -> Any:
        return self._contract

    @property
    def address(self) -> str:
        return self._contract.address

    async def nonces(self, owner: str) -> int:
        return int(await _resolve(self._contract.functions.nonces(owner).call()))

    async def name(self) -> str:
        return await _resolve(self._contract.functions.name().call())

    async def chain_id(self) -> Optional[int]:
        w3 = getattr(self._contract, "w3", None)
        if w3 is None:
            return None
        return int(await _resolve(w3.eth.chain_id))

    async def domain_separator(self) -> Optional[bytes]:
        """
        Query ``DOMAIN_SEPARATOR()``, falling back to ``domainSeparator()``.

        Returns:
            The 32-byte separator, or None when the token exposes neither.
        """
        for getter in ("DOMAIN_SEPARATOR", "domainSeparator"):
            try:
                fn = getattr(self._contract.functions, getter)
                return bytes(await _resolve(fn().call()))
            except (ABIFunctionNotFound, BadFunctionCallOutput, ContractLogicError) as e:
                logger.debug(f"{getter}() unavailable on {self.address}: {e}")
        return None


def as_permit_token(token: Any) -> PermitToken:
    """
    Normalize a token argument into a ``PermitToken``.

    Accepts a ``PermitToken`` as-is and wraps a web3.py contract object
    (anything with ``functions`` and ``address``) in ``Web3PermitToken``.

    Raises:
        TypeError: For any other object.
    """
    if isinstance(token, PermitToken):
        return token
    if hasattr(token, "functions") and hasattr(token, "address"):
        return Web3PermitToken(token)
    raise TypeError(
        f"Unsupported token reference '{type(token).__name__}'. "
        "Expected a PermitToken or a web3 contract."
    )
