"""
Permit Schema Models

Pydantic models describing the input and output of a permit build.

    - CanonicalModel: Deterministic-JSON base model shared by all schemas.
    - PermitRequest: Caller-supplied permit parameters (value, spender, and
      optional destination / chain id / deadline / domain version).
    - PermitSignature: Decomposed ECDSA signature (v, r, s).
    - PermitResult: Everything needed to call
      ``permit(owner, spender, value, deadline, v, r, s)`` on the token.
"""

import json
from typing import Optional, Dict, Any, Tuple

from eth_utils import is_address
from pydantic import BaseModel, ConfigDict, Field, field_validator


class CanonicalModel(BaseModel):
    """
    Pydantic base model with canonical JSON serialization.

    Keys are sorted and whitespace removed so the same model always
    serializes to the same string, which makes results safe to log, hash
    or compare.
    """

    model_config = ConfigDict(populate_by_name=True)

    def to_canonical_json(self) -> str:
        """
        Convert model to a canonical JSON string (sorted keys, compact).

        Returns:
            str: JSON string with sorted keys and no extra whitespace.
        """
        data = self.model_dump(mode="json")
        return json.dumps(
            data,
            separators=(",", ":"),
            sort_keys=True,
            ensure_ascii=False
        )

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


def _validate_address(field_name: str, value: str) -> str:
    if not isinstance(value, str) or not is_address(value):
        raise ValueError(f"{field_name} must be a valid 0x-prefixed EVM address, got {value!r}")
    return value


class PermitRequest(CanonicalModel):
    """
    Caller-supplied parameters of a permit.

    Attributes:
        value: Amount to approve in the token's smallest unit, as a decimal
            string. Integers are accepted and stored as their decimal string.
        spender: Address authorized to spend ``value``.
        destination: Optional application field echoed back in the result.
        chain_id: EVM network ID. When omitted it is read from the token's
            web3 connection.
        deadline: Unix timestamp (seconds) after which the permit is invalid.
            Defaults to one hour after the build.
        version: EIP-712 domain ``version`` of the token (``"1"`` for
            OpenZeppelin ``ERC20Permit``).

    Example::

        request = PermitRequest(
            value="10000000000000000000",
            spender="0x70997970C51812dc3A010C7d01b50e0d17dc79C8",
            chain_id=31337,
        )
    """

    value: str = Field(..., description="Approved amount in smallest units (decimal string)")
    spender: str = Field(..., description="Authorized spender address")
    destination: Optional[str] = Field(default=None, description="Optional application field echoed in the result")
    chain_id: Optional[int] = Field(default=None, ge=1, description="EVM network ID override")
    deadline: Optional[int] = Field(default=None, ge=0, description="Permit expiry (Unix seconds) override")
    version: str = Field(default="1", description="EIP-712 domain version")

    @field_validator("value", mode="before")
    @classmethod
    def _check_value(cls, v: Any) -> str:
        if isinstance(v, bool):
            raise ValueError("value must be an integer amount, not a bool")
        if isinstance(v, int):
            v = str(v)
        if not isinstance(v, str) or not (v.isascii() and v.isdigit()):
            raise ValueError(f"value must be a non-negative integer decimal string, got {v!r}")
        if int(v) >= 2 ** 256:
            raise ValueError("value does not fit in uint256")
        return v

    @field_validator("chain_id", "deadline")
    @classmethod
    def _check_uint256(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v >= 2 ** 256:
            raise ValueError("does not fit in uint256")
        return v

    @field_validator("spender")
    @classmethod
    def _check_spender(cls, v: str) -> str:
        return _validate_address("spender", v)


class PermitSignature(CanonicalModel):
    """
    EIP-2612 permit signature components.

    Attributes:
        v: ECDSA recovery ID (27 or 28).
        r: r component, 0x-prefixed 64-char hex string.
        s: s component, 0x-prefixed 64-char hex string.
    """

    v: int = Field(..., ge=27, le=28, description="ECDSA recovery ID (27 or 28)")
    r: str = Field(..., description="Signature r component (0x + 64 hex chars)")
    s: str = Field(..., description="Signature s component (0x + 64 hex chars)")

    @field_validator("r", "s")
    @classmethod
    def _check_scalar(cls, v: str) -> str:
        hex_str = v[2:] if v.startswith(("0x", "0X")) else v
        if len(hex_str) != 64:
            raise ValueError(f"expected 64 hex chars, got {len(hex_str)}")
        try:
            int(hex_str, 16)
        except ValueError:
            raise ValueError("not valid hexadecimal")
        return "0x" + hex_str.lower()

    def to_packed_hex(self) -> str:
        """
        Encode v/r/s into a packed 65-byte hex string (``r || s || v``).

        Returns:
            0x-prefixed 132-character hex string.
        """
        return "0x" + self.r[2:] + self.s[2:] + format(self.v, "02x")


class PermitResult(CanonicalModel):
    """
    Signed EIP-2612 permit, ready for the token's ``permit`` call.

    Field names and order of the first seven fields follow
    ``permit(owner, spender, value, deadline, v, r, s)``. The result is only
    valid for ``nonce``; another permit or nonce-consuming call by the owner
    before submission invalidates it.

    Attributes:
        owner: Signer address.
        spender: Spender exactly as requested.
        value: Amount exactly as requested (decimal string).
        deadline: Permit expiry (Unix seconds).
        v: ECDSA recovery ID (27 or 28).
        r: Signature r component.
        s: Signature s component.
        nonce: Token nonce observed for ``owner`` when the permit was signed.
        chain_id: Chain id used in the EIP-712 domain.
        destination: Application field echoed from the request, if any.

    Example::

        result = await get_permit_params(signer, token, value="1000", spender=spender)
        await token_contract.functions.permit(*result.permit_args()).transact()
    """

    owner: str = Field(..., description="Token owner (signer) address")
    spender: str = Field(..., description="Authorized spender address")
    value: str = Field(..., description="Approved amount in smallest units (decimal string)")
    deadline: int = Field(..., ge=0, description="Permit expiry (Unix seconds)")
    v: int = Field(..., ge=27, le=28, description="ECDSA recovery ID")
    r: str = Field(..., description="Signature r component (0x + 64 hex chars)")
    s: str = Field(..., description="Signature s component (0x + 64 hex chars)")
    nonce: int = Field(..., ge=0, description="Token nonce the permit was signed for")
    chain_id: int = Field(..., ge=1, description="Chain id of the EIP-712 domain")
    destination: Optional[str] = Field(default=None, description="Application field echoed from the request")

    @property
    def signature(self) -> PermitSignature:
        return PermitSignature(v=self.v, r=self.r, s=self.s)

    def permit_args(self) -> Tuple[str, str, int, int, int, str, str]:
        """
        Positional arguments for ``permit(owner, spender, value, deadline, v, r, s)``.
        """
        return (self.owner, self.spender, int(self.value), self.deadline, self.v, self.r, self.s)
