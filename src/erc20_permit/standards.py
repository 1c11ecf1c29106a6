from dataclasses import dataclass, field
from typing import Dict, Any, List

from eth_abi import encode
from eth_utils import keccak, to_checksum_address


EIP712_DOMAIN_TYPE: List[Dict[str, str]] = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
]

# Field order is part of the EIP-2612 type hash.
PERMIT_TYPE: List[Dict[str, str]] = [
    {"name": "owner", "type": "address"},
    {"name": "spender", "type": "address"},
    {"name": "value", "type": "uint256"},
    {"name": "nonce", "type": "uint256"},
    {"name": "deadline", "type": "uint256"},
]

EIP712_DOMAIN_TYPEHASH: bytes = keccak(
    text="EIP712Domain(string name,string version,uint256 chainId,address verifyingContract)"
)


# -----------------------------
# EIP-712 Domain
# -----------------------------

@dataclass
class EIP712Domain:
    """
    EIP-712 domain separator.
    Used to prevent signature replay across domains.
    """
    name: str
    version: str
    chainId: int
    verifyingContract: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "chainId": self.chainId,
            "verifyingContract": self.verifyingContract,
        }

    def separator(self) -> bytes:
        """
        Compute the 32-byte EIP-712 domain separator hash.

        Matches the ``DOMAIN_SEPARATOR()`` value exposed by OpenZeppelin-style
        EIP-2612 tokens for the same name, version, chain and address.
        """
        return keccak(
            encode(
                ["bytes32", "bytes32", "bytes32", "uint256", "address"],
                [
                    EIP712_DOMAIN_TYPEHASH,
                    keccak(text=self.name),
                    keccak(text=self.version),
                    self.chainId,
                    to_checksum_address(self.verifyingContract),
                ],
            )
        )


# -----------------------------
# Permit Message (EIP-2612)
# -----------------------------

@dataclass
class PermitMessage:
    """
    Permit message as defined in EIP-2612.
    Represents token allowance authorization.
    """
    owner: str
    spender: str
    value: int
    nonce: int
    deadline: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "owner": self.owner,
            "spender": self.spender,
            "value": self.value,
            "nonce": self.nonce,
            "deadline": self.deadline,
        }


# -----------------------------
# EIP-712 Typed Data Wrapper
# -----------------------------

@dataclass
class PermitTypedData:
    """
    EIP-712 typed data container for an EIP-2612 permit.

    ``message_types()`` gives the ``types`` argument of the
    ``sign_typed_data(domain, types, message)`` call shape (domain type
    omitted, it is derived from the domain keys); ``to_dict()`` gives the
    full ``eth_signTypedData_v4`` payload.
    """
    domain: EIP712Domain
    message: PermitMessage

    primary_type: str = "Permit"

    types: Dict[str, List[Dict[str, str]]] = field(
        default_factory=lambda: {
            "EIP712Domain": list(EIP712_DOMAIN_TYPE),
            "Permit": list(PERMIT_TYPE),
        }
    )

    def message_types(self) -> Dict[str, List[Dict[str, str]]]:
        return {k: v for k, v in self.types.items() if k != "EIP712Domain"}

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the typed data into a dict compatible with EIP-712 signing.
        """
        return {
            "types": self.types,
            "primaryType": self.primary_type,
            "domain": self.domain.to_dict(),
            "message": self.message.to_dict(),
        }
