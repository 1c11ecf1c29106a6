"""
ERC20 + EIP-2612 Smart Contract ABI Module

Simplified ABI fragments for the read-only token queries a permit build
needs, plus the ``permit`` entry point the result is meant for.

Usage:
    from erc20_permit.abi import get_permit_token_abi

    contract = w3.eth.contract(address=token_address, abi=get_permit_token_abi())
    nonce = await contract.functions.nonces(owner).call()
"""

from typing import Dict, Any, List


def _view(name: str, inputs: List[Dict[str, str]], output_type: str) -> Dict[str, Any]:
    return {
        "name": name,
        "type": "function",
        "stateMutability": "view",
        "inputs": inputs,
        "outputs": [{"name": "", "type": output_type}],
    }


def get_nonces_abi() -> List[Dict[str, Any]]:
    """
    Get ABI for EIP-2612 ``nonces(owner)``.

    Example:
        contract = web3.eth.contract(address=token_address, abi=get_nonces_abi())
        nonce = await contract.functions.nonces(owner).call()
    """
    return [_view("nonces", [{"name": "owner", "type": "address"}], "uint256")]


def get_name_abi() -> List[Dict[str, Any]]:
    """Get ABI for ERC20 ``name()``."""
    return [_view("name", [], "string")]


def get_domain_separator_abi() -> List[Dict[str, Any]]:
    """
    Get ABI for the token's EIP-712 domain separator getters.

    Most permit tokens expose ``DOMAIN_SEPARATOR()``; some older ones expose
    ``domainSeparator()`` instead, so both are included.
    """
    return [
        _view("DOMAIN_SEPARATOR", [], "bytes32"),
        _view("domainSeparator", [], "bytes32"),
    ]


def get_permit_abi() -> List[Dict[str, Any]]:
    """
    Get ABI for EIP-2612 ``permit(owner, spender, value, deadline, v, r, s)``.

    Example:
        contract = web3.eth.contract(address=token_address, abi=get_permit_abi())
        tx = contract.functions.permit(*result.permit_args()).build_transaction({...})
    """
    return [
        {
            "name": "permit",
            "type": "function",
            "stateMutability": "nonpayable",
            "inputs": [
                {"name": "owner",    "type": "address"},
                {"name": "spender",  "type": "address"},
                {"name": "value",    "type": "uint256"},
                {"name": "deadline", "type": "uint256"},
                {"name": "v",        "type": "uint8"},
                {"name": "r",        "type": "bytes32"},
                {"name": "s",        "type": "bytes32"},
            ],
            "outputs": [],
        }
    ]


def get_permit_token_abi() -> List[Dict[str, Any]]:
    """
    Get the combined ABI used by ``Web3PermitToken``.

    Returns:
        List[Dict[str, Any]]: ``nonces``, ``name``, domain separator getters
        and ``permit``.
    """
    return get_nonces_abi() + get_name_abi() + get_domain_separator_abi() + get_permit_abi()
