"""
Permit Configuration Management

Environment-driven settings for the permit builder and its default
collaborators. Values are read from the process environment after loading
an optional ``.env`` file.

Environment Variables:
    - PERMIT_RPC_URL: JSON-RPC endpoint used by ``Web3PermitToken.from_rpc_url``
    - PERMIT_PRIVATE_KEY: Signing key used by ``PrivateKeySigner`` when none is passed
    - PERMIT_DOMAIN_VERSION: Default EIP-712 domain version (default "1")
    - PERMIT_DEADLINE_SECONDS: Default permit lifetime in seconds (default 3600)
    - PERMIT_REQUEST_TIMEOUT: RPC request timeout in seconds (default 60)
    - PERMIT_VERIFY_SIGNATURE: Recover and check the signer after signing (default true)
"""

import os
from typing import Optional

import dotenv
from pydantic import BaseModel, Field, ValidationError

from .exceptions import ConfigurationError

DEFAULT_DEADLINE_SECONDS = 3600
DEFAULT_DOMAIN_VERSION = "1"
DEFAULT_REQUEST_TIMEOUT = 60

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class PermitSettings(BaseModel):
    """Permit builder configuration."""
    # private_key belongs in the environment or an uncommitted .env file.
    rpc_url: Optional[str] = Field(default=None, description="JSON-RPC endpoint URL")
    private_key: Optional[str] = Field(default=None, description="Hex-encoded secp256k1 signing key")
    domain_version: str = Field(default=DEFAULT_DOMAIN_VERSION, description="Default EIP-712 domain version")
    deadline_seconds: int = Field(default=DEFAULT_DEADLINE_SECONDS, gt=0, description="Default permit lifetime (s)")
    request_timeout: int = Field(default=DEFAULT_REQUEST_TIMEOUT, gt=0, description="RPC request timeout (s)")
    verify_signature: bool = Field(default=True, description="Recover and compare the signer after signing")

    @classmethod
    def from_env(cls, load_dotenv: bool = True) -> "PermitSettings":
        """
        Build settings from environment variables.

        Args:
            load_dotenv: Load a ``.env`` file from the working directory first.
                Variables already set in the environment take precedence.

        Returns:
            PermitSettings populated from the environment, defaults elsewhere.

        Raises:
            ConfigurationError: If a variable holds an invalid value.
        """
        if load_dotenv:
            dotenv.load_dotenv(dotenv.find_dotenv(usecwd=True))

        values = {
            "rpc_url": os.getenv("PERMIT_RPC_URL") or None,
            "private_key": os.getenv("PERMIT_PRIVATE_KEY") or None,
        }
        optional = {
            "domain_version": os.getenv("PERMIT_DOMAIN_VERSION"),
            "deadline_seconds": os.getenv("PERMIT_DEADLINE_SECONDS"),
            "request_timeout": os.getenv("PERMIT_REQUEST_TIMEOUT"),
        }
        values.update({k: v for k, v in optional.items() if v})

        verify = os.getenv("PERMIT_VERIFY_SIGNATURE")
        if verify:
            flag = verify.strip().lower()
            if flag in _TRUE_VALUES:
                values["verify_signature"] = True
            elif flag in _FALSE_VALUES:
                values["verify_signature"] = False
            else:
                raise ConfigurationError(
                    f"PERMIT_VERIFY_SIGNATURE must be a boolean flag, got {verify!r}"
                )

        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid permit configuration: {e}") from e

