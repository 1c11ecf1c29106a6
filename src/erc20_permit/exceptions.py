"""
Exception and Error Definitions Module

Defines the exception hierarchy raised while building EIP-2612 permit
parameters. All exceptions inherit from PermitError so callers can handle
every failure of a permit build with a single except clause.

Exception Hierarchy:
    PermitError (root)
    ├── ConfigurationError
    ├── TokenQueryError
    ├── ChainIdUnavailableError
    ├── InvalidDeadlineError
    ├── DomainSeparatorMismatchError
    ├── UnsupportedSignerError
    └── PermitSigningError
        ├── MalformedSignatureError
        └── SignatureMismatchError
"""


class PermitError(Exception):
    """
    Root exception class for all permit-building errors.
    """
    pass


class ConfigurationError(PermitError):
    """
    Raised when configuration is missing or invalid.

    This includes scenarios such as:
    - No private key passed and ``PERMIT_PRIVATE_KEY`` not set
    - No RPC URL available to build a web3 token handle
    - Non-numeric values in numeric environment variables
    """
    pass


class TokenQueryError(PermitError):
    """
    Raised when a read-only query to the token contract fails.

    This includes scenarios such as:
    - RPC call timeout or connection failure
    - Contract call revert (e.g. token without ``nonces``)

    The query is never retried; the original exception is chained.

    Attributes:
        query: Name of the failed query (``"nonces"``, ``"name"``)
        token: Address of the token that was queried
    """

    def __init__(self, message: str, *, query: str, token: str):
        super().__init__(message)
        self.query = query
        self.token = token


class ChainIdUnavailableError(PermitError):
    """
    Raised when no chain id was supplied and none could be derived from
    the token's network connection.
    """
    pass


class InvalidDeadlineError(PermitError):
    """
    Raised when a caller-supplied deadline is not strictly in the future.

    Attributes:
        deadline: The rejected deadline (Unix seconds)
        now: Current Unix time in seconds at the moment of the check
    """

    def __init__(self, deadline: int, now: int):
        super().__init__(
            f"Permit deadline {deadline} is not in the future (now={now})"
        )
        self.deadline = deadline
        self.now = now


class DomainSeparatorMismatchError(PermitError):
    """
    Raised when the token's on-chain ``DOMAIN_SEPARATOR`` differs from the
    one computed locally for the permit domain.

    Usually means the domain ``version`` or chain id is wrong for this token;
    a permit signed under that domain would revert on-chain.

    Attributes:
        expected: Domain separator computed locally (0x-prefixed hex)
        actual: Domain separator reported by the token (0x-prefixed hex)
    """

    def __init__(self, expected: str, actual: str):
        super().__init__(
            f"Domain separator mismatch: computed {expected}, token reports {actual}"
        )
        self.expected = expected
        self.actual = actual


class UnsupportedSignerError(PermitError):
    """
    Raised when the signing identity exposes no address or neither of the
    recognized typed-data signing capabilities (``sign_typed_data`` or
    ``sign_message``).
    """
    pass


class PermitSigningError(PermitError):
    """
    Base exception for failures of the signing step.

    Raised directly when the signer itself fails (remote signer error,
    rejected request).
    """
    pass


class MalformedSignatureError(PermitSigningError):
    """
    Raised when a signer returns something that is not a 65-byte ECDSA
    signature.
    """
    pass


class SignatureMismatchError(PermitSigningError):
    """
    Raised when the address recovered from the permit signature does not
    match the permit owner.

    Signals a non-conformant signer or a message corrupted in transit; a
    bad signature is never returned to the caller.

    Attributes:
        owner: Expected signer address
        recovered: Address actually recovered from the signature
    """

    def __init__(self, owner: str, recovered: str):
        super().__init__(
            f"Recovered signer {recovered} does not match permit owner {owner}"
        )
        self.owner = owner
        self.recovered = recovered
