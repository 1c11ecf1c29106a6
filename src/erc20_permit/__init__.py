from .exceptions import (
    PermitError,
    ConfigurationError,
    TokenQueryError,
    ChainIdUnavailableError,
    InvalidDeadlineError,
    DomainSeparatorMismatchError,
    UnsupportedSignerError,
    PermitSigningError,
    MalformedSignatureError,
    SignatureMismatchError,
)
from .standards import EIP712Domain, PermitMessage, PermitTypedData, PERMIT_TYPE
from .schemas import PermitRequest, PermitSignature, PermitResult
from .tokens import PermitToken, Web3PermitToken
from .signers import PrivateKeySigner, Web3RpcSigner
from .settings import PermitSettings
from .units import amount_to_value, value_to_amount
from .permit import (
    PermitParamsBuilder,
    get_permit_params,
    build_permit_typed_data,
    split_signature,
    recover_permit_signer,
)

__all__ = [
    "PermitError",
    "ConfigurationError",
    "TokenQueryError",
    "ChainIdUnavailableError",
    "InvalidDeadlineError",
    "DomainSeparatorMismatchError",
    "UnsupportedSignerError",
    "PermitSigningError",
    "MalformedSignatureError",
    "SignatureMismatchError",
    "EIP712Domain",
    "PermitMessage",
    "PermitTypedData",
    "PERMIT_TYPE",
    "PermitRequest",
    "PermitSignature",
    "PermitResult",
    "PermitToken",
    "Web3PermitToken",
    "PrivateKeySigner",
    "Web3RpcSigner",
    "PermitSettings",
    "amount_to_value",
    "value_to_amount",
    "PermitParamsBuilder",
    "get_permit_params",
    "build_permit_typed_data",
    "split_signature",
    "recover_permit_signer",
]
