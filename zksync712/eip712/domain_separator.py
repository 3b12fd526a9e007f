from typing import Any, Dict, List, Mapping

from eth_utils import is_address
from web3 import Web3

from zksync712.core.errors import InvalidDomainError
from zksync712.core.types import TypedDataDomain, TypedDataField
from zksync712.core.utils import to_bytes, to_int, to_hex
from zksync712.eip712.encoder import TypedDataEncoder

DOMAIN_FIELD_TYPES = {
    "name": "string",
    "version": "string",
    "chainId": "uint256",
    "verifyingContract": "address",
    "salt": "bytes32",
}

DOMAIN_FIELD_NAMES = ["name", "version", "chainId", "verifyingContract", "salt"]

MAX_SAFE_INTEGER = 2 ** 53 - 1


def make_domain(
    name=None, version=None, chainId=None, verifyingContract=None, salt=None
) -> TypedDataDomain:
    """Helper method to create the standard EIP712Domain for you.

    Per the standard, if a value is not used then the parameter is omitted from the domain entirely.
    """

    if all(i is None for i in [name, version, chainId, verifyingContract, salt]):
        raise ValueError("At least one argument must be given.")

    domain: TypedDataDomain = {}
    if name is not None:
        domain["name"] = str(name)
    if version is not None:
        domain["version"] = str(version)
    if chainId is not None:
        domain["chainId"] = int(chainId)
    if verifyingContract is not None:
        domain["verifyingContract"] = verifyingContract
    if salt is not None:
        domain["salt"] = salt
    return domain


def domain_fields(domain: Mapping[str, Any]) -> List[TypedDataField]:
    """EIP712Domain fields present (non-None) in domain, in canonical order."""
    for key, value in domain.items():
        if value is not None and key not in DOMAIN_FIELD_TYPES:
            raise InvalidDomainError(f"invalid typed-data domain key: {key!r}")
    return [
        TypedDataField(name=name, type=DOMAIN_FIELD_TYPES[name])
        for name in DOMAIN_FIELD_NAMES
        if domain.get(name) is not None
    ]


def hash_domain(domain: Mapping[str, Any]) -> bytes:
    fields = domain_fields(domain)
    return TypedDataEncoder({"EIP712Domain": fields}).hash_struct("EIP712Domain", domain)


def _check_string(key: str, value: Any) -> str:
    if not isinstance(value, str):
        raise InvalidDomainError(f"invalid domain value for {key!r}")
    return value


def _check_chain_id(value: Any):
    try:
        chain_id = to_int(value)
    except (TypeError, ValueError) as e:
        raise InvalidDomainError("invalid domain value for chain ID") from e
    if chain_id < 0:
        raise InvalidDomainError("invalid domain value for chain ID")
    if chain_id <= MAX_SAFE_INTEGER:
        return chain_id
    return Web3.to_hex(chain_id)


def _check_verifying_contract(value: Any) -> str:
    if not is_address(value):
        raise InvalidDomainError('invalid domain value "verifyingContract"')
    return Web3.to_checksum_address(value).lower()


def _check_salt(value: Any) -> str:
    try:
        salt = to_bytes(value)
    except (TypeError, ValueError) as e:
        raise InvalidDomainError('invalid domain value "salt"') from e
    if len(salt) != 32:
        raise InvalidDomainError('invalid domain value "salt"')
    return to_hex(salt)


DOMAIN_CHECKS = {
    "name": lambda value: _check_string("name", value),
    "version": lambda value: _check_string("version", value),
    "chainId": _check_chain_id,
    "verifyingContract": _check_verifying_contract,
    "salt": _check_salt,
}


def render_domain(domain: Mapping[str, Any]) -> Dict[str, Any]:
    """JSON-safe copy of the domain values, as sent to JSON-RPC signers."""
    return {
        name: DOMAIN_CHECKS[name](domain[name])
        for name in DOMAIN_FIELD_NAMES
        if domain.get(name) is not None
    }
