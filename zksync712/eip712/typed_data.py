import logging
import re
from typing import Any, Awaitable, Callable, Dict, Tuple

from eth_utils import keccak

from zksync712.core.errors import InvalidValueError, NameResolutionError
from zksync712.core.types import TypeSet, TypedDataDomain
from zksync712.core.utils import is_hex_address, to_bytes, to_hex, to_int, ZERO_ADDRESS
from zksync712.eip712.domain_separator import hash_domain, domain_fields, render_domain
from zksync712.eip712.encoder import TypedDataEncoder

logger = logging.getLogger("TypedData")

EIP712_PREFIX = b"\x19\x01"

NameResolver = Callable[[str], Awaitable[str]]

_BYTES_TYPE_RE = re.compile(r"^bytes(\d*)")
_INT_TYPE_RE = re.compile(r"^u?int")


def encode_typed_data(domain: TypedDataDomain, types: TypeSet, value: Any) -> bytes:
    return EIP712_PREFIX + hash_domain(domain) + TypedDataEncoder(types).hash(value)


def hash_typed_data(domain: TypedDataDomain, types: TypeSet, value: Any) -> bytes:
    return keccak(encode_typed_data(domain, types, value))


async def resolve_names(
    domain: TypedDataDomain,
    types: TypeSet,
    value: Any,
    resolve_name: NameResolver,
) -> Tuple[TypedDataDomain, Any]:
    """
    Replaces every address-typed value that is not a hex address (ENS names)
    with the address returned by resolve_name, as well as the domain's
    verifyingContract. Each distinct name is resolved once, sequentially.
    """
    domain = {key: item for key, item in domain.items() if item is not None}

    names: Dict[str, str] = {}

    verifying_contract = domain.get("verifyingContract")
    if verifying_contract and not is_hex_address(verifying_contract):
        names[verifying_contract] = ZERO_ADDRESS

    encoder = TypedDataEncoder(types)

    def collect(type_name: str, leaf: Any):
        if type_name == "address" and isinstance(leaf, str) and not is_hex_address(leaf):
            names[leaf] = ZERO_ADDRESS
        return leaf

    encoder.visit(value, collect)

    for name in names:
        resolved = await resolve_name(name)
        if not resolved or not is_hex_address(resolved) or to_int(resolved) == 0:
            raise NameResolutionError(f"ENS name resolution failed for {name}")
        logger.debug(f"resolved {name} to {resolved}")
        names[name] = resolved

    if verifying_contract in names:
        domain["verifyingContract"] = names[verifying_contract]

    def substitute(type_name: str, leaf: Any):
        if type_name == "address" and isinstance(leaf, str) and leaf in names:
            return names[leaf]
        return leaf

    return domain, encoder.visit(value, substitute)


def _render_leaf(type_name: str, leaf: Any) -> Any:
    if _BYTES_TYPE_RE.match(type_name):
        return to_hex(to_bytes(leaf))
    if _INT_TYPE_RE.match(type_name):
        return str(to_int(leaf))
    if type_name == "address":
        return leaf.lower() if isinstance(leaf, str) else to_hex(leaf)
    if type_name == "bool":
        return bool(leaf)
    if type_name == "string":
        if not isinstance(leaf, str):
            raise InvalidValueError("invalid string")
        return leaf
    raise InvalidValueError(f"unsupported type: {type_name}")


def get_payload(domain: TypedDataDomain, types: TypeSet, value: Any) -> Dict[str, Any]:
    """
    Returns the JSON-encodable payload expected by nodes implementing the
    eth_signTypedData_v4 JSON-RPC method.
    """
    hash_domain(domain)

    encoder = TypedDataEncoder(types)
    types_with_domain = encoder.types
    if "EIP712Domain" in types_with_domain:
        raise InvalidValueError("types must not contain EIP712Domain type")
    types_with_domain["EIP712Domain"] = [field.to_dict() for field in domain_fields(domain)]

    encoder.encode(value)

    return {
        "types": types_with_domain,
        "domain": render_domain(domain),
        "primaryType": encoder.primary_type,
        "message": encoder.visit(value, _render_leaf),
    }
