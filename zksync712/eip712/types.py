import re
from dataclasses import dataclass
from typing import Any, Callable, Optional, NamedTuple

from eth_abi import encode as abi_encode
from eth_utils import is_address, to_canonical_address, keccak

from zksync712.core.errors import (
    InvalidTypeError,
    InvalidValueError,
    ValueOutOfBoundsError,
    ArrayLengthError,
)
from zksync712.core.utils import to_int, to_bytes

_INTEGER_RE = re.compile(r"^(u?)int(\d+)$")
_BYTES_RE = re.compile(r"^bytes(\d+)$")
_ARRAY_RE = re.compile(r"^([^\[]*)((?:\[\d*\])*)(\[(\d*)\])$")

Visitor = Callable[[str, Any], Any]


class ArraySplit(NamedTuple):
    """foo[][3] -> base "foo", index "[][3]", prefix "foo[]", count 3 (-1 when dynamic)."""
    base: str
    index: str = ""
    prefix: Optional[str] = None
    count: Optional[int] = None

    @property
    def is_array(self) -> bool:
        return self.prefix is not None


def split_array(type_name: str) -> ArraySplit:
    match = _ARRAY_RE.match(type_name)
    if match is None:
        return ArraySplit(base=type_name)
    base, inner, last, count = match.groups()
    return ArraySplit(
        base=base,
        index=inner + last,
        prefix=base + inner,
        count=int(count) if count else -1,
    )


class EncoderType:
    name: str

    def encode(self, value: Any, encoder) -> bytes:
        raise NotImplementedError

    def visit(self, value: Any, encoder, callback: Visitor) -> Any:
        return callback(self.name, value)


@dataclass(frozen=True)
class IntegerType(EncoderType):
    name: str
    width: int
    signed: bool

    @property
    def bounds(self):
        if self.signed:
            upper = (1 << (self.width - 1)) - 1
            return -(upper + 1), upper
        return 0, (1 << self.width) - 1

    def encode(self, value: Any, encoder=None) -> bytes:
        try:
            number = to_int(value)
        except (TypeError, ValueError) as e:
            raise InvalidValueError(f"invalid numeric value {value!r} for {self.name}") from e
        lower, upper = self.bounds
        if not lower <= number <= upper:
            raise ValueOutOfBoundsError(f"value out-of-bounds for {self.name}")
        return abi_encode([self.name], [number])


@dataclass(frozen=True)
class FixedBytesType(EncoderType):
    name: str
    width: int

    def encode(self, value: Any, encoder=None) -> bytes:
        try:
            data = to_bytes(value)
        except (TypeError, ValueError) as e:
            raise InvalidValueError(f"invalid bytes value {value!r} for {self.name}") from e
        if len(data) != self.width:
            raise InvalidValueError(f"invalid length for {self.name}")
        return abi_encode([self.name], [data])


@dataclass(frozen=True)
class AddressType(EncoderType):
    name: str = "address"

    def encode(self, value: Any, encoder=None) -> bytes:
        if not is_address(value):
            raise InvalidValueError(f"Invalid address {value!r}")
        return abi_encode(["address"], [to_canonical_address(value)])


@dataclass(frozen=True)
class BoolType(EncoderType):
    name: str = "bool"

    def encode(self, value: Any, encoder=None) -> bytes:
        return abi_encode(["bool"], [bool(value)])


@dataclass(frozen=True)
class DynamicBytesType(EncoderType):
    name: str = "bytes"

    def encode(self, value: Any, encoder=None) -> bytes:
        try:
            return keccak(to_bytes(value))
        except (TypeError, ValueError) as e:
            raise InvalidValueError(f"invalid bytes value {value!r}") from e


@dataclass(frozen=True)
class StringType(EncoderType):
    name: str = "string"

    def encode(self, value: Any, encoder=None) -> bytes:
        if not isinstance(value, str):
            raise InvalidValueError(f"invalid string value {value!r}")
        return keccak(text=value)


@dataclass(frozen=True)
class ArrayType(EncoderType):
    name: str
    element: str
    count: int

    def _check_length(self, value: Any):
        if isinstance(value, (str, bytes)) or not hasattr(value, "__len__"):
            raise InvalidValueError(f"expected a sequence for {self.name}")
        if self.count != -1 and self.count != len(value):
            raise ArrayLengthError(f"array length mismatch; expected length {self.count}")

    def encode(self, value: Any, encoder) -> bytes:
        self._check_length(value)
        element_type = encoder.get_encoder(self.element)
        result = [element_type.encode(item, encoder) for item in value]
        if encoder.is_struct(self.element):
            result = [keccak(item) for item in result]
        return keccak(b"".join(result))

    def visit(self, value: Any, encoder, callback: Visitor) -> Any:
        self._check_length(value)
        element_type = encoder.get_encoder(self.element)
        return [element_type.visit(item, encoder, callback) for item in value]


@dataclass(frozen=True)
class StructType(EncoderType):
    name: str

    @staticmethod
    def _field_value(value: Any, field_name: str) -> Any:
        try:
            return value[field_name]
        except (KeyError, TypeError) as e:
            raise InvalidValueError(f"missing value for field {field_name!r}") from e

    def encode(self, value: Any, encoder) -> bytes:
        values = [encoder.type_hash(self.name)]
        for field in encoder.fields(self.name):
            result = encoder.encode_data(field.type, self._field_value(value, field.name))
            if encoder.is_struct(field.type):
                result = keccak(result)
            values.append(result)
        return b"".join(values)

    def visit(self, value: Any, encoder, callback: Visitor) -> Any:
        return {
            field.name: encoder.get_encoder(field.type).visit(
                self._field_value(value, field.name), encoder, callback
            )
            for field in encoder.fields(self.name)
        }


def parse_base_type(type_name: str) -> Optional[EncoderType]:
    """Returns the atomic type for type_name, or None when it is not a base type."""
    match = _INTEGER_RE.match(type_name)
    if match:
        width = int(match.group(2))
        if not (width % 8 == 0 and 0 < width <= 256 and match.group(2) == str(width)):
            raise InvalidTypeError(f"invalid numeric width in {type_name!r}")
        return IntegerType(name=type_name, width=width, signed=match.group(1) == "")

    match = _BYTES_RE.match(type_name)
    if match:
        width = int(match.group(1))
        if not (0 < width <= 32 and match.group(1) == str(width)):
            raise InvalidTypeError(f"invalid bytes width in {type_name!r}")
        return FixedBytesType(name=type_name, width=width)

    if type_name == "address":
        return AddressType()
    if type_name == "bool":
        return BoolType()
    if type_name == "bytes":
        return DynamicBytesType()
    if type_name == "string":
        return StringType()
    return None
