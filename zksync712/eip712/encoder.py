from typing import Any, Dict, List

from eth_utils import keccak

from zksync712.core.errors import UnknownTypeError
from zksync712.core.types import TypeSet, TypedDataField
from zksync712.eip712.type_graph import TypeGraph
from zksync712.eip712.types import (
    EncoderType,
    ArrayType,
    StructType,
    Visitor,
    parse_base_type,
    split_array,
)


class TypedDataEncoder:
    """
    EIP-712 encoder for a set of struct declarations.

    The primary type is derived from the declarations: once the reference
    graph is known to be acyclic, it is the single struct nothing else
    references. Encoders are resolved once per type string and memoized;
    the cache only grows, so one instance can be reused for any number of
    values from a single thread.
    """

    def __init__(self, types: TypeSet):
        self._graph = TypeGraph(types)
        self._encoder_index: Dict[str, int] = {}
        self._encoders: List[EncoderType] = []

    @classmethod
    def from_types(cls, types: TypeSet) -> "TypedDataEncoder":
        return cls(types)

    @staticmethod
    def get_primary_type(types: TypeSet) -> str:
        return TypedDataEncoder(types).primary_type

    @staticmethod
    def hash_struct_for(name: str, types: TypeSet, value: Any) -> bytes:
        return TypedDataEncoder(types).hash_struct(name, value)

    @property
    def primary_type(self) -> str:
        return self._graph.primary_type

    @property
    def types(self) -> Dict[str, List[Dict[str, str]]]:
        """Normalized declarations, with int/uint expanded to their 256-bit forms."""
        return {
            name: [field.to_dict() for field in fields]
            for name, fields in zip(self._graph.names, self._graph.fields)
        }

    def is_struct(self, type_name: str) -> bool:
        return self._graph.is_struct(type_name)

    def fields(self, name: str) -> List[TypedDataField]:
        return self._graph.struct_fields(name)

    def get_encoder(self, type_name: str) -> EncoderType:
        index = self._encoder_index.get(type_name)
        if index is None:
            self._encoders.append(self._resolve(type_name))
            index = len(self._encoders) - 1
            self._encoder_index[type_name] = index
        return self._encoders[index]

    def _resolve(self, type_name: str) -> EncoderType:
        base = parse_base_type(type_name)
        if base is not None:
            return base

        split = split_array(type_name)
        if split.is_array:
            # resolve eagerly so unknown element types fail before any value is seen
            self.get_encoder(split.prefix)
            return ArrayType(name=type_name, element=split.prefix, count=split.count)

        if self.is_struct(type_name):
            return StructType(name=type_name)

        raise UnknownTypeError(f"unknown type: {type_name!r}")

    def encode_type(self, name: str) -> str:
        if not self.is_struct(name):
            raise UnknownTypeError(f"unknown type: {name!r}")
        return self._graph.full_type(name)

    def type_hash(self, name: str) -> bytes:
        return keccak(text=self.encode_type(name))

    def encode_data(self, type_name: str, value: Any) -> bytes:
        return self.get_encoder(type_name).encode(value, self)

    def hash_struct(self, name: str, value: Any) -> bytes:
        return keccak(self.encode_data(name, value))

    def encode(self, value: Any) -> bytes:
        return self.encode_data(self.primary_type, value)

    def hash(self, value: Any) -> bytes:
        return self.hash_struct(self.primary_type, value)

    def visit(self, value: Any, callback: Visitor) -> Any:
        """
        Calls callback(type, leaf) for every base-typed leaf of value and
        returns a copy of value with each leaf replaced by the callback result.
        """
        return self.get_encoder(self.primary_type).visit(value, self, callback)
