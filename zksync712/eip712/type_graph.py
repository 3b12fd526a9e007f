from typing import Dict, List, Set

from zksync712.core.errors import (
    DuplicateFieldError,
    CircularTypeError,
    UnknownTypeError,
    PrimaryTypeError,
)
from zksync712.core.types import TypedDataField, TypeSet, TypedDataFieldLike
from zksync712.eip712.types import split_array, parse_base_type


def _as_field(field: TypedDataFieldLike) -> TypedDataField:
    if isinstance(field, TypedDataField):
        return field
    return TypedDataField(name=field["name"], type=field["type"])


def encode_type(name: str, fields: List[TypedDataField]) -> str:
    return f"{name}({','.join(f'{field.type} {field.name}' for field in fields)})"


class TypeGraph:
    """
    Struct reference graph of an EIP-712 type set.

    Struct names are interned to indices; ``children[i]`` lists the structs
    referenced by struct ``i`` and ``parents[i]`` the structs referencing it.
    Construction validates the graph and derives the primary type together
    with the fully expanded type string of every struct.
    """

    def __init__(self, types: TypeSet):
        self.names: List[str] = list(types.keys())
        self.index: Dict[str, int] = {name: i for i, name in enumerate(self.names)}
        self.fields: List[List[TypedDataField]] = [
            self._normalize(types, types[name]) for name in self.names
        ]
        self.children: List[List[int]] = [[] for _ in self.names]
        self.parents: List[List[int]] = [[] for _ in self.names]
        self.subtypes: List[Set[int]] = [set() for _ in self.names]

        self._link()
        self.primary_index = self._find_primary()
        visited: Set[int] = set()
        self._check_circular(self.primary_index, [], set(), visited)
        unreached = [self.names[i] for i in range(len(self.names)) if i not in visited]
        if unreached:
            raise CircularTypeError(
                f"circular type reference among {', '.join(repr(n) for n in unreached)}"
            )

        self.full_types: List[str] = []
        for i, name in enumerate(self.names):
            deps = sorted(self.names[j] for j in self.subtypes[i])
            self.full_types.append(
                encode_type(name, self.fields[i])
                + "".join(encode_type(dep, self.fields[self.index[dep]]) for dep in deps)
            )

    @staticmethod
    def _normalize(types: TypeSet, fields) -> List[TypedDataField]:
        result = []
        for field in map(_as_field, fields):
            split = split_array(field.type)
            base = split.base
            if base == "int" and "int" not in types:
                base = "int256"
            if base == "uint" and "uint" not in types:
                base = "uint256"
            result.append(TypedDataField(name=field.name, type=base + split.index))
        return result

    def _link(self):
        for i, name in enumerate(self.names):
            unique_names = set()
            for field in self.fields[i]:
                if field.name in unique_names:
                    raise DuplicateFieldError(
                        f"duplicate variable name {field.name!r} in {name!r}"
                    )
                unique_names.add(field.name)

                base_type = split_array(field.type).base
                if base_type == name:
                    raise CircularTypeError(f"circular type reference to {base_type!r}")

                if parse_base_type(base_type) is not None:
                    continue

                child = self.index.get(base_type)
                if child is None:
                    raise UnknownTypeError(f"unknown type {base_type!r}")

                self.parents[child].append(i)
                if child not in self.children[i]:
                    self.children[i].append(child)

    def _find_primary(self) -> int:
        roots = [i for i, parents in enumerate(self.parents) if not parents]
        if not roots:
            raise PrimaryTypeError("missing primary type")
        if len(roots) != 1:
            raise PrimaryTypeError(
                "ambiguous primary types or unused types: "
                + ", ".join(repr(self.names[i]) for i in roots)
            )
        return roots[0]

    def _check_circular(self, node: int, path: List[int], on_path: Set[int], visited: Set[int]):
        if node in on_path:
            raise CircularTypeError(f"circular type reference to {self.names[node]!r}")

        visited.add(node)
        path.append(node)
        on_path.add(node)
        for child in self.children[node]:
            self._check_circular(child, path, on_path, visited)
            for ancestor in path:
                self.subtypes[ancestor].add(child)
        path.pop()
        on_path.discard(node)

    @property
    def primary_type(self) -> str:
        return self.names[self.primary_index]

    def is_struct(self, name: str) -> bool:
        return name in self.index

    def struct_fields(self, name: str) -> List[TypedDataField]:
        return self.fields[self.index[name]]

    def full_type(self, name: str) -> str:
        return self.full_types[self.index[name]]
