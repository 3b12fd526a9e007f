from dataclasses import dataclass
from typing import Any, Mapping, Tuple, Union

from eth_typing import HexStr

from zksync712.core.errors import SignatureError
from zksync712.core.types import EthereumSignature
from zksync712.core.utils import to_bytes, to_int, pad_front_bytes


@dataclass(frozen=True)
class SignatureObject:
    """Recoverable ECDSA signature with v normalized to 27 or 28."""

    r: bytes
    s: bytes
    v: int

    def __post_init__(self):
        r, s = to_bytes(self.r), to_bytes(self.s)
        if len(r) > 32 or len(s) > 32:
            raise SignatureError("r and s must fit in 32 bytes")
        object.__setattr__(self, "r", pad_front_bytes(r, 32))
        object.__setattr__(self, "s", pad_front_bytes(s, 32))
        object.__setattr__(self, "v", self.get_normalized_v(to_int(self.v)))

    @staticmethod
    def get_normalized_v(v: int) -> int:
        if v in (0, 27):
            return 27
        if v in (1, 28):
            return 28
        # EIP-155 v: odd is 27, even is 28
        return 27 if v & 1 else 28

    @classmethod
    def from_bytes(cls, signature: Union[bytes, HexStr]) -> "SignatureObject":
        data = to_bytes(signature)
        if len(data) == 64:
            r, s = data[:32], bytearray(data[32:64])
            v = 28 if s[0] & 0x80 else 27
            s[0] &= 0x7F
            return cls(r=r, s=bytes(s), v=v)
        if len(data) == 65:
            return cls(r=data[:32], s=data[32:64], v=data[64])
        raise SignatureError("Invalid signature length")

    @classmethod
    def from_signature(cls, signature: Any) -> "SignatureObject":
        """
        Builds a signature from a 64/65-byte blob (bytes or hex), a mapping
        with r, s and v, or any object exposing r, s and v attributes
        (eth_account's SignedMessage included).
        """
        if isinstance(signature, SignatureObject):
            return signature
        if isinstance(signature, (str, bytes, bytearray)):
            return cls.from_bytes(signature)
        if isinstance(signature, Mapping):
            try:
                r, s, v = signature["r"], signature["s"], signature["v"]
            except KeyError as e:
                raise SignatureError(f"signature is missing {e.args[0]!r}") from e
        elif all(hasattr(signature, attr) for attr in ("r", "s", "v")):
            r, s, v = signature.r, signature.s, signature.v
        else:
            raise SignatureError(f"unsupported signature value {signature!r}")
        if isinstance(r, int):
            r = r.to_bytes(32, byteorder="big")
        if isinstance(s, int):
            s = s.to_bytes(32, byteorder="big")
        return cls(r=r, s=s, v=v)

    @property
    def y_parity(self) -> int:
        return 0 if self.v == 27 else 1

    @property
    def serialized(self) -> HexStr:
        return HexStr("0x" + (self.r + self.s + bytes([self.v])).hex())

    def to_bytes(self) -> bytes:
        return self.r + self.s + bytes([self.v])

    def to_rsv(self) -> Tuple[int, int, int]:
        return int.from_bytes(self.r, "big"), int.from_bytes(self.s, "big"), self.v

    def to_dict(self) -> EthereumSignature:
        return {"r": HexStr("0x" + self.r.hex()), "s": HexStr("0x" + self.s.hex()), "v": self.v}

    def __str__(self) -> str:
        return "0x" + self.r.hex() + self.s.hex() + hex(self.v)[2:]
