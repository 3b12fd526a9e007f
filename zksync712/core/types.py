from dataclasses import dataclass
from enum import Enum
from typing import Union, List, Optional, Mapping, Sequence, Dict, TypedDict

from eth_typing import HexStr

from zksync712.core.utils import DEFAULT_GAS_PER_PUBDATA_LIMIT


@dataclass(frozen=True)
class TypedDataField:
    name: str
    type: str

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "type": self.type}


TypedDataFieldLike = Union[TypedDataField, Mapping[str, str]]
TypeSet = Mapping[str, Sequence[TypedDataFieldLike]]


TypedDataDomain = TypedDict("TypedDataDomain", {
    "name": Optional[str],
    "version": Optional[str],
    "chainId": Optional[int],
    "verifyingContract": Optional[str],
    "salt": Optional[Union[bytes, HexStr]],
}, total=False)


EthereumSignature = TypedDict("EthereumSignature", {
    "r": Union[bytes, HexStr],
    "s": Union[bytes, HexStr],
    "v": int,
})


@dataclass
class PaymasterParams:
    paymaster: HexStr
    paymaster_input: bytes


@dataclass
class ApprovalBasedPaymasterInput:
    token: HexStr
    minimal_allowance: int
    inner_input: bytes = b""


@dataclass
class GeneralPaymasterInput:
    inner_input: bytes = b""


PaymasterInput = Union[ApprovalBasedPaymasterInput, GeneralPaymasterInput]


@dataclass
class EIP712Meta:
    GAS_PER_PUB_DATA_DEFAULT = DEFAULT_GAS_PER_PUBDATA_LIMIT

    gas_per_pub_data: int = GAS_PER_PUB_DATA_DEFAULT
    custom_signature: Optional[bytes] = None
    factory_deps: Optional[List[bytes]] = None
    paymaster_params: Optional[PaymasterParams] = None


class AccountAbstractionVersion(Enum):
    NONE = 0
    VERSION_1 = 1
