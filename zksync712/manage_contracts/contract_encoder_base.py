from typing import Any, Dict, List, Sequence

from eth_abi import encode as abi_encode
from eth_typing import HexStr
from eth_utils import function_signature_to_4byte_selector
from eth_utils.abi import collapse_if_tuple


class BaseContractEncoder:
    """Calldata encoder for the functions of a JSON ABI, without a provider.
    Tuple inputs are collapsed into their canonical ``(t1,t2,...)`` form."""

    def __init__(self, abi: List[Dict[str, Any]]):
        self.abi = abi
        self._functions = {
            entry["name"]: entry for entry in abi if entry.get("type") == "function"
        }

    def _input_types(self, fn_name: str) -> List[str]:
        try:
            entry = self._functions[fn_name]
        except KeyError:
            raise ValueError(f"Function {fn_name!r} is not part of the ABI") from None
        return [collapse_if_tuple(item) for item in entry["inputs"]]

    def selector(self, fn_name: str) -> bytes:
        signature = f"{fn_name}({','.join(self._input_types(fn_name))})"
        return function_signature_to_4byte_selector(signature)

    def encode_method(self, fn_name: str, args: Sequence[Any]) -> HexStr:
        types = self._input_types(fn_name)
        if len(types) != len(args):
            raise ValueError(
                f"Function {fn_name!r} expects {len(types)} arguments, got {len(args)}"
            )
        encoded = self.selector(fn_name) + abi_encode(types, list(args))
        return HexStr("0x" + encoded.hex())
