from eth_typing import HexStr

from zksync712.core.types import (
    PaymasterParams,
    PaymasterInput,
    GeneralPaymasterInput,
)
from zksync712.core.utils import to_bytes
from zksync712.manage_contracts.contract_encoder_base import BaseContractEncoder

PAYMASTER_FLOW_ABI = [
    {
        "type": "function",
        "name": "approvalBased",
        "inputs": [
            {"name": "_token", "type": "address"},
            {"name": "_minAllowance", "type": "uint256"},
            {"name": "_innerInput", "type": "bytes"},
        ],
        "outputs": [],
        "stateMutability": "nonpayable",
    },
    {
        "type": "function",
        "name": "general",
        "inputs": [{"name": "input", "type": "bytes"}],
        "outputs": [],
        "stateMutability": "nonpayable",
    },
]


class PaymasterFlowEncoder(BaseContractEncoder):

    def __init__(self):
        super(PaymasterFlowEncoder, self).__init__(abi=PAYMASTER_FLOW_ABI)

    def encode_approval_based(self, address: HexStr, min_allowance: int, inner_input: bytes) -> HexStr:
        return self.encode_method(fn_name="approvalBased", args=(address, min_allowance, to_bytes(inner_input)))

    def encode_general(self, inputs: bytes) -> HexStr:
        return self.encode_method(fn_name="general", args=tuple([to_bytes(inputs)]))


def get_paymaster_params(paymaster_address: HexStr, paymaster_input: PaymasterInput) -> PaymasterParams:
    encoder = PaymasterFlowEncoder()
    if isinstance(paymaster_input, GeneralPaymasterInput):
        encoded = encoder.encode_general(paymaster_input.inner_input)
    else:
        encoded = encoder.encode_approval_based(
            paymaster_input.token,
            paymaster_input.minimal_allowance,
            paymaster_input.inner_input,
        )
    return PaymasterParams(paymaster=paymaster_address, paymaster_input=to_bytes(encoded))
