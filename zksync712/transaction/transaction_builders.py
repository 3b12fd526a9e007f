from abc import ABC
from typing import Optional, List, Dict, Any

from eth_typing import HexStr
from web3 import Web3
from web3.types import Nonce

from zksync712.core.types import EIP712Meta
from zksync712.core.utils import (
    MAX_PRIORITY_FEE_PER_GAS,
    CONTRACT_DEPLOYER_ADDRESS,
    EIP712_TX_TYPE,
)
from zksync712.manage_contracts.precompute_contract_deployer import (
    PrecomputeContractDeployer,
)
from zksync712.transaction.transaction712 import Transaction712


class TxBase(ABC):
    def __init__(self, trans: Dict[str, Any]):
        self.tx_ = trans

    @property
    def tx(self) -> Dict[str, Any]:
        return self.tx_

    def tx712(self, estimated_gas: Optional[int] = None) -> Transaction712:
        return Transaction712(
            chain_id=self.tx["chain_id"],
            nonce=Nonce(self.tx["nonce"]),
            gas_limit=estimated_gas if estimated_gas is not None else self.tx["gas"],
            to=self.tx["to"],
            value=self.tx["value"],
            data=self.tx["data"],
            maxPriorityFeePerGas=self.tx["maxPriorityFeePerGas"],
            maxFeePerGas=self.tx["gasPrice"],
            from_=self.tx["from"],
            meta=self.tx["eip712Meta"],
        )


def _deploy_factory_deps(bytecode: bytes, deps: Optional[List[bytes]]) -> List[bytes]:
    factory_deps = []
    if deps is not None:
        for dep in deps:
            factory_deps.append(dep)
    factory_deps.append(bytecode)
    return factory_deps


class TxFunctionCall(TxBase, ABC):
    def __init__(
        self,
        from_: HexStr,
        to: HexStr,
        value: int = 0,
        chain_id: int = None,
        nonce: int = None,
        data: HexStr = HexStr("0x"),
        gas_limit: int = 0,
        gas_price: int = 0,
        max_priority_fee_per_gas: int = MAX_PRIORITY_FEE_PER_GAS,
        paymaster_params=None,
        custom_signature=None,
        gas_per_pub_data: int = EIP712Meta.GAS_PER_PUB_DATA_DEFAULT,
    ):
        eip712_meta = EIP712Meta(
            gas_per_pub_data=gas_per_pub_data,
            custom_signature=custom_signature,
            factory_deps=None,
            paymaster_params=paymaster_params,
        )

        super(TxFunctionCall, self).__init__(
            trans={
                "chain_id": chain_id,
                "nonce": nonce,
                "from": from_,
                "to": to,
                "gas": gas_limit,
                "gasPrice": gas_price,
                "maxPriorityFeePerGas": max_priority_fee_per_gas,
                "value": value,
                "data": data,
                "transactionType": EIP712_TX_TYPE,
                "eip712Meta": eip712_meta,
            }
        )


class TxCreateContract(TxBase, ABC):
    def __init__(
        self,
        chain_id: int,
        nonce: int,
        from_: HexStr,
        bytecode: bytes,
        gas_price: int,
        gas_limit: int = 0,
        deps: List[bytes] = None,
        call_data: Optional[bytes] = None,
        value: int = 0,
        max_priority_fee_per_gas=MAX_PRIORITY_FEE_PER_GAS,
    ):
        contract_deployer = PrecomputeContractDeployer()
        generated_call_data = contract_deployer.encode_create(
            bytecode=bytecode, call_data=call_data
        )
        eip712_meta = EIP712Meta(
            gas_per_pub_data=EIP712Meta.GAS_PER_PUB_DATA_DEFAULT,
            custom_signature=None,
            factory_deps=_deploy_factory_deps(bytecode, deps),
            paymaster_params=None,
        )

        super(TxCreateContract, self).__init__(
            trans={
                "chain_id": chain_id,
                "nonce": nonce,
                "from": from_,
                "to": Web3.to_checksum_address(CONTRACT_DEPLOYER_ADDRESS),
                "gas": gas_limit,
                "gasPrice": gas_price,
                "maxPriorityFeePerGas": max_priority_fee_per_gas,
                "value": value,
                "data": HexStr(generated_call_data),
                "transactionType": EIP712_TX_TYPE,
                "eip712Meta": eip712_meta,
            }
        )


class TxCreate2Contract(TxBase, ABC):
    def __init__(
        self,
        chain_id: int,
        nonce: int,
        from_: HexStr,
        gas_limit: int,
        gas_price: int,
        bytecode: bytes,
        deps: List[bytes] = None,
        call_data: Optional[bytes] = None,
        value: int = 0,
        max_priority_fee_per_gas=MAX_PRIORITY_FEE_PER_GAS,
        salt: Optional[bytes] = None,
    ):
        contract_deployer = PrecomputeContractDeployer()
        generated_call_data = contract_deployer.encode_create2(
            bytecode=bytecode, call_data=call_data, salt=salt
        )
        eip712_meta = EIP712Meta(
            gas_per_pub_data=EIP712Meta.GAS_PER_PUB_DATA_DEFAULT,
            custom_signature=None,
            factory_deps=_deploy_factory_deps(bytecode, deps),
            paymaster_params=None,
        )

        super(TxCreate2Contract, self).__init__(
            trans={
                "chain_id": chain_id,
                "nonce": nonce,
                "from": from_,
                "to": Web3.to_checksum_address(CONTRACT_DEPLOYER_ADDRESS),
                "gas": gas_limit,
                "gasPrice": gas_price,
                "maxPriorityFeePerGas": max_priority_fee_per_gas,
                "value": value,
                "data": HexStr(generated_call_data),
                "transactionType": EIP712_TX_TYPE,
                "eip712Meta": eip712_meta,
            }
        )
