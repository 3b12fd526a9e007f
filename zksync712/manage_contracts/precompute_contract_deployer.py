from typing import Optional

from eth_typing import HexStr
from web3.types import Nonce

from zksync712.core.types import AccountAbstractionVersion
from zksync712.core.utils import (
    hash_byte_code,
    create_address,
    create2_address,
)
from zksync712.manage_contracts.contract_encoder_base import BaseContractEncoder


def _deploy_fn(name: str, with_aa_version: bool = False) -> dict:
    inputs = [
        {"name": "_salt", "type": "bytes32"},
        {"name": "_bytecodeHash", "type": "bytes32"},
        {"name": "_input", "type": "bytes"},
    ]
    if with_aa_version:
        inputs.append({"name": "_aaVersion", "type": "uint8"})
    return {
        "type": "function",
        "name": name,
        "inputs": inputs,
        "outputs": [{"name": "", "type": "address"}],
        "stateMutability": "payable",
    }


CONTRACT_DEPLOYER_ABI = [
    _deploy_fn("create"),
    _deploy_fn("create2"),
    _deploy_fn("createAccount", with_aa_version=True),
    _deploy_fn("create2Account", with_aa_version=True),
]


class PrecomputeContractDeployer:
    DEFAULT_SALT = b'\0' * 32
    CREATE_FUNC = "create"
    CREATE2_FUNC = "create2"
    CREATE_ACCOUNT_FUNC = "createAccount"
    CREATE2_ACCOUNT_FUNC = "create2Account"
    EMPTY_BYTES = b''

    def __init__(self, abi: Optional[list] = None):
        if abi is None:
            abi = CONTRACT_DEPLOYER_ABI
        self.contract_encoder = BaseContractEncoder(abi)

    def _salt(self, salt: Optional[bytes]) -> bytes:
        if salt is None:
            return self.DEFAULT_SALT
        if len(salt) != 32:
            raise OverflowError("Salt data must be 32 length")
        return salt

    def encode_create(self, bytecode: bytes, call_data: Optional[bytes] = None) -> HexStr:
        if call_data is None:
            call_data = self.EMPTY_BYTES
        args = self.DEFAULT_SALT, hash_byte_code(bytecode), call_data
        return self.contract_encoder.encode_method(fn_name=self.CREATE_FUNC, args=args)

    def encode_create2(self, bytecode: bytes,
                       call_data: Optional[bytes] = None,
                       salt: Optional[bytes] = None) -> HexStr:
        if call_data is None:
            call_data = self.EMPTY_BYTES
        args = self._salt(salt), hash_byte_code(bytecode), call_data
        return self.contract_encoder.encode_method(fn_name=self.CREATE2_FUNC, args=args)

    def encode_create_account(self, bytecode: bytes,
                              call_data: Optional[bytes] = None,
                              version: AccountAbstractionVersion = AccountAbstractionVersion.VERSION_1
                              ) -> HexStr:
        if call_data is None:
            call_data = self.EMPTY_BYTES
        args = self.DEFAULT_SALT, hash_byte_code(bytecode), call_data, version.value
        return self.contract_encoder.encode_method(fn_name=self.CREATE_ACCOUNT_FUNC, args=args)

    def encode_create2_account(self, bytecode: bytes,
                               call_data: Optional[bytes] = None,
                               salt: Optional[bytes] = None,
                               version: AccountAbstractionVersion = AccountAbstractionVersion.VERSION_1
                               ) -> HexStr:
        if call_data is None:
            call_data = self.EMPTY_BYTES
        args = self._salt(salt), hash_byte_code(bytecode), call_data, version.value
        return self.contract_encoder.encode_method(fn_name=self.CREATE2_ACCOUNT_FUNC, args=args)

    def compute_l2_create_address(self, sender: HexStr, nonce: Nonce) -> HexStr:
        return HexStr(create_address(sender, nonce))

    def compute_l2_create2_address(self,
                                   sender: HexStr,
                                   bytecode: bytes,
                                   constructor: bytes,
                                   salt: bytes) -> HexStr:
        if len(salt) != 32:
            raise OverflowError("Salt data must be 32 length")
        return HexStr(create2_address(sender, hash_byte_code(bytecode), salt, constructor))
