from unittest import TestCase

from eth_abi import decode as abi_decode
from eth_typing import HexStr
from web3 import Web3
from web3.types import Nonce

from tests.unit.test_config import LOCAL_ENV
from zksync712.core.errors import BytecodeError
from zksync712.core.types import AccountAbstractionVersion
from zksync712.core.utils import hash_byte_code, CONTRACT_DEPLOYER_ADDRESS, create2_address
from zksync712.manage_contracts.precompute_contract_deployer import PrecomputeContractDeployer
from zksync712.transaction.transaction_builders import (
    TxFunctionCall,
    TxCreateContract,
    TxCreate2Contract,
)

BYTECODE = b"\x01" * 96


class ContractDeployerTests(TestCase):

    def setUp(self) -> None:
        self.contract_deployer = PrecomputeContractDeployer()

    def test_compute_l2_create(self):
        expected = Web3.to_checksum_address("0x5107b7154dfc1d3b7f1c4e19b5087e1d3393bcf4")
        sender = HexStr("0x7e5f4552091a69125d5dfcb7b8c2659029395bdf")
        addr = self.contract_deployer.compute_l2_create_address(sender, Nonce(3))
        self.assertEqual(expected, addr)

    def test_compute_l2_create2(self):
        sender = HexStr("0xa909312acfc0ed4370b8bd20dfe41c8ff6595194")
        salt = b'\0' * 32
        addr = self.contract_deployer.compute_l2_create2_address(sender, BYTECODE, b'', salt)
        self.assertEqual(create2_address(sender, hash_byte_code(BYTECODE), salt), addr)
        with self.assertRaises(OverflowError):
            self.contract_deployer.compute_l2_create2_address(sender, BYTECODE, b'', b'\0' * 31)

    def test_encode_create(self):
        call_data = bytes.fromhex(self.contract_deployer.encode_create(BYTECODE, b"\x2a")[2:])
        self.assertEqual("9c4d535b", call_data[:4].hex())
        salt, bytecode_hash, ctor = abi_decode(["bytes32", "bytes32", "bytes"], call_data[4:])
        self.assertEqual(b"\0" * 32, salt)
        self.assertEqual(hash_byte_code(BYTECODE), bytecode_hash)
        self.assertEqual(b"\x2a", ctor)

    def test_encode_create2(self):
        salt = b"\x07" * 32
        call_data = bytes.fromhex(self.contract_deployer.encode_create2(BYTECODE, salt=salt)[2:])
        self.assertEqual("3cda3351", call_data[:4].hex())
        decoded = abi_decode(["bytes32", "bytes32", "bytes"], call_data[4:])
        self.assertEqual((salt, hash_byte_code(BYTECODE), b""), decoded)
        with self.assertRaises(OverflowError):
            self.contract_deployer.encode_create2(BYTECODE, salt=b"\x07")

    def test_encode_account_deployments(self):
        for encoded, fn_name in (
            (self.contract_deployer.encode_create_account(BYTECODE), "createAccount"),
            (self.contract_deployer.encode_create2_account(BYTECODE), "create2Account"),
        ):
            with self.subTest(fn=fn_name):
                call_data = bytes.fromhex(encoded[2:])
                self.assertEqual(
                    self.contract_deployer.contract_encoder.selector(fn_name), call_data[:4]
                )
                decoded = abi_decode(["bytes32", "bytes32", "bytes", "uint8"], call_data[4:])
                self.assertEqual(AccountAbstractionVersion.VERSION_1.value, decoded[3])

    def test_invalid_bytecode(self):
        with self.assertRaises(BytecodeError):
            self.contract_deployer.encode_create(b"\x01" * 64)


class TransactionBuildersTests(TestCase):

    def test_function_call(self):
        tx = TxFunctionCall(from_=LOCAL_ENV.address_1,
                            to=LOCAL_ENV.address_2,
                            value=1_000_000,
                            chain_id=LOCAL_ENV.chain_id,
                            nonce=3,
                            gas_price=250_000_000)
        tx712 = tx.tx712(estimated_gas=21_000)
        self.assertEqual(21_000, tx712.gas_limit)
        self.assertEqual(250_000_000, tx712.max_fee_per_gas)
        self.assertEqual(100_000_000, tx712.max_priority_fee_per_gas)
        self.assertEqual(3, tx712.nonce)
        self.assertEqual(50_000, tx712.gas_per_pub_data)
        self.assertEqual(0x71, tx712.encode()[0])

    def test_create_contract(self):
        tx = TxCreateContract(chain_id=LOCAL_ENV.chain_id,
                              nonce=0,
                              from_=LOCAL_ENV.address_1,
                              bytecode=BYTECODE,
                              gas_price=250_000_000,
                              deps=[b"\x02" * 32])
        tx712 = tx.tx712(9_910_372)
        self.assertEqual(Web3.to_checksum_address(CONTRACT_DEPLOYER_ADDRESS), tx712.to)
        self.assertEqual("0x9c4d535b", tx712.data[:10])
        self.assertEqual([b"\x02" * 32, BYTECODE], tx712.meta.factory_deps)
        self.assertEqual(
            [hash_byte_code(b"\x02" * 32), hash_byte_code(BYTECODE)],
            tx712.to_sign_input()["factoryDeps"],
        )

    def test_create2_contract(self):
        tx = TxCreate2Contract(chain_id=LOCAL_ENV.chain_id,
                               nonce=0,
                               from_=LOCAL_ENV.address_1,
                               gas_limit=0,
                               gas_price=250_000_000,
                               bytecode=BYTECODE,
                               salt=b"\x01" * 32)
        tx712 = tx.tx712()
        self.assertEqual(0, tx712.gas_limit)
        self.assertEqual("0x3cda3351", tx712.data[:10])
        self.assertEqual([BYTECODE], tx712.meta.factory_deps)
