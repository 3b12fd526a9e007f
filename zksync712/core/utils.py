from hashlib import sha256
from typing import Union, Sequence

from eth_account.messages import encode_defunct
from eth_typing import HexStr, Address, ChecksumAddress
from eth_utils import (
    remove_0x_prefix,
    add_0x_prefix,
    is_0x_prefixed,
    is_hex_address as _is_hex_address,
    keccak,
)
from web3 import Web3

from zksync712.core.errors import BytecodeError

ADDRESS_MODULO = pow(2, 160)
L1_TO_L2_ALIAS_OFFSET = "0x1111000000000000000000000000000000001111"

ZERO_ADDRESS = HexStr("0x" + "0" * 40)
CONTRACT_DEPLOYER_ADDRESS = HexStr("0x0000000000000000000000000000000000008006")

EIP712_TX_TYPE = 0x71
DEFAULT_GAS_PER_PUBDATA_LIMIT = 50_000
MAX_PRIORITY_FEE_PER_GAS = 100_000_000
MAX_BYTECODE_LEN_BYTES = ((1 << 16) - 1) * 32


def int_to_bytes(x: int) -> bytes:
    return x.to_bytes((x.bit_length() + 7) // 8, byteorder="big")


def to_bytes(data: Union[bytes, bytearray, HexStr]) -> bytes:
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    if not isinstance(data, str):
        raise TypeError(f"Expected bytes or hex string, got {type(data).__name__}")
    data = remove_0x_prefix(HexStr(data))
    if len(data) % 2:
        data = "0" + data
    return bytes.fromhex(data)


def to_int(value: Union[int, str, bytes]) -> int:
    """Accepts ints, decimal strings, 0x-prefixed hex strings and big-endian bytes."""
    if isinstance(value, int):
        return int(value)
    if isinstance(value, (bytes, bytearray)):
        return int.from_bytes(value, byteorder="big")
    if isinstance(value, str):
        if is_0x_prefixed(value):
            digits = remove_0x_prefix(HexStr(value))
            return int(digits, 16) if digits else 0
        return int(value)
    raise TypeError(f"Cannot interpret {value!r} as an integer")


def to_hex(data: Union[bytes, int]) -> HexStr:
    if isinstance(data, int):
        return HexStr(Web3.to_hex(data))
    return HexStr("0x" + bytes(data).hex())


def concat(datas: Sequence[Union[bytes, HexStr]]) -> bytes:
    return b"".join(to_bytes(d) for d in datas)


def is_hex_address(value) -> bool:
    return isinstance(value, str) and _is_hex_address(value)


def encode_address(addr: Union[Address, ChecksumAddress, str, None]) -> bytes:
    if addr is None or len(addr) == 0:
        return bytes()
    if isinstance(addr, bytes):
        return addr
    return bytes.fromhex(remove_0x_prefix(HexStr(addr)))


def pad_front_bytes(bs: bytes, needed_length: int):
    if len(bs) > needed_length:
        raise ValueError("padding exceeds data length")
    padded = b"\0" * (needed_length - len(bs)) + bs
    return padded


def pad_back_bytes(bs: bytes, needed_length: int):
    if len(bs) > needed_length:
        raise ValueError("padding exceeds data length")
    return bs + b"\0" * (needed_length - len(bs))


def hash_byte_code(bytecode: Union[bytes, HexStr]) -> bytes:
    bytecode = to_bytes(bytecode)
    bytecode_len = len(bytecode)
    if bytecode_len % 32 != 0:
        raise BytecodeError("The bytecode length in bytes must be divisible by 32")
    if bytecode_len > MAX_BYTECODE_LEN_BYTES:
        raise BytecodeError(
            f"Bytecode can not be longer than {MAX_BYTECODE_LEN_BYTES} bytes"
        )
    bytecode_size = bytecode_len // 32
    if bytecode_size % 2 == 0:
        raise BytecodeError("Bytecode length in 32-byte words must be odd")
    bytecode_hash = sha256(bytecode).digest()
    encoded_len = bytecode_size.to_bytes(2, byteorder="big")
    return b"\x01\x00" + encoded_len + bytecode_hash[4:]


def hash_message(message: Union[str, bytes]) -> bytes:
    """EIP-191 personal message hash."""
    if isinstance(message, str):
        signable = encode_defunct(text=message)
    else:
        signable = encode_defunct(primitive=message)
    return keccak(b"\x19" + signable.version + signable.header + signable.body)


def apply_l1_to_l2_alias(address: HexStr):
    value = (int(L1_TO_L2_ALIAS_OFFSET, 16) + int(address, 16)) % ADDRESS_MODULO
    hex_result = remove_0x_prefix(Web3.to_hex(value))
    result = hex_result.rjust(40, "0")
    return add_0x_prefix(result)


def undo_l1_to_l2_alias(address: HexStr):
    result = int(address, 16) - int(L1_TO_L2_ALIAS_OFFSET, 16)
    if result < 0:
        result += ADDRESS_MODULO
    hex_result = remove_0x_prefix(Web3.to_hex(result))
    return add_0x_prefix(hex_result.rjust(40, "0"))


def create_address(sender: HexStr, sender_nonce: int) -> ChecksumAddress:
    prefix = keccak(text="zksyncCreate")
    data = (
        prefix
        + pad_front_bytes(to_bytes(sender), 32)
        + pad_front_bytes(int_to_bytes(sender_nonce), 32)
    )
    return Web3.to_checksum_address(keccak(data)[12:])


def create2_address(
    sender: HexStr,
    bytecode_hash: Union[bytes, HexStr],
    salt: Union[bytes, HexStr],
    input_: Union[bytes, HexStr] = b"",
) -> ChecksumAddress:
    prefix = keccak(text="zksyncCreate2")
    input_hash = keccak(to_bytes(input_))
    data = (
        prefix
        + pad_front_bytes(to_bytes(sender), 32)
        + to_bytes(salt)
        + to_bytes(bytecode_hash)
        + input_hash
    )
    return Web3.to_checksum_address(keccak(data)[12:])
