import copy
import logging
from dataclasses import dataclass, field
from typing import Union, Optional, Any, Dict, List, Mapping

import rlp
from eth_typing import ChecksumAddress, HexStr
from eth_utils import keccak
from rlp.exceptions import DecodingError, DeserializationError
from rlp.sedes import BigEndianInt, Binary, CountableList, binary
from rlp.sedes import List as rlpList
from web3 import Web3
from web3.types import Nonce

from zksync712.core.errors import (
    MissingFieldError,
    EmptySignatureError,
    InvalidPaymasterParamsError,
    SignatureParseError,
    SignatureError,
    TransactionError,
)
from zksync712.core.types import EIP712Meta, PaymasterParams
from zksync712.core.utils import (
    to_bytes,
    to_hex,
    to_int,
    hash_byte_code,
    encode_address,
    int_to_bytes,
    EIP712_TX_TYPE,
    ZERO_ADDRESS,
)
from zksync712.eip712.encoder import TypedDataEncoder
from zksync712.eip712.typed_data import hash_typed_data
from zksync712.signer.signature import SignatureObject

logger = logging.getLogger("Transaction712")

EIP712_TYPES = {
    "Transaction": [
        {"name": "txType", "type": "uint256"},
        {"name": "from", "type": "uint256"},
        {"name": "to", "type": "uint256"},
        {"name": "gasLimit", "type": "uint256"},
        {"name": "gasPerPubdataByteLimit", "type": "uint256"},
        {"name": "maxFeePerGas", "type": "uint256"},
        {"name": "maxPriorityFeePerGas", "type": "uint256"},
        {"name": "paymaster", "type": "uint256"},
        {"name": "nonce", "type": "uint256"},
        {"name": "value", "type": "uint256"},
        {"name": "data", "type": "bytes"},
        {"name": "factoryDeps", "type": "bytes32[]"},
        {"name": "paymasterInput", "type": "bytes"},
    ]
}

RAW_FIELDS_COUNT = 16


class _Integer(BigEndianInt):
    def deserialize(self, serial):
        if not Binary.is_valid_type(serial):
            raise DeserializationError("Integer field must be a byte string", serial)
        return super().deserialize(serial)


_integer = _Integer()
_address = Binary.fixed_length(20)
_word = Binary(max_length=32)

# every slot except the trailing paymaster pair
_ENVELOPE_SEDES = rlpList([
    _integer,  # nonce
    _integer,  # maxPriorityFeePerGas
    _integer,  # maxFeePerGas
    _integer,  # gasLimit
    Binary.fixed_length(20, allow_empty=True),  # to
    _integer,  # value
    binary,  # data
    _integer,  # v, or chain id when unsigned
    _word,  # r
    _word,  # s
    _integer,  # chain id
    _address,  # from
    _integer,  # gasPerPubdata
    CountableList(binary),  # factoryDeps
    binary,  # customSignature
])
_PAYMASTER_SEDES = CountableList(binary)


def _paymaster_pair(paymaster_params: Any) -> Optional[PaymasterParams]:
    if paymaster_params is None:
        return None
    if isinstance(paymaster_params, Mapping):
        paymaster = paymaster_params.get("paymaster")
        paymaster_input = paymaster_params.get(
            "paymaster_input", paymaster_params.get("paymasterInput")
        )
    else:
        paymaster = getattr(paymaster_params, "paymaster", None)
        paymaster_input = getattr(paymaster_params, "paymaster_input", None)
    if paymaster is None or paymaster_input is None:
        raise InvalidPaymasterParamsError(
            "Paymaster parameters must contain both paymaster and paymaster input"
        )
    return PaymasterParams(paymaster=paymaster, paymaster_input=to_bytes(paymaster_input))


def _handle_address(value: bytes) -> Optional[ChecksumAddress]:
    if not value:
        return None
    return Web3.to_checksum_address(value)


@dataclass
class Transaction712:
    EIP_712_TX_TYPE = EIP712_TX_TYPE
    DOMAIN_NAME = "zkSync"
    DOMAIN_VERSION = "2"

    chain_id: Optional[int]
    nonce: Nonce
    gas_limit: int
    to: Optional[Union[ChecksumAddress, str]]
    value: int
    data: Union[bytes, HexStr]
    maxPriorityFeePerGas: Optional[int]
    maxFeePerGas: Optional[int]
    from_: Optional[Union[ChecksumAddress, HexStr]]
    meta: EIP712Meta = field(default_factory=EIP712Meta)
    gas_price: Optional[int] = None
    signature: Optional[SignatureObject] = field(default=None, compare=False)
    hash: Optional[bytes] = field(default=None, compare=False)

    @property
    def max_fee_per_gas(self) -> int:
        if self.maxFeePerGas is not None:
            return to_int(self.maxFeePerGas)
        return to_int(self.gas_price or 0)

    @property
    def max_priority_fee_per_gas(self) -> int:
        if self.maxPriorityFeePerGas is not None:
            return to_int(self.maxPriorityFeePerGas)
        return self.max_fee_per_gas

    @property
    def gas_per_pub_data(self) -> int:
        if self.meta is None or self.meta.gas_per_pub_data is None:
            return EIP712Meta.GAS_PER_PUB_DATA_DEFAULT
        return to_int(self.meta.gas_per_pub_data)

    @property
    def paymaster_params(self) -> Optional[PaymasterParams]:
        return _paymaster_pair(self.meta.paymaster_params if self.meta else None)

    @property
    def factory_deps(self) -> List[bytes]:
        if self.meta is None or self.meta.factory_deps is None:
            return []
        return [to_bytes(dep) for dep in self.meta.factory_deps]

    @property
    def custom_signature(self) -> Optional[bytes]:
        if self.meta is None or self.meta.custom_signature is None:
            return None
        return to_bytes(self.meta.custom_signature)

    def raw(self, signature: Optional[Any] = None) -> list:
        """Field list of the envelope, in wire order, before RLP encoding."""
        if not self.chain_id:
            raise MissingFieldError("Transaction chainId isn't set")
        if not self.from_:
            raise MissingFieldError(
                "Explicitly providing `from` field is required for EIP712 transactions"
            )
        chain_id = to_int(self.chain_id)

        fields: list = [
            int_to_bytes(to_int(self.nonce or 0)),
            int_to_bytes(self.max_priority_fee_per_gas),
            int_to_bytes(self.max_fee_per_gas),
            int_to_bytes(to_int(self.gas_limit or 0)),
            encode_address(Web3.to_checksum_address(self.to)) if self.to else b"",
            int_to_bytes(to_int(self.value or 0)),
            to_bytes(self.data or b""),
        ]

        if signature is not None:
            sig = SignatureObject.from_signature(signature)
            fields.append(int_to_bytes(sig.y_parity))
            fields.append(int_to_bytes(int.from_bytes(sig.r, "big")))
            fields.append(int_to_bytes(int.from_bytes(sig.s, "big")))
        else:
            fields.append(int_to_bytes(chain_id))
            fields.append(b"")
            fields.append(b"")

        fields.append(int_to_bytes(chain_id))
        fields.append(encode_address(Web3.to_checksum_address(self.from_)))

        fields.append(int_to_bytes(self.gas_per_pub_data))
        fields.append(self.factory_deps)

        custom_signature = self.custom_signature
        if custom_signature is not None and len(custom_signature) == 0:
            raise EmptySignatureError("Empty signatures are not supported")
        fields.append(custom_signature if custom_signature is not None else b"")

        paymaster_params = self.paymaster_params
        if paymaster_params is not None:
            fields.append([
                encode_address(Web3.to_checksum_address(paymaster_params.paymaster)),
                paymaster_params.paymaster_input,
            ])
        else:
            fields.append([])
        return fields

    def encode(self, signature: Optional[Any] = None) -> bytes:
        encoded_rlp = rlp.encode(self.raw(signature))
        logger.debug(f"encoded EIP712 transaction, signed: {signature is not None}, "
                     f"size: {len(encoded_rlp) + 1}")
        return int_to_bytes(self.EIP_712_TX_TYPE) + encoded_rlp

    @classmethod
    def decode(cls, payload: Union[bytes, HexStr]) -> "Transaction712":
        data = to_bytes(payload)
        if len(data) == 0 or data[0] != cls.EIP_712_TX_TYPE:
            raise TransactionError("Payload is not an EIP712 transaction")

        try:
            raw = rlp.decode(data[1:])
        except DecodingError as e:
            raise TransactionError(f"Invalid EIP712 transaction RLP: {e}") from e
        if not isinstance(raw, list) or len(raw) != RAW_FIELDS_COUNT:
            raise TransactionError(
                f"Invalid EIP712 transaction, expected {RAW_FIELDS_COUNT} fields"
            )

        try:
            fields = _ENVELOPE_SEDES.deserialize(raw[:RAW_FIELDS_COUNT - 1])
        except DeserializationError as e:
            raise TransactionError(f"Invalid EIP712 transaction field: {e}") from e

        try:
            paymaster_raw = _PAYMASTER_SEDES.deserialize(raw[15])
        except DeserializationError as e:
            raise InvalidPaymasterParamsError(f"Invalid paymaster parameters: {e}") from e
        if len(paymaster_raw) == 0:
            paymaster_params = None
        elif len(paymaster_raw) == 2:
            if len(paymaster_raw[0]) != 20:
                raise InvalidPaymasterParamsError("Invalid paymaster address")
            paymaster_params = PaymasterParams(
                paymaster=Web3.to_checksum_address(paymaster_raw[0]),
                paymaster_input=paymaster_raw[1],
            )
        else:
            raise InvalidPaymasterParamsError(
                f"Invalid paymaster parameters, expected to have length of 2, "
                f"found {len(paymaster_raw)}"
            )

        meta = EIP712Meta(
            gas_per_pub_data=fields[12],
            custom_signature=fields[14] or None,
            factory_deps=list(fields[13]) or None,
            paymaster_params=paymaster_params,
        )
        tx = cls(
            chain_id=fields[10],
            nonce=Nonce(fields[0]),
            gas_limit=fields[3],
            to=_handle_address(fields[4]),
            value=fields[5],
            data=to_hex(fields[6]),
            maxPriorityFeePerGas=fields[1],
            maxFeePerGas=fields[2],
            from_=_handle_address(fields[11]),
            meta=meta,
        )

        v, r, s = fields[7], fields[8], fields[9]
        if (not r or not s) and meta.custom_signature is None:
            logger.debug("decoded unsigned EIP712 transaction")
            return tx

        if v not in (0, 1) and meta.custom_signature is None:
            raise SignatureParseError("Failed to parse signature")

        if meta.custom_signature is None:
            tx.signature = SignatureObject(r=r, s=s, v=v)
        tx.hash = tx.tx_hash(tx.signature)
        logger.debug(f"decoded signed EIP712 transaction {to_hex(tx.hash)}")
        return tx

    def to_sign_input(self) -> Dict[str, Any]:
        paymaster_params = self.paymaster_params
        return {
            "txType": self.EIP_712_TX_TYPE,
            "from": self.from_,
            "to": self.to or ZERO_ADDRESS,
            "gasLimit": to_int(self.gas_limit or 0),
            "gasPerPubdataByteLimit": self.gas_per_pub_data,
            "maxFeePerGas": self.max_fee_per_gas,
            "maxPriorityFeePerGas": self.max_priority_fee_per_gas,
            "paymaster": paymaster_params.paymaster if paymaster_params else ZERO_ADDRESS,
            "nonce": to_int(self.nonce or 0),
            "value": to_int(self.value or 0),
            "data": to_hex(to_bytes(self.data or b"")),
            "factoryDeps": [hash_byte_code(dep) for dep in self.factory_deps],
            "paymasterInput": paymaster_params.paymaster_input if paymaster_params else b"",
        }

    def to_typed_data(self) -> Dict[str, Any]:
        return {
            "types": copy.deepcopy(EIP712_TYPES),
            "primaryType": "Transaction",
            "domain": {
                "name": self.DOMAIN_NAME,
                "version": self.DOMAIN_VERSION,
                "chainId": to_int(self.chain_id) if self.chain_id is not None else None,
            },
            "message": self.to_sign_input(),
        }

    def struct_hash(self) -> bytes:
        return TypedDataEncoder(EIP712_TYPES).hash(self.to_sign_input())

    def signed_digest(self) -> bytes:
        """EIP-712 digest the sender signs."""
        if not self.chain_id:
            raise MissingFieldError("Transaction chainId isn't set")
        typed_data = self.to_typed_data()
        return hash_typed_data(typed_data["domain"], typed_data["types"], typed_data["message"])

    def get_signature_bytes(self, signature: Optional[Any] = None) -> bytes:
        custom_signature = self.custom_signature
        if custom_signature:
            return custom_signature
        if signature is None:
            raise SignatureError("No signature provided")
        return SignatureObject.from_signature(signature).to_bytes()

    def tx_hash(self, signature: Optional[Any] = None) -> bytes:
        return keccak(self.signed_digest() + keccak(self.get_signature_bytes(signature)))
