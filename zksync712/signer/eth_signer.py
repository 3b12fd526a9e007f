import logging
from abc import abstractmethod, ABC
from typing import Any, Optional, Union

from eth_account import Account
from eth_account.signers.base import BaseAccount
from eth_typing import ChecksumAddress, HexStr
from eth_utils import keccak

from zksync712.core.types import TypeSet, TypedDataDomain
from zksync712.core.utils import hash_message
from zksync712.eip712 import make_domain, hash_typed_data
from zksync712.signer.signature import SignatureObject
from zksync712.transaction.transaction712 import Transaction712

logger = logging.getLogger("EthSigner")


def _recover(msg_hash: bytes, signature: Any) -> ChecksumAddress:
    sig = SignatureObject.from_signature(signature)
    return Account._recover_hash(message_hash=msg_hash, signature=sig.to_bytes())


def is_typed_data_signature_correct(
    address: HexStr,
    domain: TypedDataDomain,
    types: TypeSet,
    value: Any,
    signature: Any,
) -> bool:
    """Checks an EOA signature over typed data; contract accounts need an EIP-1271 call."""
    recovered = _recover(hash_typed_data(domain, types, value), signature)
    return recovered.lower() == address.lower()


def is_message_signature_correct(
    address: HexStr, message: Union[str, bytes], signature: Any
) -> bool:
    recovered = _recover(hash_message(message), signature)
    return recovered.lower() == address.lower()


class EthSignerBase:
    @abstractmethod
    def sign_typed_data(self, types: TypeSet, value: Any, domain=None) -> SignatureObject:
        raise NotImplementedError

    @abstractmethod
    def verify_typed_data(self, sig: Any, types: TypeSet, value: Any, domain=None) -> bool:
        raise NotImplementedError


class PrivateKeyEthSigner(EthSignerBase, ABC):
    _NAME = Transaction712.DOMAIN_NAME
    _VERSION = Transaction712.DOMAIN_VERSION

    def __init__(self, creds: BaseAccount, chain_id: int):
        self.credentials = creds
        self.chain_id = chain_id
        self.default_domain = make_domain(
            name=self._NAME, version=self._VERSION, chainId=self.chain_id
        )

    @staticmethod
    def get_default_domain(chain_id: int) -> TypedDataDomain:
        return make_domain(
            name=PrivateKeyEthSigner._NAME,
            version=PrivateKeyEthSigner._VERSION,
            chainId=chain_id,
        )

    @staticmethod
    def get_signed_digest(tx: Transaction712) -> bytes:
        return tx.signed_digest()

    @property
    def address(self) -> ChecksumAddress:
        return self.credentials.address

    @property
    def domain(self) -> TypedDataDomain:
        return self.default_domain

    def typed_data_hash(self, types: TypeSet, value: Any, domain: Optional[TypedDataDomain] = None) -> bytes:
        d = domain
        if d is None:
            d = self.domain
        return hash_typed_data(d, types, value)

    def sign_hash(self, msg_hash: bytes) -> SignatureObject:
        signed = self.credentials.unsafe_sign_hash(msg_hash)
        return SignatureObject.from_signature(signed)

    def sign_typed_data(self, types: TypeSet, value: Any, domain: Optional[TypedDataDomain] = None) -> SignatureObject:
        return self.sign_hash(self.typed_data_hash(types, value, domain))

    def verify_typed_data(
        self, sig: Any, types: TypeSet, value: Any, domain: Optional[TypedDataDomain] = None
    ) -> bool:
        msg_hash = self.typed_data_hash(types, value, domain)
        return _recover(msg_hash, sig).lower() == self.address.lower()

    def sign_transaction(self, tx: Transaction712) -> SignatureObject:
        digest = tx.signed_digest()
        logger.debug(f"signing EIP712 transaction digest 0x{digest.hex()}")
        return self.sign_hash(digest)

    def sign_message(self, message: bytes) -> SignatureObject:
        msg_hash = keccak(message)
        return self.sign_hash(msg_hash)
