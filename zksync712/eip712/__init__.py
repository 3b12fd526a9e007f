from zksync712.eip712.encoder import TypedDataEncoder
from zksync712.eip712.domain_separator import make_domain, hash_domain
from zksync712.eip712.typed_data import (
    encode_typed_data,
    hash_typed_data,
    resolve_names,
    get_payload,
)
