from unittest import TestCase, IsolatedAsyncioTestCase

from tests.unit.test_config import MAIL_TYPES, MAIL_DOMAIN, MAIL, PERSON_TO
from zksync712.core.errors import InvalidDomainError, InvalidValueError, NameResolutionError
from zksync712.core.utils import ZERO_ADDRESS
from zksync712.eip712 import (
    make_domain,
    hash_domain,
    encode_typed_data,
    hash_typed_data,
    resolve_names,
    get_payload,
)
from zksync712.eip712.domain_separator import domain_fields, render_domain

PERSON_TYPES = {
    "Person": [
        {"name": "name", "type": "string"},
        {"name": "age", "type": "uint8"},
    ]
}


class DomainTests(TestCase):

    def test_make_domain(self):
        domain = make_domain(name="Ether Mail", version=1, chainId="1",
                             verifyingContract=MAIL_DOMAIN["verifyingContract"])
        self.assertEqual(MAIL_DOMAIN, domain)

    def test_make_domain_requires_argument(self):
        with self.assertRaises(ValueError):
            make_domain()

    def test_hash_domain(self):
        self.assertEqual(
            "f2cee375fa42b42143804025fc449deafd50cc031ca257e0b194a650a912090f",
            hash_domain(MAIL_DOMAIN).hex(),
        )

    def test_domain_fields_canonical_order(self):
        domain = {"salt": "0x" + "11" * 32, "chainId": 5, "name": "Test", "version": None}
        self.assertEqual(
            ["name", "chainId", "salt"],
            [field.name for field in domain_fields(domain)],
        )

    def test_unknown_domain_key(self):
        with self.assertRaises(InvalidDomainError):
            hash_domain({"name": "Test", "owner": "me"})

    def test_render_domain(self):
        rendered = render_domain({
            "name": "Test",
            "chainId": 2 ** 60,
            "verifyingContract": MAIL_DOMAIN["verifyingContract"],
            "salt": b"\x01" * 32,
        })
        self.assertEqual(hex(2 ** 60), rendered["chainId"])
        self.assertEqual(MAIL_DOMAIN["verifyingContract"].lower(), rendered["verifyingContract"])
        self.assertEqual("0x" + "01" * 32, rendered["salt"])
        self.assertEqual(270, render_domain({"chainId": 270})["chainId"])

    def test_render_domain_rejects_bad_values(self):
        with self.assertRaises(InvalidDomainError):
            render_domain({"name": 1})
        with self.assertRaises(InvalidDomainError):
            render_domain({"salt": b"\x01" * 31})
        with self.assertRaises(InvalidDomainError):
            render_domain({"verifyingContract": "0x1234"})


class TypedDataTests(TestCase):

    def test_hash_typed_data(self):
        self.assertEqual(
            "be609aee343fb3c4b28e1df9e632fca64fcfaede20f02e86244efddf30957bd2",
            hash_typed_data(MAIL_DOMAIN, MAIL_TYPES, MAIL).hex(),
        )

    def test_encode_typed_data_prefix(self):
        encoded = encode_typed_data(MAIL_DOMAIN, MAIL_TYPES, MAIL)
        self.assertEqual(66, len(encoded))
        self.assertEqual(b"\x19\x01", encoded[:2])
        self.assertEqual(hash_domain(MAIL_DOMAIN), encoded[2:34])

    def test_hash_typed_data_person(self):
        result = hash_typed_data(
            {"name": "Example", "version": "1", "chainId": 270},
            PERSON_TYPES,
            {"name": "John", "age": 30},
        )
        self.assertEqual(
            "0xd55464ca0b57ebf17bc52f16cad5e0ccddfc5632bbbb803946592ead3a6bbafb",
            "0x" + result.hex(),
        )

    def test_get_payload(self):
        payload = get_payload(MAIL_DOMAIN, MAIL_TYPES, MAIL)
        self.assertEqual("Mail", payload["primaryType"])
        self.assertEqual(
            [
                {"name": "name", "type": "string"},
                {"name": "version", "type": "string"},
                {"name": "chainId", "type": "uint256"},
                {"name": "verifyingContract", "type": "address"},
            ],
            payload["types"]["EIP712Domain"],
        )
        self.assertEqual(MAIL_TYPES["Person"], payload["types"]["Person"])
        self.assertEqual(1, payload["domain"]["chainId"])
        self.assertEqual(
            MAIL_DOMAIN["verifyingContract"].lower(),
            payload["domain"]["verifyingContract"],
        )
        self.assertEqual(PERSON_TO["wallet"].lower(), payload["message"]["to"]["wallet"])
        self.assertEqual("Hello, Bob!", payload["message"]["contents"])

    def test_get_payload_renders_integers_and_bytes(self):
        types = {
            "Order": [
                {"name": "amount", "type": "uint256"},
                {"name": "id", "type": "bytes4"},
            ]
        }
        payload = get_payload({"chainId": 270}, types, {"amount": 2 ** 70, "id": b"\x01\x02\x03\x04"})
        self.assertEqual(str(2 ** 70), payload["message"]["amount"])
        self.assertEqual("0x01020304", payload["message"]["id"])

    def test_get_payload_rejects_domain_type(self):
        types = dict(PERSON_TYPES)
        types["EIP712Domain"] = [{"name": "name", "type": "string"}]
        with self.assertRaises(ValueError):
            get_payload({"name": "Example"}, types, {"name": "John", "age": 30})

    def test_get_payload_validates_value(self):
        with self.assertRaises(InvalidValueError):
            get_payload({"name": "Example"}, PERSON_TYPES, {"name": "John", "age": 300})


class ResolveNamesTests(IsolatedAsyncioTestCase):
    ALICE = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
    MAIL_CONTRACT = "0xCcCCccccCCCCcCCCCCCcCcCccCcCCCcCcccccccC"

    def setUp(self) -> None:
        self.calls = []
        self.records = {"alice.eth": self.ALICE, "mail.eth": self.MAIL_CONTRACT}

    async def resolve_name(self, name: str) -> str:
        self.calls.append(name)
        return self.records.get(name)

    async def test_resolves_each_name_once(self):
        value = {
            "from": {"name": "Cow", "wallet": "alice.eth"},
            "to": {"name": "Bob", "wallet": "alice.eth"},
            "contents": "Hello, Bob!",
        }
        domain = {"name": "Ether Mail", "version": "1", "chainId": 1,
                  "verifyingContract": "mail.eth", "salt": None}

        new_domain, new_value = await resolve_names(domain, MAIL_TYPES, value, self.resolve_name)

        self.assertEqual(["mail.eth", "alice.eth"], self.calls)
        self.assertEqual(self.MAIL_CONTRACT, new_domain["verifyingContract"])
        self.assertNotIn("salt", new_domain)
        self.assertEqual(self.ALICE, new_value["from"]["wallet"])
        self.assertEqual(self.ALICE, new_value["to"]["wallet"])
        self.assertEqual("alice.eth", value["from"]["wallet"])

    async def test_hex_addresses_untouched(self):
        new_domain, new_value = await resolve_names(MAIL_DOMAIN, MAIL_TYPES, MAIL, self.resolve_name)
        self.assertEqual([], self.calls)
        self.assertEqual(MAIL, new_value)
        self.assertEqual(MAIL_DOMAIN, new_domain)

    async def test_unresolved_name(self):
        value = {
            "from": {"name": "Cow", "wallet": "nobody.eth"},
            "to": PERSON_TO,
            "contents": "Hello, Bob!",
        }
        with self.assertRaises(NameResolutionError):
            await resolve_names(MAIL_DOMAIN, MAIL_TYPES, value, self.resolve_name)

    async def test_zero_address_is_failure(self):
        self.records["zero.eth"] = ZERO_ADDRESS
        value = {
            "from": {"name": "Cow", "wallet": "zero.eth"},
            "to": PERSON_TO,
            "contents": "Hello, Bob!",
        }
        with self.assertRaises(NameResolutionError):
            await resolve_names(MAIL_DOMAIN, MAIL_TYPES, value, self.resolve_name)

    async def test_resolver_errors_propagate(self):
        async def failing(name):
            raise ConnectionError("provider down")

        value = {
            "from": {"name": "Cow", "wallet": "alice.eth"},
            "to": PERSON_TO,
            "contents": "Hello, Bob!",
        }
        with self.assertRaises(ConnectionError):
            await resolve_names(MAIL_DOMAIN, MAIL_TYPES, value, failing)
