import unittest
import sys
import os

# Add project root to sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from gpgtui_app.errors import ParseError  # noqa: E402
from gpgtui_app.gpg.key import KeyDetail, KeyType, apply_detail, parse_colon_listing  # noqa: E402

KEY_ID = "ABCDEF0123456789"
FINGERPRINT = "0123456789ABCDEF0123456789ABCDEF01234567"
SUB_FINGERPRINT = "FFFF456789ABCDEF0123456789ABCDEF01234567"
USER = "Alice Example <alice@example.com>"


def colon(record, fields):
    values = [""] * 21
    values[0] = record
    for index, value in fields.items():
        values[index] = value
    return ":".join(values)


LISTING = "\n".join([
    colon("pub", {1: "u", 2: "3072", 3: "1", 4: KEY_ID, 5: "1600000000", 6: "1700000000", 11: "scESC"}),
    colon("fpr", {9: FINGERPRINT}),
    colon("uid", {1: "u", 5: "1600000000", 9: USER}),
    colon("sig", {3: "1", 4: KEY_ID, 5: "1600000000", 9: USER, 10: "13x"}),
    colon("uid", {1: "r", 9: "Bob\\x3a Builder"}),
    colon("sub", {1: "u", 2: "4096", 3: "1", 4: "1111222233334444", 5: "1600000000", 11: "e"}),
    colon("fpr", {9: SUB_FINGERPRINT}),
    colon("pub", {1: "-", 3: "22", 4: "5555666677778888", 5: "1600000000", 11: "scSC", 16: "ed25519"}),
    colon("uid", {1: "-", 9: "carol@example.com"}),
])


class TestParseColonListing(unittest.TestCase):

    def setUp(self):
        self.keys = parse_colon_listing(LISTING)
        self.key = self.keys[0]

    def test_keys_and_subkeys(self):
        self.assertEqual(len(self.keys), 2)
        self.assertEqual(len(self.key.subkeys), 2)
        self.assertEqual(self.key.get_id(), f"0x{KEY_ID}")
        self.assertEqual(self.key.get_fingerprint(), FINGERPRINT)
        self.assertEqual(self.key.subkeys[1].fingerprint, SUB_FINGERPRINT)
        self.assertEqual(self.key.primary.algorithm, "rsa3072")
        self.assertEqual(self.keys[1].primary.algorithm, "ed25519")

    def test_flags(self):
        self.assertEqual(self.key.primary.flags, "sce-")
        self.assertEqual(self.key.subkeys[1].flags, "--e-")

    def test_user_ids(self):
        self.assertEqual(self.key.get_user_id(), USER)
        self.assertEqual(self.key.user_ids[0].validity, "u")
        self.assertEqual(self.key.user_ids[1].uid, "Bob: Builder")
        self.assertEqual(self.key.user_ids[1].validity, "r")
        self.assertEqual(self.keys[1].user_ids[0].validity, "?")
        signature = self.key.user_ids[0].signatures[0]
        self.assertEqual(signature.key_id, KEY_ID)
        self.assertEqual(signature.sig_class, "13x")
        self.assertTrue(signature.exportable)

    def test_empty_listing(self):
        self.assertEqual(parse_colon_listing(""), [])


class TestKeyRendering(unittest.TestCase):

    def setUp(self):
        self.key = parse_colon_listing(LISTING)[0]

    def test_minimum_detail(self):
        self.assertEqual(self.key.get_subkey_info(None, False), [f"[sce-] rsa3072/{FINGERPRINT}"])
        self.assertEqual(self.key.get_subkey_info(None, True), [f"[sce-] rsa3072/{KEY_ID}"])
        self.assertEqual(self.key.get_user_info(False), [f"[u] {USER}"])
        self.assertEqual(self.key.get_user_info(True), ["[u] <alice@example.com>"])

    def test_default_key_is_marked(self):
        lines = self.key.get_subkey_info(f"0x{KEY_ID.lower()}", True)
        self.assertEqual(lines, [f"[sce-]*rsa3072/{KEY_ID}"])

    def test_standard_detail(self):
        self.key.detail = KeyDetail.STANDARD
        lines = self.key.get_subkey_info(None, False)
        self.assertEqual(len(lines), 4)
        self.assertEqual(lines[1], "|      └─(2020-09-13) ─> (2023-11-14)")
        self.assertEqual(lines[3], "       └─(2020-09-13)")
        users = self.key.get_user_info(False)
        self.assertEqual(users, [f"[u] {USER}", " ├─[r] Bob: Builder"])

    def test_full_detail_lists_signatures(self):
        self.key.detail = KeyDetail.FULL
        users = self.key.get_user_info(False)
        self.assertEqual(users[1], f"│  └─[13] 0x{KEY_ID} {USER} (2020-09-13)")
        self.assertEqual(len(users), 3)

    def test_matches(self):
        self.assertTrue(self.key.matches("ALICE", False))
        self.assertTrue(self.key.matches(KEY_ID.lower(), True))
        self.assertFalse(self.key.matches("mallory", False))

    def test_apply_detail(self):
        keys = parse_colon_listing(LISTING)
        apply_detail(keys, KeyDetail.FULL)
        self.assertTrue(all(key.detail is KeyDetail.FULL for key in keys))


class TestEnums(unittest.TestCase):

    def test_key_type(self):
        self.assertIs(KeyType.from_str("Secret"), KeyType.SECRET)
        self.assertIs(KeyType.from_str("pub"), KeyType.PUBLIC)
        self.assertEqual(str(KeyType.SECRET), "sec")
        with self.assertRaises(ParseError):
            KeyType.from_str("both")

    def test_key_detail(self):
        self.assertIs(KeyDetail.from_str("2"), KeyDetail.STANDARD)
        self.assertIs(KeyDetail.from_str("ful"), KeyDetail.FULL)
        self.assertIs(KeyDetail.FULL.increased(), KeyDetail.MINIMUM)
        with self.assertRaises(ParseError):
            KeyDetail.from_str("max")


if __name__ == '__main__':
    unittest.main()
