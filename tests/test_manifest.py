import json
import os
import tempfile
import unittest
from datetime import datetime, timezone

from releaselib.exceptions import DecodeError, DigestError, FileReadError
from releaselib.manifest import decode_update, digest, encode_update, support_json_name, update_json_name

HELLO_SHA256 = "2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824"


class TestManifestNames(unittest.TestCase):
    def test_update_json_name(self):
        self.assertEqual(update_json_name("", "darwin", "prod"), "update-darwin-prod.json")
        self.assertEqual(update_json_name("test", "darwin", "prod"), "update-darwin-prod-test.json")
        self.assertEqual(update_json_name("", "linux", "staging"), "update-linux-staging.json")

    def test_support_json_name(self):
        self.assertEqual(support_json_name("darwin", "prod", "1.0.18"), "update-darwin-prod-1.0.18.json")


class TestEncodeUpdate(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp_dir = self._tmp.name

    def tearDown(self):
        self._tmp.cleanup()

    def _write(self, name: str, content: bytes) -> str:
        path = os.path.join(self.tmp_dir, name)
        with open(path, "wb") as f:
            f.write(content)
        return path

    def test_version_only(self):
        data = encode_update("1.0.18", "v1.0.18")
        self.assertEqual(json.loads(data), {"version": "1.0.18", "name": "v1.0.18", "type": 0})
        # indented
        self.assertIn(b'\n  "version"', data)

    def test_with_asset(self):
        src = self._write("Keybase-1.0.18-20161123180232+8a1b2c3.dmg", b"hello")
        sig = self._write("Keybase.dmg.sig", b"BEGIN SIGNATURE")
        desc = self._write("notes.txt", b"Bug fixes")

        update = json.loads(encode_update(
            "1.0.18", "v1.0.18", description=desc, src=src, uri="https://example.com/darwin/", signature=sig
        ))

        self.assertEqual(update["description"], "Bug fixes")
        published = datetime(2016, 11, 23, 18, 2, 32, tzinfo=timezone.utc)
        self.assertEqual(update["publishedAt"], int(published.timestamp() * 1000))
        self.assertEqual(update["asset"], {
            "name": "Keybase-1.0.18-20161123180232+8a1b2c3.dmg",
            "url": "https://example.com/darwin/Keybase-1.0.18-20161123180232%2B8a1b2c3.dmg",
            "digest": HELLO_SHA256,
            "signature": "BEGIN SIGNATURE",
        })

    def test_published_at_from_mtime(self):
        src = self._write("keybase.zip", b"hello")
        os.utime(src, (1600000000, 1600000000))
        update = json.loads(encode_update("1.0.18", "v1.0.18", src=src, uri="https://example.com"))
        self.assertEqual(update["publishedAt"], 1600000000000)
        self.assertEqual(update["asset"]["url"], "https://example.com/keybase.zip")

    def test_src_without_uri(self):
        src = self._write("keybase.zip", b"hello")
        self.assertNotIn("asset", json.loads(encode_update("1.0.18", "v1.0.18", src=src)))

    def test_missing_signature(self):
        src = self._write("keybase.zip", b"hello")
        with self.assertRaises(FileReadError):
            encode_update("1.0.18", "v1.0.18", src=src, uri="https://example.com",
                          signature=os.path.join(self.tmp_dir, "missing.sig"))

    def test_missing_description(self):
        with self.assertRaises(FileReadError):
            encode_update("1.0.18", "v1.0.18", description=os.path.join(self.tmp_dir, "missing.txt"))

    def test_digest(self):
        self.assertEqual(digest(self._write("a", b"hello")), HELLO_SHA256)
        with self.assertRaises(DigestError):
            digest(os.path.join(self.tmp_dir, "missing"))


class TestDecodeUpdate(unittest.TestCase):
    def test_decode(self):
        update = decode_update(b"""{
            "version": "1.0.18-20161123180232+8a1b2c3",
            "name": "v1.0.18",
            "publishedAt": 1479924152000,
            "asset": {"name": "Keybase.zip", "url": "https://example.com/Keybase.zip", "digest": "abc"}
        }""")
        self.assertEqual(update.version, "1.0.18-20161123180232+8a1b2c3")
        self.assertEqual(update.asset.name, "Keybase.zip")
        self.assertIsNone(update.asset.signature)
        self.assertEqual(update.published_at, datetime(2016, 11, 23, 18, 2, 32, tzinfo=timezone.utc))

    def test_decode_without_asset(self):
        update = decode_update(b'{"version": "1.0.18", "name": "v1.0.18"}')
        self.assertIsNone(update.asset)
        self.assertIsNone(update.published_at)

    def test_decode_written_by_older_tools(self):
        update = decode_update(json.dumps({
            "version": "1.0.18",
            "name": "v1.0.18",
            "instructions": "",
            "props": {},
            "asset": {"name": "a", "url": "u", "digest": "d", "localPath": ""},
        }).encode())
        self.assertEqual(update.asset.localPath, "")

    def test_invalid(self):
        for data in (
            b"",
            b"{not json",
            b'{"name": "v1.0.18"}',  # no version
            b'{"version": "1.0.18", "name": "v1.0.18", "colour": "blue"}',
            b'{"version": "1.0.18", "name": "v1.0.18", "asset": {"name": "a"}}',
        ):
            with self.assertRaises(DecodeError, msg=data):
                decode_update(data)

    def test_round_trip(self):
        data = encode_update("1.0.18", "v1.0.18")
        self.assertEqual(decode_update(data).version, "1.0.18")
