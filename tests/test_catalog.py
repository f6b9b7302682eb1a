import io
import unittest
from datetime import datetime, timezone

from releaselib.catalog import Section, check_release_order, load_releases, write_release_table
from releaselib.version import EPOCH

KEYS = [
    "darwin/Keybase-1.0.17-20161120180232+1111111.dmg",
    "darwin/Keybase-1.0.18-20161123180232+8a1b2c3.dmg",
    "darwin/Keybase.dmg",
    "darwin/index.html",
    "darwin/Keybase-1.0.16-20161101100000+2222222.dmg",
]


class TestLoadReleases(unittest.TestCase):
    def test_most_recent_first(self):
        releases = load_releases(KEYS, "darwin/")
        self.assertEqual(
            [r.name for r in releases],
            [
                "Keybase-1.0.18-20161123180232+8a1b2c3.dmg",
                "Keybase-1.0.17-20161120180232+1111111.dmg",
                "Keybase-1.0.16-20161101100000+2222222.dmg",
                "Keybase.dmg",
            ],
        )
        dates = [r.date for r in releases]
        self.assertEqual(dates, sorted(dates, reverse=True))

    def test_unparsed_release_is_kept(self):
        with self.assertLogs("releaselib.catalog", level="WARNING"):
            releases = load_releases(KEYS, "darwin/")
        unparsed = releases[-1]
        self.assertEqual(unparsed.name, "Keybase.dmg")
        self.assertFalse(unparsed.parsed)
        self.assertEqual(unparsed.version, "")
        self.assertEqual(unparsed.commit, "")
        self.assertEqual(unparsed.date, EPOCH)

    def test_reference_timezone(self):
        release = load_releases(["darwin/Keybase-1.0.18-20161123180232+8a1b2c3.dmg"], "darwin/")[0]
        self.assertEqual(release.date.tzinfo.key, "America/New_York")
        # 18:02 UTC is 13:02 EST in November
        self.assertEqual(release.date.hour, 13)
        self.assertEqual(release.date, datetime(2016, 11, 23, 18, 2, 32, tzinfo=timezone.utc))
        self.assertEqual(release.date_string, "Wed Nov 23 13:02:32 EST 2016")

    def test_suffix_filter(self):
        keys = [
            "windows/keybase_setup_1.0.18-20161123180232+8a1b2c3.386.exe",
            "windows/keybase_setup_1.0.18-20161123180232+8a1b2c3.386.exe.sig",
        ]
        releases = load_releases(keys, "windows/", suffix=".386.exe")
        self.assertEqual(len(releases), 1)
        self.assertEqual(releases[0].key, keys[0])

    def test_truncate(self):
        self.assertEqual(len(load_releases(KEYS, "darwin/", truncate=2)), 2)
        self.assertEqual(load_releases(KEYS, "darwin/", truncate=1)[0].version, "1.0.18")
        # more than available, or 0, keeps everything
        self.assertEqual(len(load_releases(KEYS, "darwin/", truncate=10)), 4)
        self.assertEqual(len(load_releases(KEYS, "darwin/", truncate=0)), 4)

    def test_same_date_keeps_listing_order(self):
        keys = [
            "darwin/A-1.0.1-20161123180232+1111111.dmg",
            "darwin/B-1.0.2-20161123180232+2222222.dmg",
        ]
        self.assertEqual([r.key for r in load_releases(keys, "darwin/")], keys)
        self.assertEqual([r.key for r in load_releases(reversed(keys), "darwin/")], list(reversed(keys)))

    def test_url(self):
        release = load_releases(KEYS[:1], "darwin/", url_for=lambda key: f"https://example.com/{key}")[0]
        self.assertEqual(release.url, f"https://example.com/{KEYS[0]}")


class TestCheckReleaseOrder(unittest.TestCase):
    def test_in_order(self):
        self.assertEqual(check_release_order(load_releases(KEYS, "darwin/")), [])

    def test_inversion(self):
        keys = [
            "darwin/Keybase-1.0.18-20161120180232+8a1b2c3.dmg",
            "darwin/Keybase-1.0.17-20161123180232+1111111.dmg",
        ]
        releases = load_releases(keys, "darwin/")
        with self.assertLogs("releaselib.catalog", level="WARNING"):
            inversions = check_release_order(releases)
        self.assertEqual(len(inversions), 1)
        newer, older = inversions[0]
        self.assertEqual(newer.version, "1.0.17")
        self.assertEqual(older.version, "1.0.18")


class TestWriteReleaseTable(unittest.TestCase):
    def test_write(self):
        out = io.StringIO()
        write_release_table(
            [Section("darwin", load_releases(KEYS[:2], "darwin/")), Section("windows", [])],
            out,
        )
        lines = out.getvalue().splitlines()
        self.assertEqual(lines[0], "darwin")
        self.assertIn("Keybase-1.0.18-20161123180232+8a1b2c3.dmg", lines[1])
        self.assertIn("https://github.com/keybase/client/commit/8a1b2c3", lines[1])
        self.assertEqual(lines[3], "windows")
        self.assertEqual(lines[4], "  (no releases)")
