import unittest

from pydantic import ValidationError

from releaselib.exceptions import ConfigError, UnsupportedPlatformError
from releaselib.platforms import DARWIN, LINUX_DEB, LINUX_RPM, WINDOWS, Platform, PlatformConfig


class TestPlatform(unittest.TestCase):
    def test_files(self):
        self.assertEqual(
            DARWIN.files("1.0.18"),
            [
                "darwin/Keybase-1.0.18.dmg",
                "darwin-updates/Keybase-1.0.18.zip",
                "darwin-support/update-darwin-prod-1.0.18.json",
            ],
        )

    def test_files_unsupported(self):
        with self.assertRaisesRegex(UnsupportedPlatformError, "Unsupported for this platform: windows"):
            WINDOWS.files("1.0.18")

    def test_manifest_name(self):
        self.assertEqual(DARWIN.manifest_name, "darwin")
        self.assertEqual(LINUX_DEB.manifest_name, "linux")
        self.assertEqual(LINUX_RPM.manifest_name, "linux")
        self.assertTrue(DARWIN.supports_promotion)
        self.assertFalse(WINDOWS.supports_promotion)

    def test_immutable(self):
        with self.assertRaises(ValidationError):
            DARWIN.prefix = "other/"


class TestPlatformConfig(unittest.TestCase):
    def test_resolve(self):
        config = PlatformConfig()
        self.assertEqual(config.resolve("darwin"), (DARWIN,))
        self.assertEqual(config.resolve("linux"), (LINUX_DEB, LINUX_RPM))
        self.assertEqual(config.resolve("rpm"), (LINUX_RPM,))
        self.assertEqual(config.resolve(""), (DARWIN, LINUX_DEB, LINUX_RPM, WINDOWS))

    def test_invalid_platform(self):
        with self.assertRaisesRegex(UnsupportedPlatformError, "Invalid platform freebsd"):
            PlatformConfig().resolve("freebsd")

    def test_manifest_names(self):
        self.assertEqual(PlatformConfig().manifest_names(), ["darwin", "linux", "windows"])

    def test_from_config_defaults(self):
        self.assertEqual(PlatformConfig.from_config({}).platforms, PlatformConfig().platforms)
        self.assertEqual(PlatformConfig.from_config(None).aliases, {"linux": ("deb", "rpm")})

    def test_from_config(self):
        config = PlatformConfig.from_config({
            "platforms": [
                {
                    "name": "darwin-arm64",
                    "prefix": "darwin-arm64/",
                    "prefix_support": "darwin-arm64-support/",
                    "latest_name": "Keybase-arm64.dmg",
                    "release_files": ["darwin-arm64/Keybase-{version}.dmg"],
                },
                {"name": "windows", "prefix": "windows/", "suffix": ".exe", "latest_name": "setup.exe"},
            ],
            "platform_aliases": {"desktop": ["darwin-arm64", "windows"]},
        })
        self.assertEqual([p.name for p in config.resolve("desktop")], ["darwin-arm64", "windows"])
        self.assertEqual(config.get("darwin-arm64").files("2.0.0"), ["darwin-arm64/Keybase-2.0.0.dmg"])
        with self.assertRaises(UnsupportedPlatformError):
            config.resolve("linux")

    def test_duplicate_names(self):
        with self.assertRaises(ValidationError):
            PlatformConfig(platforms=(DARWIN, DARWIN), aliases={})

    def test_unknown_alias_target(self):
        with self.assertRaises(ValidationError):
            PlatformConfig(platforms=(DARWIN,), aliases={"linux": ("deb",)})

    def test_unknown_platform_field(self):
        with self.assertRaises(ValidationError):
            Platform(name="x", prefix="x/", latest_name="x", colour="blue")

    def test_aliases_read_only(self):
        for config in (PlatformConfig(), PlatformConfig.from_config({"platform_aliases": {"mac": ["darwin"]}})):
            with self.assertRaises(TypeError):
                config.aliases["everything"] = ("darwin", "windows")
        self.assertEqual([p.name for p in PlatformConfig().resolve("linux")], ["deb", "rpm"])

    def test_from_config_invalid(self):
        with self.assertRaisesRegex(ConfigError, "Invalid platform configuration"):
            PlatformConfig.from_config({"platform_aliases": {"mac": ["macos"]}})
        with self.assertRaises(ConfigError):
            PlatformConfig.from_config({"platforms": [{"name": "x", "prefix": "x/"}]})
