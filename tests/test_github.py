import os
import tempfile
import unittest
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

from github import GithubException, UnknownObjectException

from releaselib.exceptions import APIError, NotFoundError
from releaselib.github import GithubClient, tag


class TestGithubClient(unittest.TestCase):
    def setUp(self):
        self.github = MagicMock()
        self.repo = self.github.get_repo.return_value
        self.release = self.repo.get_release.return_value
        self.client = GithubClient("gh-token", github=self.github)

    def test_tag(self):
        self.assertEqual(tag("1.0.18"), "v1.0.18")

    def test_latest_tag(self):
        self.repo.get_tags.return_value = [
            SimpleNamespace(name="v1.0.9"),
            SimpleNamespace(name="v1.0.10"),
            SimpleNamespace(name="docs"),
            SimpleNamespace(name="vnext"),
        ]
        self.assertEqual(self.client.latest_tag("keybase", "client"), "1.0.10")
        self.github.get_repo.assert_called_once_with("keybase/client")

    def test_latest_tag_none(self):
        self.repo.get_tags.return_value = [SimpleNamespace(name="docs")]
        with self.assertRaises(NotFoundError):
            self.client.latest_tag("keybase", "client")

    def test_release_of_tag(self):
        self.release.html_url = "https://github.com/keybase/client/releases/tag/v1.0.18"
        self.release.get_assets.return_value = [SimpleNamespace(name="keybase-1.0.18-linux.tgz")]
        info = self.client.release_of_tag("keybase", "client", "v1.0.18")
        self.assertEqual(info.url, "https://github.com/keybase/client/releases/tag/v1.0.18")
        self.assertEqual(info.assets, ["keybase-1.0.18-linux.tgz"])
        self.repo.get_release.assert_called_once_with("v1.0.18")

    def test_release_of_tag_not_found(self):
        self.repo.get_release.side_effect = UnknownObjectException(404, {"message": "Not Found"}, None)
        with self.assertRaises(NotFoundError):
            self.client.release_of_tag("keybase", "client", "v9.9.9")

    def test_create_release(self):
        self.client.create_release("client", "v1.0.18", "v1.0.18")
        self.repo.create_git_release.assert_called_once_with("v1.0.18", "v1.0.18", "")
        self.github.get_repo.assert_called_once_with("keybase/client")

    def test_create_release_exists(self):
        self.repo.create_git_release.side_effect = GithubException(422, {"message": "Validation Failed"}, None)
        with self.assertRaisesRegex(APIError, "already exists"):
            self.client.create_release("client", "v1.0.18", "v1.0.18")

    def test_upload(self):
        self.client.upload("client", "v1.0.18", "keybase.tgz", "/tmp/build/keybase.tgz")
        self.release.upload_asset.assert_called_once_with(
            "/tmp/build/keybase.tgz", name="keybase.tgz", content_type="application/octet-stream"
        )

    @patch("releaselib.github.requests.get")
    def test_download_asset(self, get):
        self.release.get_assets.return_value = [
            SimpleNamespace(name="other.tgz", url="https://api.github.com/assets/1"),
            SimpleNamespace(name="keybase.tgz", url="https://api.github.com/assets/2"),
        ]
        response = get.return_value.__enter__.return_value
        response.headers = {"Content-Length": "5"}
        response.iter_content.return_value = [b"hel", b"lo"]

        with tempfile.TemporaryDirectory() as tmp_dir:
            dest = os.path.join(tmp_dir, "keybase.tgz")
            self.assertEqual(self.client.download_asset("client", "v1.0.18", "keybase.tgz", dest), dest)
            with open(dest, "rb") as f:
                self.assertEqual(f.read(), b"hello")

        args, kwargs = get.call_args
        self.assertEqual(args[0], "https://api.github.com/assets/2")
        self.assertEqual(kwargs["headers"]["Accept"], "application/octet-stream")
        self.assertEqual(kwargs["headers"]["Authorization"], "token gh-token")

    @patch("releaselib.github.requests.get")
    def test_download_asset_truncated(self, get):
        self.release.get_assets.return_value = [SimpleNamespace(name="keybase.tgz", url="https://api.github.com/a")]
        response = get.return_value.__enter__.return_value
        response.headers = {"Content-Length": "10"}
        response.iter_content.return_value = [b"hello"]

        with tempfile.TemporaryDirectory() as tmp_dir:
            with self.assertRaisesRegex(APIError, "did not match content length"):
                self.client.download_asset("client", "v1.0.18", "keybase.tgz", os.path.join(tmp_dir, "k.tgz"))

    def test_download_asset_missing(self):
        self.release.get_assets.return_value = []
        with self.assertRaises(NotFoundError):
            self.client.download_asset("client", "v1.0.18", "keybase.tgz")
