import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

import requests
from github import Github, GithubException, UnknownObjectException
from semver import VersionInfo

from releaselib import constants
from releaselib.exceptions import APIError, NotFoundError

LOGGER = logging.getLogger(__name__)

DOWNLOAD_CHUNK_SIZE = 1024 * 1024


def tag(version: str) -> str:
    return f"v{version}"


@dataclass
class ReleaseInfo:
    url: str
    assets: List[str] = field(default_factory=list)


class GithubClient:
    """Release operations on the repositories of one GitHub owner"""

    def __init__(
        self,
        token: Optional[str] = None,
        owner: str = constants.GITHUB_OWNER,
        github: Optional[Github] = None,
        timeout: int = constants.HTTP_TIMEOUT,
    ):
        self.token = token
        self.owner = owner
        self.timeout = timeout
        self._github = github or Github(token)

    def _repo(self, user: str, repo: str):
        try:
            return self._github.get_repo(f"{user}/{repo}")
        except UnknownObjectException as e:
            raise NotFoundError(f"Repository {user}/{repo} not found") from e
        except GithubException as e:
            raise APIError(f"Failed to get repository {user}/{repo}: {e}") from e

    def _release(self, user: str, repo: str, tag_name: str):
        try:
            return self._repo(user, repo).get_release(tag_name)
        except UnknownObjectException as e:
            raise NotFoundError(f"No release for tag {tag_name} in {user}/{repo}") from e
        except GithubException as e:
            raise APIError(f"Failed to get release {tag_name} of {user}/{repo}: {e}") from e

    def latest_tag(self, user: str, repo: str) -> str:
        """Highest semantic version among the v-prefixed tags, without the v"""
        try:
            names = [t.name for t in self._repo(user, repo).get_tags()]
        except GithubException as e:
            raise APIError(f"Failed to list tags of {user}/{repo}: {e}") from e
        versions = []
        for name in names:
            if not name.startswith("v"):
                continue
            try:
                versions.append(VersionInfo.parse(name[1:]))
            except ValueError:
                LOGGER.debug("Ignoring tag %s, not a semantic version", name)
        if not versions:
            raise NotFoundError(f"No version tags in {user}/{repo}")
        return str(max(versions))

    def release_of_tag(self, user: str, repo: str, tag_name: str) -> ReleaseInfo:
        release = self._release(user, repo, tag_name)
        return ReleaseInfo(url=release.html_url, assets=[a.name for a in release.get_assets()])

    def create_release(self, repo: str, tag_name: str, name: str):
        LOGGER.info("Creating release %s in %s/%s", tag_name, self.owner, repo)
        try:
            self._repo(self.owner, repo).create_git_release(tag_name, name, "")
        except GithubException as e:
            if e.status == 422:
                raise APIError(f"GitHub returned {e.status} (the release probably already exists)") from e
            raise APIError(f"Failed to create release {tag_name}: {e}") from e

    def upload(self, repo: str, tag_name: str, name: str, path: str):
        release = self._release(self.owner, repo, tag_name)
        LOGGER.info("Uploading %s as %s (%s)", path, name, tag_name)
        try:
            release.upload_asset(path, name=name, content_type="application/octet-stream")
        except GithubException as e:
            if e.status == 422:
                raise APIError(f"GitHub returned {e.status} (the asset probably already exists)") from e
            raise APIError(f"Failed to upload {path}: {e}") from e

    def download_asset(self, repo: str, tag_name: str, name: str, dest: Optional[str] = None) -> str:
        """
        Downloads the asset called name from the release of tag_name.

        :return: Path of the downloaded file
        """
        release = self._release(self.owner, repo, tag_name)
        asset = next((a for a in release.get_assets() if a.name == name), None)
        if asset is None:
            raise NotFoundError(f"Could not find asset named {name}")
        dest = dest or os.path.basename(name)
        headers = {"Accept": "application/octet-stream"}
        if self.token:
            headers["Authorization"] = f"token {self.token}"
        LOGGER.info("Downloading %s to %s", asset.url, dest)
        try:
            with requests.get(asset.url, headers=headers, stream=True, timeout=self.timeout) as response:
                response.raise_for_status()
                expected = int(response.headers.get("Content-Length", -1))
                written = 0
                with open(dest, "wb") as f:
                    for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                        f.write(chunk)
                        written += len(chunk)
        except requests.RequestException as e:
            raise APIError(f"Failed to download {name}: {e}") from e
        if expected >= 0 and written != expected:
            raise APIError(f"Downloaded data did not match content length {expected} != {written}")
        return dest
