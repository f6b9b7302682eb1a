import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

import requests

from releaselib import constants
from releaselib.exceptions import APIError

LOGGER = logging.getLogger(__name__)

ADD_BUILD_PATH = "/_/api/1.0/pkg/add_build.json"
SET_RELEASED_PATH = "/_/api/1.0/pkg/set_released.json"
SET_IN_TESTING_PATH = "/_/api/1.0/pkg/set_in_testing.json"


class KbwebClient:
    """
    Client of the admin endpoints that track builds on the keybase.io API.
    Every call authenticates with the admin token.
    """

    def __init__(
        self,
        token: str,
        api_url: str = constants.KBWEB_API_URL,
        build_number_url: str = constants.BUILD_NUMBER_API_URL,
        ca_bundle: Optional[str] = None,
        timeout: int = constants.HTTP_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.token = token
        self.api_url = api_url.rstrip("/")
        self.build_number_url = build_number_url
        # the API is served with a private CA; None uses the system store
        self.verify: Union[str, bool] = ca_bundle or True
        self.timeout = timeout
        self._session = session or requests.Session()

    def _post(self, url: str, **kwargs) -> Dict[str, Any]:
        headers = {"x-keybase-admin-token": self.token}
        try:
            response = self._session.post(url, headers=headers, verify=self.verify, timeout=self.timeout, **kwargs)
            body = response.json()
        except requests.RequestException as e:
            raise APIError(f"Request to {url} failed: {e}") from e
        except ValueError as e:
            raise APIError(f"Invalid JSON reply from {url}: {e}") from e
        code = body.get("status", {}).get("code")
        if code != 0:
            raise APIError(f"Server returned failure, {body}")
        return body

    def announce_build(self, build_a: str, build_b: str, platform: str):
        """Tells the API server a new build exists. It isn't enrolled in smoke testing."""
        LOGGER.info("Announcing builds %s and %s for %s", build_a, build_b, platform)
        self._post(
            self.api_url + ADD_BUILD_PATH,
            json={"version_a": build_a, "version_b": build_b, "platform": platform},
        )

    def promote_build(self, build_a: str, platform: str, dry_run: bool = False) -> Optional[datetime]:
        """
        Marks a build as released.

        :return: Release time set by the server, None in dry run mode
        """
        data = {"version_a": build_a, "platform": platform}
        if dry_run:
            LOGGER.warning("[DRY RUN] Would have posted %s to %s", data, SET_RELEASED_PATH)
            return None
        body = self._post(self.api_url + SET_RELEASED_PATH, json=data)
        release_time = datetime.fromtimestamp(body.get("release_time", 0) / 1000, tz=timezone.utc)
        LOGGER.info("Release time set to %s for build %s", release_time, build_a)
        return release_time

    def set_build_in_testing(self, build_a: str, platform: str, in_testing: str, max_testers: int = 0):
        """Enrolls (in_testing "1") or unenrolls (in_testing "0") a build in smoke testing"""
        LOGGER.info("Setting in_testing=%s for %s on %s", in_testing, build_a, platform)
        self._post(
            self.api_url + SET_IN_TESTING_PATH,
            json={"version_a": build_a, "platform": platform, "in_testing": in_testing, "max_testers": max_testers},
        )

    def next_build_number(self, version: str) -> int:
        """Allocates the next Windows build number for version"""
        body = self._post(self.build_number_url, data={"version": version, "bot_id": "1", "platform": "1"})
        try:
            return int(body["build_number"])
        except (KeyError, TypeError, ValueError) as e:
            raise APIError(f"No build number in reply {body}") from e
