import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import tomli

from releaselib import constants
from releaselib.exceptions import ConfigError
from releaselib.github import GithubClient
from releaselib.kbweb import KbwebClient
from releaselib.platforms import PlatformConfig
from releaselib.promotion import ReleaseClient
from releaselib.s3 import Bucket, new_s3_client


class Runtime:
    def __init__(self, config: Dict[str, Any], dry_run: bool):
        self.config = config
        self.dry_run = dry_run
        self.logger = self.init_logger()
        # built once; everything that resolves platform names gets this instance
        self.platform_config = PlatformConfig.from_config(config)

    @staticmethod
    def init_logger():
        logger = logging.getLogger('releaselib')
        if not logger.handlers:
            formatter = logging.Formatter('%(asctime)s %(name)s:%(levelname)s %(message)s')
            handler = logging.StreamHandler()
            handler.setFormatter(formatter)
            logger.addHandler(handler)
        # the root handler installed by basicConfig would print every line twice
        logger.propagate = False
        return logger

    @classmethod
    def from_config_file(cls, config_filename: Path, dry_run: bool, required: bool = True):
        """
        :param required: When False a missing file means an empty configuration
        """
        config_dict: Dict[str, Any] = {}
        if required or Path(config_filename).exists():
            with open(config_filename, "rb") as config_file:
                config_dict = tomli.load(config_file)
        return Runtime(config=config_dict, dry_run=dry_run)

    def new_bucket(self, name: str) -> Bucket:
        s3_config = self.config.get("s3", {})
        client = new_s3_client(
            region=s3_config.get("region", constants.S3_REGION_NAME),
            endpoint_url=s3_config.get("endpoint_url"),
        )
        return Bucket(
            name, client, url_base=s3_config.get("url_base", constants.S3_URL_BASE), dry_run=self.dry_run
        )

    def new_release_client(self, bucket_name: str) -> ReleaseClient:
        return ReleaseClient(self.new_bucket(bucket_name), self.platform_config)

    def new_github_client(self, token_required: bool = False) -> GithubClient:
        token = os.environ.get("GITHUB_TOKEN")
        if not token and token_required:
            raise ConfigError("GITHUB_TOKEN environment variable is not set")
        owner = self.config.get("github", {}).get("owner", constants.GITHUB_OWNER)
        return GithubClient(token, owner=owner)

    def new_kbweb_client(self, token: Optional[str] = None) -> KbwebClient:
        if not token:
            token = os.environ.get("KEYBASE_TOKEN")
            if not token:
                raise ConfigError("KEYBASE_TOKEN environment variable is not set")
        kbweb_config = self.config.get("kbweb", {})
        return KbwebClient(
            token,
            api_url=kbweb_config.get("api_url", constants.KBWEB_API_URL),
            build_number_url=kbweb_config.get("build_number_url", constants.BUILD_NUMBER_API_URL),
            ca_bundle=kbweb_config.get("ca_bundle"),
            timeout=kbweb_config.get("timeout", constants.HTTP_TIMEOUT),
        )
