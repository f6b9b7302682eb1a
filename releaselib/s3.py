import logging
from typing import List, Optional
from urllib.parse import quote

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_fixed

from releaselib import constants
from releaselib.exceptions import NotFoundError, StorageError

LOGGER = logging.getLogger(__name__)

PUBLIC_READ = "public-read"
NOT_FOUND_CODES = ("NoSuchKey", "404", "NotFound")

# Ensure s3v4 signature is used regardless of the region
BOTO3_CLIENT_CONFIG = Config(signature_version="s3v4")

THROTTLING_CODES = ("Throttling", "ThrottlingException", "SlowDown", "RequestLimitExceeded", "RequestTimeout")


def is_transient_error(e: BaseException) -> bool:
    """Connection problems, throttling and 5xx responses; a missing key or denied access is final"""
    if isinstance(e, BotoCoreError):
        return True
    if isinstance(e, ClientError):
        error = e.response.get("Error", {})
        status = e.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)
        return error.get("Code") in THROTTLING_CODES or status >= 500
    return False


def new_s3_client(region: str = constants.S3_REGION_NAME, endpoint_url: Optional[str] = None):
    return boto3.client("s3", region_name=region, endpoint_url=endpoint_url, config=BOTO3_CLIENT_CONFIG)


class Bucket:
    """
    The few object operations the release tool needs. Every botocore failure
    surfaces as a StorageError; only copies are retried.
    """

    def __init__(self, name: str, client, url_base: str = constants.S3_URL_BASE, dry_run: bool = False):
        self.name = name
        self._client = client
        self.url_base = url_base.rstrip("/")
        self.dry_run = dry_run

    def url_for(self, key: str) -> str:
        return f"{self.url_base}/{self.name}/{quote(key, safe='/')}"

    def list(self, prefix: str) -> List[str]:
        keys = []
        try:
            paginator = self._client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.name, Prefix=prefix):
                keys.extend(obj["Key"] for obj in page.get("Contents", []))
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to list {self.name}/{prefix}: {e}") from e
        LOGGER.debug("Found %d object(s) at %s/%s", len(keys), self.name, prefix)
        return keys

    def get(self, key: str) -> bytes:
        try:
            response = self._client.get_object(Bucket=self.name, Key=key)
            return response["Body"].read()
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in NOT_FOUND_CODES:
                raise NotFoundError(f"{self.name}/{key} doesn't exist") from e
            raise StorageError(f"Failed to get {self.name}/{key}: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"Failed to get {self.name}/{key}: {e}") from e

    def put(self, key: str, data: bytes, content_type: str = "application/octet-stream"):
        if self.dry_run:
            LOGGER.warning("[DRY RUN] Would have uploaded %d bytes to %s", len(data), self.url_for(key))
            return
        LOGGER.info("Uploading to %s", self.url_for(key))
        try:
            self._client.put_object(Bucket=self.name, Key=key, Body=data, ContentType=content_type, ACL=PUBLIC_READ)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to put {self.name}/{key}: {e}") from e

    def copy(self, source_key: str, dest_key: str):
        """Server side copy within the bucket; the copy is publicly readable"""
        if self.dry_run:
            LOGGER.warning("[DRY RUN] Would have copied %s to %s", self.url_for(source_key), dest_key)
            return
        LOGGER.info("PutCopying %s to %s", self.url_for(source_key), dest_key)
        try:
            self._copy_object(source_key, dest_key)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to copy {self.name}/{source_key} to {dest_key}: {e}") from e

    @retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_fixed(5),
        retry=retry_if_exception(is_transient_error),
    )
    def _copy_object(self, source_key: str, dest_key: str):
        self._client.copy_object(
            Bucket=self.name,
            Key=dest_key,
            CopySource={"Bucket": self.name, "Key": source_key},
            ACL=PUBLIC_READ,
        )

    def delete(self, key: str):
        if self.dry_run:
            LOGGER.warning("[DRY RUN] Would have deleted %s", self.url_for(key))
            return
        LOGGER.info("Deleting %s", self.url_for(key))
        try:
            self._client.delete_object(Bucket=self.name, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to delete {self.name}/{key}: {e}") from e
