"""
Update manifests (update.json) read by the desktop updaters.

The manifest published for a platform, environment and channel lives at the
bucket root; promotion overwrites it with a per-version manifest kept under the
platform's support prefix.
"""

import hashlib
import logging
import os
from datetime import datetime
from typing import Dict, Optional
from urllib.parse import quote_plus

from pydantic import BaseModel, ConfigDict, ValidationError

from releaselib.exceptions import DecodeError, DigestError, FileReadError, ParseError
from releaselib.version import from_ms, parse_name, published_at_ms

LOGGER = logging.getLogger(__name__)

DIGEST_CHUNK_SIZE = 1024 * 1024


class StrictBaseModel(BaseModel):
    # do not allow extra fields
    model_config = ConfigDict(extra='forbid')


class Asset(StrictBaseModel):
    name: str
    url: str
    digest: str  # hex encoded SHA-256 of the asset
    signature: Optional[str] = None  # content of the detached signature
    installerCodes: Optional[Dict[str, str]] = None  # e.g. Windows product/upgrade codes
    localPath: Optional[str] = None


class Update(StrictBaseModel):
    version: str
    name: str
    description: Optional[str] = None
    instructions: Optional[str] = None
    type: int = 0
    publishedAt: Optional[int] = None  # milliseconds since the Unix epoch
    props: Optional[Dict[str, str]] = None
    # an update without an asset is announced but not yet available
    asset: Optional[Asset] = None

    @property
    def published_at(self) -> Optional[datetime]:
        return from_ms(self.publishedAt)


def update_json_name(channel: str, platform_name: str, env: str) -> str:
    """Key of the manifest published for a channel ("" is the public channel)"""
    if channel == "":
        return f"update-{platform_name}-{env}.json"
    return f"update-{platform_name}-{env}-{channel}.json"


def support_json_name(platform_name: str, env: str, version: str) -> str:
    """Name of the manifest kept for one version under the platform's support prefix"""
    return f"update-{platform_name}-{env}-{version}.json"


def encode_update(
    version: str,
    name: str,
    description: Optional[str] = None,
    src: Optional[str] = None,
    uri: Optional[str] = None,
    signature: Optional[str] = None,
) -> bytes:
    """
    Builds the JSON manifest for a release.

    :param version: Release version
    :param name: Release name, usually the tag (v1.2.3)
    :param description: Path of a file holding the release description
    :param src: Path of the asset; only used together with uri
    :param uri: Base URI the asset is published under
    :param signature: Path of the asset's detached signature
    """
    update = Update(version=version, name=name)

    if description:
        update.description = read_file(description)

    if src and uri:
        file_name = os.path.basename(src)
        update.publishedAt = published_at_for(src)
        asset = Asset(
            name=file_name,
            url=f"{uri.rstrip('/')}/{quote_plus(file_name)}",
            digest=digest(src),
        )
        if signature:
            asset.signature = read_file(signature)
        update.asset = asset

    return update.model_dump_json(indent=2, exclude_none=True).encode()


def decode_update(data: bytes) -> Update:
    """Strictly decodes a manifest; anything but a complete, valid document is an error"""
    try:
        return Update.model_validate_json(data)
    except ValidationError as e:
        raise DecodeError(f"Invalid update manifest: {e}") from e


def published_at_for(src: str) -> int:
    """
    Versions in artifact names carry their build time. Manually named files
    don't, so fall back to the file's modification time.
    """
    try:
        _, date, _ = parse_name(os.path.basename(src))
        return published_at_ms(date)
    except ParseError as e:
        LOGGER.info("Using modification time of %s as publish time: %s", src, e)
    try:
        return int(os.stat(src).st_mtime * 1000)
    except OSError as e:
        raise FileReadError(f"Couldn't stat {src}: {e}") from e


def digest(path: str) -> str:
    """Hex encoded SHA-256 of a file, read in chunks"""
    hasher = hashlib.sha256()
    try:
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(DIGEST_CHUNK_SIZE), b""):
                hasher.update(chunk)
    except OSError as e:
        raise DigestError(f"Error creating digest for {path}: {e}") from e
    return hasher.hexdigest()


def read_file(path: str) -> str:
    try:
        with open(path, "r") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise FileReadError(f"Couldn't read {path}: {e}") from e
