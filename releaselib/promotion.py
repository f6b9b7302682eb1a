"""
Promotion of uploaded builds to the update channels.

All state lives in the bucket: each attempt lists the platform's artifacts,
picks a candidate, reads the manifest currently published for the target and
only then decides whether to overwrite it. Nothing is cached between runs.
Two concurrent runs against the same target can both decide to promote; the
last copy wins.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import List, Optional, TextIO, Tuple

from releaselib import constants
from releaselib.catalog import DATE_FORMAT, Release, load_releases, to_reference_timezone
from releaselib.exceptions import (
    ArgumentError,
    BrokenReleaseError,
    NotFoundError,
    ReleaseToolError,
    UnsupportedPlatformError,
)
from releaselib.logutil import get_entity_logger
from releaselib.manifest import Update, decode_update, support_json_name, update_json_name
from releaselib.platforms import Platform, PlatformConfig
from releaselib.s3 import Bucket
from releaselib.version import compare_versions, core_version

LOGGER = logging.getLogger(__name__)


class Predicate(ABC):
    """Selects the release to promote out of a platform's catalog"""

    @abstractmethod
    def matches(self, release: Release) -> bool:
        pass

    @abstractmethod
    def describe(self) -> str:
        pass


@dataclass(frozen=True)
class FirstMatch(Predicate):
    """
    The most recent release that is at least `delay` old and was published
    before `before_hour` (reference timezone). Zero disables either rule.
    """

    delay: timedelta = timedelta(0)
    before_hour: int = 0
    now: Optional[datetime] = None

    def matches(self, release: Release) -> bool:
        if self.delay:
            now = self.now or datetime.now(timezone.utc)
            age = now - release.date
            if age < self.delay:
                LOGGER.debug("Skipping %s, too new (%s < %s)", release.name, age, self.delay)
                return False
        if self.before_hour:
            hour = to_reference_timezone(release.date).hour
            if hour >= self.before_hour:
                LOGGER.debug("Skipping %s, published at hour %d, cutoff is %d", release.name, hour, self.before_hour)
                return False
        return True

    def describe(self) -> str:
        return f"delay {self.delay}, before hour {self.before_hour}"


@dataclass(frozen=True)
class ExactName(Predicate):
    name: str

    def matches(self, release: Release) -> bool:
        return release.name == self.name

    def describe(self) -> str:
        return f"name {self.name}"


@dataclass(frozen=True)
class ExactVersion(Predicate):
    version: str

    def matches(self, release: Release) -> bool:
        return release.version == self.version

    def describe(self) -> str:
        return f"version {self.version}"


@dataclass(frozen=True)
class PromotionTarget:
    bucket: Bucket
    platform: Platform
    channel: str = constants.PUBLIC_CHANNEL
    env: str = constants.DEFAULT_ENV

    @property
    def update_json_name(self) -> str:
        return update_json_name(self.channel, self.platform.manifest_name, self.env)


class PromotionStatus(Enum):
    NOT_FOUND = "not found"  # no release satisfied the predicate
    UNCHANGED = "unchanged"  # the release is already published
    OLDER = "older"  # the release is older than the published one, never demote
    PROMOTED = "promoted"


@dataclass
class PromotionResult:
    status: PromotionStatus
    target: PromotionTarget
    release: Optional[Release] = None
    current_version: Optional[str] = None
    dry_run: bool = False

    @property
    def promoted(self) -> bool:
        return self.status is PromotionStatus.PROMOTED


@dataclass
class ReportRow:
    platform: str
    type: str
    version: str
    created: str


class ReleaseClient:
    """Catalog and promotion operations on one bucket"""

    def __init__(self, bucket: Bucket, platform_config: Optional[PlatformConfig] = None):
        self.bucket = bucket
        self.platform_config = platform_config or PlatformConfig()

    def target(
        self, platform: Platform, channel: str = constants.PUBLIC_CHANNEL, env: str = constants.DEFAULT_ENV
    ) -> PromotionTarget:
        return PromotionTarget(bucket=self.bucket, platform=platform, channel=channel, env=env)

    def releases(self, platform: Platform, truncate: int = 0) -> List[Release]:
        keys = self.bucket.list(platform.prefix)
        return load_releases(keys, platform.prefix, platform.suffix, truncate=truncate, url_for=self.bucket.url_for)

    def find_release(self, platform: Platform, predicate: Predicate) -> Optional[Release]:
        """First release, most recent first, satisfying predicate. Unparsed names are never candidates."""
        for release in self.releases(platform):
            if not release.parsed:
                continue
            if predicate.matches(release):
                return release
        return None

    def current_update(
        self, channel: str, platform_name: str, env: str = constants.DEFAULT_ENV
    ) -> Tuple[Optional[Update], str]:
        """
        Reads the manifest published for a channel.

        :param platform_name: Platform name used in manifest keys
        :return: (update, key); update is None when no manifest exists at key
        :raises DecodeError: if a manifest exists but is malformed
        """
        key = update_json_name(channel, platform_name, env)
        try:
            data = self.bucket.get(key)
        except NotFoundError:
            LOGGER.info("No update manifest at %s", key)
            return None, key
        return decode_update(data), key

    def promote_release(self, target: PromotionTarget, predicate: Predicate) -> PromotionResult:
        """
        Publishes the release selected by predicate on target unless the same
        or a newer version is already published there. The only write is a
        single copy of the release's support manifest over the target manifest.
        """
        platform = target.platform
        logger = get_entity_logger(LOGGER, platform.name)
        if not platform.supports_promotion:
            raise UnsupportedPlatformError(f"Promotion is not supported for {platform.name}")

        release = self.find_release(platform, predicate)
        if release is None:
            logger.info("No matching release found (%s)", predicate.describe())
            return PromotionResult(PromotionStatus.NOT_FOUND, target, dry_run=self.bucket.dry_run)
        logger.info("Found release %s (%s), %s", release.name, release.date_string, release.version)

        current, key = self.current_update(target.channel, platform.manifest_name, target.env)
        current_version = None
        if current is None:
            logger.info("No current update at %s, promoting %s", key, release.version)
        else:
            current_version = current.version
            logger.info("Current update is %s", current_version)
            result = compare_versions(release.version, core_version(current_version))
            if result == 0:
                logger.info("Release is already published, nothing to do")
                return PromotionResult(
                    PromotionStatus.UNCHANGED, target, release, current_version, dry_run=self.bucket.dry_run
                )
            if result < 0:
                logger.warning("Found an older release %s than the current %s, skipping", release.version, current_version)
                return PromotionResult(
                    PromotionStatus.OLDER, target, release, current_version, dry_run=self.bucket.dry_run
                )

        source = platform.prefix_support + support_json_name(platform.manifest_name, target.env, release.version)
        logger.info("Promoting %s to %s", release.version, key)
        self.bucket.copy(source, key)
        return PromotionResult(PromotionStatus.PROMOTED, target, release, current_version, dry_run=self.bucket.dry_run)

    def promote_releases(
        self,
        platform_name: str,
        delay: timedelta = constants.DEFAULT_PROMOTION_DELAY,
        before_hour: int = constants.DEFAULT_PROMOTION_BEFORE_HOUR,
        env: str = constants.DEFAULT_ENV,
        now: Optional[datetime] = None,
    ) -> List[PromotionResult]:
        """Scheduled promotion to the public channel"""
        predicate = FirstMatch(delay=delay, before_hour=before_hour, now=now or datetime.now(timezone.utc))
        results = []
        for platform in self.platform_config.resolve(platform_name):
            if not platform.supports_promotion:
                LOGGER.info("Promoting releases is unsupported for %s", platform.name)
                continue
            results.append(self.promote_release(self.target(platform, constants.PUBLIC_CHANNEL, env), predicate))
        return results

    def promote_test_releases(self, platform_name: str, env: str = constants.DEFAULT_ENV) -> List[str]:
        """
        Makes the newest build available to testers. Platforms without per-version
        manifests get the public manifest copied to the test channel instead.

        :return: Test channel keys that were written
        """
        written = []
        copied = set()
        for platform in self.platform_config.resolve(platform_name):
            if platform.supports_promotion:
                result = self.promote_release(self.target(platform, constants.TEST_CHANNEL, env), FirstMatch())
                if result.promoted:
                    written.append(result.target.update_json_name)
            elif platform.manifest_name not in copied:
                copied.add(platform.manifest_name)
                written.append(self.copy_update_json(constants.TEST_CHANNEL, platform.manifest_name, env))
        return written

    def promote_a_release(
        self,
        platform_name: str,
        version: Optional[str] = None,
        name: Optional[str] = None,
        env: str = constants.DEFAULT_ENV,
        channel: str = constants.PUBLIC_CHANNEL,
    ) -> List[PromotionResult]:
        """Manual promotion of one release, picked by exact version or exact name"""
        if bool(version) == bool(name):
            raise ArgumentError("Exactly one of version or name is required")
        predicate = ExactVersion(version) if version else ExactName(name)
        results = []
        for platform in self.platform_config.resolve(platform_name):
            result = self.promote_release(self.target(platform, channel, env), predicate)
            if result.status is PromotionStatus.NOT_FOUND:
                raise NotFoundError(f"No release found for {platform.name} with {predicate.describe()}")
            results.append(result)
        return results

    def copy_update_json(self, channel: str, platform_name: str, env: str = constants.DEFAULT_ENV) -> str:
        """Copies the public manifest of a platform to channel; returns the destination key"""
        source = update_json_name(constants.PUBLIC_CHANNEL, platform_name, env)
        dest = update_json_name(channel, platform_name, env)
        self.bucket.copy(source, dest)
        return dest

    def copy_latest(self, platform_name: str, env: str = constants.DEFAULT_ENV) -> List[str]:
        """
        Points each platform's fixed "latest" key at its newest artifact. Platforms
        with a latest_file_format follow the published manifest instead, so the
        download link never runs ahead of what updaters are offered.

        :return: Keys that were copied to their latest name
        """
        copied = []
        for platform in self.platform_config.resolve(platform_name):
            logger = get_entity_logger(LOGGER, platform.name)
            if platform.latest_file_format:
                current, key = self.current_update(constants.PUBLIC_CHANNEL, platform.manifest_name, env)
                if current is None:
                    raise NotFoundError(f"No latest for {platform.name} at {key}")
                source = platform.prefix + platform.latest_file_format.format(version=current.version)
            else:
                releases = self.releases(platform, truncate=1)
                if not releases:
                    logger.warning("No releases under %s, nothing to copy", platform.prefix)
                    continue
                source = releases[0].key
            logger.info("Copying latest %s to %s", source, platform.latest_name)
            self.bucket.copy(source, platform.latest_name)
            copied.append(source)
        return copied

    def mark_broken(self, version: str, platform_name: str) -> List[str]:
        """
        Moves every file of a release under broken/. A failed copy leaves the
        original in place; the remaining files are still moved and all
        failures are raised together at the end.

        Every platform's files are resolved before the first copy. A platform
        without release files is recorded as a failure while the others are
        still moved; if no platform has any, nothing is touched.

        :return: Paths that were removed
        :raises UnsupportedPlatformError: if none of the platforms has release files
        :raises BrokenReleaseError: if any platform, copy or delete failed
        """
        removed = []
        errors = []
        moves = []
        for platform in self.platform_config.resolve(platform_name):
            try:
                moves.append((platform, platform.files(version)))
            except UnsupportedPlatformError as e:
                errors.append(e)
        if not moves:
            raise errors[0]
        for platform, paths in moves:
            logger = get_entity_logger(LOGGER, platform.name)
            for path in paths:
                dest = constants.BROKEN_PREFIX + path
                try:
                    self.bucket.copy(path, dest)
                except ReleaseToolError as e:
                    logger.error("Failed to copy %s to %s: %s", path, dest, e)
                    errors.append(e)
                    continue
                try:
                    self.bucket.delete(path)
                except ReleaseToolError as e:
                    logger.error("Failed to delete %s: %s", path, e)
                    errors.append(e)
                    continue
                removed.append(path)
        if errors:
            raise BrokenReleaseError(errors, removed)
        return removed

    def report(self, env: str = constants.DEFAULT_ENV) -> List[ReportRow]:
        """The versions currently published on the public and test channels"""
        rows = []
        for platform_name in self.platform_config.manifest_names():
            for channel, channel_type in ((constants.TEST_CHANNEL, "Test"), (constants.PUBLIC_CHANNEL, "Public")):
                try:
                    update, _ = self.current_update(channel, platform_name, env)
                except ReleaseToolError as e:
                    LOGGER.error("Couldn't read the %s update for %s: %s", channel_type, platform_name, e)
                    rows.append(ReportRow(platform_name, channel_type, "Error", str(e).splitlines()[0]))
                    continue
                if update is None:
                    continue
                created = ""
                if update.published_at:
                    created = to_reference_timezone(update.published_at).strftime(DATE_FORMAT)
                rows.append(ReportRow(platform_name, channel_type, update.version, created))
        return rows


def write_report(rows: List[ReportRow], writer: TextIO):
    header = ReportRow("Platform", "Type", "Version", "Created")
    table = [header] + rows
    widths = [max(len(getattr(r, f)) for r in table) for f in ("platform", "type", "version")]
    for row in table:
        line = "  ".join(
            [row.platform.ljust(widths[0]), row.type.ljust(widths[1]), row.version.ljust(widths[2]), row.created]
        )
        writer.write(line.rstrip() + "\n")
