"""
Version metadata embedded in release artifact file names.

Build artifacts are named ``<app>-<major>.<minor>.<patch>-<timestamp>+<commit>.<ext>``,
e.g. ``Keybase-1.0.18-20161123180232+8a1b2c3.dmg``, where the prerelease slot is a
14 digit UTC timestamp and the build slot is the short commit hash.

Linux packages can't follow that convention: Debian tooling swaps dashes for
underscores and RPM doesn't allow ``-`` or ``+`` in the version field, so those
names are matched with a looser regex instead of strict semver parsing.
"""

import re
from datetime import datetime, timezone
from typing import List, NamedTuple, Optional

from semver import VersionInfo

from releaselib.exceptions import ParseError

TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"
COMMIT_LENGTH = 7
LINUX_PACKAGE_EXTENSIONS = (".deb", ".rpm")
LINUX_VERSION_REGEX = re.compile(r"(\d+\.\d+\.\d+)[-.](\d+)[+.]([A-Za-z0-9]+)")
EXTENSION_REGEX = re.compile(r"\.[A-Za-z][A-Za-z0-9]*$")

# Date of a release whose name couldn't be parsed
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class ParsedName(NamedTuple):
    version: str
    date: datetime
    commit: str


def parse_name(name: str) -> ParsedName:
    """
    Extracts version, publish date and commit from an artifact file name.

    :param name: File name, e.g. "Keybase-1.0.18-20161123180232+8a1b2c3.dmg"
    :return: ParsedName with a "major.minor.patch" version, a UTC datetime and a
             7 character commit ("" when the build metadata isn't a commit)
    :raises ParseError: if the name doesn't follow a known convention
    """
    if name.endswith(LINUX_PACKAGE_EXTENSIONS):
        return parse_linux_name(name)

    match = re.search(r"\d", name)
    if not match:
        raise ParseError(f"No version found in {name}")
    verstr = remove_ext(name[match.start():])

    try:
        sversion = VersionInfo.parse(verstr)
    except ValueError as e:
        raise ParseError(f"Invalid semantic version in {name}: {e}") from e

    prerelease = sversion.prerelease.split(".") if sversion.prerelease else []
    if len(prerelease) != 1:
        raise ParseError(f"Invalid prerelease in {name}")

    commit = " ".join(sversion.build.split(".")) if sversion.build else ""
    # Detect if really a sha commit
    if len(commit) != COMMIT_LENGTH:
        commit = ""

    version = f"{sversion.major}.{sversion.minor}.{sversion.patch}"
    return ParsedName(version, parse_timestamp(prerelease[0]), commit)


def parse_linux_name(name: str) -> ParsedName:
    match = LINUX_VERSION_REGEX.search(name)
    if not match:
        raise ParseError(f"No version found in Linux package {name}")
    version, timestamp, commit = match.groups()
    if len(commit) != COMMIT_LENGTH:
        commit = ""
    return ParsedName(version, parse_timestamp(timestamp), commit)


def parse_timestamp(value: str) -> datetime:
    """Decodes a 14 digit YYYYMMDDhhmmss timestamp as UTC"""
    if len(value) != 14 or not value.isdigit():
        raise ParseError(f"Invalid timestamp {value}")
    try:
        return datetime.strptime(value, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError as e:
        raise ParseError(f"Invalid timestamp {value}: {e}") from e


def render_name(prefix: str, version: str, date: datetime, commit: str = "", ext: str = "") -> str:
    """
    Builds an artifact file name that parse_name() reads back.

    >>> render_name("Keybase", "1.0.18", datetime(2016, 11, 23, 18, 2, 32, tzinfo=timezone.utc), "8a1b2c3", ".dmg")
    'Keybase-1.0.18-20161123180232+8a1b2c3.dmg'
    """
    name = f"{version}-{date.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)}"
    if commit:
        name = f"{name}+{commit}"
    if prefix:
        name = f"{prefix}-{name}"
    return f"{name}{ext}"


def remove_ext(name: str) -> str:
    # only a trailing alphabetic suffix counts, ".18-2016..." is part of the version
    return EXTENSION_REGEX.sub("", name)


def parse_version_string(s: str) -> List[str]:
    """
    Splits a semantic version into [major, minor, patch, prerelease, build].
    Missing prerelease or build parts are returned as empty strings.
    """
    try:
        sversion = VersionInfo.parse(s)
    except ValueError as e:
        raise ParseError(f"Invalid semantic version {s}: {e}") from e

    parsed = [str(sversion.major), str(sversion.minor), str(sversion.patch)]

    prerelease = sversion.prerelease.split(".") if sversion.prerelease else []
    if len(prerelease) > 1:
        raise ParseError("Multiple prerelease not supported")
    parsed.append(prerelease[0] if prerelease else "")

    build = sversion.build.split(".") if sversion.build else []
    if len(build) > 1:
        raise ParseError("Multiple comments not supported")
    parsed.append(build[0] if build else "")

    return parsed


def compare_versions(a: str, b: str) -> int:
    """Returns -1, 0 or 1 as semantic version a is lower than, equal to or greater than b"""
    try:
        return VersionInfo.parse(a).compare(b)
    except ValueError as e:
        raise ParseError(f"Can't compare versions {a!r} and {b!r}: {e}") from e


def published_at_ms(date: datetime) -> int:
    return int(date.timestamp() * 1000)


def from_ms(value: Optional[int]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


def core_version(s: str) -> str:
    """
    Drops prerelease and build metadata: "1.0.18-20161123180232+8a1b2c3" -> "1.0.18".
    Published manifests may carry the full artifact version.
    """
    try:
        return str(VersionInfo.parse(s).finalize_version())
    except ValueError as e:
        raise ParseError(f"Invalid semantic version {s}: {e}") from e
