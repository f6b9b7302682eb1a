import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterable, List, Optional, TextIO, Tuple
from zoneinfo import ZoneInfo

from releaselib import constants
from releaselib.exceptions import ParseError
from releaselib.version import EPOCH, compare_versions, parse_name

LOGGER = logging.getLogger(__name__)

DATE_FORMAT = "%a %b %d %H:%M:%S %Z %Y"


def to_reference_timezone(date: datetime) -> datetime:
    return date.astimezone(ZoneInfo(constants.REFERENCE_TIMEZONE))


@dataclass
class Release:
    """One build artifact found in the bucket"""

    name: str
    key: str
    version: str
    date: datetime  # in the reference timezone
    commit: str
    url: str = ""
    parsed: bool = True  # False when the name didn't parse; date is then the epoch

    @property
    def date_string(self) -> str:
        return self.date.strftime(DATE_FORMAT)


@dataclass
class Section:
    header: str
    releases: List[Release] = field(default_factory=list)


def load_releases(
    keys: Iterable[str],
    prefix: str,
    suffix: str = "",
    truncate: int = 0,
    url_for: Optional[Callable[[str], str]] = None,
) -> List[Release]:
    """
    Turns a bucket listing into releases, most recent first.

    Releases whose name can't be parsed are kept (with an empty version and
    commit and an epoch date) so they still show up when inspecting a bucket.

    :param keys: Object keys listed under prefix
    :param prefix: Listing prefix, stripped from keys to get release names
    :param suffix: Only keys ending with suffix are releases
    :param truncate: Keep only this many most recent releases (0 keeps all)
    :param url_for: Builds the public URL of a key
    """
    releases = []
    for key in keys:
        if not key.endswith(suffix):
            continue
        name = key[len(prefix):] if key.startswith(prefix) else key
        if name == constants.INDEX_HTML:
            continue
        try:
            version, date, commit = parse_name(name)
            parsed = True
        except ParseError as e:
            LOGGER.warning("Couldn't get version from name: %s (%s)", name, e)
            version, date, commit = "", EPOCH, ""
            parsed = False
        releases.append(
            Release(
                name=name,
                key=key,
                url=url_for(key) if url_for else "",
                version=version,
                date=to_reference_timezone(date),
                commit=commit,
                parsed=parsed,
            )
        )

    # sorted() is stable, releases with the same date keep listing order
    releases = sorted(releases, key=lambda r: r.date, reverse=True)
    if truncate > 0 and len(releases) > truncate:
        releases = releases[:truncate]
    return releases


def check_release_order(releases: List[Release]) -> List[Tuple[Release, Release]]:
    """
    Returns the pairs of (more recent, older) releases whose versions go down
    over time. Time order and version order are expected to agree; a non-empty
    result means something was uploaded out of order.
    """
    parsed = [r for r in releases if r.parsed]
    inversions = []
    for newer, older in zip(parsed, parsed[1:]):
        if compare_versions(newer.version, older.version) < 0:
            LOGGER.warning(
                "%s (%s) is more recent than %s (%s) but has a lower version",
                newer.name,
                newer.version,
                older.name,
                older.version,
            )
            inversions.append((newer, older))
    return inversions


def write_release_table(sections: Iterable[Section], writer: TextIO):
    for section in sections:
        writer.write(f"{section.header}\n")
        if not section.releases:
            writer.write("  (no releases)\n")
            continue
        width = max(len(r.name) for r in section.releases)
        for release in section.releases:
            commit_url = constants.GITHUB_COMMIT_URL_FORMAT.format(commit=release.commit) if release.commit else ""
            line = f"  {release.name.ljust(width)}  {release.version or '?':<10} {release.date_string}  {commit_url}"
            writer.write(line.rstrip() + "\n")
