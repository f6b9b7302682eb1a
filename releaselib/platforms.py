from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from releaselib.exceptions import ConfigError, UnsupportedPlatformError

PLATFORM_TYPE_DARWIN = "darwin"
PLATFORM_TYPE_LINUX = "linux"
PLATFORM_TYPE_WINDOWS = "windows"


class Platform(BaseModel):
    """Where the artifacts of one OS/packaging target live in the bucket"""

    model_config = ConfigDict(frozen=True, extra='forbid')

    name: str
    prefix: str  # e.g. "darwin/"
    prefix_support: str = ''  # holds the per-version update manifests promotion copies from
    suffix: str = ''  # only keys ending with this are artifacts
    latest_name: str  # fixed key the newest artifact is copied to
    # Platform name used in manifest keys; several packaging formats can share one manifest
    update_platform: str = ''
    # When set, "latest" follows the published manifest instead of the newest upload
    latest_file_format: str = ''
    # Every file that belongs to one release, with a {version} placeholder
    release_files: Tuple[str, ...] = ()

    @property
    def manifest_name(self) -> str:
        return self.update_platform or self.name

    @property
    def supports_promotion(self) -> bool:
        return bool(self.prefix_support)

    def files(self, version: str) -> List[str]:
        if not self.release_files:
            raise UnsupportedPlatformError(f"Unsupported for this platform: {self.name}")
        return [f.format(version=version) for f in self.release_files]


DARWIN = Platform(
    name=PLATFORM_TYPE_DARWIN,
    prefix="darwin/",
    prefix_support="darwin-support/",
    latest_name="Keybase.dmg",
    latest_file_format="Keybase-{version}.dmg",
    release_files=(
        "darwin/Keybase-{version}.dmg",
        "darwin-updates/Keybase-{version}.zip",
        "darwin-support/update-darwin-prod-{version}.json",
    ),
)
LINUX_DEB = Platform(
    name="deb",
    prefix="linux_binaries/deb/",
    suffix="_amd64.deb",
    latest_name="keybase_amd64.deb",
    update_platform=PLATFORM_TYPE_LINUX,
)
LINUX_RPM = Platform(
    name="rpm",
    prefix="linux_binaries/rpm/",
    suffix=".x86_64.rpm",
    latest_name="keybase_amd64.rpm",
    update_platform=PLATFORM_TYPE_LINUX,
)
WINDOWS = Platform(
    name=PLATFORM_TYPE_WINDOWS,
    prefix="windows/",
    suffix=".386.exe",
    latest_name="keybase_setup_386.exe",
)

DEFAULT_PLATFORMS = (DARWIN, LINUX_DEB, LINUX_RPM, WINDOWS)
DEFAULT_ALIASES = {PLATFORM_TYPE_LINUX: ("deb", "rpm")}


class PlatformConfig(BaseModel):
    """
    The platforms the tool knows about, built once at startup and handed to
    whatever needs to resolve a platform name.
    """

    model_config = ConfigDict(frozen=True, extra='forbid')

    platforms: Tuple[Platform, ...] = DEFAULT_PLATFORMS
    # a name that expands to several platforms, e.g. linux -> deb, rpm
    aliases: Mapping[str, Tuple[str, ...]] = Field(default_factory=lambda: dict(DEFAULT_ALIASES), validate_default=True)

    @field_validator("aliases", mode="after")
    @classmethod
    def read_only_aliases(cls, aliases):
        return MappingProxyType(dict(aliases))

    @model_validator(mode='after')
    def check_names(self):
        names = [p.name for p in self.platforms]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate platform names in {names}")
        for alias, targets in self.aliases.items():
            unknown = [t for t in targets if t not in names]
            if unknown:
                raise ValueError(f"Alias {alias} refers to unknown platforms {unknown}")
        return self

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]]) -> "PlatformConfig":
        """
        Builds the platform set from the [[platforms]] and [platform_aliases] tables
        of the tool configuration, falling back to the built-in set.
        """
        config = config or {}
        kwargs = {}
        try:
            if config.get("platforms"):
                kwargs["platforms"] = tuple(Platform(**p) for p in config["platforms"])
                kwargs["aliases"] = {}
            if "platform_aliases" in config:
                kwargs["aliases"] = {k: tuple(v) for k, v in config["platform_aliases"].items()}
            return cls(**kwargs)
        except ValidationError as e:
            raise ConfigError(f"Invalid platform configuration: {e}") from e

    def get(self, name: str) -> Platform:
        for platform in self.platforms:
            if platform.name == name:
                return platform
        raise UnsupportedPlatformError(f"Invalid platform {name}")

    def resolve(self, name: str) -> Tuple[Platform, ...]:
        """
        Returns the platforms for a name: "" means all of them, an alias (linux)
        may expand to several.
        """
        if name == "":
            return self.platforms
        if name in self.aliases:
            return tuple(self.get(n) for n in self.aliases[name])
        return (self.get(name),)

    def manifest_names(self) -> List[str]:
        """Distinct platform names used in manifest keys, in declaration order"""
        names = []
        for platform in self.platforms:
            if platform.manifest_name not in names:
                names.append(platform.manifest_name)
        return names
