from typing import Iterable, List


class ReleaseToolError(Exception):
    """Base class of every error the release tool reports to its caller"""

    pass


class ParseError(ReleaseToolError):
    """A file name or version string matches no recognized convention"""

    pass


class NotFoundError(ReleaseToolError):
    """A release, manifest or asset that was looked up does not exist"""

    pass


class StorageError(ReleaseToolError):
    """Listing, reading, copying or deleting an object failed"""

    pass


class FileReadError(ReleaseToolError):
    pass


class DigestError(ReleaseToolError):
    pass


class DecodeError(ReleaseToolError):
    """A manifest is present but is not a valid update document"""

    pass


class UnsupportedPlatformError(ReleaseToolError):
    pass


class APIError(ReleaseToolError):
    """The kbweb or build number API answered with a failure"""

    pass


class ConfigError(ReleaseToolError):
    """A required setting or credential is missing or invalid"""

    pass


class ArgumentError(ReleaseToolError):
    pass


class CombinedError(ReleaseToolError):
    """
    Aggregates the failures of an operation that keeps going after an error,
    e.g. moving every file of a broken release.
    """

    def __init__(self, errors: Iterable[Exception]):
        self.errors: List[Exception] = [e for e in errors if e is not None]
        if len(self.errors) == 1:
            message = str(self.errors[0])
        else:
            message = "There were multiple errors: {}".format("; ".join(str(e) for e in self.errors))
        super().__init__(message)


class BrokenReleaseError(CombinedError):
    """Some files of a broken release could not be moved; ``removed`` lists the ones that were"""

    def __init__(self, errors: Iterable[Exception], removed: Iterable[str] = ()):
        super().__init__(errors)
        self.removed: List[str] = list(removed)
