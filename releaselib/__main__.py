import sys
from typing import Optional, Sequence

from releaselib.cli import cli
from releaselib.exceptions import ReleaseToolError
from releaselib.format_util import red_print
from releaselib.pipelines import (
    github_release,
    kbweb,
    promote,
    releases,
    update_json,
    versions,
)


def main(args: Optional[Sequence[str]] = None):
    try:
        # pylint: disable=no-value-for-parameter
        cli(args)
    except ReleaseToolError as ex:
        # Tool errors exit non-zero with a message instead of a stack trace
        red_print(str(ex))
        sys.exit(1)


if __name__ == "__main__":
    main()
