import platform

import click

from releaselib.cli import cli, pass_runtime
from releaselib.format_util import cprint
from releaselib.runtime import Runtime
from releaselib.version import parse_name, parse_version_string


@cli.command("version-parse", short_help="Parse a semantic version string")
@click.argument("version")
@pass_runtime
def version_parse(runtime: Runtime, version: str):
    """Prints major, minor, patch, prerelease and build of VERSION, one per line"""
    for part in parse_version_string(version):
        cprint(part)


@cli.command("parse-name", short_help="Get version, date and commit from an artifact file name")
@click.argument("name")
@pass_runtime
def parse_name_cmd(runtime: Runtime, name: str):
    version, date, commit = parse_name(name)
    cprint(version)
    cprint(date.isoformat())
    cprint(commit)


@cli.command("platform", short_help="Get the OS platform name")
def platform_cmd():
    cprint(platform.system().lower())
