import platform
from typing import Optional

import click

from releaselib.cli import cli, pass_runtime
from releaselib.exceptions import NotFoundError
from releaselib.format_util import cprint
from releaselib.github import tag
from releaselib.runtime import Runtime


@cli.command("latest-version", short_help="Get latest version of a GitHub repo")
@click.option("--user", required=True, help="GitHub user")
@click.option("--repo", required=True, help="Repository name")
@pass_runtime
def latest_version(runtime: Runtime, user: str, repo: str):
    cprint(runtime.new_github_client().latest_tag(user, repo))


@cli.command("url", short_help="Get the GitHub release URL for a repo")
@click.option("--user", required=True, help="GitHub user")
@click.option("--repo", required=True, help="Repository name")
@click.option("--version", "version", required=True, help="Version")
@pass_runtime
def url(runtime: Runtime, user: str, repo: str, version: str):
    try:
        release = runtime.new_github_client().release_of_tag(user, repo, tag(version))
    except NotFoundError:
        # no release yet prints nothing
        runtime.logger.info("No release for %s", tag(version))
        return
    cprint(release.url)


@cli.command("create", short_help="Create a GitHub release")
@click.option("--repo", required=True, help="Repository name")
@click.option("--version", "version", required=True, help="Version")
@pass_runtime
def create(runtime: Runtime, repo: str, version: str):
    if runtime.dry_run:
        runtime.logger.warning("[DRY RUN] Would have created release %s in %s", tag(version), repo)
        return
    runtime.new_github_client(token_required=True).create_release(repo, tag(version), tag(version))


@cli.command("upload", short_help="Upload a file to a GitHub release")
@click.option("--repo", required=True, help="Repository name")
@click.option("--version", "version", required=True, help="Version")
@click.option("--src", required=True, type=click.Path(exists=True, dir_okay=False), help="Source file")
@click.option("--dest", default=None, help="Destination file name (source name by default)")
@pass_runtime
def upload(runtime: Runtime, repo: str, version: str, src: str, dest: Optional[str]):
    dest = dest or src
    if runtime.dry_run:
        runtime.logger.warning("[DRY RUN] Would have uploaded %s as %s (%s)", src, dest, tag(version))
        return
    runtime.new_github_client(token_required=True).upload(repo, tag(version), dest, src)


@cli.command("download", short_help="Download a file from a GitHub release")
@click.option("--repo", required=True, help="Repository name")
@click.option("--version", "version", required=True, help="Version")
@click.option("--src", default=None, help="Asset name (keybase-<version>-<os>.tgz by default)")
@pass_runtime
def download(runtime: Runtime, repo: str, version: str, src: Optional[str]):
    src = src or f"keybase-{version}-{platform.system().lower()}.tgz"
    runtime.logger.info("Downloading %s (%s)", src, tag(version))
    cprint(runtime.new_github_client().download_asset(repo, tag(version), src))
