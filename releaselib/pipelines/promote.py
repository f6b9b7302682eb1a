from datetime import timedelta
from typing import List, Optional

import click

from releaselib import constants
from releaselib.cli import cli, pass_runtime
from releaselib.exceptions import BrokenReleaseError
from releaselib.format_util import cprint, green_print, yellow_print
from releaselib.promotion import PromotionResult, PromotionStatus
from releaselib.runtime import Runtime


def print_results(runtime: Runtime, results: List[PromotionResult], notify_kbweb: bool = False):
    """Prints the outcome of each promotion and tells kbweb about new public releases when asked to"""
    kbweb = runtime.new_kbweb_client() if notify_kbweb else None
    for result in results:
        platform = result.target.platform.name
        if result.status is PromotionStatus.NOT_FOUND:
            yellow_print(f"{platform}: no matching release")
            continue
        if not result.promoted:
            cprint(f"{platform}: {result.release.version} not promoted ({result.status.value}), "
                   f"current is {result.current_version}")
            continue
        prefix = "[DRY RUN] " if result.dry_run else ""
        green_print(f"{prefix}{platform}: promoted {result.release.name} to {result.target.update_json_name}")
        if kbweb and result.target.channel == constants.PUBLIC_CHANNEL:
            kbweb.promote_build(result.release.version, result.target.platform.manifest_name, dry_run=runtime.dry_run)


@cli.command("promote-releases", short_help="Promote the newest eligible releases to the public channel")
@click.option("--bucket-name", required=True, help="Bucket name")
@click.option("--platform", default="", help="Platform (darwin, linux, windows...); all by default")
@click.option("--delay", default=int(constants.DEFAULT_PROMOTION_DELAY.total_seconds() // 3600), show_default=True,
              type=int, help="Minimum age of a release, in hours (0 for none)")
@click.option("--before-hour", default=constants.DEFAULT_PROMOTION_BEFORE_HOUR, show_default=True, type=int,
              help=f"Only releases published before this hour ({constants.REFERENCE_TIMEZONE}) qualify (0 for any)")
@click.option("--env", default=constants.DEFAULT_ENV, show_default=True, help="Environment")
@click.option("--notify-kbweb", is_flag=True, help="Mark promoted builds as released on the keybase.io API")
@pass_runtime
def promote_releases(
    runtime: Runtime, bucket_name: str, platform: str, delay: int, before_hour: int, env: str, notify_kbweb: bool
):
    if not 0 <= before_hour <= 24:
        raise click.BadParameter(f"Invalid hour {before_hour}", param_hint="--before-hour")
    client = runtime.new_release_client(bucket_name)
    results = client.promote_releases(platform, delay=timedelta(hours=delay), before_hour=before_hour, env=env)
    print_results(runtime, results, notify_kbweb)


@cli.command("promote-test-releases", short_help="Promote the newest releases to the test channel")
@click.option("--bucket-name", required=True, help="Bucket name")
@click.option("--platform", default="", help="Platform (darwin, linux, windows...); all by default")
@click.option("--env", default=constants.DEFAULT_ENV, show_default=True, help="Environment")
@pass_runtime
def promote_test_releases(runtime: Runtime, bucket_name: str, platform: str, env: str):
    for key in runtime.new_release_client(bucket_name).promote_test_releases(platform, env):
        green_print(f"Updated {key}")


@cli.command("promote-a-release", short_help="Promote a specific release")
@click.option("--bucket-name", required=True, help="Bucket name")
@click.option("--platform", required=True, help="Platform (darwin...)")
@click.option("--release", "version", default=None, help="Version of the release to promote, e.g. 1.2.3")
@click.option("--name", default=None, help="File name of the release to promote")
@click.option("--channel", default=constants.PUBLIC_CHANNEL, help="Channel, the public one by default")
@click.option("--env", default=constants.DEFAULT_ENV, show_default=True, help="Environment")
@click.option("--notify-kbweb", is_flag=True, help="Mark the build as released on the keybase.io API")
@pass_runtime
def promote_a_release(
    runtime: Runtime,
    bucket_name: str,
    platform: str,
    version: Optional[str],
    name: Optional[str],
    channel: str,
    env: str,
    notify_kbweb: bool,
):
    if bool(version) == bool(name):
        raise click.UsageError("Exactly one of --release or --name is required")
    client = runtime.new_release_client(bucket_name)
    results = client.promote_a_release(platform, version=version, name=name, env=env, channel=channel)
    print_results(runtime, results, notify_kbweb)


@cli.command("copy-latest", short_help="Copy the newest release of each platform to its latest name")
@click.option("--bucket-name", required=True, help="Bucket name")
@click.option("--platform", default="", help="Platform (darwin, linux, windows...); all by default")
@click.option("--env", default=constants.DEFAULT_ENV, show_default=True, help="Environment")
@pass_runtime
def copy_latest(runtime: Runtime, bucket_name: str, platform: str, env: str):
    for key in runtime.new_release_client(bucket_name).copy_latest(platform, env):
        green_print(f"Copied {key}")


@cli.command("broken-release", short_help="Move the files of a broken release out of the way")
@click.option("--release", "version", required=True, help="Version of the broken release")
@click.option("--bucket-name", required=True, help="Bucket name")
@click.option("--platform", required=True, help="Platform (darwin...)")
@pass_runtime
def broken_release(runtime: Runtime, version: str, bucket_name: str, platform: str):
    try:
        removed = runtime.new_release_client(bucket_name).mark_broken(version, platform)
    except BrokenReleaseError as e:
        for path in e.removed:
            green_print(f"Removed {path}")
        raise
    for path in removed:
        green_print(f"Removed {path}")
