import sys

import click

from releaselib import constants
from releaselib.catalog import Section, check_release_order, write_release_table
from releaselib.cli import cli, pass_runtime
from releaselib.format_util import cprint, red_print, yellow_print
from releaselib.promotion import write_report
from releaselib.runtime import Runtime


@cli.command("list-releases", short_help="List the releases of a bucket, most recent first")
@click.option("--bucket-name", required=True, help="Bucket name")
@click.option("--platform", default="", help="Platform (darwin, linux, windows...); all by default")
@click.option("--limit", default=constants.DEFAULT_LIST_LIMIT, show_default=True, type=int,
              help="Releases to show per platform, 0 for all")
@click.option("--check-order", is_flag=True,
              help="Fail if a more recent release has a lower version than an older one")
@pass_runtime
def list_releases(runtime: Runtime, bucket_name: str, platform: str, limit: int, check_order: bool):
    client = runtime.new_release_client(bucket_name)
    sections = []
    inversions = []
    for p in runtime.platform_config.resolve(platform):
        releases = client.releases(p, truncate=limit)
        sections.append(Section(header=f"{p.name} ({client.bucket.url_for(p.prefix)})", releases=releases))
        if check_order:
            inversions.extend(check_release_order(releases))
    write_release_table(sections, sys.stdout)

    if inversions:
        for newer, older in inversions:
            red_print(f"{newer.name} is more recent than {older.name} but has a lower version")
        sys.exit(1)


@cli.command("current-update", short_help="Show the update manifest published for a channel")
@click.option("--bucket-name", required=True, help="Bucket name")
@click.option("--platform", required=True, help="Platform name used in manifest names (darwin, linux, windows)")
@click.option("--channel", default=constants.PUBLIC_CHANNEL, help="Channel, the public one by default")
@click.option("--env", default=constants.DEFAULT_ENV, show_default=True, help="Environment")
@pass_runtime
def current_update(runtime: Runtime, bucket_name: str, platform: str, channel: str, env: str):
    client = runtime.new_release_client(bucket_name)
    update, key = client.current_update(channel, platform, env)
    if update is None:
        yellow_print(f"No update manifest at {key}")
        return
    cprint(update.model_dump_json(indent=2, exclude_none=True))


@cli.command("report", short_help="Report the versions published on the public and test channels")
@click.option("--bucket-name", required=True, help="Bucket name")
@click.option("--env", default=constants.DEFAULT_ENV, show_default=True, help="Environment")
@pass_runtime
def report(runtime: Runtime, bucket_name: str, env: str):
    rows = runtime.new_release_client(bucket_name).report(env)
    write_report(rows, sys.stdout)
