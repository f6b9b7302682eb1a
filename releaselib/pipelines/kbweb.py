import click

from releaselib.cli import cli, pass_runtime
from releaselib.format_util import cprint, green_print
from releaselib.runtime import Runtime


@cli.command("announce-build", short_help="Tell the API server about a new build")
@click.option("--build-a", required=True, help="The first build")
@click.option("--build-b", required=True, help="The second build")
@click.option("--platform", required=True, help="Platform (darwin, linux, windows)")
@pass_runtime
def announce_build(runtime: Runtime, build_a: str, build_b: str, platform: str):
    """The builds are not enrolled in smoke testing"""
    if runtime.dry_run:
        runtime.logger.warning("[DRY RUN] Would have announced %s and %s for %s", build_a, build_b, platform)
        return
    runtime.new_kbweb_client().announce_build(build_a, build_b, platform)
    green_print("Success.")


@cli.command("set-build-in-testing", short_help="Enroll or unenroll a build in smoke testing")
@click.option("--build-a", required=True, help="The build")
@click.option("--platform", required=True, help="Platform (darwin, linux, windows)")
@click.option("--enable", "in_testing", type=click.Choice(["1", "0"]), default="1", show_default=True,
              help="1 enrolls the build, 0 unenrolls it")
@click.option("--max-testers", default=0, type=int, show_default=True, help="Maximum number of testers")
@pass_runtime
def set_build_in_testing(runtime: Runtime, build_a: str, platform: str, in_testing: str, max_testers: int):
    if runtime.dry_run:
        runtime.logger.warning("[DRY RUN] Would have set in_testing=%s for %s on %s", in_testing, build_a, platform)
        return
    runtime.new_kbweb_client().set_build_in_testing(build_a, platform, in_testing, max_testers)
    green_print("Success.")


@cli.command("next-build-number", short_help="Allocate the next Windows build number for a version")
@click.option("--version", "version", required=True, help="Version, e.g. 1.0.18")
@pass_runtime
def next_build_number(runtime: Runtime, version: str):
    cprint(runtime.new_kbweb_client().next_build_number(version))
