from typing import Optional

import click

from releaselib.cli import cli, pass_runtime
from releaselib.format_util import cprint
from releaselib.github import tag
from releaselib.manifest import encode_update
from releaselib.runtime import Runtime


@cli.command("update-json", short_help="Generate update.json file for updater")
@click.option("--version", "version", required=True, help="Version")
@click.option("--src", default=None, type=click.Path(exists=True, dir_okay=False), help="Source file")
@click.option("--uri", default=None, help="URI for location of files")
@click.option("--signature", default=None, type=click.Path(exists=True, dir_okay=False),
              help="Signature file of the source file")
@click.option("--description", default=None, type=click.Path(exists=True, dir_okay=False),
              help="File holding the release description")
@pass_runtime
def update_json(
    runtime: Runtime,
    version: str,
    src: Optional[str],
    uri: Optional[str],
    signature: Optional[str],
    description: Optional[str],
):
    """Prints the manifest of release VERSION to stdout"""
    if signature and not (src and uri):
        raise click.UsageError("--signature requires --src and --uri")
    data = encode_update(version, tag(version), description=description, src=src, uri=uri, signature=signature)
    cprint(data)
