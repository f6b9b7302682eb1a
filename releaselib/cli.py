import logging
import sys
from pathlib import Path
from typing import Optional

import click

from releaselib import __version__, constants
from releaselib.runtime import Runtime

pass_runtime = click.make_pass_decorator(Runtime)

# -v selects INFO, -vv and more DEBUG
LOG_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG)


def print_version(ctx, param, value):
    if not value or ctx.resilient_parsing:
        return
    click.echo('release-tools v{}'.format(__version__))
    click.echo('Python v{}'.format(sys.version))
    ctx.exit()


# ============================================================================
# GLOBAL OPTIONS: parameters for all commands
# ============================================================================
@click.group(context_settings=dict(help_option_names=['-h', '--help']))
@click.option('--version', is_flag=True, callback=print_version,
              expose_value=False, is_eager=True,
              help="Print version information and quit")
@click.option("--config", "-c", metavar='PATH',
              help=f"Configuration file ('{constants.DEFAULT_CONFIG_PATH}' by default, optional)")
@click.option("--dry-run", is_flag=True,
              help="don't change anything in the bucket or on the API servers; just print what would be done")
@click.option("--verbosity", "-v", count=True,
              help="[MULTIPLE] increase output verbosity")
@click.pass_context
def cli(ctx: click.Context, config: Optional[str], dry_run: bool, verbosity: int):
    logging.basicConfig(level=LOG_LEVELS[min(verbosity, len(LOG_LEVELS) - 1)])
    if verbosity >= 2:
        # botocore logs every request body at DEBUG
        logging.getLogger("botocore").setLevel(logging.INFO)
    # an explicitly given config file must exist, the default one is optional
    config_filename = Path(config or constants.DEFAULT_CONFIG_PATH).expanduser()
    ctx.obj = Runtime.from_config_file(config_filename, dry_run=dry_run, required=config is not None)
