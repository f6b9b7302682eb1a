import click


def _echo(msg, color=None, file=None, err=False):
    if isinstance(msg, bytes):
        msg = msg.decode("utf-8", errors="replace")
    click.secho(str(msg), fg=color, file=file, err=err and file is None)


def red_print(msg, file=None):
    """Errors go to stderr unless a file is given"""
    _echo(msg, "red", file, err=True)


def green_print(msg, file=None):
    _echo(msg, "green", file)


def yellow_print(msg, file=None):
    _echo(msg, "yellow", file)


def cprint(msg, file=None):
    """Plain output for values that scripts read back (versions, URLs, JSON)"""
    _echo(msg, file=file)
