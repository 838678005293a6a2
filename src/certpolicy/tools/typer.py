from typing import Any

from typer import Typer


def new_typer(**kwargs: Any) -> Typer:
    """
    Create a command group that shows its help when invoked without a command and lets exceptions propagate
    unformatted.
    """

    return Typer(no_args_is_help=True, pretty_exceptions_enable=False, **kwargs)
