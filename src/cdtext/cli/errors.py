"""
CLI Error Handling
==================

Maps exceptions to messages and exit codes for the cdtext command.
"""

import sys
import traceback
from enum import IntEnum
from typing import NoReturn

import click

from cdtext.errors import CDTextError


class ExitCode(IntEnum):
    """Exit codes of the cdtext command."""
    SUCCESS = 0
    DECODE_ERROR = 1     # Undecodable input, or conditions found by validate
    INVALID_ARGS = 2     # Invalid arguments or unreadable files
    INTERNAL_ERROR = 3   # Unexpected internal error


def handle_cli_exception(error: Exception, verbose: bool = False) -> NoReturn:
    """
    Report an exception and exit with the matching exit code.

    Args:
        error: The exception that was raised
        verbose: If True, print the traceback of internal errors

    Raises:
        SystemExit: Always
    """
    if isinstance(error, CDTextError):
        click.echo(f"Error: {error}", err=True)
        sys.exit(ExitCode.DECODE_ERROR)

    elif isinstance(error, (click.BadParameter, FileNotFoundError, PermissionError)):
        click.echo(f"Error: {error}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    else:
        click.echo(f"Internal error: {error}", err=True)
        if verbose:
            traceback.print_exc()
        sys.exit(ExitCode.INTERNAL_ERROR)
