"""Shared error handling for twlcli."""

from typing import NoReturn

import typer

from twl.errors import DocumentError, LoadError, TwlError

EXIT_FAILURE = 1
EXIT_LOAD = 2
EXIT_DOCUMENT = 3


class TwlCliError(Exception):
    """Base exception for twl command line operations."""

    def __init__(self, message: str, exit_code: int = EXIT_FAILURE) -> None:
        self.message = message
        self.exit_code = exit_code
        super().__init__(message)


def exit_code_for(error: TwlError) -> int:
    """Exit status for an engine error."""
    if isinstance(error, LoadError):
        return EXIT_LOAD
    if isinstance(error, DocumentError):
        return EXIT_DOCUMENT
    return EXIT_FAILURE


def format_error(error: TwlError) -> str:
    """`Kind: identifier`, the first line printed for an engine error."""
    if error.identifier:
        return f"{error.kind}: {error.identifier}"
    return f"{error.kind}: {error}"


def report_error(error: Exception) -> int:
    """Print an error to stderr and return the exit status it maps to."""
    if isinstance(error, TwlCliError):
        typer.secho(f"Error: {error.message}", err=True, fg=typer.colors.RED)
        return error.exit_code
    if isinstance(error, TwlError):
        typer.secho(f"Error: {format_error(error)}", err=True, fg=typer.colors.RED)
        typer.echo(f"  {error}", err=True)
        return exit_code_for(error)
    typer.secho(f"Unexpected error: {error}", err=True, fg=typer.colors.RED)
    return EXIT_FAILURE


def exit_with_error(message: str, exit_code: int = EXIT_FAILURE) -> NoReturn:
    """Exit the program with an error message."""
    typer.secho(f"Error: {message}", err=True, fg=typer.colors.RED)
    raise typer.Exit(code=exit_code)


def handle_error(error: Exception) -> NoReturn:
    """Report an error and exit with its status."""
    raise typer.Exit(code=report_error(error))
