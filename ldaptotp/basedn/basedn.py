"""
Base DN validation and resolution.

The base DN is taken from the command line when given, otherwise the operator
is prompted for it on the controlling terminal.
"""

import contextlib
import logging
import os
import re
import sys

import click

from ldaptotp.cli.console import print_error
from ldaptotp.consts import CLI_NAME, DEFAULT_BASE_DN
from ldaptotp.exceptions.setup_exception import (
    InvalidBaseDnException,
    NoTerminalException,
)

logger = logging.getLogger(__name__)

BASE_DN_REGEX = re.compile(
    r"^(dc|o|ou|c)=[a-zA-Z0-9._-]+(,(dc|o|ou|c)=[a-zA-Z0-9._-]+)*$"
)
TERMINAL_DEVICE = "/dev/tty"
EXAMPLE_BASE_DNS = ["dc=luminary,dc=id", DEFAULT_BASE_DN, "o=myorganisation"]


def validate_base_dn(base_dn: str) -> bool:
    return bool(base_dn) and BASE_DN_REGEX.fullmatch(base_dn) is not None


def stdin_is_interactive() -> bool:
    try:
        return sys.stdin.isatty()
    except (AttributeError, ValueError):
        return False


@contextlib.contextmanager
def attach_terminal():
    """
    Point stdin at the controlling terminal, e.g. when our input is a pipe.

    The original stdin is restored and the terminal closed on exit.

    Yields:
        bool: True if stdin reads from the terminal inside the block.
    """
    if not os.path.exists(TERMINAL_DEVICE):
        yield False
        return
    try:
        terminal = open(TERMINAL_DEVICE, "r")
    except OSError:
        logger.debug("Could not open the controlling terminal", exc_info=True)
        yield False
        return

    original_stdin = sys.stdin
    sys.stdin = terminal
    try:
        yield True
    finally:
        sys.stdin = original_stdin
        terminal.close()


def prompt_base_dn() -> str:
    click.echo("", err=True)
    click.echo("Enter your LDAP base DN.", err=True)
    click.echo("Examples:", err=True)
    for example in EXAMPLE_BASE_DNS:
        click.echo(f"  {example}", err=True)
    click.echo("", err=True)

    while True:
        base_dn = click.prompt(
            "Base DN", default="", show_default=False, err=True
        ).strip()
        if not base_dn:
            print_error("Base DN cannot be empty")
            continue
        if validate_base_dn(base_dn):
            click.echo("", err=True)
            return base_dn
        print_error(
            "Invalid base DN format. Please use format like 'dc=example,dc=com'"
        )


def resolve_base_dn(base_dn: str | None = None) -> str:
    """
    Resolve the base DN from the argument or interactively.

    Args:
        base_dn (str | None): The base DN given on the command line.

    Raises:
        InvalidBaseDnException: The given base DN does not match the DN grammar.
        NoTerminalException: No base DN given and no terminal to prompt on.

    Returns:
        str: A validated base DN.
    """
    if base_dn:
        if not validate_base_dn(base_dn):
            raise InvalidBaseDnException(base_dn)
        return base_dn

    if stdin_is_interactive():
        return prompt_base_dn()

    with attach_terminal() as attached:
        if not attached:
            raise NoTerminalException(
                "No terminal available for input.",
                hint=(
                    "Please provide base DN as argument:\n"
                    f"  {CLI_NAME} dc=example,dc=com"
                ),
            )
        return prompt_base_dn()
