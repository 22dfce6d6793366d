"""
Operator facing output.

Status lines go to stderr so stdout stays clean for the summary.
"""

import click


def print_info(message: str):
    click.echo(f"{click.style('[INFO]', fg='blue')} {message}", err=True)


def print_success(message: str):
    click.echo(f"{click.style('[OK]', fg='green')} {message}", err=True)


def print_warning(message: str):
    click.echo(f"{click.style('[WARNING]', fg='yellow', bold=True)} {message}", err=True)


def print_error(message: str):
    click.echo(f"{click.style('[ERROR]', fg='red')} {message}", err=True)
