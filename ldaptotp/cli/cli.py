import logging
import logging.config
import os
import sys
from importlib import metadata

import click
import pydantic

from ldaptotp.basedn.basedn import resolve_base_dn
from ldaptotp.cli.click_extensions import BASE_DN
from ldaptotp.cli.console import print_error, print_info
from ldaptotp.config import get_default_conf_file_path, load_config
from ldaptotp.consts import CLI_NAME
from ldaptotp.exceptions.setup_exception import SetupException
from ldaptotp.reporting.summary import print_summary
from ldaptotp.setupmanager.setupmanager import SetupManager, check_dependencies

try:
    LDAPTOTP_VERSION = metadata.version("ldap-totp-schema-setup")
except metadata.PackageNotFoundError:
    LDAPTOTP_VERSION = os.environ.get("LDAPTOTP_VERSION", "unknown")

logging_config = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {"format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s"},
        "json": {
            "format": "%(asctime)s %(message)s %(levelname)s %(name)s %(filename)s %(lineno)d",
            "class": "pythonjsonlogger.jsonlogger.JsonFormatter",
        },
    },
    "handlers": {
        "default": {
            "level": "DEBUG",
            "formatter": "standard",
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stderr",
        }
    },
    "loggers": {
        "": {  # root logger
            "handlers": ["default"],
            "level": "WARNING",
            "propagate": False,
        },
        "ldaptotp": {
            "level": "INFO",
        },
    },
}
logger = logging.getLogger(__name__)


def configure_logging(verbose: int, json: bool):
    # work on a copy, the dict is module level and the CLI may run more than once
    config = {
        **logging_config,
        "handlers": {
            "default": {
                **logging_config["handlers"]["default"],
                "formatter": "json" if json else "standard",
            }
        },
        "loggers": {
            "": dict(logging_config["loggers"][""]),
            "ldaptotp": {"level": "DEBUG" if verbose > 0 else "INFO"},
        },
    }
    logging.config.dictConfig(config)


def exit_with_error(message: str, hint: str | None = None, exit_code: int = 1):
    print_error(message)
    if hint:
        click.echo(hint, err=True)
    sys.exit(exit_code)


@click.command(
    name=CLI_NAME, context_settings={"help_option_names": ["-h", "--help"]}
)
@click.argument("base_dn", required=False, type=BASE_DN)
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(file_okay=False),
    help="Where to write the customised files (default ./ldap-totp-schema-configured).",
)
@click.option(
    "--source-dir",
    "-s",
    type=click.Path(exists=True, file_okay=False),
    help="Use schema files from this directory instead of downloading them.",
)
@click.option(
    "--password-length",
    "-l",
    type=click.IntRange(min=1),
    help="Length of the generated service account password (default 32).",
)
@click.option(
    "--config",
    "-c",
    "config_file",
    help=f"The path to the config file (default {get_default_conf_file_path()})",
    required=False,
    default=f"{get_default_conf_file_path()}",
)
@click.option("--verbose", "-v", count=True, help="Enable verbose output.")
@click.option("--json", "-j", default=False, is_flag=True, help="Enable json output.")
@click.version_option(LDAPTOTP_VERSION, prog_name=CLI_NAME)
def cli(
    base_dn: str | None,
    output_dir: str | None,
    source_dir: str | None,
    password_length: int | None,
    config_file: str,
    verbose: int,
    json: bool,
):
    """
    Download the LDAP TOTP schema and customise it for BASE_DN.

    BASE_DN is your LDAP base DN, e.g. dc=example,dc=com. You will be prompted
    for it when it is not given.
    """
    configure_logging(verbose, json)

    click.echo("")
    click.echo("LDAP TOTP Schema Setup")
    click.echo("======================")

    try:
        config = load_config(
            config_file,
            output_dir=output_dir,
            source_dir=source_dir,
            password_length=password_length,
        )
    except (pydantic.ValidationError, ValueError) as e:
        exit_with_error(f"Invalid configuration: {e}")

    try:
        check_dependencies()
        base_dn = resolve_base_dn(base_dn)
        print_info(f"Using base DN: {base_dn}")
        result = SetupManager(config).run(base_dn)
    except SetupException as e:
        logger.debug("Setup failed", exc_info=True)
        exit_with_error(e.message, e.hint, e.exit_code)

    print_summary(result)
