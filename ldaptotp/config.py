"""
Setup configuration.

Values are layered, highest precedence first: explicit overrides (command line
options), LDAPTOTP_* environment variables (a .env file is honoured), the YAML
config file and finally the defaults in ldaptotp.consts.
"""

import logging
import os
from pathlib import Path

import yaml
from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field, field_validator

from ldaptotp import consts
from ldaptotp.password.passwordfactory import PasswordHasherTypes

logger = logging.getLogger(__name__)

DEFAULT_CONF_FILE = ".ldaptotp.yaml"

# env var name -> config field
ENVIRONMENT_VARIABLES = {
    "LDAPTOTP_REPO": "repo",
    "LDAPTOTP_BRANCH": "branch",
    "LDAPTOTP_GITHUB_API_URL": "github_api_url",
    "LDAPTOTP_GITHUB_URL": "github_url",
    "LDAPTOTP_OUTPUT_DIR": "output_dir",
    "LDAPTOTP_PASSWORD_LENGTH": "password_length",
    "LDAPTOTP_PASSWORD_HASHERS": "password_hashers",
    "LDAPTOTP_REQUEST_TIMEOUT": "request_timeout",
}


def get_default_conf_file_path() -> str:
    return os.path.join(str(Path.home()), DEFAULT_CONF_FILE)


class SetupConfig(BaseModel):
    repo: str = consts.DEFAULT_REPO
    branch: str = consts.DEFAULT_BRANCH
    github_api_url: str = consts.GITHUB_API_URL
    github_url: str = consts.GITHUB_URL
    output_dir: str = consts.DEFAULT_OUTPUT_DIR
    source_dir: str | None = None
    password_length: int = Field(default=consts.DEFAULT_PASSWORD_LENGTH, gt=0)
    password_hashers: list[str] = Field(
        default_factory=lambda: list(consts.DEFAULT_PASSWORD_HASHERS)
    )
    request_timeout: int = Field(default=consts.REQUEST_TIMEOUT, gt=0)
    verify_ssl: bool = True

    @field_validator("password_hashers", mode="before")
    @classmethod
    def split_password_hashers(cls, value):
        if isinstance(value, str):
            value = [name.strip() for name in value.split(",") if name.strip()]
        return value

    @field_validator("password_hashers")
    @classmethod
    def known_password_hashers(cls, value: list[str]) -> list[str]:
        known = [hasher_type.value for hasher_type in PasswordHasherTypes]
        for name in value:
            if name.lower() not in known:
                raise ValueError(
                    f"Unknown password hasher '{name}', expected one of {', '.join(known)}"
                )
        return [name.lower() for name in value]

    @property
    def release_api_url(self) -> str:
        return f"{self.github_api_url.rstrip('/')}/repos/{self.repo}/releases/latest"

    @property
    def branch_archive_url(self) -> str:
        return (
            f"{self.github_url.rstrip('/')}/{self.repo}/archive/refs/heads/"
            f"{self.branch}.tar.gz"
        )


def _read_config_file(config_file: str | None) -> dict:
    if not config_file:
        return {}
    try:
        with open(file=config_file, mode="r") as f:
            logger.debug("Loading configuration file.", extra={"path": config_file})
            file_config = yaml.safe_load(f) or {}
            logger.debug("Configuration file loaded.")
    except FileNotFoundError:
        logger.debug(
            "Configuration file could not be found. Running without configuration."
        )
        return {}
    except yaml.YAMLError as e:
        raise ValueError(f"Configuration file {config_file} is not valid YAML: {e}")
    if not isinstance(file_config, dict):
        raise ValueError(f"Configuration file {config_file} must contain a mapping")
    return file_config


def _read_environment() -> dict:
    env_config = {}
    for variable, field in ENVIRONMENT_VARIABLES.items():
        value = os.environ.get(variable)
        if value:
            env_config[field] = value
    if os.environ.get("LDAPTOTP_IGNORE_SSL", "false").lower() == "true":
        env_config["verify_ssl"] = False
    return env_config


def load_config(config_file: str | None = None, **overrides) -> SetupConfig:
    """
    Build the effective configuration.

    Args:
        config_file (str | None): Path to a YAML config file, missing files are ignored.
        **overrides: Values from the command line, None values are ignored.

    Returns:
        SetupConfig: The validated configuration.
    """
    load_dotenv(find_dotenv(usecwd=True))
    values = _read_config_file(config_file)
    values.update(_read_environment())
    values.update({key: value for key, value in overrides.items() if value is not None})
    return SetupConfig(**values)
