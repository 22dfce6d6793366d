import shutil

import pytest

from ldaptotp.config import ENVIRONMENT_VARIABLES, SetupConfig
from ldaptotp.password.passwordfactory import PasswordManager
from ldaptotp.password.passwordgenerator import PseudoRandomPasswordGenerator
from tests.fixtures.helpers import (
    LDIF_FIXTURE_DIR,
    TEMPLATE_NAMES,
    StaticPasswordHasher,
    build_tarball,
    read_ldif_fixture,
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    for variable in list(ENVIRONMENT_VARIABLES) + ["LDAPTOTP_IGNORE_SSL"]:
        monkeypatch.delenv(variable, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def bundle_dir(tmp_path) -> str:
    """A local copy of the three upstream templates."""
    path = tmp_path / "bundle"
    shutil.copytree(LDIF_FIXTURE_DIR, path)
    return str(path)


@pytest.fixture
def output_dir(tmp_path) -> str:
    return str(tmp_path / "out")


@pytest.fixture
def bundle_tarball() -> bytes:
    return build_tarball({name: read_ldif_fixture(name) for name in TEMPLATE_NAMES})


@pytest.fixture
def setup_config(output_dir) -> SetupConfig:
    return SetupConfig(output_dir=output_dir)


@pytest.fixture
def static_hasher() -> StaticPasswordHasher:
    return StaticPasswordHasher()


@pytest.fixture
def hashing_password_manager(static_hasher) -> PasswordManager:
    return PasswordManager(hashers=[static_hasher])


@pytest.fixture
def plaintext_password_manager() -> PasswordManager:
    return PasswordManager(
        generators=[PseudoRandomPasswordGenerator()],
        hashers=[StaticPasswordHasher(available=False)],
    )
