import logging
import os
import stat
import tempfile
from unittest.mock import Mock, patch

import pytest
import requests
from click.testing import CliRunner

from ldaptotp.basedn import basedn
from ldaptotp.cli.cli import cli
from ldaptotp.password import passwordhasher
from ldaptotp.setupmanager import setupmanager
from tests.fixtures.helpers import build_tarball, mock_response, read_ldif_fixture

RELEASE_API_URL = "https://api.github.com/repos/wheelybird/ldap-totp-schema/releases/latest"
BRANCH_URL = "https://github.com/wheelybird/ldap-totp-schema/archive/refs/heads/main.tar.gz"
TARBALL_URL = "https://api.github.com/repos/wheelybird/ldap-totp-schema/tarball/v1.2.0"
SLAPPASSWD_HASH = "{SSHA}4p8xFz0b/KQ+QkTFfJ3Jm1mZ2Vb1Wj7n"


def _fake_get(routes):
    def get(url, **kwargs):
        response = routes[url]
        if isinstance(response, Exception):
            raise response
        return response

    return get


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    logging.getLogger("ldaptotp").setLevel(logging.NOTSET)
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)


@pytest.fixture
def release_routes(bundle_tarball):
    return {
        RELEASE_API_URL: mock_response(json_data={"tarball_url": TARBALL_URL}),
        TARBALL_URL: mock_response(content=bundle_tarball),
    }


@pytest.fixture
def slappasswd_present():
    with patch.object(
        passwordhasher.shutil, "which", return_value="/usr/sbin/slappasswd"
    ), patch.object(
        passwordhasher.subprocess, "run", return_value=Mock(stdout=SLAPPASSWD_HASH + "\n")
    ) as run:
        yield run


@pytest.fixture
def slappasswd_missing():
    with patch.object(passwordhasher.shutil, "which", return_value=None):
        yield


def invoke(args, routes=None, **kwargs):
    runner = CliRunner()
    with patch("requests.get", side_effect=_fake_get(routes or {})):
        return runner.invoke(cli, ["-c", "no-such-config.yaml", *args], **kwargs)


def test_help():
    for flag in ("--help", "-h"):
        result = invoke([flag])
        assert result.exit_code == 0
        assert "Usage:" in result.output
        assert "BASE_DN" in result.output


def test_version():
    result = invoke(["--version"])
    assert result.exit_code == 0
    assert "ldap-totp-setup" in result.output


def test_end_to_end(tmp_path, release_routes, slappasswd_present):
    result = invoke(["dc=acme,dc=io", "-o", "out"], release_routes)

    assert result.exit_code == 0, result.output
    out = tmp_path / "out"
    assert sorted(os.listdir(out)) == [
        "service-account-password.txt",
        "service-account.ldif",
        "totp-acls.ldif",
        "totp-schema.ldif",
    ]

    acls = (out / "totp-acls.ldif").read_text()
    account = (out / "service-account.ldif").read_text()
    for content in (acls, account):
        assert "dc=acme,dc=io" in content
        assert "dc=example,dc=com" not in content
    assert (out / "totp-schema.ldif").read_bytes() == read_ldif_fixture("totp-schema.ldif")

    password_file = out / "service-account-password.txt"
    assert stat.S_IMODE(os.stat(password_file).st_mode) == 0o600
    password = password_file.read_text().rsplit("Password: ", 1)[1].strip()
    assert len(password) == 32
    assert f"userPassword: {SLAPPASSWD_HASH}" in account
    assert password not in account
    assert slappasswd_present.call_args[0][0] == ["slappasswd", "-s", password]

    assert "Using base DN: dc=acme,dc=io" in result.output
    assert "Password hashed with slappasswd" in result.output
    assert "Setup complete!" in result.output
    assert '-D "cn=admin,dc=acme,dc=io"' in result.output
    assert "[WARNING]" not in result.output
    assert password not in result.output


def test_plaintext_fallback(tmp_path, release_routes, slappasswd_missing):
    result = invoke(["o=acme", "-o", "out", "-l", "24"], release_routes)

    assert result.exit_code == 0, result.output
    out = tmp_path / "out"
    password = (out / "service-account-password.txt").read_text().rsplit(
        "Password: ", 1
    )[1].strip()
    assert len(password) == 24
    assert f"userPassword: {password}" in (out / "service-account.ldif").read_text()
    assert "slappasswd not available - password stored in plaintext" in result.output
    assert "Setup complete!" in result.output


def test_missing_template_still_succeeds(tmp_path, slappasswd_present):
    tarball = build_tarball(
        {
            "totp-schema.ldif": read_ldif_fixture("totp-schema.ldif"),
            "service-account.ldif": read_ldif_fixture("service-account.ldif"),
        }
    )
    routes = {
        RELEASE_API_URL: mock_response(json_data={"tarball_url": TARBALL_URL}),
        TARBALL_URL: mock_response(content=tarball),
    }
    result = invoke(["dc=acme,dc=io", "-o", "out"], routes)

    assert result.exit_code == 0, result.output
    assert result.output.count("[WARNING]") == 1
    assert "File not found: totp-acls.ldif" in result.output
    assert not (tmp_path / "out" / "totp-acls.ldif").exists()
    assert sorted(os.listdir(tmp_path / "out")) == [
        "service-account-password.txt",
        "service-account.ldif",
        "totp-schema.ldif",
    ]


def test_branch_fallback(tmp_path, bundle_tarball, slappasswd_present):
    routes = {
        RELEASE_API_URL: mock_response(status_code=404, json_data={"message": "Not Found"}),
        BRANCH_URL: mock_response(content=bundle_tarball),
    }
    result = invoke(["dc=acme,dc=io", "-o", "out"], routes)

    assert result.exit_code == 0, result.output
    assert "No release found, downloading from main branch..." in result.output
    assert (tmp_path / "out" / "totp-acls.ldif").exists()


def test_download_failure_is_fatal(tmp_path, monkeypatch):
    scratch = tmp_path / "scratch"
    scratch.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(scratch))
    routes = {
        RELEASE_API_URL: requests.exceptions.ConnectionError("offline"),
        BRANCH_URL: requests.exceptions.ConnectionError("offline"),
    }
    result = invoke(["dc=acme,dc=io", "-o", "out"], routes)

    assert result.exit_code == 1
    assert "[ERROR] Failed to download schema files" in result.output
    assert not (tmp_path / "out").exists()
    assert os.listdir(scratch) == []


def test_invalid_base_dn_argument():
    with patch("requests.get") as get:
        result = CliRunner().invoke(cli, ["-c", "none.yaml", "example.com"])

    assert result.exit_code != 0
    assert "Invalid base DN format: example.com" in result.output
    get.assert_not_called()


def test_no_terminal(tmp_path):
    with patch.object(basedn, "TERMINAL_DEVICE", str(tmp_path / "no-tty")), patch(
        "requests.get"
    ) as get:
        result = CliRunner().invoke(cli, ["-c", "none.yaml"])

    assert result.exit_code == 1
    assert "No terminal available for input." in result.output
    assert "ldap-totp-setup dc=example,dc=com" in result.output
    get.assert_not_called()


def test_interactive_prompt(tmp_path, release_routes, slappasswd_present):
    with patch.object(basedn, "stdin_is_interactive", return_value=True):
        result = invoke(["-o", "out"], release_routes, input="\nbad\ndc=acme,dc=io\n")

    assert result.exit_code == 0, result.output
    assert "Base DN cannot be empty" in result.output
    assert "Using base DN: dc=acme,dc=io" in result.output
    assert "dc=acme,dc=io" in (tmp_path / "out" / "totp-acls.ldif").read_text()


def test_local_source_dir(tmp_path, bundle_dir, slappasswd_present):
    with patch("requests.get") as get:
        result = CliRunner().invoke(
            cli, ["-c", "none.yaml", "dc=acme,dc=io", "-s", bundle_dir, "-o", "out"]
        )

    assert result.exit_code == 0, result.output
    get.assert_not_called()
    assert len(os.listdir(tmp_path / "out")) == 4
    assert os.path.isdir(bundle_dir)


def test_missing_dependencies_are_fatal():
    with patch.object(
        setupmanager, "REQUIRED_MODULES", {"no_such_module_for_tests": "testing"}
    ), patch("requests.get") as get:
        result = CliRunner().invoke(cli, ["-c", "none.yaml", "dc=acme,dc=io"])

    assert result.exit_code == 1
    assert "Missing required tools: no_such_module_for_tests" in result.output
    get.assert_not_called()


def test_invalid_configuration(monkeypatch):
    monkeypatch.setenv("LDAPTOTP_PASSWORD_HASHERS", "bcrypt")
    result = CliRunner().invoke(cli, ["-c", "none.yaml", "dc=acme,dc=io"])
    assert result.exit_code == 1
    assert "Invalid configuration" in result.output


def test_json_logging(tmp_path, release_routes, slappasswd_present):
    result = invoke(["dc=acme,dc=io", "-o", "out", "-v", "-j"], release_routes)
    assert result.exit_code == 0, result.output


def test_unwritable_output_directory(tmp_path, bundle_dir, slappasswd_present):
    blocker = tmp_path / "blocker"
    blocker.write_text("")

    result = CliRunner().invoke(
        cli,
        ["-c", "none.yaml", "dc=acme,dc=io", "-s", bundle_dir, "-o", str(blocker / "out")],
    )

    assert result.exit_code == 1
    assert not isinstance(result.exception, OSError)
    assert "[ERROR] Cannot write" in result.output
    assert "--output-dir" in result.output
    assert "Setup complete!" not in result.output
