"""
Customise the upstream LDIF templates for the operator's base DN.
"""

import contextlib
import datetime
import logging
import os
import re
import shutil

from ldaptotp.cli.console import print_info, print_success, print_warning
from ldaptotp.consts import (
    ACLS_FILE,
    DEFAULT_BASE_DN,
    PASSWORD_FILE,
    PASSWORD_PLACEHOLDER,
    SCHEMA_FILE,
    SERVICE_ACCOUNT_FILE,
    SERVICE_ACCOUNT_RDN,
)
from ldaptotp.exceptions.setup_exception import OutputWriteException
from ldaptotp.models.artifact import Artifact, ArtifactStatus
from ldaptotp.password.passwordfactory import PasswordManager
from ldaptotp.templating.credentialfile import write_password_file

logger = logging.getLogger(__name__)


def substitute(text: str, replacements: dict[str, str]) -> str:
    """
    Replace every literal occurrence of each key by its value, in one pass.

    Replaced text is never rescanned, so values may contain anything
    (including other keys).
    """
    if not replacements:
        return text
    # longest first so overlapping keys prefer the longer match
    keys = sorted(replacements, key=len, reverse=True)
    pattern = re.compile("|".join(re.escape(key) for key in keys))
    return pattern.sub(lambda match: replacements[match.group(0)], text)


# bytes that are not valid UTF-8 round trip unchanged
TEMPLATE_ENCODING_ERRORS = "surrogateescape"


def read_template(path: str) -> str:
    with open(
        path, "r", encoding="utf-8", errors=TEMPLATE_ENCODING_ERRORS, newline=""
    ) as f:
        return f.read()


def write_output(path: str, content: str):
    with open(
        path, "w", encoding="utf-8", errors=TEMPLATE_ENCODING_ERRORS, newline=""
    ) as f:
        f.write(content)


@contextlib.contextmanager
def writing(path: str):
    """Report a failed filesystem write on path as an OutputWriteException."""
    try:
        yield
    except OSError as e:
        raise OutputWriteException(path, e) from e


class TemplateProcessor:
    def __init__(
        self,
        source_dir: str,
        output_dir: str,
        base_dn: str,
        password_manager: PasswordManager | None = None,
        password_length: int = 32,
    ):
        self.logger = logging.getLogger(__name__)
        self.source_dir = source_dir
        self.output_dir = output_dir
        self.base_dn = base_dn
        self.password_manager = password_manager or PasswordManager()
        self.password_length = password_length
        self.hashed_with: str | None = None

    @property
    def service_account_dn(self) -> str:
        return f"{SERVICE_ACCOUNT_RDN},{self.base_dn}"

    def _source(self, name: str) -> str:
        return os.path.join(self.source_dir, name)

    def _output(self, name: str) -> str:
        return os.path.join(self.output_dir, name)

    def _skipped(self, name: str) -> Artifact:
        print_warning(f"File not found: {name}")
        return Artifact(name=name, path=self._output(name), status=ArtifactStatus.SKIPPED)

    def _created(self, name: str, message: str | None = None) -> Artifact:
        path = self._output(name)
        print_success(message or f"Created {path}")
        return Artifact(name=name, path=path, status=ArtifactStatus.CREATED)

    def process_acls(self) -> list[Artifact]:
        source = self._source(ACLS_FILE)
        if not os.path.isfile(source):
            return [self._skipped(ACLS_FILE)]
        content = substitute(read_template(source), {DEFAULT_BASE_DN: self.base_dn})
        with writing(self._output(ACLS_FILE)):
            write_output(self._output(ACLS_FILE), content)
        return [self._created(ACLS_FILE)]

    def _warn_plaintext(self):
        hashers = self.password_manager.hashers
        available = [hasher.name for hasher in hashers if hasher.is_available()]
        if available:
            print_warning(
                f"Password hashing failed with {', '.join(available)} - password stored in plaintext"
            )
        elif hashers:
            names = ", ".join(hasher.name for hasher in hashers)
            print_warning(f"{names} not available - password stored in plaintext")
        else:
            print_warning("No password hasher configured - password stored in plaintext")
        print_warning("Consider hashing it later with: slappasswd -s <password>")

    def process_service_account(self) -> list[Artifact]:
        source = self._source(SERVICE_ACCOUNT_FILE)
        if not os.path.isfile(source):
            return [self._skipped(SERVICE_ACCOUNT_FILE)]

        print_info("Generating service account password...")
        password = self.password_manager.generate_password(self.password_length)

        hash_result = self.password_manager.hash_password(password)
        if hash_result:
            password_value = hash_result.value
            self.hashed_with = hash_result.hasher
            print_success(f"Password hashed with {hash_result.hasher}")
        else:
            password_value = password
            self._warn_plaintext()

        content = substitute(
            read_template(source),
            {DEFAULT_BASE_DN: self.base_dn, PASSWORD_PLACEHOLDER: password_value},
        )

        # the sidecar holds the only plaintext copy, it must exist before the
        # LDIF carrying the hash does
        password_path = self._output(PASSWORD_FILE)
        with writing(password_path):
            write_password_file(
                password_path,
                password,
                self.service_account_dn,
                datetime.datetime.now(datetime.timezone.utc),
            )
        password_artifact = self._created(
            PASSWORD_FILE, f"Created {password_path} (mode 600)"
        )

        with writing(self._output(SERVICE_ACCOUNT_FILE)):
            write_output(self._output(SERVICE_ACCOUNT_FILE), content)
        return [self._created(SERVICE_ACCOUNT_FILE), password_artifact]

    def process_schema(self) -> list[Artifact]:
        source = self._source(SCHEMA_FILE)
        if not os.path.isfile(source):
            return [self._skipped(SCHEMA_FILE)]
        # no DN references in the schema, copied byte for byte
        with writing(self._output(SCHEMA_FILE)):
            shutil.copyfile(source, self._output(SCHEMA_FILE))
        return [self._created(SCHEMA_FILE)]

    def process(self) -> list[Artifact]:
        print_info(f"Modifying LDIF files for base DN: {self.base_dn}")
        with writing(self.output_dir):
            os.makedirs(self.output_dir, exist_ok=True)
        artifacts = []
        artifacts.extend(self.process_acls())
        artifacts.extend(self.process_service_account())
        artifacts.extend(self.process_schema())
        return artifacts
