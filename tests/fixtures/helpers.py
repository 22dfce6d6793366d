import io
import os
import tarfile
from unittest.mock import Mock

import requests

from ldaptotp.password.passwordhasher import BasePasswordHasher

LDIF_FIXTURE_DIR = os.path.join(os.path.dirname(__file__), "ldif")
TEMPLATE_NAMES = ("totp-schema.ldif", "totp-acls.ldif", "service-account.ldif")
STATIC_HASH = "{SSHA}c2VjcmV0L2hhc2hlZCt2YWx1ZQ=="


class StaticPasswordHasher(BasePasswordHasher):
    name = "static"

    def __init__(self, value=STATIC_HASH, available=True, **kwargs):
        super().__init__(**kwargs)
        self.value = value
        self.available = available
        self.calls = []

    def is_available(self) -> bool:
        return self.available

    def hash(self, password: str) -> str | None:
        self.calls.append(password)
        return self.value


def read_ldif_fixture(name: str) -> bytes:
    with open(os.path.join(LDIF_FIXTURE_DIR, name), "rb") as f:
        return f.read()


def build_tarball(
    files: dict[str, bytes], top_level: str = "wheelybird-ldap-totp-schema-abc1234"
) -> bytes:
    """A gzipped tarball with every file under a single top level directory."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
        directory = tarfile.TarInfo(top_level)
        directory.type = tarfile.DIRTYPE
        directory.mode = 0o755
        tar.addfile(directory)
        for name, content in files.items():
            info = tarfile.TarInfo(f"{top_level}/{name}")
            info.size = len(content)
            info.mode = 0o644
            tar.addfile(info, io.BytesIO(content))
    return buffer.getvalue()


def mock_response(status_code=200, json_data=None, content=b""):
    """A stand-in for requests.Response with just what the downloader reads."""
    response = Mock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.content = content
    if json_data is None:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.json.return_value = json_data
    if response.ok:
        response.raise_for_status.return_value = None
    else:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(
            f"{status_code} Error"
        )
    return response
