import abc
import base64
import hashlib
import logging
import os
import shutil
import subprocess
from dataclasses import dataclass


@dataclass
class HashResult:
    hasher: str
    value: str


class BasePasswordHasher(metaclass=abc.ABCMeta):
    name: str = "base"

    def __init__(self, **kwargs):
        self.logger = logging.getLogger(__name__)

    def is_available(self) -> bool:
        return True

    @abc.abstractmethod
    def hash(self, password: str) -> str | None:
        """
        Hash a password into an LDAP userPassword value.

        Args:
            password (str): The plaintext password.

        Returns:
            str | None: The hashed value, or None if hashing failed.
        """
        raise NotImplementedError(
            "hash() method not implemented for {}".format(self.__class__.__name__)
        )


class SlappasswdPasswordHasher(BasePasswordHasher):
    """OpenLDAP's slappasswd, which uses the server's default scheme ({SSHA})."""

    name = "slappasswd"

    def is_available(self) -> bool:
        return shutil.which("slappasswd") is not None

    def hash(self, password: str) -> str | None:
        try:
            result = subprocess.run(
                ["slappasswd", "-s", password],
                capture_output=True,
                text=True,
                check=True,
            )
        except (OSError, subprocess.CalledProcessError):
            # the exception would carry the command line, i.e. the password
            self.logger.debug("slappasswd failed")
            return None
        return result.stdout.strip() or None


class SshaPasswordHasher(BasePasswordHasher):
    """Salted SHA-1 computed in process, same format slappasswd emits by default."""

    name = "ssha"
    SALT_SIZE = 4

    def hash(self, password: str) -> str | None:
        salt = os.urandom(self.SALT_SIZE)
        sha = hashlib.sha1(password.encode("utf-8"))
        sha.update(salt)
        return "{SSHA}" + base64.b64encode(sha.digest() + salt).decode("ascii")
