import abc
import logging
import os
import random
import shutil
import subprocess

from ldaptotp.consts import PASSWORD_ALPHABET


class BasePasswordGenerator(metaclass=abc.ABCMeta):
    name: str = "base"

    def __init__(self, alphabet: str = PASSWORD_ALPHABET, **kwargs):
        self.logger = logging.getLogger(__name__)
        self.alphabet = alphabet

    def is_available(self) -> bool:
        return True

    @abc.abstractmethod
    def generate(self, length: int) -> str | None:
        """
        Generate a password.

        Args:
            length (int): The number of characters wanted.

        Returns:
            str | None: The password, or None if this generator could not produce one.
        """
        raise NotImplementedError(
            "generate() method not implemented"
            " for {}".format(self.__class__.__name__)
        )

    def _filter(self, raw: str | bytes) -> str:
        if isinstance(raw, bytes):
            raw = raw.decode("latin-1")
        return "".join(char for char in raw if char in self.alphabet)


class UrandomPasswordGenerator(BasePasswordGenerator):
    """The kernel random source, filtered down to the alphabet."""

    name = "urandom"
    # upper bound on reads so a broken source can't spin forever
    MAX_ROUNDS = 64

    def generate(self, length: int) -> str | None:
        password = ""
        try:
            for _ in range(self.MAX_ROUNDS):
                password += self._filter(os.urandom(max(length * 4, 64)))
                if len(password) >= length:
                    return password[:length]
        except (NotImplementedError, OSError):
            self.logger.debug("os.urandom is not usable", exc_info=True)
        return None


class OpensslPasswordGenerator(BasePasswordGenerator):
    """`openssl rand -base64`, filtered down to the alphabet."""

    name = "openssl"

    def is_available(self) -> bool:
        return shutil.which("openssl") is not None

    def generate(self, length: int) -> str | None:
        # base64 output keeps ~62 of every 64 characters after filtering
        byte_count = max(48, length * 2)
        try:
            result = subprocess.run(
                ["openssl", "rand", "-base64", str(byte_count)],
                capture_output=True,
                text=True,
                check=True,
            )
        except (OSError, subprocess.CalledProcessError):
            self.logger.debug("openssl rand failed", exc_info=True)
            return None
        password = self._filter(result.stdout)
        if len(password) < length:
            return None
        return password[:length]


class PseudoRandomPasswordGenerator(BasePasswordGenerator):
    """Last resort, not cryptographically secure."""

    name = "pseudo-random"

    def generate(self, length: int) -> str | None:
        return "".join(random.choice(self.alphabet) for _ in range(length))  # noqa: S311
