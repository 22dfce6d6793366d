import enum
import logging

from ldaptotp.password.passwordgenerator import BasePasswordGenerator
from ldaptotp.password.passwordhasher import BasePasswordHasher, HashResult


class PasswordGeneratorTypes(enum.Enum):
    URANDOM = "urandom"
    OPENSSL = "openssl"
    PSEUDO_RANDOM = "pseudo-random"


class PasswordHasherTypes(enum.Enum):
    SLAPPASSWD = "slappasswd"
    SSHA = "ssha"


class PasswordFactory:
    # strongest entropy source first
    GENERATOR_CHAIN = [
        PasswordGeneratorTypes.URANDOM,
        PasswordGeneratorTypes.OPENSSL,
        PasswordGeneratorTypes.PSEUDO_RANDOM,
    ]

    @staticmethod
    def get_generator(
        generator_type: PasswordGeneratorTypes, **kwargs
    ) -> BasePasswordGenerator:
        if generator_type == PasswordGeneratorTypes.URANDOM:
            from ldaptotp.password.passwordgenerator import UrandomPasswordGenerator

            return UrandomPasswordGenerator(**kwargs)
        elif generator_type == PasswordGeneratorTypes.OPENSSL:
            from ldaptotp.password.passwordgenerator import OpensslPasswordGenerator

            return OpensslPasswordGenerator(**kwargs)
        elif generator_type == PasswordGeneratorTypes.PSEUDO_RANDOM:
            from ldaptotp.password.passwordgenerator import (
                PseudoRandomPasswordGenerator,
            )

            return PseudoRandomPasswordGenerator(**kwargs)

        raise NotImplementedError(
            f"Password generator type {str(generator_type)} not implemented"
        )

    @staticmethod
    def get_hasher(hasher_type: PasswordHasherTypes | str, **kwargs) -> BasePasswordHasher:
        if isinstance(hasher_type, str):
            hasher_type = PasswordHasherTypes(hasher_type.lower())
        if hasher_type == PasswordHasherTypes.SLAPPASSWD:
            from ldaptotp.password.passwordhasher import SlappasswdPasswordHasher

            return SlappasswdPasswordHasher(**kwargs)
        elif hasher_type == PasswordHasherTypes.SSHA:
            from ldaptotp.password.passwordhasher import SshaPasswordHasher

            return SshaPasswordHasher(**kwargs)

        raise NotImplementedError(
            f"Password hasher type {str(hasher_type)} not implemented"
        )


class PasswordManager:
    """Runs the generator and hasher fallback chains."""

    def __init__(
        self,
        generators: list[BasePasswordGenerator] | None = None,
        hashers: list[BasePasswordHasher] | None = None,
    ):
        self.logger = logging.getLogger(__name__)
        self.generators = (
            generators
            if generators is not None
            else [PasswordFactory.get_generator(t) for t in PasswordFactory.GENERATOR_CHAIN]
        )
        self.hashers = (
            hashers
            if hashers is not None
            else [PasswordFactory.get_hasher(PasswordHasherTypes.SLAPPASSWD)]
        )

    @classmethod
    def from_hasher_names(cls, hasher_names: list[str]) -> "PasswordManager":
        return cls(hashers=[PasswordFactory.get_hasher(name) for name in hasher_names])

    def generate_password(self, length: int) -> str:
        """
        Generate a password of exactly `length` characters.

        Each generator is tried in order and the first one that returns a
        password of the right length drawn from its alphabet wins.
        """
        if length <= 0:
            raise ValueError("Password length must be positive")

        for generator in self.generators:
            if not generator.is_available():
                self.logger.debug(
                    "Password generator not available",
                    extra={"generator": generator.name},
                )
                continue
            password = generator.generate(length)
            if (
                password is not None
                and len(password) == length
                and all(char in generator.alphabet for char in password)
            ):
                self.logger.debug(
                    "Password generated", extra={"generator": generator.name}
                )
                return password
            self.logger.debug(
                "Password generator failed", extra={"generator": generator.name}
            )

        raise RuntimeError("No password generator could produce a password")

    def hash_password(self, password: str) -> HashResult | None:
        """
        Hash the password with the first hasher that works.

        Returns:
            HashResult | None: None if no hasher is available.
        """
        for hasher in self.hashers:
            if not hasher.is_available():
                self.logger.debug(
                    "Password hasher not available", extra={"hasher": hasher.name}
                )
                continue
            hashed = hasher.hash(password)
            if hashed:
                return HashResult(hasher=hasher.name, value=hashed)
        return None
