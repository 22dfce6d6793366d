class SetupException(Exception):
    exit_code = 1

    def __init__(self, message, *args: object, hint: str | None = None) -> None:
        super().__init__(message, *args)
        self.message = message
        self.hint = hint


class MissingDependencyException(SetupException):
    def __init__(self, missing: list[str], *args: object) -> None:
        super().__init__(
            f"Missing required tools: {' '.join(missing)}",
            *args,
            hint="Please install them and try again.",
        )
        self.missing = missing


class InvalidBaseDnException(SetupException):
    def __init__(self, base_dn: str, *args: object) -> None:
        super().__init__(
            f"Invalid base DN format: {base_dn}",
            *args,
            hint="Please use format like 'dc=example,dc=com'",
        )
        self.base_dn = base_dn


class NoTerminalException(SetupException):
    pass


class BundleDownloadException(SetupException):
    pass


class OutputWriteException(SetupException):
    def __init__(self, path: str, error: OSError, *args: object) -> None:
        super().__init__(
            f"Cannot write {path}: {error.strerror or error}",
            *args,
            hint="Check that the output directory is writable or pass another one with --output-dir.",
        )
        self.path = path
