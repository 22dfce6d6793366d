import contextlib
import importlib.util
import logging

from ldaptotp.bundle.bundledownloader import BundleDownloader, scratch_directory
from ldaptotp.cli.console import print_info
from ldaptotp.config import SetupConfig
from ldaptotp.exceptions.setup_exception import MissingDependencyException
from ldaptotp.models.artifact import SetupResult
from ldaptotp.password.passwordfactory import PasswordManager
from ldaptotp.templating.templating import TemplateProcessor

# module -> what needs it
REQUIRED_MODULES = {
    "ssl": "HTTPS downloads",
    "zlib": "gzip archive extraction",
}


def check_dependencies(required_modules: dict[str, str] | None = None):
    """
    Make sure the interpreter has what downloading and extracting need.

    Raises:
        MissingDependencyException: One or more modules are missing.
    """
    if required_modules is None:
        required_modules = REQUIRED_MODULES
    missing = [
        module
        for module in required_modules
        if importlib.util.find_spec(module) is None
    ]
    if missing:
        raise MissingDependencyException(missing)


class SetupManager:
    """Runs one setup: fetch the bundle, customise it, write the output."""

    def __init__(
        self,
        config: SetupConfig,
        downloader: BundleDownloader | None = None,
        password_manager: PasswordManager | None = None,
    ):
        self.logger = logging.getLogger(__name__)
        self.config = config
        self.downloader = downloader or BundleDownloader(config)
        self.password_manager = password_manager or PasswordManager.from_hasher_names(
            config.password_hashers
        )

    @contextlib.contextmanager
    def _bundle_directory(self):
        if self.config.source_dir:
            print_info(f"Using local schema files from {self.config.source_dir}")
            yield self.config.source_dir, "local directory"
            return
        with scratch_directory() as temp_dir:
            source = self.downloader.download(temp_dir)
            yield temp_dir, source

    def run(self, base_dn: str) -> SetupResult:
        self.logger.debug(
            "Starting setup",
            extra={"base_dn": base_dn, "output_dir": self.config.output_dir},
        )
        with self._bundle_directory() as (bundle_dir, source):
            processor = TemplateProcessor(
                source_dir=bundle_dir,
                output_dir=self.config.output_dir,
                base_dn=base_dn,
                password_manager=self.password_manager,
                password_length=self.config.password_length,
            )
            artifacts = processor.process()

        result = SetupResult(
            base_dn=base_dn,
            output_dir=self.config.output_dir,
            artifacts=artifacts,
            source=source,
            hashed_with=processor.hashed_with,
        )
        self.logger.debug(
            "Setup finished",
            extra={
                "source": source,
                "created_artifacts": [a.name for a in result.created_artifacts],
                "hashed_with": result.hashed_with,
            },
        )
        return result
