import contextlib
import io
import logging
import os
import shutil
import tarfile
import tempfile
from pathlib import PurePosixPath

import requests

from ldaptotp.bundle.bundlesource import BaseBundleSource
from ldaptotp.bundle.bundlesourcefactory import BundleSourceFactory
from ldaptotp.cli.console import print_info, print_success, print_warning
from ldaptotp.config import SetupConfig
from ldaptotp.exceptions.setup_exception import BundleDownloadException

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def scratch_directory():
    """Yield a fresh temporary directory that is removed on every exit path."""
    with tempfile.TemporaryDirectory(prefix="ldap-totp-schema-") as temp_dir:
        logger.debug("Created scratch directory", extra={"path": temp_dir})
        yield temp_dir
    logger.debug("Removed scratch directory", extra={"path": temp_dir})


def extract_archive(data: bytes, destination: str) -> int:
    """
    Extract a gzipped tarball, dropping its single top level directory.

    Only regular files and directories are extracted; links, devices and
    members escaping the destination are ignored.

    Args:
        data (bytes): The archive content.
        destination (str): The directory to extract into.

    Returns:
        int: The number of files written.
    """
    files_written = 0
    with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as tar:
        for member in tar.getmembers():
            path = PurePosixPath(member.name)
            parts = path.parts[1:]
            if not parts or path.is_absolute() or ".." in parts:
                continue
            target = os.path.join(destination, *parts)
            if member.isdir():
                os.makedirs(target, exist_ok=True)
            elif member.isfile():
                os.makedirs(os.path.dirname(target), exist_ok=True)
                source = tar.extractfile(member)
                with source, open(target, "wb") as f:
                    shutil.copyfileobj(source, f)
                files_written += 1
            else:
                logger.debug("Skipping archive member", extra={"member": member.name})
    return files_written


def clear_directory(directory: str):
    for entry in os.listdir(directory):
        path = os.path.join(directory, entry)
        if os.path.isdir(path) and not os.path.islink(path):
            shutil.rmtree(path)
        else:
            os.remove(path)


class BundleDownloader:
    """Fetch the template bundle, trying each source in turn."""

    def __init__(
        self, config: SetupConfig, sources: list[BaseBundleSource] | None = None
    ):
        self.logger = logging.getLogger(__name__)
        self.config = config
        self.sources = (
            sources if sources is not None else BundleSourceFactory.get_sources(config)
        )

    def fetch_archive(self, url: str) -> bytes:
        response = requests.get(
            url,
            timeout=self.config.request_timeout,
            verify=self.config.verify_ssl,
        )
        response.raise_for_status()
        return response.content

    def _try_source(self, source: BaseBundleSource, destination: str) -> bool:
        url = source.get_archive_url()
        if not url:
            self.logger.debug("Source has no archive", extra={"source": source.name})
            return False

        print_info(f"Downloading {source.name}...")
        self.logger.debug("Downloading archive", extra={"url": url})
        try:
            extract_archive(self.fetch_archive(url), destination)
        except (
            requests.exceptions.RequestException,
            tarfile.TarError,
            EOFError,
            OSError,
        ):
            self.logger.debug(
                "Archive download failed", extra={"url": url}, exc_info=True
            )
            clear_directory(destination)
            return False
        return True

    def download(self, destination: str) -> str:
        """
        Download and extract the bundle into destination.

        Raises:
            BundleDownloadException: No source could be downloaded.

        Returns:
            str: The name of the source that was used.
        """
        print_info("Checking for latest release...")
        for index, source in enumerate(self.sources):
            if index > 0:
                print_warning(f"No release found, downloading from {source.name}...")
            if self._try_source(source, destination):
                print_success(f"Downloaded {source.name}")
                return source.name

        raise BundleDownloadException("Failed to download schema files")
