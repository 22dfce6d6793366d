import abc
import logging

import requests

from ldaptotp.config import SetupConfig


class BaseBundleSource(metaclass=abc.ABCMeta):
    """A place the template bundle archive can be downloaded from."""

    name: str = "base"

    def __init__(self, config: SetupConfig, **kwargs):
        self.logger = logging.getLogger(__name__)
        self.config = config

    @abc.abstractmethod
    def get_archive_url(self) -> str | None:
        """
        Resolve the URL of the gzipped tarball for this source.

        Returns:
            str | None: The archive URL, or None if this source has nothing to offer.
        """
        raise NotImplementedError(
            "get_archive_url() method not implemented"
            " for {}".format(self.__class__.__name__)
        )


class ReleaseBundleSource(BaseBundleSource):
    """The tarball of the latest tagged GitHub release."""

    name = "latest release"

    def get_archive_url(self) -> str | None:
        url = self.config.release_api_url
        self.logger.debug("Querying release metadata", extra={"url": url})
        try:
            response = requests.get(
                url,
                headers={"accept": "application/vnd.github+json"},
                timeout=self.config.request_timeout,
                verify=self.config.verify_ssl,
            )
        except requests.exceptions.RequestException:
            self.logger.debug("Release metadata request failed", exc_info=True)
            return None

        if not response.ok:
            self.logger.debug(
                "No release metadata", extra={"status_code": response.status_code}
            )
            return None

        try:
            release = response.json()
        except ValueError:
            self.logger.debug("Release metadata is not JSON")
            return None

        tarball_url = release.get("tarball_url") if isinstance(release, dict) else None
        if not tarball_url or tarball_url == "null":
            return None
        return tarball_url


class BranchBundleSource(BaseBundleSource):
    """The archive of the default branch, used when there is no release."""

    name = "main branch"

    def __init__(self, config: SetupConfig, **kwargs):
        super().__init__(config, **kwargs)
        self.name = f"{config.branch} branch"

    def get_archive_url(self) -> str | None:
        return self.config.branch_archive_url
