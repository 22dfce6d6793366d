import enum

from ldaptotp.bundle.bundlesource import BaseBundleSource
from ldaptotp.config import SetupConfig


class BundleSourceTypes(enum.Enum):
    RELEASE = "release"
    BRANCH = "branch"


class BundleSourceFactory:
    # tried in this order, first success wins
    DEFAULT_CHAIN = [BundleSourceTypes.RELEASE, BundleSourceTypes.BRANCH]

    @staticmethod
    def get_source(
        bundle_source_type: BundleSourceTypes, config: SetupConfig, **kwargs
    ) -> BaseBundleSource:
        if bundle_source_type == BundleSourceTypes.RELEASE:
            from ldaptotp.bundle.bundlesource import ReleaseBundleSource

            return ReleaseBundleSource(config, **kwargs)
        elif bundle_source_type == BundleSourceTypes.BRANCH:
            from ldaptotp.bundle.bundlesource import BranchBundleSource

            return BranchBundleSource(config, **kwargs)

        raise NotImplementedError(
            f"Bundle source type {str(bundle_source_type)} not implemented"
        )

    @staticmethod
    def get_sources(config: SetupConfig, **kwargs) -> list[BaseBundleSource]:
        return [
            BundleSourceFactory.get_source(source_type, config, **kwargs)
            for source_type in BundleSourceFactory.DEFAULT_CHAIN
        ]
