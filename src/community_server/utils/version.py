"""Version utility module for the community server."""

from importlib.metadata import PackageNotFoundError, version

from loguru import logger
from pydantic import BaseModel

DISTRIBUTION_NAME = "community-server"
FALLBACK_VERSION = "0.1.0-dev"


class VersionInfo(BaseModel):
    """Version information model."""

    version: str
    distribution: str = DISTRIBUTION_NAME
    is_installed: bool = True


def get_version() -> VersionInfo:
    """Get the installed package version with a fallback for source checkouts.

    Returns:
        VersionInfo with the installed version, or the fallback version when
        the distribution metadata is not available
    """
    try:
        return VersionInfo(version=version(DISTRIBUTION_NAME))
    except PackageNotFoundError:
        logger.debug(f"Distribution {DISTRIBUTION_NAME} not installed, using {FALLBACK_VERSION}")
        return VersionInfo(version=FALLBACK_VERSION, is_installed=False)
