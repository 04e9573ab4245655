"""Application version lookup."""

import os
from importlib.metadata import PackageNotFoundError, version as package_version


def get_version() -> str:
    """
    Return the running version.

    ``APP_VERSION`` (stamped by the container build) wins, then the version of
    the installed ``trunkbot`` distribution; a bare source checkout reports ``dev``.
    """
    override = os.getenv("APP_VERSION")
    if override:
        return override.strip()

    try:
        return package_version("trunkbot")
    except PackageNotFoundError:
        return "dev"


VERSION = get_version()
