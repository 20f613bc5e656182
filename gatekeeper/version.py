"""Version management for Gatekeeper"""

import os
import subprocess
from functools import lru_cache
from importlib import metadata


# Default version for development
DEFAULT_VERSION = "dev"
DISTRIBUTION_NAME = "gatekeeper"


@lru_cache(maxsize=1)
def get_version() -> str:
    """
    Get the application version.

    Priority:
    1. GATEKEEPER_VERSION environment variable (set by CI)
    2. Installed distribution metadata
    3. Default to "dev"
    """
    version = os.environ.get("GATEKEEPER_VERSION")
    if version and version.strip():
        return version.strip()

    try:
        return metadata.version(DISTRIBUTION_NAME)
    except metadata.PackageNotFoundError:
        return DEFAULT_VERSION


def _git(*args: str):
    try:
        result = subprocess.run(
            ["git", *args],
            capture_output=True,
            text=True,
            timeout=5,
            cwd=os.path.dirname(__file__)
        )
    except (OSError, subprocess.SubprocessError):
        return None
    if result.returncode == 0:
        return result.stdout.strip() or None
    return None


@lru_cache(maxsize=1)
def get_build_info() -> dict:
    """
    Get version, commit and branch.

    Commit and branch come from GATEKEEPER_COMMIT / GATEKEEPER_BRANCH, or git
    for development checkouts. Missing values are left out.
    """
    info = {
        "version": get_version(),
        "commit": os.environ.get("GATEKEEPER_COMMIT") or _git("rev-parse", "--short", "HEAD"),
        "branch": os.environ.get("GATEKEEPER_BRANCH") or _git("rev-parse", "--abbrev-ref", "HEAD"),
    }

    return {k: v for k, v in info.items() if v is not None}
