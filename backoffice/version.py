"""
Version information for the Fulfillment Back Office.

Single source of truth: pyproject.toml
Runtime access via importlib.metadata with fallback.
"""

from __future__ import annotations

import os
import subprocess
import sys
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any

# Fallback version if package metadata unavailable (dev mode)
_FALLBACK_VERSION = "0.1.0"

DISTRIBUTION_NAME = "fulfillment-back-office"


def get_version() -> str:
    """Get the package version from metadata or fallback."""
    try:
        from importlib.metadata import version

        return version(DISTRIBUTION_NAME)
    except Exception:
        return _FALLBACK_VERSION


VERSION = get_version()


@lru_cache(maxsize=1)
def get_git_info() -> dict[str, str | None]:
    """
    Get git commit info (cached for performance).

    Returns:
        dict with commit hash, branch name, and source
    """
    # Docker build args first
    commit = os.environ.get("GIT_COMMIT")
    branch = os.environ.get("GIT_BRANCH")

    if commit:
        return {"commit": commit[:8], "branch": branch, "source": "env"}

    try:
        commit = subprocess.check_output(
            ["git", "rev-parse", "--short", "HEAD"],
            stderr=subprocess.DEVNULL,
            text=True,
            timeout=5,
        ).strip()
        branch = subprocess.check_output(
            ["git", "rev-parse", "--abbrev-ref", "HEAD"],
            stderr=subprocess.DEVNULL,
            text=True,
            timeout=5,
        ).strip()
        return {"commit": commit, "branch": branch, "source": "git"}
    except (subprocess.SubprocessError, FileNotFoundError, OSError):
        return {"commit": None, "branch": None, "source": None}


def version_info() -> dict[str, Any]:
    """
    Get comprehensive version information.

    Returns:
        dict with version, python_version, git info and build date
    """
    git = get_git_info()

    return {
        "version": VERSION,
        "python_version": f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
        "git_commit": git.get("commit"),
        "git_branch": git.get("branch"),
        "build_date": os.environ.get("BUILD_DATE") or datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
        "environment": os.environ.get("ENV", os.environ.get("ENVIRONMENT", "development")),
    }


def version_string() -> str:
    """Formatted version string like "v0.1.0 (abc1234)"."""
    info = version_info()
    parts = [f"v{info['version']}"]
    if info.get("git_commit"):
        parts.append(f"({info['git_commit']})")
    return " ".join(parts)
