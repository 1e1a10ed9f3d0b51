"""
multisig.version — package version and the build label the local host logs.

No imports from the rest of the package, so anything can import it first.
"""

from __future__ import annotations

import os
import subprocess
from functools import lru_cache
from pathlib import Path

__version__ = "0.1.0"

_PKG_DIR = Path(__file__).resolve().parent


@lru_cache(maxsize=1)
def git_describe() -> str:
    """
    Describe the checkout this package was imported from.

    MULTISIG_GIT_DESCRIBE wins when set (containers, sdists). Otherwise runs
    `git describe` inside the package directory; outside a checkout the result
    is `<version>+local`.
    """
    override = os.getenv("MULTISIG_GIT_DESCRIBE", "").strip()
    if override:
        return override
    try:
        out = subprocess.run(
            ["git", "describe", "--tags", "--dirty", "--always"],
            cwd=_PKG_DIR,
            capture_output=True,
            text=True,
            check=True,
            timeout=2,
        )
    except (OSError, subprocess.SubprocessError):
        return f"{__version__}+local"
    return out.stdout.strip() or f"{__version__}+local"


def build_label() -> str:
    """'multisig 0.1.0 (v0.1.0-3-gabc)', or just the version when git adds nothing."""
    desc = git_describe()
    if desc in (__version__, f"{__version__}+local"):
        return f"multisig {desc}"
    return f"multisig {__version__} ({desc})"


__all__ = ["__version__", "build_label", "git_describe"]
