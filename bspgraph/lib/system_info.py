"""Host, interpreter and source-checkout metadata stored with benchmark results."""

from __future__ import annotations

import os
import platform
import subprocess
from pathlib import Path

import numpy as np

from .schema import HardwareInfo

# Root of the bspgraph checkout; git is queried here, not in the caller's cwd.
_SOURCE_ROOT = Path(__file__).resolve().parents[2]


def capture_hardware() -> HardwareInfo:
    return HardwareInfo(
        cpu=_cpu_model(),
        cores=os.cpu_count() or 0,
        ram_gb=round(_total_memory() / 1024 ** 3, 1),
        os=platform.system().lower(),
        arch=platform.machine(),
    )


def git_state() -> tuple[str | None, str | None, bool | None]:
    """``(short commit, branch, dirty)`` of the engine's source checkout.

    All three are ``None`` when bspgraph is not running from a git checkout.
    """
    commit = _git("rev-parse", "--short", "HEAD")
    if commit is None:
        return None, None, None
    status = _git("status", "--porcelain", "--untracked-files=no")
    return commit, _git("rev-parse", "--abbrev-ref", "HEAD"), bool(status)


def engine_version() -> str:
    from .. import __version__
    return __version__


def python_version() -> str:
    return platform.python_version()


def numpy_version() -> str:
    return np.__version__


# -------------------------------------------------------------------
# Internals
# -------------------------------------------------------------------

def _git(*args: str) -> str | None:
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=_SOURCE_ROOT, capture_output=True, text=True, timeout=5,
        )
    except (OSError, subprocess.TimeoutExpired):
        return None
    return result.stdout.strip() if result.returncode == 0 else None


def _cpu_model() -> str:
    try:
        with open("/proc/cpuinfo") as f:
            for line in f:
                if line.startswith("model name"):
                    return line.split(":", 1)[1].strip()
    except OSError:
        pass
    return platform.processor() or "unknown"


def _total_memory() -> int:
    """Physical memory in bytes, 0 where ``sysconf`` cannot tell."""
    try:
        return os.sysconf("SC_PAGE_SIZE") * os.sysconf("SC_PHYS_PAGES")
    except (AttributeError, ValueError, OSError):
        return 0
