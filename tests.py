"""
Run the Kazhutha test suite from a fresh checkout.

    python tests.py              # everything
    python tests.py -k give_all  # extra arguments go straight to pytest

The package is installed in editable mode with its ``dev`` extra the first
time, so the engine, host and transport tests import ``kazhutha`` from src/.
"""
from __future__ import annotations

import subprocess
import sys
from pathlib import Path


ROOT = Path(__file__).resolve().parent


def ensure_test_dependencies() -> None:
    """Install the package with its dev extra unless pytest and kazhutha already import."""
    try:
        import pytest  # noqa: F401
        import kazhutha  # noqa: F401
        return
    except ImportError:
        pass

    print("Installing the package with test dependencies (.[dev]) ...")
    subprocess.check_call(
        [sys.executable, "-m", "pip", "install", "-e", ".[dev]"],
        cwd=str(ROOT),
    )


def main() -> None:
    ensure_test_dependencies()
    print("Running test suite with pytest ...")
    subprocess.check_call(
        [sys.executable, "-m", "pytest", *sys.argv[1:]],
        cwd=str(ROOT),
    )


if __name__ == "__main__":
    main()
