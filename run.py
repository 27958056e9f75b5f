"""
Convenience launcher for a local game against bots.

Behaviour:
- If not already running inside a virtual environment, create ``.venv`` in the
  project root (if it does not exist), then re-run this script inside it.
- Inside the venv:
  - If kazhutha is importable: start ``kazhutha play`` directly.
  - Otherwise: install the package with pip install -e ., then start it.

Extra arguments are passed to ``kazhutha play`` (e.g. ``python run.py --players 5``).
"""
from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path


ROOT = Path(__file__).resolve().parent
VENV_DIR = ROOT / ".venv"


def in_virtualenv() -> bool:
    """Return True if we're currently running inside any virtualenv."""
    return sys.prefix != getattr(sys, "base_prefix", sys.prefix) or bool(
        os.environ.get("VIRTUAL_ENV")
    )


def venv_python_path() -> Path:
    if os.name == "nt":
        return VENV_DIR / "Scripts" / "python.exe"
    return VENV_DIR / "bin" / "python"


def package_installed() -> bool:
    try:
        import kazhutha  # noqa: F401
        return True
    except ImportError:
        return False


def ensure_venv_and_rerun(extra: list[str]) -> None:
    """Create .venv if needed and re-run this script inside it."""
    if not VENV_DIR.exists():
        print(f"Creating virtual environment at {VENV_DIR} ...")
        subprocess.check_call(
            [sys.executable, "-m", "venv", str(VENV_DIR)],
            cwd=str(ROOT),
        )

    py = venv_python_path()
    print(f"Re-running inside virtualenv using {py} ...")
    subprocess.check_call([str(py), str(ROOT / "run.py"), "--inside-venv", *extra], cwd=str(ROOT))


def inside_venv_main(extra: list[str]) -> None:
    if not package_installed():
        print("Installing kazhutha into virtualenv ...")
        subprocess.check_call(
            [sys.executable, "-m", "pip", "install", "-e", "."],
            cwd=str(ROOT),
        )

    subprocess.check_call(
        [sys.executable, "-m", "kazhutha.cli", "play", *extra],
        cwd=str(ROOT),
    )


def main() -> None:
    extra = [a for a in sys.argv[1:] if a != "--inside-venv"]
    if "--inside-venv" in sys.argv or in_virtualenv():
        inside_venv_main(extra)
    else:
        ensure_venv_and_rerun(extra)


if __name__ == "__main__":
    main()
