"""
Path resolver for petscore.

Rules
-----
* home_dir    → $PETSCORE_HOME, else ~/.petscore
* data_dir    → home_dir/data   (settings.json lives here)
* logs_dir    → home_dir/logs   (portable first); fallback <tempdir>/petscore/logs
* package_data_dir → bundled read-only resources (default lexicon)

Lookups never create directories; only get_logs_dir(), which is called when
logging is actually set up, creates its target.
"""

import os
import tempfile
from pathlib import Path

HOME_ENV_VAR = "PETSCORE_HOME"

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _get_home_dir() -> Path:
    env_home = os.environ.get(HOME_ENV_VAR)
    if env_home:
        return Path(env_home).expanduser()
    return Path.home() / ".petscore"


def _try_writable(path: Path) -> bool:
    """
    Return True if *path* can be created and used as a writable directory.

    Creates the directory if it does not exist.  Uses a canary-file probe
    so we detect permission issues (e.g. read-only home in containers).
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
        canary = path / ".write_probe"
        canary.touch()
        canary.unlink()
        return True
    except (OSError, PermissionError):
        return False


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def get_data_dir() -> Path:
    """Directory holding settings.json (not created here)."""
    return _get_home_dir() / "data"


def get_logs_dir() -> Path:
    """
    Logs directory.

    Priority:
      1. <home_dir>/logs
      2. <system temp>/petscore/logs  ← fallback if home is read-only
    """
    primary = _get_home_dir() / "logs"
    if _try_writable(primary):
        return primary
    fallback = Path(tempfile.gettempdir()) / "petscore" / "logs"
    fallback.mkdir(parents=True, exist_ok=True)
    return fallback


def get_package_data_dir() -> Path:
    """Bundled resources shipped inside the package."""
    return Path(__file__).resolve().parent.parent / "data"


def get_default_lexicon_path() -> Path:
    return get_package_data_dir() / "ingredient_lexicon.json"
