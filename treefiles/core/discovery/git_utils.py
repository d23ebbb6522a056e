# treefiles/core/discovery/git_utils.py
import os
import shutil
import subprocess
from pathlib import Path
from typing import Optional
import structlog

log = structlog.get_logger(__name__)


def get_git_config_value(key: str) -> Optional[str]:
    """
    Read a single value from the user's git configuration.

    Args:
        key: The git config key (e.g., "core.excludesfile")

    Returns:
        The stripped value, or None if git is unavailable or the key is unset
    """
    git_cmd = shutil.which("git")
    if git_cmd is None:
        log.debug("git_executable_not_found")
        return None

    try:
        result = subprocess.run(
            [git_cmd, "config", "--get", key],
            capture_output=True,
            text=True,
            check=False
        )
    except OSError as e:
        log.warning("git_config_lookup_failed", key=key, error=str(e))
        return None

    if result.returncode != 0:
        # exit code 1 just means the key is unset.
        log.debug("git_config_key_unset", key=key, exit_code=result.returncode)
        return None

    value = result.stdout.strip()
    return value or None


def global_ignore_file(home_dir: Optional[Path] = None) -> Optional[Path]:
    """
    Locate the global excludes file configured through core.excludesfile.

    Args:
        home_dir: Home directory used to resolve relative or "~" values;
            defaults to the current user's home

    Returns:
        Path to the configured file, or None if nothing is configured
    """
    configured = get_git_config_value("core.excludesfile")
    if not configured:
        return None

    if home_dir is None:
        home_dir = Path.home()

    if configured == "~" or configured.startswith("~/"):
        configured = str(home_dir) + configured[1:]
    else:
        configured = os.path.expanduser(configured)
    candidate = Path(os.path.expandvars(configured))
    if not candidate.is_absolute():
        candidate = home_dir / candidate

    log.debug("global_ignore_file_located", path=str(candidate))
    return candidate
