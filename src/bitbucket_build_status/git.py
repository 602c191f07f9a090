"""Source control helpers."""

import logging
import subprocess

logger = logging.getLogger("bitbucket-build-status.git")


def resolve_head_commit(cwd: str | None = None) -> str:
    """Return the commit hash of HEAD in the working directory.

    Args:
        cwd: Directory to run git in (defaults to the current directory)

    Returns:
        The full commit hash, or an empty string if it cannot be resolved
    """
    cmd = ["git", "rev-parse", "HEAD"]
    try:
        result = subprocess.run(
            cmd, capture_output=True, text=True, check=False, cwd=cwd, timeout=30
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.warning(f"Unable to run {' '.join(cmd)}: {e}")
        return ""

    if result.returncode != 0:
        logger.warning(f"git rev-parse HEAD failed: {result.stderr.strip()}")
        return ""

    return result.stdout.strip()
