"""
publish.py

Responsibility: Stage, commit and push the generated output tree with git.

Every step is best-effort: a failing `git add`, `git commit` or `git push`
is logged and the next step still runs. The caller learns which steps
failed from the return value.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from webgen.errors import PublishError

logger = logging.getLogger(__name__)

OUTPUT_PREFIX = "    "


def _run(cmd: list[str], *, cwd: Path) -> str:
    """
    Run a subprocess command, raising a PublishError on failure.
    """
    try:
        proc = subprocess.run(
            cmd, cwd=str(cwd), check=True, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, text=True
        )
    except subprocess.CalledProcessError as e:
        raise PublishError(f"Command failed: {' '.join(cmd)}\n\n{e.stdout}") from e
    except OSError as e:
        raise PublishError(f"Command failed: {' '.join(cmd)}: {e}") from e
    return proc.stdout


def _log_output(text: str) -> None:
    for line in text.splitlines():
        if line.strip():
            logger.info("%s%s", OUTPUT_PREFIX, line)


def publish(out_dir: str | Path, message: str, remote: str | None = None) -> list[str]:
    """
    Run `git add -A`, `git commit -am <message>` and `git push` in `out_dir`.

    Returns the names of the steps that failed (empty on full success).
    """
    repo = Path(out_dir)
    logger.info("Pushing changes to remote...")
    logger.info("%sRepo Root: %s", OUTPUT_PREFIX, repo)

    push_cmd = ["git", "push"] + ([remote] if remote else [])
    steps = [
        ("add", ["git", "add", "-A"]),
        ("commit", ["git", "commit", "-am", message]),
        ("push", push_cmd),
    ]

    failed: list[str] = []
    for name, cmd in steps:
        try:
            _log_output(_run(cmd, cwd=repo))
        except PublishError as e:
            logger.warning("%s%s", OUTPUT_PREFIX, e)
            failed.append(name)
    return failed
