"""Finding files changed in a git working tree and records relevant to them."""

from __future__ import annotations

import os
import subprocess
from collections.abc import Sequence

from kbcore.model import ExpertiseRecord


def is_git_repo(cwd: str | os.PathLike) -> bool:
    """True when ``cwd`` is inside a git work tree."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--is-inside-work-tree"],
            cwd=cwd,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            check=False,
        )
    except OSError:
        return False
    return result.returncode == 0


def _diff_names(cwd: str | os.PathLike, *args: str) -> list[str]:
    try:
        result = subprocess.run(
            ["git", "diff", "--name-only", *args],
            cwd=cwd,
            capture_output=True,
            check=False,
        )
    except OSError:
        return []
    if result.returncode != 0:
        return []
    text = result.stdout.decode("utf-8", errors="replace")
    return [line.strip() for line in text.splitlines() if line.strip()]


def get_changed_files(cwd: str | os.PathLike, since: str) -> list[str]:
    """Sorted, de-duplicated files changed since ``since``, staged, or unstaged."""
    files: set[str] = set()
    files.update(_diff_names(cwd, since))
    files.update(_diff_names(cwd, "--cached"))
    files.update(_diff_names(cwd))
    return sorted(files)


def file_matches_any(file: str, changed_files: Sequence[str]) -> bool:
    """True when ``file`` equals a changed file or one is a suffix of the other."""
    return any(
        changed == file or changed.endswith(file) or file.endswith(changed)
        for changed in changed_files
    )


def filter_by_context(
    records: Sequence[ExpertiseRecord], changed_files: Sequence[str]
) -> list[ExpertiseRecord]:
    """Records touching a changed file; records without files are always kept."""
    return [
        r
        for r in records
        if not r.files or any(file_matches_any(f, changed_files) for f in r.files)
    ]