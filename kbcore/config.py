"""Locating, creating and reading the .kb/ directory and its configuration."""

from __future__ import annotations

import os
import re
from pathlib import Path

import yaml

from kbcore.errors import (
    DomainNotFoundError,
    InvalidDomainNameError,
    NotInitializedError,
)
from kbcore.model import KbConfig

KB_DIR = ".kb"
CONFIG_FILE = "kb.config.yaml"
EXPERTISE_DIR = "expertise"

GITATTRIBUTES_LINE = ".kb/expertise/*.jsonl merge=union"
GITIGNORE_LINES = (".kb/sessions/", ".kb/access.jsonl", ".kb/changelog.jsonl")

_DOMAIN_RE = re.compile(r"[a-zA-Z0-9][a-zA-Z0-9_-]*")


def get_kb_dir(cwd: str | os.PathLike) -> Path:
    return Path(cwd) / KB_DIR


def get_config_path(cwd: str | os.PathLike) -> Path:
    return get_kb_dir(cwd) / CONFIG_FILE


def get_expertise_dir(cwd: str | os.PathLike) -> Path:
    return get_kb_dir(cwd) / EXPERTISE_DIR


def get_expertise_path(domain: str, cwd: str | os.PathLike) -> Path:
    """Path of a domain's JSONL file; the domain name is validated first."""
    validate_domain_name(domain)
    return get_expertise_dir(cwd) / f"{domain}.jsonl"


def validate_domain_name(domain: str) -> None:
    if not _DOMAIN_RE.fullmatch(domain):
        raise InvalidDomainNameError(domain)


def read_config(cwd: str | os.PathLike) -> KbConfig:
    content = get_config_path(cwd).read_text(encoding="utf-8")
    return KbConfig.from_dict(yaml.safe_load(content))


def write_config(config: KbConfig, cwd: str | os.PathLike) -> None:
    content = yaml.safe_dump(config.to_dict(), sort_keys=False)
    get_config_path(cwd).write_text(content, encoding="utf-8")


def ensure_kb_dir(cwd: str | os.PathLike) -> None:
    if not get_kb_dir(cwd).is_dir():
        raise NotInitializedError()


def ensure_domain_exists(config: KbConfig, domain: str) -> None:
    if domain not in config.domains:
        available = ", ".join(config.domains) if config.domains else "(none)"
        raise DomainNotFoundError(domain, available)


def _read_or_empty(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return ""


def _separator(existing: str) -> str:
    return "\n" if existing and not existing.endswith("\n") else ""


def init_kb_dir(cwd: str | os.PathLike) -> None:
    """Create .kb/ with its sub-directories, default config and git helper files."""
    root = Path(cwd)
    kb_dir = get_kb_dir(root)
    kb_dir.mkdir(parents=True, exist_ok=True)
    get_expertise_dir(root).mkdir(parents=True, exist_ok=True)
    (kb_dir / "sessions").mkdir(parents=True, exist_ok=True)

    if not get_config_path(root).exists():
        write_config(KbConfig(), root)

    gitattributes = root / ".gitattributes"
    existing = _read_or_empty(gitattributes)
    if GITATTRIBUTES_LINE not in existing:
        gitattributes.write_text(
            f"{existing}{_separator(existing)}{GITATTRIBUTES_LINE}\n", encoding="utf-8"
        )

    gitignore = root / ".gitignore"
    ignore_existing = _read_or_empty(gitignore)
    additions = "".join(f"{line}\n" for line in GITIGNORE_LINES if line not in ignore_existing)
    if additions:
        gitignore.write_text(
            f"{ignore_existing}{_separator(ignore_existing)}{additions}", encoding="utf-8"
        )