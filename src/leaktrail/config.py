"""Configuration — typed scan inputs, XDG paths, env vars, defaults."""

from __future__ import annotations

import hashlib
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import quote

from leaktrail.scanner.patterns import DEFAULT_PATTERNS, LeakPattern, load_patterns

DEFAULT_MAX_COMMITS = 250
DEFAULT_STATE_FILE = ".leaktrail-state.json"
DEFAULT_OUTPUT_FILE = "leaktrail-findings.json"


def _default_data_dir() -> Path:
    xdg = os.environ.get("XDG_DATA_HOME")
    if xdg:
        return Path(xdg) / "leaktrail"
    return Path.home() / ".local" / "share" / "leaktrail"


def _default_config_dir() -> Path:
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "leaktrail"
    return Path.home() / ".config" / "leaktrail"


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in ("1", "true", "yes", "on")


def parse_branch_list(value: str | list | tuple | None) -> list[str]:
    """Normalize a comma string or list into branch names, dropping blanks."""
    if value is None:
        return []
    items = value.split(",") if isinstance(value, str) else value
    return [str(b).strip() for b in items if str(b).strip()]


@dataclass
class RepoConfig:
    """Which repository to scan and how far to go per run."""

    repo_url: str
    default_branch: str = "main"
    branches: list[str] = field(default_factory=list)
    repo_name: str = "project"
    remove_clone_on_exit: bool = True
    max_commits_per_run: int | None = DEFAULT_MAX_COMMITS

    def __post_init__(self) -> None:
        if not self.repo_url:
            raise ValueError("repo_url is required")
        if self.max_commits_per_run is not None and self.max_commits_per_run < 1:
            raise ValueError("max_commits_per_run must be positive")


@dataclass
class ScanConfig:
    """Where scan state lives and what to look for."""

    state_file: Path = field(default_factory=lambda: Path(DEFAULT_STATE_FILE))
    output_file: Path = field(default_factory=lambda: Path(DEFAULT_OUTPUT_FILE))
    patterns: tuple[LeakPattern, ...] = DEFAULT_PATTERNS
    force_full_scan: bool = False


@dataclass(frozen=True)
class GitAuth:
    """Optional credentials injected into HTTPS clone URLs."""

    username: str | None = None
    token: str | None = None

    @property
    def enabled(self) -> bool:
        return bool(self.username and self.token)

    def apply(self, repo_url: str) -> str:
        if not self.enabled or "://" not in repo_url:
            return repo_url
        scheme, rest = repo_url.split("://", 1)
        return f"{scheme}://{quote(self.username or '', safe='')}:{self.token}@{rest}"

    def mask(self, text: str) -> str:
        """Hide the token in text that may echo the clone URL."""
        if self.token:
            return text.replace(self.token, "***")
        return text

    @classmethod
    def from_env(cls) -> GitAuth:
        return cls(
            username=os.environ.get("GITHUB_USERNAME") or None,
            token=os.environ.get("GITHUB_PAT") or None,
        )


def repo_slug(repo_url: str) -> str:
    """Filesystem-safe, collision-resistant directory name for a repo URL."""
    tail = repo_url.rstrip("/").rsplit("/", 1)[-1]
    if tail.endswith(".git"):
        tail = tail[:-4]
    name = re.sub(r"[^A-Za-z0-9._-]+", "-", tail).strip("-.") or "repo"
    digest = hashlib.sha1(repo_url.encode("utf-8")).hexdigest()[:10]
    return f"{name}-{digest}"


@dataclass
class LeakTrailConfig:
    """Application-wide configuration."""

    data_dir: Path = field(default_factory=_default_data_dir)
    config_dir: Path = field(default_factory=_default_config_dir)
    repo_url: str = ""
    default_branch: str = "main"
    branches: list[str] = field(default_factory=list)
    max_commits_per_run: int | None = DEFAULT_MAX_COMMITS
    force_full_scan: bool = False
    state_file: Path = field(default_factory=lambda: Path(DEFAULT_STATE_FILE))
    output_file: Path = field(default_factory=lambda: Path(DEFAULT_OUTPUT_FILE))
    patterns_file: Path | None = None
    auth: GitAuth = field(default_factory=GitAuth)
    web_host: str = "127.0.0.1"
    web_port: int = 8471

    @classmethod
    def load(cls) -> LeakTrailConfig:
        """Load config from environment variables with XDG defaults."""
        config = cls()

        config.repo_url = os.environ.get("LEAKTRAIL_REPO", "")
        config.default_branch = os.environ.get("LEAKTRAIL_BRANCH") or "main"
        config.branches = parse_branch_list(os.environ.get("LEAKTRAIL_BRANCHES"))
        config.force_full_scan = _env_flag("LEAKTRAIL_FORCE_FULL")
        config.auth = GitAuth.from_env()

        env_max = os.environ.get("LEAKTRAIL_MAX_COMMITS")
        if env_max:
            config.max_commits_per_run = int(env_max) or None

        env_state = os.environ.get("LEAKTRAIL_STATE_FILE")
        if env_state:
            config.state_file = Path(env_state)

        env_output = os.environ.get("LEAKTRAIL_OUTPUT_FILE")
        if env_output:
            config.output_file = Path(env_output)

        env_patterns = os.environ.get("LEAKTRAIL_PATTERNS_FILE")
        if env_patterns:
            config.patterns_file = Path(env_patterns)
        else:
            # Fall back to patterns.yaml in the config dir if present
            candidate = config.config_dir / "patterns.yaml"
            if candidate.is_file():
                config.patterns_file = candidate

        env_port = os.environ.get("LEAKTRAIL_WEB_PORT")
        if env_port:
            config.web_port = int(env_port)

        return config

    def load_patterns(self) -> tuple[LeakPattern, ...]:
        if self.patterns_file:
            return load_patterns(self.patterns_file)
        return DEFAULT_PATTERNS

    def repo_config(self) -> RepoConfig:
        return RepoConfig(
            repo_url=self.repo_url,
            default_branch=self.default_branch,
            branches=list(self.branches),
            max_commits_per_run=self.max_commits_per_run,
        )

    def scan_config(self) -> ScanConfig:
        return ScanConfig(
            state_file=self.state_file,
            output_file=self.output_file,
            patterns=self.load_patterns(),
            force_full_scan=self.force_full_scan,
        )

    def repo_state_dir(self, repo_url: str) -> Path:
        """Per-repository state directory used by the web API."""
        return self.data_dir / "repos" / repo_slug(repo_url)
