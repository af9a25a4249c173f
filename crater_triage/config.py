"""
Run settings for the triage commands.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Tuple


DEFAULT_INDEX_URL = "https://github.com/rust-lang/crates.io-index"
DEFAULT_LOG_BASE_URL = "https://cargobomb-reports.s3.amazonaws.com"


def _quiet_from_env() -> bool:
    return os.environ.get("QUIET") is not None


@dataclass
class TriageSettings:
    """Paths, URLs and switches shared by every command."""

    index_dir: Path = Path("crates.io-index")
    index_url: str = DEFAULT_INDEX_URL
    update_index: bool = False
    log_dir: Path = Path("logs")
    output_dir: Path = Path("./output")
    log_base_url: str = DEFAULT_LOG_BASE_URL
    baseline_run: str = "baseline"
    candidate_run: str = "candidate"
    location_only_sources: Tuple[str, ...] = ("universal_regions.rs:825",)
    quiet: bool = field(default_factory=_quiet_from_env)

    @property
    def baseline_log_prefix(self) -> str:
        return f"{self.log_base_url.rstrip('/')}/{self.baseline_run}"

    @property
    def candidate_log_prefix(self) -> str:
        return f"{self.log_base_url.rstrip('/')}/{self.candidate_run}"

    @classmethod
    def from_args(cls, args) -> "TriageSettings":
        """Build settings from parsed CLI arguments, ignoring options a command lacks."""
        settings = cls()
        for name in (
            "index_dir", "index_url", "update_index", "log_dir", "output_dir",
            "log_base_url", "baseline_run", "candidate_run",
        ):
            value = getattr(args, name, None)
            if value is not None:
                if name.endswith("_dir"):
                    value = Path(value)
                setattr(settings, name, value)
        if getattr(args, "quiet", False):
            settings.quiet = True
        return settings
