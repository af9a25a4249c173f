"""
Local cache of candidate-run build logs.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional

import requests
from tqdm import tqdm

from .errors import LogFetchError
from .interfaces import LogSource
from .models import Comparison, PackageComparison


logger = logging.getLogger(__name__)

LOG_FILE = "log.txt"


def log_url(log: str) -> str:
    """URL of the raw log behind a run's log reference."""
    return f"{log}/{LOG_FILE}".replace("+", "%2B")


class LogCache(LogSource):
    """Download regressed-package logs once and serve them from disk.

    Logs are stored as ``<log_dir>/<run_name>/<package>/<file_name>``.
    """

    def __init__(
        self,
        log_dir: Path,
        run_name: str,
        file_name: str = "candidate.log",
        session: Optional[requests.Session] = None,
    ) -> None:
        self.log_dir = Path(log_dir)
        self.run_name = run_name
        self.file_name = file_name
        self.session = session or requests.Session()

    def path_for(self, name: str) -> Path:
        return self.log_dir / self.run_name / name / self.file_name

    def fetch(self, comparisons: Iterable[PackageComparison]) -> int:
        """Download the candidate log of every regressed package not cached yet.

        Returns:
            Number of logs downloaded.

        Raises:
            LogFetchError: a log could not be downloaded.
        """
        pending = [
            c for c in comparisons
            if c.comparison is Comparison.REGRESSED
            and c.candidate is not None
            and not self.path_for(c.name).exists()
        ]
        if not pending:
            logger.debug("All regressed logs already cached in %s", self.log_dir / self.run_name)
            return 0

        logger.info("Downloading %d logs", len(pending))
        for comparison in tqdm(pending, desc="Downloading logs", unit="log"):
            url = log_url(comparison.candidate.log)
            try:
                with self.session.get(url) as response:
                    if not response.ok:
                        raise LogFetchError(
                            f"could not request {url}: HTTP {response.status_code}"
                        )
                    content = response.text
            except requests.RequestException as e:
                raise LogFetchError(f"could not request {url}: {e}") from e

            path = self.path_for(comparison.name)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return len(pending)

    def read(self, name: str) -> Optional[str]:
        path = self.path_for(name)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
