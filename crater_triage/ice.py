"""
Grouping compiler crashes (ICEs) found in candidate build logs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Sequence

from .interfaces import LogSource
from .logs import log_url
from .models import PackageComparison


logger = logging.getLogger(__name__)

ICE = "internal compiler error"
ICE_MARKER = f"{ICE}: "
CATEGORY_WIDTH = 60


@dataclass(frozen=True)
class IceEntry:
    signature: str
    name: str
    url: str
    log_url: str

    @property
    def category(self) -> str:
        return self.signature[:CATEGORY_WIDTH]


def extract_ice_signature(log: str, name: str, location_only_sources: Sequence[str] = ()) -> str:
    """Return the crash message of the first ICE line in ``log``.

    For crashes raised from one of ``location_only_sources`` the message
    varies per package, so only the source location is kept.

    Raises:
        ValueError: no line of ``log`` carries the ICE marker.
    """
    line = next((l for l in log.splitlines() if ICE_MARKER in l), None)
    if line is None:
        raise ValueError(f"could not find ICE in log for {name}")

    message = line[line.index(ICE_MARKER) + len(ICE_MARKER):]
    if any(source in line for source in location_only_sources):
        end = message.find(": ")
        if end != -1:
            message = message[:end]
    return message


def collect_ice_entries(
    comparisons: Iterable[PackageComparison],
    logs: LogSource,
    location_only_sources: Sequence[str] = (),
) -> List[IceEntry]:
    """ICE entries for every package whose cached log reports a compiler crash."""
    entries = []
    for comparison in comparisons:
        log = logs.read(comparison.name)
        if log is None or ICE not in log:
            continue
        signature = extract_ice_signature(log, comparison.name, location_only_sources)
        entries.append(IceEntry(
            signature=signature,
            name=comparison.name,
            url=comparison.url,
            log_url=log_url(comparison.candidate.log) if comparison.candidate else "",
        ))
    entries.sort(key=lambda e: (e.signature, e.name))
    logger.info("Found %d compiler crashes", len(entries))
    return entries
