"""Detect files whose icon deviates from the dominant icon for their type."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from iconsmith.scanning.models import FileRecord

LOGGER = logging.getLogger(__name__)

IconReader = Callable[[Path], bytes]


@dataclass(slots=True)
class Inconsistency:
    """Icon disagreement among files sharing an extension.

    Attributes:
        file_extension: Extension shared by the files.
        total_files: Number of files with the extension.
        different_icon_count: Number of distinct icon groups.
        dominant_fingerprint: Fingerprint of the largest group.
        dominant_icon: Raw bytes of the dominant icon, if they could be read.
        outlier_files: Files outside the dominant group.
    """

    file_extension: str
    total_files: int
    different_icon_count: int
    dominant_fingerprint: Optional[str]
    dominant_icon: Optional[bytes]
    outlier_files: List[FileRecord] = field(default_factory=list)

    @property
    def outlier_paths(self) -> List[Path]:
        return [record.path for record in self.outlier_files]


def _group_order(item: Tuple[Optional[str], List[FileRecord]]) -> Tuple[int, bool, str]:
    fingerprint, members = item
    return (-len(members), fingerprint is None, fingerprint or "")


class InconsistencyDetector:
    """Group files by icon fingerprint and find the outliers.

    On a member-count tie the group with the smallest fingerprint is dominant;
    files whose icon could not be read never win a tie against a real group.
    """

    def __init__(self, icon_reader: IconReader) -> None:
        """Initialize the detector.

        Args:
            icon_reader: Returns the current icon bytes for a path.
        """
        self._icon_reader = icon_reader

    def detect(self, files: Iterable[FileRecord]) -> List[Inconsistency]:
        """Return one inconsistency per extension with more than one icon group."""
        by_extension: Dict[str, List[FileRecord]] = defaultdict(list)
        for record in files:
            by_extension[record.extension].append(record)

        results: List[Inconsistency] = []
        for extension in sorted(by_extension):
            found = self.detect_extension(extension, by_extension[extension])
            if found is not None:
                results.append(found)
        return results

    def detect_extension(
        self, extension: str, files: Sequence[FileRecord]
    ) -> Optional[Inconsistency]:
        """Analyse files sharing ``extension``; None when their icons agree."""
        groups: Dict[Optional[str], List[FileRecord]] = defaultdict(list)
        for record in files:
            groups[record.icon_fingerprint].append(record)
        if len(groups) <= 1:
            return None

        ordered = sorted(groups.items(), key=_group_order)
        dominant_fingerprint, dominant_members = ordered[0]
        outliers = [record for _, members in ordered[1:] for record in members]
        LOGGER.debug(
            "Extension %r: %d icon groups, %d outliers", extension, len(groups), len(outliers)
        )
        return Inconsistency(
            file_extension=extension,
            total_files=len(files),
            different_icon_count=len(groups),
            dominant_fingerprint=dominant_fingerprint,
            dominant_icon=self._read_icon(dominant_members[0].path),
            outlier_files=outliers,
        )

    def _read_icon(self, path: Path) -> Optional[bytes]:
        try:
            return self._icon_reader(path)
        except OSError as exc:
            LOGGER.warning("Could not read dominant icon from %s: %s", path, exc)
            return None


__all__ = ["IconReader", "Inconsistency", "InconsistencyDetector"]
