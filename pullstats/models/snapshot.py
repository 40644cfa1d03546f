# pullstats/models/snapshot.py

"""Pull-count snapshot model shared by the crawler and history store."""

from dataclasses import dataclass


@dataclass
class SnapshotRecord:
    """One version's pull count for a package, captured on a given day."""

    date: str
    package: str = ""
    version: str = ""
    count: str = ""

    def to_row(self) -> list[str]:
        """Return the fields in history-file column order."""
        return [self.date, self.package, self.version, self.count]
