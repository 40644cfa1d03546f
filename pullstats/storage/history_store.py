# pullstats/storage/history_store.py

"""Append-only per-package CSV history of pull-count snapshots."""

import csv
import logging
from pathlib import Path

from pullstats.config.settings import Settings
from pullstats.models.snapshot import SnapshotRecord

logger = logging.getLogger("pullstats.history")


class HistoryStore:
    """One append-only ``<owner>_<name>.csv`` log per package.

    Logs are only ever appended to. The header row is written when a
    log is created and never again. Write and open failures propagate
    (they abort the run); malformed lines are skipped on read.
    """

    def __init__(self, root: Path) -> None:
        self.root = root

    def path_for(self, package: str) -> Path:
        """Return the log file path for *package*."""
        return self.root / f"{package.replace('/', '_')}.csv"

    # ── Writing ──────────────────────────────────────────

    def append(
        self, package: str, records: list[SnapshotRecord],
    ) -> int:
        """Append *records* to the log of *package*.

        Returns the number of lines written. Lines flushed before an
        I/O failure stay on disk; the error is re-raised.
        """
        path = self.path_for(package)
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            is_new = not path.exists()
            with open(path, "a", newline="", encoding="utf-8") as f:
                writer = csv.writer(f, lineterminator="\n")
                if is_new:
                    writer.writerow(Settings.HISTORY_HEADER)
                for record in records:
                    writer.writerow(record.to_row())
        except OSError:
            logger.error(
                "Failed to append history for %s to %s",
                package,
                path,
                exc_info=True,
            )
            raise

        logger.debug(
            "Appended %d record(s) to %s%s",
            len(records),
            path,
            " (new log)" if is_new else "",
        )
        return len(records)

    def append_all(
        self, records: list[SnapshotRecord],
    ) -> dict[str, int]:
        """Append every record to its package's log.

        Returns a mapping from package to lines written, in order of
        first appearance.
        """
        grouped: dict[str, list[SnapshotRecord]] = {}
        for record in records:
            grouped.setdefault(record.package, []).append(record)

        logger.info(
            "Writing %d record(s) for %d package(s) in '%s'",
            len(records),
            len(grouped),
            self.root,
        )
        return {
            package: self.append(package, group)
            for package, group in grouped.items()
        }

    # ── Reading ──────────────────────────────────────────

    def list_logs(self) -> list[Path]:
        """Return every package log under the root, sorted by name."""
        if not self.root.exists():
            return []
        return sorted(self.root.glob("*.csv"))

    def read_log(self, path: Path) -> list[SnapshotRecord]:
        """Return all entries of the log at *path*, oldest first.

        The header line is skipped. Lines with fewer than four fields
        are ignored.
        """
        entries: list[SnapshotRecord] = []
        skipped = 0
        try:
            with open(path, newline="", encoding="utf-8") as f:
                reader = csv.reader(f)
                next(reader, None)
                for row in reader:
                    if len(row) < 4:
                        skipped += 1
                        continue
                    entries.append(SnapshotRecord(
                        date=row[0],
                        package=row[1],
                        version=row[2],
                        count=row[3],
                    ))
        except OSError:
            logger.error(
                "Failed to read history log %s", path, exc_info=True,
            )
            raise

        if skipped:
            logger.debug(
                "Skipped %d malformed line(s) in %s", skipped, path,
            )
        return entries

    def read_all(self, package: str) -> list[SnapshotRecord]:
        """Return the full history of *package*, oldest first."""
        return self.read_log(self.path_for(package))
