# pullstats/services/series_aggregator.py

"""Rebuild per-package date x version pull-count series from history."""

import logging

from pullstats.models.series import PackageSeries
from pullstats.models.snapshot import SnapshotRecord

logger = logging.getLogger("pullstats.aggregator")


class SeriesAggregator:
    """Replay a package's history into an aligned reporting series."""

    @staticmethod
    def build_matrix(
        entries: list[SnapshotRecord],
    ) -> tuple[dict[str, dict[str, int]], int]:
        """Index entries into ``matrix[date][version] = count``.

        Entries are replayed in log order, so a later entry for the
        same (date, version) replaces an earlier one: re-running a
        crawl on the same day keeps the last observation.

        Returns the matrix and the number of overwritten cells.
        """
        matrix: dict[str, dict[str, int]] = {}
        overwritten = 0

        for entry in entries:
            try:
                count = int(entry.count)
            except ValueError:
                logger.debug(
                    "Skipped entry with unreadable count %r "
                    "(date=%s, version=%s)",
                    entry.count,
                    entry.date,
                    entry.version,
                )
                continue
            cells = matrix.setdefault(entry.date, {})
            if entry.version in cells:
                overwritten += 1
            cells[entry.version] = count

        return matrix, overwritten

    @staticmethod
    def build(
        package: str,
        entries: list[SnapshotRecord],
        include_totals: bool = True,
    ) -> PackageSeries:
        """Build the reporting series for one package.

        Dates sort lexicographically, which is chronological for
        ``YYYY-MM-DD``. A version missing on a date yields ``None``
        (no data), not zero; totals count missing cells as zero.
        """
        matrix, overwritten = SeriesAggregator.build_matrix(entries)

        dates = sorted(matrix)
        versions = sorted({
            version
            for cells in matrix.values()
            for version in cells
        })
        counts: dict[str, list[int | None]] = {
            version: [matrix[d].get(version) for d in dates]
            for version in versions
        }
        totals = (
            [sum(matrix[d].values()) for d in dates]
            if include_totals
            else None
        )

        if overwritten:
            logger.info(
                "%s: %d same-day duplicate cell(s) resolved to the "
                "last entry",
                package,
                overwritten,
            )

        return PackageSeries(
            package=package,
            dates=dates,
            versions=versions,
            matrix=matrix,
            counts=counts,
            totals=totals,
            overwritten=overwritten,
        )
