# pullstats/filters/completeness_filter.py

"""Completeness gate: drop snapshot records with unfilled fields."""

import logging

from pullstats.models.snapshot import SnapshotRecord

logger = logging.getLogger("pullstats.filters")


class CompletenessFilter:
    """Keep only records whose package, version and count were extracted."""

    @staticmethod
    def is_complete(record: SnapshotRecord) -> bool:
        """Return True when package, version and count are non-empty."""
        return bool(
            record.package.strip()
            and record.version.strip()
            and record.count.strip()
        )

    @staticmethod
    def filter(
        records: list[SnapshotRecord],
    ) -> tuple[list[SnapshotRecord], int]:
        """Drop incomplete records, preserving the order of the rest.

        Partially rendered or access-denied pages leave fields empty;
        such records are dropped silently rather than failing the run.

        Returns the complete records and the count of dropped items.
        """
        kept: list[SnapshotRecord] = []
        dropped = 0

        for record in records:
            if not CompletenessFilter.is_complete(record):
                logger.debug(
                    "Dropped incomplete record "
                    "(package=%r, version=%r, count=%r)",
                    record.package,
                    record.version,
                    record.count,
                )
                dropped += 1
                continue
            kept.append(record)

        if dropped:
            logger.info(
                "Completeness filter dropped %d incomplete records",
                dropped,
            )

        return kept, dropped
