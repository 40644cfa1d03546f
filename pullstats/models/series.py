# pullstats/models/series.py

"""Per-package date x version pull-count series used for reporting."""

from dataclasses import dataclass, field


@dataclass
class PackageSeries:
    """Reconstructed history of one package, aligned on a shared date axis.

    ``counts[version][i]`` is the pull count of ``version`` on
    ``dates[i]``, or ``None`` when that version was not observed that
    day. ``totals`` is ``None`` when totals were not requested.
    """

    package: str
    dates: list[str] = field(
        default_factory=lambda: list[str]()
    )
    versions: list[str] = field(
        default_factory=lambda: list[str]()
    )
    matrix: dict[str, dict[str, int]] = field(
        default_factory=lambda: dict[str, dict[str, int]]()
    )
    counts: dict[str, list[int | None]] = field(
        default_factory=lambda: dict[str, list[int | None]]()
    )
    totals: list[int] | None = None
    overwritten: int = 0
