# pullstats/storage/chart_exporter.py

"""Generate interactive Plotly HTML charts from pull-count series."""

import html
import importlib
import logging
from pathlib import Path
from types import ModuleType
from typing import Any

from pullstats.models.series import PackageSeries

logger = logging.getLogger("pullstats.chart")

_INDEX_TEMPLATE = """\
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>Package pull counts</title>
</head>
<body>
<table style="margin: 20px">
<thead><tr><th>Chart</th></tr></thead>
<tbody>
{rows}
</tbody>
</table>
</body>
</html>
"""


def _get_plotly_go() -> ModuleType:
    """Import plotly.graph_objects lazily."""
    return importlib.import_module("plotly.graph_objects")


def chart_filename(package: str) -> str:
    """Return the chart file name for *package*."""
    return f"{package.replace('/', '_')}.html"


def build_package_chart(series: PackageSeries) -> Any:
    """Build a Plotly line chart with one trace per version."""
    go = _get_plotly_go()
    fig: Any = go.Figure()

    for version in series.versions:
        fig.add_trace(go.Scatter(
            x=series.dates,
            y=series.counts[version],
            mode="lines+markers",
            name=version,
            connectgaps=False,
            hovertemplate=(
                "%{x}<br>"
                f"{version}: %{{y:,}} pulls"
                "<extra></extra>"
            ),
        ))

    if series.totals is not None:
        fig.add_trace(go.Scatter(
            x=series.dates,
            y=series.totals,
            mode="lines",
            name="Total",
            line={"dash": "dot"},
            hovertemplate=(
                "%{x}<br>Total: %{y:,} pulls<extra></extra>"
            ),
        ))

    fig.update_layout(
        title=series.package,
        xaxis_title="Date",
        yaxis_title="# pulls",
        hovermode="x unified",
        template="plotly_white",
    )
    return fig


def export_package_chart(
    series: PackageSeries,
    render_dir: Path,
) -> Path:
    """Write the chart of one package to ``<render_dir>/<owner>_<name>.html``."""
    render_dir.mkdir(parents=True, exist_ok=True)
    fig = build_package_chart(series)
    filepath = render_dir / chart_filename(series.package)
    fig.write_html(str(filepath), include_plotlyjs="cdn")
    logger.info(
        "Chart for %s saved to %s (%d dates, %d versions)",
        series.package,
        filepath,
        len(series.dates),
        len(series.versions),
    )
    return filepath


def export_index(render_root: Path) -> Path:
    """Write ``index.html`` linking every chart under *render_root*.

    Charts are expected one directory deep (``<org>/<chart>.html``).
    """
    render_root.mkdir(parents=True, exist_ok=True)
    rows: list[str] = []
    for chart in sorted(render_root.glob("*/*.html")):
        organization = chart.parent.name
        name = chart.stem.replace("_", "/")
        link = chart.relative_to(render_root).as_posix()
        rows.append(
            f'<tr><td><a href="{html.escape(link)}">'
            f"{html.escape(organization)}/{html.escape(name)}"
            "</a></td></tr>"
        )

    filepath = render_root / "index.html"
    filepath.write_text(
        _INDEX_TEMPLATE.format(rows="\n".join(rows)),
        encoding="utf-8",
    )
    logger.info("Index with %d chart(s) saved to %s", len(rows), filepath)
    return filepath
