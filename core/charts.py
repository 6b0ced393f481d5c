from __future__ import annotations

from typing import Any, Dict

import altair as alt

alt.data_transformers.disable_max_rows()

OPEN_COLOR = "#FF6B6B"
COMPLIED_COLOR = "#4CAF50"
STATUS_COLOR_SCALE = alt.Scale(domain=["Open", "Complied"], range=[OPEN_COLOR, COMPLIED_COLOR])


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()
