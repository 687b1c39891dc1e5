"""
Parser for Tasmota smart plug sensor markup.

Tasmota answers ``GET /?m=1`` with a fragment of its web UI in which
every sensor row is encoded as ``{s}Label{m}value markup{e}``. The value
markup carries HTML cells and a unit, e.g.::

    {s}Voltage{m}</td><td style='text-align:left'>231</td><td>&nbsp;</td><td> V{e}

``parse_sensor_html`` extracts ``{label: number}`` from such a fragment;
``normalize`` turns that into ``PowerMetrics``. Both are pure.

CHANGELOG:
- 2026-10-15: Initial creation (STORY-007)

TODO:
- None
"""

import re

from plugmon.schemas import PowerMetrics

_ROW_RE = re.compile(r"\{s\}(?P<label>[^{]*)\{m\}(?P<value>[^{]*)\{e\}")
_TAG_RE = re.compile(r"<[^>]*>")
_NUMBER_RE = re.compile(r"[-+]?\d+(?:\.\d+)?")

# Tasmota sensor label -> PowerMetrics field.
LABEL_TO_FIELD: dict[str, str] = {
    "Voltage": "voltage",
    "Current": "current",
    "Active Power": "active_power",
    "Apparent Power": "apparent_power",
    "Reactive Power": "reactive_power",
    "Power Factor": "power_factor",
}


def _strip_markup(fragment: str) -> str:
    return _TAG_RE.sub(" ", fragment).replace("&nbsp;", " ").strip()


def parse_sensor_html(html: str) -> dict[str, float]:
    """Extract numeric sensor rows from a Tasmota ``?m=1`` response.

    Rows whose value has no number (status text, headers) are skipped.
    For multi-value rows (``230/231``) the first number is kept.

    Args:
        html: Response body.

    Returns:
        Mapping of sensor label to value.
    """
    readings: dict[str, float] = {}
    for match in _ROW_RE.finditer(html):
        label = _strip_markup(match.group("label"))
        number = _NUMBER_RE.search(_strip_markup(match.group("value")))
        if label and number is not None:
            readings[label] = float(number.group())
    return readings


def normalize(readings: dict[str, float]) -> PowerMetrics:
    """Map parsed Tasmota readings onto ``PowerMetrics``.

    Args:
        readings: Output of :func:`parse_sensor_html`.

    Returns:
        PowerMetrics: The six metrics.

    Raises:
        ValueError: Listing every missing sensor label.
    """
    missing = sorted(label for label in LABEL_TO_FIELD if label not in readings)
    if missing:
        raise ValueError(
            f"Plug response is missing sensor row(s): {', '.join(missing)}"
        )
    return PowerMetrics(
        **{field: readings[label] for label, field in LABEL_TO_FIELD.items()}
    )
