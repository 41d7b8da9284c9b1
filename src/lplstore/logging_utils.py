"""Column-aligned log blocks for multi-field playlist events."""

from __future__ import annotations

from collections.abc import Mapping
from textwrap import wrap

WRAP_WIDTH = 110
MAX_LABEL_WIDTH = 22
INDENT = "    "


def format_field_value(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, (list, tuple)):
        return ", ".join(format_field_value(item) for item in value)
    return str(value).strip()


def render_fields_block(title: str, fields: Mapping[str, object], *, pad_top: bool = True) -> str:
    """Render ``title`` underlined, then one ``label : value`` line per field.

    Long values wrap under the value column. Paths are never split at hyphens.
    """
    lines = [""] if pad_top else []
    lines += [title, "-" * len(title)]
    if fields:
        label_width = max(min(max(len(label) for label in fields), MAX_LABEL_WIDTH), 8)
        value_width = max(WRAP_WIDTH - len(INDENT) - label_width - 4, 32)
        continuation = f"{INDENT}{'':<{label_width}}  "
        for label, value in fields.items():
            wrapped = wrap(format_field_value(value), width=value_width, break_on_hyphens=False) or [""]
            lines.append(f"{INDENT}{label:<{label_width}}: {wrapped[0]}")
            lines.extend(continuation + part for part in wrapped[1:])
    return "\n".join(lines).rstrip()
