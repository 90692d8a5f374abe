"""Human readable labels for field paths."""

import re

LABEL_SEPARATOR = " → "

_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_INDEX_SUFFIX = re.compile(r"(\[\d+\])+$")


def humanize_segment(segment: str) -> str:
    """``changePercent`` -> ``Change Percent``, ``last_price`` -> ``Last Price``."""
    segment = _INDEX_SUFFIX.sub("", segment)
    words = _CAMEL_BOUNDARY.sub(r"\1 \2", segment).replace("_", " ").split()
    return " ".join(word[:1].upper() + word[1:] for word in words)


def format_field_label(segments: list[str]) -> str:
    """Join humanized path segments with an arrow."""
    parts = [humanize_segment(s) for s in segments]
    return LABEL_SEPARATOR.join(p for p in parts if p)


def label_for_path(path: str) -> str:
    """Best-effort label for a bare path string (dots split segments)."""
    if not path:
        return ""
    return format_field_label(path.split("."))
