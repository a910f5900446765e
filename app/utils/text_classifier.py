# ================================
# TEXT CLASSIFICATION (utils/text_classifier.py)
# ================================

"""
Heuristics for AI-generated cost analysis text and cost row labels.

The analysis text carries no markup, so headings are recognised by a fixed
set of known phrases or by the "short line ending with a colon" rule. Cost
rows produced by the drafting step are recognised as positions by their
"LP <n>" label prefix.
"""

import re
from enum import Enum
from typing import Optional, Sequence

class LineKind(str, Enum):
    HEADING = "heading"
    BODY = "body"
    BLANK = "blank"

KNOWN_HEADINGS = (
    "Fotobeschreibung",
    "Mangelbeschreibung",
    "Leistungspositionen mit Kostengruppen nach DIN 276",
    "Ursache",
    "Maßnahmen",
    "Sanierungsempfehlung",
    "Fazit",
)

MAX_COLON_HEADING_LENGTH = 60

POSITION_LABEL_PATTERN = re.compile(r"LP\s*\d+", re.IGNORECASE)

EMPHASIZED_ROW_KINDS = frozenset({"subtotal", "total"})

class LineClassifier:
    """Classifies a single line of analysis text as heading, body or blank"""

    def __init__(
        self,
        known_headings: Sequence[str] = KNOWN_HEADINGS,
        max_colon_heading_length: int = MAX_COLON_HEADING_LENGTH,
    ):
        self.known_headings = tuple(known_headings)
        self.max_colon_heading_length = max_colon_heading_length

    def classify(self, line: str) -> LineKind:
        stripped = line.rstrip()
        if not stripped.strip():
            return LineKind.BLANK
        if any(heading in stripped for heading in self.known_headings):
            return LineKind.HEADING
        if stripped.endswith(":") and len(stripped) < self.max_colon_heading_length:
            return LineKind.HEADING
        return LineKind.BODY

default_classifier = LineClassifier()

def classify_line(line: str) -> LineKind:
    """Classify with the default heading heuristic"""
    return default_classifier.classify(line)

def is_position_label(label: Optional[str]) -> bool:
    """True for labels like "LP 3: Dachsanierung" or "lp12" """
    return bool(POSITION_LABEL_PATTERN.search((label or "").strip()))

def is_emphasized_row(row_kind: str, label: Optional[str]) -> bool:
    """Subtotal/total rows and LP-numbered positions are rendered bold and larger"""
    kind = getattr(row_kind, "value", row_kind)
    return kind in EMPHASIZED_ROW_KINDS or is_position_label(label)
