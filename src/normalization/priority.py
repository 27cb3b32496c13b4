from __future__ import annotations

import re

from echoflow.models import Priority

URGENCY_RE = re.compile(
    r"today|urgent|asap|immediately|deadline|now|tonight|this morning|this afternoon"
)
IMPORTANCE_RE = re.compile(
    r"contract|client|meeting|deliverable|project|important|critical|essential|boss|manager"
)


def quadrant(urgent: bool, important: bool) -> Priority:
    if urgent and important:
        return "urgent-important"
    if important:
        return "not-urgent-important"
    if urgent:
        return "urgent-not-important"
    return "not-urgent-not-important"


def infer_priority(utterance: str, title: str, content: str, has_date: bool) -> Priority:
    """Keyword-based Eisenhower quadrant.

    Matching is plain substring search over the lower-cased utterance, title
    and content, so "now" also fires inside "known".
    """
    text = f"{utterance} {title} {content}".lower()
    urgent = bool(URGENCY_RE.search(text)) or has_date
    important = bool(IMPORTANCE_RE.search(text))
    return quadrant(urgent, important)
