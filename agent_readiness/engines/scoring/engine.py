"""
Scoring Engine - AI readiness score from page and robots signals.

Scoring Model (points, summed then clamped to 0-100):
- Title present:                 +20
- Meta description present:      +15
- Content longer than threshold: +20
- Structured data present:       +25
- Robots mostly_allowed/allowed: +20, else robots not_found: +10
"""

from __future__ import annotations

from dataclasses import dataclass

from agent_readiness.core.config import get_settings
from agent_readiness.engines.base import PageData, RobotsStatus

WEIGHT_TITLE = 20
WEIGHT_META_DESCRIPTION = 15
WEIGHT_CONTENT_LENGTH = 20
WEIGHT_STRUCTURED_DATA = 25
WEIGHT_ROBOTS_ALLOWED = 20
WEIGHT_ROBOTS_NOT_FOUND = 10

ROBOTS_ALLOWED_STATUSES = {RobotsStatus.MOSTLY_ALLOWED.value, RobotsStatus.ALLOWED.value}

SCORE_LABELS: list[tuple[int, str]] = [
    (80, "Excellent"),
    (60, "Good"),
    (40, "Fair"),
]


@dataclass(frozen=True)
class ScoreSignals:
    has_title: bool = False
    has_meta_description: bool = False
    content_length: int = 0
    has_structured_data: bool = False
    robots_status: str | None = None

    @classmethod
    def from_page(cls, page: PageData, robots_status: str | None) -> ScoreSignals:
        return cls(
            has_title=bool(page.title),
            has_meta_description=bool(page.description),
            content_length=len(page.content or ""),
            has_structured_data=bool(page.structured_data),
            robots_status=robots_status,
        )


def calculate_readiness_score(signals: ScoreSignals, content_threshold: int | None = None) -> int:
    if content_threshold is None:
        content_threshold = get_settings().CONTENT_LENGTH_THRESHOLD

    score = 0
    if signals.has_title:
        score += WEIGHT_TITLE
    if signals.has_meta_description:
        score += WEIGHT_META_DESCRIPTION
    if signals.content_length > content_threshold:
        score += WEIGHT_CONTENT_LENGTH
    if signals.has_structured_data:
        score += WEIGHT_STRUCTURED_DATA

    robots_status = getattr(signals.robots_status, "value", signals.robots_status)
    if robots_status in ROBOTS_ALLOWED_STATUSES:
        score += WEIGHT_ROBOTS_ALLOWED
    elif robots_status == RobotsStatus.NOT_FOUND.value:
        score += WEIGHT_ROBOTS_NOT_FOUND

    return max(0, min(100, score))


def score_label(score: int) -> str:
    """Convert numeric score to the label shown beside it."""
    for threshold, label in SCORE_LABELS:
        if score >= threshold:
            return label
    return "Needs Improvement"
