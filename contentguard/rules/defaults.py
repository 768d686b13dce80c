"""Built-in seed rules and the initial stats row."""

from __future__ import annotations

from contentguard.models import (
    AggregateStats,
    AutoAction,
    ContentCategory,
    ModerationRule,
)


def default_rules() -> list[ModerationRule]:
    """Return fresh copies of the default moderation rules."""
    return [
        ModerationRule(
            name="Hate Speech Detection",
            description=(
                "Identifies content containing language that attacks or demeans "
                "groups based on protected characteristics."
            ),
            category=ContentCategory.hate_speech,
            sensitivity=75,
            auto_action=AutoAction.flag_for_review,
            icon="ri-spam-2-line",
        ),
        ModerationRule(
            name="Spam Detection",
            description="Identifies repetitive content, suspicious links, and commercial solicitation.",
            category=ContentCategory.spam,
            sensitivity=90,
            auto_action=AutoAction.auto_remove,
            icon="ri-spam-line",
        ),
        ModerationRule(
            name="Harassment Detection",
            description="Identifies personal attacks, bullying, and targeted abuse against individuals.",
            category=ContentCategory.harassment,
            sensitivity=65,
            auto_action=AutoAction.flag_for_review,
            icon="ri-user-settings-line",
        ),
        ModerationRule(
            name="Explicit Content Detection",
            description="Identifies sexual, graphic, or adult-oriented content.",
            category=ContentCategory.explicit,
            sensitivity=85,
            auto_action=AutoAction.auto_remove,
            icon="ri-eye-off-line",
        ),
    ]


def initial_stats() -> AggregateStats:
    return AggregateStats(response_time=230)
