"""Rule engine -- turns a (category, confidence) pair into a moderation status.

Decision table:

- ``safe`` content is always approved and never flagged.
- With no active rule for the category the content is approved, unless the
  engine honors classifier hints and the classifier flagged it, in which
  case it goes to the review queue.
- With an active rule, content is flagged when ``confidence >= sensitivity``.
  Flagged content is removed for ``auto_remove`` and queued as ``pending``
  for ``flag_for_review`` and for ``none`` (a flagged item is never silently
  approved).  Unflagged content is approved.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Iterable, Optional

from contentguard.errors import ValidationError
from contentguard.models import (
    AutoAction,
    ContentCategory,
    ContentStatus,
    ModerationRule,
    check_confidence,
)


@dataclass(frozen=True)
class RuleDecision:
    """Result of running the engine on one classification."""

    status: ContentStatus
    flagged: bool
    rule_id: Optional[int] = None
    reason: str = ""


class RuleEngine:
    """Holds the current rule set and evaluates classifications against it.

    Rules are kept as an immutable snapshot of private copies; updates swap
    the whole snapshot, so a decision always sees a consistent rule record
    and callers mutating their own rule objects cannot affect it.
    """

    def __init__(
        self,
        rules: Iterable[ModerationRule] = (),
        honor_flagged_hint: bool = False,
    ) -> None:
        self.honor_flagged_hint = honor_flagged_hint
        self._rules: tuple[ModerationRule, ...] = tuple(dataclasses.replace(r) for r in rules)

    # -- rule set ------------------------------------------------------------

    @property
    def rules(self) -> list[ModerationRule]:
        return [dataclasses.replace(r) for r in self._rules]

    def replace_rules(self, rules: Iterable[ModerationRule]) -> None:
        """Swap in a new rule set for subsequent decisions."""
        self._rules = tuple(dataclasses.replace(r) for r in rules)

    def upsert_rule(self, rule: ModerationRule) -> None:
        """Add *rule*, or replace the rule with the same id."""
        copy = dataclasses.replace(rule)
        rules = list(self._rules)
        for i, existing in enumerate(rules):
            if rule.id and existing.id == rule.id:
                rules[i] = copy
                break
        else:
            rules.append(copy)
        self._rules = tuple(rules)

    def active_rule_for(self, category: ContentCategory) -> Optional[ModerationRule]:
        """Return the first active rule for *category*, if any."""
        for rule in self._rules:
            if rule.category == category and rule.active:
                return rule
        return None

    # -- decisions -----------------------------------------------------------

    def decide(
        self,
        category: ContentCategory | str,
        confidence: int,
        flagged_hint: bool = False,
    ) -> RuleDecision:
        """Decide status and flag for a classification. Pure given the rule set."""
        try:
            category = ContentCategory(category)
        except ValueError:
            raise ValidationError(f"Unknown category '{category}'") from None
        check_confidence(confidence)

        if category is ContentCategory.safe:
            return RuleDecision(ContentStatus.approved, False, reason="safe")

        rule = self.active_rule_for(category)
        if rule is None:
            if self.honor_flagged_hint and flagged_hint:
                return RuleDecision(ContentStatus.pending, True, reason="classifier_hint")
            return RuleDecision(ContentStatus.approved, False, reason="no_active_rule")

        if confidence < rule.sensitivity:
            return RuleDecision(ContentStatus.approved, False, rule.id, "below_sensitivity")
        if rule.auto_action is AutoAction.auto_remove:
            return RuleDecision(ContentStatus.removed, True, rule.id, "auto_remove")
        return RuleDecision(ContentStatus.pending, True, rule.id, "flag_for_review")
