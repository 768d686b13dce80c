"""Load moderation rules from a YAML file.

Expected layout::

    rules:
      - name: Spam Detection
        category: spam
        sensitivity: 90
        auto_action: auto_remove
        active: true
"""

from __future__ import annotations

from pathlib import Path

import yaml

from contentguard.errors import ValidationError
from contentguard.models import ModerationRule


def load_rules(path: str | Path) -> list[ModerationRule]:
    """Parse and validate the rule list stored at *path*."""
    with open(path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict) or not isinstance(data.get("rules", []), list):
        raise ValidationError(f"{path}: expected a mapping with a 'rules' list")

    rules = []
    for i, rule_data in enumerate(data.get("rules", [])):
        if not isinstance(rule_data, dict):
            raise ValidationError(f"{path}: rule #{i + 1} is not a mapping")
        try:
            rule = ModerationRule(
                name=rule_data["name"],
                description=rule_data.get("description", ""),
                category=rule_data["category"],
                sensitivity=rule_data["sensitivity"],
                auto_action=rule_data.get("auto_action", "flag_for_review"),
                active=rule_data.get("active", True),
                icon=rule_data.get("icon", "ri-spam-2-line"),
            )
        except KeyError as exc:
            raise ValidationError(f"{path}: rule #{i + 1} is missing '{exc.args[0]}'") from None
        rule.validate()
        rules.append(rule)
    return rules
