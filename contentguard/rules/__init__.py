"""Moderation rules: decision engine, seed defaults, and YAML loading."""

from contentguard.rules.defaults import default_rules, initial_stats
from contentguard.rules.engine import RuleDecision, RuleEngine
from contentguard.rules.loader import load_rules

__all__ = ["RuleDecision", "RuleEngine", "default_rules", "initial_stats", "load_rules"]
