"""Declarative assertion templates (patterns, conditions, polling evaluator)."""

from .conditions import AssertionCondition, ConditionSetupError, build_condition
from .evaluator import AssertionEvaluator, AssertionResult, AssertionSummary
from .patterns import LiteralMatcher, PatternError, PatternMatcher, parse_pattern

__all__ = [
    "AssertionCondition",
    "AssertionEvaluator",
    "AssertionResult",
    "AssertionSummary",
    "ConditionSetupError",
    "LiteralMatcher",
    "PatternError",
    "PatternMatcher",
    "build_condition",
    "parse_pattern",
]
