"""
OR-of-ANDs evaluation over rule group sets.

Both engines share these helpers; they differ only in how a single rule is
checked, which is passed in as ``check``.
"""

from typing import Callable

from .models import Rule, RuleGroup, RuleGroupSet


RuleCheck = Callable[[Rule], bool]


def group_matches(group: RuleGroup, check: RuleCheck) -> bool:
    """AND of every rule in the group. An empty group never matches."""
    if not group:
        return False

    for rule in group:
        if not check(rule):
            return False

    return True


def any_group_matches(group_set: RuleGroupSet, check: RuleCheck) -> bool:
    """OR over the groups. An empty set matches."""
    if not group_set:
        return True

    for group in group_set:
        if group_matches(group, check):
            return True

    return False
