"""
Rules package for Gmail Rule Repair
"""
from .schema import (
    ActionType,
    Category,
    CategoryFilterType,
    ConditionalOperator,
    CreateRuleInput,
    Group,
    GroupItem,
    GroupItemType,
    Rule,
    RuleAction,
    RuleCondition,
    RulesConfig,
    UserProfile,
)
from .serializer import rule_to_xml, rules_to_xml

__all__ = [
    'ActionType',
    'Category',
    'CategoryFilterType',
    'ConditionalOperator',
    'CreateRuleInput',
    'Group',
    'GroupItem',
    'GroupItemType',
    'Rule',
    'RuleAction',
    'RuleCondition',
    'RulesConfig',
    'UserProfile',
    'rule_to_xml',
    'rules_to_xml',
]
