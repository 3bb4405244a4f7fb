"""
Database package for Gmail Rule Repair
"""
from .connection import get_db_session, init_db
from .models import Base, Category, Group, GroupItem, Rule, RuleAction, User
from .store import (
    DuplicateRuleNameError,
    GroupItemNotFoundError,
    GroupNotFoundError,
    RuleNotFoundError,
    RuleStore,
    StoreError,
)

__all__ = [
    'Base',
    'User',
    'Rule',
    'RuleAction',
    'Group',
    'GroupItem',
    'Category',
    'RuleStore',
    'StoreError',
    'RuleNotFoundError',
    'GroupNotFoundError',
    'GroupItemNotFoundError',
    'DuplicateRuleNameError',
    'init_db',
    'get_db_session',
]
