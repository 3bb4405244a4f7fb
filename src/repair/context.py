"""
Per-request context of a repair session
"""
from typing import List, Optional

from pydantic import BaseModel

from src.gmail.message import ParsedMessage
from src.rules.schema import Group, Rule, UserProfile


class RepairContext(BaseModel):
    """Built fresh for every correction and discarded when the session ends"""
    user: UserProfile
    rules: List[Rule]
    user_request_email: ParsedMessage
    original_email: ParsedMessage
    matched_rule: Optional[Rule] = None
    categories: Optional[List[str]] = None  # None or empty: category features are off
    sender_category: Optional[str] = None

    @property
    def categories_enabled(self) -> bool:
        return bool(self.categories)

    def groups_with_id(self, group_id: int) -> List[Group]:
        """Every distinct group object in the session snapshot with this id"""
        rules = list(self.rules)
        if self.matched_rule is not None:
            rules.append(self.matched_rule)

        groups: List[Group] = []
        for rule in rules:
            if rule.group and rule.group.id == group_id and all(g is not rule.group for g in groups):
                groups.append(rule.group)
        return groups
