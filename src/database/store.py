"""
Rule store: reads and writes rules, groups and categories
"""
import logging
from typing import Iterable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from src.rules import schema
from .models import Category, Group, GroupItem, Rule, RuleAction, User

logger = logging.getLogger(__name__)

class StoreError(Exception):
    """Base class for domain-level store failures"""

class RuleNotFoundError(StoreError):
    def __init__(self, rule_id):
        super().__init__(f"Rule not found: {rule_id}")

class GroupNotFoundError(StoreError):
    def __init__(self, group_id):
        super().__init__(f"Group not found: {group_id}")

class GroupItemNotFoundError(StoreError):
    def __init__(self, item_id):
        super().__init__(f"Group item not found: {item_id}")

class DuplicateRuleNameError(StoreError):
    def __init__(self, name: str):
        super().__init__(f"A rule named '{name}' already exists")
        self.name = name

def _to_group_schema(group: Group) -> schema.Group:
    return schema.Group(
        id=group.id,
        name=group.name,
        items=[
            schema.GroupItem(id=item.id, type=item.type, value=item.value)
            for item in group.items
        ],
    )

def _to_rule_schema(rule: Rule) -> schema.Rule:
    return schema.Rule(
        id=rule.id,
        name=rule.name,
        instructions=rule.instructions,
        from_=rule.from_address,
        to=rule.to_address,
        subject=rule.subject,
        body=rule.body,
        conditional_operator=rule.conditional_operator,
        group=_to_group_schema(rule.group) if rule.group else None,
        category_filter_type=rule.category_filter_type,
        category_filters=[schema.Category(id=c.id, name=c.name) for c in rule.category_filters],
        actions=[
            schema.RuleAction(
                type=action.action_type,
                label=action.label,
                subject=action.subject,
                content=action.content,
                to=action.to_address,
                cc=action.cc_address,
                bcc=action.bcc_address,
                url=action.url,
            )
            for action in rule.actions
        ],
    )

def _to_db_action(action: schema.RuleAction) -> RuleAction:
    return RuleAction(
        action_type=action.type.value,
        label=action.label,
        subject=action.subject,
        content=action.content,
        to_address=action.to,
        cc_address=action.cc,
        bcc_address=action.bcc,
        url=action.url,
    )

def _apply_condition(rule: Rule, condition: schema.RuleCondition) -> None:
    """Replace the condition columns of a rule. Group and category links are not touched here."""
    static = condition.static or schema.StaticCondition()
    rule.instructions = condition.ai_instructions
    rule.from_address = static.from_
    rule.to_address = static.to
    rule.subject = static.subject
    rule.body = static.body
    if condition.conditional_operator:
        rule.conditional_operator = condition.conditional_operator.value

def _is_duplicate_name(error: IntegrityError) -> bool:
    """Whether an integrity error comes from the per-user unique rule name constraint"""
    # PostgreSQL and MySQL name the constraint, SQLite lists its columns
    message = str(error.orig)
    return 'uix_user_rule_name' in message or 'rules.user_id, rules.name' in message

class RuleStore:
    """Store for rules and their relations, backed by a SQLAlchemy session"""

    def __init__(self, db: Session):
        self.db = db

    # Reads

    def get_user_by_email(self, email: str) -> Optional[schema.UserProfile]:
        user = self.db.query(User).filter(User.email == email).first()
        if not user:
            return None
        return schema.UserProfile(id=user.id, email=user.email, about=user.about)

    def get_rule(self, rule_id: int, user_id: int) -> Optional[schema.Rule]:
        rule = self._get_db_rule(rule_id, user_id)
        return _to_rule_schema(rule) if rule else None

    def get_rule_by_name(self, name: str, user_id: int) -> Optional[schema.Rule]:
        rule = self.db.query(Rule).filter(Rule.user_id == user_id, Rule.name == name).first()
        return _to_rule_schema(rule) if rule else None

    def list_rules(self, user_id: int) -> List[schema.Rule]:
        rules = self.db.query(Rule).filter(Rule.user_id == user_id).order_by(Rule.id).all()
        return [_to_rule_schema(rule) for rule in rules]

    def get_category_names(self, user_id: int) -> List[str]:
        categories = self.db.query(Category).filter(Category.user_id == user_id).order_by(Category.name).all()
        return [category.name for category in categories]

    @staticmethod
    def find_group(rules: Iterable[schema.Rule], name: Optional[str]) -> Optional[schema.Group]:
        """Find a group by name among the groups used by the given rules"""
        if name is None:
            return None
        for rule in rules:
            if rule.group and rule.group.name == name:
                return rule.group
        return None

    # Writes

    def update_rule(
        self,
        rule_id: int,
        user_id: int,
        name: str,
        condition: schema.RuleCondition,
        actions: List[schema.RuleAction],
        group_id: Optional[int] = None,
        category_ids: Optional[List[int]] = None,
    ) -> schema.Rule:
        """
        Replace the condition and actions of a rule.

        group_id and category_ids of None leave the existing links untouched.
        """
        rule = self._get_db_rule(rule_id, user_id)
        if not rule:
            raise RuleNotFoundError(rule_id)

        rule.name = name
        _apply_condition(rule, condition)
        rule.actions = [_to_db_action(action) for action in actions]
        if group_id is not None:
            rule.group_id = group_id
        if category_ids is not None:
            self._set_category_filters(rule, user_id, condition, category_ids)

        self._commit(name)
        logger.debug(f"Updated rule {rule.id} ({rule.name})")
        return _to_rule_schema(rule)

    def create_rule(
        self,
        user_id: int,
        rule_input: schema.CreateRuleInput,
        group_id: Optional[int] = None,
        category_ids: Optional[List[int]] = None,
    ) -> schema.Rule:
        """Insert a rule. A name already used by this user raises DuplicateRuleNameError."""
        rule = Rule(user_id=user_id, name=rule_input.name, conditional_operator='AND', group_id=group_id)
        _apply_condition(rule, rule_input.condition)
        rule.actions = [_to_db_action(action) for action in rule_input.actions]
        if category_ids is not None:
            self._set_category_filters(rule, user_id, rule_input.condition, category_ids)

        self.db.add(rule)
        self._commit(rule_input.name)
        logger.debug(f"Created rule {rule.id} ({rule.name})")
        return _to_rule_schema(rule)

    def add_group_item(self, group_id: int, user_id: int, item_type: schema.GroupItemType, value: str) -> schema.GroupItem:
        group = self.db.query(Group).filter(Group.id == group_id, Group.user_id == user_id).first()
        if not group:
            raise GroupNotFoundError(group_id)

        item = GroupItem(type=item_type.value, value=value)
        group.items.append(item)
        self.db.commit()
        logger.debug(f"Added {item_type.value} item '{value}' to group {group.name}")
        return schema.GroupItem(id=item.id, type=item.type, value=item.value)

    def delete_group_item(self, item_id: int, user_id: int) -> None:
        item = (
            self.db.query(GroupItem)
            .join(Group)
            .filter(GroupItem.id == item_id, Group.user_id == user_id)
            .first()
        )
        if not item:
            raise GroupItemNotFoundError(item_id)

        self.db.delete(item)
        self.db.commit()
        logger.debug(f"Deleted group item {item_id}")

    # Seeding helpers used by the rules loader

    def upsert_user(self, email: str, about: Optional[str] = None) -> schema.UserProfile:
        user = self.db.query(User).filter(User.email == email).first()
        if not user:
            user = User(email=email)
            self.db.add(user)
        user.about = about
        self.db.commit()
        return schema.UserProfile(id=user.id, email=user.email, about=user.about)

    def get_or_create_group(self, user_id: int, name: str) -> schema.Group:
        group = self.db.query(Group).filter(Group.user_id == user_id, Group.name == name).first()
        if not group:
            group = Group(user_id=user_id, name=name)
            self.db.add(group)
            self.db.commit()
        return _to_group_schema(group)

    def get_or_create_category(self, user_id: int, name: str) -> schema.Category:
        category = self.db.query(Category).filter(Category.user_id == user_id, Category.name == name).first()
        if not category:
            category = Category(user_id=user_id, name=name)
            self.db.add(category)
            self.db.commit()
        return schema.Category(id=category.id, name=category.name)

    def delete_user_rules(self, user_id: int) -> None:
        """Remove all rules, groups and categories of a user"""
        for model in (Rule, Group, Category):
            for record in self.db.query(model).filter(model.user_id == user_id).all():
                self.db.delete(record)
        self.db.commit()

    def _get_db_rule(self, rule_id: int, user_id: int) -> Optional[Rule]:
        return self.db.query(Rule).filter(Rule.id == rule_id, Rule.user_id == user_id).first()

    def _set_category_filters(self, rule: Rule, user_id: int, condition: schema.RuleCondition,
                              category_ids: List[int]) -> None:
        rule.category_filters = (
            self.db.query(Category).filter(Category.user_id == user_id, Category.id.in_(category_ids)).all()
            if category_ids else []
        )
        if category_ids and condition.categories:
            rule.category_filter_type = condition.categories.filter_type.value
        else:
            rule.category_filter_type = None

    def _commit(self, rule_name: str) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Integrity error saving rule '{rule_name}': {e.orig}")
            if _is_duplicate_name(e):
                raise DuplicateRuleNameError(rule_name) from e
            raise
