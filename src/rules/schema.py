"""
Schemas for email rules, their groups and category filters
"""
from enum import Enum
from typing import List, Literal, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, create_model, field_validator


class ConditionalOperator(str, Enum):
    """How the condition types of a rule combine (static, group, category, AI)"""
    AND = 'AND'
    OR = 'OR'


class CategoryFilterType(str, Enum):
    INCLUDE = 'INCLUDE'
    EXCLUDE = 'EXCLUDE'


class GroupItemType(str, Enum):
    FROM = 'FROM'
    SUBJECT = 'SUBJECT'


class ActionType(str, Enum):
    ARCHIVE = 'ARCHIVE'
    LABEL = 'LABEL'
    REPLY = 'REPLY'
    SEND_EMAIL = 'SEND_EMAIL'
    FORWARD = 'FORWARD'
    DRAFT_EMAIL = 'DRAFT_EMAIL'
    MARK_SPAM = 'MARK_SPAM'
    CALL_WEBHOOK = 'CALL_WEBHOOK'


class RuleAction(BaseModel):
    """Schema for a rule action"""
    type: ActionType
    label: Optional[str] = None  # For LABEL
    subject: Optional[str] = None
    content: Optional[str] = None
    to: Optional[str] = None
    cc: Optional[str] = None
    bcc: Optional[str] = None
    url: Optional[str] = None  # For CALL_WEBHOOK


class GroupItem(BaseModel):
    id: Optional[int] = None
    type: GroupItemType
    value: str


class Group(BaseModel):
    """A named collection of sender/subject patterns used as one rule condition"""
    id: Optional[int] = None
    name: str
    items: List[GroupItem] = []


class Category(BaseModel):
    id: Optional[int] = None
    name: str


class Rule(BaseModel):
    """A rule with its group and category relations resolved"""
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[int] = None
    name: str
    instructions: Optional[str] = None
    from_: Optional[str] = Field(default=None, alias='from')
    to: Optional[str] = None
    subject: Optional[str] = None
    body: Optional[str] = None
    conditional_operator: ConditionalOperator = ConditionalOperator.AND
    group: Optional[Group] = None
    category_filter_type: Optional[CategoryFilterType] = None
    category_filters: List[Category] = []
    actions: List[RuleAction] = []

    def has_static_conditions(self) -> bool:
        return bool(self.from_ or self.to or self.subject or self.body)

    def has_category_conditions(self) -> bool:
        return len(self.category_filters) > 0


class UserProfile(BaseModel):
    id: int
    email: str
    about: Optional[str] = None


# Condition schemas used as tool inputs. Field descriptions are read by the model.

class StaticCondition(BaseModel):
    """Static conditions. All set fields must match (AND)"""
    model_config = ConfigDict(populate_by_name=True)

    from_: Optional[str] = Field(
        default=None,
        alias='from',
        description="The from email address to match. e.g. 'news@example.com' or '@example.com'",
    )
    to: Optional[str] = Field(default=None, description="The to email address to match")
    subject: Optional[str] = Field(default=None, description="The subject to match")
    body: Optional[str] = Field(default=None, description="The body text to match")


class CategoryCondition(BaseModel):
    filter_type: CategoryFilterType = Field(
        description="Whether the rule applies only to (INCLUDE) or never to (EXCLUDE) these sender categories",
    )
    category_filters: List[str] = Field(description="The sender category names to filter on")


class RuleCondition(BaseModel):
    """Schema for the condition of a rule"""
    conditional_operator: Optional[ConditionalOperator] = Field(
        default=None,
        description="AND or OR. Combines the condition types: static, group, categories and AI instructions",
    )
    ai_instructions: Optional[str] = Field(
        default=None,
        description="Instructions the AI uses to decide whether an email matches the rule",
    )
    static: Optional[StaticCondition] = None
    group: Optional[str] = Field(default=None, description="The name of the group the rule uses")
    categories: Optional[CategoryCondition] = None


class CreateRuleInput(BaseModel):
    """Schema for creating a rule"""
    name: str = Field(description="The name of the rule")
    condition: RuleCondition
    actions: List[RuleAction] = Field(description="The actions to take when the rule matches")


def get_create_rule_schema_with_categories(categories: List[str]) -> Type[CreateRuleInput]:
    """Build a create-rule schema whose category filters only accept the given names"""
    category_names = Literal[tuple(categories)]

    category_condition = create_model(
        'CategoryConditionWithNames',
        __base__=CategoryCondition,
        category_filters=(List[category_names], Field(description="The sender category names to filter on")),
    )
    rule_condition = create_model(
        'RuleConditionWithCategories',
        __base__=RuleCondition,
        categories=(Optional[category_condition], None),
    )
    return create_model(
        'CreateRuleInputWithCategories',
        __base__=CreateRuleInput,
        condition=(rule_condition, ...),
    )


class GroupConfig(BaseModel):
    name: str
    items: List[GroupItem] = []


class RulesConfig(BaseModel):
    """Schema for the rules seed file"""
    user_email: str
    user_about: Optional[str] = None
    categories: List[str] = []
    groups: List[GroupConfig] = []
    rules: List[CreateRuleInput]

    @field_validator('rules')
    @classmethod
    def rule_names_unique(cls, rules: List[CreateRuleInput]) -> List[CreateRuleInput]:
        names = [rule.name for rule in rules]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate rule names: {', '.join(duplicates)}")
        return rules
