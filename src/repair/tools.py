"""
Tools the repair agent exposes to the language model

Every tool returns {'success': True} or {'error': <reason>}. Domain failures are
reported as payloads so the model can react to them in the same session.
"""
from typing import Any, Callable, Dict, List, Literal, Optional, Tuple, Type

import structlog
from pydantic import BaseModel, Field, ValidationError, create_model

from src.database.store import RuleStore, StoreError
from src.rules.schema import (
    CreateRuleInput,
    GroupItemType,
    Rule,
    RuleCondition,
    get_create_rule_schema_with_categories,
)
from .context import RepairContext

logger = structlog.get_logger(__name__)


def success() -> Dict[str, Any]:
    return {'success': True}


def error(reason: str) -> Dict[str, Any]:
    return {'error': reason}


class EditRuleInput(BaseModel):
    rule_name: Optional[str] = Field(default=None, description="The exact name of the rule to fix")
    explanation: str = Field(description="Explanation of the changes being made to the rule")
    condition: RuleCondition


class AddToGroupInput(BaseModel):
    group_name: Optional[str] = Field(default=None, description="The name of the group to add the group item to")
    type: Literal['from', 'subject'] = Field(description="The type of the group item to add")
    value: str = Field(
        description="The value of the group item to add. e.g. '@company.com', 'matt@company.com', 'Receipt from'",
    )


class RemoveFromGroupInput(BaseModel):
    type: Literal['from', 'subject'] = Field(description="The type of the group item to remove")
    value: str = Field(description="The value of the group item to remove")


class ReplyInput(BaseModel):
    content: str = Field(description="The content of the reply")


def get_change_category_schema(categories: List[str]) -> Type[BaseModel]:
    return create_model(
        'ChangeSenderCategoryInput',
        sender=(str, Field(description="The sender to change")),
        category=(Literal[tuple(categories) + ('none',)], Field(description="The name of the category to assign")),
    )


def get_group_item_type(item_type: str) -> Optional[GroupItemType]:
    if item_type == 'from':
        return GroupItemType.FROM
    if item_type == 'subject':
        return GroupItemType.SUBJECT
    return None


class Tool:
    """A named operation with an input schema. Tools without execute end the session."""

    def __init__(self, name: str, description: str, parameters: Type[BaseModel],
                 execute: Optional[Callable[[Any], Dict[str, Any]]] = None):
        self.name = name
        self.description = description
        self.parameters = parameters
        self.execute = execute

    @property
    def is_terminal(self) -> bool:
        return self.execute is None

    def to_schema(self) -> Dict[str, Any]:
        return {'description': self.description, 'parameters': self.parameters.model_json_schema()}


class ToolRegistry:
    """The tools available to one repair session"""

    def __init__(self, tools: List[Tool]):
        self.tools = {tool.name: tool for tool in tools}

    def __contains__(self, name: str) -> bool:
        return name in self.tools

    def get(self, name: str) -> Optional[Tool]:
        return self.tools.get(name)

    def names(self) -> List[str]:
        return list(self.tools)

    def schemas(self) -> Dict[str, Dict[str, Any]]:
        return {name: tool.to_schema() for name, tool in self.tools.items()}

    def is_terminal(self, name: str) -> bool:
        tool = self.get(name)
        return tool is not None and tool.is_terminal

    def validate(self, name: str, arguments: Dict[str, Any]) -> Tuple[Optional[BaseModel], Optional[Dict[str, Any]]]:
        """Validate arguments against the tool schema. Returns (params, None) or (None, error payload)."""
        tool = self.get(name)
        if tool is None:
            logger.warning("Unknown tool", tool=name)
            return None, error(f"Unknown tool: {name}")
        try:
            return tool.parameters.model_validate(arguments), None
        except ValidationError as e:
            logger.warning("Invalid tool arguments", tool=name, errors=e.errors(include_url=False))
            return None, error(f"Invalid arguments: {e}")

    def run(self, name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
        """Validate and execute a non-terminal tool"""
        params, failure = self.validate(name, arguments)
        if failure:
            return failure

        tool = self.tools[name]
        if tool.is_terminal:
            raise ValueError(f"Tool {name} is terminal and cannot be executed")
        try:
            return tool.execute(params)
        except StoreError as e:
            logger.error("Store rejected tool call", tool=name, error=str(e))
            return error(str(e))


def _replace_snapshot(context: RepairContext, updated: Rule) -> None:
    context.rules = [updated if rule.id == updated.id else rule for rule in context.rules]
    if context.matched_rule is not None and context.matched_rule.id == updated.id:
        context.matched_rule = updated


def build_tools(context: RepairContext, store: RuleStore) -> ToolRegistry:
    """
    Assemble the tools for one session.

    change_sender_category is only offered when the user has categories, and
    remove_from_group only when the matched rule belongs to a group.
    """
    user_id = context.user.id

    def edit_rule(params: EditRuleInput) -> Dict[str, Any]:
        logger.info("Edit rule", rule_name=params.rule_name, explanation=params.explanation,
                    condition=params.condition.model_dump(exclude_none=True))

        if params.rule_name:
            rule = next((r for r in context.rules if r.name == params.rule_name), None)
        else:
            rule = context.matched_rule

        if not rule:
            logger.error("Rule not found", rule_name=params.rule_name)
            return error("Rule not found")

        # Group and category links are left untouched on edit
        updated = store.update_rule(
            rule.id,
            user_id,
            name=rule.name,
            condition=params.condition,
            actions=rule.actions,
            group_id=None,
            category_ids=None,
        )
        _replace_snapshot(context, updated)
        return success()

    def create_rule(params: CreateRuleInput) -> Dict[str, Any]:
        logger.info("Create rule", name=params.name, condition=params.condition.model_dump(exclude_none=True),
                    actions=[action.model_dump(exclude_none=True) for action in params.actions])

        # Group and category links are not set by the agent
        created = store.create_rule(user_id, params, group_id=None, category_ids=None)
        context.rules.append(created)
        return success()

    def change_sender_category(params) -> Dict[str, Any]:
        logger.info("Change sender category", sender=params.sender, category=params.category)
        return success()

    def add_to_group(params: AddToGroupInput) -> Dict[str, Any]:
        logger.info("Add to group", group_name=params.group_name, type=params.type, value=params.value)

        group = RuleStore.find_group(context.rules, params.group_name)
        if not group or group.id is None:
            logger.error("Group not found", group_name=params.group_name)
            return error("Group not found")

        item_type = get_group_item_type(params.type)
        if not item_type:
            logger.error("Invalid group item type", type=params.type)
            return error("Invalid group item type")

        item = store.add_group_item(group.id, user_id, item_type, params.value)
        for snapshot in context.groups_with_id(group.id):
            snapshot.items.append(item)
        return success()

    def remove_from_group(params: RemoveFromGroupInput) -> Dict[str, Any]:
        logger.info("Remove from group", type=params.type, value=params.value)

        item_type = get_group_item_type(params.type)
        if not item_type:
            logger.error("Invalid group item type", type=params.type)
            return error("Invalid group item type")

        group = context.matched_rule.group if context.matched_rule else None
        if not group:
            logger.error("Matched rule has no group")
            return error("Group not found")

        item = next(
            (i for i in group.items if i.type == item_type and i.value == params.value),
            None,
        )
        if not item:
            logger.error("Group item not found", type=params.type, value=params.value)
            return error("Group item not found")

        store.delete_group_item(item.id, user_id)
        for snapshot in context.groups_with_id(group.id):
            snapshot.items = [i for i in snapshot.items if i.id != item.id]
        return success()

    tools = [
        Tool('edit_rule', "Fix a rule by adjusting its conditions", EditRuleInput, edit_rule),
        Tool(
            'create_rule',
            "Create a new rule",
            get_create_rule_schema_with_categories(context.categories)
            if context.categories_enabled else CreateRuleInput,
            create_rule,
        ),
    ]
    if context.categories_enabled:
        tools.append(Tool(
            'change_sender_category',
            "Change the category of a sender",
            get_change_category_schema(context.categories),
            change_sender_category,
        ))
    tools.append(Tool('add_to_group', "Add a group item", AddToGroupInput, add_to_group))
    if context.matched_rule is not None and context.matched_rule.group is not None:
        tools.append(Tool('remove_from_group', "Remove a group item", RemoveFromGroupInput, remove_from_group))
    tools.append(Tool('reply', "Send an email reply to the user", ReplyInput))

    return ToolRegistry(tools)
