"""
Render rules as structured text for the language model
"""
from typing import Iterable, List

from .schema import Rule

INDENT = '  '


def _tag(name: str, value, depth: int) -> str:
    return f"{INDENT * depth}<{name}>{value}</{name}>"


def _static_conditions(rule: Rule, depth: int) -> List[str]:
    # Static fields always render together in one block: they are AND-combined
    lines = [f"{INDENT * depth}<static_conditions>"]
    for tag, value in (('from', rule.from_), ('to', rule.to), ('subject', rule.subject), ('body', rule.body)):
        if value:
            lines.append(_tag(tag, value, depth + 1))
    lines.append(f"{INDENT * depth}</static_conditions>")
    return lines


def _group_condition(rule: Rule, depth: int) -> List[str]:
    group = rule.group
    lines = [
        f"{INDENT * depth}<group_condition>",
        _tag('group', group.name, depth + 1),
        f"{INDENT * (depth + 1)}<group_items>",
    ]
    if group.items:
        for item in group.items:
            lines.extend([
                f"{INDENT * (depth + 2)}<item>",
                _tag('type', item.type.value, depth + 3),
                _tag('value', item.value, depth + 3),
                f"{INDENT * (depth + 2)}</item>",
            ])
    else:
        lines.append(f"{INDENT * (depth + 2)}No group items")
    lines.append(f"{INDENT * (depth + 1)}</group_items>")
    lines.append(f"{INDENT * depth}</group_condition>")
    return lines


def _category_conditions(rule: Rule, depth: int) -> List[str]:
    lines = [f"{INDENT * depth}<category_conditions>"]
    if rule.category_filter_type:
        lines.append(_tag('filter_type', rule.category_filter_type.value, depth + 1))
    for category in rule.category_filters:
        lines.append(_tag('category', category.name, depth + 1))
    lines.append(f"{INDENT * depth}</category_conditions>")
    return lines


def rule_to_xml(rule: Rule) -> str:
    """
    Serialize a rule and its relations.

    Sections with nothing to show are left out entirely. Values are inserted
    verbatim, so the same rule state always produces the same text.
    """
    lines = [
        '<rule>',
        _tag('rule_name', rule.name, 1),
        f"{INDENT}<conditions>",
        _tag('conditional_operator', rule.conditional_operator.value, 2),
    ]
    if rule.instructions:
        lines.append(_tag('ai_instructions', rule.instructions, 2))
    if rule.has_static_conditions():
        lines.extend(_static_conditions(rule, 2))
    if rule.group:
        lines.extend(_group_condition(rule, 2))
    if rule.has_category_conditions():
        lines.extend(_category_conditions(rule, 2))
    lines.append(f"{INDENT}</conditions>")
    lines.append('</rule>')
    return '\n'.join(lines)


def rules_to_xml(rules: Iterable[Rule]) -> str:
    return '\n'.join(rule_to_xml(rule) for rule in rules)
