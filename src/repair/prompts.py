"""
System instructions and prompt assembly for the repair agent
"""
from src.gmail.message import ParsedMessage, get_email_for_llm
from src.rules.serializer import rule_to_xml, rules_to_xml
from .context import RepairContext

SYSTEM_PROMPT = """You are an email management assistant that helps users manage their email rules.
You can fix rules by adjusting their conditions, including:
- AI instructions
- Static conditions (from, to, subject, body)
- Static group conditions (from, subject)
- Category assignments

Prefer to fix rules by editing them directly, rather than creating new ones.

When fixing a rule, explain what changes you're making and why. Always confirm your actions with clear, concise responses.

Rule matching logic:
- All static conditions (from, to, subject, body) use AND logic - meaning all conditions must match
- Top level conditions (static, group, category, AI instructions) can use either AND or OR logic, controlled by the conditional_operator setting

Group conditions:
- When a group exists, prefer to add/remove group items over changing AI instructions
- Only add subject patterns to groups if they are recurring across multiple emails (e.g., "Monthly Statement", "Order Confirmation")

When fixing a rule, prefer minimal changes that solve the problem:
- Only add AI instructions if simpler conditions won't suffice
- Make the smallest change that will fix the issue

When you are done, use the reply tool to tell the user what you changed."""


def _section(tag: str, body: str) -> str:
    return f"<{tag}>\n{body}\n</{tag}>"


def _email_body(message: ParsedMessage) -> str:
    email = get_email_for_llm(message)
    return f"From: {email.from_address}\nSubject: {email.subject}\n\n{email.content}"


def build_prompt(context: RepairContext) -> str:
    """Assemble the session prompt. Optional sections are left out when they have nothing to say."""
    sections = [
        _section('matched_rule', rule_to_xml(context.matched_rule) if context.matched_rule else 'No rule matched'),
    ]
    if not context.matched_rule:
        sections.append(_section('user_rules', rules_to_xml(context.rules)))

    sections.append(_section('user_request', _email_body(context.user_request_email)))
    if context.user.about:
        sections.append(_section('user_about', context.user.about))
    sections.append(_section('original_email', _email_body(context.original_email)))
    if context.categories_enabled:
        sections.append(_section('sender_category', context.sender_category or 'none'))

    return '\n\n'.join(sections)
