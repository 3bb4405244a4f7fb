"""
Rule repair agent package for Gmail Rule Repair
"""
from .agent import MAX_STEPS, RepairResult, RuleRepairAgent
from .context import RepairContext
from .llm import (
    Conversation,
    DecisionMaker,
    DecisionMakerError,
    OpenAIDecisionMaker,
    ReplyAction,
    ToolCall,
    ToolCallAction,
)
from .tools import Tool, ToolRegistry, build_tools

__all__ = [
    'MAX_STEPS',
    'RepairResult',
    'RuleRepairAgent',
    'RepairContext',
    'Conversation',
    'DecisionMaker',
    'DecisionMakerError',
    'OpenAIDecisionMaker',
    'ReplyAction',
    'ToolCall',
    'ToolCallAction',
    'Tool',
    'ToolRegistry',
    'build_tools',
]
