"""
Decision-maker interface for the repair agent, and its OpenAI implementation
"""
import json
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Literal, Optional, Union

import openai
import structlog
from pydantic import BaseModel

logger = structlog.get_logger(__name__)


class ToolCallAction(BaseModel):
    """The decision-maker wants a tool executed"""
    kind: Literal['tool_call'] = 'tool_call'
    name: str
    arguments: Dict[str, Any] = {}
    call_id: Optional[str] = None


class ReplyAction(BaseModel):
    """The decision-maker answered with plain text"""
    kind: Literal['reply'] = 'reply'
    content: str


Action = Union[ToolCallAction, ReplyAction]


class ToolCall(BaseModel):
    """One executed (or rejected) tool call and its result payload"""
    id: str
    step: int
    name: str
    arguments: Dict[str, Any] = {}
    result: Optional[Dict[str, Any]] = None


class Conversation(BaseModel):
    """Everything the decision-maker sees for one session"""
    system: str
    prompt: str
    tools: Dict[str, Dict[str, Any]]
    steps: List[ToolCall] = []


class DecisionMakerError(Exception):
    """The decision-maker could not be reached or returned an unusable response"""


class DecisionMaker(ABC):
    """Chooses the next action of a repair session"""

    @abstractmethod
    def next_action(self, conversation: Conversation) -> Action:
        """Return the next tool call or a terminal reply."""
        ...


class OpenAIDecisionMaker(DecisionMaker):
    """Decision-maker backed by OpenAI chat completions with function tools"""

    def __init__(self, api_key: Optional[str], model: str, timeout: float = 60.0, client: Optional[openai.OpenAI] = None):
        self.client = client or openai.OpenAI(api_key=api_key, timeout=timeout)
        self.model = model

    @staticmethod
    def build_messages(conversation: Conversation) -> List[Dict[str, Any]]:
        """Replay the session as chat messages: prompt, then each tool call and its result"""
        messages: List[Dict[str, Any]] = [
            {'role': 'system', 'content': conversation.system},
            {'role': 'user', 'content': conversation.prompt},
        ]
        for call in conversation.steps:
            messages.append({
                'role': 'assistant',
                'content': None,
                'tool_calls': [{
                    'id': call.id,
                    'type': 'function',
                    'function': {'name': call.name, 'arguments': json.dumps(call.arguments)},
                }],
            })
            messages.append({
                'role': 'tool',
                'tool_call_id': call.id,
                'content': json.dumps(call.result or {}),
            })
        return messages

    @staticmethod
    def build_tools(conversation: Conversation) -> List[Dict[str, Any]]:
        return [
            {
                'type': 'function',
                'function': {
                    'name': name,
                    'description': spec['description'],
                    'parameters': spec['parameters'],
                },
            }
            for name, spec in conversation.tools.items()
        ]

    def next_action(self, conversation: Conversation) -> Action:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=self.build_messages(conversation),
                tools=self.build_tools(conversation),
                parallel_tool_calls=False,
                temperature=0,
            )
        except openai.OpenAIError as e:
            raise DecisionMakerError(f"OpenAI request failed: {e}") from e

        if not response.choices:
            raise DecisionMakerError("OpenAI returned no choices")

        message = response.choices[0].message
        if message.tool_calls:
            call = message.tool_calls[0]
            return ToolCallAction(
                name=call.function.name,
                arguments=self._parse_arguments(call.function.arguments),
                call_id=call.id,
            )
        return ReplyAction(content=message.content or '')

    @staticmethod
    def _parse_arguments(raw: Optional[str]) -> Dict[str, Any]:
        # Unparseable arguments become an empty mapping so schema validation rejects them
        try:
            arguments = json.loads(raw or '{}')
        except json.JSONDecodeError:
            logger.warning("Malformed tool arguments", raw=raw)
            return {}
        return arguments if isinstance(arguments, dict) else {}
