"""
Rule repair agent: a step-bounded loop between the decision-maker and the tools
"""
from typing import List, Optional

import structlog
from pydantic import BaseModel

from src.database.store import RuleStore
from .context import RepairContext
from .llm import Conversation, DecisionMaker, DecisionMakerError, ReplyAction, ToolCall
from .prompts import SYSTEM_PROMPT, build_prompt
from .tools import build_tools

logger = structlog.get_logger(__name__)

MAX_STEPS = 5


class RepairResult(BaseModel):
    """Outcome of a session. terminal_reply is None when the step budget ran out."""
    terminal_reply: Optional[str] = None
    tool_calls: List[ToolCall] = []


class RuleRepairAgent:
    """Fixes a user's rules from a natural-language correction"""

    def __init__(self, decision_maker: DecisionMaker, store: RuleStore, max_steps: int = MAX_STEPS):
        if max_steps < 1:
            raise ValueError("max_steps must be at least 1")
        self.decision_maker = decision_maker
        self.store = store
        self.max_steps = max_steps

    def process_user_request(self, context: RepairContext) -> RepairResult:
        """
        Run one repair session.

        Each step asks the decision-maker for one action and executes at most
        one tool. Choosing the reply tool (or answering in plain text) ends the
        session. Tool failures are fed back to the decision-maker as results;
        a DecisionMakerError aborts the session and propagates.
        """
        registry = build_tools(context, self.store)
        conversation = Conversation(
            system=SYSTEM_PROMPT,
            prompt=build_prompt(context),
            tools=registry.schemas(),
        )
        logger.debug("Input", system=conversation.system, prompt=conversation.prompt, tools=registry.names())

        result = RepairResult()
        for step in range(1, self.max_steps + 1):
            try:
                action = self.decision_maker.next_action(conversation)
            except DecisionMakerError as e:
                logger.error("Decision maker failed", step=step, error=str(e))
                raise

            if isinstance(action, ReplyAction):
                result.terminal_reply = action.content
                break

            call = ToolCall(
                id=action.call_id or f"call_{step}",
                step=step,
                name=action.name,
                arguments=action.arguments,
            )
            if registry.is_terminal(action.name):
                params, failure = registry.validate(action.name, action.arguments)
                if failure is None:
                    result.tool_calls.append(call)
                    result.terminal_reply = params.content
                    break
                call.result = failure
            else:
                call.result = registry.run(action.name, action.arguments)

            result.tool_calls.append(call)
            conversation.steps.append(call)
        else:
            logger.warning("Step budget exhausted without a reply", max_steps=self.max_steps)

        logger.info("Repair session finished", user=context.user.email, replied=result.terminal_reply is not None,
                    steps=len(result.tool_calls))
        logger.debug("Tool calls", tool_calls=[call.model_dump() for call in result.tool_calls])
        return result
