"""
Test suite for the OpenAI decision-maker.

Test Coverage:
   - tool definitions and message replay sent to the API
   - tool call responses, plain-text responses, malformed arguments
   - API errors surfaced as DecisionMakerError
"""

import json
import unittest
from unittest.mock import MagicMock

import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import httpx
import openai

from src.repair.llm import (
    Conversation,
    DecisionMakerError,
    OpenAIDecisionMaker,
    ReplyAction,
    ToolCall,
    ToolCallAction,
)

def make_response(content=None, tool_calls=None):
    message = MagicMock()
    message.content = content
    message.tool_calls = tool_calls
    choice = MagicMock()
    choice.message = message
    response = MagicMock()
    response.choices = [choice]
    return response

def make_tool_call(call_id, name, arguments):
    call = MagicMock()
    call.id = call_id
    call.function.name = name
    call.function.arguments = arguments
    return call

class TestOpenAIDecisionMaker(unittest.TestCase):
    def setUp(self):
        self.client = MagicMock()
        self.decision_maker = OpenAIDecisionMaker(api_key=None, model='gpt-test', client=self.client)
        self.conversation = Conversation(
            system='system text',
            prompt='prompt text',
            tools={
                'reply': {
                    'description': 'Send an email reply to the user',
                    'parameters': {'type': 'object', 'properties': {'content': {'type': 'string'}}},
                },
            },
        )

    def test_request_contents(self):
        self.client.chat.completions.create.return_value = make_response(content='hi')
        self.conversation.steps.append(ToolCall(
            id='call_1', step=1, name='add_to_group',
            arguments={'type': 'from', 'value': '@shop.com'}, result={'error': 'Group not found'},
        ))

        self.decision_maker.next_action(self.conversation)

        kwargs = self.client.chat.completions.create.call_args.kwargs
        self.assertEqual(kwargs['model'], 'gpt-test')
        self.assertFalse(kwargs['parallel_tool_calls'])
        self.assertEqual(kwargs['tools'], [{
            'type': 'function',
            'function': {
                'name': 'reply',
                'description': 'Send an email reply to the user',
                'parameters': {'type': 'object', 'properties': {'content': {'type': 'string'}}},
            },
        }])

        messages = kwargs['messages']
        self.assertEqual([m['role'] for m in messages], ['system', 'user', 'assistant', 'tool'])
        self.assertEqual(messages[0]['content'], 'system text')
        self.assertEqual(messages[1]['content'], 'prompt text')
        self.assertEqual(messages[2]['tool_calls'][0]['id'], 'call_1')
        self.assertEqual(messages[2]['tool_calls'][0]['function']['name'], 'add_to_group')
        self.assertEqual(json.loads(messages[2]['tool_calls'][0]['function']['arguments']),
                         {'type': 'from', 'value': '@shop.com'})
        self.assertEqual(messages[3]['tool_call_id'], 'call_1')
        self.assertEqual(json.loads(messages[3]['content']), {'error': 'Group not found'})

    def test_tool_call_response(self):
        self.client.chat.completions.create.return_value = make_response(tool_calls=[
            make_tool_call('call_9', 'reply', '{"content": "Done"}'),
            make_tool_call('call_10', 'edit_rule', '{}'),
        ])

        action = self.decision_maker.next_action(self.conversation)

        self.assertEqual(action, ToolCallAction(name='reply', arguments={'content': 'Done'}, call_id='call_9'))

    def test_text_response(self):
        self.client.chat.completions.create.return_value = make_response(content='All set.')

        action = self.decision_maker.next_action(self.conversation)

        self.assertEqual(action, ReplyAction(content='All set.'))

    def test_malformed_arguments(self):
        self.client.chat.completions.create.return_value = make_response(tool_calls=[
            make_tool_call('call_1', 'edit_rule', '{"rule_name": '),
        ])

        action = self.decision_maker.next_action(self.conversation)

        self.assertEqual(action.arguments, {})

    def test_non_object_arguments(self):
        self.client.chat.completions.create.return_value = make_response(tool_calls=[
            make_tool_call('call_1', 'edit_rule', '["a", "b"]'),
        ])

        self.assertEqual(self.decision_maker.next_action(self.conversation).arguments, {})

    def test_api_error(self):
        request = httpx.Request('POST', 'https://api.openai.com/v1/chat/completions')
        self.client.chat.completions.create.side_effect = openai.APIConnectionError(request=request)

        with self.assertRaises(DecisionMakerError):
            self.decision_maker.next_action(self.conversation)

    def test_empty_choices(self):
        response = make_response()
        response.choices = []
        self.client.chat.completions.create.return_value = response

        with self.assertRaises(DecisionMakerError):
            self.decision_maker.next_action(self.conversation)

if __name__ == '__main__':
    unittest.main()
