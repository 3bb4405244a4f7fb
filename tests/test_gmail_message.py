"""
Test suite for Gmail message parsing and prompt content.

Test Coverage:
   - headers, dates and base64url bodies from Gmail API payloads
   - nested multipart messages
   - content fallback order: plain text, HTML, snippet
   - HTML tag stripping and entity decoding
   - whitespace collapsing and truncation
"""

import base64
import unittest
from unittest.mock import MagicMock

import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.gmail.client import GmailClient, decode_body
from src.gmail.message import MessageHeaders, ParsedMessage, email_to_content, get_email_for_llm

def encode(text):
    return base64.urlsafe_b64encode(text.encode('utf-8')).decode('ascii').rstrip('=')

def make_api_message(payload):
    return {'id': 'msg1', 'threadId': 'thread1', 'snippet': 'Snippet text', 'payload': payload}

HEADERS = [
    {'name': 'From', 'value': 'News <news@paper.com>'},
    {'name': 'To', 'value': 'me@example.com'},
    {'name': 'Subject', 'value': 'Weekly Digest'},
    {'name': 'Reply-To', 'value': 'reply@paper.com'},
    {'name': 'Date', 'value': 'Mon, 2 Jun 2025 09:30:00 +0000'},
]

class TestGmailClient(unittest.TestCase):
    def setUp(self):
        self.client = GmailClient(MagicMock())

    def test_parse_simple_message(self):
        message = make_api_message({
            'mimeType': 'text/plain',
            'headers': HEADERS,
            'body': {'data': encode('Hello reader')},
        })

        parsed = self.client.parse_message(message)

        self.assertEqual(parsed.id, 'msg1')
        self.assertEqual(parsed.thread_id, 'thread1')
        self.assertEqual(parsed.headers.from_address, 'News <news@paper.com>')
        self.assertEqual(parsed.headers.subject, 'Weekly Digest')
        self.assertEqual(parsed.headers.reply_to, 'reply@paper.com')
        self.assertIsNone(parsed.headers.cc)
        self.assertEqual(parsed.headers.date.year, 2025)
        self.assertEqual(parsed.headers.date.hour, 9)
        self.assertEqual(parsed.text_plain, 'Hello reader')
        self.assertIsNone(parsed.text_html)

    def test_parse_nested_multipart(self):
        message = make_api_message({
            'mimeType': 'multipart/mixed',
            'headers': HEADERS,
            'body': {'size': 0},
            'parts': [
                {
                    'mimeType': 'multipart/alternative',
                    'body': {'size': 0},
                    'parts': [
                        {'mimeType': 'text/plain', 'body': {'data': encode('Plain body')}},
                        {'mimeType': 'text/html', 'body': {'data': encode('<p>HTML body</p>')}},
                    ],
                },
                {'mimeType': 'application/pdf', 'body': {'attachmentId': 'att1'}},
            ],
        })

        parsed = self.client.parse_message(message)

        self.assertEqual(parsed.text_plain, 'Plain body')
        self.assertEqual(parsed.text_html, '<p>HTML body</p>')

    def test_unparseable_date(self):
        message = make_api_message({
            'mimeType': 'text/plain',
            'headers': [{'name': 'Date', 'value': 'not a date'}],
            'body': {'data': encode('x')},
        })

        self.assertIsNone(self.client.parse_message(message).headers.date)

    def test_get_parsed_message(self):
        service = MagicMock()
        service.users().messages().get().execute.return_value = make_api_message({
            'mimeType': 'text/plain', 'headers': HEADERS, 'body': {'data': encode('Body')},
        })
        client = GmailClient(service)

        parsed = client.get_parsed_message('msg1')

        self.assertEqual(parsed.text_plain, 'Body')

    def test_decode_body(self):
        self.assertEqual(decode_body(encode('Grüße & <tags>')), 'Grüße & <tags>')
        self.assertEqual(decode_body(''), '')

class TestEmailContent(unittest.TestCase):
    def make(self, **kwargs):
        return ParsedMessage(id='m', headers=MessageHeaders(from_address='a@b.com', subject='Hi'), **kwargs)

    def test_prefers_plain_text(self):
        message = self.make(text_plain='Plain  text\n\nhere', text_html='<p>HTML</p>', snippet='Snip')

        self.assertEqual(email_to_content(message), 'Plain text here')

    def test_falls_back_to_html(self):
        message = self.make(
            text_html='<html><style>p {color: red}</style><body><p>Hello</p><p>World</p></body></html>',
            snippet='Snip',
        )

        self.assertEqual(email_to_content(message), 'Hello World')

    def test_html_entities_are_decoded(self):
        message = self.make(text_html='<p>Tom &amp; Jerry&nbsp;&#8217;s invoice &lt;paid&gt;</p>')

        self.assertEqual(email_to_content(message), 'Tom & Jerry \u2019s invoice <paid>')

    def test_falls_back_to_snippet(self):
        self.assertEqual(email_to_content(self.make(text_plain='   ', snippet='Snippet only')), 'Snippet only')

    def test_truncates_long_content(self):
        message = self.make(text_plain='x' * 50)

        self.assertEqual(email_to_content(message, max_length=10), 'x' * 10 + '...')

    def test_email_for_llm(self):
        message = self.make(text_plain='Body')

        email = get_email_for_llm(message)

        self.assertEqual(email.from_address, 'a@b.com')
        self.assertEqual(email.subject, 'Hi')
        self.assertEqual(email.content, 'Body')

if __name__ == '__main__':
    unittest.main()
