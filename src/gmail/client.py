"""
Gmail API client for reading the messages a correction refers to
"""
import base64
import binascii
from datetime import datetime
from typing import Dict, Optional
import logging

from dateutil import parser as date_parser
from googleapiclient.discovery import Resource
from googleapiclient.errors import HttpError

from .message import MessageHeaders, ParsedMessage

logger = logging.getLogger(__name__)

def decode_body(data: str) -> str:
    """Decode a base64url message body as sent by the Gmail API"""
    if not data:
        return ''
    try:
        padded = data + '=' * (-len(data) % 4)
        return base64.urlsafe_b64decode(padded).decode('utf-8', errors='replace')
    except (binascii.Error, ValueError) as e:
        logger.warning(f"Could not decode message body: {e}")
        return ''

def parse_date(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return date_parser.parse(value)
    except (ValueError, OverflowError):
        logger.debug(f"Unparseable Date header: {value}")
        return None

class GmailClient:
    """Gmail API client for email operations"""

    def __init__(self, service: Resource):
        self.service = service
        self.user_id = 'me'

    def get_message(self, msg_id: str) -> Optional[Dict]:
        """Get a specific message by ID"""
        try:
            message = self.service.users().messages().get(
                userId=self.user_id,
                id=msg_id,
                format='full'
            ).execute()
            return message
        except HttpError as e:
            logger.error(f"HTTP error getting message {msg_id}: {e.resp.status} - {e.content}")
            return None

    def get_parsed_message(self, msg_id: str) -> Optional[ParsedMessage]:
        message = self.get_message(msg_id)
        if not message:
            return None
        return self.parse_message(message)

    def parse_message(self, message: Dict) -> ParsedMessage:
        """Convert a Gmail API message into a ParsedMessage"""
        payload = message.get('payload', {})
        headers = {h['name'].lower(): h['value'] for h in payload.get('headers', [])}
        text_plain, text_html = self._get_bodies(payload)

        return ParsedMessage(
            id=message['id'],
            thread_id=message.get('threadId'),
            headers=MessageHeaders(
                from_address=headers.get('from', ''),
                to=headers.get('to', ''),
                cc=headers.get('cc'),
                reply_to=headers.get('reply-to'),
                subject=headers.get('subject', ''),
                date=parse_date(headers.get('date')),
            ),
            text_plain=text_plain,
            text_html=text_html,
            snippet=message.get('snippet', ''),
        )

    def _get_bodies(self, payload: Dict):
        """Walk the MIME tree and return the first text/plain and text/html bodies"""
        text_plain = None
        text_html = None
        stack = [payload]
        while stack:
            part = stack.pop(0)
            mime_type = part.get('mimeType', '')
            data = part.get('body', {}).get('data')
            if data and mime_type == 'text/plain' and text_plain is None:
                text_plain = decode_body(data)
            elif data and mime_type == 'text/html' and text_html is None:
                text_html = decode_body(data)
            stack.extend(part.get('parts', []))
        return text_plain, text_html
