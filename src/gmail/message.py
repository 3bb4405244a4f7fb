"""
Parsed Gmail messages and their plain-text form for the language model
"""
import html
import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

MAX_CONTENT_LENGTH = 2000

class MessageHeaders(BaseModel):
    from_address: str = ''
    to: str = ''
    cc: Optional[str] = None
    reply_to: Optional[str] = None
    subject: str = ''
    date: Optional[datetime] = None

class ParsedMessage(BaseModel):
    """A Gmail message reduced to the parts the assistant reads"""
    id: str
    thread_id: Optional[str] = None
    headers: MessageHeaders
    text_plain: Optional[str] = None
    text_html: Optional[str] = None
    snippet: str = ''

class EmailForLLM(BaseModel):
    from_address: str
    reply_to: Optional[str] = None
    cc: Optional[str] = None
    subject: str
    content: str
    date: Optional[datetime] = None

_TAG_RE = re.compile(r'<[^>]+>')
_STYLE_RE = re.compile(r'<(style|script)[^>]*>.*?</\1>', re.IGNORECASE | re.DOTALL)
_WHITESPACE_RE = re.compile(r'\s+')

def html_to_text(html_content: str) -> str:
    text = _STYLE_RE.sub(' ', html_content)
    text = re.sub(r'<br\s*/?>|</p>|</div>', '\n', text, flags=re.IGNORECASE)
    text = _TAG_RE.sub(' ', text)
    # Entities are decoded after tag removal so escaped markup stays text
    return html.unescape(text)

def email_to_content(message: ParsedMessage, max_length: int = MAX_CONTENT_LENGTH) -> str:
    """Plain-text body, else the HTML body without markup, else the snippet"""
    if message.text_plain and message.text_plain.strip():
        content = message.text_plain
    elif message.text_html and message.text_html.strip():
        content = html_to_text(message.text_html)
    else:
        content = message.snippet

    content = _WHITESPACE_RE.sub(' ', content).strip()
    if len(content) > max_length:
        content = content[:max_length] + '...'
    return content

def get_email_for_llm(message: ParsedMessage) -> EmailForLLM:
    return EmailForLLM(
        from_address=message.headers.from_address,
        reply_to=message.headers.reply_to,
        cc=message.headers.cc,
        subject=message.headers.subject,
        content=email_to_content(message),
        date=message.headers.date,
    )
