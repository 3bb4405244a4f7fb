"""
Gmail API integration package
"""
from .auth import get_gmail_service, get_user_email
from .client import GmailClient
from .message import EmailForLLM, ParsedMessage, email_to_content, get_email_for_llm

__all__ = [
    'get_gmail_service',
    'get_user_email',
    'GmailClient',
    'EmailForLLM',
    'ParsedMessage',
    'email_to_content',
    'get_email_for_llm',
]
