#!/usr/bin/env python3
"""
Gmail Rule Repair - Main entry point
"""
import argparse
import json
import logging
import os
import sys

# Add the parent directory to Python path for imports
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import structlog
from dotenv import load_dotenv

from src.config import Settings
from src.database import RuleStore, get_db_session, init_db
from src.gmail import GmailClient, get_gmail_service, get_user_email
from src.repair import OpenAIDecisionMaker, RepairContext, RuleRepairAgent
from src.rules import RulesConfig

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = structlog.get_logger()

logging.getLogger('googleapiclient.discovery').setLevel(logging.WARNING)
logging.getLogger('httpx').setLevel(logging.WARNING)

GENERIC_FAILURE = "Sorry, something went wrong while updating your rules. Please try again later."

def load_rules(store: RuleStore, rules_file: str) -> RulesConfig:
    """Load rules from configuration file and sync with database"""
    try:
        with open(rules_file, 'r') as f:
            rules_data = json.load(f)

        rules_config = RulesConfig(**rules_data)

        user = store.upsert_user(rules_config.user_email, rules_config.user_about)

        # The file is the source of truth: replace everything the user had
        store.delete_user_rules(user.id)

        categories = {
            name: store.get_or_create_category(user.id, name)
            for name in rules_config.categories
        }

        groups = {}
        for group_config in rules_config.groups:
            group = store.get_or_create_group(user.id, group_config.name)
            for item in group_config.items:
                store.add_group_item(group.id, user.id, item.type, item.value)
            groups[group.name] = group

        for rule_config in rules_config.rules:
            condition = rule_config.condition
            group = groups.get(condition.group) if condition.group else None
            if condition.group and not group:
                logger.warning("Unknown group in rules file", rule=rule_config.name, group=condition.group)

            category_ids = None
            if condition.categories:
                unknown = [n for n in condition.categories.category_filters if n not in categories]
                if unknown:
                    logger.warning("Unknown categories in rules file", rule=rule_config.name, categories=unknown)
                category_ids = [
                    categories[n].id for n in condition.categories.category_filters if n in categories
                ]

            store.create_rule(
                user.id,
                rule_config,
                group_id=group.id if group else None,
                category_ids=category_ids,
            )

        logger.info("Rules synced to database", user=user.email, count=len(rules_config.rules))
        return rules_config

    except Exception as e:
        logger.error("Error loading rules", error=str(e))
        raise

def check_mailbox(service, user_email: str) -> None:
    """Make sure the Gmail account belongs to the user whose rules are being fixed"""
    mailbox = get_user_email(service)
    if mailbox is None:
        logger.warning("Could not verify the Gmail account", user=user_email)
        return
    if mailbox.lower() != user_email.lower():
        raise ValueError(f"Gmail account {mailbox} does not belong to {user_email}")

def build_context(store: RuleStore, gmail_client: GmailClient, args) -> RepairContext:
    """Assemble the session context for a correction"""
    user = store.get_user_by_email(args.user)
    if not user:
        raise ValueError(f"Unknown user: {args.user}")

    user_request_email = gmail_client.get_parsed_message(args.request_id)
    if not user_request_email:
        raise ValueError(f"Could not fetch correction message {args.request_id}")
    original_email = gmail_client.get_parsed_message(args.original_id)
    if not original_email:
        raise ValueError(f"Could not fetch original message {args.original_id}")

    rules = store.list_rules(user.id)
    matched_rule = None
    if args.matched_rule:
        matched_rule = next((rule for rule in rules if rule.name == args.matched_rule), None)
        if not matched_rule:
            raise ValueError(f"Unknown rule: {args.matched_rule}")

    categories = store.get_category_names(user.id)

    return RepairContext(
        user=user,
        rules=rules,
        user_request_email=user_request_email,
        original_email=original_email,
        matched_rule=matched_rule,
        categories=categories or None,
        sender_category=args.sender_category,
    )

def parse_args(argv=None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(description='Gmail Rule Repair')
    subparsers = parser.add_subparsers(dest='command', required=True)

    load_parser = subparsers.add_parser('load-rules', help='Sync rules, groups and categories from a JSON file')
    load_parser.add_argument('--file', help='Rules file (defaults to RULES_FILE)')

    fix_parser = subparsers.add_parser('fix', help='Fix rules from a correction email')
    fix_parser.add_argument('--user', required=True, help='Email address of the user')
    fix_parser.add_argument('--request-id', required=True, help='Gmail ID of the correction email')
    fix_parser.add_argument('--original-id', required=True, help='Gmail ID of the email that was mishandled')
    fix_parser.add_argument('--matched-rule', help='Name of the rule that matched the original email')
    fix_parser.add_argument('--sender-category', help='Current category of the original sender')
    fix_parser.add_argument('--max-steps', type=int, help='Step budget for the agent')
    return parser.parse_args(argv)

def main(argv=None):
    """Main entry point for Gmail Rule Repair"""
    try:
        args = parse_args(argv)

        # Load environment variables
        load_dotenv()
        settings = Settings.from_env()

        init_db()

        with get_db_session() as db:
            store = RuleStore(db)

            if args.command == 'load-rules':
                load_rules(store, args.file or settings.rules_file)
                return

            service = get_gmail_service()
            check_mailbox(service, args.user)
            gmail_client = GmailClient(service)
            context = build_context(store, gmail_client, args)

            agent = RuleRepairAgent(
                OpenAIDecisionMaker(settings.openai_api_key, settings.openai_model, timeout=settings.openai_timeout),
                store,
                max_steps=args.max_steps or settings.max_steps,
            )

            logger.info("Fixing rules", user=context.user.email, matched_rule=args.matched_rule)
            try:
                result = agent.process_user_request(context)
            except Exception:
                print(GENERIC_FAILURE)
                raise

            if result.terminal_reply:
                print(result.terminal_reply)
            else:
                logger.warning("No reply from the agent", tool_calls=len(result.tool_calls))
    except Exception as e:
        logger.error("Error fixing rules", error=str(e))
        raise

if __name__ == "__main__":
    main()
