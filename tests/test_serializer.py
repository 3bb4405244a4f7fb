"""
Test suite for the rule serializer.

Test Coverage:

1. Section presence:
   - AI instructions only when set
   - Static conditions only when at least one of from/to/subject/body is set
   - Group condition with items, and the empty-group marker
   - Category conditions only when the rule has category filters

2. Invariants:
   - Static fields render inside a single static_conditions block
   - Serializing the same rule twice gives identical text
   - Values are inserted verbatim
"""

import unittest

import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.rules.schema import (
    Category,
    CategoryFilterType,
    ConditionalOperator,
    Group,
    GroupItem,
    GroupItemType,
    Rule,
)
from src.rules.serializer import rule_to_xml, rules_to_xml

class TestRuleSerializer(unittest.TestCase):
    def test_static_only_rule(self):
        """A rule with a single from condition renders exactly the expected block"""
        rule = Rule(id=1, name='Newsletter', from_='news@')

        expected = '\n'.join([
            '<rule>',
            '  <rule_name>Newsletter</rule_name>',
            '  <conditions>',
            '    <conditional_operator>AND</conditional_operator>',
            '    <static_conditions>',
            '      <from>news@</from>',
            '    </static_conditions>',
            '  </conditions>',
            '</rule>',
        ])
        self.assertEqual(rule_to_xml(rule), expected)

    def test_no_conditions_omits_every_section(self):
        rule = Rule(id=1, name='Empty', conditional_operator=ConditionalOperator.OR)

        text = rule_to_xml(rule)

        self.assertIn('<conditional_operator>OR</conditional_operator>', text)
        for tag in ('ai_instructions', 'static_conditions', 'group_condition', 'category_conditions'):
            self.assertNotIn(tag, text, f"{tag} should be omitted")

    def test_ai_instructions(self):
        rule = Rule(id=1, name='Urgent', instructions='Emails that need a reply today')

        self.assertIn('    <ai_instructions>Emails that need a reply today</ai_instructions>', rule_to_xml(rule))

    def test_static_conditions_share_one_block(self):
        """All static fields are AND-combined, so they must appear inside one block"""
        rule = Rule(
            id=1,
            name='Invoices',
            from_='billing@acme.com',
            to='me@example.com',
            subject='Invoice',
            body='amount due',
            conditional_operator=ConditionalOperator.OR,
            instructions='Invoices from vendors',
        )

        text = rule_to_xml(rule)

        self.assertEqual(text.count('<static_conditions>'), 1)
        self.assertEqual(text.count('</static_conditions>'), 1)
        start = text.index('<static_conditions>')
        end = text.index('</static_conditions>')
        block = text[start:end]
        for tag in ('<from>', '<to>', '<subject>', '<body>'):
            self.assertIn(tag, block)
        self.assertNotIn('conditional_operator', block)

    def test_absent_static_fields_are_omitted(self):
        rule = Rule(id=1, name='Digest', subject='Weekly Digest')

        text = rule_to_xml(rule)

        self.assertIn('<subject>Weekly Digest</subject>', text)
        self.assertNotIn('<from>', text)
        self.assertNotIn('<to>', text)
        self.assertNotIn('<body>', text)

    def test_group_condition_with_items(self):
        group = Group(id=7, name='Receipts', items=[
            GroupItem(id=1, type=GroupItemType.SUBJECT, value='Invoice'),
            GroupItem(id=2, type=GroupItemType.FROM, value='@shop.com'),
        ])
        rule = Rule(id=1, name='Receipts', group=group)

        expected = '\n'.join([
            '    <group_condition>',
            '      <group>Receipts</group>',
            '      <group_items>',
            '        <item>',
            '          <type>SUBJECT</type>',
            '          <value>Invoice</value>',
            '        </item>',
            '        <item>',
            '          <type>FROM</type>',
            '          <value>@shop.com</value>',
            '        </item>',
            '      </group_items>',
            '    </group_condition>',
        ])
        self.assertIn(expected, rule_to_xml(rule))

    def test_empty_group_marker(self):
        rule = Rule(id=1, name='Receipts', group=Group(id=7, name='Receipts'))

        text = rule_to_xml(rule)

        self.assertIn('No group items', text)
        self.assertNotIn('<item>', text)

    def test_category_conditions(self):
        rule = Rule(
            id=1,
            name='Marketing',
            category_filter_type=CategoryFilterType.EXCLUDE,
            category_filters=[Category(id=1, name='Newsletter'), Category(id=2, name='Marketing')],
        )

        expected = '\n'.join([
            '    <category_conditions>',
            '      <filter_type>EXCLUDE</filter_type>',
            '      <category>Newsletter</category>',
            '      <category>Marketing</category>',
            '    </category_conditions>',
        ])
        self.assertIn(expected, rule_to_xml(rule))

    def test_filter_type_without_categories_is_omitted(self):
        rule = Rule(id=1, name='Marketing', category_filter_type=CategoryFilterType.INCLUDE)

        self.assertNotIn('category_conditions', rule_to_xml(rule))

    def test_values_are_verbatim(self):
        rule = Rule(id=1, name='A & B <special>', subject='"Quoted" & <tagged>')

        text = rule_to_xml(rule)

        self.assertIn('<rule_name>A & B <special></rule_name>', text)
        self.assertIn('<subject>"Quoted" & <tagged></subject>', text)

    def test_serialization_is_deterministic(self):
        def build():
            return Rule(
                id=3,
                name='Everything',
                instructions='Anything from the team',
                from_='@team.com',
                subject='Standup',
                conditional_operator=ConditionalOperator.OR,
                group=Group(id=1, name='Team', items=[GroupItem(id=1, type=GroupItemType.FROM, value='@team.com')]),
                category_filter_type=CategoryFilterType.INCLUDE,
                category_filters=[Category(id=1, name='Work')],
            )

        rule = build()
        self.assertEqual(rule_to_xml(rule), rule_to_xml(rule))
        self.assertEqual(rule_to_xml(rule), rule_to_xml(build()))

    def test_rules_to_xml_joins_rules(self):
        rules = [Rule(id=1, name='First'), Rule(id=2, name='Second')]

        text = rules_to_xml(rules)

        self.assertEqual(text, rule_to_xml(rules[0]) + '\n' + rule_to_xml(rules[1]))

if __name__ == '__main__':
    unittest.main()
