"""
Database models for Gmail Rule Repair
"""
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Table, Text, UniqueConstraint
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

rule_categories = Table(
    'rule_categories',
    Base.metadata,
    Column('rule_id', Integer, ForeignKey('rules.id'), primary_key=True),
    Column('category_id', Integer, ForeignKey('categories.id'), primary_key=True),
)

class User(Base):
    """User model holding profile context for the assistant"""
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True)
    email = Column(String(255), unique=True, nullable=False)
    about = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)

class Rule(Base):
    """Rule model for storing email processing rules"""
    __tablename__ = 'rules'

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    name = Column(String(255), nullable=False)
    instructions = Column(Text)
    from_address = Column(String(255))
    to_address = Column(String(255))
    subject = Column(String(255))
    body = Column(Text)
    conditional_operator = Column(String(10), nullable=False, default='AND')  # 'AND' or 'OR'
    category_filter_type = Column(String(10))  # 'INCLUDE' or 'EXCLUDE'
    group_id = Column(Integer, ForeignKey('groups.id'))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    group = relationship('Group', back_populates='rules')
    actions = relationship('RuleAction', back_populates='rule', cascade='all, delete-orphan',
                           order_by='RuleAction.id')
    category_filters = relationship('Category', secondary=rule_categories, order_by='Category.name')

    __table_args__ = (
        UniqueConstraint('user_id', 'name', name='uix_user_rule_name'),
    )

class RuleAction(Base):
    """Action model for storing rule actions"""
    __tablename__ = 'rule_actions'

    id = Column(Integer, primary_key=True)
    rule_id = Column(Integer, ForeignKey('rules.id'), nullable=False)
    action_type = Column(String(50), nullable=False)  # ARCHIVE, LABEL, REPLY, ...
    label = Column(String(255))
    subject = Column(String(255))
    content = Column(Text)
    to_address = Column(String(255))
    cc_address = Column(String(255))
    bcc_address = Column(String(255))
    url = Column(String(1024))

    rule = relationship('Rule', back_populates='actions')

class Group(Base):
    """Group model: a named set of sender/subject patterns"""
    __tablename__ = 'groups'

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    rules = relationship('Rule', back_populates='group')
    items = relationship('GroupItem', back_populates='group', cascade='all, delete-orphan',
                         order_by='GroupItem.id')

    __table_args__ = (
        UniqueConstraint('user_id', 'name', name='uix_user_group_name'),
    )

class GroupItem(Base):
    """Group item model; (type, value) pairs are not required to be unique"""
    __tablename__ = 'group_items'

    id = Column(Integer, primary_key=True)
    group_id = Column(Integer, ForeignKey('groups.id'), nullable=False)
    type = Column(String(20), nullable=False)  # FROM or SUBJECT
    value = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    group = relationship('Group', back_populates='items')

class Category(Base):
    """Sender category model"""
    __tablename__ = 'categories'

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text)

    __table_args__ = (
        UniqueConstraint('user_id', 'name', name='uix_user_category_name'),
    )
