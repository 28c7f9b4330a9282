# burnlink/models/message_table.py
# Table for self-destructing messages

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Column,
    Index,
    Integer,
    Table,
    Text,
    TIMESTAMP,
)

from burnlink.db.base import metadata


messages = Table(
    'messages',
    metadata,
    Column('id', BigInteger, primary_key=True, autoincrement=True),  # internal only
    Column('text', Text, nullable=False),
    Column('token', Text, nullable=False, unique=True),  # public identifier
    Column('ttl_unit', Text, nullable=False),
    Column('ttl_value', Integer, nullable=False),
    Column('created_at', TIMESTAMP(timezone=True), nullable=False),
    Column('active_until', TIMESTAMP(timezone=True), nullable=True),  # set on first reveal
    Column('bound_fingerprint', Text, nullable=True),  # set on first reveal
    CheckConstraint("ttl_unit IN ('minutes', 'seconds')", name='ck_messages_ttl_unit'),
    CheckConstraint('ttl_value > 0', name='ck_messages_ttl_value'),
    CheckConstraint(
        '(active_until IS NULL) = (bound_fingerprint IS NULL)',
        name='ck_messages_binding_pair',
    ),
    Index('ix_messages_created_at', 'created_at'),
    Index('ix_messages_active_until', 'active_until'),
    schema='public',
)
