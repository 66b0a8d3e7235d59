"""Create user, partner, registration, payment_deadline, user_document and log tables

Revision ID: 001
Revises:
Create Date: 2026-10-01 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None

_JSON = sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')


def upgrade():
    """Create enrollment tables. Status columns are VARCHAR (non-native enums)."""

    op.create_table(
        'user',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.Text(), nullable=False),
        sa.Column('first_name', sa.Text(), nullable=True),
        sa.Column('last_name', sa.Text(), nullable=True),
        sa.Column('role', sa.Text(), nullable=False, server_default='USER'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email', name='uq_user_email'),
        sa.CheckConstraint("role IN ('USER', 'PARTNER', 'ADMIN')", name='ck_user_role'),
    )

    op.create_table(
        'partner',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('email', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'registration',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('partner_id', sa.Uuid(), nullable=True),
        sa.Column('offer_type', sa.Text(), nullable=True),
        sa.Column('course_name', sa.Text(), nullable=True),
        sa.Column('status', sa.String(40), nullable=False, server_default='PENDING'),
        sa.Column('original_amount', sa.Numeric(12, 2), nullable=True),
        sa.Column('final_amount', sa.Numeric(12, 2), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['user.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['partner_id'], ['partner.id'], ondelete='SET NULL'),
    )
    op.create_index('ix_registration_user_id', 'registration', ['user_id'])
    op.create_index('ix_registration_partner_id', 'registration', ['partner_id'])

    op.create_table(
        'payment_deadline',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('registration_id', sa.Uuid(), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('payment_status', sa.String(20), nullable=False, server_default='UNPAID'),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['registration_id'], ['registration.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_payment_deadline_registration_id', 'payment_deadline', ['registration_id'])

    op.create_table(
        'user_document',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('registration_id', sa.Uuid(), nullable=True),
        sa.Column('type', sa.Text(), nullable=False),
        sa.Column('status', sa.String(30), nullable=False, server_default='PENDING'),

        # Partner review
        sa.Column('reviewed_by_partner', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('partner_checked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('partner_checked_by', sa.Uuid(), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('rejection_details', sa.Text(), nullable=True),

        # Discovery review
        sa.Column('discovery_approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('discovery_approved_by', sa.Uuid(), nullable=True),
        sa.Column('discovery_rejected_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('discovery_rejection_reason', sa.Text(), nullable=True),

        # Notifications
        sa.Column('user_notified_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('partner_notified_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('email_sent_at', sa.DateTime(timezone=True), nullable=True),

        # File
        sa.Column('original_name', sa.Text(), nullable=False),
        sa.Column('mime_type', sa.Text(), nullable=False),
        sa.Column('size_bytes', sa.BigInteger(), nullable=False),
        sa.Column('storage_key', sa.Text(), nullable=False),
        sa.Column('checksum', sa.Text(), nullable=False),

        # Provenance
        sa.Column('upload_source', sa.Text(), nullable=False, server_default='USER_DASHBOARD'),
        sa.Column('uploaded_by', sa.Uuid(), nullable=True),
        sa.Column('uploaded_by_role', sa.Text(), nullable=True),
        sa.Column('uploaded_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),

        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['user.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['registration_id'], ['registration.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_user_document_registration_id', 'user_document', ['registration_id'])
    op.create_index('ix_user_document_user_type', 'user_document', ['user_id', 'registration_id', 'type'])

    # No FK on document_id: entries outlive deleted documents
    op.create_table(
        'document_action_log',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('document_id', sa.Uuid(), nullable=False),
        sa.Column('action', sa.Text(), nullable=False),
        sa.Column('performed_by', sa.Uuid(), nullable=True),
        sa.Column('performed_role', sa.Text(), nullable=True),
        sa.Column('details', _JSON, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_document_action_log_document_id_created_at',
        'document_action_log',
        ['document_id', 'created_at'],
    )

    op.create_table(
        'audit_log',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('actor_id', sa.Uuid(), nullable=True),
        sa.Column('action', sa.Text(), nullable=False),
        sa.Column('entity_type', sa.Text(), nullable=True),
        sa.Column('entity_id', sa.Uuid(), nullable=True),
        sa.Column('metadata_json', _JSON, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_audit_log_entity', 'audit_log', ['entity_type', 'entity_id'])
    op.create_index('ix_audit_log_created_at', 'audit_log', ['created_at'])


def downgrade():
    """Drop enrollment tables in reverse dependency order."""
    op.drop_table('audit_log')
    op.drop_table('document_action_log')
    op.drop_table('user_document')
    op.drop_table('payment_deadline')
    op.drop_table('registration')
    op.drop_table('partner')
    op.drop_table('user')
