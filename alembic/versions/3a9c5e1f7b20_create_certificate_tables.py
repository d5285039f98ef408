"""Create event, participant, template, certificate and activity log tables

Revision ID: 3a9c5e1f7b20
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '3a9c5e1f7b20'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # Create events table
    op.create_table(
        'events',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('organizer_name', sa.String(200), nullable=True),
        sa.Column('organizer_id', sa.String(36), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_events_organizer_id'), 'events', ['organizer_id'])

    # Create participants table
    op.create_table(
        'participants',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('event_id', sa.String(36), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('update_email_status', sa.String(20), nullable=False, server_default='NOT_SENT'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_participants_event_id'), 'participants', ['event_id'])

    # Create certificate_templates table (one per event)
    op.create_table(
        'certificate_templates',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('event_id', sa.String(36), nullable=False),
        sa.Column('image_ref', sa.Text(), nullable=False),
        sa.Column('name_x', sa.Integer(), nullable=True),
        sa.Column('name_y', sa.Integer(), nullable=True),
        sa.Column('font_size', sa.Integer(), nullable=False, server_default='40'),
        sa.Column('font_color', sa.String(7), nullable=False, server_default='#000000'),
        sa.Column('qr_x', sa.Integer(), nullable=True),
        sa.Column('qr_y', sa.Integer(), nullable=True),
        sa.Column('qr_size', sa.Integer(), nullable=False, server_default='100'),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('event_id')
    )

    # Create certificates table
    op.create_table(
        'certificates',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('verification_id', sa.String(36), nullable=False),
        sa.Column('participant_id', sa.String(36), nullable=False),
        sa.Column('event_id', sa.String(36), nullable=False),
        sa.Column('generation_status', sa.String(20), nullable=False, server_default='PENDING'),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('content_ref', sa.Text(), nullable=True),
        sa.Column('generated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('email_status', sa.String(20), nullable=False, server_default='NOT_SENT'),
        sa.Column('email_sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['participant_id'], ['participants.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('participant_id', 'event_id', name='uq_certificates_participant_event')
    )
    op.create_index(op.f('ix_certificates_verification_id'), 'certificates', ['verification_id'], unique=True)
    op.create_index(op.f('ix_certificates_event_id'), 'certificates', ['event_id'])

    # Create activity_logs table
    op.create_table(
        'activity_logs',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('event_id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=True),
        sa.Column('action', sa.String(100), nullable=False),
        sa.Column('details', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_activity_logs_event_id'), 'activity_logs', ['event_id'])
    op.create_index(op.f('ix_activity_logs_action'), 'activity_logs', ['action'])


def downgrade():
    op.drop_table('activity_logs')
    op.drop_table('certificates')
    op.drop_table('certificate_templates')
    op.drop_table('participants')
    op.drop_table('events')
