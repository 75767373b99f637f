"""Create document control and approval workflow tables

Revision ID: 001
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'org',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('slug', sa.Text(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('slug', name='uq_org_slug'),
    )

    op.create_table(
        'user',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('org_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('email', sa.Text(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('role', sa.Text(), server_default='MEMBER', nullable=False),
        sa.Column('status', sa.Text(), server_default='ACTIVE', nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['org_id'], ['org.id'], ondelete='RESTRICT'),
        sa.UniqueConstraint('org_id', 'email', name='uq_user_org_email'),
        sa.CheckConstraint("role IN ('ADMIN', 'MANAGER', 'MEMBER', 'VIEWER')", name='ck_user_role'),
        sa.CheckConstraint("status IN ('ACTIVE', 'DISABLED')", name='ck_user_status'),
    )

    op.create_table(
        'project',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('org_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['org_id'], ['org.id'], ondelete='RESTRICT'),
    )
    op.create_index('ix_project_org_id', 'project', ['org_id'])

    op.create_table(
        'project_member',
        sa.Column('project_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('role', sa.Text(), server_default='MEMBER', nullable=False),
        sa.PrimaryKeyConstraint('project_id', 'user_id'),
        sa.ForeignKeyConstraint(['project_id'], ['project.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['user.id'], ondelete='CASCADE'),
        sa.CheckConstraint("role IN ('MEMBER', 'MANAGER')", name='ck_project_member_role'),
    )

    op.create_table(
        'document',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('project_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('file_name', sa.Text(), nullable=True),
        sa.Column('uploaded_by', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('status', sa.Text(), server_default='draft', nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['project_id'], ['project.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['uploaded_by'], ['user.id'], ondelete='SET NULL'),
    )
    op.create_index('ix_document_project_id', 'document', ['project_id'])

    op.create_table(
        'approval_workflow',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('document_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('current_step', sa.Integer(), server_default='1', nullable=False),
        sa.Column('total_steps', sa.Integer(), nullable=False),
        sa.Column('overall_status', sa.Text(), server_default='pending', nullable=False),
        sa.Column('requested_by', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('requested_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('completed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('comments', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['document_id'], ['document.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['requested_by'], ['user.id'], ondelete='SET NULL'),
        sa.CheckConstraint(
            "overall_status IN ('pending', 'under-review', 'approved', 'rejected')",
            name='ck_approval_workflow_status'
        ),
        sa.CheckConstraint('total_steps >= 1', name='ck_approval_workflow_total_steps'),
        sa.CheckConstraint(
            'current_step >= 1 AND current_step <= total_steps',
            name='ck_approval_workflow_current_step'
        ),
    )
    # One active workflow per document
    op.create_index(
        'uq_approval_workflow_active_document',
        'approval_workflow',
        ['document_id'],
        unique=True,
        postgresql_where=sa.text("overall_status IN ('pending', 'under-review')"),
    )
    op.create_index(
        'ix_approval_workflow_document_id_created_at',
        'approval_workflow',
        ['document_id', 'created_at'],
    )

    op.create_table(
        'approval_step',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('workflow_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('approver_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('step_order', sa.Integer(), nullable=False),
        sa.Column('status', sa.Text(), server_default='pending', nullable=False),
        sa.Column('comments', sa.Text(), nullable=True),
        sa.Column('approved_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('rejected_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('viewed_document', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('downloaded_document', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('opened_in_sharepoint', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['workflow_id'], ['approval_workflow.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['approver_id'], ['user.id'], ondelete='RESTRICT'),
        sa.UniqueConstraint('workflow_id', 'step_order', name='uq_approval_step_workflow_order'),
        sa.CheckConstraint('step_order >= 1', name='ck_approval_step_order'),
        sa.CheckConstraint("status IN ('pending', 'approved', 'rejected')", name='ck_approval_step_status'),
    )
    op.create_index('ix_approval_step_approver_id_status', 'approval_step', ['approver_id', 'status'])

    op.create_table(
        'rejection_attachment',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('step_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('file_name', sa.Text(), nullable=False),
        sa.Column('file_size', sa.BigInteger(), nullable=False),
        sa.Column('file_type', sa.Text(), nullable=True),
        sa.Column('storage_path', sa.Text(), nullable=False),
        sa.Column('uploaded_by', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('uploaded_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['step_id'], ['approval_step.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['uploaded_by'], ['user.id'], ondelete='SET NULL'),
    )
    op.create_index('ix_rejection_attachment_step_id', 'rejection_attachment', ['step_id'])

    op.create_table(
        'document_activity_log',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('document_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('action', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('old_value', sa.Text(), nullable=True),
        sa.Column('new_value', sa.Text(), nullable=True),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('metadata_json', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['document_id'], ['document.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['user.id'], ondelete='SET NULL'),
    )
    op.create_index(
        'ix_document_activity_log_document_id_created_at',
        'document_activity_log',
        ['document_id', sa.text('created_at DESC')],
    )


def downgrade():
    op.drop_index('ix_document_activity_log_document_id_created_at', table_name='document_activity_log')
    op.drop_table('document_activity_log')
    op.drop_index('ix_rejection_attachment_step_id', table_name='rejection_attachment')
    op.drop_table('rejection_attachment')
    op.drop_index('ix_approval_step_approver_id_status', table_name='approval_step')
    op.drop_table('approval_step')
    op.drop_index('ix_approval_workflow_document_id_created_at', table_name='approval_workflow')
    op.drop_index('uq_approval_workflow_active_document', table_name='approval_workflow')
    op.drop_table('approval_workflow')
    op.drop_index('ix_document_project_id', table_name='document')
    op.drop_table('document')
    op.drop_table('project_member')
    op.drop_index('ix_project_org_id', table_name='project')
    op.drop_table('project')
    op.drop_table('user')
    op.drop_table('org')
