"""create users and terms_agreements

Revision ID: a3c1e5d7f901
Revises:
Create Date: 2025-09-02 10:12:00.000000
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = 'a3c1e5d7f901'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role = postgresql.ENUM('learner', 'instructor', name='user_role', create_type=False)


def upgrade() -> None:
    user_role.create(op.get_bind(), checkfirst=True)

    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('role', user_role, nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('phone_number', sa.String(length=13), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('char_length(name) between 1 and 50', name='check_users_name_length'),
        sa.CheckConstraint("phone_number ~ '^010-[0-9]{4}-[0-9]{4}$'", name='check_users_phone_format'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    # Profile ids are Supabase identity ids; deleting the identity removes the profile.
    op.execute(
        "ALTER TABLE users ADD CONSTRAINT users_id_auth_fkey "
        "FOREIGN KEY (id) REFERENCES auth.users (id) ON DELETE CASCADE"
    )

    op.create_table(
        'terms_agreements',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('agreed_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('user_id', name='uq_terms_agreements_user_id'),
    )


def downgrade() -> None:
    op.drop_table('terms_agreements')
    op.execute("ALTER TABLE users DROP CONSTRAINT IF EXISTS users_id_auth_fkey")
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
    user_role.drop(op.get_bind(), checkfirst=True)
