from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from sqlalchemy import Enum
import uuid
import enum

from app.db.base import Base


class UserRole(enum.Enum):
    learner = "learner"
    instructor = "instructor"


class User(Base):
    """Profile row keyed by the Supabase auth identity id (auth.users.id)."""

    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    role = Column(
        Enum(UserRole, name="user_role", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    name = Column(String(50), nullable=False)
    phone_number = Column(String(13), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    __table_args__ = (
        CheckConstraint("char_length(name) between 1 and 50", name="check_users_name_length"),
        CheckConstraint("phone_number ~ '^010-[0-9]{4}-[0-9]{4}$'", name="check_users_phone_format"),
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email} role={self.role}>"


class TermsAgreement(Base):
    __tablename__ = "terms_agreements"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, server_default=func.gen_random_uuid())
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    agreed_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    # One agreement per user; inserts racing past the pre-check fail with 23505.
    __table_args__ = (
        UniqueConstraint("user_id", name="uq_terms_agreements_user_id"),
    )

    def __repr__(self) -> str:
        return f"<TermsAgreement id={self.id} user_id={self.user_id}>"
