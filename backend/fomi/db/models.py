from sqlalchemy import Column, Integer, String, Boolean, DateTime, Float, ForeignKey, Text, Index
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fomi.db.database import Base
from fomi.db.enums import FieldType


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(100))
    image = Column(String(500))
    email_verified = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    forms = relationship("Form", back_populates="user", passive_deletes=True)


class VerificationToken(Base):
    """Single-use magic link token; only its hash is stored."""
    __tablename__ = "verification_tokens"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), index=True, nullable=False)
    token_hash = Column(String(64), unique=True, index=True, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Form(Base):
    __tablename__ = "forms"
    __table_args__ = (
        Index("ix_forms_user_updated", "user_id", "updated_at"),
    )

    id = Column(String(64), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False, default="Untitled form")
    description = Column(Text)
    slug = Column(String(100), unique=True, index=True, nullable=False)
    estimated_time = Column(String(50))
    is_draft = Column(Boolean, default=True, nullable=False)
    is_published = Column(Boolean, default=False, nullable=False)
    published_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="forms")
    fields = relationship(
        "FormField",
        back_populates="form",
        passive_deletes=True,
        order_by="FormField.order",
    )
    responses = relationship("FormResponse", back_populates="form", passive_deletes=True)


class FormField(Base):
    __tablename__ = "fields"
    __table_args__ = (
        Index("ix_fields_form_order", "form_id", "order"),
    )

    pk = Column(Integer, primary_key=True)
    id = Column(String(64), nullable=False, index=True)  # client-generated field id
    form_id = Column(String(64), ForeignKey("forms.id", ondelete="CASCADE"), nullable=False)
    type = Column(
        SAEnum(FieldType, name="fieldtype", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    question = Column(Text, nullable=False, default="")
    required = Column(Boolean, default=False, nullable=False)
    order = Column(Integer, nullable=False, default=0)
    placeholder = Column(String(255))
    options = Column(Text)  # JSON array of strings
    rows = Column(Integer)
    min_value = Column(Float)
    max_value = Column(Float)
    step = Column(Float)
    min_length = Column(Integer)
    max_length = Column(Integer)
    min_bound = Column(String(32))  # DATE/TIME lower bound
    max_bound = Column(String(32))  # DATE/TIME upper bound

    form = relationship("Form", back_populates="fields")


class FormResponse(Base):
    __tablename__ = "responses"

    id = Column(Integer, primary_key=True, index=True)
    form_id = Column(String(64), ForeignKey("forms.id", ondelete="CASCADE"), nullable=False, index=True)
    answers = Column(Text, nullable=False)  # JSON object keyed by field id
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    form = relationship("Form", back_populates="responses")
