from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, JSON, String
from sqlalchemy.orm import relationship

from database import Base


class User(Base):
    """
    Account record. `customer_id` links the user to a Stripe customer.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    hashed_password = Column(String, nullable=False)
    name = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    email_verified = Column(Boolean, default=False, nullable=False)
    customer_id = Column(String, nullable=True, unique=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    verification_codes = relationship(
        "VerificationCode", back_populates="user", cascade="all, delete-orphan"
    )
    subscriptions = relationship("Subscription", back_populates="user")


class VerificationCode(Base):
    """Short-lived code emailed to a user to confirm email ownership."""
    __tablename__ = "verification_codes"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    code = Column(String, nullable=False)
    expires = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="verification_codes")


class Plan(Base):
    __tablename__ = "plans"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    stripe_plan_id = Column(String, nullable=True)
    list_of_features = Column(JSON, default=list, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    limits = relationship("PlanLimit", back_populates="plan", uselist=False, cascade="all, delete-orphan")
    prices = relationship("Price", back_populates="plan", cascade="all, delete-orphan")


class PlanLimit(Base):
    __tablename__ = "plan_limits"

    id = Column(Integer, primary_key=True, index=True)
    plan_id = Column(String, ForeignKey("plans.id", ondelete="CASCADE"), unique=True, nullable=False)
    allowed_users_count = Column(Integer, nullable=False)
    allowed_projects_count = Column(Integer, nullable=False)
    allowed_storage_size = Column(Integer, nullable=False)

    plan = relationship("Plan", back_populates="limits")


class Price(Base):
    """Cost of a plan for one billing interval in one currency."""
    __tablename__ = "prices"

    id = Column(Integer, primary_key=True, index=True)
    plan_id = Column(String, ForeignKey("plans.id", ondelete="CASCADE"), nullable=False, index=True)
    stripe_price_id = Column(String, nullable=False, unique=True)
    amount = Column(Integer, nullable=False)
    currency = Column(String, nullable=False)
    interval = Column(String, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    plan = relationship("Plan", back_populates="prices")


class Subscription(Base):
    """
    Local mirror of a Stripe subscription.
    Written once when the subscription is created; not kept in sync afterwards.
    """
    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    customer_id = Column(String, nullable=False)
    subscription_id = Column(String, nullable=False, unique=True)
    plan_id = Column(String, ForeignKey("plans.id"), nullable=False)
    price_id = Column(Integer, ForeignKey("prices.id"), nullable=False)
    interval = Column(String, nullable=False)
    status = Column(String, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    current_period_start = Column(DateTime, nullable=True)
    current_period_end = Column(DateTime, nullable=True)
    cancel_at_period_end = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="subscriptions")
