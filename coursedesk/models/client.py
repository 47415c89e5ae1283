# coursedesk/models/client.py
from typing import Optional
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, DateTime, func, Text, Integer
from coursedesk.db.base import Base

PLANS = ("trial", "basic", "pro", "enterprise")
SUBSCRIPTION_STATUSES = ("trial", "active", "suspended", "expired")


class Client(Base):
    """Tenant (conta do cliente). O login da própria conta é a identidade admin do tenant."""

    __tablename__ = "clients"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    email: Mapped[str] = mapped_column(String(160), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255))
    name: Mapped[str] = mapped_column(String(160))
    contact_person: Mapped[Optional[str]] = mapped_column(String(160), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)

    # assinatura (fonte da verdade; o KV guarda só uma projeção)
    plan: Mapped[str] = mapped_column(String(20), default="trial")
    subscription_status: Mapped[str] = mapped_column(String(20), default="trial")
    subscription_expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    max_users: Mapped[int] = mapped_column(Integer, default=5)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    last_login_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    users = relationship("User", back_populates="client", cascade="all, delete-orphan")
