"""
Charity model — registered organisations that list items.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, Numeric, String
from sqlalchemy.orm import relationship

from givespot.db.base import Base


class Charity(Base):
    __tablename__ = "charities"
    __table_args__ = (CheckConstraint("balance >= 0", name="ck_charity_balance_non_negative"),)

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    name: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    email: str = Column(String(320), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    postcode: str = Column(String(10), nullable=False, index=True)  # type: ignore[assignment]
    address: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]
    phone: str | None = Column(String(30), nullable=True)  # type: ignore[assignment]
    contact_person: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    contact_position: str | None = Column(String(100), nullable=True)  # type: ignore[assignment]
    registration_number: str | None = Column(String(50), nullable=True)  # type: ignore[assignment]
    status: str = Column(  # type: ignore[assignment]
        String(20),
        nullable=False,
        default="pending",
        server_default="pending",
    )  # pending | active | suspended
    balance: float = Column(  # type: ignore[assignment]
        Numeric(10, 2, asdecimal=False),
        nullable=False,
        default=0,
        server_default="0",
    )
    password_hash: str | None = Column(String(128), nullable=True)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    items = relationship("Item", back_populates="charity")
