"""
Item model — a single catalogue entry listed by a charity.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (JSON, CheckConstraint, Column, DateTime, ForeignKey,
                        Index, Integer, Numeric, String)
from sqlalchemy.orm import relationship

from givespot.db.base import Base


class Item(Base):
    __tablename__ = "items"
    __table_args__ = (
        CheckConstraint("price > 0", name="ck_item_price_positive"),
        Index("ix_items_status_created", "status", "created_at"),
    )

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    item_code: str = Column(String(20), unique=True, nullable=False)  # type: ignore[assignment]
    price: float = Column(Numeric(10, 2, asdecimal=False), nullable=False)  # type: ignore[assignment]
    image_urls: list[str] = Column(JSON, nullable=False, default=list)  # type: ignore[assignment]
    status: str = Column(  # type: ignore[assignment]
        String(20),
        nullable=False,
        default="active",
        server_default="active",
    )  # active | sold | removed
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
    charity_id: int = Column(Integer, ForeignKey("charities.id"), nullable=False, index=True)  # type: ignore[assignment]

    charity = relationship("Charity", back_populates="items")
