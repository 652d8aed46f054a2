from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    JSON,
    Numeric,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import relationship

from app.database.connection import Base


class PriceList(Base):
    __tablename__ = "price_list"
    __table_args__ = (
        UniqueConstraint("organization_id", "name", name="uk_price_list_org_name"),
        # at most one default per organization, also across processes
        Index(
            "uq_price_list_org_default",
            "organization_id",
            unique=True,
            postgresql_where=text("is_default"),
            sqlite_where=text("is_default = 1"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    currency = Column(String(3), nullable=False)
    is_default = Column(Boolean, nullable=False, default=False, index=True)
    status = Column(String(20), nullable=False, default="active", index=True)
    pricing_tax_mode = Column(String(20), nullable=True)  # tax_included / tax_excluded
    tax_class_id = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    conditions = relationship(
        "PriceListCondition",
        back_populates="price_list",
        cascade="all, delete-orphan",
        order_by=lambda: [PriceListCondition.priority, PriceListCondition.id],
    )

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    @property
    def has_tax_mode(self) -> bool:
        return self.pricing_tax_mode is not None


class PriceListCondition(Base):
    __tablename__ = "price_list_condition"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, nullable=False, index=True)
    price_list_id = Column(
        Integer,
        ForeignKey("price_list.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status = Column(String(20), nullable=False, default="active", index=True)
    condition_type = Column(String(50), nullable=False, index=True)
    operator = Column(String(20), nullable=False, default="equals")
    condition_value = Column(JSON, nullable=False)  # e.g. {"min_amount": 100000}
    discount_type = Column(String(20), nullable=False, default="percentage")
    discount_value = Column(Numeric(18, 4), nullable=False, default=0)
    priority = Column(Integer, nullable=False, default=10)
    config = Column(JSON, nullable=True)
    valid_from = Column(DateTime, nullable=True)
    valid_to = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    price_list = relationship("PriceList", back_populates="conditions")

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    def is_valid_at(self, moment: datetime) -> bool:
        """Active and inside [valid_from, valid_to]; an unset bound is open."""
        if not self.is_active:
            return False
        if self.valid_from is not None and moment < self.valid_from:
            return False
        if self.valid_to is not None and moment > self.valid_to:
            return False
        return True

    @property
    def is_valid_now(self) -> bool:
        return self.is_valid_at(datetime.utcnow())
