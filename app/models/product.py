from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from datetime import datetime
from app.database.connection import Base


class Product(Base):
    """Catalog row. Owned by the catalog service; read-only here."""

    __tablename__ = "product"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    sku = Column(String(100), nullable=False)
    base_price = Column(Numeric(18, 4), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)


class ProductPrice(Base):
    __tablename__ = "product_price"
    __table_args__ = (
        UniqueConstraint(
            "organization_id", "price_list_id", "product_id",
            name="uk_product_price_org_list_product",
        ),
        CheckConstraint("amount > 0", name="ck_product_price_amount_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, nullable=False, index=True)
    product_id = Column(
        Integer, ForeignKey("product.id", ondelete="CASCADE"), nullable=False, index=True
    )
    price_list_id = Column(
        Integer, ForeignKey("price_list.id", ondelete="CASCADE"), nullable=False, index=True
    )
    currency = Column(String(3), nullable=False)
    amount = Column(Numeric(18, 4), nullable=False)
    tax_included = Column(Boolean, nullable=False, default=False)
    valid_from = Column(DateTime, nullable=True)
    valid_to = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
