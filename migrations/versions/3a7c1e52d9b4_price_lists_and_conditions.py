"""price lists, conditions and catalog prices

Revision ID: 3a7c1e52d9b4
Revises:
Create Date: 2026-10-19 09:12:40.118305

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3a7c1e52d9b4'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade():
    op.create_table(
        "price_list",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("organization_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("pricing_tax_mode", sa.String(20), nullable=True),
        sa.Column("tax_class_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("organization_id", "name", name="uk_price_list_org_name"),
    )
    op.create_index("ix_price_list_organization_id", "price_list", ["organization_id"])
    op.create_index("ix_price_list_is_default", "price_list", ["is_default"])
    op.create_index("ix_price_list_status", "price_list", ["status"])
    op.create_index("ix_price_list_created_at", "price_list", ["created_at"])
    # at most one default per organization, enforced across processes
    op.create_index(
        "uq_price_list_org_default",
        "price_list",
        ["organization_id"],
        unique=True,
        postgresql_where=sa.text("is_default"),
        sqlite_where=sa.text("is_default = 1"),
    )

    op.create_table(
        "price_list_condition",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("organization_id", sa.Integer(), nullable=False),
        sa.Column(
            "price_list_id",
            sa.Integer(),
            sa.ForeignKey("price_list.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("condition_type", sa.String(50), nullable=False),
        sa.Column("operator", sa.String(20), nullable=False, server_default="equals"),
        sa.Column("condition_value", sa.JSON(), nullable=False),
        sa.Column("discount_type", sa.String(20), nullable=False, server_default="percentage"),
        sa.Column("discount_value", sa.Numeric(18, 4), nullable=False, server_default="0"),
        sa.Column("priority", sa.Integer(), nullable=False, server_default="10"),
        sa.Column("config", sa.JSON(), nullable=True),
        sa.Column("valid_from", sa.DateTime(), nullable=True),
        sa.Column("valid_to", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_price_list_condition_organization_id", "price_list_condition", ["organization_id"])
    op.create_index("ix_price_list_condition_price_list_id", "price_list_condition", ["price_list_id"])
    op.create_index("ix_price_list_condition_status", "price_list_condition", ["status"])
    op.create_index("ix_price_list_condition_condition_type", "price_list_condition", ["condition_type"])

    op.create_table(
        "product",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("organization_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("sku", sa.String(100), nullable=False),
        sa.Column("base_price", sa.Numeric(18, 4), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_product_organization_id", "product", ["organization_id"])

    op.create_table(
        "product_price",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("organization_id", sa.Integer(), nullable=False),
        sa.Column(
            "product_id", sa.Integer(), sa.ForeignKey("product.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column(
            "price_list_id", sa.Integer(), sa.ForeignKey("price_list.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("amount", sa.Numeric(18, 4), nullable=False),
        sa.Column("tax_included", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("valid_from", sa.DateTime(), nullable=True),
        sa.Column("valid_to", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint(
            "organization_id", "price_list_id", "product_id", name="uk_product_price_org_list_product"
        ),
        sa.CheckConstraint("amount > 0", name="ck_product_price_amount_positive"),
    )
    op.create_index("ix_product_price_organization_id", "product_price", ["organization_id"])
    op.create_index("ix_product_price_product_id", "product_price", ["product_id"])
    op.create_index("ix_product_price_price_list_id", "product_price", ["price_list_id"])


def downgrade():
    op.drop_table("product_price")
    op.drop_table("product")
    op.drop_table("price_list_condition")
    op.drop_index("uq_price_list_org_default", table_name="price_list")
    op.drop_table("price_list")
