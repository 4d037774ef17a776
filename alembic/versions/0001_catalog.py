from alembic import op
import sqlalchemy as sa

revision = "0001_catalog"
down_revision = None
branch_labels = None
depends_on = None

def _audit_columns():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]

def upgrade():
    op.create_table(
        "item_categories",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("icon", sa.Text(), nullable=True),
        *_audit_columns(),
    )

    op.create_table(
        "companies",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False, unique=True),
        sa.Column("icon", sa.Text(), nullable=True),
        *_audit_columns(),
    )

    op.create_table(
        "items",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("category_id", sa.String(), sa.ForeignKey("item_categories.id"), nullable=False),
        *_audit_columns(),
    )
    op.create_index("ix_items_category_id", "items", ["category_id"])

    op.create_table(
        "item_companies",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("item_id", sa.String(), sa.ForeignKey("items.id", ondelete="CASCADE"), nullable=False),
        sa.Column("company_id", sa.String(), sa.ForeignKey("companies.id", ondelete="CASCADE"), nullable=False),
        sa.UniqueConstraint("item_id", "company_id", name="uq_item_company"),
    )
    op.create_index("ix_item_companies_item_id", "item_companies", ["item_id"])
    op.create_index("ix_item_companies_company_id", "item_companies", ["company_id"])

    op.create_table(
        "specifications",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("item_id", sa.String(), sa.ForeignKey("items.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("value_type", sa.String(length=20), nullable=False, server_default="text"),
        sa.Column("options", sa.Text(), nullable=True),
        sa.Column("is_required", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("order", sa.Integer(), nullable=True),
        *_audit_columns(),
    )
    op.create_index("ix_specifications_item_id", "specifications", ["item_id"])

def downgrade():
    op.drop_index("ix_specifications_item_id", table_name="specifications")
    op.drop_table("specifications")

    op.drop_index("ix_item_companies_company_id", table_name="item_companies")
    op.drop_index("ix_item_companies_item_id", table_name="item_companies")
    op.drop_table("item_companies")

    op.drop_index("ix_items_category_id", table_name="items")
    op.drop_table("items")

    op.drop_table("companies")
    op.drop_table("item_categories")
