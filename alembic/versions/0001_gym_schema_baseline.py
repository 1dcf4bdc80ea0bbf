from alembic import op
import sqlalchemy as sa


revision = "0001_gym_schema_baseline"
down_revision = None
branch_labels = None
depends_on = None


def _audit_columns():
    return [
        sa.Column("registered_by_id", sa.Integer(), nullable=False),
        sa.Column("registered_by_type", sa.String(20), nullable=False),
        sa.Column("updated_by_id", sa.Integer(), nullable=True),
        sa.Column("updated_by_type", sa.String(20), nullable=True),
    ]


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "gyms",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("address", sa.JSON(), nullable=False),
        sa.Column("opening_time", sa.String(5), nullable=False),
        sa.Column("closing_time", sa.String(5), nullable=False),
        sa.Column("logo_url", sa.String(1000), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("name", name="uq_gym_name"),
    )

    op.create_table(
        "admins",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column("username", sa.String(100), nullable=True),
        sa.Column("name", sa.String(120), nullable=True),
        sa.Column("last_name", sa.String(120), nullable=True),
        sa.Column("email", sa.String(255), nullable=False, index=True),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("admin_code", sa.String(50), nullable=True),
        sa.Column("gym_id", sa.Integer(), nullable=True, index=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["gym_id"], ["gyms.id"], ondelete="SET NULL"),
        sa.UniqueConstraint("email", name="uq_admins_email"),
    )

    op.create_table(
        "collaborators",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column("username", sa.String(100), nullable=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("last_name", sa.String(120), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, index=True),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("collaborator_code", sa.String(20), nullable=False),
        sa.Column("color", sa.String(30), nullable=False, server_default="Verde"),
        sa.Column("working_days", sa.JSON(), nullable=True),
        sa.Column("working_start_time", sa.String(5), nullable=True),
        sa.Column("working_end_time", sa.String(5), nullable=True),
        sa.Column("gym_id", sa.Integer(), nullable=True, index=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["gym_id"], ["gyms.id"], ondelete="SET NULL"),
        sa.UniqueConstraint("email", name="uq_collaborators_email"),
        sa.UniqueConstraint("username", name="uq_collaborators_username"),
    )

    op.create_table(
        "memberships",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column("name_membership", sa.String(255), nullable=False),
        sa.Column("description", sa.String(1000), nullable=False, server_default=""),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("duration_days", sa.Integer(), nullable=False),
        sa.Column("period", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="Activado"),
        sa.Column("currency", sa.String(3), nullable=False, server_default="MXN"),
        sa.Column("color", sa.String(30), nullable=False, server_default="Verde"),
        sa.Column("cantidad_usuarios", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("porcentaje_uso", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("gym_id", sa.Integer(), nullable=False, index=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["gym_id"], ["gyms.id"], ondelete="CASCADE"),
        sa.CheckConstraint("cantidad_usuarios >= 0", name="ck_memberships_cantidad_usuarios"),
    )

    op.create_table(
        "clients",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column("gym_id", sa.Integer(), nullable=False, index=True),
        sa.Column("first_name", sa.String(120), nullable=True),
        sa.Column("last_father", sa.String(120), nullable=True),
        sa.Column("last_mother", sa.String(120), nullable=True),
        sa.Column("birth_date", sa.Date(), nullable=True),
        sa.Column("email", sa.String(255), nullable=True, index=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("rfc", sa.String(20), nullable=True),
        sa.Column("emergency_contact_name", sa.String(255), nullable=True),
        sa.Column("emergency_contact_phone", sa.String(50), nullable=True),
        sa.Column("membership_id", sa.Integer(), nullable=False, index=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("status", sa.String(30), nullable=False, server_default="Activo", index=True),
        sa.Column("payment_method", sa.String(50), nullable=True),
        sa.Column("payment_amount", sa.Numeric(10, 2), nullable=True),
        sa.Column("payment_currency", sa.String(3), nullable=True),
        *_audit_columns(),
        *_timestamps(),
        sa.ForeignKeyConstraint(["gym_id"], ["gyms.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["membership_id"], ["memberships.id"], ondelete="RESTRICT"),
    )
    op.create_index(
        "uq_clients_gym_active_email",
        "clients",
        ["gym_id", "email"],
        unique=True,
        postgresql_where=sa.text("status = 'Activo'"),
        sqlite_where=sa.text("status = 'Activo'"),
    )

    op.create_table(
        "suppliers",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(50), nullable=False, server_default=""),
        sa.Column("email", sa.String(255), nullable=False, server_default="", index=True),
        sa.Column("gym_id", sa.Integer(), nullable=False, index=True),
        *_audit_columns(),
        *_timestamps(),
        sa.ForeignKeyConstraint(["gym_id"], ["gyms.id"], ondelete="CASCADE"),
    )

    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column("name_product", sa.String(255), nullable=False, index=True),
        sa.Column("stock_quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("stock_unit", sa.String(20), nullable=False),
        sa.Column("price_amount", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("price_currency", sa.String(3), nullable=False, server_default="MXN"),
        sa.Column("category", sa.String(50), nullable=False, index=True),
        sa.Column("barcode", sa.String(100), nullable=False, server_default="", index=True),
        sa.Column("purchase_date", sa.DateTime(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="Activo"),
        sa.Column("restock_status", sa.String(20), nullable=False, server_default="Activo"),
        sa.Column("sales_obtained", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("supplier_id", sa.Integer(), nullable=True, index=True),
        sa.Column("image_url", sa.String(2000), nullable=True),
        sa.Column("gym_id", sa.Integer(), nullable=False, index=True),
        *_audit_columns(),
        *_timestamps(),
        sa.ForeignKeyConstraint(["gym_id"], ["gyms.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["supplier_id"], ["suppliers.id"], ondelete="RESTRICT"),
        sa.CheckConstraint("stock_quantity >= 0", name="ck_products_stock_quantity"),
        sa.CheckConstraint("sales_obtained >= 0", name="ck_products_sales_obtained"),
    )
    # Barcode uniqueness applies only to non-empty codes
    op.create_index(
        "uq_products_gym_barcode",
        "products",
        ["gym_id", "barcode"],
        unique=True,
        postgresql_where=sa.text("barcode <> ''"),
        sqlite_where=sa.text("barcode <> ''"),
    )

    op.create_table(
        "product_sales",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column("gym_id", sa.Integer(), nullable=False, index=True),
        sa.Column("product_id", sa.Integer(), nullable=True, index=True),
        sa.Column("product_name", sa.String(255), nullable=False),
        sa.Column("unit_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("quantity_sold", sa.Integer(), nullable=False),
        sa.Column("sale_code", sa.String(100), nullable=False),
        sa.Column("client_id", sa.Integer(), nullable=True, index=True),
        sa.Column("client_name", sa.String(255), nullable=False),
        sa.Column("sale_date", sa.DateTime(), nullable=False, index=True),
        sa.Column("seller_id", sa.Integer(), nullable=False),
        sa.Column("seller_name", sa.String(255), nullable=False),
        sa.Column("seller_role", sa.String(20), nullable=False),
        sa.Column("sale_status", sa.String(20), nullable=False, server_default="Exitosa", index=True),
        sa.Column("total_sale", sa.Numeric(10, 2), nullable=False),
        sa.Column("cancellation_reason", sa.String(500), nullable=True),
        sa.Column("cancelled_by_id", sa.Integer(), nullable=True),
        sa.Column("cancelled_by_type", sa.String(20), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(), nullable=True),
        *_audit_columns(),
        *_timestamps(),
        sa.ForeignKeyConstraint(["gym_id"], ["gyms.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["client_id"], ["clients.id"], ondelete="SET NULL"),
        sa.UniqueConstraint("sale_code", name="uq_product_sales_sale_code"),
        sa.CheckConstraint("quantity_sold >= 1", name="ck_product_sales_quantity_sold"),
    )

    op.create_table(
        "notes",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("category", sa.String(30), nullable=False, server_default="nota", index=True),
        sa.Column("user_id", sa.Integer(), nullable=False, index=True),
        sa.Column("user_type", sa.String(20), nullable=False),
        sa.Column("gym_id", sa.Integer(), nullable=True, index=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["gym_id"], ["gyms.id"], ondelete="CASCADE"),
    )

    op.create_table(
        "calendar_events",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("event_date", sa.Date(), nullable=False, index=True),
        sa.Column("start_time", sa.String(5), nullable=False),
        sa.Column("end_time", sa.String(5), nullable=False),
        sa.Column("category", sa.String(30), nullable=False, server_default="meetings"),
        sa.Column("user_id", sa.Integer(), nullable=False, index=True),
        sa.Column("user_type", sa.String(20), nullable=False),
        sa.Column("gym_id", sa.Integer(), nullable=True, index=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["gym_id"], ["gyms.id"], ondelete="CASCADE"),
    )


def downgrade() -> None:
    op.drop_table("calendar_events")
    op.drop_table("notes")
    op.drop_table("product_sales")
    op.drop_index("uq_products_gym_barcode", table_name="products")
    op.drop_table("products")
    op.drop_table("suppliers")
    op.drop_index("uq_clients_gym_active_email", table_name="clients")
    op.drop_table("clients")
    op.drop_table("memberships")
    op.drop_table("collaborators")
    op.drop_table("admins")
    op.drop_table("gyms")
