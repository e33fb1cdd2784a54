"""users, cities, classifieds and classified images"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "classifieds_20241101"
down_revision = None
branch_labels = None
depends_on = None


VISIBILITIES = ("all_cities", "selected_cities")
STATUSES = ("draft", "published")


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=32), nullable=False, server_default="user"),
        sa.Column("email_verified_at", sa.DateTime(), nullable=True),
        sa.Column("email_verification_code", sa.String(length=6), nullable=True),
        sa.Column("email_verification_expires_at", sa.DateTime(), nullable=True),
        sa.Column("password_reset_code", sa.String(length=6), nullable=True),
        sa.Column("password_reset_expires_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_users_email_verification_code", "users", ["email_verification_code"])
    op.create_index("ix_users_password_reset_code", "users", ["password_reset_code"])

    op.create_table(
        "cities",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("state", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("name", "state", name="uq_cities_name_state"),
    )

    visibility_enum = sa.Enum(*VISIBILITIES, name="classified_visibility_enum")
    status_enum = sa.Enum(*STATUSES, name="classified_status_enum")
    op.create_table(
        "classifieds",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("category", sa.String(length=120), nullable=False),
        sa.Column("contact_email", sa.String(length=255), nullable=True),
        sa.Column("contact_phone", sa.String(length=64), nullable=True),
        sa.Column("visibility", visibility_enum, nullable=False, server_default="all_cities"),
        sa.Column("status", status_enum, nullable=False, server_default="draft"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_classifieds_user_id", "classifieds", ["user_id"])
    op.create_index("ix_classifieds_status", "classifieds", ["status"])

    op.create_table(
        "classified_cities",
        sa.Column("classified_id", sa.Integer(), sa.ForeignKey("classifieds.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("city_id", sa.Integer(), sa.ForeignKey("cities.id", ondelete="CASCADE"), primary_key=True),
    )

    op.create_table(
        "classified_images",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("classified_id", sa.Integer(), sa.ForeignKey("classifieds.id", ondelete="CASCADE"), nullable=False),
        sa.Column("file_path", sa.String(length=1024), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_classified_images_classified_id", "classified_images", ["classified_id"])


def downgrade():
    op.drop_index("ix_classified_images_classified_id", table_name="classified_images")
    op.drop_table("classified_images")
    op.drop_table("classified_cities")

    op.drop_index("ix_classifieds_status", table_name="classifieds")
    op.drop_index("ix_classifieds_user_id", table_name="classifieds")
    op.drop_table("classifieds")
    sa.Enum(name="classified_status_enum").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="classified_visibility_enum").drop(op.get_bind(), checkfirst=True)

    op.drop_table("cities")

    op.drop_index("ix_users_password_reset_code", table_name="users")
    op.drop_index("ix_users_email_verification_code", table_name="users")
    op.drop_table("users")
