"""Create gridwalk schemas, layers table and updated_at trigger."""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "20250101_initial_gridwalk_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.execute("CREATE SCHEMA IF NOT EXISTS gridwalk")
    op.execute("CREATE SCHEMA IF NOT EXISTS gridwalk_layer_data")

    op.execute(
        """
        CREATE OR REPLACE FUNCTION gridwalk.update_updated_at_column()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql
        """
    )

    op.create_table(
        "layers",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("status", sa.VARCHAR(50), nullable=False),
        sa.Column("name", sa.VARCHAR(255), nullable=False),
        sa.Column("upload_type", sa.VARCHAR(100), nullable=True),
        sa.Column("total_size", sa.BIGINT(), nullable=False, server_default=sa.text("0")),
        sa.Column("current_offset", sa.BIGINT(), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        schema="gridwalk",
    )

    op.execute(
        "CREATE TRIGGER update_layers_updated_at "
        "BEFORE UPDATE ON gridwalk.layers "
        "FOR EACH ROW EXECUTE FUNCTION gridwalk.update_updated_at_column()"
    )


def downgrade():
    op.execute("DROP TRIGGER IF EXISTS update_layers_updated_at ON gridwalk.layers")
    op.drop_table("layers", schema="gridwalk")
    op.execute("DROP FUNCTION IF EXISTS gridwalk.update_updated_at_column()")
    # Per-layer data tables may still live here; refuse to drop a non-empty schema.
    op.execute("DROP SCHEMA IF EXISTS gridwalk_layer_data RESTRICT")
    op.execute("DROP SCHEMA IF EXISTS gridwalk RESTRICT")
