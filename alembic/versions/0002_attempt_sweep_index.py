"""add index for the expiry sweep query
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0002_attempt_sweep_index'
down_revision = '0001_initial'
branch_labels = None
depends_on = None

INDEX_NAME = "ix_attempt_open_deadline"


def _has_index(bind) -> bool:
    inspector = sa.inspect(bind)
    return any(ix["name"] == INDEX_NAME for ix in inspector.get_indexes("attempt"))


def upgrade():
    # 0001 builds from current metadata, which may already carry the index
    if _has_index(op.get_bind()):
        return
    op.create_index(INDEX_NAME, "attempt", ["completed_at", "expires_at"])


def downgrade():
    if _has_index(op.get_bind()):
        op.drop_index(INDEX_NAME, table_name="attempt")
