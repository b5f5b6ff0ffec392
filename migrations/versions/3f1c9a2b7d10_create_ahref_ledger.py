"""create_ahref_ledger

Revision ID: 3f1c9a2b7d10
Revises:
Create Date: 2026-10-19 09:12:44.381207

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '3f1c9a2b7d10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

data_type_enum = sa.Enum('authority', 'traffic', name='ahref_data_type')
# Same column types as src/database/models.py: JSONB on Postgres
json_type = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")
nullable_json = sa.JSON(none_as_null=True).with_variant(postgresql.JSONB(none_as_null=True), "postgresql")


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'apify_ahref',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('url_input', sa.Text(), nullable=False, server_default=''),
        sa.Column('domain', sa.Text(), nullable=False, server_default=''),
        sa.Column('data_captured_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('data_type', data_type_enum, nullable=False),
        sa.Column('mode', sa.String(), nullable=True),
        sa.Column('raw_data', json_type, nullable=False),
        sa.Column('authority_domain_rating', sa.Integer(), nullable=True),
        sa.Column('authority_url_rating', sa.Integer(), nullable=True),
        sa.Column('authority_backlinks', sa.Integer(), nullable=True),
        sa.Column('authority_refdomains', sa.Integer(), nullable=True),
        sa.Column('authority_dofollow_backlinks', sa.Integer(), nullable=True),
        sa.Column('authority_dofollow_refdomains', sa.Integer(), nullable=True),
        sa.Column('traffic_monthly_avg', sa.Integer(), nullable=True),
        sa.Column('cost_monthly_avg', sa.BigInteger(), nullable=True),
        sa.Column('traffic_history', nullable_json, nullable=True),
        sa.Column('traffic_top_pages', nullable_json, nullable=True),
        sa.Column('traffic_top_countries', nullable_json, nullable=True),
        sa.Column('traffic_top_keywords', nullable_json, nullable=True),
        sa.Column('overall_search_traffic', sa.BigInteger(), nullable=True),
        sa.Column('overall_search_traffic_history', nullable_json, nullable=True),
        sa.Column('overall_search_traffic_value', sa.BigInteger(), nullable=True),
        sa.Column('overall_search_traffic_value_history', nullable_json, nullable=True),
        sa.Column('overall_search_traffic_by_country', nullable_json, nullable=True),
        sa.Column('traffic_by_country', nullable_json, nullable=True),
        sa.Column('overall_search_traffic_keywords', nullable_json, nullable=True),
        sa.Column('org_id', sa.Uuid(), nullable=True),
        sa.Column('user_id', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'ahref_outlets',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('outlet_id', sa.Uuid(), nullable=False),
        sa.Column('apify_ahref_id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['apify_ahref_id'], ['apify_ahref.id'], ondelete='CASCADE'),
    )

    op.create_index('idx_ahref_outlets_outlet', 'ahref_outlets', ['outlet_id'])
    op.create_index('idx_ahref_outlets_apify', 'ahref_outlets', ['apify_ahref_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('idx_ahref_outlets_apify', table_name='ahref_outlets')
    op.drop_index('idx_ahref_outlets_outlet', table_name='ahref_outlets')
    op.drop_table('ahref_outlets')
    op.drop_table('apify_ahref')
    data_type_enum.drop(op.get_bind(), checkfirst=True)
