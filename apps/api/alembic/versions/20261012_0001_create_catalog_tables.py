"""create catalog tables

Revision ID: 20261012_0001
Revises:
Create Date: 2026-10-12 09:20:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261012_0001"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


STATUS_KINDS = [
    {"name": "Operational", "token": "text-operational", "is_error": False},
    {"name": "Degraded Performance", "token": "text-degraded-performance", "is_error": True},
    {"name": "Partial Outage", "token": "text-partial-outage", "is_error": True},
    {"name": "Major Outage", "token": "text-major-outage", "is_error": True},
    {"name": "Maintenance", "token": "text-under-maintenance", "is_error": True},
]

SERVICES = [
    "Admin",
    "Checkout",
    "Reports and Dashboards",
    "Storefront",
    "API & Mobile",
    "Third party services",
    "Support",
    "Point of Sale",
    "Oxygen",
]


def upgrade() -> None:
    services = op.create_table(
        "services",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=128), nullable=False, unique=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
    )
    status_kinds = op.create_table(
        "status_kinds",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=64), nullable=False, unique=True),
        sa.Column("token", sa.String(length=128), nullable=False, unique=True),
        sa.Column("is_error", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
    )

    op.bulk_insert(status_kinds, STATUS_KINDS)
    op.bulk_insert(services, [{"name": name} for name in SERVICES])


def downgrade() -> None:
    op.drop_table("status_kinds")
    op.drop_table("services")
