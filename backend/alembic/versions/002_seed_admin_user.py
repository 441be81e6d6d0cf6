"""Seed admin user

Revision ID: 002
Revises: 001
Create Date: 2026-10-19 00:00:01.000000+00:00

What:  Inserts the `admin` account so a fresh install has someone who can
       log in and obtain a bearer token (POST /api/users needs one).
How:   The password comes from ADMIN_PASSWORD (default "password") and is
       hashed with the same bcrypt settings as registration.
"""

import uuid
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from tilapp.config import settings
from tilapp.services.auth_service import hash_password

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ADMIN_USERNAME = "admin"

users = sa.table(
    "users",
    sa.column("id", sa.Uuid()),
    sa.column("name", sa.String()),
    sa.column("username", sa.String()),
    sa.column("password_hash", sa.String()),
)


def upgrade() -> None:
    op.bulk_insert(
        users,
        [
            {
                "id": uuid.uuid4(),
                "name": "Admin",
                "username": ADMIN_USERNAME,
                "password_hash": hash_password(settings.admin_password),
            }
        ],
    )


def downgrade() -> None:
    op.execute(users.delete().where(users.c.username == ADMIN_USERNAME))
