"""create books, members and borrowings tables

Revision ID: 3f1c9a2d7e41
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f1c9a2d7e41"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ---- books -------------------------------------------------------------
    op.create_table(
        "books",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=600), nullable=False),
        sa.Column("author", sa.String(length=400), nullable=False),
        sa.Column("isbn", sa.String(length=20), nullable=False),
        sa.Column("genre", sa.String(length=120), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column(
            "available_quantity", sa.Integer(), nullable=False, server_default="1"
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("quantity >= 0", name="ck_books_quantity_non_negative"),
        sa.CheckConstraint(
            "available_quantity >= 0 AND available_quantity <= quantity",
            name="ck_books_available_within_quantity",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_books_isbn"), "books", ["isbn"], unique=True)
    op.create_index(op.f("ix_books_created_at"), "books", ["created_at"], unique=False)

    # ---- members -----------------------------------------------------------
    op.create_table(
        "members",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("phone", sa.String(length=40), nullable=True),
        sa.Column("membership_date", sa.Date(), nullable=False),
        sa.Column(
            "is_active", sa.Boolean(), nullable=False, server_default=sa.true()
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_members_email"), "members", ["email"], unique=True)
    op.create_index(
        op.f("ix_members_created_at"), "members", ["created_at"], unique=False
    )

    # ---- borrowings --------------------------------------------------------
    op.create_table(
        "borrowings",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("book_id", sa.String(length=36), nullable=False),
        sa.Column("member_id", sa.String(length=36), nullable=False),
        sa.Column("borrow_date", sa.Date(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("return_date", sa.Date(), nullable=True),
        sa.Column(
            "late_fee",
            sa.Numeric(precision=10, scale=2),
            nullable=False,
            server_default="0",
        ),
        sa.Column(
            "status", sa.String(length=20), nullable=False, server_default="borrowed"
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("late_fee >= 0", name="ck_borrowings_late_fee_non_negative"),
        sa.CheckConstraint(
            "due_date >= borrow_date", name="ck_borrowings_due_after_borrow"
        ),
        sa.CheckConstraint(
            "status IN ('borrowed', 'returned', 'overdue')", name="ck_borrowings_status"
        ),
        sa.ForeignKeyConstraint(["book_id"], ["books.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["member_id"], ["members.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_borrowings_book_id"), "borrowings", ["book_id"], unique=False
    )
    op.create_index(
        op.f("ix_borrowings_member_id"), "borrowings", ["member_id"], unique=False
    )
    op.create_index(
        op.f("ix_borrowings_status"), "borrowings", ["status"], unique=False
    )
    op.create_index(
        op.f("ix_borrowings_created_at"), "borrowings", ["created_at"], unique=False
    )


def downgrade() -> None:
    # borrowings
    op.drop_index(op.f("ix_borrowings_created_at"), table_name="borrowings")
    op.drop_index(op.f("ix_borrowings_status"), table_name="borrowings")
    op.drop_index(op.f("ix_borrowings_member_id"), table_name="borrowings")
    op.drop_index(op.f("ix_borrowings_book_id"), table_name="borrowings")
    op.drop_table("borrowings")

    # members
    op.drop_index(op.f("ix_members_created_at"), table_name="members")
    op.drop_index(op.f("ix_members_email"), table_name="members")
    op.drop_table("members")

    # books
    op.drop_index(op.f("ix_books_created_at"), table_name="books")
    op.drop_index(op.f("ix_books_isbn"), table_name="books")
    op.drop_table("books")
