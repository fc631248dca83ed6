from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RankedBookOut(_CamelModel):
    book_id: str
    title: str
    count: int


class RankedMemberOut(_CamelModel):
    member_id: str
    name: str
    loans: int


class DashboardStatsOut(_CamelModel):
    as_of: date
    total_books: int
    total_members: int
    active_loans: int
    overdue_loans: int
    total_revenue: float
    books_due_today: int
    most_borrowed_books: list[RankedBookOut]
    most_active_members: list[RankedMemberOut]
