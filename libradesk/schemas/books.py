from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class BookCreateIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=600)
    author: str = Field(min_length=1, max_length=400)
    isbn: str = Field(min_length=1, max_length=20)
    genre: str | None = Field(default=None, max_length=120)
    quantity: int | None = Field(default=None, ge=0)


class BookPatchIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str | None = Field(default=None, min_length=1, max_length=600)
    author: str | None = Field(default=None, min_length=1, max_length=400)
    isbn: str | None = Field(default=None, min_length=1, max_length=20)
    genre: str | None = Field(default=None, max_length=120)
    quantity: int | None = Field(default=None, ge=0)
    available_quantity: int | None = Field(default=None, ge=0)


class BookOut(BaseModel):
    id: str
    title: str
    author: str
    isbn: str
    genre: str | None
    quantity: int
    available_quantity: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
