"""
Pydantic models for request and response bodies of API v1.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class Book(BaseModel):
    """
    API representation of a Book entity.
    """
    title: str = Field(description="Book title")
    authors: list[str] = Field(default_factory=list, description="Creators")
    publishers: list[str] = Field(default_factory=list)
    issued_at: str | None = Field(default=None, description="Issue date as formatted by the backend")
    isbn: str | None = None
    language: str | None = None
    descriptions: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    annotations: list[str] = Field(default_factory=list)
    image_url: str | None = None
    source: str = Field(description="Backend that produced this record")


class BookPage(BaseModel):
    items: list[Book]
    total_count: int = Field(ge=0, description="Backend hit count before pagination")


class Geocode(BaseModel):
    lat: float
    lng: float


class Library(BaseModel):
    """
    API representation of a Library. Backend keys are not exposed.
    """
    name: str
    address: str | None = None
    prefecture: str | None = None
    city: str | None = None
    postcode: str | None = None
    tel: str | None = None
    url: str | None = None
    geocode: Geocode | None = None


class LibraryPage(BaseModel):
    items: list[Library]
    total_count: int = Field(ge=0)


class Holder(BaseModel):
    isbn: str
    library_name: str
    state: Literal["nothing", "exists", "reserved", "borrowed", "inplace"]


class HolderPage(BaseModel):
    items: list[Holder]
    total_count: int = Field(ge=0, description="Number of libraries answered")


class RefreshResponse(BaseModel):
    library_count: int = Field(ge=0)


class UserCreateRequest(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1)
    fullname: str = Field(max_length=255)
    address: str = Field(max_length=255)


class User(BaseModel):
    id: int
    email: str
    fullname: str
    address: str


class LoginRequest(BaseModel):
    email: str
    password: str


class LoginResponse(BaseModel):
    token: str
    token_type: Literal["bearer"] = "bearer"


class ReservationCreateRequest(BaseModel):
    isbn: str = Field(min_length=1, max_length=255)
    library_name: str = Field(min_length=1, max_length=255)


class Reservation(BaseModel):
    id: int
    user_id: int
    library_name: str
    isbn: str
    state: str
    staging_at: datetime
    staged_at: datetime | None = None
    reserved_at: datetime | None = None
    completed_at: datetime | None = None


class ReservationPage(BaseModel):
    items: list[Reservation]
    total_count: int = Field(ge=0)
