"""Pydantic schemas for login."""
from app.schemas.base import CamelSchema


class LoginSchema(CamelSchema):
    email: str
    password: str


class UserOutSchema(CamelSchema):
    id: int
    email: str
    name: str
    role: str


class LoginOutSchema(CamelSchema):
    token: str
    user: UserOutSchema
