# app/schemas/auth.py
from pydantic import BaseModel, ConfigDict, Field


class RegisterIn(BaseModel):
    username: str
    password: str
    email: str


class LoginIn(BaseModel):
    username: str
    password: str


class GoogleSignInIn(BaseModel):
    id_token: str = Field(alias="idToken")

    model_config = ConfigDict(populate_by_name=True)


class TokenOut(BaseModel):
    token: str
    username: str
