from fastapi import Request

from app.core.jwt_auth import TokenIssuer
from app.core.password import PasswordHasher
from app.memory.store import StudentStore


def get_student_store(request: Request) -> StudentStore:
    return request.app.state.student_store


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


def get_token_issuer(request: Request) -> TokenIssuer:
    return request.app.state.token_issuer
