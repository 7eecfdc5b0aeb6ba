from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.api.dependencies import get_student_store, get_token_issuer
from app.core.errors import UnauthorizedError
from app.core.jwt_auth import TokenIssuer
from app.memory.store import StudentStore

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_student(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    tokens: TokenIssuer = Depends(get_token_issuer),
    store: StudentStore = Depends(get_student_store),
) -> dict:
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Authentication required")

    student_id = tokens.verify(credentials.credentials)
    student = await store.find_by_student_id(student_id)
    if student is None:
        raise UnauthorizedError("Student not found")
    return student
