"""Student records API: registration, login, lookup, update and delete."""
from fastapi import APIRouter, Depends, Query
from starlette.concurrency import run_in_threadpool

from app.api.dependencies import get_password_hasher, get_student_store, get_token_issuer
from app.core.auth import get_current_student
from app.core.errors import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from app.core.jwt_auth import TokenIssuer
from app.core.logging import DOMAIN_AUTH, DOMAIN_STUDENTS, get_domain_logger
from app.core.password import PasswordHasher
from app.memory.store import PASSWORD_FIELD, StudentStore
from app.schemas.students import (
    DeleteEnvelope,
    DeleteRequest,
    LoginEnvelope,
    LoginRequest,
    RegisterRequest,
    StudentEnvelope,
    UpdateRequest,
)

router = APIRouter(prefix="/students", tags=["students"])
logger = get_domain_logger(__name__, DOMAIN_STUDENTS)
auth_logger = get_domain_logger(__name__, DOMAIN_AUTH)

INVALID_CREDENTIALS_MESSAGE = "Invalid credentials"


@router.post("/register", status_code=201, response_model=StudentEnvelope)
async def register(
    payload: RegisterRequest,
    store: StudentStore = Depends(get_student_store),
    hasher: PasswordHasher = Depends(get_password_hasher),
):
    existing = await store.find_by_student_id_or_email(payload.studentId, payload.email)
    if existing:
        logger.info("Registration rejected, duplicate studentId or email studentId=%s", payload.studentId)
        raise ConflictError()

    password_hash = await run_in_threadpool(hasher.hash, payload.password)
    # The unique indexes still reject a concurrent registration that slipped past the check above.
    student = await store.create(
        {
            "studentId": payload.studentId,
            "name": payload.name,
            "email": payload.email,
            PASSWORD_FIELD: password_hash,
        }
    )
    logger.info("Registered student studentId=%s", student["studentId"])
    return {"success": True, "data": student}


@router.post("/login", response_model=LoginEnvelope)
async def login(
    payload: LoginRequest,
    store: StudentStore = Depends(get_student_store),
    hasher: PasswordHasher = Depends(get_password_hasher),
    tokens: TokenIssuer = Depends(get_token_issuer),
):
    record = await store.find_credentials(payload.studentId)
    if record is None:
        # Burn the same hashing time as a real check so unknown ids are not distinguishable.
        await run_in_threadpool(hasher.dummy_verify)
        auth_logger.info("Login failed studentId=%s reason=unknown_id", payload.studentId)
        raise UnauthorizedError(INVALID_CREDENTIALS_MESSAGE)

    matched = await run_in_threadpool(hasher.verify, payload.password, record.get(PASSWORD_FIELD))
    if not matched:
        auth_logger.info("Login failed studentId=%s reason=password_mismatch", payload.studentId)
        raise UnauthorizedError(INVALID_CREDENTIALS_MESSAGE)

    token = tokens.issue(record["studentId"])
    return {
        "success": True,
        "token": token,
        "data": {
            "studentId": record["studentId"],
            "name": record["name"],
            "email": record["email"],
        },
    }


@router.get("/search", response_model=StudentEnvelope)
async def search(
    student_id: str | None = Query(default=None, alias="studentId"),
    store: StudentStore = Depends(get_student_store),
):
    student_id = (student_id or "").strip()
    if not student_id:
        raise ValidationError("Student ID is required")

    student = await store.find_by_student_id(student_id)
    if student is None:
        raise NotFoundError()
    return {"success": True, "data": student}


@router.get("/profile", response_model=StudentEnvelope)
async def profile(current_student: dict = Depends(get_current_student)):
    return {"success": True, "data": current_student}


@router.put("/update", response_model=StudentEnvelope)
async def update(
    payload: UpdateRequest,
    store: StudentStore = Depends(get_student_store),
    hasher: PasswordHasher = Depends(get_password_hasher),
):
    patch = payload.newData.model_dump(exclude_none=True)
    if "password" in patch:
        patch[PASSWORD_FIELD] = await run_in_threadpool(hasher.hash, patch.pop("password"))

    student = await store.update_partial(payload.studentId, patch)
    if student is None:
        raise NotFoundError()
    logger.info("Updated student studentId=%s fields=%s", payload.studentId, sorted(patch))
    return {"success": True, "data": student}


@router.delete("/delete", response_model=DeleteEnvelope)
async def delete(
    payload: DeleteRequest,
    store: StudentStore = Depends(get_student_store),
):
    student = await store.delete(payload.studentId)
    if student is None:
        raise NotFoundError()
    logger.info("Deleted student studentId=%s", payload.studentId)
    return {"success": True, "message": "Student deleted", "data": student}
