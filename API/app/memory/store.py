from __future__ import annotations

import asyncio
import copy
import re
from abc import ABC, abstractmethod

from app.core.errors import ConflictError, StoreError
from app.core.logging import DOMAIN_STORE, get_domain_logger
from app.core.settings import Settings

logger = get_domain_logger(__name__, DOMAIN_STORE)

PUBLIC_FIELDS = ("studentId", "name", "email")
PASSWORD_FIELD = "passwordHash"
UNIQUE_FIELDS = ("studentId", "email")


def _sanitize_mongo_error(raw: str) -> str:
    if not raw:
        return raw
    # Hide credentials embedded in connection URLs.
    return re.sub(r"(mongodb(?:\+srv)?://)([^/@\s]+)@", r"\1***:***@", raw)


def public_record(doc: dict | None) -> dict | None:
    if doc is None:
        return None
    return {key: doc[key] for key in PUBLIC_FIELDS if key in doc}


class StudentStore(ABC):
    @abstractmethod
    async def find_by_student_id(self, student_id: str) -> dict | None:
        raise NotImplementedError

    @abstractmethod
    async def find_credentials(self, student_id: str) -> dict | None:
        """Same as find_by_student_id but keeps the password hash. Login only."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_student_id_or_email(self, student_id: str, email: str) -> dict | None:
        raise NotImplementedError

    @abstractmethod
    async def create(self, record: dict) -> dict:
        raise NotImplementedError

    @abstractmethod
    async def update_partial(self, student_id: str, patch: dict) -> dict | None:
        raise NotImplementedError

    @abstractmethod
    async def delete(self, student_id: str) -> dict | None:
        raise NotImplementedError

    async def ensure_indexes(self) -> None:
        return None

    async def ping(self) -> tuple[bool, str | None]:
        return True, None

    async def close(self) -> None:
        return None


class InMemoryStudentStore(StudentStore):
    """Process-local backend for development and tests; enforces the same unique keys as Mongo."""

    def __init__(self):
        self._records: dict[str, dict] = {}
        self._lock = asyncio.Lock()

    def _email_owner(self, email: str) -> str | None:
        for student_id, doc in self._records.items():
            if doc.get("email") == email:
                return student_id
        return None

    async def find_by_student_id(self, student_id: str) -> dict | None:
        return public_record(self._records.get(student_id))

    async def find_credentials(self, student_id: str) -> dict | None:
        doc = self._records.get(student_id)
        return copy.deepcopy(doc) if doc is not None else None

    async def find_by_student_id_or_email(self, student_id: str, email: str) -> dict | None:
        if student_id in self._records:
            return public_record(self._records[student_id])
        owner = self._email_owner(email)
        return public_record(self._records[owner]) if owner is not None else None

    async def create(self, record: dict) -> dict:
        async with self._lock:
            student_id = record["studentId"]
            if student_id in self._records or self._email_owner(record["email"]) is not None:
                raise ConflictError()
            self._records[student_id] = copy.deepcopy(record)
            return public_record(self._records[student_id])

    async def update_partial(self, student_id: str, patch: dict) -> dict | None:
        async with self._lock:
            doc = self._records.get(student_id)
            if doc is None:
                return None
            email = patch.get("email")
            if email is not None and self._email_owner(email) not in (None, student_id):
                raise ConflictError()
            doc.update(copy.deepcopy(patch))
            return public_record(doc)

    async def delete(self, student_id: str) -> dict | None:
        async with self._lock:
            return public_record(self._records.pop(student_id, None))


class MongoStudentStore(StudentStore):
    def __init__(self, mongodb_url: str, db_name: str, collection_name: str = "students", timeout_ms: int = 5000):
        from pymongo import AsyncMongoClient

        self._client = AsyncMongoClient(
            mongodb_url,
            serverSelectionTimeoutMS=timeout_ms,
            timeoutMS=timeout_ms,
        )
        self._students = self._client[db_name][collection_name]

    async def _run(self, op_name: str, operation):
        from pymongo.errors import DuplicateKeyError, PyMongoError

        try:
            return await operation
        except DuplicateKeyError as exc:
            logger.info("Unique index rejected op=%s key=%s", op_name, list((exc.details or {}).get("keyValue", {})))
            raise ConflictError() from exc
        except PyMongoError as exc:
            raise StoreError(f"{op_name} failed: {_sanitize_mongo_error(str(exc))}") from exc

    async def ensure_indexes(self) -> None:
        from pymongo import ASCENDING

        await self._run(
            "ensure_indexes",
            self._students.create_index([("studentId", ASCENDING)], unique=True, name="ux_students_student_id"),
        )
        await self._run(
            "ensure_indexes",
            self._students.create_index([("email", ASCENDING)], unique=True, name="ux_students_email"),
        )

    async def find_by_student_id(self, student_id: str) -> dict | None:
        doc = await self._run(
            "find_by_student_id",
            self._students.find_one({"studentId": student_id}, {"_id": 0, PASSWORD_FIELD: 0}),
        )
        return public_record(doc)

    async def find_credentials(self, student_id: str) -> dict | None:
        return await self._run(
            "find_credentials",
            self._students.find_one({"studentId": student_id}, {"_id": 0}),
        )

    async def find_by_student_id_or_email(self, student_id: str, email: str) -> dict | None:
        doc = await self._run(
            "find_by_student_id_or_email",
            self._students.find_one(
                {"$or": [{"studentId": student_id}, {"email": email}]},
                {"_id": 0, PASSWORD_FIELD: 0},
            ),
        )
        return public_record(doc)

    async def create(self, record: dict) -> dict:
        # insert_one adds _id to the dict it is given.
        doc = dict(record)
        await self._run("create", self._students.insert_one(doc))
        return public_record(doc)

    async def update_partial(self, student_id: str, patch: dict) -> dict | None:
        from pymongo import ReturnDocument

        doc = await self._run(
            "update_partial",
            self._students.find_one_and_update(
                {"studentId": student_id},
                {"$set": patch},
                projection={"_id": 0, PASSWORD_FIELD: 0},
                return_document=ReturnDocument.AFTER,
            ),
        )
        return public_record(doc)

    async def delete(self, student_id: str) -> dict | None:
        doc = await self._run(
            "delete",
            self._students.find_one_and_delete({"studentId": student_id}, projection={"_id": 0, PASSWORD_FIELD: 0}),
        )
        return public_record(doc)

    async def ping(self) -> tuple[bool, str | None]:
        from pymongo.errors import PyMongoError

        try:
            await self._client.admin.command("ping")
            return True, None
        except PyMongoError as exc:
            return False, _sanitize_mongo_error(str(exc))

    async def close(self) -> None:
        await self._client.close()


def build_student_store(config: Settings) -> StudentStore:
    backend = config.student_store_backend.strip().lower()
    if backend == "memory":
        logger.warning("STUDENT_STORE_BACKEND=memory: records live in process memory and are lost on restart.")
        return InMemoryStudentStore()
    if backend != "mongo":
        raise ValueError(f"Unsupported STUDENT_STORE_BACKEND: {config.student_store_backend}")
    return MongoStudentStore(
        config.mongodb_url,
        config.mongodb_db_name,
        collection_name=config.mongodb_collection,
        timeout_ms=config.store_timeout_ms,
    )
