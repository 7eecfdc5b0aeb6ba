import re

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# ASCII word runs joined by single '.' or '-', ending in a 2-3 character suffix.
EMAIL_PATTERN = re.compile(r"^\w+(?:[.-]\w+)*@\w+(?:[.-]\w+)*\.\w{2,3}$", re.ASCII)
MAX_PASSWORD_LENGTH = 128


def normalize_student_id(value: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError("Student ID is required")
    return normalized


def normalize_name(value: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError("Name is required")
    return normalized


def normalize_email(value: str) -> str:
    normalized = value.strip().lower()
    if not normalized:
        raise ValueError("Email is required")
    if not EMAIL_PATTERN.match(normalized):
        raise ValueError("Invalid email format")
    return normalized


class RegisterRequest(BaseModel):
    studentId: str
    name: str
    email: str
    password: str = Field(min_length=1, max_length=MAX_PASSWORD_LENGTH)

    @field_validator("studentId")
    @classmethod
    def validate_student_id(cls, value: str) -> str:
        return normalize_student_id(value)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return normalize_name(value)

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        return normalize_email(value)


class LoginRequest(BaseModel):
    studentId: str
    password: str = Field(min_length=1, max_length=MAX_PASSWORD_LENGTH)

    @field_validator("studentId")
    @classmethod
    def validate_student_id(cls, value: str) -> str:
        return normalize_student_id(value)


class StudentPatch(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    email: str | None = None
    password: str | None = Field(default=None, min_length=1, max_length=MAX_PASSWORD_LENGTH)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str | None) -> str | None:
        return None if value is None else normalize_name(value)

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str | None) -> str | None:
        return None if value is None else normalize_email(value)

    @model_validator(mode="after")
    def require_one_field(self) -> "StudentPatch":
        if not self.model_fields_set or all(getattr(self, field) is None for field in self.model_fields_set):
            raise ValueError("newData must contain at least one of name, email, password")
        return self


class UpdateRequest(BaseModel):
    studentId: str
    newData: StudentPatch

    @field_validator("studentId")
    @classmethod
    def validate_student_id(cls, value: str) -> str:
        return normalize_student_id(value)


class DeleteRequest(BaseModel):
    studentId: str

    @field_validator("studentId")
    @classmethod
    def validate_student_id(cls, value: str) -> str:
        return normalize_student_id(value)


class StudentPublic(BaseModel):
    studentId: str
    name: str
    email: str


class StudentEnvelope(BaseModel):
    success: bool = True
    data: StudentPublic


class LoginEnvelope(StudentEnvelope):
    token: str


class DeleteEnvelope(StudentEnvelope):
    message: str = "Student deleted"
