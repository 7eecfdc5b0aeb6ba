import logging
import re
import sys
# Domain names for structured logging (authentication, student records, persistence).
DOMAIN_AUTH = "auth"
DOMAIN_STUDENTS = "students"
DOMAIN_STORE = "store"


def get_domain_logger(name: str, domain: str) -> logging.LoggerAdapter[logging.Logger]:
    """Return a logger that adds the given domain to every log record (for filtering by domain)."""
    base = logging.getLogger(name)
    return logging.LoggerAdapter(base, {"domain": domain})


class DomainDefaultFilter(logging.Filter):
    """Ensure record has a 'domain' attribute so format string %(domain)s never fails."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "domain"):
            record.domain = "app"  # type: ignore[attr-defined]
        return True


# Credential fields of the student API; masked wherever a request body ends up in a log line.
CREDENTIAL_FIELDS = ("password", "passwordHash", "token")

_JSON_CREDENTIAL_PATTERN = re.compile(
    r"""(?i)(["']?(?:%s)["']?\s*:\s*["'])([^"']*)(["'])""" % "|".join(CREDENTIAL_FIELDS)
)
_SECRET_PATTERNS = [
    re.compile(r"(?i)(api[_-]?key\s*[=:]\s*)([^\s,;]+)"),
    re.compile(r"(?i)(authorization\s*[=:]\s*bearer\s+)([^\s,;]+)"),
    re.compile(r"(?i)(token\s*[=:]\s*)([^\s,;]+)"),
    re.compile(r"(?i)(password(?:hash)?\s*[=:]\s*)([^\s,;]+)"),
    re.compile(r"(?i)(jwt[_-]?secret\s*[=:]\s*)([^\s,;]+)"),
]


def redact_secrets(message: str) -> str:
    text = _JSON_CREDENTIAL_PATTERN.sub(r"\1[REDACTED]\3", str(message or ""))
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(r"\1[REDACTED]", text)
    return text


class SecretRedactionFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = redact_secrets(record.getMessage())
        record.args = ()
        return True


class SuppressHealthCheckFilter(logging.Filter):
    """Drop uvicorn access log lines for GET /health to reduce noise from container healthchecks."""

    def filter(self, record: logging.LogRecord) -> bool:
        msg = record.getMessage() if hasattr(record, "getMessage") else str(record.msg)
        if "/health" in msg and "200" in msg:
            return False
        return True


def configure_logging(level: str = "INFO") -> None:
    redaction_filter = SecretRedactionFilter()
    domain_filter = DomainDefaultFilter()
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | [%(domain)s] | %(name)s | %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    root = logging.getLogger()
    for handler in root.handlers:
        handler.addFilter(domain_filter)
        handler.addFilter(redaction_filter)
    # The driver logs server selection and heartbeats at DEBUG/INFO.
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    # Suppress access log for GET /health (container healthcheck) to reduce console noise.
    uv_access = logging.getLogger("uvicorn.access")
    uv_access.addFilter(SuppressHealthCheckFilter())
