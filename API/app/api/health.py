from fastapi import APIRouter, Depends, Request

from app.api.dependencies import get_student_store
from app.memory.store import StudentStore

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request, store: StudentStore = Depends(get_student_store)):
    connected, error = await store.ping()
    return {
        "status": "ok" if connected else "degraded",
        "service": "student-records-api",
        "store": {
            "backend": request.app.state.settings.student_store_backend,
            "connected": connected,
            "error": error,
        },
    }
