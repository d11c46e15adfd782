from fastapi import APIRouter, HTTPException
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from infra.db.session import SessionLocal

router = APIRouter()


@router.get("/health")
def health():
    try:
        with SessionLocal() as s:
            s.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    return {"status": "ok"}
