"""
Health and readiness checks: database, Bedrock and the audio bucket.
"""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session
from botocore.exceptions import ClientError

from app.core.config import settings
from app.core.logger import logger
from app.db.database import get_db
from app.services.llm_service import llm_service
from app.services.s3_service import s3_service

router = APIRouter()


def _check_database(db: Session) -> tuple[str, str]:
    """Returns (status, detail). Status is 'ok' or 'error'."""
    try:
        db.execute(text("SELECT 1"))
        return "ok", "Database reachable"
    except Exception as e:
        logger.exception("Database health check failed")
        return "error", f"Database: {str(e)}"


def _check_s3() -> tuple[str, str]:
    if not s3_service.enabled:
        return "skipped", "Audio storage not configured"
    try:
        s3_service.s3_client.head_bucket(Bucket=s3_service.bucket)
        return "ok", f"Bucket '{s3_service.bucket}' accessible"
    except ClientError as e:
        code = e.response.get("Error", {}).get("Code", "")
        return "error", f"S3: {code} - {str(e)}"
    except Exception as e:
        return "error", f"S3: {str(e)}"


def _check_bedrock() -> tuple[str, str]:
    try:
        reply = llm_service.complete("Reply with exactly: OK", temperature=0, max_tokens=32)
        return "ok", f"Bedrock responded: {reply.strip()[:50]}"
    except Exception as e:
        logger.exception("Bedrock check failed")
        return "error", f"Bedrock: {str(e)}"


@router.get("")
def health(db: Session = Depends(get_db)):
    """Liveness plus a database round trip"""
    db_status, db_detail = _check_database(db)
    body = {
        "status": "healthy" if db_status == "ok" else "unhealthy",
        "app": settings.APP_NAME,
        "database": {"status": db_status, "detail": db_detail},
    }
    return JSONResponse(status_code=200 if db_status == "ok" else 503, content=body)


@router.get("/ready")
def readiness(db: Session = Depends(get_db)):
    """
    Check the database and AWS services. Use this to verify Bedrock and S3 setup.
    """
    db_status, db_detail = _check_database(db)
    s3_status, s3_detail = _check_s3()
    bedrock_status, bedrock_detail = _check_bedrock()

    healthy = db_status == "ok" and bedrock_status == "ok" and s3_status != "error"
    return {
        "status": "healthy" if healthy else "degraded",
        "database": {"status": db_status, "detail": db_detail},
        "s3": {"status": s3_status, "detail": s3_detail},
        "bedrock": {"status": bedrock_status, "detail": bedrock_detail},
    }
