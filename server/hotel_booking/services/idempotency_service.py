"""Idempotency service for replaying responses to retried requests."""

import hashlib
import json
import logging
from datetime import timedelta
from typing import Any, Awaitable, Callable

from fastapi.responses import JSONResponse
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.database import utcnow
from ..core.exceptions import PROBLEM_BASE_URI, ProblemDetailsException
from ..models.idempotency import IdempotencyRecord

logger = logging.getLogger(__name__)


class IdempotencyMismatchError(ProblemDetailsException):
    """Idempotency key reused with a different request body."""

    def __init__(self, idempotency_key: str, method: str):
        super().__init__(
            status_code=422,
            title="Idempotency Key Mismatch",
            detail=f"Idempotency key '{idempotency_key}' was already used for '{method}' with a different request body",
            type_uri=f"{PROBLEM_BASE_URI}/idempotency-key-mismatch",
            extensions={
                "code": "IDEMPOTENCY_KEY_MISMATCH",
                "retryable": False,
                "idempotency_key": idempotency_key,
                "method": method,
            },
        )


class IdempotencyService:
    """Stores the first response for an (Idempotency-Key, operation) pair."""

    def __init__(self, db: AsyncSession, ttl_hours: int | None = None):
        self.db = db
        self.ttl_hours = ttl_hours if ttl_hours is not None else settings.idempotency_ttl_hours

    @staticmethod
    def compute_request_hash(request_body: dict[str, Any]) -> str:
        """SHA-256 of the request body serialized with sorted keys."""
        normalized = json.dumps(request_body, sort_keys=True, separators=(",", ":"), default=str)
        return hashlib.sha256(normalized.encode("utf-8")).hexdigest()

    async def check_idempotency(
        self,
        idempotency_key: str,
        method: str,
        request_body: dict[str, Any],
    ) -> tuple[int, dict[str, Any]] | None:
        """
        Look up a stored response for the key.

        Returns:
            ``(status_code, response_body)`` when a live record exists,
            None for a new request

        Raises:
            IdempotencyMismatchError: If the key was used with a different body
        """
        request_hash = self.compute_request_hash(request_body)

        stmt = select(IdempotencyRecord).where(
            IdempotencyRecord.idempotency_key == idempotency_key,
            IdempotencyRecord.method == method,
            IdempotencyRecord.expires_at > utcnow()
        )
        result = await self.db.execute(stmt)
        record = result.scalar_one_or_none()

        if record is None:
            return None

        if record.request_body_hash != request_hash:
            logger.warning(
                "Idempotency key mismatch",
                extra={
                    "idempotency_key": idempotency_key,
                    "method": method,
                    "existing_hash": record.request_body_hash[:8],
                    "new_hash": request_hash[:8]
                }
            )
            raise IdempotencyMismatchError(idempotency_key, method)

        logger.info(
            "Replaying stored idempotent response",
            extra={
                "idempotency_key": idempotency_key,
                "method": method,
                "status_code": record.response_status_code
            }
        )
        return record.response_status_code, json.loads(record.response_body)

    async def store_response(
        self,
        idempotency_key: str,
        method: str,
        request_body: dict[str, Any],
        status_code: int,
        response_body: dict[str, Any],
    ) -> None:
        """
        Persist a response for later replay.

        A concurrent request that stored the same key first wins; the
        duplicate insert is rolled back and logged.
        """
        expires_at = utcnow() + timedelta(hours=self.ttl_hours)
        record = IdempotencyRecord(
            idempotency_key=idempotency_key,
            method=method,
            request_body_hash=self.compute_request_hash(request_body),
            response_status_code=status_code,
            response_body=json.dumps(response_body, sort_keys=True, separators=(",", ":"), default=str),
            expires_at=expires_at
        )

        self.db.add(record)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.info(
                "Idempotency record already stored by a concurrent request",
                extra={"idempotency_key": idempotency_key, "method": method, "error": str(e.orig)}
            )
            return

        logger.info(
            "Stored idempotency record",
            extra={
                "idempotency_key": idempotency_key,
                "method": method,
                "status_code": status_code,
                "expires_at": expires_at.isoformat()
            }
        )

    async def run(
        self,
        idempotency_key: str | None,
        method: str,
        request_body: dict[str, Any],
        operation: Callable[[], Awaitable[dict[str, Any]]],
    ) -> JSONResponse:
        """
        Execute ``operation`` at most once per key.

        Without a key the operation simply runs. With one, a stored response
        is replayed; otherwise the operation runs and its result, success or
        problem details, is stored before being returned or re-raised.
        """
        if not idempotency_key:
            return JSONResponse(status_code=200, content=await operation())

        cached = await self.check_idempotency(idempotency_key, method, request_body)
        if cached is not None:
            status_code, body = cached
            headers = {"Idempotent-Replayed": "true"}
            if status_code >= 400:
                return JSONResponse(
                    status_code=status_code,
                    content=body,
                    headers=headers,
                    media_type="application/problem+json"
                )
            return JSONResponse(status_code=status_code, content=body, headers=headers)

        try:
            body = await operation()
        except ProblemDetailsException as e:
            await self.store_response(idempotency_key, method, request_body, e.status_code, e.problem_details)
            raise

        await self.store_response(idempotency_key, method, request_body, 200, body)
        return JSONResponse(status_code=200, content=body)

    async def cleanup_expired_records(self) -> int:
        """Delete expired records and return how many were removed."""
        result = await self.db.execute(
            delete(IdempotencyRecord).where(IdempotencyRecord.expires_at <= utcnow())
        )
        await self.db.commit()

        if result.rowcount:
            logger.info("Cleaned up expired idempotency records", extra={"deleted_count": result.rowcount})

        return result.rowcount
