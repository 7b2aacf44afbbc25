"""Async task definitions for background analytics.

Uses arq (async Redis queue) for background task processing. Each job loads
one owner's invoices, detects the analytics intent of the query and stores
the resulting report in Redis.

Based on arq documentation:
https://arq-docs.helpmanual.io/
"""

import logging
from datetime import UTC, datetime
from typing import Any

from arq.connections import RedisSettings
from pydantic import BaseModel

from services.analytics.intents import detect_intent, run_analytics
from services.shared.config import Settings, get_settings
from services.store.base import InvoiceStore
from services.store.factory import create_invoice_store

logger = logging.getLogger(__name__)


def job_key(job_id: str) -> str:
    return f"job:{job_id}"


def _timestamp() -> str:
    return datetime.now(UTC).isoformat()


class JobResult(BaseModel):
    """Result of a background analytics job.

    Attributes:
        job_id: Unique job identifier
        status: Job status (pending, processing, completed, failed)
        owner_id: Owner whose invoices are analysed
        query: Natural-language analytics question
        intent: Detected intent (if completed)
        report: Serialized analytics report (if completed)
        error: Error message (if failed)
        created_at: Job creation timestamp
        completed_at: Job completion timestamp
    """

    job_id: str
    status: str
    owner_id: str
    query: str
    intent: str | None = None
    report: dict[str, Any] | None = None
    error: str | None = None
    created_at: str
    completed_at: str | None = None


def new_job(job_id: str, owner_id: str, query: str) -> JobResult:
    return JobResult(
        job_id=job_id,
        status="pending",
        owner_id=owner_id,
        query=query,
        created_at=_timestamp(),
    )


async def run_analytics_job(
    ctx: dict[str, Any],
    job_id: str,
    owner_id: str,
    query: str,
    now_iso: str,
) -> dict[str, Any]:
    """Answer an analytics question in the background.

    Args:
        ctx: arq context (contains redis connection)
        job_id: Unique job identifier
        owner_id: Owner whose invoices are analysed
        query: Natural-language analytics question
        now_iso: Reference instant captured when the job was queued

    Returns:
        JobResult as dict
    """
    logger.info(f"Processing analytics job {job_id} for owner {owner_id}")

    settings: Settings = ctx.get("settings") or get_settings()
    store: InvoiceStore = ctx.get("invoice_store") or create_invoice_store(settings)
    redis = ctx["redis"]
    ttl = settings.queue_result_ttl_seconds

    result = new_job(job_id, owner_id, query)
    result.status = "processing"
    await redis.set(job_key(job_id), result.model_dump_json(), ex=ttl)

    try:
        now = datetime.fromisoformat(now_iso)
        invoices = store.list_invoices(owner_id)
        intent = detect_intent(query)
        report = run_analytics(intent, invoices, now)

        result.intent = intent.value if intent else None
        result.report = report.model_dump(mode="json")
        result.status = "completed"
    except Exception as e:
        logger.exception(f"Job {job_id} failed with error: {e}")
        result.status = "failed"
        result.error = str(e)

    result.completed_at = _timestamp()
    await redis.set(job_key(job_id), result.model_dump_json(), ex=ttl)
    logger.info(f"Job {job_id} completed with status: {result.status}")

    return result.model_dump()


async def startup(ctx: dict[str, Any]) -> None:
    """Worker startup hook - create the invoice store once per worker."""
    logger.info("Initializing worker services...")
    settings = get_settings()
    ctx["settings"] = settings
    ctx["invoice_store"] = create_invoice_store(settings)
    logger.info("Worker services initialized")


async def shutdown(ctx: dict[str, Any]) -> None:
    """Worker shutdown hook - cleanup resources."""
    logger.info("Worker shutting down...")


class WorkerSettings:
    """arq worker settings.

    Defines the worker configuration including:
    - Task functions to register
    - Redis connection settings
    - Job timeout
    """

    functions = [run_analytics_job]
    on_startup = startup
    on_shutdown = shutdown

    # These will be set from environment
    redis_settings: RedisSettings | None = None
    max_jobs = 10
    job_timeout = 300

    @classmethod
    def get_redis_settings(cls) -> RedisSettings:
        """Get Redis settings from configuration."""
        return RedisSettings.from_dsn(get_settings().redis_url)
