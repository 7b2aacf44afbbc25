"""FastAPI application for invoice search and analytics.

Production-ready API with:
- Health and readiness checks for Kubernetes
- Natural-language invoice search
- Analytics questions answered inline or as background jobs
- Structured error responses
- Prometheus metrics for monitoring

Based on FastAPI best practices:
https://fastapi.tiangolo.com/
"""

import logging
import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any

from arq import create_pool
from arq.connections import ArqRedis, RedisSettings
from fastapi import FastAPI, HTTPException, Query, Request, Response, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from services.analytics.intents import AnalyticsIntent, detect_intent, run_analytics
from services.analytics.schema import AnalyticsReport
from services.analytics.summary import FinancialOverview, financial_overview
from services.api import metrics
from services.invoices.schema import Invoice
from services.query.builder import ExplicitFilters
from services.query.compiler import compile_query
from services.query.schema import PredicateSet
from services.queue.tasks import JobResult, job_key, new_job
from services.shared.config import get_settings
from services.store.base import StoreError, StoreUnavailableError, fetch_page
from services.store.factory import create_invoice_store

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Invoice Insights",
    description="Natural-language invoice search and spending analytics API",
    version=settings.service_version,
)

invoice_store = create_invoice_store(settings)

_arq_pool: ArqRedis | None = None


async def get_arq_pool() -> ArqRedis:
    """Get or create the shared arq Redis pool."""
    global _arq_pool
    if _arq_pool is None:
        _arq_pool = await create_pool(RedisSettings.from_dsn(settings.redis_url))
    return _arq_pool


@contextmanager
def track_store_call(operation: str) -> Iterator[None]:
    """Count an invoice store call by outcome."""
    try:
        yield
    except StoreError:
        metrics.store_requests_total.labels(operation=operation, status="failed").inc()
        raise
    metrics.store_requests_total.labels(operation=operation, status="success").inc()


def load_invoices(owner_id: str) -> list[Invoice]:
    with track_store_call("list"):
        return invoice_store.list_invoices(owner_id)


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Middleware to collect request metrics.

    Tracks:
    - Request count by method, endpoint, and status
    - Request duration by method and endpoint
    """
    # Skip metrics for /metrics endpoint itself
    if request.url.path == "/metrics":
        return await call_next(request)

    start_time = time.time()
    response = await call_next(request)
    duration = time.time() - start_time

    metrics.http_requests_total.labels(
        method=request.method,
        endpoint=request.url.path,
        status=response.status_code,
    ).inc()

    metrics.http_request_duration_seconds.labels(
        method=request.method,
        endpoint=request.url.path,
    ).observe(duration)

    return response


@app.exception_handler(StoreUnavailableError)
async def store_unavailable_handler(request: Request, exc: StoreUnavailableError) -> JSONResponse:
    logger.error(f"Invoice store unavailable on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": f"Invoice store unavailable: {exc}", "error": "store_unavailable"},
    )


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    logger.error(f"Invoice store error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": f"Invoice store error: {exc}", "error": "store_error"},
    )


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    service: str


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool
    store: str


class CompileRequest(BaseModel):
    """Query compilation request."""

    query: str = Field("", description="Natural-language query")
    filters: ExplicitFilters = Field(default_factory=ExplicitFilters)


class CompileResponse(BaseModel):
    """Compiled predicate set and its store-facing rendering."""

    predicates: PredicateSet
    where: dict[str, Any]


class SearchRequest(BaseModel):
    """Invoice search request."""

    owner_id: str = Field(..., min_length=1, description="Owner whose invoices are searched")
    query: str = Field("", description="Natural-language query")
    filters: ExplicitFilters = Field(default_factory=ExplicitFilters)
    page: int = Field(1, ge=1, description="1-based page number")
    limit: int | None = Field(None, ge=1, description="Page size (server default when omitted)")


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    pages: int


class SearchResponse(BaseModel):
    """One page of matching invoices."""

    invoices: list[Invoice]
    pagination: Pagination
    predicates: dict[str, Any]


class AnalyticsRequest(BaseModel):
    """Analytics question about an owner's invoices."""

    owner_id: str = Field(..., min_length=1)
    query: str = Field(..., description="Natural-language analytics question")


class AnalyticsResponse(BaseModel):
    """Detected intent and the report answering it."""

    intent: AnalyticsIntent | None
    report: AnalyticsReport


class JobResponse(BaseModel):
    """Queued background job."""

    job_id: str
    status: str


def _require_query(query: str) -> str:
    if not query or not query.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Query is required")
    return query.strip()


def _require_queue() -> None:
    if not settings.queue_enabled:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Background jobs are not enabled. Set APP_QUEUE_ENABLED=true.",
        )


@app.get("/health", response_model=HealthResponse, tags=["Health"])
def health_check() -> HealthResponse:
    """Health check endpoint for liveness probe.

    Returns:
        Health status information
    """
    return HealthResponse(
        status="healthy", version=settings.service_version, service=settings.service_name
    )


@app.get("/ready", response_model=ReadinessResponse, tags=["Health"])
def readiness_check() -> ReadinessResponse:
    """Readiness check endpoint for Kubernetes readiness probe.

    Returns:
        Readiness status of the invoice store
    """
    return ReadinessResponse(ready=invoice_store.health_check(), store=invoice_store.store_name)


@app.get("/metrics", tags=["Monitoring"])
def get_metrics() -> Response:
    """Prometheus metrics endpoint.

    Returns:
        Prometheus metrics in text format
    """
    metrics_data, content_type = metrics.get_metrics()
    return Response(content=metrics_data, media_type=content_type)


@app.post("/api/v1/invoices/compile", response_model=CompileResponse, tags=["Invoices"])
def compile_invoice_query(request: CompileRequest) -> CompileResponse:
    """Compile a natural-language query into a predicate set.

    ## Usage Example

    ```bash
    curl -X POST "http://localhost:8000/api/v1/invoices/compile" \\
      -H "Content-Type: application/json" \\
      -d '{"query": "pending invoices from acme over 500"}'
    ```

    Unrecognized text never fails; it yields an empty predicate set.
    """
    predicates = compile_query(request.query, request.filters, today=datetime.now().date())
    metrics.queries_compiled_total.labels(
        outcome="empty" if predicates.is_empty() else "filtered"
    ).inc()
    return CompileResponse(predicates=predicates, where=predicates.to_query())


@app.post("/api/v1/invoices/search", response_model=SearchResponse, tags=["Invoices"])
def search_invoices(request: SearchRequest) -> SearchResponse:
    """Search an owner's invoices with a natural-language query and filters.

    Results are ordered by issue date, newest first.

    Raises:
        HTTPException: 503 if the invoice store is unavailable
    """
    limit = min(request.limit or settings.default_page_size, settings.max_page_size)
    predicates = compile_query(request.query, request.filters, today=datetime.now().date())
    metrics.queries_compiled_total.labels(
        outcome="empty" if predicates.is_empty() else "filtered"
    ).inc()

    with track_store_call("search"):
        page = fetch_page(invoice_store, request.owner_id, predicates, request.page, limit)

    logger.info(
        f"Search for owner {request.owner_id}: {page.total} matches, page {page.page}/{page.pages}"
    )

    return SearchResponse(
        invoices=page.invoices,
        pagination=Pagination(total=page.total, page=page.page, limit=page.limit, pages=page.pages),
        predicates=predicates.to_query(),
    )


@app.post("/api/v1/analytics/query", response_model=AnalyticsResponse, tags=["Analytics"])
def query_analytics(request: AnalyticsRequest) -> AnalyticsResponse:
    """Answer an analytics question about an owner's invoices.

    Supported questions: top vendor, Q1 financial report, next-month expense
    forecast, duplicate invoices and last month's invoices. Anything else
    returns a no-data report.

    Raises:
        HTTPException: 400 if the query is blank, 503 if the store is unavailable
    """
    query = _require_query(request.query)
    now = datetime.now()
    invoices = load_invoices(request.owner_id)

    intent = detect_intent(query)
    label = intent.value if intent else "none"

    start_time = time.time()
    report = run_analytics(intent, invoices, now)
    metrics.analytics_duration_seconds.labels(intent=label).observe(time.time() - start_time)
    metrics.analytics_reports_total.labels(intent=label).inc()

    return AnalyticsResponse(intent=intent, report=report)


@app.get("/api/v1/analytics/overview", response_model=FinancialOverview, tags=["Analytics"])
def analytics_overview(
    owner_id: str = Query(..., min_length=1, description="Owner whose invoices are summarized"),
) -> FinancialOverview:
    """Dashboard financial overview of an owner's whole invoice collection."""
    return financial_overview(load_invoices(owner_id), datetime.now())


@app.post("/api/v1/analytics/jobs", response_model=JobResponse, tags=["Analytics"])
async def create_analytics_job(request: AnalyticsRequest) -> JobResponse:
    """Queue an analytics question for background processing.

    Poll ``GET /api/v1/analytics/jobs/{job_id}`` for the result.

    Raises:
        HTTPException: 503 if the queue is disabled, 400 if the query is blank
    """
    _require_queue()
    query = _require_query(request.query)

    job_id = str(uuid.uuid4())
    pool = await get_arq_pool()

    job = new_job(job_id, request.owner_id, query)
    await pool.set(job_key(job_id), job.model_dump_json(), ex=settings.queue_result_ttl_seconds)
    await pool.enqueue_job(
        "run_analytics_job",
        job_id=job_id,
        owner_id=request.owner_id,
        query=query,
        now_iso=datetime.now().isoformat(),
        _job_id=job_id,
    )

    logger.info(f"Queued analytics job {job_id} for owner {request.owner_id}")
    return JobResponse(job_id=job_id, status=job.status)


@app.get("/api/v1/analytics/jobs/{job_id}", response_model=JobResult, tags=["Analytics"])
async def get_analytics_job(job_id: str) -> JobResult:
    """Get the status and result of a background analytics job.

    Raises:
        HTTPException: 503 if the queue is disabled, 404 if the job is unknown or expired
    """
    _require_queue()
    pool = await get_arq_pool()

    data = await pool.get(job_key(job_id))
    if data is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Job not found: {job_id}")

    return JobResult.model_validate_json(data)
