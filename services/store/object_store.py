"""Invoice store backed by S3-compatible object storage (MinIO).

Each owner's invoices are kept as one JSON snapshot at
``<owner_id>/invoices.json`` in the configured bucket. Reads and writes are
retried on S3 errors; a missing snapshot is an empty collection. Any other
failure to reach the server surfaces as StoreUnavailableError.

Based on MinIO Python SDK:
https://min.io/docs/minio/linux/developers/python/API.html
"""

import io
import logging

from minio import Minio
from minio.error import S3Error
from pydantic import TypeAdapter, ValidationError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from services.invoices.schema import Invoice
from services.shared.config import Settings
from services.store.base import InvoiceStore, StoreError, StoreUnavailableError

logger = logging.getLogger(__name__)

SNAPSHOT_NAME = "invoices.json"
SNAPSHOT_CONTENT_TYPE = "application/json"
MISSING_OBJECT_CODES = frozenset({"NoSuchKey", "NoSuchBucket"})

_INVOICES_ADAPTER = TypeAdapter(list[Invoice])


def snapshot_name(owner_id: str) -> str:
    return f"{owner_id}/{SNAPSHOT_NAME}"


class ObjectInvoiceStore(InvoiceStore):
    """Per-owner invoice snapshots in an S3-compatible bucket."""

    def __init__(self, settings: Settings) -> None:
        """Initialize the store.

        Args:
            settings: Application settings with storage configuration
        """
        super().__init__(settings)
        self._client: Minio | None = None
        self._bucket_ready = False

    @property
    def store_name(self) -> str:
        return "object"

    def _get_client(self) -> Minio:
        """Get or create MinIO client (lazy initialization).

        Raises:
            StoreUnavailableError: If storage credentials are not configured
        """
        if self._client is None:
            if not self.settings.storage_access_key:
                raise StoreUnavailableError(
                    "Storage access key not configured. "
                    "Set APP_STORAGE_ACCESS_KEY environment variable."
                )
            if not self.settings.storage_secret_key:
                raise StoreUnavailableError(
                    "Storage secret key not configured. "
                    "Set APP_STORAGE_SECRET_KEY environment variable."
                )

            self._client = Minio(
                endpoint=self.settings.storage_endpoint,
                access_key=self.settings.storage_access_key,
                secret_key=self.settings.storage_secret_key,
                secure=self.settings.storage_secure,
            )
            logger.info(f"MinIO client initialized for endpoint: {self.settings.storage_endpoint}")

        return self._client

    def is_available(self) -> bool:
        """True when storage credentials are set."""
        return bool(self.settings.storage_access_key and self.settings.storage_secret_key)

    def health_check(self) -> bool:
        """Check if the storage backend is reachable.

        Returns:
            True if the MinIO server answers bucket_exists for the configured bucket
        """
        if not self.is_available():
            return False

        try:
            self._get_client().bucket_exists(self.settings.storage_bucket)
            return True
        except Exception as e:
            logger.warning(f"Storage health check failed: {e}")
            return False

    def _ensure_bucket(self) -> None:
        if self._bucket_ready:
            return

        client = self._get_client()
        bucket = self.settings.storage_bucket
        if not client.bucket_exists(bucket):
            client.make_bucket(bucket)
            logger.info(f"Created bucket: {bucket}")

        self._bucket_ready = True

    @retry(
        retry=retry_if_exception_type(S3Error),
        stop=stop_after_attempt(3),
        wait=wait_exponential_jitter(initial=1, max=10),
        reraise=True,
    )
    def _read_snapshot(self, object_name: str) -> bytes | None:
        """Read a snapshot object; None when it does not exist."""
        client = self._get_client()
        try:
            response = client.get_object(
                bucket_name=self.settings.storage_bucket,
                object_name=object_name,
            )
        except S3Error as e:
            if e.code in MISSING_OBJECT_CODES:
                return None
            raise

        try:
            return response.read()
        finally:
            response.close()
            response.release_conn()

    @retry(
        retry=retry_if_exception_type(S3Error),
        stop=stop_after_attempt(3),
        wait=wait_exponential_jitter(initial=1, max=10),
        reraise=True,
    )
    def _write_snapshot(self, object_name: str, data: bytes) -> None:
        self._ensure_bucket()
        self._get_client().put_object(
            bucket_name=self.settings.storage_bucket,
            object_name=object_name,
            data=io.BytesIO(data),
            length=len(data),
            content_type=SNAPSHOT_CONTENT_TYPE,
        )

    def list_invoices(self, owner_id: str) -> list[Invoice]:
        """Load an owner's invoice snapshot.

        Args:
            owner_id: Owner whose snapshot is read

        Returns:
            Invoices in snapshot order; empty when no snapshot exists

        Raises:
            StoreUnavailableError: If storage is unreachable or keeps failing after retries
            StoreError: If the snapshot is not a valid invoice list
        """
        object_name = snapshot_name(owner_id)

        try:
            data = self._read_snapshot(object_name)
        except S3Error as e:
            logger.error(f"S3 error reading {object_name}: {e}")
            raise StoreUnavailableError(f"S3 error: {e.code} - {e.message}") from e
        except StoreError:
            raise
        except Exception as e:
            logger.error(f"Error reading {object_name}: {e}")
            raise StoreUnavailableError(f"Storage unreachable: {e}") from e

        if data is None:
            logger.info(f"No invoice snapshot for owner {owner_id}")
            return []

        try:
            return _INVOICES_ADAPTER.validate_json(data)
        except ValidationError as e:
            raise StoreError(f"Invalid invoice snapshot {object_name}: {e}") from e

    def save_invoices(self, owner_id: str, invoices: list[Invoice]) -> str:
        """Write an owner's invoices as a new snapshot.

        Args:
            owner_id: Owner whose snapshot is replaced
            invoices: Complete invoice collection

        Returns:
            Object name of the written snapshot

        Raises:
            StoreUnavailableError: If storage is unreachable or keeps failing after retries
        """
        object_name = snapshot_name(owner_id)
        data = _INVOICES_ADAPTER.dump_json(invoices)

        try:
            self._write_snapshot(object_name, data)
        except S3Error as e:
            logger.error(f"S3 error writing {object_name}: {e}")
            raise StoreUnavailableError(f"S3 error: {e.code} - {e.message}") from e
        except StoreError:
            raise
        except Exception as e:
            logger.error(f"Error writing {object_name}: {e}")
            raise StoreUnavailableError(f"Storage unreachable: {e}") from e

        logger.info(f"Saved {len(invoices)} invoices to {object_name} ({len(data)} bytes)")
        return object_name
