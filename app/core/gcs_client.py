import os
import asyncio
from typing import Optional

from google.cloud import storage
from google.cloud.storage import Bucket
from google.auth.exceptions import DefaultCredentialsError
from google.api_core.exceptions import GoogleAPIError, NotFound, PreconditionFailed

from app.core.config import Settings
from app.core.logging import get_service_logger

logger = get_service_logger("gcs_client")


class GCSClientError(Exception):
    """Base exception for GCS client errors."""

    pass


class GCSBucketNotFoundError(GCSClientError):
    """Bucket not found error."""

    pass


class GCSObjectExistsError(GCSClientError):
    """An object already exists under the requested key."""

    pass


class GCSClient:
    """Google Cloud Storage client for worksheet files and thumbnails.

    Objects are written without overwrite and are publicly readable at the
    URL returned by ``upload_object``. Blocking SDK calls have ``*_async`` counterparts that run
    in a worker thread.
    """

    def __init__(
        self,
        bucket_name: str,
        project_id: Optional[str] = None,
        credentials_path: Optional[str] = None,
        timeout: float = 60.0,
    ):
        self.logger = logger
        self._client: Optional[storage.Client] = None
        self._bucket: Optional[Bucket] = None
        self._bucket_name = bucket_name
        self._project_id = project_id
        self._credentials_path = credentials_path
        self._timeout = timeout
        self._initialized = False
        self._initialization_error: Optional[str] = None

        # Only initialize if required settings are provided
        if self._should_initialize():
            try:
                self._initialize_client()
            except Exception as e:
                self.logger.warning(
                    "GCS client initialization failed, will operate in disabled mode",
                    error=str(e),
                )
                self._initialization_error = str(e)

    @classmethod
    def from_settings(cls, config: Settings) -> "GCSClient":
        """Build a client from application settings."""
        return cls(
            bucket_name=config.GCS_BUCKET_NAME,
            project_id=config.GCP_PROJECT_ID,
            credentials_path=config.GOOGLE_APPLICATION_CREDENTIALS,
            timeout=config.GCS_TIMEOUT_SECONDS,
        )

    def _should_initialize(self) -> bool:
        """Check if GCS client should be initialized based on available settings."""
        has_credentials = (
            self._credentials_path
            or os.environ.get("GOOGLE_APPLICATION_CREDENTIALS")
            or self._check_application_default_credentials()
        )

        return bool(has_credentials and self._project_id and self._bucket_name)

    def _check_application_default_credentials(self) -> bool:
        """Check if Application Default Credentials are available."""
        try:
            import google.auth

            credentials, project = google.auth.default()
            return credentials is not None
        except Exception:
            return False

    def _initialize_client(self) -> None:
        """Initialize GCS client and bucket."""
        try:
            if self._credentials_path:
                self._client = storage.Client.from_service_account_json(
                    self._credentials_path, project=self._project_id
                )
            else:
                self._client = storage.Client(project=self._project_id)

            try:
                self._bucket = self._client.bucket(self._bucket_name)
                # Test bucket access by checking if it exists
                self._bucket.reload(timeout=self._timeout)
                self._initialized = True
                self.logger.info("Connected to GCS bucket", bucket=self._bucket_name)
            except NotFound:
                self.logger.error("GCS bucket not found", bucket=self._bucket_name)
                raise GCSBucketNotFoundError(f"Bucket '{self._bucket_name}' not found")

        except DefaultCredentialsError as e:
            self.logger.error("GCS authentication failed", error=str(e))
            raise GCSClientError(f"GCS authentication failed: {e}")
        except GCSClientError:
            raise
        except Exception as e:
            self.logger.error("Failed to initialize GCS client", error=str(e))
            raise GCSClientError(f"Failed to initialize GCS client: {e}")

    @property
    def is_initialized(self) -> bool:
        """Check if GCS client is properly initialized."""
        return self._initialized

    @property
    def initialization_error(self) -> Optional[str]:
        """Get initialization error if any."""
        return self._initialization_error

    @property
    def bucket_name(self) -> str:
        return self._bucket_name

    @property
    def bucket(self) -> Bucket:
        """Get the GCS bucket instance."""
        if not self._initialized:
            raise GCSClientError("GCS client is not initialized. Check configuration.")
        return self._bucket

    def _ensure_initialized(self) -> None:
        """Ensure GCS client is initialized, raise error if not."""
        if not self._initialized:
            error_msg = "GCS client is not initialized"
            if self._initialization_error:
                error_msg += f": {self._initialization_error}"
            else:
                error_msg += ". Please configure GCP_PROJECT_ID, GCS_BUCKET_NAME, and authentication credentials."
            raise GCSClientError(error_msg)

    def upload_object(self, key: str, content: bytes, content_type: Optional[str] = None) -> str:
        """
        Upload bytes under ``key`` without overwriting an existing object.

        Args:
            key: Object name inside the bucket
            content: File content as bytes
            content_type: MIME content type

        Returns:
            Public URL of the stored object

        Raises:
            GCSObjectExistsError: An object with this key already exists
            GCSClientError: The upload failed
        """
        self._ensure_initialized()
        try:
            blob = self.bucket.blob(key)

            # Generation 0 means "only if no live object exists"
            blob.upload_from_string(
                content,
                content_type=content_type,
                if_generation_match=0,
                timeout=self._timeout,
            )

            self.logger.info(
                "Uploaded object to GCS",
                key=key,
                content_type=content_type,
                size=len(content),
            )

            return blob.public_url

        except PreconditionFailed as e:
            self.logger.warning("GCS object already exists", key=key)
            raise GCSObjectExistsError(f"Object already exists: {key}") from e
        except GoogleAPIError as e:
            self.logger.error("Failed to upload object to GCS", key=key, error=str(e))
            raise GCSClientError(str(e)) from e
        except Exception as e:
            # Transport failures (connection resets, auth refresh) are not GoogleAPIError
            self.logger.error("GCS upload transport failure", key=key, error=str(e))
            raise GCSClientError(str(e)) from e

    def delete_object(self, key: str) -> bool:
        """
        Delete the object stored under ``key``.

        Returns:
            True if deleted, False if the object was already absent

        Raises:
            GCSClientError: The delete failed for any other reason
        """
        self._ensure_initialized()
        try:
            self.bucket.blob(key).delete(timeout=self._timeout)
            self.logger.info("Deleted object from GCS", key=key)
            return True
        except NotFound:
            self.logger.debug("GCS object not found for deletion", key=key)
            return False
        except GoogleAPIError as e:
            self.logger.error("Failed to delete object from GCS", key=key, error=str(e))
            raise GCSClientError(str(e)) from e
        except Exception as e:
            self.logger.error("GCS delete transport failure", key=key, error=str(e))
            raise GCSClientError(str(e)) from e

    # Async versions for use in request handlers
    async def upload_object_async(
        self, key: str, content: bytes, content_type: Optional[str] = None
    ) -> str:
        """Async version of upload_object using thread pool."""
        return await asyncio.to_thread(self.upload_object, key, content, content_type)

    async def delete_object_async(self, key: str) -> bool:
        """Async version of delete_object using thread pool."""
        return await asyncio.to_thread(self.delete_object, key)

    async def health_check_async(self) -> bool:
        return await asyncio.to_thread(self.health_check)

    def health_check(self) -> bool:
        """
        Check if GCS client and bucket are accessible.

        Returns:
            True if healthy, False otherwise
        """
        if not self._initialized:
            return False

        try:
            self.bucket.reload(timeout=self._timeout)
            return True
        except Exception as e:
            self.logger.error("GCS health check failed", error=str(e))
            return False
