#!/usr/bin/env python3
"""
GCS bucket setup for the Worksheet Library API.

Creates the worksheet bucket, makes its objects publicly readable (worksheet
and preview URLs are handed straight to browsers) and allows cross-origin GETs.

Usage:
    python scripts/setup_bucket.py
    python scripts/setup_bucket.py --project my-project --bucket my-worksheets
    python scripts/setup_bucket.py --skip-test --non-interactive

Environment Variables:
    GCP_PROJECT_ID - GCP project ID
    GCS_BUCKET_NAME - Name of the worksheet bucket
    GCS_REGION - Region (default: us-central1)

Requirements:
    - Application default credentials (gcloud auth application-default login)
    - Permission to create buckets and edit their IAM policy
"""

import argparse
import logging
import os
import sys
import time
from typing import List, Optional

import google.auth
import httpx
from google.api_core.exceptions import Conflict, GoogleAPIError, NotFound
from google.auth.exceptions import DefaultCredentialsError
from google.cloud import storage

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

DEFAULT_REGION = "us-central1"
STORAGE_CLASS = "STANDARD"
PUBLIC_READ_ROLE = "roles/storage.objectViewer"
PUBLIC_MEMBER = "allUsers"
VERIFY_KEY = "setup-check/verify.txt"


class WorksheetBucketSetup:
    """Creates and configures the worksheet bucket."""

    def __init__(self, project_id: str, bucket_name: str):
        self.project_id = project_id
        self.bucket_name = bucket_name
        self.client: Optional[storage.Client] = None
        self.bucket: Optional[storage.Bucket] = None

    def authenticate(self) -> bool:
        """Authenticate with application default credentials."""
        try:
            credentials, project = google.auth.default()
        except DefaultCredentialsError as e:
            logger.error(f"Authentication failed: {e}")
            logger.error("Please run 'gcloud auth application-default login' to authenticate")
            return False

        if project and project != self.project_id:
            logger.warning(f"Default project is '{project}', using '{self.project_id}'")

        self.client = storage.Client(project=self.project_id, credentials=credentials)
        logger.info(f"Authenticated for project: {self.project_id}")
        return True

    def ensure_bucket(self, region: str) -> bool:
        """Reuse the bucket if it exists, otherwise create it."""
        bucket = self.client.bucket(self.bucket_name)
        try:
            bucket.reload()
            logger.info(f"Bucket '{self.bucket_name}' already exists")
            self.bucket = bucket
            return True
        except NotFound:
            logger.info(f"Bucket '{self.bucket_name}' does not exist, creating it")

        bucket.storage_class = STORAGE_CLASS
        # Public access is granted through IAM, so object ACLs are disabled
        bucket.iam_configuration.uniform_bucket_level_access_enabled = True
        try:
            self.bucket = self.client.create_bucket(bucket, location=region)
        except Conflict:
            logger.error(f"Bucket name '{self.bucket_name}' is taken by another project")
            return False
        except GoogleAPIError as e:
            logger.error(f"Failed to create bucket: {e}")
            return False

        logger.info(f"Created bucket '{self.bucket_name}' in '{region}'")
        return True

    def grant_public_read(self) -> bool:
        """Let anyone read objects through their public URL."""
        try:
            policy = self.bucket.get_iam_policy(requested_policy_version=3)
            for binding in policy.bindings:
                if binding["role"] == PUBLIC_READ_ROLE and PUBLIC_MEMBER in binding["members"]:
                    logger.info("Public read access already granted")
                    return True

            policy.bindings.append({"role": PUBLIC_READ_ROLE, "members": {PUBLIC_MEMBER}})
            self.bucket.set_iam_policy(policy)
        except GoogleAPIError as e:
            logger.error(f"Failed to grant public read access: {e}")
            logger.error("Public access prevention may be enforced on this project")
            return False

        logger.info("Granted public read access")
        return True

    def configure_cors(self, origins: List[str]) -> bool:
        """Allow browsers on the given origins to fetch objects."""
        self.bucket.cors = [
            {
                "origin": origins,
                "method": ["GET", "HEAD"],
                "responseHeader": ["Content-Type", "Content-Disposition"],
                "maxAgeSeconds": 3600,
            }
        ]
        try:
            self.bucket.patch()
        except GoogleAPIError as e:
            logger.error(f"Failed to configure CORS: {e}")
            return False

        logger.info(f"Configured CORS for: {', '.join(origins)}")
        return True

    def verify_setup(self) -> bool:
        """Upload a probe object, fetch it anonymously, then remove it."""
        blob = self.bucket.blob(VERIFY_KEY)
        content = f"Setup check at {time.time()}"
        try:
            blob.upload_from_string(content, content_type="text/plain")
            response = httpx.get(blob.public_url, timeout=30.0)
            if response.status_code != 200 or response.text != content:
                logger.error(
                    f"Public fetch of {blob.public_url} returned HTTP {response.status_code}"
                )
                return False
            logger.info("Public URL access verified")
            return True
        except (GoogleAPIError, httpx.HTTPError) as e:
            logger.error(f"Verification failed: {e}")
            return False
        finally:
            try:
                blob.delete()
            except NotFound:
                pass

    def display_summary(self) -> None:
        """Display setup summary and next steps."""
        logger.info("=" * 60)
        logger.info("WORKSHEET BUCKET SETUP SUMMARY")
        logger.info("=" * 60)
        logger.info(f"Project ID: {self.project_id}")
        logger.info(f"Bucket Name: {self.bucket_name}")
        logger.info(f"Public base URL: https://storage.googleapis.com/{self.bucket_name}/")
        logger.info(f"Region: {self.bucket.location if self.bucket else 'Unknown'}")
        logger.info("Next Steps:")
        logger.info("1. Update your .env file with:")
        logger.info(f"   GCP_PROJECT_ID={self.project_id}")
        logger.info(f"   GCS_BUCKET_NAME={self.bucket_name}")
        logger.info("2. Ensure GOOGLE_APPLICATION_CREDENTIALS is set")
        logger.info("=" * 60)


def main():
    """Main setup function."""
    parser = argparse.ArgumentParser(
        description="Setup the GCS bucket for the Worksheet Library API"
    )
    parser.add_argument("--project", help="GCP project ID (default: $GCP_PROJECT_ID)")
    parser.add_argument("--bucket", help="Bucket name (default: $GCS_BUCKET_NAME)")
    parser.add_argument("--region", help=f"Bucket region (default: {DEFAULT_REGION})")
    parser.add_argument(
        "--cors-origin",
        action="append",
        dest="cors_origins",
        help="Origin allowed to fetch objects; repeat for several (default: *)",
    )
    parser.add_argument(
        "--skip-test", action="store_true", help="Skip the public access check"
    )
    parser.add_argument(
        "--non-interactive", action="store_true", help="Never prompt for input"
    )
    args = parser.parse_args()

    project_id = args.project or os.environ.get("GCP_PROJECT_ID", "")
    if not project_id:
        if args.non_interactive:
            logger.error("GCP_PROJECT_ID not set and non-interactive mode enabled")
            sys.exit(1)
        project_id = input("Enter GCP Project ID: ").strip()
        if not project_id:
            logger.error("Project ID is required")
            sys.exit(1)

    bucket_name = args.bucket or os.environ.get("GCS_BUCKET_NAME", "")
    if not bucket_name:
        default_bucket = f"{project_id}-worksheets"
        if args.non_interactive:
            bucket_name = default_bucket
        else:
            bucket_name = input(f"Enter bucket name [{default_bucket}]: ").strip() or default_bucket

    region = args.region or os.environ.get("GCS_REGION", DEFAULT_REGION)

    logger.info(f"Project: {project_id}")
    logger.info(f"Bucket: {bucket_name}")
    logger.info(f"Region: {region}")
    logger.info("-" * 60)

    setup = WorksheetBucketSetup(project_id, bucket_name)

    logger.info("1. Authenticating with Google Cloud...")
    if not setup.authenticate():
        sys.exit(1)

    logger.info("2. Ensuring bucket exists...")
    if not setup.ensure_bucket(region):
        sys.exit(1)

    logger.info("3. Granting public read access...")
    if not setup.grant_public_read():
        sys.exit(1)

    logger.info("4. Configuring CORS...")
    if not setup.configure_cors(args.cors_origins or ["*"]):
        logger.warning("CORS configuration failed, but continuing...")

    if not args.skip_test:
        logger.info("5. Verifying public access...")
        if not setup.verify_setup():
            sys.exit(1)
    else:
        logger.info("5. Skipping verification (--skip-test)")

    setup.display_summary()
    logger.info("Worksheet bucket setup completed successfully!")


if __name__ == "__main__":
    main()
