"""Helpers for creating storage clients and reading raw inbound mail."""

from __future__ import annotations

import logging
from typing import Callable

import boto3
from botocore.client import BaseClient
from botocore.config import Config

from autocrm.core.config import settings
from autocrm.services.errors import EmailFetchError

logger = logging.getLogger(__name__)


def _normalize_endpoint(endpoint_url: str | None) -> str | None:
    if endpoint_url:
        return endpoint_url.rstrip("/")
    return None


def _build_s3_config() -> Config | None:
    style = (settings.S3_URL_STYLE or "").strip().lower()
    if style in {"path", "virtual"}:
        return Config(s3={"addressing_style": style})
    return None


def get_s3_client(
    *,
    region: str | None = None,
    endpoint_url: str | None = None,
) -> BaseClient:
    """Return a configured S3 client (supports S3-compatible endpoints).

    Uses the fixed service-account credentials from settings when present,
    otherwise the default boto3 credential chain.
    """
    normalized_endpoint = _normalize_endpoint(endpoint_url or settings.S3_ENDPOINT_URL)
    return boto3.client(
        "s3",
        region_name=region or settings.S3_REGION or None,
        aws_access_key_id=settings.AWS_ACCESS_KEY_ID or None,
        aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or None,
        endpoint_url=normalized_endpoint,
        config=_build_s3_config(),
    )


class S3EmailFetcher:
    """Reads raw MIME text for a message id from the inbound mail bucket."""

    def __init__(self, bucket: str, client_factory: Callable[[], BaseClient] = get_s3_client):
        self.bucket = bucket
        self._client_factory = client_factory
        self._client: BaseClient | None = None

    @property
    def client(self) -> BaseClient:
        if self._client is None:
            self._client = self._client_factory()
        return self._client

    def fetch(self, key: str) -> str:
        """Return the object body decoded as UTF-8.

        botocore ClientError (missing object, denied) propagates.
        """
        response = self.client.get_object(Bucket=self.bucket, Key=key)
        body = response.get("Body")
        raw = body.read() if body is not None else b""
        if not raw:
            raise EmailFetchError("No email content found")
        logger.debug("Fetched %d bytes from s3://%s/%s", len(raw), self.bucket, key)
        return raw.decode("utf-8", errors="replace")
