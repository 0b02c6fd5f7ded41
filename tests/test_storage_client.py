from __future__ import annotations

import io

import pytest

from autocrm.core.config import settings
from autocrm.services import storage_client
from autocrm.services.errors import EmailFetchError


def test_get_s3_client_honors_path_style_and_endpoint(monkeypatch):
    captured: dict[str, object] = {}

    def _fake_boto3_client(service_name, **kwargs):  # noqa: ANN001
        captured["service_name"] = service_name
        captured["kwargs"] = kwargs
        return object()

    monkeypatch.setattr(storage_client.boto3, "client", _fake_boto3_client)
    monkeypatch.setattr(settings, "S3_ENDPOINT_URL", "http://localhost:9000/", raising=False)
    monkeypatch.setattr(settings, "S3_REGION", "us-east-1", raising=False)
    monkeypatch.setattr(settings, "S3_URL_STYLE", "path", raising=False)

    storage_client.get_s3_client()

    kwargs = captured["kwargs"]
    assert captured["service_name"] == "s3"
    assert kwargs["region_name"] == "us-east-1"
    assert kwargs["endpoint_url"] == "http://localhost:9000"
    assert kwargs["config"].s3.get("addressing_style") == "path"


def test_get_s3_client_defaults_without_overrides(monkeypatch):
    captured: dict[str, object] = {}

    def _fake_boto3_client(service_name, **kwargs):  # noqa: ANN001
        captured["kwargs"] = kwargs
        return object()

    monkeypatch.setattr(storage_client.boto3, "client", _fake_boto3_client)
    monkeypatch.setattr(settings, "S3_ENDPOINT_URL", "", raising=False)
    monkeypatch.setattr(settings, "S3_REGION", "us-west-2", raising=False)
    monkeypatch.setattr(settings, "S3_URL_STYLE", "", raising=False)
    monkeypatch.setattr(settings, "AWS_ACCESS_KEY_ID", "", raising=False)

    storage_client.get_s3_client()

    kwargs = captured["kwargs"]
    assert kwargs["region_name"] == "us-west-2"
    assert kwargs["endpoint_url"] is None
    assert kwargs["config"] is None
    assert kwargs["aws_access_key_id"] is None


class _FakeS3:
    def __init__(self, body: bytes | None):
        self.body = body
        self.requests: list[dict] = []

    def get_object(self, **kwargs):
        self.requests.append(kwargs)
        if self.body is None:
            return {}
        return {"Body": io.BytesIO(self.body)}


def test_fetcher_reads_object_by_message_id():
    s3 = _FakeS3("Subject: Hi\r\n\r\ncafé".encode("utf-8"))
    fetcher = storage_client.S3EmailFetcher("mail-bucket", client_factory=lambda: s3)

    raw = fetcher.fetch("m1")

    assert raw.endswith("café")
    assert s3.requests == [{"Bucket": "mail-bucket", "Key": "m1"}]


@pytest.mark.parametrize("body", [b"", None])
def test_fetcher_raises_on_empty_object(body):
    fetcher = storage_client.S3EmailFetcher("mail-bucket", client_factory=lambda: _FakeS3(body))

    with pytest.raises(EmailFetchError, match="No email content found"):
        fetcher.fetch("m1")


def test_fetcher_creates_client_lazily():
    created = []

    def _factory():
        created.append(True)
        return _FakeS3(b"x")

    fetcher = storage_client.S3EmailFetcher("mail-bucket", client_factory=_factory)
    assert created == []

    fetcher.fetch("a")
    fetcher.fetch("b")

    assert created == [True]
