"""Tests for JSON logging, error context and the storage key helper."""

import json
import logging

import pytest

from packages.common.errors import RemoteError
from packages.common.logging import JSONFormatter, set_request_id
from packages.common.storage import ObjectStorage, phoneme_audio_key


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("linguafabric.test", logging.WARNING, __file__, 1, "update %s failed", ("l1",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_request_and_operation_context() -> None:
    set_request_id("req-123")
    try:
        line = JSONFormatter().format(_record(operation="update_language", entity_id="l1", code="42501"))
    finally:
        set_request_id(None)
    data = json.loads(line)
    if data["msg"] != "update l1 failed" or data["request_id"] != "req-123":
        pytest.fail(f"Unexpected log line {data}")
    if (data["operation"], data["entity_id"], data["code"]) != ("update_language", "l1", "42501"):
        pytest.fail(f"Context fields missing: {data}")


def test_json_formatter_omits_absent_context() -> None:
    data = json.loads(JSONFormatter().format(_record()))
    if "request_id" in data or "operation" in data:
        pytest.fail(f"Unexpected context in {data}")


def test_remote_error_context_has_no_message_payload() -> None:
    err = RemoteError("update_language", entity_id="l1", code="42501", hint="check policies")
    if err.message != RemoteError.GENERIC_MESSAGE:
        pytest.fail("Missing message should fall back to the generic one")
    if err.context() != {"operation": "update_language", "entity_id": "l1", "code": "42501"}:
        pytest.fail(f"Unexpected context {err.context()}")


def test_phoneme_audio_key_is_path_safe() -> None:
    key = phoneme_audio_key("lang/1", "θ", "mp3")
    if key != "languages/lang_1/phonemes/ceb8.mp3":
        pytest.fail(f"Unexpected key {key}")


def test_object_storage_put_and_presign() -> None:
    class S3:
        def __init__(self):
            self.objects = {}

        def put_object(self, Bucket, Key, Body, ContentType):
            self.objects[(Bucket, Key)] = (Body, ContentType)

        def generate_presigned_url(self, op, Params, ExpiresIn):
            return f"https://s3.test/{Params['Bucket']}/{Params['Key']}?ttl={ExpiresIn}"

    s3 = S3()
    storage = ObjectStorage(client=s3, bucket="audio")
    locator = storage.put("k.webm", b"\x00\x01", "audio/webm")
    if locator != "audio/k.webm" or s3.objects[("audio", "k.webm")] != (b"\x00\x01", "audio/webm"):
        pytest.fail(f"Unexpected put {locator} {s3.objects}")
    if storage.presign("k.webm", 60) != "https://s3.test/audio/k.webm?ttl=60":
        pytest.fail("Unexpected presigned url")
