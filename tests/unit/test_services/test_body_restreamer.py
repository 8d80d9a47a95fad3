"""
Request Body Re-streamer Unit Tests
"""

import json
import logging
from urllib.parse import parse_qs

import pytest

from rewrite_proxy.common.content_type import ContentType
from rewrite_proxy.common.errors import BodyReencodeError
from rewrite_proxy.services.body_restreamer import restream_body, serialize_body

JSON = ContentType.parse("application/json")
FORM = ContentType.parse("application/x-www-form-urlencoded")
TEXT = ContentType.parse("text/plain")


class TestRestreamBody:
    """restream_body()"""

    def test_json_body(self):
        result = restream_body("POST", {"a": 1}, JSON)
        assert result is not None
        assert json.loads(result.content) == {"a": 1}
        assert result.content == b'{"a":1}'
        assert result.content_length == len(result.content)

    def test_json_body_with_non_ascii(self):
        result = restream_body("POST", {"bal": "£10"}, JSON)
        assert json.loads(result.content.decode("utf-8")) == {"bal": "£10"}
        assert result.content_length == len("{\"bal\":\"£10\"}".encode("utf-8"))

    def test_form_body(self):
        result = restream_body("POST", {"bal": "1000.00", "tags": ["a", "b"]}, FORM)
        assert parse_qs(result.content.decode()) == {"bal": ["1000.00"], "tags": ["a", "b"]}
        assert result.content_length == len(result.content)

    @pytest.mark.parametrize("method", ["GET", "HEAD", "get"])
    def test_get_and_head_never_carry_a_body(self, method):
        assert restream_body(method, {"a": 1}, JSON) is None

    @pytest.mark.parametrize("parsed", [None, {}])
    def test_empty_parsed_body_is_a_noop(self, parsed):
        assert restream_body("POST", parsed, JSON) is None

    def test_unsupported_type_forwards_raw_bytes(self):
        result = restream_body("PUT", {"a": 1}, TEXT, raw_body=b"raw text")
        assert result.content == b"raw text"

    def test_unsupported_type_without_raw_bytes_is_dropped(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert restream_body("POST", {"a": 1}, TEXT) is None
        assert "Dropping parsed body" in caplog.text

    def test_serialization_failure_degrades_to_empty_body(self, caplog):
        with caplog.at_level(logging.ERROR):
            result = restream_body("POST", {"a": object()}, JSON)
        assert result is not None
        assert result.content == b""
        assert result.content_length == 0
        assert "empty body" in caplog.text

    def test_injected_logger_is_used(self):
        records = []

        class Collect(logging.Handler):
            def emit(self, record):
                records.append(record)

        log = logging.getLogger("test.restreamer")
        log.addHandler(Collect())
        log.propagate = False
        restream_body("POST", {"a": 1}, TEXT, log=log)
        assert len(records) == 1


def test_serialize_body_raises_on_unserializable_value():
    with pytest.raises(BodyReencodeError):
        serialize_body({"a": {1, 2}}, JSON)


def test_serialize_body_returns_none_for_other_types():
    assert serialize_body({"a": 1}, TEXT) is None
