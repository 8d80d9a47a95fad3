"""
Content-Type Parsing Unit Tests
"""

import pytest

from rewrite_proxy.common.content_type import ContentType, MediaKind


def test_parse_mime_and_params():
    content_type = ContentType.parse('Text/HTML; Charset="UTF-8"; boundary=x')
    assert content_type.mime_type == "text/html"
    assert content_type.params == {"charset": "UTF-8", "boundary": "x"}
    assert content_type.charset == "UTF-8"


def test_parameter_order_does_not_matter():
    a = ContentType.parse("text/html; charset=utf-8; q=1")
    b = ContentType.parse("text/html;q=1;charset=utf-8")
    assert a == b


@pytest.mark.parametrize("value", [None, ""])
def test_absent_header(value):
    content_type = ContentType.parse(value)
    assert content_type.mime_type == ""
    assert content_type.kind is MediaKind.OTHER
    assert content_type.charset is None


@pytest.mark.parametrize(
    "value,kind",
    [
        ("text/html", MediaKind.HTML),
        ("TEXT/HTML; charset=iso-8859-1", MediaKind.HTML),
        ("application/xhtml+xml", MediaKind.HTML),
        ("application/json", MediaKind.JSON),
        ("application/json; charset=utf-8", MediaKind.JSON),
        ("application/problem+json", MediaKind.JSON),
        ("application/x-www-form-urlencoded", MediaKind.FORM),
        ("text/plain", MediaKind.OTHER),
        ("multipart/form-data; boundary=abc", MediaKind.OTHER),
        # Substring matches are not enough
        ("text/htmlx", MediaKind.OTHER),
        ("application/javascript; note=text/html", MediaKind.OTHER),
    ],
)
def test_kind(value, kind):
    assert ContentType.parse(value).kind is kind


def test_malformed_params_are_skipped():
    content_type = ContentType.parse("text/html; ; novalue; =x; charset=utf-8")
    assert content_type.params == {"charset": "utf-8"}


def test_str_round_trips_canonical_form():
    assert str(ContentType.parse("TEXT/HTML;charset=utf-8")) == "text/html; charset=utf-8"
    assert str(ContentType.parse("text/plain")) == "text/plain"
