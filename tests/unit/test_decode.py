"""
Unit tests for content-type dispatch.
"""

import pytest

from nflfetch.core.decode import ContentKind, Decoders, charset_of, classify_content_type, kind_for_format


class TestClassify:
    """Tests for classify_content_type()."""

    @pytest.mark.parametrize(
        "content_type, expected",
        [
            ("application/json", ContentKind.JSON),
            ("application/json; charset=utf-8", ContentKind.JSON),
            ("Application/JSON", ContentKind.JSON),
            ("text/csv", ContentKind.TEXT),
            ("text/plain; charset=latin-1", ContentKind.TEXT),
            ("application/octet-stream", ContentKind.BINARY),
            ("application/vnd.apache.parquet", ContentKind.BINARY),
            ("", ContentKind.BINARY),
            (None, ContentKind.BINARY),
        ],
    )
    def test_classification(self, content_type, expected):
        assert classify_content_type(content_type) is expected

    def test_declared_formats(self):
        assert kind_for_format("csv") is ContentKind.TEXT
        assert kind_for_format(".parquet") is ContentKind.BINARY
        assert kind_for_format("JSON") is ContentKind.JSON
        assert kind_for_format("unknown") is ContentKind.BINARY
        assert kind_for_format(ContentKind.TEXT) is ContentKind.TEXT

    def test_charset(self):
        assert charset_of('text/csv; charset="ISO-8859-1"') == "ISO-8859-1"
        assert charset_of("text/csv") == "utf-8"
        assert charset_of(None) == "utf-8"


class TestDecoders:
    """Tests for the decoder slots."""

    def test_json(self):
        assert Decoders().decode(ContentKind.JSON, b'{"a": [1, 2]}') == {"a": [1, 2]}

    def test_empty_json_body(self):
        assert Decoders().decode(ContentKind.JSON, b"  ") is None

    def test_invalid_json_raises(self):
        with pytest.raises(ValueError):
            Decoders().decode(ContentKind.JSON, b"{oops")

    def test_binary_is_untouched(self):
        assert Decoders().decode(ContentKind.BINARY, b"\x00\xff") == b"\x00\xff"

    def test_custom_slot(self):
        def parse_csv(content: bytes, content_type: str) -> list[list[str]]:
            return [line.split(",") for line in content.decode().splitlines()]

        decoders = Decoders(text=parse_csv)

        assert decoders.decode(ContentKind.TEXT, b"a,b\n1,2", "text/csv") == [["a", "b"], ["1", "2"]]
