from __future__ import annotations

from pathlib import Path

import pytest
import requests

from grokhtml import sources, tree
from grokhtml.compiler import compile_expression
from grokhtml.config import Settings
from grokhtml.document import Document, open_document
from grokhtml.errors import DocumentError
from grokhtml.runtime import search_document

LATIN1_PAGE = (
    '<html><head><meta charset="iso-8859-1"></head>'
    "<body><p>caf\xe9 = ok</p></body></html>"
).encode("latin-1")


def test_from_bytes_honours_declared_charset():
    document = Document.from_bytes(LATIN1_PAGE)
    machine = compile_expression('p -> text:"(.*) = ok"')

    assert search_document(document, "\\1", machine) == "café"
    assert document.encoding is not None
    assert document.encoding.lower() in {"iso-8859-1", "windows-1252", "latin-1", "latin1"}


def test_explicit_encoding_overrides_detection():
    data = "<p>grüße</p>".encode("utf-8")

    document = Document.from_bytes(data, encoding="utf-8")

    assert document.root.children[0].children[0].content == "grüße"


def test_from_string_keeps_text_as_given():
    document = Document.from_string("<p>naïve</p>")

    paragraph = document.root.children[0]
    assert paragraph.tag == "p"
    assert paragraph.get_text() == "naïve"
    assert document.encoding is None


def test_malformed_markup_is_recovered():
    document = Document.from_string("<table><tr><td>one<td>two</table></b></i>")

    assert "one" in document.root.get_text()
    assert "two" in document.root.get_text()


def test_class_attribute_keeps_raw_value():
    document = Document.from_string('<div class="a  b">x</div>')

    assert document.root.children[0].get("CLASS") == "a  b"


def test_wrong_input_types_are_document_errors():
    with pytest.raises(DocumentError):
        Document.from_bytes("<p>text</p>")  # type: ignore[arg-type]
    with pytest.raises(DocumentError):
        Document.from_string(b"<p>bytes</p>")  # type: ignore[arg-type]


def test_unknown_parser_is_a_document_error():
    with pytest.raises(DocumentError, match="not available"):
        Document.from_string("<p>x</p>", settings=Settings(parser="no-such-parser"))


def test_from_uri_reads_paths_and_file_uris(tmp_path: Path):
    page = tmp_path / "test.html"
    page.write_bytes(b"<table><tr><td>foo = disk</td></tr></table>")
    machine = compile_expression('tr -> td -> text:"foo = (.*)"')

    with Document.from_uri(str(page)) as by_path:
        assert search_document(by_path, "\\1", machine) == "disk"
    with Document.from_uri(page.as_uri()) as by_uri:
        assert search_document(by_uri, "\\1", machine) == "disk"
        assert by_uri.source == page.as_uri()
    assert by_uri.closed


def test_from_uri_missing_file_is_a_document_error(tmp_path: Path):
    with pytest.raises(DocumentError):
        Document.from_uri(str(tmp_path / "missing.html"))


def test_from_uri_fetches_http_with_requests(monkeypatch):
    calls = []

    class DummyResponse:
        content = b"<h1>Remote</h1>"

        def raise_for_status(self):
            return None

    def fake_get(url, headers=None, timeout=None):
        calls.append((url, headers, timeout))
        return DummyResponse()

    monkeypatch.setattr("grokhtml.sources.requests.get", fake_get)

    settings = Settings(timeout=3, user_agent="tester/1.0")
    document = Document.from_uri("https://example.com/page", settings=settings)

    assert document.root.children[0].tag == "h1"
    assert calls == [("https://example.com/page", {"User-Agent": "tester/1.0"}, 3)]


def test_http_failures_become_document_errors(monkeypatch):
    def failing_get(*args, **kwargs):
        raise requests.ConnectionError("boom")

    monkeypatch.setattr("grokhtml.sources.requests.get", failing_get)

    with pytest.raises(DocumentError, match="boom"):
        Document.from_uri("http://example.com/")


def test_unsupported_scheme_is_rejected():
    with pytest.raises(DocumentError, match="Unsupported URI scheme"):
        sources.fetch("gopher://example.com/")


def test_custom_fetcher_drives_document_from_memory():
    seen = []

    def memory_fetcher(uri: str, settings: Settings) -> bytes:
        seen.append(uri)
        return b"<p>from memory</p>"

    document = Document.from_uri("mem://page", fetcher=memory_fetcher)

    assert seen == ["mem://page"]
    assert document.root.get_text() == "from memory"


def test_open_document_dispatches_on_type(tmp_path: Path):
    page = tmp_path / "page.html"
    page.write_bytes(b"<b>file</b>")

    assert open_document(b"<i>bytes</i>").root.children[0].tag == "i"
    assert open_document(str(page)).root.children[0].tag == "b"


def test_close_is_idempotent():
    document = Document.from_string("<p>x</p>")

    document.close()
    document.close()

    assert document.closed
    assert "closed" in repr(document)


def test_tree_adapter_accessors():
    document = Document.from_string('<a HREF="x" title="">link</a>')

    anchor = tree.children(document.root)[0]
    assert tree.tag(anchor) == "a"
    assert tree.attr(anchor, "href") == "x"
    assert tree.attr(anchor, "title") == ""
    assert tree.attr(anchor, "rel") is None
    assert tree.text(tree.children(anchor)[0]) == "link"
