import json
import logging
import sys

import pytest

from cvforge.errors import ExtractionFailed, InvalidInput
from cvforge.state import Attachment
from cvforge.utils import JsonFormatter, PIIMask, data_url, extract_json_block, load_document


def test_text_cv_is_read_as_text(tmp_path):
    p = tmp_path / "cv.txt"
    p.write_text("Jan Kowalski\nMagazynier", encoding="utf-8")
    assert load_document(p) == "Jan Kowalski\nMagazynier"


def test_pdf_cv_is_an_attachment(tmp_path):
    p = tmp_path / "cv.pdf"
    p.write_bytes(b"%PDF-1.7")
    doc = load_document(p)
    assert isinstance(doc, Attachment)
    assert (doc.name, doc.mime_type, doc.data) == ("cv.pdf", "application/pdf", b"%PDF-1.7")


def test_unsupported_type_is_rejected(tmp_path):
    p = tmp_path / "cv.exe"
    p.write_bytes(b"MZ")
    with pytest.raises(InvalidInput):
        load_document(p)


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_document(tmp_path / "nope.pdf")


def test_data_url():
    att = Attachment(name="a.jpg", mime_type="image/jpeg", data=b"abc")
    assert data_url(att) == "data:image/jpeg;base64,YWJj"


def test_extract_json_block():
    assert extract_json_block('Here you go:\n{"a": {"b": 1}}\nThanks') == '{"a": {"b": 1}}'
    assert extract_json_block("```json\n{}\n```") == "{}"


def test_pii_mask_hides_contacts():
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "contact %s or %s",
                               ("jan.kowalski@example.com", "+48 600 123 456"), None)
    PIIMask().filter(record)
    message = record.getMessage()
    assert "jan.kowalski@***" in message
    assert "600 123 456" not in message


def test_pii_mask_renders_exception_args():
    err = ExtractionFailed("bad value jan.kowalski@example.com +48 600 123 456")
    record = logging.LogRecord("x", logging.WARNING, __file__, 1, "%s failed: %s", ("extraction", err), None)
    PIIMask().filter(record)
    message = record.getMessage()
    assert message.startswith("extraction failed: bad value jan.kowalski@***")
    assert "example.com" not in message
    assert "600 123 456" not in message


def test_pii_mask_covers_traceback_text():
    try:
        raise ExtractionFailed("no reply for anna@example.org")
    except ExtractionFailed:
        record = logging.LogRecord("x", logging.ERROR, __file__, 1, "crashed", (), sys.exc_info())
    PIIMask().filter(record)
    assert "ExtractionFailed" in record.exc_text
    assert "anna@example.org" not in record.exc_text
    assert "anna@***" in logging.Formatter().format(record)


def test_json_log_lines_stay_valid():
    record = logging.LogRecord("cvforge", logging.INFO, __file__, 1, 'said "hi" to %s', ("bob@example.com",), None)
    PIIMask().filter(record)
    line = json.loads(JsonFormatter().format(record))
    assert line["msg"] == 'said "hi" to bob@***'
    assert (line["lvl"], line["logger"]) == ("INFO", "cvforge")


def test_non_utf8_text_cv_is_invalid_input(tmp_path):
    p = tmp_path / "cv.txt"
    p.write_bytes(b"Jan \xff\xfe Kowalski")
    with pytest.raises(InvalidInput, match="not UTF-8"):
        load_document(p)
