from __future__ import annotations
import base64
import json
import logging
import mimetypes
import re
from pathlib import Path
from typing import Union

from .errors import InvalidInput
from .state import Attachment

# Types the engine reads natively; nothing is parsed locally.
SUPPORTED_MIME_TYPES = {
    "application/pdf",
    "image/png",
    "image/jpeg",
    "image/webp",
    "image/heic",
    "image/heif",
}
TEXT_SUFFIXES = {".txt", ".md"}

mimetypes.add_type("image/webp", ".webp")
mimetypes.add_type("image/heic", ".heic")
mimetypes.add_type("image/heif", ".heif")


def read_text_file(path: str | Path) -> str:
    p = Path(path)
    try:
        return p.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise InvalidInput(f"CV text file is not UTF-8: {p.name}") from e


def guess_mime_type(path: str | Path) -> str:
    mime, _ = mimetypes.guess_type(str(path))
    return mime or "application/octet-stream"


def read_attachment(path: str | Path) -> Attachment:
    p = Path(path)
    mime = guess_mime_type(p)
    if mime not in SUPPORTED_MIME_TYPES:
        raise InvalidInput(f"Unsupported CV file type {mime!r} ({p.name}). Use PDF, an image, .txt or .md")
    return Attachment(name=p.name, mime_type=mime, data=p.read_bytes())


def load_document(path: str | Path) -> Union[str, Attachment]:
    """Plain-text CVs come back as text, everything else as a binary attachment."""
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)
    if p.suffix.lower() in TEXT_SUFFIXES:
        return read_text_file(p)
    return read_attachment(p)


def encode_base64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def data_url(attachment: Attachment) -> str:
    return f"data:{attachment.mime_type};base64,{encode_base64(attachment.data)}"


def extract_json_block(text: str) -> str:
    """Extract JSON from an engine response, handling code fences and finding the first {...} block."""
    t = text.strip()
    # Strip code fences if any
    t = re.sub(r"^```[a-zA-Z]*\n|```$", "", t, flags=re.MULTILINE)
    m = re.search(r"\{[\s\S]*\}", t)
    if m:
        return t[m.start():m.end()]
    return t


# -------- Logging --------
EMAIL_RE = re.compile(r"([A-Za-z0-9._%+-]+)@([A-Za-z0-9.-]+\.[A-Za-z]{2,})")
PHONE_RE = re.compile(r"(?<!\w)(\+?\d[\d \-]{7,}\d)")


def _mask(value: str) -> str:
    value = EMAIL_RE.sub(r"\1@***", value)
    return PHONE_RE.sub("***", value)


class PIIMask(logging.Filter):
    """Masks candidate e-mail addresses and phone numbers in log records.

    Arguments are rendered into the message before masking, so exception
    objects and other non-string arguments are covered. Traceback text is
    rendered and masked as well.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = _mask(record.getMessage())
        record.args = ()
        if record.exc_info and not record.exc_text:
            record.exc_text = logging.Formatter().formatException(record.exc_info)
        if record.exc_text:
            record.exc_text = _mask(record.exc_text)
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        line = {
            "ts": self.formatTime(record, self.datefmt),
            "lvl": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            line["exc"] = record.exc_text
        return json.dumps(line, ensure_ascii=False)


def setup_logger(level: str = "INFO", json_mode: bool = False) -> logging.Logger:
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler()
    if json_mode:
        handler.setFormatter(JsonFormatter(datefmt="%Y-%m-%d %H:%M:%S"))
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s",
                                               datefmt="%Y-%m-%d %H:%M:%S"))
    handler.addFilter(PIIMask())
    root.addHandler(handler)

    # provider HTTP clients log every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("google_genai").setLevel(logging.WARNING)
    return root
