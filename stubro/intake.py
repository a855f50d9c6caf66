"""
Turning uploaded files, pasted text and YouTube links into plain source text.
"""
import io
import logging
import re
from collections import namedtuple

from docx import Document
from langchain_text_splitters import RecursiveCharacterTextSplitter
from pypdf import PdfReader
from youtube_transcript_api import YouTubeTranscriptApi
from youtube_transcript_api._errors import CouldNotRetrieveTranscript

from .errors import AIServiceError, ExtractionError

logger = logging.getLogger(__name__)

PDF_MIME = "application/pdf"
MIN_SOURCE_CHARS = 50
MIN_PDF_CHARS = 10

SourceFile = namedtuple("SourceFile", ["name", "mime_type", "data"])

_YOUTUBE_PATTERNS = [
    r"(?:youtube\.com/watch\?(?:.*&)?v=)([A-Za-z0-9_-]{11})",
    r"youtu\.be/([A-Za-z0-9_-]{11})",
    r"youtube\.com/shorts/([A-Za-z0-9_-]{11})",
    r"youtube(?:-nocookie)?\.com/embed/([A-Za-z0-9_-]{11})",
    r"youtube\.com/live/([A-Za-z0-9_-]{11})",
    r"youtube\.com/v/([A-Za-z0-9_-]{11})",
]


def from_upload(uploaded_file):
    """Wrap a Streamlit ``UploadedFile``."""
    return SourceFile(uploaded_file.name, uploaded_file.type or "", uploaded_file.getvalue())


def _pdf_text(data):
    reader = PdfReader(io.BytesIO(data))
    pages = []
    for number, page in enumerate(reader.pages, start=1):
        try:
            pages.append(page.extract_text())
        except Exception as e:
            logger.warning("Skipping unreadable PDF page %d: %s", number, e)

    text = "\n".join(page for page in pages if page)
    if len(text.strip()) < MIN_PDF_CHARS:
        raise ExtractionError("PDF seems to be empty or contains only scanned images without OCR.")
    return text


def _docx_text(data):
    document = Document(io.BytesIO(data))
    lines = [p.text for p in document.paragraphs if p.text.strip()]
    for table in document.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if cells:
                lines.append(" | ".join(cells))
    return "\n".join(lines)


def extract_file_text(name, mime_type, data):
    """Return the text of one uploaded file, dispatching on its MIME type."""
    mime_type = mime_type or ""
    if mime_type == PDF_MIME:
        text = _pdf_text(data)
    elif "wordprocessingml" in mime_type:
        text = _docx_text(data)
    else:
        text = data.decode("utf-8", errors="replace")

    if not text or not text.strip():
        raise ExtractionError(f"No readable text found in {name}.")
    return text


def combine_files(files, progress=None):
    """Extract every file in order and join them under per-file headers.

    The first file that fails aborts the whole upload.
    """
    if not files:
        raise ExtractionError("No files selected.")
    parts = []
    for source in files:
        if progress is not None:
            progress(f"Extracting: {source.name}...")
        try:
            text = extract_file_text(source.name, source.mime_type, source.data)
        except Exception as e:
            logger.error("Extraction failed for %s: %s", source.name, e)
            raise ExtractionError(
                f"Failed to decode {source.name}. It might be encrypted or a scanned image. "
                "Try converting to text or using OCR."
            ) from e
        parts.append(f"--- SOURCE: {source.name} ---\n{text}")
    return "\n\n".join(parts)


def parse_youtube_id(url):
    for pattern in _YOUTUBE_PATTERNS:
        match = re.search(pattern, url or "")
        if match:
            return match.group(1)
    return None


def fetch_youtube_transcript(url, ai=None, transcript_api=None):
    """Caption text for a video, falling back to the model when there is none."""
    video_id = parse_youtube_id(url)
    if video_id is None:
        raise ExtractionError("Invalid YouTube URL.")
    api = transcript_api or YouTubeTranscriptApi()
    try:
        transcript = api.fetch(video_id)
        text = " ".join(snippet.text for snippet in transcript).strip()
        if text:
            return text
        logger.info("Empty caption track for %s", video_id)
    except CouldNotRetrieveTranscript as e:
        logger.info("No captions for %s: %s", video_id, e)

    if ai is None:
        raise ExtractionError("No transcript is available for this video.")
    try:
        return ai.fetch_youtube_transcript(url)
    except AIServiceError as e:
        raise ExtractionError(str(e)) from e


def require_chapter(chapter_info):
    if not chapter_info or not chapter_info.strip():
        raise ExtractionError("Enter chapter name.")
    return chapter_info.strip()


def resolve_source(source, text=None, files=None, url=None, ai=None, progress=None):
    """Collect source text for a new session from one of the input tabs.

    ``source`` is ``"paste"``, ``"file"`` or ``"youtube"``. Web search runs in
    the background instead (see ``ContentSession.start_background_search``).
    """
    if source == "paste":
        content = text or ""
    elif source == "file":
        content = combine_files(files, progress=progress)
    elif source == "youtube":
        if not url or not url.strip():
            raise ExtractionError("Enter YouTube URL.")
        content = fetch_youtube_transcript(url.strip(), ai=ai)
    else:
        raise ValueError(f"Unknown source: {source}")

    if len(content.strip()) < MIN_SOURCE_CHARS:
        raise ExtractionError("Source data too short. Provide more academic content.")
    return content


def fit_to_budget(text, max_chars):
    """Trim text to at most ``max_chars``, cutting on paragraph or sentence breaks."""
    if max_chars <= 0:
        return ""
    if len(text) <= max_chars:
        return text
    text_splitter = RecursiveCharacterTextSplitter(
        chunk_size=min(max_chars, 4000),
        chunk_overlap=0,
        separators=["\n\n", "\n", ". ", " ", ""],
    )
    kept, used = [], 0
    for chunk in text_splitter.split_text(text):
        cost = len(chunk) + (2 if kept else 0)
        if used + cost > max_chars:
            break
        kept.append(chunk)
        used += cost
    logger.info("Source trimmed from %d to %d characters", len(text), used)
    return "\n\n".join(kept)
