"""Pure text analyzers over raw article markdown."""
import re

# <img ... src="..."> or ![alt](path)
_FILE_REF_RE = re.compile(
    r"""<img\s+[^>]*src=["']([^"']+)["'][^>]*>|!\[[^\]]*\]\(([^)]+)\)"""
)
_HEADING_RE = re.compile(r"^#{1,6}[ \t]+(.+)$", re.MULTILINE)

_HTML_TAG_RE = re.compile(r"<[^>]*>")
_IMAGE_RE = re.compile(r"!\[([^\]]*)\]\([^)]*\)")
_LINK_RE = re.compile(r"\[([^\]]+)\]\([^)]*\)")
_HEADING_MARK_RE = re.compile(r"^#{1,6}\s*", re.MULTILINE)
_FORMATTING_RE = re.compile(r"[*_~`]")
_WHITESPACE_RE = re.compile(r"\s+")


def extract_referenced_files(markdown: str) -> list[str]:
    """
    Return the file name (last path segment) of every image reference in
    *markdown*, in order of appearance. Duplicates are kept.
    """
    files: list[str] = []
    for match in _FILE_REF_RE.finditer(markdown):
        ref = match.group(1) or match.group(2)
        if not ref:
            continue
        name = ref.split("/")[-1]
        if name:
            files.append(name)
    return files


def extract_headings(markdown: str) -> list[str]:
    """Return the text of every ATX heading in *markdown*, in document order."""
    return [m.group(1).strip() for m in _HEADING_RE.finditer(markdown) if m.group(1).strip()]


def sanitize_markdown_to_text(markdown: str) -> str:
    """Reduce *markdown* to plain searchable text."""
    text = _HTML_TAG_RE.sub("", markdown)
    text = _IMAGE_RE.sub(r"\1", text)
    text = _LINK_RE.sub(r"\1", text)
    text = _HEADING_MARK_RE.sub("", text)
    text = _FORMATTING_RE.sub("", text)
    return _WHITESPACE_RE.sub(" ", text).strip()
