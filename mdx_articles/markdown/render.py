"""
Markdown rendering for article content.

Articles reference their attachments with a ``path/<original name>``
placeholder; those are swapped for public media URLs before the markdown
is rendered to HTML.

Raw HTML in article markdown is restricted to ``<img>`` tags carrying
``src``, ``alt`` and ``title``. Any other raw HTML is escaped and shows up
as text.
"""
import html
import re
from collections.abc import Iterable

from markdown_it import MarkdownIt

from mdx_articles.config import settings
from mdx_articles.schemas import FileInfo

PLACEHOLDER_PREFIX = "path/"

_IMG_TAG_RE = re.compile(r"<img\b([^<>]*?)/?>", re.IGNORECASE)
_ATTR_RE = re.compile(r"""([a-zA-Z_:][-\w:.]*)\s*=\s*(?:"([^"]*)"|'([^']*)')""")
_ALLOWED_IMG_ATTRS = ("src", "alt", "title")
_UNSAFE_URL_RE = re.compile(r"^\s*(javascript|vbscript|data):", re.IGNORECASE)


def _clean_img(match: re.Match) -> str:
    attrs = {}
    for attr in _ATTR_RE.finditer(match.group(1)):
        name = attr.group(1).lower()
        value = attr.group(2) if attr.group(2) is not None else attr.group(3)
        if name in _ALLOWED_IMG_ATTRS and name not in attrs:
            attrs[name] = value
    if _UNSAFE_URL_RE.match(attrs.get("src", "")):
        del attrs["src"]
    rendered = "".join(f' {name}="{html.escape(value)}"' for name, value in attrs.items())
    return f"<img{rendered} />"


def sanitize_raw_html(content: str) -> str:
    """Keep allowlisted ``<img>`` tags from *content* and escape the rest."""
    parts = []
    last = 0
    for match in _IMG_TAG_RE.finditer(content):
        parts.append(html.escape(content[last:match.start()]))
        parts.append(_clean_img(match))
        last = match.end()
    parts.append(html.escape(content[last:]))
    return "".join(parts)


def _raw_html(tokens, idx, options, env):
    return sanitize_raw_html(tokens[idx].content)


_md = MarkdownIt("commonmark", {"html": True}).enable("table").enable("strikethrough")
_md.renderer.rules["html_inline"] = _raw_html
_md.renderer.rules["html_block"] = _raw_html


def media_url(relative_path: str) -> str:
    """Public URL of a file stored under ``MEDIA_ROOT`` at *relative_path*."""
    return f"{settings.MEDIA_URL.rstrip('/')}/{relative_path.lstrip('/')}"


def render_file_paths(markdown: str, files: Iterable[FileInfo]) -> str:
    # Uploads are matched to references ignoring case, so placeholders are too.
    for file in files:
        url = media_url(file.path)
        markdown = re.sub(
            re.escape(f"{PLACEHOLDER_PREFIX}{file.original_name}"),
            lambda _: url,
            markdown,
            flags=re.IGNORECASE,
        )
    return markdown


def render_markdown(markdown: str, files: Iterable[FileInfo] = ()) -> str:
    """
    Render *markdown* to HTML after resolving file placeholders.

    Deterministic: the same markdown and file set always yield the same HTML.
    """
    return _md.render(render_file_paths(markdown, files))
