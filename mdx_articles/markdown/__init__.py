from mdx_articles.markdown.parsing import (
    extract_headings,
    extract_referenced_files,
    sanitize_markdown_to_text,
)
from mdx_articles.markdown.render import render_file_paths, render_markdown

__all__ = [
    "extract_headings",
    "extract_referenced_files",
    "render_file_paths",
    "render_markdown",
    "sanitize_markdown_to_text",
]
