"""
Markdown analyzer and renderer tests: pure functions, no database.
"""
from mdx_articles.markdown import (
    extract_headings,
    extract_referenced_files,
    render_file_paths,
    render_markdown,
    sanitize_markdown_to_text,
)
from mdx_articles.schemas import FileInfo


# ---------------------------------------------------------------------------
# extract_headings
# ---------------------------------------------------------------------------

def test_extract_headings_in_document_order():
    markdown = "# First\n\nsome text\n\n## Second\n### Third  \n"
    assert extract_headings(markdown) == ["First", "Second", "Third"]


def test_extract_headings_all_levels():
    markdown = "\n".join(f"{'#' * level} Level {level}" for level in range(1, 7))
    assert extract_headings(markdown) == [f"Level {level}" for level in range(1, 7)]


def test_extract_headings_ignores_non_headings():
    markdown = "plain line\n####### seven hashes\n#nospace\n  # indented\ntext # not a heading"
    assert extract_headings(markdown) == []


def test_extract_headings_strips_surrounding_whitespace():
    assert extract_headings("##    Padded title   ") == ["Padded title"]


def test_extract_headings_empty_input():
    assert extract_headings("") == []


# ---------------------------------------------------------------------------
# extract_referenced_files
# ---------------------------------------------------------------------------

def test_extract_referenced_files_markdown_and_html():
    markdown = (
        "Intro ![cat](path/cat.png)\n"
        '<img class="wide" src="https://cdn.example.com/img/dog.jpg" alt="dog">\n'
        "![](bird.gif)"
    )
    assert extract_referenced_files(markdown) == ["cat.png", "dog.jpg", "bird.gif"]


def test_extract_referenced_files_keeps_duplicates():
    markdown = "![a](path/one.png) ![b](path/two.png) ![c](other/one.png)"
    assert extract_referenced_files(markdown) == ["one.png", "two.png", "one.png"]


def test_extract_referenced_files_single_quotes():
    assert extract_referenced_files("<img src='path/x.svg'>") == ["x.svg"]


def test_extract_referenced_files_ignores_links():
    assert extract_referenced_files("[not an image](path/doc.pdf)") == []


def test_extract_referenced_files_trailing_slash_skipped():
    assert extract_referenced_files("![dir](path/folder/)") == []


# ---------------------------------------------------------------------------
# sanitize_markdown_to_text
# ---------------------------------------------------------------------------

def test_sanitize_markdown_to_text():
    markdown = "# Title\n\nSome **bold** and _em_ text with [a link](http://x) ![alt text](p.png) <b>tag</b>"
    assert sanitize_markdown_to_text(markdown) == (
        "Title Some bold and em text with a link alt text tag"
    )


def test_sanitize_markdown_to_text_only_markup_is_empty():
    assert sanitize_markdown_to_text("  ** __ ~~  <br/>  ") == ""


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def test_render_file_paths_replaces_placeholders():
    files = [FileInfo(original_name="cat.png", path="articles/1/abc.png")]
    rendered = render_file_paths("![cat](path/cat.png) ![cat](path/cat.png)", files)
    assert rendered == "![cat](/media/articles/1/abc.png) ![cat](/media/articles/1/abc.png)"


def test_render_file_paths_leaves_unknown_files():
    files = [FileInfo(original_name="cat.png", path="articles/1/abc.png")]
    assert render_file_paths("![dog](path/dog.png)", files) == "![dog](path/dog.png)"


def test_render_markdown_produces_html_with_media_urls():
    files = [FileInfo(original_name="cat.png", path="articles/1/abc.png")]
    html = render_markdown("# Hello\n\n![cat](path/cat.png)", files)
    assert "<h1>Hello</h1>" in html
    assert 'src="/media/articles/1/abc.png"' in html


def test_render_markdown_is_deterministic():
    files = [FileInfo(original_name="a.png", path="articles/2/a1.png")]
    markdown = "## Part\n\n| a | b |\n|---|---|\n| 1 | 2 |\n\n![a](path/a.png)"
    assert render_markdown(markdown, files) == render_markdown(markdown, files)


def test_render_file_paths_ignores_case():
    files = [FileInfo(original_name="Cat.PNG", path="articles/1/abc.png")]
    assert render_file_paths("![c](path/cat.png)", files) == "![c](/media/articles/1/abc.png)"


def test_render_markdown_keeps_img_tags_with_allowed_attributes():
    files = [FileInfo(original_name="dog.jpg", path="articles/3/d.jpg")]
    html = render_markdown('<img src="path/dog.jpg" alt="dog" onerror="alert(1)" width="10">', files)
    assert '<img src="/media/articles/3/d.jpg" alt="dog" />' in html
    assert "onerror" not in html


def test_render_markdown_escapes_other_raw_html():
    html = render_markdown("<script>alert(1)</script>\n\nText with <b onclick=\"x()\">bold</b>")
    assert "<script>" not in html
    assert "&lt;script&gt;" in html
    assert "<b onclick" not in html


def test_render_markdown_drops_script_urls_from_img():
    html = render_markdown("<img src=\"javascript:alert(1)\" alt=\"x\">")
    assert "javascript:" not in html
    assert '<img alt="x" />' in html
