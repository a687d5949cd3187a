import pytest

from engram.markdown import parse_heading, parse_markdown
from engram.symbols import SymbolKind


def test_parse_markdown_headings():
    content = (
        "# Title\n\nSome intro text.\n\n## Section One\n\nContent here.\n\n"
        "## Section Two\n\nMore content.\n"
    )
    result = parse_markdown(content, "README.md")
    names = [s.name for s in result.symbols]
    assert "Title" in names
    assert "Section One" in names
    assert "Section Two" in names


def test_section_lines_and_body():
    content = (
        "# Title\n\nSome intro text.\n\n## Section One\n\nContent here.\n\n"
        "## Section Two\n\nMore content.\n"
    )
    result = parse_markdown(content, "README.md")
    title, one, two = result.symbols
    assert (title.line_start, title.line_end) == (1, 4)
    assert title.body == "# Title\n\nSome intro text.\n"
    assert (one.line_start, one.line_end) == (5, 8)
    assert (two.line_start, two.line_end) == (9, 11)
    assert two.body == "## Section Two\n\nMore content."


def test_parse_markdown_no_headings():
    content = "Just some plain text without any headings.\nAnother line.\n"
    result = parse_markdown(content, "notes.md")
    assert len(result.symbols) == 1
    sym = result.symbols[0]
    assert sym.name == "notes"
    assert sym.body == content
    assert (sym.line_start, sym.line_end) == (1, 2)


def test_parse_markdown_empty():
    result = parse_markdown("", "empty.md")
    assert result.symbols == []
    assert result.language == "markdown"


def test_whitespace_only_has_no_symbols():
    assert parse_markdown("   \n\n", "blank.md").symbols == []


def test_parse_markdown_nested_headings():
    content = "# Top\n\n## Sub\n\n### Deep\n\nContent.\n"
    result = parse_markdown(content, "doc.md")
    assert len(result.symbols) == 3


def test_doc_symbol_has_searchable_content():
    content = (
        "# API Reference\n\nThe authentication endpoint accepts JWT tokens.\n"
        "Use POST /api/auth with Bearer header.\n"
    )
    result = parse_markdown(content, "api.md")
    sym = result.symbols[0]
    assert "JWT tokens" in sym.docstring
    assert sym.language == "markdown"
    assert sym.kind is SymbolKind.MODULE
    assert sym.signature == "# API Reference"
    assert sym.scope_chain == ["API Reference"]


def test_docstring_is_truncated_to_500_chars():
    content = "# Long\n" + "x" * 1000 + "\n"
    sym = parse_markdown(content, "long.md").symbols[0]
    assert len(sym.docstring) == 500
    assert len(sym.body) > 500


def test_ids_depend_on_file_but_canonical_does_not():
    content = "# Same\n\nbody\n"
    a = parse_markdown(content, "a.md").symbols[0]
    b = parse_markdown(content, "b.md").symbols[0]
    assert a.id != b.id
    assert a.canonical_id == b.canonical_id
    assert a.full_hash == b.full_hash


@pytest.mark.parametrize(
    "line, expected",
    [
        ("# Title", (1, "Title")),
        ("### Deep  ", (3, "Deep")),
        ("###### Six", (6, "Six")),
        ("####### Seven", None),
        ("#", None),
        ("##   ", None),
        ("plain text", None),
        ("#NoSpace", (1, "NoSpace")),
    ],
)
def test_parse_heading(line, expected):
    assert parse_heading(line) == expected


def test_indented_heading_is_recognised():
    result = parse_markdown("   ## Indented\ntext\n", "x.md")
    assert [s.name for s in result.symbols] == ["Indented"]