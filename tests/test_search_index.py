"""Tests for the search_index.js reader and writer."""

from pathlib import Path

import pytest

from documenter_search_index import search_index
from documenter_search_index.models import SearchIndex, SearchRecord
from documenter_search_index.schema import SearchIndexFormatError

FIXTURE = Path(__file__).parent / "fixtures" / "search_index.js"


@pytest.fixture
def sample_index() -> SearchIndex:
    """Create a small search index.

    Returns:
        SearchIndex with a section, a page and a function record.
    """
    return SearchIndex(
        records=[
            SearchRecord(location="#Utilities", page="Home", title="Utilities", text="", category="section"),
            SearchRecord(
                location="",
                page="Home",
                title="Home",
                text='Several utilities are provided for "generic" programming.',
                category="page",
            ),
            SearchRecord(
                location="#StructTypes.foreachfield",
                page="Home",
                title="StructTypes.foreachfield",
                text="StructTypes.foreachfield(f, x::T) => Nothing\n\nApply f to each field.\n",
                category="function",
            ),
        ]
    )


def test_load_generated_index() -> None:
    """Test loading an index produced by the documentation generator."""
    index = search_index.load(FIXTURE)

    assert index.variable == "documenterSearchIndex"
    assert len(index) == 63
    assert index.records[0] == SearchRecord(
        location="#StructTypes.jl",
        page="Home",
        title="StructTypes.jl",
        text="",
        category="section",
    )
    assert index.category_counts() == {"section": 14, "page": 29, "type": 9, "function": 11}
    assert index.pages() == ["Home"]


def test_dumps_reproduces_generated_file() -> None:
    """Test that writing a loaded index gives back the generator's bytes."""
    source = FIXTURE.read_text(encoding="utf-8")

    assert search_index.dumps(search_index.loads(source)) == source


def test_dumps_layout(sample_index: SearchIndex) -> None:
    """Test the assignment layout and compact record encoding."""
    output = search_index.dumps(sample_index)

    assert output.startswith('var documenterSearchIndex = {"docs":\n[{"location":"#Utilities","page":"Home",')
    assert output.endswith('"category":"function"}]\n}\n')
    assert '\\"generic\\"' in output
    assert "Nothing\\n\\nApply" in output


def test_dump_and_load(sample_index: SearchIndex, tmp_path: Path) -> None:
    """Test writing a file and reading it back."""
    path = tmp_path / "search_index.js"

    search_index.dump(sample_index, path)

    assert search_index.load(path) == sample_index


def test_dumps_keeps_non_ascii(tmp_path: Path) -> None:
    """Test that non-ASCII text is written unescaped."""
    index = SearchIndex(
        records=[SearchRecord(location="", page="Übersicht", title="Übersicht", text="λ → μ", category="page")]
    )

    output = search_index.dumps(index)

    assert "Übersicht" in output
    assert "λ → μ" in output
    assert search_index.loads(output) == index


def test_loads_custom_variable_and_semicolon() -> None:
    """Test a different variable name and a trailing semicolon."""
    source = 'var $index_2 = {"docs":[{"location":"","page":"A","title":"A","text":"t","category":"page"}]};\n'

    index = search_index.loads(source)

    assert index.variable == "$index_2"
    assert len(index) == 1
    assert search_index.dumps(index).startswith('var $index_2 = {"docs":\n[')


def test_loads_empty_docs() -> None:
    """Test an index without records."""
    index = search_index.loads('var documenterSearchIndex = {"docs":\n[]\n}\n')

    assert len(index) == 0
    assert index.pages() == []


def test_loads_ignores_extra_keys() -> None:
    """Test that keys outside the record fields are dropped."""
    source = (
        'var documenterSearchIndex = {"docs":[{"location":"","page":"A","title":"A",'
        '"text":"t","category":"page","score":1}]}'
    )

    index = search_index.loads(source)

    assert index.records == [SearchRecord(location="", page="A", title="A", text="t", category="page")]


@pytest.mark.parametrize(
    ("source", "message"),
    [
        ('{"docs": []}', "assignment"),
        ('documenterSearchIndex = {"docs": []}', "assignment"),
        ('var documenterSearchIndex = {"docs": [}', "Invalid JSON"),
        ('var documenterSearchIndex = {"docs": []} extra', "Unexpected content"),
        ("var documenterSearchIndex = [1, 2]", "object payload"),
        ('var documenterSearchIndex = {"pages": []}', "'docs' array"),
        ('var documenterSearchIndex = {"docs": {}}', "'docs' array"),
        ('var documenterSearchIndex = {"docs": [], "n": NaN}', "NaN is not a JSON value"),
        ('var documenterSearchIndex = {"docs": [Infinity]}', "Infinity is not a JSON value"),
        ('var documenterSearchIndex = {"docs": [-Infinity]}', "-Infinity is not a JSON value"),
    ],
)
def test_loads_malformed_file(source: str, message: str) -> None:
    """Test that structural problems raise SearchIndexFormatError."""
    with pytest.raises(SearchIndexFormatError, match=message):
        search_index.loads(source)


def test_loads_invalid_record() -> None:
    """Test that a record violating the schema is rejected."""
    source = 'var documenterSearchIndex = {"docs":[{"location":"","page":"A","title":"A","text":"t"}]}'

    with pytest.raises(SearchIndexFormatError, match="record 0, field 'category': missing"):
        search_index.loads(source)


def test_format_error_is_value_error() -> None:
    """Test that format errors can be handled as ValueError."""
    with pytest.raises(ValueError):
        search_index.loads("")


def test_read_payload_does_not_validate_records() -> None:
    """Test that read_payload returns records as decoded."""
    variable, docs = search_index.read_payload('var idx = {"docs": [1, {"category": 2}]}')

    assert variable == "idx"
    assert docs == [1, {"category": 2}]


def test_loads_deeply_nested_payload() -> None:
    """Test that nesting beyond the decoder's depth is a format error."""
    source = 'var documenterSearchIndex = {"docs": ' + "[" * 100000 + "]" * 100000 + "}"

    with pytest.raises(SearchIndexFormatError, match="nested too deeply"):
        search_index.loads(source)


def test_failed_dump_keeps_existing_file(tmp_path: Path) -> None:
    """Test that an unencodable index does not truncate the output."""
    index = search_index.loads(
        'var documenterSearchIndex = {"docs":['
        '{"location":"","page":"A","title":"A","text":"\\ud800","category":"page"}]}'
    )
    path = tmp_path / "search_index.js"
    path.write_text("previous content")

    with pytest.raises(UnicodeEncodeError):
        search_index.dump(index, path)

    assert path.read_text() == "previous content"
