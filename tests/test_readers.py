import pytest

from kasten.errors import ZettelParseError
from kasten.models import ZettelFormat
from kasten.zettelkasten.reader import MarkdownReader, OrgReader, reader_for_format


def test_markdown_front_matter() -> None:
    text = "\n".join(
        [
            "---",
            "title: Hello",
            "tags: [a, b]",
            "---",
            "# Body",
            "",
            "Text.",
            "",
        ]
    )
    parsed = MarkdownReader().parse(text)

    assert parsed.metadata == {"title": "Hello", "tags": ["a", "b"]}
    assert parsed.body.startswith("# Body")


def test_markdown_without_front_matter() -> None:
    parsed = MarkdownReader().parse("# Just text\n")
    assert parsed.metadata == {}
    assert parsed.body == "# Just text\n"


def test_markdown_empty_front_matter() -> None:
    parsed = MarkdownReader().parse("---\n---\nbody\n")
    assert parsed.metadata == {}
    assert parsed.body.strip() == "body"


def test_markdown_invalid_yaml_is_parse_error() -> None:
    with pytest.raises(ZettelParseError, match="Invalid YAML front matter"):
        MarkdownReader().parse("---\ntitle: [unclosed\n---\nbody\n")


def test_markdown_non_mapping_front_matter_is_parse_error() -> None:
    with pytest.raises(ZettelParseError, match="must be a mapping"):
        MarkdownReader().parse("---\n- a\n- b\n---\nbody\n")


def test_org_keywords() -> None:
    parsed = OrgReader().parse("#+TITLE: Org Note\n#+TAGS: a b:c\n\nBody [[x]]")
    assert parsed.metadata == {"title": "Org Note", "tags": ["a", "b", "c"]}
    assert parsed.body == "Body [[x]]"


def test_org_property_drawer() -> None:
    parsed = OrgReader().parse(":PROPERTIES:\n:CUSTOM: value\n:END:\n#+TITLE: T\nBody")
    assert parsed.metadata == {"custom": "value", "title": "T"}
    assert parsed.body == "Body"


def test_org_unclosed_drawer_is_parse_error() -> None:
    with pytest.raises(ZettelParseError, match="never closed"):
        OrgReader().parse(":PROPERTIES:\n:ID: x\n")


def test_org_without_keywords() -> None:
    parsed = OrgReader().parse("* Heading\ntext")
    assert parsed.metadata == {}
    assert parsed.body == "* Heading\ntext"


def test_reader_registry() -> None:
    assert isinstance(reader_for_format(ZettelFormat.MARKDOWN), MarkdownReader)
    assert isinstance(reader_for_format(ZettelFormat.ORG), OrgReader)
