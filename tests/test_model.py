"""Tests for the block and document model."""

from datetime import datetime, timezone

from blockdoc.adapters.idgen import SequentialId
from blockdoc.core.model import (
    Block,
    BlockType,
    Document,
    block_css_class,
    block_type_name,
    count_words,
    create_block,
    is_list_type,
    normalize_block_type,
)


def test_normalize_block_type_falls_back_to_paragraph():
    """Unknown or missing types render as paragraphs."""
    assert normalize_block_type("heading2") is BlockType.HEADING2
    assert normalize_block_type("bulletList") is BlockType.BULLET_LIST
    assert normalize_block_type("callout") is BlockType.PARAGRAPH
    assert normalize_block_type(None) is BlockType.PARAGRAPH


def test_list_types():
    """Only the three list kinds count as lists."""
    assert is_list_type("bulletList")
    assert is_list_type("orderedList")
    assert is_list_type("dashedList")
    assert not is_list_type("paragraph")
    assert not is_list_type("code")


def test_type_names_and_css():
    """Display names and style classes cover every type."""
    assert block_type_name("paragraph") == "Body"
    assert block_type_name("orderedList") == "Numbered List"
    for block_type in BlockType:
        assert block_css_class(block_type.value)
    assert "font-mono" in block_css_class("code")


def test_count_words():
    """Words are whitespace separated; empty text has none."""
    assert count_words("") == 0
    assert count_words(None) == 0
    assert count_words("   ") == 0
    assert count_words(" one two\nthree ") == 3


def test_create_block_uses_idgen():
    """Ids come from the injected generator."""
    gen = SequentialId()
    a = create_block("paragraph", "<p></p>", idgen=gen)
    b = create_block("code", "<pre><code></code></pre>", language="python", idgen=gen)
    assert (a.id, b.id) == ("1", "2")
    assert b.language == "python"


def test_create_block_default_ids_are_unique():
    """Without a generator, random ids are used."""
    ids = {create_block().id for _ in range(50)}
    assert len(ids) == 50
    assert all(len(i) == 21 for i in ids)


def test_block_dict_roundtrip_keeps_unknown_type():
    """Unknown type strings survive a load/save cycle verbatim."""
    data = {"id": "x", "type": "callout", "content": "<p>hi</p>"}
    block = Block.from_dict(data)
    assert block.type == "callout"
    assert block.block_type is BlockType.PARAGRAPH
    assert block.to_dict() == data


def test_block_language_only_serialized_for_code():
    """Language is only written out for code blocks."""
    code = Block(id="c", type="code", content="<pre><code></code></pre>", language="go")
    para = Block(id="p", type="paragraph", content="<p></p>", language="go")
    assert code.to_dict()["language"] == "go"
    assert "language" not in para.to_dict()


def test_document_to_dict_and_back():
    """Documents serialize with camelCase timestamp and owner keys."""
    created = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    doc = Document(
        id=7,
        title="Notes",
        blocks=[Block(id="a", content="<p>Hello world</p>")],
        created_at=created,
        updated_at=created,
        owner_id=3,
    )
    data = doc.to_dict()
    assert data["createdAt"] == created.isoformat()
    assert data["userId"] == 3

    loaded = Document.from_dict(data)
    assert loaded == doc
    assert loaded.word_count() == 2
    assert loaded.block_index("a") == 0
    assert loaded.block_index("missing") == -1
