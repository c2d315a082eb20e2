"""Tests for the document stream and composition."""

import warnings
from typing import TYPE_CHECKING

import pytest

from yamlstream.core import ByteParser
from yamlstream.core.composer import DocumentComposer, load_document
from yamlstream.enums import CollectionStyle, ErrorKind, ScalarStyle
from yamlstream.errors import DuplicateAnchorWarning, YamlComposerError, YamlError
from yamlstream.events import (
    AliasEvent,
    DocumentEndEvent,
    DocumentStartEvent,
    MappingEndEvent,
    MappingStartEvent,
    ScalarEvent,
    SequenceEndEvent,
    SequenceStartEvent,
)
from yamlstream.nodes import (
    DEFAULT_MAPPING_TAG,
    DEFAULT_SCALAR_TAG,
    DEFAULT_SEQUENCE_TAG,
    MappingNode,
    ScalarNode,
    SequenceNode,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from yamlstream.core.adapters import ParserMixin
    from yamlstream.events import Event, Mark
    from yamlstream.models import ParserSettings


class EventFeed:
    """Minimal parser replaying prepared events."""

    def __init__(self, events: list['Event'], settings: 'ParserSettings') -> None:
        self.events = iter(events)
        self.settings = settings

    def parse_event(self) -> 'Event | None':
        return next(self.events, None)

    def locate(self, mark: 'Mark | None') -> int | None:
        return None


def scalar_values(node: SequenceNode) -> list[str]:
    """Collect scalar values of a sequence."""
    values = []
    for item in node.values():
        assert isinstance(item, ScalarNode)
        values.append(item.value)
    return values


def test_sequence_document(make_parser: 'Callable[..., ParserMixin]') -> None:
    """A flow sequence becomes a sequence of scalar nodes."""
    documents = list(make_parser(b'[1, 2, 3]').load_documents())

    assert len(documents) == 1

    root = documents[0].root
    assert isinstance(root, SequenceNode)
    assert root.tag == DEFAULT_SEQUENCE_TAG
    assert root.style == CollectionStyle.FLOW
    assert scalar_values(root) == ['1', '2', '3']


def test_mapping_document(make_parser: 'Callable[..., ParserMixin]') -> None:
    """A flow mapping becomes ordered pairs of scalar nodes."""
    documents = list(make_parser(b'{"a": 1, "b": 2}').load_documents())

    assert len(documents) == 1

    root = documents[0].root
    assert isinstance(root, MappingNode)
    assert root.tag == DEFAULT_MAPPING_TAG

    pairs = []
    for key, value in root.pairs():
        assert isinstance(key, ScalarNode)
        assert isinstance(value, ScalarNode)
        pairs.append((key.value, value.value))

    assert pairs == [('a', '1'), ('b', '2')]
    assert [key.style for key in root.keys()] == [ScalarStyle.DOUBLE_QUOTED] * 2


def test_multiple_documents_keep_order(make_parser: 'Callable[..., ParserMixin]') -> None:
    """Documents are yielded in stream order."""
    content = b'--- first\n--- second\n...\n%YAML 1.1\n--- third\n'

    documents = list(make_parser(content).load_documents())

    roots = [document.root for document in documents]
    assert [root.value for root in roots if isinstance(root, ScalarNode)] == [
        'first', 'second', 'third',
    ]
    assert not documents[0].start_implicit
    assert documents[1].end_implicit is False
    assert documents[2].version == (1, 1)


def test_empty_stream_has_no_documents(make_parser: 'Callable[..., ParserMixin]') -> None:
    """An empty stream yields no document."""
    assert list(make_parser(b'').load_documents()) == []


def test_explicit_empty_document(make_parser: 'Callable[..., ParserMixin]') -> None:
    """An explicit empty document has an empty plain scalar root."""
    documents = list(make_parser(b'---\n...\n').load_documents())

    assert len(documents) == 1
    root = documents[0].root
    assert isinstance(root, ScalarNode)
    assert root.value == ''
    assert root.tag == DEFAULT_SCALAR_TAG


def test_document_stream_exhaustion(make_parser: 'Callable[..., ParserMixin]') -> None:
    """Pulling from an exhausted document stream keeps signalling exhaustion."""
    stream = make_parser(b'a: 1').load_documents()

    assert next(stream).root is not None
    for _ in range(3):
        with pytest.raises(StopIteration):
            next(stream)


def test_alias_shares_node(make_parser: 'Callable[..., ParserMixin]') -> None:
    """An alias resolves to the anchored node instance."""
    content = b'base: &base {x: 1}\ncopy: *base\nlist: &items [a, b]\nagain: *items\n'

    document = next(make_parser(content).load_documents())

    root = document.root
    assert isinstance(root, MappingNode)
    values = [value for _, value in root.pairs()]

    assert values[0] is values[1]
    assert values[2] is values[3]
    assert document.anchors == {'base': values[0], 'items': values[2]}
    assert values[0].anchor == 'base'


def test_anchor_redefinition_last_wins(make_parser: 'Callable[..., ParserMixin]') -> None:
    """A redefined anchor replaces the earlier definition."""
    content = b'- &x one\n- *x\n- &x two\n- *x\n'

    with pytest.warns(DuplicateAnchorWarning, match=r"^Anchor 'x' is redefined"):
        document = next(make_parser(content).load_documents())

    root = document.root
    assert isinstance(root, SequenceNode)
    assert scalar_values(root) == ['one', 'one', 'two', 'two']


def test_anchor_redefinition_warning_disabled(settings: 'ParserSettings') -> None:
    """The redefinition warning can be disabled in settings."""
    settings = settings.model_copy(update={'warn_duplicate_anchors': False})
    parser = ByteParser(b'- &x one\n- &x two\n', settings=settings)

    with warnings.catch_warnings():
        warnings.simplefilter('error')
        document = next(parser.load_documents())

    anchored = document.anchors['x']
    assert isinstance(anchored, ScalarNode)
    assert anchored.value == 'two'


def test_anchors_are_document_scoped(make_parser: 'Callable[..., ParserMixin]') -> None:
    """An anchor defined in one document is unknown in the next one."""
    stream = make_parser(b'--- &x value\n--- *x\n').load_documents()

    first = next(stream)
    assert 'x' in first.anchors

    with pytest.raises(YamlComposerError, match=r"^found undefined alias 'x'"):
        next(stream)

    with pytest.raises(StopIteration):
        next(stream)


def test_undefined_alias(make_parser: 'Callable[..., ParserMixin]') -> None:
    """An alias to an unknown anchor is a composer error."""
    with pytest.raises(YamlError) as error:
        list(make_parser(b'[*missing]').load_documents())

    assert error.value.kind == ErrorKind.COMPOSER
    assert error.value.context is not None
    mark = error.value.context['problem_mark']
    assert mark is not None
    assert (mark.line, mark.column) == (0, 1)
    assert error.value.context['byte_offset'] == 1


def test_undefined_alias_byte_offset(make_parser: 'Callable[..., ParserMixin]') -> None:
    """Composer errors are located in bytes of the input."""
    content = 'ключ: *нет\n'.encode()

    with pytest.raises(YamlComposerError) as error:
        list(make_parser(content).load_documents())

    assert error.value.context is not None
    assert error.value.context['byte_offset'] == len('ключ: '.encode())


def test_self_reference_is_undefined(make_parser: 'Callable[..., ParserMixin]') -> None:
    """A collection can not contain an alias to itself."""
    with pytest.raises(YamlComposerError, match=r"^found undefined alias 'loop'"):
        list(make_parser(b'&loop [a, *loop]').load_documents())


def test_parse_error_in_document(make_parser: 'Callable[..., ParserMixin]') -> None:
    """Engine failures inside a document are raised by the document stream."""
    stream = make_parser(b'- a\n- [b\n').load_documents()

    with pytest.raises(YamlError) as error:
        next(stream)

    assert error.value.kind in (ErrorKind.SCANNER, ErrorKind.PARSER)

    with pytest.raises(StopIteration):
        next(stream)


def test_tags_on_nodes(make_parser: 'Callable[..., ParserMixin]') -> None:
    """Specific tags are kept, non-specific tags are resolved to defaults."""
    content = b'!!set {a: !custom b, c: ! d}\n'

    document = next(make_parser(content).load_documents())

    root = document.root
    assert isinstance(root, MappingNode)
    assert root.tag == 'tag:yaml.org,2002:set'

    values = [value for _, value in root.pairs()]
    assert [value.tag for value in values] == ['!custom', DEFAULT_SCALAR_TAG]


def test_nested_collections(make_parser: 'Callable[..., ParserMixin]') -> None:
    """Nested block collections are composed with their marks."""
    content = b'outer:\n  - inner: [1, {k: v}]\n  - last\n'

    document = next(make_parser(content).load_documents())

    root = document.root
    assert isinstance(root, MappingNode)
    ((key, outer), ) = root.pairs()
    assert isinstance(key, ScalarNode)
    assert key.value == 'outer'

    assert isinstance(outer, SequenceNode)
    assert outer.style == CollectionStyle.BLOCK
    first, last = outer.values()
    assert isinstance(first, MappingNode)
    assert isinstance(last, ScalarNode)
    assert last.value == 'last'

    ((_, inner), ) = first.pairs()
    assert isinstance(inner, SequenceNode)
    assert inner.start_mark is not None
    assert (inner.start_mark.line, inner.start_mark.column) == (1, 11)
    assert isinstance(list(inner.values())[1], MappingNode)


def test_composer_rejects_mismatched_end(settings: 'ParserSettings') -> None:
    """A collection closed by the wrong end event is rejected."""
    feed = EventFeed([
        DocumentStartEvent(),
        SequenceStartEvent(),
        MappingEndEvent(),
    ], settings)

    with pytest.raises(YamlComposerError, match=r'^mapping-end does not close sequence-start'):
        load_document(feed)


def test_composer_rejects_odd_mapping(settings: 'ParserSettings') -> None:
    """A mapping with a dangling key is rejected."""
    feed = EventFeed([
        DocumentStartEvent(),
        MappingStartEvent(),
        ScalarEvent(value='key'),
        MappingEndEvent(),
    ], settings)

    with pytest.raises(YamlComposerError, match=r'^found a mapping key without a value'):
        load_document(feed)


def test_composer_rejects_truncated_document(settings: 'ParserSettings') -> None:
    """Events ending inside a document are rejected."""
    feed = EventFeed([
        DocumentStartEvent(),
        SequenceStartEvent(),
        ScalarEvent(value='a'),
    ], settings)

    with pytest.raises(YamlComposerError, match=r'^unexpected end of events inside a document'):
        load_document(feed)


def test_composer_builds_from_events(settings: 'ParserSettings') -> None:
    """The composer works from any source of owned events."""
    start = DocumentStartEvent(version=(1, 2), implicit=False)
    composer = DocumentComposer(start)
    feed = EventFeed([
        ScalarEvent(value='shared', anchor='s'),
        AliasEvent(anchor='s'),
        SequenceEndEvent(),
        DocumentEndEvent(implicit=False),
    ], settings)
    composer.feed(SequenceStartEvent(anchor='seq'))

    document = composer.compose(feed)

    assert isinstance(document.root, SequenceNode)
    assert document.root.anchor == 'seq'
    assert document.version == (1, 2)
    assert not document.start_implicit
    assert not document.end_implicit
    assert set(document.anchors) == {'s', 'seq'}
    first, second = document.root.values()
    assert first is second
