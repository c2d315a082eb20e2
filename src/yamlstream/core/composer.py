"""Single-pass document composition.

This module turns the events of one document into a node tree. Open
collections are kept on a stack of frames: a start event pushes a
frame, scalars and aliases append finished nodes to the innermost
frame, an end event pops the frame and appends the finished collection
to its parent or makes it the document root.

Anchors are scoped to the document being built. A node is registered
under its anchor once it is finished, before it is appended to its
parent: later siblings may refer to it, its own descendants may not.
A redefined anchor replaces the earlier entry.
"""

from typing import TYPE_CHECKING
from warnings import warn

from yamlstream.enums import ErrorKind
from yamlstream.errors import DuplicateAnchorWarning, ErrorContext, YamlError
from yamlstream.events import (
    AliasEvent,
    DocumentEndEvent,
    DocumentStartEvent,
    MappingEndEvent,
    MappingStartEvent,
    ScalarEvent,
    SequenceEndEvent,
    SequenceStartEvent,
    StreamEndEvent,
    StreamStartEvent,
)
from yamlstream.nodes import (
    DEFAULT_MAPPING_TAG,
    DEFAULT_SCALAR_TAG,
    DEFAULT_SEQUENCE_TAG,
    Document,
    MappingNode,
    ScalarNode,
    SequenceNode,
    resolve_tag,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from yamlstream.events import Event, Mark
    from yamlstream.nodes import Node

    from .streams import YamlParser


class Frame:
    """An open collection waiting for its end event."""

    __slots__ = ('children', 'start')

    def __init__(self, start: SequenceStartEvent | MappingStartEvent) -> None:
        self.start = start
        self.children: list[Node] = []


def composer_error(problem: str, mark: 'Mark | None',
                   byte_offset: int | None = None) -> YamlError:
    """Create a composer error located at a mark."""
    return YamlError.create(
        ErrorKind.COMPOSER,
        problem,
        context=ErrorContext(
            byte_offset=byte_offset,
            problem_mark=mark,
        ),
    )


class DocumentComposer:
    """Builder of one document from its events.

    Attributes:
        start: Event opening the document.
        anchors: Anchored nodes registered so far.
        frames: Stack of open collections.
        root: Root node once finished.
        locate: Translator of marks into byte offsets of the input.
    """

    def __init__(self, start: DocumentStartEvent, *,
                 warn_duplicate_anchors: bool = True,
                 locate: 'Callable[[Mark | None], int | None] | None' = None) -> None:
        self.start = start
        self.warn_duplicate_anchors = warn_duplicate_anchors
        self.locate = locate

        self.anchors: dict[str, Node] = {}
        self.frames: list[Frame] = []
        self.root: Node | None = None

    def compose(self, parser: 'YamlParser') -> Document:
        """Consume events up to the end of the document.

        Args:
            parser: Parser positioned right after the document start.

        Returns:
            The finished document.

        Raises:
            YamlError: If the engine fails, an alias is undefined or the
                event sequence is not a well-formed document.
        """
        while True:
            event = parser.parse_event()

            if isinstance(event, DocumentEndEvent):
                return self.finish(event)

            self.feed(event)

    def feed(self, event: 'Event | None') -> None:
        """Apply one event inside the document."""
        if isinstance(event, ScalarEvent):
            node = ScalarNode(
                tag=resolve_tag(event.tag, DEFAULT_SCALAR_TAG),
                anchor=event.anchor,
                value=event.value,
                style=event.style,
                start_mark=event.start_mark,
                end_mark=event.end_mark,
            )
            self.register(event.anchor, node, event.start_mark)
            self.append(node, event)

        elif isinstance(event, AliasEvent):
            if event.anchor not in self.anchors:
                raise YamlError.undefined_alias(
                    event.anchor,
                    event.start_mark,
                    self.byte_offset(event.start_mark),
                )
            self.append(self.anchors[event.anchor], event)

        elif isinstance(event, (SequenceStartEvent, MappingStartEvent)):
            self.frames.append(Frame(event))

        elif isinstance(event, (SequenceEndEvent, MappingEndEvent)):
            node = self.close_frame(event)
            self.register(node.anchor, node, node.start_mark)
            self.append(node, event)

        else:
            raise self.error(
                f'unexpected {event.kind if event else "end of events"} inside a document',
                event.start_mark if event else None,
            )

    def byte_offset(self, mark: 'Mark | None') -> int | None:
        """Byte offset of a mark, if the input is known."""
        if self.locate is None:
            return None

        return self.locate(mark)

    def error(self, problem: str, mark: 'Mark | None') -> YamlError:
        """Create a composer error located at a mark."""
        return composer_error(problem, mark, self.byte_offset(mark))

    def close_frame(self, event: SequenceEndEvent | MappingEndEvent) -> 'Node':
        """Pop the innermost frame and build its collection node."""
        if not self.frames:
            raise self.error(f'unexpected {event.kind}', event.start_mark)

        frame = self.frames.pop()
        start = frame.start

        if isinstance(event, SequenceEndEvent) and isinstance(start, SequenceStartEvent):
            return SequenceNode(
                tag=resolve_tag(start.tag, DEFAULT_SEQUENCE_TAG),
                anchor=start.anchor,
                items=tuple(frame.children),
                style=start.style,
                start_mark=start.start_mark,
                end_mark=event.end_mark,
            )

        if isinstance(event, MappingEndEvent) and isinstance(start, MappingStartEvent):
            if len(frame.children) % 2:
                raise self.error('found a mapping key without a value', event.start_mark)
            return MappingNode(
                tag=resolve_tag(start.tag, DEFAULT_MAPPING_TAG),
                anchor=start.anchor,
                entries=tuple(zip(frame.children[::2], frame.children[1::2], strict=True)),
                style=start.style,
                start_mark=start.start_mark,
                end_mark=event.end_mark,
            )

        raise self.error(f'{event.kind} does not close {start.kind}', event.start_mark)

    def register(self, anchor: str | None, node: 'Node', mark: 'Mark | None') -> None:
        """Bind a finished node to its anchor; the last definition wins."""
        if anchor is None:
            return

        if anchor in self.anchors and self.warn_duplicate_anchors:
            warn(
                f'Anchor {anchor!r} is redefined {mark}' if mark else f'Anchor {anchor!r} is redefined',
                category=DuplicateAnchorWarning,
                stacklevel=2,
            )

        self.anchors[anchor] = node

    def append(self, node: 'Node', event: 'Event') -> None:
        """Attach a finished node to the innermost frame or the document."""
        if self.frames:
            self.frames[-1].children.append(node)
            return

        if self.root is not None:
            raise self.error('found more than one root node', event.start_mark)

        self.root = node

    def finish(self, event: DocumentEndEvent) -> Document:
        """Close the document."""
        if self.frames:
            raise self.error(
                f'unclosed {self.frames[-1].start.kind} at the end of the document',
                event.start_mark,
            )

        if self.root is None:
            raise self.error('found a document without a root node', event.start_mark)

        return Document(
            root=self.root,
            anchors=self.anchors,
            version=self.start.version,
            tags=self.start.tags,
            start_implicit=self.start.implicit,
            end_implicit=event.implicit,
            start_mark=self.start.start_mark,
            end_mark=event.end_mark,
        )


def load_document(parser: 'YamlParser') -> Document:
    """Load the next document of a stream.

    The stream start is skipped when it comes first. Reaching the end
    of the stream yields an empty document.

    Args:
        parser: Parser to pull events from.

    Returns:
        The next document, empty once the stream is over.

    Raises:
        YamlError: If parsing or composing fails.
    """
    event = parser.parse_event()
    if isinstance(event, StreamStartEvent):
        event = parser.parse_event()

    if event is None or isinstance(event, StreamEndEvent):
        return Document()

    if not isinstance(event, DocumentStartEvent):
        raise composer_error(
            f'expected document-start, found {event.kind}',
            event.start_mark,
            parser.locate(event.start_mark),
        )

    composer = DocumentComposer(
        event,
        warn_duplicate_anchors=parser.settings.warn_duplicate_anchors,
        locate=parser.locate,
    )

    return composer.compose(parser)
