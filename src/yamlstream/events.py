"""Owned YAML events.

This module defines immutable models for every structural event the
engine emits and the copy-out step turning a transient engine event
into one of them.

Engine events are never handed to callers: `load_event` copies each
field into plain Python values, so an `Event` stays valid after the
engine moves on or is disposed.
"""

from typing import TYPE_CHECKING, Annotated, Any, Literal

from pydantic import Field
from yaml import events as engine_events

from yamlstream.enums import CollectionStyle, Encoding, ScalarStyle
from yamlstream.models import OwnedModel

if TYPE_CHECKING:
    from yaml.events import Event as EngineEvent


class Mark(OwnedModel):
    """Position in the input stream.

    All coordinates are zero based.
    """

    #: Name of the input (file name or a placeholder).
    name: str | None = None
    #: Character offset from the start of the stream.
    index: int = 0
    #: Line number.
    line: int = 0
    #: Column number.
    column: int = 0

    @classmethod
    def from_engine(cls, mark: Any) -> 'Mark | None':  # noqa: ANN401
        """Copy an engine mark.

        Args:
            mark: Mark object reported by the engine, possibly `None`.

        Returns:
            An owned mark, or `None` if the engine reported none.
        """
        if mark is None:
            return None

        return cls(
            name=str(mark.name) if mark.name is not None else None,
            index=int(mark.index),
            line=int(mark.line),
            column=int(mark.column),
        )

    def __str__(self) -> str:
        """String representation."""
        return f'in "{self.name}", line {self.line + 1}, column {self.column + 1}'


class BaseEvent(OwnedModel):
    """Fields common to all events."""

    start_mark: Mark | None = Field(default=None, repr=False)
    end_mark: Mark | None = Field(default=None, repr=False)


class NodeEventMixin(BaseEvent):
    """Fields common to events that open or form a node."""

    anchor: str | None = None
    tag: str | None = None


class StreamStartEvent(BaseEvent):
    """Start of the input stream."""

    kind: Literal['stream-start'] = 'stream-start'
    encoding: Encoding = Encoding.AUTO


class StreamEndEvent(BaseEvent):
    """End of the input stream."""

    kind: Literal['stream-end'] = 'stream-end'


class DocumentStartEvent(BaseEvent):
    """Start of a document."""

    kind: Literal['document-start'] = 'document-start'
    #: `%YAML` directive, as a `(major, minor)` pair.
    version: tuple[int, int] | None = None
    #: `%TAG` directives, as `(handle, prefix)` pairs in declaration order.
    tags: tuple[tuple[str, str], ...] = ()
    #: Whether the document has no `---` marker.
    implicit: bool = True


class DocumentEndEvent(BaseEvent):
    """End of a document."""

    kind: Literal['document-end'] = 'document-end'
    #: Whether the document has no `...` marker.
    implicit: bool = True


class SequenceStartEvent(NodeEventMixin):
    """Start of a sequence."""

    kind: Literal['sequence-start'] = 'sequence-start'
    implicit: bool = True
    style: CollectionStyle = CollectionStyle.ANY


class SequenceEndEvent(BaseEvent):
    """End of a sequence."""

    kind: Literal['sequence-end'] = 'sequence-end'


class MappingStartEvent(NodeEventMixin):
    """Start of a mapping."""

    kind: Literal['mapping-start'] = 'mapping-start'
    implicit: bool = True
    style: CollectionStyle = CollectionStyle.ANY


class MappingEndEvent(BaseEvent):
    """End of a mapping."""

    kind: Literal['mapping-end'] = 'mapping-end'


class ScalarEvent(NodeEventMixin):
    """A scalar value."""

    kind: Literal['scalar'] = 'scalar'
    value: str = ''
    #: Whether the tag may be omitted for the plain style.
    plain_implicit: bool = False
    #: Whether the tag may be omitted for any non-plain style.
    quoted_implicit: bool = False
    style: ScalarStyle = ScalarStyle.ANY


class AliasEvent(BaseEvent):
    """A reference to a previously anchored node."""

    kind: Literal['alias'] = 'alias'
    anchor: str


#: Any owned event.
Event = Annotated[
    StreamStartEvent | StreamEndEvent
    | DocumentStartEvent | DocumentEndEvent
    | SequenceStartEvent | SequenceEndEvent
    | MappingStartEvent | MappingEndEvent
    | ScalarEvent | AliasEvent,
    Field(discriminator='kind'),
]


def _marks(event: 'EngineEvent') -> dict[str, Mark | None]:
    return {
        'start_mark': Mark.from_engine(event.start_mark),
        'end_mark': Mark.from_engine(event.end_mark),
    }


def _tags(tags: dict[str, str] | None) -> tuple[tuple[str, str], ...]:
    if not tags:
        return ()

    return tuple((str(handle), str(prefix)) for handle, prefix in tags.items())


def load_event(event: 'EngineEvent | None') -> Event | None:  # noqa: PLR0911
    """Copy a transient engine event into an owned event.

    Args:
        event: Event produced by the engine, or `None` once the engine
            has nothing more to produce.

    Returns:
        The owned event, or `None` for the "no event" sentinel.

    Raises:
        TypeError: If the engine produced an unknown event type.
    """
    if event is None:
        return None

    if isinstance(event, engine_events.ScalarEvent):
        plain_implicit, quoted_implicit = event.implicit
        return ScalarEvent(
            anchor=event.anchor,
            tag=event.tag,
            value=str(event.value),
            plain_implicit=bool(plain_implicit),
            quoted_implicit=bool(quoted_implicit),
            style=ScalarStyle.from_engine(event.style),
            **_marks(event),
        )

    if isinstance(event, engine_events.AliasEvent):
        return AliasEvent(anchor=event.anchor, **_marks(event))

    if isinstance(event, engine_events.SequenceStartEvent):
        return SequenceStartEvent(
            anchor=event.anchor,
            tag=event.tag,
            implicit=bool(event.implicit),
            style=CollectionStyle.from_engine(event.flow_style),
            **_marks(event),
        )

    if isinstance(event, engine_events.MappingStartEvent):
        return MappingStartEvent(
            anchor=event.anchor,
            tag=event.tag,
            implicit=bool(event.implicit),
            style=CollectionStyle.from_engine(event.flow_style),
            **_marks(event),
        )

    if isinstance(event, engine_events.SequenceEndEvent):
        return SequenceEndEvent(**_marks(event))

    if isinstance(event, engine_events.MappingEndEvent):
        return MappingEndEvent(**_marks(event))

    if isinstance(event, engine_events.DocumentStartEvent):
        return DocumentStartEvent(
            version=tuple(event.version) if event.version else None,
            tags=_tags(event.tags),
            implicit=not event.explicit,
            **_marks(event),
        )

    if isinstance(event, engine_events.DocumentEndEvent):
        return DocumentEndEvent(implicit=not event.explicit, **_marks(event))

    if isinstance(event, engine_events.StreamStartEvent):
        return StreamStartEvent(
            encoding=Encoding.from_engine(event.encoding),
            **_marks(event),
        )

    if isinstance(event, engine_events.StreamEndEvent):
        return StreamEndEvent(**_marks(event))

    raise TypeError(f'{event!r} is not a known engine event')
