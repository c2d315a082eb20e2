"""Pull-based event and document iterators.

Both iterators are written once against the parser capability
interface and work with any input adapter. They are lazy, forward-only
and not restartable: each pull drives the engine synchronously, and
once a stream is exhausted or has raised an error every further pull
raises `StopIteration`.
"""

from typing import TYPE_CHECKING, Protocol

from yamlstream.errors import YamlError

from .composer import load_document

if TYPE_CHECKING:
    from yamlstream.events import Event, Mark
    from yamlstream.models import ParserSettings
    from yamlstream.nodes import Document


class YamlParser(Protocol):
    """Capability interface shared by all input adapters."""

    settings: 'ParserSettings'

    def parse_event(self) -> 'Event | None':
        """Parse one event, `None` once the engine has nothing more."""
        ...  # pragma: no cover

    def locate(self, mark: 'Mark | None') -> int | None:
        """Byte offset of a mark in the input, `None` if unknown."""
        ...  # pragma: no cover


class EventStream:
    """Iterator over owned events of a parser."""

    def __init__(self, parser: YamlParser) -> None:
        self.parser = parser
        self.exhausted = False

    def __iter__(self) -> 'EventStream':
        return self

    def __next__(self) -> 'Event':
        """Pull the next event.

        Raises:
            StopIteration: Once the stream is over or after an error.
            YamlError: If the engine fails; the stream is then exhausted.
        """
        if self.exhausted:
            raise StopIteration

        try:
            event = self.parser.parse_event()
        except YamlError:
            self.exhausted = True
            raise

        if event is None:
            self.exhausted = True
            raise StopIteration

        return event


class DocumentStream:
    """Iterator over documents of a parser.

    The empty document produced once the stream end is reached
    terminates the iteration; it is never yielded.
    """

    def __init__(self, parser: YamlParser) -> None:
        self.parser = parser
        self.exhausted = False

    def __iter__(self) -> 'DocumentStream':
        return self

    def __next__(self) -> 'Document':
        """Load the next document.

        Raises:
            StopIteration: Once the stream is over or after an error.
            YamlError: If parsing or composing fails; the stream is then
                exhausted.
        """
        if self.exhausted:
            raise StopIteration

        try:
            document = load_document(self.parser)
        except YamlError:
            self.exhausted = True
            raise

        if document.is_empty():
            self.exhausted = True
            raise StopIteration

        return document
