"""Input adapters binding a data source to a base parser.

Two adapters share one capability interface (`ParserMixin`):
- `ByteParser` binds an in-memory buffer for the parser's lifetime;
- `ReaderParser` exclusively owns a binary stream and feeds the engine
  through a `ReadBridge` that pulls bytes on demand and captures any
  I/O failure for later reporting.

Event and document iteration is implemented once in the mixin against
`parse_step` and `get_error`, which each adapter provides.
"""

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from yamlstream.decoding import ByteLocator
from yamlstream.enums import Encoding
from yamlstream.errors import EngineFault, YamlError
from yamlstream.events import load_event

from .engine import BaseParser, RawEventSlot
from .streams import DocumentStream, EventStream

if TYPE_CHECKING:
    from collections.abc import Buffer
    from typing import Self

    from yamlstream.events import Event, Mark
    from yamlstream.models import ParserSettings

READER_NAME = '<file>'

#: Number of leading bytes needed to tell the encoding of an input.
HEAD_SIZE = 4


@runtime_checkable
class BinaryReader(Protocol):
    """A streaming source filling caller-provided buffers."""

    def readinto(self, buffer: 'Buffer', /) -> int | None:
        ...  # pragma: no cover


@runtime_checkable
class BinaryStream(Protocol):
    """A streaming source returning chunks of bytes."""

    def read(self, size: int = -1, /) -> bytes:
        ...  # pragma: no cover


class ParserMixin:
    """Capability interface of a YAML parser.

    Implementers provide `base_parser`, `parse_step` and `get_error`;
    this mixin provides owned-event extraction, both iterators and the
    parser lifecycle.
    """

    base_parser: BaseParser

    @property
    def settings(self) -> 'ParserSettings':
        """Settings of the underlying parser."""
        return self.base_parser.settings

    @property
    def closed(self) -> bool:
        """Whether the engine was disposed."""
        return self.base_parser.closed

    def parse_step(self, slot: RawEventSlot) -> bool:
        """Drive one engine step into a scratch slot."""
        return self.base_parser.parse_one(slot)

    def get_error(self) -> YamlError:
        """Build the error describing the last failed step."""
        return self.base_parser.build_error(self.locator())

    def locator(self) -> ByteLocator | None:
        """Translator of engine positions for the input seen so far."""
        return None

    def locate(self, mark: 'Mark | None') -> int | None:
        """Byte offset of a mark in the input, `None` if unknown."""
        locator = self.locator()
        if mark is None or locator is None:
            return None

        return locator.from_position(mark.line, mark.column)

    def parse_event(self) -> 'Event | None':
        """Parse one event and copy it out of the engine.

        Returns:
            The owned event, or `None` once the engine has nothing more.

        Raises:
            YamlError: If the engine step fails.
        """
        slot = RawEventSlot()

        if not self.parse_step(slot):
            raise self.get_error()

        try:
            return load_event(slot.event)
        finally:
            slot.release()

    def parse_events(self) -> EventStream:
        """Iterate over the events of the input."""
        return EventStream(self)

    def load_documents(self) -> DocumentStream:
        """Iterate over the documents of the input."""
        return DocumentStream(self)

    def close(self) -> None:
        """Release the engine; safe to call more than once."""
        self.base_parser.close()

    def __enter__(self) -> 'Self':
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class ByteParser(ParserMixin):
    """Parser over an in-memory buffer.

    The buffer is bound to the engine for the parser's whole lifetime.
    A `bytes` object is passed as is; other buffers are copied once,
    as are buffers needing an encoding prefix.
    """

    def __init__(self, data: 'bytes | Buffer',
                 encoding: Encoding = Encoding.AUTO, *,
                 settings: 'ParserSettings | None' = None) -> None:
        """Initialize a byte-backed parser.

        Args:
            data: Input buffer.
            encoding: Encoding of the input, detected when `AUTO`.
            settings: Parser settings, read from the environment if omitted.

        Raises:
            EngineFault: If no engine can be set up.
        """
        if isinstance(data, str):
            raise TypeError('ByteParser requires a bytes-like input, not str')

        if type(data) is not bytes:
            data = bytes(data)

        self.base_parser = BaseParser(settings)
        self.base_parser.initialize()
        self.base_parser.configure_encoding(encoding)

        prefix = self.base_parser.encoding.prime(data[:HEAD_SIZE])
        if prefix:
            data = prefix + data

        self.data = data
        self.prefix_size = len(prefix)
        self.base_parser.configure_input(data)

        self._locator: ByteLocator | None = None

    def locator(self) -> ByteLocator:
        """Translator of engine positions for the bound buffer."""
        if self._locator is None:
            self._locator = ByteLocator(self.data, self.prefix_size)

        return self._locator


class ReadBridge:
    """Pull-style read callback handed to the engine.

    The bridge is the only stream the engine sees. Each engine request
    performs exactly one read from the owned source, except the first
    one under a forced encoding: it reads until the head of the input
    shows whether a byte order mark must be prepended. An `OSError` is
    captured (the last failure wins) and reported to the engine as the
    end of input; the owning parser then turns the step into a failure.
    Any other misbehaviour of the source is kept as a fault and raised
    by the owning parser after the step.

    Bytes served to the engine are kept to translate engine positions
    into byte offsets when an error is reported.

    Attributes:
        name: Input name used in marks.
        io_error: Last captured I/O failure.
        fault: Non-I/O failure of the source.
        served: Bytes handed to the engine so far.
        prefix_size: Number of leading served bytes not read from the source.
    """

    def __init__(self, reader: 'BinaryReader | BinaryStream',
                 encoding: Encoding, read_size: int, name: str) -> None:
        if not isinstance(reader, (BinaryReader, BinaryStream)):
            raise TypeError(f'{reader!r} is not a binary reader')

        self.name = name
        self.reader: BinaryReader | BinaryStream | None = reader
        self.encoding = encoding
        self.read_size = read_size

        self.io_error: OSError | None = None
        self.fault: Exception | None = None

        self.served = bytearray()
        self.prefix_size = 0

        self._primed = encoding is Encoding.AUTO
        self._pending = b''

    def read(self, size: int) -> bytes:
        """Serve one engine request of at most `size` bytes."""
        size = max(1, min(size, self.read_size))

        if not self._primed:
            self._primed = True
            head = self._read_head(size)
            prefix = self.encoding.prime(head)
            self.prefix_size = len(prefix)
            self._pending = prefix + head

        if self._pending:
            chunk, self._pending = self._pending[:size], self._pending[size:]
        else:
            chunk = self._read_source(size)

        self.served += chunk
        return chunk

    def _read_head(self, size: int) -> bytes:
        head = self._read_source(size)

        while head and len(head) < HEAD_SIZE and self.io_error is None and self.fault is None:
            chunk = self._read_source(size)
            if not chunk:
                break
            head += chunk

        return head

    def _read_source(self, size: int) -> bytes:
        if self.reader is None:
            self.fault = EngineFault('Read requested after the parser was closed')
            return b''

        try:
            if isinstance(self.reader, BinaryReader):
                buffer = bytearray(size)
                count = self.reader.readinto(buffer)
                if count is None:
                    raise BlockingIOError('Reader has no data available')
                return bytes(buffer[:count])

            chunk = self.reader.read(size)

        except OSError as error:
            self.io_error = error
            return b''

        if not isinstance(chunk, (bytes, bytearray)):
            self.fault = TypeError(f'Reader returned {type(chunk).__name__}, bytes expected')
            return b''

        return bytes(chunk)

    def take_error(self) -> OSError | None:
        """Return the captured I/O failure and clear it."""
        error, self.io_error = self.io_error, None
        return error

    def take_fault(self) -> Exception | None:
        """Return the captured fault and clear it."""
        fault, self.fault = self.fault, None
        return fault

    def detach(self) -> None:
        """Drop the reference to the source."""
        self.reader = None


class ReaderParser(ParserMixin):
    """Parser over a binary stream.

    The stream is owned by the parser for its lifetime and read only
    through the bridge wired at construction. Closing the parser
    detaches the stream without closing it.
    """

    def __init__(self, reader: 'BinaryReader | BinaryStream',
                 encoding: Encoding = Encoding.AUTO, *,
                 name: str | None = None,
                 settings: 'ParserSettings | None' = None) -> None:
        """Initialize a stream-backed parser.

        Args:
            reader: Binary source with `readinto(buffer)` or `read(size)`.
            encoding: Encoding of the input, detected when `AUTO`.
            name: Input name used in marks, taken from the reader if omitted.
            settings: Parser settings, read from the environment if omitted.

        Raises:
            EngineFault: If no engine can be set up.
            TypeError: If the reader is not a binary source.
        """
        self.base_parser = BaseParser(settings)
        self.base_parser.initialize()
        self.base_parser.configure_encoding(encoding)

        if name is None:
            name = str(getattr(reader, 'name', READER_NAME))

        self.bridge = ReadBridge(
            reader,
            self.base_parser.encoding,
            self.base_parser.settings.read_size,
            name,
        )
        self.base_parser.configure_input(self.bridge)

    def parse_step(self, slot: RawEventSlot) -> bool:
        """Drive one engine step, failing it if the reader failed."""
        success = self.base_parser.parse_one(slot)

        if fault := self.bridge.take_fault():
            slot.release()
            raise fault

        if self.bridge.io_error is not None:
            slot.release()
            return False

        return success

    def get_error(self) -> YamlError:
        """Build the error, moving the captured I/O failure into it."""
        return YamlError.from_engine_error(
            self.base_parser.last_error,
            io_error=self.bridge.take_error(),
            locator=self.locator(),
        )

    def locator(self) -> ByteLocator:
        """Translator of engine positions for the bytes read so far."""
        return ByteLocator(bytes(self.bridge.served), self.bridge.prefix_size)

    def close(self) -> None:
        """Release the engine and detach the reader."""
        super().close()
        self.bridge.detach()


def open_parser(source: 'bytes | Buffer | BinaryReader | BinaryStream',
                encoding: Encoding = Encoding.AUTO, *,
                settings: 'ParserSettings | None' = None) -> ByteParser | ReaderParser:
    """Create the adapter matching an input source.

    Args:
        source: Input buffer or binary stream.
        encoding: Encoding of the input, detected when `AUTO`.
        settings: Parser settings, read from the environment if omitted.

    Returns:
        A `ReaderParser` for streams, a `ByteParser` otherwise.
    """
    if isinstance(source, (BinaryReader, BinaryStream)):
        return ReaderParser(source, encoding, settings=settings)

    return ByteParser(source, encoding, settings=settings)


def parse(source: 'bytes | Buffer | BinaryReader | BinaryStream',
          encoding: Encoding = Encoding.AUTO, *,
          settings: 'ParserSettings | None' = None) -> EventStream:
    """Iterate over the events of an input source.

    The parser is released once the stream is garbage collected.
    """
    return open_parser(source, encoding, settings=settings).parse_events()


def load(source: 'bytes | Buffer | BinaryReader | BinaryStream',
         encoding: Encoding = Encoding.AUTO, *,
         settings: 'ParserSettings | None' = None) -> DocumentStream:
    """Iterate over the documents of an input source.

    The parser is released once the stream is garbage collected.
    """
    return open_parser(source, encoding, settings=settings).load_documents()
