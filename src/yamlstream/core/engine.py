"""Engine resolution and the base parser wrapper.

This module binds the YAML engine, PyYAML's event parser, behind a
small lifecycle: resolve the engine class, configure the encoding and
the input, drive one step at a time, report the last failure, dispose.

Two engines are supported:
- the libyaml binding (`yaml.CParser`) when PyYAML was built with it;
- the pure-Python reader, scanner and parser pipeline otherwise.
"""

from typing import TYPE_CHECKING, Any, Protocol
from weakref import finalize

import yaml
from yaml.error import YAMLError
from yaml.parser import Parser
from yaml.reader import Reader
from yaml.scanner import Scanner

from yamlstream.enums import Encoding
from yamlstream.errors import EngineFault, YamlError
from yamlstream.models import ParserSettings

if TYPE_CHECKING:
    from yaml.events import Event as EngineEvent

    from yamlstream.decoding import ByteLocator
    from yamlstream.models import EngineName


class Engine(Protocol):
    """Interface required from an engine instance."""

    def get_event(self) -> 'EngineEvent | None':
        """Produce the next event, `None` once the stream is over."""
        ...  # pragma: no cover

    def dispose(self) -> None:
        """Release the engine state."""
        ...  # pragma: no cover


class EngineFactory(Protocol):
    """Callable creating an engine bound to an input stream."""

    def __call__(self, stream: Any) -> Engine:  # noqa: ANN401
        ...  # pragma: no cover


class PythonEngine(Reader, Scanner, Parser):
    """Pure-Python engine: PyYAML reader, scanner and parser, no composer."""

    def __init__(self, stream: Any) -> None:  # noqa: ANN401
        """Initialize the engine over a bytes object or a binary stream."""
        Reader.__init__(self, stream)
        Scanner.__init__(self)
        Parser.__init__(self)


def resolve_engine(name: 'EngineName') -> EngineFactory:
    """Resolve an engine factory by name.

    Args:
        name: Engine name from settings.

    Returns:
        A callable creating engine instances.

    Raises:
        EngineFault: If the requested engine is not available.
    """
    c_parser = getattr(yaml, 'CParser', None)

    if name == 'python':
        return PythonEngine

    if name == 'libyaml':
        if c_parser is None:
            raise EngineFault('PyYAML is built without libyaml bindings')
        return c_parser

    return c_parser or PythonEngine


class RawEventSlot:
    """Scratch storage for one engine event.

    The stored event is valid only until the next engine step; callers
    copy it out and release the slot.
    """

    __slots__ = ('event', )

    def __init__(self) -> None:
        self.event: EngineEvent | None = None

    def release(self) -> None:
        """Drop the reference to the engine event."""
        self.event = None


def _dispose(engine: Engine) -> None:
    engine.dispose()


class BaseParser:
    """Exclusive owner of one engine instance.

    Lifecycle: `initialize`, `configure_encoding`, `configure_input`,
    then any number of `parse_one` calls, and finally `close`. The
    engine is disposed exactly once: on `close`, on leaving a `with`
    block, or when the wrapper is garbage collected.
    """

    def __init__(self, settings: ParserSettings | None = None) -> None:
        """Initialize an unconfigured wrapper.

        Args:
            settings: Parser settings, read from the environment if omitted.
        """
        self.settings = settings if settings is not None else ParserSettings()

        self.encoding = Encoding.AUTO

        self._factory: EngineFactory | None = None
        self._engine: Engine | None = None
        self._finalizer: finalize | None = None
        self._configured = False
        self._closed = False

        self.last_error: BaseException | None = None

    @property
    def configured(self) -> bool:
        """Whether an input was bound to the engine."""
        return self._configured

    @property
    def closed(self) -> bool:
        """Whether the parser was closed."""
        return self._closed

    def initialize(self) -> None:
        """Resolve the engine used by this wrapper.

        Raises:
            EngineFault: If the engine is unavailable or already initialized.
        """
        if self._factory is not None:
            raise EngineFault('Parser is already initialized')

        self._factory = resolve_engine(self.settings.engine)

    def configure_encoding(self, encoding: Encoding) -> None:
        """Set the encoding used to decode the input.

        Raises:
            EngineFault: If the input is already configured.
        """
        if self.configured:
            raise EngineFault('Encoding must be configured before the input')

        self.encoding = Encoding(encoding)

    def configure_input(self, stream: Any) -> None:  # noqa: ANN401
        """Bind the input and allocate the engine state.

        Args:
            stream: A `bytes` object or an object with a `read(size)`
                method returning bytes.

        Raises:
            EngineFault: If the wrapper is not initialized, the input is
                already configured or the engine can not be allocated.

        Notes:
            An engine rejecting the input while reading its first bytes
            is not fatal: the failure is reported by the first step.
        """
        if self._factory is None:
            raise EngineFault('Parser must be initialized before configuring input')

        if self.configured or self.closed:
            raise EngineFault('Parser input is already configured')

        self._configured = True

        try:
            engine = self._factory(stream)
        except MemoryError as base:
            raise EngineFault('Failed to allocate the parser state') from base
        except YAMLError as error:
            self.last_error = error
            return

        self._engine = engine
        self._finalizer = finalize(self, _dispose, engine)

    def parse_one(self, slot: RawEventSlot) -> bool:
        """Drive exactly one engine step.

        Args:
            slot: Scratch storage receiving the engine event, or `None`
                once the stream is over.

        Returns:
            `False` if the step failed (call `build_error` next),
            `True` otherwise, including the end of the stream.

        Raises:
            EngineFault: If the input is not configured or the parser
                is closed.
        """
        if not self.configured or self.closed:
            raise EngineFault('Parser is not configured or already closed')

        slot.release()

        if self._engine is None:
            return False

        try:
            slot.event = self._engine.get_event()
        except (YAMLError, MemoryError) as error:
            self.last_error = error
            return False

        self.last_error = None
        return True

    def build_error(self, locator: 'ByteLocator | None' = None) -> YamlError:
        """Convert the last engine failure into an owned error.

        Args:
            locator: Translator of engine positions into byte offsets of
                the input; offsets are left out without one.
        """
        return YamlError.from_engine_error(self.last_error, locator=locator)

    def close(self) -> None:
        """Dispose of the engine, once."""
        self._closed = True
        if self._finalizer is not None:
            self._finalizer()

        self._engine = None

    def __enter__(self) -> 'BaseParser':
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
