"""Core exception hierarchy.

This module defines the error types reported by parsers and streams:
a structured `YamlError` carrying the failure category, the decoded
problem description and its location, one subclass per category, and
the fatal `EngineFault` raised when no engine can be set up.
"""

from os import linesep
from typing import ClassVar, TypedDict

from yaml.error import MarkedYAMLError
from yaml.reader import ReaderError

from yamlstream.decoding import ByteLocator, decode
from yamlstream.enums import ErrorKind
from yamlstream.events import Mark

FORMAT_INDENT = 2

#: Problem reported when the engine accepted a step but the reader failed.
INPUT_ERROR_PROBLEM = 'input error'


class ErrorContext(TypedDict, total=False):
    """Container describing where a failure occurred.

    All fields are optional; the formatter adapts output based on
    provided values.
    """

    #: Offset of the problem in bytes from the start of the caller's input,
    #: `None` when the input is not known.
    byte_offset: int | None
    #: Position of the problem.
    problem_mark: Mark | None

    #: Description of the construct being parsed when the failure occurred.
    context: str | None
    #: Position of that construct.
    context_mark: Mark | None


class ErrorFormatter:
    """Utility class for formatting parsing errors."""

    @classmethod
    def format(cls, problem: str, context: ErrorContext | None = None) -> str:
        """Format a problem description using its error context.

        Args:
            problem: Human-readable problem description.
            context: Optional error context with locations.

        Returns:
            A fully formatted error message suitable for display.
        """
        if not context:
            return problem

        lines = []

        context_mark = context.get('context_mark')
        problem_mark = context.get('problem_mark')

        if description := context.get('context'):
            lines.append(description)
            if context_mark is not None and context_mark != problem_mark:
                lines.append(cls.get_location_string(context_mark, indent=FORMAT_INDENT))

        lines.append(problem)
        if problem_mark is not None:
            lines.append(cls.get_location_string(problem_mark, indent=FORMAT_INDENT))
        elif (byte_offset := context.get('byte_offset')) is not None:
            lines.append(f'{' ' * FORMAT_INDENT}at offset {byte_offset}')

        return linesep.join(lines)

    @staticmethod
    def get_location_string(mark: Mark, *, indent: int = 0) -> str:
        """Format a mark as a one based location."""
        return f'{' ' * indent}{mark}'


def locate(mark: Mark | None, locator: ByteLocator | None) -> int | None:
    """Byte offset of a mark, `None` if it can not be computed."""
    if mark is None or locator is None:
        return None

    return locator.from_position(mark.line, mark.column)


def locate_reader_error(error: ReaderError, locator: ByteLocator | None) -> int | None:
    """Byte offset of a reader failure.

    Undecodable input is reported at a byte position of the engine
    input, a forbidden character at a character index.
    """
    if isinstance(error.character, str):
        return locator.from_index(error.position) if locator is not None else None

    if locator is None:
        return error.position

    return locator.from_raw(error.position)


class YamlError(Exception, ErrorFormatter):
    """Base exception for all parsing failures.

    Once constructed the error owns all of its text and marks and does
    not depend on the parser that produced it.

    Attributes:
        kind: Failure category.
        problem: Human-readable problem description.
        context: Optional location details.
        io_error: I/O failure of the reader feeding the parser, if any.
    """

    default_kind: ClassVar[ErrorKind] = ErrorKind.NONE

    def __init__(self, problem: str, *,
                 kind: ErrorKind | None = None,
                 context: ErrorContext | None = None,
                 io_error: OSError | None = None) -> None:
        """Initialize an error.

        Args:
            problem: Human-readable problem description.
            kind: Failure category, defaults to the category of the class.
            context: Optional location details.
            io_error: Optional wrapped I/O failure.
        """
        self.kind = kind if kind is not None else self.default_kind
        self.problem = problem
        self.context = context
        self.io_error = io_error

        super().__init__(problem)

    def __str__(self) -> str:
        """String represenatation."""
        message = self.format(self.problem, self.context)
        if self.io_error is not None:
            message += f'{linesep}{' ' * FORMAT_INDENT}caused by: {self.io_error}'

        return message

    @classmethod
    def create(cls, kind: ErrorKind, problem: str, *,
               context: ErrorContext | None = None,
               io_error: OSError | None = None) -> 'YamlError':
        """Create an error of the class matching its category.

        Args:
            kind: Failure category.
            problem: Human-readable problem description.
            context: Optional location details.
            io_error: Optional wrapped I/O failure.

        Returns:
            An instance of the category specific subclass.
        """
        error_type = ERROR_TYPES.get(kind, YamlError)
        error = error_type(problem, kind=kind, context=context, io_error=io_error)
        if io_error is not None:
            error.__cause__ = io_error

        return error

    @classmethod
    def from_engine_error(cls, error: BaseException | None, *,
                          io_error: OSError | None = None,
                          locator: ByteLocator | None = None) -> 'YamlError':
        """Create an error from the last engine failure.

        A captured reader failure takes precedence over the engine's own
        classification: the failure is then reported as a reader error,
        keeping the engine's description when it has one.

        Args:
            error: Exception raised by the engine, or `None` if only the
                reader failed.
            io_error: I/O failure captured from the reader, if any.
            locator: Translator of engine positions into byte offsets.

        Returns:
            A fully owned error.
        """
        kind = ErrorKind.from_engine(error) if error is not None else ErrorKind.NONE
        problem = None
        context = ErrorContext()

        if isinstance(error, MarkedYAMLError):
            problem = decode(error.problem)
            problem_mark = Mark.from_engine(error.problem_mark)
            context = ErrorContext(
                byte_offset=locate(problem_mark, locator),
                problem_mark=problem_mark,
                context=decode(error.context),
                context_mark=Mark.from_engine(error.context_mark),
            )

        elif isinstance(error, ReaderError):
            problem = decode(error.reason)
            context = ErrorContext(byte_offset=locate_reader_error(error, locator))

        elif error is not None:
            problem = decode(str(error))

        if io_error is not None:
            kind = ErrorKind.READER
            problem = problem or INPUT_ERROR_PROBLEM

        return cls.create(
            kind,
            problem or 'unknown error',
            context=context or None,
            io_error=io_error,
        )

    @classmethod
    def undefined_alias(cls, anchor: str, mark: Mark | None,
                        byte_offset: int | None = None) -> 'YamlError':
        """Create an error for an alias referring to an unknown anchor."""
        return cls.create(
            ErrorKind.COMPOSER,
            f'found undefined alias {anchor!r}',
            context=ErrorContext(
                byte_offset=byte_offset,
                problem_mark=mark,
            ),
        )


class YamlMemoryError(YamlError):
    """The engine ran out of memory while parsing."""

    default_kind = ErrorKind.MEMORY


class YamlReaderError(YamlError):
    """The input could not be read or decoded.

    When the failure comes from the reader feeding the parser, the
    original `OSError` is available as `io_error`.
    """

    default_kind = ErrorKind.READER


class YamlScannerError(YamlError):
    """The input could not be tokenized."""

    default_kind = ErrorKind.SCANNER


class YamlParserError(YamlError):
    """The token stream violates the YAML grammar."""

    default_kind = ErrorKind.PARSER


class YamlComposerError(YamlError):
    """The event stream could not be composed into a document."""

    default_kind = ErrorKind.COMPOSER


ERROR_TYPES: dict[ErrorKind, type[YamlError]] = {
    ErrorKind.MEMORY: YamlMemoryError,
    ErrorKind.READER: YamlReaderError,
    ErrorKind.SCANNER: YamlScannerError,
    ErrorKind.PARSER: YamlParserError,
    ErrorKind.COMPOSER: YamlComposerError,
}


class EngineFault(RuntimeError):
    """Fatal failure to set up or drive the engine.

    This is not a data problem: it signals a missing engine, an
    exhausted environment or misuse of the parser lifecycle, and is
    never reported as an iterator step.
    """


class DuplicateAnchorWarning(UserWarning):
    """Warning emitted when an anchor is redefined within a document.

    The later definition replaces the earlier one for subsequent aliases.
    """
