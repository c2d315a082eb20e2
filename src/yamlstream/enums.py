"""Engine-level enumerations.

This module defines the closed value sets shared between the engine
boundary and the owned event and node models: input encodings, scalar
and collection styles, and error categories.

Each enumeration also knows how to translate the raw values reported by
the engine (PyYAML event attributes and exception classes) into its own
members.
"""

from enum import StrEnum

from yaml.composer import ComposerError
from yaml.parser import ParserError
from yaml.reader import ReaderError
from yaml.scanner import ScannerError

#: Byte order marks used to prime a forced encoding.
BOM_UTF8 = b'\xef\xbb\xbf'
BOM_UTF16LE = b'\xff\xfe'
BOM_UTF16BE = b'\xfe\xff'


class Encoding(StrEnum):
    """Input stream encoding."""

    AUTO = 'auto'
    UTF8 = 'utf-8'
    UTF16LE = 'utf-16-le'
    UTF16BE = 'utf-16-be'

    @classmethod
    def from_engine(cls, value: str | None) -> 'Encoding':
        """Translate an encoding name reported by the engine.

        The engine reports `None` when it did not detect the encoding
        itself (text input), which maps to `AUTO`.
        """
        if not value:
            return cls.AUTO

        return cls(value.lower().replace('_', '-'))

    @property
    def bom(self) -> bytes:
        """Byte order mark of the encoding, empty for `AUTO`."""
        return _BOMS.get(self, b'')

    def prime(self, head: bytes) -> bytes:
        """Return the prefix forcing the engine to decode as this encoding.

        The engine only detects encodings from a byte order mark and
        falls back to UTF-8. A prefix is needed only when that detection
        would disagree with the configured encoding.

        Args:
            head: First bytes of the input.

        Returns:
            A byte order mark to prepend, or empty bytes.
        """
        if self is Encoding.AUTO or head.startswith(self.bom):
            return b''

        if self is Encoding.UTF8 and not head.startswith((BOM_UTF16LE, BOM_UTF16BE)):
            return b''

        return self.bom


_BOMS = {
    Encoding.UTF8: BOM_UTF8,
    Encoding.UTF16LE: BOM_UTF16LE,
    Encoding.UTF16BE: BOM_UTF16BE,
}


class ScalarStyle(StrEnum):
    """Presentation style of a scalar."""

    ANY = 'any'
    PLAIN = 'plain'
    SINGLE_QUOTED = 'single-quoted'
    DOUBLE_QUOTED = 'double-quoted'
    LITERAL = 'literal'
    FOLDED = 'folded'

    @classmethod
    def from_engine(cls, value: str | None) -> 'ScalarStyle':
        """Translate a scalar style indicator reported by the engine.

        Plain scalars are reported as `None` by the pure-Python engine
        and as an empty string by libyaml.
        """
        return _SCALAR_STYLES.get(value, cls.ANY)


_SCALAR_STYLES = {
    None: ScalarStyle.PLAIN,
    '': ScalarStyle.PLAIN,
    "'": ScalarStyle.SINGLE_QUOTED,
    '"': ScalarStyle.DOUBLE_QUOTED,
    '|': ScalarStyle.LITERAL,
    '>': ScalarStyle.FOLDED,
}


class CollectionStyle(StrEnum):
    """Presentation style of a sequence or a mapping."""

    ANY = 'any'
    BLOCK = 'block'
    FLOW = 'flow'

    @classmethod
    def from_engine(cls, flow_style: bool | None) -> 'CollectionStyle':
        """Translate the engine `flow_style` flag."""
        if flow_style is None:
            return cls.ANY

        return cls.FLOW if flow_style else cls.BLOCK


class ErrorKind(StrEnum):
    """Category of a parsing failure."""

    NONE = 'none'
    MEMORY = 'memory'
    READER = 'reader'
    SCANNER = 'scanner'
    PARSER = 'parser'
    COMPOSER = 'composer'

    @classmethod
    def from_engine(cls, error: BaseException) -> 'ErrorKind':
        """Classify an exception raised by the engine."""
        for error_type, kind in _ERROR_KINDS:
            if isinstance(error, error_type):
                return kind

        return cls.NONE


_ERROR_KINDS: tuple[tuple[type[BaseException], ErrorKind], ...] = (
    (ReaderError, ErrorKind.READER),
    (ScannerError, ErrorKind.SCANNER),
    (ParserError, ErrorKind.PARSER),
    (ComposerError, ErrorKind.COMPOSER),
    (MemoryError, ErrorKind.MEMORY),
)
