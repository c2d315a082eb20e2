"""Text decoding for engine-provided strings and positions.

The engine may report messages either as text or as raw UTF-8 bytes,
depending on the binding in use. Error construction goes through
`decode` so that every message stored in an error is owned text.

The engine also reports positions in characters. `ByteLocator` maps
them back to byte offsets of the input the caller supplied.
"""

from re import compile as regexp

from yamlstream.enums import BOM_UTF8, BOM_UTF16BE, BOM_UTF16LE

DEFAULT_ENCODING = 'utf-8'

#: Line breaks as counted by the engine, `\r\n` being a single break.
LINE_BREAKS = regexp('\r\n|[\r\n\x85\u2028\u2029]')


def decode(raw: bytes | bytearray | str | None,
           encoding: str = DEFAULT_ENCODING) -> str | None:
    """Decode a raw engine string into text.

    Invalid sequences are replaced rather than rejected: the result is
    used only for human-readable diagnostics.

    Args:
        raw: Raw value reported by the engine.
        encoding: Encoding of byte values.

    Returns:
        The decoded text, or `None` if the engine reported nothing.
    """
    if raw is None:
        return None

    if isinstance(raw, str):
        return raw

    return bytes(raw).decode(encoding, errors='replace')


def detect_encoding(data: bytes) -> tuple[str, bytes]:
    """Detect the encoding of an engine input the way the engine does.

    Returns:
        The codec name and the byte order mark found, possibly empty.
    """
    for bom, encoding in ((BOM_UTF16LE, 'utf-16-le'), (BOM_UTF16BE, 'utf-16-be'),
                          (BOM_UTF8, 'utf-8')):
        if data.startswith(bom):
            return encoding, bom

    return DEFAULT_ENCODING, b''


class ByteLocator:
    """Translator of engine positions into byte offsets.

    The input is decoded once, the way the engine decodes it, and the
    text up to a position is re-encoded to measure it in bytes. Offsets
    are relative to the caller's input: bytes prepended to force an
    encoding are not counted.

    Attributes:
        data: Input as seen by the engine.
        prefix_size: Number of leading bytes not supplied by the caller.
    """

    def __init__(self, data: bytes, prefix_size: int = 0) -> None:
        self.data = data
        self.prefix_size = prefix_size
        self.encoding, self.bom = detect_encoding(data)

        self._text: str | None = None

    @property
    def text(self) -> str:
        """Decoded input, byte order mark included."""
        if self._text is None:
            errors = 'surrogateescape' if self.encoding == DEFAULT_ENCODING else 'replace'
            self._text = self.data.decode(self.encoding, errors=errors)

        return self._text

    def from_raw(self, position: int) -> int:
        """Translate a byte position of the engine input."""
        return min(max(position - self.prefix_size, 0), max(len(self.data) - self.prefix_size, 0))

    def from_index(self, index: int) -> int:
        """Translate a character index that counts the byte order mark."""
        return self.from_raw(self._size(self.text[:index]))

    def from_position(self, line: int, column: int) -> int:
        """Translate a zero based line and column.

        Columns do not count the byte order mark.
        """
        start = 1 if self.bom and self.text.startswith('\ufeff') else 0

        for _ in range(line):
            match = LINE_BREAKS.search(self.text, start)
            if match is None:
                break
            start = match.end()

        return self.from_raw(self._size(self.text[:start + column]))

    def _size(self, text: str) -> int:
        errors = 'surrogateescape' if self.encoding == DEFAULT_ENCODING else 'surrogatepass'
        return len(text.encode(self.encoding, errors=errors))
