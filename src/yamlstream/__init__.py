"""Streaming, pull-based YAML parsing over PyYAML's event engine.

The `yamlstream` package turns the engine's transient events into an
iterator of owned, immutable events, and builds document trees with
anchors and aliases resolved.

Key features:
- byte-backed and stream-backed parsers sharing one interface;
- lazy, forward-only event and document iterators;
- structured errors with category, problem, marks and the wrapped
  I/O failure of the underlying stream;
- deterministic release of the engine on every exit path.
"""

from yamlstream.core import ByteParser, ReaderParser, load, parse
from yamlstream.enums import CollectionStyle, Encoding, ErrorKind, ScalarStyle
from yamlstream.errors import EngineFault, YamlError
from yamlstream.models import ParserSettings

__all__ = (
    'ByteParser',
    'CollectionStyle',
    'Encoding',
    'EngineFault',
    'ErrorKind',
    'ParserSettings',
    'ReaderParser',
    'ScalarStyle',
    'YamlError',
    'load',
    'parse',
)
