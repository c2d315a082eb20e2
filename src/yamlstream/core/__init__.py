"""Core parsing infrastructure.

This package binds the YAML engine behind a safe, pull-based interface.

It provides:
- a base parser wrapper owning one engine instance and its lifecycle;
- input adapters for in-memory buffers and binary streams;
- event and document iterators written once against both adapters;
- single-pass document composition with anchor and alias resolution.

The primary public entry points are `ByteParser` and `ReaderParser`,
whose `parse_events()` and `load_documents()` methods return lazy
iterators over owned events and documents.
"""

from .adapters import ByteParser, ReaderParser, load, open_parser, parse
from .engine import BaseParser, RawEventSlot
from .streams import DocumentStream, EventStream

__all__ = (
    'BaseParser',
    'ByteParser',
    'DocumentStream',
    'EventStream',
    'RawEventSlot',
    'ReaderParser',
    'load',
    'open_parser',
    'parse',
)
