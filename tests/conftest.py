"""Tests configurations and fixtures."""

from io import BytesIO
from typing import TYPE_CHECKING

import pytest
import yaml

from yamlstream.core import ByteParser, ReaderParser
from yamlstream.enums import Encoding
from yamlstream.models import ParserSettings

if TYPE_CHECKING:
    from collections.abc import Callable

    from yamlstream.core.adapters import ParserMixin

#: Engines available in the running interpreter.
ENGINES = ('python', 'libyaml') if getattr(yaml, 'CParser', None) else ('python', )


@pytest.fixture(params=ENGINES)
def engine(request: pytest.FixtureRequest) -> str:
    """Provide the name of each available engine in turn."""
    return request.param


@pytest.fixture
def settings(engine: str) -> ParserSettings:
    """Provide isolated parser settings bound to the current engine.

    Settings are built explicitly so that `YAMLSTREAM_*` variables of
    the surrounding environment can not change test behavior.
    """
    return ParserSettings(engine=engine, read_size=65536, warn_duplicate_anchors=True)


@pytest.fixture(params=('bytes', 'reader'))
def make_parser(request: pytest.FixtureRequest,
                settings: ParserSettings) -> 'Callable[..., ParserMixin]':
    """Provide a factory creating byte-backed or reader-backed parsers.

    The fixture is parametrized so that every test using it runs
    against both input adapters.
    """
    def make(data: bytes, encoding: Encoding = Encoding.AUTO) -> 'ParserMixin':
        """Create a parser over the data.

        Args:
            data: Input bytes.
            encoding: Encoding of the input.

        Returns:
            A parser of the adapter selected by the fixture parameter.
        """
        if request.param == 'reader':
            return ReaderParser(BytesIO(data), encoding, settings=settings)

        return ByteParser(data, encoding, settings=settings)

    return make
