"""Command-line utilities for inspecting YAML streams.

`events` prints the owned events of a file, one per line, and
`documents` prints the node tree of each document as JSON.
"""

from json import dumps
from typing import TYPE_CHECKING, Any

from click import Choice, ClickException, File, argument, echo, group, option

from yamlstream.core import ReaderParser
from yamlstream.enums import Encoding
from yamlstream.errors import YamlError
from yamlstream.models import ParserSettings
from yamlstream.nodes import MappingNode, ScalarNode

if TYPE_CHECKING:
    from io import BufferedReader

    from yamlstream.nodes import Node

InputFile = File(mode='rb')

encoding_option = option(
    '-e', '--encoding',
    type=Choice([item.value for item in Encoding]),
    default=Encoding.AUTO.value,
    show_default=True,
    help='Encoding of the input.',
)

engine_option = option(
    '--engine',
    type=Choice(['auto', 'libyaml', 'python']),
    default=None,
    help='YAML engine, overrides YAMLSTREAM_ENGINE.',
)


@group(help='Command-line utilities for inspecting YAML streams.')
def cli() -> None:
    """Root CLI group for yamlstream tools."""
    return None


def _make_parser(source: 'BufferedReader', encoding: str,
                 engine: str | None) -> ReaderParser:
    """Create a parser over an opened file."""
    settings = ParserSettings()
    if engine is not None:
        settings = settings.model_copy(update={'engine': engine})

    return ReaderParser(source, Encoding(encoding), settings=settings)


def simplify(node: 'Node') -> Any:  # noqa: ANN401
    """Convert a node tree into JSON-compatible values.

    Scalars stay text. Mappings whose keys are distinct scalars become
    objects, other mappings become lists of `[key, value]` pairs so
    that no entry is lost.
    """
    if isinstance(node, ScalarNode):
        return node.value

    if isinstance(node, MappingNode):
        pairs = [(simplify(key), simplify(value)) for key, value in node.pairs()]
        keys = [key.value for key in node.keys() if isinstance(key, ScalarNode)]
        if len(keys) == len(pairs) == len(set(keys)):
            return dict(pairs)
        return [list(pair) for pair in pairs]

    return [simplify(item) for item in node.values()]


@cli.command(
    name='events',
    help='Print the events of a YAML file, one per line.',
)
@encoding_option
@engine_option
@argument('source', type=InputFile)
def print_events(source: 'BufferedReader', encoding: str, engine: str | None) -> None:
    """Print parsed events."""
    with _make_parser(source, encoding, engine) as parser:
        try:
            for event in parser.parse_events():
                echo(repr(event))
        except YamlError as error:
            raise ClickException(str(error)) from error


@cli.command(
    name='documents',
    help='Print the node tree of each document of a YAML file as JSON.',
)
@encoding_option
@engine_option
@option('--indent', type=int, default=None, help='JSON indentation.')
@argument('source', type=InputFile)
def print_documents(source: 'BufferedReader', encoding: str,
                    engine: str | None, indent: int | None) -> None:
    """Print composed documents."""
    with _make_parser(source, encoding, engine) as parser:
        try:
            for document in parser.load_documents():
                echo(dumps(simplify(document.root), ensure_ascii=False, indent=indent))
        except YamlError as error:
            raise ClickException(str(error)) from error


if __name__ == '__main__':
    cli()
