"""Tests for command-line utilities."""

import json
from typing import TYPE_CHECKING

import pytest
from click.testing import CliRunner

from yamlstream.__main__ import cli, simplify
from yamlstream.nodes import MappingNode, ScalarNode, SequenceNode

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def source(tmp_path: 'Path') -> 'Path':
    """Provide a YAML file with two documents."""
    path = tmp_path / 'input.yaml'
    path.write_bytes(b'base: &b [1, 2]\ncopy: *b\n--- plain\n')
    return path


def test_events_command(source: 'Path', engine: str) -> None:
    """Events are printed one per line."""
    result = CliRunner().invoke(cli, ['events', '--engine', engine, str(source)])

    assert result.exit_code == 0, result.output

    lines = result.output.splitlines()
    assert lines[0].startswith('StreamStartEvent(')
    assert lines[-1].startswith('StreamEndEvent(')
    assert sum(line.startswith('DocumentStartEvent(') for line in lines) == 2
    assert any(line.startswith("AliasEvent(kind='alias', anchor='b')") for line in lines)


def test_documents_command(source: 'Path', engine: str) -> None:
    """Documents are printed as JSON, one per line."""
    result = CliRunner().invoke(cli, ['documents', '--engine', engine, str(source)])

    assert result.exit_code == 0, result.output
    assert [json.loads(line) for line in result.output.splitlines()] == [
        {'base': ['1', '2'], 'copy': ['1', '2']},
        'plain',
    ]


def test_documents_command_encoding(tmp_path: 'Path') -> None:
    """The encoding option forces the input encoding."""
    path = tmp_path / 'input.yaml'
    path.write_bytes('key: значение'.encode('utf-16-be'))

    result = CliRunner().invoke(cli, ['documents', '-e', 'utf-16-be', str(path)])

    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == {'key': 'значение'}


@pytest.mark.parametrize('command', ('events', 'documents'))
def test_command_error(command: str, tmp_path: 'Path') -> None:
    """Parsing failures are reported without a traceback."""
    path = tmp_path / 'broken.yaml'
    path.write_bytes(b'key: "unterminated\n')

    result = CliRunner().invoke(cli, [command, str(path)])

    assert result.exit_code == 1
    assert 'Error: while scanning a quoted scalar' in result.output
    assert 'found unexpected end of stream' in result.output


def test_simplify_complex_keys() -> None:
    """Mappings with non-scalar keys become lists of pairs."""
    key = SequenceNode(items=(ScalarNode(value='a'), ))
    node = MappingNode(entries=((key, ScalarNode(value='b')), ))

    assert simplify(node) == [[['a'], 'b']]


def test_simplify_repeated_keys() -> None:
    """Mappings repeating a scalar key keep every entry as pairs."""
    node = MappingNode(entries=(
        (ScalarNode(value='a'), ScalarNode(value='1')),
        (ScalarNode(value='a'), ScalarNode(value='2')),
    ))

    assert simplify(node) == [['a', '1'], ['a', '2']]


def test_documents_command_repeated_keys(tmp_path: 'Path') -> None:
    """Repeated keys are printed without losing entries."""
    path = tmp_path / 'input.yaml'
    path.write_bytes(b'a: 1\na: 2\n')

    result = CliRunner().invoke(cli, ['documents', str(path)])

    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == [['a', '1'], ['a', '2']]
