"""Document trees.

This module defines the resolved in-memory structure produced from an
event stream: scalar, sequence and mapping nodes, and the document
owning a root node together with the anchor table used to resolve
aliases while the document was built.

Aliased nodes are shared: an alias resolves to the very node instance
registered under its anchor. Nodes are immutable and a collection is
registered only once it is complete, so a tree never contains a cycle.
"""

from collections.abc import Iterator
from typing import Annotated, Literal

from pydantic import Field

from yamlstream.enums import CollectionStyle, ScalarStyle
from yamlstream.events import Mark  # noqa: TC001
from yamlstream.models import OwnedModel

DEFAULT_SCALAR_TAG = 'tag:yaml.org,2002:str'
DEFAULT_SEQUENCE_TAG = 'tag:yaml.org,2002:seq'
DEFAULT_MAPPING_TAG = 'tag:yaml.org,2002:map'

#: Tags left for the application to resolve.
NON_SPECIFIC_TAGS = (None, '!')


class BaseNode(OwnedModel):
    """Fields common to all nodes."""

    tag: str
    anchor: str | None = None
    start_mark: Mark | None = Field(default=None, repr=False)
    end_mark: Mark | None = Field(default=None, repr=False)


class ScalarNode(BaseNode):
    """A scalar value, kept as text."""

    kind: Literal['scalar'] = 'scalar'
    tag: str = DEFAULT_SCALAR_TAG
    value: str = ''
    style: ScalarStyle = ScalarStyle.ANY


class SequenceNode(BaseNode):
    """An ordered list of nodes."""

    kind: Literal['sequence'] = 'sequence'
    tag: str = DEFAULT_SEQUENCE_TAG
    items: tuple['Node', ...] = ()
    style: CollectionStyle = CollectionStyle.ANY

    def values(self) -> Iterator['Node']:
        """Iterate over the sequence items in order."""
        return iter(self.items)


class MappingNode(BaseNode):
    """An ordered list of key/value node pairs.

    Pairs keep their encounter order; duplicate keys are kept as they
    appear in the input.
    """

    kind: Literal['mapping'] = 'mapping'
    tag: str = DEFAULT_MAPPING_TAG
    entries: tuple[tuple['Node', 'Node'], ...] = ()
    style: CollectionStyle = CollectionStyle.ANY

    def pairs(self) -> Iterator[tuple['Node', 'Node']]:
        """Iterate over key/value pairs in order."""
        return iter(self.entries)

    def keys(self) -> Iterator['Node']:
        """Iterate over keys in order."""
        return (key for key, _ in self.entries)


#: Any node.
Node = Annotated[
    ScalarNode | SequenceNode | MappingNode,
    Field(discriminator='kind'),
]

SequenceNode.model_rebuild()
MappingNode.model_rebuild()


class Document(OwnedModel):
    """One YAML document of a stream.

    Attributes:
        root: Root node, `None` for the empty document that ends a stream.
        anchors: Anchored nodes by name, valid within this document only.
        version: `%YAML` directive of the document.
        tags: `%TAG` directives of the document.
        start_implicit: Whether the document has no `---` marker.
        end_implicit: Whether the document has no `...` marker.
    """

    root: Node | None = None
    anchors: dict[str, Node] = Field(default_factory=dict, repr=False)
    version: tuple[int, int] | None = None
    tags: tuple[tuple[str, str], ...] = ()
    start_implicit: bool = True
    end_implicit: bool = True
    start_mark: Mark | None = Field(default=None, repr=False)
    end_mark: Mark | None = Field(default=None, repr=False)

    def is_empty(self) -> bool:
        """Whether the document has no root node."""
        return self.root is None


def resolve_tag(tag: str | None, default: str) -> str:
    """Replace a non-specific tag with the default tag of the node kind."""
    if tag in NON_SPECIFIC_TAGS:
        return default

    return tag  # type: ignore[return-value]
