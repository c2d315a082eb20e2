"""Base Pydantic models and runtime settings.

This module defines the foundational model classes used by events,
marks, nodes and documents, and the settings model resolving parser
configuration from the environment.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

#: Engine selection.
#: `auto` prefers the libyaml binding and falls back to the pure-Python parser.
type EngineName = Literal['auto', 'libyaml', 'python']


class OwnedModel(BaseModel):
    """Base immutable model for all values handed out to callers.

    Design principles enforced by this model:
        - Immutability: events, marks and nodes cannot be modified after
          creation, so a node shared through an alias can not be changed
          through one of its occurrences.
        - Ownership: instances hold only plain Python values copied out
          of the engine, never engine objects.
        - Strict schema: unknown fields are rejected.

    All event and node models must inherit from this class.
    """

    model_config = ConfigDict(
        frozen=True,
        extra='forbid',
    )


class SettingsModel(BaseSettings):
    """Base immutable model for runtime settings.

    Design principles enforced by this model:
        - Immutability: resolved settings cannot be modified after creation.
          This guarantees consistent behavior for the lifetime of a parser.
        - Tolerant schema handling: unknown or extra fields are ignored.
          This allows the surrounding environment to contain unrelated
          variables without breaking configuration resolution.

    All runtime settings models must inherit from this class.
    """

    model_config = SettingsConfigDict(
        frozen=True,
        extra='ignore',
    )


class ParserSettings(SettingsModel):
    """Parser configuration.

    Values are read from `YAMLSTREAM_*` environment variables unless
    passed explicitly.
    """

    model_config = SettingsConfigDict(
        frozen=True,
        extra='ignore',
        env_prefix='YAMLSTREAM_',
    )

    engine: EngineName = Field(
        default='auto',
        title='Engine',
        description=(
            'YAML engine driving the parser. '
            '`libyaml` requires PyYAML built with libyaml bindings, '
            '`python` uses the pure-Python parser, '
            '`auto` picks the first available.'
        ),
    )

    read_size: int = Field(
        default=65536,
        gt=0,
        title='Read size',
        description='Maximum number of bytes pulled from a reader per engine request.',
    )

    warn_duplicate_anchors: bool = Field(
        default=True,
        title='Warn on duplicate anchors',
        description='Emit a warning when an anchor is redefined within one document.',
    )
