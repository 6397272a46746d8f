"""Options shared by all generators"""

from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional, Sequence

from .channel import DEFAULT_CHANNEL_PREFIX


@dataclass(frozen=True)
class GeneratorOptions:
    """Backend configuration.

    None of these settings affect the wire format except ``channel_prefix``,
    which both ends of a channel must agree on.
    """
    namespace: Optional[str] = None
    channel_prefix: str = DEFAULT_CHANNEL_PREFIX
    header: Optional[str] = None
    package: Optional[str] = None
    class_name: Optional[str] = None
    copyright_header: Optional[Sequence[str]] = None

    @classmethod
    def from_map(cls, values: Mapping[str, Any]) -> "GeneratorOptions":
        """Build options from a mapping, ignoring unknown keys"""
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in values.items() if k in known and v is not None}
        if 'copyright_header' in kwargs:
            kwargs['copyright_header'] = tuple(kwargs['copyright_header'])
        return cls(**kwargs)

    def to_map(self) -> dict[str, Any]:
        """Mapping of the options that are set; ``from_map(to_map())`` is identity"""
        result = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is not None:
                result[f.name] = list(value) if f.name == 'copyright_header' else value
        return result

    def merge(self, other: "GeneratorOptions") -> "GeneratorOptions":
        """Override these options with every value set in ``other``"""
        merged = self.to_map()
        overrides = other.to_map()
        if other.channel_prefix == DEFAULT_CHANNEL_PREFIX:
            overrides.pop('channel_prefix')
        merged.update(overrides)
        return GeneratorOptions.from_map(merged)
