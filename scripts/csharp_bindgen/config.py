"""Generator configuration."""

import enum
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional


class CharWidth(enum.Enum):
    """Width of one native text unit"""
    UTF8 = 1
    UTF16 = 2

    @property
    def charset(self) -> str:
        return 'CharSet.Ansi' if self is CharWidth.UTF8 else 'CharSet.Unicode'


@dataclass(frozen=True)
class TypeOverride:
    """Caller-supplied mapping for a Rust type spelling"""
    target: str
    marshal: Optional[str] = None


@dataclass
class Configuration:
    """Settings for one or more builds. Mutate before building only."""

    csharp_version: int = 9
    namespace: Optional[str] = None
    type_name: str = 'NativeMethods'
    dll_name: Optional[str] = None
    char_width: CharWidth = CharWidth.UTF16
    overrides: dict[str, TypeOverride] = field(default_factory=dict)

    def add_override(self, source: str, target: str, marshal: Optional[str] = None):
        """Map a Rust type spelling (u32, Handle, *const Foo) to a C# type"""
        self.overrides[source] = TypeOverride(target, marshal)

    def snapshot(self, entry: str) -> 'ConfigSnapshot':
        """Frozen copy used for the duration of a build"""
        return ConfigSnapshot(
            csharp_version=self.csharp_version,
            namespace=self.namespace,
            type_name=self.type_name,
            dll_name=self.dll_name or entry,
            char_width=self.char_width,
            overrides=MappingProxyType(dict(self.overrides)),
        )


@dataclass(frozen=True)
class ConfigSnapshot:
    csharp_version: int
    namespace: Optional[str]
    type_name: str
    dll_name: str
    char_width: CharWidth
    overrides: Mapping[str, TypeOverride]
