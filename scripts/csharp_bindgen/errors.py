"""
Error types

Every stage raises one of these and the first one aborts the build.
"""

from typing import Optional


class BindgenError(Exception):
    """Base class for all binding generation errors"""

    def __init__(self, message: str, name: Optional[str] = None, site: Optional[str] = None):
        self.message = message
        self.name = name
        self.site = site
        super().__init__(message)

    @property
    def kind(self) -> str:
        return type(self).__name__


class ParseFailure(BindgenError):
    """Source text could not be parsed"""

    def __init__(self, message: str, line: int = 0, column: int = 0):
        self.line = line
        self.column = column
        super().__init__(f'Parse error at line {line}, column {column}: {message}')


class UnknownRoot(BindgenError):
    """Requested entry function was not extracted"""

    def __init__(self, name: str):
        super().__init__(f"No extern \"C\" function named '{name}' was found", name=name)


class UnresolvedType(BindgenError):
    """Reachable type is neither a mapped primitive, an override nor an extracted declaration"""

    def __init__(self, name: str, site: str):
        super().__init__(f"Type '{name}' used by {site} could not be resolved", name=name, site=site)


class UnsupportedRepresentation(BindgenError):
    """A recognised marker or construct asks for something this tool does not generate"""

    def __init__(self, message: str, name: Optional[str] = None, site: Optional[str] = None):
        super().__init__(message, name=name, site=site)


class UnboundedArray(BindgenError):
    """Array type without a statically known length"""

    def __init__(self, name: str, site: str):
        super().__init__(
            f"Array type '{name}' used by {site} has no fixed length and cannot be passed by value",
            name=name, site=site)


class AmbiguousType(BindgenError):
    """Two extracted declarations share a name but differ in shape"""

    def __init__(self, name: str, site: Optional[str] = None):
        where = f' (used by {site})' if site else ''
        super().__init__(
            f"Type name '{name}' refers to more than one differing declaration{where}",
            name=name, site=site)


class NameConflict(BindgenError):
    """Two generated members would share a C# name in the same scope"""

    def __init__(self, name: str, first: str, second: str):
        self.first = first
        self.second = second
        super().__init__(
            f"Generated name '{name}' is used by both {first} and {second}",
            name=name, site=second)
