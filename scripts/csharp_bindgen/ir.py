"""
IR (Intermediate Representation) module

Declarations extracted from Rust source and the per-build bindings derived
from them.
"""

from dataclasses import dataclass
from typing import Iterator, Optional, Union

from .errors import AmbiguousType


# Names the extractor turns into PrimitiveType rather than NamedType.
# Being listed here says nothing about whether a C# mapping exists.
PRIMITIVE_NAMES = frozenset({
    'u8', 'u16', 'u32', 'u64', 'u128', 'usize',
    'i8', 'i16', 'i32', 'i64', 'i128', 'isize',
    'f32', 'f64', 'bool', 'char', 'str',
    'c_char', 'c_schar', 'c_uchar',
    'c_short', 'c_ushort', 'c_int', 'c_uint',
    'c_long', 'c_ulong', 'c_longlong', 'c_ulonglong',
    'c_float', 'c_double', 'c_void',
})


# =============================================================================
# Type references
# =============================================================================

@dataclass(frozen=True)
class PrimitiveType:
    """Built-in scalar type such as u8 or c_int"""
    name: str

    def spelling(self) -> str:
        return self.name

    def hint(self) -> str:
        return self.name


@dataclass(frozen=True)
class PointerType:
    """Raw pointer (*const T, *mut T) or reference (&T, &mut T)"""
    pointee: 'TypeRef'
    mutable: bool = False
    reference: bool = False

    def spelling(self) -> str:
        if self.reference:
            return ('&mut ' if self.mutable else '&') + self.pointee.spelling()
        return ('*mut ' if self.mutable else '*const ') + self.pointee.spelling()

    def hint(self) -> str:
        return self.pointee.hint() + ('&' if self.reference else '*')


@dataclass(frozen=True)
class ArrayType:
    """[T; N] array, or [T] / non-literal length when length is None"""
    element: 'TypeRef'
    length: Optional[int] = None

    def spelling(self) -> str:
        if self.length is None:
            return f'[{self.element.spelling()}]'
        return f'[{self.element.spelling()}; {self.length}]'

    def hint(self) -> str:
        size = '' if self.length is None else str(self.length)
        return f'{self.element.hint()}[{size}]'


@dataclass(frozen=True)
class NamedType:
    """Reference to a user type, resolved against extracted declarations later"""
    name: str

    def spelling(self) -> str:
        return self.name

    def hint(self) -> str:
        return self.name


TypeRef = Union[PrimitiveType, PointerType, ArrayType, NamedType]


def named_leaf(type_ref: TypeRef) -> Optional[str]:
    """Name at the bottom of a pointer/array chain, if it is a NamedType"""
    while isinstance(type_ref, (PointerType, ArrayType)):
        type_ref = type_ref.pointee if isinstance(type_ref, PointerType) else type_ref.element
    if isinstance(type_ref, NamedType):
        return type_ref.name
    return None


# =============================================================================
# Declarations
# =============================================================================

@dataclass(frozen=True)
class IntRepr:
    """Explicit integer backing width of an enum"""
    bits: int
    signed: bool

    @property
    def name(self) -> str:
        return f"{'i' if self.signed else 'u'}{self.bits}"

    @property
    def min_value(self) -> int:
        return -(1 << (self.bits - 1)) if self.signed else 0

    @property
    def max_value(self) -> int:
        return (1 << (self.bits - 1)) - 1 if self.signed else (1 << self.bits) - 1


@dataclass(frozen=True)
class ParamInfo:
    """Function parameter information"""
    name: str
    type: TypeRef


@dataclass(frozen=True)
class FuncInfo:
    """extern "C" function declaration"""
    name: str
    params: tuple[ParamInfo, ...]
    return_type: Optional[TypeRef] = None  # None means no return value
    doc: str = ''

    def shape(self) -> tuple:
        return ('fn', self.params, self.return_type)


@dataclass(frozen=True)
class FieldInfo:
    """Struct field information"""
    name: str
    type: TypeRef
    doc: str = ''


@dataclass(frozen=True)
class StructInfo:
    """#[repr(C)] struct"""
    name: str
    fields: tuple[FieldInfo, ...]
    doc: str = ''

    def shape(self) -> tuple:
        return ('struct', tuple((f.name, f.type) for f in self.fields))


@dataclass(frozen=True)
class EnumItem:
    """Enum variant"""
    name: str
    value: Optional[int] = None
    doc: str = ''


@dataclass(frozen=True)
class EnumInfo:
    """Field-less enum with an explicit integer repr"""
    name: str
    repr: IntRepr
    items: tuple[EnumItem, ...]
    doc: str = ''

    def shape(self) -> tuple:
        return ('enum', self.repr, tuple((i.name, i.value) for i in self.items))


@dataclass(frozen=True)
class AliasInfo:
    """type X = Y; resolved by following the target wherever X is used"""
    name: str
    target: TypeRef
    doc: str = ''

    def shape(self) -> tuple:
        return ('alias', self.target)


SourceDeclaration = Union[FuncInfo, StructInfo, EnumInfo, AliasInfo]


class DeclarationSet:
    """Append-only store of extracted declarations addressed by stable index"""

    def __init__(self):
        self._decls: list[SourceDeclaration] = []
        self._functions: dict[str, list[int]] = {}
        self._types: dict[str, list[int]] = {}

    def add(self, decl: SourceDeclaration) -> int:
        index = len(self._decls)
        self._decls.append(decl)
        table = self._functions if isinstance(decl, FuncInfo) else self._types
        table.setdefault(decl.name, []).append(index)
        return index

    def get(self, index: int) -> SourceDeclaration:
        return self._decls[index]

    def __len__(self) -> int:
        return len(self._decls)

    def __iter__(self) -> Iterator[SourceDeclaration]:
        return iter(self._decls)

    def has_function(self, name: str) -> bool:
        return name in self._functions

    def find_function(self, name: str) -> Optional[int]:
        """Index of the function called name, or None"""
        return self._pick(name, self._functions.get(name))

    def find_type(self, name: str, site: Optional[str] = None) -> Optional[int]:
        """Index of the struct, enum or alias called name, or None"""
        return self._pick(name, self._types.get(name), site)

    def _pick(self, name: str, indices: Optional[list[int]], site: Optional[str] = None) -> Optional[int]:
        if not indices:
            return None
        first = self._decls[indices[0]]
        for index in indices[1:]:
            if self._decls[index].shape() != first.shape():
                raise AmbiguousType(name, site)
        return indices[0]


# =============================================================================
# Bindings (one build only)
# =============================================================================

@dataclass(frozen=True)
class MappedType:
    """C# form of a TypeRef"""
    name: str                     # C# type name
    source: str                   # Rust hint for doc remarks
    marshal: Optional[str] = None  # Attribute body, e.g. MarshalAs(UnmanagedType.U1)


@dataclass(frozen=True)
class ResolvedFunction:
    index: int
    decl: FuncInfo
    params: tuple[MappedType, ...]
    return_type: MappedType


@dataclass(frozen=True)
class ResolvedStruct:
    index: int
    decl: StructInfo
    fields: tuple[MappedType, ...]


@dataclass(frozen=True)
class ResolvedEnum:
    index: int
    decl: EnumInfo
    backing: MappedType


ResolvedBinding = Union[ResolvedFunction, ResolvedStruct, ResolvedEnum]
