"""
Type conversion module

Maps Rust type references to C# types plus marshaling directives.
"""

import dataclasses
import enum
import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional

from .config import CharWidth, ConfigSnapshot
from .errors import UnboundedArray, UnresolvedType, UnsupportedRepresentation
from .ir import (
    AliasInfo, ArrayType, DeclarationSet, EnumInfo, FieldInfo, FuncInfo, MappedType,
    NamedType, ParamInfo, PointerType, PrimitiveType, ResolvedBinding,
    ResolvedEnum, ResolvedFunction, ResolvedStruct, SourceDeclaration,
    StructInfo, TypeRef,
)

logger = logging.getLogger('csharp_bindgen.types')

BOOL_MARSHAL = 'MarshalAs(UnmanagedType.U1)'

# Rust primitive -> (C# type, marshal directive)
PRIMITIVES: dict[str, tuple[str, Optional[str]]] = {
    'u8': ('byte', None),
    'u16': ('ushort', None),
    'u32': ('uint', None),
    'u64': ('ulong', None),
    'i8': ('sbyte', None),
    'i16': ('short', None),
    'i32': ('int', None),
    'i64': ('long', None),
    'f32': ('float', None),
    'f64': ('double', None),
    'bool': ('bool', BOOL_MARSHAL),
    # Rust char is a 32-bit Unicode scalar value, not a C# char
    'char': ('uint', None),
    'c_schar': ('sbyte', None),
    'c_uchar': ('byte', None),
    'c_short': ('short', None),
    'c_ushort': ('ushort', None),
    'c_int': ('int', None),
    'c_uint': ('uint', None),
    'c_longlong': ('long', None),
    'c_ulonglong': ('ulong', None),
    'c_float': ('float', None),
    'c_double': ('double', None),
    'c_void': ('void', None),
}

# Pointer-sized integers: (C# 9 native integer, fallback)
NATIVE_INTS = {
    'usize': ('nuint', 'ulong'),
    'isize': ('nint', 'long'),
}
NATIVE_INT_MIN_VERSION = 9

TEXT_PRIMITIVES = {'c_char'}

CHAR_MARSHAL = {
    CharWidth.UTF8: 'MarshalAs(UnmanagedType.U1)',
    CharWidth.UTF16: 'MarshalAs(UnmanagedType.U2)',
}
STRING_MARSHAL = {
    CharWidth.UTF8: 'MarshalAs(UnmanagedType.LPUTF8Str)',
    CharWidth.UTF16: 'MarshalAs(UnmanagedType.LPWStr)',
}

_SIMPLE_MARSHAL_RE = re.compile(r'^MarshalAs\(UnmanagedType\.(\w+)\)$')


class Position(enum.Enum):
    PARAMETER = 'parameter'
    RETURN = 'return'
    FIELD = 'field'
    BACKING = 'backing'


@dataclass(frozen=True)
class UseSite:
    """Where a type reference appears, for mapping rules and error messages"""
    position: Position
    description: str

    def __str__(self) -> str:
        return self.description


def param_site(func: FuncInfo, param: ParamInfo) -> UseSite:
    return UseSite(Position.PARAMETER, f"parameter '{param.name}' of function '{func.name}'")


def return_site(func: FuncInfo) -> UseSite:
    return UseSite(Position.RETURN, f"return type of function '{func.name}'")


def field_site(struct: StructInfo, field: FieldInfo) -> UseSite:
    return UseSite(Position.FIELD, f"field '{field.name}' of struct '{struct.name}'")


def backing_site(enum_: EnumInfo) -> UseSite:
    return UseSite(Position.BACKING, f"backing type of enum '{enum_.name}'")


class TypeMapper:
    """Converts type references to C# types for one build"""

    def __init__(self, decls: DeclarationSet, config: ConfigSnapshot):
        self.decls = decls
        self.config = config
        self._expanding: set[str] = set()

    def is_overridden(self, type_ref: TypeRef) -> bool:
        """Check if the caller supplied a mapping for this exact spelling"""
        return type_ref.spelling() in self.config.overrides

    def map(self, type_ref: TypeRef, site: UseSite) -> MappedType:
        """Get the C# form of a type reference used at site"""
        override = self.config.overrides.get(type_ref.spelling())
        if override is not None:
            logger.debug('override %s -> %s at %s', type_ref.spelling(), override.target, site)
            return MappedType(override.target, type_ref.hint(), override.marshal)

        if isinstance(type_ref, PrimitiveType):
            return self._map_primitive(type_ref, site)
        elif isinstance(type_ref, PointerType):
            return self._map_pointer(type_ref, site)
        elif isinstance(type_ref, ArrayType):
            return self._map_array(type_ref, site)
        elif isinstance(type_ref, NamedType):
            return self._map_named(type_ref, site)
        raise TypeError(f'Unknown type reference: {type_ref!r}')

    def bind(self, index: int, decl: SourceDeclaration) -> ResolvedBinding:
        """Pair a declaration with its mapped C# types"""
        if isinstance(decl, FuncInfo):
            params = tuple(self.map(p.type, param_site(decl, p)) for p in decl.params)
            if decl.return_type is None:
                return_type = MappedType('void', 'void')
            else:
                return_type = self.map(decl.return_type, return_site(decl))
            return ResolvedFunction(index=index, decl=decl, params=params, return_type=return_type)
        elif isinstance(decl, StructInfo):
            fields = tuple(self.map(f.type, field_site(decl, f)) for f in decl.fields)
            return ResolvedStruct(index=index, decl=decl, fields=fields)
        elif isinstance(decl, EnumInfo):
            backing = self.map(PrimitiveType(decl.repr.name), backing_site(decl))
            return ResolvedEnum(index=index, decl=decl, backing=backing)
        raise TypeError(f'Unknown declaration: {decl!r}')

    def check_resolvable(self, type_ref: TypeRef, site: UseSite):
        """Fail unless type_ref names something mappable, without mapping it.

        Used for pointees, which only need a name, not a layout.
        """
        if self.is_overridden(type_ref):
            return
        if isinstance(type_ref, PrimitiveType):
            name = type_ref.name
            if name not in PRIMITIVES and name not in NATIVE_INTS and name not in TEXT_PRIMITIVES:
                raise UnresolvedType(name, str(site))
        elif isinstance(type_ref, PointerType):
            self.check_resolvable(type_ref.pointee, site)
        elif isinstance(type_ref, ArrayType):
            if type_ref.length is None:
                # *const [T] is a fat pointer with no C equivalent
                raise UnboundedArray(type_ref.spelling(), str(site))
            self.check_resolvable(type_ref.element, site)
        elif isinstance(type_ref, NamedType):
            decl = self.find_type(type_ref.name, site)
            if isinstance(decl, AliasInfo):
                self.expand_alias(decl, site, self.check_resolvable)
        else:
            raise TypeError(f'Unknown type reference: {type_ref!r}')

    def find_type(self, name: str, site: UseSite) -> SourceDeclaration:
        """Extracted struct, enum or alias called name"""
        index = self.decls.find_type(name, str(site))
        if index is None:
            raise UnresolvedType(name, str(site))
        return self.decls.get(index)

    def expand_alias(self, alias: AliasInfo, site: UseSite, visit: Callable):
        """Apply visit to the target of alias, failing on alias cycles"""
        if alias.name in self._expanding:
            raise UnsupportedRepresentation(
                f"Type alias '{alias.name}' used by {site} refers to itself",
                name=alias.name, site=str(site))
        self._expanding.add(alias.name)
        try:
            return visit(alias.target, site)
        finally:
            self._expanding.discard(alias.name)

    def passes_by_ref(self, type_ref: PointerType, site: UseSite) -> bool:
        """&T and &mut T parameters become ref parameters; elsewhere they are handles"""
        if not type_ref.reference or site.position is not Position.PARAMETER:
            return False
        pointee = type_ref.pointee
        if isinstance(pointee, ArrayType):
            return False
        return not (isinstance(pointee, PrimitiveType) and pointee.name == 'c_void')

    def _map_primitive(self, type_ref: PrimitiveType, site: UseSite) -> MappedType:
        name = type_ref.name
        if name in TEXT_PRIMITIVES:
            return MappedType('char', name, CHAR_MARSHAL[self.config.char_width])
        if name in NATIVE_INTS:
            modern, legacy = NATIVE_INTS[name]
            target = modern if self.config.csharp_version >= NATIVE_INT_MIN_VERSION else legacy
            return MappedType(target, name)
        if name == 'c_void' and site.position is not Position.RETURN:
            raise UnsupportedRepresentation(
                f"c_void used by value by {site}; use a pointer to c_void instead",
                name=name, site=str(site))
        if name in PRIMITIVES:
            target, marshal = PRIMITIVES[name]
            return MappedType(target, name, marshal)
        raise UnresolvedType(name, str(site))

    def _map_pointer(self, type_ref: PointerType, site: UseSite) -> MappedType:
        pointee = type_ref.pointee
        if self.passes_by_ref(type_ref, site):
            inner = self.map(pointee, site)
            return MappedType(f'ref {inner.name}', type_ref.hint(), inner.marshal)
        self.check_resolvable(pointee, site)
        is_c_string = (
            isinstance(pointee, PrimitiveType)
            and pointee.name in TEXT_PRIMITIVES
            and not type_ref.mutable
            and not type_ref.reference
        )
        # Only borrowed input strings are marshaled; returned or stored
        # strings stay raw so the marshaler never frees native memory.
        if is_c_string and site.position is Position.PARAMETER:
            return MappedType('string', type_ref.hint(), STRING_MARSHAL[self.config.char_width])
        return MappedType('IntPtr', type_ref.hint())

    def _map_array(self, type_ref: ArrayType, site: UseSite) -> MappedType:
        if type_ref.length is None:
            raise UnboundedArray(type_ref.spelling(), str(site))
        if site.position is not Position.FIELD:
            raise UnsupportedRepresentation(
                f"Fixed-size array '{type_ref.spelling()}' used by {site} can only be passed "
                f"by value inside a struct", name=type_ref.spelling(), site=str(site))

        # [[f32; 4]; 4] is laid out exactly like [f32; 16]
        element, length = type_ref.element, type_ref.length
        while isinstance(element, ArrayType) and not self.is_overridden(element):
            if element.length is None:
                raise UnboundedArray(element.spelling(), str(site))
            length *= element.length
            element = element.element

        if (isinstance(element, PrimitiveType) and element.name in TEXT_PRIMITIVES
                and not self.is_overridden(element)):
            return MappedType(
                'string', type_ref.hint(), f'MarshalAs(UnmanagedType.ByValTStr, SizeConst = {length})')

        inner = self.map(element, site)
        marshal = f'MarshalAs(UnmanagedType.ByValArray, SizeConst = {length}'
        sub_type = _SIMPLE_MARSHAL_RE.match(inner.marshal or '')
        if sub_type is not None:
            marshal += f', ArraySubType = UnmanagedType.{sub_type.group(1)}'
        return MappedType(f'{inner.name}[]', type_ref.hint(), marshal + ')')

    def _map_named(self, type_ref: NamedType, site: UseSite) -> MappedType:
        decl = self.find_type(type_ref.name, site)
        if isinstance(decl, AliasInfo):
            # The alias name stays in the doc hint
            mapped = self.expand_alias(decl, site, self.map)
            return dataclasses.replace(mapped, source=type_ref.hint())
        return MappedType(decl.name, type_ref.hint())
