"""
csharp_bindgen - C# P/Invoke binding generation for Rust FFI libraries

Extracts extern "C" functions, #[repr(C)] structs and integer-backed enums
from Rust source, walks everything an entry function reaches and emits a
C# static class that calls into the native library.
"""

from .ir import (
    DeclarationSet, FuncInfo, ParamInfo, StructInfo, FieldInfo, EnumInfo, EnumItem, AliasInfo,
    PrimitiveType, PointerType, ArrayType, NamedType, MappedType,
)
from .errors import (
    BindgenError, ParseFailure, UnknownRoot, UnresolvedType,
    UnsupportedRepresentation, UnboundedArray, AmbiguousType, NameConflict,
)
from .config import Configuration, ConfigSnapshot, CharWidth, TypeOverride
from .extractor import RustExtractor, extract
from .types import TypeMapper
from .resolver import DependencyResolver, Resolution
from .docs import DocConverter, DocBlock
from .codegen import CodeGen
from .generator import Generator, CSharpBuilder, build_csharp, build_all

__all__ = [
    'DeclarationSet', 'FuncInfo', 'ParamInfo', 'StructInfo', 'FieldInfo', 'EnumInfo', 'EnumItem', 'AliasInfo',
    'PrimitiveType', 'PointerType', 'ArrayType', 'NamedType', 'MappedType',
    'BindgenError', 'ParseFailure', 'UnknownRoot', 'UnresolvedType',
    'UnsupportedRepresentation', 'UnboundedArray', 'AmbiguousType', 'NameConflict',
    'Configuration', 'ConfigSnapshot', 'CharWidth', 'TypeOverride',
    'RustExtractor', 'extract',
    'TypeMapper',
    'DependencyResolver', 'Resolution',
    'DocConverter', 'DocBlock',
    'CodeGen',
    'Generator', 'CSharpBuilder', 'build_csharp', 'build_all',
]
