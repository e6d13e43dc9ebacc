"""
Main generator module

Orchestrates extraction, resolution, type mapping and emission to produce
one C# source file.
"""

import dataclasses
import logging
from typing import Optional

from .codegen import CodeGen, as_pascal_case, escape_identifier
from .config import ConfigSnapshot, Configuration
from .docs import DocConverter
from .enum import EnumGenerator
from .errors import NameConflict, UnknownRoot
from .extractor import extract
from .func import FuncGenerator
from .ir import DeclarationSet, ResolvedEnum, ResolvedFunction, ResolvedStruct
from .resolver import DependencyResolver, Resolution
from .struct import StructGenerator
from .types import TypeMapper

logger = logging.getLogger('csharp_bindgen.generator')

HEADER = (
    '// <auto-generated>',
    '// This code was generated by csharp_bindgen. Do not edit it by hand.',
    '// </auto-generated>',
)

USINGS = (
    'using System;',
    'using System.Runtime.InteropServices;',
)


class Generator:
    """Emits a resolved declaration set as a C# source file"""

    def __init__(self, decls: DeclarationSet, config: ConfigSnapshot):
        self.decls = decls
        self.config = config
        self.type_mapper = TypeMapper(decls, config)
        docs = DocConverter()
        self.enum_gen = EnumGenerator(docs)
        self.struct_gen = StructGenerator(config, docs)
        self.func_gen = FuncGenerator(config, docs)

    def resolver(self) -> DependencyResolver:
        return DependencyResolver(self.decls, self.type_mapper)

    def generate(self, resolution: Resolution) -> str:
        """Generate complete C# file for the declarations in resolution"""
        # Bind everything before writing anything so errors leave no output
        bindings = [self.type_mapper.bind(i, self.decls.get(i)) for i in resolution.order]
        self._check_names(bindings)

        gen = CodeGen()
        gen.lines(*HEADER)
        gen.lines(*USINGS)
        gen.line()

        if self.config.namespace:
            with gen.block(f'namespace {self.config.namespace}'):
                self._gen_class(bindings, gen)
        else:
            self._gen_class(bindings, gen)

        return gen.output()

    def _check_names(self, bindings: list):
        """Fail if two generated members would share a name in one scope"""
        class_name = self.config.type_name
        members = {class_name: f"class '{class_name}'"}
        for binding in bindings:
            decl = binding.decl
            if isinstance(binding, ResolvedFunction):
                name, what = as_pascal_case(decl.name), f"function '{decl.name}'"
            elif isinstance(binding, ResolvedStruct):
                name, what = escape_identifier(decl.name), f"struct '{decl.name}'"
            else:
                name, what = escape_identifier(decl.name), f"enum '{decl.name}'"
            name = name.lstrip('@')
            if name in members:
                raise NameConflict(name, members[name], what)
            members[name] = what

            # Members of a type can't repeat each other or the type's own name
            if isinstance(binding, ResolvedStruct):
                inner = [(as_pascal_case(f.name), f"field '{f.name}' of {what}") for f in decl.fields]
            elif isinstance(binding, ResolvedEnum):
                inner = [(escape_identifier(i.name), f"variant '{i.name}' of {what}") for i in decl.items]
            else:
                inner = []
            scope = {name: what}
            for member, member_what in inner:
                member = member.lstrip('@')
                if member in scope:
                    raise NameConflict(member, scope[member], member_what)
                scope[member] = member_what

    def _gen_class(self, bindings: list, gen: CodeGen):
        with gen.block(f'internal static class {self.config.type_name}'):
            for i, binding in enumerate(bindings):
                if i > 0:
                    gen.line()
                if isinstance(binding, ResolvedFunction):
                    self.func_gen.generate(binding, gen)
                elif isinstance(binding, ResolvedStruct):
                    self.struct_gen.generate(binding, gen)
                elif isinstance(binding, ResolvedEnum):
                    self.enum_gen.generate(binding, gen)


def build_csharp(decls: DeclarationSet, entry: str, config: ConfigSnapshot) -> str:
    """Generate bindings for entry and everything it reaches"""
    logger.info('building %s (%d declarations extracted)', entry, len(decls))
    generator = Generator(decls, config)
    resolution = generator.resolver().resolve(entry)
    output = generator.generate(resolution)
    logger.info('built %s: %d declarations emitted', entry, len(resolution.order))
    return output


def build_all(source: str, entries: list[str], config: Optional[Configuration] = None) -> str:
    """Generate one file covering several entry functions"""
    if not entries:
        raise ValueError('At least one entry function is required')
    config = config if config is not None else Configuration()
    decls = extract(source)

    logger.info('building %s (%d declarations extracted)', ', '.join(entries), len(decls))
    generator = Generator(decls, config.snapshot(entries[0]))
    resolution = generator.resolver().resolve_all(entries)
    output = generator.generate(resolution)
    logger.info('built %d entries: %d declarations emitted', len(entries), len(resolution.order))
    return output


class CSharpBuilder:
    """Single-use builder for the bindings of one entry function"""

    def __init__(self, source: str, entry: str, config: Optional[Configuration] = None):
        self.entry = entry
        if config is None:
            config = Configuration()
        self.config = dataclasses.replace(config, overrides=dict(config.overrides))
        self.decls = extract(source)
        if self.decls.find_function(entry) is None:
            raise UnknownRoot(entry)
        self._consumed = False

    def set_namespace(self, namespace: str):
        self.config.namespace = namespace

    def set_type(self, type_name: str):
        self.config.type_name = type_name

    def build(self) -> str:
        """Generate the bindings; the builder cannot be used afterwards"""
        if self._consumed:
            raise RuntimeError('CSharpBuilder.build() can only be called once')
        self._consumed = True
        return build_csharp(self.decls, self.entry, self.config.snapshot(self.entry))
