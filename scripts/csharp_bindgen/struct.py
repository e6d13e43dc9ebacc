"""
Struct binding generation module

Generates sequential-layout C# structs with read-only properties and a
positional constructor.
"""

from .codegen import CodeGen, as_camel_case, as_pascal_case, escape_identifier
from .config import ConfigSnapshot
from .docs import DocConverter
from .ir import ResolvedStruct

# init accessors arrived in C# 9
INIT_ACCESSOR_MIN_VERSION = 9


class StructGenerator:
    """Generates struct declarations"""

    def __init__(self, config: ConfigSnapshot, docs: DocConverter):
        self.config = config
        self.docs = docs

    @property
    def accessors(self) -> str:
        if self.config.csharp_version >= INIT_ACCESSOR_MIN_VERSION:
            return '{ get; init; }'
        return '{ get; private set; }'

    def generate(self, binding: ResolvedStruct, gen: CodeGen):
        """Generate struct with properties and constructor"""
        struct = binding.decl
        struct_name = escape_identifier(struct.name)
        members = list(zip(struct.fields, binding.fields))

        gen.lines(*self.docs.render(self.docs.for_declaration(struct.doc)))
        gen.line(f'[StructLayout(LayoutKind.Sequential, CharSet = {self.config.char_width.charset})]')

        with gen.block(f'public struct {struct_name}'):
            # Properties, in declared order so the layout matches
            for field, mapped in members:
                gen.lines(*self.docs.render(self.docs.for_member(field.doc, mapped.source)))
                if mapped.marshal:
                    gen.line(f'[field: {mapped.marshal}]')
                gen.line(f'public {mapped.name} {as_pascal_case(field.name)} {self.accessors}')

            gen.line()
            params = ', '.join(f'{mapped.name} {as_camel_case(field.name)}' for field, mapped in members)
            with gen.block(f'public {struct_name}({params})'):
                for field, _ in members:
                    gen.line(f'{as_pascal_case(field.name)} = {as_camel_case(field.name)};')
