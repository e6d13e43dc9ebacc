"""
Enum binding generation module

Generates C# enums with an explicit backing type.
"""

from .codegen import CodeGen, escape_identifier
from .docs import DocConverter
from .ir import ResolvedEnum


class EnumGenerator:
    """Generates enum declarations"""

    def __init__(self, docs: DocConverter):
        self.docs = docs

    def generate(self, binding: ResolvedEnum, gen: CodeGen):
        """Generate enum with documented variants"""
        enum = binding.decl
        gen.lines(*self.docs.render(self.docs.for_declaration(enum.doc)))

        with gen.block(f'public enum {escape_identifier(enum.name)} : {binding.backing.name}'):
            for item in enum.items:
                gen.lines(*self.docs.render(self.docs.for_member(item.doc)))
                name = escape_identifier(item.name)
                if item.value is not None:
                    gen.line(f'{name} = {item.value},')
                else:
                    gen.line(f'{name},')
