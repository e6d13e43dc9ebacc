"""
Code generation utilities

Provides helpers for generating C# code.
"""


class CodeGen:
    """Code generation helper with indentation support"""

    def __init__(self):
        self._lines: list[str] = []
        self._indent: int = 0
        self._indent_str: str = '    '  # 4 spaces

    def line(self, text: str = ''):
        """Add a line with current indentation"""
        if text:
            self._lines.append(self._indent_str * self._indent + text)
        else:
            self._lines.append('')

    def lines(self, *texts: str):
        """Add multiple lines"""
        for text in texts:
            self.line(text)

    def indent(self):
        """Increase indentation"""
        self._indent += 1

    def dedent(self):
        """Decrease indentation"""
        if self._indent > 0:
            self._indent -= 1

    def block(self, header: str, opener: str = '{', footer: str = '}'):
        """Context manager for brace-on-next-line blocks"""
        return _BlockContext(self, header, opener, footer)

    def output(self) -> str:
        """Get generated code as string"""
        return '\n'.join(self._lines) + '\n'


class _BlockContext:
    """Context manager for indented code blocks"""

    def __init__(self, gen: CodeGen, header: str, opener: str, footer: str):
        self._gen = gen
        self._header = header
        self._opener = opener
        self._footer = footer

    def __enter__(self):
        self._gen.line(self._header)
        self._gen.line(self._opener)
        self._gen.indent()
        return self

    def __exit__(self, *args):
        self._gen.dedent()
        self._gen.line(self._footer)


# C# reserved keywords
CSHARP_KEYWORDS = {
    'abstract', 'as', 'base', 'bool', 'break', 'byte', 'case', 'catch',
    'char', 'checked', 'class', 'const', 'continue', 'decimal', 'default',
    'delegate', 'do', 'double', 'else', 'enum', 'event', 'explicit',
    'extern', 'false', 'finally', 'fixed', 'float', 'for', 'foreach',
    'goto', 'if', 'implicit', 'in', 'int', 'interface', 'internal', 'is',
    'lock', 'long', 'namespace', 'new', 'null', 'object', 'operator',
    'out', 'override', 'params', 'private', 'protected', 'public',
    'readonly', 'ref', 'return', 'sbyte', 'sealed', 'short', 'sizeof',
    'stackalloc', 'static', 'string', 'struct', 'switch', 'this', 'throw',
    'true', 'try', 'typeof', 'uint', 'ulong', 'unchecked', 'unsafe',
    'ushort', 'using', 'virtual', 'void', 'volatile', 'while',
}


def escape_identifier(name: str) -> str:
    """Prefix C# keywords with @ so they can be used as identifiers"""
    if name.startswith('r#'):
        name = name[2:]
    if name in CSHARP_KEYWORDS:
        return '@' + name
    return name


def as_pascal_case(name: str) -> str:
    """Convert Rust snake_case name to PascalCase

    Examples:
        foo_bar_zet -> FooBarZet
        field_a -> FieldA
        r#type -> Type
    """
    if name.startswith('r#'):
        name = name[2:]
    result = ''.join(part[0].upper() + part[1:] for part in name.split('_') if part)
    if not result or result[0].isdigit():
        result = '_' + result
    return escape_identifier(result)


def as_camel_case(name: str) -> str:
    """Convert Rust snake_case name to camelCase

    Examples:
        foo_bar -> fooBar
        r#type -> type
        r#string -> @string
    """
    pascal = as_pascal_case(name).lstrip('@')
    if pascal.startswith('_'):
        return escape_identifier(pascal)
    return escape_identifier(pascal[0].lower() + pascal[1:])
