"""
Extractor module

Walks a tree-sitter Rust syntax tree and collects the declarations that carry
an FFI marker: pub extern "C" functions, #[repr(C)] structs and enums with an
explicit integer repr.
"""

import logging
import re
from typing import Optional

import tree_sitter_rust
from tree_sitter import Language, Node, Parser

from .errors import ParseFailure, UnsupportedRepresentation
from .ir import (
    PRIMITIVE_NAMES, AliasInfo, ArrayType, DeclarationSet, EnumInfo, EnumItem, FieldInfo,
    FuncInfo, IntRepr, NamedType, ParamInfo, PointerType, PrimitiveType,
    SourceDeclaration, StructInfo, TypeRef,
)

logger = logging.getLogger('csharp_bindgen.extractor')

RUST_LANGUAGE = Language(tree_sitter_rust.language())

INT_REPRS = {
    'u8': IntRepr(8, False), 'u16': IntRepr(16, False),
    'u32': IntRepr(32, False), 'u64': IntRepr(64, False),
    'i8': IntRepr(8, True), 'i16': IntRepr(16, True),
    'i32': IntRepr(32, True), 'i64': IntRepr(64, True),
}

# Valid Rust reprs whose width is not one of 8/16/32/64
UNFIXED_INT_REPRS = {'u128', 'i128', 'usize', 'isize'}

_REPR_RE = re.compile(r'^#\s*\[\s*repr\s*\((?P<args>.*)\)\s*\]$', re.DOTALL)
_DOC_ATTR_RE = re.compile(r'^#\s*\[\s*doc\s*=\s*"(?P<text>(?:[^"\\]|\\.)*)"\s*\]$', re.DOTALL)
_EXTERN_C_RE = re.compile(r'\bextern\s+"C"')
_INT_LITERAL_RE = re.compile(
    r'^(0x[0-9a-f]+|0o[0-7]+|0b[01]+|[0-9]+)(?:[iu](?:8|16|32|64|128|size))?$', re.IGNORECASE)

_COMMENT_TYPES = ('line_comment', 'block_comment')


def _text(node: Node) -> str:
    return node.text.decode('utf-8')


def _ident(node: Node) -> str:
    """Identifier text without the raw identifier prefix (r#type -> type)"""
    name = _text(node)
    return name[2:] if name.startswith('r#') else name


def _parse_int(text: str) -> Optional[int]:
    """Parse a Rust integer literal, ignoring separators and type suffix"""
    match = _INT_LITERAL_RE.match(text.replace('_', ''))
    if match is None:
        return None
    digits = match.group(1).lower()
    if digits[:2] in ('0x', '0o', '0b'):
        return int(digits, 0)
    return int(digits, 10)


def _int_value(node: Node) -> Optional[int]:
    """Value of an integer literal expression, optionally negated or parenthesized"""
    if node.type == 'integer_literal':
        return _parse_int(_text(node))
    if node.type == 'parenthesized_expression' and node.named_child_count == 1:
        return _int_value(node.named_children[0])
    if node.type == 'unary_expression' and _text(node).lstrip().startswith('-'):
        operands = node.named_children
        if len(operands) == 1:
            value = _int_value(operands[0])
            return None if value is None else -value
    return None


def _split_args(args: str) -> list[str]:
    """Split 'C, align(8)' into ['C', 'align(8)'] at top-level commas"""
    parts, depth, current = [], 0, ''
    for ch in args:
        if ch == ',' and depth == 0:
            parts.append(current)
            current = ''
            continue
        if ch == '(':
            depth += 1
        elif ch == ')':
            depth -= 1
        current += ch
    parts.append(current)
    return [re.sub(r'\s+', '', p) for p in parts if p.strip()]


def _doc_from_comment(text: str) -> Optional[str]:
    """Outer doc comment text with comment syntax stripped, or None for plain comments"""
    text = text.rstrip('\r\n')
    if text.startswith('///') and not text.startswith('////'):
        return text[3:].strip()
    if text.startswith('/**') and not text.startswith('/***') and text != '/**/':
        lines = []
        for line in text[3:-2].splitlines():
            line = line.strip()
            if line.startswith('*'):
                line = line[1:].strip()
            lines.append(line)
        while lines and not lines[0]:
            lines.pop(0)
        while lines and not lines[-1]:
            lines.pop()
        return '\n'.join(lines)
    return None


def _doc_from_attribute(text: str) -> Optional[str]:
    match = _DOC_ATTR_RE.match(text)
    if match is None:
        return None
    value = match.group('text').replace('\\"', '"').replace('\\n', '\n').replace('\\\\', '\\')
    return '\n'.join(line.strip() for line in value.splitlines())


def _first_error(node: Node) -> Optional[Node]:
    if node.type == 'ERROR' or node.is_missing:
        return node
    for child in node.children:
        if child.has_error or child.is_missing:
            found = _first_error(child)
            if found is not None:
                return found
    return None


class RustExtractor:
    """Collects FFI declarations from Rust source text"""

    def __init__(self):
        self._parser = Parser(RUST_LANGUAGE)

    def extract(self, source: str) -> DeclarationSet:
        """Parse source and return the selected declarations in source order"""
        tree = self._parser.parse(source.encode('utf-8'))
        root = tree.root_node
        if root.has_error:
            self._raise_parse_failure(root)

        decls = DeclarationSet()
        self._walk_items(root, decls)
        logger.debug('extracted %d declaration(s)', len(decls))
        return decls

    def _raise_parse_failure(self, root: Node):
        bad = _first_error(root) or root
        line, column = bad.start_point[0] + 1, bad.start_point[1] + 1
        if bad.is_missing:
            message = f"missing '{bad.type}'"
        else:
            snippet = _text(bad).strip().splitlines()
            message = f"unexpected '{snippet[0][:40]}'" if snippet else 'unexpected end of input'
        raise ParseFailure(message, line, column)

    def _walk_items(self, container: Node, decls: DeclarationSet):
        for node in container.named_children:
            decl: Optional[SourceDeclaration] = None
            if node.type in ('function_item', 'function_signature_item'):
                decl = self._extract_function(node)
            elif node.type == 'struct_item':
                decl = self._extract_struct(node)
            elif node.type == 'enum_item':
                decl = self._extract_enum(node)
            elif node.type == 'type_item':
                decl = self._extract_alias(node)
            elif node.type == 'mod_item':
                body = node.child_by_field_name('body')
                if body is not None:
                    self._walk_items(body, decls)
            if decl is not None:
                decls.add(decl)

    # -------------------------------------------------------------------------
    # Attributes and documentation
    # -------------------------------------------------------------------------

    def _leading(self, node: Node) -> tuple[list[str], str]:
        """Attributes and outer doc text immediately preceding node"""
        attrs: list[str] = []
        docs: list[str] = []
        sibling = node.prev_named_sibling
        while sibling is not None:
            if sibling.type == 'attribute_item':
                text = _text(sibling)
                doc = _doc_from_attribute(text)
                if doc is None:
                    attrs.append(text)
                else:
                    docs.append(doc)
            elif sibling.type in _COMMENT_TYPES:
                doc = _doc_from_comment(_text(sibling))
                if doc is not None:
                    docs.append(doc)
            else:
                break
            sibling = sibling.prev_named_sibling
        attrs.reverse()
        docs.reverse()
        return attrs, '\n'.join(docs)

    def _repr_args(self, attrs: list[str]) -> list[str]:
        args = []
        for attr in attrs:
            match = _REPR_RE.match(attr)
            if match is not None:
                args.extend(_split_args(match.group('args')))
        return args

    # -------------------------------------------------------------------------
    # Items
    # -------------------------------------------------------------------------

    def _extract_function(self, node: Node) -> Optional[FuncInfo]:
        name = _ident(node.child_by_field_name('name'))
        is_pub = any(c.type == 'visibility_modifier' and _text(c) == 'pub' for c in node.children)
        modifiers = next((c for c in node.children if c.type == 'function_modifiers'), None)
        is_extern_c = modifiers is not None and _EXTERN_C_RE.search(_text(modifiers)) is not None
        if not (is_pub and is_extern_c):
            logger.debug('skipping function %s: not pub extern "C"', name)
            return None

        if node.child_by_field_name('type_parameters') is not None:
            raise UnsupportedRepresentation(
                f"Generic function '{name}' cannot be exported to C#", name=name)

        _, doc = self._leading(node)
        params = []
        for index, param in enumerate(node.child_by_field_name('parameters').named_children):
            if param.type == 'parameter':
                params.append(ParamInfo(
                    name=self._param_name(name, param, index),
                    type=self._type_ref(param.child_by_field_name('type')),
                ))
            elif param.type == 'self_parameter':
                raise UnsupportedRepresentation(
                    f"Receiver parameters aren't supported (function '{name}')", name=name)
            elif param.type == 'variadic_parameter':
                raise UnsupportedRepresentation(
                    f"Variadic parameters aren't supported (function '{name}')", name=name)
            elif param.type not in ('attribute_item',) + _COMMENT_TYPES:
                raise UnsupportedRepresentation(
                    f"Unsupported parameter '{_text(param)}' in function '{name}'", name=name)

        return_node = node.child_by_field_name('return_type')
        return_type = None
        if return_node is not None and return_node.type != 'unit_type':
            return_type = self._type_ref(return_node)

        logger.debug('selected function %s', name)
        return FuncInfo(name=name, params=tuple(params), return_type=return_type, doc=doc)

    def _param_name(self, func_name: str, param: Node, index: int) -> str:
        pattern = param.child_by_field_name('pattern')
        if pattern.type == 'mut_pattern' and pattern.named_child_count:
            pattern = pattern.named_children[-1]
        if pattern.type == 'identifier':
            return _ident(pattern)
        if pattern.type == '_':
            return f'arg{index}'
        raise UnsupportedRepresentation(
            f"Parameters that are not identifiers aren't supported "
            f"('{_text(pattern)}' in function '{func_name}')", name=func_name)

    def _extract_struct(self, node: Node) -> Optional[StructInfo]:
        name = _ident(node.child_by_field_name('name'))
        attrs, doc = self._leading(node)
        args = self._repr_args(attrs)
        if not args or args == ['Rust']:
            logger.debug('skipping struct %s: no #[repr(C)]', name)
            return None

        extra = [a for a in args if a != 'C']
        if 'C' not in args or extra:
            raise UnsupportedRepresentation(
                f"#[repr({', '.join(args)})] on struct '{name}' requests a layout that cannot be "
                f"generated; only plain #[repr(C)] is supported", name=name)
        if node.child_by_field_name('type_parameters') is not None:
            raise UnsupportedRepresentation(
                f"Generic struct '{name}' cannot be exported to C#", name=name)

        body = node.child_by_field_name('body')
        if body is None or body.type != 'field_declaration_list':
            raise UnsupportedRepresentation(
                f"Struct '{name}' must have named fields to be exported to C#", name=name)

        fields = []
        for child in body.named_children:
            if child.type != 'field_declaration':
                continue
            _, field_doc = self._leading(child)
            fields.append(FieldInfo(
                name=_ident(child.child_by_field_name('name')),
                type=self._type_ref(child.child_by_field_name('type')),
                doc=field_doc,
            ))
        if not fields:
            raise UnsupportedRepresentation(
                f"Struct '{name}' has no fields; zero-sized structs have no C layout", name=name)

        logger.debug('selected struct %s (%d fields)', name, len(fields))
        return StructInfo(name=name, fields=tuple(fields), doc=doc)

    def _extract_enum(self, node: Node) -> Optional[EnumInfo]:
        name = _ident(node.child_by_field_name('name'))
        attrs, doc = self._leading(node)
        args = self._repr_args(attrs)
        if not args or args == ['Rust']:
            logger.debug('skipping enum %s: no integer repr', name)
            return None

        for arg in args:
            if arg in UNFIXED_INT_REPRS:
                raise UnsupportedRepresentation(
                    f"#[repr({arg})] on enum '{name}' is not an 8, 16, 32 or 64 bit width", name=name)
            if arg not in INT_REPRS and arg not in ('C', 'Rust'):
                raise UnsupportedRepresentation(
                    f"#[repr({arg})] on enum '{name}' is not supported", name=name)

        widths = [a for a in args if a in INT_REPRS]
        if not widths:
            raise UnsupportedRepresentation(
                f"The size of a #[repr(C)] enum is not specifically defined. "
                f"Please use #[repr(u*)] or #[repr(i*)] on enum '{name}' to define an actual size",
                name=name)
        if len(set(widths)) > 1:
            raise UnsupportedRepresentation(
                f"Enum '{name}' declares conflicting reprs: {', '.join(widths)}", name=name)
        if node.child_by_field_name('type_parameters') is not None:
            raise UnsupportedRepresentation(
                f"Generic enum '{name}' cannot be exported to C#", name=name)

        repr_ = INT_REPRS[widths[0]]
        items = []
        next_value = 0
        body = node.child_by_field_name('body')
        for variant in body.named_children:
            if variant.type != 'enum_variant':
                continue
            variant_name = _ident(variant.child_by_field_name('name'))
            if variant.child_by_field_name('body') is not None:
                raise UnsupportedRepresentation(
                    f"Enum '{name}' has variant '{variant_name}' with fields; only field-less "
                    f"enums are supported", name=name)

            value = None
            value_node = variant.child_by_field_name('value')
            if value_node is not None:
                value = _int_value(value_node)
                if value is None:
                    raise UnsupportedRepresentation(
                        f"Discriminant of '{name}::{variant_name}' must be an integer literal",
                        name=name)
            effective = next_value if value is None else value
            if not repr_.min_value <= effective <= repr_.max_value:
                raise UnsupportedRepresentation(
                    f"Discriminant {effective} of '{name}::{variant_name}' does not fit "
                    f"#[repr({repr_.name})]", name=name)
            next_value = effective + 1

            _, variant_doc = self._leading(variant)
            items.append(EnumItem(name=variant_name, value=value, doc=variant_doc))

        logger.debug('selected enum %s: %s', name, repr_.name)
        return EnumInfo(name=name, repr=repr_, items=tuple(items), doc=doc)

    def _extract_alias(self, node: Node) -> Optional[AliasInfo]:
        name = _ident(node.child_by_field_name('name'))
        if node.child_by_field_name('type_parameters') is not None:
            logger.debug('skipping generic type alias %s', name)
            return None
        _, doc = self._leading(node)
        target = self._type_ref(node.child_by_field_name('type'))
        logger.debug('selected type alias %s = %s', name, target.spelling())
        return AliasInfo(name=name, target=target, doc=doc)

    # -------------------------------------------------------------------------
    # Types
    # -------------------------------------------------------------------------

    def _type_ref(self, node: Node) -> TypeRef:
        kind = node.type
        if kind == 'primitive_type':
            return PrimitiveType(_text(node))
        if kind in ('type_identifier', 'scoped_type_identifier'):
            leaf = node.child_by_field_name('name') if kind == 'scoped_type_identifier' else node
            name = _ident(leaf)
            return PrimitiveType(name) if name in PRIMITIVE_NAMES else NamedType(name)
        if kind in ('pointer_type', 'reference_type'):
            return PointerType(
                pointee=self._type_ref(node.child_by_field_name('type')),
                mutable=any(c.type == 'mutable_specifier' for c in node.children),
                reference=kind == 'reference_type',
            )
        if kind == 'array_type':
            length_node = node.child_by_field_name('length')
            return ArrayType(
                element=self._type_ref(node.child_by_field_name('element')),
                length=None if length_node is None else _int_value(length_node),
            )
        # Generic, tuple, function pointer and trait object types stay as their
        # spelling; they only fail if reachable and not overridden.
        return NamedType(re.sub(r'\s+', ' ', _text(node)).strip())


def extract(source: str) -> DeclarationSet:
    """Extract FFI declarations from Rust source text"""
    return RustExtractor().extract(source)
