"""
Dependency resolution module

Computes the declarations reachable from an entry function, in the order
they are first reached.
"""

import logging
from collections import deque
from dataclasses import dataclass

from .errors import UnboundedArray, UnknownRoot, UnresolvedType
from .ir import (
    AliasInfo, ArrayType, DeclarationSet, EnumInfo, FuncInfo, NamedType, PointerType,
    PrimitiveType, StructInfo, TypeRef, named_leaf,
)
from .types import TypeMapper, UseSite, field_site, param_site, return_site

logger = logging.getLogger('csharp_bindgen.resolver')


@dataclass(frozen=True)
class Resolution:
    """Declaration indices in emission order, plus names only seen behind pointers"""
    order: tuple[int, ...]
    handles: tuple[str, ...] = ()


class DependencyResolver:
    """Breadth-first walk over declaration type references"""

    def __init__(self, decls: DeclarationSet, mapper: TypeMapper):
        self.decls = decls
        self.mapper = mapper

    def resolve(self, entry: str) -> Resolution:
        root = self.decls.find_function(entry)
        if root is None:
            raise UnknownRoot(entry)

        order = [root]
        seen = {root}
        handles: list[str] = []
        queue = deque([root])

        while queue:
            decl = self.decls.get(queue.popleft())
            for type_ref, site in self._references(decl):
                for index in self._visit(type_ref, site, handles):
                    if index in seen:
                        continue
                    logger.debug('enqueue %s (from %s)', self.decls.get(index).name, site)
                    seen.add(index)
                    order.append(index)
                    queue.append(index)

        logger.debug('resolved %s: %d declarations, %d handles', entry, len(order), len(handles))
        return Resolution(order=tuple(order), handles=tuple(handles))

    def resolve_all(self, entries: list[str]) -> Resolution:
        """Merge several single-root resolutions, keeping first-reached order"""
        order: list[int] = []
        handles: list[str] = []
        for entry in entries:
            resolution = self.resolve(entry)
            order.extend(i for i in resolution.order if i not in order)
            handles.extend(h for h in resolution.handles if h not in handles)
        return Resolution(order=tuple(order), handles=tuple(handles))

    def _references(self, decl) -> list[tuple[TypeRef, UseSite]]:
        if isinstance(decl, FuncInfo):
            refs = [(p.type, param_site(decl, p)) for p in decl.params]
            if decl.return_type is not None:
                refs.append((decl.return_type, return_site(decl)))
            return refs
        elif isinstance(decl, StructInfo):
            return [(f.type, field_site(decl, f)) for f in decl.fields]
        elif isinstance(decl, EnumInfo):
            return []
        raise TypeError(f'Unknown declaration: {decl!r}')

    def _visit(self, type_ref: TypeRef, site: UseSite, handles: list[str]) -> list[int]:
        """Declaration indices type_ref needs generated"""
        if self.mapper.is_overridden(type_ref):
            return []

        if isinstance(type_ref, PrimitiveType):
            self.mapper.check_resolvable(type_ref, site)
            return []
        elif isinstance(type_ref, PointerType):
            if self.mapper.passes_by_ref(type_ref, site):
                # ref parameters marshal the referent by value
                return self._visit(type_ref.pointee, site, handles)
            # Pointees only need to exist; their layout is never generated
            self.mapper.check_resolvable(type_ref.pointee, site)
            name = named_leaf(type_ref.pointee)
            if name is not None and name not in handles:
                handles.append(name)
            return []
        elif isinstance(type_ref, ArrayType):
            if type_ref.length is None:
                raise UnboundedArray(type_ref.spelling(), str(site))
            return self._visit(type_ref.element, site, handles)
        elif isinstance(type_ref, NamedType):
            index = self.decls.find_type(type_ref.name, str(site))
            if index is None:
                raise UnresolvedType(type_ref.name, str(site))
            decl = self.decls.get(index)
            if isinstance(decl, AliasInfo):
                # Aliases are never emitted, only what they name
                return self.mapper.expand_alias(
                    decl, site, lambda target, at: self._visit(target, at, handles))
            return [index]
        raise TypeError(f'Unknown type reference: {type_ref!r}')
