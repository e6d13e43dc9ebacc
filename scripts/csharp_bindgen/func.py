"""
Function binding generation module

Generates DllImport declarations for extern "C" functions.
"""

from .codegen import CodeGen, as_camel_case, as_pascal_case
from .config import ConfigSnapshot
from .docs import DocConverter
from .ir import MappedType, ParamInfo, ResolvedFunction


class FuncGenerator:
    """Generates P/Invoke declarations"""

    def __init__(self, config: ConfigSnapshot, docs: DocConverter):
        self.config = config
        self.docs = docs

    def generate(self, binding: ResolvedFunction, gen: CodeGen):
        """Generate extern declaration for a function"""
        func = binding.decl
        result = binding.return_type

        gen.lines(*self.docs.render(self.docs.for_function(func, binding)))
        gen.line(f'[DllImport("{self.config.dll_name}", CallingConvention = CallingConvention.Cdecl, '
                 f'EntryPoint = "{func.name}")]')
        if result.marshal:
            gen.line(f'[return: {result.marshal}]')

        params = ', '.join(self._param(p, m) for p, m in zip(func.params, binding.params))
        gen.line(f'internal static extern {result.name} {as_pascal_case(func.name)}({params});')

    def _param(self, param: ParamInfo, mapped: MappedType) -> str:
        decl = f'{mapped.name} {as_camel_case(param.name)}'
        if mapped.marshal:
            return f'[{mapped.marshal}] {decl}'
        return decl
