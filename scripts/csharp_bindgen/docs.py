"""
Documentation conversion module

Turns captured Rust doc text into C# XML documentation comments.
"""

from dataclasses import dataclass, field
from typing import Optional
from xml.sax.saxutils import escape

from .codegen import as_camel_case
from .ir import FuncInfo, ResolvedFunction


@dataclass
class DocBlock:
    """Structured XML documentation for one generated declaration"""
    summary: list[str] = field(default_factory=list)
    params: list[tuple[str, str]] = field(default_factory=list)
    returns: Optional[str] = None
    remarks: list[list[str]] = field(default_factory=list)  # paragraphs


def split_paragraphs(text: str) -> list[list[str]]:
    """Split doc text into paragraphs of trimmed lines on blank lines"""
    paragraphs: list[list[str]] = []
    current: list[str] = []
    for line in text.splitlines():
        line = line.strip()
        if line:
            current.append(line)
        elif current:
            paragraphs.append(current)
            current = []
    if current:
        paragraphs.append(current)
    return paragraphs


class DocConverter:
    """Builds DocBlocks for functions, types and their members"""

    def for_function(self, func: FuncInfo, binding: ResolvedFunction) -> DocBlock:
        block = self.for_declaration(func.doc)
        block.params = [
            (as_camel_case(param.name).lstrip('@'), mapped.source)
            for param, mapped in zip(func.params, binding.params)
        ]
        block.returns = binding.return_type.source
        return block

    def for_declaration(self, doc: str) -> DocBlock:
        """First paragraph is the summary, the rest are remarks"""
        paragraphs = split_paragraphs(doc)
        if not paragraphs:
            return DocBlock()
        return DocBlock(summary=paragraphs[0], remarks=paragraphs[1:])

    def for_member(self, doc: str, type_hint: Optional[str] = None) -> DocBlock:
        """All captured lines are the summary; type_hint becomes the remarks"""
        summary = [line for paragraph in split_paragraphs(doc) for line in paragraph]
        remarks = [[type_hint]] if type_hint else []
        return DocBlock(summary=summary, remarks=remarks)

    def render(self, block: DocBlock) -> list[str]:
        """Get /// comment lines for a DocBlock"""
        lines = []
        if block.summary:
            lines.append('/// <summary>')
            lines.extend(f'/// {escape(line)}' for line in block.summary)
            lines.append('/// </summary>')

        for name, hint in block.params:
            lines.append(f'/// <param name="{name}">{escape(hint)}</param>')

        if block.returns is not None:
            lines.append(f'/// <returns>{escape(block.returns)}</returns>')

        if len(block.remarks) == 1 and len(block.remarks[0]) == 1:
            lines.append(f'/// <remarks>{escape(block.remarks[0][0])}</remarks>')
        elif len(block.remarks) == 1:
            lines.append('/// <remarks>')
            lines.extend(f'/// {escape(line)}' for line in block.remarks[0])
            lines.append('/// </remarks>')
        elif block.remarks:
            lines.append('/// <remarks>')
            for paragraph in block.remarks:
                lines.append('/// <para>')
                lines.extend(f'/// {escape(line)}' for line in paragraph)
                lines.append('/// </para>')
            lines.append('/// </remarks>')

        return lines
