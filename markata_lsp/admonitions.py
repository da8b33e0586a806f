"""
admonitions.py - Analisador de contexto e tabela de tipos de admonition

Propósito:
    Reconhece marcadores de admonition (!!!, ???, ???+) no início da linha,
    tanto enquanto o tipo está sendo digitado (completion) quanto numa
    linha já completa (hover).

Componentes principais:
    - AdmonitionType: Tipo embutido (descrição, cor, ícone)
    - ADMONITION_TYPES: Os 15 tipos suportados
    - admonition_context: Marcador + tipo parcial antes do cursor
    - admonition_at_position: Tipo sob o cursor em uma linha de admonition
    - format_admonition_documentation: Markdown com descrição e exemplo de uso

Notas de implementação:
    - O texto até o cursor (sem indentação) precisa casar inteiro com o marcador
    - Em hover, só o span do nome do tipo dispara (não o título entre aspas)
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

ADMONITION_MARKER = re.compile(r"^(\?{3}\+?|!!!)(?:(\s+)(\w*))?$")
ADMONITION_LINE = re.compile(r'^(\s*)(\?{3}\+?|!!!)\s+(\w+)(?:\s+"[^"]*")?')


@dataclass(frozen=True)
class AdmonitionType:
    name: str
    description: str
    color: str
    icon: str

    @property
    def title(self) -> str:
        return self.name.capitalize()


ADMONITION_TYPES: tuple[AdmonitionType, ...] = (
    AdmonitionType("note", "Additional information or context", "#448aff", "pencil"),
    AdmonitionType("info", "General information", "#00b8d4", "info-circle"),
    AdmonitionType("tip", "Helpful suggestions or best practices", "#00bfa5", "lightbulb"),
    AdmonitionType("hint", "Subtle guidance or clues", "#00bfa5", "question-circle"),
    AdmonitionType("success", "Positive outcomes or confirmations", "#00c853", "check-circle"),
    AdmonitionType("warning", "Potential issues or things to be careful about", "#ff9100", "exclamation-triangle"),
    AdmonitionType("caution", "Proceed with care", "#ff9100", "exclamation-circle"),
    AdmonitionType("important", "Critical information that shouldn't be missed", "#00bfa5", "exclamation"),
    AdmonitionType("danger", "Actions that may cause data loss or security issues", "#ff5252", "bolt"),
    AdmonitionType("error", "Error conditions or failure states", "#ff5252", "times-circle"),
    AdmonitionType("bug", "Known issues or bugs to be aware of", "#f50057", "bug"),
    AdmonitionType("example", "Code examples or demonstrations", "#7c4dff", "code"),
    AdmonitionType("quote", "Quotations or citations", "#9e9e9e", "quote-left"),
    AdmonitionType("abstract", "Summary or overview of content", "#00b0ff", "clipboard-list"),
    AdmonitionType("aside", "Side notes or tangential information", "#64dd17", "comment-alt"),
)

_TYPES_BY_NAME = {t.name: t for t in ADMONITION_TYPES}


def get_admonition_type(name: str) -> Optional[AdmonitionType]:
    return _TYPES_BY_NAME.get(name.lower())


@dataclass(frozen=True)
class AdmonitionContext:
    """
    Marcador de admonition antes do cursor.

    type_start é a coluna onde o tipo começa (ou começaria, se ainda não
    houver espaço após o marcador; nesse caso needs_space=True).
    """

    marker: str
    type_prefix: str
    marker_start: int
    type_start: int
    needs_space: bool


def admonition_context(line: str, column: int) -> Optional[AdmonitionContext]:
    """
    Detecta se o cursor está digitando o tipo de uma admonition.

    Args:
        line: Texto da linha
        column: Coluna do cursor (0-based)

    Returns:
        AdmonitionContext ou None se a linha até o cursor não for um marcador
    """
    before = line[: max(0, min(column, len(line)))]
    trimmed = before.lstrip(" \t")
    match = ADMONITION_MARKER.match(trimmed)
    if not match:
        return None

    marker = match.group(1)
    marker_start = len(before) - len(trimmed)
    if match.group(2) is None:
        return AdmonitionContext(
            marker=marker,
            type_prefix="",
            marker_start=marker_start,
            type_start=marker_start + len(marker),
            needs_space=True,
        )

    prefix = match.group(3) or ""
    return AdmonitionContext(
        marker=marker,
        type_prefix=prefix,
        marker_start=marker_start,
        type_start=len(before) - len(prefix),
        needs_space=False,
    )


def admonition_at_position(line: str, column: int) -> Optional[tuple[str, int, int]]:
    """
    Retorna (nome do tipo, início, fim) se o cursor estiver sobre o tipo
    de uma linha de admonition; None caso contrário.
    """
    match = ADMONITION_LINE.match(line)
    if not match:
        return None
    start, end = match.span(3)
    if start <= column <= end:
        return match.group(3), start, end
    return None


def format_admonition_documentation(admonition: AdmonitionType) -> str:
    """Documentação Markdown do tipo, com exemplo de uso."""
    return (
        f"**{admonition.title}**\n\n"
        f"{admonition.description}\n\n"
        f"*Color: {admonition.color}*\n\n"
        "**Usage:**\n```markdown\n"
        f'!!! {admonition.name} "Optional Title"\n    Content goes here.\n```'
    )


def format_admonition_summary(admonition: AdmonitionType) -> str:
    """Documentação curta usada nos itens de completion."""
    return f"**{admonition.title}**\n\n{admonition.description}\n\n*Color: {admonition.color}*"
