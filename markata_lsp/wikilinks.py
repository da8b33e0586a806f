"""
wikilinks.py - Analisador de contexto para [[wikilinks]]

Propósito:
    Localiza wikilinks em um documento e decide, a partir de (linha, coluna),
    se o cursor está digitando um wikilink (completion) ou sobre um wikilink
    completo (hover/definition).

Componentes principais:
    - find_wikilinks: Todas as ocorrências [[alvo]] / [[alvo|texto]] do documento
    - wikilink_context: (prefixo, coluna inicial, aplica) para completion
    - wikilink_at_position: Wikilink completo cujo span contém o cursor

Notas de implementação:
    - Alvo e texto de exibição são aparados (strip)
    - Contexto de completion só vale dentro de "[[" não fechado e antes de "|"
    - Span de at_position é inclusivo nas duas pontas ([[ ... ]] + 1)
"""

from __future__ import annotations

import re
from typing import Optional

from markata_lsp.models import WikilinkInfo

WIKILINK_PATTERN = re.compile(r"\[\[([^\]|]+)(?:\|([^\]]+))?\]\]")
WIKILINK_START = re.compile(r"\[\[([^\]|]*)$")


def find_wikilinks(content: str) -> list[WikilinkInfo]:
    """
    Extrai todos os wikilinks de um texto, linha a linha.

    Args:
        content: Texto completo do documento

    Returns:
        Lista de WikilinkInfo com linha e colunas 0-based
    """
    links: list[WikilinkInfo] = []
    for line_no, line in enumerate(content.splitlines()):
        links.extend(links_in_line(line, line_no))
    return links


def links_in_line(line: str, line_no: int) -> list[WikilinkInfo]:
    links = []
    for match in WIKILINK_PATTERN.finditer(line):
        target = match.group(1).strip()
        if not target:
            continue
        display = match.group(2).strip() if match.group(2) else None
        links.append(
            WikilinkInfo(
                target=target,
                display_text=display or None,
                line=line_no,
                start_char=match.start(),
                end_char=match.end(),
            )
        )
    return links


def wikilink_context(line: str, column: int) -> tuple[str, int, bool]:
    """
    Detecta se o cursor está dentro de um "[[" ainda não fechado.

    Args:
        line: Texto da linha
        column: Coluna do cursor (0-based)

    Returns:
        (prefixo digitado, coluna onde o prefixo começa, aplica)
    """
    if column < 0:
        return "", 0, False
    before = line[: min(column, len(line))]
    match = WIKILINK_START.search(before)
    if not match:
        return "", 0, False
    prefix = match.group(1)
    return prefix, len(before) - len(prefix), True


def wikilink_at_position(line: str, column: int, line_no: int = 0) -> Optional[WikilinkInfo]:
    """Retorna o wikilink cujo span [início, fim] contém a coluna, ou None."""
    for link in links_in_line(line, line_no):
        if link.start_char <= column <= link.end_char:
            return link
    return None
