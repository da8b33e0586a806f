"""
mentions.py - Analisador de contexto para @mentions

Propósito:
    Decide se o cursor está digitando um @handle (completion) ou sobre um
    @handle completo (hover/definition), e localiza mentions em uma linha.

Componentes principais:
    - MentionSpan: Handle encontrado com span (inclui o "@")
    - mention_context: (prefixo, coluna inicial, aplica) para completion
    - find_mentions: Todas as mentions válidas de uma linha
    - mention_at_position: Mention cujo span contém o cursor

Notas de implementação:
    - Handle válido: [a-zA-Z][a-zA-Z0-9_.-]*
    - "@" precedido de alfanumérico, "_" ou "@" não inicia mention
      (exclui e-mails e o escape "@@")
    - Pontos finais são removidos do handle encontrado ("Thanks @jane." → jane)
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

MENTION_PATTERN = re.compile(r"@([a-zA-Z][a-zA-Z0-9_.-]*)")
_HANDLE = re.compile(r"[a-zA-Z][a-zA-Z0-9_.-]*")


@dataclass(frozen=True)
class MentionSpan:
    """Mention em uma linha. start aponta para o "@", end é exclusivo."""

    handle: str
    start: int
    end: int


def _starts_mention(line: str, at_index: int) -> bool:
    if at_index == 0:
        return True
    previous = line[at_index - 1]
    return not (previous.isalnum() or previous in "_@")


def mention_context(line: str, column: int) -> tuple[str, int, bool]:
    """
    Detecta se o cursor está digitando um @handle.

    Args:
        line: Texto da linha
        column: Coluna do cursor (0-based)

    Returns:
        (handle digitado, coluna logo após o "@", aplica)
    """
    if column <= 0:
        return "", 0, False
    before = line[: min(column, len(line))]
    at_index = before.rfind("@")
    if at_index < 0 or not _starts_mention(before, at_index):
        return "", 0, False

    prefix = before[at_index + 1 :]
    if prefix and not _HANDLE.fullmatch(prefix):
        return "", 0, False
    return prefix, at_index + 1, True


def find_mentions(line: str) -> list[MentionSpan]:
    """Lista as mentions válidas de uma linha, na ordem em que aparecem."""
    spans = []
    for match in MENTION_PATTERN.finditer(line):
        if not _starts_mention(line, match.start()):
            continue
        handle = match.group(1).rstrip(".")
        if not handle:
            continue
        spans.append(MentionSpan(handle=handle, start=match.start(), end=match.start() + 1 + len(handle)))
    return spans


def mention_at_position(line: str, column: int) -> Optional[MentionSpan]:
    """Retorna a mention cujo span [@, fim] contém a coluna, ou None."""
    for span in find_mentions(line):
        if span.start <= column <= span.end:
            return span
    return None
