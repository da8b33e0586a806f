"""
models.py - Entidades do índice do workspace

Propósito:
    Estruturas de dados compartilhadas entre o índice, os analisadores de
    contexto e os handlers LSP.

Componentes principais:
    - WikilinkInfo: Ocorrência de [[alvo]] ou [[alvo|texto]] em um post
    - PostInfo: Arquivo Markdown indexado
    - MentionInfo: Handle referenciável via @handle

Notas de implementação:
    - Linhas e colunas são 0-based (mesma convenção do LSP)
    - end_char é exclusivo (posição logo após o "]]")
    - Um mesmo PostInfo é compartilhado por todas as chaves de alias
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class WikilinkInfo:
    """Ocorrência de wikilink em uma linha do documento."""

    target: str
    display_text: Optional[str]
    line: int
    start_char: int
    end_char: int


@dataclass(eq=False)
class PostInfo:
    """Post indexado. Comparação por identidade (aliases apontam para o mesmo objeto)."""

    uri: str
    path: str
    slug: str
    title: str
    description: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)
    aliases: list[str] = field(default_factory=list)
    wikilinks: list[WikilinkInfo] = field(default_factory=list)


@dataclass(eq=False)
class MentionInfo:
    """
    Handle referenciável por @handle.

    Mentions externas vêm do blogroll (site_url/feed_url); internas vêm de
    posts que casam com uma regra from_posts (is_internal=True, slug/path do post).
    """

    handle: str
    title: str = ""
    description: str = ""
    site_url: str = ""
    feed_url: str = ""
    aliases: list[str] = field(default_factory=list)
    is_internal: bool = False
    slug: str = ""
    path: str = ""
