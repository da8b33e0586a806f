"""
definition.py - Go-to-definition para wikilinks e mentions

Propósito:
    Resolve a definição de uma referência sob o cursor:
    - [[slug]]  → arquivo do post (início do arquivo)
    - @handle   → arquivo do post (mention interna) ou site_url (blogroll)

Notas de implementação:
    - Referência não resolvida → None (resposta null, nunca erro)
    - Mention interna cujo slug não resolve cai para site_url, se houver
"""

from __future__ import annotations

import logging
from typing import Optional

from lsprotocol.types import Location, Position, Range

from markata_lsp.index import Index
from markata_lsp.mentions import mention_at_position
from markata_lsp.models import MentionInfo
from markata_lsp.wikilinks import wikilink_at_position

logger = logging.getLogger(__name__)

_FILE_START = Range(start=Position(line=0, character=0), end=Position(line=0, character=0))


def compute_definition(source: str, position: Position, index: Index) -> Optional[Location]:
    """
    Resolve definição: [[slug]] → post, @handle → post interno ou site.

    Args:
        source: Texto do documento aberto
        position: Posição do cursor (0-based)
        index: Índice do workspace

    Returns:
        Location apontando para a definição, ou None
    """
    lines = source.split("\n")
    if position.line >= len(lines):
        return None

    line = lines[position.line].rstrip("\r")
    col = position.character

    link = wikilink_at_position(line, col, position.line)
    if link is not None:
        post = index.get_by_slug(link.target)
        if post is None:
            logger.debug(f"Wikilink sem destino: {link.target}")
            return None
        return Location(uri=post.uri, range=_FILE_START)

    mention = mention_at_position(line, col)
    if mention is not None:
        info = index.get_by_handle(mention.handle)
        if info is None:
            return None
        return _mention_location(info, index)

    return None


def _mention_location(mention: MentionInfo, index: Index) -> Optional[Location]:
    if mention.is_internal and mention.slug:
        post = index.get_by_slug(mention.slug)
        if post is not None:
            return Location(uri=post.uri, range=_FILE_START)
    if mention.site_url:
        return Location(uri=mention.site_url, range=_FILE_START)
    return None
