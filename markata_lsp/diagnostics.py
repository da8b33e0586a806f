"""
diagnostics.py - Diagnósticos de um documento a partir do índice

Propósito:
    Liga o índice do workspace às regras de checks.check, expondo apenas
    a capacidade Resolver, e converte o resultado para o protocolo.

Componentes principais:
    - IndexResolver: Adaptador fino Index → Resolver
    - compute_diagnostics: (uri, texto) → list[Diagnostic]
"""

from __future__ import annotations

import logging
from typing import List

from lsprotocol.types import Diagnostic

from markata_lsp.checks import check
from markata_lsp.content import uri_to_path
from markata_lsp.converters import build_diagnostics
from markata_lsp.index import Index

logger = logging.getLogger(__name__)


class IndexResolver:
    """Expõe do índice apenas resolve_slug e resolve_handle."""

    def __init__(self, index: Index):
        self._index = index

    def resolve_slug(self, slug: str) -> bool:
        return self._index.get_by_slug(slug) is not None

    def resolve_handle(self, handle: str) -> bool:
        return self._index.get_by_handle(handle) is not None


def compute_diagnostics(index: Index, uri: str, content: str) -> List[Diagnostic]:
    """
    Executa as regras sobre o conteúdo do documento.

    Args:
        index: Índice do workspace (consultado via IndexResolver)
        uri: URI do documento
        content: Texto atual do documento

    Returns:
        Lista de Diagnostic (vazia se nenhuma regra disparar)
    """
    path = uri_to_path(uri)
    issues = check(str(path) if path else uri, content, IndexResolver(index))
    logger.debug(f"{len(issues)} issues em {uri}")
    return build_diagnostics(issues)
