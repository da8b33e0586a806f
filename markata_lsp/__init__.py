"""
markata_lsp - Language Server Protocol para corpora Markdown com [[wikilinks]]

Propósito:
    Servidor LSP que fornece autocomplete, hover, go-to-definition e
    diagnósticos para sites Markdown que usam [[wikilink]] e @mention.

Componentes principais:
    - server: Servidor pygls, regras de sessão e handlers
    - index: Índice do workspace (posts, aliases, mentions)
    - wikilinks, mentions, frontmatter_fields, admonitions: Analisadores de contexto
    - checks: Regras de diagnóstico consumidas via Resolver

Dependências críticas:
    - lsprotocol: Tipos do protocolo LSP
    - pygls: Servidor LSP, framing JSON-RPC e conversão URI <-> caminho
    - python-frontmatter: Parsing do bloco YAML

Exemplo de uso:
    markata-lsp
    python -m markata_lsp.server

Notas de implementação:
    - Comunica via STDIO com o editor
    - Sincronização de documentos apenas Full (texto completo)
"""
from importlib.metadata import PackageNotFoundError, version as _pkg_version
from pathlib import Path
import re

DIST_NAME = "markata-lsp"

_VERSION_LINE = re.compile(r'(?m)^version\s*=\s*"([^"]+)"')


def _version_from_source_tree() -> str:
    """Versão declarada no pyproject.toml do checkout (execução sem instalação)."""
    try:
        text = (Path(__file__).resolve().parents[1] / "pyproject.toml").read_text(encoding="utf-8")
    except OSError:
        return "0.0.0"
    match = _VERSION_LINE.search(text)
    return match.group(1) if match else "0.0.0"


try:
    __version__ = _pkg_version(DIST_NAME)
except PackageNotFoundError:
    __version__ = _version_from_source_tree()

__all__ = ["server", "index", "checks"]
