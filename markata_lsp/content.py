"""
content.py - Extração de metadados de arquivos Markdown

Propósito:
    Funções puras usadas pelo índice para transformar o texto bruto de um
    post em slug, título, descrição, aliases e wikilinks.

Componentes principais:
    - parse_frontmatter: Bloco YAML tolerante a erros (python-frontmatter)
    - slugify / generate_slug: Slug canônico a partir de metadados ou caminho
    - title_from_filename / extract_excerpt: Fallbacks de título e descrição
    - extract_aliases / metadata_strings: Listas de strings do frontmatter
    - path_to_uri / uri_to_path: Conversão via pygls.uris

Notas de implementação:
    - Falha no YAML nunca aborta a indexação: metadata vazio, corpo = arquivo inteiro
    - index.md na raiz gera slug "" (home page)
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Optional

import frontmatter
from pygls.uris import from_fs_path, to_fs_path

logger = logging.getLogger(__name__)

DEFAULT_EXCERPT_LENGTH = 200

_SLUG_INVALID = re.compile(r"[^a-z0-9\-_]")
_SLUG_HYPHENS = re.compile(r"-{2,}")


def parse_frontmatter(path: str, content: str) -> tuple[dict[str, Any], str]:
    """
    Separa frontmatter YAML do corpo do documento.

    Args:
        path: Caminho do arquivo (apenas para logging)
        content: Texto bruto do arquivo

    Returns:
        Tupla (metadata, body). Em caso de erro de parsing, ({}, content).
    """
    try:
        post = frontmatter.loads(content)
    except Exception as e:
        logger.warning(f"Frontmatter inválido em {path}: {e}")
        return {}, content
    metadata = post.metadata if isinstance(post.metadata, dict) else {}
    return dict(metadata), post.content


def slugify(text: str) -> str:
    """
    Normaliza texto em slug.

    lowercase, espaço → hífen, remove tudo fora de [a-z0-9-_],
    colapsa hífens repetidos e remove hífens das pontas.
    """
    slug = text.lower().replace(" ", "-")
    slug = _SLUG_INVALID.sub("", slug)
    slug = _SLUG_HYPHENS.sub("-", slug)
    return slug.strip("-")


def generate_slug(
    path: Path, root: Optional[Path] = None, metadata: Optional[dict] = None
) -> str:
    """
    Calcula o slug canônico de um post.

    Args:
        path: Caminho do arquivo
        root: Raiz do workspace (para index.md em subdiretórios)
        metadata: Frontmatter já parseado; campo "slug" explícito vence

    Returns:
        Slug do post ("" para o index.md da raiz)
    """
    explicit = (metadata or {}).get("slug")
    if isinstance(explicit, str) and explicit:
        return explicit

    relative = _relative_to(path, root)
    if relative.name.lower() == "index.md":
        parent = relative.parent.as_posix()
        if parent in ("", "."):
            return ""
        return parent.lower()

    return slugify(relative.stem)


def _relative_to(path: Path, root: Optional[Path]) -> Path:
    if root is None:
        return Path(path.name) if path.is_absolute() else path
    try:
        return path.resolve().relative_to(root.resolve())
    except ValueError:
        return Path(path.name)


def title_from_filename(path: Path) -> str:
    """Título de fallback: nome do arquivo sem extensão, com - e _ virando espaço."""
    return path.stem.replace("-", " ").replace("_", " ")


def extract_excerpt(body: str, max_length: int = DEFAULT_EXCERPT_LENGTH) -> str:
    """
    Extrai o primeiro parágrafo do corpo como descrição.

    Pula linhas em branco e headings iniciais, junta as linhas do primeiro
    parágrafo com espaço e trunca com "..." se exceder max_length.
    """
    paragraph: list[str] = []
    for raw in body.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            if paragraph:
                break
            continue
        paragraph.append(line)

    excerpt = " ".join(paragraph)
    if len(excerpt) > max_length:
        excerpt = excerpt[: max_length - 3] + "..."
    return excerpt


def metadata_strings(value: Any) -> list[str]:
    """Converte valor de metadata (lista ou string única) em lista de strings."""
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [item for item in value if isinstance(item, str)]
    return []


def extract_aliases(metadata: dict[str, Any]) -> list[str]:
    """Aliases declarados no frontmatter (apenas strings não vazias)."""
    value = metadata.get("aliases")
    if not isinstance(value, (list, tuple)):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def metadata_string(metadata: dict[str, Any], key: str) -> str:
    value = metadata.get(key)
    if value is None:
        return ""
    return str(value).strip()


def path_to_uri(path: Path) -> str:
    return from_fs_path(str(path))


def uri_to_path(uri: str) -> Optional[Path]:
    """Converte file:// URI em Path; None para outros esquemas."""
    if not uri.startswith("file:"):
        return None
    fs_path = to_fs_path(uri)
    if not fs_path:
        return None
    return Path(fs_path)


def is_markdown(name: str) -> bool:
    return name.lower().endswith(".md")
