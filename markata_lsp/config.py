"""
config.py - Leitura da configuração markata do workspace

Propósito:
    Localiza o arquivo de configuração do site na raiz do workspace e extrai
    apenas o que o servidor consome: feeds do blogroll, regras
    mentions.from_posts e o diretório de cache (excluído da indexação).

Componentes principais:
    - BlogrollFeed: Entrada do blogroll (vira MentionInfo externa)
    - MentionSource: Regra from_posts (filtro + campos de handle/aliases)
    - WorkspaceConfig: Resultado agregado
    - load_workspace_config: Procura e parseia o primeiro arquivo encontrado

Notas de implementação:
    - Ordem de busca: markata-go.toml, markata.toml, markata-go.yaml, markata.yaml
    - Apenas o primeiro arquivo existente é usado
    - Seção [markata-go.*] tem prioridade sobre a seção legada de topo
    - Arquivo inválido é logado e tratado como configuração vazia
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from markata_lsp.content import metadata_strings

logger = logging.getLogger(__name__)

CONFIG_FILENAMES = (
    "markata-go.toml",
    "markata.toml",
    "markata-go.yaml",
    "markata.yaml",
)

DEFAULT_CACHE_DIR = ".markata"


@dataclass
class BlogrollFeed:
    url: str = ""
    title: str = ""
    description: str = ""
    site_url: str = ""
    handle: str = ""
    aliases: list[str] = field(default_factory=list)
    active: Optional[bool] = None


@dataclass
class MentionSource:
    filter: str = ""
    handle_field: str = ""
    aliases_field: str = ""


@dataclass
class WorkspaceConfig:
    path: Optional[Path] = None
    blogroll: list[BlogrollFeed] = field(default_factory=list)
    mention_sources: list[MentionSource] = field(default_factory=list)
    cache_dir: str = DEFAULT_CACHE_DIR


def find_config_file(root: Path) -> Optional[Path]:
    """Retorna o primeiro arquivo de configuração existente na raiz, ou None."""
    for name in CONFIG_FILENAMES:
        candidate = root / name
        if candidate.is_file():
            return candidate
    return None


def load_workspace_config(root: Optional[Path]) -> WorkspaceConfig:
    """
    Carrega a configuração do workspace.

    Args:
        root: Raiz do workspace (None → configuração vazia)

    Returns:
        WorkspaceConfig (vazio se não houver arquivo ou se o parsing falhar)
    """
    if root is None:
        return WorkspaceConfig()

    path = find_config_file(root)
    if path is None:
        return WorkspaceConfig()

    try:
        raw = _read_config(path)
    except (OSError, tomllib.TOMLDecodeError, yaml.YAMLError) as e:
        logger.warning(f"Falha ao ler configuração {path}: {e}")
        return WorkspaceConfig(path=path)

    if not isinstance(raw, dict):
        logger.warning(f"Configuração {path} não é um mapeamento, ignorando")
        return WorkspaceConfig(path=path)

    config = parse_config(raw)
    config.path = path
    logger.info(
        f"Configuração carregada de {path.name}: "
        f"{len(config.blogroll)} feeds, {len(config.mention_sources)} regras from_posts"
    )
    return config


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if path.suffix == ".toml":
        return tomllib.loads(text)
    return yaml.safe_load(text)


def parse_config(raw: dict[str, Any]) -> WorkspaceConfig:
    """Extrai blogroll, from_posts e cache_dir de um dicionário de configuração."""
    namespaced = raw.get("markata-go")
    if not isinstance(namespaced, dict):
        namespaced = {}

    return WorkspaceConfig(
        blogroll=_parse_blogroll(namespaced, raw),
        mention_sources=_parse_mention_sources(namespaced, raw),
        cache_dir=_parse_cache_dir(namespaced, raw),
    )


def _parse_blogroll(namespaced: dict, raw: dict) -> list[BlogrollFeed]:
    section = namespaced.get("blogroll")
    if isinstance(section, dict) and section.get("enabled") and section.get("feeds"):
        return _feeds_from(section["feeds"])

    section = raw.get("blogroll")
    if isinstance(section, dict) and section.get("enabled"):
        return _feeds_from(section.get("feeds") or [])
    return []


def _feeds_from(entries: Any) -> list[BlogrollFeed]:
    feeds = []
    if not isinstance(entries, list):
        return feeds
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        active = entry.get("active")
        feeds.append(
            BlogrollFeed(
                url=_string(entry.get("url")),
                title=_string(entry.get("title")),
                description=_string(entry.get("description")),
                site_url=_string(entry.get("site_url")),
                handle=_string(entry.get("handle")),
                aliases=metadata_strings(entry.get("aliases")),
                active=active if isinstance(active, bool) else None,
            )
        )
    return feeds


def _parse_mention_sources(namespaced: dict, raw: dict) -> list[MentionSource]:
    for container in (namespaced, raw):
        mentions = container.get("mentions")
        if not isinstance(mentions, dict):
            continue
        entries = mentions.get("from_posts")
        if isinstance(entries, list) and entries:
            return [
                MentionSource(
                    filter=_string(entry.get("filter")),
                    handle_field=_string(entry.get("handle_field")),
                    aliases_field=_string(entry.get("aliases_field")),
                )
                for entry in entries
                if isinstance(entry, dict)
            ]
    return []


def _parse_cache_dir(namespaced: dict, raw: dict) -> str:
    for container in (namespaced, raw):
        value = container.get("cache_dir")
        if isinstance(value, str) and value.strip():
            return value.strip()
    return DEFAULT_CACHE_DIR


def _string(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""
