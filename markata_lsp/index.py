"""
index.py - Índice em memória do workspace (posts, aliases, mentions)

Propósito:
    Estado autoritativo do workspace: quais posts existem, por quais slugs e
    aliases podem ser referenciados via [[wikilink]], e quais handles podem
    ser referenciados via @mention.

Componentes principais:
    - Index: Mapas slug→PostInfo, uri→slug e handle→MentionInfo sob um único RLock
    - SearchMatch: Resultado de busca por prefixo (chave casada + tipo)
    - extract_handle_from_url / extract_domain_alias: Handles derivados de URLs

Dependências críticas:
    - markata_lsp.content: slug, título, descrição, aliases, frontmatter
    - markata_lsp.config: blogroll e regras from_posts
    - markata_lsp.filters: avaliação das regras from_posts

Notas de implementação:
    - Slug canônico sempre sobrescreve; alias só é registrado se a chave estiver livre
    - Retração de aliases verifica identidade (nunca remove chave de outro post)
    - update/remove fazem retract-then-insert sob o mesmo lock
    - O lock é exclusivo (sem leitores paralelos); consultas são curtas
    - build() parseia arquivos em paralelo (ThreadPoolExecutor) e aplica tudo
      em uma única seção crítica, na ordem do walk
    - Mentions são reconstruídas apenas em build()
"""

from __future__ import annotations

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from markata_lsp.config import MentionSource, WorkspaceConfig, load_workspace_config
from markata_lsp.content import (
    extract_aliases,
    extract_excerpt,
    generate_slug,
    is_markdown,
    metadata_string,
    metadata_strings,
    parse_frontmatter,
    path_to_uri,
    slugify,
    title_from_filename,
    uri_to_path,
)
from markata_lsp.filters import FilterError, compile_filter, post_fields
from markata_lsp.models import MentionInfo, PostInfo
from markata_lsp.wikilinks import find_wikilinks

logger = logging.getLogger(__name__)

SKIPPED_DIRS = frozenset({".git", "node_modules", "output"})

MATCH_SLUG = "slug"
MATCH_ALIAS = "alias"
MATCH_TITLE = "title"


@dataclass(frozen=True)
class SearchMatch:
    """
    Entrada de busca por prefixo.

    key é a chave oferecida ao usuário (slug, alias ou handle); kind indica
    se ela é o identificador canônico ("slug"), um alias ("alias") ou se o
    item casou apenas pelo título ("title", key = identificador canônico).
    """

    item: object
    key: str
    kind: str

    @property
    def is_alias(self) -> bool:
        return self.kind == MATCH_ALIAS


class Index:
    """
    Índice do workspace, seguro para uso concorrente.

    Um único RLock funciona como mutex simples: leitores também se serializam
    entre si, não só contra escritores. Cada consulta vê o estado anterior ou
    o posterior a uma atualização, nunca um intermediário.
    """

    def __init__(self, max_workers: Optional[int] = None):
        self._lock = threading.RLock()
        self._posts: dict[str, PostInfo] = {}
        self._uri_to_slug: dict[str, str] = {}
        self._mentions: dict[str, MentionInfo] = {}
        self._root: Optional[Path] = None
        self._config = WorkspaceConfig()
        self._max_workers = max_workers

    # --- Construção ---

    @property
    def root(self) -> Optional[Path]:
        return self._root

    @property
    def config(self) -> WorkspaceConfig:
        return self._config

    def build(self, root: Path) -> int:
        """
        Reconstrói o índice inteiro a partir do diretório raiz.

        Args:
            root: Raiz do workspace

        Returns:
            Número de posts distintos indexados
        """
        root = Path(root)
        config = load_workspace_config(root)
        files = list(iter_markdown_files(root, config.cache_dir))

        with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
            parsed = list(pool.map(lambda p: self._load_file(p, root), files))

        with self._lock:
            self._posts.clear()
            self._uri_to_slug.clear()
            self._root = root
            self._config = config
            for info in parsed:
                if info is not None:
                    self._insert(info)
            self._mentions = build_mentions(config, self._unique_posts())
            count = len(self._unique_posts())

        logger.info(f"Índice construído: {count} posts, {len(files)} arquivos em {root}")
        return count

    def update(self, uri: str, content: str) -> PostInfo:
        """Reindexa um documento a partir do texto (retract-then-insert)."""
        uri = normalize_uri(uri)
        path = uri_to_path(uri) or Path(uri.rsplit("/", 1)[-1])
        info = parse_post(uri, path, content, self._root)
        with self._lock:
            self._retract_uri(uri)
            self._insert(info)
        return info

    def index_file(self, path: Path) -> Optional[PostInfo]:
        """Reindexa um arquivo do disco. Falha de leitura é logada e ignorada."""
        try:
            content = Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Falha ao ler {path}: {e}")
            return None
        return self.update(path_to_uri(Path(path)), content)

    def remove(self, uri: str) -> None:
        """Remove o post associado à URI (slug, aliases e mapeamento de URI)."""
        with self._lock:
            self._retract_uri(normalize_uri(uri))

    def _load_file(self, path: Path, root: Path) -> Optional[PostInfo]:
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Falha ao ler {path}: {e}")
            return None
        return parse_post(path_to_uri(path), path, content, root)

    def _insert(self, info: PostInfo) -> None:
        existing = self._posts.get(info.slug)
        if existing is not None and existing is not info and existing.slug == info.slug:
            logger.warning(
                f"Slug duplicado '{info.slug}': {info.path} substitui {existing.path}"
            )
            self._retract(existing)

        self._posts[info.slug] = info
        self._uri_to_slug[info.uri] = info.slug
        for alias in info.aliases:
            key = alias.lower()
            if key and key not in self._posts:
                self._posts[key] = info

    def _retract(self, info: PostInfo) -> None:
        if self._posts.get(info.slug) is info:
            del self._posts[info.slug]
        for alias in info.aliases:
            key = alias.lower()
            if self._posts.get(key) is info:
                del self._posts[key]
        if self._uri_to_slug.get(info.uri) == info.slug:
            del self._uri_to_slug[info.uri]

    def _retract_uri(self, uri: str) -> None:
        slug = self._uri_to_slug.pop(uri, None)
        if slug is None:
            return
        info = self._posts.get(slug)
        if info is not None and info.uri == uri:
            self._retract(info)

    # --- Consultas de posts ---

    def get_by_slug(self, slug: str) -> Optional[PostInfo]:
        """
        Busca post por slug ou alias.

        Tenta chave exata, depois lowercase, depois varredura normalizada
        (O(posts)) comparando slugify() dos dois lados.
        """
        with self._lock:
            info = self._posts.get(slug) or self._posts.get(slug.lower())
            if info is not None:
                return info
            normalized = slugify(slug)
            if not normalized:
                return None
            for key, candidate in self._posts.items():
                if slugify(key) == normalized:
                    return candidate
            return None

    def get_by_uri(self, uri: str) -> Optional[PostInfo]:
        with self._lock:
            slug = self._uri_to_slug.get(normalize_uri(uri))
            if slug is None:
                return None
            return self._posts.get(slug)

    def resolve_slug(self, slug: str) -> bool:
        return self.get_by_slug(slug) is not None

    def all_posts(self) -> list[PostInfo]:
        """Todos os posts distintos (cada post uma única vez), ordenados por slug."""
        with self._lock:
            return sorted(self._unique_posts(), key=lambda p: p.slug)

    def all_slugs(self) -> list[str]:
        """Todas as chaves resolvíveis (slugs e aliases)."""
        with self._lock:
            return sorted(self._posts)

    @property
    def post_count(self) -> int:
        with self._lock:
            return len(self._unique_posts())

    def _unique_posts(self) -> list[PostInfo]:
        return list(_unique(self._posts.values()))

    def search_posts(self, prefix: str) -> list[SearchMatch]:
        """
        Busca posts por prefixo de slug/alias ou substring do título.

        Cada chave casada (slug ou alias) gera uma entrada própria; um post
        que casa só pelo título gera uma entrada com seu slug.
        """
        needle = prefix.lower()
        with self._lock:
            return _search(
                self._posts,
                needle,
                canonical=lambda info: info.slug,
                title=lambda info: info.title,
            )

    # --- Consultas de mentions ---

    def get_by_handle(self, handle: str) -> Optional[MentionInfo]:
        """Busca mention por handle ou alias (case-insensitive, com varredura normalizada)."""
        key = handle.lower().lstrip("@")
        with self._lock:
            info = self._mentions.get(key)
            if info is not None:
                return info
            normalized = slugify(key)
            if not normalized:
                return None
            for candidate_key, candidate in self._mentions.items():
                if slugify(candidate_key) == normalized:
                    return candidate
            return None

    def resolve_handle(self, handle: str) -> bool:
        return self.get_by_handle(handle) is not None

    def all_mentions(self) -> list[MentionInfo]:
        with self._lock:
            return sorted(_unique(self._mentions.values()), key=lambda m: m.handle)

    def all_handles(self) -> list[str]:
        with self._lock:
            return sorted(self._mentions)

    def search_mentions(self, prefix: str) -> list[SearchMatch]:
        """Busca mentions por prefixo de handle/alias ou substring do título."""
        needle = prefix.lower().lstrip("@")
        with self._lock:
            return _search(
                self._mentions,
                needle,
                canonical=lambda info: info.handle,
                title=lambda info: info.title,
            )


def _unique(values: Iterable) -> Iterable:
    seen: set[int] = set()
    for value in values:
        if id(value) not in seen:
            seen.add(id(value))
            yield value


def _search(table: dict, needle: str, canonical, title) -> list[SearchMatch]:
    matches: list[SearchMatch] = []
    matched_items: set[int] = set()

    for key, item in table.items():
        if key.lower().startswith(needle):
            kind = MATCH_SLUG if key == canonical(item) else MATCH_ALIAS
            matches.append(SearchMatch(item=item, key=key, kind=kind))
            matched_items.add(id(item))

    if needle:
        for item in _unique(table.values()):
            if id(item) in matched_items:
                continue
            if needle in (title(item) or "").lower():
                matches.append(SearchMatch(item=item, key=canonical(item), kind=MATCH_TITLE))

    matches.sort(key=lambda m: (m.is_alias, m.key))
    return matches


def normalize_uri(uri: str) -> str:
    """Canoniza URIs file:// (encoding de caracteres) para chavear o índice."""
    path = uri_to_path(uri)
    if path is None:
        return uri
    return path_to_uri(path)


def iter_markdown_files(root: Path, cache_dir: str = "") -> Iterable[Path]:
    """
    Percorre o workspace em ordem determinística, pulando .git,
    node_modules, output e o diretório de cache.
    """
    cache = Path(cache_dir.strip("/")) if cache_dir else None
    for dirpath, dirnames, filenames in os.walk(root):
        current = Path(dirpath)
        kept = []
        for name in sorted(dirnames):
            if name in SKIPPED_DIRS:
                continue
            if cache is not None and _is_cache_dir(current / name, root, cache):
                continue
            kept.append(name)
        dirnames[:] = kept
        for name in sorted(filenames):
            if is_markdown(name):
                yield current / name


def _is_cache_dir(path: Path, root: Path, cache: Path) -> bool:
    if cache.is_absolute():
        return path == cache
    return path.relative_to(root) == cache


def parse_post(uri: str, path: Path, content: str, root: Optional[Path]) -> PostInfo:
    """
    Constrói um PostInfo a partir do texto bruto.

    Args:
        uri: URI do documento
        path: Caminho do arquivo (nome usado nos fallbacks de slug/título)
        content: Texto completo (frontmatter + corpo)
        root: Raiz do workspace, para slugs de index.md

    Returns:
        PostInfo com wikilinks extraídos do documento inteiro
    """
    metadata, body = parse_frontmatter(str(path), content)
    return PostInfo(
        uri=uri,
        path=str(path),
        slug=generate_slug(path, root, metadata),
        title=metadata_string(metadata, "title") or title_from_filename(path),
        description=metadata_string(metadata, "description") or extract_excerpt(body),
        metadata=metadata,
        aliases=extract_aliases(metadata),
        wikilinks=find_wikilinks(content),
    )


# --- Mentions ---


def build_mentions(config: WorkspaceConfig, posts: list[PostInfo]) -> dict[str, MentionInfo]:
    """
    Constrói a tabela handle/alias → MentionInfo.

    Blogroll primeiro, depois regras from_posts; a primeira entrada
    registrada para cada chave vence.
    """
    mentions: dict[str, MentionInfo] = {}

    for feed in config.blogroll:
        if feed.active is False:
            continue
        handle = feed.handle or extract_handle_from_url(feed.site_url) or extract_handle_from_url(feed.url)
        if not handle:
            continue
        handle = handle.lower()
        info = MentionInfo(
            handle=handle,
            title=feed.title,
            description=feed.description,
            site_url=feed.site_url,
            feed_url=feed.url,
            aliases=list(feed.aliases),
        )
        mentions.setdefault(handle, info)
        for alias in feed.aliases:
            key = alias.lower()
            if key:
                mentions.setdefault(key, info)
        domain = extract_domain_alias(feed.site_url)
        if domain and domain != handle:
            mentions.setdefault(domain, info)

    blogroll_count = len(list(_unique(mentions.values())))
    if blogroll_count:
        logger.info(f"Indexadas {blogroll_count} mentions do blogroll")

    ordered_posts = sorted(posts, key=lambda p: p.path)
    for source in config.mention_sources:
        _index_mention_source(mentions, source, ordered_posts)

    return mentions


def _index_mention_source(
    mentions: dict[str, MentionInfo], source: MentionSource, posts: list[PostInfo]
) -> None:
    if not source.filter:
        return
    try:
        post_filter = compile_filter(source.filter)
    except FilterError as e:
        logger.warning(f"mentions from_posts: filtro inválido {source.filter!r}: {e}")
        return

    matched = 0
    for post in posts:
        if not post_filter.matches(post_fields(post)):
            continue
        handle = _handle_from_post(post, source.handle_field).lower()
        if not handle:
            continue
        info = MentionInfo(
            handle=handle,
            title=post.title,
            description=post.description,
            is_internal=True,
            slug=post.slug,
            path=post.path,
        )
        mentions.setdefault(handle, info)
        if source.aliases_field:
            aliases = metadata_strings(post.metadata.get(source.aliases_field))
            info.aliases = aliases
            for alias in aliases:
                key = alias.lower()
                if key and key != handle:
                    mentions.setdefault(key, info)
        matched += 1

    if matched:
        logger.info(f"Indexadas {matched} mentions de posts com filtro {source.filter!r}")


def _handle_from_post(post: PostInfo, field_name: str) -> str:
    if not field_name or field_name == "slug":
        return post.slug
    value = post.metadata.get(field_name)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return post.slug


def _strip_scheme(url: str) -> str:
    for scheme in ("https://", "http://"):
        if url.startswith(scheme):
            return url[len(scheme):]
    return url


def extract_handle_from_url(url: str) -> str:
    """
    Deriva um handle do host de uma URL.

    Remove esquema, "www." e "blog.", e fica com o primeiro rótulo do host
    (ex: https://simonwillison.net/ → "simonwillison").
    """
    if not url:
        return ""
    host = _strip_scheme(url)
    for prefix in ("www.", "blog."):
        if host.startswith(prefix):
            host = host[len(prefix):]
    slash = host.find("/")
    if slash > 0:
        host = host[:slash]
    return host.split(".")[0].lower()


def extract_domain_alias(url: str) -> str:
    """Host completo (sem esquema) como alias, ex: "daverupert.com"."""
    if not url:
        return ""
    host = _strip_scheme(url)
    slash = host.find("/")
    if slash > 0:
        host = host[:slash]
    return host.lower()
