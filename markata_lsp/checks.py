"""
checks.py - Regras de diagnóstico para posts Markdown

Propósito:
    Verifica o texto de um post e devolve Issues independentes do LSP.
    As verificações de referência ([[wikilink]] e @mention) consultam o
    workspace apenas através do protocolo Resolver.

Componentes principais:
    - Severity / IssueRange / Issue: Resultado das verificações
    - Resolver: Capacidade mínima (resolve_slug, resolve_handle)
    - check: Executa todas as regras na ordem fixa

Regras:
    duplicate-key          → chave repetida no frontmatter (erro)
    invalid-date           → data em formato não ISO (aviso)
    missing-alt-text       → ![](url) sem texto alternativo (aviso)
    protocol-less-url      → //exemplo.com sem esquema (aviso)
    h1-in-content          → "# Título" no corpo (aviso)
    admonition-fenced-code → bloco ``` logo após "!!! tipo" (aviso)
    broken-wikilink        → [[slug]] sem post correspondente (aviso)
    unknown-mention        → @handle desconhecido (aviso)

Notas de implementação:
    - Linhas são absolutas no documento (0-based), inclusive após o frontmatter
    - Regras de referência só rodam com resolver e ignoram blocos de código
"""

from __future__ import annotations

import datetime
import re
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterator, Optional, Protocol

from markata_lsp.frontmatter_fields import find_frontmatter_bounds
from markata_lsp.mentions import find_mentions
from markata_lsp.wikilinks import links_in_line


class Severity(IntEnum):
    ERROR = 0
    WARNING = 1
    INFO = 2


@dataclass(frozen=True)
class IssueRange:
    start_line: int
    start_col: int
    end_line: int
    end_col: int


@dataclass(frozen=True)
class Issue:
    file: str
    range: IssueRange
    code: str
    severity: Severity
    message: str
    fixable: bool = False


class Resolver(Protocol):
    def resolve_slug(self, slug: str) -> bool: ...

    def resolve_handle(self, handle: str) -> bool: ...


_TOP_LEVEL_KEY = re.compile(r"^([a-zA-Z_][a-zA-Z0-9_]*)\s*:")
_DATE_FIELD = re.compile(r"^(date|published_date|created|modified|updated)\s*:\s*(.+)$")
_INVALID_DATE_PATTERNS = (
    (re.compile(r"\d{4}-\d{1,2}-\d{1,2}T\d{2}:\d{2}:\d{2}"), "single-digit month/day"),
    (re.compile(r"\d{4}/\d{2}/\d{2}"), "slash separator"),
)
_IMAGE_WITHOUT_ALT = re.compile(r"!\[\]\(([^)]+)\)")
_PROTOCOL_LESS_URL = re.compile(r"(?<![:/])//[a-zA-Z0-9][a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
_ADMONITION_START = re.compile(r"^(\s*)!!!\s+\w+")
_FENCE = ("```", "~~~")

H1_MESSAGE = (
    "H1 heading found in content. Templates already add an H1 from frontmatter "
    "title. Use H2 (##) or deeper instead."
)
ADMONITION_FENCE_MESSAGE = (
    "fenced code block immediately follows admonition without blank line - "
    "this may not render correctly"
)


def check(path: str, content: str, resolver: Optional[Resolver] = None) -> list[Issue]:
    """
    Executa todas as regras sobre o conteúdo.

    Args:
        path: Caminho do arquivo (copiado em Issue.file)
        content: Texto completo do documento
        resolver: Consulta de slugs/handles; None desativa regras de referência

    Returns:
        Lista de Issues na ordem das regras
    """
    lines = content.split("\n")
    lines = [line.rstrip("\r") for line in lines]
    start, end = find_frontmatter_bounds(lines)
    body_start = end + 1 if start == 0 and end > 0 else 0

    issues: list[Issue] = []
    if body_start:
        issues.extend(_check_duplicate_keys(path, lines, end))
        issues.extend(_check_dates(path, lines, end))

    issues.extend(_check_image_alt_text(path, lines, body_start))
    issues.extend(_check_protocol_less_urls(path, lines))
    issues.extend(_check_h1_headings(path, lines, body_start))
    issues.extend(_check_admonition_fenced_code(path, lines, body_start))

    if resolver is not None:
        issues.extend(_check_wikilinks(path, lines, body_start, resolver))
        issues.extend(_check_mentions(path, lines, body_start, resolver))
    return issues


def _line_issue(path, line_no, line, code, severity, message, fixable) -> Issue:
    return Issue(
        file=path,
        range=IssueRange(line_no, 0, line_no, len(line)),
        code=code,
        severity=severity,
        message=message,
        fixable=fixable,
    )


def _span_issue(path, line_no, start, end, code, severity, message, fixable) -> Issue:
    return Issue(
        file=path,
        range=IssueRange(line_no, start, line_no, end),
        code=code,
        severity=severity,
        message=message,
        fixable=fixable,
    )


def _prose_lines(lines: list[str], start: int) -> Iterator[tuple[int, str]]:
    """Linhas a partir de start, pulando blocos de código cercados."""
    in_code = False
    for line_no in range(start, len(lines)):
        line = lines[line_no]
        if line.strip().startswith(_FENCE):
            in_code = not in_code
            continue
        if not in_code:
            yield line_no, line


def _check_duplicate_keys(path: str, lines: list[str], end: int) -> list[Issue]:
    issues = []
    seen: dict[str, int] = {}
    for line_no in range(1, end):
        match = _TOP_LEVEL_KEY.match(lines[line_no])
        if not match:
            continue
        key = match.group(1)
        if key in seen:
            issues.append(
                _line_issue(
                    path, line_no, lines[line_no], "duplicate-key", Severity.ERROR,
                    f"duplicate key '{key}' (first occurrence at line {seen[key] + 1})",
                    True,
                )
            )
        else:
            seen[key] = line_no
    return issues


def _is_valid_date(value: str) -> bool:
    try:
        datetime.datetime.fromisoformat(value)
        return True
    except ValueError:
        pass
    try:
        datetime.datetime.strptime(value, "%Y-%m-%d")
        return True
    except ValueError:
        return False


def _check_dates(path: str, lines: list[str], end: int) -> list[Issue]:
    issues = []
    for line_no in range(1, end):
        line = lines[line_no]
        match = _DATE_FIELD.match(line)
        if not match:
            continue
        key = match.group(1)
        value = match.group(2).strip().strip("\"'")
        if _is_valid_date(value):
            continue
        for pattern, description in _INVALID_DATE_PATTERNS:
            if pattern.search(value):
                issues.append(
                    _line_issue(
                        path, line_no, line, "invalid-date", Severity.WARNING,
                        f"invalid date format for '{key}': {value} ({description})",
                        True,
                    )
                )
                break
    return issues


def _check_image_alt_text(path: str, lines: list[str], start: int) -> list[Issue]:
    issues = []
    for line_no, line in _prose_lines(lines, start):
        for match in _IMAGE_WITHOUT_ALT.finditer(line):
            issues.append(
                _span_issue(
                    path, line_no, match.start(), match.end(), "missing-alt-text",
                    Severity.WARNING, "image link missing alt text", True,
                )
            )
    return issues


def _check_protocol_less_urls(path: str, lines: list[str]) -> list[Issue]:
    issues = []
    for line_no, line in _prose_lines(lines, 0):
        for match in _PROTOCOL_LESS_URL.finditer(line):
            issues.append(
                _span_issue(
                    path, line_no, match.start(), match.end(), "protocol-less-url",
                    Severity.WARNING, "protocol-less URL found (should use https://)", True,
                )
            )
    return issues


def _check_h1_headings(path: str, lines: list[str], start: int) -> list[Issue]:
    issues = []
    for line_no, line in _prose_lines(lines, start):
        if line.startswith("# ") or line == "#":
            issues.append(
                _line_issue(path, line_no, line, "h1-in-content", Severity.WARNING, H1_MESSAGE, False)
            )
    return issues


def _check_admonition_fenced_code(path: str, lines: list[str], start: int) -> list[Issue]:
    issues = []
    for line_no in range(start, len(lines) - 1):
        line = lines[line_no]
        match = _ADMONITION_START.match(line)
        if not match:
            continue
        following = lines[line_no + 1]
        indent = len(following) - len(following.lstrip(" \t"))
        if indent > len(match.group(1)) and following.lstrip(" \t").startswith("```"):
            issues.append(
                _line_issue(
                    path, line_no, line, "admonition-fenced-code", Severity.WARNING,
                    ADMONITION_FENCE_MESSAGE, True,
                )
            )
    return issues


def _check_wikilinks(path: str, lines: list[str], start: int, resolver: Resolver) -> list[Issue]:
    issues = []
    for line_no, line in _prose_lines(lines, start):
        for link in links_in_line(line, line_no):
            if resolver.resolve_slug(link.target):
                continue
            issues.append(
                _span_issue(
                    path, line_no, link.start_char, link.end_char, "broken-wikilink",
                    Severity.WARNING, f'broken wikilink: target post "{link.target}" not found',
                    False,
                )
            )
    return issues


def _check_mentions(path: str, lines: list[str], start: int, resolver: Resolver) -> list[Issue]:
    issues = []
    for line_no, line in _prose_lines(lines, start):
        for span in find_mentions(line):
            handle = span.handle.lower()
            if resolver.resolve_handle(handle):
                continue
            issues.append(
                _span_issue(
                    path, line_no, span.start, span.end, "unknown-mention",
                    Severity.WARNING, f"unknown mention: @{handle} not found in blogroll",
                    False,
                )
            )
    return issues
