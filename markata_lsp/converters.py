"""
converters.py - Conversão entre Issues de diagnóstico e tipos LSP

Propósito:
    Traduz o resultado de checks.check (independente do protocolo) para
    lsprotocol.types.Diagnostic publicado via textDocument/publishDiagnostics.

Componentes principais:
    - convert_severity: Severity → DiagnosticSeverity
    - convert_range: IssueRange → Range
    - build_diagnostic / build_diagnostics: Issue → Diagnostic

Notas de implementação:
    - Coordenadas já são 0-based nos dois lados
    - code do Diagnostic é o código da regra (ex: "broken-wikilink")
    - source sempre "markata-lsp"
"""

from __future__ import annotations

import logging
from typing import Iterable, List

from lsprotocol.types import Diagnostic, DiagnosticSeverity, Position, Range

from markata_lsp.checks import Issue, IssueRange, Severity

logger = logging.getLogger(__name__)

DIAGNOSTIC_SOURCE = "markata-lsp"


def convert_severity(severity: Severity) -> DiagnosticSeverity:
    """
    Mapeia Severity para DiagnosticSeverity do LSP.

    Mapeamento:
        ERROR   → DiagnosticSeverity.Error (1)
        WARNING → DiagnosticSeverity.Warning (2)
        INFO    → DiagnosticSeverity.Information (3)
    """
    mapping = {
        Severity.ERROR: DiagnosticSeverity.Error,
        Severity.WARNING: DiagnosticSeverity.Warning,
        Severity.INFO: DiagnosticSeverity.Information,
    }
    return mapping.get(severity, DiagnosticSeverity.Warning)


def convert_range(issue_range: IssueRange) -> Range:
    """IssueRange → Range (mesma convenção 0-based)."""
    return Range(
        start=Position(line=issue_range.start_line, character=issue_range.start_col),
        end=Position(line=issue_range.end_line, character=issue_range.end_col),
    )


def build_diagnostic(issue: Issue) -> Diagnostic:
    """Converte uma Issue em Diagnostic."""
    return Diagnostic(
        range=convert_range(issue.range),
        message=issue.message,
        severity=convert_severity(issue.severity),
        code=issue.code,
        source=DIAGNOSTIC_SOURCE,
    )


def build_diagnostics(issues: Iterable[Issue]) -> List[Diagnostic]:
    """Converte uma sequência de Issues; falha em uma Issue não derruba as demais."""
    diagnostics = []
    for issue in issues:
        try:
            diagnostics.append(build_diagnostic(issue))
        except Exception as e:
            logger.error(f"Erro ao converter issue {issue.code}: {e}", exc_info=True)
    return diagnostics
