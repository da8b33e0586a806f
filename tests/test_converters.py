"""
test_converters.py - Testes para conversão de Issues → LSP

Propósito:
    Validar conversão entre o resultado das regras e o protocolo LSP.
    Garante que coordenadas, severidades, códigos e mensagens são mapeados.

Componentes testados:
    - convert_severity: Severity → DiagnosticSeverity
    - convert_range: IssueRange → Range (ambos 0-based)
    - build_diagnostic: Issue → Diagnostic
    - build_diagnostics: Iterable[Issue] → List[Diagnostic]
"""

from __future__ import annotations

from types import SimpleNamespace

from lsprotocol.types import DiagnosticSeverity, Position, Range

from markata_lsp.checks import Issue, IssueRange, Severity
from markata_lsp.converters import (
    DIAGNOSTIC_SOURCE,
    build_diagnostic,
    build_diagnostics,
    convert_range,
    convert_severity,
)


def _issue(code="broken-wikilink", severity=Severity.WARNING, message="msg"):
    return Issue(
        file="post.md",
        range=IssueRange(4, 4, 4, 15),
        code=code,
        severity=severity,
        message=message,
    )


def test_convert_severity_error():
    """Severity.ERROR deve mapear para DiagnosticSeverity.Error."""
    assert convert_severity(Severity.ERROR) == DiagnosticSeverity.Error


def test_convert_severity_warning():
    """Severity.WARNING deve mapear para DiagnosticSeverity.Warning."""
    assert convert_severity(Severity.WARNING) == DiagnosticSeverity.Warning


def test_convert_severity_info():
    """Severity.INFO deve mapear para DiagnosticSeverity.Information."""
    assert convert_severity(Severity.INFO) == DiagnosticSeverity.Information


def test_convert_severity_unknown_defaults_to_warning():
    assert convert_severity(99) == DiagnosticSeverity.Warning


def test_convert_range():
    """Coordenadas são copiadas sem deslocamento."""
    result = convert_range(IssueRange(2, 3, 2, 9))
    assert result == Range(start=Position(line=2, character=3), end=Position(line=2, character=9))


def test_build_diagnostic():
    diagnostic = build_diagnostic(_issue(message='broken wikilink: target post "x" not found'))

    assert diagnostic.message == 'broken wikilink: target post "x" not found'
    assert diagnostic.severity == DiagnosticSeverity.Warning
    assert diagnostic.code == "broken-wikilink"
    assert diagnostic.source == DIAGNOSTIC_SOURCE
    assert diagnostic.range.start == Position(line=4, character=4)
    assert diagnostic.range.end == Position(line=4, character=15)


def test_build_diagnostics_empty():
    assert build_diagnostics([]) == []


def test_build_diagnostics_keeps_order():
    issues = [_issue(code="h1-in-content"), _issue(code="broken-wikilink", severity=Severity.ERROR)]
    diagnostics = build_diagnostics(issues)

    assert [d.code for d in diagnostics] == ["h1-in-content", "broken-wikilink"]
    assert diagnostics[1].severity == DiagnosticSeverity.Error


def test_build_diagnostics_skips_broken_issue():
    """Issue malformada é logada e ignorada; as demais são convertidas."""
    broken = SimpleNamespace(code="bad", range=None, message="x", severity=Severity.ERROR)
    diagnostics = build_diagnostics([broken, _issue()])

    assert len(diagnostics) == 1
    assert diagnostics[0].code == "broken-wikilink"
