"""
filters.py - Avaliador de filtros das regras mentions.from_posts

Propósito:
    Decide quais posts viram mentions internas. As regras usam o subconjunto
    Python-like dos filtros markata (ex: "'contact' in tags", "published == True").

Componentes principais:
    - FilterError: Expressão inválida ou construção não suportada
    - PostFilter: Expressão validada e pronta para avaliação
    - compile_filter: Parse + validação (ast, mode="eval")
    - post_fields: Campos de um PostInfo expostos ao filtro

Notas de implementação:
    - Nunca usa eval(): a árvore ast é percorrida por um interpretador restrito
    - Suportado: literais, nomes, listas/tuplas, and/or/not, in/not in,
      ==, !=, <, <=, >, >=
    - Nome desconhecido avalia para None; comparação entre tipos
      incompatíveis avalia para False
    - "today" e "now" estão disponíveis para filtros por data
"""

from __future__ import annotations

import ast
import datetime
import logging
import operator
from typing import Any

from markata_lsp.content import metadata_strings
from markata_lsp.models import PostInfo

logger = logging.getLogger(__name__)


class FilterError(ValueError):
    """Expressão de filtro inválida."""


_COMPARATORS = {
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
    ast.In: lambda left, right: left in right,
    ast.NotIn: lambda left, right: left not in right,
}

_ALLOWED_NODES = (
    ast.Expression,
    ast.BoolOp,
    ast.And,
    ast.Or,
    ast.UnaryOp,
    ast.Not,
    ast.Compare,
    ast.Name,
    ast.Load,
    ast.Constant,
    ast.List,
    ast.Tuple,
    *_COMPARATORS.keys(),
)


class PostFilter:
    """Filtro compilado."""

    def __init__(self, expression: str, tree: ast.Expression):
        self.expression = expression
        self._tree = tree

    def matches(self, fields: dict[str, Any]) -> bool:
        """Avalia o filtro contra os campos de um post."""
        return bool(self._eval(self._tree.body, fields))

    def _eval(self, node: ast.AST, fields: dict[str, Any]) -> Any:
        if isinstance(node, ast.Constant):
            return node.value
        if isinstance(node, ast.Name):
            return _lookup(node.id, fields)
        if isinstance(node, (ast.List, ast.Tuple)):
            return [self._eval(elt, fields) for elt in node.elts]
        if isinstance(node, ast.UnaryOp):
            return not self._eval(node.operand, fields)
        if isinstance(node, ast.BoolOp):
            if isinstance(node.op, ast.And):
                return all(self._eval(value, fields) for value in node.values)
            return any(self._eval(value, fields) for value in node.values)
        if isinstance(node, ast.Compare):
            return self._compare(node, fields)
        raise FilterError(f"construção não suportada: {type(node).__name__}")

    def _compare(self, node: ast.Compare, fields: dict[str, Any]) -> bool:
        left = self._eval(node.left, fields)
        for op, comparator in zip(node.ops, node.comparators):
            right = self._eval(comparator, fields)
            try:
                ok = _COMPARATORS[type(op)](left, right)
            except TypeError:
                return False
            if not ok:
                return False
            left = right
        return True


def compile_filter(expression: str) -> PostFilter:
    """
    Parseia e valida uma expressão de filtro.

    Raises:
        FilterError: se a expressão não for sintaticamente válida ou usar
            construções fora do subconjunto suportado
    """
    text = expression.strip()
    if not text:
        raise FilterError("expressão vazia")
    try:
        tree = ast.parse(text, mode="eval")
    except SyntaxError as e:
        raise FilterError(f"sintaxe inválida: {e.msg}") from e

    for node in ast.walk(tree):
        if not isinstance(node, _ALLOWED_NODES):
            raise FilterError(f"construção não suportada: {type(node).__name__}")
        if isinstance(node, ast.UnaryOp) and not isinstance(node.op, ast.Not):
            raise FilterError("apenas 'not' é suportado como operador unário")

    return PostFilter(text, tree)


def _lookup(name: str, fields: dict[str, Any]) -> Any:
    if name in fields:
        return fields[name]
    if name == "today":
        return datetime.date.today()
    if name == "now":
        return datetime.datetime.now()
    return None


def post_fields(post: PostInfo) -> dict[str, Any]:
    """
    Campos visíveis ao filtro: todo o frontmatter, sobrescrito pelos
    atributos canônicos do post (slug, title, description, path, href, tags).
    """
    fields: dict[str, Any] = dict(post.metadata)
    fields.update(
        slug=post.slug,
        title=post.title,
        description=post.description,
        path=post.path,
        href=f"/{post.slug}/" if post.slug else "/",
        tags=metadata_strings(post.metadata.get("tags")),
    )
    return fields
