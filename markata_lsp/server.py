"""
server.py - Servidor LSP principal para corpora Markdown

Propósito:
    Servidor Language Server Protocol que fornece autocomplete, hover,
    go-to-definition e diagnósticos para arquivos Markdown com
    [[wikilinks]] e @mentions em editores compatíveis.

Componentes principais:
    - MarkataLanguageServerProtocol: Regras de sessão sobre o protocolo do pygls
    - MarkataLanguageServer: Servidor pygls com índice do workspace
    - Handlers: initialize, initialized, didOpen, didChange, didClose,
      didSave, didChangeWatchedFiles, completion, hover, definition

Dependências críticas:
    - pygls: Servidor LSP, framing JSON-RPC e documentos abertos
    - lsprotocol: Tipos e constantes de método
    - markata_lsp.index: Estado do workspace

Exemplo de uso:
    markata-lsp
    python -m markata_lsp.server

Notas de implementação:
    - Comunica via STDIO; logs vão para stderr
    - Antes de initialize: requisições recebem -32002, notificações são descartadas
    - Após shutdown: apenas exit; demais requisições recebem -32600
    - Params inválidos → -32602 sem encerrar a sessão; JSON inválido → -32700
    - Exceção em handler → -32603 (requisição) ou log (notificação)
    - Diagnósticos podem ser desabilitados via initializationOptions.diagnostics.enabled
"""

from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Optional

from lsprotocol.types import (
    EXIT,
    INITIALIZE,
    INITIALIZED,
    TEXT_DOCUMENT_COMPLETION,
    TEXT_DOCUMENT_DEFINITION,
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_CLOSE,
    TEXT_DOCUMENT_DID_OPEN,
    TEXT_DOCUMENT_DID_SAVE,
    TEXT_DOCUMENT_HOVER,
    WORKSPACE_DID_CHANGE_WATCHED_FILES,
    CompletionList,
    CompletionOptions,
    CompletionParams,
    DefinitionParams,
    DidChangeTextDocumentParams,
    DidChangeWatchedFilesParams,
    DidCloseTextDocumentParams,
    DidOpenTextDocumentParams,
    DidSaveTextDocumentParams,
    FileChangeType,
    HoverParams,
    InitializeParams,
    InitializedParams,
    SaveOptions,
    TextDocumentSyncKind,
)
from pygls.exceptions import (
    JsonRpcException,
    JsonRpcInvalidParams,
    JsonRpcInvalidRequest,
    JsonRpcParseError,
    JsonRpcServerNotInitialized,
)
from pygls.protocol import LanguageServerProtocol
from pygls.server import LanguageServer

from markata_lsp import __version__
from markata_lsp.completion import compute_completions
from markata_lsp.content import is_markdown, uri_to_path
from markata_lsp.definition import compute_definition
from markata_lsp.diagnostics import compute_diagnostics
from markata_lsp.hover import compute_hover
from markata_lsp.index import Index

# Configuração de logging (stdout é reservado ao protocolo)
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

SERVER_NAME = "markata-lsp"
LOG_LEVEL_ENV = "MARKATA_LSP_LOG_LEVEL"
TRIGGER_CHARACTERS = ["[", "@", "!", "?", " "]


class MarkataLanguageServerProtocol(LanguageServerProtocol):
    """
    Protocolo LSP com as regras de sessão do markata-lsp.

    O pygls descarta em silêncio tudo o que chega após shutdown e aceita
    qualquer método antes de initialize; aqui essas mensagens recebem o
    erro JSON-RPC correspondente.
    """

    def __init__(self, server, converter):
        super().__init__(server, converter)
        self.exit_received = False

    def exit_code(self) -> int:
        """0 quando exit veio depois de shutdown; 1 caso contrário."""
        return 0 if self.exit_received and self._shutdown else 1

    @property
    def initialized(self) -> bool:
        """True depois que initialize foi atendido (workspace criado)."""
        return self._workspace is not None

    def session_error(self, method: str) -> Optional[JsonRpcException]:
        """Erro de sessão para o método no estado atual, ou None se aceito."""
        if self._shutdown and method != EXIT:
            return JsonRpcInvalidRequest("server is shutting down")
        if not self.initialized:
            if method not in (INITIALIZE, EXIT):
                return JsonRpcServerNotInitialized("server not initialized")
        elif method == INITIALIZE:
            return JsonRpcInvalidRequest("server already initialized")
        return None

    def _procedure_handler(self, message):
        if message is None:
            return
        method = getattr(message, "method", None)
        error = self.session_error(method) if method is not None else None
        if error is None:
            if method == EXIT:
                self.exit_received = True
            super()._procedure_handler(message)
        elif hasattr(message, "id"):
            logger.warning(f"Requisição {method} rejeitada: {error.message}")
            self._send_response(message.id, error=error.to_response_error())
        else:
            logger.debug(f"Notificação {method} descartada: {error.message}")

    def _deserialize_message(self, data):
        try:
            return super()._deserialize_message(data)
        except JsonRpcInvalidParams:
            method = data.get("method")
            if "id" in data and method is not None:
                error = self.session_error(method) or JsonRpcInvalidParams(
                    f"invalid {method} params"
                )
                self._send_response(data["id"], error=error.to_response_error())
            return None

    def _data_received(self, data: bytes):
        try:
            super()._data_received(data)
        except json.JSONDecodeError as e:
            logger.error(f"Mensagem com JSON inválido descartada: {e}")
            self._send_response(None, error=JsonRpcParseError().to_response_error())


class MarkataLanguageServer(LanguageServer):
    """
    Servidor LSP para sites markata.

    Attributes:
        index: Índice do workspace (posts, aliases, mentions)
        root: Raiz do workspace informada em initialize
        diagnostics_enabled: Flag para publicar ou não diagnósticos

    Documentos abertos ficam no workspace do pygls (ls.workspace) e são
    autoritativos sobre a cópia em disco.
    """

    lsp: MarkataLanguageServerProtocol

    def __init__(self, *args, **kwargs):
        kwargs.setdefault("protocol_cls", MarkataLanguageServerProtocol)
        kwargs.setdefault("text_document_sync_kind", TextDocumentSyncKind.Full)
        super().__init__(*args, **kwargs)
        self.index: Index = Index()
        self.root: Optional[Path] = None
        self.diagnostics_enabled: bool = True


# Instância global do servidor
server = MarkataLanguageServer(SERVER_NAME, __version__)


def _open_document(ls: MarkataLanguageServer, uri: str):
    """Documento aberto no editor, ou None (nunca lê do disco)."""
    return ls.workspace.text_documents.get(uri)


def _open_markdown_uris(ls: MarkataLanguageServer) -> list[str]:
    return [uri for uri in ls.workspace.text_documents if is_markdown(uri)]


def validate_document(ls: MarkataLanguageServer, uri: str) -> None:
    """
    Computa e publica diagnósticos de um documento.

    Documento fechado (ou diagnósticos desabilitados) publica lista vazia,
    o que limpa os marcadores no editor.
    """
    diagnostics = []
    version = None
    document = _open_document(ls, uri)
    if document is not None:
        version = document.version
        if ls.diagnostics_enabled:
            try:
                diagnostics = compute_diagnostics(ls.index, uri, document.source)
            except Exception as e:
                logger.error(f"Erro ao computar diagnósticos de {uri}: {e}", exc_info=True)
    ls.publish_diagnostics(uri, diagnostics, version)
    logger.debug(f"Publicados {len(diagnostics)} diagnósticos para {uri}")


def validate_open_documents(ls: MarkataLanguageServer) -> None:
    for uri in _open_markdown_uris(ls):
        validate_document(ls, uri)


def _resolve_root(params: InitializeParams) -> Optional[Path]:
    """
    Resolve a raiz do workspace a partir de initialize.

    Estratégia:
        1. rootUri
        2. rootPath
        3. primeira workspaceFolder (multi-root não é suportado)
    """
    if params.root_uri:
        return uri_to_path(params.root_uri)
    if params.root_path:
        return Path(params.root_path)
    if params.workspace_folders:
        return uri_to_path(params.workspace_folders[0].uri)
    return None


def _diagnostics_enabled(options: Any) -> bool:
    if not isinstance(options, dict):
        return True
    diagnostics = options.get("diagnostics")
    if isinstance(diagnostics, dict) and isinstance(diagnostics.get("enabled"), bool):
        return diagnostics["enabled"]
    return True


# --- Ciclo de vida ---


@server.feature(INITIALIZE)
def initialize(ls: MarkataLanguageServer, params: InitializeParams) -> None:
    """
    Registra a raiz do workspace e as opções do cliente.

    As capacidades são anunciadas pelo pygls a partir das features
    registradas; este handler roda logo depois.
    """
    ls.root = _resolve_root(params)
    ls.diagnostics_enabled = _diagnostics_enabled(params.initialization_options)
    logger.info(f"initialize: root={ls.root}, diagnósticos={ls.diagnostics_enabled}")


@server.feature(INITIALIZED)
def initialized(ls: MarkataLanguageServer, params: InitializedParams) -> None:
    """Constrói o índice completo do workspace."""
    if ls.root is None:
        logger.warning("Sem raiz de workspace, índice permanece vazio")
        return
    try:
        count = ls.index.build(ls.root)
    except Exception as e:
        logger.error(f"Falha ao construir índice de {ls.root}: {e}", exc_info=True)
        return
    logger.info(f"Workspace indexado: {count} posts")
    for uri in _open_markdown_uris(ls):
        ls.index.update(uri, _open_document(ls, uri).source)
    validate_open_documents(ls)


# --- Sincronização de documentos ---


@server.feature(TEXT_DOCUMENT_DID_OPEN)
def did_open(ls: MarkataLanguageServer, params: DidOpenTextDocumentParams) -> None:
    """Reindexa o documento aberto e publica diagnósticos."""
    document = params.text_document
    if not is_markdown(document.uri):
        return
    logger.info(f"Documento aberto: {document.uri}")
    ls.index.update(document.uri, document.text)
    validate_document(ls, document.uri)


@server.feature(TEXT_DOCUMENT_DID_CHANGE)
def did_change(ls: MarkataLanguageServer, params: DidChangeTextDocumentParams) -> None:
    """Reindexa com o texto completo (sync Full) já aplicado pelo pygls."""
    uri = params.text_document.uri
    document = _open_document(ls, uri)
    if not is_markdown(uri) or document is None:
        return
    ls.index.update(uri, document.source)
    validate_document(ls, uri)


@server.feature(TEXT_DOCUMENT_DID_CLOSE)
def did_close(ls: MarkataLanguageServer, params: DidCloseTextDocumentParams) -> None:
    """Limpa os diagnósticos do documento fechado."""
    uri = params.text_document.uri
    if not is_markdown(uri):
        return
    logger.info(f"Documento fechado: {uri}")
    validate_document(ls, uri)


@server.feature(TEXT_DOCUMENT_DID_SAVE, SaveOptions(include_text=True))
def did_save(ls: MarkataLanguageServer, params: DidSaveTextDocumentParams) -> None:
    """
    Reindexa o documento salvo e republica diagnósticos de todos os abertos.

    Um save pode consertar ou quebrar referências em outros documentos.
    """
    uri = params.text_document.uri
    if not is_markdown(uri):
        return
    logger.info(f"Documento salvo: {uri}")
    text = params.text
    if text is None:
        document = _open_document(ls, uri)
        text = document.source if document is not None else None
    if text is not None:
        ls.index.update(uri, text)
    validate_open_documents(ls)


@server.feature(WORKSPACE_DID_CHANGE_WATCHED_FILES)
def did_change_watched_files(
    ls: MarkataLanguageServer, params: DidChangeWatchedFilesParams
) -> None:
    """
    Atualiza o índice para arquivos criados, modificados ou removidos.

    Arquivos abertos no editor não são relidos do disco.
    """
    touched = 0
    for change in params.changes:
        if not is_markdown(change.uri):
            continue
        touched += 1
        if change.type == FileChangeType.Deleted:
            logger.info(f"Arquivo removido: {change.uri}")
            ls.index.remove(change.uri)
            continue
        if _open_document(ls, change.uri) is not None:
            continue
        path = uri_to_path(change.uri)
        if path is not None:
            ls.index.index_file(path)

    if touched:
        validate_open_documents(ls)


# --- Funcionalidades ---


@server.feature(
    TEXT_DOCUMENT_COMPLETION,
    CompletionOptions(trigger_characters=TRIGGER_CHARACTERS, resolve_provider=False),
)
def completion(ls: MarkataLanguageServer, params: CompletionParams) -> CompletionList:
    document = _open_document(ls, params.text_document.uri)
    if document is None:
        return CompletionList(is_incomplete=False, items=[])
    return compute_completions(document.source, params.position, ls.index)


@server.feature(TEXT_DOCUMENT_HOVER)
def hover(ls: MarkataLanguageServer, params: HoverParams):
    document = _open_document(ls, params.text_document.uri)
    if document is None:
        return None
    return compute_hover(document.source, params.position, ls.index)


@server.feature(TEXT_DOCUMENT_DEFINITION)
def definition(ls: MarkataLanguageServer, params: DefinitionParams):
    document = _open_document(ls, params.text_document.uri)
    if document is None:
        return None
    return compute_definition(document.source, params.position, ls.index)


def main() -> None:
    """
    Ponto de entrada principal do servidor.

    Inicia o servidor LSP em modo STDIO. O processo termina com código 0
    quando exit vem depois de shutdown e 1 caso contrário (fim do stream
    incluído).

    Limitação: server.shutdown() apenas marca o evento de parada do pygls,
    que é consultado entre leituras. A leitura bloqueante do stdin roda numa
    thread do executor e só percebe a parada quando a próxima linha chega
    ou o stream fecha.
    """
    level = os.environ.get(LOG_LEVEL_ENV)
    if level:
        logging.getLogger().setLevel(level.upper())
    logger.info(f"Iniciando {SERVER_NAME} {__version__}...")
    logger.info("Python executable: %s", sys.executable)
    server.start_io()
    sys.exit(server.lsp.exit_code())


if __name__ == "__main__":
    main()
