"""MCP server entrypoint.

Wires the configured rule source, snapshot store, synchronizer, refresh
scheduler and resource facade together, and registers the resource and
tool handlers with the MCP low-level server. The facade and tool
functions stay plain Python so they can be unit-tested without the
runtime; this module only converts between them and MCP types.
"""

from __future__ import annotations

import logging
import os
import signal
import sys
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

import anyio
import anyio.to_thread
import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.stdio import stdio_server
from mcp.shared.exceptions import McpError
from pydantic import BaseModel, ValidationError

from . import __version__
from .config import AppConfig, load_config
from .document_source import RuleSource
from .errors import BadRequestError, NotFoundError, to_error_payload
from .resources import ResourceFacade
from .scheduler import RefreshScheduler, create_scheduler
from .schemas import RefreshRulesInput, RuleResource, RulesStatusInput
from .sources import create_rule_source
from .store import SnapshotStore
from .synchronizer import SnapshotSynchronizer
from .tools import refresh_rules, rules_status

logger = logging.getLogger(__name__)

# MCP error code for an unknown resource
RESOURCE_NOT_FOUND = -32002

LOG_FORMAT = "[%(levelname)s] %(name)s: %(message)s"


@dataclass
class RulesApp:
    """Everything one running server owns."""

    config: AppConfig
    source: RuleSource
    store: SnapshotStore
    synchronizer: SnapshotSynchronizer
    scheduler: RefreshScheduler
    facade: ResourceFacade
    server: Server

    def start(self) -> None:
        self.scheduler.start()

    def close(self) -> None:
        self.scheduler.stop()
        self.source.close()


def to_mcp_resource(resource: RuleResource) -> types.Resource:
    return types.Resource(
        uri=resource.uri,
        name=resource.name,
        description=resource.description,
        mimeType=resource.mime_type,
    )


_TOOLS: Dict[str, tuple[str, type[BaseModel]]] = {
    "rules.status": (
        "Report the active rule source, the published snapshot and the last refresh.",
        RulesStatusInput,
    ),
    "rules.refresh": (
        "Refresh the rule snapshot from its source now and report what changed.",
        RefreshRulesInput,
    ),
}


def call_tool(app: RulesApp, name: str, arguments: Optional[Dict[str, Any]]) -> BaseModel:
    """Dispatch one tool call to its plain-function implementation.

    Raises:
        BadRequestError: For unknown tools or invalid arguments.
    """

    if name not in _TOOLS:
        raise BadRequestError(f"Unknown tool: {name}", {"tool": name})
    _, input_model = _TOOLS[name]
    try:
        params = input_model.model_validate(arguments or {})
    except ValidationError as exc:
        raise BadRequestError(
            f"Invalid arguments for {name}", {"errors": exc.errors()}
        ) from exc

    if name == "rules.status":
        return rules_status(app.config, app.store, app.source)
    return refresh_rules(app.scheduler, params)


def _register_handlers(server: Server, app: RulesApp) -> None:
    facade = app.facade

    @server.list_resources()
    async def handle_list_resources() -> List[types.Resource]:
        resources = await anyio.to_thread.run_sync(facade.list_resources)
        return [to_mcp_resource(r) for r in resources]

    @server.read_resource()
    async def handle_read_resource(uri) -> Iterable[ReadResourceContents]:
        try:
            content = await anyio.to_thread.run_sync(facade.read_resource, str(uri))
        except NotFoundError as exc:
            raise McpError(
                types.ErrorData(
                    code=RESOURCE_NOT_FOUND, message=exc.message, data=to_error_payload(exc)
                )
            ) from exc
        return [ReadResourceContents(content=content.text, mime_type=content.mime_type)]

    @server.list_tools()
    async def handle_list_tools() -> List[types.Tool]:
        return [
            types.Tool(
                name=name,
                description=description,
                inputSchema=input_model.model_json_schema(),
            )
            for name, (description, input_model) in _TOOLS.items()
        ]

    @server.call_tool()
    async def handle_call_tool(
        name: str, arguments: Optional[Dict[str, Any]]
    ) -> List[types.TextContent]:
        output = await anyio.to_thread.run_sync(call_tool, app, name, arguments)
        return [types.TextContent(type="text", text=output.model_dump_json(indent=2))]


def build_app(config: AppConfig) -> RulesApp:
    """Create the source, store, scheduler and MCP server for `config`.

    Raises:
        ValueError: If the configuration does not describe a usable source.
    """

    source = create_rule_source(config)
    store = SnapshotStore()
    synchronizer = SnapshotSynchronizer(source, store)
    scheduler = create_scheduler(config, synchronizer)
    facade = ResourceFacade(store, scheduler, scheme=config.uri_scheme)
    server = Server(config.server_name, version=__version__)
    app = RulesApp(
        config=config,
        source=source,
        store=store,
        synchronizer=synchronizer,
        scheduler=scheduler,
        facade=facade,
        server=server,
    )
    _register_handlers(server, app)
    return app


async def serve_stdio(server: Server) -> None:
    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream, write_stream, server.create_initialization_options()
        )


def _install_signal_handlers(app: RulesApp) -> None:
    def _handle(signum, frame) -> None:
        logger.info("Received %s, shutting down", signal.Signals(signum).name)
        app.close()
        logging.shutdown()
        # the stdio reader thread blocks on stdin and cannot be cancelled
        os._exit(0)

    signal.signal(signal.SIGINT, _handle)
    signal.signal(signal.SIGTERM, _handle)


def main() -> None:
    """Run the rules MCP server on stdio.

    Exits with status 0 on SIGINT/SIGTERM or when the client closes the
    stream, and 1 when the server cannot be started.
    """

    # stdout carries the MCP protocol; logs go to stderr
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT, stream=sys.stderr)

    try:
        config = load_config()
        logging.getLogger().setLevel(config.log_level)
        app = build_app(config)
    except (ValidationError, ValueError) as exc:
        logger.error("Invalid configuration: %s", exc)
        sys.exit(1)

    app.start()
    _install_signal_handlers(app)
    logger.info(
        "Rules MCP server running on stdio (source: %s)", config.source_location
    )

    try:
        anyio.run(serve_stdio, app.server)
    except Exception:
        logger.exception("Server error")
        app.close()
        sys.exit(1)

    app.close()
    logger.info("Client disconnected, shutting down")


if __name__ == "__main__":  # pragma: no cover
    main()
