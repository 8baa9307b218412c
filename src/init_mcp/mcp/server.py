"""MCP stdio server with JSON-RPC framing.

Implements the Model Context Protocol (MCP) methods needed to expose the
``init`` tool: ``initialize``, ``tools/list`` and ``tools/call``. Every
request line produces exactly one response line; errors never escape the
dispatcher.
"""
from __future__ import annotations
import asyncio
import json
import logging
import math
from typing import Any, Optional, TextIO

from init_mcp.config import ServerConfig
from init_mcp.errors import (
    InternalError,
    InvalidParamsError,
    JSONRPCError,
    MarshalError,
    MaterializeError,
    MethodNotFoundError,
    ParseError,
)
from init_mcp.materializer import materialize
from init_mcp.mcp.lifecycle import LifecycleController
from init_mcp.mcp.schemas import INIT_TOOL_NAME, TOOL_SCHEMAS
from init_mcp.mcp.transport import StdioTransport
from init_mcp.templates import TemplateSet

logger = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"

# distinguishes an absent "params" member from an explicit null
PARAMS_ABSENT = object()


def encode_json(value: Any) -> str:
    """Compact, strict JSON encoding used for every frame."""
    return json.dumps(value, separators=(",", ":"), allow_nan=False)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Invalid JSON constant: {name}")


def _parse_finite_float(text: str) -> float:
    value = float(text)
    if math.isinf(value):
        raise ValueError(f"Number out of range: {text}")
    return value


def decode_request(line: str) -> dict[str, Any]:
    """Parse one request line.

    Raises:
        ParseError: If the line is not a single JSON object
    """
    try:
        request = json.loads(line, parse_float=_parse_finite_float, parse_constant=_reject_constant)
    except (ValueError, RecursionError) as e:
        raise ParseError() from e

    if not isinstance(request, dict):
        raise ParseError()

    return request


def result_response(req_id: Any, result: Any) -> dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": req_id, "result": result}


def error_response(req_id: Any, error: JSONRPCError) -> dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": req_id, "error": error.to_dict()}


class Dispatcher:
    """Routes JSON-RPC requests to the MCP method handlers."""

    def __init__(self, config: ServerConfig, templates: TemplateSet):
        self.config = config
        self.templates = templates
        self.methods = {
            "initialize": self.handle_initialize,
            "tools/list": self.handle_tools_list,
            "tools/call": self.handle_tools_call,
        }

    # MCP Protocol Implementation

    async def handle_initialize(self, params: Any) -> dict[str, Any]:
        """Handle MCP initialize request."""
        return {
            "protocolVersion": self.config.protocol_version,
            "serverInfo": {
                "name": self.config.server.name,
                "version": self.config.server.version
            },
            "capabilities": {
                "tools": {
                    "list": True,
                    "call": True
                }
            }
        }

    async def handle_tools_list(self, params: Any) -> dict[str, Any]:
        """List all available tools with their schemas."""
        tools = []

        for tool_name, schema in TOOL_SCHEMAS.items():
            tools.append({
                "name": tool_name,
                "description": schema["description"],
                "inputSchema": schema["inputSchema"]
            })

        return {"tools": tools}

    async def handle_tools_call(self, params: Any) -> dict[str, Any]:
        """Validate arguments and run the ``init`` tool."""
        if params is None:
            params = {}
        if not isinstance(params, dict):
            raise InvalidParamsError()

        tool_name = params.get("name")
        arguments = params.get("arguments")
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict) or (tool_name is not None and not isinstance(tool_name, str)):
            raise InvalidParamsError()

        if tool_name != INIT_TOOL_NAME:
            raise InvalidParamsError("Unknown tool")

        directory = arguments.get("directory")
        if not isinstance(directory, str) or not directory:
            raise InvalidParamsError("Missing or invalid 'directory' parameter")

        try:
            result = materialize(directory, self.templates)
        except MaterializeError as e:
            logger.warning(f"Init failed for {directory}: {e}")
            raise InternalError(f"Init failed: {e}") from e

        try:
            text = encode_json(result.to_dict())
        except (TypeError, ValueError) as e:
            raise MarshalError() from e

        logger.info(f"Created {len(result.files_created)} files in {result.directory}")

        return {
            "content": [
                {
                    "type": "text",
                    "text": text
                }
            ]
        }

    # JSON-RPC Handler

    async def handle_request(self, request: dict[str, Any]) -> dict[str, Any]:
        """Handle a single decoded JSON-RPC request.

        Returns:
            JSON-RPC response dictionary
        """
        req_id = request.get("id")
        method = request.get("method")
        params = request.get("params", PARAMS_ABSENT)

        try:
            handler = self.methods.get(method) if isinstance(method, str) else None
            if handler is None:
                raise MethodNotFoundError()

            result = await handler(params)
            return result_response(req_id, result)

        except JSONRPCError as e:
            logger.debug(f"{method} failed with {e.code}: {e.message}")
            return error_response(req_id, e)

        except Exception as e:
            # Unexpected errors
            logger.error(f"Unexpected error handling {method}: {e}", exc_info=True)
            return error_response(req_id, InternalError())

    async def dispatch(self, line: str) -> str:
        """Turn one request line into one framed response (no trailing newline)."""
        try:
            request = decode_request(line)
        except ParseError as e:
            logger.warning(f"Invalid JSON-RPC request: {line[:200]}")
            response = error_response(None, e)
        else:
            response = await self.handle_request(request)

        return self.frame(response)

    def frame(self, response: dict[str, Any]) -> str:
        try:
            return encode_json(response)
        except (TypeError, ValueError) as e:
            logger.error(f"Failed to marshal response: {e}")
            error = MarshalError("Failed to marshal response")
            try:
                return encode_json(error_response(response.get("id"), error))
            except (TypeError, ValueError):
                return encode_json(error_response(None, error))


async def run_stdio_server(
    config: ServerConfig,
    templates: TemplateSet,
    reader: Optional[TextIO] = None,
    writer: Optional[TextIO] = None,
) -> StdioTransport:
    """Run MCP server over stdio until shutdown signal or end of input.

    Reads JSON-RPC requests from stdin (one per line).
    Writes JSON-RPC responses to stdout (one per line).
    Logs to stderr.

    Returns:
        The transport, for inspecting ``responses_written``
    """
    dispatcher = Dispatcher(config, templates)
    transport = StdioTransport(dispatcher, reader=reader, writer=writer)
    lifecycle = LifecycleController()
    loop = asyncio.get_running_loop()

    logger.info(f"{config.server.name} MCP server starting on stdio...")
    logger.info(f"Templates: {', '.join(templates.destinations)}")

    lifecycle.install(loop)
    try:
        await transport.serve(lifecycle.shutdown_event)
    finally:
        lifecycle.uninstall(loop)

    logger.info(f"Server stopped after {transport.responses_written} responses")
    return transport


def main(config: ServerConfig, templates: TemplateSet) -> None:
    """Entry point for MCP server."""
    asyncio.run(run_stdio_server(config, templates))
