"""JSON-RPC 2.0 Sideload Handler

Local invocation surface: reads line-delimited JSON-RPC requests from
stdin, dispatches them to registered methods (generate, login, ...) and
writes one response line per request to stdout.
"""

import asyncio
import inspect
import json
import logging
import sys
from typing import Any, Callable, Dict, Optional, TextIO

logger = logging.getLogger(__name__)

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class SideloadHandler:
    """JSON-RPC 2.0 request dispatcher for sideload mode."""

    def __init__(self, output: Optional[TextIO] = None):
        self._methods: Dict[str, Callable] = {}
        self._running = False
        self._output = output

    def register_method(self, name: str, handler: Callable) -> None:
        """Register a method handler (sync or async, takes the params dict)."""
        self._methods[name] = handler

    @property
    def methods(self) -> list:
        return sorted(self._methods)

    async def handle_request(self, raw: str) -> Optional[str]:
        """Parse and dispatch a single JSON-RPC request.

        Returns JSON response string, or None for notifications.
        """
        try:
            msg = json.loads(raw)
        except json.JSONDecodeError as e:
            return _error(None, PARSE_ERROR, f"Parse error: {e}")

        if not isinstance(msg, dict):
            return _error(None, INVALID_REQUEST, "Request must be a JSON object")

        method = msg.get("method", "")
        params = msg.get("params") or {}
        msg_id = msg.get("id")

        handler = self._methods.get(method)
        if handler is None:
            if msg_id is None:
                return None  # notification for an unknown method
            return _error(msg_id, METHOD_NOT_FOUND, f"Method not found: {method}")

        if not isinstance(params, dict):
            if msg_id is None:
                return None
            return _error(msg_id, INVALID_PARAMS, "Params must be an object")

        try:
            result = handler(params)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logger.exception(f"Error handling {method}")
            if msg_id is None:
                return None
            return _error(msg_id, INTERNAL_ERROR, str(e))

        if msg_id is None:
            return None
        return json.dumps({"jsonrpc": "2.0", "id": msg_id, "result": result})

    def _write(self, line: str) -> None:
        output = self._output or sys.stdout
        output.write(line + "\n")
        output.flush()

    async def run(self) -> None:
        """Serve requests from stdin until EOF or stop()."""
        loop = asyncio.get_running_loop()
        reader = asyncio.StreamReader()
        await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)
        await self.serve(reader)

    async def serve(self, reader: asyncio.StreamReader) -> None:
        """Dispatch one request per line until EOF or stop(); one reply line each."""
        self._running = True
        logger.info("Sideload handler started")

        try:
            while self._running:
                line = await reader.readline()
                if not line:
                    logger.info("Input closed, stopping sideload handler")
                    break

                request = line.decode("utf-8", errors="replace").strip()
                if not request:
                    continue

                try:
                    reply = await self.handle_request(request)
                except Exception:
                    logger.exception("Unhandled error while dispatching a sideload request")
                    continue
                if reply is not None:
                    self._write(reply)
        finally:
            self._running = False
            logger.info("Sideload handler stopped")

    def stop(self) -> None:
        """Signal the handler to stop."""
        self._running = False


def _error(msg_id: Any, code: int, message: str) -> str:
    return json.dumps({
        "jsonrpc": "2.0",
        "id": msg_id,
        "error": {"code": code, "message": message},
    })
