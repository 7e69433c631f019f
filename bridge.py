"""
JSON-lines bridge between a UI process and the explorer commands.

Requests arrive one per line on stdin:

    {"id": 1, "command": "list_directory", "args": {"path": "/tmp"}}

and are answered on stdout with ``{"id", "ok", "result"}`` or
``{"id", "ok": false, "error"}``. Watch notifications are pushed on the same
stream as ``{"event": "fs-change", "payload": {"kind", "paths"}}`` and
``{"event": "fs-error", "payload": {"message"}}``.
"""

import json
import sys
import threading
from typing import IO, Any, Dict, Optional

from pydantic import BaseModel

from command_processor import CommandProcessor
from common.errors import ExplorerError, WatchDeliveryError
from common.file_watcher.channel import FS_CHANGE_EVENT, FS_ERROR_EVENT, ChangeChannel
from common.file_watcher.models import FilesystemChange
from common.utils import logger


def to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    return value


class JsonLinesBridge:
    """Serves commands over a line-oriented JSON stream."""

    def __init__(
        self,
        processor: CommandProcessor,
        channel: ChangeChannel,
        stdin: Optional[IO[str]] = None,
        stdout: Optional[IO[str]] = None,
    ) -> None:
        self.processor = processor
        self.channel = channel
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout
        self._write_lock = threading.Lock()

    def emit(self, message: Dict[str, Any]) -> None:
        # ASCII escapes keep stray surrogates from breaking a strict UTF-8 stdout
        line = json.dumps(message)
        with self._write_lock:
            self.stdout.write(line + "\n")
            self.stdout.flush()

    def on_change(self, change: FilesystemChange) -> None:
        self.emit({"event": FS_CHANGE_EVENT, "payload": to_jsonable(change)})

    def on_error(self, error: WatchDeliveryError) -> None:
        self.emit({"event": FS_ERROR_EVENT, "payload": {"message": str(error)}})

    def handle_line(self, line: str) -> Optional[Dict[str, Any]]:
        """Execute one request line and build its response (None for blank lines)."""
        if not line.strip():
            return None

        try:
            request = json.loads(line)
        except json.JSONDecodeError as e:
            return {"id": None, "ok": False, "error": f"Invalid JSON: {e.msg}"}

        if not isinstance(request, dict) or not isinstance(request.get("command"), str):
            return {"id": None, "ok": False, "error": "Request must be an object with a 'command'"}

        request_id = request.get("id")
        args = request.get("args")
        if args is None:
            args = {}
        if not isinstance(args, dict):
            return {"id": request_id, "ok": False, "error": "'args' must be an object"}

        try:
            result = self.processor.invoke(request["command"], args)
        except ExplorerError as e:
            logger.warning(f"Command {request['command']} failed: {e}")
            return {"id": request_id, "ok": False, "error": str(e)}
        except Exception as e:
            logger.exception(f"Unexpected error running {request['command']}")
            return {"id": request_id, "ok": False, "error": f"Unexpected error: {e}"}

        return {"id": request_id, "ok": True, "result": to_jsonable(result)}

    def run(self) -> None:
        subscription = self.channel.subscribe(self.on_change, on_error=self.on_error)
        logger.info("Bridge started")
        try:
            for line in self.stdin:
                response = self.handle_line(line)
                if response is not None:
                    self.emit(response)
        finally:
            subscription.cancel()
            logger.info("Bridge stopped")
