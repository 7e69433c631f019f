"""Tests for the JSON-lines bridge."""

import io
import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, List
from unittest.mock import Mock

import pytest

from bridge import JsonLinesBridge, to_jsonable
from command_processor import CommandProcessor
from common.errors import WatchDeliveryError
from common.file_watcher.channel import ChangeChannel
from common.file_watcher.models import FilesystemChange


def run_bridge(channel: ChangeChannel, cwd: Path, *requests: Any) -> List[Dict[str, Any]]:
    lines = [r if isinstance(r, str) else json.dumps(r) for r in requests]
    stdin = io.StringIO("\n".join(lines) + "\n")
    stdout = io.StringIO()
    JsonLinesBridge(CommandProcessor(cwd=str(cwd)), channel, stdin=stdin, stdout=stdout).run()
    return [json.loads(line) for line in stdout.getvalue().splitlines()]


class TestJsonLinesBridge:
    """Test cases for request handling and pushed events."""

    def test_list_directory_round_trip(self, channel: ChangeChannel, explorer_dir: Path) -> None:
        responses = run_bridge(
            channel,
            explorer_dir,
            {"id": 7, "command": "list_directory", "args": {"path": str(explorer_dir)}},
        )

        assert responses[0]["id"] == 7
        assert responses[0]["ok"] is True
        result = responses[0]["result"]
        assert [item["name"] for item in result] == ["A", "a.txt", "b.txt"]
        assert result[0]["type"] == "folder"
        assert result[1]["size"] == 5

    def test_read_text_file_payload(self, channel: ChangeChannel, explorer_dir: Path) -> None:
        responses = run_bridge(
            channel,
            explorer_dir,
            {"id": 1, "command": "read_text_file", "args": {"path": str(explorer_dir / "a.txt"), "max_bytes": 3}},
        )

        assert responses[0]["result"] == {
            "content": "alp",
            "truncated": True,
            "encoding": "utf-8",
            "size": 5,
        }

    def test_errors_are_returned_as_messages(self, channel: ChangeChannel, tmp_path: Path) -> None:
        responses = run_bridge(
            channel,
            tmp_path,
            {"id": 1, "command": "delete_item", "args": {"path": str(tmp_path / "ghost")}},
            {"id": 2, "command": "no_such_command"},
            "not json",
            "",
            {"id": 3, "command": "stop_watch", "args": []},
        )

        assert responses[0] == {"id": 1, "ok": False, "error": "Item does not exist"}
        assert responses[1] == {"id": 2, "ok": False, "error": "Unknown command: no_such_command"}
        assert responses[2]["ok"] is False and responses[2]["error"].startswith("Invalid JSON")
        assert responses[3] == {"id": 3, "ok": False, "error": "'args' must be an object"}
        assert len(responses) == 4

    def test_changes_are_pushed_as_events(self, channel: ChangeChannel, tmp_path: Path) -> None:
        stdout = io.StringIO()
        bridge = JsonLinesBridge(CommandProcessor(cwd=str(tmp_path)), channel, stdin=io.StringIO(), stdout=stdout)

        bridge.on_change(FilesystemChange(kind="created", paths=("/data/a.txt",)))
        bridge.on_error(WatchDeliveryError("/data", "watched directory is gone"))

        events = [json.loads(line) for line in stdout.getvalue().splitlines()]
        assert events[0] == {"event": "fs-change", "payload": {"kind": "created", "paths": ["/data/a.txt"]}}
        assert events[1]["event"] == "fs-error"
        assert "watched directory is gone" in events[1]["payload"]["message"]

    def test_run_subscribes_only_while_running(self, channel: ChangeChannel, tmp_path: Path) -> None:
        run_bridge(channel, tmp_path)

        assert channel.current is None

    def test_to_jsonable_passes_plain_values(self) -> None:
        assert to_jsonable("Item deleted successfully") == "Item deleted successfully"
        assert to_jsonable(None) is None


class TestJsonLinesBridgeHostileInput:
    """Requests that reach a command with arguments the OS rejects."""

    def test_nul_in_name_is_answered_and_bridge_keeps_serving(self, channel: ChangeChannel, tmp_path: Path) -> None:
        responses = run_bridge(
            channel,
            tmp_path,
            {"id": 1, "command": "create_folder", "args": {"path": str(tmp_path), "name": "a\u0000b"}},
            {"id": 2, "command": "write_text_file", "args": {"path": str(tmp_path / "x\u0000.txt"), "content": "hi"}},
            {"id": 3, "command": "watch_status"},
        )

        assert responses[0]["ok"] is False
        assert responses[0]["error"].startswith("Failed to create folder")
        assert responses[1]["ok"] is False
        assert responses[1]["error"].startswith("Failed to write file")
        assert responses[2] == {"id": 3, "ok": True, "result": None}

    @pytest.mark.skipif(sys.platform != "linux", reason="needs a filesystem accepting raw bytes")
    def test_undecodable_filename_on_utf8_stdout(self, channel: ChangeChannel, tmp_path: Path) -> None:
        """A strict UTF-8 stdout receives the listing and the next response."""
        # Given:
        (tmp_path / os.fsdecode(b"bad\xff.txt")).write_text("x")
        raw = io.BytesIO()
        stdout = io.TextIOWrapper(raw, encoding="utf-8", errors="strict", write_through=True)
        requests = [
            {"id": 1, "command": "list_directory", "args": {"path": str(tmp_path)}},
            {"id": 2, "command": "watch_status"},
        ]
        stdin = io.StringIO("\n".join(json.dumps(r) for r in requests) + "\n")

        # When:
        JsonLinesBridge(CommandProcessor(cwd=str(tmp_path)), channel, stdin=stdin, stdout=stdout).run()

        # Then:
        responses = [json.loads(line) for line in raw.getvalue().decode("utf-8").splitlines()]
        assert [item["name"] for item in responses[0]["result"]] == ["bad�.txt"]
        assert responses[1] == {"id": 2, "ok": True, "result": None}

    def test_unexpected_errors_become_responses(self, channel: ChangeChannel, log_messages: List[str]) -> None:
        processor = Mock(spec=CommandProcessor)
        processor.invoke.side_effect = RuntimeError("disk on fire")
        bridge = JsonLinesBridge(processor, channel, stdin=io.StringIO(), stdout=io.StringIO())

        response = bridge.handle_line(json.dumps({"id": 9, "command": "list_directory"}))

        assert response == {"id": 9, "ok": False, "error": "Unexpected error: disk on fire"}
        assert any(m.startswith("ERROR: Unexpected error running list_directory") for m in log_messages)
