"""
Command processor module for the explorer backend.
Dispatches named commands and parses slash commands typed in the REPL.
"""

import os
import shlex
from typing import Any, Callable, Dict, Iterable, List, Optional

from pydantic import ValidationError

from common.errors import CommandNotFoundError, ExplorerError
from common.models import BaseCommand, FileItem
from common.utils import human_size
from tools.file_system_tool import fs_commands
from tools.file_watcher_tools import file_watcher_commands

VERSION = "0.1.0"


def default_commands() -> List[BaseCommand]:
    return [*fs_commands, *file_watcher_commands]


def format_listing(items: List[FileItem]) -> str:
    """Render a directory listing, one entry per line."""
    if not items:
        return "(empty directory)"

    lines = []
    for item in items:
        icon = "📁" if item.is_folder else "📄"
        name = f"{item.name}/" if item.is_folder else item.name
        size = "" if item.size is None else human_size(item.size)
        modified = item.date_modified.astimezone().strftime("%Y-%m-%d %H:%M")
        lines.append(f"{icon} {name:<40} {size:>10}  {modified}")
    return "\n".join(lines)


class CommandProcessor:
    """
    Processes commands coming from the REPL (slash commands) or from the
    bridge (named commands with keyword arguments).
    """

    def __init__(
        self,
        commands: Optional[Iterable[BaseCommand]] = None,
        cwd: Optional[str] = None,
    ) -> None:
        self.registry: Dict[str, BaseCommand] = {
            command.command_name: command
            for command in (default_commands() if commands is None else commands)
        }
        self.cwd = os.path.abspath(cwd or os.getcwd())
        self.commands: Dict[str, Callable[[List[str]], str]] = {
            "/help": self.show_help,
            "/version": self.show_version,
            "/pwd": self.show_cwd,
            "/ls": self.list_dir,
            "/cd": self.change_dir,
            "/mkdir": self.make_dir,
            "/touch": self.touch,
            "/rm": self.remove,
            "/rename": self.rename,
            "/cp": self.copy,
            "/mv": self.move,
            "/cat": self.cat,
            "/write": self.write,
            "/open": self.open,
            "/watch": self.watch,
            "/unwatch": self.unwatch,
            "/status": self.status,
        }

    def invoke(self, name: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Run a registered command by name.

        Raises:
            CommandNotFoundError: If no command has that name
            ExplorerError: If the command fails or its arguments are invalid
        """
        command = self.registry.get(name)
        if command is None:
            raise CommandNotFoundError(f"Unknown command: {name}")

        try:
            return command.invoke(params)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                for err in e.errors()
            )
            raise ExplorerError(f"Invalid arguments for {name}: {problems}") from e

    def resolve(self, path: str) -> str:
        return os.path.normpath(os.path.join(self.cwd, os.path.expanduser(path)))

    def process_command(self, command_text: str) -> str:
        """
        Process a command string and execute the appropriate action.

        Args:
            command_text (str): The command entered by the user

        Returns:
            str: The result of the command execution, or an error message
        """
        try:
            command_parts = shlex.split(command_text.strip())
        except ValueError as e:
            return f"Error: {e}"
        if not command_parts:
            return ""

        command_name = command_parts[0].lower()
        args = command_parts[1:]

        handler = self.commands.get(command_name)
        if handler is None:
            return (
                f"Command not found: {command_name}. Type '/help' for available commands."
            )

        try:
            return handler(args)
        except ExplorerError as e:
            return f"Error: {e}"

    def _require(self, args: List[str], count: int, usage: str) -> None:
        if len(args) < count:
            raise ExplorerError(f"Usage: {usage}")

    def show_help(self, args: List[str]) -> str:
        """Display help information about available commands"""
        help_text = """
Available Commands:
------------------
/help                    - Show this help message
/version                 - Show the current version
/pwd                     - Show the current directory
/ls [path]               - List a directory (folders first)
/cd <path>               - Change directory (follows the watch if one is active)
/mkdir <name>            - Create a folder
/touch <name>            - Create an empty file
/rm <path>               - Delete a file or folder
/rename <path> <name>    - Rename an item
/cp <src>... <dest>      - Copy items into a folder
/mv <src>... <dest>      - Move items into a folder
/cat <path> [max_bytes]  - Show a text file
/write <path> <text>     - Replace a file's content
/open <path>             - Open a file with the default application
/watch [path]            - Watch a directory for changes
/unwatch                 - Stop watching
/status                  - Show the watched directory
/exit                    - Exit the application

Paths are relative to the current directory. Quote paths containing spaces.
        """
        return help_text.strip()

    def show_version(self, args: List[str]) -> str:
        """Display the current version"""
        return f"Explorer v{VERSION}"

    def show_cwd(self, args: List[str]) -> str:
        return self.cwd

    def list_dir(self, args: List[str]) -> str:
        path = self.resolve(args[0]) if args else self.cwd
        return format_listing(self.invoke("list_directory", {"path": path}))

    def change_dir(self, args: List[str]) -> str:
        self._require(args, 1, "/cd <path>")
        target = self.resolve(args[0])
        if os.path.isfile(target):
            target = os.path.dirname(target)
        items = self.invoke("navigate_to_path", {"path": target})
        self.cwd = target

        if self.invoke("watch_status") is not None:
            self.invoke("start_watch", {"path": target})
        return f"{target}\n{format_listing(items)}"

    def make_dir(self, args: List[str]) -> str:
        self._require(args, 1, "/mkdir <name>")
        return self.invoke("create_folder", {"path": self.cwd, "name": args[0]})

    def touch(self, args: List[str]) -> str:
        self._require(args, 1, "/touch <name>")
        return self.invoke("create_file", {"path": self.cwd, "name": args[0]})

    def remove(self, args: List[str]) -> str:
        self._require(args, 1, "/rm <path>")
        return self.invoke("delete_item", {"path": self.resolve(args[0])})

    def rename(self, args: List[str]) -> str:
        self._require(args, 2, "/rename <path> <name>")
        return self.invoke(
            "rename_item", {"old_path": self.resolve(args[0]), "new_name": args[1]}
        )

    def _transfer(self, name: str, args: List[str], usage: str) -> str:
        self._require(args, 2, usage)
        sources = [self.resolve(arg) for arg in args[:-1]]
        return self.invoke(
            name, {"source_paths": sources, "destination_path": self.resolve(args[-1])}
        )

    def copy(self, args: List[str]) -> str:
        return self._transfer("copy_items", args, "/cp <src>... <dest>")

    def move(self, args: List[str]) -> str:
        return self._transfer("move_items", args, "/mv <src>... <dest>")

    def cat(self, args: List[str]) -> str:
        self._require(args, 1, "/cat <path> [max_bytes]")
        params: Dict[str, Any] = {"path": self.resolve(args[0])}
        if len(args) > 1:
            params["max_bytes"] = args[1]
        result = self.invoke("read_text_file", params)

        footer = f"[{result.encoding}, {human_size(result.size)}]"
        if result.truncated:
            footer += " ... (output truncated)"
        return f"{result.content}\n{footer}"

    def write(self, args: List[str]) -> str:
        self._require(args, 2, "/write <path> <text>")
        return self.invoke(
            "write_text_file", {"path": self.resolve(args[0]), "content": " ".join(args[1:])}
        )

    def open(self, args: List[str]) -> str:
        self._require(args, 1, "/open <path>")
        return self.invoke("open_file_with_default_app", {"file_path": self.resolve(args[0])})

    def watch(self, args: List[str]) -> str:
        path = self.resolve(args[0]) if args else self.cwd
        return self.invoke("start_watch", {"path": path})

    def unwatch(self, args: List[str]) -> str:
        return self.invoke("stop_watch")

    def status(self, args: List[str]) -> str:
        path = self.invoke("watch_status")
        return f"Watching: {path}" if path else "No active watch"
