"""Explorer commands for directory listing, CRUD and text editing."""

from typing import List, Optional

from common import file_ops
from common.containers import container
from common.decorators import Command
from common.models import FileItem, TextFileContent


@Command
def get_current_directory() -> str:
    """Return the process working directory."""
    return file_ops.get_current_directory()


@Command
def get_home_directory() -> str:
    """Return the user's home directory."""
    return file_ops.get_home_directory()


@Command
def list_directory(path: str) -> List[FileItem]:
    """List a directory, folders first then files, case-insensitively by name.

    Args:
        path: Directory to list.
    """
    return file_ops.list_directory(path)


@Command
def navigate_to_path(path: str) -> List[FileItem]:
    """List a directory, or the parent directory when given a file.

    Args:
        path: Directory or file path.
    """
    return file_ops.navigate_to_path(path)


@Command
def create_folder(path: str, name: str) -> str:
    """Create folder `name` inside `path`."""
    return file_ops.create_folder(path, name)


@Command
def create_file(path: str, name: str) -> str:
    """Create an empty file `name` inside `path`."""
    return file_ops.create_file(path, name)


@Command
def delete_item(path: str) -> str:
    """Delete a file, or a folder with everything in it."""
    return file_ops.delete_item(path)


@Command
def rename_item(old_path: str, new_name: str) -> str:
    """Rename an item in place; `new_name` is a bare name, not a path."""
    return file_ops.rename_item(old_path, new_name)


@Command
def copy_items(source_paths: List[str], destination_path: str) -> str:
    """Copy items into a folder, skipping missing sources and name collisions."""
    return file_ops.copy_items(source_paths, destination_path)


@Command
def move_items(source_paths: List[str], destination_path: str) -> str:
    """Move items into a folder, skipping missing sources and name collisions."""
    return file_ops.move_items(source_paths, destination_path)


@Command
def read_text_file(path: str, max_bytes: Optional[int] = None) -> TextFileContent:
    """Read a text file, truncated to `max_bytes` (default from config, 4 MiB).

    Args:
        path: File to read.
        max_bytes: Optional byte cap overriding the configured default.
    """
    if max_bytes is None:
        max_bytes = container.config.files.max_read_bytes()
    return file_ops.read_text_file(path, max_bytes=max_bytes)


@Command
def write_text_file(path: str, content: str) -> str:
    """Replace a file's content with UTF-8 encoded `content`."""
    return file_ops.write_text_file(path, content)


@Command
def open_file_with_default_app(file_path: str) -> str:
    """Open a file with the system's default application."""
    return file_ops.open_file_with_default_app(file_path)


fs_commands = [
    get_current_directory,
    get_home_directory,
    list_directory,
    navigate_to_path,
    create_folder,
    create_file,
    delete_item,
    rename_item,
    copy_items,
    move_items,
    read_text_file,
    write_text_file,
    open_file_with_default_app,
]
