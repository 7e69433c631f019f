"""File and folder operations behind the explorer commands.

Every function raises ``FileOperationError`` with a message meant for the
user; successful mutations return a short confirmation string.
"""

from __future__ import annotations

import codecs
import os
import platform
import shutil
import subprocess
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Sequence

from common.errors import FileOperationError
from common.models import FileItem, TextFileContent
from common.utils import logger, lossy_text

DEFAULT_MAX_READ_BYTES = 4 * 1024 * 1024


def get_current_directory() -> str:
    try:
        return str(Path.cwd())
    except OSError as e:
        raise FileOperationError(f"Failed to get current directory: {e}") from e


def get_home_directory() -> str:
    try:
        return str(Path.home())
    except RuntimeError as e:
        raise FileOperationError("Unable to determine home directory") from e


def _sort_key(item: FileItem) -> tuple[bool, str]:
    return (not item.is_folder, item.name.lower())


def list_directory(path: str) -> list[FileItem]:
    """List the direct children of ``path``, folders first then by name."""
    directory = Path(path).expanduser()
    if not directory.exists():
        raise FileOperationError("Directory does not exist")
    if not directory.is_dir():
        raise FileOperationError("Path is not a directory")

    items: list[FileItem] = []
    try:
        entries = list(os.scandir(directory))
    except (OSError, ValueError) as e:
        raise FileOperationError(f"Failed to read directory: {e}") from e

    for index, entry in enumerate(entries):
        try:
            stat = entry.stat()
            is_dir = entry.is_dir()
        except OSError:
            continue

        suffix = Path(entry.name).suffix
        items.append(
            FileItem(
                id=str(index),
                name=lossy_text(entry.name),
                file_type="folder" if is_dir else "file",
                size=None if is_dir else stat.st_size,
                date_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                extension=suffix[1:] if suffix and not is_dir else None,
                path=lossy_text(str(directory / entry.name)),
            )
        )

    items.sort(key=_sort_key)
    return items


def navigate_to_path(path: str) -> list[FileItem]:
    """List ``path``, or its parent directory when ``path`` is a file."""
    target = Path(path).expanduser()
    if not target.exists():
        raise FileOperationError("Path does not exist")

    if target.is_file():
        parent = target.parent
        if parent == target:
            raise FileOperationError("Cannot navigate to file without parent directory")
        return list_directory(str(parent))

    return list_directory(str(target))


def create_folder(path: str, name: str) -> str:
    folder_path = Path(path).expanduser() / name
    if folder_path.exists():
        raise FileOperationError("Folder already exists")

    try:
        folder_path.mkdir()
    except (OSError, ValueError) as e:
        raise FileOperationError(f"Failed to create folder: {e}") from e
    return f"Folder '{name}' created successfully"


def create_file(path: str, name: str) -> str:
    base_path = Path(path).expanduser()
    if not base_path.is_dir():
        raise FileOperationError("Directory does not exist")

    file_path = base_path / name
    if file_path.exists():
        raise FileOperationError("A file with that name already exists")

    try:
        file_path.touch(exist_ok=False)
    except (OSError, ValueError) as e:
        raise FileOperationError(f"Failed to create file: {e}") from e
    return f"File '{name}' created successfully"


def delete_item(path: str) -> str:
    item_path = Path(path).expanduser()
    if not item_path.exists() and not item_path.is_symlink():
        raise FileOperationError("Item does not exist")

    try:
        if item_path.is_dir() and not item_path.is_symlink():
            shutil.rmtree(item_path)
        else:
            item_path.unlink()
    except (OSError, ValueError) as e:
        raise FileOperationError(f"Failed to delete item: {e}") from e
    return "Item deleted successfully"


def rename_item(old_path: str, new_name: str) -> str:
    source = Path(old_path).expanduser()
    if not source.exists():
        raise FileOperationError("Item does not exist")

    absolute = source.absolute()
    if absolute.parent == absolute:
        raise FileOperationError("Cannot rename root directory")

    new_path = absolute.parent / new_name
    if new_path.exists():
        raise FileOperationError("An item with that name already exists")

    try:
        source.rename(new_path)
    except (OSError, ValueError) as e:
        raise FileOperationError(f"Failed to rename item: {e}") from e
    return f"Item renamed to '{new_name}' successfully"


def _copy_one(source: Path, destination: Path) -> None:
    if source.is_dir():
        shutil.copytree(source, destination)
    else:
        shutil.copy2(source, destination)


def _move_one(source: Path, destination: Path) -> None:
    shutil.move(str(source), str(destination))


def _transfer(
    source_paths: Sequence[str],
    destination_path: str,
    action: Callable[[Path, Path], None],
    verb: str,
) -> str:
    destination_dir = Path(destination_path).expanduser()
    if not destination_dir.is_dir():
        raise FileOperationError("Destination directory does not exist")

    done = 0
    for source_path in source_paths:
        source = Path(source_path).expanduser()
        if not source.exists():
            logger.warning(f"Skipping missing item: {source}")
            continue
        if not source.name:
            continue

        destination = destination_dir / source.name
        if destination.exists():
            logger.warning(f"Skipping {source}: {destination} already exists")
            continue

        try:
            action(source, destination)
        except (OSError, ValueError, shutil.Error) as e:
            logger.warning(f"Skipping {source}: {e}")
            continue
        done += 1

    return f"{done} item(s) {verb} successfully"


def copy_items(source_paths: Sequence[str], destination_path: str) -> str:
    """Copy files and folders into ``destination_path``; collisions are skipped."""
    return _transfer(source_paths, destination_path, _copy_one, "copied")


def move_items(source_paths: Sequence[str], destination_path: str) -> str:
    """Move files and folders into ``destination_path``; collisions are skipped."""
    return _transfer(source_paths, destination_path, _move_one, "moved")


def _decode_text(data: bytes, truncated: bool) -> tuple[str, str]:
    """Decode ``data`` as UTF-8, falling back to latin-1.

    When the read was truncated, a multi-byte sequence cut by the cap is
    dropped instead of failing the decode.
    """
    encoding = "utf-8"
    if data.startswith(codecs.BOM_UTF8):
        encoding = "utf-8-sig"

    decoder = codecs.getincrementaldecoder(encoding)()
    try:
        return decoder.decode(data, final=not truncated), encoding
    except UnicodeDecodeError:
        return data.decode("latin-1"), "latin-1"


def read_text_file(path: str, max_bytes: int = DEFAULT_MAX_READ_BYTES) -> TextFileContent:
    """Read at most ``max_bytes`` bytes of a text file.

    Args:
        path: File to read.
        max_bytes: Byte cap; larger files are returned truncated.

    Returns:
        The decoded content, whether it was truncated, the encoding used and
        the full file size in bytes.
    """
    file_path = Path(path).expanduser()
    if not file_path.exists():
        raise FileOperationError("File does not exist")
    if not file_path.is_file():
        raise FileOperationError("Path is not a file")
    if max_bytes < 0:
        raise FileOperationError("max_bytes must not be negative")

    try:
        size = file_path.stat().st_size
        with file_path.open("rb") as handle:
            data = handle.read(max_bytes)
            truncated = size > max_bytes or bool(handle.read(1))
    except (OSError, ValueError) as e:
        raise FileOperationError(f"Failed to read file: {e}") from e

    content, encoding = _decode_text(data, truncated)
    return TextFileContent(
        content=content, truncated=truncated, encoding=encoding, size=size
    )


def write_text_file(path: str, content: str) -> str:
    file_path = Path(path).expanduser()
    if not file_path.parent.is_dir():
        raise FileOperationError("Directory does not exist")
    if file_path.is_dir():
        raise FileOperationError("Path is a directory")

    try:
        data = content.encode("utf-8")
        file_path.write_bytes(data)
    except (OSError, ValueError) as e:
        raise FileOperationError(f"Failed to write file: {e}") from e
    return f"Saved {len(data)} bytes to '{file_path.name}'"


def open_file_with_default_app(file_path: str) -> str:
    path = Path(file_path).expanduser()
    if not path.exists():
        raise FileOperationError("File does not exist")
    if path.is_dir():
        raise FileOperationError(
            "Cannot open directory with default app. Use navigate instead."
        )

    try:
        system = platform.system()
        if system == "Windows":
            os.startfile(str(path))  # type: ignore[attr-defined]
        elif system == "Darwin":
            subprocess.Popen(["open", str(path)])
        else:
            subprocess.Popen(["xdg-open", str(path)])
    except (OSError, ValueError) as e:
        raise FileOperationError(f"Failed to open file: {e}") from e
    return f"Opened '{path.name}' with default application"
