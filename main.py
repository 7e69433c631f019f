#!/usr/bin/env python3
import argparse
import os
from typing import List, Optional

from prompt_toolkit import prompt
from prompt_toolkit.formatted_text import HTML, FormattedText
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.patch_stdout import patch_stdout
from prompt_toolkit.styles import Style
from rich.markup import escape
from rich.panel import Panel

from bridge import JsonLinesBridge
from command_processor import VERSION, CommandProcessor
from common.containers import container
from common.errors import ExplorerError, WatchDeliveryError
from common.file_watcher.channel import FS_CHANGE_EVENT
from common.file_watcher.models import FilesystemChange
from common.utils import configure_logging, console, logger

history = InMemoryHistory()


def build_bottom_toolbar(processor: CommandProcessor) -> FormattedText:
    """Render the current directory and watch state for the bottom toolbar."""
    watched = container.watch_manager().watched_path
    segments = [
        ("fg:#00ffff", " Dir "),
        ("default", f"{processor.cwd}  "),
        ("fg:#ffd166", "Watch "),
        ("default", watched or "off"),
    ]
    return FormattedText(segments)


def display_banner() -> None:
    """Display the welcome banner using Rich"""
    welcome_panel = Panel(
        "\n[bold cyan]EXPLORER[/bold cyan]\n\n"
        + f"[italic green]File explorer backend v{VERSION}[/italic green]\n",
        border_style="bright_blue",
        title="Welcome",
        title_align="center",
        width=80,
    )

    console.print(welcome_panel, justify="center")
    console.print(
        "\nType your commands below. Commands start with '/'. Type '/exit' to quit.\n"
    )


def print_change(change: FilesystemChange) -> None:
    names = ", ".join(os.path.basename(path) or path for path in change.paths)
    console.print(f"[dim cyan]{FS_CHANGE_EVENT}[/dim cyan] [bold]{change.kind}[/bold]: {escape(names)}")


def print_watch_error(error: WatchDeliveryError) -> None:
    console.print(f"[red]{escape(str(error))}[/red]")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="File explorer backend")
    parser.add_argument("--path", default=None, help="Starting directory")
    parser.add_argument("--watch", action="store_true", help="Watch the starting directory")
    parser.add_argument(
        "--bridge",
        action="store_true",
        help="Serve commands as JSON lines on stdin/stdout instead of the REPL",
    )
    parser.add_argument("--debounce", type=float, default=None, help="Debounce window in seconds")
    parser.add_argument("--log-dir", default=None, help="Directory for log files")
    return parser.parse_args(argv)


def repl(processor: CommandProcessor) -> None:
    """Interactive loop"""
    display_banner()

    style = Style.from_dict({
        'prompt': '#00ff00 bold',
    })

    subscription = container.change_channel().subscribe(
        print_change, on_error=print_watch_error
    )

    try:
        with patch_stdout():
            while True:
                try:
                    user_input = prompt(
                        HTML('<ansicyan><b>explorer></b></ansicyan> '),
                        history=history,
                        style=style,
                        bottom_toolbar=lambda: build_bottom_toolbar(processor),
                    )

                    user_input = user_input.strip()
                    if not user_input:
                        continue
                    if user_input == "/exit":
                        console.print("Goodbye!", style="bold green")
                        break
                    if not user_input.startswith("/"):
                        console.print("Commands start with '/'. Type '/help' for a list.", style="yellow")
                        continue

                    console.print(processor.process_command(user_input), markup=False, highlight=False)

                except KeyboardInterrupt:
                    console.print("\n\nGoodbye!", style="bold green")
                    break
                except EOFError:
                    console.print("\n\nGoodbye!", style="bold green")
                    break
                except Exception as e:
                    logger.exception(f"Unexpected error: {e}")
                    console.print(f"\n[red]Error: {str(e)}[/red]\n")
    finally:
        subscription.cancel()


def main(argv: Optional[List[str]] = None) -> None:
    """Main function"""
    args = parse_args(argv)
    if args.debounce is not None:
        container.config.watch.debounce_seconds.from_value(args.debounce)
    if args.log_dir is not None:
        container.config.log_dir.from_value(args.log_dir)
    configure_logging(container.config.log_dir())

    processor = CommandProcessor(cwd=args.path)
    manager = container.watch_manager()

    if args.watch:
        try:
            manager.start_watch(processor.cwd)
        except ExplorerError as e:
            logger.error(f"Initial watch failed: {e}")
            if not args.bridge:
                console.print(f"[red]Error: {e}[/red]")

    try:
        if args.bridge:
            JsonLinesBridge(processor, container.change_channel()).run()
        else:
            repl(processor)
    finally:
        manager.stop_watch()


if __name__ == "__main__":
    main()
