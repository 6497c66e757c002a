"""Main entry point for treepub."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

from .config import PublishConfig, parse_extra_options
from .errors import TreePubError
from .publisher import Publisher
from .transforms import TRANSFORMS, available_transforms


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed arguments.

    """
    parser = argparse.ArgumentParser(
        prog="treepub",
        description="Mirror a source tree into a target tree through a transform",
    )

    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        help="Path to YAML configuration file",
    )
    parser.add_argument("-d", "--rootdir", type=Path, default=None, help="Files root")
    parser.add_argument("-s", "--sourcedir", default=None, help="Source dir, relative to the root")
    parser.add_argument("-t", "--targetdir", default=None, help="Target dir, relative to the root")
    parser.add_argument("-e", "--filepattern", default=None, help="Regex selecting source files")
    parser.add_argument(
        "-k",
        "--remove_target_dir_files",
        default=None,
        metavar="PATTERN",
        help="Regex of target files to remove when no longer produced",
    )
    parser.add_argument("-r", "--recurse", action="store_true", default=None, help="Recurse directories")
    parser.add_argument("-x", "--execute", action="store_true", default=None, help="Really run")
    parser.add_argument(
        "-n",
        "--no_file_open",
        action="store_false",
        dest="open_files",
        default=None,
        help="Do not open files for the transform",
    )
    parser.add_argument(
        "-p",
        "--processor",
        choices=available_transforms(),
        default=None,
        help="Transform to apply",
    )
    parser.add_argument(
        "-o",
        "--extra_options",
        action="append",
        default=[],
        metavar="KV_PAIRS",
        help="Comma separated key=value pairs",
    )
    parser.add_argument("-v", "--verbose", action="store_true", default=None, help="Verbose output")
    parser.add_argument("--log-file", type=Path, default=None, help="Also log to this file")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("run", help="Run the transform over the tree (default)")

    config_parser = subparsers.add_parser("config", help="Configuration management")
    config_parser.add_argument(
        "--init",
        type=Path,
        default=None,
        metavar="PATH",
        help="Write the effective configuration to PATH",
    )
    config_parser.add_argument(
        "--show",
        action="store_true",
        help="Show the effective configuration",
    )

    subparsers.add_parser("transforms", help="List available transforms")

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> PublishConfig:
    """Load the config file, then apply command-line overrides."""
    config = PublishConfig.load(args.config)

    overrides = {
        "root_dir": args.rootdir,
        "source_dir": args.sourcedir,
        "target_dir": args.targetdir,
        "file_pattern": args.filepattern,
        "remove_pattern": args.remove_target_dir_files,
        "recurse": args.recurse,
        "execute": args.execute,
        "open_files": args.open_files,
        "transform": args.processor,
        "verbose": args.verbose,
        "log_file": args.log_file,
    }
    for key, value in overrides.items():
        if value is not None:
            setattr(config, key, value)

    for text in args.extra_options:
        config.apply_extra_options(parse_extra_options(text))

    return config


def cmd_run(config: PublishConfig) -> int:
    """Execute run command.

    Returns:
        Exit code.

    """
    try:
        publisher = Publisher(config)
        stats = publisher.run()
    except TreePubError as e:
        Console(stderr=True).print(f"[red]{e}[/red]\nExiting")
        return 1

    print(
        f"Processed {stats.files_processed} files in {stats.directories} directories, "
        f"{stats.conversion_failures} failed, {stats.stale_removed} stale removed"
    )
    return 0


def cmd_config(config: PublishConfig, args: argparse.Namespace) -> int:
    """Execute config command.

    Returns:
        Exit code.

    """
    console = Console()

    if args.init:
        if args.init.exists():
            console.print(f"[yellow]Config already exists: {args.init}[/yellow]")
            return 1
        config.save(args.init)
        console.print(f"[green]Created config: {args.init}[/green]")
        return 0

    if args.show:
        table = Table(title="Current Configuration")
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="green")

        table.add_row("Root directory", str(config.root_dir or ""))
        table.add_row("Source directory", config.source_dir or "")
        table.add_row("Target directory", config.target_dir or "")
        table.add_row("Transform", config.transform)
        table.add_row("File pattern", config.file_pattern)
        table.add_row("Remove pattern", config.remove_pattern or "")
        table.add_row("Recurse", str(config.recurse))
        table.add_row("Execute", str(config.execute))
        table.add_row("Open files", str(config.open_files))
        table.add_row("Recent entries", str(config.n_recent))
        table.add_row("Template directory", config.template_dir)
        table.add_row("Converter", config.converter)
        table.add_row("Extra options", ", ".join(f"{k}={v}" for k, v in config.extra.items()))
        table.add_row("Log level", config.log_level)

        console.print(table)
        return 0

    console.print("[yellow]Use --init or --show[/yellow]")
    return 1


def cmd_transforms() -> int:
    """List registered transforms.

    Returns:
        Exit code.

    """
    table = Table(title="Transforms")
    table.add_column("Name", style="cyan")
    table.add_column("Opens files", style="dim")
    table.add_column("Description")

    for name in available_transforms():
        transform_cls = TRANSFORMS[name]
        doc = (transform_cls.__doc__ or "").strip().splitlines()
        table.add_row(name, str(transform_cls.uses_handles), doc[0] if doc else "")

    Console().print(table)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Returns:
        Exit code.

    """
    args = parse_args(argv)
    try:
        config = build_config(args)
    except TreePubError as e:
        Console(stderr=True).print(f"[red]{e}[/red]")
        return 1

    # Default to run command
    command = args.command or "run"

    if command == "config":
        return cmd_config(config, args)
    elif command == "transforms":
        return cmd_transforms()
    elif command == "run":
        return cmd_run(config)
    else:
        print(f"Unknown command: {command}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
