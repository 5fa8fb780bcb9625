#!/usr/bin/env python3
"""
MD Snapshot - Markdown code snapshot generator
Concatenates source files into a single Markdown document for sharing with
reviewers and AI agents

Features:
- Collision-free code fences (content containing ``` is never broken)
- Emoji section headers keyed on file extension
- Companion extension map documenting extension -> fence tag -> emoji
"""

import argparse
import sys
import traceback
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Union
import logging

from rich.console import Console
from rich.progress import (
    Progress,
    SpinnerColumn,
    TextColumn,
    BarColumn,
    TimeElapsedColumn,
    MofNCompleteColumn,
)


__version__ = "1.0.0"
__author__ = "MD Snapshot Project"
__license__ = "MIT"


BACKTICK = "`"
MIN_FENCE_LENGTH = 3
DEFAULT_EMOJI = "📄"

LANGUAGE_TAGS: Mapping[str, str] = {
    "py": "python",
    "sh": "bash",
    "bash": "bash",
    "csv": "csv",
    "js": "javascript",
    "ts": "typescript",
    "json": "json",
    "c": "c",
    "h": "c",
    "cpp": "cpp",
    "java": "java",
    "go": "go",
    "rb": "ruby",
    "php": "php",
    "cs": "csharp",
    "swift": "swift",
    "html": "html",
    "css": "css",
    "yaml": "yaml",
    "yml": "yaml",
    "toml": "toml",
}

EMOJIS: Mapping[str, str] = {
    "py": "🐍",
    "sh": "🐚",
    "bash": "🐚",
    "csv": "📊",
    "js": "✨",
    "ts": "✨",
    "json": "🔧",
    "c": "💻",
    "cpp": "💻",
    "h": "📑",
    "java": "☕️",
    "go": "🚀",
    "rb": "💎",
    "php": "🐘",
    "cs": "🎯",
    "swift": "🕊️",
    "html": "🌐",
    "css": "🎨",
    "yaml": "📜",
    "yml": "📜",
    "toml": "🗄️",
}

SNAPSHOT_NAME = "code-snapshot.md"
EXTENSION_MAP_NAME = "extension-map.md"
DEFAULT_OUTPUT_DIR = "output"
DEFAULT_CONFIG_PATH = Path.home() / ".config" / "md-snapshot" / "config"

MAP_TITLE = "# ✨ Extension → Markdown Fence Map"
MAP_HEADER = "| Extension | Fence Tag | Emoji |"
MAP_SEPARATOR = "|-----------|-----------|-------|"

# Raw bytes survive a read/write round trip through str
TEXT_ENCODING = "utf-8"
TEXT_ERRORS = "surrogateescape"


def select_fence(content: str, language_tag: str = "") -> str:
    """
    Choose the shortest backtick fence that cannot be closed early by content.

    Starts at three backticks and grows by one until the run is no longer a
    substring of ``content``. Terminates after at most (longest backtick run
    in content + 1) attempts.

    Args:
        content: Text that will sit between the opening and closing fence
        language_tag: Info string appended directly after the backticks

    Returns:
        The opening fence, e.g. "```python" or "````md"
    """
    length = MIN_FENCE_LENGTH
    while BACKTICK * length in content:
        length += 1
    return BACKTICK * length + language_tag


def fence_run(fence: str, language_tag: str = "") -> str:
    """Return the backtick run of a fence with its language tag stripped"""
    return fence[: len(fence) - len(language_tag)]


def extension_of(path: Union[str, Path]) -> str:
    """Text after the last '.' of the basename, or the whole basename"""
    return Path(path).name.rpartition(".")[2]


def language_of(extension: str, table: Mapping[str, str] = LANGUAGE_TAGS) -> str:
    return table.get(extension, extension)


def emoji_of(extension: str, table: Mapping[str, str] = EMOJIS) -> str:
    return table.get(extension, DEFAULT_EMOJI)


@dataclass(frozen=True)
class InputFile:
    """A source file loaded into memory"""

    path: Path
    content: str

    @property
    def basename(self) -> str:
        return self.path.name

    @property
    def extension(self) -> str:
        return extension_of(self.path)


@dataclass(frozen=True)
class ExtensionEntry:
    """One row of the extension map"""

    extension: str
    language_tag: str
    emoji: str

    def to_row(self) -> str:
        fence = BACKTICK * MIN_FENCE_LENGTH + self.language_tag
        return f"| .{self.extension} | {fence} | {self.emoji} |"


@dataclass
class SnapshotResult:
    """Outcome of a successful snapshot run"""

    sections_written: int
    extensions: List[str]
    skipped: List[str]
    snapshot_path: Path
    extension_map_path: Path


class SnapshotError(Exception):
    """Base exception for snapshot errors"""

    pass


class UsageError(SnapshotError):
    """No input paths were supplied"""

    pass


class NoValidInputError(SnapshotError):
    """Every supplied path was skipped"""

    pass


class MarkdownSnapshotter:
    """Writes a fenced Markdown snapshot of files plus an extension map"""

    def __init__(
        self,
        config: Optional[Dict] = None,
        language_tags: Mapping[str, str] = LANGUAGE_TAGS,
        emojis: Mapping[str, str] = EMOJIS,
    ):
        self.config = config or {}
        self.language_tags = language_tags
        self.emojis = emojis

        self.console = Console()
        self.logger = self._setup_logging()

        # Config values like `output_dir = 2024` arrive as ints
        self.output_dir = Path(str(self.config.get("output_dir", DEFAULT_OUTPUT_DIR)))
        self.snapshot_name = str(self.config.get("snapshot_name", SNAPSHOT_NAME))
        self.extension_map_name = str(
            self.config.get("extension_map_name", EXTENSION_MAP_NAME)
        )
        self.progress = self.config.get("progress", True)

        # Progress bars only make sense on an interactive terminal
        self.is_tty = sys.stdout.isatty()

        self.stats = {
            "files_processed": 0,
            "files_skipped": 0,
            "bytes_processed": 0,
        }

    @property
    def snapshot_path(self) -> Path:
        return self.output_dir / self.snapshot_name

    @property
    def extension_map_path(self) -> Path:
        return self.output_dir / self.extension_map_name

    def _setup_logging(self) -> logging.Logger:
        """Setup structured logging"""
        level = logging.DEBUG if self.config.get("verbose") else logging.INFO

        logger = logging.getLogger("md_snapshot")
        logger.setLevel(level)

        # Avoid duplicate handlers
        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                "%(asctime)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
            )
            handler.setFormatter(formatter)
            logger.addHandler(handler)

        return logger

    def entry_for(self, extension: str) -> ExtensionEntry:
        return ExtensionEntry(
            extension=extension,
            language_tag=language_of(extension, self.language_tags),
            emoji=emoji_of(extension, self.emojis),
        )

    def _prepare_outputs(self) -> None:
        """Create the output directory and truncate both documents"""
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            for path in (self.snapshot_path, self.extension_map_path):
                path.write_text("", encoding=TEXT_ENCODING)
        except OSError as e:
            raise SnapshotError(
                f"Cannot prepare output directory {self.output_dir}: {e}"
            ) from e

    def _read_input(self, path: Path) -> InputFile:
        with open(path, "r", encoding=TEXT_ENCODING, errors=TEXT_ERRORS, newline="") as f:
            return InputFile(path=path, content=f.read())

    def render_section(self, input_file: InputFile) -> str:
        """Render the Markdown section for one file"""
        entry = self.entry_for(input_file.extension)
        fence = select_fence(input_file.content, entry.language_tag)
        return (
            f"## {entry.emoji} **{input_file.basename}**\n\n"
            f"{fence}\n"
            f"{input_file.content}\n"
            f"{fence_run(fence, entry.language_tag)}\n\n"
        )

    def render_extension_map(self, extensions: Sequence[str]) -> str:
        lines = [MAP_TITLE, "", MAP_HEADER, MAP_SEPARATOR]
        lines.extend(self.entry_for(ext).to_row() for ext in extensions)
        return "\n".join(lines) + "\n\n"

    def _process_path(self, raw_path: str, snapshot, seen: Dict[str, None]) -> bool:
        """Write one section; returns False when the path was skipped"""
        path = Path(raw_path)
        if not path.is_file():
            self.logger.warning(f'Skipping "{raw_path}" (not found)')
            self.stats["files_skipped"] += 1
            return False

        try:
            input_file = self._read_input(path)
        except OSError as e:
            self.logger.warning(f'Skipping "{raw_path}" (unreadable: {e})')
            self.stats["files_skipped"] += 1
            return False

        snapshot.write(self.render_section(input_file))

        seen.setdefault(input_file.extension, None)
        self.stats["files_processed"] += 1
        self.stats["bytes_processed"] += len(
            input_file.content.encode(TEXT_ENCODING, TEXT_ERRORS)
        )
        self.logger.debug(
            f"Added {raw_path} as .{input_file.extension} "
            f"({len(input_file.content)} chars)"
        )
        return True

    def assemble(self, paths: Sequence[Union[str, Path]]) -> SnapshotResult:
        """
        Build the snapshot and extension map from ``paths`` in order.

        Missing paths and non-regular files are skipped with a warning. Both
        output documents are truncated before any file is read, so a rerun
        with the same inputs reproduces them exactly.

        Raises:
            UsageError: ``paths`` is empty
            NoValidInputError: every path was skipped
            SnapshotError: the output location could not be prepared
        """
        paths = [str(p) for p in paths]
        if not paths:
            raise UsageError("Usage: md-snapshot file1 [file2 …]")

        self.stats = {
            "files_processed": 0,
            "files_skipped": 0,
            "bytes_processed": 0,
        }
        self._prepare_outputs()

        # dict keeps first-seen order with set semantics
        seen: Dict[str, None] = {}
        skipped: List[str] = []

        with open(
            self.snapshot_path, "a", encoding=TEXT_ENCODING, errors=TEXT_ERRORS, newline=""
        ) as snapshot:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                MofNCompleteColumn(),
                TimeElapsedColumn(),
                console=self.console,
                disable=not (self.progress and self.is_tty),
            ) as progress_bar:
                task = progress_bar.add_task("Writing snapshot", total=len(paths))
                for raw_path in paths:
                    if not self._process_path(raw_path, snapshot, seen):
                        skipped.append(raw_path)
                    progress_bar.update(task, advance=1)

        sections = self.stats["files_processed"]
        if not sections:
            raise NoValidInputError("No valid files processed.")

        extensions = list(seen)
        with open(
            self.extension_map_path, "a", encoding=TEXT_ENCODING, errors=TEXT_ERRORS, newline=""
        ) as f:
            f.write(self.render_extension_map(extensions))

        self.logger.debug(
            f"Wrote {sections} section(s), skipped {len(skipped)}, "
            f"{len(extensions)} distinct extension(s)"
        )
        return SnapshotResult(
            sections_written=sections,
            extensions=extensions,
            skipped=skipped,
            snapshot_path=self.snapshot_path,
            extension_map_path=self.extension_map_path,
        )


def create_config_file(config_path: Path) -> bool:
    """Create a default configuration file"""
    default_config = f"""# MD Snapshot Configuration
# Uncomment and modify values as needed

# Directory receiving the snapshot and extension map
# output_dir = "{DEFAULT_OUTPUT_DIR}"

# Output file names inside output_dir
# snapshot_name = "{SNAPSHOT_NAME}"
# extension_map_name = "{EXTENSION_MAP_NAME}"

# Feature flags
# progress = true
# verbose = false
"""

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w") as f:
            f.write(default_config)
        return True
    except OSError as e:
        print(f"Error creating config file: {e}", file=sys.stderr)
        return False


def load_config_file(config_path: Path) -> Dict:
    """Load configuration from file with error handling"""
    if not config_path.exists():
        return {}

    config = {}
    line_num = 0
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line or line.startswith("#"):
                    continue

                if "=" in line:
                    key, value = line.split("=", 1)
                    key = key.strip()
                    value = value.strip().strip("\"'")

                    if value.lower() in ("true", "false"):
                        config[key] = value.lower() == "true"
                    elif value.isdigit():
                        config[key] = int(value)
                    else:
                        config[key] = value

    except (OSError, UnicodeDecodeError) as e:
        print(
            f"Warning: Error loading config file on line {line_num}: {e}",
            file=sys.stderr,
        )

    return config


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point with comprehensive error handling"""
    parser = argparse.ArgumentParser(
        prog="md-snapshot",
        description="Combine source files into a fenced Markdown snapshot",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Snapshot a few files into ./output
  %(prog)s main.py utils.py config.json

  # Shell globs work as usual
  %(prog)s src/*.py README.md

  # Write somewhere else
  %(prog)s -o /tmp/review src/*.go
        """,
    )

    parser.add_argument("files", nargs="*", help="Files to include, in order")
    parser.add_argument(
        "-o", "--output-dir", default=None, help="Output directory (default: output)"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument(
        "--no-progress", action="store_true", help="Disable progress bars"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help="Configuration file path",
    )
    parser.add_argument(
        "--create-config", action="store_true", help="Create default config"
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )

    args = parser.parse_args(argv)

    try:
        if args.create_config:
            if create_config_file(args.config):
                print(f"Created default configuration file: {args.config}")
                return 0
            print(f"Failed to create configuration file: {args.config}", file=sys.stderr)
            return 1

        config = load_config_file(args.config)

        # Command line flags win over the config file
        if args.output_dir is not None:
            config["output_dir"] = args.output_dir
        if args.verbose:
            config["verbose"] = True
        if args.no_progress:
            config["progress"] = False

        snapshotter = MarkdownSnapshotter(config)
        result = snapshotter.assemble(args.files)

        print(
            f"✅  Wrote {result.sections_written} section(s) to {result.snapshot_path} "
            f"and extension map to {result.extension_map_path} 🎉"
        )
        return 0

    except KeyboardInterrupt:
        print("\nOperation cancelled by user", file=sys.stderr)
        return 130
    except SnapshotError as e:
        print(f"✖ {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        if args.verbose:
            traceback.print_exc()
        return 1


def cli_main():
    """Entry point for console scripts"""
    return main()


if __name__ == "__main__":
    sys.exit(cli_main())
