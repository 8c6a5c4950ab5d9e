import argparse
import sys
from pathlib import Path
from typing import List, Optional

from .client import InferenceClient
from .config import AppConfig
from .constants import SUPPORTED_MODELS
from .controller import RunController
from .executor import RequestExecutor
from .export import write_outputs
from .inputs import collect_media, read_url_file
from .models import RunState
from .scheduler import BatchScheduler


def build_parser() -> argparse.ArgumentParser:
    """Construct the CLI entry point with subcommands and shared options."""
    parser = argparse.ArgumentParser(
        prog="media-reader",
        description="Describe images and videos in batches with a multimodal chat model.",
    )
    parser.add_argument("--config", type=Path, default=None, help="Path to config.json (user profile by default).")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, WARNING, ...).")
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Submit files and URLs with a prompt.")
    run_parser.add_argument("-p", "--prompt", required=True, help="Prompt sent with every media item.")
    run_parser.add_argument(
        "-f",
        "--file",
        action="append",
        dest="files",
        type=Path,
        default=[],
        help="Local image or video file (can be repeated).",
    )
    run_parser.add_argument(
        "-u",
        "--url",
        action="append",
        dest="urls",
        default=[],
        help="Remote image or video URL (can be repeated).",
    )
    run_parser.add_argument("--urls-file", type=Path, default=None, help="Text file with whitespace-separated URLs.")
    run_parser.add_argument("-m", "--model", choices=SUPPORTED_MODELS, default=None, help="Model override.")
    run_parser.add_argument("-t", "--temperature", type=float, default=None, help="Sampling temperature (0-1).")
    run_parser.add_argument("--max-tokens", type=int, default=None, help="Completion token limit per item.")
    run_parser.add_argument("--api-key", default=None, help="API key override (config value by default).")
    run_parser.add_argument("-o", "--output-dir", type=Path, default=None, help="Where results.txt and report.json go.")
    run_parser.add_argument("--quiet", action="store_true", help="Only print output file paths.")
    run_parser.set_defaults(command="run")

    config_parser = subparsers.add_parser("config", help="Show or change stored settings.")
    config_sub = config_parser.add_subparsers(dest="config_command")
    config_sub.add_parser("show", help="Print settings (API key masked).")
    set_parser = config_sub.add_parser("set", help="Persist one setting.")
    set_parser.add_argument("key")
    set_parser.add_argument("value")
    config_parser.set_defaults(command="config")
    return parser


def run_cli(args: argparse.Namespace) -> int:
    config = AppConfig(args.config)
    if config.load_warning:
        print(f"[WARN] {config.load_warning}", file=sys.stderr)
    if args.command == "run":
        return _run_command(args, config)
    if args.command == "config":
        return _config_command(args, config)
    print("Unknown command. Use 'run' or 'config'.", file=sys.stderr)
    return 2


def build_client(config: AppConfig) -> InferenceClient:
    return InferenceClient(str(config.get("endpoint")), timeout=config.get("request_timeout"))


def build_controller(
    client: InferenceClient,
    reporter: Optional["_ConsoleReporter"] = None,
    *,
    log_dir: Optional[Path] = None,
) -> RunController:
    scheduler = BatchScheduler(RequestExecutor(client))
    return RunController(
        scheduler,
        log_callback=reporter.log if reporter else None,
        progress_callback=reporter.progress if reporter else None,
        log_dir=log_dir,
    )


def _run_command(args: argparse.Namespace, config: AppConfig) -> int:
    reporter = _ConsoleReporter(quiet=bool(args.quiet))
    urls: List[str] = list(args.urls or [])
    try:
        if args.urls_file:
            urls.extend(read_url_file(args.urls_file))
        media = collect_media(args.files, urls)
    except OSError as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        return 2
    if not media:
        print("[ERROR] Provide at least one --file, --url or --urls-file entry.", file=sys.stderr)
        return 2

    run_config = config.build_run_config(
        args.prompt,
        api_key=args.api_key,
        model=args.model,
        temperature=args.temperature,
        max_tokens=args.max_tokens,
    )
    output_dir = Path(args.output_dir or config.get("output_dir")).expanduser().resolve()
    client = build_client(config)
    try:
        controller = build_controller(client, reporter, log_dir=output_dir / "logs")
        controller.start(media, run_config)
        try:
            while not controller.wait(0.2):
                pass
        except KeyboardInterrupt:
            print("\nStopping after the current batch...", file=sys.stderr)
            controller.stop()
            controller.wait()
    finally:
        client.close()

    snapshot = controller.snapshot()
    paths = write_outputs(snapshot, run_config, output_dir)
    if snapshot.state is RunState.FAILED:
        print(f"[ERROR] {snapshot.error}", file=sys.stderr)
    if not args.quiet:
        print(f"Collected {len(snapshot.results)}/{snapshot.total_items} result(s), {snapshot.failed} failed.")
        for path in paths:
            print(f" - {path}")
    else:
        for path in paths:
            print(path)
    return 1 if snapshot.state is RunState.FAILED else 0


def _config_command(args: argparse.Namespace, config: AppConfig) -> int:
    if args.config_command == "set":
        if args.key not in config.defaults:
            print(f"[ERROR] Unknown setting '{args.key}'.", file=sys.stderr)
            return 2
        if not config.set(args.key, args.value):
            print(f"[ERROR] Could not write {config.config_path}.", file=sys.stderr)
            return 1
        print(f"Saved {args.key} to {config.config_path}.")
        return 0
    for key, value in config.masked_settings().items():
        print(f"{key} = {value}")
    return 0


class _ConsoleReporter:
    """Mirrors controller log and progress updates to stdout unless quiet."""

    def __init__(self, quiet: bool):
        self.quiet = quiet
        self._last_progress = -1

    def log(self, level: str, message: str) -> None:
        if self.quiet:
            return
        if level.lower() == "success":
            prefix = "[OK]"
        elif level.lower() == "warning":
            prefix = "[WARN]"
        elif level.lower() == "error":
            prefix = "[ERR]"
        else:
            prefix = "[INFO]"
        print(f"{prefix} {message}")

    def progress(self, value: float) -> None:
        if self.quiet:
            return
        rounded = int(value)
        if rounded == self._last_progress:
            return
        self._last_progress = rounded
        print(f"Progress: {rounded}%")
