from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Sequence

from .classify import TeaBuckets
from .config import config_sha256, load_config, resolve_runtime_secrets
from .errors import (
    ConfigError,
    ExportError,
    SchemaViolation,
    TemplateMarkerMissing,
    TransportFailure,
    UnsupportedBlockType,
)
from .pipeline import build_book, inventory
from .run_log import RunLogger
from .tea import Tea


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tea_book")

    subparsers = parser.add_subparsers(dest="command", required=True)

    build = subparsers.add_parser(
        "build",
        help="Write the ebook manuscript and SVG cover from the Notion tea database.",
    )
    build.add_argument(
        "--config",
        default=None,
        help="Path to YAML config file. Defaults are used when omitted.",
    )
    build.add_argument(
        "--out",
        required=True,
        help="Output directory for the manuscript, cover and run log.",
    )
    build.add_argument(
        "--offline",
        action="store_true",
        help="Build from a small built-in tea database without network calls.",
    )
    build.set_defaults(_handler=_cmd_build)

    inv = subparsers.add_parser(
        "inventory",
        help="Print which teas are on each display shelf and in the pantry.",
    )
    inv.add_argument(
        "--config",
        default=None,
        help="Path to YAML config file. Defaults are used when omitted.",
    )
    inv.add_argument(
        "--offline",
        action="store_true",
        help="Use the built-in tea database without network calls.",
    )
    inv.set_defaults(_handler=_cmd_inventory)

    return parser


def _eprint(message: str) -> None:
    print(message, file=sys.stderr)


def _cmd_build(args: argparse.Namespace) -> int:
    out_dir = Path(args.out)
    out_dir.mkdir(parents=True, exist_ok=True)

    log_path = out_dir / "run.log"
    with RunLogger.open(log_path, overwrite=True) as log:
        log.info(
            "build_command_started",
            config_path=str(args.config) if args.config else None,
            out_dir=str(out_dir),
            offline=bool(args.offline),
        )

        try:
            cfg = load_config(args.config)

            if args.offline:
                from .offline import offline_notion_client, offline_secrets

                secrets = offline_secrets()
                log.info("config_loaded", config_hash=config_sha256(cfg), offline=True)
                with offline_notion_client(cfg.notion) as client:
                    result = build_book(cfg, secrets, out_dir=out_dir, database=client, logger=log)
            else:
                secrets = resolve_runtime_secrets(cfg)
                log.info(
                    "config_loaded",
                    config_hash=config_sha256(cfg),
                    notion_token_env=cfg.notion.token_env,
                    database_id_env=cfg.notion.database_id_env,
                )
                result = build_book(cfg, secrets, out_dir=out_dir, logger=log)

            log.info(
                "build_command_completed",
                top_display=result.top_display,
                bottom_display=result.bottom_display,
                pantry=result.pantry,
                content_fragments=result.content_fragments,
            )
        except Exception as e:
            log.exception("build_command_failed", exc=e)
            raise

    print(f"top_display={result.top_display}")
    print(f"bottom_display={result.bottom_display}")
    print(f"pantry={result.pantry}")
    print(f"content_fragments={result.content_fragments}")
    print(f"manuscript={result.manuscript_path}")
    print(f"cover={result.cover_path}")
    print(f"run_log={log.path}")
    print(f"session_id={log.session_id}")
    return 0


def _print_bucket(label: str, teas: Sequence[Tea]) -> None:
    print(f"{label}={len(teas)}")
    for tea in teas:
        print(f"  {tea.name}")


def _cmd_inventory(args: argparse.Namespace) -> int:
    cfg = load_config(args.config)

    buckets: TeaBuckets
    if args.offline:
        from .offline import offline_notion_client, offline_secrets

        with offline_notion_client(cfg.notion) as client:
            buckets = inventory(cfg, offline_secrets(), database=client)
    else:
        buckets = inventory(cfg, resolve_runtime_secrets(cfg))

    _print_bucket("top_display", buckets.top_display)
    _print_bucket("bottom_display", buckets.bottom_display)
    _print_bucket("pantry", buckets.pantry)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        handler = getattr(args, "_handler")
        return int(handler(args))
    except ConfigError as e:
        _eprint(str(e))
        return 2
    except (
        TransportFailure,
        SchemaViolation,
        UnsupportedBlockType,
        TemplateMarkerMissing,
        ExportError,
    ) as e:
        _eprint(str(e))
        return 3
    except KeyboardInterrupt:
        _eprint("Interrupted")
        return 130
    except Exception as e:
        _eprint(f"Unexpected error: {e}")
        return 1
