from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional, Sequence

from pagesmith.app.container import build_container
from pagesmith.app.pipeline import build_site
from pagesmith.domain.errors import PagesmithError
from pagesmith.preamble import PreambleResolver
from pagesmith.settings import load_settings

logger = logging.getLogger(__name__)


def build_argparser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="pagesmith", description="Build static pages from preamble-fenced documents.")
    ap.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    sub = ap.add_subparsers(dest="command", required=True)

    b = sub.add_parser("build", help="Resolve, render and write every page.")
    b.add_argument("--config", default="settings.toml", help="Settings file (default: settings.toml)")
    b.add_argument("--with-draft", action="store_true", default=None, help="Also build pages marked draft")
    b.add_argument("--auto-reload", action="store_true", default=None, help="Inject the auto-reload script")
    b.add_argument("--headless", action="store_true", default=None, help="Keep only the <feed> element, as XML")

    p = sub.add_parser("preamble", help="Print the fully resolved preamble of one document as JSON.")
    p.add_argument("file", help="Source document")
    p.add_argument("--src-dir", default=None, help="Content root directory (default: the file's directory)")
    p.add_argument("--exclude", action="append", default=[], help="Exclusion glob for preamblesIn (repeatable)")
    return ap


def _cmd_build(args: argparse.Namespace) -> int:
    settings = load_settings(args.config)
    build = settings.build
    if args.with_draft is not None:
        build = replace(build, with_draft=args.with_draft)
    if args.auto_reload is not None:
        build = replace(build, auto_reload=args.auto_reload)
    if args.headless is not None:
        build = replace(build, headless=args.headless)
    settings = replace(settings, build=build)

    c = build_container(settings)
    report = build_site(
        c.source,
        settings.paths.dst_dir,
        renderer=c.renderer,
        postprocessor=c.postprocessor,
        with_draft=settings.build.with_draft,
        resolver=c.resolver,
    )

    print(f"Site built: {settings.paths.dst_dir}")
    print(f"  scanned:       {report.scanned}")
    print(f"  written:       {report.written}")
    print(f"  skipped draft: {report.skipped_draft}")
    print(f"  skipped empty: {report.skipped_empty}")
    print(f"  failed:        {report.failed}")
    return 1 if report.failed else 0


def _cmd_preamble(args: argparse.Namespace) -> int:
    source = Path(args.file)
    src_dir = Path(args.src_dir) if args.src_dir else source.parent
    resolver = PreambleResolver(content_root=f"{src_dir.as_posix()}/*", excludes=tuple(args.exclude))
    try:
        preamble = resolver.resolve_file(source)
    except PagesmithError as e:
        logger.error("%s", e)
        return 1
    print(json.dumps(json.loads(preamble.to_json()), indent=2, ensure_ascii=False))
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_argparser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(levelname)s %(name)s: %(message)s",
    )
    if args.command == "build":
        return _cmd_build(args)
    return _cmd_preamble(args)


if __name__ == "__main__":
    sys.exit(main())
