from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from pagesmith.adapters.ingestion.filesystem import FilesystemSource
from pagesmith.adapters.ingestion.text_loader import TextLoader
from pagesmith.domain.errors import PagesmithError, StructuralParseFailure
from pagesmith.domain.models import BuildReport, Preamble
from pagesmith.ports import PostProcessor, Renderer
from pagesmith.preamble import PreambleResolver
from pagesmith.utils.parsing import split_document

logger = logging.getLogger(__name__)

# A failed resolution is isolated to its own document.
_PAGE_ERRORS = (PagesmithError, OSError, RecursionError)


@dataclass(frozen=True, slots=True)
class PageResult:
    html: str = ""
    preamble: Optional[Preamble] = None
    skipped: Optional[str] = None  # "unreadable" | "draft" | "empty"


def resolve_page(source: Path, text: str, *, resolver: PreambleResolver) -> tuple[Preamble, str]:
    """
    Split and resolve one page's text. Raises on any failure.
    """
    doc = split_document(text)
    if doc is None:
        raise StructuralParseFailure("no '---' fenced preamble", source=str(source))
    return resolver.parse_preamble(doc.metadata_text, source), doc.body


def render_page(
    source: Path,
    *,
    resolver: PreambleResolver,
    renderer: Renderer,
    postprocessor: PostProcessor,
    with_draft: bool = False,
    text_loader: TextLoader = TextLoader(),
) -> PageResult:
    text = text_loader.load(source)
    if text is None:
        return PageResult(skipped="unreadable")

    preamble, body = resolve_page(source, text, resolver=resolver)
    if preamble.draft and not with_draft:
        logger.info("%s: draft, skipped", source)
        return PageResult(preamble=preamble, skipped="draft")

    markup = renderer.render(preamble.module, preamble.to_json(), body)
    html = postprocessor.process(markup)
    if not html:
        logger.info("%s: rendered nothing, skipped", source)
        return PageResult(preamble=preamble, skipped="empty")
    return PageResult(html=html, preamble=preamble)


def convert_page(
    source: Path,
    *,
    resolver: PreambleResolver,
    renderer: Renderer,
    postprocessor: PostProcessor,
    with_draft: bool = False,
    text_loader: TextLoader = TextLoader(),
) -> str:
    """
    Turn one source document into a page. Returns "" when the page is a draft,
    renders to nothing, or fails; failures are logged with the source path.
    """
    try:
        return render_page(
            source,
            resolver=resolver,
            renderer=renderer,
            postprocessor=postprocessor,
            with_draft=with_draft,
            text_loader=text_loader,
        ).html
    except _PAGE_ERRORS as e:
        logger.error("%s: %s", source, e)
        return ""


def output_path_for(site_path: str, dst_dir: Path) -> Path:
    rel = site_path.strip("/")
    return (dst_dir / rel / "index.html") if rel else (dst_dir / "index.html")


def build_site(
    src: FilesystemSource,
    dst_dir: Path,
    *,
    renderer: Renderer,
    postprocessor: PostProcessor,
    with_draft: bool = False,
    text_loader: TextLoader = TextLoader(),
    resolver: Optional[PreambleResolver] = None,
) -> BuildReport:
    """
    Convert every discovered source document and write each page to dst_dir/<path>/index.html.
    A failing document is logged and left out; the others are still built.
    """
    if resolver is None:
        resolver = PreambleResolver(content_root=src.content_root, excludes=tuple(src.excludes))

    scanned = written = skipped_draft = skipped_empty = failed = 0
    outputs: list[str] = []

    for source in src.discover():
        scanned += 1
        try:
            result = render_page(
                source,
                resolver=resolver,
                renderer=renderer,
                postprocessor=postprocessor,
                with_draft=with_draft,
                text_loader=text_loader,
            )
        except StructuralParseFailure as e:
            logger.warning("%s", e)
            skipped_empty += 1
            continue
        except _PAGE_ERRORS as e:
            logger.error("%s: %s", source, e)
            failed += 1
            continue

        if result.skipped == "draft":
            skipped_draft += 1
            continue
        if result.skipped is not None or result.preamble is None:
            skipped_empty += 1
            continue

        out = output_path_for(result.preamble.path, dst_dir)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(result.html, encoding="utf-8")
        logger.debug("%s -> %s", source, out)
        outputs.append(out.as_posix())
        written += 1

    return BuildReport(
        scanned=scanned,
        written=written,
        skipped_draft=skipped_draft,
        skipped_empty=skipped_empty,
        failed=failed,
        outputs=tuple(outputs),
    )
