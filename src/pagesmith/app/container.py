from __future__ import annotations

from dataclasses import dataclass

from pagesmith.adapters.ingestion.filesystem import FilesystemSource
from pagesmith.adapters.postprocessing.html_wrapper import HtmlDocumentWrapper
from pagesmith.adapters.rendering.command_renderer import CommandRenderer
from pagesmith.ports import PostProcessor, Renderer
from pagesmith.preamble import PreambleResolver
from pagesmith.settings import Settings


@dataclass(frozen=True, slots=True)
class Container:
    """
    Lightweight dependency container.
    Holds the adapters a build needs, wired from Settings.
    """
    source: FilesystemSource
    resolver: PreambleResolver
    renderer: Renderer
    postprocessor: PostProcessor


def build_container(settings: Settings) -> Container:
    source = FilesystemSource(
        src_dir=settings.paths.src_dir,
        excludes=settings.build.excludes,
        allowed_extensions=set(settings.build.extensions),
    )
    resolver = PreambleResolver(content_root=settings.content_root, excludes=settings.build.excludes)
    renderer = CommandRenderer(command=settings.renderer.command, timeout=settings.renderer.timeout)
    postprocessor = HtmlDocumentWrapper(
        auto_reload=settings.build.auto_reload,
        headless=settings.build.headless,
        app_js=settings.build.app_js,
    )
    return Container(
        source=source,
        resolver=resolver,
        renderer=renderer,
        postprocessor=postprocessor,
    )
