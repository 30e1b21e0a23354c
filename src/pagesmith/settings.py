from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Paths:
    src_dir: Path
    dst_dir: Path


@dataclass(frozen=True)
class Build:
    excludes: tuple[str, ...] = ()
    extensions: tuple[str, ...] = (".md",)
    with_draft: bool = False
    auto_reload: bool = False
    headless: bool = False
    app_js: str = ""


@dataclass(frozen=True)
class RendererConfig:
    command: tuple[str, ...] = ()
    timeout: float = 60.0


@dataclass(frozen=True)
class Settings:
    paths: Paths
    build: Build = field(default_factory=Build)
    renderer: RendererConfig = field(default_factory=RendererConfig)

    @property
    def content_root(self) -> str:
        return f"{self.paths.src_dir.as_posix()}/*"


def _expand(p: str) -> Path:
    return Path(os.path.expandvars(os.path.expanduser(p))).resolve()


def _apply_env(settings: Settings) -> Settings:
    paths = settings.paths
    build = settings.build

    if src := os.getenv("PAGESMITH_SRC_DIR"):
        paths = replace(paths, src_dir=_expand(src))
    if dst := os.getenv("PAGESMITH_DST_DIR"):
        paths = replace(paths, dst_dir=_expand(dst))
    if (draft := os.getenv("PAGESMITH_WITH_DRAFT")) is not None:
        build = replace(build, with_draft=draft.strip().lower() in _TRUTHY)

    return replace(settings, paths=paths, build=build)


def load_settings(path: str | Path = "settings.toml") -> Settings:
    """
    Load settings.toml, then apply PAGESMITH_* overrides from the environment (and .env).
    """
    load_dotenv(find_dotenv(usecwd=True))
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Missing config file: {path}")

    with path.open("rb") as f:
        raw = tomllib.load(f)

    build_raw = raw.get("build", {})
    renderer_raw = raw.get("renderer", {})

    try:
        settings = Settings(
            paths=Paths(
                src_dir=_expand(raw["paths"]["src_dir"]),
                dst_dir=_expand(raw["paths"]["dst_dir"]),
            ),
            build=Build(
                excludes=tuple(str(x) for x in build_raw.get("excludes", [])),
                extensions=tuple(str(x) for x in build_raw.get("extensions", [".md"])),
                with_draft=bool(build_raw.get("with_draft", False)),
                auto_reload=bool(build_raw.get("auto_reload", False)),
                headless=bool(build_raw.get("headless", False)),
                app_js=str(build_raw.get("app_js", "")),
            ),
            renderer=RendererConfig(
                command=tuple(str(x) for x in renderer_raw.get("command", [])),
                timeout=float(renderer_raw.get("timeout", 60.0)),
            ),
        )
    except KeyError as e:
        raise KeyError(f"Missing config key: {e}") from e

    return _apply_env(settings)
