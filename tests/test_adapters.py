from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest
from bs4 import BeautifulSoup

from pagesmith.adapters.ingestion.filesystem import FilesystemSource
from pagesmith.adapters.ingestion.text_loader import TextLoader
from pagesmith.adapters.postprocessing.html_wrapper import (
    XML_DECLARATION,
    HtmlDocumentWrapper,
    component_key,
)
from pagesmith.adapters.rendering.command_renderer import CommandRenderer
from pagesmith.domain.errors import RenderError
from pagesmith.domain.models import Preamble

_ECHO = (
    "import json, sys; flags = json.load(sys.stdin); p = json.loads(flags['preamble']); "
    "print('<main data-module=' + sys.argv[-1] + '>' + p['path'] + '|' + flags['body'] + '</main>', end='')"
)


# -------------------------
# CommandRenderer
# -------------------------

def test_command_renderer_passes_flags_on_stdin() -> None:
    preamble = Preamble(module="Page", path="/about", fields={"title": "About"})
    r = CommandRenderer(command=[sys.executable, "-c", _ECHO])

    out = r.render("Page", preamble.to_json(), "hello")

    assert out == "<main data-module=Page>/about|hello</main>"


def test_command_renderer_nonzero_exit() -> None:
    r = CommandRenderer(command=[sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(3)"])

    with pytest.raises(RenderError) as exc:
        r.render("Page", "{}", "")

    assert "3" in str(exc.value)
    assert "boom" in str(exc.value)


def test_command_renderer_missing_executable() -> None:
    r = CommandRenderer(command=["definitely-not-a-real-renderer-binary"])
    with pytest.raises(RenderError):
        r.render("Page", "{}", "")


def test_command_renderer_timeout() -> None:
    r = CommandRenderer(command=[sys.executable, "-c", "import time; time.sleep(5)"], timeout=0.2)
    with pytest.raises(RenderError) as exc:
        r.render("Page", "{}", "")
    assert "timed out" in str(exc.value)


def test_command_renderer_requires_command() -> None:
    with pytest.raises(RenderError):
        CommandRenderer(command=()).render("Page", "{}", "")


# -------------------------
# HtmlDocumentWrapper
# -------------------------

def test_wrapper_drops_empty_markup() -> None:
    assert HtmlDocumentWrapper().process("") == ""
    assert HtmlDocumentWrapper(auto_reload=True).process(" \n ") == ""


def test_wrapper_adds_doctype_once() -> None:
    w = HtmlDocumentWrapper()
    once = w.process("<html><body>x</body></html>")

    assert once == "<!doctype html>\n<html><body>x</body></html>"
    assert w.process(once) == once
    assert w.process("<!DOCTYPE html><html></html>") == "<!DOCTYPE html><html></html>"


def test_wrapper_injects_reload_before_body_close() -> None:
    w = HtmlDocumentWrapper(auto_reload=True, reload_snippet="reload()")
    html = w.process("<html><body><p>x</p></body></html>")

    assert html.endswith("<p>x</p><script data-pagesmith-reload>reload()</script></body></html>")
    assert w.process(html) == html


def test_wrapper_appends_reload_without_body() -> None:
    html = HtmlDocumentWrapper(auto_reload=True, reload_snippet="r()").process("<p>x</p>")
    assert html == "<!doctype html>\n<p>x</p><script data-pagesmith-reload>r()</script>"


def test_wrapper_hoists_styles_into_head() -> None:
    w = HtmlDocumentWrapper()
    html = w.process(
        "<html><head><title>t</title></head>"
        "<body><div><style>p{color:red}</style></div>"
        "<section><style>a{}</style><p>x</p></section></body></html>"
    )

    assert html == (
        "<!doctype html>\n<html><head><title>t</title><style>p{color:red}</style><style>a{}</style></head>"
        "<body><section><p>x</p></section></body></html>"
    )
    assert w.process(html) == html


def test_wrapper_leaves_styles_without_head() -> None:
    assert HtmlDocumentWrapper().process("<div><style>a{}</style></div>") == "<!doctype html>\n<div><style>a{}</style></div>"


def test_wrapper_embeds_components_once_per_module_and_flags() -> None:
    w = HtmlDocumentWrapper(app_js="/app.js")
    html = w.process(
        "<html><head></head><body>"
        "<div data-module=\"Clock\" data-flags='{\"tz\":\"UTC\"}'></div>"
        "<div data-module=\"Clock\" data-flags='{\"tz\":\"UTC\"}'></div>"
        "<div data-module=\"Clock\" data-flags='{\"tz\":\"JST\"}'></div>"
        "<div data-module=\"Map\"></div>"
        "</body></html>"
    )
    soup = BeautifulSoup(html, "html.parser")

    utc, jst, empty = (component_key(f) for f in ('{"tz":"UTC"}', '{"tz":"JST"}', "{}"))
    assert [s["src"] for s in soup.head.find_all("script")] == ["/app.js"]
    assert [d["data-unique-key"] for d in soup.find_all("div")] == [utc, utc, jst, empty]

    inits = soup.body.find_all("script")
    assert [s["data-pagesmith-init"] for s in inits] == [f"Clock-{utc}", f"Clock-{jst}", f"Map-{empty}"]
    assert inits[0].string == (
        'window.pagesmith && window.pagesmith.mount("Clock", "{\\"tz\\":\\"UTC\\"}", "%s");' % utc
    )
    assert w.process(html) == html


def test_wrapper_ignores_components_without_app_js() -> None:
    markup = '<html><head></head><body><div data-module="X"></div></body></html>'
    assert HtmlDocumentWrapper().process(markup) == "<!doctype html>\n" + markup


def test_wrapper_unescapes_custom_scripts() -> None:
    html = HtmlDocumentWrapper().process(
        '<body><pagesmith-custom data-tag="script" type="module" data-x="1">'
        "if (a &lt; b) go()</pagesmith-custom></body>"
    )

    assert html == '<!doctype html>\n<body><script type="module">if (a < b) go()</script></body>'


def test_wrapper_headless_keeps_only_feed() -> None:
    w = HtmlDocumentWrapper(headless=True, auto_reload=True)
    feed = '<feed xmlns="http://www.w3.org/2005/Atom"><title>News</title><entry><id>1</id></entry></feed>'

    assert w.process(f"<div>{feed}</div>") == XML_DECLARATION + feed
    assert w.process("<div>no feed</div>") == ""


# -------------------------
# Ingestion
# -------------------------

def test_filesystem_source_discovers_sorted_pages(tmp_path: Path, write) -> None:
    write("site/b.md", "")
    write("site/a/index.md", "")
    write("site/a/data.yml", "")
    write("site/_partials/header.md", "")
    write("site/.git/x.md", "")

    src = FilesystemSource(src_dir=tmp_path / "site", excludes=("*/_partials/*",))

    assert [p.relative_to(tmp_path / "site").as_posix() for p in src.discover()] == ["a/index.md", "b.md"]
    assert src.content_root == f"{(tmp_path / 'site').as_posix()}/*"


def test_filesystem_source_missing_dir(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        FilesystemSource(src_dir=tmp_path / "nope").discover()


def test_text_loader_skips_binary_and_invalid(tmp_path: Path, write) -> None:
    loader = TextLoader()
    ok = write("ok.md", "---\nmodule: X\n---\n")
    binary = tmp_path / "img.md"
    binary.write_bytes(b"\x00\x01\x02")
    latin = tmp_path / "latin.md"
    latin.write_bytes("café".encode("latin-1"))

    assert loader.load(ok) == "---\nmodule: X\n---\n"
    assert loader.load(binary) is None
    assert loader.load(latin) is None
    assert loader.load(tmp_path / "missing.md") is None
    assert TextLoader(max_bytes=4).load(ok) is None


def test_preamble_to_json_handles_yaml_dates() -> None:
    import datetime

    p = Preamble(module="Post", path="/p", fields={"date": datetime.date(2024, 1, 2), "tags": ("a", "b")})
    assert json.loads(p.to_json()) == {
        "module": "Post",
        "date": "2024-01-02",
        "tags": ["a", "b"],
        "draft": False,
        "path": "/p",
    }
