from __future__ import annotations

import base64
import json
import logging
import re
from dataclasses import dataclass

from bs4 import BeautifulSoup
from bs4.element import Tag

logger = logging.getLogger(__name__)

_DOCTYPE_RE = re.compile(r"^\s*<!doctype\s", re.IGNORECASE)
_BODY_CLOSE_RE = re.compile(r"</body\s*>", re.IGNORECASE)

DEFAULT_RELOAD_SNIPPET = (
    "(function(){var s=new EventSource('/__reload');"
    "s.onmessage=function(){location.reload();};})();"
)
# str.format template; {module}, {flags} and {key} arrive as JSON string literals
DEFAULT_INIT_SNIPPET = "window.pagesmith && window.pagesmith.mount({module}, {flags}, {key});"

XML_DECLARATION = "<?xml version='1.0' encoding='UTF-8' ?>\n"

_RELOAD_MARKER = "data-pagesmith-reload"
_INIT_MARKER = "data-pagesmith-init"
_CUSTOM_TAG = "pagesmith-custom"
_COMPONENT_ATTR = "data-module"
_FLAGS_ATTR = "data-flags"
_KEY_ATTR = "data-unique-key"


def component_key(flags: str) -> str:
    """Base64 of a component's flags text; identical flags give identical keys."""
    return base64.b64encode(flags.encode("utf-8")).decode("ascii")


def unescape_custom_scripts(soup: BeautifulSoup) -> bool:
    """
    Replace each <pagesmith-custom data-tag="script"> with a real <script>.
    Renderers that cannot emit <script> directly use this element instead.
    Its text becomes the script text and its non-data attributes are carried over.
    """
    changed = False
    for custom in soup.find_all(_CUSTOM_TAG, attrs={"data-tag": "script"}):
        if custom.parent is None:
            continue
        attrs = {k: v for k, v in custom.attrs.items() if v and not k.startswith("data-")}
        script = soup.new_tag("script", attrs=attrs)
        script.string = custom.get_text()
        custom.replace_with(script)
        changed = True
    return changed


def hoist_styles(soup: BeautifulSoup, head: Tag) -> bool:
    """
    Move every <style> outside <head> to the end of <head>.
    A wrapper element left empty by the move is removed.
    """
    changed = False
    for style in soup.find_all("style"):
        if style.find_parent("head") is not None:
            continue
        parent = style.parent
        head.append(style.extract())
        if (
            parent is not None
            and parent.parent is not None
            and parent.name not in ("body", "html")
            and not parent.contents
        ):
            parent.decompose()
        changed = True
    return changed


@dataclass(frozen=True, slots=True)
class HtmlDocumentWrapper:
    """
    Turns rendered markup into a deliverable page:
      - empty markup stays empty (the page is dropped)
      - <pagesmith-custom data-tag="script"> elements become <script> elements
      - headless: only the <feed> element is kept, serialized as an XML document
      - <style> elements move into <head>
      - with app_js set, <div data-module> components get a data-unique-key, the
        app script is linked from <head> and one init script per distinct
        (module, flags) pair is appended to <body>
      - prepends '<!doctype html>' unless a doctype is present
      - optionally injects one auto-reload script before </body>

    The markup is only re-serialized when one of the DOM steps changed it.
    Applying it twice gives the same result as applying it once.
    """
    auto_reload: bool = False
    reload_snippet: str = DEFAULT_RELOAD_SNIPPET
    headless: bool = False
    app_js: str = ""
    init_snippet: str = DEFAULT_INIT_SNIPPET

    def process(self, markup: str) -> str:
        if not markup.strip():
            return ""

        if self.headless:
            return self._feed(markup)

        html = self._rewrite_dom(markup.strip())
        if not _DOCTYPE_RE.match(html):
            html = f"<!doctype html>\n{html}"

        if self.auto_reload and _RELOAD_MARKER not in html:
            script = f"<script {_RELOAD_MARKER}>{self.reload_snippet}</script>"
            matches = list(_BODY_CLOSE_RE.finditer(html))
            if matches:
                at = matches[-1].start()
                html = html[:at] + script + html[at:]
            else:
                html = html + script

        return html

    def _feed(self, markup: str) -> str:
        soup = BeautifulSoup(markup, "html.parser")
        unescape_custom_scripts(soup)
        feed = soup.find("feed")
        if feed is None:
            logger.warning("headless output has no <feed> element; page dropped")
            return ""
        return XML_DECLARATION + str(feed)

    def _rewrite_dom(self, html: str) -> str:
        wanted = (
            _CUSTOM_TAG in html
            or "<style" in html.lower()
            or (self.app_js and _COMPONENT_ATTR in html)
        )
        if not wanted:
            return html

        soup = BeautifulSoup(html, "html.parser")
        changed = unescape_custom_scripts(soup)

        head = soup.find("head")
        if head is not None:
            changed = hoist_styles(soup, head) or changed
            if self.app_js:
                changed = self._embed_components(soup, head) or changed

        return str(soup) if changed else html

    def _embed_components(self, soup: BeautifulSoup, head: Tag) -> bool:
        components = soup.find_all("div", attrs={_COMPONENT_ATTR: True})
        if not components:
            return False

        changed = False
        if head.find("script", attrs={"src": self.app_js}) is None:
            head.append(soup.new_tag("script", attrs={"src": self.app_js}))
            changed = True

        treated = {s.get(_INIT_MARKER) for s in soup.find_all("script", attrs={_INIT_MARKER: True})}
        body = soup.find("body")
        target = body if body is not None else soup
        for div in components:
            module = div.get(_COMPONENT_ATTR) or ""
            flags = div.get(_FLAGS_ATTR) or "{}"
            key = component_key(flags)
            if div.get(_KEY_ATTR) != key:
                div[_KEY_ATTR] = key
                changed = True

            treated_key = f"{module}-{key}"
            if treated_key in treated:
                continue
            treated.add(treated_key)

            script = soup.new_tag("script", attrs={_INIT_MARKER: treated_key})
            script.string = self.init_snippet.format(
                module=json.dumps(module),
                flags=json.dumps(flags),
                key=json.dumps(key),
            )
            target.append(script)
            changed = True

        return changed
