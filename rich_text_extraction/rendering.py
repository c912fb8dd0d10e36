"""
Markdown to HTML rendering for rich text fields.

Markdown is converted with Python-Markdown (fenced code and tables enabled)
and the result is post-processed with BeautifulSoup: links open in a new tab,
images load lazily, and unless sanitize is turned off, executable content
(script, style, iframe, inline event handlers, javascript: URLs) is removed.
"""
import logging
import re

import markdown
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

MARKDOWN_EXTENSIONS = ["fenced_code", "tables", "sane_lists"]
UNSAFE_TAGS = ("script", "style", "iframe", "object", "embed")
URL_ATTRIBUTES = ("href", "src")
UNSAFE_SCHEME = re.compile(r"^\s*(?:javascript|vbscript|data):", re.IGNORECASE)


def _sanitize(soup: BeautifulSoup) -> None:
    for tag in soup.find_all(UNSAFE_TAGS):
        tag.decompose()
    for tag in soup.find_all(True):
        for attr in list(tag.attrs):
            if attr.lower().startswith("on"):
                del tag[attr]
            elif attr in URL_ATTRIBUTES and UNSAFE_SCHEME.match(tag[attr] or ""):
                del tag[attr]


def render_markdown_html(text, sanitize: bool = True) -> str:
    """
    Render markdown text to HTML.

    Args:
        text: Markdown source; non-strings render as ""
        sanitize: Strip scripts, event handlers and javascript: URLs

    Returns:
        HTML fragment

    Example:
        >>> render_markdown_html("[docs](https://example.com)")
        '<p><a href="https://example.com" target="_blank" rel="noopener noreferrer">docs</a></p>'
    """
    if not isinstance(text, str) or not text.strip():
        return ""

    html = markdown.markdown(text, extensions=MARKDOWN_EXTENSIONS)
    soup = BeautifulSoup(html, "html.parser")

    if sanitize:
        _sanitize(soup)

    for link in soup.find_all("a"):
        link["target"] = "_blank"
        link["rel"] = "noopener noreferrer"
    for image in soup.find_all("img"):
        image["loading"] = "lazy"

    logger.debug(f"Rendered {len(text)} characters of markdown")
    return str(soup).strip()
