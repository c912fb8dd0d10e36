"""
Render metadata records as link previews (HTML, Markdown or plain text).
"""
from html import escape
from typing import Dict, Optional, Tuple

PREVIEW_FORMATS = ("html", "markdown", "text")


def _fields(record: Dict[str, str]) -> Tuple[str, str, Optional[str], Optional[str]]:
    record = record or {}
    return (
        record.get("title") or "",
        record.get("description") or "",
        record.get("image") or None,
        record.get("url") or None,
    )


def html_preview(record: Dict[str, str]) -> str:
    title, description, image, url = _fields(record)
    parts = []
    if url:
        parts.append(f"<a href='{escape(url)}' target='_blank' rel='noopener'>")
    if image:
        parts.append(f"<img src='{escape(image)}' alt='{escape(title)}' style='max-width:200px;'><br>")
    if title:
        parts.append(f"<strong>{escape(title)}</strong>")
    if url:
        parts.append("</a>")
    if description:
        parts.append(f"<p>{escape(description)}</p>")
    return "".join(parts)


def markdown_preview(record: Dict[str, str]) -> str:
    title, description, image, url = _fields(record)
    lines = []
    if image and url:
        lines.append(f"[![]({image})]({url})\n")
    elif image:
        lines.append(f"![]({image})\n")
    if title:
        lines.append(f"**{title}**\n")
    if description:
        lines.append(f"{description}\n")
    if url:
        lines.append(f"[{url}]({url})")
    return "".join(lines)


def text_preview(record: Dict[str, str]) -> str:
    title, description, _, url = _fields(record)
    return "".join(f"{value}\n" for value in (title, description, url) if value)


def render_preview(record: Dict[str, str], format: str = "html") -> str:
    """
    Render a metadata record as a link preview.

    Args:
        record: Metadata record (title, description, image, url)
        format: One of "html", "markdown", "text"

    Returns:
        Preview string; empty for error records and unknown formats
    """
    if not record or "error" in record:
        return ""
    if format == "html":
        return html_preview(record)
    if format == "markdown":
        return markdown_preview(record)
    if format == "text":
        return text_preview(record)
    return ""
