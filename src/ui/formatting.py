"""Markdown rendering for chat bubbles."""

import re
from collections.abc import Sequence
from html import escape


def _render_lists(text: str, pattern: str, open_tag: str, close_tag: str) -> str:
    lines = text.split("\n")
    in_list = False
    result = []
    for line in lines:
        stripped = line.strip()
        if re.match(pattern, stripped):
            if not in_list:
                result.append(open_tag)
                in_list = True
            item = re.sub(pattern, "", stripped)
            result.append(f"<li>{item}</li>")
        else:
            if in_list:
                result.append(close_tag)
                in_list = False
            result.append(line)
    if in_list:
        result.append(close_tag)
    return "\n".join(result)


def link_citations(text: str, sources: Sequence[dict]) -> str:
    """Turn ``[n]`` markers into superscript links to the n-th source.

    Markers with no matching source are left as-is.
    """

    def replace(match: re.Match) -> str:
        index = int(match.group(1))
        if 1 <= index <= len(sources):
            url = sources[index - 1].get("url") or ""
            if not url:
                return f"<sup>[{index}]</sup>"
            url = escape(url, quote=True)
            return (
                f'<a href="{url}" class="citation" target="_blank">'
                f"<sup>[{index}]</sup></a>"
            )
        return match.group(0)

    return re.sub(r"\[(\d+)\](?!\()", replace, text)


def markdown_to_html(text: str, sources: Sequence[dict] = ()) -> str:
    """Convert markdown to HTML for chat display.

    Supports: bold, italic, inline code, code blocks, links, lists, and
    numbered citations when ``sources`` are given.
    """
    # Escape HTML entities first
    text = text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")

    text = re.sub(
        r"```(\w*)\n?([\s\S]*?)```",
        r'<pre class="bg-gray-800 text-gray-100 rounded-lg p-3 my-2 overflow-x-auto text-xs"><code>\2</code></pre>',
        text,
    )
    text = re.sub(
        r"`([^`]+)`",
        r'<code class="bg-gray-200 text-pink-600 px-1.5 py-0.5 rounded text-xs">\1</code>',
        text,
    )

    # Headings
    text = re.sub(r"(?m)^###\s+(.+)$", r'<h4 class="font-semibold mt-2">\1</h4>', text)
    text = re.sub(r"(?m)^##\s+(.+)$", r'<h3 class="font-semibold text-base mt-3">\1</h3>', text)
    text = re.sub(r"(?m)^#\s+(.+)$", r'<h2 class="font-semibold text-lg mt-3">\1</h2>', text)

    text = re.sub(r"\*\*(.+?)\*\*", r"<strong>\1</strong>", text)
    text = re.sub(r"__(.+?)__", r"<strong>\1</strong>", text)
    text = re.sub(r"\*([^*\n]+)\*", r"<em>\1</em>", text)

    text = re.sub(
        r"\[([^\]]+)\]\(([^)]+)\)",
        r'<a href="\2" class="text-blue-600 underline" target="_blank">\1</a>',
        text,
    )

    if sources:
        text = link_citations(text, sources)

    text = _render_lists(
        text, r"^[-*]\s+", '<ul class="list-disc list-inside my-2 space-y-1">', "</ul>"
    )
    text = _render_lists(
        text, r"^\d+\.\s+", '<ol class="list-decimal list-inside my-2 space-y-1">', "</ol>"
    )

    return text.replace("\n", "<br>")


def plain_text_to_html(text: str) -> str:
    """Escape user-typed text and keep its line breaks."""
    return escape(text, quote=False).replace("\n", "<br>")
