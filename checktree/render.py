"""Preview rendering for the interactive checklist surface.

Produces the content carried by full re-render events: headers that can be
clicked to navigate, checkboxes that carry their source line for toggling,
and a ``data-source-line`` on every block for scroll sync. This is not a
Markdown renderer; plain lines become paragraphs and fenced blocks become
``<pre>`` with no checkboxes inside.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from checktree.parse import FENCE_RE, classify_lines, split_lines

_TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


@dataclass(frozen=True)
class RenderedPreview:
    """Rendered content plus a map of source line → element id."""

    content: str
    line_map: dict[int, str] = field(default_factory=dict)


def _get_env() -> Environment:
    """Create the Jinja2 environment loading from checktree/templates/."""
    return Environment(
        loader=FileSystemLoader(str(_TEMPLATES_DIR)),
        autoescape=select_autoescape(["html"]),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


def _blocks(text: str) -> list[dict[str, Any]]:
    """Group lines into header, checkbox, code and paragraph blocks."""
    lines = split_lines(text)
    classified = classify_lines(text)
    blocks: list[dict[str, Any]] = []
    paragraph: list[str] = []
    paragraph_start = 0
    code: dict[str, Any] | None = None

    def flush_paragraph() -> None:
        if paragraph:
            blocks.append({
                "kind": "paragraph",
                "id": f"block-{paragraph_start}",
                "line": paragraph_start,
                "text": "\n".join(paragraph),
            })
            paragraph.clear()

    for line, c in zip(lines, classified):
        fence = FENCE_RE.match(line.text)
        if code is not None:
            if fence:
                blocks.append(code)
                code = None
            else:
                code["lines"].append(line.text)
            continue
        if fence:
            flush_paragraph()
            code = {
                "kind": "code",
                "id": f"code-{line.index}",
                "line": line.index,
                "lang": fence.group(1).strip(),
                "lines": [],
            }
            continue

        if c.is_header:
            flush_paragraph()
            blocks.append({
                "kind": "header",
                "id": f"header-{line.index}",
                "line": line.index,
                "level": c.header_level,
                "text": c.content,
            })
        elif c.is_checkbox:
            flush_paragraph()
            blocks.append({
                "kind": "checkbox",
                "id": f"checkbox-{line.index}",
                "line": line.index,
                "checked": c.checked,
                "depth": (c.indent or 0) // 2,
                "text": c.content,
            })
        elif line.text.strip():
            if not paragraph:
                paragraph_start = line.index
            paragraph.append(line.text.strip())
        else:
            flush_paragraph()

    flush_paragraph()
    if code is not None:
        blocks.append(code)

    for block in blocks:
        if block["kind"] == "code":
            block["text"] = "\n".join(block.pop("lines"))
    return blocks


def render_preview(text: str) -> RenderedPreview:
    """Render *text* for the preview surface."""
    blocks = _blocks(text)
    template = _get_env().get_template("preview.html")
    content = template.render(blocks=blocks)
    line_map = {block["line"]: block["id"] for block in blocks}
    return RenderedPreview(content=content, line_map=line_map)
