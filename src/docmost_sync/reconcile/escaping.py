"""Escaping of Markdown text that MDX would otherwise parse as JSX.

Docusaurus compiles pages as MDX, where a bare ``{expr}`` is a JavaScript
expression, ``<>`` is a fragment and raw ``<table>`` markup must be balanced
JSX. Exported pages contain all three as plain prose, so they are turned into
literal code spans or fenced blocks here.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable

from frontmatter.default_handlers import YAMLHandler

from .actions import ActionKind, PassResult
from .fsops import list_markdown_files, read_document, write_document

FENCE = "```"

_YAML_HANDLER = YAMLHandler()

RAW_TABLE_TAGS: tuple[str, ...] = (
    "<table",
    "<tbody",
    "<thead",
    "<tr>",
    "<th",
    "<td",
    "</table>",
    "</tbody>",
    "</thead>",
    "</tr>",
    "</th>",
    "</td>",
)


def split_front_matter(text: str) -> tuple[str, str]:
    """Split a leading YAML front matter block from the document body.

    The header is returned byte for byte, including the line break after its
    closing delimiter, so ``header + body == text`` always holds. An opening
    delimiter without a closing one is not front matter.
    """

    if not _YAML_HANDLER.detect(text):
        return "", text
    try:
        _, body = _YAML_HANDLER.split(text)
    except ValueError:
        return "", text
    for newline in ("\r\n", "\n"):
        if body.startswith(newline):
            body = body[len(newline) :]
            break
    return text[: len(text) - len(body)], body


def has_front_matter(text: str) -> bool:
    return bool(split_front_matter(text)[0])


def _looks_like_object_key(text: str, index: int) -> bool:
    """Return ``True`` when ``text[index]`` follows ``"key":`` or ``'key' :``."""

    k = index - 1
    while k >= 0 and text[k] in " \t":
        k -= 1
    if k < 0 or text[k] != ":":
        return False
    k -= 1
    while k >= 0 and text[k] in " \t":
        k -= 1
    return k >= 0 and text[k] in "\"'"


def wrap_placeholders(text: str) -> str:
    """Wrap single-line ``{...}`` spans in backticks.

    Spans inside fenced blocks, inline code, link targets and object
    literals (``"key": {...}``) are left alone.
    """

    out: list[str] = []
    length = len(text)
    i = 0
    in_block = False
    in_inline = False
    in_link = False

    while i < length:
        if text.startswith(FENCE, i):
            in_block = not in_block
            out.append(FENCE)
            i += 3
            continue
        char = text[i]
        if in_block:
            out.append(char)
            i += 1
            continue
        if char == "`":
            in_inline = not in_inline
            out.append(char)
            i += 1
            continue
        if in_inline:
            out.append(char)
            i += 1
            continue
        if text.startswith("](", i):
            in_link = True
            out.append("](")
            i += 2
            continue
        if in_link:
            if char in ")\n":
                in_link = False
            out.append(char)
            i += 1
            continue
        if char == "{":
            j = i + 1
            while j < length and text[j] not in "}\n":
                j += 1
            if j < length and text[j] == "}":
                span = text[i : j + 1]
                if _looks_like_object_key(text, i):
                    out.append(span)
                else:
                    out.append(f"`{span}`")
                i = j + 1
                continue
        out.append(char)
        i += 1

    return "".join(out)


def wrap_angle_brackets(text: str) -> str:
    """Wrap ``<>`` and ``</>`` outside code in backticks."""

    out: list[str] = []
    length = len(text)
    i = 0
    in_block = False
    in_inline = False

    while i < length:
        if text.startswith(FENCE, i):
            in_block = not in_block
            out.append(FENCE)
            i += 3
            continue
        char = text[i]
        if not in_block and char == "`":
            in_inline = not in_inline
            out.append(char)
            i += 1
            continue
        if in_block or in_inline:
            out.append(char)
            i += 1
            continue
        if text.startswith("</>", i):
            out.append("`</>`")
            i += 3
            continue
        if text.startswith("<>", i):
            out.append("`<>`")
            i += 2
            continue
        out.append(char)
        i += 1

    return "".join(out)


def _is_table_line(line: str) -> bool:
    lowered = line.strip().lower()
    return any(tag in lowered for tag in RAW_TABLE_TAGS)


def wrap_raw_html(text: str) -> str:
    """Fence contiguous runs of raw table markup lines as ```` ```html ```` blocks."""

    result: list[str] = []
    pending: list[str] = []
    in_block = False

    def flush() -> None:
        if pending:
            result.append(FENCE + "html")
            result.extend(pending)
            result.append(FENCE)
            pending.clear()

    for line in text.split("\n"):
        if line.strip().startswith(FENCE):
            in_block = not in_block
            flush()
            result.append(line)
        elif in_block:
            result.append(line)
        elif _is_table_line(line):
            pending.append(line)
        else:
            flush()
            result.append(line)
    flush()
    return "\n".join(result)


def _rewrite_documents(
    root: Path, name: str, transform: Callable[[str], str], detail: str
) -> PassResult:
    result = PassResult(name, root)
    for path in list_markdown_files(root):
        try:
            original = read_document(path)
        except (OSError, UnicodeDecodeError) as exc:
            result.warn(f"Failed to read file {path}: {exc}")
            continue
        header, body = split_front_matter(original)
        updated = header + transform(body)
        if updated == original:
            continue
        try:
            write_document(path, updated)
        except OSError as exc:
            result.warn(f"Failed to write file {path}: {exc}")
            continue
        result.record(ActionKind.REWRITE, path, detail=detail)
    return result


def _escape_inline_text(text: str) -> str:
    return wrap_angle_brackets(wrap_placeholders(text))


def escape_inline(root: Path) -> PassResult:
    return _rewrite_documents(root, "escape inline hazards", _escape_inline_text, "inline literals")


def escape_blocks(root: Path) -> PassResult:
    return _rewrite_documents(root, "escape block hazards", wrap_raw_html, "raw HTML fenced")
