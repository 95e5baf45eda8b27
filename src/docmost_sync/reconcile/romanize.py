"""Transliteration passes: metadata-driven renames and orphan clean-up."""

from __future__ import annotations

import os
from pathlib import Path

import frontmatter

from docmost_sync.errors import MetadataError
from docmost_sync.local.models import PageNode, SpaceMetadata
from docmost_sync.local.repository import resolve_inside
from docmost_sync.local.naming import (
    MARKDOWN_SUFFIX,
    is_markdown,
    split_markdown_name,
    transliterate_path,
    transliterate_segment,
)
from docmost_sync.local.transliterate import contains_hangul

from .actions import ActionKind, PassResult
from .escaping import has_front_matter
from .fsops import (
    FILES_DIRNAME,
    copy_missing,
    deepest_first,
    list_directories,
    list_markdown_files,
    merge_into,
    read_document,
    write_document,
)

FILES_LINK_MARKER = "](" + FILES_DIRNAME + "/"


def add_front_matter(content: str, title: str, sidebar_position: int) -> str:
    """Prepend a Docusaurus front matter block unless the text already has one.

    ``content`` is appended to the header unchanged.
    """

    if has_front_matter(content):
        return content
    if title.endswith(MARKDOWN_SUFFIX):
        title = title[: -len(MARKDOWN_SUFFIX)]
    post = frontmatter.Post("", title=title, sidebar_position=sidebar_position)
    header = frontmatter.dumps(post, sort_keys=False).rstrip("\n")
    return header + "\n\n" + content


class _MetadataTransliterator:
    def __init__(self, root: Path, result: PassResult) -> None:
        self.root = root
        self.result = result

    def process(self, pages: list[PageNode]) -> None:
        for position, page in enumerate(pages, start=1):
            if page.file_path:
                self._process_file(page, position)
            self.process(page.children)

    def _process_file(self, page: PageNode, position: int) -> None:
        relative_target = transliterate_path(page.file_path)
        try:
            resolve_inside(self.root, page.file_path)
            resolve_inside(self.root, relative_target)
        except ValueError as exc:
            self.result.warn(f"Skipping page {page.title!r}: {exc}")
            return

        source = self.root / page.file_path
        if not source.is_file():
            self.result.warn(f"File not found for page {page.title!r}: {source}")
            return

        if any(not split_markdown_name(part)[0] for part in relative_target.split("/")):
            self.result.warn(f"Transliterated path of {page.file_path!r} is empty, skipping")
            return
        target = self.root / relative_target

        try:
            if is_markdown(page.file_path):
                original = read_document(source)
                updated = add_front_matter(original, page.title, position)
                if target == source and updated == original:
                    return
                target.parent.mkdir(parents=True, exist_ok=True)
                write_document(target, updated)
            else:
                if target == source:
                    return
                original = updated = ""
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_bytes(source.read_bytes())
        except (OSError, UnicodeDecodeError) as exc:
            self.result.warn(f"Failed to transliterate {source}: {exc}")
            return

        if target != source:
            self.result.record(ActionKind.RENAME, source, target)
        if updated != original:
            self.result.record(
                ActionKind.WRITE, target, detail=f"front matter (sidebar_position: {position})"
            )

        if source.parent != target.parent and FILES_LINK_MARKER in updated:
            files_dir = source.parent / FILES_DIRNAME
            if files_dir.is_dir():
                copy_missing(files_dir, target.parent / FILES_DIRNAME, self.result)

        if target != source:
            try:
                source.unlink()
            except OSError as exc:
                self.result.warn(f"Failed to remove original file {source}: {exc}")


def transliterate_metadata_paths(root: Path) -> PassResult:
    """Move every page file listed in the metadata to its transliterated path.

    Markdown pages receive a front matter header carrying the page title and
    its 1-based position among its siblings.
    """

    result = PassResult("transliterate metadata paths", root)
    try:
        metadata = SpaceMetadata.load(root)
    except MetadataError as exc:
        result.warn(str(exc))
        return result
    _MetadataTransliterator(root, result).process(metadata.pages)
    return result


def transliterate_orphan_directories(root: Path) -> PassResult:
    result = PassResult("transliterate orphan directories", root)
    candidates = [path for path in list_directories(root) if contains_hangul(path.name)]
    for directory in deepest_first(candidates):
        if not directory.is_dir():
            continue
        new_name = transliterate_segment(directory.name)
        if not new_name or new_name == directory.name:
            continue
        target = directory.with_name(new_name)
        if target.exists():
            merge_into(directory, target, result)
            continue
        try:
            os.rename(directory, target)
        except OSError as exc:
            result.warn(f"Failed to rename {directory} to {target}: {exc}")
            continue
        result.record(ActionKind.RENAME, directory, target)
    return result


def transliterate_orphan_files(root: Path) -> PassResult:
    result = PassResult("transliterate orphan files", root)
    candidates = [path for path in list_markdown_files(root) if contains_hangul(path.name)]
    for path in candidates:
        if not path.is_file():
            continue
        new_name = transliterate_segment(path.name)
        if new_name == path.name or not split_markdown_name(new_name)[0]:
            continue
        target = path.with_name(new_name)
        if target.exists():
            result.warn(f"Transliterated file already exists, skipping: {target}")
            continue
        try:
            os.rename(path, target)
        except OSError as exc:
            result.warn(f"Failed to rename {path} to {target}: {exc}")
            continue
        result.record(ActionKind.RENAME, path, target)
    return result
