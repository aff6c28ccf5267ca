"""Single-file component (``.vue``) descriptor parsing.

Splits a component into its top-level blocks using the tree-sitter HTML
grammar: ``<template>``, ``<script>``, ``<script setup>``, ``<style>``
and custom blocks. Each block becomes a Region carrying its raw content
and the file line on which that content begins, so analysis results can
be mapped back to file-global line numbers.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass, field

import tree_sitter_html
from tree_sitter import Language, Node, Parser

from diff_context.context.types import Region
from diff_context.core.exceptions import SourceParseError

logger = logging.getLogger(__name__)


@dataclass
class SfcDescriptor:
    """Top-level blocks of a component file.

    Attributes:
        template: The ``<template>`` block.
        script: The plain ``<script>`` block.
        script_setup: The ``<script setup>`` block.
        styles: All ``<style>`` blocks.
        custom_blocks: Any other top-level blocks (e.g. ``<i18n>``).
        errors: Structural problems found while splitting.

    """

    template: Region | None = None
    script: Region | None = None
    script_setup: Region | None = None
    styles: list[Region] = field(default_factory=list)
    custom_blocks: list[Region] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


@functools.lru_cache(maxsize=1)
def _get_language() -> Language:
    return Language(tree_sitter_html.language())


def parse_sfc(source: str) -> SfcDescriptor:
    """Parse a component file into its descriptor.

    Args:
        source: Full component file text.

    Returns:
        SfcDescriptor; recoverable problems are listed in ``errors``.

    Raises:
        SourceParseError: If the HTML parser produces no tree.

    """
    data = source.encode("utf-8")
    tree = Parser(_get_language()).parse(data)
    if tree is None:
        raise SourceParseError("component parser returned no tree")

    descriptor = SfcDescriptor()
    for node in tree.root_node.children:
        if node.type == "ERROR":
            row, column = node.start_point
            descriptor.errors.append(f"unexpected content at {row + 1}:{column + 1}")
            continue
        if node.type not in ("element", "script_element", "style_element"):
            continue

        region = _block_region(node, data, descriptor.errors)
        if region is None:
            continue
        _assign_block(descriptor, region)

    return descriptor


def _block_region(node: Node, data: bytes, errors: list[str]) -> Region | None:
    """Build a Region from one top-level element node."""
    start_tag = _first_child(node, "start_tag")
    if start_tag is None:
        # Self-closing or damaged element: no content to analyse
        return None

    tag_name_node = _first_child(start_tag, "tag_name")
    if tag_name_node is None:
        return None
    tag_name = _text(tag_name_node, data).lower()
    attrs = _attributes(start_tag, data)

    end_tag = _first_child(node, "end_tag")
    content_end = end_tag.start_byte if end_tag is not None else node.end_byte
    if end_tag is None:
        row = start_tag.start_point[0]
        errors.append(f"element is missing end tag: <{tag_name}> at line {row + 1}")

    content = data[start_tag.end_byte : content_end].decode("utf-8", errors="replace")
    lang = attrs.get("lang")

    name = tag_name
    if tag_name == "script" and attrs.get("setup"):
        name = "script_setup"

    return Region(
        name=name,
        content=content,
        start_line=start_tag.end_point[0] + 1,
        lang=lang if isinstance(lang, str) else None,
        attrs=attrs,
    )


def _assign_block(descriptor: SfcDescriptor, region: Region) -> None:
    """Place a region on the descriptor, reporting duplicates."""
    if region.name == "style":
        descriptor.styles.append(region)
        return

    if region.name in ("template", "script", "script_setup"):
        if getattr(descriptor, region.name) is not None:
            tag = "<script setup>" if region.name == "script_setup" else f"<{region.name}>"
            descriptor.errors.append(
                f"component can contain only one {tag} element (line {region.start_line})"
            )
            return
        setattr(descriptor, region.name, region)
        return

    descriptor.custom_blocks.append(region)


def _attributes(start_tag: Node, data: bytes) -> dict[str, str | bool]:
    """Collect attributes of an opening tag; valueless attributes map to True."""
    attrs: dict[str, str | bool] = {}
    for attr in start_tag.children:
        if attr.type != "attribute":
            continue
        name_node = _first_child(attr, "attribute_name")
        if name_node is None:
            continue
        value: str | bool = True
        for child in attr.children:
            if child.type == "attribute_value":
                value = _text(child, data)
            elif child.type == "quoted_attribute_value":
                inner = _first_child(child, "attribute_value")
                value = _text(inner, data) if inner is not None else ""
        attrs[_text(name_node, data)] = value
    return attrs


def _first_child(node: Node, node_type: str) -> Node | None:
    for child in node.children:
        if child.type == node_type:
            return child
    return None


def _text(node: Node, data: bytes) -> str:
    return data[node.start_byte : node.end_byte].decode("utf-8", errors="replace")
