"""Context extraction for single-file components (``.vue``).

Only script-like regions are analysed; the template has no
function/method/class units. Each script region is analysed in its own
1-based coordinate space and the resulting sections are mapped back to
file-global line numbers:

    local  = global - start_line + 1
    global = local + start_line - 1
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import replace

from tree_sitter import Node

from diff_context.context.parsers.javascript import language_for_lang_attr
from diff_context.context.parsers.sfc import SfcDescriptor, parse_sfc
from diff_context.context.safety import with_timeout
from diff_context.context.script import classify_node, extract_script_context, key_name
from diff_context.context.types import ComponentInfo, ExtractionResult, Region, Section
from diff_context.core.config import AstConfig
from diff_context.core.exceptions import AnalysisTimeoutError, SourceParseError

logger = logging.getLogger(__name__)

# Properties of a component's default export that name a member's role
COMPONENT_CONTEXT_KEYS: frozenset[str] = frozenset(
    {"methods", "computed", "watch", "setup", "props", "data"}
)

# Upper bound for every upward walk when probing ancestors
MAX_ANCESTOR_HOPS = 32


def find_ancestor(
    node: Node,
    predicate: Callable[[Node], bool],
    max_hops: int = MAX_ANCESTOR_HOPS,
) -> Node | None:
    """Return the nearest strict ancestor matching predicate.

    Returns None if no ancestor matches within max_hops steps.
    """
    current = node.parent
    hops = 1
    while current is not None and hops <= max_hops:
        if predicate(current):
            return current
        current = current.parent
        hops += 1
    return None


def _is_export_default(node: Node) -> bool:
    return node.type == "export_statement" and any(
        child.type == "default" for child in node.children
    )


def detect_component_context(node: Node, data: bytes) -> str | None:
    """Name the component option a member belongs to.

    For a method or property-valued function inside the component's
    ``export default`` object, returns the key of the nearest enclosing
    property when it is one of COMPONENT_CONTEXT_KEYS (e.g. ``"methods"``).

    Args:
        node: Candidate node.
        data: UTF-8 bytes the tree was parsed from.

    Returns:
        The option name, or None if not found.

    """
    kind = classify_node(node)
    parent = node.parent
    if kind is not None and kind.is_method:
        container = parent
    elif parent is not None and parent.type == "pair":
        container = parent.parent
    else:
        return None
    if container is None or container.type != "object":
        return None

    if find_ancestor(node, _is_export_default) is None:
        return None

    option = find_ancestor(container, lambda n: n.type == "pair")
    if option is None:
        return None

    name = key_name(option.child_by_field_name("key"), data)
    if name in COMPONENT_CONTEXT_KEYS:
        return name
    return None


def remap_to_local(added_lines: Iterable[int], region: Region) -> frozenset[int]:
    """Map file-global added lines into a region, dropping lines before it."""
    return frozenset(
        region.to_local(line) for line in added_lines if line >= region.start_line
    )


def remap_section_to_global(section: Section, region: Region) -> Section:
    """Map a region-local section back to file-global line numbers."""
    return replace(
        section,
        start_line=region.to_global(section.start_line),
        end_line=region.to_global(section.end_line),
        added_lines=tuple(region.to_global(line) for line in section.added_lines),
    )


def _component_info(descriptor: SfcDescriptor) -> ComponentInfo:
    script = descriptor.script or descriptor.script_setup
    return ComponentInfo(
        has_template=descriptor.template is not None,
        has_script=descriptor.script is not None,
        has_script_setup=descriptor.script_setup is not None,
        style_blocks=len(descriptor.styles),
        script_lang=(script.lang if script is not None and script.lang else "js"),
    )


async def extract_region_context(
    region: Region,
    added_lines: Iterable[int],
    config: AstConfig,
) -> ExtractionResult:
    """Analyse one script region and return sections in file coordinates."""
    local_lines = remap_to_local(added_lines, region)
    if not local_lines:
        return ExtractionResult()

    region_result = await extract_script_context(
        region.content,
        local_lines,
        config,
        language=language_for_lang_attr(region.lang),
        line_offset=region.start_line,
        context_probe=detect_component_context,
    )
    region_result.sections = [
        remap_section_to_global(section, region) for section in region_result.sections
    ]
    return region_result


async def extract_component_context(
    source: str,
    added_lines: Iterable[int],
    config: AstConfig,
) -> ExtractionResult:
    """Extract sections from the script regions of a component file.

    Args:
        source: Full component file text.
        added_lines: File-global added lines.
        config: AST limits.

    Returns:
        ExtractionResult with sections sorted by start_line, the union of
        region error tags, and component_info.

    """
    result = ExtractionResult()
    wanted = frozenset(added_lines)

    try:
        descriptor = await with_timeout(
            lambda: parse_sfc(source),
            config.timeout_ms,
            "component parse timed out",
        )
    except AnalysisTimeoutError as e:
        result.errors.append(f"timeout: {e}")
        return result
    except (SourceParseError, ValueError) as e:
        result.errors.append(f"sfc_parse_error: {e}")
        return result

    if descriptor.errors:
        for problem in descriptor.errors:
            logger.debug("Component structure problem: %s", problem)
        result.errors.append(f"sfc_parse_errors: {len(descriptor.errors)}")

    result.component_info = _component_info(descriptor)

    sections: list[Section] = []
    for tag, region in (("script", descriptor.script), ("script_setup", descriptor.script_setup)):
        if region is None or not region.content.strip():
            continue
        try:
            region_result = await extract_region_context(region, wanted, config)
        except Exception as e:
            logger.warning("Analysis of <%s> region failed: %s", tag, e)
            result.errors.append(f"{tag}_analysis_error: {e}")
            continue
        sections.extend(region_result.sections)
        result.errors.extend(region_result.errors)

    sections.sort(key=lambda s: s.start_line)
    result.sections = sections
    return result
