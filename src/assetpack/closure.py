"""Dependency closure expansion.

Turns an ordered list of root assets into the full, de-duplicated list of
assets a linker must emit, dependencies before dependents:

    A requires B, C; B requires D; C requires D   ->   D, B, C, A

The walk is a depth-first post-order traversal driven by an explicit stack,
so deep dependency chains do not hit the interpreter's recursion limit.

Cycles are not an error. An asset is marked seen before its dependencies
are expanded, so meeting it again while it is still on the stack breaks the
cycle at that edge. Every member of the cycle is still emitted exactly once
and a warning is logged.
"""

import logging
from typing import Iterator, Optional, Sequence

from .contract import PluginContext
from .models import SourceAsset

logger = logging.getLogger(__name__)


async def expand_dependencies(context: PluginContext, roots: Sequence[SourceAsset]) -> list[SourceAsset]:
    """Expand root assets into their ordered dependency closure.

    Args:
        context: Provides get_source_asset() for dependency paths.
        roots: Entry-point assets, in the order they should be considered.

    Returns:
        Every reachable asset exactly once, each after all of its
        dependencies (except where a cycle was broken).

    Raises:
        PackagerError: If a dependency fails to resolve or compile. The
            whole expansion is aborted.
        OSError: If reading a dependency fails outside a compiler.
    """
    seen: set[str] = set()
    expanded: list[SourceAsset] = []
    # Paths of assets whose dependencies are currently being expanded.
    active: list[str] = []

    stack: list[tuple[Optional[SourceAsset], Iterator[SourceAsset]]] = [(None, iter(roots))]

    while stack:
        owner, pending = stack[-1]
        asset = next(pending, None)

        if asset is None:
            stack.pop()
            if owner is not None:
                active.pop()
                expanded.append(owner)
            continue

        if asset.path in seen:
            if asset.path in active:
                cycle = active[active.index(asset.path):] + [asset.path]
                logger.warning("Dependency cycle broken: %s", " -> ".join(cycle))
            continue
        seen.add(asset.path)

        if not asset.dependencies:
            expanded.append(asset)
            continue

        dependencies = [await context.get_source_asset(path) for path in asset.dependencies]
        active.append(asset.path)
        stack.append((asset, iter(dependencies)))

    logger.debug("Expanded %d root(s) into %d asset(s)", len(roots), len(expanded))
    return expanded
