"""Compiled graph cache keyed by (tenant id, template id).

Entries never expire on their own. They leave the cache only through the
injected eviction policy or an explicit ``invalidate`` / ``recompile``.
A template that fails to compile is remembered the same way, so a broken
definition is compiled once rather than on every lookup.
"""

import asyncio
import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Protocol

from convoflow.compiler.flow_compiler import FlowCompiler
from convoflow.core.errors import CompileError
from convoflow.core.graph import FlowGraph
from convoflow.core.interfaces import CatalogProvider, TemplateRepository

logger = logging.getLogger(__name__)

CacheKey = tuple[str, str]


class EvictionPolicy(Protocol):
    """Decides which entries leave a full cache."""

    def touch(self, entries: OrderedDict[CacheKey, FlowGraph], key: CacheKey) -> None:
        """Record an access to ``key``."""
        ...

    def victims(self, entries: OrderedDict[CacheKey, FlowGraph]) -> list[CacheKey]:
        """Keys to drop after an insertion."""
        ...


class LRUEviction:
    """Keep at most ``max_entries`` graphs, dropping the least recently used."""

    def __init__(self, max_entries: int = 256):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries

    def touch(self, entries: OrderedDict[CacheKey, FlowGraph], key: CacheKey) -> None:
        entries.move_to_end(key)

    def victims(self, entries: OrderedDict[CacheKey, FlowGraph]) -> list[CacheKey]:
        overflow = len(entries) - self.max_entries
        return list(entries)[:overflow] if overflow > 0 else []


class NoEviction:
    """Keep every compiled graph until it is invalidated."""

    def touch(self, entries: OrderedDict[CacheKey, FlowGraph], key: CacheKey) -> None:
        pass

    def victims(self, entries: OrderedDict[CacheKey, FlowGraph]) -> list[CacheKey]:
        return []


def create_eviction_policy(max_entries: int | None) -> EvictionPolicy:
    return LRUEviction(max_entries) if max_entries else NoEviction()


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    failures: int = 0


class FlowCache:
    """Compile-once cache of flow graphs."""

    def __init__(
        self,
        templates: TemplateRepository,
        compiler: FlowCompiler | None = None,
        policy: EvictionPolicy | None = None,
        catalog: CatalogProvider | None = None,
    ):
        """
        Args:
            templates: Source of raw template definitions
            compiler: Compiler to use (a default FlowCompiler otherwise)
            policy: Eviction policy (LRU with 256 entries otherwise)
            catalog: When given, catalog option sets with a static filter
                are pre-filled at compile time
        """
        self.templates = templates
        self.compiler = compiler or FlowCompiler()
        self.policy = policy or LRUEviction()
        self.catalog = catalog
        self.stats = CacheStats()
        self._entries: OrderedDict[CacheKey, FlowGraph] = OrderedDict()
        self._failures: dict[CacheKey, CompileError] = {}
        self._compile_lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def peek(self, tenant_id: str, template_id: str) -> FlowGraph | None:
        """Cached graph without compiling or touching the policy."""
        return self._entries.get((tenant_id, template_id))

    async def get_or_compile(self, tenant_id: str, template_id: str) -> FlowGraph:
        """Return the cached graph, compiling it on first use.

        Raises:
            TemplateNotFoundError: If the repository has no such template
            CompileError: If the template does not compile. The failure is
                raised again on later lookups until ``invalidate`` or
                ``recompile``
        """
        key = (tenant_id, template_id)
        graph = self._entries.get(key)
        if graph is not None:
            self.stats.hits += 1
            self.policy.touch(self._entries, key)
            return graph
        self._raise_remembered(key)

        async with self._compile_lock:
            # Another task may have compiled it while we waited
            graph = self._entries.get(key)
            if graph is not None:
                self.stats.hits += 1
                return graph
            self._raise_remembered(key)

            self.stats.misses += 1
            try:
                graph = await self._compile(tenant_id, template_id)
            except CompileError as e:
                self._failures[key] = e
                self.stats.failures += 1
                logger.warning(
                    f"Template '{template_id}' of tenant '{tenant_id}' failed to compile: {e}"
                )
                raise
            self._store(key, graph)
            return graph

    def invalidate(self, tenant_id: str, template_id: str) -> bool:
        """Drop a compiled graph or remembered failure. Returns whether either was cached."""
        key = (tenant_id, template_id)
        removed = self._entries.pop(key, None) is not None
        forgotten = self._failures.pop(key, None) is not None
        if removed or forgotten:
            logger.info(f"Invalidated compiled template '{template_id}' of tenant '{tenant_id}'")
        return removed or forgotten

    async def recompile(self, tenant_id: str, template_id: str) -> FlowGraph:
        """Compile again from the repository and replace the cached graph.

        The previous graph stays cached when the new definition fails to compile.
        """
        key = (tenant_id, template_id)
        async with self._compile_lock:
            try:
                graph = await self._compile(tenant_id, template_id)
            except CompileError as e:
                if key not in self._entries:
                    self._failures[key] = e
                raise
            self._failures.pop(key, None)
            self._store(key, graph)
            return graph

    def clear(self) -> None:
        self._entries.clear()
        self._failures.clear()

    def _raise_remembered(self, key: CacheKey) -> None:
        failure = self._failures.get(key)
        if failure is not None:
            raise CompileError(failure.message, **failure.context)

    async def _compile(self, tenant_id: str, template_id: str) -> FlowGraph:
        template = await self.templates.get_template(tenant_id, template_id)
        if self.catalog is not None:
            return await self.compiler.compile_with_catalog(
                template, tenant_id, template_id, self.catalog
            )
        return self.compiler.compile(template, tenant_id, template_id)

    def _store(self, key: CacheKey, graph: FlowGraph) -> None:
        self._entries[key] = graph
        self.policy.touch(self._entries, key)
        for victim in self.policy.victims(self._entries):
            del self._entries[victim]
            self.stats.evictions += 1
            logger.debug(f"Evicted compiled template {victim}")
