"""Tests for the compiled graph cache and its eviction policies."""

import asyncio
from collections import OrderedDict
from unittest.mock import MagicMock

import pytest

from convoflow.compiler.cache import FlowCache, LRUEviction, NoEviction, create_eviction_policy
from convoflow.compiler.flow_compiler import FlowCompiler
from convoflow.config.repository import InMemoryTemplateRepository
from convoflow.core.errors import CompileError, TemplateNotFoundError
from factories import TENANT, lead_capture_template, make_template, menu_template, node


@pytest.fixture
def templates() -> InMemoryTemplateRepository:
    repo = InMemoryTemplateRepository()
    repo.add(TENANT, "lead", lead_capture_template())
    repo.add(TENANT, "menu", menu_template())
    return repo


class TestEvictionPolicies:
    def test_lru_drops_least_recently_used(self):
        """Test LRU victims are the oldest entries beyond capacity."""
        # Arrange
        policy = LRUEviction(max_entries=2)
        entries = OrderedDict([(("t", "a"), MagicMock()), (("t", "b"), MagicMock())])
        policy.touch(entries, ("t", "a"))
        entries[("t", "c")] = MagicMock()

        # Act
        victims = policy.victims(entries)

        # Assert
        assert victims == [("t", "b")]

    def test_lru_rejects_zero_capacity(self):
        """Test capacity must be positive."""
        with pytest.raises(ValueError):
            LRUEviction(max_entries=0)

    def test_no_eviction(self):
        """Test NoEviction never drops entries."""
        entries = OrderedDict((("t", str(i)), MagicMock()) for i in range(1000))
        assert NoEviction().victims(entries) == []

    def test_factory(self):
        """Test policy selection from configuration."""
        assert isinstance(create_eviction_policy(10), LRUEviction)
        assert isinstance(create_eviction_policy(None), NoEviction)


class TestFlowCache:
    @pytest.mark.asyncio
    async def test_compiles_once(self, templates):
        """Test a template is compiled on first use and then served from cache."""
        # Arrange
        compiler = FlowCompiler()
        compiler.compile = MagicMock(wraps=compiler.compile)
        cache = FlowCache(templates, compiler=compiler)

        # Act
        first = await cache.get_or_compile(TENANT, "lead")
        second = await cache.get_or_compile(TENANT, "lead")

        # Assert
        assert first is second
        assert compiler.compile.call_count == 1
        assert cache.stats.misses == 1
        assert cache.stats.hits == 1
        assert (TENANT, "lead") in cache

    @pytest.mark.asyncio
    async def test_concurrent_first_use_compiles_once(self, templates):
        """Test racing requests for the same template share one compile."""
        compiler = FlowCompiler()
        compiler.compile = MagicMock(wraps=compiler.compile)
        cache = FlowCache(templates, compiler=compiler)

        graphs = await asyncio.gather(*(cache.get_or_compile(TENANT, "menu") for _ in range(5)))

        assert all(graph is graphs[0] for graph in graphs)
        assert compiler.compile.call_count == 1

    @pytest.mark.asyncio
    async def test_unknown_template_raises(self, templates):
        """Test missing templates propagate TemplateNotFoundError."""
        cache = FlowCache(templates)
        with pytest.raises(TemplateNotFoundError):
            await cache.get_or_compile(TENANT, "ghost")

    @pytest.mark.asyncio
    async def test_compile_failure_not_cached(self, templates):
        """Test a broken template yields no graph and compiles again once invalidated."""
        # Arrange
        templates.add(TENANT, "broken", make_template([node("a", "message", message="x")]))
        cache = FlowCache(templates)

        # Act & Assert
        with pytest.raises(CompileError):
            await cache.get_or_compile(TENANT, "broken")
        assert (TENANT, "broken") not in cache

        templates.add(TENANT, "broken", lead_capture_template())
        assert cache.invalidate(TENANT, "broken") is True
        graph = await cache.get_or_compile(TENANT, "broken")
        assert graph.template_id == "broken"

    @pytest.mark.asyncio
    async def test_compile_failure_remembered(self, templates):
        """Test a broken template is compiled once and its error raised on later lookups."""
        # Arrange
        templates.add(TENANT, "broken", make_template([node("a", "message", message="x")]))
        compiler = FlowCompiler()
        compiler.compile = MagicMock(wraps=compiler.compile)
        cache = FlowCache(templates, compiler=compiler)

        # Act
        for _ in range(3):
            with pytest.raises(CompileError):
                await cache.get_or_compile(TENANT, "broken")

        # Assert
        assert compiler.compile.call_count == 1
        assert cache.stats.misses == 1
        assert cache.stats.failures == 1

    @pytest.mark.asyncio
    async def test_recompile_clears_remembered_failure(self, templates):
        """Test recompile of a fixed template replaces the remembered failure."""
        templates.add(TENANT, "broken", make_template([node("a", "message", message="x")]))
        cache = FlowCache(templates)
        with pytest.raises(CompileError):
            await cache.get_or_compile(TENANT, "broken")
        templates.add(TENANT, "broken", lead_capture_template())

        graph = await cache.recompile(TENANT, "broken")

        assert await cache.get_or_compile(TENANT, "broken") is graph

    @pytest.mark.asyncio
    async def test_lru_eviction(self, templates):
        """Test the cache honours its eviction policy."""
        cache = FlowCache(templates, policy=LRUEviction(max_entries=1))

        await cache.get_or_compile(TENANT, "lead")
        await cache.get_or_compile(TENANT, "menu")

        assert len(cache) == 1
        assert cache.peek(TENANT, "lead") is None
        assert cache.peek(TENANT, "menu") is not None
        assert cache.stats.evictions == 1

    @pytest.mark.asyncio
    async def test_invalidate(self, templates):
        """Test explicit invalidation drops the graph."""
        cache = FlowCache(templates)
        await cache.get_or_compile(TENANT, "lead")

        assert cache.invalidate(TENANT, "lead") is True
        assert cache.invalidate(TENANT, "lead") is False
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_recompile_replaces_graph(self, templates):
        """Test recompile picks up a changed definition."""
        # Arrange
        cache = FlowCache(templates)
        old = await cache.get_or_compile(TENANT, "lead")
        templates.add(TENANT, "lead", menu_template(template_id="lead"))

        # Act
        new = await cache.recompile(TENANT, "lead")

        # Assert
        assert new is not old
        assert "menu" in new.nodes
        assert cache.peek(TENANT, "lead") is new

    @pytest.mark.asyncio
    async def test_recompile_failure_keeps_old_graph(self, templates):
        """Test a failed recompile leaves the previous graph in place."""
        cache = FlowCache(templates)
        old = await cache.get_or_compile(TENANT, "lead")
        templates.add(TENANT, "lead", make_template([node("a", "message", message="x")]))

        with pytest.raises(CompileError):
            await cache.recompile(TENANT, "lead")

        assert cache.peek(TENANT, "lead") is old

    @pytest.mark.asyncio
    async def test_clear(self, templates):
        """Test clear empties the cache."""
        cache = FlowCache(templates)
        await cache.get_or_compile(TENANT, "lead")

        cache.clear()

        assert len(cache) == 0
