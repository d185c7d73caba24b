"""Template compilation: raw editor definitions to executable flow graphs."""

from convoflow.compiler.cache import FlowCache, LRUEviction, NoEviction
from convoflow.compiler.flow_compiler import FlowCompiler, build_fallback_graph

__all__ = ["FlowCompiler", "FlowCache", "LRUEviction", "NoEviction", "build_fallback_graph"]
