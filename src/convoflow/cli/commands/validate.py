"""Validate command: compile a template file and print its graph."""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table
from rich.text import Text

from convoflow.compiler.flow_compiler import FlowCompiler
from convoflow.config.loader import TemplateLoader
from convoflow.core.errors import CompileError, ConfigError
from convoflow.core.graph import FlowGraph, Node, OptionSetNode

console = Console()


def _describe(node: Node) -> str:
    text = getattr(node, "prompt", None) or getattr(node, "text", None) or ""
    variable = getattr(node, "variable_name", None)
    if variable:
        text = f"{text} -> {{{{{variable}}}}}"
    if isinstance(node, OptionSetNode) and node.is_catalog_backed:
        text = f"{text} (catalog: {node.source.value})"
    return text


def render_graph(graph: FlowGraph, out: Console) -> None:
    """Print nodes, triggers and option tables of a compiled graph."""
    nodes = Table(title=f"Template {graph.template_id}")
    nodes.add_column("Node")
    nodes.add_column("Kind")
    nodes.add_column("Content")
    nodes.add_column("Next")
    nodes.add_column("Stage")
    for node_id, node in graph.nodes.items():
        marker = " (entry)" if node_id == graph.entry_node_id else ""
        nodes.add_row(
            f"{node_id}{marker}",
            node.kind,
            Text(_describe(node)),
            graph.successors.get(node_id, ""),
            node.stage_target or "",
        )
    out.print(nodes)

    out.print(f"Triggers: {', '.join(graph.triggers)}")

    for node_id, table in graph.option_tables.items():
        options = Table(title=f"Options of {node_id}")
        options.add_column("#")
        options.add_column("Target")
        for index, target in enumerate(table.targets):
            options.add_row(str(index + 1), target or "(default)")
        options.add_row("default", table.default_target or "-")
        out.print(options)


def validate_template(
    path: Path = typer.Argument(..., help="Template file (YAML or JSON)", exists=True),
    tenant: str = typer.Option("default", "--tenant", "-t", help="Tenant id used for the graph"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only report success or failure"),
) -> None:
    """Compile a template file and report errors."""
    try:
        template = TemplateLoader.load(path)
        template_id = template.id or path.stem
        graph = FlowCompiler().compile(template, tenant, template_id)
    except (CompileError, ConfigError) as e:
        console.print(f"Invalid template: {e}", style="red", markup=False)
        raise typer.Exit(1)

    if not quiet:
        render_graph(graph, console)
    console.print(
        f"[green]OK[/] {len(graph.nodes)} nodes, {len(graph.option_tables)} option tables"
    )
