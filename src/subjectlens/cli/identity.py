"""
CLI command for data subject identity resolution.

Builds a subject's identity graph from a case file, merges connector
findings, and shows the identifiers that would be used to query systems.

Commands:
    subjectlens identity show <case.yaml> [--findings findings.yaml]
"""

from __future__ import annotations

import argparse
from datetime import datetime, timezone
from typing import Iterable, Optional

from subjectlens.cli.case_files import (
    CaseFile,
    FindingBatch,
    load_case,
    load_findings,
)
from subjectlens.cli.ux import confidence_style, console, error, header, new_table
from subjectlens.core.errors import main_with_error_handling
from subjectlens.identity import (
    IdentityEntry,
    IdentityGraph,
    ResolvedSystem,
    SubjectIdentifiers,
    SubjectRecord,
    add_resolved_system,
    build_initial_identity_graph,
    build_subject_identifiers,
    merge_identifiers,
)
from subjectlens.logging import bind_context


# Demo data for trying the commands without case files
def create_demo_case() -> CaseFile:
    """Create a demo employee access request."""
    return CaseFile(
        subject=SubjectRecord(
            full_name="Jane Doe",
            email="jane.doe@example.com",
            phone="+49 30 1234567",
            identifiers={
                "userPrincipalName": "jane.doe@corp.example",
                "staffId": "E-4411",
                "loyaltyNumber": "LN-998877",
            },
        ),
        dsar_type="ACCESS",
        data_subject_type="employee",
    )


def create_demo_findings() -> list[FindingBatch]:
    """Create demo connector findings for the demo case."""
    seen = datetime(2026, 10, 1, 9, 30, tzinfo=timezone.utc)
    return [
        FindingBatch(
            source="M365",
            identifiers=(
                IdentityEntry(type="email", value="JANE.DOE@EXAMPLE.COM", confidence=0.9),
                IdentityEntry(
                    type="objectId",
                    value="6f1c2d7e-0000-4b8a-9c1d-5e6f7a8b9c0d",
                    confidence=0.95,
                ),
            ),
            systems=(
                ResolvedSystem(
                    provider="M365",
                    account_id="6f1c2d7e-0000-4b8a-9c1d-5e6f7a8b9c0d",
                    display_name="Jane Doe",
                    last_seen=seen,
                ),
            ),
        ),
        FindingBatch(
            source="HR-CRM",
            identifiers=(
                IdentityEntry(type="employeeId", value="e-4411", confidence=0.8),
                IdentityEntry(type="phone", value="+49 30 7654321", confidence=0.4),
                IdentityEntry(type="email", value="jd@old-domain.example", confidence=0.05),
            ),
            systems=(
                ResolvedSystem(provider="HR-CRM", account_id="E-4411", display_name="Doe, Jane"),
            ),
        ),
    ]


def resolve_case_graph(case: CaseFile, batches: Iterable[FindingBatch] = ()) -> IdentityGraph:
    """Build the case's identity graph and fold in every finding batch in order."""
    graph = build_initial_identity_graph(case.subject)
    for batch in batches:
        graph = merge_identifiers(graph, batch.identifiers, batch.source)
        for system in batch.systems:
            graph = add_resolved_system(graph, system)
    return graph


# --- Show subcommand ---


@main_with_error_handling()
def identity_show_command(
    case_file: Optional[str] = None,
    findings_file: Optional[str] = None,
    output_format: str = "table",
    demo: bool = False,
) -> int:
    """
    Show the identity graph and query identifiers for a case.

    Exit codes:
        0 - Graph has a queryable primary identifier
        1 - Not enough data to query any system
        12 - Invalid case or findings file

    Args:
        case_file: Path to case YAML
        findings_file: Optional path to connector findings YAML
        output_format: Output format ("table" or "json")
        demo: If True, use demo case and findings

    Returns:
        Exit code
    """
    if demo:
        case = create_demo_case()
        batches = create_demo_findings()
    else:
        if not case_file:
            error("A case file is required unless --demo is given")
            return 2
        case = load_case(case_file)
        batches = load_findings(findings_file) if findings_file else []

    log = bind_context(command="identity_show", batches=len(batches))
    graph = resolve_case_graph(case, batches)
    query = build_subject_identifiers(graph)
    log.debug("identity_graph_built", identifiers=len(graph.identifiers))

    if output_format == "json":
        console.print_json(data={"graph": graph.to_dict(), "query": query.to_dict()})
    else:
        _print_graph(graph, query)

    return 0 if query.is_queryable else 1


def _print_graph(graph: IdentityGraph, query: SubjectIdentifiers) -> None:
    """Print identity graph and query identifiers."""
    console.print()
    header(f"Identity Graph: {graph.primary_name or 'unknown subject'}")
    console.print()

    style = confidence_style(graph.confidence)
    console.print(f"[bold]Primary Email:[/bold] {graph.primary_email or '-'}")
    console.print(f"[bold]Confidence:[/bold] [{style}]{graph.confidence:.0%}[/{style}]")
    console.print()

    table = new_table("Type", "Value", "Source", "Confidence")
    for entry in graph.identifiers:
        entry_style = confidence_style(entry.confidence)
        table.add_row(
            entry.type,
            f"[cyan]{entry.value}[/cyan]",
            entry.source,
            f"[{entry_style}]{entry.confidence:.2f}[/{entry_style}]",
        )
    console.print(table)
    console.print()

    if graph.resolved_systems:
        console.print("[bold]Resolved Systems:[/bold]")
        for system in graph.resolved_systems:
            seen = f" (last seen {system.last_seen:%Y-%m-%d})" if system.last_seen else ""
            console.print(f"  {system.provider}: {system.account_id} {system.display_name}{seen}")
        console.print()

    if not query.is_queryable:
        console.print("[yellow]Insufficient data to query systems[/yellow]")
        console.print()
        return

    console.print(f"[bold]Query Primary:[/bold] {query.primary.type} = {query.primary.value}")
    if query.alternatives:
        console.print("[bold]Alternatives:[/bold]")
        for alt in query.alternatives:
            console.print(f"  - {alt.type}: {alt.value}")
    console.print()


# --- Parser registration ---


def register_identity_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register identity subcommand parser with nested subcommands."""
    identity_parser = subparsers.add_parser(
        "identity",
        help="Data subject identity resolution",
    )

    identity_subparsers = identity_parser.add_subparsers(
        dest="identity_command",
        help="Identity subcommand",
    )

    show_parser = identity_subparsers.add_parser(
        "show",
        help="Show identity graph and query identifiers for a case",
    )
    show_parser.add_argument("case_file", nargs="?", help="Case YAML file")
    show_parser.add_argument(
        "--findings",
        dest="findings_file",
        help="Connector findings YAML to merge",
    )
    show_parser.add_argument(
        "--format",
        "-f",
        dest="output_format",
        choices=["table", "json"],
        default=None,
        help="Output format (default: from settings, else table)",
    )
    show_parser.add_argument(
        "--demo",
        action="store_true",
        help="Use demo data",
    )


def handle_identity_command(args: argparse.Namespace, default_format: str = "table") -> int:
    """Handle identity command from CLI args."""
    identity_cmd = getattr(args, "identity_command", None)

    if identity_cmd == "show":
        return identity_show_command(
            case_file=getattr(args, "case_file", None),
            findings_file=getattr(args, "findings_file", None),
            output_format=getattr(args, "output_format", None) or default_format,
            demo=getattr(args, "demo", False),
        )
    error("No identity subcommand specified. Use --help for usage.")
    return 2
