"""
CLI command for system discovery.

Ranks the catalogued systems likely to hold a case subject's data and
explains each score.

Commands:
    subjectlens discover <case.yaml> --catalog catalog.yaml
"""

from __future__ import annotations

import argparse
from typing import Optional

from subjectlens.cli.case_files import load_case, load_findings
from subjectlens.cli.identity import create_demo_case, create_demo_findings, resolve_case_graph
from subjectlens.cli.ux import console, error, header, new_table, warning
from subjectlens.config import get_settings
from subjectlens.core.errors import ConfigurationError, main_with_error_handling
from subjectlens.discovery import (
    DiscoveryInput,
    DiscoverySuggestion,
    create_demo_catalog,
    load_catalog,
    run_discovery,
)
from subjectlens.identity import build_discovery_input


@main_with_error_handling()
def discover_command(
    case_file: Optional[str] = None,
    catalog_file: Optional[str] = None,
    findings_file: Optional[str] = None,
    dsar_type: Optional[str] = None,
    data_subject_type: Optional[str] = None,
    output_format: str = "table",
    demo: bool = False,
) -> int:
    """
    Rank systems for a case.

    Request type and subject type come from the flags, then the case file,
    then settings.

    Exit codes:
        0 - At least one system suggested
        1 - No system suggested
        10 - No catalogue configured
        12 - Invalid case, findings or catalogue file

    Returns:
        Exit code
    """
    settings = get_settings()

    if demo:
        case = create_demo_case()
        batches = create_demo_findings()
        catalog = create_demo_catalog()
    else:
        if not case_file:
            error("A case file is required unless --demo is given")
            return 2
        catalog_path = catalog_file or settings.catalog_path
        if not catalog_path:
            raise ConfigurationError(
                "No discovery catalogue given; use --catalog or SUBJECTLENS_CATALOG_PATH"
            )
        case = load_case(case_file)
        batches = load_findings(findings_file) if findings_file else []
        catalog = load_catalog(catalog_path)

    graph = resolve_case_graph(case, batches)
    discovery_input = build_discovery_input(
        graph,
        dsar_type=(dsar_type or case.dsar_type or settings.default_dsar_type).upper(),
        data_subject_type=data_subject_type or case.data_subject_type,
    )
    suggestions = run_discovery(discovery_input, catalog.rules, catalog.systems)

    if output_format == "json":
        console.print_json(
            data={
                "input": discovery_input.to_dict(),
                "suggestions": [s.to_dict() for s in suggestions],
            }
        )
    else:
        _print_suggestions(discovery_input, suggestions)

    return 0 if suggestions else 1


def _print_suggestions(
    discovery_input: DiscoveryInput, suggestions: list[DiscoverySuggestion]
) -> None:
    """Print ranked suggestions as a table."""
    console.print()
    header(f"System Discovery: {discovery_input.dsar_type}")
    console.print()

    subject_type = discovery_input.data_subject_type or "any"
    console.print(f"[bold]Subject Type:[/bold] {subject_type}")
    console.print(
        f"[bold]Identifier Types:[/bold] {', '.join(discovery_input.identifier_types) or '-'}"
    )
    console.print()

    if not suggestions:
        warning("No systems matched this request")
        console.print()
        return

    table = new_table("#", "System", "Score", "Reasons")
    for rank, suggestion in enumerate(suggestions, start=1):
        table.add_row(
            str(rank),
            f"[cyan]{suggestion.system_name}[/cyan]",
            str(suggestion.score),
            "\n".join(suggestion.reasons),
        )
    console.print(table)
    console.print()
    console.print(f"[muted]{len(suggestions)} systems suggested[/muted]")
    console.print()


def register_discover_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register discover subcommand parser."""
    parser = subparsers.add_parser(
        "discover",
        help="Rank systems likely to hold the subject's data",
    )
    parser.add_argument("case_file", nargs="?", help="Case YAML file")
    parser.add_argument("--catalog", dest="catalog_file", help="Discovery catalogue YAML")
    parser.add_argument("--findings", dest="findings_file", help="Connector findings YAML")
    parser.add_argument("--dsar-type", dest="dsar_type", help="Request type, e.g. ACCESS")
    parser.add_argument(
        "--subject-type",
        dest="data_subject_type",
        help="Data subject type, e.g. customer or employee",
    )
    parser.add_argument(
        "--format",
        "-f",
        dest="output_format",
        choices=["table", "json"],
        default=None,
        help="Output format (default: from settings, else table)",
    )
    parser.add_argument("--demo", action="store_true", help="Use demo data")


def handle_discover_command(args: argparse.Namespace, default_format: str = "table") -> int:
    """Handle discover command from CLI args."""
    return discover_command(
        case_file=getattr(args, "case_file", None),
        catalog_file=getattr(args, "catalog_file", None),
        findings_file=getattr(args, "findings_file", None),
        dsar_type=getattr(args, "dsar_type", None),
        data_subject_type=getattr(args, "data_subject_type", None),
        output_format=getattr(args, "output_format", None) or default_format,
        demo=getattr(args, "demo", False),
    )
