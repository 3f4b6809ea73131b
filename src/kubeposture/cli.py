"""KubePosture CLI: powered by Typer.

Usage:
    kubeposture assess --path manifests/
    kubeposture assess --path cluster-dump.yaml --report report.html --report-json report.json
    kubeposture assess --path . --ci --threshold 60
    kubeposture score-findings --file findings.txt
    kubeposture analyzers
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from kubeposture import __version__
from kubeposture.adapter import parse_severity
from kubeposture.analyzers import ANALYZERS
from kubeposture.collector import CollectionResult, collect, collect_findings
from kubeposture.config import ConfigError, ScanConfig, load_config
from kubeposture.engine import RuleError, Severity
from kubeposture.remediation import unique_remediations
from kubeposture.scorer import PostureReport, assess as assess_posture

app = typer.Typer(
    name="kubeposture",
    help="Cluster risk posture: one score, ranked drivers, attack paths, fixes.",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _severity_color(sev: Severity) -> str:
    return {
        "CRITICAL": "bright_red", "HIGH": "red", "MEDIUM": "yellow", "LOW": "blue", "INFO": "dim",
    }.get(sev.value, "white")


def _score_color(score: int) -> str:
    if score < 30:
        return "green"
    if score < 60:
        return "yellow"
    if score < 80:
        return "red"
    return "bright_red"


def _build_config(
    config_path: Path | None,
    rules_dir: Path | None,
    analyzers: str | None,
    namespace: str | None,
    threshold: int | None,
) -> ScanConfig:
    try:
        config = load_config(config_path)
    except ConfigError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1)
    if rules_dir is not None:
        config.rules_dir = rules_dir
    if analyzers:
        config.analyzers = [a.strip() for a in analyzers.split(",") if a.strip()]
    if namespace:
        config.namespace = namespace
    if threshold is not None:
        config.fail_threshold = threshold
    return config


def _print_findings(findings: list[str]) -> None:
    """Print findings to the console using a rich table."""
    if not findings:
        console.print("[green]✓ No findings.[/green]")
        return

    table = Table(title="Findings", show_lines=False)
    table.add_column("Severity")
    table.add_column("Finding")
    for f in sorted(findings, key=lambda x: (parse_severity(x).rank, x)):
        sev = parse_severity(f)
        color = _severity_color(sev)
        table.add_row(f"[{color}]{sev.value}[/{color}]", escape(f))
    console.print(table)


def _print_report(report: PostureReport, namespaces: list[str]) -> None:
    """Print the posture score panel, attack paths, and remediations."""
    color = _score_color(report.score)
    c = report.counts
    console.print()
    console.print(Panel(
        f"[{color} bold]  Risk Score: {report.score}/100  [/{color} bold]\n\n"
        f"  {report.risk_summary}\n\n"
        f"  Signals: {report.total_signals} observed, {report.distinct_signals} distinct, "
        f"[bright_red]{c.critical} CRITICAL[/bright_red], [red]{c.high} HIGH[/red], "
        f"[yellow]{c.medium} MEDIUM[/yellow], [blue]{c.low} LOW[/blue]\n\n"
        f"  [bold]Top Drivers:[/bold]\n" + "\n".join(f"    • {d}" for d in report.drivers),
        title="KubePosture Risk Score",
        border_style=color,
    ))

    for path in report.attack_paths:
        steps = "\n".join(f"  {i}. {s.kind}: {s.why}" for i, s in enumerate(path.steps, 1))
        console.print(Panel(
            f"{steps}\n\n  [dim]Evidence: {', '.join(path.evidence)}[/dim]",
            title=f"Attack Path: {path.title} ({path.severity.value}, confidence {path.confidence}%)",
            border_style="bright_red",
        ))

    for fix in unique_remediations(report.remediations):
        for ns in namespaces:
            console.print(Panel(
                escape(fix.render(ns).rstrip()),
                title=escape(f"Remediation: {fix.title} [{fix.priority.value}] ({ns})"),
                border_style="green",
            ))


def _write_reports(
    report: PostureReport,
    collected: CollectionResult,
    source: str,
    namespaces: list[str],
    html_out: Path | None,
    json_out: Path | None,
) -> None:
    if html_out:
        from kubeposture.reporter import render_html_report
        html = render_html_report(report, collected.all_findings, source_path=source, namespaces=namespaces)
        html_out.write_text(html, encoding="utf-8")
        console.print(f"[green]HTML report written to {html_out}[/green]")
    if json_out:
        from kubeposture.reporter import render_json_report
        data = render_json_report(report, collected.all_findings, source_path=source, namespaces=namespaces)
        json_out.write_text(json.dumps(data, indent=2), encoding="utf-8")
        console.print(f"[green]JSON report written to {json_out}[/green]")


def _finish(report: PostureReport, config: ScanConfig, ci: bool) -> None:
    if ci and config.fail_threshold is not None and report.score >= config.fail_threshold:
        console.print(
            f"[red bold]CI mode: risk score {report.score} is at or above {config.fail_threshold}.[/red bold]"
        )
        raise typer.Exit(2)


@app.command()
def assess(
    path: Path = typer.Option(..., "--path", "-p", help="Manifest file or directory"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML configuration file"),
    rules_dir: Optional[Path] = typer.Option(None, "--rules-dir", "-r", help="Directory with rule tables"),
    analyzers: Optional[str] = typer.Option(None, "--analyzers", "-a", help=f"Comma list of: {', '.join(ANALYZERS)}"),
    namespace: Optional[str] = typer.Option(None, "--namespace", "-n", help="Fallback namespace for remediation templates"),
    report: Optional[Path] = typer.Option(None, "--report", help="Write HTML report to this path"),
    report_json: Optional[Path] = typer.Option(None, "--report-json", help="Write JSON report"),
    ci: bool = typer.Option(False, "--ci", help="CI mode: exit code 2 when the score reaches the threshold"),
    threshold: Optional[int] = typer.Option(None, "--threshold", min=0, max=100, help="Failing score for --ci"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Inspect manifests and score the cluster's risk posture."""
    _setup_logging(verbose)
    config = _build_config(config_path, rules_dir, analyzers, namespace, threshold)

    if not path.exists():
        console.print(f"[red]Error:[/red] path does not exist: {path}")
        raise typer.Exit(1)

    from kubeposture.manifests import load_manifests

    try:
        collected = collect(load_manifests(path), config)
        result = assess_posture(collected.aggregate, rules_dir=config.rules_dir)
    except RuleError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1)

    for name in collected.skipped:
        console.print(f"[dim]Analyzer '{name}' skipped.[/dim]")
    _print_findings(collected.all_findings)
    namespaces = collected.remediation_namespaces(config.namespace)
    _print_report(result, namespaces)
    _write_reports(result, collected, str(path), namespaces, report, report_json)
    _finish(result, config, ci)


@app.command("score-findings")
def score_findings(
    file: Path = typer.Option(..., "--file", "-f", help="Text file, one finding per line"),
    rules_dir: Optional[Path] = typer.Option(None, "--rules-dir", "-r"),
    namespace: str = typer.Option("default", "--namespace", "-n"),
    report_json: Optional[Path] = typer.Option(None, "--report-json", help="Write JSON report"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Score a list of free-text findings produced elsewhere."""
    _setup_logging(verbose)
    if not file.exists():
        console.print(f"[red]Error:[/red] file does not exist: {file}")
        raise typer.Exit(1)

    config = ScanConfig(rules_dir=rules_dir, namespace=namespace)
    try:
        text = file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        console.print(f"[red]Error:[/red] cannot read findings file {file}: {escape(str(exc))}")
        raise typer.Exit(1)
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    try:
        collected = collect_findings(lines, config)
        result = assess_posture(collected.aggregate, rules_dir=rules_dir)
    except RuleError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1)

    _print_findings(collected.findings)
    _print_report(result, [namespace])
    _write_reports(result, collected, str(file), [namespace], None, report_json)


@app.command("analyzers")
def list_analyzers() -> None:
    """List the available analyzers."""
    for name in ANALYZERS:
        console.print(name)


@app.command()
def version() -> None:
    """Print the version number."""
    console.print(f"KubePosture v{__version__}")


if __name__ == "__main__":
    app()
