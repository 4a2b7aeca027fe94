"""Sektionstausch — Haupt-CLI.

Verwendung:
  python main.py setup                      Konfiguration anlegen
  python main.py config show                Konfiguration anzeigen
  python main.py generate                   Fake-Daten erzeugen und speichern
  python main.py generate --sample          Beispieldatensatz (5 Personen) speichern
  python main.py template                   Excel-Import-Vorlage erzeugen
  python main.py import <datei.xlsx|csv>    Studierendenliste importieren
  python main.py find <matrikel>            Tausch suchen (ohne Speichern)
  python main.py request <matrikel>         Tausch suchen und als Anfrage speichern
  python main.py cancel <nr>                Anfrage zurückziehen
  python main.py commit <nr>                Anfrage vollziehen
  python main.py history <matrikel>         Vollzogene Wechsel anzeigen
  python main.py profile <matrikel>         Profil / Wunschliste ändern
  python main.py check                      Batch-Hinweis "möglicher Tausch"
  python main.py sheet                      Tauschliste anzeigen / exportieren
  python main.py dashboard <matrikel>       Übersicht für eine Person
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich import box

console = Console()


def _setup_logging(level: str) -> None:
    """Installiert den RichHandler am Root-Logger (nur beim ersten Aufruf)."""
    from rich.logging import RichHandler

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _load_config():
    """Lädt die Konfiguration (Default, wenn keine Datei existiert)."""
    from config.manager import ConfigManager
    try:
        config = ConfigManager().load_or_default()
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    _setup_logging(config.log_level)
    return config


def _load_store_or_abort(config, json_path: Optional[str] = None):
    """Lädt den gespeicherten Datensatz oder bricht mit Fehlermeldung ab."""
    from data.store import StudentStore

    path = Path(json_path or config.data.roster_path)
    if not path.exists():
        console.print(
            f"[red]Kein Datensatz gefunden: {path}[/red]\n"
            "Verwenden Sie [bold]python main.py generate[/bold] "
            "oder [bold]python main.py import <datei>[/bold]."
        )
        sys.exit(1)
    try:
        return StudentStore.load_json(path, cohort_prefix=config.cohorts.prefix_length)
    except ValueError as e:
        # pydantic.ValidationError ist eine Unterklasse von ValueError
        _abort(f"Datensatz {path} ist ungültig:\n{e}")


def _abort(message: str) -> None:
    console.print(f"[red bold]{message}[/red bold]")
    sys.exit(1)


# ─── SETUP ────────────────────────────────────────────────────────────────────

@click.command("setup")
@click.option("--institution", default=None, help="Name der Hochschule.")
def cmd_setup(institution: Optional[str]):
    """Legt die Konfiguration mit Standardwerten an."""
    from config.defaults import default_swap_config
    from config.manager import ConfigManager

    mgr = ConfigManager()
    if not mgr.first_run_check():
        console.print("[yellow]Eine Konfiguration existiert bereits.[/yellow]")
        if not click.confirm("Mit Standardwerten überschreiben?", default=False):
            return

    config = default_swap_config()
    if institution is None:
        institution = click.prompt("Name der Hochschule", default=config.institution_name)
    config.institution_name = institution
    mgr.save(config)
    console.print("[bold green]Einrichtung abgeschlossen![/bold green]")
    console.print("Führen Sie jetzt [bold]python main.py generate[/bold] aus.")


# ─── CONFIG ───────────────────────────────────────────────────────────────────

@click.group("config")
def cmd_config():
    """Konfiguration anzeigen."""


@cmd_config.command("show")
def config_show():
    """Zeigt die aktuelle Konfiguration an."""
    config = _load_config()

    console.print(Panel(
        f"[bold]{config.institution_name}[/bold]  |  Log-Level: {config.log_level}",
        title="Konfiguration",
        border_style="cyan",
    ))

    mc = config.matching
    table = Table(title="Tausch-Suche", box=box.ROUNDED)
    table.add_column("Parameter")
    table.add_column("Wert", justify="right")
    table.add_row("Kandidaten pro Position", str(mc.candidate_cap))
    table.add_row("Kettenlänge min.", str(mc.min_rotation_length))
    table.add_row("Kettenlänge max.", str(mc.max_rotation_length))
    console.print(table)

    cc = config.cohorts
    console.print(
        f"\n[bold]Batches:[/bold] Präfixlänge {cc.prefix_length} | "
        f"Tausch nur im Batch: {'ja' if cc.restrict_to_cohort else 'nein'}"
    )
    console.print(f"[bold]Datensatz:[/bold] {config.data.roster_path}")


# ─── GENERATE ─────────────────────────────────────────────────────────────────

@click.command("generate")
@click.option("--seed", default=42, help="Zufalls-Seed für reproduzierbare Daten.")
@click.option("--sample", is_flag=True, default=False,
              help="Nur den kleinen Beispieldatensatz speichern.")
@click.option("--json-path", default=None, help="Zielpfad (Default: aus Config).")
def cmd_generate(seed: int, sample: bool, json_path: Optional[str]):
    """Erzeugt Testdaten und speichert sie als JSON."""
    config = _load_config()
    from models.roster import Roster

    if sample:
        from config.defaults import SAMPLE_STUDENTS
        roster = Roster(
            institution_name=config.institution_name,
            students=[dict(r) for r in SAMPLE_STUDENTS],
        )
    else:
        from data.fake_data import FakeRosterGenerator
        console.print("[bold]Testdaten werden generiert...[/bold]")
        gen = FakeRosterGenerator(config, seed=seed)
        roster = gen.generate()
        gen.print_summary(roster)

    out_path = Path(json_path or config.data.roster_path)
    roster.save_json(out_path)
    console.print(f"\n[dim]{roster.summary()}[/dim]")
    console.print(f"[green]✓[/green] Datensatz gespeichert: {out_path}")


# ─── TEMPLATE / IMPORT ────────────────────────────────────────────────────────

@click.command("template")
@click.option("--output", "-o", default="output/import_vorlage.xlsx",
              help="Ausgabepfad für die Excel-Vorlage.")
def cmd_template(output: str):
    """Erzeugt eine leere Excel-Import-Vorlage."""
    _load_config()
    from data.roster_import import generate_template

    out_path = Path(output)
    generate_template(out_path)
    console.print(f"[green]✓[/green] Vorlage gespeichert: {out_path}")
    console.print(
        "\nBlatt [cyan]Studierende[/cyan]: Matrikelnummer, Name, Telefon, E-Mail, "
        "Aktuelle Sektion, Wunschsektionen (Priorität), Batch (optional)"
    )


@click.command("import")
@click.argument("datei", type=click.Path(exists=True, path_type=Path))
@click.option("--json-path", default=None, help="Zielpfad (Default: aus Config).")
def cmd_import(datei: Path, json_path: Optional[str]):
    """Importiert Studierende aus einer Excel- oder CSV-Datei."""
    config = _load_config()
    from data.roster_import import RosterImportError, import_roster

    console.print(f"[bold]Importiere:[/bold] {datei}")
    try:
        store, report = import_roster(datei, config)
    except RosterImportError as e:
        _abort(f"Import fehlgeschlagen:\n{e}")

    report.print_rich()
    out_path = store.save_json(Path(json_path or config.data.roster_path))
    console.print(f"\n{store.roster.summary()}")
    console.print(f"[green]✓[/green] Daten gespeichert: {out_path}")


# ─── SUCHEN / ANFRAGEN ────────────────────────────────────────────────────────

def _resolve(config, store, roll: str, targets: tuple[str, ...]):
    from matching.resolver import SwapResolver
    from models.student import StudentNotFoundError

    resolver = SwapResolver.from_config(store, config)
    try:
        return resolver.find_swap(roll, list(targets) or None)
    except StudentNotFoundError as e:
        _abort(str(e))


@click.command("find")
@click.argument("roll")
@click.option("--target", "-t", "targets", multiple=True,
              help="Zielsektion (mehrfach möglich, Reihenfolge = Priorität).")
def cmd_find(roll: str, targets: tuple[str, ...]):
    """Sucht einen Tausch für eine Person (ändert nichts)."""
    config = _load_config()
    store = _load_store_or_abort(config)
    plan = _resolve(config, store, roll, targets)
    plan.print_rich()
    sys.exit(0 if plan.is_match else 2)


@click.command("request")
@click.argument("roll")
@click.option("--target", "-t", "targets", multiple=True,
              help="Zielsektion (mehrfach möglich, Reihenfolge = Priorität).")
def cmd_request(roll: str, targets: tuple[str, ...]):
    """Sucht einen Tausch und speichert ihn als offene Anfrage."""
    config = _load_config()
    store = _load_store_or_abort(config)
    plan = _resolve(config, store, roll, targets)
    plan.print_rich()
    if not plan.is_match:
        sys.exit(2)

    request = store.create_swap_request(plan)
    store.save_json()
    console.print(f"[green]✓[/green] Anfrage #{request.id} gespeichert.")


@click.command("cancel")
@click.argument("request_id", type=int)
def cmd_cancel(request_id: int):
    """Zieht eine offene Anfrage zurück."""
    config = _load_config()
    store = _load_store_or_abort(config)
    from data.store import SwapRequestError

    try:
        store.cancel_swap_request(request_id)
    except SwapRequestError as e:
        _abort(str(e))
    store.save_json()
    console.print(f"[green]✓[/green] Anfrage #{request_id} zurückgezogen.")


@click.command("commit")
@click.argument("request_id", type=int)
def cmd_commit(request_id: int):
    """Vollzieht eine offene Anfrage (prüft gegen den aktuellen Datenstand)."""
    config = _load_config()
    store = _load_store_or_abort(config)
    from data.store import StaleSwapError, SwapRequestError

    try:
        entries = store.commit_request(
            request_id, max_rotation_length=config.matching.max_rotation_length
        )
    except StaleSwapError as e:
        if e.report is not None:
            e.report.print_rich()
        _abort(str(e))
    except SwapRequestError as e:
        _abort(str(e))

    store.save_json()
    for h in entries:
        console.print(f"  {h.student_id}: {h.from_section} → {h.to_section}")
    console.print(f"[green]✓[/green] Anfrage #{request_id} vollzogen.")


@click.command("history")
@click.argument("roll")
def cmd_history(roll: str):
    """Zeigt die vollzogenen Wechsel einer Person."""
    config = _load_config()
    store = _load_store_or_abort(config)

    entries = store.history(roll)
    if not entries:
        console.print("[dim]Keine Wechsel vorhanden.[/dim]")
        return
    table = Table(title=f"Historie {roll}", box=box.ROUNDED)
    table.add_column("Datum")
    table.add_column("Von", justify="right")
    table.add_column("Nach", justify="right")
    table.add_column("Partner")
    table.add_column("Anfrage", justify="right")
    for h in entries:
        table.add_row(
            h.swap_date.strftime("%d.%m.%Y %H:%M"),
            h.from_section,
            h.to_section,
            h.swap_partner_id,
            f"#{h.request_id}" if h.request_id is not None else "–",
        )
    console.print(table)


@click.command("profile")
@click.argument("roll")
@click.option("--name", default=None)
@click.option("--phone", default=None)
@click.option("--email", default=None)
@click.option("--wish", "wishes", multiple=True,
              help="Neue Wunschliste (mehrfach, Reihenfolge = Priorität).")
@click.option("--clear-wishes", is_flag=True, default=False,
              help="Wunschliste leeren.")
def cmd_profile(roll, name, phone, email, wishes, clear_wishes):
    """Ändert Profilfelder und Wunschliste (nicht die aktuelle Sektion)."""
    config = _load_config()
    store = _load_store_or_abort(config)
    from models.student import StudentNotFoundError

    desired = [] if clear_wishes else (list(wishes) or None)
    try:
        student = store.update_profile(
            roll, name=name, phone_number=phone, email=email, desired_sections=desired
        )
    except StudentNotFoundError as e:
        _abort(str(e))
    except ValueError as e:
        _abort(f"Ungültige Eingabe: {e}")
    store.save_json()
    console.print(
        f"[green]✓[/green] {student.name} ({student.id}) | Sektion {student.current_section} | "
        f"Wünsche: {', '.join(student.desired_sections) or '–'}"
    )


# ─── ÜBERSICHTEN ──────────────────────────────────────────────────────────────

@click.command("check")
@click.option("--cohort", default=None, help="Nur diesen Batch prüfen.")
def cmd_check(cohort: Optional[str]):
    """Batch-Hinweis: Für wen gibt es (vermutlich) einen Tausch?"""
    config = _load_config()
    store = _load_store_or_abort(config)
    from matching.batch import BatchMatchChecker

    matches = BatchMatchChecker(
        store, restrict_to_cohort=config.cohorts.restrict_to_cohort
    ).check_all_matches(cohort=cohort)
    hits = sorted(k for k, v in matches.items() if v)
    console.print(f"[bold]{len(hits)}[/bold] von {len(matches)} mit möglichem Tausch")
    for student_id in hits:
        console.print(f"  [green]✓[/green] {student_id}")


@click.command("sheet")
@click.option("--cohort", default=None, help="Nur diesen Batch anzeigen.")
@click.option("--limit", default=None, type=int, help="Höchstens N Zeilen anzeigen.")
@click.option("--export", "do_export", is_flag=True, default=False,
              help="Zusätzlich als Excel-Datei speichern.")
@click.option("--output", "-o", default=None,
              help="Excel-Pfad (Default: <export_dir>/tauschliste_<batch>.xlsx).")
def cmd_sheet(cohort: Optional[str], limit: Optional[int], do_export: bool,
              output: Optional[str]):
    """Zeigt die Tauschliste (optional als Excel-Export)."""
    config = _load_config()
    store = _load_store_or_abort(config)
    from analysis.swap_sheet import build_swap_sheet

    sheet = build_swap_sheet(
        store, cohort=cohort, restrict_to_cohort=config.cohorts.restrict_to_cohort
    )
    sheet.print_rich(limit=limit)

    if do_export or output:
        from export.excel_export import ExcelExporter
        out_path = Path(output) if output else \
            Path(config.data.export_dir) / f"tauschliste_{cohort or 'alle'}.xlsx"
        ExcelExporter(sheet, config.institution_name).export(out_path)
        console.print(f"[green]✓[/green] Excel gespeichert: {out_path}")


@click.command("dashboard")
@click.argument("roll")
def cmd_dashboard(roll: str):
    """Übersicht für eine Person: Profil, Anfragen, Tauschliste des Batches."""
    config = _load_config()
    store = _load_store_or_abort(config)
    from analysis.swap_sheet import build_dashboard
    from models.student import StudentNotFoundError

    try:
        dashboard = build_dashboard(
            store, roll, restrict_to_cohort=config.cohorts.restrict_to_cohort
        )
    except StudentNotFoundError as e:
        _abort(str(e))
    dashboard.print_rich()


# ─── HAUPT-CLI ────────────────────────────────────────────────────────────────

@click.group()
def cli():
    """Sektionstausch: Direkt- und Ringtausch zwischen Studierenden.

    Starten Sie mit: python main.py setup
    """


def main():
    """Einstiegspunkt."""
    cli()


# Befehle registrieren
cli.add_command(cmd_setup)
cli.add_command(cmd_config)
cli.add_command(cmd_generate)
cli.add_command(cmd_template)
cli.add_command(cmd_import)
cli.add_command(cmd_find)
cli.add_command(cmd_request)
cli.add_command(cmd_cancel)
cli.add_command(cmd_commit)
cli.add_command(cmd_history)
cli.add_command(cmd_profile)
cli.add_command(cmd_check)
cli.add_command(cmd_sheet)
cli.add_command(cmd_dashboard)


if __name__ == "__main__":
    main()
