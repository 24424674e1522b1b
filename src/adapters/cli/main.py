"""
adapters.cli.main - CLI adapter for the DMD companion.

Thin terminal front end over the services built by ServiceFactory. The
logged-in user is persisted by the service layer itself (current-user key
in the SQLite store), so every command simply restores the session.

Commands
--------
  login       Sign in with one of the demo accounts
  logout      Sign out (your profile and saved inquiries are kept)
  whoami      Show the currently logged-in user
  profile     Show your patient profile
  setup       Fill in or edit your patient profile
  articles    Recent research articles            (requires profile)
  trials      Active clinical trials              (requires profile)
  drugs       FDA-approved therapies              (requires profile)
  interpret   AI analysis + chat about one item   (requires profile, LLM)
  inquiries   List saved inquiries
  inquiry     Show one saved inquiry
  forget      Delete one saved inquiry

Usage
-----
  python run_cli.py login
  python run_cli.py articles --months 3
  python run_cli.py interpret trial NCT01234567
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Optional

# ── Ensure src/ is on the path when run as a script ──
_SRC = Path(__file__).resolve().parent.parent.parent
sys.path.insert(0, str(_SRC))

import typer
from rich import box
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table

from application.context import SessionContext
from application.services.interpreter import Consultation
from domain.entities import SavedInquiry
from domain.exceptions import AuthenticationError, DomainError
from domain.models import (
    AgeGroup,
    AmbulatoryStatus,
    ChatRole,
    Credentials,
    InterestArea,
    Profile,
    Region,
    SteroidUse,
)
from factory import ServiceFactory
from infrastructure.config import Settings
from infrastructure.logging_setup import setup_logging

__version__ = "1.0.0"

console = Console()
app = typer.Typer(
    help="DMD Companion CLI",
    add_completion=False,
    no_args_is_help=True,
)

_state: dict[str, Optional[str]] = {"language": None}


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

def _settings() -> Settings:
    return Settings.from_env()


async def _make_factory() -> ServiceFactory:
    factory = ServiceFactory(_settings())
    await factory.initialize()
    return factory


async def _restore(factory: ServiceFactory, *, required: bool = True) -> SessionContext:
    """Rebuild the SessionContext from the persisted current user."""
    language = _state["language"] or factory.config.language
    ctx = SessionContext(language=language)
    restored = await factory.create_authentication_service().restore(ctx)
    if required and not restored:
        console.print("[bold red]Not logged in.[/bold red] Run [bold]login[/bold] first.")
        raise typer.Exit(code=1)
    return ctx


def _require_profile(ctx: SessionContext) -> Profile:
    if not ctx.has_profile:
        console.print(
            "[bold yellow]Your profile is not set up yet.[/bold yellow] "
            "Run [bold]setup[/bold] so results can be personalized."
        )
        raise typer.Exit(code=1)
    return ctx.profile


def _choose(label: str, options: list, language: str, default=None):
    """Numbered single choice over an enum's members."""
    for index, option in enumerate(options, start=1):
        console.print(f"  [cyan]{index}[/cyan]. {option.label(language)}")
    default_index = options.index(default) + 1 if default in options else None
    choice = IntPrompt.ask(
        f"[bold]{label}[/bold]",
        choices=[str(i) for i in range(1, len(options) + 1)],
        default=default_index,
    )
    return options[choice - 1]


def _profile_table(profile: Profile, language: str) -> Table:
    t = Table(box=box.SIMPLE, show_header=False, padding=(0, 2))
    t.add_column("Field", style="bold")
    t.add_column("Value")
    age = profile.age_group.label(language)
    if profile.age is not None:
        age = f"{age} ({profile.age})"
    t.add_row("Age", age)
    t.add_row("Genetic profile", profile.genetic_profile)
    t.add_row("Ambulatory status", profile.ambulatory_status.label(language))
    t.add_row("Corticosteroids", profile.on_steroids.label(language))
    t.add_row("Region", profile.region.label(language))
    t.add_row(
        "Interests",
        ", ".join(i.label(language) for i in profile.interests) or "[dim]none[/dim]",
    )
    if profile.clinical_notes:
        t.add_row("Clinical notes", profile.clinical_notes)
    return t


def _print_inquiry(inquiry: SavedInquiry) -> None:
    console.print(Panel(
        Markdown(inquiry.summary or "_No analysis saved._"),
        title=f"{inquiry.entity_title}  [dim]({inquiry.date})[/dim]",
        border_style="green",
    ))
    for turn in inquiry.chat_history:
        if turn.role == ChatRole.USER:
            console.print(f"[bold cyan]You:[/bold cyan] {turn.text}")
        else:
            console.print(Panel(Markdown(turn.text), border_style="blue"))


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"dmd-companion v{__version__}")
        raise typer.Exit()


# ---------------------------------------------------------------------------
# Commands: Auth
# ---------------------------------------------------------------------------

@app.command()
def login() -> None:
    """Sign in to your account."""
    username = Prompt.ask("[bold]Username[/bold]")
    password = Prompt.ask("[bold]Password[/bold]", password=True)

    async def _run() -> None:
        factory = await _make_factory()
        ctx = SessionContext(language=_state["language"] or factory.config.language)
        auth_svc = factory.create_authentication_service()
        try:
            with console.status("[bold cyan]Signing in…", spinner="dots"):
                await auth_svc.login(ctx, Credentials(username=username, password=password))
        except AuthenticationError:
            console.print(
                "[bold red]Login failed.[/bold red] Check your username and password."
            )
            raise typer.Exit(code=1)

        hint = (
            "Run [bold]articles[/bold], [bold]trials[/bold] or [bold]drugs[/bold] to browse."
            if ctx.has_profile
            else "Run [bold]setup[/bold] to create your patient profile."
        )
        console.print(Panel(
            f"[bold green]Logged in![/bold green] Welcome, [bold]{username}[/bold].\n{hint}",
            border_style="green",
        ))

    asyncio.run(_run())


@app.command()
def logout() -> None:
    """Sign out. Your profile and saved inquiries stay on this device."""
    async def _run() -> None:
        factory = await _make_factory()
        ctx = await _restore(factory, required=False)
        if not ctx.is_authenticated:
            console.print("[dim]Not currently logged in.[/dim]")
            return
        if Confirm.ask(f"Sign out [bold]{ctx.username}[/bold]?"):
            await factory.create_authentication_service().logout(ctx)
            console.print("[green]Logged out.[/green]")

    asyncio.run(_run())


@app.command()
def whoami() -> None:
    """Show the currently logged-in user."""
    async def _run() -> None:
        factory = await _make_factory()
        ctx = await _restore(factory, required=False)
        if not ctx.is_authenticated:
            console.print("[dim]Not logged in.[/dim]")
            return
        status = "profile set up" if ctx.has_profile else "no profile yet"
        inquiries = len(ctx.user_data.saved_inquiries) if ctx.user_data else 0
        console.print(
            f"Logged in as [bold]{ctx.username}[/bold] ({status}, {inquiries} saved inquiries)"
        )

    asyncio.run(_run())


# ---------------------------------------------------------------------------
# Commands: Profile
# ---------------------------------------------------------------------------

@app.command()
def profile() -> None:
    """Show your patient profile."""
    async def _run() -> None:
        factory = await _make_factory()
        ctx = await _restore(factory)
        saved = factory.create_profile_service().get_profile(ctx)
        if saved is None:
            console.print("[dim]No profile yet. Run[/dim] [bold]setup[/bold][dim].[/dim]")
            return
        console.print(Panel(
            _profile_table(saved, ctx.language), title="Patient Profile", border_style="blue",
        ))

    asyncio.run(_run())


@app.command()
def setup() -> None:
    """Fill in or edit your patient profile."""
    async def _run() -> None:
        factory = await _make_factory()
        ctx = await _restore(factory)
        profile_svc = factory.create_profile_service()
        draft = profile_svc.draft(ctx)
        lang = ctx.language

        console.print(Panel("[bold]Patient Profile[/bold]", border_style="blue"))

        age_text = Prompt.ask(
            "[bold]Exact age[/bold] (leave empty to pick an age group)",
            default=str(draft.age) if draft.age is not None else "",
        )
        if age_text.strip().isdigit():
            draft.age = int(age_text)
            draft.age_group = None
        else:
            draft.age = None
            draft.age_group = _choose("Age group", list(AgeGroup), lang, draft.age_group)

        draft.genetic_profile = Prompt.ask(
            "[bold]Genetic mutation[/bold] (e.g. exon 51 deletion)",
            default=draft.genetic_profile,
        )
        draft.ambulatory_status = _choose(
            "Ambulatory status", list(AmbulatoryStatus), lang, draft.ambulatory_status,
        )
        draft.on_steroids = _choose(
            "Taking corticosteroids", list(SteroidUse), lang, draft.on_steroids or SteroidUse.UNSURE,
        )
        draft.region = _choose("Region", list(Region), lang, draft.region)

        console.print("[bold]Interests[/bold] (toggle by number, empty line to finish)")
        while True:
            for index, interest in enumerate(InterestArea, start=1):
                mark = "[green]x[/green]" if interest in draft.interests else " "
                console.print(f"  [{mark}] [cyan]{index}[/cyan]. {interest.label(lang)}")
            picked = Prompt.ask("Toggle", default="")
            if not picked.strip():
                break
            if picked.isdigit() and 1 <= int(picked) <= len(InterestArea):
                draft.toggle_interest(list(InterestArea)[int(picked) - 1])

        draft.clinical_notes = Prompt.ask(
            "[bold]Clinical notes[/bold] (optional)", default=draft.clinical_notes,
        )

        with console.status("[bold cyan]Saving…", spinner="dots"):
            saved = await profile_svc.submit(ctx, draft)
        if saved is None:
            console.print(
                f"[bold red]Profile not saved.[/bold red] Missing: {', '.join(draft.missing_fields)}"
            )
            raise typer.Exit(code=1)
        console.print(Panel(_profile_table(saved, lang), title="Saved", border_style="green"))

    asyncio.run(_run())


# ---------------------------------------------------------------------------
# Commands: Content feeds (requires profile)
# ---------------------------------------------------------------------------

@app.command()
def articles(
    months: int = typer.Option(1, "--months", "-m", min=1, help="Look back this many months (1, 3, 12)."),
) -> None:
    """Recent research articles, your interest areas first."""
    async def _run() -> None:
        factory = await _make_factory()
        ctx = await _restore(factory)
        _require_profile(ctx)

        with console.status("[bold cyan]Searching PubMed…", spinner="dots"):
            feed = await factory.create_content_service().load_articles(ctx, months)
        if feed is None:
            return

        if feed.is_fallback:
            console.print(
                "[yellow]No recent articles could be loaded. Showing sample articles.[/yellow]"
            )
        t = Table(box=box.SIMPLE_HEAD, title=f"Articles, last {months} month(s)")
        t.add_column("ID", style="cyan", no_wrap=True)
        t.add_column("Type")
        t.add_column("Title")
        t.add_column("Journal", style="dim")
        t.add_column("Date", no_wrap=True)
        for article in feed.articles:
            t.add_row(
                article.id,
                ", ".join(tag.label(ctx.language) for tag in article.tags),
                article.title,
                article.journal,
                article.publication_date,
            )
        console.print(t)
        console.print("[dim]Run[/dim] [bold]interpret article <ID>[/bold] [dim]for an AI explanation.[/dim]")

    asyncio.run(_run())


@app.command()
def trials() -> None:
    """Clinical trials that are recruiting or active."""
    async def _run() -> None:
        factory = await _make_factory()
        ctx = await _restore(factory)
        patient = _require_profile(ctx)

        with console.status("[bold cyan]Searching ClinicalTrials.gov…", spinner="dots"):
            listings = await factory.create_content_service().load_trials(ctx)
        if listings is None:
            return
        if not listings:
            console.print("[yellow]No active trials could be loaded right now.[/yellow]")
            return

        t = Table(box=box.SIMPLE_HEAD, title="Active clinical trials")
        t.add_column("NCT ID", style="cyan", no_wrap=True)
        t.add_column("Status")
        t.add_column("Phase")
        t.add_column("Title")
        t.add_column(patient.region.label(ctx.language), justify="center")
        for listing in listings:
            fields = listing.display_fields()
            t.add_row(
                fields["id"],
                fields["status"],
                fields["phase"],
                fields["title"],
                "[green]✓[/green]" if listing.matches_region else "",
            )
        console.print(t)

    asyncio.run(_run())


@app.command()
def drugs() -> None:
    """FDA-approved DMD therapies."""
    async def _run() -> None:
        factory = await _make_factory()
        ctx = await _restore(factory)
        _require_profile(ctx)

        approved = await factory.create_content_service().load_drugs(ctx)
        if approved is None:
            return
        t = Table(box=box.SIMPLE_HEAD, title="FDA-approved therapies")
        t.add_column("Brand", style="cyan")
        t.add_column("Generic name")
        t.add_column("Manufacturer", style="dim")
        t.add_column("Approved", no_wrap=True)
        for drug in approved:
            t.add_row(
                drug.localized_brand_name(ctx.language),
                drug.generic_name,
                drug.manufacturer,
                drug.approval_date,
            )
        console.print(t)

    asyncio.run(_run())


# ---------------------------------------------------------------------------
# Commands: AI consultation
# ---------------------------------------------------------------------------

async def _chat_loop(consultation: Consultation) -> bool:
    """Follow-up questions until the user leaves. True when they typed /save."""
    console.print(
        "[dim]Ask a follow-up question, [bold]/save[/bold] to save, "
        "[bold]exit[/bold] to stop.[/dim]"
    )
    while True:
        try:
            user_input = Prompt.ask("\n[bold cyan]You[/bold cyan]")
        except (KeyboardInterrupt, EOFError):
            console.print()
            return False

        text = user_input.strip()
        if text.lower() == "/save":
            return True
        if text.lower() in ("exit", "quit", "q"):
            return False
        if not text:
            continue

        with console.status("[bold cyan]Thinking…", spinner="dots"):
            reply = await consultation.ask(text)
        if reply is not None:
            console.print(Panel(Markdown(reply), title="AI", border_style="blue"))


@app.command()
def interpret(
    kind: str = typer.Argument(..., help="article, trial or drug"),
    entity_id: str = typer.Argument(..., help="PMID, NCT ID or drug brand name"),
    months: int = typer.Option(1, "--months", "-m", min=1, help="Article search window."),
) -> None:
    """AI analysis of one article, trial or drug, then a follow-up chat."""
    kind = kind.lower().strip()
    if kind not in ("article", "trial", "drug"):
        console.print("[bold red]Kind must be one of: article, trial, drug.[/bold red]")
        raise typer.Exit(code=2)

    async def _run() -> None:
        factory = await _make_factory()
        ctx = await _restore(factory)
        _require_profile(ctx)

        with console.status("[bold cyan]Loading…", spinner="dots"):
            entity = await factory.create_content_service().find_entity(
                ctx, kind, entity_id, months,
            )
        if entity is None:
            console.print(f"[bold red]No {kind} with id '{entity_id}' found.[/bold red]")
            raise typer.Exit(code=1)

        try:
            interpreter = factory.create_interpreter_service()
        except ValueError as e:
            console.print(f"[bold red]LLM not configured:[/bold red] {e}")
            raise typer.Exit(code=1)

        consultation = interpreter.open(ctx, entity)
        with console.status("[bold cyan]Analyzing…", spinner="dots"):
            analysis = await consultation.start()
        console.print(Panel(
            Markdown(analysis or ""), title=entity.display_title, border_style="green",
        ))

        save = await _chat_loop(consultation)
        if not save:
            save = Confirm.ask("Save this consultation?", default=False)
        if save:
            inquiry = await interpreter.save(ctx, consultation)
            console.print(f"[green]Saved as[/green] [bold]{inquiry.id}[/bold]")
        consultation.close()

    asyncio.run(_run())


# ---------------------------------------------------------------------------
# Commands: Saved inquiries
# ---------------------------------------------------------------------------

@app.command()
def inquiries() -> None:
    """List your saved inquiries, newest first."""
    async def _run() -> None:
        factory = await _make_factory()
        ctx = await _restore(factory)
        saved = await factory.create_inquiry_service().list_inquiries(ctx)
        if not saved:
            console.print("[dim]No saved inquiries yet.[/dim]")
            return
        t = Table(box=box.SIMPLE_HEAD, title="Saved inquiries")
        t.add_column("ID", style="cyan", no_wrap=True)
        t.add_column("Date", no_wrap=True)
        t.add_column("Title")
        t.add_column("Messages", justify="right")
        for inquiry in saved:
            t.add_row(inquiry.id, inquiry.date, inquiry.entity_title, str(len(inquiry.chat_history)))
        console.print(t)

    asyncio.run(_run())


@app.command()
def inquiry(inquiry_id: str = typer.Argument(..., help="Inquiry ID from `inquiries`.")) -> None:
    """Show one saved inquiry."""
    async def _run() -> None:
        factory = await _make_factory()
        ctx = await _restore(factory)
        found = await factory.create_inquiry_service().get_inquiry(ctx, inquiry_id)
        if found is None:
            console.print(f"[bold red]No saved inquiry '{inquiry_id}'.[/bold red]")
            raise typer.Exit(code=1)
        _print_inquiry(found)

    asyncio.run(_run())


@app.command()
def forget(inquiry_id: str = typer.Argument(..., help="Inquiry ID from `inquiries`.")) -> None:
    """Delete one saved inquiry."""
    async def _run() -> None:
        factory = await _make_factory()
        ctx = await _restore(factory)
        if not Confirm.ask(f"Delete inquiry [bold]{inquiry_id}[/bold]?"):
            return
        if await factory.create_inquiry_service().delete_inquiry(ctx, inquiry_id):
            console.print("[green]Deleted.[/green]")
        else:
            console.print(f"[bold red]No saved inquiry '{inquiry_id}'.[/bold red]")
            raise typer.Exit(code=1)

    asyncio.run(_run())


# ---------------------------------------------------------------------------
# Global options
# ---------------------------------------------------------------------------

@app.callback()
def _callback(
    version: bool = typer.Option(
        False, "--version", "-v",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    lang: Optional[str] = typer.Option(
        None, "--lang", "-l",
        help="Answer language: zh or en (default: PORTAL_LANGUAGE).",
    ),
) -> None:
    """DMD Companion CLI"""
    settings = _settings()
    setup_logging(settings)
    _state["language"] = lang


def main() -> None:
    """Console-script entry point."""
    try:
        app()
    except DomainError as e:
        console.print(f"[bold red]{e}[/bold red]")
        sys.exit(1)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    main()
