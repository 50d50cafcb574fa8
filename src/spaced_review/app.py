"""Interactive CLI application."""
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from spaced_review.catalog import (
    add_item, create_problem_set, get_item, get_review_history, list_problem_sets,
)
from spaced_review.config import settings
from spaced_review.db import init_db, utcnow
from spaced_review.errors import ItemNotFound, SchedulerError, SetNotFound, StoreUnavailable
from spaced_review.logging import configure_logging
from spaced_review.scheduler import Scheduler
from spaced_review.store import SQLiteReviewStore

console = Console()


class SessionExitRequested(Exception):
    """Raised when the user leaves a review session early."""


def session_prompt(prompt: str, **kwargs) -> str:
    answer = Prompt.ask(prompt, **kwargs)
    if answer.strip().lower() in ("q", "menu"):
        raise SessionExitRequested()
    return answer


def show_welcome():
    console.print(Panel(
        "[bold]Spaced Review[/bold]\n[dim]Review your problem sets on a forgetting-curve schedule[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu(due_count: int):
    console.print(f"\n[bold]{due_count}[/bold] item(s) due for review.")
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("review", "Review due items"),
        ("due", "Show the due queue"),
        ("sets", "List problem sets"),
        ("new-set", "Create a problem set"),
        ("add", "Add an item to a set"),
        ("history", "Answer history of an item"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def choose_set(db_path: str, owner_id: str) -> Optional[str]:
    sets = list_problem_sets(db_path, owner_id)
    if not sets:
        console.print("[yellow]No problem sets yet. Use 'new-set' first.[/yellow]")
        return None
    for i, s in enumerate(sets, 1):
        console.print(f"  [cyan]{i}[/cyan]) {s['name']} ({s['item_count']} items)")
    choice = Prompt.ask("Select set", choices=[str(i) for i in range(1, len(sets) + 1)])
    return sets[int(choice) - 1]["id"]


def run_review_session(db_path: str, scheduler: Scheduler, owner_id: str, item_ids: list) -> int:
    """Walk the given items, recording one answer each. Returns answers recorded."""
    if not item_ids:
        console.print("[green]Nothing due right now. Nice work![/green]")
        return 0
    console.print(f"\n[bold]Review Session[/bold] — {len(item_ids)} items\n")
    recorded = 0
    for i, item_id in enumerate(item_ids, 1):
        try:
            item = get_item(db_path, item_id, owner_id)
        except ItemNotFound:
            console.print("[dim]Item was deleted, skipping.[/dim]")
            continue
        console.print(Panel(item.question_image_url or "(no question image)",
                            title=f"Question {i}/{len(item_ids)}", border_style="cyan"))
        session_prompt("[dim]Press Enter to reveal answer[/dim]", default="")
        console.print(Panel(item.answer_image_url or "(no answer image)", border_style="green"))
        answer = session_prompt("Did you remember it?", choices=["y", "n", "q"])
        state = scheduler.record_answer(item_id, owner_id, answer == "y", utcnow())
        recorded += 1
        console.print(f"[dim]Next review in {state.interval_days} day(s).[/dim]\n")
    return recorded


def cmd_review(db_path: str, scheduler: Scheduler, owner_id: str):
    queue = scheduler.get_due_queue(owner_id, utcnow(), limit=settings.session_size)
    try:
        run_review_session(db_path, scheduler, owner_id, list(queue))
    except SessionExitRequested:
        console.print("[dim]Session ended.[/dim]")


def cmd_due(db_path: str, scheduler: Scheduler, owner_id: str):
    set_id = None
    if Prompt.ask("Scope", choices=["all", "set"], default="all") == "set":
        set_id = choose_set(db_path, owner_id)
        if set_id is None:
            return
    queue = scheduler.get_due_queue(owner_id, utcnow(), set_id=set_id)
    if not queue:
        console.print("[green]Nothing due.[/green]")
        return
    table = Table(title="Due Queue")
    table.add_column("#", justify="right")
    table.add_column("Item")
    for i, item_id in enumerate(queue, 1):
        table.add_row(str(i), item_id)
    console.print(table)


def cmd_sets(db_path: str, owner_id: str):
    sets = list_problem_sets(db_path, owner_id)
    if not sets:
        console.print("[yellow]No problem sets yet.[/yellow]")
        return
    table = Table(title="Problem Sets")
    table.add_column("Name", style="cyan")
    table.add_column("Items", justify="right")
    table.add_column("Description")
    for s in sets:
        table.add_row(s["name"], str(s["item_count"]), s["description"] or "")
    console.print(table)


def cmd_new_set(db_path: str, owner_id: str):
    name = Prompt.ask("Set name")
    description = Prompt.ask("Description", default="")
    try:
        problem_set = create_problem_set(db_path, owner_id, name, description or None)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        return
    console.print(f"[green]Created set '{problem_set.name}'.[/green]")


def cmd_add(db_path: str, owner_id: str):
    set_id = choose_set(db_path, owner_id)
    if set_id is None:
        return
    question = Prompt.ask("Question image URL")
    answer = Prompt.ask("Answer image URL")
    item = add_item(db_path, set_id, owner_id, question or None, answer or None,
                    initial_ease=settings.initial_ease)
    console.print(f"[green]Added item {item.id}, due now.[/green]")


def cmd_history(db_path: str, owner_id: str):
    item_id = Prompt.ask("Item id")
    history = get_review_history(db_path, item_id, owner_id)
    if not history:
        console.print("[yellow]No answers recorded yet.[/yellow]")
        return
    table = Table(title=f"History of {item_id}")
    table.add_column("Answered")
    table.add_column("Result")
    table.add_column("Interval", justify="right")
    table.add_column("Ease", justify="right")
    table.add_column("Next due")
    for h in history:
        result = "[green]remembered[/green]" if h["remembered"] else "[red]forgot[/red]"
        table.add_row(
            h["answered_at"].strftime("%Y-%m-%d %H:%M"), result,
            f"{h['interval_days']}d", f"{h['ease_factor']:.2f}",
            h["next_due_at"].strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)


def main():
    configure_logging(settings.log_level)
    db_path = settings.db_path
    init_db(db_path)
    store = SQLiteReviewStore(db_path, timeout=settings.store_timeout_seconds)
    scheduler = Scheduler(store, settings)

    show_welcome()
    owner_id = Prompt.ask("Who is studying?", default="local").strip() or "local"

    while True:
        try:
            show_menu(scheduler.count_due(owner_id, utcnow()))
            choice = Prompt.ask("\n[bold]>[/bold]", default="review").strip().lower()
            if choice == "review":
                cmd_review(db_path, scheduler, owner_id)
            elif choice == "due":
                cmd_due(db_path, scheduler, owner_id)
            elif choice == "sets":
                cmd_sets(db_path, owner_id)
            elif choice == "new-set":
                cmd_new_set(db_path, owner_id)
            elif choice == "add":
                cmd_add(db_path, owner_id)
            elif choice == "history":
                cmd_history(db_path, owner_id)
            elif choice in ("quit", "exit", "q"):
                console.print("[dim]See you at your next review![/dim]")
                break
            else:
                console.print("[red]Unknown command. Try again.[/red]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except StoreUnavailable as e:
            console.print(f"[red]Storage is unavailable, try again shortly: {e}[/red]")
        except (ItemNotFound, SetNotFound) as e:
            console.print(f"[yellow]{e}[/yellow]")
        except SchedulerError as e:
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
