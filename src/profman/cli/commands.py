"""CLI commands for ProfMan.

Commands:
- serve: Run the Web API with uvicorn
- init-db: Create the SQLite document table
- create-user: Create an admin, professor or student account
- seed: Load demo users, subjects, a branch and a quiz
- list-users: Show users in a table
"""

from pathlib import Path

import typer
import uvicorn
from rich.console import Console
from rich.table import Table

from profman.cli.seed import seed_demo_data
from profman.config.app_config import load_app_config
from profman.core.errors import ProfmanError
from profman.core.users import ROLES, UserService
from profman.db import SqliteDocumentStore, get_store, set_store
from profman.utils.logging_setup import configure_logging
from profman.utils.validators import password_problems

app = typer.Typer(
    name="profman",
    help="ProfMan course-management backend.",
    no_args_is_help=True,
)

console = Console()


@app.callback()
def main(
    db: Path | None = typer.Option(None, "--db", help="SQLite database file (overrides config)"),
) -> None:
    """Select the document store for every command."""
    configure_logging(load_app_config().env)
    if db is not None:
        set_store(SqliteDocumentStore(db))


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(5000, "--port", "-p", help="Port"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
) -> None:
    """Run the Web API."""
    console.print(f"[blue]Starting ProfMan API on http://{host}:{port}[/blue]")
    uvicorn.run("profman.web.api:create_app", factory=True, host=host, port=port, reload=reload)


@app.command(name="init-db")
def init_db() -> None:
    """Create the document table (SQLite backend)."""
    store = get_store()
    if not isinstance(store, SqliteDocumentStore):
        console.print(f"[yellow]⚠ Backend '{store.backend}' needs no initialisation[/yellow]")
        return
    store.init_db()
    console.print(f"[green]✓ Database ready:[/green] {store.db_path}")


@app.command(name="create-user")
def create_user(
    email: str = typer.Argument(..., help="Login email"),
    display_name: str = typer.Option(..., "--name", "-n", help="Display name"),
    role: str = typer.Option("student", "--role", "-r", help="admin, professor or student"),
    password: str | None = typer.Option(None, "--password", help="Password (students default to their number)"),
    student_number: str | None = typer.Option(None, "--student-number", "-s", help="Student number"),
) -> None:
    """Create a user account."""
    if role not in ROLES:
        console.print(f"[red]✗ Unknown role: {role}[/red]")
        raise typer.Exit(code=1)

    if role == "student":
        if not student_number:
            console.print("[red]✗ Students need --student-number[/red]")
            raise typer.Exit(code=1)
        password = password or student_number
    elif not password:
        console.print("[red]✗ --password is required for admins and professors[/red]")
        raise typer.Exit(code=1)
    else:
        problems = password_problems(password)
        if problems:
            for problem in problems:
                console.print(f"[red]✗ {problem}[/red]")
            raise typer.Exit(code=1)

    try:
        user = UserService().create_user(
            email=email,
            display_name=display_name,
            role=role,
            password=password,
            student_number=student_number,
            requires_password_change=True if role == "student" else None,
        )
    except ProfmanError as e:
        console.print(f"[red]✗ {e.message}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ Created {role}[/green] {user.email}")
    console.print(f"  [dim]id:[/dim] {user.id}")


@app.command()
def seed() -> None:
    """Load demo data (idempotent)."""
    summary = seed_demo_data()
    console.print("[green]✓ Demo data loaded[/green]")
    console.print(f"  [dim]users:[/dim]    {summary.users}")
    console.print(f"  [dim]subjects:[/dim] {summary.subjects}")
    console.print(f"  [dim]branches:[/dim] {summary.branches}")
    console.print(f"  [dim]quizzes:[/dim]  {summary.quizzes}")
    if summary.skipped:
        console.print(f"  [dim]already present:[/dim] {', '.join(summary.skipped)}")


@app.command(name="list-users")
def list_users(
    role: str | None = typer.Option(None, "--role", "-r", help="Filter by role"),
    include_deleted: bool = typer.Option(False, "--include-deleted", help="Show deleted users"),
    search: str | None = typer.Option(None, "--search", help="Search email, name, student number"),
) -> None:
    """Show users in a table."""
    result = UserService().list_users(
        page=1, limit=1000, role=role, include_deleted=include_deleted, search=search
    )
    if not result.items:
        console.print("[yellow]No users found[/yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Email", style="cyan")
    table.add_column("Name")
    table.add_column("Role", justify="center")
    table.add_column("Student #")
    table.add_column("Status", justify="center")

    for user in result.items:
        if user.is_deleted:
            status_icon = "[red]deleted[/red]"
        elif user.is_active:
            status_icon = "[green]active[/green]"
        else:
            status_icon = "[yellow]inactive[/yellow]"
        table.add_row(user.email, user.display_name, user.role, user.student_number or "", status_icon)

    console.print(table)
    console.print(f"[dim]{result.total} user(s)[/dim]")


if __name__ == "__main__":
    app()
