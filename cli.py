import typer
from rich.console import Console
from rich.table import Table
from typing import Optional
from datetime import datetime, date
import asyncio

from studyplanner.config import settings
from studyplanner.database import SessionLocal, init_db
from studyplanner.crud import (
    create_subject, get_subject,
    create_exam, get_exams
)
from studyplanner.errors import StudyPlannerError
from studyplanner.logging_config import configure_logging
from studyplanner.plan_store import PlanStore, plan_date_range
from studyplanner.planning import generate_study_plan
from studyplanner.progress import overall_progress, subjects_progress, day_progress, today_plan
from studyplanner.scheduler import get_scheduler
from studyplanner.schemas import SubjectCreate, ExamCreate, ExamInput, StudyPlanRequest, Task
from studyplanner.storage import LocalObjectStorage

app = typer.Typer(help="Exam Study Planner CLI - AI-powered study plans for upcoming exams")
console = Console()

USER_OPTION = typer.Option(None, help="User ID (defaults to the local user)")


def _user(user_id: Optional[str]) -> str:
    return user_id or settings.local_user_id


def _parse_date(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise typer.BadParameter(f"'{value}' is not a YYYY-MM-DD date")


def _print_plan(store: PlanStore):
    plan = store.plan
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Date", style="cyan", width=12)
    table.add_column("Task ID", style="dim")
    table.add_column("Task", style="green")
    table.add_column("Technique", style="yellow")
    table.add_column("Duration", style="blue", justify="right")

    for day in plan.daily_plan:
        done = day_progress(day, plan.completed_tasks)
        label = f"{day.date}\n{day.day}\n{done.completed}/{done.total}"
        for i, task in enumerate(day.tasks):
            mark = "[green]✓[/green]" if plan.completed_tasks.get(task.id) is True else " "
            table.add_row(
                label if i == 0 else "",
                task.id[:8],
                f"{mark} [{task.subject}] {task.text}",
                task.technique,
                f"{task.time_estimate} min"
            )
        if not day.tasks:
            table.add_row(label, "", "(no tasks)", "", "")

    console.print(table)

    if plan.tips:
        console.print("\n[bold]Tips:[/bold]")
        for tip in plan.tips:
            console.print(f"  - {tip}")


def _resolve_task_id(store: PlanStore, prefix: str) -> str:
    matches = [
        task.id
        for day in store.plan.daily_plan
        for task in day.tasks
        if task.id.startswith(prefix)
    ]
    if len(matches) != 1:
        raise typer.BadParameter(f"Task ID '{prefix}' matches {len(matches)} tasks")
    return matches[0]


def _load_store(user_id: str) -> Optional[PlanStore]:
    store = PlanStore(SessionLocal, user_id)
    if store.load() is None:
        console.print(f"[yellow]No active study plan for {user_id}. Run generate-plan first.[/yellow]")
        return None
    return store


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")):
    configure_logging("DEBUG" if verbose else None)


@app.command()
def init():
    """Initialize database tables"""
    init_db()
    console.print("[green]✓[/green] Database initialized successfully!")


@app.command()
def reset_db():
    """Delete all data and reinitialize database (WARNING: irreversible!)"""
    confirm = typer.confirm("⚠️  This will DELETE ALL DATA. Are you sure?")
    if not confirm:
        console.print("[yellow]Cancelled.[/yellow]")
        return

    from studyplanner.database import engine, Base
    import studyplanner.models  # noqa: F401
    console.print("[yellow]Dropping all tables...[/yellow]")
    Base.metadata.drop_all(bind=engine)
    console.print("[yellow]Recreating tables...[/yellow]")
    Base.metadata.create_all(bind=engine)
    console.print("[green]✓[/green] Database reset complete! All data deleted.")


@app.command()
def add_subject(
    name: str = typer.Option(..., prompt="Subject name"),
    color: str = typer.Option("#6366f1", help="Display color"),
    user_id: Optional[str] = USER_OPTION
):
    """Add a subject"""
    db = SessionLocal()
    try:
        subject = create_subject(db, _user(user_id), SubjectCreate(name=name.strip(), color=color))
        console.print(f"[green]✓[/green] Subject created! ID: {subject.id}")
    finally:
        db.close()


@app.command()
def add_exam(
    subject_id: int = typer.Option(..., prompt="Subject ID"),
    name: str = typer.Option(..., prompt="Exam name"),
    exam_date: str = typer.Option(..., prompt="Exam date (YYYY-MM-DD)"),
    description: Optional[str] = typer.Option(None, help="Syllabus or notes"),
    user_id: Optional[str] = USER_OPTION
):
    """Add an exam to a subject"""
    user_id = _user(user_id)
    parsed_date = _parse_date(exam_date)
    if parsed_date < date.today():
        console.print("[red]✗[/red] Exam date cannot be in the past")
        raise typer.Exit(1)

    db = SessionLocal()
    try:
        if get_subject(db, user_id, subject_id) is None:
            console.print(f"[red]✗[/red] Subject ID {subject_id} not found")
            raise typer.Exit(1)
        exam = create_exam(db, user_id, subject_id, ExamCreate(
            exam_name=name.strip(),
            exam_date=parsed_date,
            description=description
        ))
        console.print(f"[green]✓[/green] Exam created! ID: {exam.id} on {exam.exam_date}")
    finally:
        db.close()


@app.command()
def list_exams(user_id: Optional[str] = USER_OPTION):
    """List subjects and their upcoming exams"""
    db = SessionLocal()
    try:
        exams = get_exams(db, _user(user_id))
        if not exams:
            console.print("[yellow]No exams yet. Add one with add-exam.[/yellow]")
            return

        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("ID", justify="right")
        table.add_column("Subject", style="green")
        table.add_column("Exam", style="yellow")
        table.add_column("Date", style="cyan")
        table.add_column("Days left", justify="right")

        today = date.today()
        for exam in exams:
            table.add_row(
                str(exam.id),
                exam.subject.name,
                exam.exam_name,
                str(exam.exam_date),
                str((exam.exam_date - today).days)
            )
        console.print(table)
    finally:
        db.close()


@app.command()
def generate_plan(
    hours: float = typer.Option(..., prompt="Study hours per day"),
    start_date: Optional[str] = typer.Option(None, help="Plan start date (YYYY-MM-DD). Default: today"),
    notes: Optional[str] = typer.Option(None, help="Additional notes for the planner"),
    name: Optional[str] = typer.Option(None, help="Plan name"),
    user_id: Optional[str] = USER_OPTION
):
    """Generate a study plan for all upcoming exams"""
    user_id = _user(user_id)
    start = _parse_date(start_date) if start_date else date.today()

    db = SessionLocal()
    try:
        exams = [exam for exam in get_exams(db, user_id) if exam.exam_date >= start]
        if not exams:
            console.print("[red]✗[/red] No upcoming exams. Add one with add-exam.")
            raise typer.Exit(1)

        request = StudyPlanRequest(
            exams=[
                ExamInput(
                    subject=exam.subject.name,
                    exam_name=exam.exam_name,
                    exam_date=exam.exam_date,
                    syllabus=exam.description,
                    subject_id=exam.subject_id
                )
                for exam in exams
            ],
            study_hours_per_day=hours,
            start_date=start,
            additional_notes=notes
        )

        console.print(f"\n[bold]Generating plan for {len(exams)} exam(s) starting {start}...[/bold]")
        console.print("[yellow]Reading study materials and asking the model (this may take a moment)...[/yellow]")
        plan = asyncio.run(generate_study_plan(db, LocalObjectStorage(), get_scheduler(), user_id, request))
    except StudyPlannerError as e:
        console.print(f"[red]✗[/red] Error: {e.message}")
        raise typer.Exit(1)
    finally:
        db.close()

    store = PlanStore(SessionLocal, user_id)
    store.create_plan(plan, name)
    console.print("\n[green]✓[/green] [bold]Study Plan Generated![/bold]\n")
    _print_plan(store)


@app.command()
def show_plan(user_id: Optional[str] = USER_OPTION):
    """View the active study plan"""
    store = _load_store(_user(user_id))
    if store is None:
        return

    start, end = plan_date_range(store.plan)
    console.print(f"\n[bold]{store.plan_name}[/bold] ({start} to {end})\n")
    _print_plan(store)


@app.command()
def toggle_task(
    task_id: str = typer.Argument(..., help="Task ID or a unique prefix of it"),
    undo: bool = typer.Option(False, "--undo", help="Mark as not done"),
    user_id: Optional[str] = USER_OPTION
):
    """Mark a task as done"""
    store = _load_store(_user(user_id))
    if store is None:
        return

    full_id = _resolve_task_id(store, task_id)
    try:
        store.toggle_task(full_id, not undo)
    except StudyPlannerError as e:
        console.print(f"[red]✗[/red] {e.message}")
        raise typer.Exit(1)

    task = store.find_task(full_id)
    state = "not done" if undo else "done"
    console.print(f"[green]✓[/green] Marked '{task.text}' as {state}")


@app.command()
def add_task(
    day: str = typer.Option(..., prompt="Date (YYYY-MM-DD)"),
    text: str = typer.Option(..., prompt="Task"),
    subject: str = typer.Option("", help="Subject name"),
    minutes: int = typer.Option(30, help="Time estimate in minutes"),
    technique: str = typer.Option("", help="Study technique"),
    user_id: Optional[str] = USER_OPTION
):
    """Add a custom task to the active plan"""
    store = _load_store(_user(user_id))
    if store is None:
        return

    try:
        task = store.add_task(_parse_date(day), Task(
            text=text,
            subject=subject,
            technique=technique,
            time_estimate=minutes
        ))
    except StudyPlannerError as e:
        console.print(f"[red]✗[/red] {e.message}")
        raise typer.Exit(1)
    console.print(f"[green]✓[/green] Task added! ID: {task.id[:8]}")


@app.command()
def progress(user_id: Optional[str] = USER_OPTION):
    """Show study progress for the active plan"""
    store = _load_store(_user(user_id))
    if store is None:
        return

    plan = store.plan
    overall = overall_progress(plan.daily_plan, plan.completed_tasks)
    console.print(f"\n[bold]Overall:[/bold] {overall.completed}/{overall.total} tasks ({overall.percent}%)\n")

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Subject", style="green")
    table.add_column("Progress", justify="right")
    for subject, percent in subjects_progress(plan.daily_plan, plan.completed_tasks).items():
        table.add_row(subject or "(none)", f"{percent}%")
    console.print(table)

    current = today_plan(plan.daily_plan)
    if current:
        done = day_progress(current, plan.completed_tasks)
        console.print(f"\n[bold]Today ({current.date}):[/bold] {done.completed}/{done.total} tasks done")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind address"),
    port: int = typer.Option(8000, help="Port")
):
    """Run the HTTP API"""
    import uvicorn
    from studyplanner.api import create_app

    uvicorn.run(create_app(), host=host, port=port)


if __name__ == "__main__":
    app()
