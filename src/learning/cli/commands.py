"""CLI commands for the learning client.

Learner commands:
- login / guest / register / logout / whoami: authentication
- forgot-password / reset-password: account recovery
- dashboard, topics, topic, quizzes: browsing
- take: interactive quiz session (resume aware, timed)
- result, notifications
- serve: run the web front end

Staff commands live under `learn mod ...` (moderators and admins) and
`learn admin ...` (admins, results screens also for moderators).
"""

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import httpx
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from learning.api.client import ApiClient, ApiConnectionError, ApiError, SessionExpiredError
from learning.api.endpoints import LmsApi
from learning.api.token_store import TokenStore
from learning.config.app_config import load_app_config
from learning.core.auth import AuthSession, describe_guest_login_error, describe_login_error
from learning.core.catalog import (
    QUIZ_STATUSES,
    STATUS_LABELS,
    build_topic_tree,
    completed_attempts,
    filter_quizzes,
    filter_resources,
    filter_topics,
    filter_users,
    quiz_status,
    walk_tree,
)
from learning.core.clock import format_timestamp
from learning.core.dashboard import load_dashboard
from learning.core.errors import (
    AccessDeniedError,
    FormValidationError,
    Notice,
    NotAuthenticatedError,
    QuizNotStartableError,
)
from learning.core.management import (
    create_quiz,
    create_user,
    load_users,
    reset_user_password,
    save_question,
    save_resource,
    save_topic,
    search_users,
    toggle_quiz_active,
    toggle_resource_active,
    toggle_user_active,
    update_quiz,
    update_user,
)
from learning.core.notifications import NotificationCenter, target_for
from learning.core.quiz_taking import QuizSession, QuizState
from learning.core.results import (
    QuizResult,
    QuizStatistics,
    export_filename,
    format_duration,
    load_result,
    overview,
    rank_attempts,
    results_csv,
    sort_attempts,
)
from learning.models import (
    AnswerDraft,
    QuestionDraft,
    QuizDraft,
    RegisterRequest,
    ResourceDraft,
    ResourceType,
    TopicDraft,
    User,
    UserDraft,
    UserRole,
    UserUpdate,
)

app = typer.Typer(
    name="learn",
    help="Terminal client for the learning platform.",
    no_args_is_help=True,
)
mod_app = typer.Typer(
    help="Moderator screens: topics, resources, quizzes, questions.",
    no_args_is_help=True,
)
admin_app = typer.Typer(
    help="Admin screens: users, quiz results, analytics.",
    no_args_is_help=True,
)
app.add_typer(mod_app, name="mod")
app.add_typer(admin_app, name="admin")

console = Console()

NOTICE_STYLES = {
    "info": ("blue", "ℹ"),
    "success": ("green", "✓"),
    "warning": ("yellow", "⚠"),
    "error": ("red", "✗"),
}

STATUS_COLORS = {
    "active": "green",
    "upcoming": "blue",
    "expired": "dim",
    "inactive": "dim",
}


# =============================================================================
# HELPERS
# =============================================================================


def _transport() -> httpx.BaseTransport | None:
    """Transport for the API client (None = real network)."""
    return None


def _open_session() -> tuple[LmsApi, AuthSession]:
    """Build the API client and restore the stored login."""
    config = load_app_config(force_reload=True)
    store = TokenStore.for_state_dir(config.state_dir)
    client = ApiClient(config.api, store, transport=_transport())
    api = LmsApi(client)
    auth = AuthSession(api, store)
    auth.restore()
    return api, auth


def _fail(message: str) -> None:
    console.print(f"[red]✗ {message}[/red]")
    raise typer.Exit(code=1)


def _guard(auth: AuthSession, route: str = "") -> User:
    """Apply the role guard for a screen or exit."""
    try:
        return auth.require_route(route)
    except NotAuthenticatedError as e:
        console.print(f"[red]✗ {e.message}[/red]")
        console.print("  Use: learn login  (or: learn guest)")
        raise typer.Exit(code=1)
    except AccessDeniedError as e:
        _fail(e.message)
        raise


@contextmanager
def _api_errors() -> Iterator[None]:
    """Turn backend failures into a red line and exit code 1."""
    try:
        yield
    except SessionExpiredError as e:
        console.print(f"[red]✗ {e.message}[/red]")
        console.print("  Use: learn login")
        raise typer.Exit(code=1)
    except ApiConnectionError:
        _fail("Unable to connect to server. Please check your connection")
    except ApiError as e:
        _fail(e.message)
    except FormValidationError as e:
        _fail(e.message)


def _print_notices(notices: list[Notice]) -> None:
    for notice in notices:
        color, icon = NOTICE_STYLES.get(notice.level, ("white", "•"))
        console.print(f"[{color}]{icon} {notice.message}[/{color}]")


def _status_markup(status: str) -> str:
    color = STATUS_COLORS.get(status, "white")
    return f"[{color}]{STATUS_LABELS.get(status, status)}[/{color}]"


def _role_text(role: UserRole | str) -> str:
    return role.value if isinstance(role, UserRole) else str(role)


def _yes_no(flag: bool | None) -> str:
    return "[green]yes[/green]" if flag else "[dim]no[/dim]"


def _truncate(text: str, max_len: int = 60) -> str:
    """Truncate text with ellipsis if too long."""
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def _confirm_or_abort(message: str, yes: bool) -> None:
    if yes:
        return
    if not typer.confirm(message, default=False):
        console.print("[yellow]Cancelled[/yellow]")
        raise typer.Exit()


# =============================================================================
# AUTH COMMANDS
# =============================================================================


@app.command()
def login(
    username: str = typer.Option(..., "--username", "-u", prompt=True),
    password: str = typer.Option(..., "--password", "-p", prompt=True, hide_input=True),
) -> None:
    """Log in and remember the session."""
    _, auth = _open_session()
    try:
        user = auth.login(username, password)
    except ApiError as e:
        _fail(describe_login_error(e))
        return

    console.print(f"[green]✓ Welcome back, {user.full_name}![/green]")
    console.print(f"  [dim]role:[/dim] {_role_text(user.role)}")


@app.command()
def guest() -> None:
    """Log in with the shared guest account."""
    _, auth = _open_session()
    try:
        auth.login_as_guest()
    except ApiError as e:
        _fail(describe_guest_login_error(e))
        return
    console.print("[green]✓ Logged in as guest[/green]")


@app.command()
def register(
    username: str = typer.Option(..., prompt=True),
    email: str = typer.Option(..., prompt=True),
    first_name: str = typer.Option(..., "--first-name", prompt="First name"),
    last_name: str = typer.Option(..., "--last-name", prompt="Last name"),
    password: str = typer.Option(
        ..., prompt=True, hide_input=True, confirmation_prompt=True
    ),
    phone: str | None = typer.Option(None, "--phone", help="Phone number"),
) -> None:
    """Create an account and log in."""
    _, auth = _open_session()
    request = RegisterRequest(
        username=username,
        email=email,
        password=password,
        first_name=first_name,
        last_name=last_name,
        phone_number=phone,
    )
    with _api_errors():
        user = auth.register(request)
    console.print(f"[green]✓ Account created. Welcome, {user.full_name}![/green]")


@app.command()
def logout() -> None:
    """Forget the stored session."""
    _, auth = _open_session()
    auth.logout()
    console.print("[green]✓ Logged out[/green]")


@app.command()
def whoami() -> None:
    """Show the logged-in user."""
    _, auth = _open_session()
    user = auth.user
    if user is None:
        console.print("[yellow]Not logged in[/yellow]")
        raise typer.Exit(code=1)

    console.print(f"[bold]{user.full_name}[/bold] ({user.username})")
    console.print(f"  [dim]email:[/dim] {user.email}")
    console.print(f"  [dim]role:[/dim]  {_role_text(user.role)}")


@app.command(name="forgot-password")
def forgot_password(
    email: str = typer.Option(..., prompt=True),
) -> None:
    """Request a password reset link."""
    api, _ = _open_session()
    with _api_errors():
        api.auth.forgot_password(email)
    console.print("[green]✓ If the account exists, a reset link has been sent[/green]")


@app.command(name="reset-password")
def reset_password(
    token: str = typer.Argument(..., help="Token from the reset email"),
    password: str = typer.Option(
        ..., prompt="New password", hide_input=True, confirmation_prompt=True
    ),
) -> None:
    """Set a new password with a reset token."""
    api, _ = _open_session()
    with _api_errors():
        api.auth.reset_password(token, password)
    console.print("[green]✓ Password updated. You can log in now[/green]")


# =============================================================================
# LEARNER COMMANDS
# =============================================================================


@app.command()
def dashboard() -> None:
    """Overview: stats, upcoming quizzes, new topics, recent results."""
    api, auth = _open_session()
    user = _guard(auth, "/dashboard")

    with _api_errors():
        data = load_dashboard(api, user)

    stats = data.stats
    console.print(f"\n[bold]Welcome, {user.full_name}[/bold]\n")
    console.print(
        f"  [dim]Topics:[/dim] {stats.total_topics}   "
        f"[dim]Available quizzes:[/dim] {stats.available_quizzes}   "
        f"[dim]Completed:[/dim] {stats.completed_quizzes}   "
        f"[dim]Passed:[/dim] {stats.passed_quizzes}"
    )

    if data.upcoming_quizzes:
        table = Table(title="Quizzes", show_header=True, header_style="bold")
        table.add_column("ID", style="cyan")
        table.add_column("Title")
        table.add_column("Status")
        table.add_column("Duration")
        for quiz in data.upcoming_quizzes:
            table.add_row(
                str(quiz.id),
                quiz.title,
                _status_markup(quiz_status(quiz)),
                f"{quiz.duration_minutes} min",
            )
        console.print(table)

    if data.latest_topics:
        console.print("\n[bold]New topics this week[/bold]")
        for topic in data.latest_topics:
            console.print(f"  • {topic.title} [dim](#{topic.id})[/dim]")

    if data.recent_attempts:
        console.print("\n[bold]Recent results[/bold]")
        for attempt in data.recent_attempts:
            mark = "[green]✓[/green]" if attempt.passed else "[red]✗[/red]"
            console.print(
                f"  {mark} {attempt.quiz_title}: {attempt.score or 0:g}% "
                f"[dim]{format_timestamp(attempt.completed_at)}[/dim]"
            )


@app.command()
def topics(
    search: str = typer.Option("", "--search", "-s", help="Filter by title/description"),
) -> None:
    """Browse the topic hierarchy."""
    api, auth = _open_session()
    _guard(auth, "/topics")

    with _api_errors():
        all_topics = api.topics.get_all(active_only=True)

    tree = build_topic_tree(filter_topics(all_topics, search))
    if not tree:
        console.print("[yellow]No topics found[/yellow]")
        return

    for depth, node in walk_tree(tree):
        indent = "  " * depth
        extra = f" [dim]({len(node.children)} subtopics)[/dim]" if node.children else ""
        quiz_mark = " [magenta]quiz[/magenta]" if node.topic.has_quiz else ""
        console.print(f"{indent}[cyan]#{node.topic.id}[/cyan] {node.topic.title}{extra}{quiz_mark}")


@app.command()
def topic(
    topic_id: int = typer.Argument(..., help="Topic ID"),
) -> None:
    """Show a topic with its resources and quizzes."""
    api, auth = _open_session()
    _guard(auth, "/topics")

    with _api_errors():
        item = api.topics.get_by_id(topic_id)
        resources = api.resources.get_by_topic(topic_id, active_only=True, ordered=True)
        quizzes = api.quizzes.get_by_topic(topic_id, active_only=True)

    header = item.description or ""
    if item.parent_topic_title:
        header += f"\n[dim]Parent:[/dim] {item.parent_topic_title}"
    console.print(Panel(header, title=f"[bold]{item.title}[/bold]", expand=False))

    if item.sub_topics:
        console.print("\n[bold]Subtopics[/bold]")
        for sub in item.sub_topics:
            console.print(f"  [cyan]#{sub.id}[/cyan] {sub.title}")

    console.print("\n[bold]Resources[/bold]")
    if not resources:
        console.print("  [dim]No resources yet[/dim]")
    for resource in resources:
        kind = resource.type.value if isinstance(resource.type, ResourceType) else resource.type
        console.print(f"  [{kind}] {resource.title}")
        console.print(f"    [dim]{resource.url}[/dim]")

    if quizzes:
        console.print("\n[bold]Quizzes[/bold]")
        for quiz in quizzes:
            console.print(
                f"  [cyan]#{quiz.id}[/cyan] {quiz.title} {_status_markup(quiz_status(quiz))}"
            )


@app.command()
def quizzes(
    search: str = typer.Option("", "--search", "-s", help="Search title, description, topic"),
    status: str | None = typer.Option(
        None, "--status", help="active, upcoming, expired or inactive"
    ),
    completed: bool = typer.Option(
        False, "--completed", "-c", help="Show your completed quizzes instead"
    ),
) -> None:
    """List quizzes with their availability."""
    api, auth = _open_session()
    user = _guard(auth, "/quizzes")

    if status is not None and status not in QUIZ_STATUSES:
        _fail(f"Unknown status: {status} (use {', '.join(QUIZ_STATUSES)})")

    if completed:
        with _api_errors():
            summaries = completed_attempts(api.quiz_attempts.get_summary_by_user(user.id))
        if not summaries:
            console.print("[yellow]No completed quizzes yet[/yellow]")
            return
        table = Table(show_header=True, header_style="bold")
        table.add_column("Attempt", style="cyan")
        table.add_column("Quiz")
        table.add_column("Score", justify="right")
        table.add_column("Result")
        table.add_column("Completed")
        for s in summaries:
            table.add_row(
                str(s.id),
                s.quiz_title,
                f"{s.score or 0:g}%",
                "[green]Passed[/green]" if s.passed else "[red]Failed[/red]",
                format_timestamp(s.completed_at),
            )
        console.print(table)
        return

    with _api_errors():
        items = api.quizzes.get_all(active_only=True)

    items = filter_quizzes(items, search, status)  # type: ignore[arg-type]
    if not items:
        console.print("[yellow]No quizzes found[/yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", style="cyan")
    table.add_column("Title")
    table.add_column("Topic")
    table.add_column("Duration", justify="right")
    table.add_column("Status")
    for quiz in items:
        table.add_row(
            str(quiz.id),
            quiz.title,
            quiz.topic_title or "",
            f"{quiz.duration_minutes} min",
            _status_markup(quiz_status(quiz)),
        )
    console.print(table)


# =============================================================================
# QUIZ TAKING - Interactive flow
# =============================================================================


def _show_pre_quiz(session: QuizSession) -> None:
    quiz = session.quiz
    assert quiz is not None
    header = (
        f"{quiz.description}\n\n"
        f"[dim]Duration:[/dim] {quiz.duration_minutes} min | "
        f"[dim]Questions:[/dim] {quiz.question_count} | "
        f"[dim]Passing score:[/dim] {quiz.passing_score}%\n"
        f"[dim]Status:[/dim] {_status_markup(quiz_status(quiz))}"
    )
    console.print(Panel(header, title=f"[bold]{quiz.title}[/bold]", expand=False))


def _show_question(session: QuizSession) -> None:
    question = session.current_question
    assert question is not None
    total = len(session.questions)
    clock_color = {"ok": "green", "warning": "yellow", "critical": "red"}.get(
        session.countdown.level if session.countdown else "ok", "green"
    )
    console.print(
        f"\n[blue]Question {session.current_index + 1}/{total}[/blue]  "
        f"[{clock_color}]⏱ {session.countdown.formatted() if session.countdown else '0:00'}"
        f"[/{clock_color}]  [dim]answered {session.answered_count}/{total}[/dim]"
    )
    console.print(f"[bold]{question.question_text}[/bold] [dim]({question.points} pt)[/dim]")

    selected = session.selected_answer(question.id)
    for idx, answer in enumerate(question.ordered_answers(), 1):
        marker = "[green]●[/green]" if answer.id == selected else "○"
        console.print(f"  {marker} {idx}. {answer.answer_text}")


def _show_result(result: QuizResult) -> None:
    color = "green" if result.passed else "red"
    status = "PASSED" if result.passed else "FAILED"
    header = (
        f"[bold]{result.percentage}%[/bold] - [{color}]{status}[/{color}] "
        f"(passing score {result.quiz.passing_score}%)\n"
        f"Points: {result.points_earned:g}/{result.total_points} | "
        f"Correct: {result.correct} | Incorrect: {result.incorrect} | "
        f"Unanswered: {result.unanswered}\n"
        f"Time taken: {result.time_taken}"
    )
    console.print(Panel(header, title=f"[bold]{result.quiz.title}[/bold]", expand=False))

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", style="cyan")
    table.add_column("Question")
    table.add_column("Result", justify="center")
    table.add_column("Your answer")
    table.add_column("Correct answer")
    for i, item in enumerate(result.review, 1):
        if not item.answered:
            icon = "[yellow]–[/yellow]"
        elif item.correct:
            icon = "[green]✓[/green]"
        else:
            icon = "[red]✗[/red]"
        table.add_row(
            str(i),
            _truncate(item.question.question_text),
            icon,
            item.selected_answer_text or "[dim]not answered[/dim]",
            item.correct_answer_text or "",
        )
    console.print(table)


def _handle_quiz_input(session: QuizSession, raw: str) -> None:
    """Apply one line of input during the quiz."""
    question = session.current_question
    assert question is not None
    command = raw.strip().lower()

    if command.isdigit():
        answers = question.ordered_answers()
        choice = int(command)
        if not 1 <= choice <= len(answers):
            console.print(f"[yellow]⚠ Choose 1-{len(answers)}[/yellow]")
            return
        if session.select_answer(question.id, answers[choice - 1].id):
            session.next()
        return

    if command in ("n", "next"):
        if not session.next():
            console.print("[yellow]⚠ This is the last question[/yellow]")
    elif command in ("p", "prev", "previous"):
        if not session.previous():
            console.print("[yellow]⚠ This is the first question[/yellow]")
    elif command.startswith("g"):
        target = command[1:].strip()
        if not target.isdigit() or not session.jump_to(int(target) - 1):
            console.print(f"[yellow]⚠ Use: g 1-{len(session.questions)}[/yellow]")
    elif command in ("s", "submit"):
        if session.needs_confirmation and not typer.confirm(
            f"You have {session.unanswered_count} unanswered question(s). Submit anyway?",
            default=False,
        ):
            return
        session.submit()
    else:
        console.print("[yellow]⚠ Enter an answer number, n, p, g N or s[/yellow]")


@app.command()
def take(
    quiz_id: int = typer.Argument(..., help="Quiz ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Start without asking"),
) -> None:
    """Take a quiz interactively.

    Resumes an in-progress attempt when there is one. Answers are saved
    as you go; the quiz is submitted automatically when time runs out.

    Example:
        learn take 12
    """
    api, auth = _open_session()
    user = _guard(auth, "/quiz")
    session = QuizSession(api, quiz_id, user)

    try:
        session.load()
    except ApiError as e:
        _print_notices(session.drain_notices())
        _fail(e.message)
    _print_notices(session.drain_notices())

    if session.state == QuizState.PRE_QUIZ:
        _show_pre_quiz(session)
        if session.has_completed_attempt:
            console.print("[yellow]⚠ You have already completed this quiz[/yellow]")
            console.print(f"  See: learn result {session.completed_attempt_id}")
            return
        try:
            session.check_startable()
        except QuizNotStartableError as e:
            console.print(f"[yellow]⚠ {e.message}[/yellow]")
            raise typer.Exit(code=1)

        if not yes and not typer.confirm("Start the quiz now?", default=True):
            return

        try:
            session.start()
        except ApiError:
            _print_notices(session.drain_notices())
            raise typer.Exit(code=1)
        _print_notices(session.drain_notices())

    console.print("[dim]Answer with its number; n/p to move, g N to jump, s to submit[/dim]")

    while session.state == QuizState.TAKING:
        if session.check_timer():
            break
        if session.current_question is None:
            console.print("[yellow]⚠ This quiz has no questions[/yellow]")
            break

        _show_question(session)
        raw = typer.prompt("Your choice")

        # Time may have run out while waiting for input
        if session.check_timer():
            break
        _handle_quiz_input(session, raw)
        _print_notices(session.drain_notices())

    _print_notices(session.drain_notices())

    if session.state != QuizState.COMPLETED or session.attempt is None:
        raise typer.Exit(code=1)

    console.print(f"[dim]Result:[/dim] {session.result_route}")
    try:
        _show_result(load_result(api, session.attempt.id))
    except ApiError as e:
        console.print(f"[yellow]⚠ Could not load the result: {e.message}[/yellow]")
        console.print(f"  Try: learn result {session.attempt.id}")


@app.command()
def result(
    attempt_id: int = typer.Argument(..., help="Quiz attempt ID"),
) -> None:
    """Show the result of a submitted attempt."""
    api, auth = _open_session()
    _guard(auth, "/quiz/result")
    with _api_errors():
        data = load_result(api, attempt_id)
    _show_result(data)


@app.command()
def notifications(
    read: int | None = typer.Option(None, "--read", "-r", help="Mark a notification as read"),
) -> None:
    """List your notifications."""
    api, auth = _open_session()
    user = _guard(auth, "/dashboard")
    center = NotificationCenter(api, user.id)

    if not center.load():
        _fail("Failed to load notifications")

    if read is not None:
        match = next((n for n in center.notifications if n.id == read), None)
        if match is None:
            _fail(f"Notification not found: {read}")
            return
        target = target_for(match)
        if center.mark_as_read(match.id):
            console.print(f"[green]✓ Marked as read[/green] [dim]→ {target}[/dim]")
        else:
            console.print(f"[yellow]⚠ Could not mark as read[/yellow] [dim]→ {target}[/dim]")
        return

    if not center.notifications:
        console.print("[dim]No notifications[/dim]")
        return

    console.print(f"\n[bold]Notifications[/bold] ({center.unread_count} new)\n")
    for n in center.notifications:
        dot = "[blue]●[/blue]" if not n.read else " "
        console.print(f" {dot} [cyan]#{n.id}[/cyan] [bold]{n.title}[/bold]")
        if n.message:
            console.print(f"     {n.message}")
        console.print(f"     [dim]{format_timestamp(n.created_at)}[/dim]")


# =============================================================================
# MODERATOR COMMANDS
# =============================================================================


@mod_app.command(name="topics")
def mod_topics() -> None:
    """All topics, including inactive ones."""
    api, auth = _open_session()
    _guard(auth, "/moderator/topics")
    with _api_errors():
        items = api.topics.get_all(active_only=False)

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", style="cyan")
    table.add_column("Title")
    table.add_column("Parent")
    table.add_column("Resources", justify="right")
    table.add_column("Active", justify="center")
    for t in items:
        table.add_row(
            str(t.id), t.title, t.parent_topic_title or "", str(t.resource_count), _yes_no(t.active)
        )
    console.print(table)


@mod_app.command(name="topic-save")
def mod_topic_save(
    title: str = typer.Option(..., "--title"),
    description: str = typer.Option(..., "--description"),
    topic_id: int | None = typer.Option(None, "--id", help="Update this topic"),
    parent: int | None = typer.Option(None, "--parent", help="Parent topic ID"),
    order: int | None = typer.Option(None, "--order", help="Display order"),
) -> None:
    """Create a topic, or update it with --id."""
    api, auth = _open_session()
    _guard(auth, "/moderator/topics")
    draft = TopicDraft(
        title=title, description=description, parent_topic_id=parent, display_order=order
    )
    with _api_errors():
        saved = save_topic(api, draft, topic_id)
    verb = "updated" if topic_id else "created"
    console.print(f"[green]✓ Topic {verb} successfully[/green] [dim](#{saved.id})[/dim]")


@mod_app.command(name="topic-delete")
def mod_topic_delete(
    topic_id: int = typer.Argument(...),
    yes: bool = typer.Option(False, "--yes", "-y"),
) -> None:
    """Delete a topic."""
    api, auth = _open_session()
    _guard(auth, "/moderator/topics")
    _confirm_or_abort(f"Delete topic #{topic_id}?", yes)
    with _api_errors():
        api.topics.delete(topic_id)
    console.print("[green]✓ Topic deleted successfully[/green]")


@mod_app.command(name="resources")
def mod_resources(
    search: str = typer.Option("", "--search", "-s"),
    topic_id: int | None = typer.Option(None, "--topic"),
    resource_type: str | None = typer.Option(None, "--type", help="PDF, LINK, DOCUMENT, VIDEO"),
    status: str = typer.Option("all", "--status", help="all, active or inactive"),
) -> None:
    """All resources with filters."""
    api, auth = _open_session()
    _guard(auth, "/moderator/resources")
    if status not in ("all", "active", "inactive"):
        _fail(f"Unknown status: {status}")

    with _api_errors():
        items = api.resources.get_all(with_topic=True, active_only=False)

    items = filter_resources(
        items,
        search,
        topic_id=topic_id,
        resource_type=resource_type.upper() if resource_type else None,
        status=status,  # type: ignore[arg-type]
    )
    if not items:
        console.print("[yellow]No resources found[/yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", style="cyan")
    table.add_column("Title")
    table.add_column("Type")
    table.add_column("Topic")
    table.add_column("Active", justify="center")
    for r in items:
        kind = r.type.value if isinstance(r.type, ResourceType) else str(r.type)
        table.add_row(str(r.id), r.title, kind, r.topic_title or "", _yes_no(r.active))
    console.print(table)


@mod_app.command(name="resource-save")
def mod_resource_save(
    title: str = typer.Option(..., "--title"),
    url: str = typer.Option(..., "--url"),
    topic_id: int = typer.Option(..., "--topic"),
    resource_type: str = typer.Option("LINK", "--type", help="PDF, LINK, DOCUMENT, VIDEO"),
    description: str | None = typer.Option(None, "--description"),
    order: int | None = typer.Option(None, "--order"),
    resource_id: int | None = typer.Option(None, "--id", help="Update this resource"),
) -> None:
    """Create a resource, or update it with --id."""
    api, auth = _open_session()
    _guard(auth, "/moderator/resources")
    draft = ResourceDraft(
        title=title,
        url=url,
        type=resource_type.upper(),
        topic_id=topic_id,
        description=description,
        display_order=order,
    )
    with _api_errors():
        saved = save_resource(api, draft, resource_id)
    verb = "updated" if resource_id else "created"
    console.print(f"[green]✓ Resource {verb} successfully[/green] [dim](#{saved.id})[/dim]")


@mod_app.command(name="resource-toggle")
def mod_resource_toggle(resource_id: int = typer.Argument(...)) -> None:
    """Activate or deactivate a resource."""
    api, auth = _open_session()
    _guard(auth, "/moderator/resources")
    with _api_errors():
        message = toggle_resource_active(api, api.resources.get_by_id(resource_id))
    console.print(f"[green]✓ {message}[/green]")


@mod_app.command(name="resource-delete")
def mod_resource_delete(
    resource_id: int = typer.Argument(...),
    yes: bool = typer.Option(False, "--yes", "-y"),
) -> None:
    """Delete a resource."""
    api, auth = _open_session()
    _guard(auth, "/moderator/resources")
    _confirm_or_abort(f"Delete resource #{resource_id}?", yes)
    with _api_errors():
        api.resources.delete(resource_id)
    console.print("[green]✓ Resource deleted successfully[/green]")


@mod_app.command(name="quizzes")
def mod_quizzes(
    search: str = typer.Option("", "--search", "-s"),
) -> None:
    """All quizzes, including inactive ones."""
    api, auth = _open_session()
    _guard(auth, "/moderator/quizzes")
    with _api_errors():
        items = filter_quizzes(api.quizzes.get_all(active_only=False), search)

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", style="cyan")
    table.add_column("Title")
    table.add_column("Topic")
    table.add_column("Questions", justify="right")
    table.add_column("Status")
    for q in items:
        table.add_row(
            str(q.id), q.title, q.topic_title or "", str(q.question_count),
            _status_markup(quiz_status(q)),
        )
    console.print(table)


@mod_app.command(name="quiz-create")
def mod_quiz_create(
    title: str = typer.Option(..., "--title"),
    description: str = typer.Option(..., "--description"),
    topic_id: int = typer.Option(..., "--topic"),
    duration: int = typer.Option(30, "--duration", help="Minutes"),
    passing_score: int = typer.Option(70, "--passing-score", help="Percent"),
    start: str | None = typer.Option(None, "--start", help="ISO start time"),
    end: str | None = typer.Option(None, "--end", help="ISO end time"),
) -> None:
    """Create a quiz. Add questions afterwards with question-add."""
    api, auth = _open_session()
    _guard(auth, "/moderator/quizzes")
    draft = QuizDraft(
        title=title,
        description=description,
        topic_id=topic_id,
        duration_minutes=duration,
        passing_score=passing_score,
        start_time=start,
        end_time=end,
        active=True,
    )
    with _api_errors():
        quiz = create_quiz(api, draft)
    console.print("[green]✓ Quiz created successfully! Now add questions to it.[/green]")
    console.print(f"  Next: learn mod question-add {quiz.id} --text ...")


@mod_app.command(name="quiz-edit")
def mod_quiz_edit(
    quiz_id: int = typer.Argument(...),
    title: str | None = typer.Option(None, "--title"),
    description: str | None = typer.Option(None, "--description"),
    duration: int | None = typer.Option(None, "--duration"),
    passing_score: int | None = typer.Option(None, "--passing-score"),
    start: str | None = typer.Option(None, "--start"),
    end: str | None = typer.Option(None, "--end"),
    shuffle: bool | None = typer.Option(None, "--shuffle/--no-shuffle"),
    show_results: bool | None = typer.Option(None, "--show-results/--hide-results"),
) -> None:
    """Edit quiz settings; unspecified fields keep their value."""
    api, auth = _open_session()
    _guard(auth, "/moderator/quiz/edit")

    with _api_errors():
        current = api.quizzes.get_by_id(quiz_id)
        draft = QuizDraft(
            title=title if title is not None else current.title,
            description=description if description is not None else current.description,
            duration_minutes=duration if duration is not None else current.duration_minutes,
            passing_score=passing_score if passing_score is not None else current.passing_score,
            start_time=start or current.start_time,
            end_time=end or current.end_time,
            shuffle_questions=shuffle if shuffle is not None else current.shuffle_questions,
            show_results_immediately=(
                show_results if show_results is not None else current.show_results_immediately
            ),
            active=current.active,
        )
        update_quiz(api, quiz_id, draft)
    console.print("[green]✓ Quiz updated successfully[/green]")


@mod_app.command(name="quiz-toggle")
def mod_quiz_toggle(quiz_id: int = typer.Argument(...)) -> None:
    """Activate or deactivate a quiz."""
    api, auth = _open_session()
    _guard(auth, "/moderator/quizzes")
    with _api_errors():
        message = toggle_quiz_active(api, api.quizzes.get_by_id(quiz_id))
    console.print(f"[green]✓ {message}[/green]")


@mod_app.command(name="quiz-delete")
def mod_quiz_delete(
    quiz_id: int = typer.Argument(...),
    yes: bool = typer.Option(False, "--yes", "-y"),
) -> None:
    """Delete a quiz."""
    api, auth = _open_session()
    _guard(auth, "/moderator/quizzes")
    _confirm_or_abort(f"Delete quiz #{quiz_id}?", yes)
    with _api_errors():
        api.quizzes.delete(quiz_id)
    console.print("[green]✓ Quiz deleted successfully[/green]")


@mod_app.command(name="questions")
def mod_questions(quiz_id: int = typer.Argument(...)) -> None:
    """Questions of a quiz with their answers."""
    api, auth = _open_session()
    _guard(auth, "/moderator/quiz/questions")
    with _api_errors():
        items = api.questions.get_by_quiz(quiz_id)

    if not items:
        console.print("[yellow]No questions yet[/yellow]")
        return

    for i, q in enumerate(items, 1):
        console.print(f"\n[cyan]#{q.id}[/cyan] [bold]{i}. {q.question_text}[/bold] [dim]({q.points} pt)[/dim]")
        for answer in q.ordered_answers():
            mark = "[green]✓[/green]" if answer.correct else " "
            console.print(f"   {mark} {answer.answer_text}")
        if q.explanation:
            console.print(f"   [dim]{q.explanation}[/dim]")


@mod_app.command(name="question-add")
def mod_question_add(
    quiz_id: int = typer.Argument(...),
    text: str = typer.Option(..., "--text"),
    answers: list[str] = typer.Option(..., "--answer", "-a", help="Repeat for each option"),
    correct: int = typer.Option(1, "--correct", help="Number of the correct answer (1-based)"),
    points: int = typer.Option(1, "--points"),
    explanation: str | None = typer.Option(None, "--explanation"),
) -> None:
    """Add a question with its answer options."""
    api, auth = _open_session()
    _guard(auth, "/moderator/quiz/questions")

    draft = QuestionDraft(
        question_text=text,
        explanation=explanation,
        points=points,
        answers=[
            AnswerDraft(answer_text=a, correct=(i == correct))
            for i, a in enumerate(answers, 1)
        ],
    )
    with _api_errors():
        existing = api.questions.count(quiz_id)
        save_question(api, quiz_id, draft, existing_count=existing)
    console.print("[green]✓ Question created successfully[/green]")


@mod_app.command(name="question-delete")
def mod_question_delete(
    quiz_id: int = typer.Argument(...),
    question_id: int = typer.Argument(...),
    yes: bool = typer.Option(False, "--yes", "-y"),
) -> None:
    """Delete a question."""
    api, auth = _open_session()
    _guard(auth, "/moderator/quiz/questions")
    _confirm_or_abort(f"Delete question #{question_id}?", yes)
    with _api_errors():
        api.questions.delete(quiz_id, question_id)
    console.print("[green]✓ Question deleted successfully[/green]")


# =============================================================================
# ADMIN COMMANDS
# =============================================================================


@admin_app.command(name="users")
def admin_users(
    status: str = typer.Option("all", "--status", help="all, active or inactive"),
    search: str = typer.Option("", "--search", "-s", help="Server-side keyword search"),
    role: str | None = typer.Option(None, "--role", help="ADMIN, MODERATOR, USER, GUEST"),
) -> None:
    """List user accounts."""
    api, auth = _open_session()
    _guard(auth, "/admin/users")
    if status not in ("all", "active", "inactive"):
        _fail(f"Unknown status: {status}")

    with _api_errors():
        if search.strip():
            users = list(search_users(api, search, active_only=status == "active"))
        else:
            users = load_users(api, status)  # type: ignore[arg-type]

    users = filter_users(users, role=role.upper() if role else None)
    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", style="cyan")
    table.add_column("Username")
    table.add_column("Name")
    table.add_column("Email")
    table.add_column("Role")
    table.add_column("Active", justify="center")
    for u in users:
        table.add_row(str(u.id), u.username, u.full_name, u.email, _role_text(u.role), _yes_no(u.active))
    console.print(table)


@admin_app.command(name="user-create")
def admin_user_create(
    username: str = typer.Option(..., "--username"),
    email: str = typer.Option(..., "--email"),
    first_name: str = typer.Option(..., "--first-name"),
    last_name: str = typer.Option(..., "--last-name"),
    role: str = typer.Option("USER", "--role"),
    phone: str | None = typer.Option(None, "--phone"),
    password: str = typer.Option(..., prompt=True, hide_input=True),
) -> None:
    """Create a user account."""
    api, auth = _open_session()
    _guard(auth, "/admin/users")
    draft = UserDraft(
        email=email,
        first_name=first_name,
        last_name=last_name,
        username=username,
        password=password,
        role=role.upper(),
        phone_number=phone,
    )
    with _api_errors():
        user = create_user(api, draft)
    console.print(f"[green]✓ User created successfully[/green] [dim](#{user.id})[/dim]")


@admin_app.command(name="user-update")
def admin_user_update(
    user_id: int = typer.Argument(...),
    email: str | None = typer.Option(None, "--email"),
    first_name: str | None = typer.Option(None, "--first-name"),
    last_name: str | None = typer.Option(None, "--last-name"),
    role: str | None = typer.Option(None, "--role"),
) -> None:
    """Update a user; unspecified fields keep their value."""
    api, auth = _open_session()
    _guard(auth, "/admin/users")
    with _api_errors():
        current = api.users.get_by_id(user_id)
        update = UserUpdate(
            email=email if email is not None else current.email,
            first_name=first_name if first_name is not None else current.first_name,
            last_name=last_name if last_name is not None else current.last_name,
            role=role.upper() if role else _role_text(current.role),
        )
        update_user(api, user_id, update)
    console.print("[green]✓ User updated successfully[/green]")


@admin_app.command(name="user-toggle")
def admin_user_toggle(user_id: int = typer.Argument(...)) -> None:
    """Activate or deactivate a user."""
    api, auth = _open_session()
    _guard(auth, "/admin/users")
    with _api_errors():
        message = toggle_user_active(api, api.users.get_by_id(user_id))
    console.print(f"[green]✓ {message}[/green]")


@admin_app.command(name="user-reset-password")
def admin_user_reset_password(user_id: int = typer.Argument(...)) -> None:
    """Set a new password for a user."""
    api, auth = _open_session()
    _guard(auth, "/admin/users")
    new_password = typer.prompt("New password", hide_input=True)
    confirm_password = typer.prompt("Confirm password", hide_input=True)
    with _api_errors():
        reset_user_password(api, user_id, new_password, confirm_password)
    console.print("[green]✓ Password reset successfully[/green]")


@admin_app.command(name="results")
def admin_results(
    search: str = typer.Option("", "--search", "-s"),
    status: str | None = typer.Option(None, "--status"),
) -> None:
    """Results overview: every quiz with attempt statistics."""
    api, auth = _open_session()
    _guard(auth, "/admin/quiz-results")
    if status is not None and status not in QUIZ_STATUSES:
        _fail(f"Unknown status: {status}")

    with _api_errors():
        rows = overview(api, query=search, status=status)  # type: ignore[arg-type]

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", style="cyan")
    table.add_column("Quiz")
    table.add_column("Status")
    table.add_column("Attempts", justify="right")
    table.add_column("Avg", justify="right")
    table.add_column("Pass rate", justify="right")
    for row in rows:
        s = row.statistics
        table.add_row(
            str(row.quiz.id),
            row.quiz.title,
            _status_markup(row.status),
            str(s.total_attempts),
            f"{s.average_score}%",
            f"{s.pass_rate}%",
        )
    console.print(table)


@admin_app.command(name="quiz-results")
def admin_quiz_results(
    quiz_id: int = typer.Argument(...),
    sort: str = typer.Option("score", "--sort", help="score, time or date"),
    order: str = typer.Option("desc", "--order", help="asc or desc"),
    csv_path: Path | None = typer.Option(None, "--csv", help="Export to this file or directory"),
) -> None:
    """Completed attempts of one quiz, with statistics and CSV export."""
    api, auth = _open_session()
    _guard(auth, "/admin/quiz/results")
    if sort not in ("score", "time", "date"):
        _fail(f"Unknown sort key: {sort}")
    if order not in ("asc", "desc"):
        _fail(f"Unknown order: {order}")

    with _api_errors():
        quiz = api.quizzes.get_by_id(quiz_id)
        attempts = completed_attempts(api.quiz_attempts.get_summary_by_quiz(quiz_id))

    attempts = sort_attempts(attempts, by=sort, order=order)  # type: ignore[arg-type]
    stats = QuizStatistics.from_attempts(attempts)

    console.print(f"\n[bold]{quiz.title}[/bold]")
    console.print(
        f"  [dim]Attempts:[/dim] {stats.total_attempts}  [dim]Average:[/dim] {stats.average_score}%  "
        f"[dim]Highest:[/dim] {stats.highest_score:g}%  [dim]Lowest:[/dim] {stats.lowest_score:g}%  "
        f"[dim]Pass rate:[/dim] {stats.pass_rate}%  [dim]Avg time:[/dim] {stats.average_time_minutes} min"
    )

    table = Table(show_header=True, header_style="bold")
    table.add_column("Attempt", style="cyan")
    table.add_column("Name")
    table.add_column("Score", justify="right")
    table.add_column("Result")
    table.add_column("Time")
    table.add_column("Submitted")
    for a in attempts:
        table.add_row(
            str(a.id),
            a.display_name,
            f"{a.score or 0:g}%",
            "[green]Pass[/green]" if a.passed else "[red]Fail[/red]",
            format_duration(a.started_at, a.completed_at),
            format_timestamp(a.completed_at),
        )
    console.print(table)

    if csv_path is not None:
        if not attempts:
            _fail("No data to export")
        target = csv_path / export_filename(quiz.title) if csv_path.is_dir() else csv_path
        target.write_text(results_csv(attempts, quiz.question_count), encoding="utf-8")
        console.print(f"[green]✓ Exported[/green] [dim]{target}[/dim]")


@admin_app.command(name="attempt")
def admin_attempt(
    attempt_id: int = typer.Argument(...),
) -> None:
    """One user's detailed result."""
    api, auth = _open_session()
    _guard(auth, "/admin/quiz/result")
    with _api_errors():
        data = load_result(api, attempt_id)
    if data.attempt.user_full_name:
        console.print(f"[dim]User:[/dim] {data.attempt.user_full_name}")
    _show_result(data)


@admin_app.command(name="analytics")
def admin_analytics(
    quiz_id: int | None = typer.Argument(None, help="Quiz ID (omit to list quizzes)"),
) -> None:
    """Rankings and statistics per quiz."""
    api, auth = _open_session()
    _guard(auth, "/admin/analytics")

    if quiz_id is None:
        with _api_errors():
            items = api.quizzes.get_all(active_only=False)
        for q in items:
            console.print(f"  [cyan]#{q.id}[/cyan] {q.title}")
        console.print("\n  Use: learn admin analytics QUIZ_ID")
        return

    with _api_errors():
        quiz = api.quizzes.get_by_id(quiz_id)
        summaries = api.quiz_attempts.get_summary_by_quiz(quiz_id)

    stats = QuizStatistics.from_attempts(summaries)
    console.print(
        Panel(
            f"Attempts: {stats.total_attempts} | Average: {stats.average_score}% | "
            f"Pass rate: {stats.pass_rate}% | Avg time: {stats.average_time_minutes} min",
            title=f"[bold]{quiz.title}[/bold]",
            expand=False,
        )
    )

    ranked = rank_attempts(summaries)
    if not ranked:
        console.print("[dim]No completed attempts yet[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Rank")
    table.add_column("Name")
    table.add_column("Score", justify="right")
    table.add_column("Result")
    table.add_column("Time")
    for item in ranked:
        a = item.attempt
        table.add_row(
            item.label,
            a.display_name,
            f"{a.score or 0:g}%",
            "[green]Pass[/green]" if a.passed else "[red]Fail[/red]",
            format_duration(a.started_at, a.completed_at),
        )
    console.print(table)


# =============================================================================
# WEB FRONT END
# =============================================================================


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind"),
    port: int = typer.Option(8000, "--port", "-p", help="Port to listen on"),
    reload: bool = typer.Option(False, "--reload", help="Restart on code changes"),
) -> None:
    """Run the web front end."""
    import uvicorn

    config = load_app_config(force_reload=True)
    console.print(f"[green]✓ Serving on http://{host}:{port}[/green]")
    console.print(f"  [dim]backend:[/dim] {config.api.base_url}")
    uvicorn.run("learning.web.api:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
