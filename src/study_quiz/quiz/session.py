"""Rich-powered console host for a quiz session.

The loop renders whatever phase the controller is in, reads one line from
``input_provider`` and forwards it as a single controller operation. All
state lives in :class:`~study_quiz.quiz.controller.QuizController`; this
module only draws and parses, so a session left with ``quit`` (or killed)
resumes exactly where it stopped on the next run.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Literal

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.table import Table
from rich.text import Text

from .catalog import Question, QuizCategory
from .controller import QuizController
from .evaluator import correct_options
from .results import QuizResults
from .state import Phase, QuizSession, progress

InputProvider = Callable[[], str]
ExitAction = Literal["quit", "interrupted"]
OptionMark = Literal["correct", "wrong", "selected", "neutral", "muted"]

CommandType = Literal[
    "select",
    "confirm",
    "check",
    "next",
    "prev",
    "submit",
    "restart",
    "home",
    "quit",
]

_WORDS: dict[str, CommandType] = {
    "c": "check",
    "check": "check",
    "ok": "check",
    "n": "next",
    "next": "next",
    ">": "next",
    "p": "prev",
    "prev": "prev",
    "previous": "prev",
    "back": "prev",
    "<": "prev",
    "s": "submit",
    "submit": "submit",
    "finish": "submit",
    "restart": "restart",
    "again": "restart",
    "home": "home",
    "menu": "home",
    "q": "quit",
    "quit": "quit",
    "exit": "quit",
}


@dataclass(frozen=True)
class SessionCommand:
    """Normalized user command parsed from console input."""

    type: CommandType
    choice: int | None = None


def parse_session_command(raw: str | None) -> SessionCommand | None:
    """Parse one input line; ``None`` means it was not understood.

    A blank line confirms (check the answer, or move on after feedback).
    Options are picked by their 1-based number; single letters are
    reserved for the short command words.
    """

    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return SessionCommand("confirm")
    lowered = text.lower()
    if lowered in _WORDS:
        return SessionCommand(_WORDS[lowered])
    if lowered.isdigit():
        number = int(lowered)
        return SessionCommand("select", number - 1) if number > 0 else None
    return None


def option_marks(
    question: Question,
    selected: tuple[str, ...],
    revealed: bool,
) -> list[OptionMark]:
    """How each option should be highlighted.

    Before feedback only the selection is marked. After feedback correct
    options are ``correct``, wrongly chosen ones ``wrong`` and the rest
    ``muted``.
    """

    answers = set(correct_options(question))
    marks: list[OptionMark] = []
    for option in question.options:
        if not revealed:
            marks.append("selected" if option in selected else "neutral")
        elif option in answers:
            marks.append("correct")
        elif option in selected:
            marks.append("wrong")
        else:
            marks.append("muted")
    return marks


def run_quiz_session(
    controller: QuizController,
    console: Console,
    input_provider: InputProvider,
    *,
    show_explanations: bool = True,
) -> ExitAction:
    """Drive ``controller`` from console input until the user quits."""

    while True:
        _render(controller, console, show_explanations=show_explanations)
        try:
            raw = input_provider()
        except (EOFError, KeyboardInterrupt, StopIteration):
            console.print(
                "\n[bold yellow]Session interrupted; progress saved.[/]"
            )
            return "interrupted"
        if _handle_input(controller, console, raw) == "quit":
            console.print("[bold yellow]Progress saved. See you next time.[/]")
            return "quit"


def _handle_input(
    controller: QuizController, console: Console, raw: str
) -> ExitAction | None:
    current = controller.phase
    if current is Phase.NO_PLAYER:
        if raw.strip().lower() in {"quit", "exit"}:
            return "quit"
        if not controller.set_player(raw):
            console.print("[red]Please enter a name.[/]")
        return None
    if current is Phase.CATEGORY_SELECTION:
        if raw.strip().lower() in {"quit", "exit"}:
            return "quit"
        category = _category_from_input(raw)
        if category is None:
            console.print("[red]Pick a category by number or name.[/]")
        else:
            controller.select_category(category)
        return None

    command = parse_session_command(raw)
    if command is None:
        console.print("[red]Unrecognized command. Try again.[/]")
        return None
    if command.type == "quit":
        return "quit"
    if not _apply_command(controller, command):
        console.print("[dim]Nothing to do for that right now.[/]")
    return None


def _apply_command(
    controller: QuizController, command: SessionCommand
) -> bool:
    if command.type == "select":
        question = controller.current_question
        if question is None or command.choice is None:
            return False
        if not 0 <= command.choice < len(question.options):
            return False
        return controller.toggle_option(question.options[command.choice])
    if command.type == "confirm":
        if controller.phase is Phase.REVIEWING_FEEDBACK:
            return controller.advance()
        if controller.current_question is None:
            return controller.submit_early()
        return controller.commit_answer()
    if command.type == "check":
        return controller.commit_answer()
    if command.type == "next":
        return controller.advance()
    if command.type == "prev":
        return controller.go_back()
    if command.type == "submit":
        return controller.submit_early()
    if command.type == "restart":
        return controller.restart()
    if command.type == "home":
        return controller.go_home()
    return False


def _category_from_input(raw: str) -> QuizCategory | None:
    text = raw.strip()
    if text.isdigit():
        members = list(QuizCategory)
        number = int(text)
        return members[number - 1] if 1 <= number <= len(members) else None
    return QuizCategory.parse(text)


# Rendering ----------------------------------------------------------------


def _render(
    controller: QuizController,
    console: Console,
    *,
    show_explanations: bool,
) -> None:
    current = controller.phase
    console.print()
    if current is Phase.NO_PLAYER:
        console.print(
            Panel(
                "Welcome! Type your name to begin.",
                title="Quiz",
                border_style="cyan",
            )
        )
    elif current is Phase.CATEGORY_SELECTION:
        _render_categories(controller, console)
    elif current is Phase.COMPLETED:
        render_summary(
            console,
            controller.results(),
            player=controller.session.player,
        )
        console.print(
            Text("Commands: restart, home, quit", style="dim")
        )
    else:
        _render_question(controller, console, show_explanations)


def _render_categories(controller: QuizController, console: Console) -> None:
    counts = controller.catalog.counts()
    table = Table(
        title=f"Hello, {controller.session.player}! Choose a category",
        box=box.SIMPLE,
        expand=False,
    )
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Category")
    table.add_column("Questions", justify="right")
    for number, category in enumerate(QuizCategory, start=1):
        table.add_row(str(number), category.label, str(counts[category]))
    console.print(table)


def _render_question(
    controller: QuizController,
    console: Console,
    show_explanations: bool,
) -> None:
    session = controller.session
    question = controller.current_question
    if question is None:
        console.print(
            Panel(
                "This category has no questions. Press Enter to finish.",
                title="Quiz",
                border_style="yellow",
            )
        )
        return

    header = Text.assemble(
        (f"Question {session.current_index + 1}", "bold cyan"),
        (f" of {session.question_count}", "dim"),
    )
    console.rule(header)
    console.print(ProgressBar(total=1.0, completed=progress(session)))
    console.print(Text(question.text, style="bold"))
    if question.is_multi:
        console.print(Text("Select all that apply", style="italic yellow"))

    revealed = session.feedback_revealed
    table = Table(show_header=False, box=box.SIMPLE, expand=True)
    table.add_column("Key", justify="center", style="cyan")
    table.add_column("Choice")
    styles = {
        "correct": "bold green",
        "wrong": "bold red",
        "selected": "bold blue",
        "neutral": "",
        "muted": "dim",
    }
    marks = option_marks(question, session.selected_options, revealed)
    for position, (option, mark) in enumerate(
        zip(question.options, marks), start=1
    ):
        indicator = "✓" if option in session.selected_options else " "
        row = Text(f"{indicator} ")
        row.append(option, style=styles[mark])
        table.add_row(str(position), row)
    console.print(table)

    if revealed:
        _render_feedback(console, question, session, show_explanations)
        label = "See results" if session.is_last_question else "Next question"
        console.print(Text(f"Press Enter: {label}", style="dim"))
        return

    hints = ["numbers to choose"]
    if session.selected_options:
        hints.append("Enter or c to check")
    if session.current_index > 0:
        hints.append("p to go back")
    hints.extend(["submit", "home", "quit"])
    answered = len(session.history)
    console.print(
        Text(
            f"Answered {answered}/{session.question_count} | "
            f"Commands: {', '.join(hints)}",
            style="dim",
        )
    )


def _render_feedback(
    console: Console,
    question: Question,
    session: QuizSession,
    show_explanations: bool,
) -> None:
    if session.last_answer_correct:
        body = Text("✅ Correct!", style="bold green")
    else:
        body = Text("❌ Incorrect", style="bold red")
        body.append("\nCorrect answer:", style="bold")
        for answer in correct_options(question):
            body.append(f"\n• {answer}")
    if show_explanations and question.explanation:
        body.append(f"\n\n{question.explanation}", style="italic")
    border = "green" if session.last_answer_correct else "red"
    console.print(Panel(body, title="Feedback", border_style=border))


def render_summary(
    console: Console,
    results: QuizResults,
    *,
    player: str | None = None,
) -> None:
    console.rule(Text("Quiz Complete!", style="bold magenta"))
    tier = results.tier
    greeting = f"{tier.icon}  Well played, {player}!" if player else tier.icon
    console.print(Text(greeting, style="bold"))

    overview = Table(
        show_header=False, box=box.MINIMAL_DOUBLE_HEAD, expand=False
    )
    overview.add_column("Metric", style="bold")
    overview.add_column("Value", justify="right")
    overview.add_row("Score", f"{results.score} / {results.total}")
    overview.add_row("Percentage", f"{results.percentage}%")
    overview.add_row("Answered", str(results.answered))
    overview.add_row("Total time", f"{results.total_time}s")
    overview.add_row(
        "Average per answer", f"{results.average_time_per_answered}s"
    )
    console.print(overview)

    if not results.history:
        return
    review = Table(title="Review", box=box.SIMPLE, expand=True)
    review.add_column("#", justify="right")
    review.add_column("Question", overflow="fold")
    review.add_column("Your answer")
    review.add_column("Correct answer")
    review.add_column("Time", justify="right")
    review.add_column("Result", justify="center")
    for record in results.history:
        correct = record.correct_answer
        review.add_row(
            str(record.question_index + 1),
            record.question_text,
            ", ".join(record.user_answer),
            correct if isinstance(correct, str) else ", ".join(correct),
            f"{record.time_spent_seconds}s",
            "✅" if record.is_correct else "❌",
        )
    console.print(review)
