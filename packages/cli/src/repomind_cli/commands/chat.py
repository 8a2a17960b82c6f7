"""chat command — ask the repository assistant questions."""

from __future__ import annotations

import click
from rich.console import Console

from repomind_cli.guards import select_repo_error
from repomind_core.chat import ConversationSession, open_conversation
from repomind_core.errors import ConcurrentOperationRejected
from repomind_core.models import Message, Role
from repomind_store.identity import MissingContextError

console = Console()

_EXIT_WORDS = {"exit", "quit", ":q"}


def _print_message(message: Message, is_error: bool = False) -> None:
    if message.role is Role.USER:
        console.print(f"[bold cyan]you ›[/bold cyan] {message.content}")
    elif is_error:
        console.print(f"[bold red]repomind ›[/bold red] {message.content}")
    else:
        console.print(f"[bold magenta]repomind ›[/bold magenta] {message.content}")


def _ask(session: ConversationSession, text: str) -> bool:
    """Send one turn and print the reply. Returns False if the reply is an error notice."""
    with console.status("Thinking..."):
        result = session.send_turn(text)
    if result is None:
        return False
    _print_message(Message(Role.ASSISTANT, result.text), is_error=not result.ok)
    return result.ok


@click.command("chat")
@click.option("--ask", "question", default=None, help="Ask one question and exit.")
@click.option("--new", "new_conversation", is_flag=True, help="Start a new conversation in this terminal.")
@click.pass_context
def chat_cmd(ctx, question: str | None, new_conversation: bool):
    """Chat with the current repository.

    The conversation id is kept per terminal session, so follow-up questions
    asked with --ask share context until --new is passed or the terminal
    session ends.
    """
    identity = ctx.obj["identity"]
    if new_conversation:
        identity.reset_conversation()

    try:
        session = open_conversation(identity, ctx.obj["gateway"])
    except MissingContextError:
        raise select_repo_error() from None
    ctx.call_on_close(session.close)

    if question is not None:
        if not question.strip():
            raise click.UsageError("Question must not be empty.")
        if not _ask(session, question):
            ctx.exit(1)
        return

    console.print(f"[dim]Chatting with {session.context.repository.repository_name}. Type 'exit' to leave.[/dim]")
    _print_message(session.messages[0])
    while True:
        try:
            text = click.prompt("you", prompt_suffix=" › ", default="", show_default=False)
        except (EOFError, click.Abort):
            break
        if text.strip().lower() in _EXIT_WORDS:
            break
        if not text.strip():
            continue
        try:
            _ask(session, text)
        except ConcurrentOperationRejected as e:
            console.print(f"[yellow]{e}[/yellow]")
