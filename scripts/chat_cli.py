#!/usr/bin/env python3
"""Interactive chat CLI for testing the chat service."""

import argparse
import asyncio
import os
from collections.abc import Awaitable

import httpx
from rich.console import Console
from rich.live import Live
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Prompt

from aurora.client.controller import ChatState, ChatsApiPersistence, ClientChatController


class ChatCLI:
    """Interactive chat interface driven by the client chat controller."""

    def __init__(self, base_url: str, token: str | None, toolkits: list[str]):
        """Initialize chat CLI."""
        self.base_url = base_url
        self.token = token
        self.toolkits = toolkits
        self.console = Console()
        self.http = httpx.AsyncClient(base_url=base_url, timeout=None)
        self.persistence = ChatsApiPersistence(self.http, self._get_token)
        self.controller = self._new_controller()
        self.live: Live | None = None

    def _new_controller(self) -> ClientChatController:
        controller = ClientChatController(
            self.http,
            self._get_token,
            on_success=self.persistence,
            enabled_toolkits=self.toolkits,
        )
        controller.subscribe(self._render_partial)
        return controller

    async def _get_token(self) -> str | None:
        return self.token

    def _render_partial(self, state: ChatState) -> None:
        if self.live and state.streaming_partial:
            self.live.update(Panel(Markdown(state.streaming_partial), border_style="green"))

    async def start(self) -> None:
        """Start the interactive chat session."""
        self.console.print(
            Panel.fit(
                "[bold blue]Aurora Chat - Interactive Chat[/bold blue]\n"
                "Type your messages to chat with the assistant.\n"
                "Commands: /help, /retry, /clear, /quit",
                border_style="blue",
            )
        )

        if not await self._test_connection():
            self.console.print(f"[red]Cannot connect to the service at {self.base_url}.[/red]")
            return

        self.console.print("[green]Connected to chat service[/green]\n")
        if not self.token:
            self.console.print("[yellow]No token set (AURORA_TOKEN); requests will fail with session expired.[/yellow]")
        if self.toolkits:
            self.console.print(f"[dim]Tool-calling mode with toolkits: {', '.join(self.toolkits)}[/dim]")

        try:
            while True:
                user_input = Prompt.ask("\n[bold cyan]You[/bold cyan]")
                command = user_input.strip().lower()

                if command in ["/quit", "/exit", "quit", "exit"]:
                    break
                elif command == "/help":
                    self._show_help()
                    continue
                elif command == "/clear":
                    self.persistence.chat_id = None
                    self.controller = self._new_controller()
                    self.console.print("[yellow]Conversation cleared[/yellow]")
                    continue
                elif command == "/retry":
                    if self.controller.state.last_failed_message is None:
                        self.console.print("[dim]Nothing to retry[/dim]")
                        continue
                    await self._send(self.controller.retry_last_failed())
                    continue
                elif command == "":
                    continue

                await self._send(self.controller.send_message(user_input))

        except (KeyboardInterrupt, EOFError):
            pass
        finally:
            self.console.print("\n[yellow]Goodbye![/yellow]")
            await self.http.aclose()

    async def _test_connection(self) -> bool:
        """Test connection to the service."""
        try:
            response = await self.http.get("/health")
            return response.status_code == 200
        except httpx.HTTPError:
            return False

    async def _send(self, turn: Awaitable[None]) -> None:
        """Run one controller turn and render its outcome."""
        with Live(Panel("[dim]Thinking...[/dim]", border_style="green"), console=self.console) as live:
            self.live = live
            await turn
            self.live = None

            state = self.controller.state
            if state.last_failed_message is not None and state.last_error is not None:
                live.update(Panel(f"[red]{state.last_error.message}[/red]", border_style="red"))
                return

            answer = state.messages[-1].content if state.messages else ""
            live.update(
                Panel(
                    Markdown(answer),
                    title="[bold green]Aurora[/bold green]",
                    border_style="green",
                    padding=(1, 2),
                )
            )

        self._show_tool_work()
        if self.controller.state.last_error is not None:
            self.console.print(f"[yellow]{self.controller.state.last_error.message}[/yellow]")
        elif self.persistence.title:
            self.console.print(f"[dim]Saved to: {self.persistence.title}[/dim]")

    def _show_tool_work(self) -> None:
        state = self.controller.state
        if not state.tool_calls:
            return
        results = {result.tool_call_id: result for result in state.tool_results}
        lines = []
        for tool_call in state.tool_calls:
            result = results.get(tool_call.id)
            marker = "[red]error[/red]" if result is None or result.is_error else "[green]ok[/green]"
            lines.append(f"• {tool_call.function_name} {marker}")
        self.console.print(Panel("\n".join(lines), title="[yellow]Tools used[/yellow]", border_style="yellow"))

    def _show_help(self) -> None:
        """Show help information."""
        help_text = """
[bold]Available Commands:[/bold]
• /help - Show this help message
• /retry - Resend the last message that failed
• /clear - Start a new conversation
• /quit or /exit - Exit the chat

[bold]Tips:[/bold]
• Set AURORA_TOKEN to a token the server accepts (AURORA_DEV_TOKEN when running without Appwrite)
• Pass --toolkit HACKERNEWS (repeatable) to use the tool-calling endpoint
        """

        self.console.print(Panel(help_text.strip(), title="[cyan]Help[/cyan]", border_style="cyan"))


def main():
    """Main entry point for the chat CLI."""
    parser = argparse.ArgumentParser(description="Chat with the Aurora service")
    parser.add_argument("base_url", nargs="?", default="http://localhost:8000")
    parser.add_argument("--token", default=os.getenv("AURORA_TOKEN"))
    parser.add_argument("--toolkit", action="append", default=[], dest="toolkits")
    args = parser.parse_args()

    chat = ChatCLI(args.base_url, args.token, args.toolkits)
    asyncio.run(chat.start())


if __name__ == "__main__":
    main()
