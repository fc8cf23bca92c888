"""Main CLI application."""

import typer
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()

from .init import init_command
from .run import reprocess_command, run_command, serve_command, videos_command
from .sources import sources_app

app = typer.Typer(
    name="autonews",
    help="autonews - YouTube channel to news article pipeline",
    no_args_is_help=True,
)

# Register commands
app.command("init")(init_command)
app.command("run")(run_command)
app.command("reprocess")(reprocess_command)
app.command("serve")(serve_command)
app.command("videos")(videos_command)
app.add_typer(sources_app, name="sources", help="Manage YouTube channel sources")


if __name__ == "__main__":
    app()
