import click
from pathlib import Path
import logging
import sys
from typing import Optional

from .configuration import load_config
from .logging_config import configure_logging, level_for_verbosity

logger = logging.getLogger(__name__)

__version__ = "0.1.0"


@click.group()
@click.option("-v", "--verbose", count=True)
@click.option(
    "--env-file",
    type=click.Path(path_type=Path, dir_okay=False),
    help="Additional .env file to load settings from",
)
@click.option("--json-logs", is_flag=True, help="Emit structured JSON log lines")
@click.pass_context
def main(ctx: click.Context, verbose: int, env_file: Optional[Path], json_logs: bool) -> None:
    """Service registration submission workflow"""
    config = load_config(env_file)
    configure_logging(level_for_verbosity(verbose, config.log_level), structured=json_logs)
    ctx.obj = config


@main.command()
@click.option("--host", help="Interface to bind, overrides MGMT_HOST")
@click.option("--port", type=int, help="Port to bind, overrides MGMT_PORT")
@click.pass_obj
def serve(config, host: Optional[str], port: Optional[int]) -> None:
    """Run the HTTP API"""
    from aiohttp import web

    from .web import create_app

    host = host or config.host
    port = port or config.port
    logger.info(f"🚀 Serving on http://{host}:{port}")
    web.run_app(create_app(config), host=host, port=port, print=None)


@main.command()
@click.pass_obj
def pending(config) -> None:
    """List queued registration requests"""
    from .submissions import SubmissionQueue

    queue = SubmissionQueue(config.submissions_dir)
    records = queue.entries()
    if not records:
        click.echo("No pending requests")
        return
    for record in records:
        author = record.author.email or "<unknown>"
        click.echo(f"{record.kind.value:<7} {record.filename}  {author} {record.author.name}")
    click.echo(f"{queue.count()} pending request(s)")


@main.command()
@click.argument("filename")
@click.pass_obj
def show(config, filename: str) -> None:
    """Print the queued request FILENAME and who submitted it"""
    from .error_handling import WorkflowError
    from .submissions import SubmissionQueue

    queue = SubmissionQueue(config.submissions_dir)
    try:
        service = queue.read(filename)
        author = queue.author(filename)
    except WorkflowError as e:
        click.echo(f"❌ {e.message}", err=True)
        sys.exit(1)
    click.echo(f"# submitted by {author.email or '<unknown>'} {author.name}".rstrip())
    click.echo(service.to_json())


@main.command()
@click.argument("user_id")
@click.option("--open", "only_open", is_flag=True, help="Only units still awaiting review")
@click.pass_obj
def reviews(config, user_id: str, only_open: bool) -> None:
    """List review units submitted by USER_ID"""
    from .controllers import ReviewController
    from .error_handling import WorkflowError
    from .git import RepositoryFactory
    from .models import UserProfile
    from .notifications import LogNotifier

    controller = ReviewController(RepositoryFactory(config), config, LogNotifier(config))
    user = UserProfile(id=user_id, email="")
    try:
        units = controller.list_outstanding(user) if only_open else controller.list_review_units(user)
    except WorkflowError as e:
        click.echo(f"❌ {e.message}", err=True)
        sys.exit(1)
    if not units:
        click.echo(f"No review units for {user_id}")
        return
    for unit in units:
        click.echo(f"{unit.status.value:<8} {unit.title}  {unit.commit[:8]}  {unit.message}")


if __name__ == "__main__":
    main()
