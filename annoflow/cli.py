from typing import List, Optional
import typer
import asyncio
import logging
from typing_extensions import Annotated
from rich.console import Console
from rich.table import Table

from annoflow.client.annoflow import AnnoFlow
from annoflow.domains import (
    Actor,
    FlaggedImage,
    ReviewDecision,
    SubmissionStatus,
    UserAllocation,
    UserRole,
)
from annoflow.exceptions import WorkflowError

# --- Basic Logging Configuration ---
logging.basicConfig(level=logging.WARNING, format="%(levelname)s:%(name)s:%(message)s")
# --- End Logging Configuration ---

app = typer.Typer(help="Assignment distribution and review workflow for image annotation.")
console = Console()

ConfigOption = Annotated[
    str, typer.Option(help="Path to the configuration JSON or Python file.")
]
ActorOption = Annotated[str, typer.Option(help="ID of the user running the command.")]
RoleOption = Annotated[UserRole, typer.Option(help="System role of the acting user.")]


def load_client(config: str) -> AnnoFlow:
    """Build the client, turning configuration problems into a clean exit."""
    try:
        return AnnoFlow(config_path=config)
    except FileNotFoundError:
        console.print(
            f"[bold red]Error:[/bold red] Configuration file not found at '{config}'"
        )
        raise typer.Exit(code=1)
    except ValueError as e:
        console.print(f"[bold red]Error loading configuration:[/bold red] {e}")
        raise typer.Exit(code=1)


def run(coro):
    """Run a workflow coroutine, reporting workflow errors without a traceback."""
    try:
        return asyncio.run(coro)
    except WorkflowError as e:
        console.print(f"[bold red]{type(e).__name__}:[/bold red] {e}")
        raise typer.Exit(code=1)


def parse_allocations(values: List[str]) -> List[UserAllocation]:
    allocations = []
    for value in values:
        user_id, sep, count = value.partition("=")
        if not sep or not count.strip().lstrip("-").isdigit():
            raise typer.BadParameter(
                f"Expected USER=COUNT, got '{value}'", param_hint="--allocate")
        allocations.append(UserAllocation(user_id=user_id.strip(), count=int(count)))
    return allocations


def print_distribution(result) -> None:
    table = Table(title=f"Distribution for project {result.project_id}")
    table.add_column("Annotator")
    table.add_column("Images", justify="right")
    for user_id, count in result.assigned.items():
        table.add_row(user_id, str(count))
    console.print(table)
    console.print(
        f"[green]Assigned {result.total_assigned} of {result.pool_size} images; "
        f"{result.remaining} left in the pool.[/green]"
    )
    if result.skipped_claims:
        console.print(
            f"[yellow]{len(result.skipped_claims)} images were claimed concurrently "
            "and skipped.[/yellow]"
        )


@app.command("distribute-smart")
def distribute_smart(
    project_id: str,
    actor: ActorOption,
    role: RoleOption = UserRole.ADMIN,
    reset: Annotated[
        bool, typer.Option(help="Also reclaim assigned images that are not annotated yet.")
    ] = False,
    config: ConfigOption = "config.json",
):
    """Split the image pool evenly across the project's annotators."""
    client = load_client(config)
    result = run(client.distribute_smart(
        project_id, Actor(user_id=actor, role=role), reset_distribution=reset))
    print_distribution(result)


@app.command("distribute-manual")
def distribute_manual(
    project_id: str,
    actor: ActorOption,
    allocate: Annotated[
        List[str], typer.Option(help="Allocation as USER=COUNT; repeat for each annotator.")
    ],
    role: RoleOption = UserRole.ADMIN,
    reset: Annotated[
        bool, typer.Option(help="Also reclaim assigned images that are not annotated yet.")
    ] = False,
    config: ConfigOption = "config.json",
):
    """Assign explicit image counts to annotators."""
    allocations = parse_allocations(allocate)
    client = load_client(config)
    result = run(client.distribute_manual(
        project_id, allocations, Actor(user_id=actor, role=role), reset_distribution=reset))
    print_distribution(result)


@app.command()
def submit(
    project_id: str,
    user_id: str,
    assignment_id: str,
    message: Annotated[str, typer.Option(help="Note for the reviewer.")] = "",
    config: ConfigOption = "config.json",
):
    """Submit an assignment's images for review."""
    client = load_client(config)
    submission = run(client.submit_for_review(project_id, user_id, assignment_id, message))
    console.print(
        f"[green]Submitted {len(submission.image_ids)} images for review "
        f"(submission {submission.id}).[/green]"
    )


@app.command()
def review(
    submission_id: str,
    actor: ActorOption,
    status: Annotated[SubmissionStatus, typer.Option(help="Review decision.")],
    role: RoleOption = UserRole.USER,
    feedback: Annotated[str, typer.Option(help="Overall feedback.")] = "",
    flag: Annotated[
        Optional[List[str]], typer.Option(help="Image to flag, as IMAGE_ID or IMAGE_ID=REASON.")
    ] = None,
    config: ConfigOption = "config.json",
):
    """Approve, reject or take a submission under review."""
    flagged = []
    for value in flag or []:
        image_id, _, reason = value.partition("=")
        flagged.append(FlaggedImage(image_id=image_id, reason=reason))

    decision = ReviewDecision(status=status, feedback=feedback, flagged_images=flagged)
    client = load_client(config)
    submission = run(client.review_submission(
        submission_id, Actor(user_id=actor, role=role), decision))
    console.print(f"[green]Submission {submission.id} is now {submission.status}.[/green]")


@app.command("remove-member")
def remove_member(
    project_id: str,
    user_id: str,
    actor: ActorOption,
    role: RoleOption = UserRole.ADMIN,
    config: ConfigOption = "config.json",
):
    """Remove a member and return their unfinished images to the pool."""
    client = load_client(config)
    run(client.remove_member(project_id, user_id, Actor(user_id=actor, role=role)))
    console.print(f"[green]Removed {user_id} from project {project_id}.[/green]")


@app.command()
def complete(
    project_id: str,
    actor: ActorOption,
    role: RoleOption = UserRole.ADMIN,
    config: ConfigOption = "config.json",
):
    """Mark a project complete once every image is approved."""
    client = load_client(config)
    project = run(client.mark_project_complete(project_id, Actor(user_id=actor, role=role)))
    console.print(f"[green]Project {project.name} marked as complete.[/green]")


@app.command()
def metrics(
    project_id: str,
    config: ConfigOption = "config.json",
):
    """Show assignment progress for a project."""
    client = load_client(config)
    result = run(client.get_assignment_metrics(project_id))

    console.print(
        f"Images: {result.total_images} total, {result.unassigned_images} unassigned, "
        f"{result.assigned_images} assigned, {result.annotated_images} annotated, "
        f"{result.redistributable_images} redistributable"
    )
    table = Table(title="Annotator progress")
    table.add_column("Annotator")
    table.add_column("Assigned", justify="right")
    table.add_column("Annotated", justify="right")
    table.add_column("Progress", justify="right")
    table.add_column("Avg s/image", justify="right")
    table.add_column("Last activity")
    for user in result.user_progress:
        table.add_row(
            user.user_id,
            str(user.total_assigned),
            str(user.annotated),
            f"{user.progress}%",
            str(user.average_time_per_image),
            user.last_activity.isoformat(timespec="seconds") if user.last_activity else "-",
        )
    console.print(table)


@app.command("can-submit")
def can_submit(
    project_id: str,
    user_id: str,
    config: ConfigOption = "config.json",
):
    """Check whether a user may submit work for review."""
    client = load_client(config)
    eligibility = run(client.can_user_submit(project_id, user_id))
    if eligibility.can_submit:
        console.print(f"[green]{user_id} can submit work for review.[/green]")
    else:
        console.print(f"[yellow]{user_id} cannot submit: {eligibility.reason}[/yellow]")


if __name__ == "__main__":
    app()
