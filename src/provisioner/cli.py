"""badge-provision: provision one badge from the terminal."""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn
from rich.text import Text

from provisioner.config import Settings, get_settings
from provisioner.models.events import Complete, StepUpdate
from provisioner.models.request import (
    ImageSelection,
    LedMode,
    ProvisioningRequest,
    sanitize_badge_name,
)
from provisioner.services.executor import StepExecutor
from provisioner.services.pipeline import start
from provisioner.utils.logging import setup_logger

console = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="badge-provision",
        description="Write the badge configuration and push it to the connected badge.",
    )
    parser.add_argument(
        "--image",
        choices=[image.value for image in ImageSelection],
        help="Picture to upload (default placeholder when omitted)",
    )
    parser.add_argument(
        "--led-mode",
        type=int,
        default=int(LedMode.ACCEL),
        help="LED mode ordinal 0-13 (default: 13, Accelerometer)",
    )
    parser.add_argument("--name", default="", help="Badge name (letters and numbers only)")
    parser.add_argument("--work-dir", type=Path, help="Directory for generated artifacts")
    parser.add_argument("--assets-dir", type=Path, help="Directory holding image assets")
    parser.add_argument("--timeout", type=float, help="Per-step timeout in seconds")
    parser.add_argument("--program", help="Transport utility to invoke")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show step output and logs")
    return parser


def _settings_from_args(args: argparse.Namespace) -> Settings:
    overrides = {
        "work_dir": args.work_dir,
        "assets_dir": args.assets_dir,
        "step_timeout": args.timeout,
        "transport_program": args.program,
    }
    given = {key: value for key, value in overrides.items() if value is not None}
    return Settings.model_validate({**get_settings().model_dump(), **given})


async def provision(
    request: ProvisioningRequest,
    settings: Settings,
    executor: Optional[StepExecutor] = None,
    verbose: bool = False,
) -> Complete:
    """Run one provisioning and render its events until Complete."""
    run = start(request, executor=executor, settings=settings)
    result: Optional[Complete] = None

    with Progress(
        SpinnerColumn(),
        TextColumn("{task.description}"),
        BarColumn(),
        TextColumn("{task.percentage:>3.0f}%"),
        console=console,
        transient=True,
    ) as progress:
        task_id = progress.add_task("Starting configuration...", total=1.0)
        async for event in run.events():
            if isinstance(event, StepUpdate):
                if verbose and event.detail:
                    progress.console.print(event.detail, markup=False, highlight=False)
                progress.console.print(f"[cyan]{event.description}[/cyan]")
                progress.update(task_id, description=event.description, completed=event.fraction)
            else:
                progress.update(task_id, completed=1.0)
                result = event

    return result


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        request = ProvisioningRequest(
            image_selection=args.image,
            led_mode=args.led_mode,
            badge_name=sanitize_badge_name(args.name),
        )
    except ValidationError as e:
        console.print(f"[bold red]Invalid request:[/bold red] {e.errors()[0]['msg']}")
        return 2

    try:
        settings = _settings_from_args(args)
    except ValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error["loc"])
        console.print(f"[bold red]Invalid option {field}:[/bold red] {error['msg']}")
        return 2

    setup_logger(
        "provisioner",
        settings.log_file,
        level=settings.log_level if args.verbose else "WARNING",
    )

    result = asyncio.run(provision(request, settings, verbose=args.verbose))

    if result.success:
        console.print(Panel(Text(result.message), title="Configuration successful!", border_style="green"))
        return 0
    console.print(Panel(Text(result.message), title="Configuration failed", border_style="red"))
    return 1


if __name__ == "__main__":
    sys.exit(main())
