"""
Command-line interface for screwplanner.

Provides commands for inspecting robot configurations and planning screw
motions from request files.
"""

import json
from pathlib import Path
from typing import Optional

import click
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from screwplanner import __version__
from screwplanner.core.config import ConfigManager, PlannerConfig, load_yaml
from screwplanner.core.exceptions import ScrewPlannerError
from screwplanner.core.logging import configure_logging
from screwplanner.core.robot import RobotLoader
from screwplanner.motion.planner import PlanningRequest, ScrewPlanner

console = Console()


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config-dir",
    type=click.Path(path_type=Path),
    default="config",
    help="Configuration directory",
)
@click.option("--log-level", default="WARNING", help="Log level")
@click.option("--json-logs", is_flag=True, help="Emit logs as JSON lines")
@click.pass_context
def main(ctx: click.Context, config_dir: Path, log_level: str, json_logs: bool) -> None:
    """screwplanner - Screw-constrained manipulator motion planning."""
    configure_logging(level=log_level, json_output=json_logs)
    ctx.ensure_object(dict)
    ctx.obj["config_dir"] = config_dir


# =============================================================================
# Configuration Commands
# =============================================================================


@main.group()
def config() -> None:
    """Configuration management commands."""
    pass


@config.command("list")
@click.pass_context
def config_list(ctx: click.Context) -> None:
    """List available robot and planner configurations."""
    try:
        config_mgr = ConfigManager(ctx.obj["config_dir"])

        table = Table(title="Configurations")
        table.add_column("Kind", style="cyan")
        table.add_column("Name")
        table.add_column("Details")

        for name in config_mgr.list_robots():
            robot = config_mgr.get_robot(name)
            groups = ", ".join(robot.groups) or "(all joints)"
            table.add_row("robot", name, f"ee={robot.ee_frame} groups={groups}")
        for name in config_mgr.list_planners():
            planner = config_mgr.get_planner(name)
            table.add_row(
                "planner",
                name,
                f"solve={planner.solve_time}s goals={planner.num_goal}",
            )

        console.print(table)

    except ScrewPlannerError as e:
        console.print(f"[red]✗[/red] Failed to list configurations: {e}")
        raise SystemExit(1)


# =============================================================================
# Robot Commands
# =============================================================================


@main.command("joints")
@click.argument("robot")
@click.option("--group", "-g", default=None, help="Move group name")
@click.pass_context
def joints(ctx: click.Context, robot: str, group: Optional[str]) -> None:
    """Show the active joints of a robot's move group."""
    try:
        config_mgr = ConfigManager(ctx.obj["config_dir"])
        instance = RobotLoader.load_from_config(config_mgr.get_robot(robot))
        kinematics = instance.build_kinematics(group, with_collision=False)

        table = Table(title=f"Move group: {group or '(all joints)'}")
        table.add_column("Joint", style="cyan")
        table.add_column("Kind")
        table.add_column("Lower")
        table.add_column("Upper")

        for joint in kinematics.active_joints():
            lower, upper = joint.bounds if joint.bounds else ("-", "-")
            table.add_row(joint.name, joint.kind.value, str(lower), str(upper))

        console.print(table)

    except ScrewPlannerError as e:
        console.print(f"[red]✗[/red] Failed to load robot: {e}")
        raise SystemExit(1)


# =============================================================================
# Planning Commands
# =============================================================================


@main.command("plan")
@click.argument("request_path", type=click.Path(exists=True, path_type=Path))
@click.option("--robot", "-r", required=True, help="Robot configuration name")
@click.option("--planner", "-p", default=None, help="Planner configuration name")
@click.option("--seed", type=int, default=None, help="Random seed")
@click.option("--no-collision", is_flag=True, help="Skip collision checking")
@click.option(
    "--output", "-o", type=click.Path(path_type=Path), help="Write the response as JSON"
)
@click.pass_context
def plan(
    ctx: click.Context,
    request_path: Path,
    robot: str,
    planner: Optional[str],
    seed: Optional[int],
    no_collision: bool,
    output: Optional[Path],
) -> None:
    """Plan a screw motion described in REQUEST_PATH (YAML or JSON)."""
    try:
        data = load_yaml(request_path)
        request = PlanningRequest(**data.get("request", data))
    except ValidationError as e:
        console.print(f"[red]✗[/red] Invalid request: {e}")
        raise SystemExit(1)
    except ScrewPlannerError as e:
        console.print(f"[red]✗[/red] Failed to read request: {e}")
        raise SystemExit(1)

    try:
        config_mgr = ConfigManager(ctx.obj["config_dir"])
        planner_config = config_mgr.get_planner(planner) if planner else PlannerConfig()
        instance = RobotLoader.load_from_config(config_mgr.get_robot(robot))
        kinematics = instance.build_kinematics(
            request.move_group,
            ee_frame=request.ee_frame_name,
            with_collision=not no_collision,
        )
    except ScrewPlannerError as e:
        console.print(f"[red]✗[/red] Failed to set up planner: {e}")
        raise SystemExit(1)

    try:
        response = ScrewPlanner(
            kinematics, move_group=request.move_group, config=planner_config
        ).plan(request, seed=seed)
    finally:
        if kinematics.collision_checker is not None:
            kinematics.collision_checker.close()

    table = Table(title="Screw plan")
    table.add_column("Property", style="cyan")
    table.add_column("Value")
    table.add_row("Outcome", response.outcome.value)
    table.add_row("Trajectory valid", "✓" if response.trajectory_is_valid else "✗")
    table.add_row("Complete", f"{response.percentage_complete:.1%}")
    table.add_row("Points", str(len(response.trajectory)))
    table.add_row("Path length", f"{response.path_length:.4f}")
    console.print(table)

    if output:
        output.write_text(json.dumps(response.to_dict(), indent=2))
        console.print(f"[green]✓[/green] Wrote response to {output}")

    if not response.succeeded:
        raise SystemExit(2)


if __name__ == "__main__":
    main()
