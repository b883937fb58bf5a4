"""
Demonstration of screw-constrained planning on the XY table.

This script shows how to:
1. Load the robot and planner configuration
2. Build a kinematics provider with collision checking
3. Plan a quarter turn of a door and a straight drawer pull
4. Inspect validity and completion of the result

Run from the repository root so the relative URDF path resolves.
"""

from pathlib import Path

from screwplanner.core.config import ConfigManager, load_yaml
from screwplanner.core.logging import configure_logging
from screwplanner.core.robot import RobotLoader
from screwplanner.motion.planner import PlanningRequest, ScrewPlanner

EXAMPLE_DIR = Path(__file__).parent


def plan_file(planner, request_file):
    request = PlanningRequest(**load_yaml(EXAMPLE_DIR / request_file)["request"])
    response = planner.plan(request, seed=0)

    print(f"   Outcome:          {response.outcome.value}")
    print(f"   Trajectory valid: {response.trajectory_is_valid}")
    print(f"   Complete:         {response.percentage_complete:.1%}")
    print(f"   Points:           {len(response.trajectory)}")
    if response.trajectory:
        first = [f"{v:.3f}" for v in response.trajectory[0]]
        last = [f"{v:.3f}" for v in response.trajectory[-1]]
        print(f"   First point:      {first}")
        print(f"   Last point:       {last}")
    return response


def main():
    """Run screw planning demonstration."""
    configure_logging(level="INFO")

    print("=" * 60)
    print("Screw Planning Demo")
    print("=" * 60)

    # 1. Configuration
    print("\n1. Loading configuration")
    config = ConfigManager(Path("config"))
    robot_config = config.get_robot("xy_table")
    planner_config = config.get_planner("fast")
    print(f"   [OK] Robot: {robot_config.name}")
    print(f"   [OK] Move groups: {', '.join(robot_config.groups)}")

    # 2. Kinematics
    print("\n2. Building kinematics for move group 'table'")
    robot = RobotLoader.load_from_config(robot_config)
    kinematics = robot.build_kinematics("table")
    print(f"   [OK] Active joints: {kinematics.variable_names()}")

    try:
        planner = ScrewPlanner(kinematics, move_group="table", config=planner_config)

        # 3. Door: seeded from a joint state
        print("\n3. Door quarter turn (seeded start)")
        plan_file(planner, "door_request.yaml")

        # 4. Drawer: start given as a Cartesian pose
        print("\n4. Drawer pull (start pose only)")
        plan_file(planner, "drawer_request.yaml")
    finally:
        kinematics.collision_checker.close()

    print("\n" + "=" * 60)
    print("[SUCCESS] Screw planning demo completed")
    print("=" * 60)


if __name__ == "__main__":
    main()
