"""
Tests for robot module.
"""

from unittest.mock import MagicMock, patch

import pytest
from compas_robots import RobotModel

from screwplanner.core.config import RobotConfig
from screwplanner.core.exceptions import RobotError
from screwplanner.core.robot import RobotInstance, RobotLoader


@pytest.fixture
def mock_robot_config():
    """Create a mock robot configuration."""
    return RobotConfig(
        name="test_robot",
        urdf_path="/fake/path/robot.urdf",
        ee_frame="tool0",
        groups={"arm": ["joint_1", "joint_2"], "wrist": ["joint_2"]},
        joint_limits={"joint_1": {"min": -3.14, "max": 3.14}},
    )


@pytest.fixture
def mock_robot_model():
    """Create a mock RobotModel."""
    model = MagicMock(spec=RobotModel)

    joint1 = MagicMock()
    joint1.name = "joint_1"
    joint1.is_configurable.return_value = True
    joint1.limit = MagicMock()
    joint1.limit.lower = -3.0
    joint1.limit.upper = 3.0

    joint2 = MagicMock()
    joint2.name = "joint_2"
    joint2.is_configurable.return_value = True
    joint2.limit = MagicMock()
    joint2.limit.lower = -1.5
    joint2.limit.upper = 1.5

    fixed_joint = MagicMock()
    fixed_joint.name = "fixed_joint"
    fixed_joint.is_configurable.return_value = False

    model.joints = [joint1, joint2, fixed_joint]

    link1 = MagicMock()
    link1.name = "base_link"
    link2 = MagicMock()
    link2.name = "tool0"
    model.links = [link1, link2]

    return model


class TestRobotLoader:
    """Tests for RobotLoader."""

    def test_load_nonexistent_urdf(self):
        with pytest.raises(RobotError, match="URDF file not found"):
            RobotLoader.load_from_urdf("/nonexistent/path/robot.urdf")

    @patch("screwplanner.core.robot.RobotModel.from_urdf_file")
    def test_load_from_urdf(self, mock_from_urdf, tmp_path, mock_robot_model):
        urdf_file = tmp_path / "robot.urdf"
        urdf_file.write_text("<robot></robot>")
        mock_from_urdf.return_value = mock_robot_model

        model = RobotLoader.load_from_urdf(urdf_file)

        assert model is mock_robot_model
        mock_from_urdf.assert_called_once_with(str(urdf_file))

    @patch("screwplanner.core.robot.RobotModel.from_urdf_file")
    def test_load_from_urdf_parse_error(self, mock_from_urdf, tmp_path):
        urdf_file = tmp_path / "robot.urdf"
        urdf_file.write_text("not xml")
        mock_from_urdf.side_effect = ValueError("bad urdf")

        with pytest.raises(RobotError, match="Failed to load URDF"):
            RobotLoader.load_from_urdf(urdf_file)

    def test_load_from_config_no_urdf(self):
        config = RobotConfig(name="test_robot", urdf_path=None)

        with pytest.raises(RobotError, match="has no URDF path"):
            RobotLoader.load_from_config(config)

    @patch("screwplanner.core.robot.RobotLoader.load_from_urdf")
    def test_load_from_config(self, mock_load_urdf, mock_robot_config, mock_robot_model):
        mock_load_urdf.return_value = mock_robot_model

        robot = RobotLoader.load_from_config(mock_robot_config)

        assert isinstance(robot, RobotInstance)
        assert robot.name == "test_robot"
        mock_load_urdf.assert_called_once_with("/fake/path/robot.urdf")


class TestRobotInstance:
    """Tests for RobotInstance."""

    def test_get_joint_names(self, mock_robot_model, mock_robot_config):
        robot = RobotInstance(model=mock_robot_model, config=mock_robot_config)

        assert robot.get_joint_names() == ["joint_1", "joint_2"]

    def test_get_link_names(self, mock_robot_model, mock_robot_config):
        robot = RobotInstance(model=mock_robot_model, config=mock_robot_config)

        assert robot.get_link_names() == ["base_link", "tool0"]

    def test_group_joints(self, mock_robot_model, mock_robot_config):
        robot = RobotInstance(model=mock_robot_model, config=mock_robot_config)

        assert robot.group_names() == ["arm", "wrist"]
        assert robot.group_joints("wrist") == ["joint_2"]
        assert robot.group_joints(None) == ["joint_1", "joint_2"]
        assert robot.group_joints("") == ["joint_1", "joint_2"]

    def test_unknown_group(self, mock_robot_model, mock_robot_config):
        robot = RobotInstance(model=mock_robot_model, config=mock_robot_config)

        with pytest.raises(RobotError, match="Move group not found") as exc_info:
            robot.group_joints("gripper")
        assert exc_info.value.details["available"] == ["arm", "wrist"]

    def test_apply_joint_limits(self, mock_robot_model, mock_robot_config):
        robot = RobotInstance(model=mock_robot_model, config=mock_robot_config)
        robot.apply_joint_limits()

        joint1, joint2, _ = mock_robot_model.joints
        assert (joint1.limit.lower, joint1.limit.upper) == (-3.14, 3.14)
        assert (joint2.limit.lower, joint2.limit.upper) == (-1.5, 1.5)

    @patch("screwplanner.motion.kinematics.CompasKinematics")
    def test_build_kinematics(self, mock_kinematics, mock_robot_model, mock_robot_config):
        robot = RobotInstance(model=mock_robot_model, config=mock_robot_config)

        robot.build_kinematics("arm", with_collision=False)

        mock_kinematics.assert_called_once_with(
            mock_robot_model,
            joint_names=["joint_1", "joint_2"],
            ee_frame="tool0",
            collision_checker=None,
        )

    @patch("screwplanner.motion.collision.build_collision_checker")
    @patch("screwplanner.motion.kinematics.CompasKinematics")
    def test_build_kinematics_with_collision(
        self, mock_kinematics, mock_build_checker, mock_robot_model, mock_robot_config
    ):
        checker = MagicMock()
        mock_build_checker.return_value = checker
        robot = RobotInstance(model=mock_robot_model, config=mock_robot_config)

        robot.build_kinematics("wrist", ee_frame="flange")

        mock_build_checker.assert_called_once_with("/fake/path/robot.urdf", [])
        _, kwargs = mock_kinematics.call_args
        assert kwargs["joint_names"] == ["joint_2"]
        assert kwargs["ee_frame"] == "flange"
        assert kwargs["collision_checker"] is checker

    def test_repr(self, mock_robot_model, mock_robot_config):
        robot = RobotInstance(model=mock_robot_model, config=mock_robot_config)

        assert "test_robot" in repr(robot)
        assert "joints=2" in repr(robot)
