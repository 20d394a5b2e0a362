import math

import pytest

from rep_engine.pose_detection.pose import Joint, JointName, PoseSnapshot

FPS = 30.0
CONFIDENCE = 0.9


def _bend(vertex, length, angle):
    """Endpoint of a limb leaving ``vertex`` at ``angle`` degrees from straight up."""
    rad = math.radians(angle)
    return vertex[0] + length * math.sin(rad), vertex[1] - length * math.cos(rad)


def _joints(points):
    return {name: Joint(x, y, CONFIDENCE) for name, (x, y) in points.items()}


def make_arm_pose(elbow_angle, with_nose=True, nose_y=0.3, sides=("left", "right")):
    """Arms whose shoulder-elbow-wrist angle is ``elbow_angle`` degrees."""
    points = {}
    for side, x in (("left", 0.4), ("right", 0.6)):
        if side not in sides:
            continue
        shoulder = (x, 0.4)
        elbow = (x, 0.5)
        points[JointName(f"{side}_shoulder")] = shoulder
        points[JointName(f"{side}_elbow")] = elbow
        points[JointName(f"{side}_wrist")] = _bend(elbow, 0.1, elbow_angle)
    if with_nose:
        points[JointName.NOSE] = (0.5, nose_y)
    return PoseSnapshot(_joints(points))


def make_head_pose(nose_y):
    """Only the head is visible, as when the arms leave the frame."""
    return PoseSnapshot(_joints({JointName.NOSE: (0.5, nose_y)}))


def make_leg_pose(knee_angle, with_shoulders=True):
    """Legs whose hip-knee-ankle angle is ``knee_angle`` degrees."""
    points = {}
    for side, x in (("left", 0.45), ("right", 0.55)):
        hip = (x, 0.5)
        knee = (x, 0.65)
        points[JointName(f"{side}_hip")] = hip
        points[JointName(f"{side}_knee")] = knee
        points[JointName(f"{side}_ankle")] = _bend(knee, 0.15, knee_angle)
        if with_shoulders:
            points[JointName(f"{side}_shoulder")] = (x, 0.3)
    return PoseSnapshot(_joints(points))


def make_plank_pose(valid=True, with_ankles=True):
    """Side view of a plank, or of a person standing when not ``valid``."""
    if valid:
        points = {
            JointName.LEFT_SHOULDER: (0.3, 0.50),
            JointName.RIGHT_SHOULDER: (0.31, 0.51),
            JointName.LEFT_HIP: (0.55, 0.55),
            JointName.RIGHT_HIP: (0.56, 0.56),
            JointName.LEFT_ANKLE: (0.85, 0.60),
            JointName.RIGHT_ANKLE: (0.86, 0.61),
        }
    else:
        points = {
            JointName.LEFT_SHOULDER: (0.45, 0.30),
            JointName.RIGHT_SHOULDER: (0.55, 0.30),
            JointName.LEFT_HIP: (0.46, 0.55),
            JointName.RIGHT_HIP: (0.54, 0.55),
            JointName.LEFT_ANKLE: (0.46, 0.90),
            JointName.RIGHT_ANKLE: (0.54, 0.90),
        }
    if not with_ankles:
        points.pop(JointName.LEFT_ANKLE)
        points.pop(JointName.RIGHT_ANKLE)
    return PoseSnapshot(_joints(points))


def feed(analyzer, poses, start_frame=0):
    """
    Analyze ``poses`` at 30 fps starting at ``start_frame``.

    Returns the list of states and the next frame index.
    """
    states = []
    frame = start_frame
    for pose in poses:
        states.append(analyzer.analyze(pose, frame / FPS))
        frame += 1
    return states, frame


@pytest.fixture
def arm_pose():
    return make_arm_pose


@pytest.fixture
def head_pose():
    return make_head_pose


@pytest.fixture
def leg_pose():
    return make_leg_pose


@pytest.fixture
def plank_pose():
    return make_plank_pose


@pytest.fixture
def run_frames():
    return feed
