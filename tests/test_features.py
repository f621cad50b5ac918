import numpy as np
import pytest
from numpy.testing import assert_allclose

from visual_servo import (
    ConfigurationError,
    DimensionMismatch,
    FeatureReleasedError,
    GenericFeature,
    PointFeature,
    PoseFeature,
    RotationRepresentation,
    SelectionMask,
    ThetaUFeature,
    TranslationFeature,
    TranslationRepresentation,
)
from visual_servo.transforms import homogeneous, skew

from conftest import rot_z


def test_point_interaction_matrix(off_center_point):
    L = off_center_point.interaction()
    expected = np.array(
        [
            [-1.0, 0.0, 0.5, 0.15, -1.25, 0.3],
            [0.0, -1.0, 0.3, 1.09, -0.15, -0.5],
        ]
    )
    assert_allclose(L, expected)


def test_point_interaction_depends_on_depth():
    near = PointFeature(0.1, 0.0, 0.5).interaction()
    far = PointFeature(0.1, 0.0, 2.0).interaction()
    assert near[0, 0] == pytest.approx(-2.0)
    assert far[0, 0] == pytest.approx(-0.5)
    assert_allclose(near[:, 3:], far[:, 3:])


def test_point_requires_positive_depth():
    with pytest.raises(ValueError):
        PointFeature(0.0, 0.0, 0.0).interaction()
    with pytest.raises(ValueError):
        PointFeature.from_camera_point(0.1, 0.1, -1.0)


def test_point_from_camera_point():
    s = PointFeature.from_camera_point(0.2, -0.4, 2.0)
    assert_allclose(s.value, [0.1, -0.2])
    assert s.Z == 2.0


def test_mask_selects_rows(off_center_point):
    mask = SelectionMask.from_indices(2, [1])
    L = off_center_point.interaction(mask)
    assert L.shape == (1, 6)
    assert_allclose(L[0], off_center_point.interaction()[1])
    e = off_center_point.error(PointFeature(0.0, 0.0, 1.0), mask)
    assert_allclose(e, [0.3])


def test_mask_width_must_match_dimension(off_center_point):
    with pytest.raises(DimensionMismatch):
        off_center_point.interaction(SelectionMask.all(3))


def test_error_rejects_other_kind(off_center_point):
    with pytest.raises(DimensionMismatch):
        off_center_point.error(TranslationFeature())
    with pytest.raises(DimensionMismatch):
        TranslationFeature(representation="cMcd").error(TranslationFeature(representation="cdMc"))


def test_translation_interaction_per_representation():
    R = rot_z(0.4)
    t = np.array([0.1, -0.2, 0.3])
    cdmc = TranslationFeature(t, R, TranslationRepresentation.CDMC)
    assert_allclose(cdmc.interaction(), np.hstack((R, np.zeros((3, 3)))))

    cmcd = TranslationFeature.from_homogeneous(homogeneous(R, t), TranslationRepresentation.CMCD)
    assert_allclose(cmcd.interaction(), np.hstack((-np.eye(3), skew(t))))
    assert_allclose(cmcd.error(cmcd.zero_like()), t)


def test_theta_u_error_is_minimal():
    current = ThetaUFeature(rot_z(-np.pi + 0.1))
    desired = ThetaUFeature(rot_z(np.pi - 0.1))
    # naive subtraction of the theta-u vectors would give about -2*pi + 0.2
    assert_allclose(current.error(desired), [0.0, 0.0, 0.2], atol=1e-12)


def test_theta_u_interaction_at_identity():
    cdrc = ThetaUFeature(representation=RotationRepresentation.CDRC)
    crcd = ThetaUFeature(representation=RotationRepresentation.CRCD)
    assert_allclose(cdrc.interaction(), np.hstack((np.zeros((3, 3)), np.eye(3))))
    assert_allclose(crcd.interaction(), np.hstack((np.zeros((3, 3)), -np.eye(3))))


def test_theta_u_interaction_rotation_block():
    theta = 0.8
    s = ThetaUFeature(rot_z(theta))
    Lw = s.interaction()[:, 3:]
    # rotation about the axis itself is unaffected by the coupling terms
    assert_allclose(Lw @ [0.0, 0.0, 1.0], [0.0, 0.0, 1.0], atol=1e-12)
    assert_allclose(Lw[0, 1], -theta / 2.0)


def test_pose_feature_stacks_translation_and_rotation():
    M = homogeneous(rot_z(0.3), [1.0, 2.0, 3.0])
    s = PoseFeature(M)
    assert s.dimension == 6
    assert_allclose(s.value, [1.0, 2.0, 3.0, 0.0, 0.0, 0.3], atol=1e-12)
    assert_allclose(s.error(s.zero_like()), s.value, atol=1e-12)
    L = PoseFeature().interaction()
    assert_allclose(L, np.eye(6))


def test_generic_feature():
    s = GenericFeature(2, value=[1.0, 2.0], interaction_matrix=np.ones((2, 6)))
    s_star = GenericFeature(2, value=[0.5, 0.5])
    assert_allclose(s.error(s_star), [0.5, 1.5])
    with pytest.raises(ConfigurationError):
        s_star.interaction()
    with pytest.raises(DimensionMismatch):
        s.set_value([1.0, 2.0, 3.0])
    with pytest.raises(DimensionMismatch):
        s.error(GenericFeature(3))


def test_released_feature_cannot_be_used():
    s = PointFeature()
    s.release()
    assert s.released
    with pytest.raises(FeatureReleasedError):
        s.interaction()
    with pytest.raises(FeatureReleasedError):
        PointFeature().error(s)
