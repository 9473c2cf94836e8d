import unittest

import numpy as np
from numpy import pi
from numpy import testing

from skbody.coordinates.math import exp_map_jac
from skbody.coordinates.math import exp_map_rot
from skbody.coordinates.math import log_map
from skbody.coordinates.math import normalize_vector
from skbody.coordinates.math import rotation_angle
from skbody.coordinates.math import rotation_matrix
from skbody.coordinates.spatial import inverse_transform
from skbody.coordinates.spatial import make_transform
from skbody.dynamics import BallJoint


def _vee(m):
    return np.array([m[2, 1], m[0, 2], m[1, 0]])


class TestBallJoint(unittest.TestCase):

    def setUp(self):
        self.joint = BallJoint('ball')

    def test_initial_state(self):
        self.assertEqual(self.joint.dof, 3)
        testing.assert_equal(self.joint.positions(), np.zeros(3))
        testing.assert_equal(self.joint.local_transform(), np.eye(4))
        testing.assert_almost_equal(
            self.joint.local_jacobian(), np.vstack([np.eye(3),
                                                    np.zeros((3, 3))]))

    def test_convert_to_transform(self):
        # 90 degrees about z
        T = self.joint.convert_to_transform([0, 0, pi / 2])
        testing.assert_almost_equal(
            T, [[0, -1, 0, 0],
                [1, 0, 0, 0],
                [0, 0, 1, 0],
                [0, 0, 0, 1]])

    def test_round_trip(self):
        rng = np.random.default_rng(1)
        for _ in range(20):
            p = normalize_vector(rng.standard_normal(3)) \
                * rng.uniform(0, pi - 1e-3)
            testing.assert_almost_equal(
                self.joint.convert_to_positions(
                    self.joint.convert_to_transform(p)), p)
            testing.assert_almost_equal(
                self.joint.convert_to_positions(exp_map_rot(p)), p)
        with self.assertRaises(ValueError):
            self.joint.convert_to_positions(np.zeros((3, 3)))

    def test_position_differences(self):
        testing.assert_almost_equal(
            self.joint.position_differences([0, 0, 0], [0, 0, pi / 2]),
            [0, 0, pi / 2])
        testing.assert_almost_equal(
            self.joint.position_differences([0.1, 0.2, 0.3],
                                            [0.1, 0.2, 0.3]),
            np.zeros(3))
        # displacement along the rotation axis adds up
        testing.assert_almost_equal(
            self.joint.position_differences([0, 0, 0.2], [0, 0, 0.5]),
            [0, 0, 0.3])

    def test_position_differences_are_first_order(self):
        q0 = np.array([0.4, -0.3, 0.8])
        dq = np.array([0.2, 0.1, -0.5])
        h = 1e-5
        testing.assert_almost_equal(
            self.joint.position_differences(q0, q0 + h * dq) / h, dq,
            decimal=4)

    def test_local_jacobian(self):
        q = np.array([0.4, -0.3, 0.8])
        self.joint.set_positions(q)
        J = self.joint.local_jacobian()
        testing.assert_almost_equal(J[:3], exp_map_jac(-q))
        testing.assert_equal(J[3:], np.zeros((3, 3)))
        testing.assert_almost_equal(
            self.joint.local_jacobian_static(q), J)

    def test_local_jacobian_matches_numerical(self):
        T_parent = make_transform(rotation_matrix(0.3, [0, 1, 0]),
                                  [0, 0, 0.5])
        T_child = make_transform(rotation_matrix(-1.1, [1, 0, 1]),
                                 [0.2, 0.1, -0.4])
        joint = BallJoint('mounted',
                          transform_from_parent_body_node=T_parent,
                          transform_from_child_body_node=T_child)
        q = np.array([0.7, 0.2, -1.4])
        joint.set_positions(q)
        T_inv = inverse_transform(joint.local_transform())
        h = 1e-6
        for i in range(3):
            dq = np.zeros(3)
            dq[i] = h
            joint.set_positions(q + dq)
            T_plus = joint.local_transform()
            joint.set_positions(q - dq)
            T_minus = joint.local_transform()
            twist = T_inv.dot((T_plus - T_minus) / (2 * h))
            joint.set_positions(q)
            testing.assert_almost_equal(
                joint.local_jacobian()[:3, i], _vee(twist[:3, :3]),
                decimal=6)
            testing.assert_almost_equal(
                joint.local_jacobian()[3:, i], twist[:3, 3], decimal=6)

    def test_local_jacobian_time_deriv_matches_numerical(self):
        T_child = make_transform(rotation_matrix(0.5, [1, 1, 1]),
                                 [0.3, 0.0, 0.2])
        joint = BallJoint(transform_from_child_body_node=T_child)
        q = np.array([0.7, 0.2, -1.4])
        dq = np.array([-0.3, 0.9, 0.4])
        h = 1e-6
        joint.set_positions(q)
        joint.set_velocities(dq)
        analytic = joint.local_jacobian_time_deriv()
        numerical = (joint.local_jacobian_static(q + h * dq)
                     - joint.local_jacobian_static(q - h * dq)) / (2 * h)
        testing.assert_almost_equal(analytic, numerical, decimal=6)

    def test_local_spatial_quantities(self):
        q = np.array([0.2, 0.1, -0.4])
        dq = np.array([1.0, -0.5, 0.3])
        ddq = np.array([0.1, 0.2, 0.3])
        self.joint.set_positions(q)
        self.joint.set_velocities(dq)
        self.joint.set_accelerations(ddq)
        J = self.joint.local_jacobian()
        dJ = self.joint.local_jacobian_time_deriv()
        testing.assert_almost_equal(
            self.joint.local_spatial_velocity(), J.dot(dq))
        testing.assert_almost_equal(
            self.joint.local_primary_acceleration(), J.dot(ddq))
        testing.assert_almost_equal(
            self.joint.local_spatial_acceleration(),
            J.dot(ddq) + dJ.dot(dq))

    def test_rotation(self):
        self.joint.set_positions([0, pi / 4, 0])
        testing.assert_almost_equal(
            self.joint.rotation(), rotation_matrix(pi / 4, [0, 1, 0]))

    def test_integrate_positions_one_step(self):
        self.joint.set_velocities([0, 0, 1])
        self.joint.integrate_positions(1.5708)
        testing.assert_almost_equal(
            self.joint.positions(), [0, 0, 1.5708])
        testing.assert_almost_equal(
            self.joint.local_transform()[:3, :3],
            rotation_matrix(1.5708, [0, 0, 1]))

    def test_integrate_positions_many_steps(self):
        self.joint.set_velocities([0, 0, 1])
        for _ in range(100):
            self.joint.integrate_positions(0.015708)
        testing.assert_almost_equal(
            self.joint.positions(), [0, 0, 1.5708])

    def test_integrate_positions_stays_on_principal_branch(self):
        self.joint.set_velocities([1, 0, 0])
        for _ in range(40):
            self.joint.integrate_positions(0.1)
        # 4 radians about x is -(2 pi - 4) radians
        testing.assert_almost_equal(
            self.joint.positions(), [4.0 - 2 * pi, 0, 0])
        self.assertLessEqual(np.linalg.norm(self.joint.positions()), pi)

    def test_integrate_positions_body_velocity(self):
        # the rotation advances by the body angular velocity J dq
        q = np.array([0.3, -0.2, 0.5])
        dq = np.array([0.4, 0.1, -0.6])
        dt = 0.01
        self.joint.set_positions(q)
        self.joint.set_velocities(dq)
        w = self.joint.local_spatial_velocity()[:3]
        self.joint.integrate_positions(dt)
        expected = exp_map_rot(q).dot(exp_map_rot(w * dt))
        testing.assert_almost_equal(
            exp_map_rot(self.joint.positions()), expected)

    def test_integrate_velocities(self):
        self.joint.set_velocities([0, 0, 1])
        self.joint.set_accelerations([0, 1, 0])
        self.joint.integrate_velocities(0.5)
        testing.assert_almost_equal(self.joint.velocities(), [0, 0.5, 1])

    def test_near_singularity(self):
        # the chart degrades close to pi but stays finite
        q = np.array([0, 0, pi - 1e-4])
        self.joint.set_positions(q)
        self.assertTrue(np.all(np.isfinite(self.joint.local_jacobian())))
        self.assertAlmostEqual(
            rotation_angle(self.joint.local_transform()[:3, :3]),
            pi - 1e-4)
        testing.assert_almost_equal(
            log_map(self.joint.rotation()), q)
