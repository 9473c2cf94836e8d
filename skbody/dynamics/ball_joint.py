import numpy as np

from skbody.coordinates.math import _check_valid_rotation
from skbody.coordinates.math import _check_vector
from skbody.coordinates.math import exp_map_jac
from skbody.coordinates.math import exp_map_jac_dot
from skbody.coordinates.math import exp_map_rot
from skbody.coordinates.math import log_map
from skbody.coordinates.spatial import ad_t_jac_fixed
from skbody.coordinates.spatial import make_transform
from skbody.dynamics.joint import _check_jacobian
from skbody.dynamics.joint import Joint


class BallJoint(Joint):
    """Three degrees of freedom rotational joint.

    Positions are exponential coordinates of the joint rotation, i.e. the
    rotation axis scaled by the rotation angle. The chart is singular at a
    rotation angle of pi, where the Jacobian loses conditioning.

    Displacements between two configurations are computed by composing
    rotations (:meth:`position_differences`), and :meth:`integrate_positions`
    integrates on SO(3). Subtracting or adding exponential coordinates
    directly is only valid for infinitesimal motions.

    Examples
    --------
    >>> import numpy as np
    >>> from skbody.dynamics import BallJoint
    >>> joint = BallJoint('shoulder')
    >>> joint.position_differences([0, 0, 0], [0, 0, np.pi / 2])
    array([0.        , 0.        , 1.57079633])
    """

    dof = 3
    _dof_suffixes = ('_x', '_y', '_z')

    def __init__(self, *args, **kwargs):
        self._rotation = np.eye(3)
        super(BallJoint, self).__init__(*args, **kwargs)

    def convert_to_rotation(self, positions):
        return exp_map_rot(positions)

    def convert_to_transform(self, positions):
        return make_transform(rotation=self.convert_to_rotation(positions))

    def convert_to_positions(self, rotation):
        """Return exponential coordinates of rotation.

        Parameters
        ----------
        rotation : numpy.ndarray
            3x3 rotation matrix or 4x4 transform whose rotation part is used
        """
        rotation = np.asarray(rotation, dtype=np.float64)
        if rotation.shape == (4, 4):
            rotation = rotation[:3, :3]
        return log_map(_check_valid_rotation(rotation))

    def rotation(self):
        """Return the joint rotation of the current positions."""
        self.local_transform()
        return self._rotation

    def local_jacobian_static(self, positions):
        positions = _check_vector(positions, 3, 'positions')
        # Jacobian expressed in the joint frame
        J = np.zeros((6, 3))
        J[:3] = exp_map_jac(-positions)
        J = ad_t_jac_fixed(self._T_child_body_to_joint, J)
        return _check_jacobian(J, self)

    def position_differences(self, q0, q1):
        q0 = _check_vector(q0, 3, 'q0')
        q1 = _check_vector(q1, 3, 'q1')
        Jw = self.local_jacobian_static(q0)[:3]
        R0T = exp_map_rot(-q0)
        R1 = exp_map_rot(q1)
        return np.linalg.solve(Jw, log_map(R0T.dot(R1)))

    def integrate_positions(self, dt):
        Jw = self.local_jacobian()[:3]
        rotation = self.rotation().dot(
            self.convert_to_rotation(Jw.dot(self._velocities) * dt))
        self.set_positions(self.convert_to_positions(rotation))

    def _joint_motion(self):
        self._rotation = self.convert_to_rotation(self._positions)
        return make_transform(rotation=self._rotation)

    def _compute_local_jacobian_time_deriv(self):
        dJ = np.zeros((6, 3))
        dJ[:3] = exp_map_jac_dot(self._positions, self._velocities).T
        dJ = ad_t_jac_fixed(self._T_child_body_to_joint, dJ)
        return _check_jacobian(dJ, self, 'jacobian time derivative')
