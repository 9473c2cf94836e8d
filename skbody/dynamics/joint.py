from logging import getLogger

import numpy as np

from skbody.coordinates.math import _check_vector
from skbody.coordinates.math import _EPS
from skbody.coordinates.math import is_finite
from skbody.coordinates.math import log_map
from skbody.coordinates.math import normalize_vector
from skbody.coordinates.math import rotation_matrix
from skbody.coordinates.spatial import ad_t_jac_fixed
from skbody.coordinates.spatial import as_transform
from skbody.coordinates.spatial import inverse_transform
from skbody.coordinates.spatial import make_transform
from skbody.coordinates.spatial import verify_transform
from skbody.dynamics.cache import LazyCache


logger = getLogger(__name__)


def calc_total_dof(joint_list):
    """Calculate total degrees of freedom of joint list

    Parameters
    ----------
    joint_list : list[skbody.dynamics.Joint]

    Returns
    -------
    n : int
        total degrees of freedom
    """
    n = 0
    for j in joint_list:
        n += j.dof
    return n


def _check_jacobian(J, joint, name='jacobian'):
    if not is_finite(J):
        raise RuntimeError(
            '{} :{} has non-finite entries\n{}'.format(joint, name, J))
    return J


class Joint(object):
    """Articulation between a parent body node and a child body node.

    A joint maps its generalized positions to the local transform from the
    parent body node to the child body node, and to the local Jacobian that
    maps generalized velocities to the spatial velocity of the child body
    node relative to the parent, expressed in the child body node frame.

    The local transform, local Jacobian and local Jacobian time derivative
    are cached. Writing positions, velocities or mounting transforms
    invalidates the affected caches and notifies the child body node, so
    the dirty state cascades through the subtree below it.

    Parameters
    ----------
    name : str or None
        name of this joint
    transform_from_parent_body_node : None or numpy.ndarray
        4x4 transform from the parent body node to the joint frame
    transform_from_child_body_node : None or numpy.ndarray
        4x4 transform from the child body node to the joint frame
    position_lower_limits : None or float or numpy.ndarray
        lower limits of the positions, -inf by default
    position_upper_limits : None or float or numpy.ndarray
        upper limits of the positions, inf by default
    """

    dof = 0
    _dof_suffixes = ()

    def __init__(self, name=None,
                 transform_from_parent_body_node=None,
                 transform_from_child_body_node=None,
                 position_lower_limits=None,
                 position_upper_limits=None):
        self._name = name if name is not None else ''
        self._T_parent_body_to_joint = self._check_mounting_transform(
            transform_from_parent_body_node)
        self._T_child_body_to_joint = self._check_mounting_transform(
            transform_from_child_body_node)
        self._positions = np.zeros(self.dof)
        self._velocities = np.zeros(self.dof)
        self._accelerations = np.zeros(self.dof)
        self.position_lower_limits = position_lower_limits
        self.position_upper_limits = position_upper_limits
        self._dof_names = [''] * self.dof
        self._dof_name_preserved = [False] * self.dof
        self._update_dof_names()
        self.child_body_node = None

        self._local_transform = LazyCache(
            self._compute_local_transform, 'local_transform')
        self._local_jacobian = LazyCache(
            self._compute_local_jacobian, 'local_jacobian')
        self._local_jacobian_deriv = LazyCache(
            self._compute_local_jacobian_time_deriv,
            'local_jacobian_time_deriv')

    def __repr__(self):
        return self.__str__()

    def __str__(self):
        if self._name:
            prefix = self.__class__.__name__ + \
                ' ' + hex(id(self)) + ' ' + self._name
        else:
            prefix = self.__class__.__name__ + ' ' + hex(id(self))
        return '#<%s>' % prefix

    @staticmethod
    def _check_mounting_transform(T):
        T = as_transform(T)
        if not verify_transform(T):
            raise ValueError('Illegal mounting transform:\n{}'.format(T))
        return T

    @property
    def name(self):
        return self._name

    @name.setter
    def name(self, name):
        self.set_name(name)

    def set_name(self, name):
        self._name = name
        self._update_dof_names()
        return self._name

    def dof_name(self, index):
        return self._dof_names[index]

    def set_dof_name(self, index, name, preserve_name=True):
        """Set name of one degree of freedom.

        A preserved name is kept when the joint is renamed.
        """
        self._dof_names[index] = name
        self._dof_name_preserved[index] = preserve_name

    def _update_dof_names(self):
        for i in range(self.dof):
            if not self._dof_name_preserved[i]:
                self._dof_names[i] = self._name + self._dof_suffixes[i]

    @property
    def position_lower_limits(self):
        return self._lower_limits

    @position_lower_limits.setter
    def position_lower_limits(self, limits):
        if limits is None:
            limits = -np.inf
        self._lower_limits = np.broadcast_to(
            np.asarray(limits, dtype=np.float64), (self.dof,)).copy()

    @property
    def position_upper_limits(self):
        return self._upper_limits

    @position_upper_limits.setter
    def position_upper_limits(self, limits):
        if limits is None:
            limits = np.inf
        self._upper_limits = np.broadcast_to(
            np.asarray(limits, dtype=np.float64), (self.dof,)).copy()

    @property
    def transform_from_parent_body_node(self):
        return self._T_parent_body_to_joint

    def set_transform_from_parent_body_node(self, T):
        self._T_parent_body_to_joint = self._check_mounting_transform(T)
        self._local_transform.invalidate()
        self._notify_child_transform()

    @property
    def transform_from_child_body_node(self):
        return self._T_child_body_to_joint

    def set_transform_from_child_body_node(self, T):
        self._T_child_body_to_joint = self._check_mounting_transform(T)
        self._notify_position_update()

    def positions(self):
        return self._positions.copy()

    def position(self, index):
        return self._positions[index]

    def set_positions(self, positions):
        """Set generalized positions.

        Positions out of the limits are clipped with a warning.
        """
        positions = _check_vector(positions, self.dof, 'positions').copy()
        over = positions > self._upper_limits
        under = positions < self._lower_limits
        if np.any(over) or np.any(under):
            for i in np.nonzero(over)[0]:
                logger.warning('{} :position[{}]({}) violate upper-limit({})'
                               .format(self, i, positions[i],
                                       self._upper_limits[i]))
            for i in np.nonzero(under)[0]:
                logger.warning('{} :position[{}]({}) violate lower-limit({})'
                               .format(self, i, positions[i],
                                       self._lower_limits[i]))
            positions = np.clip(
                positions, self._lower_limits, self._upper_limits)
        self._positions = positions
        self._notify_position_update()

    def set_position(self, index, value):
        positions = self._positions.copy()
        positions[index] = value
        self.set_positions(positions)

    def velocities(self):
        return self._velocities.copy()

    def set_velocities(self, velocities):
        self._velocities = _check_vector(
            velocities, self.dof, 'velocities').copy()
        self._notify_velocity_update()

    def accelerations(self):
        return self._accelerations.copy()

    def set_accelerations(self, accelerations):
        self._accelerations = _check_vector(
            accelerations, self.dof, 'accelerations').copy()
        self._notify_acceleration_update()

    def _notify_child_transform(self):
        if self.child_body_node is not None:
            self.child_body_node.notify_transform_update()

    def _notify_position_update(self):
        self._local_transform.invalidate()
        self._local_jacobian.invalidate()
        self._local_jacobian_deriv.invalidate()
        self._notify_child_transform()

    def _notify_velocity_update(self):
        self._local_jacobian_deriv.invalidate()
        if self.child_body_node is not None:
            self.child_body_node.notify_velocity_update()

    def _notify_acceleration_update(self):
        if self.child_body_node is not None:
            self.child_body_node.notify_acceleration_update()

    def needs_transform_update(self):
        return self._local_transform.is_dirty

    def needs_jacobian_update(self):
        return self._local_jacobian.is_dirty

    def needs_jacobian_time_deriv_update(self):
        return self._local_jacobian_deriv.is_dirty

    def convert_to_transform(self, positions):
        """Return the joint motion of positions as a 4x4 transform."""
        raise NotImplementedError

    def convert_to_positions(self, T):
        """Return positions whose joint motion is the 4x4 transform T."""
        raise NotImplementedError

    def local_jacobian_static(self, positions):
        """Return the 6 x dof local Jacobian evaluated at positions."""
        raise NotImplementedError

    def position_differences(self, q0, q1):
        """Return the displacement that takes positions q0 to q1."""
        q0 = _check_vector(q0, self.dof, 'q0')
        q1 = _check_vector(q1, self.dof, 'q1')
        return q1 - q0

    def integrate_positions(self, dt):
        """Advance positions by the current velocities over dt."""
        self.set_positions(self._positions + self._velocities * dt)

    def integrate_velocities(self, dt):
        """Advance velocities by the current accelerations over dt."""
        self.set_velocities(self._velocities + self._accelerations * dt)

    def _joint_motion(self):
        return self.convert_to_transform(self._positions)

    def _compute_local_transform(self):
        T = self._T_parent_body_to_joint.dot(self._joint_motion()).dot(
            inverse_transform(self._T_child_body_to_joint))
        if not verify_transform(T):
            raise RuntimeError(
                '{} :invalid local transform\n{}'.format(self, T))
        return T

    def _compute_local_jacobian(self):
        return self.local_jacobian_static(self._positions)

    def _compute_local_jacobian_time_deriv(self):
        return np.zeros((6, self.dof))

    def update_local_transform(self):
        """Recompute the local transform from the current positions."""
        return self._local_transform.recompute()

    def update_local_jacobian(self):
        """Recompute the local Jacobian from the current positions."""
        return self._local_jacobian.recompute()

    def update_local_jacobian_time_deriv(self):
        """Recompute the local Jacobian time derivative.

        It depends on the current positions and velocities.
        """
        return self._local_jacobian_deriv.recompute()

    def local_transform(self):
        """Return 4x4 transform from the parent body node to the child."""
        return self._local_transform.get()

    def local_jacobian(self):
        return self._local_jacobian.get()

    def local_jacobian_time_deriv(self):
        return self._local_jacobian_deriv.get()

    def local_spatial_velocity(self):
        """Return spatial velocity of the child relative to the parent."""
        return self.local_jacobian().dot(self._velocities)

    def local_primary_acceleration(self):
        return self.local_jacobian().dot(self._accelerations)

    def local_spatial_acceleration(self):
        return self.local_primary_acceleration() \
            + self.local_jacobian_time_deriv().dot(self._velocities)


class WeldJoint(Joint):
    """Joint without degrees of freedom."""

    dof = 0

    def convert_to_transform(self, positions):
        return np.eye(4)

    def convert_to_positions(self, T):
        return np.zeros(0)

    def local_jacobian_static(self, positions):
        return np.zeros((6, 0))


class _SingleAxisJoint(Joint):

    dof = 1
    _dof_suffixes = ('',)

    def __init__(self, axis=(0, 0, 1), *args, **kwargs):
        axis = _check_vector(axis, 3, 'axis')
        if np.linalg.norm(axis) < _EPS:
            raise ValueError('axis must not be zero, get {}'.format(axis))
        self.axis = normalize_vector(axis)
        super(_SingleAxisJoint, self).__init__(*args, **kwargs)

    def _joint_frame_jacobian(self):
        raise NotImplementedError

    def local_jacobian_static(self, positions):
        return _check_jacobian(
            ad_t_jac_fixed(self._T_child_body_to_joint,
                           self._joint_frame_jacobian()), self)


class RevoluteJoint(_SingleAxisJoint):
    """Joint rotating about a fixed axis of the joint frame.

    Parameters
    ----------
    axis : list or numpy.ndarray
        rotation axis in the joint frame, normalized internally
    """

    def convert_to_transform(self, positions):
        return make_transform(rotation=rotation_matrix(positions[0],
                                                       self.axis))

    def convert_to_positions(self, T):
        return np.array([np.dot(log_map(np.asarray(T)[:3, :3]), self.axis)])

    def _joint_frame_jacobian(self):
        J = np.zeros((6, 1))
        J[:3, 0] = self.axis
        return J


class PrismaticJoint(_SingleAxisJoint):
    """Joint translating along a fixed axis of the joint frame.

    Parameters
    ----------
    axis : list or numpy.ndarray
        translation axis in the joint frame, normalized internally
    """

    def convert_to_transform(self, positions):
        return make_transform(translation=positions[0] * self.axis)

    def convert_to_positions(self, T):
        return np.array([np.dot(np.asarray(T)[:3, 3], self.axis)])

    def _joint_frame_jacobian(self):
        J = np.zeros((6, 1))
        J[3:, 0] = self.axis
        return J
