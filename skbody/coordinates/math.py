import math

import numpy as np

from skbody._lazy_imports import _lazy_scipy_rotation


# epsilon for testing whether a number is close to zero
_EPS = np.finfo(float).eps * 4.0
# below this rotation angle the exponential map uses its Taylor expansion
_SMALL_ANGLE = 1e-7


def to_numpy_array(arr):
    if isinstance(arr, (list, tuple)):
        return np.array(arr, dtype=np.float64)
    elif isinstance(arr, np.ndarray):
        return arr.astype(np.float64, copy=False)
    else:
        raise TypeError("Input must be a list, tuple, or numpy.ndarray.")


def is_finite(arr):
    """Return True if every element of arr is finite."""
    return bool(np.all(np.isfinite(arr)))


def _check_finite(arr, name='array'):
    """Checks that the given array holds no nan or inf."""
    if not is_finite(arr):
        raise ValueError('{} must be finite, get {}'.format(name, arr))
    return arr


def _check_vector(vec, size, name='vector'):
    vec = to_numpy_array(vec)
    if vec.shape != (size,):
        raise ValueError('{} must be of shape ({},), get shape {}'
                         .format(name, size, vec.shape))
    return _check_finite(vec, name)


def _check_valid_rotation(rotation):
    """Checks that the given rotation matrix is valid."""
    rotation = np.array(rotation)
    if not isinstance(
            rotation,
            np.ndarray) or not np.issubdtype(
            rotation.dtype,
            np.number):
        raise ValueError('Rotation must be specified as numeric numpy array')

    if len(rotation.shape) != 2 or \
       rotation.shape[0] != 3 or rotation.shape[1] != 3:
        raise ValueError('Rotation must be specified as a 3x3 ndarray')

    if np.abs(np.linalg.det(rotation) - 1.0) > 1e-3:
        raise ValueError('Illegal rotation. Must have determinant == 1.0, '
                         'get {}'.format(np.linalg.det(rotation)))
    return rotation


def normalize_vector(v, ord=2):
    """Return normalized vector

    Parameters
    ----------
    v : list or numpy.ndarray
        vector
    ord : int (optional)
        ord of np.linalg.norm

    Returns
    -------
    v : numpy.ndarray
        normalized vector

    Examples
    --------
    >>> from skbody.coordinates.math import normalize_vector
    >>> normalize_vector([1, 1, 1])
    array([0.57735027, 0.57735027, 0.57735027])
    >>> normalize_vector([0, 0, 0])
    array([0., 0., 0.])
    """
    v = np.array(v, dtype=np.float64)
    norm = np.linalg.norm(v, ord=ord)
    if norm == 0:
        return v
    return v / norm


def outer_product_matrix(v):
    """Returns outer product matrix of given v.

    Returns following outer product matrix.

    .. math::
        \\left(
            \\begin{array}{ccc}
              0 & -v_2 & v_1 \\\\
              v_2 & 0 & -v_0 \\\\
              -v_1 & v_0 & 0
            \\end{array}
        \\right)

    Parameters
    ----------
    v : numpy.ndarray or list
        [x, y, z]

    Returns
    -------
    matrix : numpy.ndarray
        3x3 skew symmetric matrix.

    Examples
    --------
    >>> from skbody.coordinates.math import outer_product_matrix
    >>> outer_product_matrix([1, 2, 3])
    array([[ 0., -3.,  2.],
           [ 3.,  0., -1.],
           [-2.,  1.,  0.]])
    """
    return np.array([[0, -v[2], v[1]],
                     [v[2], 0, -v[0]],
                     [-v[1], v[0], 0]], dtype=np.float64)


def matrix2quaternion(m):
    """Returns quaternion of given rotation matrix.

    Parameters
    ----------
    m : list or numpy.ndarray
        3x3 rotation matrix

    Returns
    -------
    quaternion : numpy.ndarray
        quaternion [w, x, y, z] order

    Examples
    --------
    >>> import numpy
    >>> from skbody.coordinates.math import matrix2quaternion
    >>> matrix2quaternion(numpy.eye(3))
    array([1., 0., 0., 0.])
    """
    m = np.array(m, dtype=np.float64)
    tr = m[0, 0] + m[1, 1] + m[2, 2]
    if tr > 0:
        S = math.sqrt(tr + 1.0) * 2
        qw = 0.25 * S
        qx = (m[2, 1] - m[1, 2]) / S
        qy = (m[0, 2] - m[2, 0]) / S
        qz = (m[1, 0] - m[0, 1]) / S
    elif (m[0, 0] > m[1, 1]) and (m[0, 0] > m[2, 2]):
        S = math.sqrt(1. + m[0, 0] - m[1, 1] - m[2, 2]) * 2
        qw = (m[2, 1] - m[1, 2]) / S
        qx = 0.25 * S
        qy = (m[0, 1] + m[1, 0]) / S
        qz = (m[0, 2] + m[2, 0]) / S
    elif m[1, 1] > m[2, 2]:
        S = math.sqrt(1. + m[1, 1] - m[0, 0] - m[2, 2]) * 2
        qw = (m[0, 2] - m[2, 0]) / S
        qx = (m[0, 1] + m[1, 0]) / S
        qy = 0.25 * S
        qz = (m[1, 2] + m[2, 1]) / S
    else:
        S = math.sqrt(1. + m[2, 2] - m[0, 0] - m[1, 1]) * 2
        qw = (m[1, 0] - m[0, 1]) / S
        qx = (m[0, 2] + m[2, 0]) / S
        qy = (m[1, 2] + m[2, 1]) / S
        qz = 0.25 * S
    return np.array([qw, qx, qy, qz])


def exp_map_rot(expmap):
    """Returns rotation matrix of the given exponential coordinates.

    Rodrigues' formula. Close to the identity the second order
    Taylor expansion is used instead.

    Parameters
    ----------
    expmap : list or numpy.ndarray
        exponential coordinates (rotation axis scaled by angle), shape (3,)

    Returns
    -------
    rot : numpy.ndarray
        3x3 rotation matrix

    Examples
    --------
    >>> import numpy as np
    >>> from skbody.coordinates.math import exp_map_rot
    >>> exp_map_rot([0, 0, np.pi / 2.0]).round(6)
    array([[ 0., -1.,  0.],
           [ 1.,  0.,  0.],
           [ 0.,  0.,  1.]])
    """
    expmap = to_numpy_array(expmap)
    theta = np.linalg.norm(expmap)
    qss = outer_product_matrix(expmap)
    qss2 = np.matmul(qss, qss)
    if theta < _SMALL_ANGLE:
        return np.eye(3) + qss + 0.5 * qss2
    return np.eye(3) + (np.sin(theta) / theta) * qss \
        + ((1.0 - np.cos(theta)) / (theta * theta)) * qss2


def log_map(rotation):
    """Returns exponential coordinates of the given rotation matrix.

    Principal branch: the norm of the returned vector lies in [0, pi].
    At exactly pi the sign of the axis is not unique.

    Parameters
    ----------
    rotation : list or numpy.ndarray
        3x3 rotation matrix

    Returns
    -------
    expmap : numpy.ndarray
        vector of shape (3, )

    Examples
    --------
    >>> import numpy as np
    >>> from skbody.coordinates.math import log_map
    >>> log_map(np.eye(3))
    array([0., 0., 0.])
    """
    q = matrix2quaternion(rotation)
    if q[0] < 0:
        q = -q
    q_w = q[0]
    q_xyz = q[1:]
    s = np.linalg.norm(q_xyz)
    if s < _SMALL_ANGLE:
        # theta ~ 2 * s and the axis is q_xyz / s
        return 2.0 * q_xyz / q_w
    theta = 2.0 * math.atan2(s, q_w)
    return theta * q_xyz / s


def exp_map_jac(expmap):
    """Returns the Jacobian of the exponential map.

    .. math::
        J(q) = I + \\frac{1 - \\cos\\theta}{\\theta^2}[q]
                 + \\frac{\\theta - \\sin\\theta}{\\theta^3}[q]^2

    Evaluated at ``-q`` this maps exponential coordinate rates to body
    angular velocity.

    Parameters
    ----------
    expmap : list or numpy.ndarray
        exponential coordinates, shape (3,)

    Returns
    -------
    jac : numpy.ndarray
        3x3 matrix
    """
    expmap = to_numpy_array(expmap)
    theta = np.linalg.norm(expmap)
    qss = outer_product_matrix(expmap)
    qss2 = np.matmul(qss, qss)
    if theta < _SMALL_ANGLE:
        return np.eye(3) + 0.5 * qss + (1.0 / 6.0) * qss2
    theta2 = theta * theta
    theta3 = theta2 * theta
    return np.eye(3) + ((1.0 - np.cos(theta)) / theta2) * qss \
        + ((theta - np.sin(theta)) / theta3) * qss2


def exp_map_jac_dot(expmap, expmap_dot):
    """Returns time derivative of exp_map_jac(expmap).

    Parameters
    ----------
    expmap : list or numpy.ndarray
        exponential coordinates, shape (3,)
    expmap_dot : list or numpy.ndarray
        rate of the exponential coordinates, shape (3,)

    Returns
    -------
    jac_dot : numpy.ndarray
        3x3 matrix
    """
    expmap = to_numpy_array(expmap)
    expmap_dot = to_numpy_array(expmap_dot)
    theta = np.linalg.norm(expmap)
    qss = outer_product_matrix(expmap)
    qss2 = np.matmul(qss, qss)
    qdss = outer_product_matrix(expmap_dot)
    ttdt = np.dot(expmap, expmap_dot)
    qqdt = np.matmul(qdss, qss) + np.matmul(qss, qdss)
    if theta < _SMALL_ANGLE:
        return 0.5 * qdss + (1.0 / 6.0) * qqdt
    theta2 = theta * theta
    theta3 = theta2 * theta
    theta4 = theta3 * theta
    theta5 = theta4 * theta
    cos_t = np.cos(theta)
    sin_t = np.sin(theta)
    return ((theta * sin_t + 2.0 * cos_t - 2.0) / theta4) * ttdt * qss \
        + ((1.0 - cos_t) / theta2) * qdss \
        + ((3.0 * sin_t - theta * cos_t - 2.0 * theta) / theta5) \
        * ttdt * qss2 \
        + ((theta - sin_t) / theta3) * qqdt


def rotation_matrix(theta, axis):
    """Return the rotation matrix about axis by theta radians.

    Parameters
    ----------
    theta : float
        radian
    axis : list or numpy.ndarray
        rotation axis, normalized internally

    Returns
    -------
    rot : numpy.ndarray
        3x3 rotation matrix
    """
    return exp_map_rot(theta * normalize_vector(axis))


def rotation_angle(rotation):
    """Return rotation angle of the given rotation matrix in [0, pi]."""
    rotation = _check_valid_rotation(rotation)
    c = np.clip((np.trace(rotation) - 1.0) / 2.0, -1.0, 1.0)
    return np.arccos(c)


def random_rotation(random_state=None):
    """Generates a uniformly random 3x3 rotation matrix.

    Parameters
    ----------
    random_state : None or int or numpy.random.Generator
        seed for numpy.random.default_rng

    Returns
    -------
    rot : numpy.ndarray
        randomly generated 3x3 rotation matrix
    """
    Rotation = _lazy_scipy_rotation()
    rng = np.random.default_rng(random_state)
    quaternion = normalize_vector(rng.standard_normal(4))
    return Rotation.from_quat(quaternion).as_matrix()


def random_translation(random_state=None):
    """Generates a random translation vector in [0, 1)^3."""
    rng = np.random.default_rng(random_state)
    return rng.random(3)
