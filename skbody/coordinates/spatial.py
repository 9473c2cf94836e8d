"""Rigid transforms and spatial vector algebra.

Transforms are 4x4 homogeneous matrices. Spatial vectors (twists and their
time derivatives) are 6-vectors ordered ``[angular; linear]`` and
Jacobians are 6xN matrices whose columns are spatial vectors.
"""

import numpy as np

from skbody.coordinates.math import _check_valid_rotation
from skbody.coordinates.math import is_finite
from skbody.coordinates.math import to_numpy_array


def make_transform(rotation=None, translation=None):
    """Return 4x4 homogeneous transform.

    Parameters
    ----------
    rotation : None or numpy.ndarray
        3x3 rotation matrix. Identity if None.
    translation : None or list or numpy.ndarray
        translation vector. Zero if None.

    Returns
    -------
    T : numpy.ndarray
        4x4 homogeneous transformation matrix

    Examples
    --------
    >>> from skbody.coordinates.spatial import make_transform
    >>> make_transform(translation=[1, 2, 3])
    array([[1., 0., 0., 1.],
           [0., 1., 0., 2.],
           [0., 0., 1., 3.],
           [0., 0., 0., 1.]])
    """
    T = np.eye(4)
    if rotation is not None:
        T[:3, :3] = _check_valid_rotation(rotation)
    if translation is not None:
        T[:3, 3] = to_numpy_array(translation)
    return T


def as_transform(T):
    """Return a float copy of T, checking that it is 4x4."""
    if T is None:
        return np.eye(4)
    T = np.array(T, dtype=np.float64)
    if T.shape != (4, 4):
        raise ValueError('Transform must be a 4x4 ndarray, get shape {}'
                         .format(T.shape))
    return T


def inverse_transform(T):
    """Return inverse of rigid transform T."""
    rot = T[:3, :3]
    inv = np.eye(4)
    inv[:3, :3] = rot.T
    inv[:3, 3] = -rot.T.dot(T[:3, 3])
    return inv


def verify_transform(T, tol=1e-6):
    """Return True if T is a finite, orthonormal rigid transform.

    Parameters
    ----------
    T : numpy.ndarray
        4x4 matrix to be checked
    tol : float
        tolerance of orthonormality

    Returns
    -------
    valid : bool
    """
    T = np.asarray(T)
    if T.shape != (4, 4) or not is_finite(T):
        return False
    if not np.allclose(T[3], [0, 0, 0, 1], atol=tol):
        return False
    rot = T[:3, :3]
    if not np.allclose(rot.T.dot(rot), np.eye(3), atol=tol):
        return False
    return abs(np.linalg.det(rot) - 1.0) < tol


def ad_t(T, V):
    """Adjoint of T applied to the spatial vector V.

    Re-expresses a spatial vector given in the frame that T maps from into
    the frame that T maps to.
    """
    rot = T[:3, :3]
    p = T[:3, 3]
    w = rot.dot(V[:3])
    v = np.cross(p, w) + rot.dot(V[3:])
    return np.concatenate([w, v])


def ad_inv_t(T, V):
    """Adjoint of inverse(T) applied to the spatial vector V."""
    rot = T[:3, :3]
    p = T[:3, 3]
    w = rot.T.dot(V[:3])
    v = rot.T.dot(V[3:] - np.cross(p, V[:3]))
    return np.concatenate([w, v])


def ad_t_jac(T, J):
    """Adjoint of T applied to each column of the 6xN Jacobian J."""
    J = np.asarray(J, dtype=np.float64)
    if J.shape[1] == 0:
        return J.copy()
    rot = T[:3, :3]
    p = T[:3, 3]
    top = rot.dot(J[:3])
    bottom = np.cross(p[:, None], top, axis=0) + rot.dot(J[3:])
    return np.vstack([top, bottom])


def ad_t_jac_fixed(T, J):
    """Adjoint of a fixed mounting transform T applied to Jacobian J.

    Joints use this to move their joint-frame Jacobian into the frame of
    the child body node.
    """
    return ad_t_jac(T, J)


def ad_inv_t_jac(T, J):
    """Adjoint of inverse(T) applied to each column of Jacobian J."""
    J = np.asarray(J, dtype=np.float64)
    if J.shape[1] == 0:
        return J.copy()
    rot = T[:3, :3]
    p = T[:3, 3]
    top = rot.T.dot(J[:3])
    bottom = rot.T.dot(J[3:] - np.cross(p[:, None], J[:3], axis=0))
    return np.vstack([top, bottom])


def ad(V1, V2):
    """Spatial cross product (Lie bracket) ad(V1) V2."""
    w1, v1 = V1[:3], V1[3:]
    w2, v2 = V2[:3], V2[3:]
    return np.concatenate([np.cross(w1, w2),
                           np.cross(w1, v2) + np.cross(v1, w2)])


def ad_jac(V, J):
    """Spatial cross product ad(V) applied to each column of J."""
    J = np.asarray(J, dtype=np.float64)
    if J.shape[1] == 0:
        return J.copy()
    w = V[:3, None]
    v = V[3:, None]
    top = np.cross(w, J[:3], axis=0)
    bottom = np.cross(w, J[3:], axis=0) + np.cross(v, J[:3], axis=0)
    return np.vstack([top, bottom])
