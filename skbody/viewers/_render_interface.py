import contextlib
from logging import getLogger

import numpy as np

from skbody._lazy_imports import _lazy_trimesh
from skbody.coordinates.spatial import as_transform


logger = getLogger(__name__)


class RenderInterface(object):
    """Collaborator entities draw themselves through.

    Keeps a stack of 4x4 matrices. :meth:`transform` multiplies the top of
    the stack on the right, and :meth:`draw_mesh` draws a mesh at the top
    of the stack.
    """

    def __init__(self):
        self._matrix_stack = [np.eye(4)]

    @property
    def current_matrix(self):
        return self._matrix_stack[-1]

    def push_matrix(self):
        self._matrix_stack.append(self._matrix_stack[-1].copy())

    def pop_matrix(self):
        if len(self._matrix_stack) == 1:
            raise RuntimeError('pop_matrix called without push_matrix')
        self._matrix_stack.pop()

    @contextlib.contextmanager
    def scoped_matrix(self):
        """Bracket a block with push_matrix and pop_matrix."""
        self.push_matrix()
        try:
            yield self
        finally:
            self.pop_matrix()

    def transform(self, T):
        self._matrix_stack[-1] = self._matrix_stack[-1].dot(as_transform(T))

    def draw_mesh(self, mesh, color=None):
        raise NotImplementedError


class TrimeshSceneRenderer(RenderInterface):
    """Render interface that collects meshes into a trimesh.Scene.

    Drawn meshes are copied, so colors applied here never leak into the
    shapes shared by entities.

    Examples
    --------
    >>> import trimesh
    >>> from skbody.dynamics import SimpleFrame
    >>> from skbody.viewers import TrimeshSceneRenderer
    >>> frame = SimpleFrame(name='box')
    >>> frame.add_visualization_shape(trimesh.creation.box())
    >>> renderer = TrimeshSceneRenderer()
    >>> frame.draw(renderer)
    >>> len(renderer.scene.geometry)
    1
    """

    def __init__(self, scene=None):
        super(TrimeshSceneRenderer, self).__init__()
        if scene is None:
            scene = _lazy_trimesh().Scene()
        self.scene = scene

    def draw_mesh(self, mesh, color=None):
        mesh = mesh.copy()
        if color is not None:
            color = np.asarray(color, dtype=np.float64)
            if color.max() <= 1.0:
                color = color * 255
            mesh.visual.face_colors = color.astype(np.uint8)
        node_name = self.scene.add_geometry(
            mesh, transform=self.current_matrix.copy())
        logger.debug('%s :added %s', self, node_name)
        return node_name

    def clear(self):
        self.scene = _lazy_trimesh().Scene()
        self._matrix_stack = [np.eye(4)]
