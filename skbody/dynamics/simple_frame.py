import numpy as np

from skbody.coordinates.math import _check_valid_rotation
from skbody.coordinates.math import _check_vector
from skbody.coordinates.spatial import as_transform
from skbody.coordinates.spatial import inverse_transform
from skbody.coordinates.spatial import verify_transform
from skbody.dynamics.frame import Frame
from skbody.dynamics.frame import world_frame


class SimpleFrame(Frame):
    """Frame whose relative transform and motion are set directly.

    SimpleFrames are detachable: :meth:`set_parent_frame` moves them to
    another frame.

    Parameters
    ----------
    parent_frame : None or skbody.dynamics.Frame
        parent frame, the World frame by default
    name : str
        name of this frame
    relative_transform : None or numpy.ndarray
        4x4 transform from the parent frame. Identity if None.
    quiet : bool
        If True, do not register into the parent frame.

    Examples
    --------
    >>> from skbody.coordinates.spatial import make_transform
    >>> from skbody.dynamics import SimpleFrame
    >>> base = SimpleFrame(name='base',
    ...                    relative_transform=make_transform(
    ...                        translation=[1, 0, 0]))
    >>> tip = base.spawn_child_simple_frame(
    ...     'tip', make_transform(translation=[0, 0, 1]))
    >>> tip.world_position()
    array([1., 0., 1.])
    """

    def __init__(self, parent_frame=world_frame, name='simple_frame',
                 relative_transform=None, quiet=False):
        self._relative_tf = self._check_transform(relative_transform)
        self._relative_velocity = np.zeros(6)
        self._relative_acceleration = np.zeros(6)
        super(SimpleFrame, self).__init__(
            parent_frame=parent_frame, name=name, quiet=quiet,
            detachable=True)

    @staticmethod
    def _check_transform(T):
        T = as_transform(T)
        if not verify_transform(T):
            raise ValueError('Illegal transform:\n{}'.format(T))
        return T

    def relative_transform(self):
        return self._relative_tf

    def relative_spatial_velocity(self):
        return self._relative_velocity

    def relative_spatial_acceleration(self):
        return self._relative_acceleration

    def primary_relative_acceleration(self):
        return self._relative_acceleration

    def set_relative_transform(self, T):
        """Set transform from the parent frame."""
        self._relative_tf = self._check_transform(T)
        self.notify_transform_update()

    def set_relative_translation(self, translation):
        T = self._relative_tf.copy()
        T[:3, 3] = _check_vector(translation, 3, 'translation')
        self.set_relative_transform(T)

    def set_relative_rotation(self, rotation):
        T = self._relative_tf.copy()
        T[:3, :3] = _check_valid_rotation(rotation)
        self.set_relative_transform(T)

    def set_transform(self, T, with_respect_to=world_frame):
        """Set transform of this frame relative to with_respect_to.

        Parameters
        ----------
        T : numpy.ndarray
            4x4 transform of this frame seen from with_respect_to
        with_respect_to : skbody.dynamics.Frame
            reference frame
        """
        T = self._check_transform(T)
        world_T = with_respect_to.world_transform().dot(T)
        parent = self._parent_frame
        if parent is None:
            self.set_relative_transform(world_T)
        else:
            self.set_relative_transform(
                inverse_transform(parent.world_transform()).dot(world_T))

    def set_relative_spatial_velocity(self, velocity):
        """Set spatial velocity relative to the parent, in this frame."""
        self._relative_velocity = _check_vector(velocity, 6, 'velocity')
        self.notify_velocity_update()

    def set_relative_spatial_acceleration(self, acceleration):
        """Set spatial acceleration relative to the parent, in this frame."""
        self._relative_acceleration = _check_vector(
            acceleration, 6, 'acceleration')
        self.notify_acceleration_update()

    def spawn_child_simple_frame(self, name='simple_frame',
                                 relative_transform=None):
        return SimpleFrame(self, name, relative_transform)

    def copy(self, parent_frame=world_frame, name=None):
        """Return a new SimpleFrame at the same pose under parent_frame."""
        if name is None:
            name = self.name
        return SimpleFrame(parent_frame, name,
                           self.transform_from(parent_frame))
