import itertools
from logging import getLogger

import numpy as np

from skbody._lazy_imports import _lazy_trimesh
from skbody.dynamics.signal import Signal
from skbody.dynamics.signal import SlotRegister


logger = getLogger(__name__)

# stable identifiers used as keys of Frame child sets
_entity_ids = itertools.count()


class Entity(object):
    """Object that exists in the kinematic tree.

    An Entity has a name, lives in a parent Frame and can carry
    visualization shapes. It tracks three independent dirty flags
    (transform, velocity and acceleration) and raises a signal whenever one
    of them is set.

    A quiet Entity is unknown to its parent Frame: it is not added to the
    Frame's child set, is never notified through it and is not drawn by it.
    Quiet entities are cheap to create and throw away.

    Parameters
    ----------
    parent_frame : None or skbody.dynamics.Frame
        Frame this entity is attached to. If None, the entity is unattached.
    name : str or None
        name of this entity
    quiet : bool
        If True, do not register into the parent frame.
        This cannot be changed after construction.
    detachable : bool
        If True, users may move this entity to another frame with
        set_parent_frame.
    """

    def __init__(self, parent_frame=None, name=None, quiet=False,
                 detachable=False):
        self._id = next(_entity_ids)
        self._parent_frame = None
        self._name = name if name is not None else ''
        self._visualization_shapes = []
        self._needs_transform_update = True
        self._needs_velocity_update = True
        self._needs_acceleration_update = True
        self._quiet = bool(quiet)
        self._detachable = bool(detachable)

        self._frame_changed_signal = Signal('frame_changed')
        self._name_changed_signal = Signal('name_changed')
        self._visualization_changed_signal = Signal('visualization_changed')
        self._transform_updated_signal = Signal('transform_updated')
        self._velocity_changed_signal = Signal('velocity_changed')
        self._acceleration_changed_signal = Signal('acceleration_changed')

        self.on_frame_changed = SlotRegister(self._frame_changed_signal)
        self.on_name_changed = SlotRegister(self._name_changed_signal)
        self.on_visualization_changed = SlotRegister(
            self._visualization_changed_signal)
        self.on_transform_updated = SlotRegister(
            self._transform_updated_signal)
        self.on_velocity_changed = SlotRegister(
            self._velocity_changed_signal)
        self.on_acceleration_changed = SlotRegister(
            self._acceleration_changed_signal)

        self.change_parent_frame(parent_frame)

    def __repr__(self):
        return self.__str__()

    def __str__(self):
        if self._name:
            prefix = self.__class__.__name__ + \
                ' ' + hex(id(self)) + ' ' + self._name
        else:
            prefix = self.__class__.__name__ + ' ' + hex(id(self))
        return '#<%s>' % prefix

    @property
    def name(self):
        return self._name

    @name.setter
    def name(self, name):
        self.set_name(name)

    def set_name(self, name):
        """Set name and raise the name changed signal.

        Returns
        -------
        name : str
            the name this entity uses from now on
        """
        old_name = self._name
        self._name = name
        self._name_changed_signal.emit(self, old_name, self._name)
        return self._name

    @property
    def parent_frame(self):
        return self._parent_frame

    @property
    def visualization_shapes(self):
        return list(self._visualization_shapes)

    def add_visualization_shape(self, shape):
        """Add a visualization shape.

        The shape is referenced, not copied, so it may be shared among
        several entities.

        Parameters
        ----------
        shape : trimesh.Trimesh
            mesh expressed in the frame of this entity
        """
        trimesh = _lazy_trimesh()
        if not isinstance(shape, trimesh.Trimesh):
            raise TypeError(
                'shape must be trimesh.Trimesh, but got: {}'
                .format(type(shape)))
        self._visualization_shapes.append(shape)
        self._visualization_changed_signal.emit(self, shape)

    def draw(self, render_interface=None, color=None,
             use_default_color=True, depth=0):
        """Draw visualization shapes through render_interface.

        Parameters
        ----------
        render_interface : None or skbody.viewers.RenderInterface
            If None, nothing is drawn.
        color : None or list or numpy.ndarray
            RGBA color. White if None.
        use_default_color : bool
            If True, shapes keep their own colors and `color` is ignored.
        depth : int
            depth in the tree of the caller, unused by entities
        """
        if render_interface is None:
            return
        if color is None:
            color = np.ones(4)
        for shape in self._visualization_shapes:
            with render_interface.scoped_matrix():
                render_interface.draw_mesh(
                    shape, None if use_default_color else color)

    def is_quiet(self):
        return self._quiet

    def is_detachable(self):
        return self._detachable

    def is_frame(self):
        return False

    def is_world(self):
        return False

    def descends_from(self, some_frame):
        """Return True if this entity kinematically descends from some_frame.

        Every entity descends from itself and from the World frame.

        Parameters
        ----------
        some_frame : None or skbody.dynamics.Frame
            candidate ancestor. If None, returns False.

        Returns
        -------
        descends : bool
        """
        if some_frame is None:
            return False
        if some_frame is self:
            return True
        if some_frame.is_world():
            return True
        check = self._parent_frame
        while check is not None:
            if check.is_world():
                break
            if check is some_frame:
                return True
            check = check._parent_frame
        return False

    def notify_transform_update(self):
        """Mark the transform dirty and raise the transform signal."""
        self._needs_transform_update = True
        self._transform_updated_signal.emit(self)

    def needs_transform_update(self):
        return self._needs_transform_update

    def notify_velocity_update(self):
        """Mark the velocity dirty and raise the velocity signal."""
        self._needs_velocity_update = True
        self._velocity_changed_signal.emit(self)

    def needs_velocity_update(self):
        return self._needs_velocity_update

    def notify_acceleration_update(self):
        """Mark the acceleration dirty and raise the acceleration signal."""
        self._needs_acceleration_update = True
        self._acceleration_changed_signal.emit(self)

    def needs_acceleration_update(self):
        return self._needs_acceleration_update

    def set_parent_frame(self, new_parent_frame):
        """Move this entity to another frame.

        Only entities constructed with ``detachable=True`` may be moved.

        Parameters
        ----------
        new_parent_frame : None or skbody.dynamics.Frame
            new parent. If None, this entity becomes unattached.
        """
        if not self._detachable:
            raise RuntimeError(
                '{} is not detachable, its parent frame cannot be changed'
                .format(self))
        self.change_parent_frame(new_parent_frame)

    def change_parent_frame(self, new_parent_frame):
        """Move this entity from its current parent to new_parent_frame.

        Non-quiet entities leave the child set of the old parent and join
        the child set of the new one, and their transform is invalidated.
        Quiet entities only switch the parent reference.
        """
        if new_parent_frame is not None:
            if not (isinstance(new_parent_frame, Entity)
                    and new_parent_frame.is_frame()):
                raise TypeError(
                    'parent frame should be None or Frame. '
                    'get type=={}'.format(type(new_parent_frame)))
            self._check_no_cycle(new_parent_frame)

        old_parent_frame = self._parent_frame
        if not self._quiet and old_parent_frame is not None:
            if old_parent_frame._child_entities.pop(self._id, None) \
               is not None:
                old_parent_frame._process_removed_entity(self)

        if new_parent_frame is None:
            self._parent_frame = None
            return

        self._parent_frame = new_parent_frame
        if not self._quiet:
            new_parent_frame._child_entities[self._id] = self
            new_parent_frame._process_new_entity(self)
            self.notify_transform_update()

        logger.debug('%s :parent frame changed from %s to %s',
                     self, old_parent_frame, new_parent_frame)
        self._frame_changed_signal.emit(
            self, old_parent_frame, new_parent_frame)

    def _check_no_cycle(self, new_parent_frame):
        check = new_parent_frame
        while check is not None:
            if check is self:
                raise RuntimeError(
                    'Cannot attach {} to {}: the frame tree would have a '
                    'cycle'.format(self, new_parent_frame))
            check = check._parent_frame

    def destroy(self):
        """Detach from the parent frame.

        After this call no frame refers to this entity.
        """
        self.change_parent_frame(None)
