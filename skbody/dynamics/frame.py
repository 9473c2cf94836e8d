from logging import getLogger
import weakref

import numpy as np

from skbody.coordinates.spatial import ad
from skbody.coordinates.spatial import ad_inv_t
from skbody.coordinates.spatial import inverse_transform
from skbody.dynamics.entity import Entity


logger = getLogger(__name__)


class Frame(Entity):
    """Entity that other entities can be attached to.

    A Frame keeps the set of its non-quiet child entities and lazily caches
    its world transform, spatial velocity and spatial acceleration.
    Invalidating one of them invalidates the quantities that depend on it
    and cascades through every child entity.

    Spatial velocity and acceleration are 6-vectors ``[angular; linear]``
    expressed in this frame.

    Subclasses implement :meth:`relative_transform`,
    :meth:`relative_spatial_velocity`, :meth:`relative_spatial_acceleration`
    and :meth:`primary_relative_acceleration`.
    """

    def __init__(self, parent_frame=None, name=None, quiet=False,
                 detachable=False):
        # Entity.__init__ attaches to parent_frame and notifies this frame,
        # so the child sets and caches must exist beforehand.
        self._child_entities = weakref.WeakValueDictionary()
        self._child_frames = weakref.WeakValueDictionary()
        self._world_transform = np.eye(4)
        self._velocity = np.zeros(6)
        self._acceleration = np.zeros(6)
        super(Frame, self).__init__(
            parent_frame=parent_frame, name=name, quiet=quiet,
            detachable=detachable)

    def is_frame(self):
        return True

    @property
    def child_entities(self):
        return list(self._child_entities.values())

    @property
    def child_frames(self):
        return list(self._child_frames.values())

    def num_child_entities(self):
        return len(self._child_entities)

    def num_child_frames(self):
        return len(self._child_frames)

    def _process_new_entity(self, entity):
        if entity.is_frame():
            self._child_frames[entity._id] = entity
        logger.debug('%s :child %s added', self, entity)

    def _process_removed_entity(self, entity):
        self._child_frames.pop(entity._id, None)
        logger.debug('%s :child %s removed', self, entity)

    def relative_transform(self):
        raise NotImplementedError

    def relative_spatial_velocity(self):
        raise NotImplementedError

    def relative_spatial_acceleration(self):
        raise NotImplementedError

    def primary_relative_acceleration(self):
        raise NotImplementedError

    def partial_acceleration(self):
        """Acceleration terms that do not come from the relative motion.

        Velocity product term of the spatial acceleration.
        """
        return ad(self.spatial_velocity(), self.relative_spatial_velocity())

    def world_transform(self):
        """Return 4x4 transform of this frame in the world.

        Returns
        -------
        T : numpy.ndarray
            4x4 homogeneous transformation matrix
        """
        if self._needs_transform_update:
            parent = self._parent_frame
            if parent is None:
                self._world_transform = np.array(self.relative_transform())
            else:
                self._world_transform = parent.world_transform().dot(
                    self.relative_transform())
            self._needs_transform_update = False
            self._propagate_to_children('transform')
        return self._world_transform

    def spatial_velocity(self):
        """Return spatial velocity of this frame expressed in this frame."""
        if self._needs_velocity_update:
            relative_velocity = self.relative_spatial_velocity()
            parent = self._parent_frame
            if parent is None:
                self._velocity = np.array(relative_velocity, dtype=np.float64)
            else:
                self._velocity = ad_inv_t(
                    self.relative_transform(),
                    parent.spatial_velocity()) + relative_velocity
            self._needs_velocity_update = False
            self._propagate_to_children('velocity')
        return self._velocity

    def spatial_acceleration(self):
        """Return spatial acceleration expressed in this frame."""
        if self._needs_acceleration_update:
            parent = self._parent_frame
            acceleration = self.primary_relative_acceleration() \
                + self.partial_acceleration()
            if parent is not None:
                acceleration = acceleration + ad_inv_t(
                    self.relative_transform(),
                    parent.spatial_acceleration())
            self._acceleration = acceleration
            self._needs_acceleration_update = False
            self._propagate_to_children('acceleration')
        return self._acceleration

    def _propagate_to_children(self, quantity):
        """Re-notify children that report clean after a recompute.

        Children of a dirty frame are dirty themselves, so a read normally
        finds none to re-notify. Children that are already dirty receive no
        notification and no signal fires on them.
        """
        for child in self.child_entities:
            if quantity == 'transform':
                if not child.needs_transform_update():
                    child.notify_transform_update()
            elif quantity == 'velocity':
                if not child.needs_velocity_update():
                    child.notify_velocity_update()
            elif not child.needs_acceleration_update():
                child.notify_acceleration_update()

    def notify_transform_update(self):
        # spatial velocity and acceleration are expressed through the world
        # transform; child frames dirty their own, so only the transform
        # notification travels down.
        Entity.notify_acceleration_update(self)
        Entity.notify_velocity_update(self)
        super(Frame, self).notify_transform_update()
        for child in self.child_entities:
            if not child.is_frame():
                child.notify_acceleration_update()
                child.notify_velocity_update()
            child.notify_transform_update()

    def notify_velocity_update(self):
        Entity.notify_acceleration_update(self)
        super(Frame, self).notify_velocity_update()
        for child in self.child_entities:
            if not child.is_frame():
                child.notify_acceleration_update()
            child.notify_velocity_update()

    def notify_acceleration_update(self):
        super(Frame, self).notify_acceleration_update()
        for child in self.child_entities:
            child.notify_acceleration_update()

    def transform_from(self, with_respect_to=None):
        """Return transform of this frame relative to with_respect_to.

        Parameters
        ----------
        with_respect_to : None or skbody.dynamics.Frame
            reference frame. If None, the world.
        """
        if with_respect_to is None or with_respect_to.is_world():
            return self.world_transform()
        if with_respect_to is self._parent_frame:
            return self.relative_transform()
        return inverse_transform(
            with_respect_to.world_transform()).dot(self.world_transform())

    def world_position(self):
        return self.world_transform()[:3, 3]

    def world_rotation(self):
        return self.world_transform()[:3, :3]

    def angular_velocity(self):
        """Return angular velocity in world coordinates."""
        return self.world_rotation().dot(self.spatial_velocity()[:3])

    def linear_velocity(self):
        """Return velocity of the frame origin in world coordinates."""
        return self.world_rotation().dot(self.spatial_velocity()[3:])

    def draw(self, render_interface=None, color=None,
             use_default_color=True, depth=0):
        """Draw this frame's shapes and then its children.

        The relative transform of this frame is applied inside a
        push/pop bracket, so children are drawn relative to this frame.
        """
        if render_interface is None:
            return
        with render_interface.scoped_matrix():
            render_interface.transform(self.relative_transform())
            super(Frame, self).draw(render_interface, color,
                                    use_default_color, depth)
            for child in self.child_entities:
                child.draw(render_interface, color, use_default_color,
                           depth + 1)


class WorldFrame(Frame):
    """Root of every kinematic tree.

    The World frame has the identity transform and zero velocity and
    acceleration, has no parent and cannot be moved. Every entity
    descends from it.
    """

    def __init__(self):
        super(WorldFrame, self).__init__(None, 'World', quiet=True)

    def is_world(self):
        return True

    def change_parent_frame(self, new_parent_frame):
        if new_parent_frame is not None:
            raise RuntimeError('World frame cannot have a parent frame')
        super(WorldFrame, self).change_parent_frame(None)

    def relative_transform(self):
        return np.eye(4)

    def relative_spatial_velocity(self):
        return np.zeros(6)

    def relative_spatial_acceleration(self):
        return np.zeros(6)

    def primary_relative_acceleration(self):
        return np.zeros(6)

    def partial_acceleration(self):
        return np.zeros(6)


world_frame = WorldFrame()
