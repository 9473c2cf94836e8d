import numpy as np

from skbody.coordinates.spatial import ad_inv_t_jac
from skbody.coordinates.spatial import ad_jac
from skbody.dynamics.frame import Frame
from skbody.dynamics.joint import _check_jacobian


class BodyNode(Frame):
    """Rigid body attached to its parent frame through a joint.

    The relative transform, velocity and acceleration of a body node are
    those of its parent joint. A body node also caches its body Jacobian
    and the Jacobian's time derivative with respect to every degree of
    freedom it depends on, that is the degrees of freedom of the joints of
    the chain of body nodes from the root down to itself.

    Body nodes are not detachable; the structure that owns the joints
    decides where they are attached.

    Parameters
    ----------
    parent_frame : skbody.dynamics.Frame
        parent frame, usually the parent body node or the World frame
    joint : skbody.dynamics.Joint
        parent joint of this body node
    name : str or None
        name of this body node
    """

    def __init__(self, parent_frame, joint, name=None):
        if joint.child_body_node is not None:
            raise RuntimeError(
                '{} already has child body node {}'
                .format(joint, joint.child_body_node))
        self._parent_joint = joint
        self._body_jacobian = np.zeros((6, 0))
        self._body_jacobian_deriv = np.zeros((6, 0))
        self._needs_jacobian_update = True
        self._needs_jacobian_deriv_update = True
        joint.child_body_node = self
        try:
            super(BodyNode, self).__init__(
                parent_frame=parent_frame, name=name, quiet=False,
                detachable=False)
        except Exception:
            joint.child_body_node = None
            raise

    @property
    def parent_joint(self):
        return self._parent_joint

    @property
    def parent_body_node(self):
        parent = self._parent_frame
        if isinstance(parent, BodyNode):
            return parent
        return None

    @property
    def child_body_nodes(self):
        return [child for child in self.child_frames
                if isinstance(child, BodyNode)]

    def dependent_joints(self):
        """Return joints this body node depends on, root first."""
        joints = []
        body = self
        while body is not None:
            joints.append(body._parent_joint)
            body = body.parent_body_node
        return joints[::-1]

    def num_dependent_dofs(self):
        return sum(joint.dof for joint in self.dependent_joints())

    def relative_transform(self):
        return self._parent_joint.local_transform()

    def relative_spatial_velocity(self):
        return self._parent_joint.local_spatial_velocity()

    def relative_spatial_acceleration(self):
        return self._parent_joint.local_spatial_acceleration()

    def primary_relative_acceleration(self):
        return self._parent_joint.local_primary_acceleration()

    def partial_acceleration(self):
        joint = self._parent_joint
        return super(BodyNode, self).partial_acceleration() \
            + joint.local_jacobian_time_deriv().dot(joint.velocities())

    def notify_transform_update(self):
        self._needs_jacobian_update = True
        self._needs_jacobian_deriv_update = True
        super(BodyNode, self).notify_transform_update()

    def notify_velocity_update(self):
        self._needs_jacobian_deriv_update = True
        super(BodyNode, self).notify_velocity_update()

    def destroy(self):
        """Detach from the parent frame and release the parent joint."""
        super(BodyNode, self).destroy()
        if self._parent_joint.child_body_node is self:
            self._parent_joint.child_body_node = None

    def needs_jacobian_update(self):
        return self._needs_jacobian_update

    def needs_jacobian_deriv_update(self):
        return self._needs_jacobian_deriv_update

    def body_jacobian(self):
        """Return Jacobian of the spatial velocity of this body node.

        Columns follow :meth:`dependent_joints`; rows are
        ``[angular; linear]`` expressed in this body node frame.

        Returns
        -------
        J : numpy.ndarray
            6 x num_dependent_dofs matrix
        """
        if self._needs_jacobian_update:
            joint = self._parent_joint
            J = joint.local_jacobian()
            parent = self.parent_body_node
            if parent is not None:
                J = np.hstack([
                    ad_inv_t_jac(joint.local_transform(),
                                 parent.body_jacobian()),
                    J])
            self._body_jacobian = _check_jacobian(np.array(J), self)
            self._needs_jacobian_update = False
        return self._body_jacobian

    def body_jacobian_spatial_deriv(self):
        """Return time derivative of :meth:`body_jacobian`."""
        if self._needs_jacobian_deriv_update:
            joint = self._parent_joint
            dJ = joint.local_jacobian_time_deriv()
            parent = self.parent_body_node
            if parent is not None:
                T = joint.local_transform()
                inherited = ad_inv_t_jac(
                    T, parent.body_jacobian_spatial_deriv()) \
                    - ad_jac(joint.local_spatial_velocity(),
                             ad_inv_t_jac(T, parent.body_jacobian()))
                dJ = np.hstack([inherited, dJ])
            self._body_jacobian_deriv = _check_jacobian(
                np.array(dJ), self, 'jacobian time derivative')
            self._needs_jacobian_deriv_update = False
        return self._body_jacobian_deriv

    def world_jacobian(self):
        """Return body Jacobian with both parts rotated into world axes.

        The linear part gives the world velocity of this body node's origin.
        """
        J = self.body_jacobian()
        R = self.world_rotation()
        return np.vstack([R.dot(J[:3]), R.dot(J[3:])])

    def positions(self):
        """Return positions of the dependent joints, root first."""
        joints = self.dependent_joints()
        return np.concatenate([joint.positions() for joint in joints])

    def velocities(self):
        """Return velocities of the dependent joints, root first."""
        joints = self.dependent_joints()
        return np.concatenate([joint.velocities() for joint in joints])
