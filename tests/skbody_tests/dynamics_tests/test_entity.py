import gc
import unittest

import trimesh

from skbody.dynamics import Entity
from skbody.dynamics import SimpleFrame
from skbody.dynamics import world_frame


class RecordingFrame(SimpleFrame):

    def __init__(self, *args, **kwargs):
        self.added = []
        self.removed = []
        super(RecordingFrame, self).__init__(*args, **kwargs)

    def _process_new_entity(self, entity):
        super(RecordingFrame, self)._process_new_entity(entity)
        self.added.append(entity)

    def _process_removed_entity(self, entity):
        super(RecordingFrame, self)._process_removed_entity(entity)
        self.removed.append(entity)


class TestEntity(unittest.TestCase):

    def setUp(self):
        self.frame_a = RecordingFrame(world_frame, 'a')
        self.frame_b = RecordingFrame(world_frame, 'b')

    def tearDown(self):
        self.frame_a.destroy()
        self.frame_b.destroy()

    def test_construct(self):
        entity = Entity(self.frame_a, 'entity')
        self.assertEqual(entity.name, 'entity')
        self.assertIs(entity.parent_frame, self.frame_a)
        self.assertIn(entity, self.frame_a.child_entities)
        self.assertEqual(self.frame_a.added, [entity])
        self.assertTrue(entity.needs_transform_update())
        self.assertTrue(entity.needs_velocity_update())
        self.assertTrue(entity.needs_acceleration_update())
        self.assertFalse(entity.is_frame())
        self.assertFalse(entity.is_quiet())
        self.assertFalse(entity.is_detachable())

    def test_construct_unattached(self):
        entity = Entity()
        self.assertIsNone(entity.parent_frame)
        self.assertEqual(entity.name, '')

    def test_quiet_construct(self):
        entity = Entity(self.frame_a, 'quiet', quiet=True)
        self.assertIs(entity.parent_frame, self.frame_a)
        self.assertEqual(self.frame_a.num_child_entities(), 0)
        self.assertEqual(self.frame_a.added, [])

    def test_quiet_entity_is_not_notified(self):
        entity = Entity(self.frame_a, quiet=True)
        calls = []
        entity.on_transform_updated.connect(calls.append)
        self.frame_a.notify_transform_update()
        self.assertEqual(calls, [])

    def test_change_parent_frame(self):
        entity = Entity(self.frame_a, detachable=True)
        changes = []
        entity.on_frame_changed.connect(
            lambda e, old, new: changes.append((e, old, new)))
        entity.set_parent_frame(self.frame_b)
        self.assertIs(entity.parent_frame, self.frame_b)
        self.assertNotIn(entity, self.frame_a.child_entities)
        self.assertIn(entity, self.frame_b.child_entities)
        self.assertEqual(self.frame_a.removed, [entity])
        self.assertEqual(self.frame_b.added, [entity])
        self.assertEqual(changes, [(entity, self.frame_a, self.frame_b)])

    def test_change_parent_frame_notifies_transform(self):
        entity = Entity(self.frame_a, detachable=True)
        entity._needs_transform_update = False
        calls = []
        entity.on_transform_updated.connect(calls.append)
        entity.set_parent_frame(self.frame_b)
        self.assertTrue(entity.needs_transform_update())
        self.assertEqual(calls, [entity])

    def test_change_parent_frame_to_none(self):
        entity = Entity(self.frame_a, detachable=True)
        changes = []
        entity.on_frame_changed.connect(
            lambda *args: changes.append(args))
        entity.set_parent_frame(None)
        self.assertIsNone(entity.parent_frame)
        self.assertEqual(self.frame_a.num_child_entities(), 0)
        self.assertEqual(self.frame_a.removed, [entity])
        self.assertEqual(changes, [])

    def test_set_parent_frame_requires_detachable(self):
        entity = Entity(self.frame_a)
        with self.assertRaises(RuntimeError):
            entity.set_parent_frame(self.frame_b)
        self.assertIs(entity.parent_frame, self.frame_a)

    def test_parent_must_be_frame(self):
        entity = Entity(self.frame_a, detachable=True)
        with self.assertRaises(TypeError):
            entity.set_parent_frame(Entity())
        with self.assertRaises(TypeError):
            Entity('not a frame')

    def test_cycle(self):
        child = self.frame_a.spawn_child_simple_frame('child')
        with self.assertRaises(RuntimeError):
            self.frame_a.set_parent_frame(child)
        with self.assertRaises(RuntimeError):
            self.frame_a.set_parent_frame(self.frame_a)
        self.assertIs(self.frame_a.parent_frame, world_frame)

    def test_quiet_reparent_leaves_child_sets(self):
        entity = Entity(self.frame_a, quiet=True, detachable=True)
        changes = []
        entity.on_frame_changed.connect(
            lambda e, old, new: changes.append((old, new)))
        entity.set_parent_frame(self.frame_b)
        self.assertIs(entity.parent_frame, self.frame_b)
        self.assertEqual(self.frame_a.num_child_entities(), 0)
        self.assertEqual(self.frame_b.num_child_entities(), 0)
        self.assertEqual(self.frame_a.removed, [])
        self.assertEqual(self.frame_b.added, [])
        self.assertEqual(changes, [(self.frame_a, self.frame_b)])

    def test_quiet_entity_ancestry(self):
        # a quiet entity is not a child of its frame, but still descends
        # from it
        child = self.frame_a.spawn_child_simple_frame('child')
        entity = Entity(None, quiet=True, detachable=True)
        entity.set_parent_frame(child)
        self.assertEqual(child.num_child_entities(), 0)
        self.assertTrue(entity.descends_from(child))
        self.assertTrue(entity.descends_from(self.frame_a))
        self.assertTrue(entity.descends_from(world_frame))
        self.assertFalse(entity.descends_from(self.frame_b))

    def test_descends_from(self):
        child = self.frame_a.spawn_child_simple_frame('child')
        entity = Entity(child)
        self.assertTrue(entity.descends_from(entity))
        self.assertTrue(entity.descends_from(child))
        self.assertTrue(entity.descends_from(self.frame_a))
        self.assertTrue(entity.descends_from(world_frame))
        self.assertFalse(entity.descends_from(self.frame_b))
        self.assertFalse(entity.descends_from(None))
        self.assertFalse(self.frame_a.descends_from(child))
        # World is the universal ancestor, even of unattached entities
        self.assertTrue(Entity().descends_from(world_frame))

    def test_destroy(self):
        entity = Entity(self.frame_a)
        entity.destroy()
        self.assertIsNone(entity.parent_frame)
        self.assertEqual(self.frame_a.num_child_entities(), 0)

    def test_garbage_collected_child(self):
        frame = SimpleFrame(self.frame_a)
        entity = Entity(frame)
        self.assertEqual(frame.num_child_entities(), 1)
        del entity
        gc.collect()
        self.assertEqual(frame.num_child_entities(), 0)

    def test_notify(self):
        entity = Entity(self.frame_a)
        entity._needs_transform_update = False
        entity._needs_velocity_update = False
        entity._needs_acceleration_update = False
        calls = []
        entity.on_transform_updated.connect(
            lambda e: calls.append('transform'))
        entity.on_velocity_changed.connect(
            lambda e: calls.append('velocity'))
        entity.on_acceleration_changed.connect(
            lambda e: calls.append('acceleration'))

        entity.notify_velocity_update()
        self.assertFalse(entity.needs_transform_update())
        self.assertTrue(entity.needs_velocity_update())
        self.assertFalse(entity.needs_acceleration_update())

        # signals fire on every call, even when already dirty
        entity.notify_velocity_update()
        entity.notify_acceleration_update()
        entity.notify_transform_update()
        self.assertEqual(
            calls, ['velocity', 'velocity', 'acceleration', 'transform'])
        self.assertTrue(entity.needs_transform_update())
        self.assertTrue(entity.needs_acceleration_update())

    def test_set_name(self):
        entity = Entity(self.frame_a, 'old')
        changes = []
        entity.on_name_changed.connect(
            lambda e, old, new: changes.append((old, new)))
        self.assertEqual(entity.set_name('new'), 'new')
        entity.name = 'newer'
        self.assertEqual(entity.name, 'newer')
        self.assertEqual(changes, [('old', 'new'), ('new', 'newer')])

    def test_visualization_shapes(self):
        entity = Entity(self.frame_a)
        changes = []
        entity.on_visualization_changed.connect(
            lambda e, shape: changes.append(shape))
        box = trimesh.creation.box()
        entity.add_visualization_shape(box)
        other = Entity(self.frame_b)
        other.add_visualization_shape(box)
        self.assertIs(entity.visualization_shapes[0], box)
        self.assertIs(other.visualization_shapes[0], box)
        self.assertEqual(changes, [box])
        with self.assertRaises(TypeError):
            entity.add_visualization_shape('box')
        self.assertEqual(len(entity.visualization_shapes), 1)
