# flake8: noqa

from .signal import Connection
from .signal import ScopedConnection
from .signal import Signal
from .signal import SlotRegister

from .cache import LazyCache

from .entity import Entity

from .frame import Frame
from .frame import WorldFrame
from .frame import world_frame

from .simple_frame import SimpleFrame

from .joint import calc_total_dof
from .joint import Joint
from .joint import PrismaticJoint
from .joint import RevoluteJoint
from .joint import WeldJoint

from .ball_joint import BallJoint

from .body_node import BodyNode
