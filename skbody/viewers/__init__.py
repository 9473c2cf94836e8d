# flake8: noqa

from ._render_interface import RenderInterface
from ._render_interface import TrimeshSceneRenderer
