from .postprocessor import PostProcessor
from .renderer import Renderer

__all__ = [
    "PostProcessor",
    "Renderer",
]
