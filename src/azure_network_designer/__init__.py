"""Azure Network Designer - hub-and-spoke topology normalization"""

__version__ = "0.1.0"

from .models import RawModel, RequirementFlags, TopologyModel
from .normalize import normalize_model
from .templates import template_web_paas

__all__ = [
    "RawModel",
    "RequirementFlags",
    "TopologyModel",
    "normalize_model",
    "template_web_paas",
]
