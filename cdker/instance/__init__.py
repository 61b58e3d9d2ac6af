from .instances import Instances
from .types import InstanceSpec

__all__ = ["Instances", "InstanceSpec"]
