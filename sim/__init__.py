# sim/__init__.py

from common.math import Vector3D, Quaternion
from .engine import RigidBody, GroundCollision, StaticBox, World

__all__ = [
    'Vector3D', 'Quaternion',
    'RigidBody', 'GroundCollision', 'StaticBox',
    'World',
]
