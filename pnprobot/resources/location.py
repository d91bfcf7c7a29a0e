from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Optional


@dataclass(frozen=True)
class Location:
  """An absolute or relative position on the machine, in millimeters, with a rotation in degrees.

  An axis holding NaN means "not specified". Arithmetic propagates NaN, so subtracting a tool
  offset from a move target keeps the unspecified axes unspecified.
  """

  x: float = 0
  y: float = 0
  z: float = 0
  rotation: float = 0

  @staticmethod
  def zero() -> Location:
    return Location(0, 0, 0, 0)

  def derive(
    self,
    x: Optional[float] = None,
    y: Optional[float] = None,
    z: Optional[float] = None,
    rotation: Optional[float] = None,
  ) -> Location:
    """Return a copy with the given axes replaced. Axes passed as `None` are kept."""
    changes = {"x": x, "y": y, "z": z, "rotation": rotation}
    return replace(self, **{k: v for k, v in changes.items() if v is not None})

  def __add__(self, other: Location) -> Location:
    return Location(
      x=self.x + other.x,
      y=self.y + other.y,
      z=self.z + other.z,
      rotation=self.rotation + other.rotation,
    )

  def __sub__(self, other: Location) -> Location:
    return Location(
      x=self.x - other.x,
      y=self.y - other.y,
      z=self.z - other.z,
      rotation=self.rotation - other.rotation,
    )

  def __iter__(self):
    return iter((self.x, self.y, self.z, self.rotation))

  def unspecified_axes(self) -> list:
    """Names of the axes that hold NaN."""
    return [name for name, v in zip(("x", "y", "z", "rotation"), self) if math.isnan(v)]

  def __str__(self) -> str:
    return f"Location({self.x:.3f}, {self.y:.3f}, {self.z:.3f}, {self.rotation:.3f})"
