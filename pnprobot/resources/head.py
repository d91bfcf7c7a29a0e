from typing import Optional

from pnprobot.resources.location import Location


class Head:
  """A movable carriage on the machine. Tools are mounted on it at fixed offsets.

  Heads are compared by identity, so every head on a machine should be one object.
  """

  def __init__(self, name: str):
    self.name = name

  def __repr__(self) -> str:
    return f"{self.__class__.__name__}(name={self.name!r})"


class HeadMountable:
  """Something attached to a head: a nozzle, an actuator, a camera.

  Args:
    name: The name the controller knows this object by.
    head: The head it is mounted on.
    offset: Position of the object relative to the head's reference point.
  """

  def __init__(self, name: str, head: Head, offset: Optional[Location] = None):
    self.name = name
    self.head = head
    self.offset = offset if offset is not None else Location.zero()

  def __repr__(self) -> str:
    return f"{self.__class__.__name__}(name={self.name!r}, head={self.head.name!r})"

  def __str__(self) -> str:
    return self.name


class Nozzle(HeadMountable):
  """A vacuum nozzle that picks and places parts."""


class Actuator(HeadMountable):
  """A device on the head that can be switched, set to a value, or read (valves, feeders,
  sensors)."""
