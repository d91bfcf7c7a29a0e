import enum
import inspect
import weakref
from abc import ABCMeta, abstractmethod
from typing import Optional, Type, TypeVar

from pnprobot.pick_and_place.errors import NotEnabledError
from pnprobot.pick_and_place.position_tracker import PositionTracker
from pnprobot.resources import Actuator, Head, HeadMountable, Location, Nozzle

T = TypeVar("T")


def _find_subclass(class_name: str, cls: Type[T]) -> Optional[Type[T]]:
  """ Recursively find the subclass of `cls` called `class_name`. """
  if cls.__name__ == class_name:
    return cls
  for subclass in cls.__subclasses__():
    found = _find_subclass(class_name, subclass)
    if found is not None:
      return found
  return None


class ConnectionState(enum.Enum):
  DISCONNECTED = "disconnected"
  CONNECTED_DISABLED = "connected-disabled"
  CONNECTED_ENABLED = "connected-enabled"


class PickAndPlaceBackend(metaclass=ABCMeta):
  """ Abstract class for pick and place machine backends.

  A backend talks to one machine controller and tracks where each head is. Motion and actuation
  only work while the backend is connected and enabled: `setup` connects (leaving the machine
  disabled), `set_enabled(True)` enables, and `stop` disables and disconnects.
  """

  _instances: "weakref.WeakSet[PickAndPlaceBackend]" = weakref.WeakSet()

  def __init__(self):
    self._instances.add(self)
    self.position_tracker = PositionTracker()
    self._state = ConnectionState.DISCONNECTED

  @property
  def state(self) -> ConnectionState:
    return self._state

  @property
  def is_connected(self) -> bool:
    return self._state != ConnectionState.DISCONNECTED

  @property
  def is_enabled(self) -> bool:
    return self._state == ConnectionState.CONNECTED_ENABLED

  def _check_enabled(self) -> None:
    if not self.is_enabled:
      raise NotEnabledError(f"Machine is not enabled (state: {self._state.value}).")

  @abstractmethod
  async def setup(self):
    """ Connect to the controller and bring it to a known, disabled state. """

  async def stop(self):
    """ Disable the machine and disconnect. Never raises for an unreachable controller. """
    await self.set_enabled(False)

  @abstractmethod
  async def set_enabled(self, enabled: bool):
    """ Enable or disable the machine. Enabling connects first if needed. """

  @abstractmethod
  async def home(self, head: Head):
    """ Home the machine. The head is at the origin afterwards. """

  @abstractmethod
  async def move_to(self, mountable: HeadMountable, location: Location, speed: float):
    """ Move `mountable` to `location`.

    Args:
      mountable: The tool to move. Its offset is subtracted from `location`.
      location: Target working position of the tool. NaN axes are not moved.
      speed: Speed factor, passed on to the controller unchanged.
    """

  @abstractmethod
  async def pick(self, nozzle: Nozzle):
    """ Turn on vacuum for `nozzle`. """

  @abstractmethod
  async def place(self, nozzle: Nozzle):
    """ Release the part held by `nozzle`. """

  @abstractmethod
  async def actuate(self, actuator: Actuator, value: float):
    """ Set `actuator` to a numeric value. """

  @abstractmethod
  async def actuate_boolean(self, actuator: Actuator, on: bool):
    """ Switch `actuator` on or off. """

  @abstractmethod
  async def actuate_read(self, actuator: Actuator) -> float:
    """ Read the current value of `actuator`. May be NaN if the controller has no reading. """

  def get_location(self, mountable: HeadMountable) -> Location:
    """ The absolute working position of `mountable`: its head's location plus its offset. """
    return self.position_tracker.resolve_location(mountable)

  def get_head_location(self, head: Head) -> Location:
    return self.position_tracker.get_head_location(head)

  def serialize(self) -> dict:
    return {"type": self.__class__.__name__}

  @classmethod
  def deserialize(cls, data: dict):
    data = data.copy()
    class_name = data.pop("type")
    subclass = _find_subclass(class_name, cls=cls)
    if subclass is None:
      raise ValueError(f'Could not find subclass with name "{class_name}"')
    if inspect.isabstract(subclass):
      raise ValueError(f'Subclass with name "{class_name}" is abstract')
    assert issubclass(subclass, cls)
    return subclass(**data)

  @classmethod
  def get_all_instances(cls):
    return cls._instances
