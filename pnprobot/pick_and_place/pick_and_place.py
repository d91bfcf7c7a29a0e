from __future__ import annotations

import functools
import logging
import sys
from typing import Any, Awaitable, Callable, List, TypeVar, Union

from pnprobot.pick_and_place.backends.backend import ConnectionState, PickAndPlaceBackend
from pnprobot.resources import Actuator, Head, HeadMountable, Location, Nozzle

if sys.version_info < (3, 10):
  from typing_extensions import ParamSpec
else:
  from typing import ParamSpec

logger = logging.getLogger(__name__)

_P = ParamSpec("_P")
_R = TypeVar("_R", bound=Awaitable[Any])

HeadActivityCallback = Callable[[Head], None]


def need_setup_finished(func: Callable[_P, _R]) -> Callable[_P, _R]:
  """Decorator for methods that require the machine to be set up.

  Checked by verifying `self.setup_finished` is `True`.

  Raises:
    RuntimeError: If the machine is not set up.
  """

  @functools.wraps(func)
  async def wrapper(*args, **kwargs):
    assert isinstance(args[0], PickAndPlace), "The first argument must be a PickAndPlace."
    self = args[0]

    if not self.setup_finished:
      raise RuntimeError("The setup has not finished. See `setup`.")
    return await func(*args, **kwargs)

  return wrapper  # type: ignore[return-value]


class PickAndPlace:
  """ Front end for pick and place machines.

  Commands are forwarded to the backend, which talks to the machine and keeps track of where each
  head is. After `setup` the machine is connected but disabled; call `set_enabled(True)` before
  moving it.

  Examples:
    >>> pnp = PickAndPlace(backend=ExtServerBackend())
    >>> await pnp.setup()
    >>> await pnp.set_enabled(True)
    >>> await pnp.move_to(nozzle, Location(10, 20, float("nan"), 0))
  """

  def __init__(self, backend: PickAndPlaceBackend):
    self.backend = backend
    self._setup_finished = False
    self._head_activity_callbacks: List[HeadActivityCallback] = []

  @property
  def setup_finished(self) -> bool:
    return self._setup_finished

  @property
  def state(self) -> ConnectionState:
    return self.backend.state

  @property
  def is_enabled(self) -> bool:
    return self.backend.is_enabled

  async def setup(self, **backend_kwargs):
    await self.backend.setup(**backend_kwargs)
    self._setup_finished = True

  @need_setup_finished
  async def stop(self):
    await self.backend.stop()
    self._setup_finished = False

  async def __aenter__(self):
    await self.setup()
    return self

  async def __aexit__(self, exc_type, exc_value, traceback):
    await self.stop()

  def register_head_activity_callback(self, callback: HeadActivityCallback):
    """ Call `callback` with the head after every completed move or home. """
    self._head_activity_callbacks.append(callback)

  def deregister_head_activity_callback(self, callback: HeadActivityCallback):
    self._head_activity_callbacks.remove(callback)

  def _fire_head_activity(self, head: Head):
    for callback in self._head_activity_callbacks:
      try:
        callback(head)
      except Exception:  # pylint: disable=broad-except
        logger.exception("Head activity callback %r failed", callback)

  @need_setup_finished
  async def set_enabled(self, enabled: bool):
    await self.backend.set_enabled(enabled)

  @need_setup_finished
  async def home(self, head: Head):
    """ Home the machine. `head` is at the origin afterwards. """
    await self.backend.home(head)
    self._fire_head_activity(head)

  @need_setup_finished
  async def move_to(self, mountable: HeadMountable, location: Location, speed: float = 1.0):
    """ Move `mountable` so that its working position is `location`.

    Args:
      mountable: The nozzle, actuator or other tool to move.
      location: Target location in millimeters. Axes set to NaN are not moved.
      speed: Speed factor, passed on to the controller unchanged.
    """

    await self.backend.move_to(mountable, location, speed)
    self._fire_head_activity(mountable.head)

  @need_setup_finished
  async def pick(self, nozzle: Nozzle):
    await self.backend.pick(nozzle)

  @need_setup_finished
  async def place(self, nozzle: Nozzle):
    await self.backend.place(nozzle)

  @need_setup_finished
  async def actuate(self, actuator: Actuator, value: Union[float, bool]):
    """ Switch `actuator` on or off when `value` is a bool, otherwise set it to `value`. """
    if isinstance(value, bool):
      await self.backend.actuate_boolean(actuator, value)
    else:
      await self.backend.actuate(actuator, value)

  @need_setup_finished
  async def read_actuator(self, actuator: Actuator) -> float:
    return await self.backend.actuate_read(actuator)

  def get_location(self, mountable: HeadMountable) -> Location:
    """ The absolute working position of `mountable`, from the tracked head location. """
    return self.backend.get_location(mountable)

  def serialize(self) -> dict:
    return {"backend": self.backend.serialize()}

  @classmethod
  def deserialize(cls, data: dict) -> PickAndPlace:
    data_copy = data.copy()  # copy data because we will be modifying it
    data_copy["backend"] = PickAndPlaceBackend.deserialize(data_copy.pop("backend"))
    return cls(**data_copy)
