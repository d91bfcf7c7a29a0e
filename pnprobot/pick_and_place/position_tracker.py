import math
import threading
from typing import Dict

from pnprobot.resources import Head, HeadMountable, Location


class PositionTracker:
  """ Keeps the absolute location of every head, in millimeters.

  Locations are immutable and replaced as a whole under a lock, so a reader on another thread
  never sees a half-applied move.
  """

  def __init__(self):
    self._head_locations: Dict[Head, Location] = {}
    self._lock = threading.Lock()

  def get_head_location(self, head: Head) -> Location:
    """ The absolute location of `head`. Heads that were never moved are at the origin. """
    with self._lock:
      location = self._head_locations.get(head)
      if location is None:
        location = Location.zero()
        self._head_locations[head] = location
      return location

  def set_head_location(self, head: Head, location: Location) -> None:
    with self._lock:
      self._head_locations[head] = location

  def update_after_move(self, head: Head, commanded: Location) -> Location:
    """ Apply a completed move to `head`. Axes that are NaN in `commanded` were not moved and keep
    their previous value. """
    with self._lock:
      previous = self._head_locations.get(head, Location.zero())
      location = previous.derive(*(None if math.isnan(v) else v for v in commanded))
      self._head_locations[head] = location
      return location

  def resolve_location(self, mountable: HeadMountable) -> Location:
    """ The working position of a tool: the location of its head plus the tool's offset. """
    return self.get_head_location(mountable.head) + mountable.offset

  def reset(self) -> None:
    with self._lock:
      self._head_locations.clear()
