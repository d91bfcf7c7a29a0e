from .backends import (
  ConnectionState,
  ExtServerBackend,
  PickAndPlaceBackend,
  PickAndPlaceChatterboxBackend,
)
from .errors import (
  ConnectFailureError,
  EnableFailureError,
  FatalProtocolError,
  NoResponseError,
  NotEnabledError,
  PickAndPlaceError,
)
from .pick_and_place import PickAndPlace
from .position_tracker import PositionTracker
from .standard import Command
