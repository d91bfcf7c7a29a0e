from typing import Optional


class PickAndPlaceError(Exception):
  """ Base class for all errors raised by pick and place backends. """


class NotEnabledError(PickAndPlaceError):
  """ Raised when a machine command is issued while the machine is not connected and enabled.
  Check `PickAndPlaceBackend.is_enabled` first to avoid it. """


class ConnectFailureError(PickAndPlaceError, ConnectionError):
  """ Raised when the link to the controller cannot be established: a socket could not be created
  or bound, the host could not be resolved, or the controller did not accept the initial disable
  command. The backend is left disconnected. """


class EnableFailureError(PickAndPlaceError):
  """ Raised when the machine could not be enabled, usually because the controller is not
  reachable. """


class NoResponseError(PickAndPlaceError, TimeoutError):
  """ Raised when the controller stays silent for longer than the response timeout while a command
  is in flight. """


class FatalProtocolError(PickAndPlaceError):
  """ Raised when the controller answers the command in flight with a negative status. The machine
  cannot continue; check the controller's log. """

  def __init__(self, status: int, packet_id: int, command: Optional[str] = None):
    self.status = status
    self.packet_id = packet_id
    self.command = command
    super().__init__(
      f"Fatal error reported by the controller (status {status}, packet {packet_id}"
      + (f", command {command}" if command is not None else "")
      + "), cannot continue. See machine log."
    )
