import asyncio
import enum
import logging
import math
from typing import List, Optional

from pnprobot.config import Config
from pnprobot.io import UDP
from pnprobot.pick_and_place.backends.backend import ConnectionState, PickAndPlaceBackend
from pnprobot.pick_and_place.backends.ext_server.frames import (
  Response,
  decode_response,
  encode_command,
)
from pnprobot.pick_and_place.errors import (
  ConnectFailureError,
  EnableFailureError,
  FatalProtocolError,
  NoResponseError,
  NotEnabledError,
  PickAndPlaceError,
)
from pnprobot.pick_and_place.standard import Command
from pnprobot.resources import Actuator, Head, HeadMountable, Location, Nozzle

logger = logging.getLogger(__name__)

DRIVER_PORT = 9070
LISTEN_PORT = 9072
RESPONSE_TIMEOUT = 0.5
LISTENER_JOIN_TIMEOUT = 3.0


class DispatchState(enum.Enum):
  AWAITING_TERMINAL = "awaiting-terminal"
  DONE = "done"
  ABORTED = "aborted"
  TIMED_OUT = "timed-out"


class _Session:
  """ Everything that only exists while connected: the UDP link, the lock that keeps a single
  command in flight, the queue of raw response frames and the listener task feeding it. """

  def __init__(self, io: UDP, receive_timeout: float):
    self.io = io
    self.command_lock = asyncio.Lock()
    self.responses: "asyncio.Queue[str]" = asyncio.Queue()
    self._receive_timeout = receive_timeout
    self._stop_requested = asyncio.Event()
    self._listener: Optional[asyncio.Task] = None

  def start_listening(self) -> None:
    self._listener = asyncio.get_running_loop().create_task(self._listen())

  async def _listen(self) -> None:
    """ Move every datagram that arrives onto `responses` until asked to stop.

    Receive timeouts are the idle case. Other socket errors mean the controller is unreachable;
    they are logged and the listener keeps going.
    """

    logger.debug("Listener started on port %d", self.io.listen_port)
    while not self._stop_requested.is_set():
      try:
        data = await self.io.read(timeout=self._receive_timeout)
      except asyncio.TimeoutError:
        continue
      except OSError as e:
        logger.debug("Receive failed, controller unreachable? (%r)", e)
        await asyncio.sleep(self._receive_timeout)
        continue

      text = data.decode("utf-8", errors="replace")
      logger.debug("received(%s)", text)
      self.responses.put_nowait(text)
    logger.debug("Listener stopped.")

  def drain(self) -> List[str]:
    messages = []
    while not self.responses.empty():
      messages.append(self.responses.get_nowait())
    return messages

  async def close(self, join_timeout: float) -> None:
    self._stop_requested.set()
    if self._listener is not None:
      try:
        await asyncio.wait_for(self._listener, timeout=join_timeout)
      except asyncio.TimeoutError:
        logger.warning("Listener did not stop within %.1f s and was cancelled.", join_timeout)
      self._listener = None
    await self.io.stop()


class ExtServerBackend(PickAndPlaceBackend):
  """ Backend for a pick and place machine driven by an ext server controller over UDP.

  Commands are sent one at a time. Each carries a packet id, and the backend waits until the
  controller answers that id with a terminal frame. While a long move runs, the controller sends
  provisional frames for the id; these keep the command alive. If the controller stays silent for
  longer than `response_timeout`, the command fails with :class:`NoResponseError`; a negative
  status fails it with :class:`FatalProtocolError`.

  Examples:
    >>> backend = ExtServerBackend()
    >>> await backend.setup()
    >>> await backend.set_enabled(True)
    >>> await backend.home(head)
  """

  def __init__(
    self,
    host: str = "localhost",
    port: int = DRIVER_PORT,
    listen_port: int = LISTEN_PORT,
    response_timeout: float = RESPONSE_TIMEOUT,
    max_command_duration: Optional[float] = None,
    listener_join_timeout: float = LISTENER_JOIN_TIMEOUT,
    feed_rate_mm_per_minute: float = 0.0,
  ):
    """
    Args:
      host: Host running the controller. The link is meant for the local machine.
      port: Port the controller receives commands on.
      listen_port: Local port the controller sends responses to.
      response_timeout: Longest silence, in seconds, tolerated while a command is in flight.
      max_command_duration: If set, the longest a single command may take in total, provisional
        frames included, in seconds.
      listener_join_timeout: How long `disconnect` waits for the listener to finish.
      feed_rate_mm_per_minute: Feed rate setting of the machine, stored with the backend.
    """

    super().__init__()
    self.host = host
    self.port = port
    self.listen_port = listen_port
    self.response_timeout = response_timeout
    self.max_command_duration = max_command_duration
    self.listener_join_timeout = listener_join_timeout
    self.feed_rate_mm_per_minute = feed_rate_mm_per_minute

    self._packet_id = 0
    self._session: Optional[_Session] = None
    self._last_response: Optional[Response] = None

  @classmethod
  def from_config(cls, cfg: Config, **kwargs) -> "ExtServerBackend":
    return cls(
      host=cfg.ext_server.host,
      port=cfg.ext_server.port,
      listen_port=cfg.ext_server.listen_port,
      response_timeout=cfg.ext_server.response_timeout,
      **kwargs,
    )

  @property
  def packet_id(self) -> int:
    """ Id of the most recently sent command. """
    return self._packet_id

  @property
  def last_response(self) -> Optional[Response]:
    return self._last_response

  def _create_io(self) -> UDP:
    return UDP(host=self.host, port=self.port, listen_port=self.listen_port,
               read_timeout=self.response_timeout)

  # lifecycle

  async def setup(self):
    await self.connect()

  async def connect(self):
    """ Open the UDP link, start listening and put the controller in the disabled state.

    Raises:
      ConnectFailureError: if the sockets cannot be set up or the controller does not accept the
        disable command. The backend stays disconnected.
    """

    if self._session is not None:
      if self._state != ConnectionState.DISCONNECTED:
        return
      # left behind by an interrupted connect
      await self.disconnect()

    io = self._create_io()
    try:
      await io.setup()
    except OSError as e:
      raise ConnectFailureError(
        f"Cannot establish UDP connection to {self.host}:{self.port} "
        f"(listening on port {self.listen_port}): {e}") from e

    session = _Session(io, receive_timeout=self.response_timeout)
    session.start_listening()
    self._session = session

    try:
      await self.send_command(Command.set_enabled(False))
    except PickAndPlaceError as e:
      await self.disconnect()
      raise ConnectFailureError("Unable to connect: the controller did not accept the disable "
                                "command.") from e
    except BaseException:
      await self.disconnect()
      raise

    self._state = ConnectionState.CONNECTED_DISABLED
    logger.info("Connected to ext server at %s:%d", self.host, self.port)

  async def disconnect(self):
    """ Stop the listener and close the link. Does nothing if not connected. """

    session, self._session = self._session, None
    self._state = ConnectionState.DISCONNECTED
    if session is None:
      return
    await session.close(join_timeout=self.listener_join_timeout)
    logger.info("Disconnected from ext server at %s:%d", self.host, self.port)

  async def set_enabled(self, enabled: bool):
    """ Enable or disable the machine.

    Enabling connects first if needed and raises :class:`EnableFailureError` when the controller
    cannot be reached or refuses. Disabling is best effort: it never raises, and always ends
    disconnected.
    """

    logger.debug("set_enabled(%s)", enabled)

    if enabled and not self.is_connected:
      try:
        await self.connect()
      except ConnectFailureError as e:
        raise EnableFailureError("Driver cannot enable the machine: controller unreachable.") from e

    if self._session is not None:
      try:
        await self.send_command(Command.set_enabled(enabled))
      except PickAndPlaceError as e:
        if enabled:
          if isinstance(e, FatalProtocolError):
            raise
          raise EnableFailureError("Driver cannot enable the machine!") from e
        logger.warning("Could not disable the machine, continuing with disconnect: %s", e)

    if not enabled:
      await self.disconnect()

    self._state = ConnectionState.CONNECTED_ENABLED if enabled else ConnectionState.DISCONNECTED

  # dispatch

  @staticmethod
  def _remaining(now: float, *deadlines: Optional[float]) -> float:
    return min(deadline - now for deadline in deadlines if deadline is not None)

  async def send_command(self, command: Command) -> Response:
    """ Send `command` and wait for its terminal response.

    Only one command is in flight at a time; concurrent callers wait their turn in order. The
    controller must answer within `response_timeout` of the command, and again within
    `response_timeout` of every provisional frame. Frames for other packets and malformed frames
    are dropped and do not count as an answer.

    Raises:
      NotEnabledError: if not connected, or not enabled for anything but `setEnabled`.
      NoResponseError: if the controller stays silent for `response_timeout`, or the command runs
        longer than `max_command_duration`.
      FatalProtocolError: if the controller answers with a negative status.
    """

    if self._session is None:
      raise NotEnabledError("Not connected to the controller.")
    if command.verb != "setEnabled":
      self._check_enabled()

    session = self._session
    async with session.command_lock:
      if self._session is not session:
        raise NotEnabledError("Disconnected while waiting to send.")

      self._packet_id += 1
      packet_id = self._packet_id
      frame = encode_command(command, packet_id)
      logger.debug("sending(%s)", frame)
      try:
        await session.io.write(frame.encode("utf-8"))
      except OSError as e:
        raise PickAndPlaceError(f"Driver could not send {frame} to the machine: {e}") from e

      loop = asyncio.get_running_loop()
      silence_deadline = loop.time() + self.response_timeout
      command_deadline = None if self.max_command_duration is None \
        else loop.time() + self.max_command_duration

      state = DispatchState.AWAITING_TERMINAL
      response: Optional[Response] = None
      while state == DispatchState.AWAITING_TERMINAL:
        wait = self._remaining(loop.time(), silence_deadline, command_deadline)
        if wait <= 0:
          state = DispatchState.TIMED_OUT
          break

        try:
          first = await asyncio.wait_for(session.responses.get(), timeout=wait)
        except asyncio.TimeoutError:
          state = DispatchState.TIMED_OUT
          break

        for message in [first] + session.drain():
          decoded = decode_response(message, packet_id)
          if decoded is None:
            continue
          response = decoded
          if decoded.is_fatal:
            state = DispatchState.ABORTED
            break
          self._last_response = decoded
          if not decoded.provisional:
            state = DispatchState.DONE
            break
          # still working
          silence_deadline = loop.time() + self.response_timeout

      if state == DispatchState.ABORTED:
        assert response is not None
        logger.error("Fatal status %d from controller for %s", response.status, frame)
        raise FatalProtocolError(status=response.status, packet_id=packet_id, command=frame)
      if state == DispatchState.TIMED_OUT:
        logger.warning("No response to %s", frame)
        raise NoResponseError(f"No message response to {frame}.")

      assert response is not None
      logger.debug("Message processed(ok): packet %d, status %d", packet_id, response.status)
      return response

  # machine operations

  async def home(self, head: Head):
    logger.debug("home(%s)", head)
    self._check_enabled()
    await self.send_command(Command.home())
    location = self.position_tracker.get_head_location(head).derive(0.0, 0.0, 0.0, 0.0)
    self.position_tracker.set_head_location(head, location)

  async def move_to(self, mountable: HeadMountable, location: Location, speed: float):
    logger.debug("move_to(%r, %s, %s)", mountable, location, speed)
    self._check_enabled()

    # head coordinates; unspecified (NaN) axes stay unspecified
    target = location - mountable.offset

    await self.send_command(Command.move_to(mountable.name, *target, speed))
    self.position_tracker.update_after_move(mountable.head, target)

  async def pick(self, nozzle: Nozzle):
    logger.debug("pick(%r)", nozzle)
    self._check_enabled()
    await self.send_command(Command.pick(nozzle.name))

  async def place(self, nozzle: Nozzle):
    logger.debug("place(%r)", nozzle)
    self._check_enabled()
    await self.send_command(Command.place(nozzle.name))

  async def actuate(self, actuator: Actuator, value: float):
    logger.debug("actuate(%r, %s)", actuator, value)
    self._check_enabled()
    await self.send_command(Command.actuate(actuator.name, float(value)))

  async def actuate_boolean(self, actuator: Actuator, on: bool):
    logger.debug("actuate_boolean(%r, %s)", actuator, on)
    self._check_enabled()
    await self.send_command(Command.actuate(actuator.name, bool(on)))

  async def actuate_read(self, actuator: Actuator) -> float:
    logger.debug("actuate_read(%r)", actuator)
    self._check_enabled()
    await self.send_command(Command.actuate_read(actuator.name))
    assert self._last_response is not None
    value = self._last_response.value
    return math.nan if value is None else value

  def serialize(self) -> dict:
    return {
      **super().serialize(),
      "host": self.host,
      "port": self.port,
      "listen_port": self.listen_port,
      "response_timeout": self.response_timeout,
      "max_command_duration": self.max_command_duration,
      "listener_join_timeout": self.listener_join_timeout,
      "feed_rate_mm_per_minute": self.feed_rate_mm_per_minute,
    }
