import asyncio
import logging
import socket
from typing import Optional, Tuple

from pnprobot.io.io import LOG_LEVEL_IO, IOBase

logger = logging.getLogger(__name__)


class UDP(IOBase):
  """IO for exchanging datagrams with a peer on the local machine.

  Uses two sockets: an unbound one that writes to `(host, port)`, and one bound to `listen_port`
  on all local interfaces that reads. Both are non-blocking and driven by the running event loop.
  """

  def __init__(
    self,
    host: str = "localhost",
    port: int = 9070,
    listen_port: int = 9072,
    read_timeout: float = 0.5,
    buffer_size: int = 1024,
  ):
    self._host = host
    self._port = port
    self._listen_port = listen_port
    self._read_timeout = read_timeout
    self._buffer_size = buffer_size
    self._address: Optional[Tuple[str, int]] = None
    self._write_socket: Optional[socket.socket] = None
    self._read_socket: Optional[socket.socket] = None

  @property
  def port(self) -> int:
    return self._port

  @property
  def listen_port(self) -> int:
    return self._listen_port

  @property
  def is_open(self) -> bool:
    return self._read_socket is not None

  async def setup(self):
    """Resolve the peer and open both sockets.

    Raises:
      OSError: if the host cannot be resolved or a socket cannot be created or bound, for example
        because `listen_port` is taken. Nothing is left open in that case.
    """

    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(self._host, self._port, family=socket.AF_INET,
                                   type=socket.SOCK_DGRAM)
    self._address = infos[0][4]

    try:
      self._write_socket = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
      self._write_socket.setblocking(False)
      self._read_socket = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
      self._read_socket.setblocking(False)
      self._read_socket.bind(("", self._listen_port))
    except OSError:
      await self.stop()
      raise

    logger.info("Opened UDP link to %s:%d, listening on port %d", self._address[0], self._port,
                self._listen_port)

  async def stop(self):
    for sock in (self._write_socket, self._read_socket):
      if sock is None:
        continue
      try:
        sock.close()
      except OSError as e:
        logger.warning("Error while closing UDP socket: %s", e)
    self._write_socket = None
    self._read_socket = None

  async def write(self, data: bytes) -> None:
    """Send `data` as a single datagram to the peer."""
    assert self._write_socket is not None and self._address is not None, "forgot to call setup?"
    self._write_socket.sendto(data, self._address)
    logger.log(LOG_LEVEL_IO, "[%s:%d] write %s", self._address[0], self._port, data)

  async def read(self, timeout: Optional[float] = None) -> bytes:
    """Receive a single datagram.

    Raises:
      asyncio.TimeoutError: if nothing arrives within `timeout` (default: `read_timeout`).
    """
    assert self._read_socket is not None, "forgot to call setup?"
    loop = asyncio.get_running_loop()
    data = await asyncio.wait_for(
      loop.sock_recv(self._read_socket, self._buffer_size),
      timeout=timeout if timeout is not None else self._read_timeout,
    )
    logger.log(LOG_LEVEL_IO, "[:%d] read %s", self._listen_port, data)
    return data

  def serialize(self):
    return {
      "type": "UDP",
      "host": self._host,
      "port": self._port,
      "listen_port": self._listen_port,
      "read_timeout": self._read_timeout,
    }
