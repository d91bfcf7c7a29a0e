import asyncio
import socket
import unittest

from pnprobot.io.udp import UDP


def free_udp_port() -> int:
  with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
    s.bind(("127.0.0.1", 0))
    return s.getsockname()[1]


class UDPTests(unittest.IsolatedAsyncioTestCase):
  async def asyncSetUp(self):
    self.peer = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    self.peer.bind(("127.0.0.1", 0))
    self.peer.settimeout(2)
    self.listen_port = free_udp_port()
    self.udp = UDP(host="127.0.0.1", port=self.peer.getsockname()[1], listen_port=self.listen_port,
                   read_timeout=0.2)

  async def asyncTearDown(self):
    await self.udp.stop()
    self.peer.close()

  async def test_write_reaches_peer(self):
    await self.udp.setup()
    await self.udp.write(b"<:V1:1:home():>")
    data = await asyncio.get_running_loop().run_in_executor(None, self.peer.recv, 1024)
    self.assertEqual(data, b"<:V1:1:home():>")

  async def test_read_from_peer(self):
    await self.udp.setup()
    self.peer.sendto(b"[:V1:1:0:]", ("127.0.0.1", self.listen_port))
    self.assertEqual(await self.udp.read(timeout=2), b"[:V1:1:0:]")

  async def test_read_times_out(self):
    await self.udp.setup()
    with self.assertRaises(asyncio.TimeoutError):
      await self.udp.read()

  async def test_listen_port_taken(self):
    blocker = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    blocker.bind(("127.0.0.1", self.listen_port))
    try:
      with self.assertRaises(OSError):
        await self.udp.setup()
      self.assertFalse(self.udp.is_open)
    finally:
      blocker.close()

  async def test_listens_on_all_interfaces(self):
    # a peer that is not a local address must not be used for the bind
    udp = UDP(host="192.0.2.1", port=9070, listen_port=free_udp_port(), read_timeout=0.2)
    try:
      await udp.setup()
      self.peer.sendto(b"[:V1:1:0:]", ("127.0.0.1", udp.listen_port))
      self.assertEqual(await udp.read(timeout=2), b"[:V1:1:0:]")
    finally:
      await udp.stop()

  async def test_stop_is_idempotent(self):
    await self.udp.setup()
    await self.udp.stop()
    await self.udp.stop()
    self.assertFalse(self.udp.is_open)

  def test_serialize(self):
    self.assertEqual(
      self.udp.serialize(),
      {
        "type": "UDP",
        "host": "127.0.0.1",
        "port": self.peer.getsockname()[1],
        "listen_port": self.listen_port,
        "read_timeout": 0.2,
      },
    )


if __name__ == "__main__":
  unittest.main()
