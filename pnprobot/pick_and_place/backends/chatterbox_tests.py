import contextlib
import io
import math
import unittest

from pnprobot.pick_and_place.backends.backend import ConnectionState
from pnprobot.pick_and_place.backends.chatterbox import PickAndPlaceChatterboxBackend
from pnprobot.pick_and_place.errors import NotEnabledError
from pnprobot.resources import Actuator, Head, Location, Nozzle


class ChatterboxBackendTests(unittest.IsolatedAsyncioTestCase):
  async def asyncSetUp(self):
    self.backend = PickAndPlaceChatterboxBackend()
    self.head = Head("H1")
    self.nozzle = Nozzle("N1", head=self.head, offset=Location(1, 0, 0, 0))
    with contextlib.redirect_stdout(io.StringIO()):
      await self.backend.setup()

  async def test_state_machine(self):
    self.assertEqual(self.backend.state, ConnectionState.CONNECTED_DISABLED)
    with contextlib.redirect_stdout(io.StringIO()):
      with self.assertRaises(NotEnabledError):
        await self.backend.home(self.head)
      await self.backend.set_enabled(True)
      self.assertTrue(self.backend.is_enabled)
      await self.backend.stop()
    self.assertEqual(self.backend.state, ConnectionState.DISCONNECTED)

  async def test_prints_operations(self):
    out = io.StringIO()
    with contextlib.redirect_stdout(out):
      await self.backend.set_enabled(True)
      await self.backend.move_to(self.nozzle, Location(11, 2, math.nan, 0), 0.5)
      await self.backend.pick(self.nozzle)
      await self.backend.actuate_boolean(Actuator("A1", head=self.head), False)
      value = await self.backend.actuate_read(Actuator("A1", head=self.head))
    self.assertEqual(value, 0.0)
    lines = out.getvalue().splitlines()
    self.assertIn("(not moving z).", lines[1])
    self.assertEqual(lines[2:4], ["Picking with N1.", "Turning A1 off."])

  async def test_tracks_locations(self):
    with contextlib.redirect_stdout(io.StringIO()):
      await self.backend.set_enabled(True)
      await self.backend.move_to(self.nozzle, Location(11, 2, math.nan, 0), 0.5)
    self.assertEqual(self.backend.get_head_location(self.head), Location(10, 2, 0, 0))
    self.assertEqual(self.backend.get_location(self.nozzle), Location(11, 2, 0, 0))


if __name__ == "__main__":
  unittest.main()
