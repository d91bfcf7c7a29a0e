import contextlib
import io
import math
import unittest
import unittest.mock

from pnprobot.pick_and_place.backends.chatterbox import PickAndPlaceChatterboxBackend
from pnprobot.pick_and_place.backends.ext_server import ExtServerBackend
from pnprobot.pick_and_place.errors import NotEnabledError
from pnprobot.pick_and_place.pick_and_place import PickAndPlace
from pnprobot.resources import Actuator, Head, Location, Nozzle


class PickAndPlaceTests(unittest.IsolatedAsyncioTestCase):
  async def asyncSetUp(self):
    self.backend = unittest.mock.MagicMock(spec=ExtServerBackend)
    self.pnp = PickAndPlace(backend=self.backend)
    self.head = Head("H1")
    self.nozzle = Nozzle("N1", head=self.head)
    self.actuator = Actuator("A1", head=self.head)
    await self.pnp.setup()

  async def test_need_setup(self):
    pnp = PickAndPlace(backend=unittest.mock.MagicMock(spec=ExtServerBackend))
    with self.assertRaises(RuntimeError):
      await pnp.home(self.head)

  async def test_forwards_to_backend(self):
    await self.pnp.set_enabled(True)
    await self.pnp.pick(self.nozzle)
    await self.pnp.place(self.nozzle)
    self.backend.set_enabled.assert_awaited_once_with(True)
    self.backend.pick.assert_awaited_once_with(self.nozzle)
    self.backend.place.assert_awaited_once_with(self.nozzle)

  async def test_actuate_dispatches_on_type(self):
    await self.pnp.actuate(self.actuator, True)
    await self.pnp.actuate(self.actuator, 0.75)
    self.backend.actuate_boolean.assert_awaited_once_with(self.actuator, True)
    self.backend.actuate.assert_awaited_once_with(self.actuator, 0.75)

  async def test_read_actuator(self):
    self.backend.actuate_read.return_value = 12.5
    self.assertEqual(await self.pnp.read_actuator(self.actuator), 12.5)

  async def test_head_activity_after_move(self):
    callback = unittest.mock.Mock()
    self.pnp.register_head_activity_callback(callback)
    await self.pnp.move_to(self.nozzle, Location(1, 2, math.nan, 0), speed=0.5)
    await self.pnp.home(self.head)
    self.backend.move_to.assert_awaited_once()
    self.assertEqual(callback.call_args_list, [unittest.mock.call(self.head)] * 2)

    self.pnp.deregister_head_activity_callback(callback)
    await self.pnp.home(self.head)
    self.assertEqual(callback.call_count, 2)

  async def test_no_head_activity_after_failed_move(self):
    callback = unittest.mock.Mock()
    self.pnp.register_head_activity_callback(callback)
    self.backend.move_to.side_effect = NotEnabledError()
    with self.assertRaises(NotEnabledError):
      await self.pnp.move_to(self.nozzle, Location(1, 2, 3, 0))
    callback.assert_not_called()

  async def test_failing_callback_is_contained(self):
    good = unittest.mock.Mock()
    self.pnp.register_head_activity_callback(unittest.mock.Mock(side_effect=ValueError("boom")))
    self.pnp.register_head_activity_callback(good)
    with self.assertLogs("pnprobot.pick_and_place.pick_and_place", level="ERROR"):
      await self.pnp.home(self.head)
    good.assert_called_once_with(self.head)

  async def test_stop(self):
    await self.pnp.stop()
    self.backend.stop.assert_awaited_once()
    self.assertFalse(self.pnp.setup_finished)


class PickAndPlaceChatterboxTests(unittest.IsolatedAsyncioTestCase):
  async def test_session(self):
    head = Head("H1")
    nozzle = Nozzle("N1", head=head, offset=Location(0, 5, 0, 0))
    with contextlib.redirect_stdout(io.StringIO()):
      async with PickAndPlace(backend=PickAndPlaceChatterboxBackend()) as pnp:
        self.assertFalse(pnp.is_enabled)
        await pnp.set_enabled(True)
        await pnp.home(head)
        await pnp.move_to(nozzle, Location(10, 20, -1, 90))
        self.assertEqual(pnp.get_location(nozzle), Location(10, 20, -1, 90))
        await pnp.pick(nozzle)
        await pnp.move_to(nozzle, Location(math.nan, math.nan, 5, math.nan))
        self.assertEqual(pnp.get_location(nozzle), Location(10, 20, 5, 90))
        await pnp.place(nozzle)
    self.assertFalse(pnp.is_enabled)


class SerializationTests(unittest.TestCase):
  def test_round_trip(self):
    pnp = PickAndPlace(backend=ExtServerBackend(listen_port=19072, feed_rate_mm_per_minute=500))
    data = pnp.serialize()
    self.assertEqual(data["backend"]["type"], "ExtServerBackend")
    copy = PickAndPlace.deserialize(data)
    self.assertIsInstance(copy.backend, ExtServerBackend)
    self.assertEqual(copy.serialize(), data)


if __name__ == "__main__":
  unittest.main()
