from pnprobot.pick_and_place.backends.backend import ConnectionState, PickAndPlaceBackend
from pnprobot.resources import Actuator, Head, HeadMountable, Location, Nozzle


class PickAndPlaceChatterboxBackend(PickAndPlaceBackend):
  """ Chatter box backend for device-free testing. Prints out all operations and tracks head
  locations the way a real controller would. """

  async def setup(self):
    print("Setting up the pick and place machine.")
    self._state = ConnectionState.CONNECTED_DISABLED

  async def stop(self):
    print("Stopping the pick and place machine.")
    await super().stop()

  async def set_enabled(self, enabled: bool):
    print(f"{'Enabling' if enabled else 'Disabling'} the machine.")
    self._state = ConnectionState.CONNECTED_ENABLED if enabled else ConnectionState.DISCONNECTED

  async def home(self, head: Head):
    self._check_enabled()
    print(f"Homing {head.name}.")
    self.position_tracker.set_head_location(head, Location.zero())

  async def move_to(self, mountable: HeadMountable, location: Location, speed: float):
    self._check_enabled()
    target = location - mountable.offset
    skipped = target.unspecified_axes()
    print(f"Moving {mountable.name} to {location} at speed {speed}"
          + (f" (not moving {', '.join(skipped)})." if skipped else "."))
    self.position_tracker.update_after_move(mountable.head, target)

  async def pick(self, nozzle: Nozzle):
    self._check_enabled()
    print(f"Picking with {nozzle.name}.")

  async def place(self, nozzle: Nozzle):
    self._check_enabled()
    print(f"Placing with {nozzle.name}.")

  async def actuate(self, actuator: Actuator, value: float):
    self._check_enabled()
    print(f"Setting {actuator.name} to {value}.")

  async def actuate_boolean(self, actuator: Actuator, on: bool):
    self._check_enabled()
    print(f"Turning {actuator.name} {'on' if on else 'off'}.")

  async def actuate_read(self, actuator: Actuator) -> float:
    self._check_enabled()
    print(f"Reading {actuator.name}.")
    return 0.0
