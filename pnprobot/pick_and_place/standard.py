""" Data types shared by the pick and place frontend and its backends. """

from dataclasses import dataclass
from typing import Tuple, Union

Argument = Union[str, float, int, bool]


@dataclass(frozen=True)
class Command:
  """ A single controller command: a verb and its ordered arguments. """

  verb: str
  args: Tuple[Argument, ...] = ()

  @classmethod
  def home(cls) -> "Command":
    return cls("home")

  @classmethod
  def move_to(cls, name: str, x: float, y: float, z: float, rotation: float,
              speed: float) -> "Command":
    return cls("moveTo", (name, float(x), float(y), float(z), float(rotation), float(speed)))

  @classmethod
  def pick(cls, name: str) -> "Command":
    return cls("pick", (name,))

  @classmethod
  def place(cls, name: str) -> "Command":
    return cls("place", (name,))

  @classmethod
  def actuate(cls, name: str, value: Union[float, bool]) -> "Command":
    if isinstance(value, bool):
      return cls("actuate", (name, value))
    return cls("actuate", (name, float(value)))

  @classmethod
  def actuate_read(cls, name: str) -> "Command":
    return cls("actuateRead", (name,))

  @classmethod
  def set_enabled(cls, enabled: bool) -> "Command":
    return cls("setEnabled", (bool(enabled),))
