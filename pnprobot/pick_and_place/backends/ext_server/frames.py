""" Wire format of the ext server protocol.

Requests are sent as::

  <:V<version>:<packet id>:<verb>(<arg>,<arg>,...):>

and answered with either a provisional frame (the controller is still busy)::

  [:V<version>:<packet id>:<status>:]

or a terminal frame carrying the outcome and the position of every axis::

  [:V<version>:<packet id>:<status>:<value>:<x>:<y>:<z1>:<c1>:<z2>:<c2>:<z3>:<c3>:<z4>:<c4>:]

A negative status means the machine cannot continue.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional

from pnprobot.__version__ import EXT_SERVER_PROTOCOL_VERSION
from pnprobot.pick_and_place.standard import Argument, Command

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = EXT_SERVER_PROTOCOL_VERSION

PROVISIONAL_FIELD_COUNT = 5
TERMINAL_FIELD_COUNT = 16

AXES = ("x", "y", "z1", "c1", "z2", "c2", "z3", "c3", "z4", "c4")


@dataclass(frozen=True)
class Response:
  """ A decoded response frame. `value` and the axis positions are only set on terminal
  responses. """

  packet_id: int
  status: int
  provisional: bool
  value: Optional[float] = None
  x: Optional[float] = None
  y: Optional[float] = None
  z1: Optional[float] = None
  c1: Optional[float] = None
  z2: Optional[float] = None
  c2: Optional[float] = None
  z3: Optional[float] = None
  c3: Optional[float] = None
  z4: Optional[float] = None
  c4: Optional[float] = None

  @property
  def is_fatal(self) -> bool:
    return self.status < 0

  @property
  def axes(self) -> List[Optional[float]]:
    return [getattr(self, axis) for axis in AXES]


def format_argument(arg: Argument) -> str:
  # bool before int: bool is a subclass of int
  if isinstance(arg, bool):
    return "1" if arg else "0"
  if isinstance(arg, int):
    return str(arg)
  if isinstance(arg, float):
    if math.isnan(arg):
      return "NaN"
    if math.isinf(arg):
      return "Infinity" if arg > 0 else "-Infinity"
    return f"{arg:f}"
  return str(arg)


def format_command(command: Command) -> str:
  """ `verb(arg,arg,...)` with all whitespace removed. """
  text = f"{command.verb}({','.join(format_argument(arg) for arg in command.args)})"
  return "".join(text.split())


def encode_command(command: Command, packet_id: int, version: int = PROTOCOL_VERSION) -> str:
  return f"<:V{version}:{packet_id}:{format_command(command)}:>"


def _parse_float(field: str) -> float:
  if field.lower() == "nan":
    return math.nan
  return float(field)


def decode_response(text: str, packet_id: int,
                    version: int = PROTOCOL_VERSION) -> Optional[Response]:
  """ Decode a response frame addressed to `packet_id`.

  Returns:
    The response, or `None` if the frame is malformed, carries another protocol version, or
    answers another packet. Such frames are logged and otherwise ignored.
  """

  fields = text.strip().split(":")

  if len(fields) not in (PROVISIONAL_FIELD_COUNT, TERMINAL_FIELD_COUNT) \
      or fields[0] != "[" or fields[-1] != "]":
    logger.debug("Discarding malformed frame %r", text)
    return None

  if fields[1] != f"V{version}":
    logger.debug("Discarding frame with protocol version %r, expected V%d", fields[1], version)
    return None

  try:
    response_id = int(fields[2])
    status = int(fields[3])
    values = [_parse_float(f) for f in fields[4:-1]]
  except ValueError:
    logger.debug("Discarding frame with unparsable fields %r", text)
    return None

  if response_id != packet_id:
    if status < 0:
      logger.warning("Ignoring fatal status %d for packet %d while waiting for packet %d",
                     status, response_id, packet_id)
    else:
      logger.debug("Discarding frame for packet %d while waiting for packet %d", response_id,
                   packet_id)
    return None

  if len(fields) == PROVISIONAL_FIELD_COUNT:
    return Response(packet_id=response_id, status=status, provisional=True)

  return Response(packet_id=response_id, status=status, provisional=False, value=values[0],
                  **dict(zip(AXES, values[1:])))


def encode_response(response: Response, version: int = PROTOCOL_VERSION) -> str:
  """ The frame a controller sends for `response`. Used by simulated controllers. """

  head = f"[:V{version}:{response.packet_id}:{response.status}"
  if response.provisional:
    return head + ":]"
  values = [response.value] + response.axes
  return head + "".join(f":{format_argument(math.nan if v is None else float(v))}"
                        for v in values) + ":]"
