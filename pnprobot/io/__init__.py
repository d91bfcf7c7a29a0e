from .io import LOG_LEVEL_IO, IOBase
from .udp import UDP
