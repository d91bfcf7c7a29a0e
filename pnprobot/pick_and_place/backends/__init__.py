from .backend import ConnectionState, PickAndPlaceBackend
from .chatterbox import PickAndPlaceChatterboxBackend
from .ext_server import ExtServerBackend
