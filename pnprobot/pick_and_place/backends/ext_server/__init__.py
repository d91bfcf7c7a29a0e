from .backend import ExtServerBackend
from .frames import PROTOCOL_VERSION, Response, decode_response, encode_command
