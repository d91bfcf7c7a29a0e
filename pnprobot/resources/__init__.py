from .head import Actuator, Head, HeadMountable, Nozzle
from .location import Location
