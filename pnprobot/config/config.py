import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

LOG_FROM_STRING = {
  "IO": 5,
  "DEBUG": logging.DEBUG,
  "INFO": logging.INFO,
  "WARNING": logging.WARNING,
  "ERROR": logging.ERROR,
  "CRITICAL": logging.CRITICAL,
}

LOG_TO_STRING = {v: k for k, v in LOG_FROM_STRING.items()}


@dataclass
class Config:
  """The configuration object for PnPRobot."""

  @dataclass
  class Logging:
    """The logging configuration."""

    level: int = logging.INFO
    log_dir: Optional[Path] = None

  @dataclass
  class ExtServer:
    """Where the ext server controller lives and how long to wait for it.

    `port` is the controller's (driver) port that commands are sent to, `listen_port` the local
    port responses arrive on. `response_timeout` is the longest silence tolerated while a command
    is in flight, in seconds.
    """

    host: str = "localhost"
    port: int = 9070
    listen_port: int = 9072
    response_timeout: float = 0.5

  logging: Logging = field(default_factory=Logging)
  ext_server: ExtServer = field(default_factory=ExtServer)

  @classmethod
  def from_dict(cls, d: dict) -> "Config":
    logging_data = d.get("logging", {})
    ext_server_data = d.get("ext_server", {})
    defaults = cls.ExtServer()
    return cls(
      logging=cls.Logging(
        level=LOG_FROM_STRING[logging_data.get("level", "INFO")],
        log_dir=Path(logging_data["log_dir"]) if logging_data.get("log_dir") else None,
      ),
      ext_server=cls.ExtServer(
        host=ext_server_data.get("host", defaults.host),
        port=int(ext_server_data.get("port", defaults.port)),
        listen_port=int(ext_server_data.get("listen_port", defaults.listen_port)),
        response_timeout=float(ext_server_data.get("response_timeout", defaults.response_timeout)),
      ),
    )

  @property
  def as_dict(self) -> dict:
    return {
      "logging": {
        "level": LOG_TO_STRING[self.logging.level],
        "log_dir": str(self.logging.log_dir) if self.logging.log_dir is not None else None,
      },
      "ext_server": {
        "host": self.ext_server.host,
        "port": self.ext_server.port,
        "listen_port": self.ext_server.listen_port,
        "response_timeout": self.ext_server.response_timeout,
      },
    }
