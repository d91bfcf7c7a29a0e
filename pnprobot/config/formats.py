""" ConfigLoader and ConfigSaver load and save configs from and to IO streams. """

import configparser
import json
from abc import ABC, abstractmethod
from typing import IO, List

from pnprobot.config.config import Config


class ConfigLoader(ABC):
  """ConfigLoader is an abstract class for loading a Config object from a stream. """

  extension: str

  @abstractmethod
  def load(self, r: IO) -> Config:
    """ Load a Config object."""


class ConfigSaver(ABC):
  """ConfigSaver is an abstract class for saving a Config object to a stream. """

  extension: str

  @abstractmethod
  def save(self, w: IO, cfg: Config):
    """ Save a Config object."""


class MultiLoader(ConfigLoader):
  """A ConfigLoader that tries each of its loaders in turn, rewinding the stream in between."""

  def __init__(self, loaders: List[ConfigLoader]):
    self.loaders = loaders

  def load(self, r: IO) -> Config:
    for loader in self.loaders:
      r.seek(0)
      try:
        return loader.load(r)
      except (configparser.Error, json.JSONDecodeError, KeyError, ValueError):
        continue
    raise ValueError("No loader could load file.")


class IniLoader(ConfigLoader):
  """A ConfigLoader for INI formatted streams. Sections are `[logging]` and `[ext_server]`."""

  extension = "ini"

  def load(self, r: IO) -> Config:
    config = configparser.ConfigParser()
    config.read_file(r)
    return Config.from_dict({section: dict(config[section]) for section in config.sections()})


class IniSaver(ConfigSaver):
  """A ConfigSaver that saves to an IO stream in INI format."""

  extension = "ini"

  def save(self, w: IO, cfg: Config):
    config = configparser.ConfigParser()
    for section, values in cfg.as_dict.items():
      config[section] = {k: str(v) for k, v in values.items() if v is not None}

    config.write(w)
    return w


class JsonLoader(ConfigLoader):
  """ A ConfigLoader that loads from an IO stream that is JSON formatted. """

  extension = "json"

  def load(self, r: IO) -> Config:
    return Config.from_dict(json.loads(r.read()))


class JsonSaver(ConfigSaver):
  """ A ConfigSaver that saves to an IO stream in JSON format. """

  extension = "json"

  def save(self, w: IO, cfg: Config):
    json.dump(cfg.as_dict, w, indent=2)
