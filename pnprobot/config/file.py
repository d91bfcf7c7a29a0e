from pathlib import Path
from typing import Union

from pnprobot.config.config import Config
from pnprobot.config.formats import ConfigLoader, ConfigSaver


class FileReader:
  """ Reads a Config object from a file, parsing it with `format_loader`. """

  encoding = "utf-8"

  def __init__(self, format_loader: ConfigLoader):
    self.format_loader = format_loader

  def read(self, r: Union[str, Path]) -> Config:
    with open(r, "r", encoding=self.encoding) as f:
      return self.format_loader.load(f)


class FileWriter:
  """ Writes a Config object to a file, serializing it with `format_saver`. """

  encoding = "utf-8"

  def __init__(self, format_saver: ConfigSaver):
    self.format_saver = format_saver

  def write(self, w: Union[str, Path], cfg: Config):
    with open(w, "w", encoding=self.encoding) as f:
      self.format_saver.save(f, cfg)
