"""

Config module. Reads and writes module-level config files.
Checks the current directory and all parent directories for a `pnprobot.ini` or
`pnprobot.json` config file. If none exists, a default Config object is used, and,
when requested, written next to the project's .git directory (or the current directory).
"""
from pathlib import Path
from typing import Optional, Union

from pnprobot.config.config import Config
from pnprobot.config.file import FileReader, FileWriter
from pnprobot.config.formats import IniLoader, IniSaver, JsonLoader, MultiLoader

DEFAULT_LOADERS = [IniLoader(), JsonLoader()]

DEFAULT_CONFIG_READER = FileReader(
  format_loader=MultiLoader(DEFAULT_LOADERS),
)

DEFAULT_CONFIG_WRITER = FileWriter(
  format_saver=IniSaver(),
)


def get_file(base_name: str, _dir: Path) -> Optional[Path]:
  for ext in (rdr.extension for rdr in DEFAULT_LOADERS):
    cfg = _dir / f"{base_name}.{ext}"
    if cfg.exists():
      return cfg
  return None


def get_config_file(
  base_name: str,
  cur_dir: Optional[Union[str, Path]] = None
) -> Optional[Path]:
  """Get the path to the config file, looking in `cur_dir` and then in its parents.

  Args:
    base_name: The base name of the config file.
    cur_dir: Where to start looking. Defaults to the current working directory.
  """
  cdir = Path(cur_dir) if cur_dir is not None else Path.cwd()

  cfg = get_file(base_name, cdir)
  if cfg is not None:
    return cfg

  if cdir.parent == cdir:
    return None

  return get_config_file(base_name, cdir.parent)


def get_dir_to_create_config_file_in() -> Path:
  cur_dir = Path.cwd()
  for parent in (cur_dir, *cur_dir.parents):
    if (parent / ".git").exists():
      return parent
  return cur_dir


def load_config(base_file_name: str, create_default: bool = False,
                create_module_level: bool = True) -> Config:
  """Load a Config object from a file.

  Args:
    base_file_name: The base file name to load.
    create_default: Whether to write a default config file if none exists. It gets the extension
      of the first of `DEFAULT_LOADERS`.
    create_module_level: Whether to create the default file at the project root rather than in
      the current directory.
  """
  config_path = get_config_file(base_file_name)
  if config_path is None:
    if not create_default:
      return Config()
    create_dir = get_dir_to_create_config_file_in() if create_module_level else Path.cwd()
    default_extension = DEFAULT_LOADERS[0].extension
    config_path = create_dir / f"{base_file_name}.{default_extension}"
    DEFAULT_CONFIG_WRITER.write(config_path, Config())

  return DEFAULT_CONFIG_READER.read(config_path)
