"""Configuration management for mapstatic.

Settings are loaded with Dynaconf from several locations in order of
increasing priority:

1. Global settings (/etc/mapstatic/)
2. User settings (~/.config/mapstatic/)
3. Current directory settings (./)
4. Environment variable specified file (MAPSTATIC_SETTINGS_FILE_FOR_DYNACONF)

Any key can also be set through an environment variable with the
``MAPSTATIC_`` prefix, e.g. ``MAPSTATIC_PROVIDER=opentopomap``.

Attributes
----------
USER_DIR : pathlib.Path
    Path to user configuration directory.
GLOB_DIR : pathlib.Path
    Path to global configuration directory.
CURR_DIR : pathlib.Path
    Path to current working directory.
settings : Dynaconf
    The Dynaconf settings object with loaded configuration.
TILE_SIZE : int
    Edge length of a provider tile in pixels.
MAX_ZOOM : int
    Highest zoom level any provider is expected to serve.
"""
import os
import pathlib

from dynaconf import Dynaconf

USER_DIR = pathlib.Path("~/.config/mapstatic").expanduser()
GLOB_DIR = pathlib.Path("/etc/mapstatic/")
CURR_DIR = pathlib.Path("./").absolute()
settings_files = [
    GLOB_DIR / "settings.toml",
    GLOB_DIR / ".secrets.toml",
    USER_DIR / "settings.toml",
    USER_DIR / ".secrets.toml",
    CURR_DIR / "settings.toml",
    CURR_DIR / ".secrets.toml"
    ]
extra_file = os.getenv("MAPSTATIC_SETTINGS_FILE_FOR_DYNACONF")
if extra_file:
    settings_files.append(pathlib.Path(extra_file).absolute())

settings = Dynaconf(
    merge_enabled = True,
    envvar_prefix="MAPSTATIC",
    settings_files=settings_files,
    environments=True,
    load_dotenv=True,
)

DEFAULT_USER_AGENT = "mapstatic/0.3 (+https://github.com/mapstatic/mapstatic)"

TILE_SIZE = int(settings.get("tile_size", 256))
MAX_ZOOM = int(settings.get("max_zoom", 21))


def change_env(new_env):
    """Change the active Dynaconf environment.

    Parameters
    ----------
    new_env : str
        The environment name to switch to (e.g., 'development', 'production').
    """
    settings.setenv(new_env)
    settings.reload()


def default_provider():
    return settings.get("provider", "osm")


def user_agent():
    return settings.get("user_agent", DEFAULT_USER_AGENT)


def timeout():
    """Return the HTTP timeout in seconds for a single tile request."""
    return float(settings.get("timeout", 30))


def verbose():
    return bool(settings.get("verbose", False))
