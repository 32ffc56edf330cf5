# This file is part of cloudboot. See LICENSE file for license information.

import copy
import json
import logging
import os
import sys
from typing import Mapping, Optional, Sequence, Union

import yaml

from cloudboot import settings

LOG = logging.getLogger(__name__)


def decode_binary(
    blob: Union[str, bytes], encoding="utf-8", errors="strict"
) -> str:
    # Converts a binary type into a text type using given encoding.
    if isinstance(blob, str):
        return blob
    return blob.decode(encoding=encoding, errors=errors)


def load_binary_file(fname: Union[str, os.PathLike]) -> bytes:
    LOG.debug("Reading from %s", fname)
    with open(fname, "rb") as stream:
        contents = stream.read()
    LOG.debug("Read %s bytes from %s", len(contents), fname)
    return contents


def load_text_file(fname: Union[str, os.PathLike]) -> str:
    return decode_binary(load_binary_file(fname))


def load_yaml(blob, default=None, allowed=(dict,)):
    loaded = default
    blob = decode_binary(blob)
    try:
        LOG.debug(
            "Attempting to load yaml from string "
            "of length %s with allowed root types %s",
            len(blob),
            allowed,
        )
        converted = yaml.safe_load(blob)
        if converted is None:
            LOG.debug("loaded blob returned None, returning default.")
            converted = default
        elif not isinstance(converted, allowed):
            # Yes this will just be caught, but thats ok for now...
            raise TypeError(
                "Yaml load allows %s root types, but got %s instead"
                % (allowed, type(converted).__name__)
            )
        loaded = converted
    except (yaml.YAMLError, TypeError, ValueError) as e:
        msg = "Failed loading yaml blob"
        mark = None
        if hasattr(e, "context_mark") and getattr(e, "context_mark"):
            mark = getattr(e, "context_mark")
        elif hasattr(e, "problem_mark") and getattr(e, "problem_mark"):
            mark = getattr(e, "problem_mark")
        if mark:
            msg += (
                '. Invalid format at line {line} column {col}: "{err}"'.format(
                    line=mark.line + 1, col=mark.column + 1, err=e
                )
            )
        else:
            msg += ". {err}".format(err=e)
        LOG.warning(msg)
    return loaded


def read_conf(fname) -> dict:
    """Read a yaml config file and convert to dict"""
    try:
        config_file = load_text_file(fname)
    except FileNotFoundError:
        return {}
    return load_yaml(config_file, default={})


def mergemanydict(sources: Sequence[Mapping], reverse=False) -> dict:
    """Merge multiple dicts, the first occurrence of a key winning.

    Nested dicts are merged recursively; any other value already present
    is never replaced, so the highest priority source goes first.

    mergemanydict([{"a": 1, "d": {"a": 1}}, {"a": 10, "d": {"f": 2}}])
    results in: {"a": 1, "d": {"a": 1, "f": 2}}
    """
    if reverse:
        sources = list(reversed(sources))
    merged_cfg: dict = {}
    for cfg in sources:
        if cfg:
            _merge_into(merged_cfg, cfg)
    return merged_cfg


def _merge_into(target: dict, source: Mapping):
    for key, value in source.items():
        if key not in target:
            target[key] = copy.deepcopy(value)
        elif isinstance(target[key], dict) and isinstance(value, Mapping):
            _merge_into(target[key], value)


def read_system_config(cfg_path: Optional[str] = None) -> dict:
    """Read the system config merged over the builtin defaults.

    The path is taken from the argument, then from the CLOUDBOOT_CFG
    environment variable, then from the default location.
    """
    if not cfg_path:
        cfg_path = os.environ.get(
            settings.CFG_ENV_NAME, settings.CLOUDBOOT_CONFIG
        )
    cfg: dict = {}
    try:
        cfg = read_conf(cfg_path)
    except PermissionError:
        LOG.warning(
            "REDACTED config part %s, insufficient permissions", cfg_path
        )
    except OSError as e:
        LOG.warning("Error accessing file %s: [%s]", cfg_path, e)
    return mergemanydict([cfg, settings.CFG_BUILTIN])


def get_cfg_option_str(yobj, key, default=None):
    if key not in yobj:
        return default
    val = yobj[key]
    if not isinstance(val, str):
        val = str(val)
    return val


def get_cfg_option_float(yobj, key, default=0.0):
    val = yobj.get(key, default)
    if val is None:
        return None
    return float(val)


# get a cfg entry by its path array
# for f['a']['b']: get_cfg_by_path(mycfg,('a','b'))
def get_cfg_by_path(yobj, keyp, default=None):
    """Return the value of the item at path C{keyp} in C{yobj}.

    example:
      get_cfg_by_path({'a': {'b': {'num': 4}}}, 'a/b/num') == 4
      get_cfg_by_path({'a': {'b': {'num': 4}}}, 'c/d') == None

    @param yobj: A dictionary.
    @param keyp: A path inside yobj.  it can be a '/' delimited string,
                 or an iterable.
    @param default: The default to return if the path does not exist.
    @return: The value of the item at keyp."
    is not found."""

    if isinstance(keyp, str):
        keyp = keyp.split("/")
    cur = yobj
    for tok in keyp:
        if not isinstance(cur, Mapping) or tok not in cur:
            return default
        cur = cur[tok]
    return cur


def get_cmdline():
    if "DEBUG_PROC_CMDLINE" in os.environ:
        return os.environ["DEBUG_PROC_CMDLINE"]

    try:
        return load_text_file("/proc/cmdline").strip()
    except OSError:
        return ""


def json_dumps(data):
    """Return data in nicely formatted json."""
    return json.dumps(
        data,
        indent=1,
        sort_keys=True,
        separators=(",", ": "),
        default=str,
    )


def yaml_dumps(obj, explicit_start=True, explicit_end=True):
    """Return data in nicely formatted yaml."""
    return yaml.dump(
        obj,
        line_break="\n",
        indent=4,
        explicit_start=explicit_start,
        explicit_end=explicit_end,
        default_flow_style=False,
        Dumper=yaml.dumper.SafeDumper,
    )


def logexc(
    log, msg, *args, log_level: int = logging.WARNING, exc_info=True
) -> None:
    log.log(log_level, msg, *args)
    log.debug(msg, exc_info=exc_info, *args)


def error(msg, rc=1, fmt="Error:\n{}", sys_exit=False):
    r"""
    Print error to stderr and return or exit

    @param msg: message to print
    @param rc: return code (default: 1)
    @param fmt: format string for putting message in (default: 'Error:\n {}')
    @param sys_exit: exit when called (default: false)
    """
    print(fmt.format(msg), file=sys.stderr)
    if sys_exit:
        sys.exit(rc)
    return rc
