# This file is part of cloudboot. See LICENSE file for license information.

import collections.abc
import io
import logging
import logging.config
import os
import sys
import time
from contextlib import suppress

DEFAULT_LOG_FORMAT = "%(asctime)s - %(filename)s[%(levelname)s]: %(message)s"


def setup_basic_logging(level=logging.DEBUG, formatter=None):
    formatter = formatter or logging.Formatter(DEFAULT_LOG_FORMAT)
    root = logging.getLogger()
    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    console.setLevel(level)
    root.addHandler(console)
    root.setLevel(level)


def setup_logging(cfg=None, level=logging.WARNING):
    # See if the config provides any logging conf...
    if not cfg:
        cfg = {}

    log_cfgs = []
    for a_cfg in cfg.get("log_cfgs") or []:
        if isinstance(a_cfg, str):
            log_cfgs.append(a_cfg)
        elif isinstance(a_cfg, (collections.abc.Iterable)):
            cfg_str = [str(c) for c in a_cfg]
            log_cfgs.append("\n".join(cfg_str))
        else:
            log_cfgs.append(str(a_cfg))

    # log_cfg may contain either a filepath to a file containing a logger
    # configuration, or a string containing a logger configuration
    # https://docs.python.org/3/library/logging.config.html#logging-config-fileformat
    for log_cfg in log_cfgs:
        # /dev/log will not exist in very early boot, so an exception
        # on a syslog handler is expected.
        with suppress(FileNotFoundError):
            # If the value is not a filename, assume that it is a config.
            if not (log_cfg.startswith("/") and os.path.isfile(log_cfg)):
                log_cfg = io.StringIO(log_cfg)

            logging.config.fileConfig(log_cfg, disable_existing_loggers=False)

            # Use the first valid configuration.
            return

    # If it didn't work, at least setup a basic logger (if desired)
    if cfg.get("log_basic", True):
        setup_basic_logging(level=level)


def reset_logging():
    """Remove all current handlers and unset log level."""
    log = logging.getLogger()
    handlers = list(log.handlers)
    for h in handlers:
        h.flush()
        h.close()
        log.removeHandler(h)
    log.setLevel(logging.NOTSET)


def configure_root_logger():
    """Customize the root logger for cloudboot"""

    # Always format logging timestamps as UTC time
    logging.Formatter.converter = time.gmtime
    reset_logging()
