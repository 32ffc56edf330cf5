# This file is part of cloudboot. See LICENSE file for license information.

import shlex
from typing import Dict, Iterable, List, Optional

KERNEL_PARAM_CONSOLE = "console"
KERNEL_PARAM_NET_IFNAMES = "net.ifnames"


class KernelParameter:
    """A kernel command line key with its ordered values.

    A key may be given several times (console=tty1 console=ttyS0); the
    values keep the order they were appended in.
    """

    def __init__(self, key: str, values: Optional[Iterable[str]] = None):
        self.key = key
        self._values: List[str] = list(values or [])

    def append(self, value: str) -> "KernelParameter":
        self._values.append(value)
        return self

    @property
    def values(self):
        return tuple(self._values)

    def first(self) -> Optional[str]:
        return self._values[0] if self._values else None

    def __eq__(self, other):
        if not isinstance(other, KernelParameter):
            return NotImplemented
        return (self.key, self._values) == (other.key, other._values)

    def __repr__(self):
        return "KernelParameter(%r, %r)" % (self.key, self._values)

    def __str__(self):
        if not self._values:
            return self.key
        return " ".join("%s=%s" % (self.key, v) for v in self._values)


def render(params: Iterable[KernelParameter]) -> str:
    return " ".join(str(p) for p in params)


def parse(cmdline: str) -> Dict[str, KernelParameter]:
    """Parse a kernel command line into parameters keyed by name."""
    params: Dict[str, KernelParameter] = {}
    try:
        tokens = shlex.split(cmdline)
    except ValueError:
        # unbalanced quotes
        tokens = cmdline.split()
    for tok in tokens:
        key, sep, value = tok.partition("=")
        param = params.setdefault(key, KernelParameter(key))
        if sep:
            param.append(value)
    return params


def get_value(cmdline: str, key: str) -> Optional[str]:
    """Return the first value given to key on cmdline, if any."""
    param = parse(cmdline).get(key)
    if param is None:
        return None
    return param.first()
