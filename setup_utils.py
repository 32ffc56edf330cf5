import os
import re
from typing import List

TOPDIR = os.path.dirname(os.path.realpath(__file__))


def is_f(p: str) -> bool:
    return os.path.isfile(p)


def get_version() -> str:
    with open(os.path.join(TOPDIR, "cloudboot", "version.py")) as stream:
        match = re.search(
            r'^__VERSION__ = "(?P<version>[^"]+)"', stream.read(), re.M
        )
    if not match:
        raise RuntimeError("Unable to find __VERSION__ in version.py")
    return match.group("version")


def read_requires(fname: str = "requirements.txt") -> List[str]:
    requires = []
    with open(os.path.join(TOPDIR, fname)) as stream:
        for line in stream:
            line = line.split("#", 1)[0].strip()
            if line and not line.startswith("-"):
                requires.append(line)
    return requires
