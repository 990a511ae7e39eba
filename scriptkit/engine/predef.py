"""ScriptKit - Predef Composition

Predef code runs before any session or script code and establishes shared
bindings. Layers always run in this order:

1. defaultPredef - the builtin helpers below (can be switched off)
2. predef        - code passed in through the environment (-p)

The storage predef file (predef.py / predefScript.py) is loaded by the
interpreter after both layers.
"""

from typing import List

from scriptkit.models import PredefLayer


DEFAULT_PREDEF = """\
import os
import re
import sys
import json
import math
import time
import itertools
import functools
import collections
from pathlib import Path
from pprint import pprint, pformat
"""

REPL_PREDEF = """\
import inspect
from textwrap import dedent

def source(obj):
    print(inspect.getsource(obj))
"""

BLOCK_SEPARATOR = "@"


def compose_default_predef(enabled: bool, builtin_text: str) -> str:
    if enabled:
        return builtin_text
    return ""


def build_predef_layers(env, builtin_text: str = DEFAULT_PREDEF) -> List[PredefLayer]:
    """Layers for an interpreter built from ``env``, defaultPredef first."""
    return [
        PredefLayer("defaultPredef", compose_default_predef(env.default_predef, builtin_text), False),
        PredefLayer("predef", env.predef, False),
    ]


def split_blocks(code: str) -> List[str]:
    """Split predef code on lines holding only ``@``.

    Each block is compiled and run on its own, so later blocks can rely on
    names the earlier ones defined. Blank blocks are dropped.
    """
    blocks = []
    current: List[str] = []
    for line in code.splitlines(keepends=True):
        if line.strip() == BLOCK_SEPARATOR:
            blocks.append("".join(current))
            current = []
        else:
            current.append(line)
    blocks.append("".join(current))
    return [block for block in blocks if block.strip()]
