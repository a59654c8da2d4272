"""
Prerender configuration and its validation.

The record is built once, validated before any server or browser is started,
and never mutated afterwards.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Optional, Sequence

DEFAULT_PORT = 5002
DEFAULT_TIMEOUT_MS = 60000

BOOLEAN_FLAGS = ("use_https", "suppress_output", "report_page_errors")


@dataclass(frozen=True)
class Options:
    static_dir: Optional[str] = None
    routes: Sequence[str] = ("/",)
    output_dir: str = "."
    wait_for_element: Optional[str] = None
    use_https: bool = True
    suppress_output: bool = False
    report_page_errors: bool = False
    port: Optional[int] = None
    timeout: int = DEFAULT_TIMEOUT_MS

    def __post_init__(self):
        # Paths may arrive as pathlib objects; the caller's route list is copied so
        # later changes to it never reach this record
        for name in ("static_dir", "output_dir"):
            value = getattr(self, name)
            if isinstance(value, os.PathLike):
                object.__setattr__(self, name, os.fspath(value))
        if isinstance(self.routes, (list, tuple)):
            object.__setattr__(self, "routes", tuple(self.routes))

    @classmethod
    def from_kwargs(cls, **kwargs) -> "Options":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(kwargs) - known)
        if unknown:
            raise TypeError(f"Unknown option(s): {', '.join(unknown)}")
        return cls(**kwargs)


def validate(options: Options) -> bool:
    """Check required fields and types, raising on the first invalid one.

    ValueError covers missing or invalid values, TypeError covers values of the
    wrong type. No I/O happens here.
    """
    if not options.static_dir:
        raise ValueError("static_dir must be explicitly set.")
    if not isinstance(options.static_dir, str):
        raise TypeError("static_dir must be a string or path.")
    if not os.path.isabs(options.static_dir):
        raise ValueError("static_dir must be an absolute path.")
    if not isinstance(options.routes, (list, tuple)):
        raise TypeError("routes must be a list.")
    for name in BOOLEAN_FLAGS:
        if not isinstance(getattr(options, name), bool):
            raise TypeError(f"{name} must be a boolean value.")

    if not all(isinstance(r, str) for r in options.routes):
        raise TypeError("routes must only contain strings.")
    if not isinstance(options.output_dir, str):
        raise TypeError("output_dir must be a string.")
    if options.wait_for_element is not None and not isinstance(options.wait_for_element, str):
        raise TypeError("wait_for_element must be a string selector.")
    if options.port is not None:
        # bool is an int subclass; a flag passed as port is a mistake
        if isinstance(options.port, bool) or not isinstance(options.port, int):
            raise TypeError("port must be an integer.")
        if not 0 <= options.port <= 65535:
            raise ValueError("port must be between 0 and 65535.")
    if isinstance(options.timeout, bool) or not isinstance(options.timeout, (int, float)):
        raise TypeError("timeout must be a number of milliseconds.")
    if options.timeout <= 0:
        raise ValueError("timeout must be positive.")
    return True
