#!/usr/bin/env python3
"""
Shim module so the prerenderer can be run straight from a checkout
(`python main.py dist -r / -r /about`). The implementation lives in
spa_prerender; this re-exports its public API and console entry point.
"""
# Support running from source without install (src layout)
try:
    from spa_prerender import Prerenderer, PrerenderError  # type: ignore F401
    from spa_prerender.cli import main as _main
except ModuleNotFoundError:  # pragma: no cover - fallback for local runs
    import os
    import sys as _sys
    here = os.path.dirname(__file__)
    src = os.path.join(here, "src")
    if os.path.isdir(src) and src not in _sys.path:
        _sys.path.insert(0, src)
    from spa_prerender import Prerenderer, PrerenderError  # type: ignore F401
    from spa_prerender.cli import main as _main

__all__ = [
    "Prerenderer",
    "PrerenderError",
    "main",
]


def main():
    return _main()


if __name__ == "__main__":
    raise SystemExit(main())
