from __future__ import annotations

import argparse
import os
import sys
from typing import List, Optional

from playwright.async_api import Error as PlaywrightError

from .options import DEFAULT_TIMEOUT_MS
from .prerenderer import Prerenderer, PrerenderError


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="spa-prerender",
        description="Prerender routes of a built single-page app to static HTML.",
    )
    p.add_argument("static_dir", help="Directory holding the built site (index.html at its root)")
    p.add_argument("-r", "--route", dest="routes", action="append", default=None,
                   help="Route to prerender; repeat for several (default: /)")
    p.add_argument("-o", "--out", dest="output_dir", default=".",
                   help="Directory the rendered pages are written to (default: current directory)")
    p.add_argument("-w", "--wait-for", dest="wait_for_element", default=None,
                   help="CSS selector that must appear before the page is captured")
    p.add_argument("--http", dest="use_https", action="store_false",
                   help="Serve over plain HTTP instead of HTTPS")
    p.add_argument("-p", "--port", type=int, default=None,
                   help="Port for the local server (default: first free port from 5002)")
    p.add_argument("--timeout", type=int, default=DEFAULT_TIMEOUT_MS,
                   help="Navigation and selector timeout in milliseconds (default: 60000)")
    p.add_argument("-q", "--quiet", dest="suppress_output", action="store_true",
                   help="Only print errors")
    p.add_argument("--report-page-errors", action="store_true",
                   help="Print script errors raised by the rendered pages")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        prerenderer = Prerenderer(
            static_dir=os.path.abspath(args.static_dir),
            routes=args.routes or ["/"],
            output_dir=args.output_dir,
            wait_for_element=args.wait_for_element,
            use_https=args.use_https,
            suppress_output=args.suppress_output,
            report_page_errors=args.report_page_errors,
            port=args.port,
            timeout=args.timeout,
        )
    except (TypeError, ValueError) as e:
        sys.stderr.write(f"Error: {e}\n")
        return 2
    except OSError as e:
        # The local server could not bind its port
        sys.stderr.write(f"Error: {e}\n")
        return 1

    try:
        prerenderer.run()
    except PrerenderError as e:
        # Each route's failure has already been reported as it happened
        sys.stderr.write(f"Error: {len(e.failures)} of {len(prerenderer.unique_routes())} route(s) failed\n")
        return 1
    except PlaywrightError as e:
        # e.g. the Chromium build is missing (`playwright install chromium`)
        sys.stderr.write(f"Error: {e}\n")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
