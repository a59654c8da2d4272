"""
Prerender a single-page application to static HTML.

The site is served from a local server, every route is opened in headless
Chromium, and once the page has rendered its DOM is written to
<output_dir>/<route>/index.html.

Usage:
    prerenderer = Prerenderer(static_dir="/abs/path/dist", routes=["/", "/about"],
                              output_dir="/abs/path/dist", wait_for_element="#app")
    asyncio.run(prerenderer.init())
"""
from __future__ import annotations

import asyncio
import os
import shutil
from typing import Dict, List, Mapping, NamedTuple, Optional, Union

from playwright.async_api import async_playwright

from .options import DEFAULT_PORT, Options, validate
from .reporting import (
    CAPTURED,
    FAILED,
    PAGE_ERROR,
    SAVED,
    STARTED,
    ConsoleReporter,
    Reporter,
    RouteEvent,
)
from .server import LocalServer, find_free_port


class RenderResult(NamedTuple):
    route: str
    target: str
    content: str


class PrerenderError(RuntimeError):
    """One or more routes failed; `failures` maps each route to its exception."""

    def __init__(self, failures: Mapping[str, BaseException]):
        self.failures: Dict[str, BaseException] = dict(failures)
        details = "; ".join(f"{route}: {exc}" for route, exc in self.failures.items())
        super().__init__(f"Failed to prerender {len(self.failures)} route(s): {details}")


def normalize_route(route: str) -> str:
    return route if route.startswith("/") else f"/{route}"


class Prerenderer:
    def __init__(
        self,
        options: Union[Options, Mapping, None] = None,
        *,
        reporter: Optional[Reporter] = None,
        **kwargs,
    ):
        if options is None:
            options = Options.from_kwargs(**kwargs)
        elif isinstance(options, Mapping):
            options = Options.from_kwargs(**{**options, **kwargs})
        elif kwargs:
            raise TypeError("Pass either an Options instance or keyword options, not both")
        validate(options)

        self.options = options
        self.reporter = reporter or ConsoleReporter(suppress_output=options.suppress_output)
        self.browser = None
        self.context = None
        self._playwright = None

        port = find_free_port(DEFAULT_PORT) if options.port is None else options.port
        self.server = LocalServer(options.static_dir, port, use_https=options.use_https)
        self.server.start()

    @property
    def port(self) -> int:
        return self.server.port

    def _emit(self, kind: str, route: str, **extra):
        self.reporter.emit(RouteEvent(kind, route, **extra))

    async def start_browser(self):
        """Launch headless Chromium; the local certificate is self-signed so TLS errors are ignored."""
        self._playwright = await async_playwright().start()
        self.browser = await self._playwright.chromium.launch(
            headless=True,
            args=["--ignore-certificate-errors"],
        )
        self.context = await self.browser.new_context(ignore_https_errors=True)

    async def get_markup(self, route: str) -> str:
        """Open `route` in a fresh page and return the rendered document."""
        timeout = self.options.timeout
        page = await self.context.new_page()
        try:
            if self.options.report_page_errors:
                page.on("pageerror", lambda exc: self._emit(PAGE_ERROR, route, message=str(exc)))
                page.on(
                    "console",
                    lambda msg: self._emit(PAGE_ERROR, route, message=msg.text) if msg.type == "error" else None,
                )
            await page.goto(f"{self.server.url}{route}", timeout=timeout)
            if self.options.wait_for_element is not None:
                await page.wait_for_selector(self.options.wait_for_element, timeout=timeout)
            return await page.content()
        finally:
            await page.close()

    def unique_routes(self) -> List[str]:
        """Normalised routes in order, dropping any that would write the same file as an earlier one."""
        seen = set()
        routes = []
        for route in self.options.routes:
            route = normalize_route(route)
            target = self.target_path(route)
            if target not in seen:
                seen.add(target)
                routes.append(route)
        return routes

    def target_path(self, route: str) -> str:
        route = normalize_route(route)
        base = self.options.output_dir
        if base.endswith("/"):
            base = base[:-1]
        if route.endswith("/"):
            route = route[:-1]
        return f"{base}{route}/index.html"

    @staticmethod
    def save_file(content: str, file_path: str):
        """Write `content` to `file_path`, replacing anything there that isn't a regular file."""
        dir_path = os.path.dirname(file_path)
        if dir_path:
            os.makedirs(dir_path, exist_ok=True)
        if os.path.lexists(file_path) and (os.path.islink(file_path) or not os.path.isfile(file_path)):
            if os.path.isdir(file_path) and not os.path.islink(file_path):
                shutil.rmtree(file_path)
            else:
                os.unlink(file_path)
        with open(file_path, "w", encoding="utf-8") as f:
            f.write(content)

    async def render_route(self, route: str) -> RenderResult:
        route = normalize_route(route)
        target = self.target_path(route)
        try:
            self._emit(STARTED, route)
            content = await self.get_markup(route)
            self._emit(CAPTURED, route)
            await asyncio.to_thread(self.save_file, content, target)
            self._emit(SAVED, route, target=target)
        except Exception as e:
            self._emit(FAILED, route, message=str(e) or type(e).__name__)
            raise
        return RenderResult(route, target, content)

    async def init(self) -> bool:
        """Render every route concurrently, then always tear the browser and server down."""
        routes = self.unique_routes()
        try:
            await self.server.wait_until_ready()
            await self.start_browser()
            results = await asyncio.gather(
                *(self.render_route(route) for route in routes),
                return_exceptions=True,
            )
        finally:
            await self.close()

        failures = {
            route: result
            for route, result in zip(routes, results)
            if isinstance(result, BaseException)
        }
        if failures:
            raise PrerenderError(failures) from next(iter(failures.values()))
        return True

    async def close(self):
        """Release the browser and the server. Safe to call more than once."""
        try:
            context, self.context = self.context, None
            browser, self.browser = self.browser, None
            playwright, self._playwright = self._playwright, None
            if context is not None:
                await context.close()
            if browser is not None:
                await browser.close()
            if playwright is not None:
                await playwright.stop()
        finally:
            await asyncio.to_thread(self.server.stop)

    destroy = close

    def run(self) -> bool:
        return asyncio.run(self.init())
