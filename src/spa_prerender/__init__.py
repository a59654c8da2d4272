from .options import DEFAULT_PORT, DEFAULT_TIMEOUT_MS, Options, validate
from .prerenderer import Prerenderer, PrerenderError, RenderResult
from .reporting import CollectingReporter, ConsoleReporter, NullReporter, Reporter, RouteEvent
from .server import LocalServer, find_free_port

__all__ = [
    "DEFAULT_PORT",
    "DEFAULT_TIMEOUT_MS",
    "CollectingReporter",
    "ConsoleReporter",
    "LocalServer",
    "NullReporter",
    "Options",
    "PrerenderError",
    "Prerenderer",
    "RenderResult",
    "Reporter",
    "RouteEvent",
    "find_free_port",
    "validate",
]
