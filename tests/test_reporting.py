import io
import unittest

from spa_prerender.reporting import (
    CAPTURED,
    FAILED,
    PAGE_ERROR,
    SAVED,
    STARTED,
    CollectingReporter,
    ConsoleReporter,
    RouteEvent,
)


def progress(route="/about", target="out/about/index.html"):
    return [
        RouteEvent(STARTED, route),
        RouteEvent(CAPTURED, route),
        RouteEvent(SAVED, route, target=target),
    ]


class ConsoleReporterTest(unittest.TestCase):
    def setUp(self):
        self.out = io.StringIO()
        self.err = io.StringIO()

    def test_prints_three_progress_lines(self):
        reporter = ConsoleReporter(out=self.out, err=self.err, color=False)
        for event in progress():
            reporter.emit(event)
        lines = self.out.getvalue().splitlines()
        self.assertEqual(lines, [
            "[PRERENDER] Prerendering /about",
            "[PRERENDER] Prerendered /about Saving...",
            "[PRERENDER] Saved to out/about/index.html",
        ])
        self.assertEqual(self.err.getvalue(), "")

    def test_suppressed_output_still_shows_errors(self):
        reporter = ConsoleReporter(suppress_output=True, out=self.out, err=self.err, color=False)
        for event in progress():
            reporter.emit(event)
        reporter.emit(RouteEvent(PAGE_ERROR, "/about", message="ReferenceError: foo is not defined"))
        reporter.emit(RouteEvent(FAILED, "/about", message="Timeout 60000ms exceeded"))
        self.assertEqual(self.out.getvalue(), "")
        err = self.err.getvalue()
        self.assertIn("ReferenceError: foo is not defined", err)
        self.assertIn("times out", err)
        self.assertIn("Failed to prerender /about: Timeout 60000ms exceeded", err)

    def test_colour_is_decided_per_stream(self):
        class Tty(io.StringIO):
            def isatty(self):
                return True

        err = Tty()
        reporter = ConsoleReporter(out=self.out, err=err)
        for event in progress():
            reporter.emit(event)
        reporter.emit(RouteEvent(FAILED, "/about", message="boom"))
        self.assertNotIn("\033[", self.out.getvalue())
        self.assertTrue(err.getvalue().startswith("\033[1;31m"))

    def test_errors_are_red_when_coloured(self):
        reporter = ConsoleReporter(out=self.out, err=self.err, color=True)
        reporter.emit(RouteEvent(FAILED, "/", message="boom"))
        self.assertTrue(self.err.getvalue().startswith("\033[1;31m"))


class CollectingReporterTest(unittest.TestCase):
    def test_collects_events_per_route(self):
        reporter = CollectingReporter()
        for event in progress("/a") + progress("/b"):
            reporter.emit(event)
        self.assertEqual(reporter.kinds("/a"), [STARTED, CAPTURED, SAVED])
        self.assertEqual(len(reporter.kinds()), 6)


if __name__ == "__main__":
    unittest.main()
