import os
import pathlib
import unittest
from unittest import mock

from spa_prerender import Options, Prerenderer, validate

INPUT_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "fixtures", "input")


class OptionsValidationTest(unittest.TestCase):
    def test_defaults(self):
        opts = Options(static_dir=INPUT_DIR)
        self.assertEqual(opts.routes, ("/",))
        self.assertEqual(opts.output_dir, ".")
        self.assertIsNone(opts.wait_for_element)
        self.assertTrue(opts.use_https)
        self.assertFalse(opts.suppress_output)
        self.assertFalse(opts.report_page_errors)
        self.assertIsNone(opts.port)
        self.assertEqual(opts.timeout, 60000)
        self.assertTrue(validate(opts))

    def test_requires_static_dir(self):
        with self.assertRaisesRegex(ValueError, "static_dir must be explicitly set."):
            validate(Options())

    def test_static_dir_must_be_absolute(self):
        with self.assertRaisesRegex(ValueError, "static_dir must be an absolute path."):
            validate(Options(static_dir="./"))

    def test_routes_must_be_a_list(self):
        with self.assertRaisesRegex(TypeError, "routes must be a list."):
            validate(Options(static_dir=INPUT_DIR, routes="/not-a-list"))

    def test_routes_must_be_strings(self):
        with self.assertRaisesRegex(TypeError, "routes must only contain strings."):
            validate(Options(static_dir=INPUT_DIR, routes=["/", 3]))

    def test_flags_must_be_booleans(self):
        for flag in ("use_https", "suppress_output", "report_page_errors"):
            with self.subTest(flag=flag):
                with self.assertRaisesRegex(TypeError, f"{flag} must be a boolean value."):
                    validate(Options(static_dir=INPUT_DIR, **{flag: "notABoolean"}))
                # truthy ints are not booleans either
                with self.assertRaises(TypeError):
                    validate(Options(static_dir=INPUT_DIR, **{flag: 1}))

    def test_missing_static_dir_is_reported_before_type_errors(self):
        with self.assertRaisesRegex(ValueError, "explicitly set"):
            validate(Options(routes="nope", use_https="nope"))

    def test_port_and_timeout(self):
        with self.assertRaises(TypeError):
            validate(Options(static_dir=INPUT_DIR, port="5002"))
        with self.assertRaises(TypeError):
            validate(Options(static_dir=INPUT_DIR, port=True))
        with self.assertRaises(ValueError):
            validate(Options(static_dir=INPUT_DIR, port=70000))
        with self.assertRaises(ValueError):
            validate(Options(static_dir=INPUT_DIR, timeout=0))
        with self.assertRaises(TypeError):
            validate(Options(static_dir=INPUT_DIR, timeout="fast"))

    def test_routes_are_copied_from_the_caller(self):
        routes = ["/", "/about"]
        opts = Options(static_dir=INPUT_DIR, routes=routes)
        routes.append(42)
        self.assertEqual(opts.routes, ("/", "/about"))
        self.assertTrue(validate(opts))

    def test_accepts_path_objects(self):
        opts = Options(static_dir=pathlib.Path(INPUT_DIR), output_dir=pathlib.Path("out"))
        self.assertEqual(opts.static_dir, INPUT_DIR)
        self.assertEqual(opts.output_dir, "out")
        self.assertTrue(validate(opts))

    def test_static_dir_of_wrong_type(self):
        with self.assertRaisesRegex(TypeError, "static_dir must be a string or path."):
            validate(Options(static_dir=42))

    def test_from_kwargs_rejects_unknown_options(self):
        with self.assertRaisesRegex(TypeError, "stopOnPageError"):
            Options.from_kwargs(static_dir=INPUT_DIR, stopOnPageError=True)


class PrerendererConstructionTest(unittest.TestCase):
    def test_invalid_options_start_no_server(self):
        cases = [
            ({}, ValueError),
            ({"static_dir": "./"}, ValueError),
            ({"static_dir": INPUT_DIR, "routes": "/not-a-list"}, TypeError),
            ({"static_dir": INPUT_DIR, "use_https": "notABoolean"}, TypeError),
            ({"static_dir": INPUT_DIR, "suppress_output": "notABoolean"}, TypeError),
            ({"static_dir": INPUT_DIR, "report_page_errors": "notABoolean"}, TypeError),
        ]
        with mock.patch("spa_prerender.prerenderer.LocalServer") as server_cls, \
                mock.patch("spa_prerender.prerenderer.find_free_port") as find_port:
            for kwargs, exc in cases:
                with self.subTest(kwargs=kwargs):
                    with self.assertRaises(exc):
                        Prerenderer(**kwargs)
            server_cls.assert_not_called()
            find_port.assert_not_called()

    def test_instantiable_with_https_and_http(self):
        for use_https in (True, False):
            with self.subTest(use_https=use_https):
                prerenderer = Prerenderer(
                    static_dir=INPUT_DIR,
                    routes=["/"],
                    wait_for_element="#dynamic",
                    use_https=use_https,
                    suppress_output=True,
                    port=0,
                )
                try:
                    self.assertIsNotNone(prerenderer.server.httpd)
                    self.assertTrue(prerenderer.server.url.startswith("https://" if use_https else "http://"))
                    self.assertNotEqual(prerenderer.port, 0)
                finally:
                    prerenderer.server.stop()

    def test_later_changes_to_route_list_do_not_reach_prerenderer(self):
        routes = ["/"]
        with mock.patch("spa_prerender.prerenderer.LocalServer"):
            prerenderer = Prerenderer(static_dir=INPUT_DIR, routes=routes, port=0)
        routes.append(42)
        self.assertEqual(list(prerenderer.options.routes), ["/"])
        self.assertEqual(prerenderer.unique_routes(), ["/"])

    def test_accepts_options_instance_or_mapping(self):
        with mock.patch("spa_prerender.prerenderer.LocalServer"):
            p1 = Prerenderer(Options(static_dir=INPUT_DIR, port=0))
            p2 = Prerenderer({"static_dir": INPUT_DIR, "port": 0})
        self.assertEqual(p1.options, p2.options)
        with self.assertRaises(TypeError):
            Prerenderer(Options(static_dir=INPUT_DIR), port=0)


if __name__ == "__main__":
    unittest.main()
