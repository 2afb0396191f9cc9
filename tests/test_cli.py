import contextlib
import io
import logging
import os
import socket
import tempfile
import unittest
from unittest import mock

from mycord.cli import build_parser, config_from_args
from mycord.config import ClientConfig, configure_logging, resolve_username


def parse(*argv):
    return config_from_args(build_parser().parse_args(list(argv)))


class ArgumentTests(unittest.TestCase):
    def test_defaults(self):
        cfg = parse("--name", "alice")
        self.assertEqual((cfg.host, cfg.port, cfg.username), ("127.0.0.1", 8080, "alice"))
        self.assertEqual(cfg.theme, "spartan")
        self.assertTrue(cfg.start_menu)
        self.assertFalse(cfg.tui)

    def test_flags(self):
        cfg = parse("--name", "alice", "--host", "10.0.0.2", "--port", "1738", "--quiet", "--tui", "--gravemind", "--no-menu")
        self.assertEqual((cfg.host, cfg.port), ("10.0.0.2", 1738))
        self.assertTrue(cfg.quiet and cfg.tui)
        self.assertEqual(cfg.theme, "gravemind")
        self.assertFalse(cfg.start_menu)

    def test_rejects_bad_values(self):
        for argv in (
            ["--port", "0"],
            ["--port", "70000"],
            ["--ip", "not-an-ip"],
            ["--ip", "127.0.0.1", "--domain", "example.com"],
        ):
            with self.subTest(argv=argv), contextlib.redirect_stderr(io.StringIO()):
                with self.assertRaises(SystemExit):
                    build_parser().parse_args(argv)

    def test_domain_resolves_to_ipv4(self):
        infos = [(socket.AF_INET, socket.SOCK_STREAM, 6, "", ("93.184.216.34", 0))]
        with mock.patch("mycord.cli.socket.getaddrinfo", return_value=infos) as gai:
            cfg = parse("--name", "alice", "--domain", "example.com")
        self.assertEqual(cfg.host, "93.184.216.34")
        self.assertEqual(gai.call_args[0][2], socket.AF_INET)

    def test_domain_lookup_failure(self):
        with mock.patch("mycord.cli.socket.getaddrinfo", side_effect=socket.gaierror("nope")):
            with self.assertRaises(ValueError):
                parse("--name", "alice", "--domain", "nowhere.invalid")


class UsernameTests(unittest.TestCase):
    def test_explicit(self):
        self.assertEqual(resolve_username("a.b-c_9"), "a.b-c_9")

    def test_login_name_is_default(self):
        with mock.patch("mycord.config.getpass.getuser", return_value="carol"):
            self.assertEqual(resolve_username(), "carol")

    def test_invalid_names(self):
        for name in ("bad name", "x" * 32, "é"):
            with self.subTest(name=name), self.assertRaises(ValueError):
                resolve_username(name)


class LoggingTests(unittest.TestCase):
    def setUp(self):
        self.logger = logging.getLogger("mycord")
        self.before = list(self.logger.handlers)

    def tearDown(self):
        for handler in self.logger.handlers:
            if handler not in self.before:
                self.logger.removeHandler(handler)
                handler.close()
        self.logger.setLevel(logging.NOTSET)

    def test_debug_log_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "client.log")
            configure_logging(ClientConfig(debug_log=path, tui=True))
            logging.getLogger("mycord.test").debug("hello from test")
            for handler in self.logger.handlers:
                handler.flush()
            with open(path) as fh:
                self.assertIn("hello from test", fh.read())
            self.tearDown()

    def test_tui_without_log_file_adds_nothing(self):
        configure_logging(ClientConfig(tui=True))
        self.assertEqual(self.logger.handlers, self.before)


if __name__ == "__main__":
    unittest.main()
