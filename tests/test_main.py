"""Tests for the command-line entry point."""

import io
import json
import logging
import unittest
from contextlib import redirect_stdout

from logging_config import get_logger
from main import main


def run(*argv):
    out = io.StringIO()
    with redirect_stdout(out):
        code = main(list(argv))
    return code, out.getvalue()


class TestMain(unittest.TestCase):
    """Test main() output and exit codes."""

    def test_expression_with_approximation(self):
        code, out = run("1/3")
        self.assertEqual(code, 0)
        self.assertEqual(out.splitlines(), ["1/3", "≈ 0.3333333333"])

    def test_integer_has_no_approximation_line(self):
        code, out = run("2+3")
        self.assertEqual(code, 0)
        self.assertEqual(out.splitlines(), ["5"])

    def test_precision_flag(self):
        _, out = run("--precision", "3", "1/3")
        self.assertEqual(out.splitlines()[-1], "≈ 0.333")

    def test_system_from_several_arguments(self):
        code, out = run("x+y=5", "x-y=1")
        self.assertEqual(code, 0)
        self.assertEqual(out.splitlines(), ["x = 3", "y = 2"])

    def test_no_solution(self):
        code, out = run("x^3=8")
        self.assertEqual(code, 1)
        self.assertEqual(out.strip(), "no solution")

    def test_json(self):
        code, out = run("--json", "1/2")
        payload = json.loads(out)
        self.assertEqual(code, 0)
        self.assertEqual(payload["text"], "1/2")
        self.assertEqual(payload["numerical"], 0.5)
        self.assertTrue(payload["exact"])


class TestLogging(unittest.TestCase):
    """Test logger naming."""

    def test_module_loggers_nest_under_root(self):
        logger = get_logger("engine")
        self.assertEqual(logger.name, "cas.engine")
        self.assertIs(logger.parent, logging.getLogger("cas"))


if __name__ == "__main__":
    unittest.main()
