import json
import logging
import unittest

from adstar import ADStar, ADStarParams, DirectedGraph
from adstar.logging import JsonFormatter, get_logger


class TestLogging(unittest.TestCase):
    def test_get_logger_installs_one_handler(self):
        logger = get_logger("adstar.test.once", level="DEBUG", json=False)
        self.assertIs(get_logger("adstar.test.once"), logger)
        self.assertEqual(len(logger.handlers), 1)
        self.assertEqual(logger.level, logging.DEBUG)

    def test_json_formatter_keeps_search_context(self):
        record = logging.LogRecord("adstar", logging.INFO, __file__, 1, "hello %s", ("x",), None)
        record.epsilon = 1.5
        data = json.loads(JsonFormatter().format(record))
        self.assertEqual(data["message"], "hello x")
        self.assertEqual(data["epsilon"], 1.5)
        self.assertNotIn("phase", data)

    def test_driver_reports_progress(self):
        graph = DirectedGraph.from_edges([(i, i + 1, 1.0) for i in range(6)])
        logger = logging.getLogger("adstar.test.progress")
        search = ADStar(
            0,
            [6],
            graph.successors,
            graph.predecessors,
            graph.cost,
            lambda s: 0.0,
            params=ADStarParams(epsilon=1.0, log_every=2),
            logger=logger,
        )
        with self.assertLogs(logger, level="INFO") as cm:
            search.compute_or_improve_path()
        self.assertTrue(any("expansions=2" in line for line in cm.output))


if __name__ == "__main__":
    unittest.main()
