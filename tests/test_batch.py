"""Tests for daemon/batch.py - stop-on-first-failure execution."""

import unittest

from agentbrowser.daemon.batch import BatchExecutor
from agentbrowser.daemon.protocol import Request, Response
from agentbrowser.errors import ExchangeTimeoutError


class ScriptedClient:
    """Returns scripted outcomes per action; exceptions are raised."""

    def __init__(self, outcomes=None):
        self.outcomes = outcomes or {}
        self.sent = []

    def exchange(self, request):
        self.sent.append(request)
        outcome = self.outcomes.get(request.action)
        if isinstance(outcome, Exception):
            raise outcome
        if outcome is not None:
            return outcome
        return Response(id=request.id, success=True, data={})


class TestBatchExecutor(unittest.TestCase):

    def setUp(self):
        self.requests = [Request("url"), Request("click"), Request("title")]

    def test_all_succeed(self):
        client = ScriptedClient()
        result = BatchExecutor(client).run(self.requests[:2])

        self.assertTrue(result.success)
        self.assertEqual(result.completed, 2)
        self.assertEqual(result.total, 2)
        self.assertEqual([r.id for r in result.results], [r.id for r in self.requests[:2]])

    def test_stops_at_failed_response(self):
        client = ScriptedClient({"click": Response(id="b", success=False, error="no element")})
        result = BatchExecutor(client).run(self.requests)

        self.assertFalse(result.success)
        self.assertEqual(result.completed, 2)
        self.assertEqual(result.total, 3)
        self.assertEqual([r.action for r in client.sent], ["url", "click"])
        self.assertEqual(result.results[-1].error, "no element")

    def test_transport_error_becomes_failed_response(self):
        client = ScriptedClient({"url": ExchangeTimeoutError("Timeout: no response after 30s")})
        result = BatchExecutor(client).run(self.requests)

        self.assertFalse(result.success)
        self.assertEqual(result.completed, 1)
        failure = result.results[0]
        self.assertEqual(failure.id, self.requests[0].id)
        self.assertFalse(failure.success)
        self.assertIn("Timeout", failure.error)

    def test_on_result_called_in_order(self):
        seen = []
        BatchExecutor(ScriptedClient()).run(
            self.requests,
            on_result=lambda request, response: seen.append((request.action, response.success)),
        )
        self.assertEqual(seen, [("url", True), ("click", True), ("title", True)])

    def test_empty_batch(self):
        result = BatchExecutor(ScriptedClient()).run([])
        self.assertTrue(result.success)
        self.assertEqual((result.completed, result.total), (0, 0))

    def test_to_dict(self):
        client = ScriptedClient({"click": Response(id="b", success=False, error="x")})
        payload = BatchExecutor(client).run(self.requests).to_dict()
        self.assertEqual(payload["completed"], 2)
        self.assertEqual(payload["total"], 3)
        self.assertFalse(payload["success"])
        self.assertEqual(payload["results"][1], {"id": "b", "success": False, "error": "x"})


if __name__ == "__main__":
    unittest.main()
