from __future__ import annotations

import unittest
from unittest.mock import AsyncMock, Mock

from parse_cloud.core.context import CloudResponse
from parse_cloud.core.errors import InvalidWebhookPayload
from parse_cloud.core.payload import WebhookPayload
from parse_cloud.core.pipeline import (
    AFTER_TRIGGER_PIPELINE,
    BEFORE_TRIGGER_PIPELINE,
    FUNCTION_PIPELINE,
    PipelineState,
    finalize_response,
    invoke_handler,
    respond_empty_if_after,
    run_pipeline,
)


def _state(body: dict) -> PipelineState:
    return PipelineState(payload=WebhookPayload.model_validate(body))


class TestPipelines(unittest.TestCase):
    def test_function_pipeline(self) -> None:
        state = run_pipeline(
            FUNCTION_PIPELINE,
            _state(
                {
                    "installationId": "inst-1",
                    "params": {"n": 1},
                    "user": {"objectId": "u1", "username": "ann"},
                    "master": True,
                }
            ),
        )

        self.assertEqual(state.request.installation_id, "inst-1")
        self.assertEqual(state.request.params, {"n": 1})
        self.assertEqual(state.request.user.class_name, "_User")
        self.assertEqual(state.request.user.get("username"), "ann")
        self.assertTrue(state.request.master)
        self.assertIsNone(state.request.object)
        self.assertIsInstance(state.response, CloudResponse)
        self.assertFalse(state.response.sent)

    def test_user_keeps_explicit_class_name(self) -> None:
        body = {"user": {"className": "Member", "objectId": "m1"}}
        state = run_pipeline(FUNCTION_PIPELINE, _state(body))

        self.assertEqual(state.request.user.class_name, "Member")
        self.assertEqual(state.payload.user, {"className": "Member", "objectId": "m1"})

    def test_empty_user_is_decoded(self) -> None:
        state = run_pipeline(FUNCTION_PIPELINE, _state({"user": {}}))

        self.assertIsNotNone(state.request.user)
        self.assertEqual(state.request.user.class_name, "_User")
        self.assertEqual(state.request.user.attributes, {})

    def test_without_user(self) -> None:
        state = run_pipeline(FUNCTION_PIPELINE, _state({"params": {}}))

        self.assertIsNone(state.request.user)
        self.assertIsNone(state.request.master)

    def test_before_trigger_decodes_object(self) -> None:
        body = {
            "triggerName": "beforeSave",
            "object": {"className": "Widget", "objectId": "w1", "name": "gear"},
        }
        state = run_pipeline(BEFORE_TRIGGER_PIPELINE, _state(body))

        self.assertEqual(state.request.object.class_name, "Widget")
        self.assertEqual(state.request.object.get("name"), "gear")
        self.assertEqual(state.request.trigger_name, "beforeSave")
        self.assertFalse(state.response.sent)

    def test_original_and_update_are_merged(self) -> None:
        body = {
            "triggerName": "beforeSave",
            "object": {"className": "Widget", "objectId": "w1", "name": "ignored"},
            "original": {"className": "Widget", "objectId": "w1", "name": "gear", "size": 1},
            "update": {"size": 2},
        }
        state = run_pipeline(BEFORE_TRIGGER_PIPELINE, _state(body))

        self.assertEqual(state.request.object.get("name"), "gear")
        self.assertEqual(state.request.object.get("size"), 2)

    def test_trigger_without_object_is_rejected(self) -> None:
        with self.assertRaises(InvalidWebhookPayload):
            run_pipeline(BEFORE_TRIGGER_PIPELINE, _state({"triggerName": "beforeSave"}))

    def test_after_trigger_acknowledges_immediately(self) -> None:
        body = {"triggerName": "afterSave", "object": {"className": "Widget"}}
        state = run_pipeline(AFTER_TRIGGER_PIPELINE, _state(body))

        self.assertEqual(state.response.envelope, {"success": {}})

    def test_early_exit_ignores_before_triggers(self) -> None:
        state = _state({"triggerName": "beforeDelete", "object": {"className": "Widget"}})
        state.response = CloudResponse()
        respond_empty_if_after(state)

        self.assertFalse(state.response.sent)

    def test_only_after_pipeline_has_early_exit(self) -> None:
        self.assertNotIn(respond_empty_if_after, FUNCTION_PIPELINE)
        self.assertNotIn(respond_empty_if_after, BEFORE_TRIGGER_PIPELINE)
        self.assertEqual(AFTER_TRIGGER_PIPELINE[-1], respond_empty_if_after)


class TestFinalizeResponse(unittest.TestCase):
    def test_keeps_sent_envelope(self) -> None:
        response = CloudResponse()
        response.error("bad")
        finalize_response("fn", response, "ignored")
        self.assertEqual(response.envelope, {"error": "bad"})

    def test_return_value_becomes_success(self) -> None:
        response = CloudResponse()
        finalize_response("fn", response, {"ok": 1})
        self.assertEqual(response.envelope, {"success": {"ok": 1}})

    def test_no_response_becomes_error(self) -> None:
        response = CloudResponse()
        finalize_response("fn", response, None)
        self.assertEqual(response.envelope, {"error": "fn did not send a response."})


class TestInvokeHandler(unittest.IsolatedAsyncioTestCase):
    async def test_sync_handler(self) -> None:
        handler = Mock(return_value="done")
        request, response = Mock(), CloudResponse()

        result = await invoke_handler(handler, request, response)

        handler.assert_called_once_with(request, response)
        self.assertEqual(result, "done")

    async def test_async_handler(self) -> None:
        handler = AsyncMock(return_value=None)
        request, response = Mock(), CloudResponse()

        await invoke_handler(handler, request, response)

        handler.assert_awaited_once_with(request, response)


if __name__ == "__main__":
    unittest.main()
