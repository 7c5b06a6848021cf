# core/tests/test_api.py

from django.test import SimpleTestCase
from rest_framework import exceptions as drf_exceptions

from core.api import error_response, ok_response, workflow_exception_handler
from core.exceptions import ForbiddenTransition, InvalidTransition, TooEarlyError


class EnvelopeTests(SimpleTestCase):
    def test_ok_response_shape(self):
        response = ok_response({"a": 1}, message="done", status=201)
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data, {"success": True, "message": "done", "data": {"a": 1}})

    def test_error_response_shape(self):
        response = error_response(code="x", message="nope", details={"k": "v"}, status=400)
        self.assertFalse(response.data["success"])
        self.assertIsNone(response.data["data"])
        self.assertEqual(response.data["error"], {"code": "x", "message": "nope", "details": {"k": "v"}})


class ExceptionHandlerTests(SimpleTestCase):
    def test_invalid_transition_maps_to_409_with_states(self):
        exc = InvalidTransition(current="pending", requested="delivered")
        response = workflow_exception_handler(exc, {})

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data["error"]["code"], "invalid_transition")
        self.assertEqual(response.data["error"]["details"]["current_status"], "pending")
        self.assertEqual(response.data["error"]["details"]["requested_status"], "delivered")

    def test_forbidden_transition_maps_to_403(self):
        response = workflow_exception_handler(ForbiddenTransition("no"), {})
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.data["message"], "no")

    def test_too_early_reports_remaining_time(self):
        response = workflow_exception_handler(TooEarlyError("wait", remaining_seconds=7200), {})
        details = response.data["error"]["details"]
        self.assertEqual(details["remaining_seconds"], 7200)
        self.assertEqual(details["remaining_hours"], 2.0)

    def test_drf_validation_error_is_wrapped(self):
        exc = drf_exceptions.ValidationError({"amount": ["This field is required."]})
        response = workflow_exception_handler(exc, {})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["error"]["code"], "validation_error")
        self.assertEqual(response.data["message"], "amount: This field is required.")

    def test_unknown_exceptions_fall_through(self):
        self.assertIsNone(workflow_exception_handler(RuntimeError("boom"), {}))
