import json
import logging
import unittest
from unittest.mock import patch

import jwt
from fastapi import HTTPException

from warehouse.config import Settings
from warehouse.core.logging import JsonFormatter
from warehouse.core.security import authenticate_request
from warehouse.services.audit_service import sanitize_for_audit

_SECRET = "test-secret-with-enough-length-for-hs256"


def _settings(**overrides):
    return Settings(_env_file=None, **overrides)


class AuthenticateRequestTest(unittest.TestCase):
    def _auth(self, settings, **kwargs):
        with patch("warehouse.core.security.get_settings", return_value=settings):
            return authenticate_request(
                kwargs.get("api_key"),
                kwargs.get("authorization"),
                actor_name=kwargs.get("actor_name"),
                require_auth=True,
            )

    def test_open_when_nothing_configured(self):
        actor = self._auth(_settings(), actor_name="  gudang ")
        self.assertEqual(actor.name, "gudang")
        self.assertEqual(actor.auth_type, "anonymous")
        self.assertEqual(self._auth(_settings()).name, "system")

    def test_api_key_actor(self):
        settings = _settings(API_KEYS="alpha, beta")
        actor = self._auth(settings, api_key="beta", actor_name="Rina")
        self.assertEqual(actor.name, "Rina")
        self.assertEqual(actor.auth_type, "api_key")

        with self.assertRaises(HTTPException) as ctx:
            self._auth(settings, api_key="gamma")
        self.assertEqual(ctx.exception.status_code, 401)

    def test_jwt_actor(self):
        settings = _settings(JWT_SECRET=_SECRET)
        token = jwt.encode({"sub": "u-17", "name": "Supervisor"}, _SECRET, algorithm="HS256")
        actor = self._auth(settings, authorization=f"Bearer {token}")
        self.assertEqual(actor.name, "Supervisor")
        self.assertEqual(actor.auth_type, "jwt")

        with self.assertRaises(HTTPException):
            self._auth(settings, authorization="Bearer not-a-token")


class JsonFormatterTest(unittest.TestCase):
    def test_context_fields_are_carried(self):
        record = logging.LogRecord("warehouse.test", logging.INFO, __file__, 1, "approved %s", (7,), None)
        record.actor = "approver"
        record.stock_out_id = 7
        payload = json.loads(JsonFormatter().format(record))
        self.assertEqual(payload["message"], "approved 7")
        self.assertEqual(payload["actor"], "approver")
        self.assertEqual(payload["stock_out_id"], 7)
        self.assertNotIn("opname_id", payload)


class AuditSanitizerTest(unittest.TestCase):
    def test_sensitive_keys_are_redacted(self):
        cleaned = sanitize_for_audit({"name": "x", "Password": "hunter2", "api_key": "k"})
        self.assertEqual(cleaned, {"name": "x", "Password": "[REDACTED]", "api_key": "[REDACTED]"})
        self.assertIsNone(sanitize_for_audit(None))


if __name__ == "__main__":
    unittest.main()
