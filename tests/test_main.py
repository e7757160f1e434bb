from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from parse_cloud.config import Settings
from parse_cloud.core.cloud import CloudCode
from parse_cloud.core.errors import WebhookConfigError
from parse_cloud.main import create_app, load_cloud_code

KEY = "host-key"
HEADERS = {"X-Parse-Webhook-Key": KEY}


def _settings(**overrides) -> Settings:
    values = {"PARSE_WEBHOOK_KEY": KEY, "CLOUD_CODE_MODULES": "sample_cloud_code"}
    values.update(overrides)
    return Settings(**values)


def test_host_mounts_both_sub_apps():
    client = TestClient(create_app(cloud=CloudCode(), settings=_settings()))

    resp = client.post("/functions/hello", json={"params": {}}, headers=HEADERS)
    assert resp.json() == {"success": "hi"}

    body = {"triggerName": "afterSave", "object": {"className": "Widget"}}
    resp = client.post("/triggers/", json=body, headers=HEADERS)
    assert resp.json() == {"success": {}}


def test_health_lists_registrations():
    client = TestClient(create_app(cloud=CloudCode(), settings=_settings()))

    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.json() == {
        "status": "ok",
        "functions": ["hello"],
        "triggers": {"Widget": ["afterSave"]},
    }


def test_custom_mount_paths():
    settings = _settings(FUNCTIONS_MOUNT_PATH="/cloud/functions", TRIGGERS_MOUNT_PATH="/cloud/triggers")
    client = TestClient(create_app(cloud=CloudCode(), settings=settings))

    resp = client.post("/cloud/functions/hello", json={}, headers=HEADERS)
    assert resp.json() == {"success": "hi"}


def test_refuses_to_start_without_webhook_key():
    with pytest.raises(WebhookConfigError):
        create_app(cloud=CloudCode(), settings=_settings(PARSE_WEBHOOK_KEY=None))


def test_module_without_register_is_rejected():
    with pytest.raises(RuntimeError):
        load_cloud_code(CloudCode(), ["json"])


def test_cloud_code_modules_setting_is_split():
    settings = _settings(CLOUD_CODE_MODULES=" a.b , c ,,")
    assert settings.cloud_code_modules == ["a.b", "c"]
