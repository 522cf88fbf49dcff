import inspect
import json

import pytest

from insights.api.v1.endpoints import webhook as webhook_endpoint
from insights.core.config import settings
from insights.core.security import generate_webhook_signature

WEBHOOK_URL = "/api/sahha/webhook"


def _batch(count, timestamp="2025-09-16T10:00:00.000Z"):
    return {
        "event": "batch.scores",
        "timestamp": timestamp,
        "data": {
            "profiles": [
                {
                    "externalId": f"emp-{n}",
                    "profileId": f"profile-{n}",
                    "scores": {"wellbeing": {"value": 0.5 + n / 100}},
                    "deviceType": "iOS",
                }
                for n in range(count)
            ]
        },
    }


def _stored(client):
    response = client.get(WEBHOOK_URL)
    assert response.status_code == 200
    return response.json()


class TestWebhookIngest:

    def test_batch_round_trip(self, client):
        response = client.post(WEBHOOK_URL, json=_batch(3))
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Webhook processed successfully"
        assert body["profilesProcessed"] == 3

        stored = _stored(client)
        assert stored["count"] == 3
        assert stored["lastUpdated"] == "2025-09-16T10:00:00.000Z"
        first = stored["profiles"][0]
        assert first["externalId"] == "emp-0"
        assert first["profileId"] == "profile-0"
        assert first["deviceType"] == "iOS"
        assert first["scores"] == {"wellbeing": {"value": 0.5}}

    def test_repeat_delivery_merges_instead_of_duplicating(self, client):
        client.post(WEBHOOK_URL, json=_batch(2))
        update = {
            "event": "batch.scores",
            "timestamp": "2025-09-17T10:00:00.000Z",
            "data": {"profiles": [{"externalId": "emp-1", "accountId": "acct-9"}]},
        }
        assert client.post(WEBHOOK_URL, json=update).status_code == 200

        stored = _stored(client)
        assert stored["count"] == 2
        emp1 = next(p for p in stored["profiles"] if p["externalId"] == "emp-1")
        assert emp1["accountId"] == "acct-9"
        assert emp1["deviceType"] == "iOS"
        assert emp1["lastUpdated"] == "2025-09-17T10:00:00.000Z"

    def test_duplicate_ids_within_one_batch(self, client):
        payload = {
            "event": "batch.scores",
            "data": {"profiles": [{"externalId": "dup", "a": 1}, {"externalId": "dup", "b": 2}]},
        }
        assert client.post(WEBHOOK_URL, json=payload).status_code == 200
        stored = _stored(client)
        assert stored["count"] == 1
        assert stored["profiles"][0]["a"] == 1
        assert stored["profiles"][0]["b"] == 2

    def test_score_updated_event(self, client):
        client.post(WEBHOOK_URL, json=_batch(1))
        event = {
            "event": "score.updated",
            "timestamp": "2025-09-18T00:00:00.000Z",
            "data": {"externalId": "emp-0", "scores": {"sleep": {"value": 0.7}}},
        }
        response = client.post(WEBHOOK_URL, json=event)
        assert response.json()["profilesProcessed"] == 1

        data = client.get(WEBHOOK_URL, params={"externalId": "emp-0"}).json()["data"]
        assert data["scores"] == {"sleep": {"value": 0.7}}
        assert data["deviceType"] == "iOS"

    def test_profile_created_replaces_record(self, client):
        client.post(WEBHOOK_URL, json=_batch(1))
        event = {
            "event": "profile.created",
            "timestamp": "2025-09-18T00:00:00.000Z",
            "data": {"externalId": "emp-0", "profileId": "new-profile"},
        }
        client.post(WEBHOOK_URL, json=event)
        data = client.get(WEBHOOK_URL, params={"externalId": "emp-0"}).json()["data"]
        assert data["profileId"] == "new-profile"
        assert data["createdAt"] == "2025-09-18T00:00:00.000Z"
        assert "scores" not in data

    def test_unknown_event_is_acknowledged_but_not_stored(self, client):
        payload = {"event": "something.else", "data": {"profiles": [{"externalId": "x"}]}}
        response = client.post(WEBHOOK_URL, json=payload)
        assert response.status_code == 200
        assert response.json()["profilesProcessed"] == 1
        assert _stored(client)["count"] == 0


def _integration(client, event_type, body, **headers):
    return client.post(WEBHOOK_URL, json=body, headers={"X-Event-Type": event_type, **headers})


class TestIntegrationEvents:

    def test_score_created(self, client):
        body = {
            "externalId": "emp-1",
            "profileId": "profile-1",
            "type": "sleep",
            "score": 0.71,
            "state": "high",
            "scoreDateTime": "2025-09-16T00:00:00Z",
            "dataSources": ["sleep_duration"],
            "factors": [{"name": "sleep_duration", "value": 480, "unit": "minute"}],
            "createdAtUtc": "2025-09-16T01:00:00Z",
        }
        response = _integration(client, "ScoreCreatedIntegrationEvent", body)
        assert response.status_code == 200
        assert response.json()["event"] == "ScoreCreatedIntegrationEvent"
        assert response.json()["profilesProcessed"] == 1

        data = client.get(WEBHOOK_URL, params={"externalId": "emp-1"}).json()["data"]
        assert data["profileId"] == "profile-1"
        assert data["scores"]["sleep"]["value"] == 0.71
        assert data["scores"]["sleep"]["state"] == "high"
        assert data["factors"]["sleep"][0]["name"] == "sleep_duration"
        assert data["lastUpdated"] == "2025-09-16T01:00:00Z"

    def test_biomarker_created(self, client):
        body = {
            "externalId": "emp-1",
            "category": "activity",
            "type": "steps",
            "value": "4200",
            "unit": "count",
            "periodicity": "daily",
            "aggregation": "total",
            "createdAtUtc": "2025-09-16T01:00:00Z",
        }
        assert _integration(client, "BiomarkerCreatedIntegrationEvent", body).status_code == 200
        data = client.get(WEBHOOK_URL, params={"externalId": "emp-1"}).json()["data"]
        assert data["profileId"] == "sahha-emp-1"
        assert data["biomarkers"]["activity_steps"]["value"] == "4200"
        assert data["biomarkers"]["activity_steps"]["unit"] == "count"

    def test_archetype_created(self, client):
        body = {
            "externalId": "emp-1",
            "name": "activity_level",
            "value": "highly_active",
            "dataType": "ordinal",
            "ordinality": 3,
            "periodicity": "weekly",
        }
        assert _integration(client, "ArchetypeCreatedIntegrationEvent", body).status_code == 200
        data = client.get(WEBHOOK_URL, params={"externalId": "emp-1"}).json()["data"]
        assert data["archetypes"]["activity_level"]["value"] == "highly_active"
        assert data["archetypes"]["activity_level"]["ordinality"] == 3

    def test_data_log_received(self, client):
        body = {
            "externalId": "emp-1",
            "logType": "sleep",
            "dataType": "sleep_stage_deep",
            "receivedAtUtc": "2025-09-16T02:00:00Z",
            "dataLogs": [{"value": 42, "unit": "minute", "source": "com.apple.health", "deviceType": "iPhone"}],
        }
        assert _integration(client, "DataLogReceivedIntegrationEvent", body).status_code == 200
        _integration(client, "DataLogReceivedIntegrationEvent", body)

        data = client.get(WEBHOOK_URL, params={"externalId": "emp-1"}).json()["data"]
        assert len(data["dataLogs"]["sleep_sleep_stage_deep"]) == 2
        assert data["device"]["type"] == "iPhone"
        assert data["device"]["source"] == "com.apple.health"
        assert data["device"]["lastSeen"] == "2025-09-16T02:00:00Z"

    def test_event_type_in_body_with_nested_data(self, client):
        body = {"eventType": "ScoreCreatedIntegrationEvent", "data": {"externalId": "emp-2", "type": "activity", "score": 0.4}}
        response = client.post(WEBHOOK_URL, json=body)
        assert response.status_code == 200
        data = client.get(WEBHOOK_URL, params={"externalId": "emp-2"}).json()["data"]
        assert data["scores"]["activity"]["value"] == 0.4

    def test_external_id_header_wins(self, client):
        body = {"externalId": "from-body", "type": "sleep", "score": 0.5}
        _integration(client, "ScoreCreatedIntegrationEvent", body, **{"X-External-Id": "from-header"})
        stored = _stored(client)
        assert [p["externalId"] for p in stored["profiles"]] == ["from-header"]

    def test_missing_external_id_rejected(self, client):
        response = _integration(client, "ScoreCreatedIntegrationEvent", {"type": "sleep", "score": 0.5})
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid webhook payload"
        assert _stored(client)["count"] == 0

    def test_unrecognized_event_acknowledged_but_not_stored(self, client):
        response = _integration(client, "SomethingNewIntegrationEvent", {"externalId": "emp-1"})
        assert response.status_code == 200
        assert response.json()["profilesProcessed"] == 0
        assert _stored(client)["count"] == 0

    def test_merges_onto_batch_record(self, client):
        client.post(WEBHOOK_URL, json=_batch(1))
        body = {"externalId": "emp-0", "type": "sleep", "score": 0.8}
        _integration(client, "ScoreCreatedIntegrationEvent", body)

        stored = _stored(client)
        assert stored["count"] == 1
        data = stored["profiles"][0]
        assert data["deviceType"] == "iOS"
        assert data["scores"]["wellbeing"] == {"value": 0.5}
        assert data["scores"]["sleep"]["value"] == 0.8

    def test_handler_runs_off_the_event_loop(self):
        # Plain def so FastAPI runs the database work in its threadpool
        assert not inspect.iscoroutinefunction(webhook_endpoint.receive_webhook)


class TestWebhookValidation:

    @pytest.mark.parametrize(
        "body",
        [
            b"{not json",
            json.dumps({"event": "batch.scores", "data": {}}).encode(),
            json.dumps({"event": "batch.scores", "data": {"profiles": [{"profileId": "no-external-id"}]}}).encode(),
            json.dumps({"event": "score.updated", "data": {"scores": {}}}).encode(),
        ],
    )
    def test_rejected_payload_leaves_store_untouched(self, client, body):
        client.post(WEBHOOK_URL, json=_batch(2))
        response = client.post(WEBHOOK_URL, content=body, headers={"Content-Type": "application/json"})
        assert response.status_code == 400
        assert response.json()["success"] is False
        assert response.json()["error"] == "Invalid webhook payload"
        assert _stored(client)["count"] == 2

    def test_rejections_are_logged_as_activity(self, client):
        client.post(WEBHOOK_URL, content=b"[]", headers={"Content-Type": "application/json"})
        client.post(WEBHOOK_URL, json=_batch(1))
        activity = client.get(f"{WEBHOOK_URL}/activity").json()
        assert activity["count"] == 2
        assert {entry["success"] for entry in activity["activity"]} == {True, False}


class TestWebhookSignature:

    @pytest.fixture
    def secret(self, monkeypatch):
        monkeypatch.setattr(settings, "SAHHA_WEBHOOK_SECRET", "whsec_test")
        return "whsec_test"

    def test_valid_signature(self, client, secret):
        body = json.dumps(_batch(1)).encode()
        response = client.post(
            WEBHOOK_URL,
            content=body,
            headers={"Content-Type": "application/json", "X-Signature": generate_webhook_signature(body, secret)},
        )
        assert response.status_code == 200

    def test_invalid_signature_rejected(self, client, secret):
        response = client.post(WEBHOOK_URL, json=_batch(1), headers={"X-Signature": "deadbeef"})
        assert response.status_code == 401
        assert response.json()["error"] == "Invalid signature"
        assert _stored(client)["count"] == 0

    def test_missing_signature_rejected(self, client, secret):
        response = client.post(WEBHOOK_URL, json=_batch(1))
        assert response.status_code == 400

    def test_signature_over_different_body_rejected(self, client, secret):
        signature = generate_webhook_signature(json.dumps(_batch(1)).encode(), secret)
        response = client.post(WEBHOOK_URL, json=_batch(2), headers={"X-Signature": signature})
        assert response.status_code == 401

    def test_bypass_header_in_development(self, client, secret):
        response = client.post(WEBHOOK_URL, json=_batch(1), headers={"X-Bypass-Signature": "test"})
        assert response.status_code == 200

    def test_bypass_disabled(self, client, secret, monkeypatch):
        monkeypatch.setattr(settings, "ALLOW_SIGNATURE_BYPASS", False)
        response = client.post(WEBHOOK_URL, json=_batch(1), headers={"X-Bypass-Signature": "test"})
        assert response.status_code == 400


class TestWebhookQueries:

    def test_unknown_external_id(self, client):
        response = client.get(WEBHOOK_URL, params={"externalId": "nobody"})
        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Profile not found"}

    def test_empty_store(self, client):
        stored = _stored(client)
        assert stored["count"] == 0
        assert stored["profiles"] == []
        assert stored["lastUpdated"] is None

    def test_demo_mode(self, client):
        body = client.get(WEBHOOK_URL, params={"mode": "demo"}).json()
        assert body["demoMode"] is True
        assert body["count"] == 57
        assert body["profiles"][0]["profileId"] == "demo_profile_1"


class TestWebhookClear:

    def test_clear_requires_confirmation(self, client):
        client.post(WEBHOOK_URL, json=_batch(2))
        response = client.delete(WEBHOOK_URL)
        assert response.status_code == 400
        assert response.json()["error"] == "Must confirm deletion with ?confirm=true"
        assert _stored(client)["count"] == 2

    def test_clear(self, client):
        client.post(WEBHOOK_URL, json=_batch(2))
        response = client.delete(WEBHOOK_URL, params={"confirm": "true"})
        assert response.json() == {"success": True, "message": "Webhook data cleared"}
        assert _stored(client)["count"] == 0
