"""Endpoint tests for /edits, /requests and /health."""

import json

from app.models.exceptions import ModelInvocationError


class TestHealthEndpoint:
    """Test the liveness endpoint."""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestPageEdits:
    """Test content edits through POST /edits."""

    def test_success(self, client, mock_model, audit_log, sample_dictionary):
        mock_model.return_value = '```json\n[{"path": "/a", "new_text": "Hello there"}]\n```'

        response = client.post("/edits", json={
            "dictionary": sample_dictionary,
            "instruction": "Make the heading friendlier",
        })

        assert response.status_code == 200
        assert response.json() == {"edits": [{"id": "a", "path": "/a", "new_text": "Hello there"}]}
        mock_model.assert_awaited_once()

        records = audit_log.list()
        assert len(records) == 1
        assert records[0].context_type.value == "page"
        assert records[0].id == response.headers["X-Request-ID"]
        assert records[0].response == response.json()

    def test_capabilities_gate_output(self, client, mock_model, sample_dictionary, sample_image_slots):
        mock_model.return_value = json.dumps([
            {"id": "c", "new_url": "https://example.com/new"},
            {"id": "img1", "new_image_url": "https://example.com/new.jpg"},
            {"id": "a", "new_text": "Hi"},
        ])

        response = client.post("/edits", json={
            "dictionary": sample_dictionary,
            "instruction": "Update everything",
            "image_slots": sample_image_slots,
            "edit_capabilities": ["text", "image"],
        })

        assert response.json() == {"edits": [
            {"id": "img1", "path": "/hero/bg", "new_image_url": "https://example.com/new.jpg"},
            {"id": "a", "path": "/a", "new_text": "Hi"},
        ]}
        prompt = mock_model.call_args.args[0]
        assert "Image slots:" in prompt
        assert '["text","image"]' in prompt

    def test_missing_instruction(self, client, mock_model, audit_log, sample_dictionary):
        response = client.post("/edits", json={"dictionary": sample_dictionary, "instruction": "  "})

        assert response.status_code == 200
        assert response.json() == {"error": "Missing dictionary or instruction"}
        mock_model.assert_not_awaited()
        assert audit_log.list()[0].response == {"error": "Missing dictionary or instruction"}

    def test_non_json_body(self, client, mock_model):
        response = client.post("/edits", content=b"not json", headers={"content-type": "application/json"})
        assert response.json() == {"error": "Missing dictionary or instruction"}
        mock_model.assert_not_awaited()

    def test_deeply_nested_body_is_audited(self, client, mock_model, audit_log):
        body = b'{"dictionary": ' + b"[" * 100000 + b"]" * 100000 + b', "instruction": "Go"}'

        response = client.post("/edits", content=body, headers={"content-type": "application/json"})

        assert response.status_code == 200
        assert response.json() == {"error": "Missing dictionary or instruction"}
        mock_model.assert_not_awaited()
        assert len(audit_log.list()) == 1

    def test_non_json_constant_in_body(self, client, mock_model):
        body = b'{"dictionary": [], "instruction": "Go", "extra": NaN}'
        response = client.post("/edits", content=body, headers={"content-type": "application/json"})
        assert response.json() == {"error": "Missing dictionary or instruction"}
        mock_model.assert_not_awaited()

    def test_invalid_model_response(self, client, mock_model, sample_dictionary):
        mock_model.return_value = "I could not do that."

        response = client.post("/edits", json={"dictionary": sample_dictionary, "instruction": "Go"})

        assert response.status_code == 200
        assert response.json() == {"error": "Invalid LLM response"}

    def test_model_failure(self, client, mock_model, audit_log, sample_dictionary):
        mock_model.side_effect = ModelInvocationError("GOOGLE_API_KEY or GEMINI_API_KEY is required")

        response = client.post("/edits", json={"dictionary": sample_dictionary, "instruction": "Go"})

        assert response.json() == {"error": "GOOGLE_API_KEY or GEMINI_API_KEY is required"}
        assert len(audit_log.list()) == 1

    def test_unexpected_failure_is_reported(self, client, mock_model, sample_dictionary):
        mock_model.side_effect = RuntimeError("provider exploded")

        response = client.post("/edits", json={"dictionary": sample_dictionary, "instruction": "Go"})

        assert response.status_code == 200
        assert response.json() == {"error": "provider exploded"}


class TestKitEdits:
    """Test kit edits through POST /edits."""

    def test_success(self, client, mock_model, audit_log, sample_kit_settings):
        mock_model.return_value = json.dumps({
            "colors": [{"_id": "primary", "title": "Primary", "value": " #0d1f36 "}],
            "typography": [{"_id": "primary", "typography_font_family": "Roboto"}],
            "malicious": {"x": 1},
        })

        response = client.post("/edits", json={
            "kit_settings": sample_kit_settings,
            "instruction": "Darker primary, Roboto headings",
        })

        assert response.json() == {"kit_patch": {
            "colors": [{"_id": "primary", "title": "Primary", "value": "#0d1f36"}],
            "typography": [{"_id": "primary", "typography_font_family": "Roboto"}],
        }}
        assert audit_log.list()[0].context_type.value == "kit"

    def test_array_response_is_rejected(self, client, mock_model, sample_kit_settings):
        mock_model.return_value = "[]"

        response = client.post("/edits", json={"kit_settings": sample_kit_settings, "instruction": "Go"})

        assert response.json() == {"error": "Invalid LLM response for kit"}

    def test_non_json_constants_from_model_are_rejected(self, client, mock_model, audit_log, sample_kit_settings):
        mock_model.return_value = '{"settings": {"x": NaN}, "colors": [{"_id": "p", "value": Infinity}]}'

        response = client.post("/edits", json={"kit_settings": sample_kit_settings, "instruction": "Go"})

        assert response.json() == {"error": "Invalid LLM response for kit"}
        assert audit_log.list()[0].response == {"error": "Invalid LLM response for kit"}

    def test_missing_kit_settings(self, client, mock_model):
        response = client.post("/edits", json={"context": "kit", "instruction": "Go"})
        assert response.json() == {"error": "Missing kit_settings or instruction"}


class TestRequestsEndpoint:
    """Test GET /requests."""

    def test_lists_newest_first(self, client, mock_model, sample_dictionary, sample_kit_settings):
        mock_model.return_value = "[]"
        client.post("/edits", json={"dictionary": sample_dictionary, "instruction": "First"})
        mock_model.return_value = "{}"
        client.post("/edits", json={"kit_settings": sample_kit_settings, "instruction": "Second"})

        requests = client.get("/requests").json()["requests"]

        assert [r["body"]["instruction"] for r in requests] == ["Second", "First"]
        assert [r["contextType"] for r in requests] == ["kit", "page"]
        assert requests[0]["response"] == {"kit_patch": {}}
        assert requests[1]["response"] == {"edits": []}


class TestServiceKeyAuth:
    """Test the shared-secret guard."""

    def test_missing_key_is_rejected(self, client, mock_model, audit_log, service_secret, sample_dictionary):
        response = client.post("/edits", json={"dictionary": sample_dictionary, "instruction": "Go"})

        assert response.status_code == 200
        assert response.json() == {"error": "Unauthorized"}
        mock_model.assert_not_awaited()
        assert len(audit_log.list()) == 0

    def test_wrong_key_is_rejected_for_requests(self, client, service_secret):
        response = client.get("/requests", headers={"X-Service-Key": "wrong"})
        assert response.json() == {"error": "Unauthorized"}

    def test_valid_key(self, client, mock_model, service_secret, sample_dictionary):
        response = client.post(
            "/edits",
            json={"dictionary": sample_dictionary, "instruction": "Go"},
            headers={"X-Service-Key": service_secret},
        )
        assert response.json() == {"edits": []}

    def test_health_is_open(self, client, service_secret):
        assert client.get("/health").json() == {"status": "ok"}
