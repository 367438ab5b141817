"""Tests for the HTTP surface, with collaborators swapped for doubles."""

import pytest
from fastapi.testclient import TestClient

from errors import AuthenticationError, SynthesisError
from scriptgen import ScriptGenerator
from server import app, get_script_generator, get_synthesizer
from synthesizer import SpeechSynthesizer
from tests.conftest import (
    FakeSpeechClient,
    ScriptedTextGenerator,
    StaticCredentials,
    chapter_reply,
    outline_reply,
)


@pytest.fixture
def client():
    yield TestClient(app)
    app.dependency_overrides.clear()


def _use_generator(llm):
    app.dependency_overrides[get_script_generator] = lambda: ScriptGenerator(llm)


def _use_synthesizer(speech=None, creds=None):
    synth = SpeechSynthesizer(speech or FakeSpeechClient(), creds or StaticCredentials())
    app.dependency_overrides[get_synthesizer] = lambda: synth


class TestHealth:
    def test_healthz(self, client):
        resp = client.get("/healthz")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ok"
        assert body["uptime"] >= 0
        assert "timestamp" in body


class TestGenerate:
    def test_returns_plain_text_script(self, client):
        _use_generator(ScriptedTextGenerator([outline_reply("Deep Sea", 2), chapter_reply(1), chapter_reply(2)]))
        resp = client.post("/generate", json={"topic": "Oceans", "chapters": 2, "length": 4})
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/plain")
        assert resp.text.startswith("Deep Sea")
        assert "Chapter 2: Part 2" in resp.text

    def test_missing_topic(self, client):
        resp = client.post("/generate", json={"tone": "Dramatic"})
        assert resp.status_code == 400
        assert "topic" in resp.text.lower()

    def test_blank_topic(self, client):
        resp = client.post("/generate", json={"topic": "   "})
        assert resp.status_code == 400
        assert resp.text == "Topic is required."

    def test_craft_mode_requires_draft(self, client):
        resp = client.post("/generate", json={"topic": "Oceans", "mode": "craft"})
        assert resp.status_code == 400
        assert resp.text == "Draft is required in craft mode."

    def test_infinite_length_rejected(self, client):
        resp = client.post(
            "/generate",
            content='{"topic": "Oceans", "length": Infinity}',
            headers={"content-type": "application/json"},
        )
        assert resp.status_code == 400
        assert resp.text.startswith("length:")

    def test_generation_failure(self, client):
        _use_generator(ScriptedTextGenerator([{"title": "", "chapters": []}]))
        resp = client.post("/generate", json={"topic": "Oceans"})
        assert resp.status_code == 500
        assert resp.text == "Failed to generate script."


class TestVoice:
    def test_segments_payload(self, client):
        _use_synthesizer()
        resp = client.post("/voice", json={
            "text": "First paragraph.\n\nSecond paragraph.",
            "audioEncoding": "MP3",
            "voiceName": "en-US-Chirp-HD-O",
            "modelName": "chirp",
        })
        assert resp.status_code == 200
        body = resp.json()
        assert body["audioEncoding"] == "MP3"
        assert body["exceededLimit"] is False
        assert body["voice"] == {"languageCode": "en-US", "name": "en-US-Chirp-HD-O", "modelName": "chirp"}
        assert [s["index"] for s in body["segments"]] == [0]
        assert body["segments"][0]["text"] == "First paragraph.\n\nSecond paragraph."
        assert body["segments"][0]["audioContent"]

    def test_long_text_flags_limit(self, client):
        _use_synthesizer()
        text = "\n\n".join(["word " * 200] * 7)  # ~7000 bytes
        resp = client.post("/voice", json={"text": text})
        body = resp.json()
        assert resp.status_code == 200
        assert body["exceededLimit"] is True
        assert len(body["segments"]) >= 2

    def test_missing_text(self, client):
        resp = client.post("/voice", json={"voiceName": "en-US-Chirp-HD-F"})
        assert resp.status_code == 400
        assert "error" in resp.json()

    def test_blank_text(self, client):
        resp = client.post("/voice", json={"text": "   "})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Text is required."}

    def test_authentication_failure(self, client):
        _use_synthesizer(creds=StaticCredentials(error=AuthenticationError("refresh failed")))
        resp = client.post("/voice", json={"text": "Hello."})
        assert resp.status_code == 401
        assert "GOOGLE_APPLICATION_CREDENTIALS" in resp.json()["error"]

    def test_invalid_grant_maps_to_401(self, client):
        class _GrantFailure(FakeSpeechClient):
            async def synthesize_chunk(self, text, config, auth_headers):
                raise SynthesisError(400, "invalid_grant: account not found")

        _use_synthesizer(speech=_GrantFailure())
        resp = client.post("/voice", json={"text": "Hello."})
        assert resp.status_code == 401

    def test_synthesis_failure_is_bad_gateway(self, client):
        _use_synthesizer(speech=FakeSpeechClient(fail_on_call=1, status_code=503))
        resp = client.post("/voice", json={"text": "Hello."})
        assert resp.status_code == 502
        assert "Voice synthesis failed" in resp.json()["error"]
