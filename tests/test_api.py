from __future__ import annotations

from fastapi.testclient import TestClient

from api import app

client = TestClient(app)


def test_analyze_endpoint_returns_model(sample_root):
	resp = client.post("/analyze", json={"root_path": str(sample_root)})
	assert resp.status_code == 200
	body = resp.json()
	assert body["units"][0] == "electron/main.js"
	assert [c["channel"] for c in body["model"]["channels"]] == ["market-data", "custom-channel"]
	assert body["model"]["channels"][0]["direction"] == "A→B"


def test_analyze_endpoint_accepts_config(sample_root):
	resp = client.post(
		"/analyze",
		json={
			"root_path": str(sample_root),
			"config": {"root": "ignored", "targets": ["polygon"]},
			"workers": 2,
		},
	)
	assert resp.status_code == 200
	assert resp.json()["units"] == [
		"polygon/__init__.py",
		"polygon/websocket.py",
		"polygon/validators/quotes.py",
	]


def test_analyze_endpoint_rejects_missing_root(tmp_path):
	resp = client.post("/analyze", json={"root_path": str(tmp_path / "nope")})
	assert resp.status_code == 400
	assert "nope" in resp.json()["detail"]
