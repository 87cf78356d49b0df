def test_ready(client):
    response = client.get("/ready")
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ready"
    assert payload["live_subscriptions"] == 0
    assert payload["trace_id"]
