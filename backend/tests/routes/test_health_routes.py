def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_prometheus_exposes_booking_counters(client):
    response = client.get("/metrics/prometheus")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert "trim_booking_conflicts_total" in response.text
    assert "trim_hold_expiry_total" in response.text
