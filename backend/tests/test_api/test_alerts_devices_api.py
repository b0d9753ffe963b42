"""
API tests for alerts, devices and templates.
"""

import pytest
from fastapi import status


def _running_experiment(client):
    experiment = client.post("/api/experiments", json={"name": "bench"}).json()
    client.post(f"/api/experiments/{experiment['id']}/start")
    return experiment["id"]


def _device(client, name="PSU", device_type="power_supply", device_status="online"):
    response = client.post(
        "/api/devices",
        json={"name": name, "type": device_type, "status": device_status}
    )
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()


class TestAlerts:

    def test_list_filters(self, client):
        experiment_id = _running_experiment(client)
        client.post(f"/api/experiments/{experiment_id}/data", json={"temperature": 80.0})
        client.post(f"/api/experiments/{experiment_id}/data", json={"temperature": 90.0})

        everything = client.get("/api/alerts").json()
        assert len(everything) == 2

        critical = client.get("/api/alerts", params={"type": "critical"}).json()
        assert len(critical) == 1
        assert critical[0]["details"] == {"temperature": 90.0, "threshold": 85.0}

        open_alerts = client.get("/api/alerts", params={"resolved": False}).json()
        assert len(open_alerts) == 2

    def test_acknowledge(self, client):
        experiment_id = _running_experiment(client)
        client.post(f"/api/experiments/{experiment_id}/data", json={"voltage": 1500.0})
        alert_id = client.get("/api/alerts").json()[0]["id"]

        response = client.post(f"/api/alerts/{alert_id}/acknowledge", json={"actor": "operator"})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["acknowledged_by"] == "operator"
        assert data["acknowledged_at"] is not None
        assert data["resolved_at"] is None

    def test_resolve_also_acknowledges(self, client):
        experiment_id = _running_experiment(client)
        client.post(f"/api/experiments/{experiment_id}/data", json={"voltage": 1500.0})
        alert_id = client.get("/api/alerts").json()[0]["id"]

        data = client.post(f"/api/alerts/{alert_id}/resolve").json()

        assert data["resolved_at"] is not None
        assert data["acknowledged_at"] is not None
        resolved = client.get("/api/alerts", params={"resolved": True}).json()
        assert [a["id"] for a in resolved] == [alert_id]

    def test_missing_alert(self, client):
        response = client.post("/api/alerts/999/acknowledge")
        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestDevices:

    def test_create_and_get(self, client):
        device = _device(client, name="Load", device_type="electronic_load", device_status="offline")

        response = client.get(f"/api/devices/{device['id']}")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["type"] == "electronic_load"
        assert response.json()["status"] == "offline"

    def test_invalid_type(self, client):
        response = client.post("/api/devices", json={"name": "X", "type": "toaster"})
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_update_status(self, client):
        device = _device(client, device_status="offline")

        response = client.put(f"/api/devices/{device['id']}", json={"status": "online"})
        assert response.json()["status"] == "online"

    def test_null_status_keeps_stored_value(self, client):
        device = _device(client, name="PSU", device_status="online")

        response = client.put(
            f"/api/devices/{device['id']}",
            json={"status": None, "name": None, "last_error": None}
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "online"
        assert response.json()["name"] == "PSU"

    def test_update_missing(self, client):
        response = client.put("/api/devices/999", json={"status": "online"})
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_status_summary(self, client):
        _device(client, name="A")
        _device(client, name="B", device_status="error")
        _device(client, name="C", device_status="error")

        data = client.get("/api/devices/status/summary").json()
        assert data == {"total": 3, "online": 1, "by_status": {"online": 1, "error": 2}}

    def test_offline_device_alert_on_start(self, client):
        device = _device(client, name="Simulator", device_type="solar_simulator", device_status="maintenance")
        experiment_id = _running_experiment(client)

        alerts = client.get("/api/alerts", params={"experiment_id": experiment_id}).json()
        assert len(alerts) == 1
        assert alerts[0]["device_id"] == device["id"]
        assert alerts[0]["category"] == "device"
        assert alerts[0]["type"] == "warning"


class TestTemplates:

    def test_public_listing_order(self, client):
        client.post("/api/templates", json={"name": "STC sweep", "category": "iv"})
        client.post("/api/templates", json={"name": "Damp heat", "category": "environmental"})
        client.post("/api/templates", json={"name": "Draft", "category": "iv", "is_public": False})

        names = [t["name"] for t in client.get("/api/templates").json()]
        assert names == ["Damp heat", "STC sweep"]

    def test_get(self, client):
        created = client.post(
            "/api/templates",
            json={"name": "NOCT", "parameters": {"irradiance": 800}}
        ).json()

        response = client.get(f"/api/templates/{created['id']}")
        assert response.json()["parameters"] == {"irradiance": 800}

    def test_missing(self, client):
        assert client.get("/api/templates/999").status_code == status.HTTP_404_NOT_FOUND


class TestHealth:

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["endpoints"]["experiments"] == "/api/experiments"
