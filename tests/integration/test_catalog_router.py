"""Integration tests for machine models, technicians and drivers."""


MACHINE = {"name": "FL936F", "line": "Pá carregadeira", "category": "Linha amarela"}


class TestMachineModels:
    async def test_technician_can_read_not_write(self, client, technician_headers):
        resp = await client.get("/machine-models", headers=technician_headers)
        assert resp.status_code == 200
        resp = await client.post("/machine-models", json=MACHINE, headers=technician_headers)
        assert resp.status_code == 403

    async def test_crud(self, client, supervisor_headers):
        resp = await client.post(
            "/machine-models",
            json=dict(MACHINE, gallery_images=["https://img.example.com/1.jpg"]),
            headers=supervisor_headers,
        )
        assert resp.status_code == 201
        model = resp.json()
        assert model["gallery_images"] == ["https://img.example.com/1.jpg"]

        await client.post(
            "/machine-models",
            json={"name": "PC200", "line": "Escavadeira", "category": "Linha amarela"},
            headers=supervisor_headers,
        )
        resp = await client.get("/machine-models?line=Escavadeira", headers=supervisor_headers)
        assert [m["name"] for m in resp.json()] == ["PC200"]

        resp = await client.patch(
            f"/machine-models/{model['id']}", json={"internal_code": "FL-936"},
            headers=supervisor_headers,
        )
        assert resp.json()["internal_code"] == "FL-936"
        assert resp.json()["name"] == "FL936F"

        resp = await client.delete(f"/machine-models/{model['id']}", headers=supervisor_headers)
        assert resp.status_code == 204
        resp = await client.get(f"/machine-models/{model['id']}", headers=supervisor_headers)
        assert resp.status_code == 404

    async def test_inspection_links_model(self, client, supervisor_headers, technician_headers):
        model = (await client.post(
            "/machine-models", json=MACHINE, headers=supervisor_headers
        )).json()
        resp = await client.post("/inspections", headers=technician_headers, json={
            "inspection_date": "2026-05-10",
            "process_type": "entrada_cbmaq",
            "model": "FL936F",
            "model_id": model["id"],
            "serial_number": "ABC123456",
            "horimeter": 500,
        })
        assert resp.status_code == 201
        assert resp.json()["model_id"] == model["id"]


class TestTechnicians:
    async def test_create_and_duplicate(self, client, supervisor_headers):
        resp = await client.post(
            "/technicians", json={"id": "T-01", "name": "Tiago"}, headers=supervisor_headers
        )
        assert resp.status_code == 201
        resp = await client.post(
            "/technicians", json={"id": "T-01", "name": "Outro"}, headers=supervisor_headers
        )
        assert resp.status_code == 409

    async def test_signature_uses_technician_name(
        self, client, supervisor_headers, technician_headers, signature
    ):
        await client.post(
            "/technicians", json={"id": "T-01", "name": "Tiago Souza"}, headers=supervisor_headers
        )
        inspection = (await client.post("/inspections", headers=technician_headers, json={
            "inspection_date": "2026-05-10",
            "process_type": "entrada_cbmaq",
            "model": "FL936F",
            "serial_number": "ABC123456",
            "horimeter": 500,
        })).json()
        resp = await client.put(
            f"/inspections/{inspection['id']}/signatures/entry",
            json={"signature": signature, "technician_id": "T-01"},
            headers=technician_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["entry_technician_id"] == "T-01"
        assert resp.json()["entry_technician_name"] == "Tiago Souza"


class TestDrivers:
    async def test_active_filter(self, client, supervisor_headers):
        await client.post("/drivers", json={"name": "Carlos"}, headers=supervisor_headers)
        resp = await client.post(
            "/drivers", json={"name": "Diego", "active": False}, headers=supervisor_headers
        )
        assert resp.status_code == 201

        resp = await client.get("/drivers", headers=supervisor_headers)
        assert len(resp.json()) == 2
        resp = await client.get("/drivers?active_only=true", headers=supervisor_headers)
        assert [d["name"] for d in resp.json()] == ["Carlos"]

    async def test_missing_driver(self, client, technician_headers):
        resp = await client.get("/drivers/missing", headers=technician_headers)
        assert resp.status_code == 404
