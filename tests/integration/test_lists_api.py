"""List endpoints over a real SQLite database."""

from __future__ import annotations


def _create(client, seed, **body):
    payload = {"name": "Coffee", "entries": [{"place": seed.places["cafe"], "note": "espresso"}]}
    payload.update(body)
    resp = client.post("/api/lists", json=payload, headers=seed.headers("alice"))
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestListCrud:
    def test_create_returns_201_with_bare_place_ids(self, client, seed):
        created = _create(client, seed)
        assert created["name"] == "Coffee"
        assert created["entries"] == [{"place": seed.places["cafe"], "note": "espresso"}]

    def test_create_requires_authentication(self, client, seed):
        resp = client.post("/api/lists", json={"name": "x"})
        assert resp.status_code == 401

    def test_index_returns_every_list(self, client, seed):
        _create(client, seed, name="One")
        _create(client, seed, name="Two")
        resp = client.get("/api/lists")
        assert resp.status_code == 200
        assert [lst["name"] for lst in resp.json()] == ["One", "Two"]

    def test_show_populates_places(self, client, seed):
        created = _create(client, seed)
        resp = client.get(f"/api/lists/{created['id']}")
        assert resp.status_code == 200
        place = resp.json()["entries"][0]["place"]
        assert place["id"] == seed.places["cafe"]
        assert place["name"] == "Cafe Roma"
        assert place["locationDetails"] == {"city": "Bologna"}
        assert place["ratings"] == [5, 4]

    def test_show_missing_list_is_404(self, client, seed):
        assert client.get("/api/lists/999").status_code == 404

    def test_destroy(self, client, seed, count_rows):
        created = _create(client, seed)
        resp = client.delete(f"/api/lists/{created['id']}", headers=seed.headers("alice"))
        assert resp.status_code == 204
        assert client.get(f"/api/lists/{created['id']}").status_code == 404
        assert count_rows("list_entries") == 0

    def test_destroy_missing_list_is_404(self, client, seed):
        resp = client.delete("/api/lists/999", headers=seed.headers("alice"))
        assert resp.status_code == 404


class TestListUpdate:
    def test_populated_entries_are_stored_by_id(self, client, seed):
        created = _create(client, seed)
        shown = client.get(f"/api/lists/{created['id']}").json()
        lake = {"id": seed.places["lake"], "name": "Lake Pier", "ratings": [1]}
        body = {"entries": shown["entries"] + [{"place": lake}]}

        resp = client.put(f"/api/lists/{created['id']}", json=body, headers=seed.headers("alice"))
        assert resp.status_code == 200
        assert [e["place"]["id"] for e in resp.json()["entries"]] == [
            seed.places["cafe"],
            seed.places["lake"],
        ]

        stored = client.get("/api/lists").json()[0]
        assert [e["place"] for e in stored["entries"]] == [seed.places["cafe"], seed.places["lake"]]

    def test_entries_are_replaced_wholesale(self, client, seed):
        created = _create(client, seed)
        body = {"entries": [{"place": seed.places["lake"]}]}
        resp = client.put(f"/api/lists/{created['id']}", json=body, headers=seed.headers("alice"))
        assert [e["place"]["id"] for e in resp.json()["entries"]] == [seed.places["lake"]]

    def test_name_kept_when_absent(self, client, seed):
        created = _create(client, seed)
        resp = client.put(f"/api/lists/{created['id']}", json={"entries": []}, headers=seed.headers("alice"))
        assert resp.json()["name"] == "Coffee"
        assert resp.json()["entries"] == []

    def test_empty_name_is_applied(self, client, seed):
        created = _create(client, seed)
        resp = client.put(f"/api/lists/{created['id']}", json={"name": ""}, headers=seed.headers("alice"))
        assert resp.json()["name"] == ""
        assert len(resp.json()["entries"]) == 1

    def test_client_id_is_ignored(self, client, seed):
        created = _create(client, seed)
        resp = client.put(
            f"/api/lists/{created['id']}",
            json={"_id": 555, "id": 555, "name": "Renamed"},
            headers=seed.headers("alice"),
        )
        assert resp.json()["id"] == created["id"]

    def test_missing_list_is_404(self, client, seed):
        resp = client.put("/api/lists/999", json={"name": "x"}, headers=seed.headers("alice"))
        assert resp.status_code == 404
