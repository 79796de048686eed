"""HTTP tests for the editor and template store routes."""
import pytest

API = "/api/v1"


class TestHealth:

    def test_root_and_health(self, client):
        assert client.get("/").json()["status"] == "ok"
        health = client.get("/health").json()
        assert health["editor_ready"] is True
        assert health["frames"] == 0


class TestEditorRoutes:

    def test_frame_lifecycle(self, client):
        created = client.post(f"{API}/frames")
        assert created.status_code == 201
        frame = created.json()
        assert (frame["x"], frame["y"], frame["w"], frame["h"]) == (400, 260, 400, 300)
        assert frame["name"] == "Frame 1" and frame["fit"] == "cover"

        updated = client.patch(f"{API}/frames/{frame['id']}", json={"name": "Hero", "w": 437, "fit": "contain"})
        assert updated.status_code == 200
        assert updated.json()["name"] == "Hero"
        assert updated.json()["w"] == pytest.approx(440)

        assert [f["id"] for f in client.get(f"{API}/frames").json()] == [frame["id"]]
        assert client.delete(f"{API}/frames/{frame['id']}").status_code == 204
        assert client.get(f"{API}/frames").json() == []

    def test_empty_name_is_422_and_name_kept(self, client):
        frame = client.post(f"{API}/frames").json()
        res = client.patch(f"{API}/frames/{frame['id']}", json={"name": ""})
        assert res.status_code == 422
        assert client.get(f"{API}/frames").json()[0]["name"] == "Frame 1"

    def test_rotated_frame_clip_angle(self, client):
        frame = client.post(f"{API}/frames").json()
        client.post(f"{API}/frames/{frame['id']}/images", json={"source": "photo-200x100.png"})
        client.post(f"{API}/frames/{frame['id']}/transform", json={"angle": 45})
        image = client.get(f"{API}/frames/{frame['id']}/images").json()[0]
        assert image["clip"]["angle"] == 45

    def test_unknown_frame_is_404(self, client):
        assert client.patch(f"{API}/frames/ghost", json={"name": "x"}).status_code == 404
        assert client.delete(f"{API}/frames/ghost").status_code == 404
        assert client.post(f"{API}/frames/ghost/images", json={"source": "photo-200x100.png"}).status_code == 404

    def test_bind_image_waits_for_fit(self, client):
        frame = client.post(f"{API}/frames").json()
        res = client.post(f"{API}/frames/{frame['id']}/images", json={"source": "photo-200x100.png"})
        assert res.status_code == 201
        image = res.json()
        assert image["fitted"] is True
        assert image["scale_x"] == pytest.approx(3.0)
        assert image["clip"] == {"x": 400, "y": 260, "width": 400, "height": 300, "rx": 12, "ry": 12, "angle": 0}

        listed = client.get(f"{API}/frames/{frame['id']}/images").json()
        assert [i["id"] for i in listed] == [image["id"]]

    def test_transform_then_complete(self, client):
        frame = client.post(f"{API}/frames").json()
        moving = client.post(f"{API}/frames/{frame['id']}/transform", json={"x": 107, "y": 93})
        assert (moving.json()["x"], moving.json()["y"]) == (107, 93)
        done = client.post(f"{API}/frames/{frame['id']}/transform", json={"final": True})
        assert (done.json()["x"], done.json()["y"]) == (100, 100)

    def test_background_set_and_clear(self, client):
        res = client.put(f"{API}/background", json={"source_url": "bg-1600x800.jpg"})
        assert res.json() == {"background": "bg-1600x800.jpg", "installed": True}
        assert client.get(f"{API}/template").json()["background"] == "bg-1600x800.jpg"

        failed = client.put(f"{API}/background", json={"source_url": "nowhere.jpg"})
        assert failed.json()["installed"] is False

        assert client.delete(f"{API}/background").status_code == 204
        assert client.get(f"{API}/template").json()["background"] is None

    def test_template_load_and_serialize(self, client, sample_document):
        res = client.post(f"{API}/template", json=sample_document)
        assert res.status_code == 200
        assert res.json() == client.get(f"{API}/template").json()
        assert res.json()["canvas"] == {"width": 1000, "height": 600}
        assert [f["id"] for f in res.json()["frames"]] == ["f-1", "f-2", "f-3"]

    def test_unsupported_template_is_422_and_state_kept(self, client):
        client.post(f"{API}/frames")
        before = client.get(f"{API}/template").json()
        res = client.post(f"{API}/template", json={"shapes": []})
        assert res.status_code == 422
        assert client.get(f"{API}/template").json() == before

    def test_selection_and_zoom(self, client):
        frame = client.post(f"{API}/frames").json()
        assert client.post(f"{API}/selection", json={"object_id": frame["id"]}).json() == {"active_object_id": frame["id"]}
        assert client.post(f"{API}/selection", json={"object_id": "ghost"}).status_code == 404
        assert client.post(f"{API}/view/zoom", json={"factor": 2}).json()["zoom"] == pytest.approx(2)
        assert client.post(f"{API}/view/reset").json()["zoom"] == 1.0


class TestTemplateStore:

    def test_crud(self, client, sample_document):
        created = client.post(f"{API}/templates", json={"name": "Two up", "document": sample_document})
        assert created.status_code == 201
        stored = created.json()["data"]
        assert (stored["canvas_width"], stored["canvas_height"]) == (1000, 600)
        assert stored["elements"]["frames"][1]["fit"] == "contain"

        ids = [t["id"] for t in client.get(f"{API}/templates").json()["data"]]
        assert stored["id"] in ids

        shown = client.get(f"{API}/templates/{stored['id']}").json()["data"]
        assert shown == stored

        renamed = client.patch(f"{API}/templates/{stored['id']}", json={"name": "Renamed"}).json()["data"]
        assert renamed["name"] == "Renamed"
        assert renamed["elements"] == stored["elements"]

        assert client.delete(f"{API}/templates/{stored['id']}").status_code == 204
        assert client.get(f"{API}/templates/{stored['id']}").status_code == 404

    def test_store_legacy_document_is_normalized(self, client):
        legacy = {"canvas_width": 640, "canvas_height": 480,
                  "elements": {"frames": [{"id": "a", "x": 0, "y": 0, "w": 20, "h": 20}]}}
        stored = client.post(f"{API}/templates", json={"name": "Legacy", "document": legacy}).json()["data"]
        assert stored["elements"]["version"] == 1
        assert stored["elements"]["frames"][0]["name"] == "Frame 1"

    def test_store_rejects_unsupported(self, client):
        res = client.post(f"{API}/templates", json={"name": "Bad", "document": {"nope": True}})
        assert res.status_code == 422

    def test_save_from_editor_and_load_back(self, client):
        frame = client.post(f"{API}/frames").json()
        client.patch(f"{API}/frames/{frame['id']}", json={"name": "Keep me"})
        saved = client.post(f"{API}/templates/from-editor", json={"name": "Snapshot"}).json()["data"]

        client.delete(f"{API}/frames/{frame['id']}")
        assert client.get(f"{API}/frames").json() == []

        loaded = client.post(f"{API}/templates/{saved['id']}/load")
        assert loaded.status_code == 200
        frames = client.get(f"{API}/frames").json()
        assert [(f["id"], f["name"]) for f in frames] == [(frame["id"], "Keep me")]
