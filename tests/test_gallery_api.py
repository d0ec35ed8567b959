"""Gallery assets: ordering, visibility and the dual-write paths."""

import asyncio

API = "/api/v1/gallery"


def _upload(client, admin, section="gallery", **form):
    response = client.post(
        API,
        data={"section": section, **form},
        files={"file": ("photo.png", b"\x89PNG fake", "image/png")},
        headers=admin,
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_create_appends_to_section(client, admin, store):
    first = _upload(client, admin, title="Summit")
    second = _upload(client, admin, title="Camp")
    other = _upload(client, admin, section="offer_banner")

    assert first["sort_order"] == 0
    assert second["sort_order"] == 1
    assert other["sort_order"] == 0
    assert first["public_id"] in store.objects


def test_public_list_is_ordered_and_active_only(client, admin):
    late = _upload(client, admin, sort_order="5")
    early = _upload(client, admin, sort_order="1")
    hidden = _upload(client, admin, sort_order="0", is_active="false")

    images = client.get(API, params={"section": "gallery"}).json()["images"]
    assert [i["id"] for i in images] == [early["id"], late["id"]]

    everything = client.get(f"{API}/all", params={"section": "gallery"}, headers=admin).json()["images"]
    assert [i["id"] for i in everything] == [hidden["id"], early["id"], late["id"]]


def test_unknown_section_is_rejected(client, admin, store):
    response = client.post(
        API,
        data={"section": "memes"},
        files={"file": ("photo.png", b"\x89PNG", "image/png")},
        headers=admin,
    )
    assert response.status_code == 400
    assert store.objects == {}
    assert client.get(API, params={"section": "memes"}).status_code == 400


def test_patch_updates_metadata_only(client, admin):
    asset = _upload(client, admin, title="Old")
    response = client.patch(f"{API}/{asset['id']}", json={"title": "New", "is_active": False}, headers=admin)
    body = response.json()
    assert body["title"] == "New"
    assert body["is_active"] is False
    assert body["image_url"] == asset["image_url"]


def test_replace_image_deletes_old_object(client, admin, store):
    asset = _upload(client, admin)
    response = client.put(
        f"{API}/{asset['id']}/image",
        files={"file": ("new.png", b"\x89PNG new", "image/png")},
        headers=admin,
    )
    body = response.json()
    assert body["public_id"] != asset["public_id"]
    assert store.deleted == [asset["public_id"]]
    assert set(store.objects) == {body["public_id"]}


def test_replace_keeps_row_when_old_delete_fails(client, admin, store):
    asset = _upload(client, admin)
    store.fail_delete = True
    response = client.put(
        f"{API}/{asset['id']}/image",
        files={"file": ("new.png", b"\x89PNG new", "image/png")},
        headers=admin,
    )
    assert response.status_code == 200
    assert response.json()["public_id"] in store.objects


def test_delete_removes_object_and_row(client, admin, store):
    asset = _upload(client, admin)
    response = client.delete(f"{API}/{asset['id']}", headers=admin)
    assert response.json() == {"deleted": asset["id"]}
    assert store.objects == {}
    assert client.get(API).json()["images"] == []
    assert client.delete(f"{API}/{asset['id']}", headers=admin).status_code == 404


def test_double_submission_creates_two_assets(client, admin, store):
    first = _upload(client, admin, title="Summit")
    second = _upload(client, admin, title="Summit")
    assert first["id"] != second["id"]
    assert len(client.get(API).json()["images"]) == 2
    assert len(store.objects) == 2


def test_gallery_uploads_run_off_the_event_loop(client, admin, store):
    seen = []
    original = store.upload

    def upload(upload, kind):
        try:
            asyncio.get_running_loop()
            seen.append("loop")
        except RuntimeError:
            seen.append("thread")
        return original(upload, kind)

    store.upload = upload
    asset = _upload(client, admin)
    client.put(
        f"{API}/{asset['id']}/image",
        files={"file": ("new.png", b"\x89PNG new", "image/png")},
        headers=admin,
    )
    assert seen == ["thread", "thread"]
