from tests.api.conftest import STORAGE


def test_list_videos_in_upload_order(client, onboarded):
    response = client.get("/api/videos", headers=onboarded)

    assert response.status_code == 200
    assert response.json() == [
        {"name": "north.mp4", "url": f"{STORAGE}/north.mp4"},
        {"name": "south.mp4", "url": f"{STORAGE}/south.mp4"},
    ]


def test_add_video(client, onboarded):
    response = client.post("/api/videos", json={"video_file_name": "east.mp4"}, headers=onboarded)

    assert response.status_code == 200
    assert response.json()["videos"] == ["north.mp4", "south.mp4", "east.mp4"]


def test_add_video_requires_name(client, onboarded):
    response = client.post("/api/videos", json={"video_file_name": " "}, headers=onboarded)

    assert response.status_code == 422


def test_delete_video(client, onboarded):
    response = client.delete("/api/videos/north.mp4", headers=onboarded)

    assert response.status_code == 200
    assert response.json()["videos"] == ["south.mp4"]


def test_delete_unknown_video_is_404(client, onboarded):
    assert client.delete("/api/videos/ghost.mp4", headers=onboarded).status_code == 404


def test_videos_require_identity(client):
    assert client.get("/api/videos").status_code == 401


def test_videos_require_completed_onboarding(client):
    response = client.get("/api/videos", headers={"X-User-Id": "newcomer"})

    assert response.status_code == 403
    assert response.json()["detail"] == "Onboarding required"
