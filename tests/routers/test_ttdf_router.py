from tyjson.settings import Settings
from tests.conftest import ADMIN_COOKIES, API, EDITOR_COOKIES


def test_ttdf_requires_administrator(make_client):
    res = make_client().get(f"{API}/ttdf/options")
    assert res.status_code == 401
    assert res.json()["message"] == "Unauthorized"

    assert make_client(cookies=EDITOR_COOKIES).get(f"{API}/ttdf/options").status_code == 401

    forged = {"__typecho_uid": "1", "__typecho_authCode": "guess"}
    assert make_client(cookies=forged).get(f"{API}/ttdf/options").status_code == 401


def test_unknown_ttdf_route_is_404(make_client):
    res = make_client(cookies=ADMIN_COOKIES).get(f"{API}/ttdf/nothing")

    assert res.status_code == 404
    assert res.json()["message"] == "Endpoint not found"


def test_save_and_read_options(make_client):
    client = make_client(cookies=ADMIN_COOKIES)

    assert client.get(f"{API}/ttdf/options").json()["data"] == {}

    res = client.post(
        f"{API}/ttdf/options",
        json={
            "sideBarDesc": "Hi",
            "sidebar_blocks": ["about", "recent"],
            "ai_auto_generate": True,
            "action": "save",
            "_": "1700000000",
        },
    )
    assert res.status_code == 200
    body = res.json()
    assert body["data"] == {"message": "Settings saved"}
    assert body["meta"]["saved_count"] == 3

    assert client.get(f"{API}/ttdf/options").json()["data"] == {
        "TTDF_sideBarDesc": "Hi",
        "TTDF_sidebar_blocks": "about,recent",
        "TTDF_ai_auto_generate": "true",
    }


def test_save_options_from_form(make_client):
    client = make_client(cookies=ADMIN_COOKIES)

    res = client.post(
        f"{API}/ttdf/options",
        data={"sideBarDesc": "From form", "sidebar_blocks[]": ["tags", "recent"]},
    )

    assert res.status_code == 200
    data = client.get(f"{API}/ttdf/options").json()["data"]
    assert data["TTDF_sideBarDesc"] == "From form"
    assert data["TTDF_sidebar_blocks"] == "tags,recent"


def test_invalid_setting_name_is_rejected(make_client):
    res = make_client(cookies=ADMIN_COOKIES).post(
        f"{API}/ttdf/options", json={"bad-name!": "x"}
    )

    assert res.status_code == 400
    assert res.json()["message"] == "Invalid field name: bad-name!"


def test_one_invalid_name_saves_nothing(make_client):
    client = make_client(cookies=ADMIN_COOKIES)

    res = client.post(f"{API}/ttdf/options", json={"good_one": "1", "bad-name": "2"})
    assert res.status_code == 400
    assert client.get(f"{API}/ttdf/options").json()["data"] == {}

    res = client.post(
        f"{API}/ttdf/import", json={"settings": {"good_one": "1", "bad-name": "2"}}
    )
    assert res.status_code == 400
    assert res.json()["message"] == "Invalid field name: bad-name"
    assert client.get(f"{API}/ttdf/options").json()["data"] == {}


def test_form_data_merges_defaults(make_client):
    client = make_client(cookies=ADMIN_COOKIES)
    client.post(
        f"{API}/ttdf/options",
        json={"sideBarDesc": "Hi", "sidebar_blocks": ["about", "recent"]},
    )

    data = client.get(f"{API}/ttdf/form-data").json()["data"]

    assert data["sideBarDesc"] == "Hi"
    assert data["sideBarImg"] == "#"
    assert data["sidebar_blocks"] == ["about", "recent"]
    assert data["RESTAPI_Switch"] is True
    assert data["ai_auto_generate"] is False
    assert data["posts_per_page"] == 10.0
    assert data["content_width"] == 72.0
    assert data["color_intensity"] == "medium"
    assert "layout_help" not in data


def test_config_lists_tabs_and_fields(make_client):
    data = make_client(cookies=ADMIN_COOKIES).get(f"{API}/ttdf/config").json()["data"]

    assert set(data["tabs"]) == {"Rice-Options", "Color-Options", "Layout-Options"}
    assert data["fields"]["RESTAPI_Switch"]["type"] == "Switch"
    assert data["fields"]["color_intensity"]["options"]["bold"] == "Bolder"


def test_config_reports_unreadable_schema(make_client, tmp_path):
    broken = tmp_path / "setup.yaml"
    broken.write_text("tabs: [unclosed", encoding="utf-8")
    client = make_client(Settings(THEME_SETUP_FILE=str(broken)), cookies=ADMIN_COOKIES)

    res = client.get(f"{API}/ttdf/config")

    assert res.status_code == 500
    assert res.json()["message"].startswith("Failed to load theme config:")

    missing = make_client(
        Settings(THEME_SETUP_FILE=str(tmp_path / "nope.yaml")), cookies=ADMIN_COOKIES
    )
    assert missing.get(f"{API}/ttdf/form-data").status_code == 500


def test_theme_info(make_client):
    data = make_client(cookies=ADMIN_COOKIES).get(f"{API}/ttdf/theme-info").json()["data"]

    assert data == {
        "themeName": "TTDF",
        "themeVersion": "1.0.0",
        "ttdfVersion": "3.0.0",
        "apiUrl": "https://blog.example.com/ty-json/ttdf",
    }


def test_export_then_import_restores_settings(make_client):
    client = make_client(cookies=ADMIN_COOKIES)
    client.post(
        f"{API}/ttdf/options",
        json={"sideBarDesc": "Hi", "sidebar_blocks": ["about", "recent"]},
    )

    exported = client.get(f"{API}/ttdf/export").json()["data"]
    assert exported["theme"] == "TTDF"
    assert exported["version"] == "1.0.0"
    assert "T" in exported["exportTime"]
    assert exported["settings"] == {"sideBarDesc": "Hi", "sidebar_blocks": "about,recent"}

    client.post(f"{API}/ttdf/options", json={"sideBarDesc": "Changed"})

    res = client.post(f"{API}/ttdf/import", json=exported)
    assert res.status_code == 200
    assert res.json()["data"] == {"message": "Settings imported"}
    assert res.json()["meta"]["imported_count"] == 2

    again = client.get(f"{API}/ttdf/export").json()["data"]
    assert again["settings"] == exported["settings"]


def test_import_rejects_bad_payloads(make_client):
    client = make_client(cookies=ADMIN_COOKIES)

    res = client.post(
        f"{API}/ttdf/import", content=b"[]", headers={"Content-Type": "application/json"}
    )
    assert res.status_code == 400
    assert res.json()["message"] == "Invalid import data"

    res = client.post(f"{API}/ttdf/import", json={"version": "1.0.0"})
    assert res.status_code == 400
    assert res.json()["message"] == "Invalid import data format: missing settings"


def test_ttdf_stays_reachable_when_api_is_switched_off(make_client):
    client = make_client(Settings(REST_API_ENABLED=False), cookies=ADMIN_COOKIES)

    client.post(f"{API}/ttdf/options", json={"RESTAPI_Switch": True})

    # The stored switch now wins over the deployment flag
    assert client.get(f"{API}/posts").status_code == 200
    client.post(f"{API}/ttdf/options", json={"RESTAPI_Switch": False})
    assert client.get(f"{API}/posts").status_code == 404
    assert client.get(f"{API}/ttdf/form-data").json()["data"]["RESTAPI_Switch"] is False
