import io

from tests.factories import EOS_CSV, GROUP_ONLY_CSV, TAB_TXT, build_gdtf


def _upload(client, url, content, filename, **query):
    if isinstance(content, str):
        content = content.encode()
    return client.post(
        url,
        data={"file": (io.BytesIO(content), filename)},
        content_type="multipart/form-data",
        query_string=query,
    )


def test_import_tab_file_by_extension(client):
    """Test that the format is picked from the upload's file name."""
    response = _upload(client, "/api/v1/import", TAB_TXT, "patch.txt", mode="replace")

    assert response.status_code == 200
    data = response.get_json()
    assert data["success"] is True
    assert data["format"] == "txt"
    assert data["inserted"] == 1
    assert data["custom_fields"] == ["MyCustomCol"]


def test_import_raw_body_with_format_arg(client):
    """Test importing a raw request body with an explicit format."""
    response = client.post("/api/v1/import?format=csv&mode=merge", data=GROUP_ONLY_CSV)

    assert response.status_code == 200
    assert response.get_json()["targets"] == 1

    # Targets are listed afterwards
    response = client.get("/api/v1/targets?type=Group")
    targets = response.get_json()["targets"]
    assert [(t["target_id"], t["label"]) for t in targets] == [("7", "Specials")]


def test_import_field_allow_list(client):
    """Test that only the selected columns (plus CHANNEL) are imported."""
    response = _upload(client, "/api/v1/import", EOS_CSV, "show.csv",
                       mode="replace", fields="GEL")
    assert response.status_code == 200

    instruments = client.get("/api/v1/instruments").get_json()["instruments"]
    first = instruments[0]
    assert first["channel"] == "1"
    assert first["color"] == "R02"
    assert first["address"] == ""
    assert first["type"] == ""


def test_import_show_info_on_replace(client):
    """Test that show identity fields are written on a replace import."""
    client.post(
        "/api/v1/import?format=txt&mode=replace",
        data={"file": (io.BytesIO(TAB_TXT.encode()), "patch.txt"),
              "name": "Carmen", "venue": "Opera House"},
        content_type="multipart/form-data",
    )

    show = client.get("/api/v1/show").get_json()
    assert show["name"] == "Carmen"
    assert show["venue"] == "Opera House"
    assert show["custom_field_definitions"] == ["MyCustomCol"]


def test_import_failures_are_reported(client):
    """Test the failure report for bad content, formats and modes."""
    response = _upload(client, "/api/v1/import", "no header here", "patch.txt")
    assert response.status_code == 400
    assert response.get_json()["success"] is False

    response = _upload(client, "/api/v1/import", TAB_TXT, "patch.txt", mode="append")
    assert response.status_code == 400

    response = _upload(client, "/api/v1/import", TAB_TXT, "patch.doc")
    assert response.status_code == 400
    assert response.get_json()["success"] is False


def test_import_rejects_empty_upload_and_gdtf(client):
    """Test the guards in front of the import pipeline."""
    response = client.post("/api/v1/import?format=txt", data=b"")
    assert response.status_code == 400

    response = _upload(client, "/api/v1/import", build_gdtf(), "spot.gdtf")
    assert response.status_code == 400
    assert "library" in response.get_json()["error"]


def test_preview_lists_columns(client):
    """Test the column preview used before choosing fields."""
    response = _upload(client, "/api/v1/import/preview", TAB_TXT, "patch.txt")

    assert response.status_code == 200
    data = response.get_json()
    assert data["format"] == "txt"
    names = [f["original_name"] for f in data["fields"]]
    assert names == ["Channel", "Dimmer", "MyCustomCol"]


def test_library_import_and_browse(client):
    """Test GDTF upload followed by listing, detail, thumbnail and delete."""
    response = _upload(client, "/api/v1/library/import", build_gdtf(), "spot.gdtf")
    assert response.status_code == 200
    library_id = response.get_json()["library_id"]

    # Search by manufacturer
    listing = client.get("/api/v1/library?q=acme").get_json()
    assert listing["total"] == 1
    assert "wheels" not in listing["fixtures"][0]

    detail = client.get(f"/api/v1/library/{library_id}").get_json()
    assert detail["fixture_type_id"] == "ABCD-1234"
    assert detail["has_thumbnail"] is True
    assert [w["name"] for w in detail["wheels"]] == ["Gobo1"]

    thumb = client.get(f"/api/v1/library/{library_id}/thumbnail")
    assert thumb.status_code == 200
    assert thumb.mimetype == "image/png"

    assert client.delete(f"/api/v1/library/{library_id}").status_code == 200
    assert client.get(f"/api/v1/library/{library_id}").status_code == 404


def test_library_import_bad_package(client):
    """Test that a broken package is reported, not stored."""
    response = _upload(client, "/api/v1/library/import", b"PK nope", "spot.gdtf")
    assert response.status_code == 400
    assert client.get("/api/v1/library").get_json()["total"] == 0


def test_oversized_upload_reports_limit(app, client):
    """Test that an upload over the size cap gets a JSON 413."""
    app.config["MAX_CONTENT_LENGTH"] = 16
    response = client.post("/api/v1/import?format=txt", data=TAB_TXT * 4)

    assert response.status_code == 413
    assert response.get_json() == {"error": "upload too large", "max_bytes": 16}
