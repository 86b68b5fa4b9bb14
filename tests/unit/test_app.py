def test_root_returns_message(client):
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Team Directory API"


def test_openapi_lists_directory_routes(client):
    response = client.get("/openapi.json")
    assert response.status_code == 200
    paths = response.json()["paths"]
    assert "/api/v1/employees" in paths
    assert "/api/v1/employees/hierarchy" in paths
    assert "/api/v1/employees/{employee_id}" in paths
    assert set(paths["/api/v1/employees/{employee_id}"]) == {"get", "put", "delete"}


def test_cors_allows_configured_origin(client):
    response = client.get("/", headers={"Origin": "http://localhost:3000"})
    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
