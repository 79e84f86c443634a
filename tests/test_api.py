"""
API user flow tests.

Tests mimic what an uploader or an operator dashboard would call.
"""

from starlette.datastructures import UploadFile as StarletteUploadFile

from api.main import cors_origins

from conftest import SAMPLE_ROWS, MockMovieRepository, create_movie, csv_bytes


def upload(client, path, data, file_name="movies.csv"):
    return client.post(path, files={"file": (file_name, data, "text/csv")})


class TestHealth:
    def test_health(self, api_client):
        response = api_client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestImportFlow:
    """Flow 1: Upload a CSV file through the API"""

    def test_upload_reconciles_file(self, api_client, mock_db_with_data):
        rows = SAMPLE_ROWS + [[4, "Tangled", "animation", "Disney", 89, 2010]]
        response = upload(api_client, "/api/v1/imports/csv", csv_bytes(rows))

        assert response.status_code == 200
        data = response.json()
        assert data["fileName"] == "movies.csv"
        assert data["totalRecords"] == 4
        assert data["createdCount"] == 1
        assert data["updatedCount"] == 0
        assert data["errorCount"] == 0
        assert data["success"] is True
        assert mock_db_with_data.by_business_id()[4].genre == "Animation"

    def test_row_errors_are_returned_not_raised(self, api_client):
        rows = [[9, "Bad Year", "Drama", "Fox", 50, 1700]]
        response = upload(api_client, "/api/v1/imports/csv", csv_bytes(rows))

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is False
        assert len(data["errors"]) == 1
        assert data["errors"][0].startswith("Line 2 (ID 9) rejected: Year: must be between 1888 and ")

    def test_non_csv_upload_is_400(self, api_client):
        response = upload(api_client, "/api/v1/imports/csv", b"hello", file_name="notes.txt")

        assert response.status_code == 400
        assert response.json()["error"] == "not_csv"

    def test_missing_columns_is_400_with_details(self, api_client):
        data = csv_bytes([[1, "Drama"]], header=["ID", "Genre"])
        response = upload(api_client, "/api/v1/imports/csv", data)

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "missing_columns"
        assert body["details"] == {"missing": ["Film", "Studio", "Score", "Year"]}

    def test_store_unavailable_is_503(self, api_client, mock_db_with_data):
        mock_db_with_data.unavailable = True
        response = upload(api_client, "/api/v1/imports/csv", csv_bytes(SAMPLE_ROWS))

        assert response.status_code == 503
        assert response.json()["error"] == "store_unavailable"

    def test_unexpected_failure_is_500(self, api_client, monkeypatch):
        async def broken_commit(self):
            raise RuntimeError("disk full")

        monkeypatch.setattr(MockMovieRepository, "commit", broken_commit)
        response = upload(api_client, "/api/v1/imports/csv", csv_bytes(SAMPLE_ROWS))

        assert response.status_code == 500
        assert response.json() == {"error": "unexpected", "message": "An unexpected error occurred."}

    def test_oversized_upload_is_refused_before_reading(self, api_client, config, monkeypatch):
        async def fail_read(self, size=-1):
            raise AssertionError("upload body was buffered")

        config.max_file_size_mb = 0
        monkeypatch.setattr(StarletteUploadFile, "read", fail_read)
        response = upload(api_client, "/api/v1/imports/csv", csv_bytes(SAMPLE_ROWS))

        assert response.status_code == 400
        assert response.json()["error"] == "file_too_large"

    def test_request_id_header(self, api_client):
        response = upload(api_client, "/api/v1/imports/csv", csv_bytes(SAMPLE_ROWS))
        assert len(response.headers["X-Request-ID"]) == 8


class TestValidateFlow:
    """Flow 2: Check a file through the API without importing"""

    def test_validate_reports_structure(self, api_client, mock_db_with_data):
        response = upload(api_client, "/api/v1/imports/validate", csv_bytes(SAMPLE_ROWS + [[4, "New", "Drama", "Fox", 50, 2000]]))

        assert response.status_code == 200
        assert response.json() == {"isValid": True, "recordCount": 4, "errors": []}
        assert 4 not in mock_db_with_data.by_business_id()

    def test_validate_missing_header(self, api_client):
        response = upload(api_client, "/api/v1/imports/validate", b"")

        assert response.status_code == 200
        assert response.json()["isValid"] is False


class TestMaintenanceFlow:
    """Flow 3: Operator runs the sweep and reads statistics"""

    def test_cleanup(self, api_client, mock_db_with_data):
        mock_db_with_data.seed([create_movie(10, "Youth in Revolt", score=52, year=2010)])
        response = api_client.post("/api/v1/maintenance/cleanup")

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["duplicatesRemoved"] == 1
        assert data["errorMessage"] is None
        assert 10 not in mock_db_with_data.by_business_id()

    def test_cleanup_failure_is_reported_in_body(self, api_client, mock_db_with_data):
        mock_db_with_data.fail_list_all_calls = {0}
        response = api_client.post("/api/v1/maintenance/cleanup")

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is False
        assert data["errorMessage"] == "The duplicate pass failed."

    def test_stats(self, api_client):
        response = api_client.get("/api/v1/maintenance/stats")

        assert response.status_code == 200
        data = response.json()
        assert data["totalMovies"] == 3
        assert data["topGenre"] == "Comedy"
        assert data["topStudio"] == "The Weinstein Company"
        assert data["oldestMovie"] == {"film": "Zack and Miri Make a Porno", "year": 2008}

    def test_stats_store_unavailable_is_503(self, api_client, mock_db_with_data):
        mock_db_with_data.unavailable = True
        response = api_client.get("/api/v1/maintenance/stats")

        assert response.status_code == 503


class TestCorsSettings:
    def test_origins_come_from_env(self, monkeypatch):
        monkeypatch.setenv("ALLOWED_ORIGINS", "https://catalog.example, https://ops.example")
        assert cors_origins() == ["https://catalog.example", "https://ops.example"]

    def test_any_origin_when_unset(self, monkeypatch):
        monkeypatch.setenv("ALLOWED_ORIGINS", "")
        assert cors_origins() == ["*"]
