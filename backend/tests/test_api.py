"""API tests for the visa evaluation endpoints."""

from fastapi import status


class TestRootAndHealth:

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["message"] == "Visa Evaluation Engine API"

    def test_health(self, client):
        response = client.get("/api/v1/health")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "healthy"
        assert data["engine"]["supportedVisaTypes"] == ["E-1", "E-2", "E-7"]

    def test_health_reports_database_failure(self, client, mock_db):
        mock_db.execute.side_effect = RuntimeError("connection refused")

        data = client.get("/api/v1/health").json()

        assert data["status"] == "degraded"
        assert data["database"].startswith("unhealthy")


# ==================== Evaluations ====================


class TestEvaluationEndpoints:

    def test_evaluate(self, client, e1_extension_applicant):
        response = client.post(
            "/api/v1/evaluations/E-1",
            json={"applicantData": e1_extension_applicant, "applicationType": "EXTENSION"},
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["passPreScreening"] is True
        assert data["successProbability"]["percentage"] == 35

    def test_evaluate_normalizes_code(self, client, e2_native_applicant):
        response = client.post("/api/v1/evaluations/e2", json={"applicantData": e2_native_applicant})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["visaType"] == "E-2"

    def test_unsupported_visa_type(self, client):
        response = client.post("/api/v1/evaluations/Z-9", json={"applicantData": {}})
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_invalid_applicant_data(self, client):
        response = client.post("/api/v1/evaluations/E-2", json={"applicantData": {"age": -1}})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        data = response.json()
        assert data["success"] is False
        assert data["error"]["code"] == "VALIDATION_ERROR"

    def test_missing_applicant_data(self, client):
        response = client.post("/api/v1/evaluations/E-2", json={})
        assert response.status_code == 422

    def test_batch(self, client, e2_native_applicant):
        response = client.post(
            "/api/v1/evaluations/batch",
            json={
                "requests": [
                    {"visaType": "E-2", "applicantData": e2_native_applicant},
                    {"visaType": "Z-9", "applicantData": {}},
                ]
            },
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["summary"]["total"] == 2
        assert data["summary"]["failed"] == 1
        assert data["results"][1]["result"]["error"]["code"] == "CONFIGURATION_ERROR"

    def test_empty_batch_rejected(self, client):
        response = client.post("/api/v1/evaluations/batch", json={"requests": []})
        assert response.status_code == 422

    def test_history(self, client):
        response = client.get("/api/v1/evaluations/history/u1")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == []


# ==================== Visa Types ====================


class TestVisaTypeEndpoints:

    def test_list(self, client):
        data = client.get("/api/v1/visa-types").json()

        assert data["total"] == 3
        assert [v["visaType"] for v in data["visaTypes"]] == ["E-1", "E-2", "E-7"]

    def test_capabilities_of_unknown_type(self, client):
        data = client.get("/api/v1/visa-types/Z-9/capabilities").json()
        assert data["isSupported"] is False

    def test_requirements(self, client):
        response = client.get("/api/v1/visa-types/E-7/requirements")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["rules"]

    def test_requirements_of_unknown_type(self, client):
        response = client.get("/api/v1/visa-types/Z-9/requirements")
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_documents(self, client):
        response = client.get(
            "/api/v1/visa-types/E-1/documents",
            params={"application_type": "CHANGE", "current_visa": "D-2"},
        )

        assert response.status_code == status.HTTP_200_OK
        codes = [d["code"] for d in response.json()["documents"]]
        assert "graduation_certificate" in codes

    def test_validate_documents(self, client):
        response = client.post(
            "/api/v1/visa-types/E-1/documents/validate",
            json={"documents": [{"type": "passport", "name": "passport.pdf", "size": 1024}]},
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["success"] is False

    def test_malformed_documents(self, client):
        response = client.post(
            "/api/v1/visa-types/E-1/documents/validate",
            json={"documents": [{"size": "huge"}]},
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"]["code"] == "DOCUMENT_VALIDATION_ERROR"

    def test_change_paths(self, client):
        response = client.get("/api/v1/visa-types/change-paths", params={"from": "D-10", "to": "E-7"})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["possible"] is True

    def test_change_path_check(self, client):
        response = client.post(
            "/api/v1/visa-types/change-paths/check",
            json={
                "currentVisa": "D-10",
                "targetVisa": "E-1",
                "applicantData": {"educationLevel": "phd", "hasJobOffer": True},
            },
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["conditionsCheck"]["allMet"] is True

    def test_change_path_check_invalid_applicant(self, client):
        response = client.post(
            "/api/v1/visa-types/change-paths/check",
            json={"currentVisa": "D-10", "targetVisa": "E-7", "applicantData": {"age": -1}},
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"


# ==================== Progress, System and Guides ====================


class TestProgressEndpoints:

    def test_tracked_evaluation(self, client, e2_native_applicant):
        client.post(
            "/api/v1/evaluations/E-2",
            json={"applicantData": e2_native_applicant, "evaluationId": "ev-api", "userId": "u7"},
        )

        response = client.get("/api/v1/progress/ev-api")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "completed"

        processes = client.get("/api/v1/progress/users/u7").json()
        assert processes["total"] == 1

    def test_unknown_process(self, client):
        response = client.get("/api/v1/progress/missing")
        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestSystemEndpoints:

    def test_health_and_status(self, client):
        assert client.get("/api/v1/system/health").json()["status"] == "HEALTHY"
        assert client.get("/api/v1/system/status").json()["status"] == "OPERATIONAL"

    def test_cache_statistics_and_flush(self, client, e2_native_applicant):
        client.post("/api/v1/evaluations/E-2", json={"applicantData": e2_native_applicant})
        assert client.get("/api/v1/system/cache").json()["evaluation"]["keys"] == 1

        deleted = client.delete("/api/v1/system/cache", params={"pattern": "eval:E-2"}).json()
        assert deleted["deleted"] == 1

        flushed = client.delete("/api/v1/system/cache", params={"cache_type": "rules"}).json()
        assert flushed == {"flushed": "rules"}


class TestGuideEndpoints:

    def test_guide(self, client):
        response = client.get("/api/v1/guides/EXTENSION", params={"visa_type": "E-1"})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["guide"]["title"] == "Visa extension guide"
        assert data["visaType"] == "E-1"

    def test_invalid_application_type(self, client):
        response = client.get("/api/v1/guides/RENEWAL")
        assert response.status_code == 422

    def test_unknown_visa_type(self, client):
        response = client.get("/api/v1/guides/NEW", params={"visa_type": "Z-9"})
        assert response.status_code == status.HTTP_404_NOT_FOUND
