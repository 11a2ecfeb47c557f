import json

from safepay.utils import DEFAULT_TRANSACTION, FRAUD_PATTERN

from tests.conftest import SAFE_REPLY, StubClient


def _form(values):
    return {key: str(value) for key, value in values.items()}


def test_anonymous_pages_redirect_to_login(client):
    for path in ("/", "/dashboard", "/simulator", "/logs", "/how-it-works"):
        response = client.get(path)
        assert response.status_code == 302
        assert response.headers["Location"].endswith("/login")


def test_anonymous_api_is_unauthorized(client):
    response = client.get("/api/transactions")
    assert response.status_code == 401
    assert response.get_json() == {"error": "Authentication required."}


def test_login_rejects_short_name(client):
    response = client.post("/login", data={"name": "Al", "email": "al@example.com"})
    assert response.status_code == 400
    assert b"minimum 3 characters" in response.data


def test_login_rejects_bad_email(client):
    response = client.post("/login", data={"name": "Asha Rao", "email": "asha"})
    assert response.status_code == 400
    assert b"valid email address" in response.data


def test_login_and_logout(client):
    response = client.post("/login", data={"name": "  Asha Rao ", "email": "asha@example.com"})
    assert response.status_code == 302
    assert response.headers["Location"].endswith("/dashboard")
    with client.session_transaction() as sess:
        assert sess["user"] == "Asha Rao"

    assert client.get("/login").status_code == 302

    client.get("/logout")
    with client.session_transaction() as sess:
        assert "user" not in sess


def test_dashboard_starts_empty(logged_in):
    response = logged_in.get("/dashboard")
    assert response.status_code == 200
    assert b"0%" in response.data


def test_simulator_presets(logged_in):
    assert b"JioMart Mumbai" in logged_in.get("/simulator").data
    assert b"Unknown_Offshore_Entity" in logged_in.get("/simulator?preset=fraud").data
    assert b"JioMart Mumbai" in logged_in.get("/simulator?preset=reset").data


def test_simulator_scan_shows_and_logs_result(logged_in):
    response = logged_in.post("/simulator", data=_form(FRAUD_PATTERN))
    assert response.status_code == 200
    assert b"CRITICAL" in response.data
    assert b"Unregistered device" in response.data

    # the latest assessment stays on the simulator page
    assert b"CRITICAL" in logged_in.get("/simulator").data

    logs = logged_in.get("/logs")
    assert b"Unknown_Offshore_Entity" in logs.data


def test_simulator_rejects_invalid_amount(logged_in):
    response = logged_in.post("/simulator", data=_form(dict(DEFAULT_TRANSACTION, amount="abc")))
    assert response.status_code == 400
    assert logged_in.get("/api/transactions").get_json() == []


def test_logs_search(logged_in):
    logged_in.post("/simulator", data=_form(FRAUD_PATTERN))
    logged_in.post("/simulator", data=_form(DEFAULT_TRANSACTION))

    response = logged_in.get("/logs?q=moscow")
    assert b"Unknown_Offshore_Entity" in response.data
    assert b"JioMart Mumbai" not in response.data

    assert b"No transactions match" in logged_in.get("/logs?q=delhi").data


def test_security_report_download(logged_in):
    logged_in.post("/simulator", data=_form(FRAUD_PATTERN))
    transaction_id = logged_in.get("/api/transactions").get_json()[0]["id"]

    response = logged_in.get(f"/transactions/{transaction_id}/report.pdf")
    assert response.status_code == 200
    assert response.mimetype == "application/pdf"
    assert "SafePay_Report_" in response.headers["Content-Disposition"]
    assert response.data.startswith(b"%PDF")


def test_unknown_report_is_not_found(logged_in):
    assert logged_in.get("/transactions/nope/report.pdf").status_code == 404


def test_project_report_download(logged_in):
    response = logged_in.get("/dashboard/report.pdf")
    assert response.mimetype == "application/pdf"
    assert "SafePay_Project_Report_" in response.headers["Content-Disposition"]
    assert response.data.startswith(b"%PDF")


def test_dashboard_charts(logged_in):
    logged_in.post("/simulator", data=_form(FRAUD_PATTERN))
    for name in ("risk", "types"):
        response = logged_in.get(f"/dashboard/charts/{name}.png")
        assert response.mimetype == "image/png"
        assert response.data.startswith(b"\x89PNG")
    assert logged_in.get("/dashboard/charts/other.png").status_code == 404


def test_api_analyze_returns_camel_case(logged_in):
    payload = {
        "amount": 150000,
        "merchant": "Unknown_Offshore_Entity",
        "location": "Moscow, Russia",
        "deviceID": "UNREGISTERED_DEVICE_X",
        "transactionType": "CASH_OUT",
        "distanceFromHome": 5000,
        "avgTransactionAmount": 2000,
        "homeLocation": "Mumbai, Maharashtra",
        "registeredDeviceID": "DEV_IN_8823_ANDROID",
        "userRiskScore": 65,
    }
    response = logged_in.post("/api/analyze", json=payload)
    assert response.status_code == 200
    body = response.get_json()
    assert body["deviceID"] == "UNREGISTERED_DEVICE_X"
    assert body["analysis"]["status"] == "CRITICAL"
    assert body["analysis"]["modelInsights"]["xgBoostProbability"] == 91

    history = logged_in.get("/api/transactions?limit=5").get_json()
    assert [t["id"] for t in history] == [body["id"]]


def test_api_analyze_rejects_bad_input(logged_in):
    response = logged_in.post("/api/analyze", data="nope", content_type="text/plain")
    assert response.status_code == 400
    assert response.get_json()["error"] == "Invalid input. Expected JSON object."

    response = logged_in.post("/api/analyze", json={"amount": -5, "merchant": "X"})
    assert response.status_code == 400
    assert "amount" in response.get_json()["fields"]


def test_histories_are_separate_per_user(app):
    first = app.test_client()
    first.post("/login", data={"name": "Asha Rao", "email": "asha@example.com"})
    first.post("/simulator", data=_form(FRAUD_PATTERN))

    second = app.test_client()
    second.post("/login", data={"name": "Vikram Shah", "email": "vikram@example.com"})
    assert second.get("/api/transactions").get_json() == []
    assert len(first.get("/api/transactions").get_json()) == 1


def test_fallback_when_service_fails(tmp_path):
    from app import create_app
    from safepay.services import FraudAnalyzer

    analyzer = FraudAnalyzer(client=StubClient(RuntimeError("quota")), max_attempts=1)
    app = create_app(
        {"TESTING": True, "SECRET_KEY": "x", "SAFEPAY_DATABASE": str(tmp_path / "db.sqlite")},
        analyzer=analyzer,
    )
    client = app.test_client()
    client.post("/login", data={"name": "Asha Rao", "email": "asha@example.com"})

    body = client.post("/api/analyze", json=_form(DEFAULT_TRANSACTION)).get_json()
    assert body["analysis"]["modelUsed"] == "Fallback"
    assert body["analysis"]["recommendation"] == "Hold Transaction"


def test_safe_reply_renders(tmp_path):
    from app import create_app
    from safepay.services import FraudAnalyzer

    analyzer = FraudAnalyzer(client=StubClient(json.dumps(SAFE_REPLY)), max_attempts=1)
    app = create_app(
        {"TESTING": True, "SECRET_KEY": "x", "SAFEPAY_DATABASE": str(tmp_path / "db.sqlite")},
        analyzer=analyzer,
    )
    client = app.test_client()
    client.post("/login", data={"name": "Asha Rao", "email": "asha@example.com"})
    response = client.post("/simulator", data=_form(DEFAULT_TRANSACTION))
    assert b"SAFE" in response.data
    assert b"No anomalies detected." in response.data


def test_how_it_works_lists_dataset(logged_in):
    response = logged_in.get("/how-it-works")
    assert response.status_code == 200
    assert b"C1231006815" in response.data
    assert b"Isolation Forest" in response.data
