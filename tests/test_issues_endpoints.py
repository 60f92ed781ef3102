from models import IssueReport, IssueReportStatus

REPORT = {
    "subject": "Wrong answer",
    "message": "The clue about Tokyo has the wrong response listed.",
    "category": "CONTENT",
}


def test_signed_in_report(client, test_db, current_user, questions):
    response = client.post(
        "/api/issues",
        json={**REPORT, "questionId": questions["Tokyo"].id, "email": "", "pageUrl": " "},
        headers={"User-Agent": "pytest-agent"},
    )

    assert response.status_code == 201
    issue = test_db.query(IssueReport).filter(IssueReport.id == response.json()["issueId"]).one()
    assert issue.user_id == current_user.id
    assert issue.status == IssueReportStatus.OPEN
    assert issue.email is None
    assert issue.page_url is None
    assert issue.user_agent == "pytest-agent"


def test_anonymous_report_requires_email(anon_client):
    response = anon_client.post("/api/issues", json=REPORT)

    assert response.status_code == 400
    assert response.json()["error"] == "Email is required for unauthenticated users"

    response = anon_client.post("/api/issues", json={**REPORT, "email": "visitor@example.com"})
    assert response.status_code == 201


def test_report_rejects_unknown_references(client):
    response = client.post("/api/issues", json={**REPORT, "questionId": "missing"})
    assert response.status_code == 400
    assert response.json()["error"] == "Question not found"

    response = client.post("/api/issues", json={**REPORT, "gameId": "missing"})
    assert response.status_code == 400
    assert response.json()["error"] == "Game not found"


def test_report_validates_lengths(client):
    response = client.post("/api/issues", json={**REPORT, "message": "too short"})

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"
