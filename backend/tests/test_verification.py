"""
Employment and company verification lifecycle
"""
import pytest

from veriboard.core.exceptions import InvalidStatusTransition, ValidationError
from veriboard.models import Company, EmploymentRecord, User
from veriboard.verification import service

from tests.conftest import auth_header, make_company, make_user

DOCUMENT = "https://storage.example.com/verification_docs/offer-letter.pdf"


def submit_employment(client, user, **overrides):
    payload = {
        "position": "Backend Engineer",
        "company_name": "Acme Inc",
        "start_date": "2021-01-04",
        "end_date": "2023-06-30",
        "verification_type": "manual",
        "document_url": DOCUMENT,
    }
    payload.update(overrides)
    return client.post("/api/candidates/employment-verification", json=payload, headers=auth_header(user))


@pytest.fixture
def acme(db):
    return make_company(db, "hr@acme.io", "Acme Inc")


@pytest.fixture
def candidate(db):
    return make_user(db, "cand@veriboard.io", name="Grace Hopper")


@pytest.fixture
def admin(db):
    return make_user(db, "admin@veriboard.io", account_type="admin", name="Admin")


class TestStateMachine:
    def test_approve_from_pending(self):
        record = EmploymentRecord(verification_status="pending")
        service.approve(record, actor_id=7, notes="confirmed with HR")
        assert record.verification_status == "verified"
        assert record.verified_by == 7
        assert record.verified_at is not None
        assert record.verification_notes == "confirmed with HR"

    def test_reject_from_in_review(self):
        record = EmploymentRecord(verification_status="in_review")
        service.reject(record, actor_id=7, reason="  dates do not match  ")
        assert record.verification_status == "rejected"
        assert record.rejection_reason == "dates do not match"

    @pytest.mark.parametrize("status", ["verified", "rejected"])
    def test_decisions_on_terminal_records_are_refused(self, status):
        record = EmploymentRecord(verification_status=status)
        with pytest.raises(InvalidStatusTransition):
            service.approve(record, actor_id=1)
        with pytest.raises(InvalidStatusTransition):
            service.reject(record, actor_id=1, reason="no")
        assert record.verification_status == status

    def test_unsubmitted_company_cannot_be_approved(self):
        with pytest.raises(InvalidStatusTransition) as exc_info:
            service.approve(Company(name="Acme"), actor_id=1)
        assert exc_info.value.details["current_status"] == "unsubmitted"

    def test_reject_requires_reason(self):
        record = EmploymentRecord(verification_status="pending")
        with pytest.raises(ValidationError):
            service.reject(record, actor_id=1, reason="   ")
        assert record.verification_status == "pending"

    def test_submit_paths(self):
        manual = EmploymentRecord()
        service.submit(manual, DOCUMENT, "manual")
        auto = EmploymentRecord()
        service.submit(auto, DOCUMENT, "auto")
        assert manual.verification_status == "pending"
        assert auto.verification_status == "in_review"

    def test_rejected_record_can_be_resubmitted(self):
        record = EmploymentRecord(verification_status="rejected", rejection_reason="blurry scan", verified_by=3)
        service.submit(record, DOCUMENT)
        assert record.verification_status == "pending"
        assert record.rejection_reason is None
        assert record.verified_by is None

    def test_verified_record_is_frozen(self):
        record = EmploymentRecord(verification_status="verified")
        with pytest.raises(InvalidStatusTransition):
            service.submit(record, DOCUMENT)


def test_candidate_submits_and_lists_employment(client, candidate, acme):
    response = submit_employment(client, candidate)
    assert response.status_code == 201
    body = response.json()
    assert body["verification_status"] == "pending"
    assert body["company_id"] == acme[1].id

    auto = submit_employment(client, candidate, verification_type="auto", position="Tech Lead")
    assert auto.json()["verification_status"] == "in_review"

    history = client.get("/api/candidates/employment-history", headers=auth_header(candidate))
    assert [e["position"] for e in history.json()] == ["Tech Lead", "Backend Engineer"]


def test_employment_requires_document_and_company(client, candidate):
    missing_doc = submit_employment(client, candidate, document_url="")
    missing_company = submit_employment(client, candidate, company_name=None)
    assert missing_doc.status_code == 400
    assert missing_company.status_code == 400


def test_company_name_case_variants_resolve_to_same_company(client, db, acme):
    first = make_user(db, "one@veriboard.io")
    second = make_user(db, "two@veriboard.io")

    a = submit_employment(client, first, company_name="Acme Inc").json()
    b = submit_employment(client, second, company_name="  ACME INC ").json()

    assert a["company_id"] == b["company_id"] == acme[1].id


def test_name_matching_ignores_unverified_companies(client, db, candidate):
    make_company(db, "hr@lookalike.io", "Globex", verification_status="pending")
    body = submit_employment(client, candidate, company_name="Globex").json()
    assert body["company_id"] is None
    assert body["company_name"] == "Globex"


def test_employer_approves_request(client, db, candidate, acme):
    hr_user, company = acme
    employment_id = submit_employment(client, candidate).json()["id"]

    listing = client.get("/api/companies/verification-requests?status=pending", headers=auth_header(hr_user))
    assert listing.status_code == 200
    assert [r["candidate_email"] for r in listing.json()] == ["cand@veriboard.io"]

    response = client.post(
        f"/api/companies/verification-requests/{employment_id}/approve",
        json={"notes": "Confirmed by payroll"},
        headers=auth_header(hr_user),
    )
    assert response.status_code == 200
    employment = response.json()["employment"]
    assert employment["verification_status"] == "verified"
    assert employment["verified_by"] == hr_user.id

    again = client.post(
        f"/api/companies/verification-requests/{employment_id}/reject",
        json={"reason": "changed my mind"},
        headers=auth_header(hr_user),
    )
    assert again.status_code == 409
    assert again.json()["type"] == "InvalidStatusTransition"


def test_employer_rejects_with_reason(client, candidate, acme):
    hr_user, _ = acme
    employment_id = submit_employment(client, candidate).json()["id"]

    no_reason = client.post(
        f"/api/companies/verification-requests/{employment_id}/reject",
        json={"reason": ""},
        headers=auth_header(hr_user),
    )
    assert no_reason.status_code == 400

    response = client.post(
        f"/api/companies/verification-requests/{employment_id}/reject",
        json={"reason": "Never employed here"},
        headers=auth_header(hr_user),
    )
    assert response.status_code == 200
    assert response.json()["employment"]["rejection_reason"] == "Never employed here"


def test_employer_cannot_decide_other_companies_records(client, db, candidate, acme):
    other_hr, _ = make_company(db, "hr@initech.io", "Initech")
    employment_id = submit_employment(client, candidate).json()["id"]

    response = client.post(
        f"/api/companies/verification-requests/{employment_id}/approve",
        headers=auth_header(other_hr),
    )
    assert response.status_code == 404


def test_company_with_same_name_but_no_link_cannot_decide(client, db, candidate, acme):
    spoof_hr, _ = make_company(db, "hr@acme-spoof.io", "ACME INC")
    employment_id = submit_employment(client, candidate).json()["id"]

    response = client.post(
        f"/api/companies/verification-requests/{employment_id}/approve",
        headers=auth_header(spoof_hr),
    )
    assert response.status_code == 404


def test_unverified_company_cannot_see_requests(client, db):
    hr_user, _ = make_company(db, "hr@new.io", "NewCo", verification_status=None)
    response = client.get("/api/companies/verification-requests", headers=auth_header(hr_user))
    assert response.status_code == 403


def test_candidate_cannot_use_employer_routes(client, candidate):
    response = client.get("/api/companies/verification-requests", headers=auth_header(candidate))
    assert response.status_code == 403
    assert response.json()["type"] == "AuthorizationError"


def test_admin_overrides_employment(client, db, candidate, admin, acme):
    employment_id = submit_employment(client, candidate, verification_type="auto").json()["id"]

    rejected = client.post(
        f"/api/admin/employments/{employment_id}/reject",
        json={"reason": "Document is illegible"},
        headers=auth_header(admin),
    )
    assert rejected.status_code == 200
    assert rejected.json()["employment"]["verification_status"] == "rejected"

    resubmitted = client.post(
        "/api/candidates/employment-verification/update",
        json={"employment_id": employment_id, "document_url": DOCUMENT + "?v=2"},
        headers=auth_header(candidate),
    )
    assert resubmitted.status_code == 200
    assert resubmitted.json()["verification_status"] == "pending"
    assert resubmitted.json()["rejection_reason"] is None

    verified = client.post(f"/api/admin/employments/{employment_id}/verify", headers=auth_header(admin))
    assert verified.status_code == 200
    assert verified.json()["employment"]["verified_by"] == admin.id

    frozen = client.post(
        "/api/candidates/employment-verification/update",
        json={"employment_id": employment_id, "document_url": DOCUMENT},
        headers=auth_header(candidate),
    )
    assert frozen.status_code == 409


def test_candidate_cannot_update_someone_elses_record(client, db, candidate, acme):
    employment_id = submit_employment(client, candidate).json()["id"]
    intruder = make_user(db, "intruder@veriboard.io")
    response = client.post(
        "/api/candidates/employment-verification/update",
        json={"employment_id": employment_id, "document_url": DOCUMENT},
        headers=auth_header(intruder),
    )
    assert response.status_code == 404


def test_company_verification_by_admin(client, db, admin):
    hr_user, company = make_company(db, "hr@newco.io", "NewCo", verification_status=None)

    submitted = client.post(
        "/api/companies/hr-verification",
        json={"document_url": DOCUMENT},
        headers=auth_header(hr_user),
    )
    assert submitted.status_code == 200
    assert submitted.json()["verification_status"] == "pending"

    forbidden = client.post(f"/api/admin/companies/{company.id}/verify", headers=auth_header(hr_user))
    assert forbidden.status_code == 403

    approved = client.post(
        f"/api/admin/companies/{company.id}/verify",
        json={"notes": "Registry match"},
        headers=auth_header(admin),
    )
    assert approved.status_code == 200
    assert approved.json()["company"]["verification_status"] == "verified"

    db.expire_all()
    assert db.get(User, hr_user.id).is_verified is True

    again = client.post(
        f"/api/admin/companies/{company.id}/reject",
        json={"reason": "late objection"},
        headers=auth_header(admin),
    )
    assert again.status_code == 409


def test_admin_rejects_company(client, db, admin):
    hr_user, company = make_company(db, "hr@shady.io", "Shady LLC", verification_status="pending")
    response = client.post(
        f"/api/admin/companies/{company.id}/reject",
        json={"reason": "Registration number not found"},
        headers=auth_header(admin),
    )
    assert response.status_code == 200
    assert response.json()["company"]["rejection_reason"] == "Registration number not found"


def test_unknown_records_return_404(client, admin):
    assert client.post("/api/admin/employments/999/verify", headers=auth_header(admin)).status_code == 404
    assert client.post("/api/admin/companies/999/verify", headers=auth_header(admin)).status_code == 404


def test_company_id_must_reference_verified_company(client, db, candidate):
    _, unsubmitted = make_company(db, "hr@stealth.io", "Stealth", verification_status=None)
    response = submit_employment(client, candidate, company_id=unsubmitted.id, company_name=None)
    assert response.status_code == 400
    assert db.query(EmploymentRecord).count() == 0


def test_company_id_links_verified_company(client, candidate, acme):
    response = submit_employment(client, candidate, company_id=acme[1].id, company_name=None)
    assert response.status_code == 201
    assert response.json()["company_id"] == acme[1].id


def test_admin_employment_queue(client, db, candidate, admin, acme):
    manual_id = submit_employment(client, candidate).json()["id"]
    auto_id = submit_employment(client, candidate, verification_type="auto", position="Tech Lead").json()["id"]

    everything = client.get("/api/admin/employments", headers=auth_header(admin))
    assert everything.status_code == 200
    assert [e["id"] for e in everything.json()] == [auto_id, manual_id]
    assert everything.json()[0]["candidate_email"] == "cand@veriboard.io"

    pending = client.get("/api/admin/employments?status=pending", headers=auth_header(admin))
    assert [e["id"] for e in pending.json()] == [manual_id]

    auto = client.get("/api/admin/employments?status=all&verification_type=auto", headers=auth_header(admin))
    assert [e["id"] for e in auto.json()] == [auto_id]

    bad_filter = client.get("/api/admin/employments?status=archived", headers=auth_header(admin))
    assert bad_filter.status_code == 400


def test_admin_company_queue(client, db, admin, acme):
    _, waiting = make_company(db, "hr@waiting.io", "Waiting Ltd", verification_status="pending")

    pending = client.get("/api/admin/companies?status=pending", headers=auth_header(admin))
    assert pending.status_code == 200
    assert [c["id"] for c in pending.json()] == [waiting.id]

    everything = client.get("/api/admin/companies", headers=auth_header(admin))
    assert {c["id"] for c in everything.json()} == {waiting.id, acme[1].id}


def test_review_queues_are_admin_only(client, candidate, acme):
    hr_user, _ = acme
    assert client.get("/api/admin/employments", headers=auth_header(candidate)).status_code == 403
    assert client.get("/api/admin/companies", headers=auth_header(hr_user)).status_code == 403
