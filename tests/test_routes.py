import io

import pytest

from config import Config
from conftest import candidate_data, err_callback, ok_callback
from talentpool import create_app
from talentpool.extensions import db
from talentpool.models.batch import Batch
from talentpool.models.job_vacancy import JobVacancy
from talentpool.models.user import User

PDF = b"%PDF-1.4\n1 0 obj<<>>endobj\n%%EOF"


def _pdf(name):
    return (io.BytesIO(PDF), name)


def _upload(client, names, **form):
    data = dict(form, files=[_pdf(n) for n in names])
    return client.post("/talent-pool/upload", data=data, content_type="multipart/form-data")


def _callback(client, body, **headers):
    return client.post("/talent-pool/callback", json=body, headers=headers)


def test_upload_requires_login(client, worker):
    resp = _upload(client, ["a.pdf"])
    assert resp.status_code == 401
    assert Batch.query.count() == 0


def test_non_hr_role_is_forbidden(client, app, worker):
    u = User(email="viewer@acme.io", role="viewer")
    u.set_password("pw-123456")
    db.session.add(u)
    db.session.commit()
    with client.session_transaction() as sess:
        sess["_user_id"] = str(u.id)
    assert client.get("/talent-pool/batches").status_code == 403


def test_upload_queues_and_dispatches(hr_client, worker, app):
    resp = _upload(hr_client, ["alice.pdf", "bob.PDF"], batch_name="Data team")
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["queued"] == 2
    assert body["message"] == "2 files queued for processing. Check batch status for progress."
    assert body["batch"]["batchName"] == "Data team"
    assert body["batch"]["totalFiles"] == 2
    assert body["batch"]["status"] == "PROCESSING"

    [manifest] = worker.manifests
    names = [q["fileName"] for q in manifest["queueItems"]]
    assert names == ["alice.pdf", "bob.PDF"]
    assert all(q["fileUrl"].startswith("file://") for q in manifest["queueItems"])


def test_upload_rejects_bad_files(hr_client, worker, app):
    resp = _upload(hr_client, ["notes.txt"])
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "invalid_upload"

    resp = hr_client.post("/talent-pool/upload", data={}, content_type="multipart/form-data")
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "No files provided"

    app.config["MAX_UPLOAD_FILES"] = 2
    resp = _upload(hr_client, ["a.pdf", "b.pdf", "c.pdf"])
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Maximum 2 files per upload"

    app.config["MAX_FILE_SIZE"] = 10
    resp = _upload(hr_client, ["big.pdf"])
    assert resp.status_code == 400

    assert Batch.query.count() == 0
    assert worker.manifests == []


def test_callback_flow_and_queries(hr_client, worker, app):
    bid = _upload(hr_client, ["a.pdf", "b.pdf"]).get_json()["batch"]["id"]
    ids = worker.item_ids(0)

    resp = _callback(hr_client, ok_callback(bid, ids[0], candidate_data(
        "Gita", "gita@mail.com", [("job-1", 90, "STRONG_MATCH"), ("job-2", 70, "MATCH")])))
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "COMPLETED"
    cid = resp.get_json()["candidateId"]

    resp = _callback(hr_client, err_callback(bid, ids[1], "encrypted PDF"))
    assert resp.get_json() == {"success": False, "status": "FAILED", "queueItemId": ids[1]}

    batch = hr_client.get(f"/talent-pool/batches/{bid}").get_json()
    assert batch["status"] == "PARTIALLY_FAILED"
    assert batch["itemCounts"] == {"COMPLETED": 1, "FAILED": 1}

    items = hr_client.get(f"/talent-pool/batches/{bid}/items").get_json()["items"]
    assert [i["status"] for i in items] == ["COMPLETED", "FAILED"]

    listed = hr_client.get("/talent-pool/batches").get_json()["items"]
    assert [b["id"] for b in listed] == [bid]

    found = hr_client.get("/talent-pool", query_string={"job_vacancy_id": "job-2", "min_score": 60}).get_json()
    assert found["total"] == 1
    assert found["items"][0]["id"] == cid
    none = hr_client.get("/talent-pool", query_string={"job_vacancy_id": "job-2", "min_score": 80}).get_json()
    assert none["total"] == 0
    by_name = hr_client.get("/talent-pool", query_string={"search": "git"}).get_json()
    assert by_name["total"] == 1

    one = hr_client.get(f"/talent-pool/{cid}").get_json()
    assert [s["fitScore"] for s in one["screenings"]] == [90, 70]


def test_callback_errors(hr_client, worker, app):
    assert _callback(hr_client, {"queueItemId": "x"}).status_code == 422
    assert _callback(hr_client, err_callback("b", "missing")).status_code == 404

    bid = _upload(hr_client, ["a.pdf"]).get_json()["batch"]["id"]
    item_id = worker.item_ids(0)[0]
    assert _callback(hr_client, err_callback("other-batch", item_id)).status_code == 409

    assert _callback(hr_client, err_callback(bid, item_id)).status_code == 200
    replay = _callback(hr_client, err_callback(bid, item_id))
    assert replay.status_code == 200
    assert replay.get_json()["ignored"] is True

    app.config["CALLBACK_REPLAY_POLICY"] = "error"
    replay = _callback(hr_client, err_callback(bid, item_id))
    assert replay.status_code == 409
    assert replay.get_json()["error"] == "invalid_transition"


def test_callback_token(client, app, worker):
    app.config["CALLBACK_TOKEN"] = "t0ken"
    body = err_callback("b", "missing")
    assert _callback(client, body).status_code == 401
    assert _callback(client, body, **{"X-Callback-Token": "wrong"}).status_code == 401
    assert _callback(client, body, **{"X-Callback-Token": "t0ken"}).status_code == 404


def test_hr_status_updates(hr_client, worker, app):
    bid = _upload(hr_client, ["a.pdf", "b.pdf"]).get_json()["batch"]["id"]
    cids = []
    for n, item_id in enumerate(worker.item_ids(0)):
        resp = _callback(hr_client, ok_callback(bid, item_id, candidate_data(f"H {n}", f"h{n}@mail.com")))
        cids.append(resp.get_json()["candidateId"])

    resp = hr_client.patch(f"/talent-pool/{cids[0]}/status",
                           json={"hrStatus": "SHORTLISTED", "hrNotes": "strong SQL"})
    assert resp.status_code == 200
    assert resp.get_json()["hrStatus"] == "SHORTLISTED"
    assert resp.get_json()["hrNotes"] == "strong SQL"

    assert hr_client.patch(f"/talent-pool/{cids[0]}/status", json={"hrStatus": "HIRED"}).status_code == 422
    assert hr_client.patch("/talent-pool/missing/status", json={"hrStatus": "REVIEWED"}).status_code == 404

    resp = hr_client.post("/talent-pool/batch-action",
                          json={"candidateIds": cids, "hrStatus": "PROCESSED", "processedToStep": "interview"})
    assert resp.get_json() == {"count": 2}
    processed = hr_client.get("/talent-pool", query_string={"hr_status": "PROCESSED"}).get_json()
    assert processed["total"] == 2
    assert {c["processedToStep"] for c in processed["items"]} == {"interview"}


def _vacancies():
    db.session.add_all([
        JobVacancy(id="job-1", title="Data Analyst", status="OPEN"),
        JobVacancy(id="job-2", title="Backend Engineer", status="OPEN"),
        JobVacancy(id="job-3", title="Archivist", status="CLOSED"),
    ])
    db.session.commit()


def test_open_jobs(hr_client):
    _vacancies()
    titles = [j["title"] for j in hr_client.get("/talent-pool/jobs/open").get_json()["items"]]
    assert titles == ["Backend Engineer", "Data Analyst"]


def test_public_open_jobs_need_no_login(client, app):
    _vacancies()
    public = client.get("/talent-pool/jobs/open/public")
    assert public.status_code == 200
    assert len(public.get_json()["items"]) == 2
    assert client.get("/talent-pool/jobs/open").status_code == 401


def test_login_and_logout(client, hr_user):
    bad = client.post("/auth/login", data={"email": "hana@acme.io", "password": "nope"})
    assert bad.status_code == 401
    ok = client.post("/auth/login", data={"email": "hana@acme.io", "password": "s3cret-pass"})
    assert ok.status_code == 200
    assert ok.get_json()["role"] == "hr"
    assert client.get("/talent-pool/batches").status_code == 200
    assert client.post("/auth/logout").status_code == 200
    assert client.get("/talent-pool/batches").status_code == 401


class ProductionLikeConfig(Config):
    # Config as deployed (CSRF on), minus Redis and the on-disk database
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    RQ_ASYNC = False
    DISPATCH_WEBHOOK_URL = "http://worker.test/webhook/talent-pool"


@pytest.fixture
def production_app(tmp_path):
    app = create_app(ProductionLikeConfig)
    app.config.update(LOCAL_STORAGE_DIR=str(tmp_path / "storage"))
    with app.app_context():
        db.create_all()
        u = User(name="Hana", email="hana@acme.io", role="hr")
        u.set_password("s3cret-pass")
        db.session.add(u)
        db.session.commit()
        yield app
        db.session.remove()
        db.drop_all()


def test_login_and_upload_with_csrf_enabled(production_app, worker):
    assert production_app.config.get("WTF_CSRF_ENABLED", True) is True
    client = production_app.test_client()
    creds = {"email": "hana@acme.io", "password": "s3cret-pass"}

    missing = client.post("/auth/login", data=creds)
    assert missing.status_code == 400
    assert "csrf_token" in missing.get_json()["details"]

    token = client.get("/auth/csrf-token").get_json()["csrfToken"]
    ok = client.post("/auth/login", data=dict(creds, csrf_token=token))
    assert ok.status_code == 200

    resp = client.post("/talent-pool/upload", content_type="multipart/form-data",
                       data={"csrf_token": token, "batch_name": "Prod", "files": [_pdf("a.pdf")]})
    assert resp.status_code == 201
    assert resp.get_json()["queued"] == 1
    assert len(worker.manifests) == 1
