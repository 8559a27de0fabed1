import os
import sys

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import pytest
import requests

from talentpool import create_app
from talentpool.extensions import db
from talentpool.models.user import User


@pytest.fixture
def app(tmp_path):
    app = create_app('config.TestingConfig')
    app.config.update(LOCAL_STORAGE_DIR=str(tmp_path / "storage"))
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def hr_user(app):
    u = User(name="Hana", email="hana@acme.io", role="hr")
    u.set_password("s3cret-pass")
    db.session.add(u)
    db.session.commit()
    return u


@pytest.fixture
def hr_client(client, hr_user):
    with client.session_transaction() as sess:
        sess["_user_id"] = str(hr_user.id)
        sess["_fresh"] = True
    return client


class _Resp:
    def __init__(self, status_code=202):
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} from worker")


class FakeWorker:
    """Records every manifest POSTed to the scoring worker."""

    def __init__(self):
        self.manifests = []
        self.fail_with = None

    def __call__(self, url, json=None, timeout=None, headers=None):
        if self.fail_with is not None:
            raise self.fail_with
        self.manifests.append(json)
        return _Resp()

    def item_ids(self, index=None):
        manifests = self.manifests if index is None else [self.manifests[index]]
        return [q["queueItemId"] for m in manifests for q in m["queueItems"]]


@pytest.fixture
def worker(monkeypatch):
    fake = FakeWorker()
    monkeypatch.setattr('talentpool.services.dispatch.requests.post', fake)
    return fake


def candidate_data(name, email=None, screenings=(), **extra):
    data = {
        "fullName": name,
        "email": email,
        "cvFileUrl": f"https://files.test/{name.lower().replace(' ', '-')}.pdf",
        "cvFileName": f"{name}.pdf",
        "screenings": [
            {"jobVacancyId": job, "fitScore": score, "aiMatchStatus": status}
            for job, score, status in screenings
        ],
    }
    data.update(extra)
    return data


def ok_callback(batch_id, item_id, data):
    return {"batchId": batch_id, "queueItemId": item_id, "success": True, "candidateData": data}


def err_callback(batch_id, item_id, message="could not parse PDF"):
    return {"batchId": batch_id, "queueItemId": item_id, "success": False, "errorMessage": message}


def pdf_files(n, prefix="cv"):
    return [{"file_url": f"file:///tmp/{prefix}{i}.pdf", "file_name": f"{prefix}{i}.pdf"} for i in range(n)]
