import hmac

from flask import abort, current_app, jsonify, request
from flask_login import current_user

from . import bp
from .forms import UploadBatchForm
from ...errors import IntakeError
from ...extensions import db
from ...schemas import BatchAction, StatusUpdate, parse_callback
from ...services.candidates import CandidateStore
from ...services.intake import check_upload, create_batch_upload
from ...services.reconcile import ReconciliationEngine
from ...services.storage import save_file
from ...services.work_items import WorkItemStore
from ...utils.decorators import hr_required


def _paging(default_take=20, max_take=100):
    skip = max(request.args.get("skip", default=0, type=int) or 0, 0)
    take = request.args.get("take", default=default_take, type=int) or default_take
    return skip, min(max(take, 1), max_take)


# ---- intake ------------------------------------------------------------

@bp.post("/upload")
@hr_required
def upload():
    form = UploadBatchForm()
    if not form.validate_on_submit():
        raise IntakeError(f"Invalid upload form: {form.errors}")
    files = [f for f in request.files.getlist("files") + request.files.getlist("files[]") if f and f.filename]
    check_upload(files)

    stored = []
    for f in files:
        url = save_file(f, prefix="talent-pool")
        stored.append({"file_url": url, "file_name": f.filename})

    meta = {
        "batch_name": form.batch_name.data,
        "source_type": form.source_type.data,
        "source_url": form.source_url.data,
    }
    batch, message = create_batch_upload(current_user.id, meta, stored)
    return jsonify({"batch": batch.to_dict(), "queued": len(stored), "message": message}), 201


# ---- worker callback ---------------------------------------------------

@bp.post("/callback")
def callback():
    token = current_app.config.get("CALLBACK_TOKEN")
    if token and not hmac.compare_digest(request.headers.get("X-Callback-Token", ""), token):
        abort(401)
    result = parse_callback(request.get_json(silent=True) or {})
    summary = ReconciliationEngine().handle(result)
    return jsonify(summary)


# ---- batches -----------------------------------------------------------

@bp.get("/batches")
@hr_required
def list_batches():
    skip, take = _paging()
    batches = WorkItemStore().list_batches(skip=skip, take=take)
    return jsonify({"items": [b.to_dict() for b in batches], "skip": skip, "take": take})


@bp.get("/batches/<batch_id>")
@hr_required
def get_batch(batch_id):
    store = WorkItemStore()
    batch = store.get_batch(batch_id)
    out = batch.to_dict()
    out["itemCounts"] = store.count_by_status(batch_id)
    return jsonify(out)


@bp.get("/batches/<batch_id>/items")
@hr_required
def list_batch_items(batch_id):
    store = WorkItemStore()
    store.get_batch(batch_id)
    return jsonify({"items": [i.to_dict() for i in store.list_items(batch_id)]})


# ---- candidates --------------------------------------------------------

@bp.get("")
@hr_required
def list_candidates():
    skip, take = _paging()
    items, total = CandidateStore().list(
        batch_id=request.args.get("batch_id"),
        job_vacancy_id=request.args.get("job_vacancy_id"),
        hr_status=request.args.get("hr_status"),
        min_score=request.args.get("min_score", type=float),
        search=request.args.get("search"),
        skip=skip,
        take=take,
    )
    return jsonify({"items": [c.to_dict() for c in items], "total": total, "skip": skip, "take": take})


@bp.get("/jobs/open")
@hr_required
def open_jobs():
    return jsonify({"items": [j.to_dict() for j in CandidateStore().open_jobs()]})


@bp.get("/jobs/open/public")
def open_jobs_public():
    return jsonify({"items": [j.to_dict() for j in CandidateStore().open_jobs()]})


@bp.post("/batch-action")
@hr_required
def batch_action():
    body = BatchAction.model_validate(request.get_json(silent=True) or {})
    count = CandidateStore().bulk_update_hr_status(body.candidate_ids, body.hr_status, body.processed_to_step)
    db.session.commit()
    current_app.logger.info('User %s set %d candidates to %s', current_user.id, count, body.hr_status)
    return jsonify({"count": count})


@bp.get("/<candidate_id>")
@hr_required
def get_candidate(candidate_id):
    return jsonify(CandidateStore().get(candidate_id).to_dict())


@bp.patch("/<candidate_id>/status")
@hr_required
def update_status(candidate_id):
    body = StatusUpdate.model_validate(request.get_json(silent=True) or {})
    c = CandidateStore().update_hr_status(candidate_id, body.hr_status, body.hr_notes, body.processed_to_step)
    db.session.commit()
    return jsonify(c.to_dict(with_screenings=False))
