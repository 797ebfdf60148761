# report_routes.py
from fastapi import APIRouter, HTTPException, Depends, Query, status, Form, File, UploadFile
from typing import List, Optional

from models.enums import ReportStatus, ReportType, UserRole, VoteType
from models.report import Report, ReportFilter, ReportPublic, VoteResult
from models.user import AuthContext
from routes.auth_context import get_current_user, require_role
from routes.dependencies import (
    get_assignment_coordinator,
    get_object_storage,
    get_report_store,
    get_resolution_pipeline,
    get_vote_ledger,
)
from services.assignment import AssignmentCoordinator
from services.cloudinary_client import ObjectStorage, StorageUnavailableError
from services.report_store import ReportStore
from services.resolution import ResolutionPipeline
from services.vote_ledger import VoteLedger, can_vote

router = APIRouter(tags=["Reports"])

# Statuses shown in the admin review queue
REVIEW_STATUSES = [
    ReportStatus.ESCALATED,
    ReportStatus.ASSIGNED,
    ReportStatus.WORKING,
    ReportStatus.PENDING_CONFIRMATION,
]


# Helper that decorates reports with the viewer's own vote
async def to_public(
    reports: List[Report], viewer: AuthContext, ledger: VoteLedger
) -> List[ReportPublic]:
    votes = await ledger.votes_by(viewer.user_id, [r.id for r in reports])
    public = []
    for report in reports:
        my_vote = votes.get(report.id)
        is_own = report.created_by == viewer.user_id
        public.append(
            ReportPublic(
                **report.model_dump(),
                is_own_report=is_own,
                my_vote=my_vote,
                has_voted=my_vote is not None,
                can_vote=can_vote(is_own, my_vote is not None),
            )
        )
    return public


# Helper that uploads a photo and maps storage failures to HTTP errors
async def upload_photo(storage: ObjectStorage, photo: UploadFile, folder: str) -> str:
    try:
        return await storage.store(photo, folder)
    except StorageUnavailableError as e:
        raise HTTPException(status_code=502, detail=str(e))


# Endpoint for citizens to file a new report
@router.post("/", response_model=ReportPublic, status_code=status.HTTP_201_CREATED)
async def create_report(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    type: Optional[str] = Form(None),
    latitude: Optional[float] = Form(None),
    longitude: Optional[float] = Form(None),
    photo: Optional[UploadFile] = File(None),
    current_user: AuthContext = Depends(require_role(UserRole.CITIZEN)),
    store: ReportStore = Depends(get_report_store),
    ledger: VoteLedger = Depends(get_vote_ledger),
    storage: ObjectStorage = Depends(get_object_storage),
):
    data = {
        "title": title,
        "description": description,
        "type": type,
        "latitude": latitude,
        "longitude": longitude,
    }
    # Validate before uploading anything
    store.validate(data)

    if photo is not None and photo.filename:
        data["image_url"] = await upload_photo(storage, photo, f"reports/{current_user.user_id}")

    report = await store.create(data, created_by=current_user.user_id)
    return (await to_public([report], current_user, ledger))[0]


# Endpoint listing every report, newest first
@router.get("/", response_model=List[ReportPublic])
async def list_reports(
    status: Optional[ReportStatus] = Query(None),
    type: Optional[ReportType] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    current_user: AuthContext = Depends(get_current_user),
    store: ReportStore = Depends(get_report_store),
    ledger: VoteLedger = Depends(get_vote_ledger),
):
    filters = ReportFilter(
        statuses=[status] if status else None, type=type, limit=limit, offset=offset
    )
    return await to_public(await store.list_by_filter(filters), current_user, ledger)


# Endpoint for a citizen's own reports
@router.get("/mine", response_model=List[ReportPublic])
async def list_my_reports(
    current_user: AuthContext = Depends(require_role(UserRole.CITIZEN)),
    store: ReportStore = Depends(get_report_store),
    ledger: VoteLedger = Depends(get_vote_ledger),
):
    reports = await store.list_by_filter(ReportFilter(created_by=current_user.user_id))
    return await to_public(reports, current_user, ledger)


# Endpoint for reports filed by other citizens (the ones a citizen can vote on)
@router.get("/others", response_model=List[ReportPublic])
async def list_other_reports(
    current_user: AuthContext = Depends(require_role(UserRole.CITIZEN)),
    store: ReportStore = Depends(get_report_store),
    ledger: VoteLedger = Depends(get_vote_ledger),
):
    reports = await store.list_by_filter(ReportFilter(exclude_created_by=current_user.user_id))
    return await to_public(reports, current_user, ledger)


# Endpoint for the admin review queue (escalated and in-progress reports)
@router.get("/admin", response_model=List[ReportPublic])
async def list_admin_reports(
    include_resolved: bool = Query(False),
    current_user: AuthContext = Depends(require_role(UserRole.ADMIN)),
    store: ReportStore = Depends(get_report_store),
    ledger: VoteLedger = Depends(get_vote_ledger),
):
    statuses = REVIEW_STATUSES + ([ReportStatus.RESOLVED] if include_resolved else [])
    reports = await store.list_by_filter(ReportFilter(statuses=statuses))
    return await to_public(reports, current_user, ledger)


# Endpoint for a worker's active queue
@router.get("/assigned/me", response_model=List[Report])
async def list_my_assigned_reports(
    history: bool = Query(False, description="Also include reports this worker resolved"),
    current_user: AuthContext = Depends(require_role(UserRole.WORKER)),
    assignment: AssignmentCoordinator = Depends(get_assignment_coordinator),
):
    return await assignment.list_assigned_to(current_user.user_id, include_history=history)


# Endpoint to fetch a single report
@router.get("/{report_id}", response_model=ReportPublic)
async def get_report(
    report_id: str,
    current_user: AuthContext = Depends(get_current_user),
    store: ReportStore = Depends(get_report_store),
    ledger: VoteLedger = Depends(get_vote_ledger),
):
    report = await store.get_by_id(report_id)
    return (await to_public([report], current_user, ledger))[0]


# Endpoints for community voting
@router.post("/{report_id}/support", response_model=VoteResult)
async def support_report(
    report_id: str,
    current_user: AuthContext = Depends(require_role(UserRole.CITIZEN)),
    ledger: VoteLedger = Depends(get_vote_ledger),
):
    return await ledger.cast_vote(report_id, current_user, VoteType.SUPPORT)


@router.post("/{report_id}/oppose", response_model=VoteResult)
async def oppose_report(
    report_id: str,
    current_user: AuthContext = Depends(require_role(UserRole.CITIZEN)),
    ledger: VoteLedger = Depends(get_vote_ledger),
):
    return await ledger.cast_vote(report_id, current_user, VoteType.OPPOSE)


@router.get("/{report_id}/my-vote")
async def get_my_vote(
    report_id: str,
    current_user: AuthContext = Depends(get_current_user),
    store: ReportStore = Depends(get_report_store),
    ledger: VoteLedger = Depends(get_vote_ledger),
):
    await store.get_by_id(report_id)
    vote = await ledger.my_vote(report_id, current_user.user_id)
    return {"report_id": report_id, "my_vote": vote.value if vote else None}


# Endpoint for admins to assign an escalated report to a worker
@router.post("/{report_id}/assign", response_model=Report)
async def assign_report(
    report_id: str,
    worker_id: str = Query(..., description="ID of the worker to assign"),
    current_user: AuthContext = Depends(require_role(UserRole.ADMIN)),
    assignment: AssignmentCoordinator = Depends(get_assignment_coordinator),
):
    return await assignment.assign(report_id, worker_id, current_user)


# Endpoint for admins to assign an escalated report to the closest worker
@router.post("/{report_id}/assign-nearest", response_model=Report)
async def assign_nearest_worker(
    report_id: str,
    current_user: AuthContext = Depends(require_role(UserRole.ADMIN)),
    assignment: AssignmentCoordinator = Depends(get_assignment_coordinator),
):
    return await assignment.assign_nearest(report_id, current_user)


# Endpoint for the assigned worker to upload resolution proof
@router.post("/{report_id}/worker/proof", response_model=Report)
async def upload_resolution_proof(
    report_id: str,
    photo: UploadFile = File(...),
    notes: Optional[str] = Form(None),
    current_user: AuthContext = Depends(require_role(UserRole.WORKER)),
    resolution: ResolutionPipeline = Depends(get_resolution_pipeline),
    storage: ObjectStorage = Depends(get_object_storage),
):
    # Reject wrong worker / wrong state before spending an upload
    await resolution.check_worker_can_submit(report_id, current_user.user_id)
    photo_url = await upload_photo(storage, photo, f"resolutions/{report_id}")
    return await resolution.submit_proof(report_id, current_user.user_id, photo_url, notes)


# Endpoint for the assigned worker to signal the work is done
@router.post("/{report_id}/worker/mark-resolved", response_model=Report)
async def mark_resolved(
    report_id: str,
    current_user: AuthContext = Depends(require_role(UserRole.WORKER)),
    resolution: ResolutionPipeline = Depends(get_resolution_pipeline),
):
    return await resolution.mark_resolved_by_worker(report_id, current_user.user_id)


# Endpoint for admins to confirm and close a report
@router.post("/{report_id}/admin/confirm", response_model=Report)
async def confirm_resolution(
    report_id: str,
    current_user: AuthContext = Depends(get_current_user),
    resolution: ResolutionPipeline = Depends(get_resolution_pipeline),
):
    return await resolution.confirm_resolution(report_id, current_user)
