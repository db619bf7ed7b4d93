"""Version control router for sqlrev API."""

from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field

from sqlrev.core.vcs import VersionControl
from sqlrev.errors import (
    BranchInUseError,
    CommitValidationError,
    DuplicateBranchError,
    InvalidNameError,
    ManualInterventionRequiredError,
    NothingToRevertError,
    ProtectedBranchError,
    UnreachableRevisionError,
    VersionControlError,
)
from sqlrev.models import Author, Branch, Commit, DatabaseChange, RevertOutcome


router = APIRouter()


def get_vcs(request: Request) -> VersionControl:
    """VersionControl instance attached to the application."""
    return request.app.state.get_vcs()


def http_error(error: VersionControlError) -> HTTPException:
    """Map a sqlrev error to an HTTP error response."""
    if isinstance(error, LookupError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, ManualInterventionRequiredError):
        return HTTPException(
            status_code=409,
            detail={
                "message": str(error),
                "blocking_changes": [change.label for change in error.blocking_changes],
            },
        )
    if isinstance(
        error,
        (
            DuplicateBranchError,
            ProtectedBranchError,
            BranchInUseError,
            UnreachableRevisionError,
            NothingToRevertError,
        ),
    ):
        return HTTPException(status_code=409, detail=str(error))
    if isinstance(error, (CommitValidationError, InvalidNameError)):
        return HTTPException(status_code=422, detail=str(error))
    executed = getattr(error, "executed", None)
    if executed is not None:
        return HTTPException(
            status_code=400, detail={"message": str(error), "executed": executed}
        )
    return HTTPException(status_code=400, detail=str(error))


class TrackRequest(BaseModel):
    """Request to record an executed statement."""

    connection_id: str
    query: str
    affected_rows: Optional[int] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class TrackResult(BaseModel):
    """Result of recording a statement."""

    tracked: bool
    change: Optional[DatabaseChange] = None


class CommitRequest(BaseModel):
    """Request to commit pending changes."""

    connection_id: str
    message: str
    author: Author
    change_ids: Optional[List[str]] = None
    snapshot: Optional[Dict[str, Any]] = None


class BranchRequest(BaseModel):
    """Request to create, check out or rename a branch."""

    connection_id: str
    name: str
    action: str = Field(default="create", pattern="^(create|checkout|rename)$")
    from_commit: Optional[str] = None
    new_name: Optional[str] = None


class BranchList(BaseModel):
    """Branches of a connection."""

    branches: List[Branch]
    current: str


class RevertRequest(BaseModel):
    """Request to revert a commit."""

    connection_id: str
    commit_id: str
    author: Author
    dry_run: bool = False


class RollbackRequest(BaseModel):
    """Request to roll back to a revision number or commit id."""

    connection_id: str
    revision: Optional[int] = None
    commit_id: Optional[str] = None
    author: Author
    dry_run: bool = False


@router.get("/pending", response_model=List[DatabaseChange])
async def list_pending(
    connection_id: str = Query(..., description="Connection id"),
    vcs: VersionControl = Depends(get_vcs),
):
    """List pending changes."""
    try:
        return vcs.pending(connection_id)
    except VersionControlError as e:
        raise http_error(e)


@router.post("/pending", response_model=TrackResult)
async def track_statement(request: TrackRequest, vcs: VersionControl = Depends(get_vcs)):
    """Classify an executed statement and stage it."""
    try:
        change = vcs.track(
            request.connection_id,
            request.query,
            request.affected_rows,
            request.metadata or None,
        )
    except VersionControlError as e:
        raise http_error(e)
    return TrackResult(tracked=change is not None, change=change)


@router.get("/commit", response_model=List[Commit])
async def list_commits(
    connection_id: str = Query(..., description="Connection id"),
    max_count: Optional[int] = Query(None, ge=0, description="Maximum commits"),
    author: Optional[str] = Query(None, description="Author name or email"),
    vcs: VersionControl = Depends(get_vcs),
):
    """Commit history of the current branch, newest first."""
    try:
        return vcs.history(connection_id, max_count=max_count, author=author)
    except VersionControlError as e:
        raise http_error(e)


@router.post("/commit", response_model=Commit, status_code=201)
async def create_commit(request: CommitRequest, vcs: VersionControl = Depends(get_vcs)):
    """Commit pending changes (all, or the listed ids)."""
    try:
        return vcs.commit(
            request.connection_id,
            request.message,
            request.author,
            changes=request.change_ids,
            snapshot=request.snapshot,
        )
    except VersionControlError as e:
        raise http_error(e)


@router.get("/branches", response_model=BranchList)
async def list_branches(
    connection_id: str = Query(..., description="Connection id"),
    vcs: VersionControl = Depends(get_vcs),
):
    """List branches and the current branch."""
    try:
        return BranchList(
            branches=vcs.list_branches(connection_id),
            current=vcs.current_branch(connection_id).name,
        )
    except VersionControlError as e:
        raise http_error(e)


@router.post("/branches", response_model=Branch)
async def change_branch(request: BranchRequest, vcs: VersionControl = Depends(get_vcs)):
    """Create, check out or rename a branch."""
    try:
        if request.action == "checkout":
            return vcs.checkout(request.connection_id, request.name)
        if request.action == "rename":
            if not request.new_name:
                raise HTTPException(status_code=422, detail="new_name is required")
            return vcs.rename_branch(request.connection_id, request.name, request.new_name)
        return vcs.create_branch(
            request.connection_id, request.name, from_commit=request.from_commit
        )
    except VersionControlError as e:
        raise http_error(e)


@router.delete("/branches")
async def delete_branch(
    connection_id: str = Query(..., description="Connection id"),
    name: str = Query(..., description="Branch name"),
    vcs: VersionControl = Depends(get_vcs),
):
    """Delete a branch."""
    try:
        vcs.delete_branch(connection_id, name)
    except VersionControlError as e:
        raise http_error(e)
    return {"message": f"Deleted branch '{name}'"}


@router.post("/revert", response_model=RevertOutcome)
async def revert_commit(request: RevertRequest, vcs: VersionControl = Depends(get_vcs)):
    """Undo a single commit."""
    try:
        return vcs.revert_commit(
            request.connection_id, request.commit_id, request.author, dry_run=request.dry_run
        )
    except VersionControlError as e:
        raise http_error(e)


@router.post("/rollback", response_model=RevertOutcome)
async def rollback(request: RollbackRequest, vcs: VersionControl = Depends(get_vcs)):
    """Undo every commit after a revision number or commit id."""
    if request.revision is None and request.commit_id is None:
        raise HTTPException(status_code=422, detail="Provide revision or commit_id")
    target = request.commit_id if request.commit_id is not None else request.revision
    try:
        return vcs.rollback_to_revision(
            request.connection_id, target, request.author, dry_run=request.dry_run
        )
    except VersionControlError as e:
        raise http_error(e)


@router.get("/rollback/diff")
async def rollback_diff(
    connection_id: str = Query(..., description="Connection id"),
    from_revision: int = Query(0, description="First revision (0 = head)"),
    to_revision: int = Query(-1, description="Second revision"),
    vcs: VersionControl = Depends(get_vcs),
):
    """Changes between each revision and head."""
    try:
        result = vcs.diff(connection_id, from_revision, to_revision)
    except VersionControlError as e:
        raise http_error(e)
    data = result.model_dump(by_alias=True, mode="json")
    data["summary"] = result.summary()
    return data
