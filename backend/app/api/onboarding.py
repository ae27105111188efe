"""
Onboarding endpoints: the intake form and the repository picker.
"""

import logging
from typing import AsyncIterator, List, Optional

from fastapi import APIRouter, Depends, File, Form, Path, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, StreamingResponse
from pymongo.database import Database

from app.config import settings
from app.core.tracing import TracingContext
from app.database.mongo import get_db
from app.dtos.onboarding import ImageAttachment
from app.middleware.auth import get_github_oauth_token
from app.repositories.intake_submission import IntakeSubmissionRepository
from app.services.github.exceptions import GithubError
from app.services.github.github_client import GitHubClient
from app.services.intake_notifications import NotificationDispatcher
from app.services.intake_service import IntakeSubmissionPipeline
from app.services.intake_validation import IntakeValidator
from app.services.notification_service import get_notification_manager
from app.services.object_storage import GridFSObjectStorage
from app.services.onboarding_exceptions import (
    IntakeValidationError,
    PersistenceError,
    UploadError,
    UpstreamAPIError,
)
from app.services.repo_aggregator import RepoAggregator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/onboarding", tags=["Onboarding"])

FETCH_REPOS_FAILED = "Failed to fetch repos for GitHub user"


# =============================================================================
# Dependencies
# =============================================================================


def get_object_storage(db: Database = Depends(get_db)) -> GridFSObjectStorage:
    return GridFSObjectStorage(db)


def get_intake_pipeline(
    db: Database = Depends(get_db),
    storage: GridFSObjectStorage = Depends(get_object_storage),
) -> IntakeSubmissionPipeline:
    return IntakeSubmissionPipeline(
        validator=IntakeValidator(),
        repository=IntakeSubmissionRepository(db),
        storage=storage,
        dispatcher=NotificationDispatcher(get_notification_manager()),
    )


async def get_github_client(
    github_token: str = Depends(get_github_oauth_token),
) -> AsyncIterator[GitHubClient]:
    async with GitHubClient(github_token) as client:
        yield client


# =============================================================================
# Routes
# =============================================================================


@router.post("/intake-form")
async def submit_intake_form(
    name: Optional[str] = Form(default=None),
    email: Optional[str] = Form(default=None),
    notes: Optional[str] = Form(default=None),
    github_handle: Optional[str] = Form(default=None, alias="githubHandle"),
    should_design: Optional[str] = Form(default=None, alias="shouldDesign"),
    is_one_project_per_repo: Optional[str] = Form(
        default=None, alias="isOneProjectPerRepo"
    ),
    repos: Optional[str] = Form(default=None),
    images: Optional[List[UploadFile]] = File(default=None),
    pipeline: IntakeSubmissionPipeline = Depends(get_intake_pipeline),
):
    """Store an intake form with its images and send the confirmation emails."""
    TracingContext.set(route="POST /onboarding/intake-form", github_handle=github_handle or "")

    fields = {
        "name": name,
        "email": email,
        "notes": notes,
        "githubHandle": github_handle,
        "shouldDesign": should_design,
        "isOneProjectPerRepo": is_one_project_per_repo,
        "repos": repos,
    }
    # Absent fields must surface as "missing" rather than "None is not a string"
    fields = {key: value for key, value in fields.items() if value is not None}
    logger.debug(f"Intake form body: {fields}")

    uploads = images or []
    try:
        # Reject bad text fields and an oversized batch before buffering any image
        pipeline.validator.validate_fields(fields)
        pipeline.validator.validate_image_count(len(uploads))

        attachments = [
            ImageAttachment(
                filename=upload.filename,
                content_type=upload.content_type,
                data=await upload.read(),
            )
            for upload in uploads
        ]
        result = await run_in_threadpool(pipeline.submit, fields, attachments)
    except IntakeValidationError as e:
        logger.warning(f"Invalid intake form: {e.issues}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST, content={"issues": e.issues}
        )
    except (PersistenceError, UploadError) as e:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST, content={"msg": str(e)}
        )

    return result.model_dump(by_alias=True)


@router.get("/github/repos")
async def list_github_repos(client: GitHubClient = Depends(get_github_client)):
    """Repositories the authenticated GitHub user can onboard."""
    TracingContext.set(route="GET /onboarding/github/repos")

    try:
        user = await client.get_authenticated_user()
        login = user["login"]
    except (GithubError, KeyError, TypeError) as e:
        logger.error(f"Failed to resolve authenticated GitHub user - {e}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST, content={"message": FETCH_REPOS_FAILED}
        )

    TracingContext.set(github_handle=login)

    try:
        aggregation = await RepoAggregator(client).aggregate(login)
    except UpstreamAPIError as e:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST, content={"message": str(e)}
        )

    return JSONResponse(
        content=[repo.model_dump(mode="json", by_alias=True) for repo in aggregation.repositories],
        headers={
            "Cache-Control": (
                f"s-maxage={settings.REPOS_CACHE_MAX_AGE}, "
                f"stale-while-revalidate={settings.REPOS_CACHE_STALE_WHILE_REVALIDATE}"
            )
        },
    )


@router.get("/assets/{bucket}/{key}")
def download_asset(
    bucket: str = Path(..., description="Storage bucket"),
    key: str = Path(..., description="Object key"),
    storage: GridFSObjectStorage = Depends(get_object_storage),
):
    """Stream a stored intake image."""
    grid_out = None
    if bucket == settings.INTAKE_ASSET_BUCKET:
        grid_out = storage.open(bucket, key)
    if grid_out is None:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND, content={"msg": "Asset not found"}
        )

    content_type = (grid_out.metadata or {}).get("content_type", "application/octet-stream")
    return StreamingResponse(grid_out, media_type=content_type)
