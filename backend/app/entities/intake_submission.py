"""
Intake Submission Entity - One onboarding intake form as stored in MongoDB.

A record is keyed by ``identity_key`` (``<email>-<github_handle>``) plus the
unix ``timestamp`` of the submission, so a user who resubmits gets a new
record rather than overwriting the old one.

Lifecycle inside this service: inserted once with ``images=[]`` and
``is_complete=False``, then updated at most once to attach image URLs.
Whatever later flips ``is_complete`` lives outside this service.
"""

from typing import List

from pydantic import Field

from app.dtos.onboarding import SelectedRepository

from .base import BaseEntity


def build_identity_key(email: str, github_handle: str) -> str:
    return f"{email}-{github_handle}"


class IntakeSubmission(BaseEntity):
    """Intake form snapshot captured at submission time."""

    identity_key: str = Field(..., description="<email>-<github_handle>")
    timestamp: int = Field(..., description="Submission time, unix seconds")

    name: str = ""
    email: str
    notes: str = ""
    github_handle: str
    should_design: bool = False
    is_one_project_per_repo: bool = False

    # Snapshot of the selection; never re-fetched from GitHub
    repos: List[SelectedRepository] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)
    is_complete: bool = False
