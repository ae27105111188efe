"""Onboarding DTOs - intake form fields, repo selection and responses."""

from dataclasses import dataclass
from typing import Annotated, Any, Dict, List, Optional

from pydantic import EmailStr, Field, TypeAdapter

from app.dtos.github import CamelModel, RepositoryPermissions


class IntakeForm(CamelModel):
    """Text fields of the multipart intake form."""

    name: Optional[str] = Field(default=None, max_length=200)
    email: EmailStr
    notes: Optional[str] = Field(default=None, max_length=5000)
    github_handle: str = Field(..., min_length=1, max_length=39)
    should_design: bool
    is_one_project_per_repo: bool
    # JSON-encoded list of SelectedRepository, validated separately
    repos: str = Field(..., min_length=1)


class SelectedRepositoryPermissions(RepositoryPermissions):
    admin: bool
    push: bool
    pull: bool


class SelectedRepository(CamelModel):
    """A repository the user picked, with the permissions shown at pick time."""

    full_name: str = Field(..., pattern=r"^[\w.-]+/[\w.-]+$")
    github_repo_id: int
    permissions: SelectedRepositoryPermissions

    @property
    def short_name(self) -> str:
        return self.full_name.split("/", 1)[-1]


RepoSelectionAdapter = TypeAdapter(
    Annotated[List[SelectedRepository], Field(min_length=1)]
)


@dataclass
class ImageAttachment:
    """An uploaded image, already read into memory."""

    filename: Optional[str]
    content_type: Optional[str]
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


class IntakeFormResponse(CamelModel):
    form_data: Dict[str, Any]
    queue_number: Optional[int] = None
    msg: str
