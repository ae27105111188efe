"""GitHub repository DTOs shared by the repo listing and the intake form."""

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Exchanged in camelCase, populated by either name."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RepositoryPermissions(CamelModel):
    admin: bool = False
    maintain: bool = False
    push: bool = False
    triage: bool = False
    pull: bool = False

    @property
    def can_push(self) -> bool:
        """True when the viewer holds admin, maintain or push."""
        return self.admin or self.maintain or self.push


class RepositoryOwner(CamelModel):
    # REST listings return a numeric id, GraphQL a node id string
    id: Union[int, str]
    type: str
    name: str
    avatar_url: str
    url: str


class Repository(CamelModel):
    """Canonical repository record, whichever GitHub surface it came from."""

    external_id: int = Field(..., description="GitHub database id of the repository")
    name: str
    full_name: str = Field(..., description="owner/name")
    description: Optional[str] = None
    url: str
    owner: RepositoryOwner
    permissions: RepositoryPermissions = Field(default_factory=RepositoryPermissions)

    @property
    def short_name(self) -> str:
        """Repository-name portion of ``full_name``."""
        return self.full_name.split("/", 1)[-1]
