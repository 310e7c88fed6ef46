"""Models describing which CI build to fetch artifacts from."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field

DASHBOARD_TOKEN_PREFIX = "dashboards/"


class Provider(str, Enum):
    """CI providers artifacts can be fetched from."""

    CODEMAGIC = "codemagic"
    BITRISE = "bitrise"


def derive_workflow(branch: str) -> str:
    """Derive the CI workflow name from a branch name.

    The workflow is the leading path segment of the branch, so
    ``acceptance/1.0.0`` maps to ``acceptance`` and ``main`` to ``main``.
    """
    return branch.split("/", 1)[0]


class BuildQuery(BaseModel):
    """Build lookup parameters for a single fetch invocation."""

    model_config = ConfigDict(frozen=True)

    provider: Provider = Field(..., description="CI provider to query")
    app_id: str = Field(..., min_length=1, description="Application ID")
    branch: str = Field(..., min_length=1, description="Branch of the build")
    auth_token: str = Field(
        ..., min_length=1, description="API token or dashboards/<id> reference"
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def workflow(self) -> str:
        """Workflow derived from the branch name."""
        return derive_workflow(self.branch)

    @property
    def is_dashboard(self) -> bool:
        """Whether the token references a CodeMagic public dashboard."""
        return self.auth_token.startswith(DASHBOARD_TOKEN_PREFIX)

    @property
    def dashboard_id(self) -> str:
        """Dashboard ID from a ``dashboards/<id>`` token."""
        return self.auth_token.split("/")[1]
