from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class CommandResult(BaseModel):
    """Outcome of a single external command."""

    success: bool = Field(description="True when the command exited with status 0")
    stdout: Optional[str] = Field(default=None, description="Captured standard output")
    error: Optional[str] = Field(default=None, description="Error text or stderr")
    returncode: Optional[int] = Field(default=None, description="Process exit code")


class PackageInstall(BaseModel):
    """One install command applied to the created environment."""

    tool: Literal["conda", "pip"]
    packages: List[str]
    index_url: Optional[str] = None

    def describe(self) -> str:
        return f"{self.tool}: {' '.join(self.packages)}"


class ActivationResult(BaseModel):
    """Outcome of a start-phase run."""

    ready: bool
    kernels: List[str] = Field(default_factory=list)
    service_restarted: bool = False
    message: str = ""
