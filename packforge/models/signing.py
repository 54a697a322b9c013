"""Signing configuration and the per-run signing request."""

from __future__ import annotations

import posixpath

from pydantic import BaseModel, ConfigDict, Field

from packforge.core.errors import ConfigurationError

# The token a signing command template uses for the file being signed.
FILE_PLACEHOLDER = "%{file}"


def validate_signing_template(template: str) -> str:
    """Ensure *template* carries exactly one file placeholder."""
    count = template.count(FILE_PLACEHOLDER)
    if count != 1:
        raise ConfigurationError(
            f"Signing command must contain exactly one {FILE_PLACEHOLDER} "
            f"placeholder, found {count}: {template!r}"
        )
    return template


def render_signing_template(template: str, path: str) -> str:
    """Substitute *path* into the template's file placeholder."""
    return template.replace(FILE_PLACEHOLDER, path)


class SigningConfig(BaseModel):
    """Signing settings declared by the project description.

    Mutated only while the description is evaluated; read-only afterwards.
    """

    hostname: str | None = None
    username: str | None = None
    commands: list[str] = Field(default_factory=list)
    extra_files: list[str] = Field(default_factory=list)
    use_local_signing: bool = False

    @property
    def remote_host(self) -> str:
        """``user@host`` login string for the signing host."""
        if self.username:
            return f"{self.username}@{self.hostname}"
        return self.hostname or ""

    def add_command(self, template: str) -> None:
        self.commands.append(validate_signing_template(template))


class SigningRequest(BaseModel):
    """Ephemeral, derived at pipeline-run time from a project's SigningConfig."""

    model_config = ConfigDict(frozen=True)

    files: list[str]
    templates: list[str]
    remote_host: str
    temp_dir: str
    local: bool = False

    @property
    def script_path(self) -> str:
        return posixpath.join(self.temp_dir, "sign_extra_file")

    def remote_path(self, file: str) -> str:
        """Where *file* lives in the temporary signing directory."""
        return posixpath.join(self.temp_dir, posixpath.basename(file))

    def rendered_line(self, file: str) -> str:
        """One sign-script line covering every configured template."""
        target = self.remote_path(file)
        return " && ".join(
            render_signing_template(t, target) for t in self.templates
        )
