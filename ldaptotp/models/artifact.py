import enum
import os
from typing import Optional

from pydantic import BaseModel

from ldaptotp.consts import (
    ACLS_FILE,
    PASSWORD_FILE,
    SCHEMA_FILE,
    SERVICE_ACCOUNT_FILE,
)

# In the order they are listed to the operator
ARTIFACT_DESCRIPTIONS = {
    SCHEMA_FILE: "TOTP attributes and object classes",
    ACLS_FILE: "Access control rules (customised for {base_dn})",
    SERVICE_ACCOUNT_FILE: "PAM service account (customised for {base_dn})",
    PASSWORD_FILE: "Service account password (KEEP SECURE)",
}


class ArtifactStatus(enum.Enum):
    CREATED = "created"
    SKIPPED = "skipped"


class Artifact(BaseModel):
    name: str
    path: str
    status: ArtifactStatus

    @property
    def exists(self) -> bool:
        return self.status == ArtifactStatus.CREATED and os.path.exists(self.path)

    def description(self, base_dn: str) -> str:
        return ARTIFACT_DESCRIPTIONS.get(self.name, "").format(base_dn=base_dn)


class SetupResult(BaseModel):
    base_dn: str
    output_dir: str
    artifacts: list[Artifact] = []
    source: Optional[str] = None
    hashed_with: Optional[str] = None

    def get_artifact(self, name: str) -> Optional[Artifact]:
        return next(
            (artifact for artifact in self.artifacts if artifact.name == name), None
        )

    @property
    def created_artifacts(self) -> list[Artifact]:
        """Existing artifacts, in listing order."""
        order = list(ARTIFACT_DESCRIPTIONS)
        created = [artifact for artifact in self.artifacts if artifact.exists]
        return sorted(
            created,
            key=lambda artifact: order.index(artifact.name)
            if artifact.name in order
            else len(order),
        )
