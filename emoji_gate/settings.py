import os
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from emoji_gate.config_loader import CONFIG_PATH_ENV, load_config_file
from emoji_gate.models import ApprovalPolicy, MatchPolicy


class GateSettings(BaseSettings):
    # --- GitLab ---
    gitlab_hostname: str = Field("", validation_alias="ATLANTIS_GITLAB_HOSTNAME")
    gitlab_token: str = Field("", validation_alias="ATLANTIS_GITLAB_TOKEN")
    gitlab_scheme: str = Field("https", validation_alias="GITLAB_SCHEME")
    http_timeout: float = Field(30.0, validation_alias="GITLAB_TIMEOUT")

    # --- Merge request (Atlantis passes these to custom workflow steps) ---
    base_repo_owner: str = Field("", validation_alias="BASE_REPO_OWNER")
    base_repo_name: str = Field("", validation_alias="BASE_REPO_NAME")
    pull_num: Optional[int] = Field(None, validation_alias="PULL_NUM")
    pull_author: str = Field("", validation_alias="PULL_AUTHOR")
    target_path: str = Field(".", validation_alias="REPO_REL_DIR")

    # --- Approval policy ---
    approve_emoji: str = Field("thumbsup", validation_alias="APPROVE_EMOJI")
    insecure: bool = Field(False, validation_alias="INSECURE")  # allow self-approval
    restricted_freshness: bool = Field(False, validation_alias="RESTRICTED_FRESHNESS")

    # --- CODEOWNERS ---
    codeowners_path: str = Field("CODEOWNERS", validation_alias="CODEOWNERS_PATH")
    # e.g. "platform/codeowners" to read CODEOWNERS from a central repository
    codeowners_repo: Optional[str] = Field(None, validation_alias="CODEOWNERS_REPO")
    match_policy: MatchPolicy = Field(
        MatchPolicy.LAST_MATCH, validation_alias="CODEOWNERS_MATCH_POLICY"
    )

    # --- Pydantic settings ---
    model_config = SettingsConfigDict(
        populate_by_name=True,
        extra="ignore",
    )

    @property
    def project_path(self) -> str:
        return f"{self.base_repo_owner}/{self.base_repo_name}"

    def to_policy(self) -> ApprovalPolicy:
        return ApprovalPolicy(
            approve_emoji=self.approve_emoji,
            mr_author=self.pull_author,
            insecure_self_approval=self.insecure,
            restricted_freshness=self.restricted_freshness,
            target_path=self.target_path,
            match_policy=self.match_policy,
        )


REQUIRED = {
    "gitlab_hostname": "ATLANTIS_GITLAB_HOSTNAME",
    "gitlab_token": "ATLANTIS_GITLAB_TOKEN",
    "base_repo_owner": "BASE_REPO_OWNER",
    "base_repo_name": "BASE_REPO_NAME",
    "pull_num": "PULL_NUM",
    "pull_author": "PULL_AUTHOR",
}


def missing_required(settings: GateSettings) -> List[str]:
    return [env for field, env in REQUIRED.items() if not getattr(settings, field)]


def load_settings() -> GateSettings:
    """
    Build settings from the process environment. If EMOJI_GATE_CONFIG names a
    YAML file, its keys fill in fields the environment leaves unset.
    Unknown keys in the file are ignored.
    """
    file_conf = load_config_file(os.environ.get(CONFIG_PATH_ENV))
    present = {k.upper() for k in os.environ}
    defaults = {}
    for k, v in file_conf.items():
        field = GateSettings.model_fields.get(str(k).lower())
        if field is None or field.validation_alias.upper() in present:
            continue
        defaults[field.validation_alias] = v
    return GateSettings(**defaults)
