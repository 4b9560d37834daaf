from datetime import datetime
from datetime import timezone
from typing import Any

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import field_validator

from gcov_server.models.coverage import CoverageSummary


def _as_utc(v: Any) -> Any:
    # SQLite hands back naive timestamps; they are stored in UTC.
    if isinstance(v, datetime) and v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v


class SummaryRecord(BaseModel):
    """Represents a row in the 'summary' table."""
    insert_time: datetime
    # Organisation the repo belongs to
    org: str
    repo: str
    coverage: CoverageSummary

    model_config = ConfigDict(frozen=True)

    @field_validator('insert_time', mode='before')
    @classmethod
    def assume_utc(cls, v: Any) -> Any:
        return _as_utc(v)

    def to_json_dict(self) -> dict[str, Any]:
        return {
            'insert_time': int(self.insert_time.timestamp()),
            'org': self.org,
            'repo': self.repo,
            'coverage': self.coverage.to_flat(),
        }


class ReportRecord(BaseModel):
    """Represents a row in the 'reports' table."""
    insert_time: datetime
    org: str
    repo: str
    branch: str
    commit: str
    report_id: int | None = None

    model_config = ConfigDict(frozen=True)

    @field_validator('insert_time', mode='before')
    @classmethod
    def assume_utc(cls, v: Any) -> Any:
        return _as_utc(v)

    def to_json_dict(self) -> dict[str, Any]:
        return {
            'insert_time': int(self.insert_time.timestamp()),
            'org': self.org,
            'repo': self.repo,
            'branch': self.branch,
            'commit': self.commit,
        }


class OrganisationView(BaseModel):
    """An organisation and the latest summaries of its repositories."""
    name: str
    repos: list[SummaryRecord]

    def to_json_dict(self) -> dict[str, Any]:
        return {
            'name': self.name,
            'repos': [record.to_json_dict() for record in self.repos],
        }
