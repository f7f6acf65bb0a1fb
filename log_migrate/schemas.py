from __future__ import annotations

from pydantic import BaseModel

from . import constants as cs


class AppliedRewrite(BaseModel):
    rule: cs.RuleName
    before: str
    after: str


class FileMigration(BaseModel):
    path: str
    status: str = cs.STATUS_UNCHANGED
    cycles: int = 0
    rewrites: list[AppliedRewrite] = []
    diff: str | None = None
    error_message: str | None = None

    @property
    def changed(self) -> bool:
        return self.status == cs.STATUS_CHANGED

    @property
    def failed(self) -> bool:
        return self.status == cs.STATUS_FAILED
