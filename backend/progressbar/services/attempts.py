from __future__ import annotations

from collections import defaultdict

from sqlalchemy import select
from sqlalchemy.orm import Session

from progressbar.models.activity import ActivityAttempt, ActivityCompletion, AttemptKind, CompletionState
from progressbar.services.events import ACTION_ACTIVITY_COMPLETION, Event


_COMPLETE_STATES = {CompletionState.complete, CompletionState.complete_pass}
_ATTEMPTED_KINDS = {AttemptKind.attempted, AttemptKind.finished, AttemptKind.submitted}


def _action_done(action: str, records: list[ActivityAttempt], completion: CompletionState | None) -> bool:
    if action == ACTION_ACTIVITY_COMPLETION:
        return completion in _COMPLETE_STATES
    if action == "viewed":
        return bool(records)
    if action == "attempted":
        return any(r.kind in _ATTEMPTED_KINDS for r in records)
    if action in {"submitted", "finished", "posted"}:
        return any(r.kind == AttemptKind(action) for r in records)
    if action in {"marked", "graded"}:
        return any(r.grade is not None for r in records)
    if action == "passed":
        return any(bool(r.passed) for r in records)
    return False


class AttemptService:
    def __init__(self, db: Session):
        self.db = db

    def attempts_for_users(self, events: list[Event], user_ids: list[int]) -> dict[int, dict[int, bool]]:
        """Batch completion lookup: user_id -> cmid -> completed."""
        if not user_ids:
            return {}
        if not events:
            return {uid: {} for uid in user_ids}

        cmids = [e.cmid for e in events]

        records: dict[tuple[int, int], list[ActivityAttempt]] = defaultdict(list)
        for a in self.db.scalars(
            select(ActivityAttempt).where(
                ActivityAttempt.user_id.in_(user_ids),
                ActivityAttempt.course_module_id.in_(cmids),
            )
        ).all():
            records[(a.user_id, a.course_module_id)].append(a)

        completions: dict[tuple[int, int], CompletionState] = {}
        if any(e.action == ACTION_ACTIVITY_COMPLETION for e in events):
            rows = self.db.execute(
                select(ActivityCompletion.user_id, ActivityCompletion.course_module_id, ActivityCompletion.state).where(
                    ActivityCompletion.user_id.in_(user_ids),
                    ActivityCompletion.course_module_id.in_(cmids),
                )
            ).all()
            completions = {(uid, cmid): state for uid, cmid, state in rows}

        return {
            uid: {
                e.cmid: _action_done(e.action, records.get((uid, e.cmid), []), completions.get((uid, e.cmid)))
                for e in events
            }
            for uid in user_ids
        }

    def attempts(self, events: list[Event], user_id: int) -> dict[int, bool]:
        return self.attempts_for_users(events, [user_id])[user_id]


def progress_percentage(events: list[Event], attempts: dict[int, bool]) -> int:
    if not events:
        return 0
    done = sum(1 for e in events if attempts.get(e.cmid))
    n = len(events)
    # Half up, like the host's round().
    return (done * 200 + n) // (2 * n)
