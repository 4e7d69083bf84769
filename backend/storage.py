"""Repository layer for cases, evidence, witnesses, activity and analyses.

``MemStorage`` keeps everything in dicts and backs demos and tests;
``DatabaseStorage`` persists through SQLAlchemy. Both return the read
schemas from :mod:`backend.schemas`, so the API cannot tell them apart.
"""
from __future__ import annotations

import abc
import datetime as dt
import logging
from typing import Dict, List, Optional

from passlib.hash import pbkdf2_sha256 as hasher
from sqlalchemy.exc import IntegrityError

from . import models, schemas

logger = logging.getLogger(__name__)


class StorageError(ValueError):
    """Write rejected by a storage invariant."""


class DuplicateCaseNumber(StorageError):
    def __init__(self, case_number: str):
        super().__init__(f"Case number {case_number} already exists")
        self.case_number = case_number


class CaseReferenceError(StorageError):
    def __init__(self, case_id: int):
        super().__init__(f"Case {case_id} does not exist")
        self.case_id = case_id


def _newest_first(items):
    return sorted(items, key=lambda i: (i.created_at or dt.datetime.min, i.id), reverse=True)


class Storage(abc.ABC):
    # users
    @abc.abstractmethod
    def get_user(self, user_id: int) -> Optional[schemas.User]: ...

    @abc.abstractmethod
    def get_user_by_username(self, username: str) -> Optional[schemas.User]: ...

    @abc.abstractmethod
    def create_user(self, data: schemas.UserCreate) -> schemas.User: ...

    @abc.abstractmethod
    def verify_password(self, username: str, password: str) -> bool: ...

    # cases
    @abc.abstractmethod
    def create_case(self, data: schemas.CaseCreate) -> schemas.Case: ...

    @abc.abstractmethod
    def get_case(self, case_id: int) -> Optional[schemas.Case]: ...

    @abc.abstractmethod
    def get_case_by_number(self, case_number: str) -> Optional[schemas.Case]: ...

    @abc.abstractmethod
    def get_all_cases(self) -> List[schemas.Case]: ...

    @abc.abstractmethod
    def update_case(self, case_id: int, data: schemas.CaseUpdate) -> Optional[schemas.Case]: ...

    @abc.abstractmethod
    def delete_case(self, case_id: int) -> bool: ...

    # evidence
    @abc.abstractmethod
    def create_evidence(self, data: schemas.EvidenceCreate) -> schemas.Evidence: ...

    @abc.abstractmethod
    def get_evidence(self, evidence_id: int) -> Optional[schemas.Evidence]: ...

    @abc.abstractmethod
    def get_case_evidence(self, case_id: int) -> List[schemas.Evidence]: ...

    @abc.abstractmethod
    def update_evidence(self, evidence_id: int, data: schemas.EvidenceUpdate) -> Optional[schemas.Evidence]: ...

    @abc.abstractmethod
    def delete_evidence(self, evidence_id: int) -> bool: ...

    # witnesses
    @abc.abstractmethod
    def create_witness(self, data: schemas.WitnessCreate) -> schemas.Witness: ...

    @abc.abstractmethod
    def get_witness(self, witness_id: int) -> Optional[schemas.Witness]: ...

    @abc.abstractmethod
    def get_case_witnesses(self, case_id: int) -> List[schemas.Witness]: ...

    @abc.abstractmethod
    def update_witness(self, witness_id: int, data: schemas.WitnessUpdate) -> Optional[schemas.Witness]: ...

    @abc.abstractmethod
    def delete_witness(self, witness_id: int) -> bool: ...

    # activity log (append-only)
    @abc.abstractmethod
    def log_activity(self, data: schemas.ActivityLogCreate) -> schemas.ActivityLog: ...

    @abc.abstractmethod
    def get_case_activities(self, case_id: int) -> List[schemas.ActivityLog]: ...

    @abc.abstractmethod
    def get_recent_activities(self, limit: int = 10) -> List[schemas.ActivityLog]: ...

    # AI analyses
    @abc.abstractmethod
    def save_analysis(self, data: schemas.AiAnalysisCreate) -> schemas.AiAnalysis: ...

    @abc.abstractmethod
    def get_case_analyses(self, case_id: int) -> List[schemas.AiAnalysis]: ...

    def is_empty(self) -> bool:
        return not self.get_all_cases()


class MemStorage(Storage):
    def __init__(self, seed: bool = False):
        self.users: Dict[int, schemas.User] = {}
        self.passwords: Dict[int, str] = {}
        self.cases: Dict[int, schemas.Case] = {}
        self.evidence_items: Dict[int, schemas.Evidence] = {}
        self.witnesses: Dict[int, schemas.Witness] = {}
        self.activity_logs: Dict[int, schemas.ActivityLog] = {}
        self.ai_analyses: Dict[int, schemas.AiAnalysis] = {}
        self._next_ids: Dict[str, int] = {}

        if seed:
            from .seed import seed_storage
            seed_storage(self)

    def _next_id(self, table: str) -> int:
        value = self._next_ids.get(table, 1)
        self._next_ids[table] = value + 1
        return value

    def _require_case(self, case_id: int):
        if case_id not in self.cases:
            raise CaseReferenceError(case_id)

    # users

    def get_user(self, user_id):
        return self.users.get(user_id)

    def get_user_by_username(self, username):
        return next((u for u in self.users.values() if u.username == username), None)

    def create_user(self, data):
        user_id = self._next_id("users")
        user = schemas.User(id=user_id, **data.model_dump(exclude={"password"}))
        self.users[user_id] = user
        self.passwords[user_id] = hasher.hash(data.password)
        return user

    def verify_password(self, username, password):
        user = self.get_user_by_username(username)
        if not user:
            return False
        return hasher.verify(password, self.passwords[user.id])

    # cases

    def create_case(self, data):
        if self.get_case_by_number(data.case_number):
            raise DuplicateCaseNumber(data.case_number)
        case_id = self._next_id("cases")
        now = dt.datetime.utcnow()
        case = schemas.Case(id=case_id, created_at=now, updated_at=now, **data.model_dump())
        self.cases[case_id] = case
        return case

    def get_case(self, case_id):
        return self.cases.get(case_id)

    def get_case_by_number(self, case_number):
        return next((c for c in self.cases.values() if c.case_number == case_number), None)

    def get_all_cases(self):
        return list(self.cases.values())

    def update_case(self, case_id, data):
        existing = self.cases.get(case_id)
        if not existing:
            return None
        changes = data.changes()
        number = changes.get("case_number")
        if number and number != existing.case_number and self.get_case_by_number(number):
            raise DuplicateCaseNumber(number)
        updated = existing.model_copy(update={**changes, "updated_at": dt.datetime.utcnow()})
        self.cases[case_id] = updated
        return updated

    def delete_case(self, case_id):
        return self.cases.pop(case_id, None) is not None

    # evidence

    def create_evidence(self, data):
        self._require_case(data.case_id)
        evidence_id = self._next_id("evidence")
        now = dt.datetime.utcnow()
        item = schemas.Evidence(id=evidence_id, created_at=now, updated_at=now, **data.model_dump())
        self.evidence_items[evidence_id] = item
        return item

    def get_evidence(self, evidence_id):
        return self.evidence_items.get(evidence_id)

    def get_case_evidence(self, case_id):
        return [e for e in self.evidence_items.values() if e.case_id == case_id]

    def update_evidence(self, evidence_id, data):
        existing = self.evidence_items.get(evidence_id)
        if not existing:
            return None
        changes = data.changes()
        if "case_id" in changes:
            self._require_case(changes["case_id"])
        updated = existing.model_copy(update={**changes, "updated_at": dt.datetime.utcnow()})
        self.evidence_items[evidence_id] = updated
        return updated

    def delete_evidence(self, evidence_id):
        return self.evidence_items.pop(evidence_id, None) is not None

    # witnesses

    def create_witness(self, data):
        self._require_case(data.case_id)
        witness_id = self._next_id("witnesses")
        now = dt.datetime.utcnow()
        witness = schemas.Witness(id=witness_id, created_at=now, updated_at=now, **data.model_dump())
        self.witnesses[witness_id] = witness
        return witness

    def get_witness(self, witness_id):
        return self.witnesses.get(witness_id)

    def get_case_witnesses(self, case_id):
        return [w for w in self.witnesses.values() if w.case_id == case_id]

    def update_witness(self, witness_id, data):
        existing = self.witnesses.get(witness_id)
        if not existing:
            return None
        changes = data.changes()
        if "case_id" in changes:
            self._require_case(changes["case_id"])
        updated = existing.model_copy(update={**changes, "updated_at": dt.datetime.utcnow()})
        self.witnesses[witness_id] = updated
        return updated

    def delete_witness(self, witness_id):
        return self.witnesses.pop(witness_id, None) is not None

    # activity log

    def log_activity(self, data):
        self._require_case(data.case_id)
        activity_id = self._next_id("activity_logs")
        entry = schemas.ActivityLog(id=activity_id, created_at=dt.datetime.utcnow(), **data.model_dump())
        self.activity_logs[activity_id] = entry
        return entry

    def get_case_activities(self, case_id):
        return _newest_first(a for a in self.activity_logs.values() if a.case_id == case_id)

    def get_recent_activities(self, limit=10):
        return _newest_first(self.activity_logs.values())[:limit]

    # analyses

    def save_analysis(self, data):
        self._require_case(data.case_id)
        analysis_id = self._next_id("ai_analyses")
        analysis = schemas.AiAnalysis(id=analysis_id, created_at=dt.datetime.utcnow(), **data.model_dump())
        self.ai_analyses[analysis_id] = analysis
        return analysis

    def get_case_analyses(self, case_id):
        return _newest_first(a for a in self.ai_analyses.values() if a.case_id == case_id)


def _row_dict(row) -> dict:
    return {c.name: getattr(row, c.name) for c in row.__table__.columns}


class DatabaseStorage(Storage):
    def __init__(self, session_factory=None):
        if session_factory is None:
            from .db import SessionLocal
            session_factory = SessionLocal
        self.session_factory = session_factory

    def _get(self, model, schema, row_id):
        session = self.session_factory()
        try:
            row = session.get(model, row_id)
            return schema.model_validate(_row_dict(row)) if row else None
        finally:
            session.close()

    def _list(self, query_fn, schema):
        session = self.session_factory()
        try:
            return [schema.model_validate(_row_dict(r)) for r in query_fn(session).all()]
        finally:
            session.close()

    def _insert(self, row, schema):
        session = self.session_factory()
        try:
            session.add(row)
            session.commit()
            session.refresh(row)
            return schema.model_validate(_row_dict(row))
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def _update(self, model, schema, row_id, changes, touch=True):
        session = self.session_factory()
        try:
            row = session.get(model, row_id)
            if not row:
                return None
            for key, value in changes.items():
                setattr(row, key, value)
            if touch:
                row.updated_at = dt.datetime.utcnow()
            session.commit()
            session.refresh(row)
            return schema.model_validate(_row_dict(row))
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def _delete(self, model, row_id):
        session = self.session_factory()
        try:
            row = session.get(model, row_id)
            if not row:
                return False
            session.delete(row)
            session.commit()
            return True
        finally:
            session.close()

    def _require_case(self, case_id):
        if self.get_case(case_id) is None:
            raise CaseReferenceError(case_id)

    # users

    def get_user(self, user_id):
        return self._get(models.User, schemas.User, user_id)

    def get_user_by_username(self, username):
        rows = self._list(
            lambda s: s.query(models.User).filter(models.User.username == username),
            schemas.User,
        )
        return rows[0] if rows else None

    def create_user(self, data):
        values = data.model_dump()
        values["password"] = hasher.hash(data.password)
        return self._insert(models.User(**values), schemas.User)

    def verify_password(self, username, password):
        session = self.session_factory()
        try:
            row = session.query(models.User).filter(models.User.username == username).first()
            return bool(row) and hasher.verify(password, row.password)
        finally:
            session.close()

    # cases

    def create_case(self, data):
        if self.get_case_by_number(data.case_number):
            raise DuplicateCaseNumber(data.case_number)
        now = dt.datetime.utcnow()
        row = models.Case(created_at=now, updated_at=now, **data.model_dump())
        try:
            return self._insert(row, schemas.Case)
        except IntegrityError as exc:
            logger.warning("Case insert rejected: %s", exc.orig)
            raise DuplicateCaseNumber(data.case_number) from exc

    def get_case(self, case_id):
        return self._get(models.Case, schemas.Case, case_id)

    def get_case_by_number(self, case_number):
        rows = self._list(
            lambda s: s.query(models.Case).filter(models.Case.case_number == case_number),
            schemas.Case,
        )
        return rows[0] if rows else None

    def get_all_cases(self):
        return self._list(lambda s: s.query(models.Case).order_by(models.Case.id.asc()), schemas.Case)

    def update_case(self, case_id, data):
        changes = data.changes()
        number = changes.get("case_number")
        if number:
            clash = self.get_case_by_number(number)
            if clash and clash.id != case_id:
                raise DuplicateCaseNumber(number)
        try:
            return self._update(models.Case, schemas.Case, case_id, changes)
        except IntegrityError as exc:
            logger.warning("Case update rejected: %s", exc.orig)
            if number:
                raise DuplicateCaseNumber(number) from exc
            raise StorageError("Case update violates a table constraint") from exc

    def delete_case(self, case_id):
        return self._delete(models.Case, case_id)

    # evidence

    def create_evidence(self, data):
        self._require_case(data.case_id)
        now = dt.datetime.utcnow()
        return self._insert(models.Evidence(created_at=now, updated_at=now, **data.model_dump()), schemas.Evidence)

    def get_evidence(self, evidence_id):
        return self._get(models.Evidence, schemas.Evidence, evidence_id)

    def get_case_evidence(self, case_id):
        return self._list(
            lambda s: s.query(models.Evidence).filter(models.Evidence.case_id == case_id).order_by(models.Evidence.id.asc()),
            schemas.Evidence,
        )

    def update_evidence(self, evidence_id, data):
        changes = data.changes()
        if "case_id" in changes:
            self._require_case(changes["case_id"])
        return self._update(models.Evidence, schemas.Evidence, evidence_id, changes)

    def delete_evidence(self, evidence_id):
        return self._delete(models.Evidence, evidence_id)

    # witnesses

    def create_witness(self, data):
        self._require_case(data.case_id)
        now = dt.datetime.utcnow()
        return self._insert(models.Witness(created_at=now, updated_at=now, **data.model_dump()), schemas.Witness)

    def get_witness(self, witness_id):
        return self._get(models.Witness, schemas.Witness, witness_id)

    def get_case_witnesses(self, case_id):
        return self._list(
            lambda s: s.query(models.Witness).filter(models.Witness.case_id == case_id).order_by(models.Witness.id.asc()),
            schemas.Witness,
        )

    def update_witness(self, witness_id, data):
        changes = data.changes()
        if "case_id" in changes:
            self._require_case(changes["case_id"])
        return self._update(models.Witness, schemas.Witness, witness_id, changes)

    def delete_witness(self, witness_id):
        return self._delete(models.Witness, witness_id)

    # activity log

    def log_activity(self, data):
        self._require_case(data.case_id)
        row = models.ActivityLog(created_at=dt.datetime.utcnow(), **data.model_dump())
        return self._insert(row, schemas.ActivityLog)

    def get_case_activities(self, case_id):
        return self._list(
            lambda s: (
                s.query(models.ActivityLog)
                .filter(models.ActivityLog.case_id == case_id)
                .order_by(models.ActivityLog.created_at.desc(), models.ActivityLog.id.desc())
            ),
            schemas.ActivityLog,
        )

    def get_recent_activities(self, limit=10):
        return self._list(
            lambda s: (
                s.query(models.ActivityLog)
                .order_by(models.ActivityLog.created_at.desc(), models.ActivityLog.id.desc())
                .limit(limit)
            ),
            schemas.ActivityLog,
        )

    # analyses

    def save_analysis(self, data):
        self._require_case(data.case_id)
        row = models.AiAnalysis(created_at=dt.datetime.utcnow(), **data.model_dump())
        return self._insert(row, schemas.AiAnalysis)

    def get_case_analyses(self, case_id):
        return self._list(
            lambda s: (
                s.query(models.AiAnalysis)
                .filter(models.AiAnalysis.case_id == case_id)
                .order_by(models.AiAnalysis.created_at.desc(), models.AiAnalysis.id.desc())
            ),
            schemas.AiAnalysis,
        )
