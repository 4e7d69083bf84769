import logging

from .config import DEFAULT_USER_ID
from .metrics import metrics
from .schemas import ActivityLogCreate

logger = logging.getLogger(__name__)


def log_activity(storage, case_id, activity_type, description, user_id=None):
    entry = storage.log_activity(ActivityLogCreate(
        case_id=case_id,
        user_id=user_id or DEFAULT_USER_ID,
        activity_type=activity_type,
        description=description,
    ))
    metrics.record_activity()
    logger.debug("case %s: %s - %s", case_id, activity_type, description)
    return entry


def log_case_event(storage, case, verb):
    return log_activity(
        storage,
        case.id,
        f"case_{verb}",
        f"Case {case.case_number} ({case.title}) was {verb}.",
        user_id=case.lead_detective_id,
    )


def log_evidence_event(storage, item, activity_type, phrase):
    return log_activity(
        storage,
        item.case_id,
        activity_type,
        f"Evidence {item.evidence_number} ({item.type}) was {phrase}.",
    )


def log_witness_event(storage, witness, activity_type, phrase):
    return log_activity(
        storage,
        witness.case_id,
        activity_type,
        f"Witness {witness.full_name} was {phrase}.",
    )


def get_activity_timeline(storage, case_id):
    return [a.to_json() for a in storage.get_case_activities(case_id)]
