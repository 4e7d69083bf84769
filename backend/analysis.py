"""AI investigative analyses.

Each generator turns a case, its evidence and its witnesses into a prompt,
asks the completion endpoint for JSON, and validates the reply against the
analysis type's schema. Failures of any kind are logged and answered with
the type's static fallback so the caller always gets a usable structure.
"""
from __future__ import annotations

import copy
import json
import logging
from typing import Dict, List, Tuple

from . import llm
from .config import USE_MOCK_LLM
from .metrics import metrics, timed
from .prompts import PROMPTS
from .schemas import ANALYSIS_MODELS, ANALYSIS_TYPES, Case, Evidence, Witness

logger = logging.getLogger(__name__)

FALLBACKS: Dict[str, dict] = {
    "case_summary": {
        "summary": "AI analysis is currently unavailable. Review the case file manually and try again later.",
        "recommendations": [],
    },
    "timeline": {"criticalWindows": []},
    "relationships": {"keyRelationships": []},
    "lead_generation": {"leads": []},
}


def _records_json(records) -> str:
    return json.dumps([r.to_json() for r in records], indent=2, ensure_ascii=False)


def build_prompt(analysis_type: str, case: Case, evidence: List[Evidence], witnesses: List[Witness]) -> str:
    return PROMPTS[analysis_type].format(
        case=json.dumps(case.to_json(), indent=2, ensure_ascii=False),
        evidence=_records_json(evidence),
        witnesses=_records_json(witnesses),
    )


def _generate_mock_analysis(analysis_type, case, evidence, witnesses):
    """Deterministic analysis built from the records, for offline dev."""
    if analysis_type == "case_summary":
        summary = (
            f"{case.title} ({case.case_number}) is a {case.crime_type or 'pending classification'} case "
            f"at {case.location or 'an unrecorded location'}. The file holds {len(evidence)} evidence "
            f"item(s) and {len(witnesses)} witness(es)."
        )
        pending = [w for w in witnesses if w.interview_status != "completed"]
        recommendations = [f"Complete interview with {w.full_name}" for w in pending]
        recommendations += [
            f"Follow up on evidence {e.evidence_number} ({e.status})"
            for e in evidence if e.status in ("collected", "in_lab", "under_review")
        ]
        return {"summary": summary, "recommendations": recommendations}
    if analysis_type == "timeline":
        windows = []
        if case.crime_date:
            at = case.crime_date.strftime("%H:%M")
            windows.append({"timeStart": at, "timeEnd": at, "description": "Reported time of the incident"})
        for e in evidence:
            if e.collected_at:
                at = e.collected_at.strftime("%H:%M")
                windows.append({"timeStart": at, "timeEnd": at, "description": f"Evidence {e.evidence_number} collected"})
        return {"criticalWindows": windows}
    if analysis_type == "relationships":
        return {
            "keyRelationships": [
                {
                    "name": w.full_name,
                    "relationship": w.relationship or "unknown",
                    "conflictType": "none recorded",
                }
                for w in witnesses
            ]
        }
    return {
        "leads": [f"Re-examine evidence {e.evidence_number}: {e.description or e.type}" for e in evidence]
        + [f"Verify statement of {w.full_name}" for w in witnesses if w.reliability in ("low", "under_assessment", "unknown")]
    }


def _generate(analysis_type, case, evidence, witnesses) -> Tuple[dict, bool]:
    if USE_MOCK_LLM:
        return _generate_mock_analysis(analysis_type, case, evidence, witnesses), False

    try:
        prompt = build_prompt(analysis_type, case, evidence, witnesses)
        raw = llm.complete_json(prompt)
        parsed = ANALYSIS_MODELS[analysis_type].model_validate(raw)
        return parsed.to_json(), False
    except Exception as e:
        logger.warning("AI %s analysis failed for case %s, using fallback: %s", analysis_type, case.id, e)
        return copy.deepcopy(FALLBACKS[analysis_type]), True


@timed
def run_analysis(analysis_type: str, case: Case, evidence: List[Evidence], witnesses: List[Witness]) -> dict:
    if analysis_type not in ANALYSIS_TYPES:
        raise ValueError(f"Unknown analysis type: {analysis_type}")
    content, fallback = _generate(analysis_type, case, evidence, witnesses)
    metrics.record_analysis(fallback)
    return content


def generate_case_summary(case, evidence, witnesses):
    return run_analysis("case_summary", case, evidence, witnesses)


def analyze_timeline(case, evidence, witnesses):
    return run_analysis("timeline", case, evidence, witnesses)


def analyze_relationships(case, evidence, witnesses):
    return run_analysis("relationships", case, evidence, witnesses)


def generate_leads(case, evidence, witnesses):
    return run_analysis("lead_generation", case, evidence, witnesses)
