"""Demo data: the Riverside Homicide case file."""
import datetime as dt
import logging

from .schemas import (
    ActivityLogCreate,
    AiAnalysisCreate,
    CaseCreate,
    EvidenceCreate,
    UserCreate,
    WitnessCreate,
)

logger = logging.getLogger(__name__)


def seed_storage(storage):
    logger.info("Seeding storage with sample data...")

    user = storage.create_user(UserCreate(
        username="detective",
        password="password123",
        first_name="Sarah",
        last_name="Johnson",
        badge_number="DT-4952",
        role="detective",
    ))

    case = storage.create_case(CaseCreate(
        case_number="RH-2023-0142",
        title="Riverside Homicide",
        description=(
            "Male victim (Michael Reynolds, 34) found deceased in Riverside Park on May 14, 2023, "
            "at approximately 23:15. Cause of death appears to be blunt force trauma to the head."
        ),
        location="Riverside Park, North Section",
        crime_type="Homicide - Blunt Force",
        crime_date=dt.datetime(2023, 5, 14, 23, 15),
        status="active",
        priority="high",
        lead_detective_id=user.id,
    ))

    for item in [
        dict(
            evidence_number="RH-2023-0142-E001",
            type="Physical",
            description="Bloodied Rock found near the victim's body. Suspected to be the murder weapon.",
            location="3m north of victim",
            status="in_lab",
            collected_by="Ofc. M. Rodriguez",
            collected_at=dt.datetime(2023, 5, 15),
            notes="Sent for DNA analysis and fingerprint processing.",
        ),
        dict(
            evidence_number="RH-2023-0142-E002",
            type="Photo",
            description="Complete set of 43 photos documenting the crime scene, victim position, and surrounding area.",
            location="Crime scene",
            status="processed",
            collected_by="Det. K. Wallace",
            collected_at=dt.datetime(2023, 5, 15),
            notes="Photos include wide shots and close-ups of the crime scene.",
        ),
        dict(
            evidence_number="RH-2023-0142-E003",
            type="Document",
            description="Victim's Business Records from Reynolds Tech Consulting for the past 6 months.",
            location="Business Office",
            status="under_review",
            collected_by="Det. Sarah Johnson",
            collected_at=dt.datetime(2023, 5, 16),
            notes="Includes client contracts, payment records, and expense reports.",
        ),
    ]:
        storage.create_evidence(EvidenceCreate(case_id=case.id, **item))

    for person in [
        dict(
            first_name="Jennifer",
            last_name="Baker",
            contact_phone="(555) 123-4567",
            contact_email="jbaker@example.com",
            relationship="Park visitor, first to discover body",
            reliability="high",
            interview_status="completed",
            notes=(
                "Completed 2 interview sessions. Witness reports seeing a tall man in dark clothing "
                "near the scene around 22:45."
            ),
        ),
        dict(
            first_name="Robert",
            last_name="Chen",
            contact_phone="(555) 789-1234",
            contact_email="rchen@example.com",
            relationship="Park maintenance worker",
            reliability="medium",
            interview_status="completed",
            notes="Completed 1 interview session. Was working in the south section of the park until 22:00.",
        ),
        dict(
            first_name="David",
            last_name="Reynolds",
            contact_phone="(555) 456-7890",
            contact_email="dreynolds@example.com",
            relationship="Victim's brother and business partner",
            reliability="under_assessment",
            interview_status="scheduled",
            notes="Interview scheduled for May 20, 2023. Financial records show potential business dispute.",
        ),
    ]:
        storage.create_witness(WitnessCreate(case_id=case.id, **person))

    for activity_type, description in [
        ("witness_added",
         "Added David Reynolds (victim's brother) to witness list and scheduled interview for May 20, 2023."),
        ("evidence_updated",
         "Updated status of Evidence #RH-2023-0142-E001 (Bloodied Rock) to 'In Lab'. "
         "Preliminary testing shows blood type match to victim."),
        ("evidence_added",
         "Added Evidence #RH-2023-0142-E003 (Victim's Business Records) to the case file. "
         "Retrieved from victim's office with consent from next of kin."),
        ("witness_interview",
         "Completed interview with Jennifer Baker (first witness). Witness reports seeing a "
         "'tall man in dark clothing' near the scene around 22:45. Full transcript added to case file."),
    ]:
        storage.log_activity(ActivityLogCreate(
            case_id=case.id,
            user_id=user.id,
            activity_type=activity_type,
            description=description,
        ))

    analyses = {
        "case_summary": {
            "summary": (
                "The investigation into Michael Reynolds' homicide reveals signs of a premeditated attack "
                "potentially related to his business dealings. The cause of death (blunt force trauma) and "
                "the evidence collected suggest the perpetrator may have personal knowledge of the victim's "
                "routine. Witness statements corroborate unusual activity in the park that evening, but "
                "descriptions of individuals seen in the area are inconsistent. Financial records show "
                "significant tension with his brother/business partner over a recent contract worth $500,000."
            ),
            "recommendations": [
                "Conduct in-depth interview with David Reynolds with focus on financial disputes",
                "Obtain search warrant for James Wilson's residence and vehicle",
                "Cross-reference cell tower data with witness timeline statements",
                "Expand CCTV collection to include routes between victim's office and the park",
            ],
        },
        "timeline": {
            "criticalWindows": [
                {"timeStart": "21:00", "timeEnd": "21:45", "description": "Victim last seen leaving office"},
                {"timeStart": "22:30", "timeEnd": "23:00", "description": "Unusual activity in park reported"},
            ],
        },
        "relationships": {
            "keyRelationships": [
                {"name": "David Reynolds", "relationship": "brother", "conflictType": "financial dispute"},
                {"name": "James Wilson", "relationship": "client", "conflictType": "recent contract termination"},
            ],
        },
        "lead_generation": {
            "leads": [
                "Review victim's recent contract negotiations",
                "Check CCTV from downtown office building",
            ],
        },
    }
    for analysis_type, content in analyses.items():
        storage.save_analysis(AiAnalysisCreate(case_id=case.id, analysis_type=analysis_type, content=content))

    logger.info("Seeded case %s with sample evidence, witnesses, activity and analyses", case.case_number)
    return case
