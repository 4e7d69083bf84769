"""Prompt templates for the investigative analyses."""

SYSTEM_PROMPT = (
    "You are an experienced investigative analyst assisting police detectives. "
    "Base every statement on the case file you are given, avoid speculation that the "
    "records do not support, and always answer with a single JSON object."
)

CASE_CONTEXT = """CASE FILE
Case:
{case}

Evidence:
{evidence}

Witnesses:
{witnesses}
"""

CASE_SUMMARY_PROMPT = CASE_CONTEXT + """
Write an investigative summary of this case: what is known, how the evidence and
witness statements fit together, and where the gaps are. Then list concrete next
investigative steps.

Respond with JSON in exactly this shape:
{{"summary": "<one or two paragraphs>", "recommendations": ["<step>", "..."]}}
"""

TIMELINE_PROMPT = CASE_CONTEXT + """
Reconstruct the critical time windows of this case from the crime date, the
evidence collection records and the witness notes. Use 24h HH:MM times.

Respond with JSON in exactly this shape:
{{"criticalWindows": [{{"timeStart": "HH:MM", "timeEnd": "HH:MM", "description": "<what happened>"}}]}}
"""

RELATIONSHIPS_PROMPT = CASE_CONTEXT + """
Identify the people connected to this case, their relationship to the victim or
the incident, and any conflict or motive the records suggest.

Respond with JSON in exactly this shape:
{{"keyRelationships": [{{"name": "<person>", "relationship": "<relationship>", "conflictType": "<conflict or motive>"}}]}}
"""

LEAD_GENERATION_PROMPT = CASE_CONTEXT + """
Propose investigative leads that have not yet been followed up, most promising
first.

Respond with JSON in exactly this shape:
{{"leads": ["<lead>", "..."]}}
"""

PROMPTS = {
    "case_summary": CASE_SUMMARY_PROMPT,
    "timeline": TIMELINE_PROMPT,
    "relationships": RELATIONSHIPS_PROMPT,
    "lead_generation": LEAD_GENERATION_PROMPT,
}
