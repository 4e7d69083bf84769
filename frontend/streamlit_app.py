import datetime as dt
import json
import os
import requests
import streamlit as st

from forms import clean

API_BASE = os.getenv("API_BASE", "http://localhost:8000")

CASE_STATUSES = ["active", "pending", "closed"]
PRIORITIES = ["high", "medium", "low"]
EVIDENCE_STATUSES = ["collected", "in_lab", "processed", "under_review", "archived"]
RELIABILITY = ["high", "medium", "low", "under_assessment", "unknown"]
INTERVIEW_STATUSES = ["pending", "scheduled", "completed"]

st.set_page_config(page_title="Case Management", layout="wide")


def api_get(path: str, default=None):
    try:
        resp = requests.get(f"{API_BASE}{path}", timeout=30)
        resp.raise_for_status()
        return resp.json()
    except Exception:
        return default


def api_send(method: str, path: str, payload: dict):
    resp = requests.request(method, f"{API_BASE}{path}", json=payload, timeout=300)
    if resp.ok:
        return resp.json(), None
    try:
        body = resp.json()
        return None, f"{body.get('message')}: {body.get('error', '')}".rstrip(": ")
    except ValueError:
        return None, resp.text


def fetch_cases():
    return api_get("/api/cases", [])


def latest_analysis(analyses, analysis_type):
    return next((a["content"] for a in analyses if a["analysisType"] == analysis_type), None)


def label(value):
    return (value or "n/a").replace("_", " ").title()


st.sidebar.header("Case Controls")
refresh = st.sidebar.button("Refresh cases")

if refresh or "cases" not in st.session_state:
    st.session_state["cases"] = fetch_cases()

cases = st.session_state.get("cases", [])
case_labels = {c["id"]: f"{c['caseNumber']} - {c['title']}" for c in cases}
selected_case_id = st.sidebar.selectbox(
    "Select case",
    options=[None] + list(case_labels),
    format_func=lambda cid: "" if cid is None else case_labels[cid],
)


tab_dashboard, tab_case, tab_new, tab_evidence, tab_witnesses, tab_ai = st.tabs([
    "Dashboard",
    "Case Detail",
    "New Case",
    "Evidence Vault",
    "Witnesses",
    "AI Analytics",
])


with tab_dashboard:
    st.markdown("### Dashboard")
    cols = st.columns(len(CASE_STATUSES))
    for col, status in zip(cols, CASE_STATUSES):
        col.metric(label=f"{label(status)} cases", value=sum(1 for c in cases if c.get("status") == status))

    st.subheader("Cases")
    if cases:
        st.dataframe(
            [
                {
                    "Case #": c["caseNumber"],
                    "Title": c["title"],
                    "Status": label(c.get("status")),
                    "Priority": label(c.get("priority")),
                    "Crime Type": c.get("crimeType"),
                    "Updated": c.get("updatedAt"),
                }
                for c in cases
            ],
            use_container_width=True,
        )
    else:
        st.info("No cases yet.")

    st.subheader("Recent Activity")
    for activity in api_get("/api/activities/recent?limit=10", []):
        st.markdown(
            f"**{label(activity['activityType'])}** ({case_labels.get(activity['caseId'], activity['caseId'])}) "
            f"{activity['createdAt']}  \n{activity['description']}"
        )


with tab_case:
    st.markdown("### Case Detail")
    if selected_case_id:
        case = api_get(f"/api/cases/{selected_case_id}", {})
        lead = api_get(f"/api/users/{case['leadDetectiveId']}") if case.get("leadDetectiveId") else None
        st.markdown(
            f"**Status:** {label(case.get('status'))} | **Priority:** {label(case.get('priority'))} | "
            f"**Lead:** {lead['firstName'] + ' ' + lead['lastName'] if lead else 'Unassigned'}"
        )
        st.write(case.get("description") or "")
        st.caption(f"{case.get('crimeType') or ''} | {case.get('location') or ''} | {case.get('crimeDate') or ''}")

        with st.expander("Update status / priority"):
            with st.form("case_update"):
                status = st.selectbox("Status", CASE_STATUSES, index=CASE_STATUSES.index(case.get("status", "active")))
                priority = st.selectbox("Priority", PRIORITIES, index=PRIORITIES.index(case.get("priority") or "medium"))
                if st.form_submit_button("Save"):
                    _, err = api_send("PUT", f"/api/cases/{selected_case_id}", {"status": status, "priority": priority})
                    if err:
                        st.error(err)
                    else:
                        st.session_state.pop("cases", None)
                        st.rerun()

        st.subheader("Evidence")
        st.dataframe(api_get(f"/api/cases/{selected_case_id}/evidence", []), use_container_width=True)
        st.subheader("Witnesses")
        st.dataframe(api_get(f"/api/cases/{selected_case_id}/witnesses", []), use_container_width=True)

        st.subheader("Activity Log")
        for ev in api_get(f"/api/cases/{selected_case_id}/activities", []):
            st.markdown(f"**{label(ev['activityType'])}** {ev['createdAt']}  \n{ev['description']}")

        pdf = requests.get(f"{API_BASE}/api/cases/{selected_case_id}/export/pdf", timeout=60)
        if pdf.ok:
            st.download_button("Download PDF", data=pdf.content, file_name=f"{case.get('caseNumber')}.pdf")
        st.download_button(
            "Download JSON",
            data=json.dumps(api_get(f"/api/cases/{selected_case_id}/export/json", {}), indent=2),
            file_name=f"{case.get('caseNumber')}.json",
        )
    else:
        st.info("Select a case from the sidebar to view its details.")


with tab_new:
    st.markdown("### Create Case")
    with st.form("create_case"):
        case_number = st.text_input("Case number")
        title = st.text_input("Title")
        description = st.text_area("Description")
        location = st.text_input("Location")
        crime_type = st.text_input("Crime type")
        crime_date = st.date_input("Crime date", value=None)
        status = st.selectbox("Status", CASE_STATUSES)
        priority = st.selectbox("Priority", PRIORITIES, index=1)
        if st.form_submit_button("Create case"):
            payload = clean({
                "caseNumber": case_number,
                "title": title,
                "description": description,
                "location": location,
                "crimeType": crime_type,
                "crimeDate": dt.datetime.combine(crime_date, dt.time()).isoformat() if crime_date else None,
                "status": status,
                "priority": priority,
            })
            created, err = api_send("POST", "/api/cases", payload)
            if err:
                st.error(err)
            else:
                st.success(f"Case created: {created['caseNumber']} - refresh to view")
                st.session_state.pop("cases", None)


with tab_evidence:
    st.markdown("### Evidence Vault")
    if selected_case_id:
        items = api_get(f"/api/cases/{selected_case_id}/evidence", [])
        existing = {e["id"]: e for e in items}
        edit_id = st.selectbox(
            "Evidence item",
            options=[None] + list(existing),
            format_func=lambda eid: "New evidence item" if eid is None else existing[eid]["evidenceNumber"],
        )
        current = existing.get(edit_id, {})
        with st.form("evidence_form"):
            evidence_number = st.text_input("Evidence number", value=current.get("evidenceNumber", ""))
            ev_type = st.text_input("Type", value=current.get("type", ""))
            description = st.text_area("Description", value=current.get("description") or "")
            location = st.text_input("Location found", value=current.get("location") or "")
            ev_status = st.selectbox(
                "Status", EVIDENCE_STATUSES, index=EVIDENCE_STATUSES.index(current.get("status") or "collected")
            )
            collected_by = st.text_input("Collected by", value=current.get("collectedBy") or "")
            notes = st.text_area("Notes", value=current.get("notes") or "")
            if st.form_submit_button("Save evidence"):
                payload = clean({
                    "caseId": selected_case_id,
                    "evidenceNumber": evidence_number,
                    "type": ev_type,
                    "description": description,
                    "location": location,
                    "status": ev_status,
                    "collectedBy": collected_by,
                    "notes": notes,
                }, updating=edit_id is not None)
                if edit_id is None:
                    payload["collectedAt"] = dt.datetime.utcnow().isoformat()
                    _, err = api_send("POST", "/api/evidence", payload)
                else:
                    _, err = api_send("PUT", f"/api/evidence/{edit_id}", payload)
                st.error(err) if err else st.rerun()
    else:
        st.info("Select a case to manage its evidence.")


with tab_witnesses:
    st.markdown("### Witness Management")
    if selected_case_id:
        people = api_get(f"/api/cases/{selected_case_id}/witnesses", [])
        existing = {w["id"]: w for w in people}
        edit_id = st.selectbox(
            "Witness",
            options=[None] + list(existing),
            format_func=lambda wid: "New witness" if wid is None else f"{existing[wid]['firstName']} {existing[wid]['lastName']}",
        )
        current = existing.get(edit_id, {})
        with st.form("witness_form"):
            first_name = st.text_input("First name", value=current.get("firstName", ""))
            last_name = st.text_input("Last name", value=current.get("lastName", ""))
            phone = st.text_input("Phone", value=current.get("contactPhone") or "")
            email = st.text_input("Email", value=current.get("contactEmail") or "")
            relationship = st.text_input("Relationship", value=current.get("relationship") or "")
            reliability = st.selectbox(
                "Reliability", RELIABILITY, index=RELIABILITY.index(current.get("reliability") or "unknown")
            )
            interview = st.selectbox(
                "Interview status",
                INTERVIEW_STATUSES,
                index=INTERVIEW_STATUSES.index(current.get("interviewStatus") or "pending"),
            )
            notes = st.text_area("Notes", value=current.get("notes") or "")
            if st.form_submit_button("Save witness"):
                payload = clean({
                    "caseId": selected_case_id,
                    "firstName": first_name,
                    "lastName": last_name,
                    "contactPhone": phone,
                    "contactEmail": email,
                    "relationship": relationship,
                    "reliability": reliability,
                    "interviewStatus": interview,
                    "notes": notes,
                }, updating=edit_id is not None)
                if edit_id is None:
                    _, err = api_send("POST", "/api/witnesses", payload)
                else:
                    _, err = api_send("PUT", f"/api/witnesses/{edit_id}", payload)
                st.error(err) if err else st.rerun()
    else:
        st.info("Select a case to manage its witnesses.")


with tab_ai:
    st.markdown("### AI Analytics")
    if selected_case_id:
        analysis_type = st.selectbox(
            "Analysis", ["all", "case_summary", "timeline", "relationships", "lead_generation"], format_func=label
        )
        if st.button("Run analysis"):
            with st.spinner("Generating analysis..."):
                _, err = api_send("POST", f"/api/cases/{selected_case_id}/analyze", {"analysisType": analysis_type})
            if err:
                st.error(err)

        analyses = api_get(f"/api/cases/{selected_case_id}/analysis", [])

        summary = latest_analysis(analyses, "case_summary")
        st.subheader("Case Summary")
        if summary:
            st.write(summary.get("summary"))
            for rec in summary.get("recommendations", []):
                st.markdown(f"- {rec}")
        else:
            st.info("No summary generated yet.")

        col_timeline, col_rel, col_leads = st.columns(3)
        with col_timeline:
            st.subheader("Timeline")
            for window in (latest_analysis(analyses, "timeline") or {}).get("criticalWindows", []):
                st.markdown(f"**{window['timeStart']} - {window['timeEnd']}** {window['description']}")
        with col_rel:
            st.subheader("Relationships")
            for rel in (latest_analysis(analyses, "relationships") or {}).get("keyRelationships", []):
                st.markdown(f"**{rel['name']}** ({rel['relationship']}): {rel['conflictType']}")
        with col_leads:
            st.subheader("Leads")
            for lead in (latest_analysis(analyses, "lead_generation") or {}).get("leads", []):
                st.markdown(f"- {lead}")
    else:
        st.info("Select a case to view AI analysis.")
