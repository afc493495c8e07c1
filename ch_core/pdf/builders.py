# ch_core/pdf/builders.py
"""Per-form document builders and download filenames."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from django.utils import timezone

from ch_core.pdf.rendering import PdfDocument, Section, fmt_date, fmt_value, generated_stamp, rows

# ----------------------------
# Helpers
# ----------------------------
NOT_RECORDED = "No details recorded"


def dashed(name: Any, default: str = "resident") -> str:
    """'Mary Ann Smith' -> 'Mary-Ann-Smith'; blank -> default."""
    text = str(name or "").strip()
    return re.sub(r"\s+", "-", text) if text else default


def _text_section(heading: str, value: Any, empty: str = "None recorded") -> Section:
    text = str(value).strip() if value not in (None, "") else empty
    return Section(heading, paragraphs=[text])


def _state_comments(data: dict, label: str, key: str, state_suffix: str = "State") -> list:
    return [label, fmt_value(data.get(f"{key}{state_suffix}")), fmt_value(data.get(f"{key}Comments"))]


# ----------------------------
# Admission
# ----------------------------
def build_admission(data: dict) -> PdfDocument:
    name = f"{data.get('firstName') or ''} {data.get('lastName') or ''}".strip()
    return PdfDocument(
        title="Admission Assessment Form",
        subtitle=f"{name} · Room {fmt_value(data.get('bedroomNumber'))} · Submitted {fmt_date(data.get('submittedAt'))}",
        sections=[
            Section(
                "Resident Information",
                fields=rows(
                    data,
                    [
                        ("First name", "firstName"),
                        ("Last name", "lastName"),
                        ("NHS number", "NHSNumber"),
                        ("Bedroom", "bedroomNumber"),
                        ("Gender", "gender"),
                        ("Telephone", "telephoneNumber"),
                        ("Ethnicity", "ethnicity"),
                        ("Religion", "religion"),
                        ("Admitted from", "admittedFrom"),
                    ],
                )
                + [("Date of birth", fmt_date(data.get("dateOfBirth")))],
            ),
            Section(
                "Next of Kin",
                fields=rows(
                    data,
                    [
                        ("First name", "kinFirstName"),
                        ("Last name", "kinLastName"),
                        ("Relationship", "kinRelationship"),
                        ("Telephone", "kinTelephoneNumber"),
                        ("Email", "kinEmail"),
                        ("Address", "kinAddress"),
                    ],
                ),
            ),
            Section(
                "Emergency Contact",
                fields=rows(
                    data,
                    [
                        ("Name", "emergencyContactName"),
                        ("Relationship", "emergencyContactRelationship"),
                        ("Telephone", "emergencyContactTelephoneNumber"),
                        ("Mobile", "emergencyContactPhoneNumber"),
                    ],
                ),
            ),
            Section(
                "Professional Contacts",
                fields=rows(
                    data,
                    [
                        ("Care manager", "careManagerName"),
                        ("Job role", "careManagerJobRole"),
                        ("Relationship", "careManagerRelationship"),
                        ("Telephone", "careManagerTelephoneNumber"),
                        ("Mobile", "careManagerPhoneNumber"),
                        ("Address", "careManagerAddress"),
                        ("GP", "GPName"),
                        ("GP telephone", "GPPhoneNumber"),
                        ("GP address", "GPAddress"),
                    ],
                ),
            ),
            Section(
                "Medical Information",
                fields=rows(
                    data,
                    [
                        ("Known allergies", "allergies"),
                        ("Medical history", "medicalHistory"),
                        ("Prescribed medications", "prescribedMedications"),
                        ("Consent, capacity & rights", "consentCapacityRights"),
                        ("Additional medication information", "medication"),
                    ],
                ),
            ),
            Section(
                "Care Assessments",
                fields=rows(
                    data,
                    [
                        ("Skin integrity equipment", "skinIntegrityEquipment"),
                        ("Existing wounds", "skinIntegrityWounds"),
                        ("Bedtime routine", "bedtimeRoutine"),
                        ("Current infection", "currentInfection"),
                        ("Antibiotics prescribed", "antibioticsPrescribed"),
                        ("Prescribed breathing equipment", "prescribedBreathing"),
                    ],
                ),
            ),
            Section(
                "Mobility Assessment",
                fields=rows(
                    data,
                    [
                        ("Mobility independence", "mobilityIndependent"),
                        ("Assistance required", "assistanceRequired"),
                        ("Equipment required", "equipmentRequired"),
                    ],
                ),
            ),
            Section(
                "Nutrition Information",
                fields=rows(
                    data,
                    [
                        ("Weight", "weight"),
                        ("Height", "height"),
                        ("IDDSI food", "iddsiFood"),
                        ("IDDSI fluid", "iddsiFluid"),
                        ("Diet type", "dietType"),
                        ("Choking risk", "chockingRisk"),
                        ("Nutritional supplements", "nutritionalSupplements"),
                        ("Nutritional assistance required", "nutritionalAssistanceRequired"),
                        ("Additional comments", "additionalComments"),
                    ],
                ),
            ),
            Section(
                "Personal Care",
                fields=rows(data, [("Continence", "continence"), ("Hygiene", "hygiene")]),
            ),
        ],
    )


def admission_filename(data: dict) -> str:
    return f"admission-assessment-{data.get('firstName')}-{data.get('lastName')}.pdf"


# ----------------------------
# DNACPR
# ----------------------------
def _discussion(data: dict, heading: str, flag: str, date_key: str, comments_key: str) -> Section:
    return Section(
        heading,
        fields=[
            ("Discussed", fmt_value(data.get(flag))),
            ("Date", fmt_date(data.get(date_key))),
            ("Comments", fmt_value(data.get(comments_key))),
        ],
    )


def build_dnacpr(data: dict) -> PdfDocument:
    return PdfDocument(
        title="Do Not Attempt Cardiopulmonary Resuscitation (DNACPR)",
        subtitle=f"{fmt_value(data.get('residentName'))} · Room {fmt_value(data.get('bedroomNumber'))}",
        sections=[
            Section(
                "DNACPR Decision",
                fields=[
                    ("Resident", fmt_value(data.get("residentName"))),
                    ("Date of birth", fmt_date(data.get("dateOfBirth"))),
                    ("DNACPR in place", fmt_value(data.get("dnacpr"))),
                    ("Decision date", fmt_date(data.get("date"))),
                    ("Reason", fmt_value(data.get("reason"))),
                    ("Comments", fmt_value(data.get("dnacprComments"))),
                ],
            ),
            _discussion(data, "Discussed with Resident", "discussedResident", "discussedResidentDate", "discussedResidentComments"),
            _discussion(data, "Discussed with Relatives", "discussedRelatives", "discussedRelativeDate", "discussedRelativesComments"),
            _discussion(data, "Discussed with Next of Kin", "discussedNOKs", "discussedNOKsDate", "discussedNOKsComments"),
            _text_section("Additional Comments", data.get("comments")),
            Section(
                "Signatures and Authorization",
                fields=[
                    ("GP signature", fmt_value(data.get("gpSignature"))),
                    ("GP date", fmt_date(data.get("gpDate"))),
                    ("Resident / next of kin signature", fmt_value(data.get("residentNokSignature"))),
                    ("Registered nurse signature", fmt_value(data.get("registeredNurseSignature"))),
                ],
            ),
        ],
        notice=(
            "Critical notice: this DNACPR decision applies only to cardiopulmonary resuscitation. "
            "All other appropriate care and treatment must continue."
        ),
    )


def dnacpr_filename(data: dict) -> str:
    return f"dnacpr-{dashed(data.get('residentName'))}.pdf"


# ----------------------------
# PEEP
# ----------------------------
def build_peep(data: dict) -> PdfDocument:
    steps = data.get("steps") or []
    step_rows = [["Step", "Name", "Description"]]
    for i, step in enumerate(steps, start=1):
        step = step if isinstance(step, dict) else {"name": str(step)}
        step_rows.append([str(i), fmt_value(step.get("name")), fmt_value(step.get("description"))])

    return PdfDocument(
        title="Personal Emergency Evacuation Plan (PEEP)",
        subtitle=f"{fmt_value(data.get('residentName'))} · Room {fmt_value(data.get('bedroomNumber'))}",
        sections=[
            Section(
                "Assessment Summary",
                fields=[
                    ("Resident", fmt_value(data.get("residentName"))),
                    ("Date of birth", fmt_date(data.get("residentDateOfBirth"))),
                    ("Understands evacuation", fmt_value(data.get("understands"))),
                    ("Staff required", fmt_value(data.get("staffNeeded"))),
                    ("Equipment needed", fmt_value(data.get("equipmentNeeded"))),
                    ("Communication needs", fmt_value(data.get("communicationNeeds"))),
                ],
            ),
            Section(
                "Evacuation Procedure",
                table=step_rows if len(step_rows) > 1 else None,
                paragraphs=[] if len(step_rows) > 1 else ["No evacuation steps recorded"],
            ),
            Section(
                "Safety Considerations",
                table=[
                    ["Consideration", "Answer", "Comments"],
                    ["Oxygen in use", fmt_value(data.get("oxigenInUse")), fmt_value(data.get("oxigenComments"))],
                    ["Resident smokes", fmt_value(data.get("residentSmokes")), fmt_value(data.get("residentSmokesComments"))],
                    [
                        "Furniture fire retardant",
                        fmt_value(data.get("furnitureFireRetardant")),
                        fmt_value(data.get("furnitureFireRetardantComments")),
                    ],
                ],
            ),
            Section(
                "Form Completion",
                fields=[
                    ("Completed by", fmt_value(data.get("completedBy"))),
                    ("Signature", fmt_value(data.get("completedBySignature"))),
                    ("Date", fmt_date(data.get("date"))),
                ],
            ),
        ],
        notice="Emergency procedure notice: keep this plan with the resident's care file and review it after any change in mobility.",
    )


def peep_filename(data: dict) -> str:
    return f"peep-{dashed(data.get('residentName'))}.pdf"


# ----------------------------
# Skin integrity (Braden scale)
# ----------------------------
BRADEN_CATEGORIES = (
    ("sensoryPerception", "Sensory perception"),
    ("moisture", "Moisture"),
    ("activity", "Activity"),
    ("mobility", "Mobility"),
    ("nutrition", "Nutrition"),
    ("frictionShear", "Friction & shear"),
)

BRADEN_DESCRIPTIONS: Dict[str, Dict[int, str]] = {
    "sensoryPerception": {
        1: "Completely Limited - Unresponsive to painful stimuli due to diminished consciousness or sedation",
        2: "Very Limited - Responds only to painful stimuli, cannot communicate discomfort",
        3: "Slightly Limited - Responds to verbal commands but cannot always communicate discomfort",
        4: "No Impairment - Responds to verbal commands, has no sensory deficit",
    },
    "moisture": {
        1: "Constantly Moist - Skin is kept moist almost constantly by perspiration, urine etc.",
        2: "Very Moist - Skin is often but not always moist, linen must be changed at least once a shift",
        3: "Occasionally Moist - Skin is occasionally moist requiring an extra linen change approximately once a day",
        4: "Rarely Moist - Skin is usually dry, linen only requires changing at routine intervals",
    },
    "activity": {
        1: "Bedfast - Confined to bed",
        2: "Chairfast - Ability to walk severely limited or non-existent",
        3: "Walks Occasionally - Walks occasionally during day but for very short distances",
        4: "Walks Frequently - Walks outside room at least twice a day and inside room at least once every 2 hours",
    },
    "mobility": {
        1: "Completely Immobile - Does not make even slight changes in body or extremity position",
        2: "Very Limited - Makes occasional slight changes in body or extremity position",
        3: "Slightly Limited - Makes frequent though slight changes in body or extremity position",
        4: "No Limitation - Makes major and frequent changes in position without assistance",
    },
    "nutrition": {
        1: "Very Poor - Never eats a complete meal, rarely eats more than 1/3 of any food offered",
        2: "Probably Inadequate - Rarely eats a complete meal and generally eats only about 1/2 of any food offered",
        3: "Adequate - Eats over half of most meals, eats a total of 4 servings of protein daily",
        4: "Excellent - Eats most of every meal, never refuses a meal",
    },
    "frictionShear": {
        1: "Problem - Requires moderate to maximum assistance in moving",
        2: "Potential Problem - Moves feebly or requires minimum assistance",
        3: "No Apparent Problem - Moves in bed and in chair independently",
    },
}


def _score(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def braden_total(data: dict) -> int:
    return sum(_score(data.get(key)) for key, _ in BRADEN_CATEGORIES)


def braden_risk(total: int) -> tuple[str, str]:
    """(level, guidance). 12 and below is high risk."""
    if total <= 12:
        return "High Risk", "Implement preventive measures immediately"
    if total <= 14:
        return "Moderate Risk", "Implement preventive measures"
    return "Low Risk", "Continue routine care"


def build_skin_integrity(data: dict) -> PdfDocument:
    total = braden_total(data)
    level, guidance = braden_risk(total)

    score_rows = [["Category", "Score", "Description"]]
    for key, label in BRADEN_CATEGORIES:
        score = _score(data.get(key))
        score_rows.append([label, str(score), BRADEN_DESCRIPTIONS[key].get(score, "")])
    score_rows.append(["Total Score", str(total), ""])

    return PdfDocument(
        title="Skin Integrity Assessment - Braden Scale",
        subtitle=f"{fmt_value(data.get('residentName'))} · Room {fmt_value(data.get('bedroomNumber'))}",
        sections=[
            Section(
                "Risk Assessment",
                fields=[("Total score", str(total)), ("Risk level", level), ("Guidance", guidance)],
            ),
            Section("Scores", table=score_rows),
            Section(
                "Assessment Details",
                fields=[
                    ("Completed by", fmt_value(data.get("completedBy") or data.get("createdBy"))),
                    ("Date", fmt_date(data.get("date") or data.get("createdAt"))),
                ],
            ),
        ],
    )


def skin_integrity_filename(data: dict) -> str:
    return f"skin-integrity-assessment-{dashed(data.get('residentName'))}.pdf"


# ----------------------------
# Infection prevention
# ----------------------------
def build_infection_prevention(data: dict) -> PdfDocument:
    return PdfDocument(
        title="Infection Prevention Assessment",
        subtitle=f"{fmt_value(data.get('name'))} · {fmt_value(data.get('assessmentType'))}",
        sections=[
            Section(
                "Person's Details",
                fields=rows(
                    data,
                    [
                        ("Name", "name"),
                        ("Home address", "homeAddress"),
                        ("Information provided by", "informationProvidedBy"),
                        ("Admitted from", "admittedFrom"),
                        ("Consultant / GP", "consultantGP"),
                        ("Reason for admission", "reasonForAdmission"),
                    ],
                )
                + [
                    ("Date of birth", fmt_date(data.get("dateOfBirth"))),
                    ("Date of admission", fmt_date(data.get("dateOfAdmission"))),
                ],
            ),
            Section(
                "Acute Respiratory Illness (ARI)",
                fields=rows(
                    data,
                    [
                        ("New continuous cough", "newContinuousCough"),
                        ("Worsening cough", "worseningCough"),
                        ("Temperature above 37.8°C", "temperatureHigh"),
                        ("Other respiratory symptoms", "otherRespiratorySymptoms"),
                        ("Tested for COVID-19", "testedForCovid"),
                        ("Tested for influenza A", "testedForInfluenzaA"),
                        ("Tested for influenza B", "testedForInfluenzaB"),
                        ("Respiratory screen", "testedForRespiratoryScreen"),
                        ("Influenza B", "influenzaB"),
                    ],
                ),
            ),
            Section(
                "Exposure",
                fields=rows(
                    data,
                    [
                        ("Exposure to patients with COVID-19", "exposureToPatientsCovid"),
                        ("Exposure to staff with COVID-19", "exposureToStaffCovid"),
                        ("Isolation required", "isolationRequired"),
                        ("Isolation details", "isolationDetails"),
                        ("Further treatment required", "furtherTreatmentRequired"),
                    ],
                ),
            ),
            Section(
                "Diarrhea and Vomiting",
                fields=rows(
                    data,
                    [
                        ("Current symptoms", "diarrheaVomitingCurrentSymptoms"),
                        ("Contact with others", "diarrheaVomitingContactWithOthers"),
                        ("Family history", "diarrheaVomitingFamilyHistory"),
                    ],
                ),
            ),
            Section(
                "Clostridium Difficile",
                fields=rows(
                    data,
                    [
                        ("Active", "clostridiumActive"),
                        ("History", "clostridiumHistory"),
                        ("Stool count", "clostridiumStoolCount"),
                        ("Result", "clostridiumResult"),
                        ("Treatment received", "clostridiumTreatmentReceived"),
                        ("Treatment complete", "clostridiumTreatmentComplete"),
                    ],
                )
                + [("Last positive specimen", fmt_date(data.get("clostridiumLastPositiveSpecimenDate")))],
            ),
            Section(
                "MRSA / MSSA",
                fields=rows(
                    data,
                    [
                        ("Colonised", "mrsaMssaColonised"),
                        ("Infected", "mrsaMssaInfected"),
                        ("Sites positive", "mrsaMssaSitesPositive"),
                        ("Treatment received", "mrsaMssaTreatmentReceived"),
                        ("Treatment complete", "mrsaMssaTreatmentComplete"),
                        ("Length of course", "mrsaMssaLengthOfCourse"),
                        ("Follow-up required", "mrsaMssaFollowUpRequired"),
                        ("Details", "mrsaMssaDetails"),
                    ],
                )
                + [
                    ("Last positive swab", fmt_date(data.get("mrsaMssaLastPositiveSwabDate"))),
                    ("Date commenced", fmt_date(data.get("mrsaMssaDateCommenced"))),
                ],
            ),
            Section(
                "Multi-drug Resistance",
                fields=rows(
                    data,
                    [
                        ("ESBL", "esbl"),
                        ("VRE / GRE", "vreGre"),
                        ("CPE", "cpe"),
                        ("Other", "otherMultiDrugResistance"),
                        ("Relevant information", "relevantInformationMultiDrugResistance"),
                    ],
                ),
            ),
            Section(
                "Other Information",
                fields=[
                    ("Aware of infection", fmt_value(data.get("awarenessOfInfection"))),
                    ("Last flu vaccination", fmt_date(data.get("lastFluVaccinationDate"))),
                ],
            ),
            Section(
                "Completion",
                fields=[
                    ("Completed by", fmt_value(data.get("completedBy"))),
                    ("Job role", fmt_value(data.get("jobRole"))),
                    ("Signature", fmt_value(data.get("signature"))),
                    ("Completion date", fmt_date(data.get("completionDate"))),
                ],
            ),
        ],
    )


def infection_prevention_filename(data: dict) -> str:
    return f"infection-prevention-assessment-{data.get('assessmentId')}.pdf"


# ----------------------------
# Moving and handling
# ----------------------------
MOVING_HANDLING_FACTORS = (
    ("Deafness", "deafness"),
    ("Blindness", "blindness"),
    ("Unpredictable behaviour", "unpredictableBehaviour"),
    ("Uncooperative behaviour", "uncooperativeBehaviour"),
    ("Distressed reaction", "distressedReaction"),
    ("Disorientated", "disorientated"),
    ("Unconscious", "unconscious"),
    ("Unbalanced", "unbalance"),
    ("Spasms", "spasms"),
    ("Stiffness", "stiffness"),
    ("Catheters", "catheters"),
    ("Incontinence", "incontinence"),
    ("Other", "other"),
)


def build_moving_handling(data: dict) -> PdfDocument:
    factors = [["Factor", "State", "Comments"]]
    factors += [_state_comments(data, label, key) for label, key in MOVING_HANDLING_FACTORS]
    factors.append(["Localised pain", fmt_value(data.get("localisedPain")), fmt_value(data.get("localisedPainComments"))])

    return PdfDocument(
        title="Moving and Handling Assessment",
        subtitle=f"{fmt_value(data.get('residentName'))} · Assessment date {fmt_value(data.get('completionDate'))}",
        sections=[
            Section(
                "Resident Details",
                fields=[
                    ("Resident", fmt_value(data.get("residentName"))),
                    ("Date of birth", fmt_date(data.get("dateOfBirth"))),
                    ("Bedroom", fmt_value(data.get("bedroomNumber"))),
                    ("Weight", fmt_value(data.get("weight"))),
                    ("Height", fmt_value(data.get("height"))),
                ],
            ),
            Section(
                "Mobility",
                fields=rows(
                    data,
                    [
                        ("History of falls", "historyOfFalls"),
                        ("Independent mobility", "independentMobility"),
                        ("Can weight bear", "canWeightBear"),
                        ("Upper left limb", "limbUpperLeft"),
                        ("Upper right limb", "limbUpperRight"),
                        ("Lower left limb", "limbLowerLeft"),
                        ("Lower right limb", "limbLowerRight"),
                        ("Equipment used", "equipmentUsed"),
                        ("Staff needed", "needsRiskStaff"),
                    ],
                ),
            ),
            Section("Risk Factors", table=factors),
            Section(
                "Completion",
                fields=rows(
                    data,
                    [
                        ("Completed by", "completedBy"),
                        ("Job role", "jobRole"),
                        ("Signature", "signature"),
                        ("Date", "completionDate"),
                    ],
                ),
            ),
        ],
    )


def moving_handling_filename(data: dict) -> str:
    today = timezone.now().date().isoformat()
    return f"moving-handling-assessment-{dashed(data.get('residentName'))}-{today}.pdf"


# ----------------------------
# Pre-admission and other stored forms
# ----------------------------
def _humanize(key: str) -> str:
    words = re.sub(r"(?<=[a-z0-9])(?=[A-Z])", " ", str(key)).replace("_", " ").replace("-", " ")
    return words[:1].upper() + words[1:]


def build_generic(title: str) -> Callable[[dict], PdfDocument]:
    """Key/value rendering for forms without a dedicated layout."""

    def _build(data: dict) -> PdfDocument:
        fields = [
            (_humanize(key), fmt_value(value))
            for key, value in data.items()
            if not str(key).startswith("_") and key not in ("formId", "assessmentId")
        ]
        return PdfDocument(title=title, sections=[Section("Details", fields=fields or [("Details", NOT_RECORDED)])])

    return _build


def pre_admission_filename(data: dict) -> str:
    return f"pre-admission-form-{data.get('formId')}.pdf"


# ----------------------------
# NHS incident report
# ----------------------------
def build_nhs_report(data: dict) -> PdfDocument:
    incident = data.get("incident") or {}
    trust = data.get("trustReport") or {}
    resident = data.get("resident") or {}
    is_bhsct = bool(data.get("isBHSCT"))

    patient_name = f"{resident.get('firstName') or ''} {resident.get('lastName') or ''}".strip()
    incident_types = incident.get("incidentTypes") or []

    sections = [
        Section(
            "Trust Information",
            fields=[
                ("NHS Trust", fmt_value(trust.get("trustName"))),
                ("Report type", fmt_value(trust.get("reportType"))),
                ("Report generated", generated_stamp()),
                ("Generated by", fmt_value(trust.get("createdByName"))),
            ],
        ),
        Section(
            "Patient Information",
            fields=[
                ("Patient name", fmt_value(patient_name)),
                ("NHS health number", fmt_value(resident.get("nhsHealthNumber"))),
                ("Date of birth", fmt_date(resident.get("dateOfBirth"))),
            ],
        ),
        Section(
            "Incident Details" if is_bhsct else "Incident Information",
            fields=[
                ("Incident reference", fmt_value(incident.get("id") or incident.get("_id"))),
                ("Date of incident", fmt_value(incident.get("date"))),
                ("Time of incident", fmt_value(incident.get("time"))),
                ("Location", fmt_value(incident.get("location"))),
                ("Incident type(s)", fmt_value(incident_types)),
                ("Severity level", fmt_value(incident.get("incidentLevel"))),
            ],
        ),
        _text_section("Incident Description" if is_bhsct else "Description of Incident", incident.get("description")),
        _text_section("Immediate Action Taken", incident.get("immediateAction")),
        _text_section("Witnesses", incident.get("witnesses")),
        _text_section("Additional Trust Notes", trust.get("additionalNotes")),
    ]

    return PdfDocument(
        title="Patient Safety Incident Report",
        subtitle="Belfast Health and Social Care Trust" if is_bhsct else fmt_value(trust.get("trustName")),
        sections=sections,
        notice="This is an official incident report. Handle in line with trust information governance policy.",
    )


def nhs_report_filename(data: dict) -> str:
    incident = data.get("incident") or {}
    trust_type = "bhsct" if data.get("isBHSCT") else "nhs"
    incident_id = str(incident.get("id") or incident.get("_id") or "")
    return f"{trust_type}-report-{incident.get('date')}-{incident_id[-6:]}.pdf"


# ----------------------------
# Audit completion
# ----------------------------
def build_audit_completion(data: dict) -> PdfDocument:
    items = data.get("items") or []
    item_rows = [["Item", "Status", "Notes", "Date"]]
    for item in items:
        item_rows.append(
            [
                fmt_value(item.get("itemName")),
                fmt_value(item.get("status")),
                fmt_value(item.get("notes")),
                fmt_date(item.get("date")),
            ]
        )

    fields = [
        ("Template", fmt_value(data.get("templateName"))),
        ("Domain", fmt_value(data.get("domain"))),
        ("Audited by", fmt_value(data.get("auditedBy"))),
        ("Completed", fmt_date(data.get("completedAt"))),
        ("Next audit due", fmt_date(data.get("nextAuditDue"))),
        ("Version", fmt_value(data.get("version"))),
    ]
    if data.get("residentName"):
        fields.insert(1, ("Resident", fmt_value(data.get("residentName"))))
        fields.insert(2, ("Room", fmt_value(data.get("roomNumber"))))

    return PdfDocument(
        title=f"Audit Report - {fmt_value(data.get('templateName'))}",
        subtitle=fmt_value(data.get("residentName")) if data.get("residentName") else "",
        sections=[
            Section("Audit Summary", fields=fields),
            Section(
                "Audit Items",
                table=item_rows if len(item_rows) > 1 else None,
                paragraphs=[] if len(item_rows) > 1 else ["No items recorded"],
            ),
            _text_section("Overall Notes", data.get("overallNotes")),
        ],
    )


def audit_completion_filename(data: dict) -> str:
    parts = [dashed(data.get("templateName"), "audit").lower()]
    if data.get("residentName"):
        parts.append(dashed(data.get("residentName")))
    parts.append(str(data.get("completionId")))
    return "audit-" + "-".join(parts) + ".pdf"


# ----------------------------
# Registry
# ----------------------------
@dataclass(frozen=True)
class PdfForm:
    name: str
    build: Callable[[dict], PdfDocument]
    filename: Callable[[dict], str]


FORMS: Dict[str, PdfForm] = {
    "admission": PdfForm("admission", build_admission, admission_filename),
    "dnacpr": PdfForm("dnacpr", build_dnacpr, dnacpr_filename),
    "peep": PdfForm("peep", build_peep, peep_filename),
    "skin-integrity": PdfForm("skin-integrity", build_skin_integrity, skin_integrity_filename),
    "infection-prevention": PdfForm("infection-prevention", build_infection_prevention, infection_prevention_filename),
    "moving-handling": PdfForm("moving-handling", build_moving_handling, moving_handling_filename),
    "pre-admission": PdfForm("pre-admission", build_generic("Pre-Admission Form"), pre_admission_filename),
    "nhs-report": PdfForm("nhs-report", build_nhs_report, nhs_report_filename),
    "audit-completion": PdfForm("audit-completion", build_audit_completion, audit_completion_filename),
}


def form_for(name: str) -> Optional[PdfForm]:
    form = FORMS.get(name)
    if form is not None:
        return form
    # Stored forms with no dedicated layout still render.
    title = _humanize(name).title()
    return PdfForm(name, build_generic(title), lambda data: f"{name}-{data.get('assessmentId')}.pdf")
