# ch_core/pdf/tests/test_builders.py
from datetime import date

import pytest

from ch_core.pdf.builders import (
    FORMS,
    braden_risk,
    braden_total,
    dashed,
    form_for,
    nhs_report_filename,
)
from ch_core.pdf.rendering import PdfDocument, Section, fmt_date, fmt_value, render_document


@pytest.mark.parametrize(
    "total, level",
    [(6, "High Risk"), (12, "High Risk"), (13, "Moderate Risk"), (14, "Moderate Risk"), (15, "Low Risk"), (23, "Low Risk")],
)
def test_braden_risk_bands(total, level):
    assert braden_risk(total)[0] == level


def test_braden_total_ignores_junk():
    data = {
        "sensoryPerception": "3",
        "moisture": 2,
        "activity": None,
        "mobility": "x",
        "nutrition": 4,
        "frictionShear": 1,
    }
    assert braden_total(data) == 10


def test_value_and_date_formatting():
    assert fmt_value(None) == "Not specified"
    assert fmt_value("") == "Not specified"
    assert fmt_value(True) == "Yes"
    assert fmt_value(["a", "b"]) == "a, b"

    assert fmt_date(date(2024, 3, 5)) == "05/03/2024"
    assert fmt_date("2024-03-05") == "05/03/2024"
    assert fmt_date("2024-03-05T10:15:00Z") == "05/03/2024"
    assert fmt_date(1709596800000) == "05/03/2024"
    assert fmt_date(None) == "Not specified"


def test_filenames():
    assert dashed("Mary Ann Smith") == "Mary-Ann-Smith"
    assert dashed("") == "resident"

    skin = FORMS["skin-integrity"].filename({"residentName": "Mary Jones"})
    assert skin == "skin-integrity-assessment-Mary-Jones.pdf"

    admission = FORMS["admission"].filename({"firstName": "Mary", "lastName": "Jones"})
    assert admission == "admission-assessment-Mary-Jones.pdf"

    nhs = nhs_report_filename({"isBHSCT": True, "incident": {"id": "abcdef123456", "date": "2024-03-05"}})
    assert nhs == "bhsct-report-2024-03-05-123456.pdf"


def test_unknown_stored_form_falls_back_to_generic_layout():
    form = form_for("pain-assessment")
    doc = form.build({"painScore": 4, "notes": "Knee"})
    assert doc.title == "Pain Assessment"
    assert form.filename({"assessmentId": "abc"}) == "pain-assessment-abc.pdf"


@pytest.mark.parametrize("name", sorted(FORMS))
def test_every_form_renders_with_empty_data(name):
    form = FORMS[name]
    data = {"incident": {}, "trustReport": {}} if name == "nhs-report" else {}
    content = render_document(form.build(data))
    assert content.startswith(b"%PDF")


def test_render_escapes_markup():
    doc = PdfDocument(
        title="Check <b>escaping</b> & more",
        sections=[Section("Notes", paragraphs=["5 < 6 & 7 > 3"], fields=[("A&B", "<none>")])],
    )
    assert render_document(doc).startswith(b"%PDF")
