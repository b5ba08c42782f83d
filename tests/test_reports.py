import clinic_state
import odontogram
import reports
from constants import DEFAULT_CLINIC_PROFILE


def _signed_patient():
    form = clinic_state.empty_anamnesis_form()
    form["personal"].update(name="Rita Souza", age="41", cns="700000000000000")
    form["complaint"] = "Sangramento gengival"
    teeth = odontogram.update_tooth([], 46, "occlusal", "caries")
    patient = clinic_state.build_patient_from_anamnesis(
        form, teeth, ["Coagulograma"], "**Gengivite** generalizada", "Dr. Silva"
    )
    patient["visits"] = [{"id": "v1", "date": "10/01/2030 09:00:00", "procedure": "Raspagem", "notes": ""}]
    return patient


def test_patient_report_sections_and_hash():
    patient = _signed_patient()
    html = reports.patient_report_html(patient, DEFAULT_CLINIC_PROFILE)
    assert "Rita Souza" in html
    assert "700000000000000" in html
    assert "<strong>Gengivite</strong>" in html
    assert "Raspagem" in html
    assert "Coagulograma" in html
    assert "46: Oclusal/Incisal=Cárie" in html
    assert f"HASH: {patient['audit']['signature_hash']}" in html
    assert DEFAULT_CLINIC_PROFILE["cro"] in html


def test_patient_report_respects_options():
    patient = _signed_patient()
    html = reports.patient_report_html(
        patient, DEFAULT_CLINIC_PROFILE, {"include_visits": False, "include_odontogram": False}
    )
    assert "Raspagem" not in html
    assert "Odontograma" not in html
    assert "Sangramento gengival" in html


def test_unsigned_report_has_no_hash():
    patient = clinic_state.make_patient(name="Sem Audit", cns="")
    html = reports.patient_report_html(patient, DEFAULT_CLINIC_PROFILE)
    assert "HASH:" not in html
    assert "Não informado" in html


def test_patient_names_are_escaped():
    patient = clinic_state.make_patient(name="<script>x</script>")
    html = reports.patient_report_html(patient, DEFAULT_CLINIC_PROFILE)
    assert "<script>x</script>" not in html
    assert "&lt;script&gt;" in html


def test_agenda_html_lists_statuses():
    appointments = [
        {"time": "09:00", "patient_name": "Ana Silva", "procedure": "Restauração 46", "status": "waiting"},
        {"time": "10:00", "patient_name": "Carlos", "procedure": "Exodontia", "status": "scheduled"},
    ]
    html = reports.agenda_html(appointments, "segunda-feira, 10 de janeiro", DEFAULT_CLINIC_PROFILE)
    assert "Na Recepção" in html
    assert "Agendado" in html
    assert "segunda-feira, 10 de janeiro" in html


def test_empty_agenda():
    html = reports.agenda_html([], "hoje", DEFAULT_CLINIC_PROFILE)
    assert "Sem atendimentos agendados." in html


def test_print_wrapper_is_a_full_document():
    document = reports.print_wrapper("<p>corpo</p>", "Agenda Diária")
    assert document.startswith("<!DOCTYPE html>")
    assert "window.print()" in document
    assert "<title>Agenda Diária</title>" in document
    assert "<p>corpo</p>" in document


def test_model_output_html_is_not_rendered():
    patient = clinic_state.make_patient(
        name="Rita", diagnosis="<script>alert(1)</script> **Gengivite**",
        images=[{"id": "i1", "date": "hoje", "image_url": "data:image/png;base64,AA",
                 "analysis": "<img src=x onerror=alert(1)>"}],
    )
    html = reports.patient_report_html(patient, DEFAULT_CLINIC_PROFILE)
    assert "<script>alert(1)</script>" not in html
    assert "<img src=x onerror" not in html
    assert "&lt;script&gt;" in html
    assert "<strong>Gengivite</strong>" in html
