from datetime import date

import pytest

import clinic_state
from constants import (
    ADMIN, DOCTOR, RECEPTIONIST, DASHBOARD, AGENDA, ANAMNESIS, PATIENT_RECORDS, SETTINGS, LAB_FIELDS,
)


def test_init_state_seeds_defaults(state):
    assert state["app_state"] == "landing"
    assert state["current_user"] is None
    assert state["current_page"] == DASHBOARD
    assert [u["role"] for u in state["users"]] == [ADMIN, RECEPTIONIST]
    assert len(state["patients"]) == 3
    assert state["appointments"][0]["date"] == clinic_state.today_iso()
    assert state["notifications"] == []


def test_init_state_keeps_existing_values(state):
    state["current_page"] = AGENDA
    state["patients"] = []
    clinic_state.init_state(state)
    assert state["current_page"] == AGENDA
    assert state["patients"] == []


def test_pins_are_stored_hashed(state):
    admin = clinic_state.get_user(state, "1")
    assert "pin" not in admin
    assert admin["pin_hash"] == clinic_state.hash_pin("1234")


def test_login_routes_by_role(state):
    success, _ = clinic_state.login(state, "2", "0000")
    assert success
    assert state["app_state"] == "app"
    assert state["current_page"] == AGENDA

    clinic_state.logout(state)
    assert state["current_user"] is None
    assert state["app_state"] == "landing"

    success, _ = clinic_state.login(state, "1", "1234")
    assert success
    assert state["current_page"] == DASHBOARD


def test_login_rejects_wrong_pin(state):
    success, message = clinic_state.login(state, "1", "9999")
    assert not success
    assert message == "PIN incorreto. Tente novamente."
    assert state["current_user"] is None


def test_setup_admin_only_on_first_run(state):
    success, _ = clinic_state.setup_admin(state, "Dr. Novo", "1111")
    assert not success

    state["users"] = []
    success, _ = clinic_state.setup_admin(state, "Dr. Novo", "12")
    assert not success
    success, _ = clinic_state.setup_admin(state, "Dr. Novo", "1111")
    assert success
    assert state["current_user"]["role"] == ADMIN
    assert state["app_state"] == "app"


def test_create_and_delete_user(admin_state):
    success, _ = clinic_state.create_user(admin_state, "Dra. Ana", DOCTOR, "ana@c.com", "abcd")
    assert not success
    success, _ = clinic_state.create_user(admin_state, "Dra. Ana", ADMIN, "ana@c.com", "1234")
    assert not success

    success, message = clinic_state.create_user(admin_state, "Dra. Ana", DOCTOR, "ana@c.com", "4321")
    assert success
    assert "Dra. Ana" in message
    user = admin_state["users"][-1]
    assert user["avatar"].startswith("https://ui-avatars.com/")

    success, _ = clinic_state.delete_user(admin_state, user["id"])
    assert success
    assert clinic_state.get_user(admin_state, user["id"]) is None


def test_admin_cannot_be_deleted(admin_state):
    success, _ = clinic_state.delete_user(admin_state, "1")
    assert not success
    assert clinic_state.get_user(admin_state, "1") is not None


def test_update_clinic_profile_merges(state):
    clinic_state.update_clinic_profile(state, {"clinic_name": "Sorriso"})
    assert state["clinic_profile"]["clinic_name"] == "Sorriso"
    assert state["clinic_profile"]["cro"] == "CRO/SP 12345"


def test_visible_views_by_role():
    assert {v["id"] for v in clinic_state.visible_views(RECEPTIONIST)} == {AGENDA}
    assert SETTINGS in {v["id"] for v in clinic_state.visible_views(ADMIN)}


@pytest.mark.parametrize("requested, expected", [
    (DASHBOARD, AGENDA),
    (PATIENT_RECORDS, AGENDA),
    (ANAMNESIS, ANAMNESIS),
    (AGENDA, AGENDA),
])
def test_receptionist_view_is_restricted(requested, expected):
    assert clinic_state.resolve_view(RECEPTIONIST, requested) == expected


def test_other_roles_reach_requested_view():
    assert clinic_state.resolve_view(DOCTOR, PATIENT_RECORDS) == PATIENT_RECORDS


def test_notifications_are_newest_first_and_limited(admin_state):
    for i in range(5):
        clinic_state.add_notification(admin_state, f"T{i}", "msg")
    visible = clinic_state.visible_notifications(admin_state)
    assert [n["title"] for n in visible] == ["T4", "T3", "T2"]

    clinic_state.dismiss_notification(admin_state, visible[0]["id"])
    assert clinic_state.visible_notifications(admin_state)[0]["title"] == "T3"


def test_notifications_hidden_from_non_admin(reception_state):
    clinic_state.add_notification(reception_state, "T", "msg")
    assert clinic_state.visible_notifications(reception_state) == []


def test_search_patient_is_case_insensitive(state):
    assert clinic_state.search_patient(state["patients"], "carlos")["name"] == "Carlos Oliveira"
    assert clinic_state.search_patient(state["patients"], "") is None
    assert clinic_state.search_patient(state["patients"], "zzz") is None


def test_receptionist_registration_notifies_admin(reception_state):
    patient = clinic_state.make_patient(name="Paulo")
    message = clinic_state.add_patient(reception_state, patient)
    assert "notificado" in message
    assert reception_state["patients"][0]["name"] == "Paulo"
    assert reception_state["current_page"] == AGENDA
    assert reception_state["notifications"][0]["title"] == "Novo Paciente Cadastrado"


def test_admin_registration_opens_records(admin_state):
    clinic_state.add_patient(admin_state, clinic_state.make_patient(name="Paulo"))
    assert admin_state["current_page"] == PATIENT_RECORDS
    assert admin_state["notifications"] == []


def test_add_visit(admin_state):
    success, _ = clinic_state.add_visit(admin_state, "1", "", "")
    assert not success
    success, _ = clinic_state.add_visit(admin_state, "1", "Restauração 46", "Resina A2")
    assert success
    patient = clinic_state.get_patient(admin_state, "1")
    assert patient["visits"][0]["procedure"] == "Restauração 46"
    assert patient["last_visit"] == clinic_state.today_br()
    assert clinic_state.add_visit(admin_state, "missing", "X")[0] is False


def test_save_image_by_doctor_notifies_admin(doctor_state):
    assert clinic_state.save_image_to_record(doctor_state, "2", "data:image/png;base64,AAAA", "Laudo")
    patient = clinic_state.get_patient(doctor_state, "2")
    assert patient["images"][0]["analysis"] == "Laudo"
    assert doctor_state["notifications"][0]["title"] == "Exame Adicionado"


def test_save_lab_to_record(admin_state):
    data = clinic_state.empty_lab_data()
    assert set(data) == set(LAB_FIELDS)
    data["glucose"] = "130"
    assert clinic_state.save_lab_to_record(admin_state, "2", data, "Risco glicêmico")
    lab = clinic_state.get_patient(admin_state, "2")["lab_analyses"][0]
    assert lab["raw_values"]["glucose"] == "130"
    assert lab["summary"] == "Risco glicêmico"
    assert not clinic_state.save_lab_to_record(admin_state, "nope", data, "")


def test_pending_exams_and_completion(admin_state):
    form = clinic_state.empty_anamnesis_form()
    form["personal"]["name"] = "Rita"
    patient = clinic_state.build_patient_from_anamnesis(
        form, [], ["Hemograma Completo", "RX Panorâmica"], "", "Dr. Silva"
    )
    clinic_state.add_patient(admin_state, patient)

    pending = clinic_state.pending_exams(patient)
    assert clinic_state.is_pending(pending, "hemograma")
    assert not clinic_state.is_pending(pending, "coagulograma")
    assert not clinic_state.is_pending(pending, None)

    exam_id = patient["exam_requests"][0]["id"]
    assert clinic_state.complete_exam_request(admin_state, patient["id"], exam_id)
    stored = clinic_state.get_patient(admin_state, patient["id"])
    assert clinic_state.pending_exams(stored) == ["rx panorâmica"]


def test_build_history():
    sus_info = {"allergies": "Dipirona", "medications": "", "hypertension": True, "diabetes": True}
    assert clinic_state.build_history(sus_info) == (
        "Alergias: Dipirona. Meds: Nega. Comorbidades: Hipertensão Diabetes. Outros: Nega."
    )


def test_build_patient_from_anamnesis_signs_record():
    form = clinic_state.empty_anamnesis_form()
    form["personal"].update(name="Rita", age="41", cns="123", occupation="Professora")
    form["sus_info"]["smoker"] = True
    form["complaint"] = "Sangramento gengival"
    patient = clinic_state.build_patient_from_anamnesis(form, [], ["Coagulograma"], "Gengivite", "Dr. Silva")

    assert patient["age"] == 41
    assert patient["complaint"] == "Sangramento gengival"
    assert patient["diagnosis"] == "Gengivite"
    assert patient["sus_info"]["smoker"] is True
    assert patient["exam_requests"][0]["status"] == "requested"
    audit = patient["audit"]
    assert audit["created_by"] == "Dr. Silva"
    assert len(audit["signature_hash"]) == 64


def test_parse_age_tolerates_bad_input():
    assert clinic_state.parse_age("x") == 0
    assert clinic_state.parse_age("") == 0
    assert clinic_state.parse_age("7") == 7


def test_touch_audit_only_on_signed_records():
    unsigned = clinic_state.make_patient(name="Sem Audit")
    assert clinic_state.touch_audit(unsigned, "Dr. X") is unsigned

    signed = {**unsigned, "audit": clinic_state.generate_audit("Dr. Silva", {})}
    touched = clinic_state.touch_audit(signed, "Dra. Ana")
    assert touched["audit"]["last_modified_by"] == "Dra. Ana"
    assert touched["audit"]["created_by"] == "Dr. Silva"
    assert signed["audit"]["last_modified_by"] == "Dr. Silva"


def test_appointments_for_date_sorted_by_time(state):
    day = "2030-01-10"
    clinic_state.add_appointment(state, "B", day, "14:00", "Limpeza")
    clinic_state.add_appointment(state, "A", day, "08:30", "Avaliação")
    assert [a["patient_name"] for a in clinic_state.appointments_for_date(state["appointments"], day)] == ["A", "B"]


def test_add_appointment_validates_and_notifies(reception_state):
    success, _ = clinic_state.add_appointment(reception_state, "", "2030-01-10", "09:00", "X")
    assert not success

    success, _ = clinic_state.add_appointment(reception_state, "Carlos Oliveira", "2030-01-10", "09:00",
                                              "Exodontia 18", patient_id="2")
    assert success
    appointment = reception_state["appointments"][-1]
    assert appointment["status"] == "scheduled"
    assert appointment["patient_id"] == "2"
    assert reception_state["notifications"][0]["title"] == "Novo Agendamento"


def test_admin_appointment_does_not_notify(admin_state):
    clinic_state.add_appointment(admin_state, "Ana Silva", "2030-01-10", "09:00", "Revisão")
    assert admin_state["notifications"] == []


def test_update_appointment_rejects_unknown_status(admin_state):
    appointment = admin_state["appointments"][0]
    with pytest.raises(ValueError):
        clinic_state.update_appointment(admin_state, {**appointment, "status": "lost"})


def test_receptionist_waiting_status_notifies(reception_state):
    appointment = reception_state["appointments"][0]
    clinic_state.update_appointment(reception_state, {**appointment, "status": "waiting"})
    assert reception_state["appointments"][0]["status"] == "waiting"
    assert reception_state["notifications"][0]["title"] == "Paciente na Recepção"


def test_mark_arrived(admin_state):
    assert clinic_state.mark_arrived(admin_state, "1")
    assert clinic_state.get_appointment(admin_state, "1")["status"] == "waiting"
    assert admin_state["notifications"][0]["title"] == "Paciente Chegou"
    assert not clinic_state.mark_arrived(admin_state, "missing")


def test_appointments_per_day_skips_canceled(state):
    clinic_state.add_appointment(state, "A", "2030-02-03", "09:00", "X")
    clinic_state.add_appointment(state, "B", "2030-02-03", "10:00", "Y")
    canceled = state["appointments"][-1]
    clinic_state.update_appointment(state, {**canceled, "status": "canceled"})

    counts = clinic_state.appointments_per_day(state["appointments"], 2030, 2)
    assert len(counts) == 28
    assert counts["2030-02-03"] == 1
    assert counts["2030-02-04"] == 0


def test_format_long_date():
    assert clinic_state.format_long_date(date(2024, 3, 10)) == "domingo, 10 de março de 2024"


def test_parse_age_clamps_to_valid_range():
    assert clinic_state.parse_age("-3") == 0
    assert clinic_state.parse_age("200") == clinic_state.MAX_AGE
    assert clinic_state.parse_age("130") == 130
