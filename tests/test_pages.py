from streamlit.testing.v1 import AppTest

import ai_pages
import clinic_state


def _agenda_rows_app():
    import streamlit as st

    import clinic_pages
    import clinic_state

    clinic_state.init_state(st.session_state)
    for appointment in st.session_state.appointments:
        clinic_pages._appointment_row(appointment, receptionist=True)


def test_arrival_updates_status_select():
    at = AppTest.from_function(_agenda_rows_app)
    at.session_state["appointments"] = [{
        "id": "a1", "patient_id": "2", "patient_name": "Carlos Oliveira", "date": "2030-01-10",
        "time": "10:00", "procedure": "Exodontia 18", "status": "scheduled", "notes": "",
    }]
    at.run()
    at.button(key="arrived_a1").click().run()
    assert not at.exception
    assert at.session_state["appointments"][0]["status"] == "waiting"
    assert at.selectbox(key="status_a1_waiting").value == "waiting"

    # undoing the arrival goes through the select again
    at.selectbox(key="status_a1_waiting").set_value("scheduled").run()
    assert at.session_state["appointments"][0]["status"] == "scheduled"


def _record_edit_app():
    import streamlit as st

    import clinic_pages
    import clinic_state

    clinic_state.init_state(st.session_state)
    st.session_state.current_user = clinic_state.get_user(st.session_state, "1")
    st.session_state.records_editing = True
    form = clinic_state.empty_anamnesis_form()
    form["personal"].update(name="Rita", age=st.session_state.typed_age)
    patient = clinic_state.build_patient_from_anamnesis(form, [], [], "", "Dr. Silva")
    clinic_pages._info_tab(patient)


def test_record_edit_opens_with_out_of_range_age():
    for typed, expected in (("-3", 0), ("200", clinic_state.MAX_AGE)):
        at = AppTest.from_function(_record_edit_app)
        at.session_state["typed_age"] = typed
        at.run()
        assert not at.exception
        assert at.number_input[0].value == expected


def _vision_result_app():
    import streamlit as st

    import ai_pages

    if "vision_result" not in st.session_state:
        st.session_state.vision_result = "Laudo da imagem anterior"
    st.button("Nova imagem", key="new_image", on_click=ai_pages._clear_vision_result)


def test_new_upload_clears_previous_vision_result():
    at = AppTest.from_function(_vision_result_app)
    at.run()
    at.button(key="new_image").click().run()
    assert at.session_state["vision_result"] == ""


def test_voice_history_is_capped():
    history = []
    for i in range(ai_pages.MAX_VOICE_HISTORY + 5):
        history = ai_pages.remember_answer(history, f"Pergunta {i}", "Resposta")
    assert len(history) == ai_pages.MAX_VOICE_HISTORY
    assert history[0]["question"] == f"Pergunta {ai_pages.MAX_VOICE_HISTORY + 4}"
