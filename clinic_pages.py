"""Agenda, anamnesis intake and patient records pages."""
import base64
import logging
from datetime import date, time as dt_time

import pandas as pd
import streamlit as st
import streamlit.components.v1 as components

import ai_service
import clinic_state
import config
import odontogram
import reports
from constants import (
    ANAMNESIS, PATIENT_RECORDS, APPOINTMENT_STATUSES, APPOINTMENT_STATUS_LABELS,
    APPOINTMENT_STATUS_ICONS, SUS_CONDITIONS, SUS_TEXT_FIELDS, EXAM_OPTIONS,
    ANAMNESIS_STEPS, LAB_GROUPS,
)

logger = logging.getLogger(__name__)


def navigate_to(page):
    clinic_state.navigate_to(st.session_state, page)


def open_record(patient_id):
    st.session_state.selected_patient_id = patient_id
    st.session_state.records_editing = False
    navigate_to(PATIENT_RECORDS)


def show_printable(document, file_name, key):
    st.download_button(
        label="📥 Baixar para impressão (HTML)",
        data=document,
        file_name=file_name,
        mime="text/html",
        key=f"download_{key}",
    )
    with st.expander("🖨️ Visualizar impressão"):
        components.html(document, height=700, scrolling=True)


# --- Agenda ------------------------------------------------------------------

def _mark_arrived(appointment_id):
    clinic_state.mark_arrived(st.session_state, appointment_id)


def _change_status(appointment_id, widget_key):
    appointment = clinic_state.get_appointment(st.session_state, appointment_id)
    if appointment:
        clinic_state.update_appointment(st.session_state, {**appointment, "status": st.session_state[widget_key]})


def _appointment_row(appointment, receptionist):
    with st.container(border=True):
        col1, col2, col3, col4 = st.columns([1, 4, 2, 2])
        with col1:
            st.markdown(f"### {appointment['time']}")
        with col2:
            st.markdown(f"**{appointment['patient_name']}**")
            st.caption(appointment["procedure"])
            if appointment.get("notes"):
                st.caption(appointment["notes"])
        with col3:
            # keyed by status too, so the select is rebuilt when the status changes elsewhere
            widget_key = f"status_{appointment['id']}_{appointment['status']}"
            st.selectbox(
                "Status",
                APPOINTMENT_STATUSES,
                index=APPOINTMENT_STATUSES.index(appointment["status"]),
                format_func=lambda s: f"{APPOINTMENT_STATUS_ICONS[s]} {APPOINTMENT_STATUS_LABELS[s]}",
                key=widget_key,
                on_change=_change_status,
                args=(appointment["id"], widget_key),
                label_visibility="collapsed",
            )
        with col4:
            if appointment["status"] == "scheduled":
                st.button("✅ Chegou", key=f"arrived_{appointment['id']}",
                          on_click=_mark_arrived, args=(appointment["id"],), use_container_width=True)
            if not receptionist and appointment.get("patient_id"):
                st.button("📂 Prontuário", key=f"record_{appointment['id']}",
                          on_click=open_record, args=(appointment["patient_id"],), use_container_width=True)


def _new_appointment_form(selected_day):
    state = st.session_state
    st.subheader("Nova Consulta")
    new_patient = st.toggle("Cadastrar novo paciente", key="agenda_new_patient")

    patient = None
    if new_patient:
        patient_name = st.text_input("Nome do Novo Paciente", key="agenda_new_patient_name")
    else:
        term = st.text_input("Buscar por nome...", key="agenda_search")
        patient = clinic_state.search_patient(state.patients, term)
        if patient:
            st.success(f"Paciente encontrado: {patient['name']}")
        elif term:
            st.warning("Nenhum paciente encontrado.")
        patient_name = patient["name"] if patient else ""

    col1, col2 = st.columns(2)
    with col1:
        start = st.time_input("Horário", value=dt_time(9, 0), step=900, key="agenda_time")
    with col2:
        procedure = st.text_input("Procedimento", key="agenda_procedure")
    notes = st.text_input("Observações", key="agenda_notes")

    if st.button("Agendar", type="primary", key="agenda_save"):
        success, message = clinic_state.add_appointment(
            state,
            patient_name.strip(),
            selected_day.isoformat(),
            start.strftime("%H:%M") if start else "",
            procedure.strip(),
            patient_id=patient["id"] if patient else None,
            notes=notes.strip(),
        )
        if success:
            st.session_state.flash = ("success", message)
            st.rerun()
        else:
            st.error(message)


def agenda_page(receptionist=False):
    """Daily schedule, arrivals and booking"""
    state = st.session_state
    clinic = state.clinic_profile

    st.title("📅 Agenda Clínica")
    if receptionist:
        st.button("📋 Nova Anamnese / Pré-cadastro", on_click=navigate_to, args=(ANAMNESIS,))

    if "agenda_date" not in state:
        state.agenda_date = date.today()
    selected_day = st.date_input("Data", key="agenda_date", format="DD/MM/YYYY")
    st.caption(clinic_state.format_long_date(selected_day).capitalize())

    day_appointments = clinic_state.appointments_for_date(state.appointments, selected_day.isoformat())

    day_tab, month_tab, new_tab = st.tabs(["Dia", "Mês", "➕ Agendar"])

    with day_tab:
        if day_appointments:
            for appointment in day_appointments:
                _appointment_row(appointment, receptionist)
        else:
            st.info("Sem consultas para este dia.")

        document = reports.print_wrapper(
            reports.agenda_html(day_appointments, clinic_state.format_long_date(selected_day), clinic),
            "Agenda Diária",
        )
        show_printable(document, f"agenda_{selected_day.isoformat()}.html", "agenda")

    with month_tab:
        counts = clinic_state.appointments_per_day(state.appointments, selected_day.year, selected_day.month)
        df = pd.DataFrame(
            [(date.fromisoformat(day).strftime("%d/%m"), total) for day, total in counts.items()],
            columns=["Dia", "Consultas"],
        )
        st.bar_chart(df, x="Dia", y="Consultas")
        busy = df[df["Consultas"] > 0]
        if busy.empty:
            st.info("Nenhuma consulta neste mês.")
        else:
            st.dataframe(busy, hide_index=True, use_container_width=True)

    with new_tab:
        _new_appointment_form(selected_day)


# --- Anamnesis ---------------------------------------------------------------

def _new_wizard():
    return {
        "step": 1,
        "form": clinic_state.empty_anamnesis_form(),
        "odontogram": [],
        "exams": [],
        "ai_result": "",
    }


def _set_step(step):
    st.session_state.anamnesis["step"] = step


def _reset_wizard():
    st.session_state.anamnesis = _new_wizard()


def anamnesis_page():
    """Six-step patient intake: registration, SUS health form, complaint, odontogram, exams, conclusion"""
    state = st.session_state
    if "anamnesis" not in state:
        state.anamnesis = _new_wizard()
    wizard = state.anamnesis
    form = wizard["form"]
    user = state.current_user

    st.title("📋 Anamnese Digital")
    cols = st.columns(len(ANAMNESIS_STEPS))
    for col, (step_id, label, icon) in zip(cols, ANAMNESIS_STEPS):
        with col:
            st.button(
                f"{icon} {label}",
                key=f"anamnesis_step_{step_id}",
                type="primary" if wizard["step"] == step_id else "secondary",
                on_click=_set_step,
                args=(step_id,),
                use_container_width=True,
            )
    st.markdown("---")

    step = wizard["step"]

    if step == 1:
        personal = form["personal"]
        with st.form("anamnesis_personal"):
            st.subheader("Dados Pessoais")
            col1, col2 = st.columns(2)
            with col1:
                name = st.text_input("Nome Completo *", value=personal["name"])
                cns = st.text_input("CNS (Cartão SUS)", value=personal["cns"])
            with col2:
                age = st.text_input("Idade", value=personal["age"])
                occupation = st.text_input("Profissão", value=personal["occupation"])
            next_step = st.form_submit_button("Próximo")
        if next_step:
            personal.update(name=name.strip(), age=age.strip(), cns=cns.strip(), occupation=occupation.strip())
            _set_step(2)
            st.rerun()

    elif step == 2:
        sus_info = form["sus_info"]
        with st.form("anamnesis_sus"):
            st.subheader("Questionário de Saúde (SUS)")
            checks = {}
            cols = st.columns(3)
            for i, (key, label) in enumerate(SUS_CONDITIONS):
                with cols[i % 3]:
                    checks[key] = st.checkbox(label, value=sus_info[key])
            texts = {}
            col1, col2 = st.columns(2)
            for i, (key, label) in enumerate(SUS_TEXT_FIELDS):
                with col1 if i % 2 == 0 else col2:
                    texts[key] = st.text_input(label, value=sus_info[key])
            col_back, col_next = st.columns(2)
            with col_back:
                back = st.form_submit_button("Voltar")
            with col_next:
                forward = st.form_submit_button("Próximo")
        if back or forward:
            sus_info.update(checks)
            sus_info.update({k: v.strip() for k, v in texts.items()})
            _set_step(1 if back else 3)
            st.rerun()

    elif step == 3:
        with st.form("anamnesis_complaint"):
            st.subheader("Queixa Principal")
            complaint = st.text_area(
                "Relato do paciente",
                value=form["complaint"],
                height=200,
                placeholder="Descreva em detalhes o relato do paciente...",
            )
            col_back, col_next = st.columns(2)
            with col_back:
                back = st.form_submit_button("Voltar")
            with col_next:
                forward = st.form_submit_button("Próximo")
        if back or forward:
            form["complaint"] = complaint.strip()
            _set_step(2 if back else 4)
            st.rerun()

    elif step == 4:
        st.subheader("Odontograma")
        wizard["odontogram"] = odontogram.odontogram_editor(wizard["odontogram"], key="anamnesis_odontogram")
        col_back, col_next = st.columns(2)
        with col_back:
            st.button("Voltar", key="odontogram_back", on_click=_set_step, args=(3,))
        with col_next:
            st.button("Próximo", key="odontogram_next", on_click=_set_step, args=(5,))

    elif step == 5:
        with st.form("anamnesis_exams"):
            st.subheader("Solicitação de Exames")
            exams = st.multiselect("Exames complementares", EXAM_OPTIONS, default=wizard["exams"])
            if not form["complaint"]:
                st.caption("Preencha a queixa principal para gerar o diagnóstico.")
            col_back, col_next = st.columns(2)
            with col_back:
                back = st.form_submit_button("Voltar")
            with col_next:
                analyze = st.form_submit_button("✨ Gerar Diagnóstico IA", disabled=not form["complaint"])
        if back:
            wizard["exams"] = exams
            _set_step(4)
            st.rerun()
        if analyze:
            wizard["exams"] = exams
            _set_step(6)
            with st.spinner("Analisando anamnese..."):
                wizard["ai_result"] = ai_service.analyze_anamnesis(
                    form, config.get_api_key(state), teeth=wizard["odontogram"]
                )
            st.rerun()

    elif step == 6:
        col_title, col_reset = st.columns([4, 1])
        with col_title:
            st.subheader("Conclusão")
        with col_reset:
            st.button("Reiniciar", on_click=_reset_wizard)

        if wizard["ai_result"]:
            with st.container(border=True):
                st.markdown(wizard["ai_result"])
        else:
            st.info("Nenhum diagnóstico gerado. Gere o diagnóstico na etapa Exames ou salve apenas o cadastro.")

        changes = odontogram.count_changes(wizard["odontogram"])
        st.markdown(
            f"- 🦷 Odontograma: {f'{changes} alterações' if changes else 'Sem alterações'}\n"
            f"- 🧾 Exames: {len(wizard['exams'])} solicitados"
        )

        if st.button("💾 Salvar e Assinar Prontuário", type="primary"):
            if not form["personal"]["name"]:
                st.error("Nome do paciente é obrigatório.")
            else:
                patient = clinic_state.build_patient_from_anamnesis(
                    form, wizard["odontogram"], wizard["exams"], wizard["ai_result"], user["name"]
                )
                message = clinic_state.add_patient(state, patient)
                state.selected_patient_id = patient["id"]
                state.flash = ("success", message)
                _reset_wizard()
                st.rerun()


# --- Patient records ---------------------------------------------------------

def _select_patient(patient_id):
    st.session_state.selected_patient_id = patient_id
    st.session_state.records_editing = False


def _complete_exam(patient_id, exam_id):
    clinic_state.complete_exam_request(st.session_state, patient_id, exam_id)


def _lab_label(name):
    for group in LAB_GROUPS:
        for field in group["fields"]:
            if field["name"] == name:
                return field["label"]
    return name


def _info_tab(patient):
    state = st.session_state
    user = state.current_user

    if patient.get("audit"):
        audit = patient["audit"]
        st.caption(
            f"🔏 Criado por {audit['created_by']} em {audit['created_at']} · "
            f"Última alteração: {audit['last_modified_by']} em {audit['last_modified_at']}"
        )

    if state.records_editing:
        with st.form(f"edit_patient_{patient['id']}"):
            col1, col2 = st.columns(2)
            with col1:
                age = st.number_input("Idade", min_value=0, max_value=clinic_state.MAX_AGE,
                                      value=clinic_state.parse_age(patient["age"]))
                occupation = st.text_input("Profissão", value=patient.get("occupation") or "")
            with col2:
                cns = st.text_input("CNS", value=patient.get("cns") or "")
                complaint = st.text_input("Queixa Principal", value=patient.get("complaint") or "")
            history = st.text_area("Histórico Médico", value=patient.get("history") or "", height=100)
            notes = st.text_area("Observações", value=patient.get("notes") or "", height=80)
            col_save, col_cancel = st.columns(2)
            with col_save:
                save = st.form_submit_button("💾 Salvar")
            with col_cancel:
                cancel = st.form_submit_button("Cancelar")
        if save:
            updated = {**patient, "age": int(age), "cns": cns.strip(), "occupation": occupation.strip(),
                       "complaint": complaint.strip(), "history": history.strip(), "notes": notes.strip()}
            clinic_state.update_patient(state, clinic_state.touch_audit(updated, user["name"]))
            state.records_editing = False
            st.rerun()
        if cancel:
            state.records_editing = False
            st.rerun()
    else:
        col1, col2, col3 = st.columns(3)
        col1.metric("Idade", f"{patient['age']} anos")
        col2.metric("CNS", patient.get("cns") or "-")
        col3.metric("Última Visita", patient.get("last_visit") or "-")
        st.markdown(f"**Queixa Principal:** {patient.get('complaint') or '-'}")
        st.markdown(f"**Histórico Médico:** {patient.get('history') or '-'}")
        if patient.get("notes"):
            st.markdown(f"**Observações:** {patient['notes']}")

    if patient.get("diagnosis"):
        with st.expander("🩺 Hipótese Diagnóstica & Planejamento (IA)", expanded=True):
            st.markdown(patient["diagnosis"])

    if "pharmaco_advice" not in state:
        state.pharmaco_advice = {}
    if st.button("🤖 IA Assist: Gerar Protocolo Farmacológico", key=f"pharmaco_{patient['id']}"):
        with st.spinner("Consultando farmacologia clínica..."):
            state.pharmaco_advice[patient["id"]] = ai_service.get_pharmaco_advice(
                patient["history"], config.get_api_key(state)
            )
    advice = state.pharmaco_advice.get(patient["id"])
    if advice:
        with st.container(border=True):
            st.markdown(advice)


def _visits_tab(patient):
    with st.expander("➕ Registrar Nova Visita"):
        with st.form(f"new_visit_{patient['id']}", clear_on_submit=True):
            procedure = st.text_input("Procedimento")
            notes = st.text_area("Notas", height=80)
            submitted = st.form_submit_button("Salvar Visita")
        if submitted:
            success, message = clinic_state.add_visit(st.session_state, patient["id"], procedure.strip(), notes.strip())
            if success:
                st.rerun()
            else:
                st.error(message)

    if not patient["visits"]:
        st.info("Nenhum registro de visita.")
    for visit in patient["visits"]:
        with st.container(border=True):
            st.markdown(f"**{visit['procedure']}**")
            st.caption(visit["date"])
            if visit.get("notes"):
                st.write(visit["notes"])


def _exams_tab(patient):
    st.subheader("Exames Solicitados")
    if not patient["exam_requests"]:
        st.info("Nenhum exame solicitado.")
    for exam in patient["exam_requests"]:
        col1, col2 = st.columns([4, 1])
        with col1:
            status = "⏳ Solicitado" if exam["status"] == "requested" else "✅ Concluído"
            st.markdown(f"**{exam['type']}** · {status} · {exam['date_requested']}")
        with col2:
            if exam["status"] == "requested":
                st.button("Concluir", key=f"complete_{exam['id']}",
                          on_click=_complete_exam, args=(patient["id"], exam["id"]))

    st.subheader("Imagens")
    if not patient["images"]:
        st.info("Nenhuma imagem salva. Use o Vision AI para analisar e salvar imagens.")
    for image in patient["images"]:
        with st.container(border=True):
            col1, col2 = st.columns([1, 2])
            with col1:
                _, data = ai_service.split_data_url(image["image_url"])
                st.image(base64.b64decode(data), caption=image["date"])
            with col2:
                st.markdown(image["analysis"])


def _labs_tab(patient):
    labs = patient.get("lab_analyses") or []
    if not labs:
        st.info("Nenhuma análise laboratorial salva.")
    for lab in labs:
        with st.expander(f"🧪 Análise de {lab['date']}"):
            values = [(_lab_label(k), v) for k, v in lab["raw_values"].items() if v]
            if values:
                st.dataframe(pd.DataFrame(values, columns=["Exame", "Valor"]), hide_index=True,
                             use_container_width=True)
            st.markdown(lab["summary"])


def _odontogram_tab(patient):
    state = st.session_state
    teeth = odontogram.odontogram_editor(patient.get("odontogram") or [], key=f"record_odontogram_{patient['id']}")
    if teeth != (patient.get("odontogram") or []):
        updated = clinic_state.touch_audit({**patient, "odontogram": teeth}, state.current_user["name"])
        clinic_state.update_patient(state, updated)
        st.rerun()


def _report_section(patient):
    with st.expander("📄 Gerar Relatório / Prontuário"):
        st.caption("Selecione os dados para incluir no documento PDF/Impressão.")
        key = patient["id"]
        col1, col2 = st.columns(2)
        with col1:
            include_history = st.checkbox("Histórico / Anamnese", value=True, key=f"rep_hist_{key}")
            include_visits = st.checkbox("Histórico de Visitas", value=True, key=f"rep_visits_{key}")
            include_odontogram = st.checkbox("Odontograma", value=True, key=f"rep_odonto_{key}")
        with col2:
            include_exams = st.checkbox("Exames & Imagens", value=True, key=f"rep_exams_{key}")
            include_labs = st.checkbox("Análises Laboratoriais", value=True, key=f"rep_labs_{key}")
        options = {
            "include_history": include_history,
            "include_visits": include_visits,
            "include_exams": include_exams,
            "include_labs": include_labs,
            "include_odontogram": include_odontogram,
        }
        document = reports.print_wrapper(
            reports.patient_report_html(patient, st.session_state.clinic_profile, options),
            f"Prontuário - {patient['name']}",
        )
        show_printable(document, f"prontuario_{patient['name'].replace(' ', '_')}.html", f"report_{key}")


def patient_records_page():
    """Patient list and the clinical record of the selected patient"""
    state = st.session_state
    if "selected_patient_id" not in state:
        state.selected_patient_id = None
    if "records_editing" not in state:
        state.records_editing = False

    st.title("📂 Prontuários")
    list_col, detail_col = st.columns([1, 3])

    with list_col:
        st.subheader("Pacientes")
        for p in state.patients:
            st.button(
                f"{p['name']}\n\nÚltima Visita: {p['last_visit']}",
                key=f"patient_{p['id']}",
                type="primary" if p["id"] == state.selected_patient_id else "secondary",
                on_click=_select_patient,
                args=(p["id"],),
                use_container_width=True,
            )

    with detail_col:
        patient = clinic_state.get_patient(state, state.selected_patient_id)
        if not patient:
            st.info("Selecione um paciente para ver detalhes")
            return

        col_name, col_edit = st.columns([4, 1])
        with col_name:
            st.header(patient["name"])
            st.caption(patient.get("occupation") or "")
        with col_edit:
            if not state.records_editing:
                if st.button("✏️ Editar", key="records_edit"):
                    state.records_editing = True
                    st.rerun()

        _report_section(patient)

        info, visits, exams, labs, chart = st.tabs(
            ["Informações Gerais", "Histórico de Visitas", "Exames & Imagens", "Lab Analyzer", "Odontograma"]
        )
        with info:
            _info_tab(patient)
        with visits:
            _visits_tab(patient)
        with exams:
            _exams_tab(patient)
        with labs:
            _labs_tab(patient)
        with chart:
            _odontogram_tab(patient)
