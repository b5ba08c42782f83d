import logging
from datetime import date

import pandas as pd
import streamlit as st

import clinic_state
import config
from admin_pages import landing_page, login_page, settings_page, show_avatar
from ai_pages import (
    vision_diagnostic_page, lab_analyzer_page, voice_study_page, simulator_page, sales_engine_page,
)
from clinic_pages import agenda_page, anamnesis_page, patient_records_page
from constants import (
    RECEPTIONIST, ROLE_LABELS,
    DASHBOARD, AGENDA, ANAMNESIS, VISION_DIAGNOSTIC, LAB_ANALYZER, PATIENT_RECORDS,
    VOICE_STUDY, SIMULATOR, SALES_ENGINE, SETTINGS,
)

logger = logging.getLogger(__name__)


def navigate_to(page):
    clinic_state.navigate_to(st.session_state, page)


def _logout():
    clinic_state.logout(st.session_state)


def _dismiss(notification_id):
    clinic_state.dismiss_notification(st.session_state, notification_id)


def sidebar():
    """Navigation filtered by role, the logged-in user and admin notifications"""
    state = st.session_state
    user = state.current_user
    role = user["role"]

    with st.sidebar:
        st.title(f"{config.APP_ICON} {config.APP_TITLE}")

        for view in clinic_state.visible_views(role):
            st.button(
                f"{view['icon']} {view['label']}",
                key=f"nav_{view['id']}",
                on_click=navigate_to,
                args=(view["id"],),
                type="primary" if state.current_page == view["id"] else "secondary",
                use_container_width=True,
            )
        if role == RECEPTIONIST:
            st.button("📋 Nova Anamnese", key="nav_anamnesis", on_click=navigate_to, args=(ANAMNESIS,),
                      use_container_width=True)

        st.markdown("---")
        col1, col2 = st.columns([1, 3])
        with col1:
            show_avatar(user, width=40)
        with col2:
            st.markdown(f"**{user['name']}**")
            st.caption(ROLE_LABELS[role])
        st.button("Sair", on_click=_logout, use_container_width=True)

        notifications = clinic_state.visible_notifications(state)
        if notifications:
            st.markdown("---")
            st.subheader("🔔 Notificações")
            for notification in notifications:
                with st.container(border=True):
                    st.markdown(f"**{notification['title']}** · {notification['time']}")
                    st.caption(notification["message"])
                    st.button("Dispensar", key=f"dismiss_{notification['id']}",
                              on_click=_dismiss, args=(notification["id"],))


def dashboard_page():
    """Display dashboard page"""
    state = st.session_state
    user = state.current_user
    today = clinic_state.today_iso()
    today_appointments = clinic_state.appointments_for_date(state.appointments, today)

    st.title(f"Olá, {user['name']}")
    st.write(f"{clinic_state.format_long_date(date.today()).capitalize()} · "
             f"{state.clinic_profile['clinic_name']}")

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Pacientes", len(state.patients))
    col2.metric("Consultas Hoje", len([a for a in today_appointments if a["status"] != "canceled"]))
    col3.metric("Na Recepção", len([a for a in today_appointments if a["status"] == "waiting"]))
    col4.metric("Exames Pendentes", sum(len(clinic_state.pending_exams(p)) for p in state.patients))

    st.markdown("---")
    cards = [
        ("📅 Agenda", "Consultas do dia e chegadas", AGENDA),
        ("📋 Nova Anamnese", "Cadastro com questionário SUS", ANAMNESIS),
        ("👁️ Vision AI", "Análise de radiografias", VISION_DIAGNOSTIC),
        ("💬 Smart Sales", "Explique o tratamento ao paciente", SALES_ENGINE),
    ]
    for col, (title, caption, page) in zip(st.columns(4), cards):
        with col:
            with st.container(border=True):
                st.markdown(f"**{title}**")
                st.caption(caption)
                st.button("Abrir", key=f"card_{page}", on_click=navigate_to, args=(page,),
                          use_container_width=True)

    st.header("Seus Pacientes")
    if state.patients:
        df = pd.DataFrame(state.patients)[["name", "age", "last_visit", "complaint"]]
        df.columns = ["Nome", "Idade", "Última Visita", "Queixa Principal"]
        st.dataframe(df, hide_index=True, use_container_width=True)
    else:
        st.info("Nenhum paciente cadastrado.")


def main():
    """Main application function"""
    st.set_page_config(
        page_title=config.APP_TITLE,
        page_icon=config.APP_ICON,
        layout="wide"
    )
    config.setup_logging()
    clinic_state.init_state(st.session_state)
    state = st.session_state

    if state.app_state == "landing":
        landing_page()
        return
    if state.app_state == "login" or not state.current_user:
        login_page()
        return

    sidebar()

    flash = state.pop("flash", None)
    if flash:
        kind, message = flash
        getattr(st, kind)(message)

    role = state.current_user["role"]
    page = clinic_state.resolve_view(role, state.current_page)

    if page == DASHBOARD:
        dashboard_page()
    elif page == AGENDA:
        agenda_page(receptionist=role == RECEPTIONIST)
    elif page == ANAMNESIS:
        anamnesis_page()
    elif page == PATIENT_RECORDS:
        patient_records_page()
    elif page == VISION_DIAGNOSTIC:
        vision_diagnostic_page()
    elif page == LAB_ANALYZER:
        lab_analyzer_page()
    elif page == VOICE_STUDY:
        voice_study_page()
    elif page == SIMULATOR:
        simulator_page()
    elif page == SALES_ENGINE:
        sales_engine_page()
    elif page == SETTINGS:
        settings_page()
    else:
        logger.warning("Unknown page %s, falling back to dashboard", page)
        dashboard_page()


if __name__ == "__main__":
    main()
