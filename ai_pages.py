"""AI screens: vision, lab analyzer, voice study hub, patient simulator and sales engine."""
import logging

import streamlit as st
from streamlit_mic_recorder import mic_recorder

import ai_service
import clinic_state
import config
from constants import PERSONAS, LAB_GROUPS

logger = logging.getLogger(__name__)

MAX_VOICE_HISTORY = 20


def _patient_selector(label, key):
    """Selectbox over the registered patients; returns the chosen id or None."""
    patients = st.session_state.patients
    options = [None] + [p["id"] for p in patients]
    names = {p["id"]: p["name"] for p in patients}
    return st.selectbox(
        label,
        options,
        format_func=lambda pid: "-- Selecione o Paciente --" if pid is None else names[pid],
        key=key,
    )


def _require_key(state):
    api_key = config.get_api_key(state)
    if not api_key:
        st.warning(ai_service.MISSING_KEY_MESSAGE)
    return api_key


# --- Vision ------------------------------------------------------------------

def _clear_vision_result():
    st.session_state.vision_result = ""


def vision_diagnostic_page():
    """Upload a radiograph or intraoral photo and read it with the vision model"""
    state = st.session_state
    if "vision_result" not in state:
        state.vision_result = ""
    api_key = _require_key(state)

    st.title("👁️ Vision AI")
    st.write("Envie uma radiografia panorâmica ou foto intraoral para análise assistida.")

    col1, col2 = st.columns(2)
    with col1:
        uploaded = st.file_uploader(
            "Imagem", type=["png", "jpg", "jpeg", "webp"], key="vision_upload", on_change=_clear_vision_result
        )
        if uploaded:
            st.image(uploaded, use_container_width=True)
            if st.button("🔍 Analisar Imagem", type="primary", disabled=not api_key):
                with st.spinner("Analisando imagem..."):
                    state.vision_result = ai_service.analyze_dental_image(
                        uploaded.getvalue(), uploaded.type, api_key
                    )

    with col2:
        st.subheader("Laudo IA")
        if not state.vision_result:
            st.info("O laudo aparecerá aqui após a análise.")
            return
        with st.container(border=True):
            st.markdown(state.vision_result)

        patient_id = _patient_selector("Salvar no prontuário de", "vision_patient")
        if st.button("💾 Salvar no Prontuário", disabled=not (patient_id and uploaded)):
            image_url = ai_service.encode_image(uploaded.getvalue(), uploaded.type)
            if clinic_state.save_image_to_record(state, patient_id, image_url, state.vision_result):
                st.success("Imagem e laudo salvos no prontuário.")
                state.vision_result = ""
            else:
                st.error("Paciente não encontrado.")


# --- Lab analyzer ------------------------------------------------------------

def _lab_key(name):
    return f"lab_{name}"


def _reset_lab():
    for name in clinic_state.empty_lab_data():
        st.session_state[_lab_key(name)] = ""
    st.session_state.lab_result = ""


def lab_analyzer_page():
    """Lab values entry grouped by panel, with surgical risk analysis"""
    state = st.session_state
    if "lab_result" not in state:
        state.lab_result = ""
    api_key = _require_key(state)

    st.title("🧪 Lab Analyzer")
    patient_id = _patient_selector("Paciente", "lab_patient")
    patient = clinic_state.get_patient(state, patient_id)
    pending = clinic_state.pending_exams(patient)
    if pending:
        st.warning(f"Exames solicitados pendentes: {', '.join(pending)}")

    lab_data = clinic_state.empty_lab_data()
    tabs = st.tabs([group["label"] for group in LAB_GROUPS])
    for tab, group in zip(tabs, LAB_GROUPS):
        with tab:
            cols = st.columns(2)
            for i, field in enumerate(group["fields"]):
                with cols[i % 2]:
                    label = field["label"]
                    if clinic_state.is_pending(pending, field["pending"]):
                        label = f"{label} ⏳"
                    lab_data[field["name"]] = st.text_input(
                        label, placeholder=field["placeholder"], key=_lab_key(field["name"])
                    ).strip()

    filled = {name: value for name, value in lab_data.items() if value}
    col1, col2 = st.columns([3, 1])
    with col1:
        if st.button("🧠 Analisar Riscos", type="primary", disabled=not (filled and api_key)):
            with st.spinner("Cruzando resultados laboratoriais..."):
                state.lab_result = ai_service.analyze_lab_risks(filled, api_key)
    with col2:
        st.button("Limpar", on_click=_reset_lab)

    if state.lab_result:
        with st.container(border=True):
            st.markdown(state.lab_result)
        if st.button("💾 Salvar no Prontuário", key="lab_save", disabled=not patient):
            clinic_state.save_lab_to_record(state, patient_id, lab_data, state.lab_result)
            st.success(f"Análise salva no prontuário de {patient['name']}.")


# --- Voice study hub ---------------------------------------------------------

def remember_answer(history, question, answer, limit=MAX_VOICE_HISTORY):
    """Newest first, keeping at most limit entries."""
    return ([{"question": question, "answer": answer}] + history)[:limit]


def voice_study_page():
    """Ask a clinical question out loud and hear a short answer back"""
    state = st.session_state
    if "voice_history" not in state:
        state.voice_history = []
    api_key = _require_key(state)

    st.title("🎙️ Estudo por Voz")
    st.write("Grave uma pergunta clínica. A resposta é lida em voz alta, em até três frases.")

    question = None
    audio = mic_recorder(
        start_prompt="🎤 Gravar Pergunta",
        stop_prompt="⏹️ Parar",
        just_once=True,
        use_container_width=True,
        key="voice_recorder",
    )
    if audio:
        with st.spinner("Transcrevendo..."):
            question = ai_service.transcribe_audio(audio["bytes"], api_key)
        if not question:
            st.error("Não foi possível transcrever o áudio. Tente novamente ou digite a pergunta.")

    with st.form("voice_text_form", clear_on_submit=True):
        typed = st.text_input("Ou digite sua pergunta")
        if st.form_submit_button("Perguntar") and typed.strip():
            question = typed.strip()

    if question:
        with st.spinner("Pensando..."):
            answer = ai_service.get_voice_answer(question, api_key)
            speech = ai_service.synthesize_speech(answer, api_key)
        state.voice_history = remember_answer(state.voice_history, question, answer)
        st.markdown(f"**Você:** {question}")
        st.markdown(f"**OdontoAI:** {answer}")
        if speech:
            st.audio(speech, format="audio/mp3", autoplay=True)

    if state.voice_history:
        with st.expander("Histórico de perguntas"):
            for item in state.voice_history:
                st.markdown(f"**{item['question']}**")
                st.write(item["answer"])


# --- Patient simulator -------------------------------------------------------

def _start_simulation(persona):
    st.session_state.simulation = ai_service.create_simulation_chat(persona)


def _end_simulation():
    st.session_state.simulation = None


def simulator_page():
    """Role-play a consultation with a difficult patient persona"""
    state = st.session_state
    if "simulation" not in state:
        state.simulation = None
    api_key = _require_key(state)

    st.title("🎭 Simulador de Pacientes")
    chat = state.simulation
    if chat is None:
        st.write("Escolha um perfil de paciente para treinar sua comunicação.")
        cols = st.columns(len(PERSONAS))
        for col, persona in zip(cols, PERSONAS):
            with col:
                with st.container(border=True):
                    st.markdown(f"**{persona['name']}**")
                    st.caption(persona["description"])
                    st.button("Iniciar", key=f"persona_{persona['id']}",
                              on_click=_start_simulation, args=(persona,), use_container_width=True)
        return

    col1, col2 = st.columns([4, 1])
    with col1:
        st.subheader(chat["persona"]["name"])
    with col2:
        st.button("Encerrar", on_click=_end_simulation)

    for message in chat["messages"]:
        with st.chat_message("assistant" if message["sender"] == "ai" else "user"):
            st.write(message["text"])

    text = st.chat_input("Fale com o paciente...")
    if text:
        with st.chat_message("user"):
            st.write(text)
        with st.spinner("O paciente está pensando..."):
            reply = ai_service.send_simulation_message(chat, text, api_key)
        with st.chat_message("assistant"):
            st.write(reply)


# --- Sales engine ------------------------------------------------------------

def sales_engine_page():
    """Turn a technical diagnosis into a patient-friendly treatment explanation"""
    state = st.session_state
    if "sales_script" not in state:
        state.sales_script = ""
    api_key = _require_key(state)

    st.title("💬 Smart Sales")
    diagnosis = st.text_area(
        "Diagnóstico técnico",
        height=150,
        placeholder="Ex: Lesão periapical no 36 com indicação de tratamento endodôntico e coroa.",
        key="sales_diagnosis",
    )
    if st.button("✨ Gerar Script", type="primary", disabled=not (diagnosis.strip() and api_key)):
        with st.spinner("Criando script..."):
            state.sales_script = ai_service.generate_sales_script(diagnosis.strip(), api_key)

    if state.sales_script:
        with st.container(border=True):
            st.markdown(state.sales_script)
