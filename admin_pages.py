"""Landing page, PIN login and the admin settings page."""
import base64
import logging

import streamlit as st

import clinic_state
import config
from constants import ADMIN, DOCTOR, RECEPTIONIST, ROLE_LABELS

logger = logging.getLogger(__name__)


def _go_to_login():
    st.session_state.app_state = "login"


def _go_to_landing():
    st.session_state.app_state = "landing"
    st.session_state.login_user_id = None


def _pick_user(user_id):
    st.session_state.login_user_id = user_id


def show_avatar(user, width=56):
    """Uploaded avatars are data URLs; generated ones are replaced by an icon."""
    avatar = user.get("avatar") or ""
    if avatar.startswith("data:"):
        _, _, data = avatar.partition(",")
        st.image(base64.b64decode(data), width=width)
    else:
        st.markdown("### 👑" if user["role"] == ADMIN else "### 👤")


def landing_page():
    """Public home page of the clinic system"""
    st.title(f"{config.APP_ICON} {config.APP_TITLE}")
    st.subheader("Gestão clínica odontológica com inteligência artificial")
    st.write(
        "Agenda, prontuário eletrônico, odontograma digital e assistentes de IA "
        "para diagnóstico por imagem, exames laboratoriais e comunicação com o paciente."
    )

    st.button("Acessar Sistema", type="primary", on_click=_go_to_login)

    st.markdown("---")
    col1, col2, col3 = st.columns(3)
    with col1:
        st.markdown("#### 📋 Anamnese Digital")
        st.write("Questionário de saúde padrão SUS, odontograma e solicitação de exames em um único fluxo.")
    with col2:
        st.markdown("#### 👁️ Vision AI")
        st.write("Leitura assistida de radiografias panorâmicas e fotos intraorais.")
    with col3:
        st.markdown("#### 📅 Agenda Integrada")
        st.write("Recepção e consultório sincronizados, com avisos de chegada do paciente.")

    col4, col5, col6 = st.columns(3)
    with col4:
        st.markdown("#### 🧪 Lab Analyzer")
        st.write("Alertas de risco cirúrgico a partir dos exames laboratoriais.")
    with col5:
        st.markdown("#### 🎭 Simulador de Pacientes")
        st.write("Treine a comunicação com pacientes difíceis em role-play.")
    with col6:
        st.markdown("#### 💬 Smart Sales")
        st.write("Transforme o diagnóstico técnico em uma explicação clara para o paciente.")


def login_page():
    """PIN login, or the first-run setup when no account exists yet"""
    state = st.session_state
    if "login_user_id" not in state:
        state.login_user_id = None

    st.button("← Voltar ao Site", on_click=_go_to_landing)

    if not state.users:
        st.title("Configuração Inicial")
        st.write("Crie a Conta Central da clínica. Ela terá acesso total ao sistema.")
        with st.form("setup_form"):
            name = st.text_input("Seu nome", placeholder="Ex: Dr. Silva")
            pin = st.text_input("PIN de acesso (4 dígitos)", type="password", max_chars=4, placeholder="0000")
            submitted = st.form_submit_button("Criar Conta Central", use_container_width=True)
        if submitted:
            success, message = clinic_state.setup_admin(state, name.strip(), pin)
            if success:
                st.rerun()
            else:
                st.error(message)
        return

    selected = clinic_state.get_user(state, state.login_user_id) if state.login_user_id else None
    if not selected:
        st.title("Selecione quem está acessando")
        cols = st.columns(min(len(state.users), 4))
        for i, user in enumerate(state.users):
            with cols[i % len(cols)]:
                with st.container(border=True):
                    show_avatar(user)
                    st.markdown(f"**{user['name']}**")
                    st.caption(ROLE_LABELS[user["role"]])
                    st.button("Entrar", key=f"pick_{user['id']}", on_click=_pick_user, args=(user["id"],),
                              use_container_width=True)
        return

    st.title("Digite seu PIN de acesso")
    show_avatar(selected, width=72)
    st.markdown(f"**{selected['name']}** - {ROLE_LABELS[selected['role']]}")
    st.button("← Trocar usuário", on_click=_pick_user, args=(None,))

    with st.form("login_form"):
        pin = st.text_input("PIN", type="password", max_chars=4, placeholder="••••")
        submitted = st.form_submit_button("Acessar Sistema", use_container_width=True)
    if submitted:
        success, message = clinic_state.login(state, selected["id"], pin)
        if success:
            state.login_user_id = None
            st.rerun()
        else:
            st.error(message)


def _file_to_data_url(uploaded):
    return f"data:{uploaded.type};base64,{base64.b64encode(uploaded.getvalue()).decode()}"


def _delete_user(user_id):
    success, message = clinic_state.delete_user(st.session_state, user_id)
    st.session_state.flash = ("success" if success else "error", message)


def settings_page():
    """Clinic profile, team and AI configuration (central account only)"""
    state = st.session_state
    st.title("⚙️ Configurações")

    if clinic_state.current_role(state) != ADMIN:
        st.warning("Acesso restrito. Apenas a Conta Central pode alterar as configurações da clínica.")
        return

    profile_tab, users_tab, ai_tab = st.tabs(["Perfil da Clínica", "Gestão de Usuários", "Integrações IA"])

    with profile_tab:
        profile = state.clinic_profile
        with st.form("clinic_profile_form"):
            st.subheader("Dados da Clínica (Cabeçalho de Relatórios)")
            col1, col2 = st.columns(2)
            with col1:
                clinic_name = st.text_input("Nome da Clínica", value=profile["clinic_name"])
                cro = st.text_input("CRO", value=profile["cro"])
            with col2:
                doctor = st.text_input("Responsável Técnico", value=profile["main_doctor_name"])
                phone = st.text_input("Telefone", value=profile["phone"])
            address = st.text_input("Endereço", value=profile["address"])
            color = st.color_picker("Cor principal", value=profile["primary_color"])
            saved = st.form_submit_button("Salvar Alterações")
        if saved:
            clinic_state.update_clinic_profile(state, {
                "clinic_name": clinic_name,
                "main_doctor_name": doctor,
                "cro": cro,
                "phone": phone,
                "address": address,
                "primary_color": color,
            })
            st.success("Perfil da clínica atualizado com sucesso!")

    with users_tab:
        st.subheader("Adicionar Usuário Integrado")
        st.caption(
            "Usuários criados aqui terão acesso restrito. Todas as ações realizadas por eles "
            "(agendamentos, cadastros) enviarão notificações para sua Conta Central."
        )
        with st.form("new_user_form", clear_on_submit=True):
            col1, col2 = st.columns(2)
            with col1:
                name = st.text_input("Nome", placeholder="Ex: Dra. Ana")
                email = st.text_input("E-mail")
            with col2:
                role = st.selectbox(
                    "Perfil",
                    [DOCTOR, RECEPTIONIST],
                    format_func=lambda r: "Cirurgião-Dentista (Integrado)" if r == DOCTOR else "Recepção / Secretária",
                )
                pin = st.text_input("PIN (4 dígitos)", type="password", max_chars=4, placeholder="0000")
            avatar = st.file_uploader("Foto (opcional)", type=["png", "jpg", "jpeg", "webp"])
            created = st.form_submit_button("Criar Usuário")
        if created:
            success, message = clinic_state.create_user(
                state, name.strip(), role, email.strip(), pin,
                _file_to_data_url(avatar) if avatar else None,
            )
            if success:
                st.success(message)
            else:
                st.error(message)

        st.subheader("Equipe Cadastrada")
        for user in state.users:
            with st.container(border=True):
                col1, col2, col3 = st.columns([1, 5, 2])
                with col1:
                    show_avatar(user, width=40)
                with col2:
                    st.markdown(f"**{user['name']}**  \n{user['email']} · {ROLE_LABELS[user['role']]}")
                with col3:
                    if user["role"] == ADMIN:
                        st.caption("Principal")
                    else:
                        st.button("Remover Acesso", key=f"delete_user_{user['id']}",
                                  on_click=_delete_user, args=(user["id"],))

    with ai_tab:
        st.subheader("OpenAI API")
        st.write("A chave habilita a análise de imagens, exames, anamnese, voz e o simulador.")
        api_key = st.text_input(
            "OpenAI API Key",
            value=state.openai_api_key,
            type="password",
            help="Sua chave da OpenAI. Mantenha em sigilo.",
        )
        if st.button("Salvar Chave"):
            state.openai_api_key = api_key.strip()
            logger.info("OpenAI API key updated from settings")
            st.success("Chave salva com sucesso!")

        if config.get_api_key(state):
            st.info("Chave da OpenAI configurada. Os recursos de IA estão disponíveis.")
        else:
            st.warning("Chave da OpenAI não configurada. Os recursos de IA ficarão indisponíveis.")
