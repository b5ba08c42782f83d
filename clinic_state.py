"""In-memory clinic state.

Every function takes the state mapping: st.session_state when running under
Streamlit, a plain dict in tests. Nothing is written to disk; a new browser
session starts again from the seed data.
"""
import copy
import calendar
import hashlib
import json
import logging
import uuid
from datetime import datetime, date

from config import PIN_LENGTH
from constants import (
    ADMIN, DOCTOR, RECEPTIONIST, VIEWS,
    DASHBOARD, AGENDA, ANAMNESIS, PATIENT_RECORDS,
    DEFAULT_USERS, DEFAULT_CLINIC_PROFILE, MOCK_PATIENTS,
    APPOINTMENT_STATUSES, SUS_CONDITIONS, SUS_TEXT_FIELDS, LAB_FIELDS,
)

logger = logging.getLogger(__name__)

MAX_VISIBLE_NOTIFICATIONS = 3
MAX_AGE = 130


def new_id():
    return uuid.uuid4().hex[:12]


def today_iso():
    return date.today().isoformat()


def today_br():
    return date.today().strftime("%d/%m/%Y")


def now_br():
    return datetime.now().strftime("%d/%m/%Y %H:%M:%S")


def time_br():
    return datetime.now().strftime("%H:%M")


WEEKDAYS_PT = ["segunda-feira", "terça-feira", "quarta-feira", "quinta-feira", "sexta-feira", "sábado", "domingo"]
MONTHS_PT = ["janeiro", "fevereiro", "março", "abril", "maio", "junho", "julho", "agosto",
             "setembro", "outubro", "novembro", "dezembro"]


def format_long_date(day):
    return f"{WEEKDAYS_PT[day.weekday()]}, {day.day} de {MONTHS_PT[day.month - 1]} de {day.year}"


def hash_pin(pin):
    return hashlib.sha256(pin.encode()).hexdigest()


def avatar_url(name, background="0047AB"):
    return f"https://ui-avatars.com/api/?name={name.replace(' ', '+')}&background={background}&color=fff"


def make_user(user_id, name, role, email, pin, avatar=None):
    return {
        "id": user_id,
        "name": name,
        "role": role,
        "email": email,
        "pin_hash": hash_pin(pin),
        "avatar": avatar or avatar_url(name),
    }


def make_patient(**fields):
    patient = {
        "id": new_id(),
        "name": "",
        "age": 0,
        "cns": "",
        "occupation": "",
        "history": "",
        "complaint": "",
        "diagnosis": "",
        "notes": "",
        "last_visit": today_br(),
        "visits": [],
        "exam_requests": [],
        "images": [],
        "lab_analyses": [],
        "odontogram": [],
        "sus_info": None,
        "audit": None,
    }
    patient.update(fields)
    return patient


def init_state(state):
    """Seed any missing key; existing values are left alone."""
    defaults = {
        "app_state": "landing",
        "current_user": None,
        "current_page": DASHBOARD,
        "users": [make_user(u["id"], u["name"], u["role"], u["email"], u["pin"]) for u in DEFAULT_USERS],
        "clinic_profile": dict(DEFAULT_CLINIC_PROFILE),
        "appointments": [
            {
                "id": "1",
                "patient_id": "1",
                "patient_name": "Ana Silva",
                "date": today_iso(),
                "time": "09:00",
                "procedure": "Restauração 46",
                "status": "confirmed",
                "notes": "",
            }
        ],
        "notifications": [],
        "patients": [make_patient(**copy.deepcopy(p)) for p in MOCK_PATIENTS],
        "openai_api_key": "",
    }
    for key, value in defaults.items():
        if key not in state:
            state[key] = value


def current_role(state):
    user = state.get("current_user")
    return user["role"] if user else None


def navigate_to(state, page):
    state["current_page"] = page


# --- Authentication ----------------------------------------------------------

def verify_pin(user, pin):
    return bool(pin) and user["pin_hash"] == hash_pin(pin)


def get_user(state, user_id):
    return next((u for u in state["users"] if u["id"] == user_id), None)


def login(state, user_id, pin):
    user = get_user(state, user_id)
    if not user:
        return False, "Usuário não encontrado."
    if not verify_pin(user, pin):
        logger.warning("Failed PIN attempt for user %s", user_id)
        return False, "PIN incorreto. Tente novamente."

    state["current_user"] = user
    state["app_state"] = "app"
    state["current_page"] = AGENDA if user["role"] == RECEPTIONIST else DASHBOARD
    logger.info("User %s logged in as %s", user["name"], user["role"])
    return True, f"Bem-vindo, {user['name']}"


def _valid_pin(pin):
    return len(pin or "") == PIN_LENGTH and pin.isdigit()


def setup_admin(state, name, pin):
    """First-run setup: create the central admin account and log in."""
    if state["users"]:
        return False, "A conta central já foi criada."
    if not name or not _valid_pin(pin):
        return False, "Preencha o nome e um PIN de 4 dígitos."

    admin = make_user("1", name, ADMIN, "admin@clinica.com", pin)
    state["users"] = [admin]
    state["current_user"] = admin
    state["app_state"] = "app"
    state["current_page"] = DASHBOARD
    logger.info("Central account created for %s", name)
    return True, "Conta central criada."


def logout(state):
    user = state.get("current_user")
    if user:
        logger.info("User %s logged out", user["name"])
    state["current_user"] = None
    state["app_state"] = "landing"


def create_user(state, name, role, email, pin, avatar=None):
    if not name or not pin:
        return False, "Nome e PIN são obrigatórios."
    if role not in (DOCTOR, RECEPTIONIST):
        return False, "Perfil inválido."
    if not _valid_pin(pin):
        return False, "O PIN deve ter 4 dígitos."

    user = make_user(new_id(), name, role, email, pin, avatar or avatar_url(name, "random"))
    state["users"] = state["users"] + [user]
    return True, f"Usuário {name} criado e integrado ao sistema central."


def delete_user(state, user_id):
    user = get_user(state, user_id)
    if not user:
        return False, "Usuário não encontrado."
    if user["role"] == ADMIN:
        return False, "A conta central não pode ser removida."
    state["users"] = [u for u in state["users"] if u["id"] != user_id]
    return True, f"Acesso de {user['name']} removido."


def update_clinic_profile(state, profile):
    state["clinic_profile"] = {**state["clinic_profile"], **profile}


# --- Views -------------------------------------------------------------------

def visible_views(role):
    return [view for view in VIEWS if role in view["roles"]]


def resolve_view(role, requested):
    """Receptionists only ever reach the intake form or the agenda."""
    if role == RECEPTIONIST:
        return ANAMNESIS if requested == ANAMNESIS else AGENDA
    return requested


# --- Notifications -----------------------------------------------------------

def add_notification(state, title, message, kind="info"):
    notification = {
        "id": new_id(),
        "title": title,
        "message": message,
        "time": time_br(),
        "type": kind,
    }
    state["notifications"] = [notification] + state["notifications"]
    return notification


def notify_admin(state, title, message):
    logger.info("Admin notified: %s - %s", title, message)
    return add_notification(state, title, message)


def dismiss_notification(state, notification_id):
    state["notifications"] = [n for n in state["notifications"] if n["id"] != notification_id]


def visible_notifications(state):
    if current_role(state) != ADMIN:
        return []
    return state["notifications"][:MAX_VISIBLE_NOTIFICATIONS]


# --- Patients ----------------------------------------------------------------

def get_patient(state, patient_id):
    return next((p for p in state["patients"] if p["id"] == patient_id), None)


def search_patient(patients, term):
    """First patient whose name contains the term, ignoring case."""
    if not term:
        return None
    term = term.lower()
    return next((p for p in patients if term in p["name"].lower()), None)


def add_patient(state, patient):
    state["patients"] = [patient] + state["patients"]
    user = state.get("current_user")
    if current_role(state) == RECEPTIONIST:
        notify_admin(state, "Novo Paciente Cadastrado", f"Recepção cadastrou {patient['name']}.")
        state["current_page"] = AGENDA
        return "Pré-cadastro realizado! O Doutor foi notificado."
    state["current_page"] = PATIENT_RECORDS
    logger.info("Patient %s registered by %s", patient["name"], user["name"] if user else "-")
    return "Paciente salvo e assinado digitalmente com sucesso!"


def update_patient(state, patient):
    state["patients"] = [patient if p["id"] == patient["id"] else p for p in state["patients"]]


def touch_audit(patient, user_name):
    if not patient.get("audit"):
        return patient
    audit = dict(patient["audit"])
    audit["last_modified_by"] = user_name
    audit["last_modified_at"] = now_br()
    return {**patient, "audit": audit}


def add_visit(state, patient_id, procedure, notes=""):
    patient = get_patient(state, patient_id)
    if not patient:
        return False, "Paciente não encontrado."
    if not procedure:
        return False, "Informe o procedimento realizado."
    visit = {"id": new_id(), "date": now_br(), "procedure": procedure, "notes": notes}
    update_patient(state, {**patient, "visits": [visit] + patient["visits"], "last_visit": today_br()})
    return True, "Visita registrada."


def complete_exam_request(state, patient_id, exam_id):
    patient = get_patient(state, patient_id)
    if not patient:
        return False
    exams = [
        {**exam, "status": "completed"} if exam["id"] == exam_id else exam
        for exam in patient["exam_requests"]
    ]
    update_patient(state, {**patient, "exam_requests": exams})
    return True


def save_image_to_record(state, patient_id, image_url, analysis):
    patient = get_patient(state, patient_id)
    if not patient:
        return False
    image = {"id": new_id(), "date": today_br(), "image_url": image_url, "analysis": analysis}
    update_patient(state, {**patient, "images": [image] + patient["images"]})
    user = state.get("current_user")
    if current_role(state) == DOCTOR:
        notify_admin(state, "Exame Adicionado", f"{user['name']} salvou uma análise.")
    return True


def save_lab_to_record(state, patient_id, lab_data, analysis):
    patient = get_patient(state, patient_id)
    if not patient:
        return False
    lab = {"id": new_id(), "date": today_br(), "raw_values": dict(lab_data), "summary": analysis}
    update_patient(state, {**patient, "lab_analyses": [lab] + (patient.get("lab_analyses") or [])})
    return True


def pending_exams(patient):
    if not patient:
        return []
    return [e["type"].lower() for e in patient["exam_requests"] if e["status"] == "requested"]


def is_pending(pending, keyword):
    if not keyword:
        return False
    keyword = keyword.lower()
    return any(keyword in exam for exam in pending)


def empty_lab_data():
    return {name: "" for name in LAB_FIELDS}


# --- Anamnesis ---------------------------------------------------------------

def empty_anamnesis_form():
    sus_info = {key: False for key, _ in SUS_CONDITIONS}
    sus_info.update({key: "" for key, _ in SUS_TEXT_FIELDS})
    return {
        "personal": {"name": "", "age": "", "cns": "", "occupation": ""},
        "sus_info": sus_info,
        "complaint": "",
    }


def build_history(sus_info):
    comorbidities = ""
    if sus_info.get("hypertension"):
        comorbidities += "Hipertensão "
    if sus_info.get("diabetes"):
        comorbidities += "Diabetes"
    return (
        f"Alergias: {sus_info.get('allergies') or 'Nega'}. "
        f"Meds: {sus_info.get('medications') or 'Nega'}. "
        f"Comorbidades: {comorbidities}. "
        f"Outros: {sus_info.get('other_diseases') or 'Nega'}."
    )


def generate_audit(user_name, payload):
    """Creation stamp plus a sha256 signature over the record and timestamp."""
    now = now_br()
    digest = hashlib.sha256(
        json.dumps({"by": user_name, "at": now, "nonce": uuid.uuid4().hex, "data": payload},
                   sort_keys=True, default=str).encode()
    ).hexdigest()
    return {
        "created_by": user_name,
        "created_at": now,
        "last_modified_by": user_name,
        "last_modified_at": now,
        "signature_hash": digest,
    }


def parse_age(value):
    """Typed age as an int within 0..MAX_AGE; anything unreadable is 0."""
    try:
        age = int(value)
    except (TypeError, ValueError):
        return 0
    return min(max(age, 0), MAX_AGE)


def build_patient_from_anamnesis(form, odontogram, exams, diagnosis, user_name):
    personal = form["personal"]
    sus_info = dict(form["sus_info"])
    exam_requests = [
        {"id": new_id(), "type": exam, "status": "requested", "date_requested": today_br()}
        for exam in exams
    ]
    patient = make_patient(
        name=personal["name"],
        age=parse_age(personal["age"]),
        cns=personal["cns"],
        occupation=personal["occupation"],
        history=build_history(sus_info),
        complaint=form["complaint"],
        diagnosis=diagnosis,
        notes="Paciente cadastrado via Anamnese Digital.",
        exam_requests=exam_requests,
        odontogram=list(odontogram or []),
        sus_info=sus_info,
    )
    patient["audit"] = generate_audit(user_name, {k: v for k, v in patient.items() if k != "audit"})
    return patient


# --- Appointments ------------------------------------------------------------

def appointments_for_date(appointments, date_str):
    return sorted((a for a in appointments if a["date"] == date_str), key=lambda a: a["time"])


def appointments_per_day(appointments, year, month):
    """Appointment count for every day of the month, including empty days."""
    days = calendar.monthrange(year, month)[1]
    counts = {date(year, month, day).isoformat(): 0 for day in range(1, days + 1)}
    for appointment in appointments:
        if appointment["date"] in counts and appointment["status"] != "canceled":
            counts[appointment["date"]] += 1
    return counts


def add_appointment(state, patient_name, date_str, time_str, procedure, patient_id=None, notes=""):
    if not patient_name or not time_str or not procedure:
        return False, "Informe paciente, horário e procedimento."

    appointment = {
        "id": new_id(),
        "patient_id": patient_id,
        "patient_name": patient_name,
        "date": date_str,
        "time": time_str,
        "procedure": procedure,
        "status": "scheduled",
        "notes": notes,
    }
    state["appointments"] = state["appointments"] + [appointment]
    user = state.get("current_user")
    if current_role(state) != ADMIN:
        notify_admin(state, "Novo Agendamento", f"{user['name'] if user else ''} agendou {patient_name}.")
    return True, "Consulta agendada."


def get_appointment(state, appointment_id):
    return next((a for a in state["appointments"] if a["id"] == appointment_id), None)


def update_appointment(state, appointment):
    if appointment["status"] not in APPOINTMENT_STATUSES:
        raise ValueError(f"Unknown appointment status: {appointment['status']}")
    state["appointments"] = [
        appointment if a["id"] == appointment["id"] else a for a in state["appointments"]
    ]
    if appointment["status"] == "waiting" and current_role(state) == RECEPTIONIST:
        notify_admin(state, "Paciente na Recepção", f"{appointment['patient_name']} chegou.")


def mark_arrived(state, appointment_id):
    appointment = get_appointment(state, appointment_id)
    if not appointment:
        return False
    update_appointment(state, {**appointment, "status": "waiting"})
    add_notification(state, "Paciente Chegou", f"{appointment['patient_name']} está aguardando na recepção.")
    return True
