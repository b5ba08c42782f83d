# Page identifiers stored in st.session_state.current_page
DASHBOARD = "dashboard"
AGENDA = "agenda"
ANAMNESIS = "anamnesis"
VISION_DIAGNOSTIC = "vision_diagnostic"
LAB_ANALYZER = "lab_analyzer"
PATIENT_RECORDS = "patient_records"
VOICE_STUDY = "voice_study"
SIMULATOR = "simulator"
SALES_ENGINE = "sales_engine"
SETTINGS = "settings"

ADMIN = "ADMIN"
DOCTOR = "DOCTOR"
RECEPTIONIST = "RECEPTIONIST"
ROLES = (ADMIN, DOCTOR, RECEPTIONIST)

ROLE_LABELS = {
    ADMIN: "Conta Central",
    DOCTOR: "Dentista Integrado",
    RECEPTIONIST: "Recepção",
}

# Sidebar navigation, filtered by role
VIEWS = [
    {"id": DASHBOARD, "label": "Dashboard", "icon": "📊", "roles": [ADMIN, DOCTOR]},
    {"id": AGENDA, "label": "Agenda", "icon": "📅", "roles": [ADMIN, DOCTOR, RECEPTIONIST]},
    {"id": PATIENT_RECORDS, "label": "Prontuários", "icon": "📂", "roles": [ADMIN, DOCTOR]},
    {"id": VISION_DIAGNOSTIC, "label": "Vision AI", "icon": "👁️", "roles": [ADMIN, DOCTOR]},
    {"id": LAB_ANALYZER, "label": "Lab", "icon": "🧪", "roles": [ADMIN, DOCTOR]},
    {"id": SALES_ENGINE, "label": "Vendas", "icon": "💬", "roles": [ADMIN, DOCTOR]},
    {"id": VOICE_STUDY, "label": "Estudo por Voz", "icon": "🎙️", "roles": [ADMIN, DOCTOR]},
    {"id": SIMULATOR, "label": "Simulador", "icon": "🎭", "roles": [ADMIN, DOCTOR]},
    {"id": SETTINGS, "label": "Config", "icon": "⚙️", "roles": [ADMIN, DOCTOR]},
]

APPOINTMENT_STATUSES = ["scheduled", "confirmed", "waiting", "in_service", "completed", "canceled"]

APPOINTMENT_STATUS_LABELS = {
    "scheduled": "Agendado",
    "confirmed": "Confirmado",
    "waiting": "Na Recepção",
    "in_service": "Em Atendimento",
    "completed": "Concluído",
    "canceled": "Cancelado",
}

APPOINTMENT_STATUS_ICONS = {
    "scheduled": "⚪",
    "confirmed": "🟢",
    "waiting": "🟡",
    "in_service": "🔵",
    "completed": "⚫",
    "canceled": "🔴",
}

DEFAULT_USERS = [
    {"id": "1", "name": "Dr. Silva (Admin)", "role": ADMIN, "email": "admin@odontoai.com", "pin": "1234"},
    {"id": "2", "name": "Recepção", "role": RECEPTIONIST, "email": "recepcao@odontoai.com", "pin": "0000"},
]

DEFAULT_CLINIC_PROFILE = {
    "clinic_name": "Clínica OdontoAI Pro",
    "main_doctor_name": "Dr. Silva",
    "cro": "CRO/SP 12345",
    "address": "Av. Paulista, 1000 - São Paulo/SP",
    "phone": "(11) 99999-8888",
    "logo": None,
    "primary_color": "#0047AB",
}

MOCK_PATIENTS = [
    {
        "id": "1",
        "name": "Ana Silva",
        "age": 34,
        "history": "Alérgica a Penicilina. Diabética controlada.",
        "notes": "Queixa de dor no 46.",
        "last_visit": "2023-10-15",
        "complaint": "Dor pulsátil na região inferior direita.",
    },
    {
        "id": "2",
        "name": "Carlos Oliveira",
        "age": 58,
        "history": "Hipertenso. Uso de AAS.",
        "notes": "Necessita exodontia do 18.",
        "last_visit": "2024-01-20",
        "complaint": "Incômodo na região posterior superior.",
    },
    {
        "id": "3",
        "name": "Beatriz Costa",
        "age": 7,
        "history": "Sem comorbidades. Alto consumo de açúcar.",
        "notes": "Cárie incipiente no 55.",
        "last_visit": "2024-03-10",
        "complaint": "Mancha escura no dente.",
    },
]

PERSONAS = [
    {
        "id": "phobia",
        "name": "Paciente com Odontofobia",
        "description": "Tem medo de agulhas e do som do motor. Faz muitas perguntas sobre dor.",
        "system_prompt": "Você é um paciente com medo extremo de dentista. Questione se vai doer, "
                         "se a anestesia pega mesmo. Mostre ansiedade.",
    },
    {
        "id": "skeptic",
        "name": "Paciente Cético (Preço)",
        "description": "Acha tudo caro e questiona a necessidade real dos procedimentos.",
        "system_prompt": "Você é um paciente que acha o tratamento caro. Peça descontos, pergunte se "
                         "não dá para fazer algo mais barato ou esperar mais tempo.",
    },
    {
        "id": "pediatric",
        "name": "Mãe de Paciente Pediátrico",
        "description": "Preocupada com a estética e o trauma da criança.",
        "system_prompt": "Você é a mãe de uma criança de 6 anos. Você está preocupada se o filho vai "
                         "chorar e se o dente vai nascer torto depois.",
    },
]

EXAM_OPTIONS = [
    "RX Panorâmica",
    "RX Periapical",
    "RX Interproximal",
    "Tomografia Cone Beam",
    "Hemograma Completo",
    "Coagulograma",
    "Glicemia Jejum",
    "Fotografia Intraoral",
    "Fotografia Extraoral",
]

# Lab analyzer tabs. "pending" is matched against requested exam names.
LAB_GROUPS = [
    {
        "id": "hematology",
        "label": "Hematologia",
        "fields": [
            {"name": "erythrocytes", "label": "Eritrócitos (milhões/mm³)", "placeholder": "4.5", "pending": "hemograma"},
            {"name": "hemoglobin", "label": "Hemoglobina (g/dL)", "placeholder": "13.5", "pending": "hemograma"},
            {"name": "hematocrit", "label": "Hematócrito (%)", "placeholder": "40", "pending": "hemograma"},
            {"name": "leukocytes", "label": "Leucócitos (/mm³)", "placeholder": "6000", "pending": "hemograma"},
            {"name": "platelets", "label": "Plaquetas (/mm³)", "placeholder": "250000", "pending": "hemograma"},
        ],
    },
    {
        "id": "biochemistry",
        "label": "Bioquímica",
        "fields": [
            {"name": "glucose", "label": "Glicemia Jejum (mg/dL)", "placeholder": "90", "pending": "glicemia"},
            {"name": "hba1c", "label": "Hemoglobina Glicada (%)", "placeholder": "5.5", "pending": "glicemia"},
            {"name": "urea", "label": "Ureia (mg/dL)", "placeholder": "30", "pending": None},
            {"name": "creatinine", "label": "Creatinina (mg/dL)", "placeholder": "0.9", "pending": None},
        ],
    },
    {
        "id": "coagulation",
        "label": "Coagulação",
        "fields": [
            {"name": "tap_inr", "label": "TAP / INR", "placeholder": "1.0", "pending": "coagulograma"},
            {"name": "ttpa", "label": "TTPA (segundos)", "placeholder": "30", "pending": "coagulograma"},
        ],
    },
    {
        "id": "others",
        "label": "Hormonal & Outros",
        "fields": [
            {"name": "calcium", "label": "Cálcio (mg/dL)", "placeholder": "9.5", "pending": None},
            {"name": "vitamin_d", "label": "Vitamina D (ng/mL)", "placeholder": "30", "pending": None},
        ],
    },
]

LAB_FIELDS = [field["name"] for group in LAB_GROUPS for field in group["fields"]]

SUS_CONDITIONS = [
    ("hypertension", "Hipertensão"),
    ("diabetes", "Diabetes"),
    ("heart_disease", "Cardiopatia"),
    ("smoker", "Fumante"),
    ("pregnant", "Gestante"),
    ("bleeding_history", "Hemorragia"),
]

SUS_TEXT_FIELDS = [
    ("allergies", "Alergias Conhecidas"),
    ("medications", "Medicamentos em Uso"),
    ("hospitalizations", "Histórico Cirúrgico"),
    ("other_diseases", "Outras Observações"),
]

ANAMNESIS_STEPS = [
    (1, "Cadastro", "👤"),
    (2, "Anamnese", "📋"),
    (3, "Queixa", "💬"),
    (4, "Odontograma", "🦷"),
    (5, "Exames", "🧾"),
    (6, "Conclusão", "✅"),
]
