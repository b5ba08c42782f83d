"""Tooth chart (odontogram) model and editor.

An odontogram is a sparse list of tooth dicts, one per charted tooth:

    {"id": 46, "faces": {"occlusal": "caries", ...}, "general_status": "healthy", "notes": ""}

Teeth that were never edited are not stored and read back as healthy.
"""
import html
import logging

import streamlit as st

logger = logging.getLogger(__name__)

# FDI numbering in chart order: upper right, upper left, lower right, lower left
TEETH_NUMBERS = [
    18, 17, 16, 15, 14, 13, 12, 11,
    21, 22, 23, 24, 25, 26, 27, 28,
    48, 47, 46, 45, 44, 43, 42, 41,
    31, 32, 33, 34, 35, 36, 37, 38,
]

FACES = ("occlusal", "vestibular", "lingual", "mesial", "distal")
WHOLE = "whole"

STATUSES = ("healthy", "caries", "restoration", "missing", "endo", "implant", "crown")
WHOLE_TOOTH_STATUSES = ("missing", "implant")
FACE_STATUSES = ("healthy", "caries", "restoration", "endo", "crown")

FACE_LABELS = {
    "occlusal": "Oclusal/Incisal",
    "vestibular": "Vestibular",
    "lingual": "Lingual/Palatal",
    "mesial": "Mesial",
    "distal": "Distal",
    WHOLE: "Geral",
}

STATUS_LABELS = {
    "healthy": "Saudável",
    "caries": "Cárie",
    "restoration": "Restaurado",
    "missing": "Ausente",
    "endo": "Canal",
    "implant": "Implante",
    "crown": "Coroa",
}

STATUS_COLORS = {
    "healthy": "#f3f4f6",
    "caries": "#ef4444",
    "restoration": "#3b82f6",
    "missing": "#1f2937",
    "endo": "#a855f7",
    "implant": "#22c55e",
    "crown": "#facc15",
}

LEGEND = [
    ("healthy", "Saudável"),
    ("caries", "Cárie"),
    ("restoration", "Restaurado"),
    ("crown", "Coroa/Prótese"),
    ("endo", "Endo"),
    ("missing", "Ausente"),
    ("implant", "Implante"),
]


def upper_arch():
    return TEETH_NUMBERS[:16]


def lower_arch():
    return TEETH_NUMBERS[16:]


def default_tooth(tooth_id):
    return {
        "id": tooth_id,
        "faces": {face: "healthy" for face in FACES},
        "general_status": "healthy",
        "notes": "",
    }


def _copy_tooth(tooth):
    copied = dict(tooth)
    copied["faces"] = dict(tooth["faces"])
    return copied


def get_tooth(teeth, tooth_id):
    """Return the charted tooth, or a healthy default if it was never edited."""
    for tooth in teeth or []:
        if tooth["id"] == tooth_id:
            return tooth
    return default_tooth(tooth_id)


def _validate(tooth_id, face, status):
    if tooth_id not in TEETH_NUMBERS:
        raise ValueError(f"Unknown tooth number: {tooth_id}")
    if face != WHOLE and face not in FACES:
        raise ValueError(f"Unknown tooth face: {face}")
    if status not in STATUSES:
        raise ValueError(f"Unknown tooth status: {status}")


def update_tooth(teeth, tooth_id, face, status):
    """Apply one edit and return a new list of teeth.

    A whole-tooth edit sets the general status; missing and implant also
    overwrite all five faces. A face edit changes only that face and brings
    a missing tooth back to healthy.
    """
    _validate(tooth_id, face, status)
    new_teeth = list(teeth or [])
    index = next((i for i, t in enumerate(new_teeth) if t["id"] == tooth_id), None)
    tooth = _copy_tooth(new_teeth[index]) if index is not None else default_tooth(tooth_id)

    if face == WHOLE:
        tooth["general_status"] = status
        if status in WHOLE_TOOTH_STATUSES:
            tooth["faces"] = {f: status for f in FACES}
    else:
        tooth["faces"][face] = status
        if tooth["general_status"] == "missing":
            tooth["general_status"] = "healthy"

    if index is not None:
        new_teeth[index] = tooth
    else:
        new_teeth.append(tooth)
    return new_teeth


def set_tooth_notes(teeth, tooth_id, notes):
    if tooth_id not in TEETH_NUMBERS:
        raise ValueError(f"Unknown tooth number: {tooth_id}")
    new_teeth = list(teeth or [])
    for i, tooth in enumerate(new_teeth):
        if tooth["id"] == tooth_id:
            updated = _copy_tooth(tooth)
            updated["notes"] = notes
            new_teeth[i] = updated
            return new_teeth
    tooth = default_tooth(tooth_id)
    tooth["notes"] = notes
    new_teeth.append(tooth)
    return new_teeth


def is_whole_tooth(tooth):
    return tooth["general_status"] in WHOLE_TOOTH_STATUSES


def count_changes(teeth):
    return len(teeth or [])


def describe_tooth(tooth):
    if is_whole_tooth(tooth):
        text = f"{tooth['id']}: {STATUS_LABELS[tooth['general_status']]} (dente todo)"
    else:
        altered = [
            f"{FACE_LABELS[face]}={STATUS_LABELS[tooth['faces'][face]]}"
            for face in FACES
            if tooth["faces"][face] != "healthy"
        ]
        parts = []
        if tooth["general_status"] != "healthy":
            parts.append(f"Geral={STATUS_LABELS[tooth['general_status']]}")
        parts.extend(altered)
        text = f"{tooth['id']}: " + (", ".join(parts) if parts else STATUS_LABELS["healthy"])
    if tooth.get("notes"):
        text += f" - {tooth['notes']}"
    return text


def describe_teeth(teeth):
    """One line per charted tooth, in chart order."""
    charted = {tooth["id"]: tooth for tooth in teeth or []}
    return [describe_tooth(charted[n]) for n in TEETH_NUMBERS if n in charted]


# --- HTML rendering ---------------------------------------------------------

def _cell(status, title):
    return (
        f'<div title="{html.escape(title)}" style="background:{STATUS_COLORS[status]};'
        f'width:12px;height:12px;"></div>'
    )


def render_tooth_html(tooth):
    tooth_id = tooth["id"]
    if is_whole_tooth(tooth):
        mark = "✕" if tooth["general_status"] == "missing" else "⚙"
        body = (
            f'<div title="{STATUS_LABELS[tooth["general_status"]]}" style="width:38px;height:38px;'
            f'border-radius:50%;border:2px solid #d1d5db;display:flex;align-items:center;'
            f'justify-content:center;color:white;background:{STATUS_COLORS[tooth["general_status"]]};">'
            f'{mark}</div>'
        )
    else:
        faces = tooth["faces"]
        blank = '<div style="background:white;width:12px;height:12px;"></div>'
        # 3x3 cross: vestibular on top, mesial/occlusal/distal in the middle, lingual below
        cells = [
            blank, _cell(faces["vestibular"], "Vestibular"), blank,
            _cell(faces["mesial"], "Mesial"), _cell(faces["occlusal"], "Oclusal"),
            _cell(faces["distal"], "Distal"),
            blank, _cell(faces["lingual"], "Lingual"), blank,
        ]
        body = (
            '<div style="display:grid;grid-template-columns:repeat(3,12px);gap:1px;'
            'background:#d1d5db;border:1px solid #d1d5db;border-radius:3px;overflow:hidden;">'
            + "".join(cells) + "</div>"
        )
    return (
        '<div style="display:flex;flex-direction:column;align-items:center;gap:2px;margin:2px;">'
        f'{body}<span style="font-size:11px;font-weight:bold;color:#6b7280;">{tooth_id}</span></div>'
    )


def render_legend_html():
    items = "".join(
        f'<span style="display:inline-flex;align-items:center;gap:4px;margin-right:12px;">'
        f'<span style="width:10px;height:10px;border-radius:50%;display:inline-block;'
        f'background:{STATUS_COLORS[status]};border:1px solid #d1d5db;"></span>{label}</span>'
        for status, label in LEGEND
    )
    return f'<div style="font-size:12px;color:#4b5563;margin-top:12px;">{items}</div>'


def render_odontogram_html(teeth):
    def arch(numbers):
        row = "".join(render_tooth_html(get_tooth(teeth, n)) for n in numbers)
        return f'<div style="display:flex;flex-wrap:wrap;justify-content:center;gap:2px;">{row}</div>'

    return (
        '<div style="display:flex;flex-direction:column;gap:24px;align-items:center;padding:8px;">'
        + arch(upper_arch()) + arch(lower_arch()) + "</div>" + render_legend_html()
    )


# --- Streamlit editor -------------------------------------------------------

def odontogram_editor(teeth, key, read_only=False):
    """Render the chart and, unless read-only, a form to edit one tooth.

    Returns the odontogram list, new if an edit was applied.
    """
    teeth = teeth if teeth is not None else []
    if read_only:
        st.markdown(render_odontogram_html(teeth), unsafe_allow_html=True)
        return teeth

    chart = st.empty()
    # outside the form so the notes field follows the selected tooth
    tooth_id = st.selectbox("Dente", TEETH_NUMBERS, key=f"{key}_tooth")
    current_notes = get_tooth(teeth, tooth_id)["notes"]
    with st.form(f"{key}_form"):
        col1, col2 = st.columns(2)
        with col1:
            face = st.selectbox(
                "Face",
                list(FACES) + [WHOLE],
                format_func=lambda f: FACE_LABELS[f],
                key=f"{key}_face",
            )
        with col2:
            status = st.selectbox(
                "Condição",
                list(STATUSES),
                format_func=lambda s: STATUS_LABELS[s],
                key=f"{key}_status",
                help="Ausente e Implante valem para o dente todo.",
            )
        notes = st.text_input("Observações do dente", value=current_notes, key=f"{key}_notes_{tooth_id}")
        applied = st.form_submit_button("Aplicar", use_container_width=True)

    if applied:
        # whole-tooth statuses always apply to the whole tooth
        target = WHOLE if status in WHOLE_TOOTH_STATUSES else face
        teeth = update_tooth(teeth, tooth_id, target, status)
        notes = notes.strip()
        if notes != current_notes:
            teeth = set_tooth_notes(teeth, tooth_id, notes)
        logger.info("Tooth %s %s set to %s", tooth_id, target, status)

    chart.markdown(render_odontogram_html(teeth), unsafe_allow_html=True)
    if teeth:
        with st.expander(f"Alterações registradas ({count_changes(teeth)})"):
            for line in describe_teeth(teeth):
                st.write(line)
    return teeth
