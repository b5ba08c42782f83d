"""Printable HTML documents: the patient record and the daily agenda."""
from datetime import datetime
from html import escape

import markdown

import odontogram
from constants import APPOINTMENT_STATUS_LABELS

REPORT_STYLE = """
body { font-family: Arial, sans-serif; margin: 32px; color: #1f2937; }
.header { display: flex; justify-content: space-between; border-bottom: 3px solid #0047AB; padding-bottom: 12px; }
.header h1 { color: #0047AB; margin: 0; font-size: 22px; }
.header h2 { margin: 0; font-size: 18px; text-align: right; }
.muted { color: #6b7280; font-size: 12px; margin: 2px 0; }
.patient { display: grid; grid-template-columns: repeat(4, 1fr); gap: 12px; background: #f9fafb; padding: 12px; margin: 16px 0; border-radius: 8px; }
.label { font-size: 10px; text-transform: uppercase; color: #6b7280; margin: 0; }
.value { font-weight: bold; margin: 0; }
section { margin-bottom: 20px; }
.section-title { color: #0047AB; font-weight: bold; border-bottom: 1px solid #e5e7eb; margin-bottom: 8px; padding-bottom: 4px; }
table { width: 100%; border-collapse: collapse; font-size: 13px; }
th { background: #0047AB; color: white; text-align: left; padding: 6px; }
td { border-bottom: 1px solid #e5e7eb; padding: 6px; vertical-align: top; }
tr:nth-child(even) td { background: #f9fafb; }
.footer { display: flex; justify-content: space-between; margin-top: 48px; font-size: 11px; color: #6b7280; }
.signature { text-align: center; border-top: 1px solid #1f2937; padding-top: 4px; min-width: 220px; }
.print-btn { margin-bottom: 16px; padding: 8px 16px; background: #0047AB; color: white; border: none; border-radius: 6px; cursor: pointer; }
@media print { .print-btn { display: none; } body { -webkit-print-color-adjust: exact; } }
"""

DEFAULT_REPORT_OPTIONS = {
    "include_history": True,
    "include_visits": True,
    "include_exams": True,
    "include_labs": True,
    "include_odontogram": True,
}


def _issued_at():
    now = datetime.now()
    return f"{now.strftime('%d/%m/%Y')} às {now.strftime('%H:%M:%S')}"


def _clinic_header(clinic, title, subtitle):
    return f"""
<div class="header">
  <div>
    <h1>🦷 {escape(clinic['clinic_name'])}</h1>
    <p class="muted">{escape(clinic['address'])} | Tel: {escape(clinic['phone'])}</p>
  </div>
  <div>
    <h2>{escape(title)}</h2>
    {subtitle}
  </div>
</div>"""


def _table(headers, rows, empty_text):
    head = "".join(f"<th>{escape(h)}</th>" for h in headers)
    if rows:
        body = "".join("<tr>" + "".join(f"<td>{cell}</td>" for cell in row) + "</tr>" for row in rows)
    else:
        body = f'<tr><td colspan="{len(headers)}" style="text-align:center;">{escape(empty_text)}</td></tr>'
    return f"<table><thead><tr>{head}</tr></thead><tbody>{body}</tbody></table>"


def _markdown(text):
    """Render model output; any raw HTML in it is shown as text."""
    return markdown.markdown(escape(text or "", quote=False))


def _section(title, content):
    return f'<section><div class="section-title">{escape(title)}</div>{content}</section>'


def patient_report_html(patient, clinic, options=None):
    """Clinical record for printing, with the sections chosen in options."""
    options = {**DEFAULT_REPORT_OPTIONS, **(options or {})}
    subtitle = (
        f'<p class="muted">{escape(clinic["main_doctor_name"])} - {escape(clinic["cro"])}</p>'
        f'<p class="muted">Emissão: {_issued_at()}</p>'
    )
    parts = [_clinic_header(clinic, "Prontuário Clínico", subtitle)]

    parts.append(f"""
<div class="patient">
  <div><p class="label">Paciente</p><p class="value">{escape(patient['name'])}</p></div>
  <div><p class="label">Idade</p><p class="value">{patient['age']} anos</p></div>
  <div><p class="label">CNS</p><p class="value">{escape(patient.get('cns') or 'Não informado')}</p></div>
  <div><p class="label">Última Visita</p><p class="value">{escape(patient.get('last_visit') or '-')}</p></div>
</div>""")

    if options["include_history"]:
        content = (
            f"<p><strong>Queixa Principal:</strong> {escape(patient.get('complaint') or '')}</p>"
            f"<p><strong>Histórico Médico:</strong> {escape(patient.get('history') or '')}</p>"
        )
        if patient.get("diagnosis"):
            content += (
                "<div><strong>Hipótese Diagnóstica & Planejamento</strong>"
                f"{_markdown(patient['diagnosis'])}</div>"
            )
        parts.append(_section("Anamnese e Diagnóstico", content))

    if options["include_visits"] and patient.get("visits"):
        rows = [
            (escape(v["date"]), escape(v["procedure"]), escape(v.get("notes") or ""))
            for v in patient["visits"]
        ]
        parts.append(_section("Evolução Clínica", _table(["Data", "Procedimento", "Descrição / Notas"], rows, "")))

    if options["include_exams"] and (patient.get("exam_requests") or patient.get("images")):
        content = ""
        if patient.get("exam_requests"):
            rows = [
                (escape(e["type"]), "Solicitado" if e["status"] == "requested" else "Concluído",
                 escape(e["date_requested"]))
                for e in patient["exam_requests"]
            ]
            content += _table(["Exame", "Status", "Data"], rows, "")
        for image in patient.get("images") or []:
            content += (
                f"<p class='muted'>Imagem de {escape(image['date'])}</p>"
                f"<img src='{image['image_url']}' style='max-height:220px;'/>"
                f"{_markdown(image['analysis'])}"
            )
        parts.append(_section("Exames & Imagens", content))

    if options["include_labs"] and patient.get("lab_analyses"):
        content = ""
        for lab in patient["lab_analyses"]:
            values = ", ".join(f"{escape(k)}: {escape(v)}" for k, v in lab["raw_values"].items() if v)
            content += (
                f"<p><strong>{escape(lab['date'])}</strong> {values}</p>"
                f"{_markdown(lab['summary'])}"
            )
        parts.append(_section("Análises Laboratoriais", content))

    if options["include_odontogram"] and patient.get("odontogram"):
        lines = "".join(f"<li>{escape(line)}</li>" for line in odontogram.describe_teeth(patient["odontogram"]))
        content = odontogram.render_odontogram_html(patient["odontogram"]) + f"<ul>{lines}</ul>"
        parts.append(_section("Odontograma", content))

    audit = patient.get("audit")
    hash_line = f"<p>HASH: {escape(audit['signature_hash'])}</p>" if audit else ""
    parts.append(f"""
<div class="footer">
  <div>
    <p>Documento gerado eletronicamente pelo sistema OdontoAI Pro.</p>
    <p>A validade deste documento depende da assinatura digital ou carimbo do profissional.</p>
    {hash_line}
  </div>
  <div class="signature">
    <p>{escape(clinic['main_doctor_name'])}</p>
    <p>Cirurgião-Dentista | {escape(clinic['cro'])}</p>
  </div>
</div>""")
    return "\n".join(parts)


def agenda_html(appointments, day_label, clinic):
    """Daily agenda table; appointments should already be filtered and sorted."""
    subtitle = f'<p class="muted">{escape(day_label)}</p>'
    rows = [
        (escape(a["time"]), escape(a["patient_name"]), escape(a["procedure"]),
         APPOINTMENT_STATUS_LABELS.get(a["status"], a["status"]))
        for a in appointments
    ]
    table = _table(["Horário", "Paciente", "Procedimento", "Status"], rows, "Sem atendimentos agendados.")
    return _clinic_header(clinic, "Agenda Diária", subtitle) + table


def print_wrapper(body, title):
    """Standalone document with a print button, for download or embedding."""
    return f"""<!DOCTYPE html>
<html>
<head>
<meta charset="UTF-8">
<title>{escape(title)}</title>
<style>{REPORT_STYLE}</style>
</head>
<body>
<button class="print-btn" onclick="window.print()">🖨️ Imprimir / Salvar PDF</button>
{body}
</body>
</html>"""
