import base64
import io
import json
import logging

from openai import OpenAI

import config
import odontogram

logger = logging.getLogger(__name__)

MISSING_KEY_MESSAGE = "Configure a chave da API OpenAI na página de Configurações para usar os recursos de IA."
SIMULATION_ERROR = "(Erro na simulação. Tente novamente.)"

SIMULATION_GUIDELINES = """
Diretrizes de Personalidade:
1. Fale como um HUMANO brasileiro comum. Use linguagem coloquial, pausas, e até erros gramaticais leves se condizer com o perfil.
2. NÃO dê respostas longas ou "palestras". Pacientes reais respondem de forma curta.
3. Expresse emoções (medo, dúvida, pressa, irritação) no texto.
4. Se o dentista usar termos muito técnicos, diga que não entendeu.
5. Nunca saia do personagem.
"""


def get_client(api_key):
    return OpenAI(api_key=api_key)


def encode_image(image_bytes, mime_type):
    """Build a data URL, the form images are kept in on the patient record."""
    return f"data:{mime_type};base64,{base64.b64encode(image_bytes).decode()}"


def split_data_url(data_url):
    """Return (mime_type, base64_data) for a data URL."""
    header, _, data = data_url.partition(",")
    mime_type = header.split(";")[0].split(":")[1] if ":" in header else ""
    return mime_type, data


def _complete(api_key, messages, model, fallback, error_message, temperature=0.7, max_tokens=1500):
    if not api_key:
        return MISSING_KEY_MESSAGE
    try:
        client = get_client(api_key)
        response = client.chat.completions.create(
            model=model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
        )
        return response.choices[0].message.content or fallback
    except Exception as e:
        logger.error("OpenAI request failed (%s): %s", model, e)
        return error_message


def analyze_dental_image(image_bytes, mime_type, api_key):
    """Radiology read of a panoramic X-ray or intraoral photo."""
    prompt = (
        "Atue como Radiologista Odontológico Sênior. Analise esta imagem (RX Panorâmica ou Foto Intraoral). "
        "Identifique indícios de cáries, reabsorções ósseas, lesões periapicais, cálculo ou outras patologias. "
        "Liste as áreas de atenção com precisão técnica. Formate a resposta em Markdown."
    )
    messages = [
        {
            "role": "user",
            "content": [
                {"type": "text", "text": prompt},
                {"type": "image_url", "image_url": {"url": encode_image(image_bytes, mime_type)}},
            ],
        }
    ]
    return _complete(
        api_key, messages, config.VISION_MODEL,
        fallback="Não foi possível analisar a imagem.",
        error_message="Erro ao processar imagem. Verifique a conexão.",
    )


def analyze_lab_risks(lab_data, api_key):
    """Surgical risk assessment from a full set of lab values."""
    prompt = f"""Atue como um Cirurgião Bucomaxilofacial e Clínico Geral.
Analise os seguintes exames laboratoriais completos de um paciente odontológico:
{json.dumps(lab_data, ensure_ascii=False)}

Tarefa:
1. Identifique valores fora da referência normal.
2. Cruze os dados (ex: Creatinina alta + Ureia alta = Risco Renal).
3. Emita um "Alerta de Risco Cirúrgico" detalhado.
4. Sugira protocolos de precaução para cirurgias (extrações/implantes).

Formate em Markdown. Seja direto."""
    return _complete(
        api_key, [{"role": "user", "content": prompt}], config.TEXT_MODEL,
        fallback="Sem análise disponível.",
        error_message="Erro na análise laboratorial.",
    )


def get_pharmaco_advice(patient_history, api_key):
    prompt = f"""Atue como Farmacologista Clínico. Analise esta anamnese de paciente odontológico: "{patient_history}".

Sugira um protocolo farmacológico COMPLETO pós-operatório para uma cirurgia de médio porte:
1. Analgesia
2. Anti-inflamatório
3. Antibiótico (apenas se justificado pela anamnese, considere profilaxia se necessário)

LEMBRE-SE DE CHECAR ALERGIAS DESCRITAS. Se o paciente for alérgico, sugira alternativas seguras."""
    return _complete(
        api_key, [{"role": "user", "content": prompt}], config.TEXT_MODEL,
        fallback="Sem sugestão.",
        error_message="Erro ao obter protocolo. Tente novamente.",
    )


def generate_sales_script(diagnosis, api_key):
    prompt = (
        "Transforme este diagnóstico técnico odontológico em um Script de Venda Educativo para o paciente. "
        "Use linguagem simples, empática e persuasiva. Explique os riscos de não tratar e os benefícios do "
        f'tratamento. Diagnóstico: "{diagnosis}"'
    )
    return _complete(
        api_key, [{"role": "user", "content": prompt}], config.TEXT_MODEL,
        fallback="Erro ao gerar script.",
        error_message="Erro no motor de vendas.",
    )


def get_voice_answer(question, api_key):
    prompt = (
        "Responda de forma concisa (máximo 3 frases) para leitura em voz alta. "
        f'Pergunta de um dentista: "{question}"'
    )
    return _complete(
        api_key, [{"role": "user", "content": prompt}], config.TEXT_MODEL,
        fallback="Não entendi.",
        error_message="Erro de conexão.",
        max_tokens=300,
    )


def analyze_anamnesis(form, api_key, teeth=None):
    """Structured diagnostic report from the intake form and, if charted, the odontogram."""
    chart_lines = odontogram.describe_teeth(teeth)
    chart = "\n".join(chart_lines) if chart_lines else "Sem alterações registradas."
    prompt = f"""Atue como um Especialista em Diagnóstico Oral e Estomatologia.
Analise os dados desta Anamnese (Padrão SUS Brasil):

DADOS PESSOAIS: {json.dumps(form["personal"], ensure_ascii=False)}
HISTÓRICO DE SAÚDE (SUS): {json.dumps(form["sus_info"], ensure_ascii=False)}
QUEIXA PRINCIPAL: "{form["complaint"]}"
ODONTOGRAMA:
{chart}

Gere um relatório estruturado contendo:
1. **Hipótese Diagnóstica**: Baseado na queixa e histórico.
2. **Fatores de Risco Sistêmico**: Baseado nas respostas do questionário de saúde (ex: Hipertensão, Diabetes).
3. **Plano de Tratamento Sugerido**: Etapas iniciais.
4. **Exames Complementares Necessários**: O que pedir para confirmar o diagnóstico.

Use linguagem técnica profissional, formatado em Markdown."""
    return _complete(
        api_key, [{"role": "user", "content": prompt}], config.REASONING_MODEL,
        fallback="Erro na análise da anamnese.",
        error_message="Erro ao processar anamnese.",
        max_tokens=2000,
    )


# --- Patient simulator -------------------------------------------------------

def create_simulation_chat(persona):
    """Start a role-play session; the history lives in session state between turns."""
    system = (
        f"IMPORTANTE: Você NÃO é uma IA. Você é {persona['name']}.\n"
        f"{persona['system_prompt']}\n{SIMULATION_GUIDELINES}"
    )
    return {
        "persona": persona,
        "history": [{"role": "system", "content": system}],
        "messages": [
            {
                "id": "init",
                "sender": "ai",
                "text": f"(Iniciando simulação como {persona['name']}). Olá doutor(a), vim para a consulta mas...",
            }
        ],
    }


def send_simulation_message(chat, text, api_key):
    """Send the dentist's line and append both sides to the chat. Returns the reply text."""
    chat["messages"].append({"id": f"user-{len(chat['messages'])}", "sender": "user", "text": text})
    chat["history"].append({"role": "user", "content": text})

    if not api_key:
        reply = MISSING_KEY_MESSAGE
    else:
        try:
            client = get_client(api_key)
            response = client.chat.completions.create(
                model=config.REASONING_MODEL,
                messages=chat["history"],
                temperature=1,
            )
            reply = response.choices[0].message.content or ""
            chat["history"].append({"role": "assistant", "content": reply})
        except Exception as e:
            logger.error("Simulation turn failed: %s", e)
            reply = SIMULATION_ERROR

    chat["messages"].append({"id": f"ai-{len(chat['messages'])}", "sender": "ai", "text": reply})
    return reply


# --- Voice -------------------------------------------------------------------

def transcribe_audio(audio_bytes, api_key):
    """Transcribe a browser recording with Whisper. Returns None on failure."""
    if not api_key or not audio_bytes:
        return None
    try:
        client = get_client(api_key)
        audio_file = io.BytesIO(audio_bytes)
        audio_file.name = "pergunta.wav"
        transcription = client.audio.transcriptions.create(
            model=config.TRANSCRIPTION_MODEL,
            file=audio_file,
            language=config.LANGUAGE,
        )
        return transcription.text
    except Exception as e:
        logger.error("Transcription failed: %s", e)
        return None


def synthesize_speech(text, api_key):
    """Read an answer aloud. Returns mp3 bytes, or None if unavailable."""
    if not api_key or not text:
        return None
    try:
        client = get_client(api_key)
        response = client.audio.speech.create(
            model=config.TTS_MODEL,
            voice=config.TTS_VOICE,
            input=text,
        )
        return response.content
    except Exception as e:
        logger.error("Speech synthesis failed: %s", e)
        return None
