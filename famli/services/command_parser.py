"""
Interpretação de texto livre vindo do WhatsApp.
Comandos, categorias, confirmações e pequenos utilitários de texto (sem IA).
"""
import re
from typing import Optional
from famli.models.box_item import ItemType
from famli.models.whatsapp import Command

# ============================================================================
# VOCABULÁRIO FIXO
# ============================================================================

COMMAND_SYNONYMS = {
    Command.HELP: ("ajuda", "help", "?", "oi", "olá", "ola", "menu"),
    Command.SAVE: ("guardar", "salvar", "save"),
    Command.LIST: ("listar", "ver", "list", "lista"),
    Command.CANCEL: ("cancelar", "cancel", "parar", "sair"),
    Command.STATUS: ("status", "conta"),
    Command.LINK: ("vincular", "conectar", "link", "login"),
}

_COMMAND_LOOKUP = {
    word: command
    for command, words in COMMAND_SYNONYMS.items()
    for word in words
}

DEFAULT_CATEGORY = "outros"
LOCATION_CATEGORY = "família"

# Ordem do menu: 1️⃣ .. 5️⃣
CATEGORY_MENU = ["família", "saúde", "finanças", "documentos", "memórias"]

_CATEGORY_LOOKUP = {
    "1": "família", "família": "família", "familia": "família", "fam": "família",
    "2": "saúde", "saúde": "saúde", "saude": "saúde", "sau": "saúde",
    "3": "finanças", "finanças": "finanças", "financas": "finanças", "fin": "finanças", "dinheiro": "finanças",
    "4": "documentos", "documentos": "documentos", "docs": "documentos", "doc": "documentos",
    "5": "memórias", "memórias": "memórias", "memorias": "memórias", "memória": "memórias",
    "memoria": "memórias", "mem": "memórias",
}

CATEGORY_EMOJIS = {
    "família": "👨‍👩‍👧‍👦",
    "saúde": "🏥",
    "finanças": "💰",
    "documentos": "📄",
    "memórias": "💝",
    "outros": "📌",
}

AFFIRMATIVE_WORDS = {"sim", "s", "yes", "y", "confirmar", "ok"}
NEGATIVE_WORDS = {"não", "nao", "n", "no", "cancelar"}

# Ordem importa: a primeira palavra encontrada define o tipo
ITEM_TYPE_KEYWORDS = [
    (ItemType.MEMORY, ("lembro", "memória", "memoria", "saudade", "querido", "amor", "filho", "neto", "família")),
    (ItemType.INFO, ("importante", "conta", "banco", "senha", "cpf", "documento", "cartão")),
    (ItemType.ACCESS, ("login", "acesso", "usuário", "email")),
    (ItemType.NOTE, ("nota", "lembrete", "anotar", "não esquecer")),
]

UNTITLED = "Item sem título"


def _normalize(text: Optional[str]) -> str:
    return (text or "").strip().lower()


# ============================================================================
# PARSERS
# ============================================================================

def parse_command(raw_text: Optional[str]) -> Optional[Command]:
    """
    Reconhece um comando. Comandos podem vir com ou sem "/".
    Retorna None quando o texto é conteúdo comum da conversa.
    """
    text = _normalize(raw_text)
    if text.startswith("/"):
        text = text[1:]
    return _COMMAND_LOOKUP.get(text)


def parse_category(raw_text: Optional[str]) -> str:
    """Converte número (1-5) ou nome em categoria; o resto vira "outros"."""
    return _CATEGORY_LOOKUP.get(_normalize(raw_text), DEFAULT_CATEGORY)


def is_affirmative(raw_text: Optional[str]) -> bool:
    return _normalize(raw_text) in AFFIRMATIVE_WORDS


def is_negative(raw_text: Optional[str]) -> bool:
    return _normalize(raw_text) in NEGATIVE_WORDS


def detect_item_type(content: str) -> str:
    """Detecta o tipo do item por palavras-chave (padrão: nota)."""
    content_lower = content.lower()
    for item_type, words in ITEM_TYPE_KEYWORDS:
        if any(word in content_lower for word in words):
            return item_type.value
    return ItemType.NOTE.value


def category_emoji(category: Optional[str]) -> str:
    return CATEGORY_EMOJIS.get(category or "", "📌")


# ============================================================================
# TEXTO
# ============================================================================

def truncate(text: str, max_len: int) -> str:
    if len(text) <= max_len:
        return text
    return text[:max_len - 3] + "..."


def generate_title(content: str, max_len: int = 50) -> str:
    """
    Gera um título a partir da primeira linha do conteúdo,
    cortando em fronteira de palavra.
    """
    title = content.strip().split("\n")[0].strip()

    if len(title) > max_len:
        words = []
        size = 0
        for word in title.split():
            extra = len(word) + (1 if words else 0)
            if size + extra > max_len:
                break
            words.append(word)
            size += extra
        title = " ".join(words)

    return title or UNTITLED


def clean_phone_number(phone: Optional[str]) -> str:
    """
    Normaliza o número para "+" seguido só de dígitos.
    "whatsapp:+5511999999999" e "+55 (11) 99999-9999" viram "+5511999999999".
    """
    phone = (phone or "").strip()
    if phone.startswith("whatsapp:"):
        phone = phone[len("whatsapp:"):]
    digits = re.sub(r"\D", "", phone)
    return f"+{digits}" if digits else ""


def mask_phone(phone: Optional[str]) -> str:
    """+5511999999999 -> +55119****9999 (para logs e status)."""
    phone = clean_phone_number(phone)
    if len(phone) < 8:
        return "****"
    if len(phone) > 8:
        return phone[:-8] + "****" + phone[-4:]
    return "****" + phone[-4:]
