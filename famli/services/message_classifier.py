from famli.models.whatsapp import IncomingMessage, MessageType

# Prefixo MIME -> tipo. Verificados em ordem.
MEDIA_PREFIXES = [
    ("image/", MessageType.IMAGE),
    ("audio/", MessageType.AUDIO),
    ("application/", MessageType.DOCUMENT),
]


def classify_message(message: IncomingMessage) -> MessageType:
    """
    Define o tipo da mensagem.

    Prioridade fixa: anexo > coordenadas > texto. Um anexo com MIME
    desconhecido (ex: video/mp4) cai para as regras seguintes.
    """
    if message.num_media > 0:
        content_type = (message.media_content_type or "").lower()
        for prefix, message_type in MEDIA_PREFIXES:
            if content_type.startswith(prefix):
                return message_type

    if message.latitude and message.longitude:
        return MessageType.LOCATION

    return MessageType.TEXT
