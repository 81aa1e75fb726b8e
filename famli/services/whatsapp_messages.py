"""
Mensagens fixas do assistente Famli no WhatsApp (sem IA).
"""
from datetime import datetime
from typing import List
from famli.core.config import settings
from famli.models.box_item import BoxItem
from famli.models.whatsapp import PendingItem
from famli.services.command_parser import CATEGORY_MENU, category_emoji, truncate

_NUMBER_EMOJIS = ["1️⃣", "2️⃣", "3️⃣", "4️⃣", "5️⃣"]


def _category_menu() -> str:
    lines = [
        f"{emoji} {category.capitalize()}"
        for emoji, category in zip(_NUMBER_EMOJIS, CATEGORY_MENU)
    ]
    return "\n".join(lines)


class WhatsAppMessages:
    """Textos padronizados das respostas"""

    @staticmethod
    def help() -> str:
        return (
            "🏠 *Famli - Seu assistente de memórias*\n\n"
            "Guarde o que importa diretamente pelo WhatsApp!\n\n"
            "*O que você pode fazer:*\n\n"
            "📝 Enviar *textos* para guardar\n"
            "📸 Enviar *fotos* e memórias\n"
            "🎤 Enviar *áudios* e notas de voz\n"
            "📄 Enviar *documentos*\n"
            "📍 Compartilhar *localizações*\n\n"
            "*Comandos úteis:*\n\n"
            "• *ajuda* - Esta mensagem\n"
            "• *listar* - Ver últimos itens\n"
            "• *vincular* - Conectar à conta\n"
            "• *status* - Ver seu status\n"
            "• *cancelar* - Cancelar operação\n\n"
            "_É só me enviar o que quiser guardar!_ 💚"
        )

    @staticmethod
    def save_mode() -> str:
        return (
            "📝 *Modo guardar ativado!*\n\n"
            "Me envie o que você quer guardar:\n"
            "• Uma mensagem de texto\n"
            "• Uma foto\n"
            "• Um áudio\n"
            "• Um documento\n\n"
            "_Estou esperando..._"
        )

    @staticmethod
    def cancelled() -> str:
        return "✅ Operação cancelada! Se precisar de algo, é só me chamar."

    # ------------------------------------------------------------------
    # Fluxo de criação
    # ------------------------------------------------------------------

    @staticmethod
    def ask_category_for_text(content: str) -> str:
        return (
            "📝 *Vou guardar isso para você!*\n\n"
            f"_{truncate(content, 200)}_\n\n"
            "Em qual categoria?\n\n"
            f"{_category_menu()}\n\n"
            "_Responda com o número ou digite a categoria_"
        )

    @staticmethod
    def ask_category_for_image(caption: str) -> str:
        return (
            "📸 *Foto recebida!*\n\n"
            f"Legenda: _{truncate(caption, 100)}_\n\n"
            "Em qual categoria você quer guardar?\n\n"
            f"{_category_menu()}\n\n"
            "_Responda com o número ou nome da categoria_"
        )

    @staticmethod
    def ask_category_for_audio() -> str:
        return (
            "🎤 *Áudio recebido!*\n\n"
            "Em qual categoria você quer guardar?\n\n"
            f"{_category_menu()}\n\n"
            "_Responda com o número ou nome da categoria_"
        )

    @staticmethod
    def ask_category_for_document() -> str:
        return (
            "📄 *Documento recebido!*\n\n"
            "Em qual categoria você quer guardar?\n\n"
            f"{_category_menu()}\n\n"
            "_Responda com o número ou nome da categoria_"
        )

    @staticmethod
    def confirm_location(latitude: str, longitude: str, title: str) -> str:
        return (
            "📍 *Localização recebida!*\n\n"
            f"Coordenadas: {latitude}, {longitude}\n\n"
            f"Quer salvar como \"{title}\"?\n\n"
            "✅ Responda *sim* para confirmar\n"
            "❌ Responda *não* para cancelar\n"
            "✏️ Ou digite um título diferente"
        )

    @staticmethod
    def confirmation_summary(item: PendingItem) -> str:
        return (
            "✨ *Confirme os dados:*\n\n"
            f"📌 *Título:* {item.title}\n"
            f"📁 *Categoria:* {item.category}\n"
            f"📝 *Conteúdo:* _{truncate(item.content, 150)}_\n\n"
            "✅ Responda *sim* para salvar\n"
            "❌ Responda *não* para cancelar\n"
            "✏️ Ou digite um novo título"
        )

    @staticmethod
    def title_updated(item: PendingItem) -> str:
        return (
            "✏️ *Título atualizado!*\n\n"
            f"📌 *Título:* {item.title}\n"
            f"📁 *Categoria:* {item.category}\n\n"
            "✅ Responda *sim* para salvar\n"
            "❌ Responda *não* para cancelar"
        )

    @staticmethod
    def draft_discarded() -> str:
        return "❌ Cancelado! Se precisar de algo, é só me mandar uma mensagem."

    @staticmethod
    def saved(item: BoxItem) -> str:
        return (
            "✅ *Guardado com sucesso!*\n\n"
            f"📌 *{item.title}*\n"
            f"📁 Categoria: {item.category}\n\n"
            "Você pode ver tudo na sua Caixa Famli:\n"
            f"🔗 {settings.APP_PUBLIC_URL}/minha-caixa\n\n"
            "_Continue me enviando o que quiser guardar!_ 💚"
        )

    @staticmethod
    def save_failed() -> str:
        return (
            "😕 Desculpe, não consegui salvar agora.\n\n"
            "Tente novamente em alguns instantes enviando sua mensagem outra vez."
        )

    @staticmethod
    def lost_draft() -> str:
        return "Ops! Algo deu errado. Envie sua mensagem novamente."

    # ------------------------------------------------------------------
    # Comandos de consulta
    # ------------------------------------------------------------------

    @staticmethod
    def item_list(items: List[BoxItem], total: int) -> str:
        response = "📦 *Seus últimos itens:*\n\n"
        for item in items:
            response += (
                f"{category_emoji(item.category)} *{item.title}*\n"
                f"   _{truncate(item.content or '', 50)}_\n\n"
            )
        response += f"_Total: {total} itens_\n\n🔗 Ver tudo: {settings.APP_PUBLIC_URL}/minha-caixa"
        return response

    @staticmethod
    def empty_box() -> str:
        return "📭 Sua Caixa Famli está vazia!\n\nMe envie algo para guardar."

    @staticmethod
    def box_unavailable() -> str:
        return "😕 Não consegui abrir sua Caixa Famli agora. Tente novamente em instantes."

    @staticmethod
    def status_linked(item_count: int, last_activity: datetime) -> str:
        return (
            "📱 *Status: Conectado* ✅\n\n"
            f"📦 Itens na Caixa: {item_count}\n"
            f"📅 Última atividade: {last_activity.strftime('%d/%m/%Y %H:%M')}\n\n"
            f"🔗 Acesse: {settings.APP_PUBLIC_URL}/minha-caixa"
        )

    @staticmethod
    def status_unlinked() -> str:
        return (
            "📱 *Status: Não vinculado*\n\n"
            "Seu WhatsApp ainda não está conectado a uma conta Famli.\n\n"
            "Digite *vincular* para conectar."
        )

    # ------------------------------------------------------------------
    # Vinculação
    # ------------------------------------------------------------------

    @staticmethod
    def link_instructions(code: str, ttl_minutes: int) -> str:
        return (
            "🔗 *Vincular WhatsApp ao Famli*\n\n"
            f"1️⃣ Acesse *{settings.APP_PUBLIC_URL}*\n"
            "2️⃣ Faça login na sua conta\n"
            "3️⃣ Vá em *Configurações > WhatsApp*\n"
            f"4️⃣ Digite o código: *{code}*\n\n"
            f"_O código expira em {ttl_minutes} minutos_"
        )

    @staticmethod
    def already_linked() -> str:
        return (
            "✅ Seu WhatsApp já está conectado!\n\n"
            f"Se quiser trocar de conta, acesse {settings.APP_PUBLIC_URL}/configuracoes"
        )

    @staticmethod
    def link_confirmed() -> str:
        return (
            "✅ *WhatsApp vinculado com sucesso!*\n\n"
            "Agora você pode me enviar:\n"
            "• Textos para guardar\n"
            "• Fotos e memórias\n"
            "• Áudios e documentos\n\n"
            "_Experimente: me envie algo para guardar!_ 💚"
        )

    @staticmethod
    def unlinked_text(text: str) -> str:
        return (
            "👋 *Olá!* Sou o assistente do Famli.\n\n"
            f"Vi que você enviou:\n_{truncate(text, 100)}_\n\n"
            "Para guardar isso na sua Caixa Famli, preciso conectar seu WhatsApp à sua conta.\n\n"
            "Digite *vincular* para começar!\n\n"
            f"_Não tem conta? Crie em {settings.APP_PUBLIC_URL}_ 💚"
        )

    @staticmethod
    def unlinked_media(kind: str) -> str:
        intros = {
            "image": "📸 Vi sua foto!",
            "audio": "🎤 Recebi seu áudio!",
            "document": "📄 Recebi seu documento!",
            "location": "📍 Recebi a localização!",
        }
        intro = intros.get(kind, "📎 Recebi sua mensagem!")
        return f"{intro} Para salvar no Famli, primeiro vincule seu número.\n\nDigite *vincular* para começar."

    @staticmethod
    def list_requires_link() -> str:
        return "Para ver seus itens, primeiro vincule seu número.\n\nDigite *vincular* para começar."

    # ------------------------------------------------------------------
    # Erros
    # ------------------------------------------------------------------

    @staticmethod
    def not_understood() -> str:
        return "Desculpe, não consegui entender sua mensagem."

    @staticmethod
    def generic_error() -> str:
        return "Desculpe, tive um problema ao processar sua mensagem. Tente novamente."
