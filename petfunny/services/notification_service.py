import re
from urllib.parse import quote

from petfunny.core.config import settings
from petfunny.models.booking import BookingStatus, NotificationContext


def _details(ctx: NotificationContext) -> str:
    lines = []
    if ctx.pet_label:
        lines.append(f"🐶 Pet: {ctx.pet_label}")
    if ctx.service_title:
        lines.append(f"✂️ Serviço: {ctx.service_title}")
    if ctx.date_br or ctx.time:
        lines.append(f"📅 Data: {ctx.date_br} às {ctx.time}".strip())
    if ctx.prize_label:
        lines.append(f"🎁 Mimo: {ctx.prize_label}")
    return "\n".join(lines)


def build_notification_message(status, ctx: NotificationContext) -> str:
    """
    Customer message for a booking status change.
    `status` may be a BookingStatus or a raw string; unknown values are echoed uppercased.
    """
    name = ctx.customer_name or "cliente"
    pet = ctx.pet_label or "seu pet"
    details = _details(ctx)
    parsed = BookingStatus.parse(status)

    if parsed is BookingStatus.CONFIRMADO:
        head = f"Olá, {name}! ✅ Seu agendamento está *CONFIRMADO*."
    elif parsed is BookingStatus.RECEBIDO:
        head = f"Olá, {name}! 🐾 Recebemos {pet} aqui na PetFunny. Status: *RECEBIDO*."
    elif parsed is BookingStatus.EM_SERVICO:
        head = f"Olá, {name}! 🛁 {pet} já está sendo atendido. Status: *EM SERVIÇO*."
    elif parsed is BookingStatus.CONCLUIDO:
        head = f"Olá, {name}! ✨ O atendimento de {pet} foi *CONCLUÍDO*. Já pode vir buscar!"
    elif parsed is BookingStatus.ENTREGUE:
        head = f"Olá, {name}! 🧡 {pet} foi *ENTREGUE*. Obrigado pela confiança!"
    elif parsed is BookingStatus.CANCELADO:
        head = f"Olá, {name}. ❌ Seu agendamento foi *CANCELADO*. Fale com a gente para remarcar."
    else:
        raw = status.value if isinstance(status, BookingStatus) else str(status or "")
        head = f"Olá, {name}! Status do seu agendamento: *{raw.upper()}*."

    if details:
        return f"{head}\n\n{details}"
    return head


def clean_phone(phone: str) -> str:
    """Digits only, with the country code prepended to local numbers."""
    digits = re.sub(r"\D", "", phone or "")
    if not digits:
        return ""
    if len(digits) <= 11:
        digits = settings.DEFAULT_COUNTRY_CODE + digits
    return digits


def build_whatsapp_link(phone: str, message: str) -> str:
    digits = clean_phone(phone)
    if not digits:
        return ""
    return f"https://wa.me/{digits}?text={quote(message)}"
