# portal/services/notifications.py
from __future__ import annotations

import logging
from html import escape

from flask import current_app
from flask_mail import Message

from portal.extensions import mail
from portal.models import Order
from portal.services.formatters import (
    format_date_cs,
    format_item_line,
    mail_category,
    order_number,
    sort_order_items,
)

logger = logging.getLogger(__name__)

# stav -> (předmět, text stavu, barva nadpisu, doplňující věta)
STATUS_MESSAGES = {
    "confirmed": (
        "Potvrzení objednávky",
        "POTVRZENA",
        "#4CAF50",
        "Vaše objednávka byla úspěšně potvrzena a připravuje se k expedici.",
    ),
    "cancelled": (
        "Zrušení objednávky",
        "ZRUŠENA",
        "#e53935",
        "Vaše objednávka byla zrušena. V případě jakýchkoliv dotazů nás neváhejte kontaktovat.",
    ),
}


class NotificationError(Exception):
    pass


class NotificationSender:
    """Odesílání e-mailů přes Flask-Mail (UTF-8, volitelně HTML a skrytá kopie)."""

    def send(self, subject, recipients, body, html=None, bcc=None, sender=None) -> Message:
        if isinstance(recipients, str):
            recipients = [recipients]
        recipients = [r for r in (recipients or []) if r]
        if not recipients:
            raise NotificationError("Chybí příjemce e-mailu")

        msg = Message(
            subject=subject or "",
            recipients=recipients,
            body=body or "",
            html=html,
            bcc=[bcc] if isinstance(bcc, str) else bcc,
            sender=sender,
        )
        msg.charset = "utf-8"

        try:
            mail.send(msg)
        except Exception as e:
            logger.exception("[mail] send failed to %s", recipients)
            raise NotificationError(str(e)) from e

        logger.info("[mail] sent '%s' to %s", subject, recipients)
        return msg

    def send_status_email(self, order: Order, status: str) -> Message:
        if status not in STATUS_MESSAGES:
            raise ValueError(f"Stav {status!r} nevyžaduje odeslání e-mailu")

        company_name = current_app.config.get("COMPANY_NAME") or ""
        subject_base, status_text, color, extra = STATUS_MESSAGES[status]
        subject = f"{subject_base} - {company_name}" if company_name else subject_base

        items = [
            (
                it.product.name if it.product else f"#{it.product_id}",
                format_item_line(it.quantity, it.volume, it.product.category if it.product else None),
            )
            for it in order.items
        ]
        company = order.customer_company or "Neuvedeno"
        phone = order.customer_phone or "Neuvedeno"

        lines = [
            f"Vaše objednávka byla {status_text}",
            "",
            f"Vážený zákazníku {order.customer_name or ''}, ze společnosti {company}",
            extra,
            "",
            "Položky objednávky:",
        ]
        lines += [f"• {name} - {line}" for name, line in items]
        lines += [
            "",
            f"Celkový objem: {order.total_volume or 0}L",
            "",
            f"Email: {order.customer_email}",
            f"Telefon: {phone}",
            f"Firma: {company}",
        ]
        if order.note:
            lines += ["", f"Poznámka: {order.note}"]
        lines += ["", "S pozdravem,", f"Váš tým {company_name}".strip()]

        items_html = "".join(
            f"<li>{escape(name)} - {escape(line)}</li>" for name, line in items
        )
        note_html = f"<p><strong>Poznámka:</strong> {escape(order.note)}</p>" if order.note else ""
        html = (
            '<html><body style="font-family: Arial, sans-serif; color: #333;">'
            f'<h1 style="color: {color};">Vaše objednávka byla {status_text}</h1>'
            f"<p>Vážený zákazníku {escape(order.customer_name or '')}, "
            f"ze společnosti {escape(company)}</p>"
            f"<p>{escape(extra)}</p>"
            f"<ul>{items_html}</ul>"
            f"<p><strong>Celkový objem: {escape(str(order.total_volume or 0))}L</strong></p>"
            f"<p>Email: {escape(order.customer_email or '')}<br>"
            f"Telefon: {escape(phone)}<br>Firma: {escape(company)}</p>"
            f"{note_html}"
            f"<p>S pozdravem,<br>Váš tým {escape(company_name)}</p>"
            "</body></html>"
        )

        return self.send(
            subject=subject,
            recipients=[order.customer_email],
            body="\n".join(lines),
            html=html,
            bcc=current_app.config.get("ORDER_NOTIFY_BCC"),
        )

    def send_order_received(self, order: Order) -> tuple[Message, Message]:
        """
        Po přijetí objednávky: potvrzení zákazníkovi a upozornění adminovi.
        Obě zprávy mají stejnou tabulku položek seřazenou pro sklad.
        """
        admin_email = current_app.config.get("ORDER_ADMIN_EMAIL")
        if not admin_email:
            raise NotificationError("Není nastaven ORDER_ADMIN_EMAIL")

        company_name = current_app.config.get("COMPANY_NAME") or ""
        number = order_number(order.id)
        created = format_date_cs(order.created_at)
        company = order.customer_company or "Neuvedeno"
        phone = order.customer_phone or "Neuvedeno"
        volume = f"{order.total_volume or 0} L"

        rows = []
        for it in sort_order_items(order.items):
            category = it.product.category if it.product else None
            rows.append((
                it.product.name if it.product else f"#{it.product_id}",
                mail_category(category),
                format_item_line(it.quantity, it.volume, category),
            ))

        items_text = [f"• {name} ({category}) - {line}" for name, category, line in rows]
        note_text = order.note or "Neuvedena"
        items_html = (
            "<table><tr><th>Produkt</th><th>Kategorie</th><th>KS x Objem</th></tr>"
            + "".join(
                f"<tr><td>{escape(name)}</td><td>{escape(category)}</td><td>{escape(line)}</td></tr>"
                for name, category, line in rows
            )
            + "</table>"
        )
        footer_html = f"<p>{escape(company_name)}</p>"

        customer_body = "\n".join([
            "Objednávka přijata, čeká na potvrzení",
            "",
            f"Vážený zákazníku {order.customer_name or ''}, děkujeme za Vaši objednávku. "
            "O jejím potvrzení Vás budeme informovat e-mailem.",
            "",
            f"Číslo objednávky: {number}",
            f"Datum: {created}",
            "Stav: Čeká na potvrzení",
            f"Celkový objem: {volume}",
            "",
            "Položky objednávky:",
            *items_text,
            "",
            f"Poznámka: {note_text}",
            "",
            company_name,
        ])
        customer_html = (
            '<html><body style="font-family: Arial, sans-serif; color: #111827;">'
            '<h1 style="color: #1d4ed8;">Objednávka přijata – čeká na potvrzení</h1>'
            f"<p>Vážený zákazníku {escape(order.customer_name or '')}, děkujeme za Vaši objednávku.</p>"
            f"<p><strong>Číslo objednávky:</strong> {number}<br>"
            f"<strong>Datum:</strong> {created}<br>"
            "<strong>Stav:</strong> Čeká na potvrzení<br>"
            f"<strong>Celkový objem:</strong> {escape(volume)}</p>"
            f"{items_html}"
            f"<p><strong>Poznámka:</strong> {escape(note_text)}</p>"
            f"{footer_html}</body></html>"
        )

        admin_body = "\n".join([
            "Nová objednávka k vyřízení",
            "",
            f"Číslo objednávky: {number}",
            f"Datum: {created}",
            f"Zákazník: {order.customer_name or ''}",
            f"Firma: {company}",
            f"E-mail: {order.customer_email}",
            f"Telefon: {phone}",
            f"Celkový objem: {volume}",
            "",
            "Položky objednávky:",
            *items_text,
            "",
            f"Poznámka: {note_text}",
        ])
        admin_html = (
            '<html><body style="font-family: Arial, sans-serif; color: #111827;">'
            '<h1 style="color: #1d4ed8;">Nová objednávka k vyřízení</h1>'
            f"<p><strong>Číslo objednávky:</strong> {number}<br>"
            f"<strong>Datum:</strong> {created}<br>"
            f"<strong>Zákazník:</strong> {escape(order.customer_name or '')}<br>"
            f"<strong>Firma:</strong> {escape(company)}<br>"
            f"<strong>E-mail:</strong> {escape(order.customer_email or '')}<br>"
            f"<strong>Telefon:</strong> {escape(phone)}<br>"
            f"<strong>Celkový objem:</strong> {escape(volume)}</p>"
            f"{items_html}"
            f"<p><strong>Poznámka:</strong> {escape(note_text)}</p>"
            f"{footer_html}</body></html>"
        )

        suffix = f" – {company_name}" if company_name else ""
        customer_msg = self.send(
            subject=f"Objednávka přijata #{number}{suffix}",
            recipients=[order.customer_email],
            body=customer_body,
            html=customer_html,
        )
        admin_msg = self.send(
            subject=(
                f"Nová objednávka: {order.customer_name or ''} "
                f"({order.customer_company or 'Bez firmy'}) #{number}"
            ),
            recipients=[admin_email],
            body=admin_body,
            html=admin_html,
        )
        return customer_msg, admin_msg
