"""
Site settings, contact messages and navigation ordering.
"""
from __future__ import annotations

from typing import Any, Optional, Sequence

from classroom.errors import ValidationError
from classroom.identity_access.guards import require_admin
from classroom.identity_access.session import Session
from classroom.teaching.models import ContactMessage, MessageStatus, NavItem, SiteDocument
from classroom.teaching.services.base import UNSET, Change, SiteMutator, pick


class SiteService(SiteMutator):
    async def update_site_settings(
        self,
        session: Session,
        *,
        classroom_name: Any = UNSET,
        home_title: Any = UNSET,
        home_subtitle: Any = UNSET,
        upi_number: Any = UNSET,
        upi_id: Any = UNSET,
    ) -> Optional[SiteDocument]:
        require_admin(session)
        if classroom_name is not UNSET and not (classroom_name or "").strip():
            raise ValidationError("invalid_classroom_name", "Classroom name cannot be empty.")

        def transform(site: SiteDocument, keys) -> Change:
            updated = site.model_copy(
                update={
                    "classroom_name": pick(classroom_name, site.classroom_name).strip(),
                    "home": site.home.model_copy(
                        update={
                            "title": pick(home_title, site.home.title),
                            "subtitle": pick(home_subtitle, site.home.subtitle),
                        }
                    ),
                    "payment_details": site.payment_details.model_copy(
                        update={
                            "upi_number": pick(upi_number, site.payment_details.upi_number),
                            "upi_id": pick(upi_id, site.payment_details.upi_id),
                        }
                    ),
                }
            )
            return Change(updated, updated)

        return await self._mutate("update_site_settings", transform)

    # --- contact messages ------------------------------------------------------------

    async def add_contact_message(
        self, name: str, email: str, message: str, subject: str = ""
    ) -> Optional[ContactMessage]:
        """Queue a message from any visitor; newest first."""
        name = (name or "").strip()
        email = (email or "").strip()
        message = (message or "").strip()
        if not name or not message:
            raise ValidationError("message_incomplete", "Please fill in your name and a message.")
        if "@" not in email:
            raise ValidationError("invalid_email", "Please enter a valid email address.")

        def transform(site: SiteDocument, keys) -> Change:
            entry = ContactMessage(
                id=self.ids.next_id(), name=name, email=email, subject=(subject or "").strip(), message=message
            )
            return Change(site.model_copy(update={"contact_messages": [entry, *site.contact_messages]}), entry)

        return await self._mutate("add_contact_message", transform)

    async def update_contact_message_status(
        self, session: Session, message_id: int, status: Any
    ) -> Optional[ContactMessage]:
        require_admin(session)
        try:
            status = MessageStatus(status)
        except ValueError:
            raise ValidationError("invalid_status", f"Unknown message status: {status!r}.") from None

        def transform(site: SiteDocument, keys) -> Optional[Change]:
            current = next((m for m in site.contact_messages if m.id == message_id), None)
            if current is None:
                return None
            updated = current.model_copy(update={"status": status})
            messages = [updated if m.id == message_id else m for m in site.contact_messages]
            return Change(site.model_copy(update={"contact_messages": messages}), updated)

        return await self._mutate("update_contact_message_status", transform)

    async def delete_contact_message(self, session: Session, message_id: int) -> Optional[ContactMessage]:
        require_admin(session)

        def transform(site: SiteDocument, keys) -> Optional[Change]:
            current = next((m for m in site.contact_messages if m.id == message_id), None)
            if current is None:
                return None
            messages = [m for m in site.contact_messages if m.id != message_id]
            return Change(site.model_copy(update={"contact_messages": messages}), current)

        return await self._mutate("delete_contact_message", transform)

    # --- navigation ------------------------------------------------------------------

    async def update_nav_items_order(self, session: Session, items: Sequence[NavItem]) -> Optional[list]:
        """Replace the nav collection with `items`, numbering `order` by position.

        The submitted sequence is trusted as-is: items left out are dropped.
        """
        require_admin(session)

        def transform(site: SiteDocument, keys) -> Change:
            ordered = [item.model_copy(update={"order": index}) for index, item in enumerate(items)]
            return Change(site.model_copy(update={"nav_items": ordered}), ordered)

        return await self._mutate("update_nav_items_order", transform)


__all__ = ["SiteService"]
