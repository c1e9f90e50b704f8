# app/routers/admin/support.py
import datetime as dt
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.models.profile import Profile
from app.models.support import TICKET_STATUSES, SupportMessage, SupportTicket
from app.routers.admin.helpers import clean_str
from app.utils import messages
from app.utils.authz import require_admin
from app.utils.errors import bad_request, error_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/support", tags=["admin:support"])


def _status_counts(db: Session) -> dict:
    counts = {status: 0 for status in TICKET_STATUSES}
    rows = db.query(SupportTicket.status, func.count(SupportTicket.id)).group_by(SupportTicket.status).all()
    for status, count in rows:
        counts[status] = count
    return counts


def _ticket_summary(ticket: SupportTicket) -> dict:
    data = ticket.to_dict()
    data["user_name"] = (ticket.user.display_name or ticket.user.email) if ticket.user else None
    data["audiobook_title"] = ticket.audiobook.title_fa if ticket.audiobook else None
    return data


@router.get("/tickets")
def list_tickets(status: Optional[str] = None, db: Session = Depends(get_db)):
    query = db.query(SupportTicket)
    if status:
        if status not in TICKET_STATUSES:
            return bad_request(messages.INVALID_STATUS)
        query = query.filter(SupportTicket.status == status)
    tickets = query.order_by(SupportTicket.last_message_at.desc(), SupportTicket.id.desc()).all()
    return {"tickets": [_ticket_summary(t) for t in tickets], "counts": _status_counts(db)}


@router.get("/tickets/{ticket_id}")
def get_ticket(ticket_id: int, db: Session = Depends(get_db)):
    ticket = db.get(SupportTicket, ticket_id)
    if ticket is None:
        return bad_request(messages.TICKET_NOT_FOUND, status_code=404)
    return {"ticket": _ticket_summary(ticket), "messages": [m.to_dict() for m in ticket.messages]}


@router.post("/tickets/{ticket_id}/reply")
def reply_ticket(
    ticket_id: int,
    payload: dict = Body(...),
    db: Session = Depends(get_db),
    me: Profile = Depends(require_admin),
):
    text = clean_str(payload.get("message"))
    if not text:
        return bad_request(messages.MESSAGE_REQUIRED)
    ticket = db.get(SupportTicket, ticket_id)
    if ticket is None:
        return bad_request(messages.TICKET_NOT_FOUND, status_code=404)

    now = dt.datetime.now(dt.timezone.utc)
    try:
        db.add(SupportMessage(ticket_id=ticket.id, sender_type="admin", sender_id=me.id, message_text=text))
        ticket.last_admin_id = me.id
        ticket.last_message_at = now
        ticket.updated_at = now
        if ticket.status == "open":
            ticket.status = "in_progress"
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Reply to ticket %s failed", ticket_id)
        return error_response(e)

    db.refresh(ticket)
    return {
        "message": messages.REPLY_SENT,
        "ticket": _ticket_summary(ticket),
        "messages": [m.to_dict() for m in ticket.messages],
    }


@router.put("/tickets/{ticket_id}/status")
def set_ticket_status(ticket_id: int, payload: dict = Body(...), db: Session = Depends(get_db)):
    status = payload.get("status")
    if status not in TICKET_STATUSES:
        return bad_request(messages.INVALID_STATUS)
    ticket = db.get(SupportTicket, ticket_id)
    if ticket is None:
        return bad_request(messages.TICKET_NOT_FOUND, status_code=404)
    ticket.status = status
    ticket.updated_at = dt.datetime.now(dt.timezone.utc)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        return error_response(e)
    return {"message": messages.SAVED, "ticket": _ticket_summary(ticket)}
