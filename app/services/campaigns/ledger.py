"""
Delivery ledger: turns a dispatch report into the campaign's communication log.
"""
from datetime import datetime
from typing import List, Sequence

from app.repositories.customer import Customer
from app.services.campaigns.dispatcher import DispatchReport
from app.services.campaigns.types import CommunicationLogEntry, DeliveryStatus


def build_communication_log(
    audience: Sequence[Customer],
    report: DispatchReport,
    now: datetime,
) -> List[CommunicationLogEntry]:
    """
    One entry per audience member, in audience order.

    A member is failed when its e-mail is among report.failed_emails;
    only delivered entries carry delivered_at.
    """
    failed = report.failed_addresses
    log = []
    for customer in audience:
        if customer.email in failed:
            log.append(CommunicationLogEntry(customer.id, DeliveryStatus.FAILED))
        else:
            log.append(CommunicationLogEntry(customer.id, DeliveryStatus.DELIVERED, now))
    return log


def tally(log: Sequence[CommunicationLogEntry]) -> dict:
    """Delivered and failed counts of a log."""
    delivered = sum(1 for entry in log if entry.status == DeliveryStatus.DELIVERED)
    return {"delivered": delivered, "failed": len(log) - delivered}
