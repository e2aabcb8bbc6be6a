"""Reconciliation queue: resolution command and queue queries."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import logger, ordering
from ordering.reconciliation.case import CaseKind, CaseStatus, ReconciliationCase


@ordering.command(part_of="ReconciliationCase")
class ResolveReconciliationCase:
    case_id = Identifier(required=True)
    resolution = String(required=True, max_length=1000)
    resolved_by = Identifier(required=True)


@ordering.command_handler(part_of=ReconciliationCase)
class ReconciliationCaseHandler:
    @handle(ResolveReconciliationCase)
    def resolve_case(self, command):
        repo = current_domain.repository_for(ReconciliationCase)
        case = repo.get(command.case_id)
        case.resolve(command.resolution, command.resolved_by)
        repo.add(case)
        logger.info(
            "reconciliation_case_resolved",
            case_id=str(case.id),
            order_id=str(case.order_id),
            kind=case.kind,
            resolved_by=str(command.resolved_by),
        )
        return case


def open_cases(order_id: str | None = None, kind: CaseKind | None = None) -> list[ReconciliationCase]:
    filters = {"status": CaseStatus.OPEN.value}
    if order_id is not None:
        filters["order_id"] = str(order_id)
    if kind is not None:
        filters["kind"] = kind.value
    cases = current_domain.repository_for(ReconciliationCase)._dao.query.filter(**filters).all().items
    return sorted(cases, key=lambda case: case.opened_at)
