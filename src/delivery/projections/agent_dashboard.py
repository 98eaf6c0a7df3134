"""Agent dashboard — each delivery partner's current load and track record.

Built from agent events alone, so one unit of work touches a row once.
"""

from protean.core.projector import on
from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Identifier, Integer, String
from protean.utils.globals import current_domain

from delivery.agent.agent import AdminControl, DeliveryAgent, DutyStatus, ReleaseOutcome
from delivery.agent.events import (
    AgentAccessChanged,
    AgentDutyChanged,
    AgentOnboarded,
    AgentReleased,
    AgentReserved,
)
from delivery.domain import delivery


@delivery.projection
class AgentDashboard:
    agent_id = Identifier(identifier=True, required=True)
    agent_code = String(required=True)
    name = String()
    location = String()
    duty_status = String(default=DutyStatus.NOT_AVAILABLE.value)
    admin_control = String(default=AdminControl.INACTIVE.value)
    active_order_id = Identifier()
    active_order_number = String()
    assigned_count = Integer(default=0)
    delivered_count = Integer(default=0)
    failed_attempt_count = Integer(default=0)
    updated_at = DateTime()


@delivery.projector(projector_for=AgentDashboard, aggregates=[DeliveryAgent])
class AgentDashboardProjector:
    def _load(self, agent_id):
        try:
            return current_domain.repository_for(AgentDashboard).get(agent_id)
        except ObjectNotFoundError:
            return None

    @on(AgentOnboarded)
    def on_agent_onboarded(self, event):
        current_domain.repository_for(AgentDashboard).add(
            AgentDashboard(
                agent_id=event.agent_id,
                agent_code=event.agent_code,
                name=event.name,
                location=event.location,
                updated_at=event.onboarded_at,
            )
        )

    @on(AgentReserved)
    def on_agent_reserved(self, event):
        view = self._load(event.agent_id)
        if view is None:
            return
        view.duty_status = DutyStatus.BUSY.value
        view.active_order_id = event.order_id
        view.active_order_number = event.order_number
        view.assigned_count += 1
        view.updated_at = event.reserved_at
        current_domain.repository_for(AgentDashboard).add(view)

    @on(AgentReleased)
    def on_agent_released(self, event):
        view = self._load(event.agent_id)
        if view is None:
            return
        if event.outcome == ReleaseOutcome.DELIVERED.value:
            view.delivered_count += 1
        elif event.outcome == ReleaseOutcome.FAILED_ATTEMPT.value:
            view.failed_attempt_count += 1

        if str(view.active_order_id) != str(event.current_order_id):
            view.active_order_number = None
        view.duty_status = event.duty_status
        view.active_order_id = event.current_order_id
        view.updated_at = event.released_at
        current_domain.repository_for(AgentDashboard).add(view)

    @on(AgentDutyChanged)
    def on_agent_duty_changed(self, event):
        view = self._load(event.agent_id)
        if view is None:
            return
        view.duty_status = event.new_status
        view.updated_at = event.changed_at
        current_domain.repository_for(AgentDashboard).add(view)

    @on(AgentAccessChanged)
    def on_agent_access_changed(self, event):
        view = self._load(event.agent_id)
        if view is None:
            return
        view.admin_control = event.admin_control
        view.updated_at = event.changed_at
        current_domain.repository_for(AgentDashboard).add(view)

